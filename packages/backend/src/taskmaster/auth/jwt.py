"""JWT token creation and verification.

Learn: JWT (JSON Web Token) provides stateless authentication.
One kind of token: an access token valid for 24 hours, signed with
the server-held HS256 secret. Nothing is stored server-side, so there
is no revocation — logout means the client discards the token.

The payload carries the account id (sub), username and role so the
request gate never has to touch the database.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt

from taskmaster.config import settings


class TokenError(Exception):
    """Raised when token verification fails."""


class TokenExpiredError(TokenError):
    """Signature is valid but the token is past its exp claim."""


class InvalidTokenError(TokenError):
    """Malformed, tampered, wrongly signed, or missing required claims."""


@dataclass(frozen=True)
class TokenClaims:
    user_id: str
    username: str
    role: str


def create_access_token(
    user_id: str,
    username: str,
    role: str,
    expires_hours: Optional[int] = None,
    now: Optional[datetime] = None,
) -> str:
    """Create a signed access token.

    `now` overrides the issue time (tests use it to mint already-expired
    tokens).
    """
    issued_at = now or datetime.now(timezone.utc)
    if expires_hours is None:
        expires_hours = settings.access_token_expire_hours
    expires = issued_at + timedelta(hours=expires_hours)
    payload = {
        "sub": user_id,
        "username": username,
        "role": role,
        "type": "access",
        "iat": issued_at,
        "exp": expires,
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def verify_token(token: str) -> TokenClaims:
    """Verify and decode an access token.

    Raises TokenExpiredError when the token has expired, InvalidTokenError
    for everything else (bad signature, garbage input, missing claims).
    """
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            options={"require": ["exp", "sub"]},
        )
    except jwt.ExpiredSignatureError:
        raise TokenExpiredError("Token expired")
    except jwt.InvalidTokenError as e:
        raise InvalidTokenError(f"Invalid token: {e}")

    if payload.get("type") != "access":
        raise InvalidTokenError("Invalid token: not an access token")

    return TokenClaims(
        user_id=str(payload["sub"]),
        username=payload.get("username", ""),
        role=payload.get("role", "user"),
    )
