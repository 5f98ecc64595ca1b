"""FastAPI auth dependencies.

Learn: get_current_user is the single gate in front of every task, user
and team route. It is attached at include_router() level (see api/__init__.py)
and also injected into handlers that need the caller's id.

Status codes:
- no bearer token        → 401 "Authentication token required"
- expired token          → 401 "Token expired"
- any other bad token    → 403 "Invalid token"

Downstream handlers trust the CurrentIdentity they receive and do not
re-validate it.
"""

import uuid
from typing import Optional

import structlog
from fastapi import Header, HTTPException

from taskmaster.auth.jwt import InvalidTokenError, TokenExpiredError, verify_token

logger = structlog.get_logger()


class CurrentIdentity:
    """The authenticated account making the request (decoded from the token)."""

    def __init__(self, user_id: str, username: str = "", role: str = "user"):
        self.user_id = user_id
        self.account_id = uuid.UUID(user_id)
        self.username = username
        self.role = role

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


def _bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


async def get_current_user(
    authorization: Optional[str] = Header(None),
) -> CurrentIdentity:
    """Extract and verify the bearer token (required)."""
    token = _bearer_token(authorization)
    if token is None:
        raise HTTPException(
            status_code=401,
            detail="Authentication token required",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        claims = verify_token(token)
    except TokenExpiredError:
        logger.info("auth.token_expired")
        raise HTTPException(
            status_code=401,
            detail="Token expired",
            headers={"WWW-Authenticate": "Bearer"},
        )
    except InvalidTokenError as e:
        logger.info("auth.token_invalid", error=str(e))
        raise HTTPException(status_code=403, detail="Invalid token")

    try:
        identity = CurrentIdentity(
            user_id=claims.user_id,
            username=claims.username,
            role=claims.role,
        )
    except ValueError:
        logger.info("auth.token_bad_subject")
        raise HTTPException(status_code=403, detail="Invalid token payload")

    structlog.contextvars.bind_contextvars(user_id=identity.user_id)
    return identity

