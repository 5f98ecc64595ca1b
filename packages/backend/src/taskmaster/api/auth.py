"""Auth API — registration and login.

Learn: The only two routes that work without a token:
- POST /auth/register → create an account (201, sanitized user)
- POST /auth/login → email/password → 24h bearer token + profile

Login failures are always 401 "Invalid credentials." — the caller can't
tell an unknown email from a wrong password. There is no logout route:
tokens are stateless, the client just throws its token away.
"""

import structlog
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from taskmaster.auth.jwt import create_access_token
from taskmaster.db.engine import get_db
from taskmaster.schemas.user import (
    LoginRequest,
    LoginResponse,
    RegisterRequest,
    RegisterResponse,
    UserRead,
)
from taskmaster.services.account_service import (
    AccountService,
    DuplicateAccountError,
    InvalidCredentialsError,
)

logger = structlog.get_logger()

router = APIRouter(prefix="/auth")


def _svc(db: AsyncSession = Depends(get_db)) -> AccountService:
    return AccountService(db)


# ─── Register ────────────────────────────────────────────


@router.post("/register", response_model=RegisterResponse, status_code=201)
async def register(body: RegisterRequest, svc: AccountService = Depends(_svc)):
    """Create a new user account."""
    try:
        user = await svc.register(
            username=body.username,
            email=body.email,
            password=body.password,
        )
    except DuplicateAccountError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except SQLAlchemyError as e:
        logger.error("auth.register.db_error", error=str(e))
        raise HTTPException(status_code=500, detail="Server error during registration.")

    return {"message": "User registered successfully!", "user": user}


# ─── Login ───────────────────────────────────────────────


@router.post("/login", response_model=LoginResponse)
async def login(body: LoginRequest, svc: AccountService = Depends(_svc)):
    """Login with email and password → bearer token."""
    try:
        user = await svc.authenticate(body.email, body.password)
    except InvalidCredentialsError:
        logger.info("auth.login.failed")
        raise HTTPException(status_code=401, detail="Invalid credentials.")
    except SQLAlchemyError as e:
        logger.error("auth.login.db_error", error=str(e))
        raise HTTPException(status_code=500, detail="Server error during login.")

    token = create_access_token(str(user.id), user.username, user.role)
    logger.info("auth.login.ok", user_id=str(user.id))

    return LoginResponse(
        message="Login successful!",
        token=token,
        user=UserRead.model_validate(user),
    )
