from fastapi import APIRouter, Depends, status

from .. import schemas
from ..auth import TokenService, get_token_service, hash_password, verify_password
from ..errors import AuthenticationError, ConflictError
from ..models import User
from ..rate_limit import rate_limited_user
from ..storage import Storage, get_storage
from lexai.config import settings
from lexai.utils.logging import logger

router = APIRouter(prefix=f"{settings.api_prefix}/auth", tags=["auth"])


@router.post(
    "/register",
    response_model=schemas.AuthResponse,
    status_code=status.HTTP_201_CREATED,
)
def register(
    payload: schemas.RegisterRequest,
    storage: Storage = Depends(get_storage),
    tokens: TokenService = Depends(get_token_service),
):
    logger.info(f"Register endpoint called for username={payload.username}")

    if storage.get_user_by_username(payload.username):
        logger.warning(f"Register failed: user already exists username={payload.username}")
        raise ConflictError("Username already exists")

    if storage.get_user_by_email(payload.email):
        logger.warning(f"Register failed: email already registered username={payload.username}")
        raise ConflictError("Email already registered")

    user = storage.create_user(
        username=payload.username,
        password_hash=hash_password(payload.password),
        email=payload.email,
        name=payload.name,
    )

    logger.info(f"User registered successfully username={payload.username}")
    return {
        "message": "User registered successfully",
        "user": schemas.UserOut.model_validate(user),
        "token": tokens.issue(user.id, user.username),
    }


@router.post("/login", response_model=schemas.AuthResponse)
def login(
    payload: schemas.LoginRequest,
    storage: Storage = Depends(get_storage),
    tokens: TokenService = Depends(get_token_service),
):
    logger.info(f"Login endpoint called for username={payload.username}")

    user = storage.get_user_by_username(payload.username)
    # verify even for unknown users so both failures look the same
    if not verify_password(payload.password, user.password_hash if user else None):
        logger.warning(f"Login failed username={payload.username}")
        raise AuthenticationError("Invalid credentials")

    logger.info(f"Login successful username={payload.username}")
    return {
        "message": "Login successful",
        "user": schemas.UserOut.model_validate(user),
        "token": tokens.issue(user.id, user.username),
    }


@router.get("/me", response_model=schemas.ProfileResponse)
def me(user: User = Depends(rate_limited_user)):
    logger.info(f"/auth/me called for user_id={user.id}")
    return {"user": schemas.ProfileOut.model_validate(user)}
