from datetime import datetime, timedelta, timezone
from typing import Callable, Optional, TypedDict

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError
from passlib.hash import bcrypt

from .errors import AuthenticationError
from .models import User
from .storage import Storage, get_storage
from lexai.config import settings
from lexai.utils.logging import logger

# auto_error=False so a missing header reaches our own 401 instead of a 403
security = HTTPBearer(auto_error=False)

# Verified against on unknown usernames so both login failures cost the same
_DUMMY_HASH = bcrypt.hash("lexai-dummy-password")


class TokenClaims(TypedDict):
    id: int
    username: str


def hash_password(pwd: str) -> str:
    logger.debug("Hashing password")
    return bcrypt.hash(pwd)


def verify_password(pwd: str, hashed: Optional[str]) -> bool:
    logger.debug("Verifying password hash")
    try:
        return bcrypt.verify(pwd, hashed or _DUMMY_HASH) and hashed is not None
    except ValueError:
        logger.warning("Stored password hash is malformed")
        return False


class TokenService:
    """
    Issues and validates HS256 bearer tokens carrying {id, username}.

    Holds nothing but the signing secret; rotating the secret invalidates every
    previously issued token.
    """

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        expires_in: timedelta = timedelta(days=7),
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self._secret = secret
        self._algorithm = algorithm
        self._expires_in = expires_in
        self._clock = clock

    def issue(self, user_id: int, username: str) -> str:
        logger.info(f"Creating JWT token for user_id={user_id}")
        now = self._clock()
        claims = {
            "sub": str(user_id),
            "id": user_id,
            "username": username,
            "iat": int(now.timestamp()),
            "exp": int((now + self._expires_in).timestamp()),
        }
        return jwt.encode(claims, self._secret, algorithm=self._algorithm)

    def validate(self, token: Optional[str]) -> Optional[TokenClaims]:
        """Return the token's claims, or None for any malformed, expired or mis-signed token."""
        if not token:
            return None
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                options={"verify_exp": False},
            )
            user_id = int(payload["id"])
            username = str(payload["username"])
            expires_at = int(payload["exp"])
        except (JWTError, KeyError, TypeError, ValueError) as exc:
            logger.warning(f"Invalid token: {exc}")
            return None

        # expiry is checked against our clock so it can be controlled in tests
        if self._clock().timestamp() >= expires_at:
            logger.warning(f"Expired token for user_id={user_id}")
            return None

        return {"id": user_id, "username": username}


token_service = TokenService(
    settings.jwt_secret,
    settings.jwt_algo,
    timedelta(days=settings.token_expire_days),
)


def get_token_service() -> TokenService:
    return token_service


def get_current_user(
    creds: Optional[HTTPAuthorizationCredentials] = Depends(security),
    tokens: TokenService = Depends(get_token_service),
    storage: Storage = Depends(get_storage),
) -> User:
    if creds is None or creds.scheme.lower() != "bearer":
        logger.warning("Request rejected: missing bearer token")
        raise AuthenticationError("Unauthorized: Missing or invalid token")

    logger.debug("Decoding JWT token for current user")
    claims = tokens.validate(creds.credentials)
    if claims is None:
        raise AuthenticationError("Unauthorized: Invalid token")

    user = storage.get_user(claims["id"])
    if not user:
        logger.warning(f"Token refers to non-existent user_id={claims['id']}")
        raise AuthenticationError("Unauthorized: User not found")

    logger.debug(f"Authenticated user_id={user.id}, username={user.username}")
    return user
