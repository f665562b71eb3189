import logging
from datetime import datetime, timedelta, UTC
from typing import Optional

from jose import jwt, JWTError, ExpiredSignatureError
from passlib.context import CryptContext

from tasktracker import config
from tasktracker.errors import InvalidToken

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=config.BCRYPT_ROUNDS)

BCRYPT_MAX_BYTES = 72


def hash_password(password: str):
    """Hash a password after validating bcrypt's 72-byte limit.

    Raises ValueError if the UTF-8 encoding of the password exceeds 72 bytes.
    """
    if isinstance(password, str):
        b = password.encode("utf-8")
        if len(b) > BCRYPT_MAX_BYTES:
            # make the failure explicit and consistent
            raise ValueError("password too long: must be at most 72 bytes when UTF-8 encoded")
    return pwd_context.hash(password)


def verify_password(plain, hashed):
    """Verify a plaintext password against a hash.

    If verification raises a ValueError (for example plain >72 bytes), return False
    to allow the caller to respond with an authentication failure instead of an error.
    """
    try:
        return pwd_context.verify(plain, hashed)
    except ValueError:
        return False


def create_token(user_id: int, expires_delta: Optional[timedelta] = None) -> str:
    # read expiry at call-time so tests (and runtime overrides) that modify
    # tasktracker.config.ACCESS_TOKEN_EXPIRE_MINUTES take effect immediately
    if expires_delta is None:
        expires_delta = timedelta(minutes=config.ACCESS_TOKEN_EXPIRE_MINUTES)
    now = datetime.now(UTC)
    claims = {
        "sub": str(user_id),
        "iss": config.TOKEN_ISSUER,
        "aud": config.TOKEN_AUDIENCE,
        "iat": int(now.timestamp()),
        "exp": int((now + expires_delta).timestamp()),  # NumericDate, seconds since epoch
    }
    return jwt.encode(claims, config.SECRET_KEY, algorithm=config.ALGORITHM)


def verify_token(token: str) -> int:
    """Return the user id carried by a valid token.

    Raises InvalidToken for a bad signature, a malformed or expired token,
    or a token minted for another issuer/audience.
    """
    try:
        # jwt.decode validates exp, iss and aud
        payload = jwt.decode(
            token,
            config.SECRET_KEY,
            algorithms=[config.ALGORITHM],
            audience=config.TOKEN_AUDIENCE,
            issuer=config.TOKEN_ISSUER,
        )
    except ExpiredSignatureError:
        logger.warning("Rejected expired token")
        raise InvalidToken("Token has expired")
    except JWTError as e:
        logger.warning("Rejected invalid token: %s", e)
        raise InvalidToken("Invalid token")

    sub = payload.get("sub")
    try:
        return int(sub)
    except (TypeError, ValueError):
        raise InvalidToken("Invalid token: missing user")
