"""Password hashing and JWT access tokens."""
from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt
from passlib.context import CryptContext

from blog_api.config import settings

pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.BCRYPT_ROUNDS,
)


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Constant-time comparison of *plain_password* against its bcrypt hash."""
    return pwd_context.verify(plain_password, hashed_password)


def dummy_verify() -> None:
    """Burn the same time as a real verify when the account does not exist."""
    pwd_context.dummy_verify()


def create_access_token(user) -> dict:
    """
    Issue a signed, time-bounded bearer token for *user*.

    Returns the token together with its lifetime so the client does not
    have to decode it to know when it expires.
    """
    expires_in = settings.JWT_EXPIRES_IN
    expires_at = datetime.now(timezone.utc) + timedelta(seconds=expires_in)
    claims = {
        "sub": str(user.id),
        "email": user.email,
        "username": user.username,
        "exp": expires_at,
    }
    token = jwt.encode(claims, settings.SECRET_KEY, algorithm=settings.JWT_ALGORITHM)
    return {
        "access_token": token,
        "token_type": "Bearer",
        "expires_in": expires_in,
        "expires_at": expires_at,
    }


def decode_access_token(token: str) -> dict | None:
    """Return the token's claims, or None when it is invalid or expired."""
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except JWTError:
        return None
