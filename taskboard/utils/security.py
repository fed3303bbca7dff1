import uuid
from datetime import datetime, timedelta, timezone

import bcrypt
from jose import jwt

from taskboard.config import settings


def _encode(password: str) -> bytes:
    # bcrypt only looks at the first 72 bytes and newer releases reject longer input
    return password.encode("utf-8")[:72]


def get_password_hash(password: str, rounds: int | None = None) -> str:
    salt = bcrypt.gensalt(rounds=rounds or settings.BCRYPT_ROUNDS)
    return bcrypt.hashpw(_encode(password), salt).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    try:
        return bcrypt.checkpw(_encode(plain_password), hashed_password.encode("utf-8"))
    except ValueError:
        # Malformed hash in the store
        return False


def create_access_token(data: dict, secret_key: str, algorithm: str, expires_delta: timedelta) -> str:
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + expires_delta
    # jti keeps tokens issued within the same second distinct, so revoking one leaves the others valid
    to_encode.update({"exp": expire, "jti": uuid.uuid4().hex})
    return jwt.encode(to_encode, secret_key, algorithm=algorithm)


def decode_access_token(token: str, secret_key: str, algorithm: str) -> dict:
    """Raises ``jose.JWTError`` for bad signatures, malformed or expired tokens."""
    return jwt.decode(token, secret_key, algorithms=[algorithm])
