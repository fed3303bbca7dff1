import asyncio
import logging
from dataclasses import dataclass
from datetime import timedelta

from jose import JWTError

from taskboard.config import settings
from taskboard.errors import InvalidArgumentError, UnauthenticatedError, store_errors
from taskboard.stores.base import Store
from taskboard.utils.security import create_access_token, decode_access_token, verify_password

logger = logging.getLogger(__name__)


@dataclass
class TokenClaims:
    user_id: int
    username: str
    exp: int


class TokenIssuer:
    """Signs and verifies bearer tokens.

    Tokens are stateless JWTs. Logout adds the raw token to ``revoked``, an
    append-only set that lives as long as this object: it is not persisted,
    so a restarted server accepts previously revoked tokens again until they
    expire.
    """

    def __init__(self, secret_key: str | None = None, algorithm: str | None = None,
                 ttl: timedelta | None = None):
        self.secret_key = secret_key or settings.SECRET_KEY
        self.algorithm = algorithm or settings.ALGORITHM
        self.ttl = ttl or timedelta(days=settings.ACCESS_TOKEN_EXPIRE_DAYS)
        self.revoked: set[str] = set()

    def issue(self, user_id: int, username: str) -> str:
        return create_access_token(
            {"sub": str(user_id), "email": username},
            self.secret_key,
            self.algorithm,
            self.ttl,
        )

    def decode(self, token: str) -> TokenClaims:
        try:
            payload = decode_access_token(token, self.secret_key, self.algorithm)
            return TokenClaims(user_id=int(payload["sub"]), username=payload.get("email", ""), exp=payload["exp"])
        except (JWTError, KeyError, ValueError, TypeError):
            raise UnauthenticatedError("Invalid or expired token")

    def verify(self, token: str | None) -> TokenClaims:
        """Check an incoming bearer token on an authenticated call."""
        if not token:
            raise UnauthenticatedError("Authentication required")
        if token in self.revoked:
            raise UnauthenticatedError("Token has been revoked")
        return self.decode(token)

    def revoke(self, token: str):
        self.revoked.add(token)


async def authenticate(store: Store, issuer: TokenIssuer, email: str | None, password: str | None) -> str:
    if not email or not password:
        raise InvalidArgumentError("Email and password are required")

    with store_errors("Failed to authenticate"):
        user = await store.get_user_by_username(email)

    # Same message for unknown email and wrong password
    if user is None or not await asyncio.to_thread(verify_password, password, user.password):
        logger.info("[AUTH] Rejected login for %s", email)
        raise UnauthenticatedError("Invalid email or password")

    logger.info("[AUTH] User %s logged in", user.id)
    return issuer.issue(user.id, user.username)


def logout(issuer: TokenIssuer, token: str | None):
    if not token:
        raise InvalidArgumentError("Token is required")
    if token in issuer.revoked:
        raise UnauthenticatedError("Token has been revoked")
    claims = issuer.decode(token)
    issuer.revoke(token)
    logger.info("[AUTH] Token revoked for user %s", claims.user_id)
