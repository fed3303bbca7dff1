from dataclasses import dataclass, field

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from taskboard.config import Settings, settings
from taskboard.services.auth import TokenClaims, TokenIssuer
from taskboard.stores.base import Store, build_store

bearer_scheme = HTTPBearer(auto_error=False)


@dataclass
class AppContext:
    """Everything a request handler needs, shared by both transports."""
    store: Store
    issuer: TokenIssuer = field(default_factory=TokenIssuer)


def build_context(config: Settings = settings) -> AppContext:
    return AppContext(
        store=build_store(config.STORE_BACKEND, config.database_url),
        issuer=TokenIssuer(config.SECRET_KEY, config.ALGORITHM),
    )


def get_context(request: Request) -> AppContext:
    return request.app.state.context


def get_store(context: AppContext = Depends(get_context)) -> Store:
    return context.store


def get_bearer_token(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> str | None:
    return credentials.credentials if credentials else None


def get_current_user(
    context: AppContext = Depends(get_context),
    token: str | None = Depends(get_bearer_token),
) -> TokenClaims:
    return context.issuer.verify(token)
