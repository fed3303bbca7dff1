from fastapi import APIRouter, Depends, Response, status

from taskboard.dependencies import AppContext, get_bearer_token, get_context
from taskboard.schemas.user import SessionCreate, Token
from taskboard.services import auth as auth_service

router = APIRouter(prefix="/sessions", tags=["auth"])

@router.post("", response_model=Token)
async def login(credentials: SessionCreate, context: AppContext = Depends(get_context)):
    token = await auth_service.authenticate(context.store, context.issuer, credentials.email, credentials.password)
    return {"token": token}

@router.delete("", status_code=status.HTTP_204_NO_CONTENT)
async def logout(
    context: AppContext = Depends(get_context),
    token: str | None = Depends(get_bearer_token),
):
    auth_service.logout(context.issuer, token)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
