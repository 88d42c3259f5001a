from fastapi import APIRouter, Depends, Response

from acervo.config import settings
from acervo.core.dependencies import get_access_session, get_auth_service, get_current_identity, get_token
from acervo.modules.access.schemas import AccessSnapshotResponse
from acervo.modules.access.session import AccessSession
from acervo.modules.auth.schemas import Identity, LoginRequest, RegisterRequest, RegisterResponse, TokenResponse
from acervo.modules.auth.service import AuthService

router = APIRouter(prefix="/auth", tags=["auth"])


def set_session_cookie(response: Response, access_token: str) -> None:
    response.set_cookie(
        settings.session_cookie_name,
        access_token,
        httponly=True,
        samesite="lax",
        secure=settings.is_production,
    )


@router.post("/register", response_model=RegisterResponse, status_code=201)
async def register(
    register_data: RegisterRequest,
    service: AuthService = Depends(get_auth_service)
):
    """Register a new user. The account cannot use the application until approved."""
    return service.register(register_data)


@router.post("/login", response_model=TokenResponse)
async def login(
    login_data: LoginRequest,
    response: Response,
    service: AuthService = Depends(get_auth_service)
):
    """Login and get access token (also set as the session cookie)"""
    token = service.login(login_data)
    set_session_cookie(response, token.access_token)
    return token


@router.post("/logout", status_code=200)
async def logout(
    response: Response,
    token: str = Depends(get_token),
    service: AuthService = Depends(get_auth_service)
):
    """Logout and drop the session cookie"""
    if token:
        service.logout(token)
    response.delete_cookie(settings.session_cookie_name)
    return {"message": "Logged out successfully"}


@router.get("/me")
async def get_me(
    identity: Identity = Depends(get_current_identity),
    session: AccessSession = Depends(get_access_session),
):
    """Current identity with approval state, role and capability record (for frontend UI)."""
    access = AccessSnapshotResponse.from_access(session.access)
    return {"id": identity.id, "email": identity.email, "access": access.model_dump(mode="json", by_alias=True)}
