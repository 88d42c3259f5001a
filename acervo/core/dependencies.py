"""
Core dependencies for authentication, access sessions and capability checks
"""

import logging
from typing import Optional

from fastapi import Depends, HTTPException, Request, Security, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from supabase import Client

from acervo.config import settings
from acervo.database.supabase_client import get_supabase
from acervo.modules.access.guards import GuardDecision, RouteGuard, decide, requirements
from acervo.modules.access.session import AccessSession, IdentitySession
from acervo.modules.auth.schemas import Identity
from acervo.modules.auth.service import AuthService
from acervo.modules.pages.navigation import FlashNotifier, PageRedirect, RedirectNavigator
from acervo.modules.pages.views import GuardedPage
from acervo.modules.roles.service import RoleService
from acervo.modules.users.service import UserService

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


def get_auth_service(supabase: Client = Depends(get_supabase)) -> AuthService:
    return AuthService(supabase)


def get_role_service(supabase: Client = Depends(get_supabase)) -> RoleService:
    return RoleService(supabase)


def get_user_service(supabase: Client = Depends(get_supabase)) -> UserService:
    return UserService(supabase)


def get_token(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Security(security),
) -> Optional[str]:
    """Bearer token for API clients, session cookie for pages"""
    if credentials is not None:
        return credentials.credentials
    return request.cookies.get(settings.session_cookie_name)


def get_optional_identity(
    token: Optional[str] = Depends(get_token),
    auth_service: AuthService = Depends(get_auth_service),
) -> Optional[Identity]:
    if not token:
        return None
    try:
        return auth_service.get_current_identity(token)
    except HTTPException as e:
        if e.status_code == status.HTTP_401_UNAUTHORIZED:
            logger.debug(f"Ignoring unusable token: {e.detail}")
            return None
        raise


def get_current_identity(identity: Optional[Identity] = Depends(get_optional_identity)) -> Identity:
    if identity is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return identity


async def get_access_session(
    identity: Optional[Identity] = Depends(get_optional_identity),
    role_service: RoleService = Depends(get_role_service),
    user_service: UserService = Depends(get_user_service),
):
    """Request-scoped AccessSession, settled before the endpoint runs."""
    session = AccessSession(
        IdentitySession(identity),
        role_service,
        user_service,
        timeout=settings.access_lookup_timeout_seconds,
    )
    async with session:
        await session.wait_settled()
        yield session


def require_capabilities(*capabilities):
    """Factory for an API dependency that admits approved identities holding every capability.

    With no capabilities it admits any approved identity, unassigned ones included.
    """
    required = requirements(capabilities)

    async def check_capabilities(session: AccessSession = Depends(get_access_session)) -> AccessSession:
        decision = decide(session.snapshot, required)
        if decision is GuardDecision.UNAUTHENTICATED:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Not authenticated",
                headers={"WWW-Authenticate": "Bearer"},
            )
        if decision in (GuardDecision.ERROR, GuardDecision.PENDING):
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail="Unable to verify access, retry",
            )
        if decision is GuardDecision.AWAITING_APPROVAL:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Account awaiting approval")
        if decision is GuardDecision.DENIED:
            names = ", ".join(sorted(c.value for c in required))
            logger.info(f"API access denied for {session.access.identity_id}; required: {names}")
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Insufficient permissions. Required: {names}",
            )
        return session
    return check_capabilities


def guard_page(*capabilities, redirect_to: Optional[str] = None):
    """Factory for a page dependency running the Route Guard.

    Signed-out visitors go to the login page and unapproved ones to the waiting
    page. A denial raises PageRedirect carrying the guard's one-time notice.
    """
    required = requirements(capabilities)

    async def check_page(request: Request, session: AccessSession = Depends(get_access_session)) -> GuardedPage:
        navigator = RedirectNavigator()
        notifier = FlashNotifier()
        guard = RouteGuard(
            required,
            navigator,
            notifier,
            redirect_to=redirect_to or settings.access_denied_redirect,
            retry_href=request.url.path,
            login_path=settings.login_path,
            pending_approval_path=settings.pending_approval_path,
        )
        guard.attach(session)
        if navigator.location is not None:
            raise PageRedirect(navigator.location, notifier.last)
        return GuardedPage(request, session, guard)
    return check_page
