"""
Server-rendered pages.

The admin pages run the Route Guard through guard_page(); parts of a page that
need a single capability sit behind a Component Guard (GuardedPage.section).
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import ValidationError

from acervo.components import (
    AccessErrorNotice,
    CollectionSummary,
    LoginForm,
    PendingApprovalMessage,
    PendingUsersCard,
    QuickAddButton,
    RoleGroupsCard,
    UserTable,
)
from acervo.config import settings
from acervo.config.permissions_config import get_permission_matrix
from acervo.core.dependencies import (
    get_access_session,
    get_auth_service,
    get_role_service,
    get_token,
    get_user_service,
    guard_page,
)
from acervo.modules.access.admin import approve_identity, assign_role
from acervo.modules.access.approval import ApprovalState
from acervo.modules.access.errors import AccessError, UnknownRole
from acervo.modules.access.guards import GuardDecision
from acervo.modules.access.ports import Severity
from acervo.modules.access.session import AccessSession
from acervo.modules.auth.routes import set_session_cookie
from acervo.modules.auth.schemas import LoginRequest
from acervo.modules.auth.service import AuthService
from acervo.modules.pages.navigation import redirect_response
from acervo.modules.pages.views import GuardedPage, page_response
from acervo.modules.roles.schemas import Capability, parse_role
from acervo.modules.roles.service import RoleService
from acervo.modules.users.schemas import UserUpdate
from acervo.modules.users.service import UserService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["pages"], include_in_schema=False)

USERS_PAGE = "/admin/usuarios"


def _entry_redirect(session: AccessSession):
    """Where a signed-in visitor belongs, or None for the login page."""
    state = session.access.approval.state
    if state is ApprovalState.ACTIVE:
        return redirect_response("/")
    if state is ApprovalState.PENDING_APPROVAL:
        return redirect_response(settings.pending_approval_path)
    return None


@router.get("/entrar")
async def login_page(request: Request, session: AccessSession = Depends(get_access_session)):
    redirect = _entry_redirect(session)
    if redirect is not None:
        return redirect
    return page_response(request, "Entrar", LoginForm(action=settings.login_path).render())


@router.post("/entrar")
async def login_submit(request: Request, service: AuthService = Depends(get_auth_service)):
    form = await request.form()
    email = str(form.get("email", "")).strip()
    try:
        credentials = LoginRequest(email=email, password=str(form.get("password", "")))
        token = service.login(credentials)
    except (ValidationError, HTTPException) as e:
        if isinstance(e, HTTPException) and e.status_code != 401:
            raise
        form_html = LoginForm(action=settings.login_path, email=email, error="E-mail ou senha inválidos.").render()
        return page_response(request, "Entrar", form_html, status_code=401)
    response = redirect_response("/")
    set_session_cookie(response, token.access_token)
    return response


@router.post("/sair")
async def sign_out(token: str = Depends(get_token), service: AuthService = Depends(get_auth_service)):
    if token:
        service.logout(token)
    response = redirect_response(settings.login_path)
    response.delete_cookie(settings.session_cookie_name)
    return response


@router.get("/aguardando")
async def pending_approval_page(request: Request, session: AccessSession = Depends(get_access_session)):
    approval = session.access.approval
    identity = session.identity_provider.get_current_identity()
    if approval.state is ApprovalState.ANONYMOUS:
        return redirect_response(settings.login_path)
    if approval.state is ApprovalState.ACTIVE:
        return redirect_response("/")
    if approval.state is ApprovalState.PENDING_APPROVAL:
        body = PendingApprovalMessage().render()
        return page_response(request, "Aguardando Aprovação", body, email=identity.email)
    body = AccessErrorNotice(retry_href=request.url.path).render()
    return page_response(request, "Aguardando Aprovação", body, email=identity.email, status_code=503)


@router.get("/")
async def home(page: GuardedPage = Depends(guard_page())):
    def view():
        admin_link = '<a href="/admin" class="btn btn-link">Administração</a>'
        return (
            page.section(CollectionSummary(), requires=[Capability.READ])
            + page.section(QuickAddButton(), requires=[Capability.WRITE], fallback="")
            + page.section(admin_link, requires=[Capability.ACCESS_ADMIN_PANEL], fallback="")
        )
    return page.response("Início", view)


@router.get("/admin")
async def admin_panel(
    page: GuardedPage = Depends(guard_page(Capability.ACCESS_ADMIN_PANEL)),
    service: UserService = Depends(get_user_service),
):
    def view():
        users_link = f'<a href="{USERS_PAGE}" class="btn btn-link">Usuários</a>'

        def role_groups():
            return RoleGroupsCard(get_permission_matrix(), service.list_users(limit=200))

        return (
            '<h1>Administração</h1>'
            + page.section(users_link, requires=[Capability.MANAGE_USERS], fallback="")
            + page.section(role_groups, requires=[Capability.MANAGE_USERS], fallback="")
        )
    return page.response("Administração", view)


@router.get(USERS_PAGE)
async def users_admin(
    page: GuardedPage = Depends(guard_page(Capability.MANAGE_USERS)),
    service: UserService = Depends(get_user_service),
):
    def view():
        users = service.list_users(limit=200)
        pending = [u for u in users if not u.approved]
        return (
            '<h1>Usuários</h1>'
            + PendingUsersCard(pending, action_prefix=USERS_PAGE).render()
            + UserTable(users, action_prefix=USERS_PAGE).render()
        )
    return page.response("Usuários", view)


@router.post(USERS_PAGE + "/{user_id}/aprovar")
async def approve_user_action(
    user_id: str,
    page: GuardedPage = Depends(guard_page(Capability.MANAGE_USERS)),
    service: UserService = Depends(get_user_service),
):
    if page.guard.decision is not GuardDecision.ALLOWED:
        return redirect_response(USERS_PAGE, ("Não foi possível verificar seu acesso.", Severity.DESTRUCTIVE))
    try:
        await approve_identity(service, user_id, actor=page.snapshot)
    except (AccessError, HTTPException) as e:
        logger.error(f"Error approving {user_id}: {e}")
        return redirect_response(USERS_PAGE, ("Erro ao aprovar usuário. Tente novamente mais tarde.", Severity.DESTRUCTIVE))
    return redirect_response(USERS_PAGE, ("Usuário aprovado. O usuário agora pode acessar o sistema.", Severity.INFO))


@router.post(USERS_PAGE + "/{user_id}/perfil")
async def update_user_action(
    request: Request,
    user_id: str,
    page: GuardedPage = Depends(guard_page(Capability.MANAGE_USERS)),
    service: UserService = Depends(get_user_service),
    role_service: RoleService = Depends(get_role_service),
):
    if page.guard.decision is not GuardDecision.ALLOWED:
        return redirect_response(USERS_PAGE, ("Não foi possível verificar seu acesso.", Severity.DESTRUCTIVE))
    form = await request.form()
    full_name = str(form.get("full_name", "")).strip() or None
    role = str(form.get("role", "")).strip()
    try:
        role = parse_role(role) if role else None
    except UnknownRole:
        return redirect_response(USERS_PAGE, ("Papel inválido.", Severity.WARNING))
    try:
        service.update_user(user_id, UserUpdate(full_name=full_name))
    except HTTPException as e:
        logger.error(f"Error updating {user_id}: {e.detail}")
        return redirect_response(USERS_PAGE, ("Erro ao atualizar usuário. Nenhuma alteração foi salva.", Severity.DESTRUCTIVE))
    if role is not None:
        try:
            await assign_role(role_service, user_id, role, actor=page.snapshot)
        except (AccessError, HTTPException) as e:
            logger.error(f"Error setting role of {user_id}: {e}")
            return redirect_response(USERS_PAGE, ("Nome salvo, mas não foi possível alterar o papel.", Severity.DESTRUCTIVE))
    return redirect_response(USERS_PAGE, ("Usuário atualizado.", Severity.INFO))
