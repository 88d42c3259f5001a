from fastapi import APIRouter, Depends, HTTPException, status

from acervo.config.permissions_config import get_permission_matrix
from acervo.core.dependencies import get_role_service, require_capabilities
from acervo.modules.access.admin import assign_role
from acervo.modules.access.session import AccessSession
from acervo.modules.roles.schemas import Capability, RoleAssign, UserRoleResponse
from acervo.modules.roles.service import RoleService

router = APIRouter(prefix="/roles", tags=["roles"])

approved_identity = require_capabilities()


@router.get("")
async def list_roles(session: AccessSession = Depends(approved_identity)):
    """Static capability table per role."""
    return get_permission_matrix()


@router.get("/users/{user_id}", response_model=UserRoleResponse)
async def get_user_role(
    user_id: str,
    session: AccessSession = Depends(approved_identity),
    service: RoleService = Depends(get_role_service),
):
    """Role of a user (own role, or any role with canManageUsers)"""
    if user_id != session.access.identity_id and not session.snapshot.grants_all({Capability.MANAGE_USERS}):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="User not accessible")
    return service.get_user_role(user_id)


@router.put("/users/{user_id}", response_model=UserRoleResponse)
async def set_user_role(
    user_id: str,
    body: RoleAssign,
    session: AccessSession = Depends(require_capabilities(Capability.MANAGE_USERS)),
    service: RoleService = Depends(get_role_service),
):
    """Replace a user's role (requires canManageUsers)"""
    await assign_role(service, user_id, body.role, actor=session.snapshot)
    return service.get_user_role(user_id)
