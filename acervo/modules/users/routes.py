from fastapi import APIRouter, Depends, HTTPException, status
from typing import List

from acervo.core.dependencies import get_role_service, get_user_service, require_capabilities
from acervo.modules.access.admin import approve_identity, assign_role
from acervo.modules.access.session import AccessSession
from acervo.modules.roles.schemas import Capability, parse_role
from acervo.modules.roles.service import RoleService
from acervo.modules.users.schemas import ApprovalResponse, UserResponse, UserUpdate
from acervo.modules.users.service import UserService

router = APIRouter(prefix="/users", tags=["users"])

manage_users = require_capabilities(Capability.MANAGE_USERS)
approved_identity = require_capabilities()


@router.get("", response_model=List[UserResponse])
async def list_users(
    limit: int = 50,
    offset: int = 0,
    session: AccessSession = Depends(manage_users),
    service: UserService = Depends(get_user_service),
):
    """List users with their role and approval status"""
    return service.list_users(limit=limit, offset=offset)


@router.get("/pending", response_model=List[UserResponse])
async def list_pending_users(
    limit: int = 50,
    offset: int = 0,
    session: AccessSession = Depends(manage_users),
    service: UserService = Depends(get_user_service),
):
    """Users awaiting approval"""
    return service.list_pending_users(limit=limit, offset=offset)


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: str,
    session: AccessSession = Depends(approved_identity),
    service: UserService = Depends(get_user_service),
):
    """Get user by ID (own profile, or any profile with canManageUsers)"""
    if user_id != session.access.identity_id and not session.snapshot.grants_all({Capability.MANAGE_USERS}):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="User not accessible")
    return service.get_user_by_id(user_id)


@router.put("/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: str,
    body: UserUpdate,
    session: AccessSession = Depends(manage_users),
    service: UserService = Depends(get_user_service),
    role_service: RoleService = Depends(get_role_service),
):
    """Update a user's name and/or role. The profile is saved before the role."""
    role = parse_role(body.role) if body.role is not None else None
    updated = service.update_user(user_id, body)
    if role is None:
        return updated
    await assign_role(role_service, user_id, role, actor=session.snapshot)
    return service.get_user_by_id(user_id)


@router.delete("/{user_id}", status_code=204)
async def delete_user(
    user_id: str,
    session: AccessSession = Depends(manage_users),
    service: UserService = Depends(get_user_service),
):
    """Delete a user's profile and role"""
    if user_id == session.access.identity_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Cannot delete your own account")
    if not service.delete_user(user_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return None


@router.post("/{user_id}/approve", response_model=ApprovalResponse)
async def approve_user(
    user_id: str,
    session: AccessSession = Depends(manage_users),
    service: UserService = Depends(get_user_service),
):
    """Approve a pending user. Approving an approved user changes nothing."""
    await approve_identity(service, user_id, actor=session.snapshot)
    return ApprovalResponse(user_id=user_id, approved=True, message="User approved")
