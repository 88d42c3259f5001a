"""
Administrator-only mutations of approval status and role.

Each takes the acting session's effective snapshot and refuses with
UnauthorizedMutation unless it grants canManageUsers. The HTTP layer checks the
same capability first; Supabase row-level security is the last check.
"""

import logging
from typing import Optional

from acervo.modules.access.errors import UnauthorizedMutation
from acervo.modules.access.evaluator import PermissionSnapshot
from acervo.modules.access.ports import ApprovalDirectory, RoleDirectory
from acervo.modules.roles.schemas import Capability, Role, parse_role

logger = logging.getLogger(__name__)


def ensure_can_manage_users(actor: Optional[PermissionSnapshot]) -> None:
    if actor is None or not actor.grants_all({Capability.MANAGE_USERS}):
        actor_id = actor.identity_id if actor else None
        logger.info(f"Rejected administrator action by {actor_id}")
        raise UnauthorizedMutation(f"{actor_id} may not manage users")


async def approve_identity(directory: ApprovalDirectory, identity_id: str, actor: PermissionSnapshot) -> None:
    """Move an identity to ACTIVE. Approving an already approved identity is a no-op."""
    ensure_can_manage_users(actor)
    await directory.set_approval_status(identity_id, True)
    logger.info(f"Identity {identity_id} approved by {actor.identity_id}")


async def assign_role(directory: RoleDirectory, identity_id: str, role, actor: PermissionSnapshot) -> Role:
    """Replace the single role recorded for an identity."""
    ensure_can_manage_users(actor)
    role = parse_role(role)
    await directory.set_role(identity_id, role)
    logger.info(f"Role of {identity_id} set to {role.value} by {actor.identity_id}")
    return role
