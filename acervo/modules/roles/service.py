import asyncio
import logging
from typing import Dict, List, Optional

from fastapi import HTTPException
from supabase import Client

from acervo.modules.access.errors import AccessLookupError
from acervo.modules.roles.schemas import Role, UserRoleResponse, parse_role

logger = logging.getLogger(__name__)


class RoleService:
    """user_roles access. Implements the RoleDirectory port for the access core."""

    def __init__(self, supabase: Client):
        self.supabase = supabase

    def fetch_role(self, user_id: str) -> Optional[Role]:
        """Stored role for a user, or None when no row exists.

        Query failures raise AccessLookupError and unrecognized stored values
        raise UnknownRole; neither is turned into a role.
        """
        try:
            result = self.supabase.table("user_roles")\
                .select("role")\
                .eq("user_id", user_id)\
                .limit(1)\
                .execute()
        except Exception as e:
            logger.error(f"Error fetching role for {user_id}: {e}")
            raise AccessLookupError(str(e), identity_id=user_id, kind="role") from e
        if not result.data:
            return None
        return parse_role(result.data[0].get("role"))

    async def get_role_for_identity(self, identity_id: str) -> Optional[Role]:
        return await asyncio.to_thread(self.fetch_role, identity_id)

    def get_user_role(self, user_id: str) -> UserRoleResponse:
        """Role row for the API; raises HTTPException on failure."""
        try:
            result = self.supabase.table("user_roles")\
                .select("*")\
                .eq("user_id", user_id)\
                .limit(1)\
                .execute()
            if not result.data:
                return UserRoleResponse(user_id=user_id, role=None)
            row = result.data[0]
            return UserRoleResponse(
                user_id=user_id,
                role=parse_role(row.get("role")),
                created_at=row.get("created_at"),
            )
        except Exception as e:
            logger.error(f"Error getting role for {user_id}: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    def assign_role(self, user_id: str, role: Role) -> UserRoleResponse:
        """Replace the user's role. user_roles holds at most one row per user."""
        try:
            result = self.supabase.table("user_roles")\
                .upsert({"user_id": user_id, "role": role.value}, on_conflict="user_id")\
                .execute()
            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to assign role")
            logger.info(f"Role of {user_id} set to {role.value}")
            row = result.data[0]
            return UserRoleResponse(user_id=user_id, role=role, created_at=row.get("created_at"))
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error assigning role {role.value} to {user_id}: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    async def set_role(self, identity_id: str, role: Role) -> None:
        await asyncio.to_thread(self.assign_role, identity_id, role)

    def list_user_roles(self, user_ids: List[str]) -> Dict[str, str]:
        """Raw stored role per user id; users without a row are absent."""
        if not user_ids:
            return {}
        try:
            result = self.supabase.table("user_roles")\
                .select("user_id, role")\
                .in_("user_id", user_ids)\
                .execute()
            return {r["user_id"]: r["role"] for r in (result.data or [])}
        except Exception as e:
            logger.error(f"Error listing user roles: {e}")
            raise HTTPException(status_code=500, detail=str(e))
