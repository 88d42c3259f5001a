import asyncio
import logging
from datetime import datetime, timezone
from typing import List

from fastapi import HTTPException
from supabase import Client

from acervo.modules.access.errors import AccessLookupError
from acervo.modules.roles.service import RoleService
from acervo.modules.users.schemas import UserResponse, UserUpdate

logger = logging.getLogger(__name__)


class UserService:
    """profiles access. Implements the ApprovalDirectory port for the access core."""

    def __init__(self, supabase: Client):
        self.supabase = supabase
        self.roles = RoleService(supabase)

    def fetch_approval_status(self, user_id: str) -> bool:
        """True only when the profile exists and is approved."""
        try:
            result = self.supabase.table("profiles")\
                .select("approved")\
                .eq("id", user_id)\
                .limit(1)\
                .execute()
        except Exception as e:
            logger.error(f"Error fetching approval status for {user_id}: {e}")
            raise AccessLookupError(str(e), identity_id=user_id, kind="approval") from e
        if not result.data:
            return False
        return bool(result.data[0].get("approved"))

    async def get_approval_status(self, identity_id: str) -> bool:
        return await asyncio.to_thread(self.fetch_approval_status, identity_id)

    async def set_approval_status(self, identity_id: str, approved: bool = True) -> None:
        await asyncio.to_thread(self.set_approval, identity_id, approved)

    def set_approval(self, user_id: str, approved: bool = True) -> UserResponse:
        """Set the approved flag. Setting it to its current value is a no-op."""
        try:
            result = self.supabase.table("profiles")\
                .update({"approved": approved, "updated_at": datetime.now(timezone.utc).isoformat()})\
                .eq("id", user_id)\
                .execute()
            if not result.data:
                raise HTTPException(status_code=404, detail="User not found")
            logger.info(f"Approval of {user_id} set to {approved}")
            return self._with_role(result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error setting approval for {user_id}: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    def approve_user(self, user_id: str) -> UserResponse:
        return self.set_approval(user_id, True)

    def get_user_by_id(self, user_id: str) -> UserResponse:
        """Get user profile with its role"""
        try:
            result = self.supabase.table("profiles")\
                .select("*")\
                .eq("id", user_id)\
                .limit(1)\
                .execute()
            if not result.data:
                raise HTTPException(status_code=404, detail="User not found")
            return self._with_role(result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error getting user {user_id}: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    def list_users(self, limit: int = 50, offset: int = 0, pending_only: bool = False) -> List[UserResponse]:
        """Profiles, newest first, each merged with its stored role."""
        try:
            query = self.supabase.table("profiles").select("*")
            if pending_only:
                query = query.eq("approved", False)
            result = query\
                .order("created_at", desc=True)\
                .range(offset, offset + limit - 1)\
                .execute()
            profiles = result.data or []
            roles = self.roles.list_user_roles([p["id"] for p in profiles])
            return [UserResponse(**{**p, "role": roles.get(p["id"])}) for p in profiles]
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error listing users: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    def list_pending_users(self, limit: int = 50, offset: int = 0) -> List[UserResponse]:
        return self.list_users(limit=limit, offset=offset, pending_only=True)

    def update_user(self, user_id: str, user_data: UserUpdate) -> UserResponse:
        """Update profile fields (role changes go through access.admin.assign_role)"""
        try:
            if user_data.full_name is not None:
                result = self.supabase.table("profiles")\
                    .update({
                        "full_name": user_data.full_name,
                        "updated_at": datetime.now(timezone.utc).isoformat(),
                    })\
                    .eq("id", user_id)\
                    .execute()
                if not result.data:
                    raise HTTPException(status_code=404, detail="User not found")
            return self.get_user_by_id(user_id)
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error updating user {user_id}: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    def delete_user(self, user_id: str) -> bool:
        """Delete role and profile rows (auth.users is managed by Supabase Auth)"""
        try:
            self.supabase.table("user_roles")\
                .delete()\
                .eq("user_id", user_id)\
                .execute()
            result = self.supabase.table("profiles")\
                .delete()\
                .eq("id", user_id)\
                .execute()
            deleted = bool(result.data)
            if deleted:
                logger.info(f"User {user_id} deleted")
            return deleted
        except Exception as e:
            logger.error(f"Error deleting user {user_id}: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    def _with_role(self, profile: dict) -> UserResponse:
        roles = self.roles.list_user_roles([profile["id"]])
        return UserResponse(**{**profile, "role": roles.get(profile["id"])})
