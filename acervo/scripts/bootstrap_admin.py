"""
Bootstrap Administrator Script
Approves an existing account and grants it the admin role, so a fresh
installation has someone who can approve everyone else.
Requires SUPABASE_SERVICE_ROLE_KEY (row-level security blocks these writes otherwise).
"""

import argparse
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(project_root))

from acervo.config import settings
from acervo.database.supabase_client import SupabaseClient
from acervo.modules.roles.schemas import Role
from acervo.modules.roles.service import RoleService
from acervo.modules.users.service import UserService
from supabase import Client
import logging

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def find_user_id(supabase: Client, email: str):
    """Profile id for an email, or None"""
    result = supabase.table("profiles")\
        .select("id")\
        .eq("email", email)\
        .limit(1)\
        .execute()
    if not result.data:
        return None
    return result.data[0]["id"]


def bootstrap_admin(supabase: Client, email: str) -> str:
    user_id = find_user_id(supabase, email)
    if user_id is None:
        raise LookupError(f"No profile found for {email}; the account must sign up first")
    UserService(supabase).approve_user(user_id)
    RoleService(supabase).assign_role(user_id, Role.ADMIN)
    return user_id


def main(argv=None):
    """Main function to approve an account and make it an administrator"""
    parser = argparse.ArgumentParser(description="Approve an account and grant it the admin role")
    parser.add_argument("email", help="E-mail of an account that has already signed up")
    args = parser.parse_args(argv)

    if not settings.supabase_service_role_key:
        logger.error("SUPABASE_SERVICE_ROLE_KEY is not configured")
        sys.exit(1)

    try:
        supabase = SupabaseClient.get_service_client()
        user_id = bootstrap_admin(supabase, args.email.strip().lower())
        logger.info(f"{args.email} ({user_id}) is now an approved administrator")
    except Exception as e:
        logger.error(f"Error bootstrapping administrator: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
