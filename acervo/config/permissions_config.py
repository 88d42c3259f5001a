"""
Permissions and Roles Configuration
This config defines the fixed permission table: every role maps to one capability record.
The table is code, not data: it is never read from or written to the database.
"""

from types import MappingProxyType

from pydantic.alias_generators import to_camel

from acervo.modules.roles.schemas import Capability, CapabilityRecord, Role

# Record handed out before resolution, on lookup errors and to unassigned identities
NO_CAPABILITIES = CapabilityRecord()

ROLE_PERMISSIONS = MappingProxyType({
    Role.ADMIN: CapabilityRecord(
        can_read=True,
        can_write=True,
        can_delete=True,
        can_manage_users=True,
        can_access_admin_panel=True,
    ),
    Role.STANDARD: CapabilityRecord(
        can_read=True,
        can_write=True,
        can_delete=True,
        can_manage_users=False,
        can_access_admin_panel=False,
    ),
    Role.READ_ONLY: CapabilityRecord(
        can_read=True,
        can_write=False,
        can_delete=False,
        can_manage_users=False,
        can_access_admin_panel=False,
    ),
})

ROLE_DESCRIPTIONS = {
    Role.ADMIN: "Full access, including user management and the admin panel",
    Role.STANDARD: "Read, create, edit and delete collection items",
    Role.READ_ONLY: "Read-only access to the collection",
}


def get_permission_matrix():
    """
    Returns the permission table in its serialized form
    Format: {
        "capabilities": ["canRead", "canWrite", ...],
        "roles": [
            {"name": "admin", "description": "...", "permissions": {"canRead": true, ...}},
            ...
        ]
    }
    """
    capabilities = [to_camel(c.value) for c in Capability]
    roles = []
    for role, record in ROLE_PERMISSIONS.items():
        roles.append({
            "name": role.value,
            "description": ROLE_DESCRIPTIONS[role],
            "permissions": record.model_dump(by_alias=True)
        })
    return {
        "capabilities": capabilities,
        "roles": roles
    }
