from enum import Enum
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from typing import Optional
from datetime import datetime

from acervo.modules.access.errors import UnknownRole


class Role(str, Enum):
    """Privilege tier of an identity. STANDARD is stored as 'user' in user_roles."""
    ADMIN = "admin"
    STANDARD = "user"
    READ_ONLY = "read_only"


_ROLE_ALIASES = {"standard": Role.STANDARD}


def parse_role(value: object) -> Role:
    """Parse a serialized role. Raises UnknownRole instead of guessing a default."""
    if isinstance(value, Role):
        return value
    if isinstance(value, str):
        normalized = value.strip().lower()
        if normalized in _ROLE_ALIASES:
            return _ROLE_ALIASES[normalized]
        try:
            return Role(normalized)
        except ValueError:
            pass
    raise UnknownRole(value)


class Capability(str, Enum):
    """One flag of the capability record; values are CapabilityRecord field names."""
    READ = "can_read"
    WRITE = "can_write"
    DELETE = "can_delete"
    MANAGE_USERS = "can_manage_users"
    ACCESS_ADMIN_PANEL = "can_access_admin_panel"


def parse_capability(value: object) -> Capability:
    """Accept a Capability, its field name (can_write) or its camelCase alias (canWrite)."""
    if isinstance(value, Capability):
        return value
    if isinstance(value, str):
        for capability in Capability:
            if value in (capability.value, to_camel(capability.value)):
                return capability
    raise ValueError(f"Unknown capability: {value!r}")


class CapabilityRecord(BaseModel):
    """Fixed-shape set of permission flags. Serialized with camelCase keys."""
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    can_read: bool = False
    can_write: bool = False
    can_delete: bool = False
    can_manage_users: bool = False
    can_access_admin_panel: bool = False

    def grants(self, capability: Capability) -> bool:
        return getattr(self, capability.value)

    def grants_all(self, capabilities) -> bool:
        return all(self.grants(c) for c in capabilities)


class RoleAssign(BaseModel):
    role: str


class UserRoleResponse(BaseModel):
    user_id: str
    role: Optional[Role] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
