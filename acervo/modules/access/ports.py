"""
Ports consumed by the access core.

Intent:
    Keep the resolver, approval gate and guards independent of Supabase and of
    FastAPI. Supabase-backed services implement the directory protocols; the
    HTTP layer implements Navigator and Notifier; tests supply in-memory fakes.

Notes:
    Directory lookups are coroutines and fail with AccessLookupError on
    connectivity or backend errors. "No role record" is a successful lookup
    returning None, never an exception.
"""

from __future__ import annotations

from enum import Enum
from typing import Callable, Optional, Protocol

from acervo.modules.auth.schemas import Identity
from acervo.modules.roles.schemas import Role


class Severity(str, Enum):
    INFO = "info"
    WARNING = "warning"
    DESTRUCTIVE = "destructive"


IdentityListener = Callable[[Optional[Identity]], None]


class IdentityProvider(Protocol):
    """Ambient session: current identity plus change notifications."""

    def get_current_identity(self) -> Optional[Identity]: ...

    def subscribe(self, listener: IdentityListener) -> Callable[[], None]: ...


class RoleDirectory(Protocol):
    async def get_role_for_identity(self, identity_id: str) -> Optional[Role]: ...

    async def set_role(self, identity_id: str, role: Role) -> None: ...


class ApprovalDirectory(Protocol):
    async def get_approval_status(self, identity_id: str) -> bool: ...

    async def set_approval_status(self, identity_id: str, approved: bool = True) -> None: ...


class Navigator(Protocol):
    def navigate_to(self, path: str) -> None: ...


class Notifier(Protocol):
    def notify_user(self, message: str, severity: Severity = Severity.INFO) -> None: ...


__all__ = [
    "ApprovalDirectory",
    "IdentityListener",
    "IdentityProvider",
    "Navigator",
    "Notifier",
    "RoleDirectory",
    "Severity",
]
