from dataclasses import dataclass
from typing import Iterable, Optional, Union

from acervo.config.permissions_config import NO_CAPABILITIES, ROLE_PERMISSIONS
from acervo.modules.access.errors import AccessError
from acervo.modules.access.resolver import RoleResolver
from acervo.modules.access.state import IdentityBoundState, ResolutionStatus
from acervo.modules.auth.schemas import Identity
from acervo.modules.roles.schemas import Capability, CapabilityRecord, Role, parse_role


def evaluate(role: Union[Role, str, None]) -> CapabilityRecord:
    """Capability record for a role. None (unassigned or unresolved) grants nothing."""
    if role is None:
        return NO_CAPABILITIES
    return ROLE_PERMISSIONS[parse_role(role)]


@dataclass(frozen=True)
class PermissionSnapshot:
    """What the guards see: capabilities are all-false unless status is RESOLVED."""
    identity_id: Optional[str]
    status: ResolutionStatus
    role: Optional[Role] = None
    capabilities: CapabilityRecord = NO_CAPABILITIES
    error: Optional[AccessError] = None

    @property
    def loading(self) -> bool:
        return self.status is ResolutionStatus.LOADING

    @property
    def failed(self) -> bool:
        return self.status is ResolutionStatus.ERROR

    def grants_all(self, capabilities: Iterable[Capability]) -> bool:
        if self.status is not ResolutionStatus.RESOLVED:
            return False
        return self.capabilities.grants_all(capabilities)


class PermissionEvaluator(IdentityBoundState[PermissionSnapshot]):
    """Capability record of the current session, keyed to the identity that requested it."""

    kind = "role"

    def __init__(self, resolver: RoleResolver):
        self.resolver = resolver
        super().__init__()

    def _pending(self, identity: Optional[Identity]) -> PermissionSnapshot:
        return PermissionSnapshot(
            identity_id=identity.id if identity else None,
            status=ResolutionStatus.LOADING,
        )

    def _signed_out(self) -> PermissionSnapshot:
        return PermissionSnapshot(identity_id=None, status=ResolutionStatus.RESOLVED)

    def _failed(self, identity: Identity, error: AccessError) -> PermissionSnapshot:
        return PermissionSnapshot(identity_id=identity.id, status=ResolutionStatus.ERROR, error=error)

    async def _lookup(self, identity: Identity) -> PermissionSnapshot:
        resolution = await self.resolver.resolve(identity)
        if resolution.status is ResolutionStatus.ERROR:
            return self._failed(identity, resolution.error)
        return PermissionSnapshot(
            identity_id=identity.id,
            status=ResolutionStatus.RESOLVED,
            role=resolution.role,
            capabilities=evaluate(resolution.role),
        )
