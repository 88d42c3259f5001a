import logging
from dataclasses import dataclass
from typing import Optional

from acervo.modules.access.errors import AccessError, UnknownRole
from acervo.modules.access.ports import RoleDirectory
from acervo.modules.access.state import ResolutionStatus, bounded_lookup
from acervo.modules.auth.schemas import Identity
from acervo.modules.roles.schemas import Role, parse_role

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RoleResolution:
    identity_id: Optional[str]
    status: ResolutionStatus
    role: Optional[Role] = None
    error: Optional[AccessError] = None

    @property
    def loading(self) -> bool:
        return self.status is ResolutionStatus.LOADING


class RoleResolver:
    """Looks up the single role recorded for an identity.

    "No role record" resolves to role=None (unassigned). Lookup failures,
    timeouts and unrecognized stored roles resolve to ERROR; none of them is
    turned into a role.
    """

    def __init__(self, directory: RoleDirectory, timeout: Optional[float] = None):
        self.directory = directory
        self.timeout = timeout

    async def resolve(self, identity: Optional[Identity]) -> RoleResolution:
        if identity is None:
            return RoleResolution(identity_id=None, status=ResolutionStatus.RESOLVED)
        try:
            role = await bounded_lookup(
                self.directory.get_role_for_identity(identity.id),
                self.timeout,
                identity.id,
                "role",
            )
            if role is not None:
                role = parse_role(role)
        except AccessError as e:
            if isinstance(e, UnknownRole):
                logger.error(f"Stored role for {identity.id} is not recognized: {e.value!r}")
            return RoleResolution(identity_id=identity.id, status=ResolutionStatus.ERROR, error=e)
        if role is None:
            logger.debug(f"No role assigned to {identity.id}")
        return RoleResolution(identity_id=identity.id, status=ResolutionStatus.RESOLVED, role=role)
