"""
Approval gate: coarse admission control that sits in front of role evaluation.

New accounts start unapproved. An unapproved identity may authenticate, see
the waiting notice and sign out; nothing else is reachable whatever its role.
Only an administrator action (admin.approve_identity) moves it to ACTIVE.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from acervo.modules.access.errors import AccessError
from acervo.modules.access.ports import ApprovalDirectory
from acervo.modules.access.state import IdentityBoundState, bounded_lookup
from acervo.modules.auth.schemas import Identity

logger = logging.getLogger(__name__)


class ApprovalState(str, Enum):
    UNKNOWN = "unknown"
    PENDING_APPROVAL = "pending_approval"
    ACTIVE = "active"
    ERROR = "error"
    ANONYMOUS = "anonymous"


@dataclass(frozen=True)
class ApprovalSnapshot:
    identity_id: Optional[str]
    state: ApprovalState
    error: Optional[AccessError] = None

    @property
    def admitted(self) -> bool:
        return self.state is ApprovalState.ACTIVE

    @property
    def settled(self) -> bool:
        return self.state is not ApprovalState.UNKNOWN


class ApprovalGate(IdentityBoundState[ApprovalSnapshot]):
    kind = "approval"

    def __init__(self, directory: ApprovalDirectory, timeout: Optional[float] = None):
        self.directory = directory
        self.timeout = timeout
        super().__init__()

    def _pending(self, identity: Optional[Identity]) -> ApprovalSnapshot:
        return ApprovalSnapshot(identity_id=identity.id if identity else None, state=ApprovalState.UNKNOWN)

    def _signed_out(self) -> ApprovalSnapshot:
        return ApprovalSnapshot(identity_id=None, state=ApprovalState.ANONYMOUS)

    def _failed(self, identity: Identity, error: AccessError) -> ApprovalSnapshot:
        return ApprovalSnapshot(identity_id=identity.id, state=ApprovalState.ERROR, error=error)

    async def _lookup(self, identity: Identity) -> ApprovalSnapshot:
        approved = await bounded_lookup(
            self.directory.get_approval_status(identity.id),
            self.timeout,
            identity.id,
            "approval",
        )
        state = ApprovalState.ACTIVE if approved else ApprovalState.PENDING_APPROVAL
        if state is ApprovalState.PENDING_APPROVAL:
            logger.debug(f"Identity {identity.id} is awaiting approval")
        return ApprovalSnapshot(identity_id=identity.id, state=state)
