from pydantic import BaseModel
from typing import Optional

from acervo.modules.access.approval import ApprovalState
from acervo.modules.access.session import AccessSnapshot
from acervo.modules.access.state import ResolutionStatus
from acervo.modules.roles.schemas import CapabilityRecord, Role


class AccessSnapshotResponse(BaseModel):
    identity_id: Optional[str] = None
    approval: ApprovalState
    status: ResolutionStatus
    role: Optional[Role] = None  # None when unassigned, pending approval or not resolved
    permissions: CapabilityRecord
    loading: bool

    @classmethod
    def from_access(cls, access: AccessSnapshot) -> "AccessSnapshotResponse":
        effective = access.effective
        return cls(
            identity_id=access.identity_id,
            approval=access.approval.state,
            status=effective.status,
            role=effective.role,
            permissions=effective.capabilities,
            loading=effective.loading,
        )
