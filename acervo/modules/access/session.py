"""
Access session: one ambient identity feeding one approval gate and one
permission evaluator.

The combined snapshot is what guards consume. It applies approval precedence:
until the gate reports ACTIVE for the same identity, no capability is granted,
whatever the resolved role is. Signed-out and unapproved identities get their
own statuses so guards never mistake them for an unassigned role.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Callable, List, Optional

from acervo.modules.access.approval import ApprovalGate, ApprovalSnapshot, ApprovalState
from acervo.modules.access.evaluator import PermissionEvaluator, PermissionSnapshot
from acervo.modules.access.ports import ApprovalDirectory, IdentityListener, IdentityProvider, RoleDirectory
from acervo.modules.access.resolver import RoleResolver
from acervo.modules.access.state import ResolutionStatus
from acervo.modules.auth.schemas import Identity

logger = logging.getLogger(__name__)


class IdentitySession:
    """In-memory IdentityProvider: holds the current identity and notifies on change."""

    def __init__(self, identity: Optional[Identity] = None):
        self._identity = identity
        self._listeners: List[IdentityListener] = []

    def get_current_identity(self) -> Optional[Identity]:
        return self._identity

    def subscribe(self, listener: IdentityListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)
        return unsubscribe

    def sign_in(self, identity: Identity) -> None:
        self._set(identity)

    def sign_out(self) -> None:
        self._set(None)

    def _set(self, identity: Optional[Identity]) -> None:
        self._identity = identity
        for listener in list(self._listeners):
            listener(identity)


@dataclass(frozen=True)
class AccessSnapshot:
    approval: ApprovalSnapshot
    permissions: PermissionSnapshot

    @property
    def identity_id(self) -> Optional[str]:
        return self.approval.identity_id

    @property
    def effective(self) -> PermissionSnapshot:
        return combine(self.approval, self.permissions)


def combine(approval: ApprovalSnapshot, permissions: PermissionSnapshot) -> PermissionSnapshot:
    """Permission snapshot after approval precedence."""
    identity_id = approval.identity_id
    if approval.state is ApprovalState.ANONYMOUS:
        return PermissionSnapshot(identity_id=None, status=ResolutionStatus.SIGNED_OUT)
    if approval.state is ApprovalState.UNKNOWN:
        return PermissionSnapshot(identity_id=identity_id, status=ResolutionStatus.LOADING)
    if approval.state is ApprovalState.ERROR:
        return PermissionSnapshot(identity_id=identity_id, status=ResolutionStatus.ERROR, error=approval.error)
    if approval.state is ApprovalState.PENDING_APPROVAL:
        return PermissionSnapshot(identity_id=identity_id, status=ResolutionStatus.AWAITING_APPROVAL)
    if permissions.identity_id != identity_id:
        return PermissionSnapshot(identity_id=identity_id, status=ResolutionStatus.LOADING)
    return permissions


class AccessSession:
    """Wires an IdentityProvider to an ApprovalGate and a PermissionEvaluator.

    Use as an async context manager, or call start() / aclose() explicitly.
    Listeners receive the effective PermissionSnapshot whenever it changes.
    """

    def __init__(
        self,
        identity_provider: IdentityProvider,
        role_directory: RoleDirectory,
        approval_directory: ApprovalDirectory,
        timeout: Optional[float] = None,
    ):
        self.identity_provider = identity_provider
        self.approval = ApprovalGate(approval_directory, timeout)
        self.permissions = PermissionEvaluator(RoleResolver(role_directory, timeout))
        self._listeners: List[Callable[[PermissionSnapshot], None]] = []
        self._effective = self.access.effective
        self._unsubscribers: List[Callable[[], None]] = []

    @property
    def access(self) -> AccessSnapshot:
        return AccessSnapshot(approval=self.approval.snapshot, permissions=self.permissions.snapshot)

    @property
    def snapshot(self) -> PermissionSnapshot:
        return self._effective

    def subscribe(self, listener: Callable[[PermissionSnapshot], None]) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)
        return unsubscribe

    def start(self) -> None:
        self._unsubscribers = [
            self.approval.subscribe(lambda _: self._recompute()),
            self.permissions.subscribe(lambda _: self._recompute()),
            self.identity_provider.subscribe(self._identity_changed),
        ]
        self._identity_changed(self.identity_provider.get_current_identity())

    def refresh(self) -> None:
        """Re-resolve approval and role for the current identity."""
        self.approval.refresh()
        self.permissions.refresh()

    async def wait_settled(self) -> AccessSnapshot:
        await asyncio.gather(self.approval.wait_settled(), self.permissions.wait_settled())
        return self.access

    async def aclose(self) -> None:
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers = []
        self._listeners.clear()
        await asyncio.gather(self.approval.aclose(), self.permissions.aclose())

    async def __aenter__(self) -> "AccessSession":
        self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    def _identity_changed(self, identity: Optional[Identity]) -> None:
        logger.debug(f"Identity changed to {identity.id if identity else None}")
        self.approval.identity_changed(identity)
        self.permissions.identity_changed(identity)

    def _recompute(self) -> None:
        effective = self.access.effective
        if effective == self._effective:
            return
        self._effective = effective
        for listener in list(self._listeners):
            listener(effective)
