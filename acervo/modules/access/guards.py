"""
Component and route guards.

Both decide from a PermissionSnapshot and a set of required capabilities,
all of which must be granted. A loading snapshot is never read as allowed or
denied, and a failed lookup is its own outcome. Approval comes before roles:
a signed-out or unapproved identity is never allowed, even when nothing is
required.

These guards only gate what the UI shows. The API dependencies enforce the
same requirements again and Supabase row-level security is the final control.
"""

import logging
from enum import Enum
from typing import Callable, FrozenSet, Iterable, Optional

from acervo.components import (
    AccessDeniedNotice,
    AccessErrorNotice,
    LoadingIndicator,
    LoadingScreen,
    PendingApprovalMessage,
    Renderable,
    render_content,
)
from acervo.modules.access.evaluator import PermissionSnapshot
from acervo.modules.access.ports import Navigator, Notifier, Severity
from acervo.modules.access.state import ResolutionStatus
from acervo.modules.roles.schemas import Capability, parse_capability

logger = logging.getLogger(__name__)

DENIAL_MESSAGE = "Você não tem permissão para acessar esta página."


class GuardDecision(str, Enum):
    PENDING = "pending"
    ALLOWED = "allowed"
    DENIED = "denied"
    ERROR = "error"
    UNAUTHENTICATED = "unauthenticated"
    AWAITING_APPROVAL = "awaiting_approval"


def requirements(capabilities: Iterable) -> FrozenSet[Capability]:
    return frozenset(parse_capability(c) for c in capabilities)


def decide(snapshot: PermissionSnapshot, required: Iterable[Capability]) -> GuardDecision:
    if snapshot.status is ResolutionStatus.LOADING:
        return GuardDecision.PENDING
    if snapshot.status is ResolutionStatus.ERROR:
        return GuardDecision.ERROR
    if snapshot.status is ResolutionStatus.SIGNED_OUT:
        return GuardDecision.UNAUTHENTICATED
    if snapshot.status is ResolutionStatus.AWAITING_APPROVAL:
        return GuardDecision.AWAITING_APPROVAL
    if snapshot.capabilities.grants_all(required):
        return GuardDecision.ALLOWED
    return GuardDecision.DENIED


class ComponentGuard:
    """Inline gate: children only when every required capability is granted.

    Children and fallback are rendered lazily, so protected markup is never
    produced for a snapshot that does not allow it.
    """

    def __init__(
        self,
        requires: Iterable = (),
        fallback: Renderable = None,
        retry_href: Optional[str] = None,
    ):
        self.requires = requirements(requires)
        self.fallback = fallback
        self.retry_href = retry_href

    def decision(self, snapshot: PermissionSnapshot) -> GuardDecision:
        return decide(snapshot, self.requires)

    def render(self, snapshot: PermissionSnapshot, children: Renderable) -> str:
        decision = self.decision(snapshot)
        if decision is GuardDecision.PENDING:
            return LoadingIndicator().render()
        if decision is GuardDecision.ERROR:
            return AccessErrorNotice(self.retry_href).render()
        if decision is GuardDecision.ALLOWED:
            return render_content(children)
        if self.fallback is not None:
            return render_content(self.fallback)
        return AccessDeniedNotice().render()


class RouteGuard:
    """Navigation-level gate for a whole view.

    PENDING renders a loading screen and never redirects. Entering DENIED
    fires exactly one notice and one redirect; further renders while still
    denied fire nothing. A guard attached to a session follows snapshot changes,
    so a role revoked while the view is mounted leads to a new denial.

    Signed-out and unapproved identities are sent to login_path and
    pending_approval_path (when given) without a denial notice; an unapproved
    identity sees the waiting notice instead of the view.
    """

    def __init__(
        self,
        requires: Iterable,
        navigator: Navigator,
        notifier: Notifier,
        redirect_to: str = "/",
        denial_message: str = DENIAL_MESSAGE,
        retry_href: Optional[str] = None,
        login_path: Optional[str] = None,
        pending_approval_path: Optional[str] = None,
    ):
        self.requires = requirements(requires)
        self.navigator = navigator
        self.notifier = notifier
        self.redirect_to = redirect_to
        self.denial_message = denial_message
        self.retry_href = retry_href
        self.login_path = login_path
        self.pending_approval_path = pending_approval_path
        self._decision: Optional[GuardDecision] = None
        self._unsubscribe: Optional[Callable[[], None]] = None

    @property
    def decision(self) -> Optional[GuardDecision]:
        return self._decision

    def update(self, snapshot: PermissionSnapshot) -> GuardDecision:
        decision = decide(snapshot, self.requires)
        entering = decision is not self._decision
        self._decision = decision
        if not entering:
            return decision
        if decision is GuardDecision.DENIED:
            self._deny(snapshot)
        elif decision is GuardDecision.AWAITING_APPROVAL and self.pending_approval_path:
            logger.info(f"Identity {snapshot.identity_id} is awaiting approval")
            self._navigate(snapshot, self.pending_approval_path)
        elif decision is GuardDecision.UNAUTHENTICATED and self.login_path:
            self._navigate(snapshot, self.login_path)
        return decision

    def render(self, snapshot: PermissionSnapshot, view: Renderable) -> str:
        decision = self.update(snapshot)
        if decision is GuardDecision.PENDING:
            return LoadingScreen().render()
        if decision is GuardDecision.ERROR:
            return AccessErrorNotice(self.retry_href).render()
        if decision is GuardDecision.ALLOWED:
            return render_content(view)
        if decision is GuardDecision.AWAITING_APPROVAL:
            return PendingApprovalMessage().render()
        return ""

    def attach(self, session) -> GuardDecision:
        """Follow an AccessSession; returns the decision for its current snapshot."""
        self.detach()
        self._unsubscribe = session.subscribe(self.update)
        return self.update(session.snapshot)

    def detach(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def _deny(self, snapshot: PermissionSnapshot) -> None:
        required = ", ".join(sorted(c.value for c in self.requires))
        logger.info(f"Access denied for {snapshot.identity_id} (role={snapshot.role}); required: {required}")
        try:
            self.notifier.notify_user(self.denial_message, Severity.DESTRUCTIVE)
        except Exception:
            logger.exception(f"Error notifying {snapshot.identity_id} of denial")
        self._navigate(snapshot, self.redirect_to)

    def _navigate(self, snapshot: PermissionSnapshot, path: str) -> None:
        try:
            self.navigator.navigate_to(path)
        except Exception:
            logger.exception(f"Error redirecting {snapshot.identity_id} to {path}")
