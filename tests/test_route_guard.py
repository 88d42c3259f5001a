"""Route Guard: one notice and one redirect per entry into denial."""

import logging

from acervo.modules.access.errors import AccessLookupError
from acervo.modules.access.evaluator import PermissionSnapshot, evaluate
from acervo.modules.access.guards import DENIAL_MESSAGE, GuardDecision, RouteGuard
from acervo.modules.access.ports import Severity
from acervo.modules.access.state import ResolutionStatus
from acervo.modules.roles.schemas import Capability, Role

LOADING = PermissionSnapshot(identity_id="u-1", status=ResolutionStatus.LOADING)
FAILED = PermissionSnapshot(identity_id="u-1", status=ResolutionStatus.ERROR, error=AccessLookupError("down"))


def resolved(role):
    return PermissionSnapshot(identity_id="u-1", status=ResolutionStatus.RESOLVED, role=role, capabilities=evaluate(role))


class StubSession:
    def __init__(self, snapshot):
        self.snapshot = snapshot
        self.listeners = []

    def subscribe(self, listener):
        self.listeners.append(listener)
        return lambda: self.listeners.remove(listener)

    def publish(self, snapshot):
        self.snapshot = snapshot
        for listener in list(self.listeners):
            listener(snapshot)


def make_guard(navigator, notifier, requires=(Capability.ACCESS_ADMIN_PANEL,)):
    return RouteGuard(requires, navigator, notifier, redirect_to="/", retry_href="/admin")


def test_loading_shows_loading_screen_without_redirect(navigator, notifier):
    guard = make_guard(navigator, notifier)
    html = guard.render(LOADING, "VIEW")
    assert "Verificando permissões..." in html
    assert "VIEW" not in html
    assert navigator.paths == []
    assert notifier.messages == []


def test_allowed_renders_view(navigator, notifier):
    guard = make_guard(navigator, notifier)
    assert guard.render(resolved(Role.ADMIN), "VIEW") == "VIEW"
    assert guard.decision is GuardDecision.ALLOWED
    assert navigator.paths == []


def test_single_redirect_across_repeated_denied_renders(navigator, notifier):
    guard = make_guard(navigator, notifier)
    for _ in range(5):
        assert guard.render(resolved(Role.READ_ONLY), "VIEW") == ""
    assert navigator.paths == ["/"]
    assert notifier.messages == [(DENIAL_MESSAGE, Severity.DESTRUCTIVE)]


def test_loading_then_denied_redirects_once(navigator, notifier):
    guard = make_guard(navigator, notifier)
    guard.render(LOADING, "VIEW")
    guard.render(resolved(Role.STANDARD), "VIEW")
    guard.render(resolved(Role.STANDARD), "VIEW")
    assert navigator.paths == ["/"]


def test_revocation_after_allowed_is_a_new_denial(navigator, notifier):
    guard = make_guard(navigator, notifier)
    guard.render(resolved(Role.READ_ONLY), "VIEW")
    guard.render(resolved(Role.ADMIN), "VIEW")
    guard.render(resolved(Role.READ_ONLY), "VIEW")
    assert navigator.paths == ["/", "/"]
    assert len(notifier.messages) == 2


def test_error_shows_retry_and_does_not_redirect(navigator, notifier):
    guard = make_guard(navigator, notifier)
    html = guard.render(FAILED, "VIEW")
    assert "Não foi possível verificar seu acesso." in html
    assert 'href="/admin"' in html
    assert "VIEW" not in html
    assert guard.decision is GuardDecision.ERROR
    assert navigator.paths == []
    assert notifier.messages == []


def test_unassigned_identity_is_redirected(navigator, notifier):
    guard = make_guard(navigator, notifier, requires=(Capability.READ,))
    guard.render(resolved(None), "VIEW")
    assert navigator.paths == ["/"]


def test_custom_redirect_target(navigator, notifier):
    guard = RouteGuard([Capability.MANAGE_USERS], navigator, notifier, redirect_to="/admin")
    guard.update(resolved(Role.STANDARD))
    assert navigator.paths == ["/admin"]


def test_attached_guard_follows_session_changes(navigator, notifier):
    session = StubSession(LOADING)
    guard = make_guard(navigator, notifier)

    assert guard.attach(session) is GuardDecision.PENDING
    session.publish(resolved(Role.ADMIN))
    assert guard.decision is GuardDecision.ALLOWED
    assert navigator.paths == []

    # role revoked while the view is mounted
    session.publish(resolved(Role.READ_ONLY))
    assert guard.decision is GuardDecision.DENIED
    assert navigator.paths == ["/"]

    guard.detach()
    session.publish(resolved(Role.ADMIN))
    assert guard.decision is GuardDecision.DENIED
    assert session.listeners == []


def test_side_effect_failure_is_logged_not_raised(notifier, caplog):
    class BrokenNavigator:
        def navigate_to(self, path):
            raise RuntimeError("no router")

    guard = RouteGuard([Capability.WRITE], BrokenNavigator(), notifier)
    with caplog.at_level(logging.ERROR, logger="acervo.modules.access.guards"):
        assert guard.render(resolved(Role.READ_ONLY), "VIEW") == ""
    assert "Error redirecting" in caplog.text
    assert len(notifier.messages) == 1


def test_denial_is_logged_at_info(navigator, notifier, caplog):
    guard = make_guard(navigator, notifier)
    with caplog.at_level(logging.INFO, logger="acervo.modules.access.guards"):
        guard.update(resolved(Role.READ_ONLY))
    records = [r for r in caplog.records if r.name == "acervo.modules.access.guards"]
    assert [r.levelno for r in records] == [logging.INFO]


AWAITING = PermissionSnapshot(identity_id="u-1", status=ResolutionStatus.AWAITING_APPROVAL)
SIGNED_OUT = PermissionSnapshot(identity_id=None, status=ResolutionStatus.SIGNED_OUT)


def admission_guard(navigator, notifier, requires=()):
    return RouteGuard(
        requires, navigator, notifier, login_path="/entrar", pending_approval_path="/aguardando"
    )


def test_awaiting_approval_shows_waiting_notice_and_redirects_once(navigator, notifier):
    guard = admission_guard(navigator, notifier, requires=(Capability.READ,))
    for _ in range(3):
        html = guard.render(AWAITING, "VIEW")
        assert "VIEW" not in html
        assert "Aguardando Aprovação" in html
    assert guard.decision is GuardDecision.AWAITING_APPROVAL
    assert navigator.paths == ["/aguardando"]
    assert notifier.messages == []


def test_signed_out_redirects_to_login_without_notice(navigator, notifier):
    guard = admission_guard(navigator, notifier)
    assert guard.render(SIGNED_OUT, "VIEW") == ""
    assert guard.decision is GuardDecision.UNAUTHENTICATED
    assert navigator.paths == ["/entrar"]
    assert notifier.messages == []


def test_empty_requirements_still_need_admission(navigator, notifier):
    guard = RouteGuard((), navigator, notifier)
    assert guard.render(AWAITING, "VIEW") != "VIEW"
    assert guard.render(SIGNED_OUT, "VIEW") == ""
    assert guard.render(resolved(None), "VIEW") == "VIEW"
    assert navigator.paths == []
