"""Component Guard: inline gating over every role and capability subset."""

from itertools import combinations

import pytest

from acervo.config.permissions_config import ROLE_PERMISSIONS
from acervo.modules.access.errors import AccessTimeout
from acervo.modules.access.evaluator import PermissionSnapshot, evaluate
from acervo.modules.access.guards import ComponentGuard, GuardDecision
from acervo.modules.access.state import ResolutionStatus
from acervo.modules.roles.schemas import Capability, Role

ALL_SUBSETS = [
    frozenset(subset)
    for size in range(1, len(Capability) + 1)
    for subset in combinations(Capability, size)
]


def resolved(role):
    return PermissionSnapshot(
        identity_id="u-1",
        status=ResolutionStatus.RESOLVED,
        role=role,
        capabilities=evaluate(role),
    )


def test_there_are_31_nonempty_subsets():
    assert len(ALL_SUBSETS) == 31


@pytest.mark.parametrize("role", list(Role))
@pytest.mark.parametrize("requires", ALL_SUBSETS, ids=lambda s: "+".join(sorted(c.name for c in s)))
def test_children_rendered_exactly_when_every_flag_is_granted(role, requires):
    expected = all(ROLE_PERMISSIONS[role].grants(c) for c in requires)
    html = ComponentGuard(requires, fallback="FALLBACK").render(resolved(role), "PROTECTED")
    if expected:
        assert html == "PROTECTED"
    else:
        assert html == "FALLBACK"


def test_loading_renders_indicator_not_children_or_denial():
    snapshot = PermissionSnapshot(identity_id="u-1", status=ResolutionStatus.LOADING)
    guard = ComponentGuard([Capability.READ], fallback="FALLBACK")
    html = guard.render(snapshot, "PROTECTED")
    assert "PROTECTED" not in html
    assert "FALLBACK" not in html
    assert "loading-indicator" in html
    assert guard.decision(snapshot) is GuardDecision.PENDING


def test_error_renders_retry_notice():
    snapshot = PermissionSnapshot(identity_id="u-1", status=ResolutionStatus.ERROR, error=AccessTimeout("slow"))
    html = ComponentGuard([Capability.READ], retry_href="/admin").render(snapshot, "PROTECTED")
    assert "PROTECTED" not in html
    assert "Não foi possível verificar seu acesso." in html
    assert 'href="/admin"' in html


def test_default_denial_notice():
    html = ComponentGuard([Capability.MANAGE_USERS]).render(resolved(Role.READ_ONLY), "PROTECTED")
    assert "Você não tem permissão para acessar este conteúdo." in html


def test_children_are_rendered_lazily():
    calls = []

    def children():
        calls.append(1)
        return "PROTECTED"

    ComponentGuard([Capability.WRITE]).render(resolved(Role.READ_ONLY), children)
    assert calls == []
    assert ComponentGuard([Capability.WRITE]).render(resolved(Role.STANDARD), children) == "PROTECTED"
    assert calls == [1]


def test_unassigned_identity_is_denied():
    html = ComponentGuard([Capability.READ], fallback="").render(resolved(None), "PROTECTED")
    assert html == ""


def test_requirements_accept_camel_case_names():
    guard = ComponentGuard(["canWrite", "canDelete"], fallback="no")
    assert guard.render(resolved(Role.STANDARD), "yes") == "yes"
    assert guard.render(resolved(Role.READ_ONLY), "yes") == "no"


@pytest.mark.parametrize("status", [ResolutionStatus.AWAITING_APPROVAL, ResolutionStatus.SIGNED_OUT])
def test_unadmitted_identity_never_sees_children(status):
    snapshot = PermissionSnapshot(identity_id=None, status=status)
    guard = ComponentGuard(fallback="FALLBACK")
    assert guard.decision(snapshot) is not GuardDecision.ALLOWED
    assert guard.render(snapshot, "PROTECTED") == "FALLBACK"
