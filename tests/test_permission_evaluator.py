"""Permission Evaluator: identity-keyed snapshots, loading state and stale discard."""

import asyncio

import pytest

from acervo.config.permissions_config import NO_CAPABILITIES
from acervo.modules.access.errors import AccessTimeout
from acervo.modules.access.evaluator import PermissionEvaluator
from acervo.modules.access.resolver import RoleResolver
from acervo.modules.access.state import ResolutionStatus
from acervo.modules.auth.schemas import Identity
from acervo.modules.roles.schemas import Capability, Role

pytestmark = pytest.mark.anyio("asyncio")

ALICE = Identity(id="alice")
BOB = Identity(id="bob")


@pytest.fixture
def evaluator(role_directory):
    return PermissionEvaluator(RoleResolver(role_directory, timeout=1.0))


async def test_no_capability_before_resolution(evaluator, role_directory):
    role_directory.roles["alice"] = "admin"
    gate = role_directory.hold("alice")

    evaluator.identity_changed(ALICE)
    snapshot = evaluator.snapshot
    assert snapshot.loading
    assert snapshot.identity_id == "alice"
    assert snapshot.capabilities == NO_CAPABILITIES
    assert not snapshot.grants_all([Capability.READ])

    gate.set()
    snapshot = await evaluator.wait_settled()
    assert snapshot.status is ResolutionStatus.RESOLVED
    assert snapshot.role is Role.ADMIN
    assert snapshot.grants_all(list(Capability))
    await evaluator.aclose()


async def test_stale_result_is_discarded(evaluator, role_directory):
    role_directory.roles.update({"alice": "admin", "bob": "read_only"})
    alice_gate = role_directory.hold("alice")
    published = []
    evaluator.subscribe(published.append)

    evaluator.identity_changed(ALICE)
    evaluator.identity_changed(BOB)
    snapshot = await evaluator.wait_settled()
    assert snapshot.identity_id == "bob"
    assert snapshot.role is Role.READ_ONLY

    # Alice's lookup completes after Bob signed in
    alice_gate.set()
    for _ in range(5):
        await asyncio.sleep(0)

    assert evaluator.snapshot.identity_id == "bob"
    assert evaluator.snapshot.role is Role.READ_ONLY
    assert not any(s.role is Role.ADMIN for s in published)
    await evaluator.aclose()


async def test_same_identity_does_not_restart_lookup(evaluator, role_directory):
    role_directory.roles["alice"] = "user"
    evaluator.identity_changed(ALICE)
    await evaluator.wait_settled()
    evaluator.identity_changed(Identity(id="alice", email="new@acervo.app"))
    await evaluator.wait_settled()
    assert role_directory.calls == ["alice"]
    await evaluator.aclose()


async def test_refresh_picks_up_role_change(evaluator, role_directory):
    role_directory.roles["alice"] = "admin"
    evaluator.identity_changed(ALICE)
    await evaluator.wait_settled()

    role_directory.roles["alice"] = "read_only"
    evaluator.refresh()
    assert evaluator.snapshot.loading
    snapshot = await evaluator.wait_settled()
    assert snapshot.role is Role.READ_ONLY
    assert not snapshot.capabilities.can_write
    await evaluator.aclose()


async def test_unassigned_resolves_to_no_capabilities(evaluator):
    evaluator.identity_changed(ALICE)
    snapshot = await evaluator.wait_settled()
    assert snapshot.status is ResolutionStatus.RESOLVED
    assert snapshot.role is None
    assert snapshot.capabilities == NO_CAPABILITIES
    await evaluator.aclose()


async def test_timeout_ends_in_error(role_directory):
    evaluator = PermissionEvaluator(RoleResolver(role_directory, timeout=0.05))
    role_directory.hold("alice")
    evaluator.identity_changed(ALICE)
    snapshot = await evaluator.wait_settled()
    assert snapshot.failed
    assert isinstance(snapshot.error, AccessTimeout)
    assert snapshot.capabilities == NO_CAPABILITIES
    await evaluator.aclose()


async def test_sign_out_clears_capabilities(evaluator, role_directory):
    role_directory.roles["alice"] = "admin"
    evaluator.identity_changed(ALICE)
    await evaluator.wait_settled()

    evaluator.identity_changed(None)
    snapshot = evaluator.snapshot
    assert snapshot.identity_id is None
    assert snapshot.status is ResolutionStatus.RESOLVED
    assert snapshot.capabilities == NO_CAPABILITIES
    await evaluator.aclose()


async def test_listeners_see_loading_then_result(evaluator, role_directory):
    role_directory.roles["alice"] = "user"
    published = []
    unsubscribe = evaluator.subscribe(published.append)
    evaluator.identity_changed(ALICE)
    await evaluator.wait_settled()
    unsubscribe()

    assert [s.status for s in published] == [ResolutionStatus.LOADING, ResolutionStatus.RESOLVED]
    assert published[-1].role is Role.STANDARD
    await evaluator.aclose()
