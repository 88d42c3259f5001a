"""
Shared fixtures: in-memory directories standing in for Supabase, recording
Navigator/Notifier, and the FastAPI app wired to the fakes.
"""

import asyncio
from typing import Dict, List, Optional, Set

import httpx
import pytest
from fastapi import HTTPException
from httpx import ASGITransport

from acervo.modules.access.errors import AccessLookupError
from acervo.modules.access.ports import Severity
from acervo.modules.auth.schemas import Identity, TokenResponse
from acervo.modules.roles.schemas import Role, UserRoleResponse, parse_role
from acervo.modules.users.schemas import UserResponse


@pytest.fixture
def anyio_backend():
    return "asyncio"


class FakeRoleDirectory:
    """RoleDirectory over a dict of raw stored roles; lookups can be held or failed."""

    def __init__(self, roles: Optional[Dict[str, str]] = None):
        self.roles = dict(roles or {})
        self.gates: Dict[str, asyncio.Event] = {}
        self.errors: Dict[str, Exception] = {}
        self.calls: List[str] = []

    def hold(self, identity_id: str) -> asyncio.Event:
        gate = asyncio.Event()
        self.gates[identity_id] = gate
        return gate

    async def get_role_for_identity(self, identity_id: str):
        self.calls.append(identity_id)
        gate = self.gates.get(identity_id)
        if gate is not None:
            await gate.wait()
        if identity_id in self.errors:
            raise self.errors[identity_id]
        return self.roles.get(identity_id)

    async def set_role(self, identity_id: str, role: Role) -> None:
        self.roles[identity_id] = role.value


class FakeApprovalDirectory:
    def __init__(self, approved: Optional[Set[str]] = None):
        self.approved = set(approved or ())
        self.gates: Dict[str, asyncio.Event] = {}
        self.errors: Dict[str, Exception] = {}
        self.writes: List[tuple] = []

    def hold(self, identity_id: str) -> asyncio.Event:
        gate = asyncio.Event()
        self.gates[identity_id] = gate
        return gate

    async def get_approval_status(self, identity_id: str) -> bool:
        gate = self.gates.get(identity_id)
        if gate is not None:
            await gate.wait()
        if identity_id in self.errors:
            raise self.errors[identity_id]
        return identity_id in self.approved

    async def set_approval_status(self, identity_id: str, approved: bool = True) -> None:
        self.writes.append((identity_id, approved))
        if approved:
            self.approved.add(identity_id)
        else:
            self.approved.discard(identity_id)


class RecordingNavigator:
    def __init__(self):
        self.paths: List[str] = []

    def navigate_to(self, path: str) -> None:
        self.paths.append(path)


class RecordingNotifier:
    def __init__(self):
        self.messages: List[tuple] = []

    def notify_user(self, message: str, severity: Severity = Severity.INFO) -> None:
        self.messages.append((message, severity))


class InMemoryAccounts:
    """profiles + user_roles in memory, with the surface the routes use from RoleService and UserService."""

    def __init__(self):
        self.profiles: Dict[str, dict] = {}
        self.roles: Dict[str, str] = {}
        self.fail_lookups = False

    def add(self, user_id: str, email: str, role: Optional[str] = None, approved: bool = True, full_name=None):
        self.profiles[user_id] = {"id": user_id, "email": email, "full_name": full_name, "approved": approved}
        if role is not None:
            self.roles[user_id] = role

    # RoleDirectory
    async def get_role_for_identity(self, identity_id: str):
        if self.fail_lookups:
            raise AccessLookupError("backend unavailable", identity_id=identity_id, kind="role")
        raw = self.roles.get(identity_id)
        return None if raw is None else parse_role(raw)

    async def set_role(self, identity_id: str, role: Role) -> None:
        self.roles[identity_id] = role.value

    # ApprovalDirectory
    async def get_approval_status(self, identity_id: str) -> bool:
        if self.fail_lookups:
            raise AccessLookupError("backend unavailable", identity_id=identity_id, kind="approval")
        profile = self.profiles.get(identity_id)
        return bool(profile and profile["approved"])

    async def set_approval_status(self, identity_id: str, approved: bool = True) -> None:
        if identity_id not in self.profiles:
            raise HTTPException(status_code=404, detail="User not found")
        self.profiles[identity_id]["approved"] = approved

    # Service surface
    def get_user_role(self, user_id: str) -> UserRoleResponse:
        raw = self.roles.get(user_id)
        return UserRoleResponse(user_id=user_id, role=parse_role(raw) if raw else None)

    def get_user_by_id(self, user_id: str) -> UserResponse:
        if user_id not in self.profiles:
            raise HTTPException(status_code=404, detail="User not found")
        return UserResponse(**self.profiles[user_id], role=self.roles.get(user_id))

    def list_users(self, limit: int = 50, offset: int = 0, pending_only: bool = False) -> List[UserResponse]:
        ids = [i for i, p in self.profiles.items() if not pending_only or not p["approved"]]
        return [self.get_user_by_id(i) for i in ids[offset:offset + limit]]

    def list_pending_users(self, limit: int = 50, offset: int = 0) -> List[UserResponse]:
        return self.list_users(limit=limit, offset=offset, pending_only=True)

    def update_user(self, user_id: str, user_data) -> UserResponse:
        if user_id not in self.profiles:
            raise HTTPException(status_code=404, detail="User not found")
        if user_data.full_name is not None:
            self.profiles[user_id]["full_name"] = user_data.full_name
        return self.get_user_by_id(user_id)

    def delete_user(self, user_id: str) -> bool:
        self.roles.pop(user_id, None)
        return self.profiles.pop(user_id, None) is not None


class FakeAuthService:
    PASSWORD = "secret"

    def __init__(self, accounts: InMemoryAccounts):
        self.accounts = accounts
        self.logged_out: List[str] = []

    def token_for(self, user_id: str) -> str:
        return f"token-{user_id}"

    def get_current_identity(self, token: str) -> Identity:
        user_id = token[len("token-"):] if token.startswith("token-") else None
        if user_id not in self.accounts.profiles:
            raise HTTPException(status_code=401, detail="Invalid or expired token")
        return Identity(id=user_id, email=self.accounts.profiles[user_id]["email"])

    def login(self, login_data) -> TokenResponse:
        for user_id, profile in self.accounts.profiles.items():
            if profile["email"] == login_data.email and login_data.password == self.PASSWORD:
                return TokenResponse(access_token=self.token_for(user_id), user_id=user_id, email=profile["email"])
        raise HTTPException(status_code=401, detail="Invalid email or password")

    def logout(self, token: str) -> bool:
        self.logged_out.append(token)
        return True


@pytest.fixture
def role_directory():
    return FakeRoleDirectory()


@pytest.fixture
def approval_directory():
    return FakeApprovalDirectory()


@pytest.fixture
def navigator():
    return RecordingNavigator()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def accounts():
    accounts = InMemoryAccounts()
    accounts.add("u-admin", "admin@acervo.app", role="admin")
    accounts.add("u-standard", "standard@acervo.app", role="user")
    accounts.add("u-reader", "reader@acervo.app", role="read_only")
    accounts.add("u-unassigned", "nobody@acervo.app")
    accounts.add("u-pending", "pending@acervo.app", role="admin", approved=False)
    return accounts


@pytest.fixture
def auth_service(accounts):
    return FakeAuthService(accounts)


@pytest.fixture
def app(accounts, auth_service):
    from acervo.core.dependencies import get_auth_service, get_role_service, get_user_service
    from acervo.main import app

    app.dependency_overrides[get_auth_service] = lambda: auth_service
    app.dependency_overrides[get_role_service] = lambda: accounts
    app.dependency_overrides[get_user_service] = lambda: accounts
    yield app
    app.dependency_overrides.clear()


def make_client(app, token: Optional[str] = None, cookie: Optional[str] = None) -> httpx.AsyncClient:
    """AsyncClient for the app, authenticated by bearer token or session cookie."""
    from acervo.config import settings

    headers = {"Authorization": f"Bearer {token}"} if token else {}
    client = httpx.AsyncClient(transport=ASGITransport(app=app), base_url="http://test", headers=headers)
    if cookie:
        client.cookies.set(settings.session_cookie_name, cookie)
    return client


@pytest.fixture
def client_for(app):
    def factory(token: Optional[str] = None, cookie: Optional[str] = None) -> httpx.AsyncClient:
        return make_client(app, token=token, cookie=cookie)
    return factory
