"""
Pytest configuration and fixtures.
Provides an in-memory remote store, a recording alerter and loaded sessions wired to them.
"""

import itertools
import uuid
from typing import Any, Callable, Dict, List, Optional, Set, Tuple

import pytest
from dependency_injector import providers

from timesheet_pro.core.config import Settings
from timesheet_pro.core.exceptions import RemoteStoreError
from timesheet_pro.core.integrations.alerts import Alerter, AlertPermission
from timesheet_pro.deps.di_container import build_container
from timesheet_pro.repositories.base_repository import BaseRepository
from timesheet_pro.schemas import Actor, Project, Role, SessionIdentity
from timesheet_pro.session import SessionContext
from timesheet_pro.store.change_signal import ChangeSignal
from timesheet_pro.store.collection_store import COLLECTION_KEYS, PROJECTS, USERS
from timesheet_pro.repositories.collection_repositories import build_repositories


class FakeRemote:
    """
    In-memory remote store shared by every session of a test.
    Records every call as (collection, operation, id) and fails the ones registered with `fail`.
    """

    def __init__(self):
        self.rows: Dict[str, Dict[int, Dict[str, Any]]] = {key: {} for key in COLLECTION_KEYS}
        self.calls: List[Tuple[str, str, Optional[int]]] = []
        self.failures: Set[Tuple[str, str, Optional[int]]] = set()
        self.assign_ids = False
        self._server_ids = itertools.count(900_000)

    def fail(self, key: str, operation: str, item_id: Optional[int] = None) -> None:
        """Fail `operation` on `key` for one id, or for every id when `item_id` is None."""
        self.failures.add((key, operation, item_id))

    def check(self, key: str, operation: str, item_id: Optional[int] = None) -> None:
        self.calls.append((key, operation, item_id))
        if (key, operation, item_id) in self.failures or (key, operation, None) in self.failures:
            raise RemoteStoreError(f"{operation} {key} {item_id} failed", status=500)

    def seed(self, key: str, items: List[Any]) -> None:
        for item in items:
            self.rows[key][item.id] = item.to_wire()

    def calls_for(self, key: str, operation: Optional[str] = None) -> List[Tuple[str, str, Optional[int]]]:
        return [c for c in self.calls if c[0] == key and (operation is None or c[1] == operation)]

    def repositories(self) -> Dict[str, BaseRepository]:
        real = build_repositories(None)
        return {
            key: FakeRepository(self, key, repository.model, repository.label)
            for key, repository in real.items()
        }


class FakeRepository(BaseRepository):
    """Repository backed by a FakeRemote instead of HTTP."""

    def __init__(self, remote: FakeRemote, key: str, model, label: str):
        super().__init__(model, None, key, label)
        self.remote = remote
        self.key = key

    async def list(self):
        self.remote.check(self.key, "list")
        return [self._from_wire(dict(row)) for row in self.remote.rows[self.key].values()]

    async def create(self, item):
        self.remote.check(self.key, "create", item.id)
        row = item.to_wire()
        if self.remote.assign_ids:
            row["id"] = next(self.remote._server_ids)
        self.remote.rows[self.key][row["id"]] = row
        return row["id"] if self.remote.assign_ids else None

    async def update(self, item):
        self.remote.check(self.key, "update", item.id)
        self.remote.rows[self.key][item.id] = item.to_wire()

    async def delete(self, id):
        self.remote.check(self.key, "delete", id)
        self.remote.rows[self.key].pop(id, None)


class RecordingAlerter(Alerter):
    """Alerter that records every alert with its click callback."""

    def __init__(self, permission: AlertPermission = AlertPermission.GRANTED, grant: bool = True):
        self._permission = permission
        self.grant = grant
        self.shown: List[Tuple[str, str, Optional[Callable[[], None]]]] = []

    def permission(self) -> AlertPermission:
        return self._permission

    async def request_permission(self) -> AlertPermission:
        self._permission = AlertPermission.GRANTED if self.grant else AlertPermission.DENIED
        return self._permission

    def show(self, title, body, on_click=None) -> None:
        self.shown.append((title, body, on_click))


# Company "acme": manager M, employee E reporting to M, team leader TL with
# direct reports A and B, employee C reporting to someone else, a company
# admin, and a second team leader without reports. X belongs to another company.
MANAGER = Actor(id=1, name="Mona Manager", role=Role.MANAGER, company_id="acme", employee_id="E001")
EMPLOYEE = Actor(id=2, name="Eve Employee", role=Role.EMPLOYEE, manager_id=1, company_id="acme", employee_id="E002")
TEAM_LEAD = Actor(id=3, name="Tom Lead", role=Role.TEAM_LEADER, manager_id=1, company_id="acme", employee_id="E003")
REPORT_A = Actor(id=4, name="Ann", role=Role.EMPLOYEE, manager_id=3, company_id="acme", employee_id="E004")
REPORT_B = Actor(id=5, name="Bob", role=Role.EMPLOYEE, manager_id=3, company_id="acme", employee_id="E005")
OUTSIDER_C = Actor(id=6, name="Cid", role=Role.EMPLOYEE, manager_id=9, company_id="acme", employee_id="E006")
ADMIN = Actor(id=7, name="Ada Admin", role=Role.ADMIN, company_id="acme", employee_id="E007")
LONE_LEAD = Actor(id=10, name="Lee Lead", role=Role.TEAM_LEADER, company_id="acme", employee_id="E010")
OTHER_COMPANY = Actor(id=8, name="Xavier", role=Role.MANAGER, company_id="globex", employee_id="G001")

ROSTER = [MANAGER, EMPLOYEE, TEAM_LEAD, REPORT_A, REPORT_B, OUTSIDER_C, ADMIN, LONE_LEAD, OTHER_COMPANY]

PROJECT_P = Project(
    id=100,
    name="Apollo",
    company_id="acme",
    manager_id=1,
    team_leader_id=3,
    team_ids=[2, 4],
    estimated_hours=40,
    actual_hours=0,
)


@pytest.fixture
def remote():
    """Remote store seeded with the roster and project P."""
    fake = FakeRemote()
    fake.seed(USERS, ROSTER)
    fake.seed(PROJECTS, [PROJECT_P])
    return fake


@pytest.fixture
def signal():
    return ChangeSignal()


@pytest.fixture
def alerter():
    return RecordingAlerter()


@pytest.fixture
def test_settings():
    return Settings(TOAST_TTL_SECONDS=60.0, NOTIFICATION_POLL_INTERVAL_SECONDS=0.01)


@pytest.fixture
async def make_session(remote, signal, alerter, test_settings):
    """
    Factory of loaded sessions for a roster member, all sharing the same remote store.
    Sessions are closed on teardown.
    """
    sessions: List[SessionContext] = []

    async def factory(user: Actor, session_alerter: Optional[Alerter] = None) -> SessionContext:
        identity = SessionIdentity(id=user.id, role=user.role, company_id=user.company_id)
        container = build_container(
            actor_id=user.id,
            token="test-token",
            session_id=uuid.uuid4().hex,
            alerter=session_alerter or alerter,
            change_signal=signal,
            settings=test_settings,
        )
        container.repositories.override(providers.Object(remote.repositories()))
        session = SessionContext(identity, "test-token", change_signal=signal, container=container)
        await session.load(start_polling=False)
        sessions.append(session)
        return session

    yield factory

    for session in sessions:
        await session.close()
