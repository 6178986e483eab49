"""
Session context.

Owns everything that lives for one login session: the mirrored collections,
the reconciler, the services and the notification poller. Constructed after
authentication from the decoded identity and bearer token, torn down on logout.
"""

import asyncio
import logging
import uuid
from typing import Any, Callable, Iterable, List, Optional

from timesheet_pro.core.config import Settings
from timesheet_pro.core.exceptions import RemoteStoreError, SessionClosedError
from timesheet_pro.core.integrations.alerts import Alerter, LoggingAlerter
from timesheet_pro.deps.di_container import SessionContainer, build_container
from timesheet_pro.schemas.actor import Actor, Role, SessionIdentity
from timesheet_pro.store.change_signal import ChangeSignal
from timesheet_pro.store.collection_store import (
    COLLECTION_KEYS,
    LEAVE_REQUESTS,
    PROJECTS,
    TASKS,
    TIMESHEETS,
    USERS,
)

logger = logging.getLogger(__name__)


class SessionContext:
    """One authenticated session."""

    def __init__(
        self,
        identity: SessionIdentity,
        token: str,
        alerter: Optional[Alerter] = None,
        change_signal: Optional[ChangeSignal] = None,
        settings: Optional[Settings] = None,
        container: Optional[SessionContainer] = None,
        navigate: Optional[Callable[[str], None]] = None,
    ):
        self.identity = identity
        self.token = token
        self.session_id = uuid.uuid4().hex
        self.change_signal = change_signal or ChangeSignal()
        self.container = container or build_container(
            actor_id=identity.id,
            token=token,
            session_id=self.session_id,
            alerter=alerter or LoggingAlerter(),
            change_signal=self.change_signal,
            settings=settings,
        )
        if container is not None:
            self.session_id = self.container.config.session_id() or self.session_id
        self.navigate = navigate
        self.closed = False
        self.loaded = False
        self._refresh_task: Optional[asyncio.Task] = None
        self._refreshing = False

    def _check_open(self) -> None:
        if self.closed:
            raise SessionClosedError("Session is closed")

    # Services

    @property
    def store(self):
        self._check_open()
        return self.container.store()

    @property
    def toasts(self):
        self._check_open()
        return self.container.toasts()

    @property
    def reconciler(self):
        self._check_open()
        return self.container.reconciler()

    @property
    def approvals(self):
        self._check_open()
        return self.container.approvals()

    @property
    def notifications(self):
        self._check_open()
        return self.container.notifications()

    @property
    def delivery(self):
        self._check_open()
        return self.container.delivery()

    @property
    def aggregation(self):
        self._check_open()
        return self.container.aggregation()

    @property
    def projects(self):
        self._check_open()
        return self.container.projects()

    @property
    def tasks(self):
        self._check_open()
        return self.container.tasks()

    @property
    def best_employees(self):
        self._check_open()
        return self.container.best_employees()

    @property
    def actor(self) -> Actor:
        """The session's actor as mirrored in the roster, or as decoded from the credential."""
        found = self.store.find(USERS, self.identity.id)
        if found is not None:
            return found
        return Actor(id=self.identity.id, role=self.identity.role, company_id=self.identity.company_id)

    def scoped(self, key: str) -> List[Any]:
        """A collection restricted to the actor's company; a super-admin sees everything."""
        items = self.store.get(key)
        actor = self.actor
        if actor.role == Role.SUPERADMIN:
            return items
        users = [u for u in self.store.get(USERS) if u.company_id == actor.company_id]
        if key == USERS:
            return users
        if key in (PROJECTS, TASKS):
            project_ids = {p.id for p in self.store.get(PROJECTS) if p.company_id == actor.company_id}
            if key == PROJECTS:
                return [p for p in items if p.id in project_ids]
            return [t for t in items if t.project_id in project_ids]
        if key in (TIMESHEETS, LEAVE_REQUESTS):
            user_ids = {u.id for u in users}
            return [r for r in items if r.owner_id in user_ids]
        return items

    # Lifecycle

    async def _fetch(self, keys: Iterable[str], guard: bool) -> None:
        store = self.container.store()
        repositories = self.container.repositories()
        for key in keys:
            version = store.version(key)
            try:
                items = await repositories[key].list()
            except RemoteStoreError as e:
                logger.error(f"Failed to load {key}: {e.message}", extra={"collection": key, "status": e.status})
                self.container.toasts().add("Failed to load data from server", "Error")
                continue
            await store.replace(key, items, expected_version=version if guard else None)

    async def load(self, start_polling: bool = True) -> "SessionContext":
        """
        Fetch every collection, then start derived-field upkeep, cross-session
        refreshes and notification polling.
        """
        self._check_open()
        await self._fetch(COLLECTION_KEYS, guard=False)

        store = self.container.store()
        store.subscribe(self.container.aggregation().handle_commit)
        delivery = self.container.delivery()
        delivery.navigate = self.navigate
        store.subscribe(delivery.handle_commit)
        self.change_signal.subscribe(self.session_id, self._on_remote_change)
        await self.container.aggregation().recompute()
        if start_polling:
            delivery.start()
        self.loaded = True
        logger.info(
            f"Session {self.session_id} loaded",
            extra={"actor": self.identity.id, "role": self.identity.role.value},
        )
        return self

    async def refresh(self, keys: Iterable[str] = COLLECTION_KEYS) -> None:
        """
        Re-fetch collections. A collection committed locally while its fetch
        was in flight keeps the local commit.
        """
        self._check_open()
        if self._refreshing:
            return
        self._refreshing = True
        try:
            await self._fetch(keys, guard=True)
        finally:
            self._refreshing = False
        if self.closed:
            return
        if self.store.get(USERS) and self.store.find(USERS, self.identity.id) is None:
            logger.warning(f"User {self.identity.id} no longer exists, closing session")
            await self.close()

    def _on_remote_change(self, key: str, origin: str) -> None:
        if self.closed or not self.loaded:
            return
        if self._refresh_task is not None and not self._refresh_task.done():
            return
        logger.debug(f"Remote change on {key} from session {origin}")
        self._refresh_task = asyncio.ensure_future(self.refresh())

    async def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        self.change_signal.unsubscribe(self.session_id)
        await self.container.delivery().stop()
        current = asyncio.current_task()
        if self._refresh_task is not None and self._refresh_task is not current and not self._refresh_task.done():
            self._refresh_task.cancel()
        self.container.store().clear()
        self.container.toasts().close()
        await self.container.http_client().close()
        logger.info(f"Session {self.session_id} closed", extra={"actor": self.identity.id})

    async def __aenter__(self) -> "SessionContext":
        return await self.load()

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()
