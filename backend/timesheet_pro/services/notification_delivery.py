"""
Notification delivery convergence.

A fixed-interval poll pulls the authoritative notification set and replaces
the local cache only when the content changed. Every committed notification
snapshot is diffed against the one it replaced; ids that are new raise one
external alert each when they are addressed to the session's actor, the
replaced snapshot was not empty and alerts are permitted.
"""

import asyncio
import logging
from typing import Callable, List, Optional

from timesheet_pro.core.exceptions import RemoteStoreError
from timesheet_pro.core.integrations.alerts import Alerter, AlertPermission
from timesheet_pro.repositories.base_repository import BaseRepository
from timesheet_pro.schemas.notification import Notification
from timesheet_pro.services.base_service import BaseService
from timesheet_pro.services.toast_service import ToastService
from timesheet_pro.store.collection_store import NOTIFICATIONS, CollectionStore

logger = logging.getLogger(__name__)

Navigator = Callable[[str], None]


def new_notifications(previous: List[Notification], current: List[Notification]) -> List[Notification]:
    """Notifications present in `current` whose id is absent from `previous`."""
    seen = {n.id for n in previous}
    return [n for n in current if n.id not in seen]


def _snapshot(items: List[Notification]) -> List[dict]:
    return [n.model_dump(mode="json") for n in items]


class NotificationDelivery(BaseService):
    """Polls notifications and raises external alerts for new ones."""

    def __init__(
        self,
        store: CollectionStore,
        repository: BaseRepository,
        alerter: Alerter,
        toasts: ToastService,
        actor_id: int,
        interval: float = 1.0,
        navigate: Optional[Navigator] = None,
    ):
        self.store = store
        self.repository = repository
        self.alerter = alerter
        self.toasts = toasts
        self.actor_id = actor_id
        self.interval = interval
        self.navigate = navigate
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def poll_once(self) -> bool:
        """
        Fetch the authoritative set and commit it if it changed.

        Returns:
            True if the local cache was replaced
        """
        version = self.store.version(NOTIFICATIONS)
        try:
            fetched = await self.repository.list()
        except RemoteStoreError as e:
            logger.error(f"Failed to poll notifications: {e.message}", extra={"status": e.status})
            return False

        cached = self.store.get(NOTIFICATIONS)
        if _snapshot(cached) == _snapshot(fetched):
            return False
        replaced = await self.store.replace(NOTIFICATIONS, fetched, expected_version=version)
        if replaced:
            logger.info(
                "Notifications updated",
                extra={"previous_count": len(cached), "new_count": len(fetched)},
            )
        return replaced

    async def handle_commit(self, key: str, previous: list, current: list) -> None:
        """Store listener: alert on notification ids new since the replaced snapshot."""
        if key != NOTIFICATIONS:
            return
        fresh = new_notifications(previous, current)
        # An empty prior snapshot means this is the first load.
        if not previous or not fresh:
            return
        if self.alerter.permission() != AlertPermission.GRANTED:
            logger.debug("Alerts not permitted", extra={"new_count": len(fresh)})
            return
        for notification in fresh:
            if notification.recipient_id != self.actor_id:
                logger.debug(
                    f"Skipping alert for user {notification.recipient_id}",
                    extra={"notification": notification.id},
                )
                continue
            self.alerter.show(notification.title, notification.message, self._on_click(notification))
            logger.info(f"Alert raised for notification {notification.id}")

    def _on_click(self, notification: Notification) -> Optional[Callable[[], None]]:
        if not notification.link_to or self.navigate is None:
            return None
        navigate, link = self.navigate, notification.link_to
        return lambda: navigate(link)

    async def request_alert_permission(self) -> AlertPermission:
        permission = await self.alerter.request_permission()
        if permission == AlertPermission.GRANTED:
            self.toasts.add("Browser notifications have been enabled!", "Success")
            self.alerter.show("Notifications Enabled", "You will now receive updates from Timesheet Pro.")
        else:
            self.toasts.add(
                "Browser notifications are disabled. You can change this in your browser settings.",
                "Info",
            )
        return permission

    async def _run(self) -> None:
        while True:
            await self.poll_once()
            await asyncio.sleep(self.interval)

    def start(self) -> None:
        """Poll immediately, then every `interval` seconds."""
        if self.running:
            return
        self._task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
