"""
Session-owned mirror of the remote collections.
Each collection is replaced atomically on commit and carries a version counter
so that late-arriving fetches can tell whether a newer local commit happened.
"""

import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)

USERS = "users"
PROJECTS = "projects"
TASKS = "tasks"
TIMESHEETS = "timesheets"
LEAVE_REQUESTS = "leave_requests"
NOTIFICATIONS = "notifications"
BEST_EMPLOYEES = "best_employees"

COLLECTION_KEYS = (
    USERS,
    PROJECTS,
    TASKS,
    TIMESHEETS,
    LEAVE_REQUESTS,
    NOTIFICATIONS,
    BEST_EMPLOYEES,
)

CommitListener = Callable[[str, List[Any], List[Any]], Awaitable[None]]


class CollectionStore:
    """In-memory snapshots of every mirrored collection."""

    def __init__(self):
        self._snapshots: Dict[str, List[Any]] = {key: [] for key in COLLECTION_KEYS}
        self._versions: Dict[str, int] = {key: 0 for key in COLLECTION_KEYS}
        self._listeners: List[CommitListener] = []

    def get(self, key: str) -> List[Any]:
        """Return a shallow copy of the committed snapshot."""
        return list(self._snapshots[key])

    def find(self, key: str, item_id: int) -> Optional[Any]:
        for item in self._snapshots[key]:
            if item.id == item_id:
                return item
        return None

    def version(self, key: str) -> int:
        return self._versions[key]

    def commit(self, key: str, items: List[Any]) -> List[Any]:
        """
        Atomically replace a snapshot without notifying listeners.

        Returns:
            The snapshot that was replaced
        """
        if key not in self._snapshots:
            raise KeyError(f"Unknown collection: {key}")
        previous = self._snapshots[key]
        self._snapshots[key] = list(items)
        self._versions[key] += 1
        return previous

    def subscribe(self, listener: CommitListener) -> None:
        self._listeners.append(listener)

    def unsubscribe(self, listener: CommitListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    async def publish(self, key: str, previous: List[Any], current: List[Any]) -> None:
        """Run commit listeners in subscription order."""
        for listener in list(self._listeners):
            await listener(key, previous, current)

    async def replace(self, key: str, items: List[Any], expected_version: Optional[int] = None) -> bool:
        """
        Commit fetched data and notify listeners.

        Args:
            key: Collection key
            items: Authoritative items
            expected_version: Version observed before the fetch started; when the
                snapshot moved on since then the fetched data is stale and dropped

        Returns:
            True if the snapshot was replaced
        """
        if expected_version is not None and self._versions[key] != expected_version:
            logger.debug(
                f"Dropping stale {key} snapshot",
                extra={"expected_version": expected_version, "version": self._versions[key]},
            )
            return False
        previous = self.commit(key, items)
        await self.publish(key, previous, list(items))
        return True

    def clear(self) -> None:
        for key in COLLECTION_KEYS:
            self._snapshots[key] = []
        self._listeners.clear()
