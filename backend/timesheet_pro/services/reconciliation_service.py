"""
Collection reconciler.

Diffs a desired collection against the previously committed one and issues the
minimal set of remote operations: every delete first, then creates and updates
in the desired collection's order. Unchanged items cost no call. The desired
collection is then committed locally in one atomic replace; a batch that leaves
the collection's content as it was commits and publishes nothing.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Set, Tuple

from timesheet_pro.core.exceptions import RemoteStoreError
from timesheet_pro.repositories.base_repository import BaseRepository
from timesheet_pro.services.base_service import BaseService
from timesheet_pro.services.toast_service import ToastService
from timesheet_pro.store.change_signal import ChangeSignal
from timesheet_pro.store.collection_store import CollectionStore

logger = logging.getLogger(__name__)

OPTIMISTIC = "optimistic"
APPLIED_ONLY = "applied_only"


def _content(item: Any) -> Dict[str, Any]:
    return item.model_dump(mode="json")


@dataclass
class ReconcilePlan:
    """Operations needed to turn `previous` into `desired`."""
    to_delete: List[Any] = field(default_factory=list)
    to_create: List[Any] = field(default_factory=list)
    to_update: List[Any] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.to_delete or self.to_create or self.to_update)


def plan_reconciliation(previous: List[Any], desired: List[Any]) -> ReconcilePlan:
    """Split by id membership into disjoint delete/create/update sets."""
    previous_by_id = {item.id: item for item in previous}
    desired_ids = {item.id for item in desired}
    plan = ReconcilePlan()
    plan.to_delete = [item for item in previous if item.id not in desired_ids]
    for item in desired:
        prior = previous_by_id.get(item.id)
        if prior is None:
            plan.to_create.append(item)
        elif _content(prior) != _content(item):
            plan.to_update.append(item)
    return plan


class ReconciliationService(BaseService):
    """Diff-and-sync engine between the session store and the remote store."""

    def __init__(
        self,
        store: CollectionStore,
        repositories: Dict[str, BaseRepository],
        toasts: ToastService,
        signal: ChangeSignal,
        session_id: str,
        commit_policy: str = OPTIMISTIC,
    ):
        self.store = store
        self.repositories = repositories
        self.toasts = toasts
        self.signal = signal
        self.session_id = session_id
        self.commit_policy = commit_policy
        # Provisional id -> id assigned by the remote store on create.
        self._server_ids: Dict[int, int] = {}
        # Batches run one at a time, in call order.
        self._lock = asyncio.Lock()

    async def reconcile(self, key: str, previous: List[Any], desired: List[Any]) -> List[Any]:
        """
        Sync `desired` to the remote store and commit it locally.

        Args:
            key: Collection key
            previous: Last known state of the collection
            desired: Wanted state; items are identified by their `id`

        Returns:
            The committed collection, with server-assigned ids substituted
        """
        async with self._lock:
            replaced, committed = await self._run(key, previous, desired)
        await self._after_commit(key, replaced, committed)
        return committed

    async def apply(self, key: str, mutate: Callable[[List[Any]], List[Any]]) -> List[Any]:
        """
        Reconcile the result of `mutate` applied to the current snapshot.
        The snapshot is read once the batch holds the lock, so back-to-back
        calls each see the previous call's commit.
        """
        async with self._lock:
            previous = self.store.get(key)
            replaced, committed = await self._run(key, previous, mutate(list(previous)))
        await self._after_commit(key, replaced, committed)
        return committed

    def find_committed(self, committed: List[Any], item_id: int) -> Optional[Any]:
        """
        Look up an item of a committed collection by the id it was submitted
        with, following the server id substitution. None when the item did
        not make it into the commit.
        """
        item_id = self._server_ids.get(item_id, item_id)
        for item in committed:
            if item.id == item_id:
                return item
        return None

    async def _run(
        self, key: str, previous: List[Any], desired: List[Any]
    ) -> Tuple[Optional[List[Any]], List[Any]]:
        repository = self.repositories[key]
        plan = plan_reconciliation(previous, desired)
        previous_by_id = {item.id: item for item in previous}
        create_ids = {item.id for item in plan.to_create}
        update_ids = {item.id for item in plan.to_update}
        failed: Set[int] = set()
        counts = {"deletes": 0, "creates": 0, "updates": 0, "failures": 0}
        if plan.is_empty:
            logger.debug(f"No remote changes for {key}")

        for item in plan.to_delete:
            try:
                await repository.delete(item.id)
                counts["deletes"] += 1
            except RemoteStoreError as e:
                failed.add(item.id)
                self._report_failure(key, "delete", repository.label, item.id, e)

        committed: List[Any] = []
        for item in desired:
            if item.id in create_ids:
                try:
                    server_id = await repository.create(item)
                    counts["creates"] += 1
                    if server_id is not None and server_id != item.id:
                        self._server_ids[item.id] = server_id
                        item = item.model_copy(update={"id": server_id})
                except RemoteStoreError as e:
                    failed.add(item.id)
                    self._report_failure(key, "create", repository.label, item.id, e)
                    if self.commit_policy == APPLIED_ONLY:
                        continue
            elif item.id in update_ids:
                try:
                    await repository.update(item)
                    counts["updates"] += 1
                except RemoteStoreError as e:
                    failed.add(item.id)
                    self._report_failure(key, "update", repository.label, item.id, e)
                    if self.commit_policy == APPLIED_ONLY:
                        item = previous_by_id[item.id]
            committed.append(item)

        if self.commit_policy == APPLIED_ONLY:
            # Items whose delete failed are still on the server.
            committed.extend(item for item in plan.to_delete if item.id in failed)

        counts["failures"] = len(failed)
        logger.info(f"Reconciled {key}", extra={"collection": key, **counts})
        if [_content(item) for item in committed] == [_content(item) for item in self.store.get(key)]:
            logger.debug(f"{key} unchanged, nothing to commit")
            return None, committed
        replaced = self.store.commit(key, committed)
        return replaced, committed

    async def _after_commit(self, key: str, replaced: Optional[List[Any]], committed: List[Any]) -> None:
        if replaced is None:
            return
        await self.store.publish(key, replaced, committed)
        self.signal.broadcast(key, self.session_id)

    def _report_failure(self, key: str, operation: str, label: str, item_id: int, error: RemoteStoreError) -> None:
        logger.error(
            f"Failed to {operation} {label} {item_id}: {error.message}",
            extra={"collection": key, "operation": operation, "id": item_id, "status": error.status},
        )
        self.toasts.add(f"Failed to {operation} {label}", "Error")
