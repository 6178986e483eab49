"""
Collection reconciler tests: minimal operation sets, ordering, server ids,
failure handling and commit side effects.
"""

import pytest

from timesheet_pro.schemas import Task
from timesheet_pro.services.reconciliation_service import (
    APPLIED_ONLY,
    ReconciliationService,
    plan_reconciliation,
)
from timesheet_pro.services.toast_service import ToastService
from timesheet_pro.store.change_signal import ChangeSignal
from timesheet_pro.store.collection_store import TASKS, CollectionStore

from conftest import FakeRemote


def task(task_id, title="task", assigned_to=None):
    return Task(id=task_id, project_id=100, title=title, assigned_to=assigned_to or [])


def make_reconciler(remote, policy="optimistic", signal=None):
    store = CollectionStore()
    toasts = ToastService(ttl=60)
    reconciler = ReconciliationService(
        store=store,
        repositories=remote.repositories(),
        toasts=toasts,
        signal=signal or ChangeSignal(),
        session_id="session-1",
        commit_policy=policy,
    )
    return reconciler, store, toasts


def test_plan_splits_by_id_membership():
    previous = [task(1), task(2), task(3)]
    desired = [task(2, title="renamed"), task(3), task(4)]

    plan = plan_reconciliation(previous, desired)

    assert [t.id for t in plan.to_delete] == [1]
    assert [t.id for t in plan.to_create] == [4]
    assert [t.id for t in plan.to_update] == [2]


def test_plan_is_empty_for_identical_collections():
    plan = plan_reconciliation([task(1), task(2)], [task(1), task(2)])
    assert plan.is_empty


@pytest.mark.asyncio
async def test_deletes_run_first_then_desired_order():
    remote = FakeRemote()
    reconciler, store, _ = make_reconciler(remote)
    previous = [task(1), task(2), task(3)]

    await reconciler.reconcile(TASKS, previous, [task(4), task(2, title="renamed"), task(3)])

    assert remote.calls == [
        (TASKS, "delete", 1),
        (TASKS, "create", 4),
        (TASKS, "update", 2),
    ]
    assert [t.id for t in store.get(TASKS)] == [4, 2, 3]


@pytest.mark.asyncio
async def test_unchanged_items_cost_no_call():
    remote = FakeRemote()
    reconciler, store, _ = make_reconciler(remote)
    items = [task(1), task(2)]

    committed = await reconciler.reconcile(TASKS, items, [task(1), task(2)])

    assert remote.calls == []
    assert [t.id for t in committed] == [1, 2]


@pytest.mark.asyncio
async def test_server_assigned_id_is_committed():
    remote = FakeRemote()
    remote.assign_ids = True
    reconciler, store, _ = make_reconciler(remote)

    committed = await reconciler.reconcile(TASKS, [], [task(1_700_000_000_000, title="new")])

    assert committed[0].id == 900_000
    assert committed[0].title == "new"
    assert store.find(TASKS, 900_000) is not None


@pytest.mark.asyncio
async def test_failure_is_reported_and_batch_continues():
    remote = FakeRemote()
    remote.fail(TASKS, "update", 2)
    reconciler, store, toasts = make_reconciler(remote)

    committed = await reconciler.reconcile(
        TASKS,
        [task(1), task(2)],
        [task(2, title="renamed"), task(3)],
    )

    assert (TASKS, "create", 3) in remote.calls
    # The whole desired collection is committed despite the failure.
    assert [t.title for t in committed] == ["renamed", "task"]
    assert [t.title for t in store.get(TASKS)] == ["renamed", "task"]
    assert [(t.title, t.message) for t in toasts.active] == [("Error", "Failed to update task")]


@pytest.mark.asyncio
async def test_applied_only_policy_commits_only_applied_items():
    remote = FakeRemote()
    remote.fail(TASKS, "delete", 1)
    remote.fail(TASKS, "update", 2)
    remote.fail(TASKS, "create", 4)
    reconciler, store, _ = make_reconciler(remote, policy=APPLIED_ONLY)

    committed = await reconciler.reconcile(
        TASKS,
        [task(1), task(2)],
        [task(2, title="renamed"), task(3), task(4)],
    )

    by_id = {t.id: t for t in committed}
    assert set(by_id) == {1, 2, 3}
    assert by_id[2].title == "task"


@pytest.mark.asyncio
async def test_commit_notifies_listeners_and_other_sessions():
    remote = FakeRemote()
    signal = ChangeSignal()
    received = []
    signal.subscribe("session-1", lambda key, origin: received.append(("self", key)))
    signal.subscribe("session-2", lambda key, origin: received.append((origin, key)))
    reconciler, store, _ = make_reconciler(remote, signal=signal)
    commits = []

    async def listener(key, previous, current):
        commits.append((key, [t.id for t in previous], [t.id for t in current]))

    store.subscribe(listener)
    await reconciler.apply(TASKS, lambda items: items + [task(5)])

    assert commits == [(TASKS, [], [5])]
    assert received == [("session-1", TASKS)]


@pytest.mark.asyncio
async def test_apply_sees_previous_commit():
    remote = FakeRemote()
    reconciler, store, _ = make_reconciler(remote)

    await reconciler.apply(TASKS, lambda items: items + [task(1)])
    await reconciler.apply(TASKS, lambda items: items + [task(2)])

    assert [t.id for t in store.get(TASKS)] == [1, 2]
    assert remote.calls == [(TASKS, "create", 1), (TASKS, "create", 2)]


@pytest.mark.asyncio
async def test_rejected_batch_commits_and_publishes_nothing():
    remote = FakeRemote()
    signal = ChangeSignal()
    received = []
    signal.subscribe("session-2", lambda key, origin: received.append(key))
    reconciler, store, _ = make_reconciler(remote, policy=APPLIED_ONLY, signal=signal)
    await reconciler.apply(TASKS, lambda items: items + [task(1)])
    commits = []

    async def listener(key, previous, current):
        commits.append(key)

    store.subscribe(listener)
    version = store.version(TASKS)
    remote.fail(TASKS, "update", 1)

    committed = await reconciler.apply(TASKS, lambda items: [task(1, title="renamed")])

    assert [t.title for t in committed] == ["task"]
    assert store.version(TASKS) == version
    assert commits == []
    assert received == [TASKS]


@pytest.mark.asyncio
async def test_find_committed_follows_server_id():
    remote = FakeRemote()
    remote.assign_ids = True
    reconciler, _, _ = make_reconciler(remote)

    committed = await reconciler.apply(TASKS, lambda items: items + [task(1_700_000_000_000)])

    assert reconciler.find_committed(committed, 1_700_000_000_000).id == 900_000
    assert reconciler.find_committed(committed, 42) is None
