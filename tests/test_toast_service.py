"""
Toast service tests.
"""

import asyncio

import pytest

from timesheet_pro.services.toast_service import ToastService


@pytest.mark.asyncio
async def test_toast_expires_after_ttl():
    toasts = ToastService(ttl=0.01)
    events = toasts.subscribe()

    toast = toasts.add("Saved", "Success")
    assert toasts.active == [toast]

    await asyncio.sleep(0.05)
    assert toasts.active == []
    added = await events.get()
    removed = await events.get()
    assert (added.action, removed.action) == ("added", "removed")
    assert removed.toast.id == toast.id


@pytest.mark.asyncio
async def test_remove_cancels_expiry():
    toasts = ToastService(ttl=60)
    first = toasts.add("one")
    second = toasts.add("two")

    toasts.remove(first.id)

    assert [t.id for t in toasts.active] == [second.id]
    assert second.id > first.id
    toasts.close()
    assert toasts.active == []
