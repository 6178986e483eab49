"""
Ephemeral toast messages.
Toasts are process-local, never persisted, and expire after a fixed delay.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

from timesheet_pro.schemas.notification import ToastNotification
from timesheet_pro.services.base_service import BaseService
from timesheet_pro.utils.ids import new_client_id

logger = logging.getLogger(__name__)


@dataclass
class ToastEvent:
    action: str  # "added" or "removed"
    toast: ToastNotification


class ToastService(BaseService):
    """Holds the active toasts and streams add/remove events to subscribers."""

    def __init__(self, ttl: float = 5.0):
        self.ttl = ttl
        self._active: Dict[int, ToastNotification] = {}
        self._timers: Dict[int, asyncio.TimerHandle] = {}
        self._subscribers: List[asyncio.Queue] = []

    @property
    def active(self) -> List[ToastNotification]:
        return list(self._active.values())

    def add(self, message: str, title: Optional[str] = None) -> ToastNotification:
        toast = ToastNotification(id=new_client_id(), message=message, title=title)
        self._active[toast.id] = toast
        self._emit(ToastEvent("added", toast))
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No loop: the toast stays until removed explicitly.
            return toast
        self._timers[toast.id] = loop.call_later(self.ttl, self.remove, toast.id)
        return toast

    def remove(self, toast_id: int) -> None:
        timer = self._timers.pop(toast_id, None)
        if timer:
            timer.cancel()
        toast = self._active.pop(toast_id, None)
        if toast:
            self._emit(ToastEvent("removed", toast))

    def subscribe(self) -> asyncio.Queue:
        queue: asyncio.Queue = asyncio.Queue()
        self._subscribers.append(queue)
        return queue

    def unsubscribe(self, queue: asyncio.Queue) -> None:
        if queue in self._subscribers:
            self._subscribers.remove(queue)

    def _emit(self, event: ToastEvent) -> None:
        for queue in self._subscribers:
            queue.put_nowait(event)

    def close(self) -> None:
        for timer in self._timers.values():
            timer.cancel()
        self._timers.clear()
        self._active.clear()
        self._subscribers.clear()
