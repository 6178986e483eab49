"""
Best-effort out-of-band change signal between concurrently open sessions.
A session that committed a reconcile batch broadcasts the collection key; every
other subscribed session re-fetches on its own schedule.
"""

import logging
from typing import Callable, Dict

logger = logging.getLogger(__name__)

ChangeHandler = Callable[[str, str], None]


class ChangeSignal:
    """In-process broker shared by the sessions of one process."""

    def __init__(self):
        self._subscribers: Dict[str, ChangeHandler] = {}

    def subscribe(self, session_id: str, handler: ChangeHandler) -> None:
        self._subscribers[session_id] = handler

    def unsubscribe(self, session_id: str) -> None:
        self._subscribers.pop(session_id, None)

    def broadcast(self, key: str, origin: str) -> int:
        """
        Tell every other session that `key` changed.

        Returns:
            Number of sessions signalled
        """
        delivered = 0
        for session_id, handler in list(self._subscribers.items()):
            if session_id == origin:
                continue
            try:
                handler(key, origin)
                delivered += 1
            except Exception:
                logger.exception(f"Change handler of session {session_id} failed", extra={"key": key})
        return delivered
