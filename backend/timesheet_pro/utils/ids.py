"""
Client-provisional id generation.
"""

import time

_last_id = 0


def new_client_id() -> int:
    """
    Return a millisecond timestamp usable as a provisional record id.
    Ids are strictly increasing within the process even when called twice in one millisecond.
    """
    global _last_id
    candidate = time.time_ns() // 1_000_000
    _last_id = max(candidate, _last_id + 1)
    return _last_id
