"""
Engine entry point.
Opens a session for an authenticated user and tears it down on logout.
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from timesheet_pro.core.config import settings
from timesheet_pro.core.integrations.alerts import Alerter
from timesheet_pro.core.logging import setup_logging
from timesheet_pro.schemas.actor import SessionIdentity
from timesheet_pro.session import SessionContext
from timesheet_pro.store.change_signal import ChangeSignal

# Sessions opened in this process signal each other through this broker.
process_signal = ChangeSignal()


@asynccontextmanager
async def open_session(
    identity: SessionIdentity,
    token: str,
    alerter: Optional[Alerter] = None,
    start_polling: bool = True,
) -> AsyncIterator[SessionContext]:
    """
    Lifespan of one login session.
    Configures logging, loads every collection and starts polling; closes
    the session on exit.
    """
    # Startup
    setup_logging()
    session = SessionContext(
        identity,
        token,
        alerter=alerter,
        change_signal=process_signal,
        settings=settings,
    )
    await session.load(start_polling=start_polling)

    try:
        yield session
    finally:
        # Shutdown
        await session.close()
