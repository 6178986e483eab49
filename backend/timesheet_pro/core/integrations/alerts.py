"""
Boundary to the platform alerting primitive (desktop/browser notifications).
The engine only decides when to alert; showing the alert belongs to the platform.
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Callable, List, Optional, Tuple
import logging

logger = logging.getLogger(__name__)


class AlertPermission(str, Enum):
    """Permission states reported by the platform."""
    UNDETERMINED = "default"
    GRANTED = "granted"
    DENIED = "denied"


class Alerter(ABC):
    """Platform alerting collaborator."""

    @abstractmethod
    def permission(self) -> AlertPermission:
        """Current permission state."""

    @abstractmethod
    async def request_permission(self) -> AlertPermission:
        """Ask the user for permission and return the resulting state."""

    @abstractmethod
    def show(self, title: str, body: str, on_click: Optional[Callable[[], None]] = None) -> None:
        """Display a titled message; `on_click` runs when the user interacts with it."""


class LoggingAlerter(Alerter):
    """
    Fallback alerter for headless sessions: records alerts in the log.
    Permission starts undetermined and is granted on request.
    """

    def __init__(self, permission: AlertPermission = AlertPermission.UNDETERMINED):
        self._permission = permission
        self.shown: List[Tuple[str, str]] = []

    def permission(self) -> AlertPermission:
        return self._permission

    async def request_permission(self) -> AlertPermission:
        if self._permission == AlertPermission.UNDETERMINED:
            self._permission = AlertPermission.GRANTED
        return self._permission

    def show(self, title: str, body: str, on_click: Optional[Callable[[], None]] = None) -> None:
        self.shown.append((title, body))
        logger.info(f"Alert: {title}", extra={"body": body})
