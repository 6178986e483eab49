"""
Notification schemas: persisted per-actor notifications and ephemeral toasts.
"""

from datetime import datetime
from typing import Any, Optional, Tuple

from pydantic import BaseModel, Field, field_validator, model_validator

from timesheet_pro.schemas.base import WireModel
from timesheet_pro.utils.dates import parse_timestamp, utcnow


class NotificationLink:
    """Screens a notification can link to."""
    TIMESHEETS = "TIMESHEETS"
    LEAVE = "LEAVE"
    TEAM_TIMESHEETS = "TEAM_TIMESHEETS"
    TEAM_LEAVE = "TEAM_LEAVE"
    TASKS = "TASKS"
    DASHBOARD = "DASHBOARD"


class Notification(WireModel):
    """A persisted notification addressed to one actor."""
    id: int
    recipient_id: int = Field(alias="userId")
    title: str
    message: str
    read: bool = False
    dismissed: bool = False
    created_at: datetime = Field(default_factory=utcnow)
    link_to: Optional[str] = None
    is_announcement: bool = False

    @model_validator(mode="before")
    @classmethod
    def map_store_columns(cls, data: Any) -> Any:
        """The store names the read flag `isRead`."""
        if isinstance(data, dict) and "isRead" in data:
            data = dict(data)
            is_read = data.pop("isRead")
            data.setdefault("read", is_read)
        return data

    @field_validator("created_at", mode="before")
    @classmethod
    def parse_created_at(cls, value: Any) -> Any:
        return parse_timestamp(value) or utcnow()

    @field_validator("read", "dismissed", "is_announcement", mode="before")
    @classmethod
    def coerce_flags(cls, value: Any) -> Any:
        return bool(value) if value is not None else False

    @property
    def grouping_key(self) -> Tuple[str, str]:
        """Records of one broadcast share creation time and title."""
        return (self.created_at.isoformat(), self.title)


class ToastNotification(BaseModel):
    """Ephemeral, process-local message. Never persisted or synced."""
    id: int
    message: str
    title: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)
