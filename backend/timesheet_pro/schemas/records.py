"""
Submittable record schemas: timesheets and leave requests.
Both follow the Pending -> Approved | Rejected lifecycle and are distinguished
by an explicit `kind` tag rather than by which payload field is present.
"""

import datetime as dt
from abc import ABC, abstractmethod
from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import Field, field_validator, model_validator

from timesheet_pro.schemas.base import WireModel, decode_json_list
from timesheet_pro.utils.dates import normalize_date


class Status(str, Enum):
    """Review status."""
    PENDING = "Pending"
    APPROVED = "Approved"
    REJECTED = "Rejected"

    @property
    def is_terminal(self) -> bool:
        return self != Status.PENDING


class RecordKind(str, Enum):
    """Submittable record variants, valued by their collection key."""
    TIMESHEET = "timesheets"
    LEAVE_REQUEST = "leave_requests"

    @property
    def label(self) -> str:
        return "timesheet" if self == RecordKind.TIMESHEET else "leave request"


class WorkEntry(WireModel):
    description: str = ""
    hours: float = 0


class ProjectWork(WireModel):
    """Work entries booked against one project (project id 0 = general/admin work)."""
    project_id: int = 0
    work_entries: List[WorkEntry] = Field(default_factory=list)

    @property
    def hours(self) -> float:
        return sum(entry.hours for entry in self.work_entries)


class LeaveType(str, Enum):
    FULL_DAY = "Full Day"
    HALF_DAY = "Half Day"


class HalfDaySession(str, Enum):
    FIRST_HALF = "First Half"
    SECOND_HALF = "Second Half"


class LeaveEntry(WireModel):
    date: dt.date
    leave_type: LeaveType = LeaveType.FULL_DAY
    half_day_session: Optional[HalfDaySession] = None

    @field_validator("date", mode="before")
    @classmethod
    def normalize_date_field(cls, value: Any) -> Any:
        return normalize_date(value)

    @model_validator(mode="after")
    def default_session(self) -> "LeaveEntry":
        """Full days carry no session; half days default to the first half."""
        if self.leave_type == LeaveType.FULL_DAY:
            self.half_day_session = None
        elif self.half_day_session is None:
            self.half_day_session = HalfDaySession.FIRST_HALF
        return self


class SubmittableRecordBase(WireModel, ABC):
    """Common interface of every submittable record; only its variants are instantiated."""
    id: int
    owner_id: int = Field(alias="userId")
    status: Status = Status.PENDING
    approver_id: Optional[int] = None

    def payload(self) -> Dict[str, Any]:
        """Variant-specific content; immutable once the record is terminal."""
        return self.model_dump(
            mode="json",
            exclude={"id", "owner_id", "status", "approver_id", "kind"},
        )

    @property
    @abstractmethod
    def record_kind(self) -> RecordKind:
        ...

    @abstractmethod
    def dates(self) -> List[dt.date]:
        ...

    @abstractmethod
    def describe(self) -> str:
        """Short human description used in notification messages."""


class Timesheet(SubmittableRecordBase):
    kind: Literal["timesheet"] = Field("timesheet", exclude=True)
    date: dt.date
    in_time: str = ""
    out_time: str = ""
    project_work: List[ProjectWork] = Field(default_factory=list)

    @field_validator("date", mode="before")
    @classmethod
    def normalize_date_field(cls, value: Any) -> Any:
        return normalize_date(value)

    @field_validator("project_work", mode="before")
    @classmethod
    def decode_project_work(cls, value: Any) -> Any:
        return decode_json_list(value)

    @property
    def record_kind(self) -> RecordKind:
        return RecordKind.TIMESHEET

    def hours_for_project(self, project_id: int) -> float:
        return sum(pw.hours for pw in self.project_work if pw.project_id == project_id)

    @property
    def total_hours(self) -> float:
        return sum(pw.hours for pw in self.project_work)

    def dates(self) -> List[dt.date]:
        return [self.date]

    def describe(self) -> str:
        return self.date.isoformat()


class LeaveRequest(SubmittableRecordBase):
    kind: Literal["leave_request"] = Field("leave_request", exclude=True)
    leave_entries: List[LeaveEntry] = Field(default_factory=list)
    reason: str = ""

    @model_validator(mode="before")
    @classmethod
    def decode_details(cls, data: Any) -> Any:
        """The store may return leave entries JSON-encoded in `details` and the owner as `user_id`."""
        if not isinstance(data, dict):
            return data
        data = dict(data)
        details = data.pop("details", None)
        if details and not data.get("leaveEntries") and not data.get("leave_entries"):
            data["leaveEntries"] = decode_json_list(details)
        if "userId" not in data and "owner_id" not in data and "user_id" in data:
            data["userId"] = data.pop("user_id")
        return data

    @property
    def record_kind(self) -> RecordKind:
        return RecordKind.LEAVE_REQUEST

    def dates(self) -> List[dt.date]:
        return [entry.date for entry in self.leave_entries]

    def describe(self) -> str:
        return self.leave_entries[0].date.isoformat() if self.leave_entries else ""


SubmittableRecord = Annotated[Union[Timesheet, LeaveRequest], Field(discriminator="kind")]
