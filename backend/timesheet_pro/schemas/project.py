"""
Project and task schemas.
"""

import datetime as dt
from enum import Enum
from typing import Any, List, Optional

from pydantic import Field, field_validator

from timesheet_pro.schemas.base import WireModel, decode_json_list
from timesheet_pro.utils.dates import normalize_date


class ProjectStatus(str, Enum):
    NOT_STARTED = "Not Started"
    IN_PROGRESS = "In Progress"
    ON_HOLD = "On Hold"
    COMPLETED = "Completed"


class Project(WireModel):
    """A project. `actual_hours` is derived from approved timesheets and never authored."""
    id: int
    name: str = ""
    description: str = ""
    company_id: Optional[str] = Field(None, alias="company")
    manager_id: Optional[int] = None
    team_leader_id: Optional[int] = None
    team_ids: List[int] = Field(default_factory=list)
    customer_name: str = ""
    job_name: str = ""
    estimated_hours: float = 0
    actual_hours: float = 0
    status: ProjectStatus = ProjectStatus.NOT_STARTED

    @field_validator("team_ids", mode="before")
    @classmethod
    def decode_team_ids(cls, value: Any) -> Any:
        return decode_json_list(value)


class TaskStatus(str, Enum):
    TODO = "To Do"
    IN_PROGRESS = "In Progress"
    DONE = "Done"


class TaskImportance(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


class Task(WireModel):
    id: int
    project_id: int
    title: str = ""
    description: str = ""
    assigned_to: List[int] = Field(default_factory=list)
    status: TaskStatus = TaskStatus.TODO
    importance: TaskImportance = TaskImportance.MEDIUM
    deadline: Optional[dt.date] = None
    completion_date: Optional[dt.date] = None

    @field_validator("assigned_to", mode="before")
    @classmethod
    def decode_assigned_to(cls, value: Any) -> Any:
        return decode_json_list(value)

    @field_validator("deadline", "completion_date", mode="before")
    @classmethod
    def normalize_dates(cls, value: Any) -> Any:
        if value in ("", None):
            return None
        return normalize_date(value)
