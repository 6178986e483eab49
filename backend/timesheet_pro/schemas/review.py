"""
Review queue schemas returned to reviewing collaborators.
"""

import datetime as dt
from enum import Enum
from typing import List, Optional, Union

from pydantic import BaseModel, Field

from timesheet_pro.schemas.records import LeaveRequest, Status, Timesheet


class ReviewSort(str, Enum):
    NAME_ASC = "name_asc"
    NAME_DESC = "name_desc"
    EMPLOYEE_ID_ASC = "employeeId_asc"
    EMPLOYEE_ID_DESC = "employeeId_desc"


class ReviewFilters(BaseModel):
    """Optional filters for a reviewer's queue; status applies to history only."""
    status: Optional[Status] = None
    on_date: Optional[dt.date] = None
    search: Optional[str] = None
    project_id: Optional[int] = None
    sort_by: ReviewSort = ReviewSort.NAME_ASC


class ReviewQueue(BaseModel):
    """Actionable pending records and read-only history."""
    pending: List[Union[Timesheet, LeaveRequest]] = Field(default_factory=list)
    history: List[Union[Timesheet, LeaveRequest]] = Field(default_factory=list)


class PendingCounts(BaseModel):
    timesheets: int = 0
    leave_requests: int = 0
