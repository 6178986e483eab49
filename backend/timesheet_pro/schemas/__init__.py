"""
Record schemas.
Import all schemas here so collaborators can use `timesheet_pro.schemas` directly.
"""

from timesheet_pro.schemas.actor import Actor, Role, SessionIdentity, LEADERSHIP_ROLES
from timesheet_pro.schemas.records import (
    HalfDaySession,
    LeaveEntry,
    LeaveRequest,
    LeaveType,
    ProjectWork,
    RecordKind,
    Status,
    SubmittableRecord,
    Timesheet,
    WorkEntry,
)
from timesheet_pro.schemas.project import Project, ProjectStatus, Task, TaskImportance, TaskStatus
from timesheet_pro.schemas.notification import Notification, NotificationLink, ToastNotification
from timesheet_pro.schemas.best_employee import BestEmployee, DesignationPeriod
from timesheet_pro.schemas.review import PendingCounts, ReviewFilters, ReviewQueue, ReviewSort

__all__ = [
    "Actor",
    "Role",
    "SessionIdentity",
    "LEADERSHIP_ROLES",
    "HalfDaySession",
    "LeaveEntry",
    "LeaveRequest",
    "LeaveType",
    "ProjectWork",
    "RecordKind",
    "Status",
    "SubmittableRecord",
    "Timesheet",
    "WorkEntry",
    "Project",
    "ProjectStatus",
    "Task",
    "TaskImportance",
    "TaskStatus",
    "Notification",
    "NotificationLink",
    "ToastNotification",
    "BestEmployee",
    "DesignationPeriod",
    "PendingCounts",
    "ReviewFilters",
    "ReviewQueue",
    "ReviewSort",
]
