"""
Repositories of the mirrored collections.
"""

from typing import Dict

from timesheet_pro.core.integrations.http.http_client import HttpClient
from timesheet_pro.repositories.base_repository import BaseRepository
from timesheet_pro.schemas.actor import Actor
from timesheet_pro.schemas.best_employee import BestEmployee
from timesheet_pro.schemas.notification import Notification
from timesheet_pro.schemas.project import Project, Task
from timesheet_pro.schemas.records import LeaveRequest, Timesheet
from timesheet_pro.store import collection_store as keys


class UserRepository(BaseRepository[Actor]):
    def __init__(self, client: HttpClient):
        super().__init__(Actor, client, "users", "user")


class ProjectRepository(BaseRepository[Project]):
    def __init__(self, client: HttpClient):
        super().__init__(Project, client, "projects", "project")


class TaskRepository(BaseRepository[Task]):
    def __init__(self, client: HttpClient):
        super().__init__(Task, client, "tasks", "task")


class TimesheetRepository(BaseRepository[Timesheet]):
    def __init__(self, client: HttpClient):
        super().__init__(Timesheet, client, "timesheets", "timesheet")


class LeaveRequestRepository(BaseRepository[LeaveRequest]):
    def __init__(self, client: HttpClient):
        super().__init__(LeaveRequest, client, "leave_requests", "leave request")


class NotificationRepository(BaseRepository[Notification]):
    def __init__(self, client: HttpClient):
        super().__init__(Notification, client, "notifications", "notification")


class BestEmployeeRepository(BaseRepository[BestEmployee]):
    def __init__(self, client: HttpClient):
        super().__init__(BestEmployee, client, "best_employees", "best employee")


def build_repositories(client: HttpClient) -> Dict[str, BaseRepository]:
    """One repository per collection key."""
    return {
        keys.USERS: UserRepository(client),
        keys.PROJECTS: ProjectRepository(client),
        keys.TASKS: TaskRepository(client),
        keys.TIMESHEETS: TimesheetRepository(client),
        keys.LEAVE_REQUESTS: LeaveRequestRepository(client),
        keys.NOTIFICATIONS: NotificationRepository(client),
        keys.BEST_EMPLOYEES: BestEmployeeRepository(client),
    }
