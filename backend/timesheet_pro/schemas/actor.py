"""
Actor (user) schemas and the fixed role hierarchy.
"""

from enum import Enum
from typing import Optional

from pydantic import Field

from timesheet_pro.schemas.base import WireModel


class Role(str, Enum):
    """Roles, lowest to highest."""
    EMPLOYEE = "Employee"
    TEAM_LEADER = "Team Leader"
    MANAGER = "Manager"
    ADMIN = "Admin"
    SUPERADMIN = "Superadmin"


# Roles allowed to review, broadcast announcements and manage projects/tasks.
LEADERSHIP_ROLES = (Role.ADMIN, Role.MANAGER, Role.TEAM_LEADER)


class Actor(WireModel):
    """A user of the system."""
    id: int
    name: str = ""
    email: str = ""
    role: Role = Role.EMPLOYEE
    manager_id: Optional[int] = None
    company_id: Optional[str] = Field(None, alias="company")
    employee_id: str = ""
    designation: str = ""


class SessionIdentity(WireModel):
    """Decoded session credential produced by the login collaborator."""
    id: int
    role: Role
    company_id: Optional[str] = None
