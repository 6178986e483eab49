"""
Best-employee designation schemas.
"""

from enum import Enum

from pydantic import Field

from timesheet_pro.schemas.base import WireModel


class DesignationPeriod(str, Enum):
    MONTH = "MONTH"
    YEAR = "YEAR"


class BestEmployee(WireModel):
    id: int
    user_id: int = Field(alias="user_id")
    type: DesignationPeriod
    month: str = ""
    year: int
