"""
Wire decoding tests for the record schemas.
"""

from datetime import date

import pytest
from pydantic import TypeAdapter

from timesheet_pro.core.exceptions import AuthorizationError, InvalidTransitionError, describe_error
from timesheet_pro.schemas import (
    HalfDaySession,
    LeaveEntry,
    LeaveRequest,
    LeaveType,
    Notification,
    Project,
    SubmittableRecord,
    Task,
    Timesheet,
)
from timesheet_pro.schemas.records import SubmittableRecordBase
from timesheet_pro.utils.dates import normalize_date


def test_normalize_date_accepts_iso_datetimes():
    assert normalize_date("2024-05-02") == date(2024, 5, 2)
    assert normalize_date("2024-05-02T00:00:00.000Z") == date(2024, 5, 2)
    assert normalize_date("not a date") == "not a date"


def test_timesheet_decodes_json_encoded_project_work():
    record = Timesheet.model_validate({
        "id": 1,
        "userId": 2,
        "status": "Approved",
        "approverId": 1,
        "date": "2024-05-02T00:00:00.000Z",
        "projectWork": '[{"projectId": 100, "workEntries": [{"description": "dev", "hours": 3.5}]}]',
    })
    assert record.date == date(2024, 5, 2)
    assert record.hours_for_project(100) == 3.5
    assert record.status.is_terminal


def test_leave_request_details_column():
    record = LeaveRequest.model_validate({
        "id": 1,
        "user_id": 2,
        "details": [{"date": "2024-06-10", "leaveType": "Half Day"}],
    })
    assert record.owner_id == 2
    assert record.leave_entries[0].half_day_session == HalfDaySession.FIRST_HALF


def test_full_day_entries_carry_no_session():
    entry = LeaveEntry(date="2024-06-10", leave_type=LeaveType.FULL_DAY, half_day_session=HalfDaySession.SECOND_HALF)
    assert entry.half_day_session is None


def test_records_are_an_explicit_tagged_variant():
    adapter = TypeAdapter(SubmittableRecord)
    leave = adapter.validate_python({"kind": "leave_request", "id": 1, "userId": 2})
    timesheet = adapter.validate_python({"kind": "timesheet", "id": 2, "userId": 2, "date": "2024-05-02"})
    assert isinstance(leave, LeaveRequest)
    assert isinstance(timesheet, Timesheet)
    assert "kind" not in timesheet.to_wire()


def test_notification_is_read_column():
    notification = Notification.model_validate({
        "id": 1,
        "userId": 2,
        "title": "t",
        "message": "m",
        "isRead": 1,
        "createdAt": "2024-05-02 10:00:00",
    })
    assert notification.read is True
    assert notification.created_at.tzinfo is not None
    assert notification.to_wire()["userId"] == 2


def test_project_and_task_list_columns():
    project = Project.model_validate({"id": 1, "company": "acme", "teamIds": "[2, 3]"})
    task = Task.model_validate({"id": 1, "projectId": 1, "assignedTo": None, "completionDate": ""})
    assert project.team_ids == [2, 3]
    assert project.to_wire()["company"] == "acme"
    assert task.assigned_to == []
    assert task.completion_date is None


def test_describe_error_payload():
    payload = describe_error(InvalidTransitionError("already approved", details={"id": 1}))
    assert payload == {"error": {"code": "invalid_transition", "message": "already approved", "details": {"id": 1}}}
    assert isinstance(InvalidTransitionError("x"), AuthorizationError)


def test_record_base_is_abstract():
    with pytest.raises(TypeError):
        SubmittableRecordBase(id=1, owner_id=2)
    assert LeaveRequest(id=1, owner_id=2).describe() == ""
