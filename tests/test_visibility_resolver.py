"""
Visibility resolver tests.
"""

from timesheet_pro.schemas import (
    ProjectWork,
    ReviewFilters,
    ReviewSort,
    Status,
    Timesheet,
    WorkEntry,
)
from timesheet_pro.services import visibility_resolver

from conftest import (
    ADMIN,
    EMPLOYEE,
    LONE_LEAD,
    MANAGER,
    OTHER_COMPANY,
    OUTSIDER_C,
    PROJECT_P,
    REPORT_A,
    REPORT_B,
    ROSTER,
    TEAM_LEAD,
)


def timesheet(record_id, owner, status=Status.PENDING, day="2024-05-02", description="feature work"):
    return Timesheet(
        id=record_id,
        owner_id=owner.id,
        status=status,
        date=day,
        project_work=[ProjectWork(project_id=100, work_entries=[WorkEntry(description=description, hours=8)])],
    )


RECORDS = [
    timesheet(1, EMPLOYEE),
    timesheet(2, REPORT_A),
    timesheet(3, REPORT_B, status=Status.APPROVED),
    timesheet(4, OUTSIDER_C),
    timesheet(5, MANAGER),
    timesheet(6, TEAM_LEAD),
    timesheet(7, OTHER_COMPANY),
    timesheet(8, ADMIN),
]


def owners(records):
    return [r.owner_id for r in records]


def test_manager_sees_every_company_record():
    resolved = visibility_resolver.resolve(MANAGER, ROSTER, RECORDS)
    assert [r.id for r in resolved] == [1, 2, 3, 4, 5, 6, 8]


def test_admin_excludes_manager_records():
    resolved = visibility_resolver.resolve(ADMIN, ROSTER, RECORDS)
    assert MANAGER.id not in owners(resolved)
    assert [r.id for r in resolved] == [1, 2, 3, 4, 6, 8]


def test_team_lead_sees_direct_reports_only():
    resolved = visibility_resolver.resolve(TEAM_LEAD, ROSTER, RECORDS)
    assert owners(resolved) == [REPORT_A.id, REPORT_B.id]
    assert OUTSIDER_C.id not in owners(resolved)


def test_team_lead_without_reports_sees_nothing():
    assert visibility_resolver.resolve(LONE_LEAD, ROSTER, RECORDS) == []


def test_employee_sees_nothing():
    assert visibility_resolver.resolve(EMPLOYEE, ROSTER, RECORDS) == []


def test_resolution_is_deterministic():
    first = visibility_resolver.resolve(MANAGER, ROSTER, RECORDS)
    second = visibility_resolver.resolve(MANAGER, ROSTER, RECORDS)
    assert first == second


def test_owner_missing_from_roster_is_not_reviewable():
    orphan = Timesheet(id=99, owner_id=404, date="2024-05-02")
    assert not visibility_resolver.can_review(MANAGER, ROSTER, orphan)


def test_pending_counts_only_count_pending():
    counts = visibility_resolver.pending_counts(TEAM_LEAD, ROSTER, RECORDS, [])
    assert counts.timesheets == 1
    assert counts.leave_requests == 0


def test_review_queue_splits_pending_and_history():
    queue = visibility_resolver.build_review_queue(TEAM_LEAD, ROSTER, RECORDS, [PROJECT_P])
    assert [r.id for r in queue.pending] == [2]
    assert [r.id for r in queue.history] == [3]


def test_review_queue_status_filter_applies_to_history():
    filters = ReviewFilters(status=Status.REJECTED)
    queue = visibility_resolver.build_review_queue(TEAM_LEAD, ROSTER, RECORDS, [PROJECT_P], filters)
    assert [r.id for r in queue.pending] == [2]
    assert queue.history == []


def test_review_queue_search_matches_project_and_owner():
    records = [
        timesheet(1, EMPLOYEE, description="billing"),
        timesheet(2, REPORT_A, description="design"),
    ]
    by_project = visibility_resolver.build_review_queue(
        MANAGER, ROSTER, records, [PROJECT_P], ReviewFilters(search="apollo")
    )
    by_owner = visibility_resolver.build_review_queue(
        MANAGER, ROSTER, records, [PROJECT_P], ReviewFilters(search="ANN")
    )
    assert len(by_project.pending) == 2
    assert [r.id for r in by_owner.pending] == [2]


def test_review_queue_date_filter_and_sorting():
    records = [
        timesheet(1, EMPLOYEE, day="2024-05-02"),
        timesheet(2, REPORT_A, day="2024-05-02"),
        timesheet(3, REPORT_B, day="2024-05-03"),
    ]
    filters = ReviewFilters(on_date="2024-05-02", sort_by=ReviewSort.NAME_DESC)
    queue = visibility_resolver.build_review_queue(MANAGER, ROSTER, records, [PROJECT_P], filters)
    assert [r.id for r in queue.pending] == [1, 2]

    filters = ReviewFilters(sort_by=ReviewSort.EMPLOYEE_ID_DESC)
    queue = visibility_resolver.build_review_queue(MANAGER, ROSTER, records, [PROJECT_P], filters)
    assert [r.id for r in queue.pending] == [3, 2, 1]
