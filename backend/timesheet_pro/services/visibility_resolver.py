"""
Visibility resolver.

Pure functions mapping a reviewing actor to the submitted records they may see
and decide on:

- Manager: every record owned by a member of the same company.
- Company admin: same, minus records owned by managers.
- Team leader: records of direct reports (owner.manager_id == reviewer.id), not transitive.
- Anyone else: nothing.

Records whose owner is not in the roster are never reviewable.
"""

from typing import Dict, Iterable, List, Optional, Sequence, Set, TypeVar

from timesheet_pro.schemas.actor import Actor, Role
from timesheet_pro.schemas.project import Project
from timesheet_pro.schemas.records import LeaveRequest, Status, Timesheet
from timesheet_pro.schemas.review import PendingCounts, ReviewFilters, ReviewQueue, ReviewSort

RecordT = TypeVar("RecordT", Timesheet, LeaveRequest)


def same_company(actor: Actor, other: Actor) -> bool:
    return actor.company_id is not None and actor.company_id == other.company_id


def company_members(actor: Actor, roster: Iterable[Actor]) -> List[Actor]:
    """Actors of the actor's company; a super-admin sees everybody."""
    if actor.role == Role.SUPERADMIN:
        return list(roster)
    return [member for member in roster if same_company(actor, member)]


def direct_reports(reviewer: Actor, roster: Iterable[Actor]) -> List[Actor]:
    return [member for member in company_members(reviewer, roster) if member.manager_id == reviewer.id]


def reviewable_owner_ids(reviewer: Actor, roster: Sequence[Actor]) -> Set[int]:
    if reviewer.role == Role.MANAGER:
        return {member.id for member in company_members(reviewer, roster)}
    if reviewer.role == Role.ADMIN:
        return {
            member.id
            for member in company_members(reviewer, roster)
            if member.role != Role.MANAGER
        }
    if reviewer.role == Role.TEAM_LEADER:
        return {member.id for member in direct_reports(reviewer, roster)}
    return set()


def resolve(reviewer: Actor, roster: Sequence[Actor], records: Iterable[RecordT]) -> List[RecordT]:
    """Reviewable subset of `records`, in input order."""
    owner_ids = reviewable_owner_ids(reviewer, roster)
    return [record for record in records if record.owner_id in owner_ids]


def can_review(reviewer: Actor, roster: Sequence[Actor], record: RecordT) -> bool:
    return record.owner_id in reviewable_owner_ids(reviewer, roster)


def pending_counts(
    reviewer: Actor,
    roster: Sequence[Actor],
    timesheets: Iterable[Timesheet],
    leave_requests: Iterable[LeaveRequest],
) -> PendingCounts:
    """Badge counts of actionable items."""
    return PendingCounts(
        timesheets=sum(1 for t in resolve(reviewer, roster, timesheets) if t.status == Status.PENDING),
        leave_requests=sum(1 for r in resolve(reviewer, roster, leave_requests) if r.status == Status.PENDING),
    )


def _search_text(record: RecordT, owner: Actor, projects: Dict[int, Project]) -> str:
    parts = [owner.name]
    if isinstance(record, Timesheet):
        for pw in record.project_work:
            project = projects.get(pw.project_id)
            parts.append(project.name if project else "")
            parts.extend(entry.description for entry in pw.work_entries)
    else:
        parts.append(record.reason)
    return " ".join(parts).lower()


def build_review_queue(
    reviewer: Actor,
    roster: Sequence[Actor],
    records: Iterable[RecordT],
    projects: Iterable[Project] = (),
    filters: Optional[ReviewFilters] = None,
) -> ReviewQueue:
    """
    Split the reviewer's resolved set into the pending queue and the history.

    Date, search and project filters apply to both lists; the status filter
    applies to the history only. Both lists are sorted by owner name or
    employee code.
    """
    filters = filters or ReviewFilters()
    owners = {member.id: member for member in roster}
    projects_by_id = {project.id: project for project in projects}
    items = resolve(reviewer, roster, records)

    if filters.on_date:
        items = [item for item in items if filters.on_date in item.dates()]
    if filters.search:
        query = filters.search.lower()
        items = [item for item in items if query in _search_text(item, owners[item.owner_id], projects_by_id)]
    if filters.project_id is not None:
        items = [
            item for item in items
            if isinstance(item, Timesheet)
            and any(pw.project_id == filters.project_id for pw in item.project_work)
        ]

    by_name = filters.sort_by in (ReviewSort.NAME_ASC, ReviewSort.NAME_DESC)
    descending = filters.sort_by in (ReviewSort.NAME_DESC, ReviewSort.EMPLOYEE_ID_DESC)
    items.sort(
        key=lambda item: owners[item.owner_id].name.lower() if by_name else owners[item.owner_id].employee_id,
        reverse=descending,
    )

    pending = [item for item in items if item.status == Status.PENDING]
    history = [item for item in items if item.status != Status.PENDING]
    if filters.status:
        history = [item for item in history if item.status == filters.status]
    return ReviewQueue(pending=pending, history=history)
