"""
Notification fan-out.

Turns domain events (submission, review decision, task assignment,
announcement) into notification records and persists them through the
reconciler. Also owns the per-actor notification views and the dismissal
operations, which are always scoped to the acting recipient.
"""

import logging
from itertools import groupby
from typing import Iterable, List, Optional, Sequence

from timesheet_pro.core.exceptions import AuthorizationError, RecordNotFoundError, ValidationError
from timesheet_pro.schemas.actor import LEADERSHIP_ROLES, Actor, Role
from timesheet_pro.schemas.notification import Notification, NotificationLink
from timesheet_pro.schemas.project import Project, Task
from timesheet_pro.schemas.records import LeaveRequest, Status, Timesheet
from timesheet_pro.services.base_service import BaseService
from timesheet_pro.services.reconciliation_service import ReconciliationService
from timesheet_pro.services.toast_service import ToastService
from timesheet_pro.services.visibility_resolver import company_members
from timesheet_pro.store.collection_store import NOTIFICATIONS, USERS, CollectionStore
from timesheet_pro.utils.dates import utcnow
from timesheet_pro.utils.ids import new_client_id

logger = logging.getLogger(__name__)


def submission_recipient(owner: Actor, projects: Iterable[Project]) -> Optional[int]:
    """
    Pick the reviewer to notify about a new submission.

    The owner's manager_id wins. A base contributor without one falls back to
    the team leader of the projects they belong to, but only when exactly one
    distinct team leader leads all of them; otherwise nobody is notified.
    """
    if owner.manager_id:
        return owner.manager_id
    if owner.role != Role.EMPLOYEE:
        return None
    leaders = {
        project.team_leader_id
        for project in projects
        if owner.id in project.team_ids and project.team_leader_id
    }
    if len(leaders) == 1:
        return leaders.pop()
    logger.debug(
        f"No submission recipient for user {owner.id}",
        extra={"team_leader_count": len(leaders)},
    )
    return None


def build_announcement(members: Sequence[Actor], title: str, message: str) -> List[Notification]:
    """One record per member; ids combine a shared timestamp with the member id."""
    stamp = new_client_id()
    created_at = utcnow()
    return [
        Notification(
            id=stamp + member.id,
            recipient_id=member.id,
            title=title,
            message=message,
            created_at=created_at,
            is_announcement=True,
        )
        for member in members
    ]


class NotificationService(BaseService):
    """Produces and manages persisted notifications."""

    def __init__(self, store: CollectionStore, reconciler: ReconciliationService, toasts: ToastService):
        self.store = store
        self.reconciler = reconciler
        self.toasts = toasts

    async def _add_all(self, notifications: List[Notification]) -> List[Notification]:
        committed = await self.reconciler.apply(NOTIFICATIONS, lambda items: items + notifications)
        saved = [self.reconciler.find_committed(committed, n.id) for n in notifications]
        return [n for n in saved if n is not None]

    async def add(
        self,
        recipient_id: int,
        title: str,
        message: str,
        link_to: Optional[str] = None,
    ) -> Optional[Notification]:
        """Persist one notification; returns it as committed, or None when it was not."""
        notification = Notification(
            id=new_client_id(),
            recipient_id=recipient_id,
            title=title,
            message=message,
            link_to=link_to,
        )
        committed = await self.reconciler.apply(NOTIFICATIONS, lambda items: items + [notification])
        return self.reconciler.find_committed(committed, notification.id)

    async def notify_submission(self, owner: Actor, record, projects: Iterable[Project]) -> Optional[Notification]:
        recipient_id = submission_recipient(owner, projects)
        if recipient_id is None:
            return None
        if isinstance(record, Timesheet):
            return await self.add(
                recipient_id,
                "New Timesheet Submission",
                f"{owner.name} ({owner.role.value}) has submitted a timesheet for review.",
                NotificationLink.TEAM_TIMESHEETS,
            )
        return await self.add(
            recipient_id,
            "New Leave Request",
            f"{owner.name} ({owner.role.value}) has submitted a leave request for approval.",
            NotificationLink.TEAM_LEAVE,
        )

    async def notify_review_decision(self, reviewer: Actor, record, status: Status) -> Optional[Notification]:
        """Exactly one notification to the record owner."""
        if isinstance(record, LeaveRequest):
            title, subject, link = f"Leave Request {status.value}", "leave request", NotificationLink.LEAVE
        else:
            title, subject, link = f"Timesheet {status.value}", "timesheet", NotificationLink.TIMESHEETS
        return await self.add(
            record.owner_id,
            title,
            f"Your {subject} for {record.describe()} has been {status.value.lower()} by {reviewer.name}.",
            link,
        )

    async def notify_task_assignment(
        self,
        assigner: Actor,
        task: Task,
        previous_assignees: Iterable[int],
        project: Optional[Project] = None,
    ) -> List[Notification]:
        """Notify only actors newly present in the task's assignee set."""
        already = set(previous_assignees)
        newcomers = [user_id for user_id in task.assigned_to if user_id not in already]
        if not newcomers:
            return []
        project_name = project.name if project else ""
        created = [
            Notification(
                id=new_client_id(),
                recipient_id=user_id,
                title="New Task Assigned",
                message=f'{assigner.name} assigned you a new task: "{task.title}" in project {project_name}.',
                link_to=NotificationLink.TASKS,
            )
            for user_id in newcomers
        ]
        return await self._add_all(created)

    async def broadcast_announcement(self, sender: Actor, title: str, message: str) -> List[Notification]:
        """
        Send an announcement to every member of the sender's company.

        Raises:
            AuthorizationError: sender is not a company-admin, manager or team leader
            ValidationError: title or message is blank
        """
        if sender.role not in LEADERSHIP_ROLES:
            self.toasts.add("You do not have permission to send announcements.", "Error")
            raise AuthorizationError("You do not have permission to send announcements.")
        if not title.strip() or not message.strip():
            raise ValidationError("Title and message are required", details={"title": title, "message": message})
        members = company_members(sender, self.store.get(USERS))
        created = await self._add_all(build_announcement(members, title, message))
        logger.info(f"Announcement sent to {len(created)} users", extra={"sender": sender.id})
        self.toasts.add("Your announcement has been sent to all users.", "Announcement Sent")
        return created

    def for_actor(self, actor: Actor) -> List[Notification]:
        """The actor's notifications, newest first."""
        own = [n for n in self.store.get(NOTIFICATIONS) if n.recipient_id == actor.id]
        return sorted(own, key=lambda n: n.created_at, reverse=True)

    def unread_count(self, actor: Actor) -> int:
        return sum(1 for n in self.for_actor(actor) if not n.read)

    def announcement_history(self) -> List[Notification]:
        """One representative per broadcast, newest first."""
        announcements = sorted(
            (n for n in self.store.get(NOTIFICATIONS) if n.is_announcement),
            key=lambda n: n.grouping_key,
        )
        history = [next(group) for _, group in groupby(announcements, key=lambda n: n.grouping_key)]
        return sorted(history, key=lambda n: n.created_at, reverse=True)

    async def dismiss(self, actor: Actor, notification_id: int) -> None:
        """Permanently delete one of the actor's notifications."""
        notification = self.store.find(NOTIFICATIONS, notification_id)
        if notification is None:
            raise RecordNotFoundError(f"Notification {notification_id} not found")
        if notification.recipient_id != actor.id:
            raise AuthorizationError("You can only dismiss your own notifications.")
        await self.reconciler.apply(
            NOTIFICATIONS,
            lambda items: [n for n in items if n.id != notification_id],
        )

    async def dismiss_all(self, actor: Actor) -> None:
        await self.reconciler.apply(
            NOTIFICATIONS,
            lambda items: [n for n in items if n.recipient_id != actor.id],
        )

    async def mark_all_read(self, actor: Actor) -> None:
        await self.reconciler.apply(
            NOTIFICATIONS,
            lambda items: [
                n.model_copy(update={"read": True}) if n.recipient_id == actor.id else n
                for n in items
            ],
        )
