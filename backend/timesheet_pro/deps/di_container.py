"""
Dependency injection container using dependency-injector.
Wires one login session: HTTP client, repositories, store and services.
"""

from typing import Optional

from dependency_injector import containers, providers

from timesheet_pro.core.config import Settings, settings as default_settings
from timesheet_pro.core.integrations.alerts import Alerter
from timesheet_pro.core.integrations.http.http_client import HttpClient
from timesheet_pro.repositories.collection_repositories import build_repositories
from timesheet_pro.services.aggregation_service import AggregationService
from timesheet_pro.services.approval_service import ApprovalService
from timesheet_pro.services.best_employee_service import BestEmployeeService
from timesheet_pro.services.notification_delivery import NotificationDelivery
from timesheet_pro.services.notification_service import NotificationService
from timesheet_pro.services.project_service import ProjectService
from timesheet_pro.services.reconciliation_service import ReconciliationService
from timesheet_pro.services.task_service import TaskService
from timesheet_pro.services.toast_service import ToastService
from timesheet_pro.store.change_signal import ChangeSignal
from timesheet_pro.store.collection_store import NOTIFICATIONS, CollectionStore


class SessionContainer(containers.DeclarativeContainer):
    """Dependency injection container of one session."""

    # Configuration
    config = providers.Configuration()

    # Collaborators supplied by the caller
    alerter = providers.Dependency(instance_of=Alerter)
    change_signal = providers.Dependency(instance_of=ChangeSignal)

    # Remote store access
    http_client = providers.Singleton(
        HttpClient,
        base_url=config.api_base_url,
        token=config.token,
        timeout=config.http_timeout,
        max_retries=config.http_max_retries,
        retry_delay=config.http_retry_delay,
    )

    repositories = providers.Singleton(
        build_repositories,
        client=http_client,
    )

    # Session state
    store = providers.Singleton(
        CollectionStore,
    )

    # Services
    toasts = providers.Singleton(
        ToastService,
        ttl=config.toast_ttl,
    )

    reconciler = providers.Singleton(
        ReconciliationService,
        store=store,
        repositories=repositories,
        toasts=toasts,
        signal=change_signal,
        session_id=config.session_id,
        commit_policy=config.commit_policy,
    )

    notifications = providers.Singleton(
        NotificationService,
        store=store,
        reconciler=reconciler,
        toasts=toasts,
    )

    approvals = providers.Singleton(
        ApprovalService,
        store=store,
        reconciler=reconciler,
        notifications=notifications,
        toasts=toasts,
    )

    aggregation = providers.Singleton(
        AggregationService,
        store=store,
        reconciler=reconciler,
    )

    projects = providers.Singleton(
        ProjectService,
        store=store,
        reconciler=reconciler,
        aggregation=aggregation,
        toasts=toasts,
    )

    tasks = providers.Singleton(
        TaskService,
        store=store,
        reconciler=reconciler,
        notifications=notifications,
        toasts=toasts,
    )

    best_employees = providers.Singleton(
        BestEmployeeService,
        store=store,
        reconciler=reconciler,
        toasts=toasts,
    )

    delivery = providers.Singleton(
        NotificationDelivery,
        store=store,
        repository=repositories.provided[NOTIFICATIONS],
        alerter=alerter,
        toasts=toasts,
        actor_id=config.actor_id,
        interval=config.poll_interval,
    )


def build_container(
    actor_id: int,
    token: str,
    session_id: str,
    alerter: Alerter,
    change_signal: ChangeSignal,
    settings: Optional[Settings] = None,
) -> SessionContainer:
    """Create a container configured from settings for one session."""
    settings = settings or default_settings
    container = SessionContainer(
        alerter=providers.Object(alerter),
        change_signal=providers.Object(change_signal),
    )
    container.config.from_dict({
        "api_base_url": settings.API_BASE_URL,
        "token": token,
        "http_timeout": settings.HTTP_TIMEOUT_SECONDS,
        "http_max_retries": settings.HTTP_MAX_RETRIES,
        "http_retry_delay": settings.HTTP_RETRY_DELAY,
        "toast_ttl": settings.TOAST_TTL_SECONDS,
        "poll_interval": settings.NOTIFICATION_POLL_INTERVAL_SECONDS,
        "commit_policy": settings.RECONCILE_COMMIT_POLICY,
        "session_id": session_id,
        "actor_id": actor_id,
    })
    return container
