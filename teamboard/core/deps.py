"""
Dependency injection utilities
"""
import uuid
from typing import Optional

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from teamboard.config import settings
from teamboard.core.database import get_db
from teamboard.core.db_types import as_uuid
from teamboard.core.exceptions import AuthenticationError
from teamboard.services.kanban_service import KanbanService
from teamboard.services.notification_service import LoggingNotificationSink, NotificationSink


def get_current_actor(request: Request) -> Optional[uuid.UUID]:
    """
    Resolve the caller from the identity header set by the upstream identity
    provider. Returns None when the caller is anonymous; the service layer
    turns that into an authentication error.
    """
    return as_uuid(request.headers.get(settings.identity_header))


def require_actor(actor: Optional[uuid.UUID] = Depends(get_current_actor)) -> uuid.UUID:
    """Same as get_current_actor but rejects anonymous callers up front"""
    if actor is None:
        raise AuthenticationError("Unauthorized")
    return actor


def get_notification_sink() -> NotificationSink:
    return LoggingNotificationSink()


def get_kanban_service(
    db: AsyncSession = Depends(get_db),
    notifier: NotificationSink = Depends(get_notification_sink)
) -> KanbanService:
    return KanbanService(db, notifier=notifier)
