"""
User-facing notification sink

The board UI shows success/error toasts for every card operation. The
service layer only hands messages to a sink; delivery is someone else's job
and a failing sink never changes the outcome of the operation.
"""
import enum
import logging

from teamboard.core.logging import get_logger

logger = get_logger(__name__)


class NotificationLevel(str, enum.Enum):
    SUCCESS = "success"
    INFO = "info"
    ERROR = "error"


class NotificationSink:
    """Receives user-facing messages produced by card operations"""

    def notify(self, level: NotificationLevel, message: str) -> None:
        raise NotImplementedError


class LoggingNotificationSink(NotificationSink):
    """Default sink: writes notifications to the application log"""

    LEVELS = {
        NotificationLevel.SUCCESS: logging.INFO,
        NotificationLevel.INFO: logging.INFO,
        NotificationLevel.ERROR: logging.WARNING,
    }

    def notify(self, level: NotificationLevel, message: str) -> None:
        logger.log(self.LEVELS.get(level, logging.INFO), f"[{level.value}] {message}")


class RecordingNotificationSink(NotificationSink):
    """Keeps notifications in memory; used by tests and request-scoped collection"""

    def __init__(self):
        self.messages = []

    def notify(self, level: NotificationLevel, message: str) -> None:
        self.messages.append((level, message))

    def of_level(self, level: NotificationLevel):
        return [message for recorded, message in self.messages if recorded == level]


def send_notification(sink: NotificationSink, level: NotificationLevel, message: str) -> None:
    """Fire-and-forget delivery to ``sink``"""
    if sink is None:
        return
    try:
        sink.notify(level, message)
    except Exception as e:
        logger.error(f"Notification sink failed: {e}")
