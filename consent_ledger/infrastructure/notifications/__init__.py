from .logging_notifier import (
    LoggingNotificationService,
    RecordingNotificationService,
    SentNotification,
)

__all__ = [
    "LoggingNotificationService",
    "RecordingNotificationService",
    "SentNotification",
]
