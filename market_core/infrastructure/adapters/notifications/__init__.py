from .logging_notification_service import LoggingNotificationService

__all__ = ["LoggingNotificationService"]
