"""
Domain exceptions for the notifications app.

Exception Hierarchy:
    NotificationServiceError (base)
    └── NotificationNotFoundError
"""


class NotificationServiceError(Exception):
    """Base exception for notification errors."""
    pass


class NotificationNotFoundError(NotificationServiceError):
    """Notification is not in the user's log."""
    pass
