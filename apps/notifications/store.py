"""
Bounded notification log.

The store is an ordered list, newest first, capped at
``settings.NOTIFICATION_LOG_LIMIT`` entries. It never merges or deduplicates
entries; producers such as :class:`ReadyPlanWatcher` decide what to add.

Every mutation is applied in memory and then written to storage under
``notification-storage``. If the write fails the mutation is undone and the
error propagates.
"""

import uuid
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import List, Optional

from django.conf import settings
from django.utils import timezone
from django.utils.dateparse import parse_datetime

from config.logging import get_logger

from .exceptions import NotificationNotFoundError
from .models import NotificationType
from .storage import dump_json, load_json

logger = get_logger(__name__)

STORAGE_KEY = 'notification-storage'


@dataclass
class Notification:
    type: str
    title: str
    message: str
    link: Optional[str] = None
    link_text: Optional[str] = None
    read: bool = False
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_at: datetime = field(default_factory=timezone.now)

    def to_dict(self):
        return asdict(self)

    @classmethod
    def from_dict(cls, data):
        created_at = data.get('created_at')
        if isinstance(created_at, str):
            created_at = parse_datetime(created_at)
        if created_at is None:
            raise ValueError('created_at is required')
        return cls(
            id=str(data['id']),
            type=NotificationType(data['type']).value,
            title=str(data['title']),
            message=str(data['message']),
            link=data.get('link'),
            link_text=data.get('link_text'),
            read=bool(data.get('read', False)),
            created_at=created_at,
        )


class NotificationStore:
    """Notification log for one client, loaded from ``storage`` on creation."""

    def __init__(self, storage, limit=None):
        self.storage = storage
        self.limit = limit or settings.NOTIFICATION_LOG_LIMIT
        self._notifications: List[Notification] = self._load()

    def _load(self):
        raw = load_json(self.storage, STORAGE_KEY, default=[])
        if not isinstance(raw, list):
            logger.warning('notification_log_corrupt', reason='not a list')
            return []
        notifications = []
        for entry in raw:
            try:
                notifications.append(Notification.from_dict(entry))
            except (KeyError, TypeError, ValueError, AttributeError):
                logger.warning('notification_entry_skipped')
        return notifications[:self.limit]

    def _commit(self, notifications):
        previous = self._notifications
        self._notifications = notifications
        try:
            dump_json(self.storage, STORAGE_KEY, [n.to_dict() for n in notifications])
        except Exception:
            self._notifications = previous
            raise

    @property
    def notifications(self):
        return list(self._notifications)

    @property
    def unread_count(self):
        return sum(1 for n in self._notifications if not n.read)

    def get(self, notification_id):
        for notification in self._notifications:
            if notification.id == str(notification_id):
                return notification
        raise NotificationNotFoundError(f"Notification {notification_id} not found.")

    def add(self, type, title, message, link=None, link_text=None):
        """Prepend a new unread notification and drop the oldest past the cap."""
        notification = Notification(
            type=NotificationType(type).value,
            title=title,
            message=message,
            link=link,
            link_text=link_text,
        )
        self._commit([notification, *self._notifications][:self.limit])
        return notification

    def mark_read(self, notification_id):
        target = self.get(notification_id)
        self._commit([
            Notification(**{**n.to_dict(), 'read': True}) if n is target else n
            for n in self._notifications
        ])

    def mark_all_read(self):
        self._commit([
            Notification(**{**n.to_dict(), 'read': True}) for n in self._notifications
        ])

    def remove(self, notification_id):
        target = self.get(notification_id)
        self._commit([n for n in self._notifications if n is not target])

    def clear_all(self):
        self._commit([])
