"""Server-side notification outbox."""

from django.db import transaction
from django.utils import timezone

from config.logging import get_logger

from .models import NotificationType, UserNotification

logger = get_logger(__name__)

# Outbox kinds shown with a non-default notification type
KIND_TYPES = {
    'plan_activation': NotificationType.SUCCESS,
}


def enqueue_user_notification(*, user, title, message, kind, item=None):
    return UserNotification.objects.create(
        user=user,
        item=item,
        title=title,
        message=message,
        kind=kind,
    )


@transaction.atomic
def deliver_pending(store, user):
    """
    Move undelivered outbox rows for ``user`` into their notification log.

    Rows are delivered oldest first so the newest ends up on top of the log.

    Returns:
        int: Number of delivered notifications.
    """
    pending = list(
        UserNotification.objects
        .select_for_update()
        .filter(user=user, delivered_at__isnull=True)
        .order_by('created_at', 'id')
    )
    for row in pending:
        store.add(
            KIND_TYPES.get(row.kind, NotificationType.INFO),
            row.title,
            row.message,
            link=f'/plans/{row.item_id}' if row.item_id else None,
            link_text='View plan' if row.item_id else None,
        )

    if pending:
        UserNotification.objects.filter(id__in=[row.id for row in pending]).update(
            delivered_at=timezone.now()
        )
        logger.info('outbox_delivered', user_id=str(user.pk), count=len(pending))
    return len(pending)
