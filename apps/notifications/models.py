from django.db import models
import uuid


class NotificationType(models.TextChoices):
    INFO = 'info', 'Info'
    SUCCESS = 'success', 'Success'
    WARNING = 'warning', 'Warning'
    ERROR = 'error', 'Error'


class UserNotification(models.Model):
    """
    Server-side outbox row for a customer.

    Written by backend workflows such as plan activation and moved into the
    customer's notification log the next time they load their purchases.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    user = models.ForeignKey(
        'accounts.User',
        on_delete=models.CASCADE,
        related_name='outbox_notifications'
    )
    item = models.ForeignKey(
        'purchases.PurchaseItem',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='notifications'
    )

    title = models.CharField(max_length=200)
    message = models.TextField()
    kind = models.CharField(max_length=50)

    created_at = models.DateTimeField(auto_now_add=True)
    delivered_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = 'user_notifications'
        indexes = [
            models.Index(fields=['user', 'delivered_at'], name='outbox_user_delivered_idx'),
        ]
        ordering = ['created_at']

    def __str__(self):
        return f"{self.kind} for {self.user_id}: {self.title}"


class ClientStateEntry(models.Model):
    """Durable per-user key/value entry; values are JSON text."""

    user = models.ForeignKey(
        'accounts.User',
        on_delete=models.CASCADE,
        related_name='client_state'
    )
    key = models.CharField(max_length=100)
    value = models.TextField(blank=True, default='')

    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'client_state_entries'
        constraints = [
            models.UniqueConstraint(fields=['user', 'key'], name='unique_client_state_key'),
        ]

    def __str__(self):
        return f"{self.user_id}:{self.key}"
