from django.db import models
from django.core.exceptions import ValidationError
from django.utils import timezone
import uuid

from .exceptions import ActivationRecordImmutableError


class ProductType(models.TextChoices):
    MEAL = 'meal', 'Meal plan'
    WORKOUT = 'workout', 'Workout plan'
    COMBO = 'combo', 'Meal + workout combo'


class PurchaseStatus(models.TextChoices):
    PENDING = 'pending', 'Pending'
    APPROVED = 'approved', 'Approved'
    CANCELLED = 'cancelled', 'Cancelled'
    REFUNDED = 'refunded', 'Refunded'


class FormStatus(models.TextChoices):
    NOT_STARTED = 'not_started', 'Not started'
    PENDING = 'pending', 'Pending'
    IN_PROGRESS = 'in_progress', 'In progress'
    COMPLETED = 'completed', 'Completed'


class PlanStatus(models.TextChoices):
    AWAITING = 'awaiting', 'Awaiting'
    READY = 'ready', 'Ready'
    ACTIVE = 'active', 'Active'


# Lifecycle position; plan status only moves to a higher rank
PLAN_STATUS_RANK = {
    PlanStatus.AWAITING: 0,
    PlanStatus.READY: 1,
    PlanStatus.ACTIVE: 2,
}


class FormType(models.TextChoices):
    MEAL = 'meal', 'Dietary questionnaire'
    WORKOUT = 'workout', 'Training questionnaire'


class Product(models.Model):
    """Sellable plan product (meal, workout or combo)."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=200)
    type = models.CharField(max_length=20, choices=ProductType.choices)
    active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'products'
        ordering = ['name']

    def __str__(self):
        return f"{self.name} ({self.type})"


class Purchase(models.Model):
    """Completed checkout; owns one or more purchase items."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    user = models.ForeignKey(
        'accounts.User',
        on_delete=models.CASCADE,
        related_name='purchases'
    )

    # Identifier assigned by the checkout provider
    external_id = models.CharField(max_length=100, blank=True, db_index=True)
    status = models.CharField(
        max_length=20,
        choices=PurchaseStatus.choices,
        default=PurchaseStatus.APPROVED
    )
    purchase_date = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'purchases'
        indexes = [
            models.Index(fields=['user', 'status'], name='purchases_user_status_idx'),
        ]
        ordering = ['-purchase_date', '-created_at']

    def __str__(self):
        return f"Purchase {self.external_id or self.id} ({self.status})"


class PurchaseItem(models.Model):
    """
    One purchasable unit within a purchase and its lifecycle state.

    The state is a pair: ``form_status`` tracks the onboarding questionnaire
    and ``plan_status`` tracks the prepared plan. ``has_form_response`` is
    stored separately because a draft response may exist while the form
    still reads pending.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    purchase = models.ForeignKey(
        Purchase,
        on_delete=models.CASCADE,
        related_name='items'
    )
    product = models.ForeignKey(
        Product,
        on_delete=models.PROTECT,
        related_name='purchase_items'
    )

    # Copied from the product at ingestion so renames don't rewrite history
    product_name = models.CharField(max_length=200)
    product_type = models.CharField(max_length=20, choices=ProductType.choices)

    form_status = models.CharField(
        max_length=20,
        choices=FormStatus.choices,
        default=FormStatus.PENDING
    )
    plan_status = models.CharField(
        max_length=20,
        choices=PlanStatus.choices,
        default=PlanStatus.AWAITING
    )
    has_form_response = models.BooleanField(default=False)

    # Validity window, required before activation
    start_date = models.DateField(null=True, blank=True)
    end_date = models.DateField(null=True, blank=True)

    plan_content = models.JSONField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'purchase_items'
        indexes = [
            models.Index(fields=['plan_status', 'created_at'], name='items_plan_status_idx'),
            models.Index(fields=['plan_status', 'product_type'], name='items_plan_type_idx'),
            models.Index(fields=['form_status'], name='items_form_status_idx'),
        ]
        ordering = ['created_at', 'id']

    def __str__(self):
        return f"{self.product_name} [{self.form_status}/{self.plan_status}]"

    @property
    def title(self):
        return self.product_name

    @property
    def has_dates(self):
        return self.start_date is not None and self.end_date is not None

    @property
    def has_valid_window(self):
        """Both dates set and the window is not inverted."""
        return self.has_dates and self.end_date >= self.start_date

    @property
    def is_partial(self):
        """A response was saved but the form was never completed."""
        return self.has_form_response and self.form_status != FormStatus.COMPLETED

    def clean(self):
        if self.plan_status == PlanStatus.ACTIVE and not self.has_valid_window:
            raise ValidationError(
                'Active plans need a start and end date with end >= start.'
            )


class FormResponse(models.Model):
    """Onboarding questionnaire answers; at most one per purchase item."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    item = models.OneToOneField(
        PurchaseItem,
        on_delete=models.CASCADE,
        related_name='form_response'
    )
    user = models.ForeignKey(
        'accounts.User',
        on_delete=models.CASCADE,
        related_name='form_responses'
    )

    form_type = models.CharField(max_length=20, choices=FormType.choices)
    version = models.PositiveIntegerField(default=1)
    responses = models.JSONField(default=dict)
    is_draft = models.BooleanField(default=False)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'form_responses'
        ordering = ['-updated_at']

    def __str__(self):
        state = 'draft' if self.is_draft else 'submitted'
        return f"{self.form_type} form for {self.item_id} ({state})"


class ActivationRecord(models.Model):
    """
    Append-only log entry written once per activated item.

    Instances can be created but never changed or deleted through the ORM
    instance API.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    item = models.ForeignKey(
        PurchaseItem,
        on_delete=models.PROTECT,
        related_name='activations'
    )
    plan_type = models.CharField(max_length=20, choices=ProductType.choices)
    activated_at = models.DateTimeField(default=timezone.now)
    activated_by = models.ForeignKey(
        'accounts.User',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='plan_activations'
    )

    class Meta:
        db_table = 'plan_activations'
        indexes = [
            models.Index(fields=['activated_at'], name='activations_at_idx'),
        ]
        ordering = ['-activated_at']

    def __str__(self):
        return f"{self.plan_type} plan {self.item_id} activated at {self.activated_at:%Y-%m-%d %H:%M}"

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ActivationRecordImmutableError('Activation records cannot be modified.')
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ActivationRecordImmutableError('Activation records cannot be deleted.')
