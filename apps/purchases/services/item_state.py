"""
Purchase item lifecycle rules.

``plan_status`` only moves forward along ``awaiting -> ready -> active``.
The one exception is :func:`override_plan_status`, which administrators use
to correct a plan by hand.
"""

from django.db import transaction

from config.logging import get_logger

from ..exceptions import (
    FormIncompleteError,
    InvalidDateRangeError,
    InvalidStateTransitionError,
    MissingDatesError,
    PurchaseItemNotFoundError,
)
from ..models import PLAN_STATUS_RANK, FormStatus, PlanStatus, PurchaseItem

logger = get_logger(__name__)


def can_advance(current, target):
    """Return True when ``target`` is strictly later in the lifecycle."""
    return PLAN_STATUS_RANK[PlanStatus(target)] > PLAN_STATUS_RANK[PlanStatus(current)]


def advance_plan_status(item, target):
    """
    Move ``item`` forward to ``target`` in memory.

    Raises:
        InvalidStateTransitionError: ``target`` is not ahead of the current status.
    """
    if not can_advance(item.plan_status, target):
        raise InvalidStateTransitionError(
            f"Cannot move plan from '{item.plan_status}' to '{target}'."
        )
    item.plan_status = target


def get_item(item_id, *, for_update=False):
    queryset = PurchaseItem.objects.all()
    if for_update:
        queryset = queryset.select_for_update()
    try:
        return queryset.get(id=item_id)
    except (PurchaseItem.DoesNotExist, ValueError):
        raise PurchaseItemNotFoundError(f"Purchase item {item_id} not found.")


@transaction.atomic
def update_form_status(*, item_id, status):
    """Write ``form_status`` directly; ``completed`` also flags the response."""
    item = get_item(item_id, for_update=True)
    item.form_status = FormStatus(status)
    update_fields = ['form_status', 'updated_at']
    if item.form_status == FormStatus.COMPLETED and not item.has_form_response:
        item.has_form_response = True
        update_fields.append('has_form_response')
    item.save(update_fields=update_fields)
    return item


@transaction.atomic
def mark_plan_ready(*, item_id, content=None):
    """
    Publish the prepared plan for an item (``awaiting -> ready``).

    Args:
        item_id: Purchase item to publish.
        content (dict, optional): Plan body shown in the admin preview and to
            the customer.

    Returns:
        PurchaseItem: The updated item.

    Raises:
        PurchaseItemNotFoundError: Unknown item.
        FormIncompleteError: The onboarding form is not completed. A saved
            draft (``has_form_response`` without ``completed``) is not enough.
        InvalidStateTransitionError: The plan is already ready or active.
    """
    item = get_item(item_id, for_update=True)

    if item.form_status != FormStatus.COMPLETED:
        raise FormIncompleteError(
            f"Form for item {item.id} is '{item.form_status}', expected 'completed'."
        )

    advance_plan_status(item, PlanStatus.READY)
    update_fields = ['plan_status', 'updated_at']
    if content is not None:
        item.plan_content = content
        update_fields.append('plan_content')
    item.save(update_fields=update_fields)

    logger.info('plan_marked_ready', item_id=str(item.id))
    return item


@transaction.atomic
def override_plan_status(*, item_id, status, changed_by=None):
    """
    Set ``plan_status`` without the forward-only check.

    Dates are left untouched. Overriding to ``active`` still requires a
    valid window so the active-plan invariant holds.
    """
    item = get_item(item_id, for_update=True)
    status = PlanStatus(status)

    if status == PlanStatus.ACTIVE:
        if not item.has_dates:
            raise MissingDatesError('Set start and end dates before activating.', [item.id])
        if not item.has_valid_window:
            raise InvalidDateRangeError('End date must not be before start date.', [item.id])

    previous = item.plan_status
    item.plan_status = status
    item.save(update_fields=['plan_status', 'updated_at'])

    logger.warning(
        'plan_status_overridden',
        item_id=str(item.id),
        previous=previous,
        status=status.value,
        changed_by=str(changed_by.pk) if changed_by else None,
    )
    return item


@transaction.atomic
def set_plan_dates(*, item_id, start_date, end_date):
    """
    Persist the validity window of an item.

    Either date may be cleared with ``None`` unless the plan is already
    active. When both are given, ``end_date`` must not precede
    ``start_date``.
    """
    item = get_item(item_id, for_update=True)

    if start_date and end_date and end_date < start_date:
        raise InvalidDateRangeError('End date must not be before start date.', [item.id])

    if item.plan_status == PlanStatus.ACTIVE and not (start_date and end_date):
        raise MissingDatesError('Active plans must keep both dates.', [item.id])

    item.start_date = start_date
    item.end_date = end_date
    item.save(update_fields=['start_date', 'end_date', 'updated_at'])
    return item
