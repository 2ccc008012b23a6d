"""
Plan Activation Service
=======================

Administrator operation that assigns a validity window to prepared plans and
flips them to ``active``.

A batch is validated up front: if any item lacks a date, has an inverted
window, or the batch is empty, nothing is written. After that each item is
its own unit of work:

    1. lock the row, check the transition, set ``plan_status=active`` and
       the dates (failure -> the item is reported in ``failed``)
    2. append an :class:`ActivationRecord` (failure -> warning)
    3. enqueue a notification for the purchaser (failure -> warning)

Steps 2 and 3 never roll back step 1. The result is returned only after
every item has been processed.

Example::

    from apps.purchases.services import activate_plans

    for item in items:
        item.start_date, item.end_date = date(2024, 3, 1), date(2024, 3, 31)
    result = activate_plans(items, activated_by=request.user)
    if result.is_partial:
        ...
"""

from dataclasses import dataclass, field
from typing import List

from django.db import DatabaseError, transaction

from apps.notifications.outbox import enqueue_user_notification
from config.logging import get_logger

from ..exceptions import (
    EmptyBatchError,
    InvalidDateRangeError,
    MissingDatesError,
    PurchaseServiceError,
)
from ..models import ActivationRecord, PlanStatus
from .item_state import advance_plan_status, get_item

logger = get_logger(__name__)

BULK_SCOPE = 'bulk'

STEP_HISTORY = 'history'
STEP_NOTIFICATION = 'notification'


@dataclass
class ActivationFailure:
    item_id: str
    reason: str


@dataclass
class SecondaryWriteWarning:
    """A best-effort write that failed after the plan was activated."""
    item_id: str
    step: str
    message: str


@dataclass
class ActivationResult:
    scope: str
    activated: List[str] = field(default_factory=list)
    failed: List[ActivationFailure] = field(default_factory=list)
    warnings: List[SecondaryWriteWarning] = field(default_factory=list)

    @property
    def activated_count(self):
        return len(self.activated)

    @property
    def failed_count(self):
        return len(self.failed)

    @property
    def is_partial(self):
        return bool(self.activated) and bool(self.failed)


def validate_batch(items):
    """
    Check every item before any write.

    Raises:
        EmptyBatchError: No items.
        MissingDatesError: Some item lacks ``start_date`` or ``end_date``.
        InvalidDateRangeError: Some item ends before it starts.
    """
    if not items:
        raise EmptyBatchError('Select at least one plan to activate.')

    missing = [item.id for item in items if not item.has_dates]
    if missing:
        raise MissingDatesError(
            'Every selected plan needs a start and end date.', missing
        )

    inverted = [item.id for item in items if not item.has_valid_window]
    if inverted:
        raise InvalidDateRangeError(
            'End date must not be before start date.', inverted
        )


def _unique(items):
    seen = set()
    unique = []
    for item in items:
        if item.id not in seen:
            seen.add(item.id)
            unique.append(item)
    return unique


@transaction.atomic
def _activate_item(item):
    locked = get_item(item.id, for_update=True)
    advance_plan_status(locked, PlanStatus.ACTIVE)
    locked.start_date = item.start_date
    locked.end_date = item.end_date
    locked.save(update_fields=['plan_status', 'start_date', 'end_date', 'updated_at'])
    return locked


def _write_activation_record(item, activated_by):
    with transaction.atomic():
        return ActivationRecord.objects.create(
            item=item,
            plan_type=item.product_type,
            activated_by=activated_by,
        )


def _notify_purchaser(item):
    start = item.start_date.strftime('%d/%m/%Y')
    end = item.end_date.strftime('%d/%m/%Y')
    with transaction.atomic():
        return enqueue_user_notification(
            user=item.purchase.user,
            title='Plan activated',
            message=f'Your plan "{item.product_name}" is active from {start} to {end}.',
            kind='plan_activation',
            item=item,
        )


def activate_plans(items, *, activated_by=None, bulk=None):
    """
    Activate a batch of purchase items.

    Args:
        items (list[PurchaseItem]): Items carrying the requested
            ``start_date``/``end_date`` (not yet saved). Duplicates are
            activated once.
        activated_by (User, optional): Administrator performing the action.
        bulk (bool, optional): Force the result scope. Defaults to bulk when
            more than one item is given.

    Returns:
        ActivationResult

    Raises:
        ActivationValidationError: The batch failed validation; nothing was
            written.
    """
    items = _unique(items)
    validate_batch(items)

    if bulk is None:
        bulk = len(items) > 1
    result = ActivationResult(scope=BULK_SCOPE if bulk else str(items[0].id))

    for item in items:
        item_id = str(item.id)
        try:
            activated = _activate_item(item)
        except (PurchaseServiceError, DatabaseError) as exc:
            logger.warning('plan_activation_failed', item_id=item_id, error=str(exc))
            result.failed.append(ActivationFailure(item_id=item_id, reason=str(exc)))
            continue

        result.activated.append(item_id)

        try:
            _write_activation_record(activated, activated_by)
        except DatabaseError as exc:
            logger.warning('activation_history_write_failed', item_id=item_id, error=str(exc))
            result.warnings.append(SecondaryWriteWarning(
                item_id=item_id,
                step=STEP_HISTORY,
                message='Plan activated, but the activation could not be recorded.',
            ))

        try:
            _notify_purchaser(activated)
        except DatabaseError as exc:
            logger.warning('activation_notification_failed', item_id=item_id, error=str(exc))
            result.warnings.append(SecondaryWriteWarning(
                item_id=item_id,
                step=STEP_NOTIFICATION,
                message='Plan activated, but the customer could not be notified.',
            ))

    logger.info(
        'plans_activated',
        scope=result.scope,
        activated=result.activated_count,
        failed=result.failed_count,
        warnings=len(result.warnings),
        activated_by=str(activated_by.pk) if activated_by else None,
    )
    return result


def activate_plan(item, *, activated_by=None):
    """Activate a single item; a batch of one."""
    return activate_plans([item], activated_by=activated_by, bulk=False)
