"""
Onboarding form intake.

Saving the customer's answers and flipping the item's form status are two
separate writes. The answers are committed first; if the status update
then fails the submission still succeeds and carries a warning, so the
customer never has to type the form again.
"""

from dataclasses import dataclass
from typing import Optional

from django.db import DatabaseError, transaction
from django.utils import timezone

from config.logging import get_logger

from ..exceptions import FormTypeMismatchError, PurchaseItemNotFoundError
from ..models import FormResponse, FormStatus, FormType, ProductType, PurchaseItem

logger = get_logger(__name__)

STATUS_UPDATE_WARNING = 'Form saved, but the item status could not be updated.'

# Questionnaires accepted by each product type
ALLOWED_FORM_TYPES = {
    ProductType.MEAL: {FormType.MEAL},
    ProductType.WORKOUT: {FormType.WORKOUT},
    ProductType.COMBO: {FormType.MEAL, FormType.WORKOUT},
}


@dataclass
class FormSubmission:
    success: bool
    response: Optional[FormResponse] = None
    warning: Optional[str] = None


def _get_owned_item(item_id, user):
    try:
        return PurchaseItem.objects.get(id=item_id, purchase__user=user)
    except (PurchaseItem.DoesNotExist, ValueError):
        raise PurchaseItemNotFoundError(f"Purchase item {item_id} not found.")


def _check_form_type(item, form_type):
    form_type = FormType(form_type)
    if form_type not in ALLOWED_FORM_TYPES[ProductType(item.product_type)]:
        raise FormTypeMismatchError(
            f"A '{form_type}' form does not apply to a '{item.product_type}' product."
        )
    return form_type


def _store_response(item, user, form_type, responses, version, is_draft):
    # One response per item; re-submission overwrites it
    with transaction.atomic():
        response, _ = FormResponse.objects.update_or_create(
            item=item,
            defaults={
                'user': user,
                'form_type': form_type,
                'responses': responses,
                'version': version,
                'is_draft': is_draft,
            },
        )
    return response


def _mark_form_completed(item):
    with transaction.atomic():
        PurchaseItem.objects.filter(id=item.id).update(
            form_status=FormStatus.COMPLETED,
            has_form_response=True,
            updated_at=timezone.now(),
        )


def submit_form(*, item_id, user, form_type, responses, version=1):
    """
    Record a completed onboarding form for a purchase item.

    Args:
        item_id: Item the form belongs to. Must be owned by ``user``.
        user (User): Customer submitting the form.
        form_type (str): ``meal`` or ``workout``.
        responses (dict): Answers keyed by question id.
        version (int): Form schema version.

    Returns:
        FormSubmission: ``success`` is True whenever the answers were stored.
        ``warning`` is set when the item status could not be updated.

    Raises:
        PurchaseItemNotFoundError: Unknown item or owned by another user.
        FormTypeMismatchError: The questionnaire does not fit the product.
    """
    item = _get_owned_item(item_id, user)
    form_type = _check_form_type(item, form_type)

    response = _store_response(item, user, form_type, responses, version, is_draft=False)

    try:
        _mark_form_completed(item)
    except DatabaseError as exc:
        logger.warning(
            'form_status_update_failed',
            item_id=str(item.id),
            response_id=str(response.id),
            error=str(exc),
        )
        return FormSubmission(success=True, response=response, warning=STATUS_UPDATE_WARNING)

    logger.info('form_submitted', item_id=str(item.id), form_type=form_type.value)
    return FormSubmission(success=True, response=response)


def save_form_draft(*, item_id, user, form_type, responses, version=1):
    """Store partial answers; the item moves to ``in_progress`` at most."""
    item = _get_owned_item(item_id, user)
    form_type = _check_form_type(item, form_type)

    completed = item.form_status == FormStatus.COMPLETED
    response = _store_response(item, user, form_type, responses, version, is_draft=not completed)

    update = {'has_form_response': True, 'updated_at': timezone.now()}
    if item.form_status in (FormStatus.NOT_STARTED, FormStatus.PENDING):
        update['form_status'] = FormStatus.IN_PROGRESS

    try:
        with transaction.atomic():
            PurchaseItem.objects.filter(id=item.id).update(**update)
    except DatabaseError as exc:
        logger.warning('form_draft_status_update_failed', item_id=str(item.id), error=str(exc))
        return FormSubmission(success=True, response=response, warning=STATUS_UPDATE_WARNING)

    return FormSubmission(success=True, response=response)
