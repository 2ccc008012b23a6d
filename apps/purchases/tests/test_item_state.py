import pytest
from datetime import date
from unittest.mock import patch
from django.core.exceptions import ValidationError
from django.db import DatabaseError
from apps.purchases.exceptions import (
    FormIncompleteError,
    InvalidDateRangeError,
    InvalidStateTransitionError,
    MissingDatesError,
    PurchaseItemNotFoundError,
)
from apps.purchases.models import FormStatus, PlanStatus, PurchaseItem
from apps.purchases.services import (
    can_advance,
    mark_plan_ready,
    override_plan_status,
    set_plan_dates,
    update_form_status,
)


class TestCanAdvance:
    """Forward-only plan lifecycle."""

    @pytest.mark.parametrize('current,target', [
        ('awaiting', 'ready'),
        ('awaiting', 'active'),
        ('ready', 'active'),
    ])
    def test_forward_moves_allowed(self, current, target):
        assert can_advance(current, target) is True

    @pytest.mark.parametrize('current,target', [
        ('active', 'awaiting'),
        ('active', 'ready'),
        ('ready', 'awaiting'),
        ('ready', 'ready'),
        ('active', 'active'),
    ])
    def test_backward_and_same_moves_refused(self, current, target):
        assert can_advance(current, target) is False


@pytest.mark.django_db
class TestMarkPlanReady:

    def test_completed_form_moves_to_ready(self, meal_item):
        item = mark_plan_ready(item_id=meal_item.id, content={'days': 7})

        assert item.plan_status == PlanStatus.READY
        meal_item.refresh_from_db()
        assert meal_item.plan_status == PlanStatus.READY
        assert meal_item.plan_content == {'days': 7}

    def test_pending_form_is_refused(self, workout_item):
        with pytest.raises(FormIncompleteError):
            mark_plan_ready(item_id=workout_item.id)

    def test_partial_draft_is_refused(self, workout_item):
        """A saved draft with the form still in progress blocks preparation."""
        workout_item.has_form_response = True
        workout_item.form_status = FormStatus.IN_PROGRESS
        workout_item.save()

        assert workout_item.is_partial
        with pytest.raises(FormIncompleteError):
            mark_plan_ready(item_id=workout_item.id)

        workout_item.refresh_from_db()
        assert workout_item.plan_status == PlanStatus.AWAITING

    def test_ready_plan_cannot_be_marked_again(self, meal_item):
        mark_plan_ready(item_id=meal_item.id)

        with pytest.raises(InvalidStateTransitionError):
            mark_plan_ready(item_id=meal_item.id)

    def test_unknown_item(self, db):
        with pytest.raises(PurchaseItemNotFoundError):
            mark_plan_ready(item_id='9b2f7f5e-0000-4000-8000-000000000000')


@pytest.mark.django_db
class TestOverridePlanStatus:

    def test_override_moves_active_back_to_awaiting(self, dated_items, plan_admin):
        item = dated_items[0]
        item.plan_status = PlanStatus.ACTIVE
        item.save()

        override_plan_status(item_id=item.id, status='awaiting', changed_by=plan_admin)

        item.refresh_from_db()
        assert item.plan_status == PlanStatus.AWAITING
        assert item.start_date == date(2024, 3, 1)
        assert item.end_date == date(2024, 3, 31)

    def test_override_to_active_requires_dates(self, meal_item):
        with pytest.raises(MissingDatesError):
            override_plan_status(item_id=meal_item.id, status='active')

        meal_item.refresh_from_db()
        assert meal_item.plan_status == PlanStatus.AWAITING


@pytest.mark.django_db
class TestSetPlanDates:

    def test_dates_are_saved(self, meal_item):
        set_plan_dates(item_id=meal_item.id, start_date=date(2024, 5, 1), end_date=date(2024, 5, 31))

        meal_item.refresh_from_db()
        assert meal_item.start_date == date(2024, 5, 1)
        assert meal_item.end_date == date(2024, 5, 31)

    def test_inverted_window_is_refused(self, meal_item):
        with pytest.raises(InvalidDateRangeError):
            set_plan_dates(item_id=meal_item.id, start_date=date(2024, 5, 31), end_date=date(2024, 5, 1))

        meal_item.refresh_from_db()
        assert meal_item.start_date is None

    def test_active_plan_cannot_lose_dates(self, dated_items):
        item = dated_items[0]
        item.plan_status = PlanStatus.ACTIVE
        item.save()

        with pytest.raises(MissingDatesError):
            set_plan_dates(item_id=item.id, start_date=None, end_date=None)

    def test_failed_write_keeps_previous_dates(self, dated_items):
        item = dated_items[0]

        with patch.object(PurchaseItem, 'save', side_effect=DatabaseError('disk full')):
            with pytest.raises(DatabaseError):
                set_plan_dates(item_id=item.id, start_date=date(2024, 6, 1), end_date=date(2024, 6, 30))

        item.refresh_from_db()
        assert item.start_date == date(2024, 3, 1)


@pytest.mark.django_db
class TestUpdateFormStatus:

    def test_completed_sets_response_flag(self, workout_item):
        update_form_status(item_id=workout_item.id, status='completed')

        workout_item.refresh_from_db()
        assert workout_item.form_status == FormStatus.COMPLETED
        assert workout_item.has_form_response is True


@pytest.mark.django_db
class TestActivePlanInvariant:

    def test_clean_rejects_active_without_dates(self, meal_item):
        meal_item.plan_status = PlanStatus.ACTIVE

        with pytest.raises(ValidationError):
            meal_item.clean()
