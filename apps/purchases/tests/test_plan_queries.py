import pytest
from datetime import datetime, timedelta
from unittest.mock import patch
from django.db import DatabaseError
from django.test import override_settings
from django.utils import timezone
from apps.accounts.models import User
from apps.purchases.exceptions import TransientFetchError
from apps.purchases.models import ActivationRecord, PlanStatus, Purchase, ProductType
from apps.purchases.services import (
    PendingFilters,
    get_activation_history,
    get_pending_counters,
    list_pending_items,
)
from apps.purchases.services import plan_queries
from .conftest import make_item


@pytest.fixture
def pending_catalog(purchase, other_purchase, meal_product, workout_product, combo_product):
    """
    Twelve awaiting items spread over two customers plus two non-pending ones.

    Maria Silva owns 4 meal + 2 workout items, Joao Costa owns 3 meal +
    2 workout + 1 combo item.
    """
    items = []
    for _ in range(4):
        items.append(make_item(purchase, meal_product))
    for _ in range(2):
        items.append(make_item(purchase, workout_product))
    for _ in range(3):
        items.append(make_item(other_purchase, meal_product))
    for _ in range(2):
        items.append(make_item(other_purchase, workout_product))
    items.append(make_item(other_purchase, combo_product))

    make_item(purchase, meal_product, plan_status=PlanStatus.READY)
    make_item(other_purchase, meal_product, plan_status=PlanStatus.ACTIVE)
    return items


@pytest.mark.django_db
class TestListPendingItems:

    def test_only_awaiting_items_are_listed(self, pending_catalog):
        page = list_pending_items(page_size=50)

        assert page.total == 12
        assert {item.plan_status for item in page.items} == {PlanStatus.AWAITING}

    def test_type_and_search_filter(self, pending_catalog):
        filters = PendingFilters(product_type='meal', search='maria')

        page = list_pending_items(filters, page_size=50)

        assert page.total == 4
        for item in page.items:
            assert item.product_type == ProductType.MEAL
            assert (
                'maria' in item.product_name.lower()
                or 'maria' in item.purchase.user.display_name.lower()
            )

    def test_search_matches_item_title(self, pending_catalog):
        page = list_pending_items(PendingFilters(search='COMBO'), page_size=50)

        assert page.total == 1
        assert page.items[0].product_type == ProductType.COMBO

    def test_pages_have_no_duplicates_or_gaps(self, pending_catalog):
        first = list_pending_items(page=1)
        second = list_pending_items(page=2)

        assert first.page_size == 8
        assert first.page_count == 2
        assert len(first.items) == 8
        assert len(second.items) == 4
        seen = [item.id for item in first.items + second.items]
        assert len(seen) == len(set(seen)) == 12
        assert set(seen) == {item.id for item in pending_catalog}

    def test_page_out_of_range_is_empty(self, pending_catalog):
        page = list_pending_items(page=99)

        assert page.items == []
        assert page.page_count == 2
        assert page.total == 12

    def test_page_zero_is_empty(self, pending_catalog):
        assert list_pending_items(page=0).items == []

    def test_no_pending_items(self, db):
        page = list_pending_items()

        assert page.total == 0
        assert page.page_count == 0
        assert page.items == []

    def test_sort_by_title_is_stable(self, pending_catalog):
        filters = PendingFilters(sort_by='title', sort_order='desc')

        first_render = [item.id for item in list_pending_items(filters, page_size=50).items]
        second_render = [item.id for item in list_pending_items(filters, page_size=50).items]

        assert first_render == second_render
        names = [item.product_name for item in list_pending_items(filters, page_size=50).items]
        assert names == sorted(names, reverse=True)

    def test_default_order_is_newest_first(self, pending_catalog):
        created = [item.created_at for item in list_pending_items(page_size=50).items]

        assert created == sorted(created, reverse=True)

    def test_last_page_is_partial(self, pending_catalog):
        page = list_pending_items(page=3, page_size=5)

        assert len(page.items) == 2
        assert page.page_count == 3

    def test_read_failure_is_transient(self, pending_catalog):
        with patch.object(plan_queries, 'pending_queryset', side_effect=DatabaseError('timeout')):
            with pytest.raises(TransientFetchError):
                list_pending_items()


@pytest.mark.django_db
class TestPendingCounters:

    def test_counts_per_type(self, pending_catalog):
        counters = get_pending_counters()

        assert counters['total_pending'] == 12
        assert counters['pending_by_type'] == {'meal': 7, 'workout': 4, 'combo': 1}
        assert counters['activated_today'] == 0

    @override_settings(TIME_ZONE='America/Sao_Paulo')
    def test_activated_today_uses_local_midnight(self, dated_items):
        tz = timezone.get_current_timezone()
        now = timezone.make_aware(datetime(2024, 3, 10, 10, 0), tz)
        local_midnight = timezone.make_aware(datetime(2024, 3, 10, 0, 0), tz)

        ActivationRecord.objects.create(
            item=dated_items[0], plan_type='meal', activated_at=local_midnight + timedelta(minutes=5)
        )
        ActivationRecord.objects.create(
            item=dated_items[1], plan_type='workout', activated_at=local_midnight - timedelta(minutes=5)
        )

        assert get_pending_counters(now=now)['activated_today'] == 1


@pytest.mark.django_db
class TestActivationHistory:

    def test_newest_first_and_limited(self, dated_items):
        base = timezone.now()
        for offset, item in enumerate(dated_items):
            ActivationRecord.objects.create(
                item=item, plan_type=item.product_type, activated_at=base + timedelta(minutes=offset)
            )

        history = get_activation_history(limit=2)

        assert [record.item_id for record in history] == [dated_items[2].id, dated_items[1].id]

    def test_default_limit(self, dated_items, settings):
        settings.ACTIVATION_HISTORY_LIMIT = 1
        for item in dated_items:
            ActivationRecord.objects.create(item=item, plan_type=item.product_type)

        assert len(get_activation_history()) == 1
