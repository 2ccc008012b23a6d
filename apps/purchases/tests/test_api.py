import pytest
from datetime import date
from unittest.mock import patch
from django.db import DatabaseError
from django.urls import reverse
from rest_framework import status
from apps.notifications.storage import UserStateStorage
from apps.purchases.models import ActivationRecord, FormStatus, PlanStatus, PurchaseItem
from apps.purchases.services import AdminWorkspace, plan_queries


# =============================================================================
# Customer endpoints
# =============================================================================

@pytest.mark.django_db
class TestMyPurchases:
    """Tests for GET /api/purchases/"""

    def test_lists_approved_purchases_with_items(self, customer_client, purchase, meal_item, workout_item):
        response = customer_client.get(reverse('purchases:my-purchases'))

        assert response.status_code == status.HTTP_200_OK
        assert len(response.data['purchases']) == 1
        item_ids = {item['id'] for item in response.data['purchases'][0]['items']}
        assert item_ids == {str(meal_item.id), str(workout_item.id)}

    def test_other_customers_purchases_are_hidden(self, other_client, purchase, meal_item):
        response = other_client.get(reverse('purchases:my-purchases'))

        assert response.status_code == status.HTTP_200_OK
        assert response.data['purchases'] == []

    def test_ready_plan_is_announced_once(self, customer_client, meal_item):
        url = reverse('purchases:my-purchases')
        customer_client.get(url)

        PurchaseItem.objects.filter(id=meal_item.id).update(plan_status=PlanStatus.READY)
        first = customer_client.get(url)
        second = customer_client.get(url)

        assert first.data['unread_notifications'] == 1
        assert second.data['unread_notifications'] == 1

    def test_client_state_is_locked_before_refresh(self, customer_client, meal_item):
        with patch.object(UserStateStorage, 'lock', autospec=True) as lock:
            response = customer_client.get(reverse('purchases:my-purchases'))

        assert response.status_code == status.HTTP_200_OK
        lock.assert_called_once()

    def test_unauthenticated(self, api_client):
        response = api_client.get(reverse('purchases:my-purchases'))

        assert response.status_code == status.HTTP_401_UNAUTHORIZED


@pytest.mark.django_db
class TestItemDetail:

    def test_owner_can_view_item(self, customer_client, meal_item):
        response = customer_client.get(reverse('purchases:item-detail', args=[meal_item.id]))

        assert response.status_code == status.HTTP_200_OK
        assert response.data['product_name'] == meal_item.product_name

    def test_other_customer_is_forbidden(self, other_client, meal_item):
        response = other_client.get(reverse('purchases:item-detail', args=[meal_item.id]))

        assert response.status_code == status.HTTP_403_FORBIDDEN


@pytest.mark.django_db
class TestFormEndpoints:
    """Tests for POST /api/purchases/items/{id}/form/ and /form/draft/"""

    def test_submit_form(self, customer_client, workout_item):
        url = reverse('purchases:item-form', args=[workout_item.id])
        response = customer_client.post(
            url,
            {'form_type': 'workout', 'responses': {'goal': 'strength'}},
            format='json',
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.data['success'] is True
        assert response.data['warning'] is None
        workout_item.refresh_from_db()
        assert workout_item.form_status == FormStatus.COMPLETED

    def test_submit_form_with_status_warning(self, customer_client, workout_item):
        url = reverse('purchases:item-form', args=[workout_item.id])
        with patch(
            'apps.purchases.services.form_gateway._mark_form_completed',
            side_effect=DatabaseError('connection reset'),
        ):
            response = customer_client.post(
                url,
                {'form_type': 'workout', 'responses': {'goal': 'strength'}},
                format='json',
            )

        assert response.status_code == status.HTTP_200_OK
        assert response.data['success'] is True
        assert response.data['warning']

    def test_wrong_form_type(self, customer_client, workout_item):
        url = reverse('purchases:item-form', args=[workout_item.id])
        response = customer_client.post(url, {'form_type': 'meal', 'responses': {}}, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_other_customers_item(self, other_client, workout_item):
        url = reverse('purchases:item-form', args=[workout_item.id])
        response = other_client.post(url, {'form_type': 'workout', 'responses': {}}, format='json')

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_save_draft(self, customer_client, workout_item):
        url = reverse('purchases:item-form-draft', args=[workout_item.id])
        response = customer_client.post(url, {'form_type': 'workout', 'responses': {'goal': 'x'}}, format='json')

        assert response.status_code == status.HTTP_200_OK
        assert response.data['response']['is_draft'] is True


@pytest.mark.django_db
class TestStatsAndProducts:

    def test_stats(self, customer_client, meal_item):
        response = customer_client.get(reverse('purchases:my-stats'))

        assert response.status_code == status.HTTP_200_OK
        assert response.data['completed_forms'] == 1
        assert response.data['awaiting_plans'] == 1

    def test_products_excludes_inactive(self, customer_client, meal_product, workout_product):
        workout_product.active = False
        workout_product.save()

        response = customer_client.get(reverse('purchases:products'))

        assert [p['name'] for p in response.data] == [meal_product.name]


# =============================================================================
# Admin plan workspace
# =============================================================================

@pytest.mark.django_db
class TestPendingEndpoint:
    """Tests for GET /api/admin/plans/pending/"""

    def test_customer_is_forbidden(self, customer_client):
        response = customer_client.get(reverse('plan-admin:pending'))

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_filters_and_pagination(self, admin_client, meal_item, workout_item):
        response = admin_client.get(reverse('plan-admin:pending'), {'type': 'meal', 'search': 'MARIA'})

        assert response.status_code == status.HTTP_200_OK
        assert response.data['total'] == 1
        assert response.data['items'][0]['id'] == str(meal_item.id)
        assert response.data['items'][0]['purchaser']['display_name'] == 'Maria Silva'

    def test_page_out_of_range(self, admin_client, meal_item):
        response = admin_client.get(reverse('plan-admin:pending'), {'page': 99})

        assert response.status_code == status.HTTP_200_OK
        assert response.data['items'] == []

    def test_invalid_type_filter(self, admin_client):
        response = admin_client.get(reverse('plan-admin:pending'), {'type': 'combo'})

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_read_failure_returns_503(self, admin_client):
        with patch.object(plan_queries, 'pending_queryset', side_effect=DatabaseError('timeout')):
            response = admin_client.get(reverse('plan-admin:pending'))

        assert response.status_code == status.HTTP_503_SERVICE_UNAVAILABLE

    def test_stats(self, admin_client, meal_item, workout_item):
        response = admin_client.get(reverse('plan-admin:stats'))

        assert response.status_code == status.HTTP_200_OK
        assert response.data['total_pending'] == 2
        assert response.data['pending_by_type']['meal'] == 1


@pytest.mark.django_db
class TestBulkActivationEndpoint:
    """Tests for POST /api/admin/plans/activate/"""

    def test_activates_batch(self, admin_client, dated_items):
        payload = {'items': [{'item_id': str(item.id)} for item in dated_items]}
        response = admin_client.post(reverse('plan-admin:activate-bulk'), payload, format='json')

        assert response.status_code == status.HTTP_200_OK
        assert response.data['scope'] == 'bulk'
        assert response.data['activated_count'] == 3
        assert ActivationRecord.objects.count() == 3

    def test_missing_dates_reject_batch(self, admin_client, dated_items):
        payload = {'items': [
            {'item_id': str(dated_items[0].id)},
            {'item_id': str(dated_items[1].id), 'end_date': None},
        ]}
        response = admin_client.post(reverse('plan-admin:activate-bulk'), payload, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['item_ids'] == [str(dated_items[1].id)]
        assert not PurchaseItem.objects.filter(plan_status=PlanStatus.ACTIVE).exists()

    def test_empty_batch(self, admin_client):
        response = admin_client.post(reverse('plan-admin:activate-bulk'), {'items': []}, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_unknown_item(self, admin_client):
        payload = {'items': [{'item_id': '9b2f7f5e-0000-4000-8000-000000000000'}]}
        response = admin_client.post(reverse('plan-admin:activate-bulk'), payload, format='json')

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_unknown_item_fails_alone(self, admin_client, dated_items):
        unknown_id = '9b2f7f5e-0000-4000-8000-000000000000'
        payload = {'items': [{'item_id': str(dated_items[0].id)}, {'item_id': unknown_id}]}
        response = admin_client.post(reverse('plan-admin:activate-bulk'), payload, format='json')

        assert response.status_code == status.HTTP_200_OK
        assert response.data['activated'] == [str(dated_items[0].id)]
        assert response.data['failed_count'] == 1
        assert response.data['failed'][0]['item_id'] == unknown_id
        assert response.data['is_partial'] is True
        dated_items[0].refresh_from_db()
        assert dated_items[0].plan_status == PlanStatus.ACTIVE

    def test_activation_updates_workspace(self, admin_client, plan_admin, dated_items):
        workspace = AdminWorkspace(UserStateStorage(plan_admin))
        workspace.select([item.id for item in dated_items])
        workspace.open_preview(dated_items[0].id)

        payload = {'items': [{'item_id': str(item.id)} for item in dated_items[:2]]}
        admin_client.post(reverse('plan-admin:activate-bulk'), payload, format='json')

        workspace = AdminWorkspace(UserStateStorage(plan_admin))
        assert workspace.selected == [str(dated_items[2].id)]
        assert workspace.preview is None


@pytest.mark.django_db
class TestSingleItemEndpoints:

    def test_activate_single_with_dates(self, admin_client, meal_item):
        url = reverse('plan-admin:activate', args=[meal_item.id])
        response = admin_client.post(url, {'start_date': '2024-05-01', 'end_date': '2024-05-31'}, format='json')

        assert response.status_code == status.HTTP_200_OK
        assert response.data['scope'] == str(meal_item.id)
        meal_item.refresh_from_db()
        assert meal_item.plan_status == PlanStatus.ACTIVE
        assert meal_item.end_date == date(2024, 5, 31)

    def test_activate_single_without_dates(self, admin_client, meal_item):
        url = reverse('plan-admin:activate', args=[meal_item.id])
        response = admin_client.post(url, {}, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_update_dates(self, admin_client, meal_item):
        url = reverse('plan-admin:dates', args=[meal_item.id])
        response = admin_client.patch(url, {'start_date': '2024-05-01', 'end_date': '2024-05-31'}, format='json')

        assert response.status_code == status.HTTP_200_OK
        meal_item.refresh_from_db()
        assert meal_item.start_date == date(2024, 5, 1)

    def test_update_dates_inverted(self, admin_client, meal_item):
        url = reverse('plan-admin:dates', args=[meal_item.id])
        response = admin_client.patch(url, {'start_date': '2024-05-31', 'end_date': '2024-05-01'}, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_mark_ready(self, admin_client, meal_item):
        url = reverse('plan-admin:ready', args=[meal_item.id])
        response = admin_client.post(url, {'content': {'meals': []}}, format='json')

        assert response.status_code == status.HTTP_200_OK
        assert response.data['plan_status'] == PlanStatus.READY

    def test_mark_ready_with_incomplete_form(self, admin_client, workout_item):
        url = reverse('plan-admin:ready', args=[workout_item.id])
        response = admin_client.post(url, {}, format='json')

        assert response.status_code == status.HTTP_409_CONFLICT

    def test_override(self, admin_client, dated_items):
        item = dated_items[0]
        url = reverse('plan-admin:override', args=[item.id])
        response = admin_client.post(url, {'status': 'awaiting'}, format='json')

        assert response.status_code == status.HTTP_200_OK
        item.refresh_from_db()
        assert item.plan_status == PlanStatus.AWAITING

    def test_history(self, admin_client, dated_items):
        admin_client.post(
            reverse('plan-admin:activate-bulk'),
            {'items': [{'item_id': str(item.id)} for item in dated_items]},
            format='json',
        )

        response = admin_client.get(reverse('plan-admin:history'), {'limit': 2})

        assert response.status_code == status.HTTP_200_OK
        assert len(response.data) == 2
        assert response.data[0]['activated_by']['email'] == 'admin@example.com'


@pytest.mark.django_db
class TestWorkspaceEndpoints:

    def test_select_and_clear(self, admin_client, meal_item, workout_item):
        url = reverse('plan-admin:selection')
        admin_client.post(url, {'item_ids': [str(meal_item.id), str(workout_item.id)]}, format='json')

        response = admin_client.get(url)
        assert response.data['selected'] == [str(meal_item.id), str(workout_item.id)]

        response = admin_client.delete(url, {'item_ids': [str(meal_item.id)]}, format='json')
        assert response.data['selected'] == [str(workout_item.id)]

        response = admin_client.delete(url)
        assert response.data['selected'] == []

    def test_preview(self, admin_client, meal_item):
        url = reverse('plan-admin:preview')

        response = admin_client.post(url, {'item_id': str(meal_item.id)}, format='json')
        assert response.data['preview'] == str(meal_item.id)

        response = admin_client.delete(url)
        assert response.data['preview'] is None
