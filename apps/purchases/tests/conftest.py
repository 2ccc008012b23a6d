import pytest
from datetime import date
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from apps.accounts.models import User
from apps.purchases.models import (
    FormStatus,
    PlanStatus,
    Product,
    ProductType,
    Purchase,
    PurchaseItem,
    PurchaseStatus,
)


def make_item(purchase, product, **overrides):
    """Create a purchase item copying name and type from the product."""
    fields = {
        'purchase': purchase,
        'product': product,
        'product_name': product.name,
        'product_type': product.type,
    }
    fields.update(overrides)
    return PurchaseItem.objects.create(**fields)


@pytest.fixture
def api_client():
    """Return an unauthenticated API client."""
    return APIClient()


@pytest.fixture
def customer(db):
    """Create and return a customer."""
    return User.objects.create_user(
        email='maria@example.com',
        password='TestPass123!',
        display_name='Maria Silva',
    )


@pytest.fixture
def other_customer(db):
    """Create and return a second customer."""
    return User.objects.create_user(
        email='joao@example.com',
        password='TestPass123!',
        display_name='Joao Costa',
    )


@pytest.fixture
def plan_admin(db):
    """Create and return a plan administrator."""
    return User.objects.create_user(
        email='admin@example.com',
        password='AdminPass123!',
        display_name='Plan Admin',
        is_staff=True,
    )


@pytest.fixture
def customer_client(api_client, customer):
    """Return API client authenticated as the customer."""
    refresh = RefreshToken.for_user(customer)
    api_client.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
    return api_client


@pytest.fixture
def other_client(other_customer):
    """Return API client authenticated as the second customer."""
    client = APIClient()
    refresh = RefreshToken.for_user(other_customer)
    client.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
    return client


@pytest.fixture
def admin_client(plan_admin):
    """Return API client authenticated as the plan administrator."""
    client = APIClient()
    refresh = RefreshToken.for_user(plan_admin)
    client.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
    return client


@pytest.fixture
def meal_product(db):
    return Product.objects.create(name='Meal Plan Basic', type=ProductType.MEAL)


@pytest.fixture
def workout_product(db):
    return Product.objects.create(name='Workout Plan Pro', type=ProductType.WORKOUT)


@pytest.fixture
def combo_product(db):
    return Product.objects.create(name='Combo Meal + Workout', type=ProductType.COMBO)


@pytest.fixture
def purchase(customer):
    """Approved purchase owned by the customer."""
    return Purchase.objects.create(
        user=customer,
        external_id='cs_test_001',
        status=PurchaseStatus.APPROVED,
    )


@pytest.fixture
def other_purchase(other_customer):
    return Purchase.objects.create(
        user=other_customer,
        external_id='cs_test_002',
        status=PurchaseStatus.APPROVED,
    )


@pytest.fixture
def meal_item(purchase, meal_product):
    """Meal item with a completed form, waiting for its plan."""
    return make_item(
        purchase,
        meal_product,
        form_status=FormStatus.COMPLETED,
        has_form_response=True,
    )


@pytest.fixture
def workout_item(purchase, workout_product):
    """Workout item whose form is still pending."""
    return make_item(purchase, workout_product)


@pytest.fixture
def combo_item(purchase, combo_product):
    return make_item(purchase, combo_product)


@pytest.fixture
def dated_items(purchase, meal_product, workout_product, combo_product):
    """Three ready items with a valid March 2024 window."""
    return [
        make_item(
            purchase,
            product,
            form_status=FormStatus.COMPLETED,
            has_form_response=True,
            plan_status=PlanStatus.READY,
            start_date=date(2024, 3, 1),
            end_date=date(2024, 3, 31),
        )
        for product in (meal_product, workout_product, combo_product)
    ]
