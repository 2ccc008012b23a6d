import pytest
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from apps.accounts.models import User
from apps.purchases.models import Product, ProductType, Purchase


@pytest.fixture
def api_client():
    """Return an unauthenticated API client."""
    return APIClient()


@pytest.fixture
def memory_storage():
    """Plain dict standing in for per-user storage."""
    return {}


@pytest.fixture
def customer(db):
    """Create and return a customer."""
    return User.objects.create_user(
        email='maria@example.com',
        password='TestPass123!',
        display_name='Maria Silva',
    )


@pytest.fixture
def customer_client(customer):
    """Return API client authenticated as the customer."""
    client = APIClient()
    refresh = RefreshToken.for_user(customer)
    client.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
    return client


@pytest.fixture
def meal_item(customer):
    """Awaiting meal plan item owned by the customer."""
    product = Product.objects.create(name='Meal Plan Basic', type=ProductType.MEAL)
    purchase = Purchase.objects.create(user=customer)
    return purchase.items.create(
        product=product,
        product_name=product.name,
        product_type=product.type,
    )
