import pytest
from rest_framework.test import APIClient
from apps.accounts.models import User


@pytest.fixture
def api_client():
    """Return an unauthenticated API client."""
    return APIClient()


@pytest.fixture
def customer(db):
    """Create and return a customer account."""
    return User.objects.create_user(
        email='customer@example.com',
        password='TestPass123!',
        display_name='Maria Silva',
    )


@pytest.fixture
def admin_user(db):
    """Create and return a plan administrator."""
    return User.objects.create_user(
        email='admin@example.com',
        password='AdminPass123!',
        display_name='Plan Admin',
        is_staff=True,
    )
