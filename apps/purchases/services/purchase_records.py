"""Purchase ingestion and the customer's view of their purchases."""

import uuid

from django.db import transaction
from django.db.models import Count, Prefetch, Q
from django.utils import timezone

from config.logging import get_logger

from ..exceptions import ProductNotFoundError
from ..models import (
    FormStatus,
    PlanStatus,
    Product,
    Purchase,
    PurchaseItem,
    PurchaseStatus,
)

logger = get_logger(__name__)


@transaction.atomic
def record_purchase(*, user, product_ids, external_id='', purchase_date=None, status=PurchaseStatus.APPROVED):
    """
    Record a completed checkout and one item per purchased product.

    Items start with ``form_status=pending`` and ``plan_status=awaiting``.
    Product name and type are copied onto each item.

    Raises:
        ProductNotFoundError: No product ids were given, or one is unknown
            or inactive.
    """
    if not product_ids:
        raise ProductNotFoundError("A purchase needs at least one product.")

    try:
        product_ids = [uuid.UUID(str(pid)) for pid in product_ids]
    except ValueError:
        raise ProductNotFoundError("Invalid product id.")

    products = Product.objects.in_bulk(product_ids)
    missing = [str(pid) for pid in product_ids if pid not in products or not products[pid].active]
    if missing:
        raise ProductNotFoundError(f"Unknown or inactive products: {', '.join(missing)}")

    purchase = Purchase.objects.create(
        user=user,
        external_id=external_id,
        status=status,
        purchase_date=purchase_date or timezone.now(),
    )
    items = PurchaseItem.objects.bulk_create([
        PurchaseItem(
            purchase=purchase,
            product=products[pid],
            product_name=products[pid].name,
            product_type=products[pid].type,
            form_status=FormStatus.PENDING,
            plan_status=PlanStatus.AWAITING,
        )
        for pid in product_ids
    ])

    logger.info(
        'purchase_recorded',
        purchase_id=str(purchase.id),
        external_id=external_id,
        items=len(items),
    )
    return purchase, items


def get_user_purchases(user):
    """Approved purchases of ``user`` with their items, newest first."""
    return (
        Purchase.objects
        .filter(user=user, status=PurchaseStatus.APPROVED)
        .prefetch_related(Prefetch('items', queryset=PurchaseItem.objects.order_by('created_at', 'id')))
    )


def get_user_items(user):
    return PurchaseItem.objects.filter(
        purchase__user=user,
        purchase__status=PurchaseStatus.APPROVED,
    )


def get_user_purchase_stats(user):
    return get_user_items(user).aggregate(
        total_purchases=Count('purchase', distinct=True),
        completed_forms=Count('id', filter=Q(form_status=FormStatus.COMPLETED)),
        pending_forms=Count('id', filter=~Q(form_status=FormStatus.COMPLETED)),
        awaiting_plans=Count('id', filter=Q(plan_status=PlanStatus.AWAITING)),
        ready_plans=Count('id', filter=Q(plan_status=PlanStatus.READY)),
        active_plans=Count('id', filter=Q(plan_status=PlanStatus.ACTIVE)),
    )


def get_available_products():
    return Product.objects.filter(active=True)
