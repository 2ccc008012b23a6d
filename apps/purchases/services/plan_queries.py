"""
Read side of the admin plan workspace: the pending-plan table, its counters
and the activation history feed.

Read failures are raised as :class:`TransientFetchError` so views can answer
503 and the client keeps showing what it already has.
"""

from dataclasses import dataclass
from datetime import datetime, time, timedelta
from typing import List, Optional

from django.conf import settings
from django.core.paginator import EmptyPage, Paginator
from django.db import DatabaseError
from django.db.models import Count, Q
from django.utils import timezone

from config.logging import get_logger

from ..exceptions import TransientFetchError
from ..models import ActivationRecord, PlanStatus, ProductType, PurchaseItem

logger = get_logger(__name__)

SORT_FIELDS = {
    'created_at': 'created_at',
    'title': 'product_name',
}


@dataclass
class PendingFilters:
    product_type: str = 'all'
    search: str = ''
    sort_by: str = 'created_at'
    sort_order: str = 'desc'


@dataclass
class PendingPage:
    items: List[PurchaseItem]
    page: int
    page_size: int
    total: int
    page_count: int


def pending_queryset(filters: Optional[PendingFilters] = None):
    """Items awaiting activation, filtered and ordered deterministically."""
    filters = filters or PendingFilters()

    queryset = (
        PurchaseItem.objects
        .filter(plan_status=PlanStatus.AWAITING)
        .select_related('purchase__user', 'product')
    )

    if filters.product_type != 'all':
        queryset = queryset.filter(product_type=filters.product_type)

    search = (filters.search or '').strip()
    if search:
        queryset = queryset.filter(
            Q(product_name__icontains=search)
            | Q(purchase__user__display_name__icontains=search)
        )

    field = SORT_FIELDS.get(filters.sort_by, 'created_at')
    prefix = '-' if filters.sort_order == 'desc' else ''
    # Item id breaks ties so equal keys never swap places between pages
    return queryset.order_by(f'{prefix}{field}', f'{prefix}id')


def list_pending_items(filters: Optional[PendingFilters] = None, page: int = 1, page_size: Optional[int] = None) -> PendingPage:
    """
    Return one page of pending items.

    Pages are 1-based. A page outside ``1..page_count`` comes back empty.
    """
    page_size = page_size or settings.PLAN_QUERY_PAGE_SIZE
    try:
        queryset = pending_queryset(filters)
        paginator = Paginator(queryset, page_size, allow_empty_first_page=False)
        total = paginator.count
        page_count = paginator.num_pages
        try:
            items = list(paginator.page(page).object_list)
        except EmptyPage:
            items = []
    except DatabaseError as exc:
        logger.warning('pending_items_fetch_failed', error=str(exc))
        raise TransientFetchError('Could not load pending plans.') from exc

    return PendingPage(
        items=items,
        page=page,
        page_size=page_size,
        total=total,
        page_count=page_count,
    )


def _local_day_bounds(now):
    today = timezone.localdate(now)
    start = timezone.make_aware(datetime.combine(today, time.min))
    return start, start + timedelta(days=1)


def get_pending_counters(now=None):
    """
    Counters for the admin dashboard header.

    ``activated_today`` counts activation records from local midnight
    (``settings.TIME_ZONE``) to the next one.
    """
    now = now or timezone.now()
    day_start, day_end = _local_day_bounds(now)

    try:
        per_type = dict(
            PurchaseItem.objects
            .filter(plan_status=PlanStatus.AWAITING)
            .values_list('product_type')
            .annotate(count=Count('id'))
            .order_by()
        )
        activated_today = ActivationRecord.objects.filter(
            activated_at__gte=day_start,
            activated_at__lt=day_end,
        ).count()
    except DatabaseError as exc:
        logger.warning('pending_counters_fetch_failed', error=str(exc))
        raise TransientFetchError('Could not load plan counters.') from exc

    by_type = {product_type.value: per_type.get(product_type.value, 0) for product_type in ProductType}
    return {
        'total_pending': sum(by_type.values()),
        'pending_by_type': by_type,
        'activated_today': activated_today,
    }


def get_activation_history(limit=None):
    """Most recent activation records, newest first."""
    limit = limit or settings.ACTIVATION_HISTORY_LIMIT
    try:
        return list(
            ActivationRecord.objects
            .select_related('item__purchase__user', 'activated_by')
            .order_by('-activated_at', '-id')[:limit]
        )
    except DatabaseError as exc:
        logger.warning('activation_history_fetch_failed', error=str(exc))
        raise TransientFetchError('Could not load activation history.') from exc
