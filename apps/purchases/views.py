from rest_framework import generics, status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from django.db import transaction
from django.utils import timezone
from drf_spectacular.utils import extend_schema, OpenApiParameter

from apps.notifications.outbox import deliver_pending
from apps.notifications.storage import locked_storage
from apps.notifications.store import NotificationStore
from apps.notifications.watcher import ReadyPlanWatcher
from .exceptions import (
    ActivationValidationError,
    FormIncompleteError,
    FormTypeMismatchError,
    InvalidStateTransitionError,
    PurchaseItemNotFoundError,
    ServiceUnavailableError,
    StateConflictError,
    TransientFetchError,
)
from .models import PurchaseItem
from .permissions import IsPlanAdministrator, IsPurchaser
from .serializers import (
    ActivationRecordSerializer,
    ActivationResultSerializer,
    BulkActivationSerializer,
    FormSubmissionSerializer,
    FormSubmitSerializer,
    HistoryQuerySerializer,
    MarkReadySerializer,
    OverrideStatusSerializer,
    PendingCountersSerializer,
    PendingFilterSerializer,
    PendingItemSerializer,
    PendingPageSerializer,
    PlanDatesSerializer,
    ProductSerializer,
    PurchaseItemSerializer,
    PurchaseSerializer,
    SingleActivationSerializer,
    UserPurchaseStatsSerializer,
    WorkspacePreviewSerializer,
    WorkspaceSelectionSerializer,
    WorkspaceSerializer,
)
from .services import (
    ActivationFailure,
    AdminWorkspace,
    PendingFilters,
    activate_plan,
    activate_plans,
    get_activation_history,
    get_available_products,
    get_item,
    get_pending_counters,
    get_user_purchase_stats,
    get_user_purchases,
    list_pending_items,
    mark_plan_ready,
    override_plan_status,
    save_form_draft,
    set_plan_dates,
    submit_form,
)


def _validation_error_response(error):
    return Response(
        {'error': str(error), 'item_ids': error.item_ids},
        status=status.HTTP_400_BAD_REQUEST
    )


def _not_found_response(error):
    return Response({'error': str(error)}, status=status.HTTP_404_NOT_FOUND)


def _workspace_response(workspace):
    return Response(WorkspaceSerializer({
        'selected': workspace.selected,
        'preview': workspace.preview,
    }).data)


# =============================================================================
# Customer endpoints
# =============================================================================

@extend_schema(
    responses={200: PurchaseSerializer(many=True)},
    description=(
        "List the current user's approved purchases with their items. "
        "Newly ready plans and pending outbox messages are added to the "
        "user's notification log."
    ),
    tags=['purchases'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def my_purchases(request):
    """List approved purchases and refresh the notification log."""
    observed_at = timezone.now()
    purchases = list(get_user_purchases(request.user))

    with transaction.atomic():
        storage = locked_storage(request.user)
        store = NotificationStore(storage)
        deliver_pending(store, request.user)
        items = [item for purchase in purchases for item in purchase.items.all()]
        ReadyPlanWatcher(storage, store).observe(items, observed_at=observed_at)

    return Response({
        'purchases': PurchaseSerializer(purchases, many=True).data,
        'unread_notifications': store.unread_count,
    })


class PurchaseItemDetailView(generics.RetrieveAPIView):
    """Get one of the current user's purchase items."""

    queryset = PurchaseItem.objects.select_related('purchase')
    serializer_class = PurchaseItemSerializer
    permission_classes = [IsAuthenticated, IsPurchaser]
    lookup_url_kwarg = 'item_id'


@extend_schema(
    responses={200: UserPurchaseStatsSerializer},
    description="Form and plan counters for the current user.",
    tags=['purchases'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def my_purchase_stats(request):
    stats = get_user_purchase_stats(request.user)
    return Response(UserPurchaseStatsSerializer(stats).data)


@extend_schema(
    responses={200: ProductSerializer(many=True)},
    description="Products currently on sale.",
    tags=['purchases'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def available_products(request):
    return Response(ProductSerializer(get_available_products(), many=True).data)


def _handle_form(request, item_id, handler):
    serializer = FormSubmitSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    try:
        submission = handler(
            item_id=item_id,
            user=request.user,
            form_type=serializer.validated_data['form_type'],
            responses=serializer.validated_data['responses'],
            version=serializer.validated_data['version'],
        )
    except PurchaseItemNotFoundError as e:
        return _not_found_response(e)
    except FormTypeMismatchError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

    return Response(FormSubmissionSerializer(submission).data)


@extend_schema(
    request=FormSubmitSerializer,
    responses={200: FormSubmissionSerializer},
    description=(
        "Submit the onboarding form for an item. Re-submitting overwrites "
        "the previous answers. A warning is returned when the answers were "
        "saved but the item status could not be updated."
    ),
    tags=['purchases'],
)
@api_view(['POST'])
@permission_classes([IsAuthenticated])
def submit_item_form(request, item_id):
    return _handle_form(request, item_id, submit_form)


@extend_schema(
    request=FormSubmitSerializer,
    responses={200: FormSubmissionSerializer},
    description="Save partial answers without completing the form.",
    tags=['purchases'],
)
@api_view(['POST'])
@permission_classes([IsAuthenticated])
def save_item_form_draft(request, item_id):
    return _handle_form(request, item_id, save_form_draft)


# =============================================================================
# Admin plan workspace
# =============================================================================

@extend_schema(
    parameters=[
        OpenApiParameter('type', str, description='all, meal or workout'),
        OpenApiParameter('search', str, description='Item title or purchaser name'),
        OpenApiParameter('sort_by', str, description='created_at or title'),
        OpenApiParameter('sort_order', str, description='asc or desc'),
        OpenApiParameter('page', int, description='1-based page number'),
    ],
    responses={200: PendingPageSerializer},
    description="Paginated items awaiting activation.",
    tags=['plan-admin'],
)
@api_view(['GET'])
@permission_classes([IsPlanAdministrator])
def pending_items(request):
    serializer = PendingFilterSerializer(data=request.query_params)
    serializer.is_valid(raise_exception=True)
    params = serializer.validated_data

    filters = PendingFilters(
        product_type=params['type'],
        search=params['search'],
        sort_by=params['sort_by'],
        sort_order=params['sort_order'],
    )
    try:
        page = list_pending_items(filters, page=params['page'])
    except TransientFetchError as e:
        raise ServiceUnavailableError(str(e))

    return Response(PendingPageSerializer(page).data)


@extend_schema(
    responses={200: PendingCountersSerializer},
    description="Pending totals per product type and activations today.",
    tags=['plan-admin'],
)
@api_view(['GET'])
@permission_classes([IsPlanAdministrator])
def pending_stats(request):
    try:
        counters = get_pending_counters()
    except TransientFetchError as e:
        raise ServiceUnavailableError(str(e))
    return Response(PendingCountersSerializer(counters).data)


@extend_schema(
    parameters=[HistoryQuerySerializer],
    responses={200: ActivationRecordSerializer(many=True)},
    description="Most recent plan activations, newest first.",
    tags=['plan-admin'],
)
@api_view(['GET'])
@permission_classes([IsPlanAdministrator])
def activation_history(request):
    serializer = HistoryQuerySerializer(data=request.query_params)
    serializer.is_valid(raise_exception=True)

    try:
        records = get_activation_history(limit=serializer.validated_data.get('limit'))
    except TransientFetchError as e:
        raise ServiceUnavailableError(str(e))
    return Response(ActivationRecordSerializer(records, many=True).data)


def _apply_requested_dates(item, data):
    # Dates left out of the request keep their stored value
    if 'start_date' in data:
        item.start_date = data['start_date']
    if 'end_date' in data:
        item.end_date = data['end_date']
    return item


def _finish_activation(request, result):
    with transaction.atomic():
        AdminWorkspace(locked_storage(request.user)).apply_activation(result)
    return Response(ActivationResultSerializer(result).data)


@extend_schema(
    request=BulkActivationSerializer,
    responses={200: ActivationResultSerializer},
    description=(
        "Activate several plans at once. The whole batch is rejected when "
        "any item lacks dates; otherwise each item succeeds or fails on its own. "
        "Unknown item ids are reported as failures."
    ),
    tags=['plan-admin'],
)
@api_view(['POST'])
@permission_classes([IsPlanAdministrator])
def activate_bulk(request):
    serializer = BulkActivationSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    entries = serializer.validated_data['items']

    requested_ids = [entry['item_id'] for entry in entries]
    found = PurchaseItem.objects.select_related('purchase__user').in_bulk(requested_ids)
    missing = [str(item_id) for item_id in requested_ids if item_id not in found]
    if entries and len(missing) == len(requested_ids):
        return Response(
            {'error': 'None of the purchase items exist.', 'item_ids': missing},
            status=status.HTTP_404_NOT_FOUND
        )

    items = [
        _apply_requested_dates(found[entry['item_id']], entry)
        for entry in entries
        if entry['item_id'] in found
    ]

    try:
        result = activate_plans(items, activated_by=request.user, bulk=True)
    except ActivationValidationError as e:
        return _validation_error_response(e)

    # Unknown ids fail on their own like any other item of the batch
    for item_id in dict.fromkeys(missing):
        result.failed.append(ActivationFailure(item_id=item_id, reason='Purchase item not found.'))

    return _finish_activation(request, result)


@extend_schema(
    request=SingleActivationSerializer,
    responses={200: ActivationResultSerializer},
    description="Activate one plan.",
    tags=['plan-admin'],
)
@api_view(['POST'])
@permission_classes([IsPlanAdministrator])
def activate_single(request, item_id):
    serializer = SingleActivationSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    try:
        item = get_item(item_id)
    except PurchaseItemNotFoundError as e:
        return _not_found_response(e)

    _apply_requested_dates(item, serializer.validated_data)
    try:
        result = activate_plan(item, activated_by=request.user)
    except ActivationValidationError as e:
        return _validation_error_response(e)

    return _finish_activation(request, result)


@extend_schema(
    request=PlanDatesSerializer,
    responses={200: PendingItemSerializer},
    description="Store the validity window of a plan before activation.",
    tags=['plan-admin'],
)
@api_view(['PATCH'])
@permission_classes([IsPlanAdministrator])
def update_plan_dates(request, item_id):
    serializer = PlanDatesSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    try:
        item = set_plan_dates(
            item_id=item_id,
            start_date=serializer.validated_data['start_date'],
            end_date=serializer.validated_data['end_date'],
        )
    except PurchaseItemNotFoundError as e:
        return _not_found_response(e)
    except ActivationValidationError as e:
        return _validation_error_response(e)

    return Response(PendingItemSerializer(item).data)


@extend_schema(
    request=MarkReadySerializer,
    responses={200: PendingItemSerializer},
    description="Publish the prepared plan (awaiting -> ready).",
    tags=['plan-admin'],
)
@api_view(['POST'])
@permission_classes([IsPlanAdministrator])
def mark_ready(request, item_id):
    serializer = MarkReadySerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    try:
        item = mark_plan_ready(
            item_id=item_id,
            content=serializer.validated_data.get('content'),
        )
    except PurchaseItemNotFoundError as e:
        return _not_found_response(e)
    except (FormIncompleteError, InvalidStateTransitionError) as e:
        raise StateConflictError(str(e))

    return Response(PendingItemSerializer(item).data)


@extend_schema(
    request=OverrideStatusSerializer,
    responses={200: PendingItemSerializer},
    description="Set a plan status by hand, in any direction.",
    tags=['plan-admin'],
)
@api_view(['POST'])
@permission_classes([IsPlanAdministrator])
def override_status(request, item_id):
    serializer = OverrideStatusSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    try:
        item = override_plan_status(
            item_id=item_id,
            status=serializer.validated_data['status'],
            changed_by=request.user,
        )
    except PurchaseItemNotFoundError as e:
        return _not_found_response(e)
    except ActivationValidationError as e:
        return _validation_error_response(e)

    return Response(PendingItemSerializer(item).data)


@extend_schema(
    request=WorkspaceSelectionSerializer,
    responses={200: WorkspaceSerializer},
    description=(
        "GET returns the selection, POST adds item_ids to it, DELETE removes "
        "item_ids or clears it when none are given."
    ),
    tags=['plan-admin'],
)
@api_view(['GET', 'POST', 'DELETE'])
@permission_classes([IsPlanAdministrator])
@transaction.atomic
def workspace_selection(request):
    workspace = AdminWorkspace(locked_storage(request.user))

    if request.method == 'POST':
        serializer = WorkspaceSelectionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        workspace.select(serializer.validated_data['item_ids'])
    elif request.method == 'DELETE':
        item_ids = request.data.get('item_ids') if hasattr(request.data, 'get') else None
        if item_ids:
            serializer = WorkspaceSelectionSerializer(data=request.data)
            serializer.is_valid(raise_exception=True)
            workspace.deselect(serializer.validated_data['item_ids'])
        else:
            workspace.clear_selection()

    return _workspace_response(workspace)


@extend_schema(
    request=WorkspacePreviewSerializer,
    responses={200: WorkspaceSerializer},
    description="POST opens the preview dialog on an item, DELETE closes it.",
    tags=['plan-admin'],
)
@api_view(['POST', 'DELETE'])
@permission_classes([IsPlanAdministrator])
@transaction.atomic
def workspace_preview(request):
    workspace = AdminWorkspace(locked_storage(request.user))

    if request.method == 'POST':
        serializer = WorkspacePreviewSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            item = get_item(serializer.validated_data['item_id'])
        except PurchaseItemNotFoundError as e:
            return _not_found_response(e)
        workspace.open_preview(item.id)
    else:
        workspace.close_preview()

    return _workspace_response(workspace)
