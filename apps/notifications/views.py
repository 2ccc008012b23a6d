from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from django.db import transaction
from drf_spectacular.utils import extend_schema

from .exceptions import NotificationNotFoundError
from .serializers import NotificationLogSerializer
from .storage import locked_storage
from .store import NotificationStore


def _get_store(request):
    return NotificationStore(locked_storage(request.user))


def _log_response(store):
    return Response(NotificationLogSerializer({
        'notifications': store.notifications,
        'unread_count': store.unread_count,
    }).data)


@extend_schema(
    responses={200: NotificationLogSerializer},
    description="GET lists the notification log, newest first. DELETE clears it.",
    tags=['notifications'],
)
@api_view(['GET', 'DELETE'])
@permission_classes([IsAuthenticated])
@transaction.atomic
def notification_log(request):
    store = _get_store(request)
    if request.method == 'DELETE':
        store.clear_all()
    return _log_response(store)


@extend_schema(
    request=None,
    responses={200: NotificationLogSerializer},
    description="Mark one notification as read.",
    tags=['notifications'],
)
@api_view(['POST'])
@permission_classes([IsAuthenticated])
@transaction.atomic
def mark_read(request, notification_id):
    store = _get_store(request)
    try:
        store.mark_read(notification_id)
    except NotificationNotFoundError as e:
        return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
    return _log_response(store)


@extend_schema(
    request=None,
    responses={200: NotificationLogSerializer},
    description="Mark every notification as read.",
    tags=['notifications'],
)
@api_view(['POST'])
@permission_classes([IsAuthenticated])
@transaction.atomic
def mark_all_read(request):
    store = _get_store(request)
    store.mark_all_read()
    return _log_response(store)


@extend_schema(
    responses={200: NotificationLogSerializer},
    description="Remove one notification.",
    tags=['notifications'],
)
@api_view(['DELETE'])
@permission_classes([IsAuthenticated])
@transaction.atomic
def remove_notification(request, notification_id):
    store = _get_store(request)
    try:
        store.remove(notification_id)
    except NotificationNotFoundError as e:
        return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
    return _log_response(store)
