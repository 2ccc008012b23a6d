from django.db import connection, DatabaseError
from django.http import JsonResponse

from config.logging import get_logger

logger = get_logger(__name__)


def health_check(request):
    """Liveness probe; reports whether the database answers."""
    try:
        with connection.cursor() as cursor:
            cursor.execute('SELECT 1')
    except DatabaseError as exc:
        logger.warning('health_check_database_unavailable', error=str(exc))
        return JsonResponse({'status': 'degraded', 'database': False}, status=503)
    return JsonResponse({'status': 'ok', 'database': True})


def error_404(request, exception):
    """Custom 404 handler."""
    return JsonResponse({
        'error': 'Not found',
        'status': 404
    }, status=404)


def error_500(request):
    """Custom 500 handler."""
    return JsonResponse({
        'error': 'Internal server error',
        'status': 500
    }, status=500)
