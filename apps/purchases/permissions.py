"""
Custom permission classes for purchases app.

Plan administration is restricted to staff users; customers only ever see
their own purchases, which the service layer enforces by filtering on the
purchaser.
"""
from rest_framework.permissions import BasePermission


class IsPlanAdministrator(BasePermission):
    """
    Permission for the admin plan workspace.

    Allows access if the user is authenticated and ``is_staff``.

    Usage:
        @permission_classes([IsPlanAdministrator])
        def pending_items(request):
            ...
    """

    message = 'Only plan administrators can manage plans.'

    def has_permission(self, request, view):
        user = request.user
        return bool(user and user.is_authenticated and user.is_staff)


class IsPurchaser(BasePermission):
    """
    Object permission for purchases and purchase items.

    Accepts a ``Purchase`` (checked directly) or anything with a
    ``purchase`` attribute, such as a ``PurchaseItem``.
    """

    message = 'You can only access your own purchases.'

    def has_object_permission(self, request, view, obj):
        purchase = getattr(obj, 'purchase', obj)
        return purchase.user_id == request.user.pk
