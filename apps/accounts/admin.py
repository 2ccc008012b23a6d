# ==========================================
# apps/accounts/admin.py
# ==========================================

from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from django.db.models import Count
from django.utils.html import format_html
from .models import User


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    """
    Admin interface for customers and plan administrators.

    Staff users are the administrators of the activation workflow, so the
    role badge and the promote/demote actions are the main tools here.
    """

    list_display = [
        'email',
        'display_name',
        'role_badge',
        'purchase_count',
        'is_active',
        'created_at',
        'last_login',
    ]

    list_filter = [
        'is_active',
        'is_staff',
        'created_at',
    ]

    search_fields = [
        'email',
        'display_name',
    ]

    ordering = ['-created_at']
    date_hierarchy = 'created_at'

    # Remove username field references from BaseUserAdmin
    fieldsets = (
        ('Basic Information', {
            'fields': ('email', 'display_name', 'password')
        }),
        ('Permissions', {
            'fields': ('is_active', 'is_staff', 'is_superuser', 'groups', 'user_permissions'),
        }),
        ('Timestamps', {
            'fields': ('created_at', 'last_login'),
            'classes': ('collapse',),
        }),
    )

    add_fieldsets = (
        ('Create User', {
            'classes': ('wide',),
            'fields': ('email', 'display_name', 'password1', 'password2'),
        }),
        ('Permissions', {
            'fields': ('is_active', 'is_staff'),
        }),
    )

    readonly_fields = ['created_at', 'last_login']
    filter_horizontal = ['groups', 'user_permissions']

    def role_badge(self, obj):
        """Display administrator/customer role as colored badge."""
        if obj.is_staff:
            return format_html(
                '<span style="background: #0284C7; color: white; padding: 3px 8px; '
                'border-radius: 10px; font-size: 11px;">Admin</span>'
            )
        return format_html(
            '<span style="background: #E2E8F0; color: #334155; padding: 3px 8px; '
            'border-radius: 10px; font-size: 11px;">Customer</span>'
        )
    role_badge.short_description = 'Role'
    role_badge.admin_order_field = 'is_staff'

    def purchase_count(self, obj):
        return obj.num_purchases
    purchase_count.short_description = 'Purchases'
    purchase_count.admin_order_field = 'num_purchases'

    actions = [
        'promote_to_admin',
        'demote_to_customer',
    ]

    @admin.action(description='Promote selected users to plan administrators')
    def promote_to_admin(self, request, queryset):
        count = queryset.update(is_staff=True)
        self.message_user(request, f'Promoted {count} user(s).')

    @admin.action(description='Demote selected users to customers')
    def demote_to_customer(self, request, queryset):
        """Demote selected users (superusers are skipped)."""
        total = queryset.count()
        count = queryset.filter(is_superuser=False).update(is_staff=False)
        skipped = total - count
        msg = f'Demoted {count} user(s).'
        if skipped:
            msg += f' Skipped {skipped} superuser(s).'
        self.message_user(request, msg)

    def get_queryset(self, request):
        qs = super().get_queryset(request)
        return qs.annotate(num_purchases=Count('purchases'))
