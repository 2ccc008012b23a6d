# ==========================================
# apps/purchases/admin.py
# ==========================================

from django.contrib import admin
from django.utils.html import format_html
from .models import (
    ActivationRecord,
    FormResponse,
    PlanStatus,
    Product,
    Purchase,
    PurchaseItem,
)
from .services import mark_plan_ready
from .exceptions import PurchaseServiceError


PLAN_STATUS_COLORS = {
    PlanStatus.AWAITING: ('#E2E8F0', '#334155'),
    PlanStatus.READY: ('#FACC15', '#422006'),
    PlanStatus.ACTIVE: ('#16A34A', 'white'),
}


def plan_status_badge(obj):
    bg, fg = PLAN_STATUS_COLORS.get(obj.plan_status, ('#ccc', '#666'))
    return format_html(
        '<span style="background: {}; color: {}; padding: 3px 8px; '
        'border-radius: 10px; font-size: 11px;">{}</span>',
        bg, fg, obj.get_plan_status_display()
    )


class PurchaseItemInline(admin.TabularInline):
    """Inline admin for items within a purchase."""
    model = PurchaseItem
    extra = 0
    fields = [
        'product_name',
        'product_type',
        'form_status',
        'status_badge',
        'start_date',
        'end_date',
    ]
    readonly_fields = ['product_name', 'product_type', 'form_status', 'status_badge']
    show_change_link = True

    def status_badge(self, obj):
        return plan_status_badge(obj)
    status_badge.short_description = 'Plan'

    def has_add_permission(self, request, obj=None):
        """Items are created by purchase ingestion."""
        return False


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ['name', 'type', 'active', 'created_at']
    list_filter = ['type', 'active']
    search_fields = ['name']


@admin.register(Purchase)
class PurchaseAdmin(admin.ModelAdmin):
    list_display = ['__str__', 'user', 'status', 'item_count', 'purchase_date']
    list_filter = ['status', 'purchase_date']
    search_fields = ['external_id', 'user__email', 'user__display_name']
    readonly_fields = ['created_at', 'updated_at']
    raw_id_fields = ['user']
    inlines = [PurchaseItemInline]
    date_hierarchy = 'purchase_date'

    def item_count(self, obj):
        return obj.items.count()
    item_count.short_description = 'Items'


@admin.register(PurchaseItem)
class PurchaseItemAdmin(admin.ModelAdmin):
    """
    Admin interface for purchase items.

    Status fields are read-only here; plan status changes go through the
    plan admin API so the lifecycle rules and activation history apply.
    """

    list_display = [
        'product_name',
        'product_type',
        'purchaser',
        'form_status',
        'status_badge',
        'start_date',
        'end_date',
        'created_at',
    ]
    list_filter = ['plan_status', 'form_status', 'product_type', 'created_at']
    search_fields = ['product_name', 'purchase__user__email', 'purchase__user__display_name']
    readonly_fields = [
        'purchase',
        'product',
        'product_name',
        'product_type',
        'form_status',
        'plan_status',
        'has_form_response',
        'created_at',
        'updated_at',
    ]
    fieldsets = (
        ('Item', {
            'fields': ('purchase', 'product', 'product_name', 'product_type')
        }),
        ('Lifecycle', {
            'fields': ('form_status', 'has_form_response', 'plan_status', 'start_date', 'end_date'),
        }),
        ('Plan', {
            'fields': ('plan_content',),
            'classes': ('collapse',),
        }),
        ('Timestamps', {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',),
        }),
    )

    def purchaser(self, obj):
        return obj.purchase.user.get_display_name()
    purchaser.admin_order_field = 'purchase__user__display_name'

    def status_badge(self, obj):
        return plan_status_badge(obj)
    status_badge.short_description = 'Plan'
    status_badge.admin_order_field = 'plan_status'

    actions = ['publish_plans']

    @admin.action(description='Mark selected plans as ready')
    def publish_plans(self, request, queryset):
        published = 0
        skipped = 0
        for item in queryset:
            try:
                mark_plan_ready(item_id=item.id)
                published += 1
            except PurchaseServiceError:
                skipped += 1
        msg = f'Marked {published} plan(s) as ready.'
        if skipped:
            msg += f' Skipped {skipped} with incomplete forms or already ready.'
        self.message_user(request, msg)

    def get_queryset(self, request):
        return super().get_queryset(request).select_related('purchase__user')


@admin.register(FormResponse)
class FormResponseAdmin(admin.ModelAdmin):
    list_display = ['item', 'user', 'form_type', 'version', 'is_draft', 'updated_at']
    list_filter = ['form_type', 'is_draft']
    search_fields = ['user__email', 'item__product_name']
    readonly_fields = ['item', 'user', 'created_at', 'updated_at']


@admin.register(ActivationRecord)
class ActivationRecordAdmin(admin.ModelAdmin):
    """Read-only activation history."""

    list_display = ['item', 'plan_type', 'activated_at', 'activated_by']
    list_filter = ['plan_type', 'activated_at']
    search_fields = ['item__product_name', 'item__purchase__user__email']
    date_hierarchy = 'activated_at'

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
