from django.contrib import admin
from .models import UserNotification, ClientStateEntry


@admin.register(UserNotification)
class UserNotificationAdmin(admin.ModelAdmin):
    list_display = ['title', 'user', 'kind', 'item', 'created_at', 'delivered_at']
    list_filter = ['kind', 'created_at', 'delivered_at']
    search_fields = ['title', 'message', 'user__email']
    readonly_fields = ['created_at', 'delivered_at']
    raw_id_fields = ['user', 'item']
    date_hierarchy = 'created_at'

    actions = ['mark_undelivered']

    @admin.action(description='Deliver selected notifications again')
    def mark_undelivered(self, request, queryset):
        count = queryset.update(delivered_at=None)
        self.message_user(request, f'{count} notification(s) queued for delivery.')


@admin.register(ClientStateEntry)
class ClientStateEntryAdmin(admin.ModelAdmin):
    list_display = ['user', 'key', 'updated_at']
    list_filter = ['key']
    search_fields = ['user__email', 'key']
    readonly_fields = ['updated_at']
    raw_id_fields = ['user']
