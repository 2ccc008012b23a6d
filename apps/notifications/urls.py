from django.urls import path
from . import views

app_name = 'notifications'

urlpatterns = [
    # GET|DELETE /api/notifications/             - List / clear all
    # POST       /api/notifications/read-all/    - Mark all read
    # POST       /api/notifications/{id}/read/   - Mark one read
    # DELETE     /api/notifications/{id}/        - Remove one
    path('', views.notification_log, name='log'),
    path('read-all/', views.mark_all_read, name='read-all'),
    path('<str:notification_id>/read/', views.mark_read, name='read'),
    path('<str:notification_id>/', views.remove_notification, name='remove'),
]
