from django.urls import path
from . import views

app_name = 'plan-admin'

urlpatterns = [
    # GET    /api/admin/plans/pending/          - Pending plan table
    # GET    /api/admin/plans/stats/            - Pending counters
    # GET    /api/admin/plans/history/          - Activation history
    # POST   /api/admin/plans/activate/         - Bulk activation
    # POST   /api/admin/plans/{id}/activate/    - Single activation
    # PATCH  /api/admin/plans/{id}/dates/       - Store validity window
    # POST   /api/admin/plans/{id}/ready/       - Publish prepared plan
    # POST   /api/admin/plans/{id}/override/    - Manual status change
    # GET|POST|DELETE /api/admin/plans/selection/
    # POST|DELETE     /api/admin/plans/preview/
    path('pending/', views.pending_items, name='pending'),
    path('stats/', views.pending_stats, name='stats'),
    path('history/', views.activation_history, name='history'),
    path('activate/', views.activate_bulk, name='activate-bulk'),
    path('selection/', views.workspace_selection, name='selection'),
    path('preview/', views.workspace_preview, name='preview'),
    path('<uuid:item_id>/activate/', views.activate_single, name='activate'),
    path('<uuid:item_id>/dates/', views.update_plan_dates, name='dates'),
    path('<uuid:item_id>/ready/', views.mark_ready, name='ready'),
    path('<uuid:item_id>/override/', views.override_status, name='override'),
]
