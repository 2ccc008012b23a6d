from django.urls import path
from . import views

app_name = 'purchases'

urlpatterns = [
    # GET  /api/purchases/                          - Approved purchases with items
    # GET  /api/purchases/stats/                    - Form and plan counters
    # GET  /api/purchases/products/                 - Products on sale
    # GET  /api/purchases/items/{id}/               - One purchase item
    # POST /api/purchases/items/{id}/form/          - Submit onboarding form
    # POST /api/purchases/items/{id}/form/draft/    - Save partial answers
    path('', views.my_purchases, name='my-purchases'),
    path('stats/', views.my_purchase_stats, name='my-stats'),
    path('products/', views.available_products, name='products'),
    path('items/<uuid:item_id>/', views.PurchaseItemDetailView.as_view(), name='item-detail'),
    path('items/<uuid:item_id>/form/', views.submit_item_form, name='item-form'),
    path('items/<uuid:item_id>/form/draft/', views.save_item_form_draft, name='item-form-draft'),
]
