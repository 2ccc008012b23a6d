"""
Purchases App - Purchase Items and Plan Activation

This app tracks a customer's purchase through to a usable plan: each item
needs its onboarding form completed, an administrator prepares the plan and
activates it by assigning a validity window.

Key Features:
- Purchase ingestion with one item per product
- Onboarding form submission and drafts
- Forward-only plan lifecycle (awaiting -> ready -> active) with admin override
- Single and bulk plan activation with append-only activation history
- Admin pending-plan table with filtering, sorting and pagination

Architecture:
- Models: Product, Purchase, PurchaseItem, FormResponse, ActivationRecord
- Services: item_state, form_gateway, activation, plan_queries,
  purchase_records, admin_workspace
- Views: function-based DRF views for customers and administrators
- Exceptions: Domain exception hierarchy in exceptions.py
"""
