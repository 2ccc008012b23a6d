from .activation import (
    ActivationFailure,
    ActivationResult,
    SecondaryWriteWarning,
    activate_plan,
    activate_plans,
    validate_batch,
)
from .admin_workspace import AdminWorkspace
from .form_gateway import FormSubmission, save_form_draft, submit_form
from .item_state import (
    advance_plan_status,
    can_advance,
    get_item,
    mark_plan_ready,
    override_plan_status,
    set_plan_dates,
    update_form_status,
)
from .plan_queries import (
    PendingFilters,
    PendingPage,
    get_activation_history,
    get_pending_counters,
    list_pending_items,
    pending_queryset,
)
from .purchase_records import (
    get_available_products,
    get_user_items,
    get_user_purchase_stats,
    get_user_purchases,
    record_purchase,
)

__all__ = [
    'ActivationFailure',
    'ActivationResult',
    'SecondaryWriteWarning',
    'activate_plan',
    'activate_plans',
    'validate_batch',
    'AdminWorkspace',
    'FormSubmission',
    'save_form_draft',
    'submit_form',
    'advance_plan_status',
    'can_advance',
    'get_item',
    'mark_plan_ready',
    'override_plan_status',
    'set_plan_dates',
    'update_form_status',
    'PendingFilters',
    'PendingPage',
    'get_activation_history',
    'get_pending_counters',
    'list_pending_items',
    'pending_queryset',
    'get_available_products',
    'get_user_items',
    'get_user_purchase_stats',
    'get_user_purchases',
    'record_purchase',
]
