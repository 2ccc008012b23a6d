from rest_framework import serializers
from .models import (
    ActivationRecord,
    FormResponse,
    FormType,
    PlanStatus,
    Product,
    Purchase,
    PurchaseItem,
)
from apps.accounts.models import User


# =============================================================================
# Input Serializers
# =============================================================================

class PendingFilterSerializer(serializers.Serializer):
    """
    Validate query parameters for the pending plan table.

    Query Parameters:
        type (str): all, meal or workout
        search (str): Matches item title or purchaser name
        sort_by (str): created_at or title
        sort_order (str): asc or desc
        page (int): 1-based page number
    """

    type = serializers.ChoiceField(choices=['all', 'meal', 'workout'], default='all')
    search = serializers.CharField(max_length=200, required=False, allow_blank=True, default='')
    sort_by = serializers.ChoiceField(choices=['created_at', 'title'], default='created_at')
    sort_order = serializers.ChoiceField(choices=['asc', 'desc'], default='desc')
    page = serializers.IntegerField(min_value=1, default=1)


class HistoryQuerySerializer(serializers.Serializer):
    limit = serializers.IntegerField(min_value=1, max_value=100, required=False)


class ActivationItemSerializer(serializers.Serializer):
    """
    One item of an activation request.

    Dates may be omitted when already stored on the item. Missing or
    inverted windows are reported by the activation service for the whole
    batch.
    """

    item_id = serializers.UUIDField()
    start_date = serializers.DateField(required=False, allow_null=True)
    end_date = serializers.DateField(required=False, allow_null=True)


class BulkActivationSerializer(serializers.Serializer):
    items = ActivationItemSerializer(many=True, allow_empty=True)


class SingleActivationSerializer(serializers.Serializer):
    start_date = serializers.DateField(required=False, allow_null=True)
    end_date = serializers.DateField(required=False, allow_null=True)


class PlanDatesSerializer(serializers.Serializer):
    start_date = serializers.DateField(allow_null=True)
    end_date = serializers.DateField(allow_null=True)

    def validate(self, attrs):
        """Validate date range."""
        start_date = attrs.get('start_date')
        end_date = attrs.get('end_date')

        if start_date and end_date and end_date < start_date:
            raise serializers.ValidationError({
                'end_date': 'End date must not be before start date'
            })

        return attrs


class MarkReadySerializer(serializers.Serializer):
    content = serializers.JSONField(required=False)


class OverrideStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=PlanStatus.choices)


class FormSubmitSerializer(serializers.Serializer):
    """
    Validate an onboarding form submission.

    Fields:
        form_type (str): meal or workout
        responses (dict): Answers keyed by question id
        version (int): Form schema version
    """

    form_type = serializers.ChoiceField(choices=FormType.choices)
    responses = serializers.DictField()
    version = serializers.IntegerField(min_value=1, default=1)


class WorkspaceSelectionSerializer(serializers.Serializer):
    item_ids = serializers.ListField(child=serializers.UUIDField(), allow_empty=True)


class WorkspacePreviewSerializer(serializers.Serializer):
    item_id = serializers.UUIDField()


# =============================================================================
# Output Serializers
# =============================================================================


class UserMinimalSerializer(serializers.ModelSerializer):
    """Minimal user info for nested serialization."""

    display_name = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = ['id', 'email', 'display_name']
        read_only_fields = fields

    def get_display_name(self, obj):
        return obj.get_display_name()


class ProductSerializer(serializers.ModelSerializer):

    class Meta:
        model = Product
        fields = ['id', 'name', 'type']
        read_only_fields = fields


class PurchaseItemSerializer(serializers.ModelSerializer):
    """Item as shown to its purchaser."""

    is_partial = serializers.BooleanField(read_only=True)

    class Meta:
        model = PurchaseItem
        fields = [
            'id',
            'purchase',
            'product',
            'product_name',
            'product_type',
            'form_status',
            'plan_status',
            'has_form_response',
            'is_partial',
            'start_date',
            'end_date',
            'created_at',
        ]
        read_only_fields = fields


class PendingItemSerializer(serializers.ModelSerializer):
    """Row of the admin pending-plan table."""

    title = serializers.CharField(source='product_name', read_only=True)
    purchaser = UserMinimalSerializer(source='purchase.user', read_only=True)
    is_partial = serializers.BooleanField(read_only=True)

    class Meta:
        model = PurchaseItem
        fields = [
            'id',
            'purchase',
            'title',
            'product_type',
            'purchaser',
            'form_status',
            'plan_status',
            'has_form_response',
            'is_partial',
            'start_date',
            'end_date',
            'plan_content',
            'created_at',
        ]
        read_only_fields = fields


class PurchaseSerializer(serializers.ModelSerializer):
    """Approved purchase with its items."""

    items = PurchaseItemSerializer(many=True, read_only=True)

    class Meta:
        model = Purchase
        fields = [
            'id',
            'external_id',
            'status',
            'purchase_date',
            'items',
            'created_at',
        ]
        read_only_fields = fields


class FormResponseSerializer(serializers.ModelSerializer):

    class Meta:
        model = FormResponse
        fields = [
            'id',
            'item',
            'form_type',
            'version',
            'responses',
            'is_draft',
            'updated_at',
        ]
        read_only_fields = fields


class ActivationRecordSerializer(serializers.ModelSerializer):
    """Activation history entry."""

    title = serializers.CharField(source='item.product_name', read_only=True)
    purchaser = UserMinimalSerializer(source='item.purchase.user', read_only=True)
    activated_by = UserMinimalSerializer(read_only=True)

    class Meta:
        model = ActivationRecord
        fields = [
            'id',
            'item',
            'title',
            'plan_type',
            'purchaser',
            'activated_at',
            'activated_by',
        ]
        read_only_fields = fields


class ActivationFailureSerializer(serializers.Serializer):
    item_id = serializers.CharField()
    reason = serializers.CharField()


class SecondaryWriteWarningSerializer(serializers.Serializer):
    item_id = serializers.CharField()
    step = serializers.CharField()
    message = serializers.CharField()


class ActivationResultSerializer(serializers.Serializer):
    scope = serializers.CharField()
    activated = serializers.ListField(child=serializers.CharField())
    activated_count = serializers.IntegerField()
    failed = ActivationFailureSerializer(many=True)
    failed_count = serializers.IntegerField()
    is_partial = serializers.BooleanField()
    warnings = SecondaryWriteWarningSerializer(many=True)


class PendingPageSerializer(serializers.Serializer):
    items = PendingItemSerializer(many=True)
    page = serializers.IntegerField()
    page_size = serializers.IntegerField()
    total = serializers.IntegerField()
    page_count = serializers.IntegerField()


class PendingCountersSerializer(serializers.Serializer):
    total_pending = serializers.IntegerField()
    pending_by_type = serializers.DictField(child=serializers.IntegerField())
    activated_today = serializers.IntegerField()


class UserPurchaseStatsSerializer(serializers.Serializer):
    total_purchases = serializers.IntegerField()
    completed_forms = serializers.IntegerField()
    pending_forms = serializers.IntegerField()
    awaiting_plans = serializers.IntegerField()
    ready_plans = serializers.IntegerField()
    active_plans = serializers.IntegerField()


class FormSubmissionSerializer(serializers.Serializer):
    success = serializers.BooleanField()
    warning = serializers.CharField(allow_null=True)
    response = FormResponseSerializer()


class WorkspaceSerializer(serializers.Serializer):
    selected = serializers.ListField(child=serializers.CharField())
    preview = serializers.CharField(allow_null=True)
