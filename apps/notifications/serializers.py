from rest_framework import serializers


class NotificationSerializer(serializers.Serializer):
    """Entry of the client notification log."""

    id = serializers.CharField()
    type = serializers.CharField()
    title = serializers.CharField()
    message = serializers.CharField()
    link = serializers.CharField(allow_null=True)
    link_text = serializers.CharField(allow_null=True)
    read = serializers.BooleanField()
    created_at = serializers.DateTimeField()


class NotificationLogSerializer(serializers.Serializer):
    notifications = NotificationSerializer(many=True)
    unread_count = serializers.IntegerField()
