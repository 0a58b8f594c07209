from rest_framework import serializers
from core.models import Notification

class NotificationSerializer(serializers.ModelSerializer):
    type_display = serializers.CharField(source='get_type_display', read_only=True)

    class Meta:
        model = Notification
        fields = ['id', 'event_type', 'title', 'message', 'type', 'type_display', 'payload', 'created_at', 'is_read']
        read_only_fields = ['id', 'event_type', 'title', 'message', 'type', 'payload', 'created_at']
