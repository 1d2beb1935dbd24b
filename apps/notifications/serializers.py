from rest_framework import serializers
from .models import Notification


class NotificationSerializer(serializers.ModelSerializer):
    job_id = serializers.IntegerField(source='job.id', read_only=True)
    job_title = serializers.CharField(source='job.title', read_only=True)

    class Meta:
        model = Notification
        fields = ['id', 'job_id', 'job_title', 'application', 'type', 'title', 'body', 'is_read', 'created_at']
        read_only_fields = fields
