from rest_framework import serializers
from .models import Chat, Message
from apps.users.serializers import UserSerializer
from . import transcript


class MessageSerializer(serializers.ModelSerializer):
    author = UserSerializer(read_only=True)

    class Meta:
        model = Message
        fields = ['id', 'chat', 'author', 'kind', 'body', 'payload', 'sequence', 'is_read', 'created_at']
        read_only_fields = fields


class ChatSerializer(serializers.ModelSerializer):
    job_id = serializers.IntegerField(source='job.id', read_only=True)
    job_title = serializers.CharField(source='job.title', read_only=True)
    job_state = serializers.CharField(source='job.state', read_only=True)
    employer = UserSerializer(read_only=True)
    worker = UserSerializer(source='worker.user', read_only=True)
    unread_count = serializers.SerializerMethodField()

    class Meta:
        model = Chat
        fields = [
            'id', 'job_id', 'job_title', 'job_state', 'application', 'employer', 'worker',
            'last_sequence', 'unread_count', 'created_at'
        ]

    def get_unread_count(self, obj):
        request = self.context.get('request')
        if request is None:
            return None
        return transcript.unread_count(obj, request.user)


class SendMessageSerializer(serializers.Serializer):
    body = serializers.CharField(max_length=5000, trim_whitespace=True)


class MarkReadSerializer(serializers.Serializer):
    upto_sequence = serializers.IntegerField(min_value=0)


class ShareEtaSerializer(serializers.Serializer):
    minutes = serializers.IntegerField(min_value=1, max_value=24 * 60)


class ShareLocationSerializer(serializers.Serializer):
    latitude = serializers.FloatField(min_value=-90, max_value=90)
    longitude = serializers.FloatField(min_value=-180, max_value=180)
