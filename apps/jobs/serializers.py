from rest_framework import serializers
from .models import Job, JobApplication, JobState, JobStateTransition
from apps.users.serializers import UserSerializer
from core.constants import JOB_STATE_CHOICES


class WorkerSummarySerializer(serializers.Serializer):
    id = serializers.IntegerField()
    user = UserSerializer()
    location = serializers.CharField()
    skills = serializers.CharField()

    class Meta:
        ref_name = 'JobsWorkerSummary'


class JobSerializer(serializers.ModelSerializer):
    employer = UserSerializer(read_only=True)
    assigned_worker = WorkerSummarySerializer(read_only=True)

    class Meta:
        model = Job
        fields = [
            'id', 'employer', 'title', 'description', 'location', 'state', 'version',
            'assigned_worker', 'created_at', 'updated_at'
        ]
        read_only_fields = fields


class JobApplicationSerializer(serializers.ModelSerializer):
    worker = WorkerSummarySerializer(read_only=True)
    job_id = serializers.IntegerField(source='job.id', read_only=True)
    job_title = serializers.CharField(source='job.title', read_only=True)
    chat_id = serializers.SerializerMethodField()

    class Meta:
        model = JobApplication
        fields = ['id', 'job_id', 'job_title', 'worker', 'message', 'status', 'chat_id', 'applied_at', 'updated_at']
        read_only_fields = ['id', 'job_id', 'job_title', 'worker', 'status', 'chat_id', 'applied_at', 'updated_at']

    def get_chat_id(self, obj):
        chat = getattr(obj, 'chat', None)
        return chat.id if chat else None


class ApplySerializer(serializers.Serializer):
    message = serializers.CharField(required=False, allow_blank=True, default='')


class JobStateSerializer(serializers.ModelSerializer):
    job_id = serializers.IntegerField(source='job.id', read_only=True)
    version = serializers.IntegerField(source='job.version', read_only=True)

    class Meta:
        model = JobState
        fields = [
            'job_id', 'application', 'state', 'version', 'worker_assigned_at', 'worker_started_at',
            'work_completed_at', 'employer_approved_at', 'cancelled_at', 'updated_at'
        ]


class JobStateTransitionSerializer(serializers.ModelSerializer):
    changed_by = UserSerializer(read_only=True)

    class Meta:
        model = JobStateTransition
        fields = ['id', 'from_state', 'to_state', 'version', 'changed_by', 'message', 'created_at']


class TransitionRequestSerializer(serializers.Serializer):
    state = serializers.ChoiceField(choices=JOB_STATE_CHOICES)


class CancelSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, default='', max_length=500)


class TransitionResultSerializer(serializers.Serializer):
    """Outcome of a single transition, including the system entry it wrote."""
    job_id = serializers.IntegerField(source='job.id')
    from_state = serializers.CharField()
    state = serializers.CharField(source='to_state')
    version = serializers.IntegerField(source='job.version')
    system_entry_sequence = serializers.SerializerMethodField()

    def get_system_entry_sequence(self, obj):
        return obj.entry.sequence if obj.entry is not None else None
