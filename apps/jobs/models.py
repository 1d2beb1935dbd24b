from django.db import models
from django.conf import settings
from core.constants import (
    JOB_STATE_CHOICES, JOB_APPLICATION_STATUS_CHOICES, STATE_APPLIED,
    APPLICATION_PENDING, APPLICATION_ACCEPTED, TERMINAL_STATES,
)
from apps.users.models import Worker


class Job(models.Model):
    employer = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='jobs')
    title = models.CharField(max_length=200)
    description = models.TextField(blank=True, default='')
    location = models.CharField(max_length=200, blank=True, default='')
    state = models.CharField(max_length=20, choices=JOB_STATE_CHOICES, default=STATE_APPLIED)
    # Bumped by every state write; transitions compare-and-swap on (state, version)
    version = models.PositiveIntegerField(default=0)
    assigned_worker = models.ForeignKey(
        Worker, on_delete=models.SET_NULL, null=True, blank=True, related_name='assigned_jobs'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.title} - {self.employer.username}"

    @property
    def is_terminal(self):
        return self.state in TERMINAL_STATES

    def is_party(self, user):
        """True if the user owns the job or is its assigned worker."""
        if user is None:
            return False
        if user.pk == self.employer_id:
            return True
        return self.assigned_worker is not None and user.pk == self.assigned_worker.user_id


class JobApplication(models.Model):
    job = models.ForeignKey(Job, on_delete=models.CASCADE, related_name='applications')
    worker = models.ForeignKey(Worker, on_delete=models.CASCADE, related_name='applications')
    message = models.TextField(blank=True, default='')
    status = models.CharField(max_length=20, choices=JOB_APPLICATION_STATUS_CHOICES, default=APPLICATION_PENDING)
    applied_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        unique_together = ('job', 'worker')
        ordering = ['applied_at', 'id']
        constraints = [
            models.UniqueConstraint(
                fields=['job'],
                condition=models.Q(status=APPLICATION_ACCEPTED),
                name='one_accepted_application_per_job',
            ),
        ]

    def __str__(self):
        return f"{self.worker.user.username} applied to {self.job.title}"


class JobState(models.Model):
    """Current state of a job plus the time each milestone was first reached."""
    job = models.OneToOneField(Job, on_delete=models.CASCADE, related_name='lifecycle')
    application = models.ForeignKey(
        JobApplication, on_delete=models.SET_NULL, null=True, blank=True, related_name='+'
    )
    state = models.CharField(max_length=20, choices=JOB_STATE_CHOICES, default=STATE_APPLIED)
    worker_assigned_at = models.DateTimeField(null=True, blank=True)
    worker_started_at = models.DateTimeField(null=True, blank=True)
    work_completed_at = models.DateTimeField(null=True, blank=True)
    employer_approved_at = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)
    updated_at = models.DateTimeField(auto_now=True)

    MILESTONE_FIELDS = (
        'worker_assigned_at', 'worker_started_at', 'work_completed_at',
        'employer_approved_at', 'cancelled_at',
    )

    def __str__(self):
        return f"{self.job.title}: {self.state}"

    def milestones(self):
        return {field: getattr(self, field) for field in self.MILESTONE_FIELDS}


class JobStateTransition(models.Model):
    """Append-only audit row for every accepted state change."""
    job = models.ForeignKey(Job, on_delete=models.CASCADE, related_name='transitions')
    application = models.ForeignKey(
        JobApplication, on_delete=models.SET_NULL, null=True, blank=True, related_name='transitions'
    )
    from_state = models.CharField(max_length=20, choices=JOB_STATE_CHOICES)
    to_state = models.CharField(max_length=20, choices=JOB_STATE_CHOICES)
    changed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, related_name='job_transitions'
    )
    version = models.PositiveIntegerField()
    message = models.TextField(blank=True, default='')
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['version', 'id']
        unique_together = ('job', 'version')

    def __str__(self):
        return f"{self.job.title}: {self.from_state} -> {self.to_state}"
