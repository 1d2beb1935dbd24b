from django.db import models
from django.conf import settings
from core.constants import NOTIFICATION_TYPE_CHOICES
from apps.jobs.models import Job, JobApplication


class Notification(models.Model):
    recipient = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='notifications')
    job = models.ForeignKey(Job, on_delete=models.CASCADE, related_name='notifications')
    application = models.ForeignKey(
        JobApplication, on_delete=models.SET_NULL, null=True, blank=True, related_name='notifications'
    )
    type = models.CharField(max_length=20, choices=NOTIFICATION_TYPE_CHOICES)
    title = models.CharField(max_length=200)
    body = models.TextField()
    is_read = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at', '-id']
        indexes = [
            models.Index(fields=['recipient', 'is_read']),
        ]

    def __str__(self):
        return f"Notification to {self.recipient.username}: {self.title}"
