from django.db import models
from django.conf import settings
from core.constants import MESSAGE_KIND_CHOICES, MESSAGE_KIND_USER
from apps.jobs.models import Job, JobApplication
from apps.users.models import Worker


class Chat(models.Model):
    """Transcript binding between the employer and the accepted worker of a job."""
    job = models.OneToOneField(Job, on_delete=models.CASCADE, related_name='chat')
    application = models.OneToOneField(JobApplication, on_delete=models.CASCADE, related_name='chat')
    worker = models.ForeignKey(Worker, on_delete=models.CASCADE, related_name='chats')
    employer = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='employer_chats')
    # Highest sequence handed out so far; only ever incremented in the database
    last_sequence = models.PositiveBigIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"Chat for {self.job.title}"

    def is_party(self, user):
        if user is None:
            return False
        return user.pk in (self.employer_id, self.worker.user_id)

    def counterpart_of(self, user):
        if user.pk == self.employer_id:
            return self.worker.user
        return self.employer


class Message(models.Model):
    chat = models.ForeignKey(Chat, on_delete=models.CASCADE, related_name='messages')
    author = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='chat_messages'
    )
    kind = models.CharField(max_length=10, choices=MESSAGE_KIND_CHOICES, default=MESSAGE_KIND_USER)
    body = models.TextField()
    payload = models.JSONField(null=True, blank=True)
    sequence = models.PositiveBigIntegerField()
    is_read = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['sequence']
        constraints = [
            models.UniqueConstraint(fields=['chat', 'sequence'], name='unique_chat_sequence'),
        ]

    def __str__(self):
        return f"#{self.sequence} in chat {self.chat_id} ({self.kind})"


class ChatReadCursor(models.Model):
    chat = models.ForeignKey(Chat, on_delete=models.CASCADE, related_name='read_cursors')
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='chat_read_cursors')
    last_read_sequence = models.PositiveBigIntegerField(default=0)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        unique_together = ('chat', 'user')

    def __str__(self):
        return f"{self.user.username} read chat {self.chat_id} up to #{self.last_read_sequence}"
