"""Per-recipient notification records for transitions, applications and messages.

Notifications are best-effort relative to the job state and the transcript:
callers on the lifecycle path use ``notify_safely`` so a failure here is logged
and never undoes the change that triggered it.
"""
import logging

from django.conf import settings
from django.contrib.auth import get_user_model
from django.db import transaction, DatabaseError

from core.constants import NOTIFICATION_TYPE_CHOICES
from core.exceptions import CoreError, NotFoundError
from .models import Notification
from .utils import deliver_externally

logger = logging.getLogger(__name__)
User = get_user_model()


def counterpart_of(job, actor):
    """The party to ``job`` who is not ``actor``, read from the job record."""
    worker_user_id = job.assigned_worker.user_id if job.assigned_worker_id else None
    if actor.pk == job.employer_id:
        return job.assigned_worker.user if worker_user_id else None
    if worker_user_id is not None and actor.pk == worker_user_id:
        return job.employer
    raise NotFoundError("Job not found")


def notify(recipient, job, notification_type, title, body, application=None):
    if notification_type not in dict(NOTIFICATION_TYPE_CHOICES):
        raise ValueError(f"Unknown notification type: {notification_type}")
    if recipient is None:
        raise NotFoundError("Notification recipient not found")
    if not isinstance(recipient, User):
        try:
            recipient = User.objects.get(pk=recipient)
        except (User.DoesNotExist, ValueError, TypeError):
            raise NotFoundError("Notification recipient not found")

    notification = Notification.objects.create(
        recipient=recipient,
        job=job,
        application=application,
        type=notification_type,
        title=title,
        body=body,
    )
    logger.info(f"Created {notification_type} notification {notification.id} for user {recipient.pk} on job {job.id}")

    if settings.NOTIFICATIONS_EXTERNAL_DELIVERY:
        transaction.on_commit(lambda: deliver_externally(notification))
    return notification


def notify_safely(recipient, job, notification_type, title, body, application=None):
    """Like ``notify`` but isolated in a savepoint; returns None on failure."""
    try:
        with transaction.atomic():
            return notify(recipient, job, notification_type, title, body, application=application)
    except (CoreError, DatabaseError) as e:
        logger.error(f"Failed to create {notification_type} notification on job {job.id}: {str(e)}")
        return None


def list_notifications(user, limit=None):
    if limit is None:
        limit = settings.NOTIFICATION_LIST_LIMIT
    return Notification.objects.filter(recipient=user).select_related('job')[:limit]


def unread_count(user):
    return Notification.objects.filter(recipient=user, is_read=False).count()


def mark_read(notification_id, reader):
    """Mark one of the reader's notifications as read. Idempotent."""
    try:
        notification = Notification.objects.get(pk=notification_id, recipient=reader)
    except (Notification.DoesNotExist, ValueError, TypeError):
        raise NotFoundError("Notification not found")
    if not notification.is_read:
        Notification.objects.filter(pk=notification.pk).update(is_read=True)
        notification.is_read = True
    return notification


def mark_all_read(recipient):
    count = Notification.objects.filter(recipient=recipient, is_read=False).update(is_read=True)
    if count:
        logger.info(f"Marked {count} notifications as read for user {recipient.pk}")
    return count
