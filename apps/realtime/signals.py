"""Publish store changes to observers once the writing transaction commits."""
from django.db import transaction
from django.db.models.signals import post_save
from django.dispatch import receiver
import logging

from apps.jobs.signals import job_state_changed
from apps.chat.signals import messages_read
from . import events
from .hub import get_hub

logger = logging.getLogger(__name__)


def _push_to_job(job_id, event):
    try:
        get_hub().publish_to_job(job_id, event)
    except Exception as e:
        logger.error(f"Failed to push {event.type} for job {job_id}: {str(e)}")


def _push_to_user(user_id, event):
    try:
        get_hub().publish_to_user(user_id, event)
    except Exception as e:
        logger.error(f"Failed to push {event.type} to user {user_id}: {str(e)}")


@receiver(post_save, sender='chat.Message')
def push_transcript_entry(sender, instance, created, **kwargs):
    if not created:
        return
    try:
        event = events.transcript_entry_event(instance)
    except Exception as e:
        logger.error(f"Could not build transcript event for message {instance.id}: {str(e)}")
        return
    transaction.on_commit(lambda: _push_to_job(event.job_id, event))


@receiver(messages_read)
def push_read_receipt(sender, chat, reader, upto_sequence, **kwargs):
    event = events.transcript_read_event(chat, reader, upto_sequence)
    transaction.on_commit(lambda: _push_to_job(chat.job_id, event))


@receiver(job_state_changed)
def push_job_state(sender, job, from_state, to_state, version, actor, **kwargs):
    event = events.job_state_event(job, from_state, to_state, version, actor)
    transaction.on_commit(lambda: _push_to_job(job.pk, event))


@receiver(post_save, sender='notifications.Notification')
def push_notification(sender, instance, created, **kwargs):
    if not created:
        return
    try:
        event = events.notification_event(instance)
    except Exception as e:
        logger.error(f"Could not build notification event for {instance.id}: {str(e)}")
        return
    transaction.on_commit(lambda: _push_to_user(instance.recipient_id, event))
