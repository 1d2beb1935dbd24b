"""
Push events for the real-time layer.

Each event carries the changed entity plus its ordering key (transcript
sequence, job version or notification id) so clients can tell whether they
missed something and catch up through the REST endpoints.
"""
import json
import uuid
from dataclasses import dataclass, field
from typing import Optional

from django.core.serializers.json import DjangoJSONEncoder
from django.utils import timezone

TRANSCRIPT_ENTRY = 'transcript.entry'
TRANSCRIPT_READ = 'transcript.read'
JOB_STATE = 'job.state'
NOTIFICATION_CREATED = 'notification.created'


@dataclass
class RealtimeEvent:
    type: str
    data: dict
    job_id: Optional[int] = None
    user_id: Optional[int] = None
    sequence: Optional[int] = None
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    created_at: str = field(default_factory=lambda: timezone.now().isoformat())

    def to_dict(self):
        return {
            'id': self.id,
            'type': self.type,
            'job_id': self.job_id,
            'user_id': self.user_id,
            'sequence': self.sequence,
            'created_at': self.created_at,
            'data': self.data,
        }

    def to_sse(self):
        """Format as a Server-Sent Events frame."""
        payload = json.dumps(self.to_dict(), cls=DjangoJSONEncoder)
        return f"id: {self.id}\nevent: {self.type}\ndata: {payload}\n\n"


def transcript_entry_event(message):
    chat = message.chat
    return RealtimeEvent(
        type=TRANSCRIPT_ENTRY,
        job_id=chat.job_id,
        sequence=message.sequence,
        data={
            'id': message.id,
            'chat_id': chat.id,
            'author_id': message.author_id,
            'kind': message.kind,
            'body': message.body,
            'payload': message.payload,
            'sequence': message.sequence,
            'created_at': message.created_at,
        },
    )


def transcript_read_event(chat, reader, upto_sequence):
    return RealtimeEvent(
        type=TRANSCRIPT_READ,
        job_id=chat.job_id,
        sequence=upto_sequence,
        data={'chat_id': chat.id, 'reader_id': reader.pk, 'upto_sequence': upto_sequence},
    )


def job_state_event(job, from_state, to_state, version, actor):
    return RealtimeEvent(
        type=JOB_STATE,
        job_id=job.pk,
        sequence=version,
        data={
            'job_id': job.pk,
            'from_state': from_state,
            'state': to_state,
            'version': version,
            'changed_by': actor.pk if actor else None,
        },
    )


def notification_event(notification):
    return RealtimeEvent(
        type=NOTIFICATION_CREATED,
        job_id=notification.job_id,
        user_id=notification.recipient_id,
        sequence=notification.id,
        data={
            'id': notification.id,
            'job_id': notification.job_id,
            'type': notification.type,
            'title': notification.title,
            'body': notification.body,
            'is_read': notification.is_read,
            'created_at': notification.created_at,
        },
    )
