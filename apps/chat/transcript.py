"""Append-only, per-chat ordered transcript of user and system entries.

Sequence numbers are handed out by an atomic ``UPDATE`` of
``Chat.last_sequence`` inside the same transaction that inserts the entry, so
two concurrent appends to one chat serialize on the chat row and never share a
number. The unique (chat, sequence) constraint backs this up.
"""
import logging

from django.db import transaction, OperationalError, InterfaceError
from django.db.models import F

from core.constants import MESSAGE_KIND_USER, MESSAGE_KIND_SYSTEM, MESSAGE_KIND_CHOICES
from core.exceptions import NotFoundError, ForbiddenError, DependencyUnavailableError
from .models import Chat, Message, ChatReadCursor
from .signals import messages_read

logger = logging.getLogger(__name__)


def get_chat(chat_id):
    if isinstance(chat_id, Chat):
        return chat_id
    try:
        return Chat.objects.select_related('job', 'worker__user', 'employer').get(pk=chat_id)
    except (Chat.DoesNotExist, ValueError, TypeError):
        raise NotFoundError("Chat not found")


def _require_party(chat, user):
    if not chat.is_party(user):
        raise ForbiddenError("Only the worker and employer of this job can access its chat.")


def append_entry(chat, author, kind, body, payload=None):
    """Append one entry and return it with its assigned sequence.

    User entries must come from one of the two parties; system entries are
    generated by the lifecycle engine and skip that check.
    """
    chat = get_chat(chat)
    if kind not in dict(MESSAGE_KIND_CHOICES):
        raise ValueError(f"Unknown transcript entry kind: {kind}")
    if kind == MESSAGE_KIND_USER:
        _require_party(chat, author)

    try:
        with transaction.atomic():
            updated = Chat.objects.filter(pk=chat.pk).update(last_sequence=F('last_sequence') + 1)
            if not updated:
                raise NotFoundError("Chat not found")
            sequence = Chat.objects.filter(pk=chat.pk).values_list('last_sequence', flat=True).get()
            entry = Message.objects.create(
                chat=chat,
                author=author,
                kind=kind,
                body=body,
                payload=payload,
                sequence=sequence,
            )
    except (OperationalError, InterfaceError) as e:
        logger.error(f"Failed to append {kind} entry to chat {chat.pk}: {str(e)}")
        raise DependencyUnavailableError("Chat transcript is temporarily unavailable.") from e

    chat.last_sequence = sequence
    logger.info(f"Appended {kind} entry #{sequence} to chat {chat.pk}")
    return entry


def append_system_entry(chat, actor, body, payload=None):
    return append_entry(chat, actor, MESSAGE_KIND_SYSTEM, body, payload)


def list_entries(chat, since_sequence=None, reader=None):
    """Entries in sequence order, optionally only those after ``since_sequence``.

    Returns a lazy queryset; iterating it again re-reads the store.
    """
    chat = get_chat(chat)
    if reader is not None:
        _require_party(chat, reader)
    entries = Message.objects.filter(chat=chat).select_related('author').order_by('sequence')
    if since_sequence is not None:
        entries = entries.filter(sequence__gt=since_sequence)
    return entries


def mark_read(chat, reader, upto_sequence):
    """Mark the counterpart's entries up to ``upto_sequence`` as read.

    Idempotent and monotonic: a cursor at or behind the reader's current one
    changes nothing. Returns the reader's cursor after the call.
    """
    chat = get_chat(chat)
    _require_party(chat, reader)
    upto_sequence = min(int(upto_sequence), Chat.objects.filter(pk=chat.pk).values_list('last_sequence', flat=True).get())

    with transaction.atomic():
        cursor, _ = ChatReadCursor.objects.get_or_create(chat=chat, user=reader)
        if upto_sequence <= cursor.last_read_sequence:
            return cursor.last_read_sequence
        marked = (
            Message.objects.filter(chat=chat, sequence__lte=upto_sequence, is_read=False)
            .exclude(author=reader)
            .update(is_read=True)
        )
        ChatReadCursor.objects.filter(
            pk=cursor.pk, last_read_sequence__lt=upto_sequence
        ).update(last_read_sequence=upto_sequence)
        messages_read.send(sender=Chat, chat=chat, reader=reader, upto_sequence=upto_sequence)

    logger.info(f"User {reader.pk} read chat {chat.pk} up to #{upto_sequence} ({marked} newly read)")
    return upto_sequence


def unread_count(chat, user):
    chat = get_chat(chat)
    return Message.objects.filter(chat=chat, is_read=False).exclude(author=user).count()


def chats_for_user(user):
    return (
        Chat.objects.filter(employer=user) | Chat.objects.filter(worker__user=user)
    ).select_related('job', 'worker__user', 'employer').order_by('-created_at')
