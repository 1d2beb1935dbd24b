import pytest
from rest_framework.exceptions import ValidationError

from core.constants import (
    STATE_EN_ROUTE, STATE_IN_PROGRESS, STATE_COMPLETED, MESSAGE_KIND_USER, NOTIFICATION_MESSAGE,
)
from core.exceptions import NotFoundError, ForbiddenError, InvalidTransitionError
from apps.chat import transcript, services
from apps.chat.models import Chat, ChatReadCursor, Message
from apps.jobs import lifecycle
from apps.notifications.models import Notification


@pytest.fixture
def chat(accepted):
    return Chat.objects.select_related('job', 'worker__user', 'employer').get(pk=accepted.chat.pk)


def test_sequences_have_no_gaps(chat, employer, worker):
    for i in range(5):
        author = worker if i % 2 else employer
        services.send_message(chat.id, author, f'message {i}')

    sequences = list(transcript.list_entries(chat).values_list('sequence', flat=True))
    assert sequences == [1, 2, 3, 4, 5, 6]
    chat.refresh_from_db()
    assert chat.last_sequence == 6


def test_identical_messages_are_distinct_entries(chat, worker):
    first = services.send_message(chat.id, worker, 'On my way')
    second = services.send_message(chat.id, worker, 'On my way')

    assert first.pk != second.pk
    assert second.sequence == first.sequence + 1


def test_list_since(chat, employer, worker):
    services.send_message(chat.id, worker, 'one')
    services.send_message(chat.id, employer, 'two')
    services.send_message(chat.id, worker, 'three')

    later = list(transcript.list_entries(chat.id, since_sequence=2, reader=worker))
    assert [e.body for e in later] == ['two', 'three']
    assert list(transcript.list_entries(chat.id, since_sequence=4)) == []


def test_send_message_notifies_counterpart(chat, employer, worker):
    entry = services.send_message(chat.id, worker, '  Running 5 minutes late  ')

    assert entry.body == 'Running 5 minutes late'
    assert entry.kind == MESSAGE_KIND_USER
    assert entry.author == worker
    notice = Notification.objects.get(recipient=employer, type=NOTIFICATION_MESSAGE)
    assert notice.body == 'Sam Fixer sent you a message about "Fix kitchen sink"'
    assert not Notification.objects.filter(recipient=worker, type=NOTIFICATION_MESSAGE).exists()


def test_empty_message_is_rejected(chat, worker):
    with pytest.raises(ValidationError):
        services.send_message(chat.id, worker, '   ')
    assert Message.objects.filter(chat=chat).count() == 1


def test_outsider_cannot_read_or_write(chat, other_worker):
    with pytest.raises(ForbiddenError):
        services.send_message(chat.id, other_worker, 'hello?')
    with pytest.raises(ForbiddenError):
        transcript.list_entries(chat.id, reader=other_worker)
    with pytest.raises(ForbiddenError):
        transcript.mark_read(chat.id, other_worker, 1)


def test_unknown_chat(worker):
    with pytest.raises(NotFoundError):
        services.send_message(123456, worker, 'hi')


def test_mark_read_is_idempotent_and_monotonic(chat, employer, worker):
    services.send_message(chat.id, worker, 'a')
    services.send_message(chat.id, worker, 'b')
    services.send_message(chat.id, employer, 'c')
    # the acceptance entry is authored by the employer
    assert transcript.unread_count(chat, employer) == 2

    assert transcript.mark_read(chat.id, employer, 2) == 2
    assert transcript.unread_count(chat, employer) == 1
    assert transcript.mark_read(chat.id, employer, 2) == 2
    # moving the cursor backwards changes nothing
    assert transcript.mark_read(chat.id, employer, 1) == 2
    assert ChatReadCursor.objects.get(chat=chat, user=employer).last_read_sequence == 2

    assert transcript.mark_read(chat.id, employer, 99) == 4
    assert transcript.unread_count(chat, employer) == 0
    # the employer's own message is left for the worker to read
    assert Message.objects.get(chat=chat, sequence=4).is_read is False


def test_share_eta_and_location(chat, worker, employer):
    lifecycle.request_transition(chat.job_id, chat.application_id, worker, STATE_EN_ROUTE)

    eta = services.share_eta(chat.id, worker, 12)
    assert eta.body == 'Estimated arrival: 12 min'
    assert eta.payload == {'type': 'eta', 'minutes': 12}

    location = services.share_location(chat.id, employer, 9.0108, 38.7613)
    assert location.payload == {'type': 'location', 'latitude': 9.0108, 'longitude': 38.7613}

    with pytest.raises(ValidationError):
        services.share_location(chat.id, worker, 91, 0)
    with pytest.raises(ValidationError):
        services.share_eta(chat.id, worker, 0)


def test_eta_needs_job_under_way(chat, worker):
    lifecycle.request_transition(chat.job_id, chat.application_id, worker, STATE_EN_ROUTE)
    lifecycle.request_transition(chat.job_id, chat.application_id, worker, STATE_IN_PROGRESS)
    lifecycle.request_transition(chat.job_id, chat.application_id, worker, STATE_COMPLETED)

    with pytest.raises(InvalidTransitionError):
        services.share_eta(chat.id, worker, 5)


def test_chats_for_user(chat, employer, worker, other_worker):
    assert list(transcript.chats_for_user(employer)) == [chat]
    assert list(transcript.chats_for_user(worker)) == [chat]
    assert list(transcript.chats_for_user(other_worker)) == []
