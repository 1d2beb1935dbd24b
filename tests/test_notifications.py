from unittest import mock

import pytest
from django.core import mail
from django.db import DatabaseError

from core.constants import NOTIFICATION_MESSAGE, NOTIFICATION_STATE_CHANGE, STATE_EN_ROUTE
from core.exceptions import NotFoundError
from apps.chat import services as chat_services
from apps.chat.models import Message
from apps.jobs import lifecycle, services
from apps.jobs.models import Job
from apps.notifications import dispatcher
from apps.notifications.models import Notification


@pytest.fixture
def assigned_job(accepted):
    return Job.objects.select_related('employer', 'assigned_worker__user').get(pk=accepted.application.job_id)


def test_counterpart_of(assigned_job, employer, worker, other_worker):
    assert dispatcher.counterpart_of(assigned_job, employer) == worker
    assert dispatcher.counterpart_of(assigned_job, worker) == employer
    with pytest.raises(NotFoundError):
        dispatcher.counterpart_of(assigned_job, other_worker)


def test_counterpart_of_unassigned_job(job, employer):
    assert dispatcher.counterpart_of(job, employer) is None


def test_notify_unknown_recipient(job):
    with pytest.raises(NotFoundError):
        dispatcher.notify(None, job, NOTIFICATION_MESSAGE, 'Hi', 'there')
    with pytest.raises(NotFoundError):
        dispatcher.notify(999999, job, NOTIFICATION_MESSAGE, 'Hi', 'there')


def test_list_is_newest_first_and_limited(job, worker, settings):
    settings.NOTIFICATION_LIST_LIMIT = 3
    for i in range(5):
        dispatcher.notify(worker, job, NOTIFICATION_STATE_CHANGE, f'update {i}', 'body')

    titles = [n.title for n in dispatcher.list_notifications(worker)]
    assert titles == ['update 4', 'update 3', 'update 2']
    assert len(dispatcher.list_notifications(worker, limit=10)) == 5


def test_mark_read_is_idempotent(job, worker, other_worker):
    notification = dispatcher.notify(worker, job, NOTIFICATION_MESSAGE, 'Hi', 'there')
    assert dispatcher.unread_count(worker) == 1

    dispatcher.mark_read(notification.id, worker)
    dispatcher.mark_read(notification.id, worker)

    assert Notification.objects.get(pk=notification.pk).is_read is True
    assert dispatcher.unread_count(worker) == 0
    with pytest.raises(NotFoundError):
        dispatcher.mark_read(notification.id, other_worker)


def test_mark_all_read(job, worker):
    for i in range(3):
        dispatcher.notify(worker, job, NOTIFICATION_MESSAGE, f'msg {i}', 'body')

    assert dispatcher.mark_all_read(worker) == 3
    assert dispatcher.mark_all_read(worker) == 0
    assert dispatcher.unread_count(worker) == 0


def test_failed_notification_does_not_undo_message(accepted, worker):
    with mock.patch.object(dispatcher, 'notify', side_effect=DatabaseError('disk full')):
        entry = chat_services.send_message(accepted.chat.id, worker, 'Still coming')

    assert Message.objects.filter(pk=entry.pk).exists()
    assert not Notification.objects.filter(type=NOTIFICATION_MESSAGE).exists()


def test_failed_notification_does_not_undo_transition(accepted, worker):
    with mock.patch.object(dispatcher, 'notify', side_effect=DatabaseError('disk full')):
        result = lifecycle.request_transition(
            accepted.application.job_id, accepted.application.id, worker, STATE_EN_ROUTE,
        )

    assert result.to_state == STATE_EN_ROUTE
    assert Job.objects.get(pk=accepted.application.job_id).state == STATE_EN_ROUTE


def test_external_delivery(job, make_worker, settings, django_capture_on_commit_callbacks):
    settings.NOTIFICATIONS_EXTERNAL_DELIVERY = True
    settings.TWILIO_ACCOUNT_SID = 'AC123'
    settings.TWILIO_PHONE_NUMBER = '+15550000000'
    recipient = make_worker('texted', phone_number='+251911223344')

    with mock.patch('apps.notifications.utils.TwilioClient') as twilio:
        with django_capture_on_commit_callbacks(execute=True):
            dispatcher.notify(recipient, job, NOTIFICATION_STATE_CHANGE, 'Job status updated', 'It moved')

    assert len(mail.outbox) == 1
    assert mail.outbox[0].subject == 'Job status updated'
    assert 'It moved' in mail.outbox[0].body
    twilio.return_value.messages.create.assert_called_once_with(
        body='Job status updated: It moved', from_='+15550000000', to='+251911223344',
    )


def test_external_delivery_off_by_default(job, worker, django_capture_on_commit_callbacks):
    with django_capture_on_commit_callbacks(execute=True):
        dispatcher.notify(worker, job, NOTIFICATION_MESSAGE, 'Hi', 'there')
    assert mail.outbox == []


def test_sms_network_failure_does_not_escape_committed_transition(
    make_employer, make_worker, settings, django_capture_on_commit_callbacks
):
    settings.NOTIFICATIONS_EXTERNAL_DELIVERY = True
    settings.TWILIO_ACCOUNT_SID = 'AC123'
    employer = make_employer('texted_employer', phone_number='+251911000111')
    worker = make_worker('texted_worker')
    job = Job.objects.create(employer=employer, title='Hang shelves')
    application = services.apply_to_job(job.id, worker)
    services.accept_application(application.id, employer)

    with mock.patch('apps.notifications.utils.TwilioClient') as twilio:
        twilio.return_value.messages.create.side_effect = ConnectionError('twilio unreachable')
        with django_capture_on_commit_callbacks(execute=True):
            result = lifecycle.request_transition(job.id, application.id, worker, STATE_EN_ROUTE)

    assert result.to_state == STATE_EN_ROUTE
    assert twilio.return_value.messages.create.called
    assert Job.objects.get(pk=job.id).state == STATE_EN_ROUTE


def test_delivery_errors_are_logged_not_raised(job, worker, settings, django_capture_on_commit_callbacks):
    settings.NOTIFICATIONS_EXTERNAL_DELIVERY = True

    with mock.patch('apps.notifications.utils.send_mail', side_effect=OSError('smtp down')):
        with django_capture_on_commit_callbacks(execute=True):
            notification = dispatcher.notify(worker, job, NOTIFICATION_MESSAGE, 'Hi', 'there')

    assert Notification.objects.filter(pk=notification.pk).exists()


def test_notify_rejects_unknown_notification_type(job, worker):
    notification = dispatcher.notify(worker, job, notification_type=NOTIFICATION_MESSAGE, title='Hi', body='there')
    assert notification.type == NOTIFICATION_MESSAGE

    with pytest.raises(ValueError):
        dispatcher.notify(worker, job, notification_type='carrier_pigeon', title='Hi', body='there')
