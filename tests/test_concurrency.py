import threading
from concurrent.futures import ThreadPoolExecutor

import pytest
from django.db import connections

from core.constants import STATE_EN_ROUTE, MESSAGE_KIND_USER
from core.exceptions import InvalidTransitionError
from apps.chat import services as chat_services, transcript
from apps.chat.models import Message
from apps.jobs import lifecycle
from apps.jobs.models import Job, JobStateTransition

pytestmark = pytest.mark.django_db(transaction=True)


def run_together(calls):
    """Start every call at the same moment, each on its own thread and connection."""
    barrier = threading.Barrier(len(calls))

    def run(call):
        try:
            barrier.wait()
            return call(), None
        except Exception as e:
            return None, e
        finally:
            connections.close_all()

    with ThreadPoolExecutor(max_workers=len(calls)) as pool:
        return list(pool.map(run, calls))


def test_concurrent_sends_get_distinct_sequences(accepted, employer, worker):
    chat_id = accepted.chat.id
    count = 8
    calls = [
        (lambda i=i: chat_services.send_message(chat_id, worker if i % 2 else employer, f'message {i}'))
        for i in range(count)
    ]

    outcomes = run_together(calls)

    assert [error for _, error in outcomes] == [None] * count
    sequences = sorted(entry.sequence for entry, _ in outcomes)
    assert sequences == list(range(2, count + 2))

    entries = list(transcript.list_entries(chat_id).filter(kind=MESSAGE_KIND_USER))
    assert len(entries) == count
    assert {e.body for e in entries} == {f'message {i}' for i in range(count)}
    assert list(transcript.list_entries(chat_id).values_list('sequence', flat=True)) == list(range(1, count + 2))


def test_concurrent_transitions_apply_once(accepted, employer, worker):
    job_id, application_id = accepted.application.job_id, accepted.application.id
    calls = [
        lambda: lifecycle.request_transition(job_id, application_id, worker, STATE_EN_ROUTE),
        lambda: lifecycle.request_transition(job_id, application_id, worker, STATE_EN_ROUTE),
    ]

    outcomes = run_together(calls)

    results = [result for result, error in outcomes if error is None]
    errors = [error for _, error in outcomes if error is not None]
    assert len(results) == 1
    assert len(errors) == 1
    assert isinstance(errors[0], InvalidTransitionError)

    job = Job.objects.get(pk=job_id)
    assert job.state == STATE_EN_ROUTE
    assert job.version == 2
    assert Message.objects.filter(chat_id=accepted.chat.id, payload__state=STATE_EN_ROUTE).count() == 1
    assert JobStateTransition.objects.filter(job_id=job_id, to_state=STATE_EN_ROUTE).count() == 1
