import pytest
from rest_framework.test import APIClient

from apps.users.models import User, Employer, Worker
from apps.jobs.models import Job
from apps.jobs import services
from apps.realtime.hub import reset_hub


@pytest.fixture(autouse=True)
def fresh_hub():
    reset_hub()
    yield
    reset_hub()


@pytest.fixture
def make_employer(db):
    def _make(username='employer', **kwargs):
        user = User.objects.create_user(
            username=username, password='secret123', email=f'{username}@example.com',
            first_name=kwargs.pop('first_name', 'Erin'), last_name=kwargs.pop('last_name', 'Boss'),
            **kwargs
        )
        Employer.objects.create(user=user, location='Addis Ababa')
        return user
    return _make


@pytest.fixture
def make_worker(db):
    def _make(username='worker', **kwargs):
        user = User.objects.create_user(
            username=username, password='secret123', email=f'{username}@example.com',
            first_name=kwargs.pop('first_name', 'Sam'), last_name=kwargs.pop('last_name', 'Fixer'),
            **kwargs
        )
        Worker.objects.create(user=user, location='Bole', skills='plumbing')
        return user
    return _make


@pytest.fixture
def employer(make_employer):
    return make_employer()


@pytest.fixture
def worker(make_worker):
    return make_worker()


@pytest.fixture
def other_worker(make_worker):
    return make_worker('other_worker', first_name='Alex', last_name='Other')


@pytest.fixture
def job(employer):
    return Job.objects.create(employer=employer, title='Fix kitchen sink', location='Bole')


@pytest.fixture
def application(job, worker):
    return services.apply_to_job(job.id, worker, 'I can do it today')


@pytest.fixture
def accepted(application, employer):
    """Job with the worker's application accepted and the chat open."""
    return services.accept_application(application.id, employer)


@pytest.fixture
def api_client():
    def _client(user=None):
        client = APIClient()
        if user is not None:
            client.force_authenticate(user=user)
        return client
    return _client
