"""Application workflow: apply, accept, reject."""
import logging
from dataclasses import dataclass

from django.db import transaction, IntegrityError
from django.utils import timezone

from core.constants import (
    STATE_APPLIED, STATE_ACCEPTED, APPLICATION_PENDING, APPLICATION_ACCEPTED,
    APPLICATION_REJECTED, NOTIFICATION_APPLICATION,
)
from core.exceptions import (
    NotFoundError, ForbiddenError, InvalidTransitionError, DuplicateApplicationError,
)
from core.utils import display_name
from apps.chat.models import Chat
from apps.notifications import dispatcher
from .models import Job, JobApplication, JobState
from . import lifecycle

logger = logging.getLogger(__name__)


@dataclass
class AcceptResult:
    application: JobApplication
    chat: Chat
    job_state: JobState
    transition: lifecycle.TransitionResult


def _load_application(application_id):
    try:
        return JobApplication.objects.select_related(
            'job__employer', 'job__assigned_worker__user', 'worker__user'
        ).get(pk=application_id)
    except (JobApplication.DoesNotExist, ValueError, TypeError):
        raise NotFoundError("Application not found")


def apply_to_job(job_id, user, message=''):
    worker = getattr(user, 'worker', None)
    if worker is None:
        raise ForbiddenError("Only workers can apply to jobs.")
    try:
        job = Job.objects.select_related('employer').get(pk=job_id)
    except (Job.DoesNotExist, ValueError, TypeError):
        raise NotFoundError("Job not found")

    if job.state != STATE_APPLIED or job.assigned_worker_id:
        raise InvalidTransitionError("This job is no longer accepting applications.")
    if JobApplication.objects.filter(job=job, worker=worker).exists():
        raise DuplicateApplicationError()

    try:
        with transaction.atomic():
            application = JobApplication.objects.create(job=job, worker=worker, message=message or '')
    except IntegrityError:
        # lost a race against the same worker's other request
        raise DuplicateApplicationError()

    logger.info(f"Worker {worker.id} applied to job {job.id}")
    dispatcher.notify_safely(
        job.employer, job, NOTIFICATION_APPLICATION, "New application",
        f'{display_name(user)} applied to "{job.title}"',
        application=application,
    )
    return application


def accept_application(application_id, employer):
    """Accept a pending application, open the chat and move the job to accepted."""
    application = _load_application(application_id)
    job = application.job
    if job.employer_id != employer.pk:
        raise ForbiddenError("Not authorized to accept applications for this job.")
    if application.status != APPLICATION_PENDING:
        raise InvalidTransitionError("Application has already been processed.")

    with transaction.atomic():
        claimed = Job.objects.filter(
            pk=job.pk, state=STATE_APPLIED, assigned_worker__isnull=True
        ).update(assigned_worker=application.worker)
        if not claimed:
            raise InvalidTransitionError("Job already has an assigned worker.")
        processed = JobApplication.objects.filter(
            pk=application.pk, status=APPLICATION_PENDING
        ).update(status=APPLICATION_ACCEPTED, updated_at=timezone.now())
        if not processed:
            raise InvalidTransitionError("Application has already been processed.")
        application.status = APPLICATION_ACCEPTED
        job.assigned_worker = application.worker

        chat = Chat.objects.create(
            job=job,
            application=application,
            worker=application.worker,
            employer=job.employer,
        )
        result = lifecycle.apply_transition(job, employer, STATE_ACCEPTED, chat=chat, application=application)

    logger.info(f"Employer {employer.pk} accepted application {application.pk} for job {job.pk}")
    lifecycle.notify_transition(result)
    return AcceptResult(
        application=application,
        chat=chat,
        job_state=JobState.objects.get(job=job),
        transition=result,
    )


def reject_application(application_id, employer):
    application = _load_application(application_id)
    job = application.job
    if job.employer_id != employer.pk:
        raise ForbiddenError("Not authorized to reject applications for this job.")

    processed = JobApplication.objects.filter(
        pk=application.pk, status=APPLICATION_PENDING
    ).update(status=APPLICATION_REJECTED, updated_at=timezone.now())
    if not processed:
        raise InvalidTransitionError("Application has already been processed.")
    application.status = APPLICATION_REJECTED

    logger.info(f"Employer {employer.pk} rejected application {application.pk} for job {job.pk}")
    dispatcher.notify_safely(
        application.worker.user, job, NOTIFICATION_APPLICATION, "Application rejected",
        f'Your application for "{job.title}" was rejected',
        application=application,
    )
    return application


def list_job_applications(job_id, employer):
    try:
        job = Job.objects.get(pk=job_id)
    except (Job.DoesNotExist, ValueError, TypeError):
        raise NotFoundError("Job not found")
    if job.employer_id != employer.pk:
        raise ForbiddenError("Not authorized to view applications for this job.")
    return job.applications.select_related('worker__user')


def list_worker_applications(user):
    worker = getattr(user, 'worker', None)
    if worker is None:
        return JobApplication.objects.none()
    return JobApplication.objects.filter(worker=worker).select_related('job')
