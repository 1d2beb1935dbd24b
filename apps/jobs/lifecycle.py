"""Role-gated job lifecycle.

The allowed moves are a fixed lookup keyed by (role, from_state). A transition
is written as a compare-and-swap on the job's (state, version) together with
its milestone, its audit row and one system transcript entry, all in a single
transaction. Of two requests racing from the same state exactly one wins; the
other sees InvalidTransitionError and writes nothing.
"""
import logging
from dataclasses import dataclass
from typing import Optional

from django.db import transaction, IntegrityError, OperationalError, InterfaceError
from django.db.models import F
from django.utils import timezone

from core.constants import (
    ROLE_WORKER, ROLE_EMPLOYER, JOB_STATE_CHOICES, TERMINAL_STATES,
    STATE_APPLIED, STATE_ACCEPTED, STATE_EN_ROUTE, STATE_IN_PROGRESS,
    STATE_COMPLETED, STATE_CONFIRMED, STATE_CANCELLED,
    APPLICATION_ACCEPTED, APPLICATION_PENDING, APPLICATION_REJECTED,
    NOTIFICATION_STATE_CHANGE, NOTIFICATION_APPLICATION,
)
from core.exceptions import (
    NotFoundError, InvalidRoleError, InvalidTransitionError, DependencyUnavailableError,
)
from core.utils import display_name
from apps.chat import transcript
from apps.chat.models import Chat
from apps.notifications import dispatcher
from .models import Job, JobApplication, JobState, JobStateTransition
from .signals import job_state_changed

logger = logging.getLogger(__name__)

STATE_LABELS = dict(JOB_STATE_CHOICES)

ROLE_TRANSITIONS = {
    (ROLE_EMPLOYER, STATE_APPLIED): STATE_ACCEPTED,
    (ROLE_WORKER, STATE_ACCEPTED): STATE_EN_ROUTE,
    (ROLE_WORKER, STATE_EN_ROUTE): STATE_IN_PROGRESS,
    (ROLE_WORKER, STATE_IN_PROGRESS): STATE_COMPLETED,
    (ROLE_EMPLOYER, STATE_COMPLETED): STATE_CONFIRMED,
}

MILESTONES = {
    STATE_ACCEPTED: 'worker_assigned_at',
    STATE_IN_PROGRESS: 'worker_started_at',
    STATE_COMPLETED: 'work_completed_at',
    STATE_CONFIRMED: 'employer_approved_at',
    STATE_CANCELLED: 'cancelled_at',
}

SYSTEM_MESSAGES = {
    STATE_ACCEPTED: "Application accepted. The chat is now enabled!",
    STATE_EN_ROUTE: "{name} is on the way to the job",
    STATE_IN_PROGRESS: "{name} has arrived and started the work",
    STATE_COMPLETED: "{name} marked the work as completed, please confirm",
    STATE_CONFIRMED: "{name} confirmed the work as completed",
    STATE_CANCELLED: "{name} cancelled the job",
}


@dataclass
class TransitionResult:
    job: Job
    from_state: str
    to_state: str
    actor: object
    transition: JobStateTransition
    entry: Optional[object] = None
    application: Optional[JobApplication] = None

    @property
    def state(self):
        return self.to_state


def role_in_job(job, user):
    if user is None:
        return None
    if user.pk == job.employer_id:
        return ROLE_EMPLOYER
    if job.assigned_worker_id and user.pk == job.assigned_worker.user_id:
        return ROLE_WORKER
    return None


def required_role(from_state, to_state):
    for (role, source), target in ROLE_TRANSITIONS.items():
        if source == from_state and target == to_state:
            return role
    return None


def next_state(role, from_state):
    return ROLE_TRANSITIONS.get((role, from_state))


def validate_transition(role, from_state, to_state):
    if to_state not in STATE_LABELS:
        raise InvalidTransitionError(f"Unknown job state '{to_state}'.")
    if from_state in TERMINAL_STATES:
        raise InvalidTransitionError(f"The job is already {STATE_LABELS[from_state].lower()}.")
    if to_state == STATE_CANCELLED:
        return
    allowed_role = required_role(from_state, to_state)
    if allowed_role is None:
        raise InvalidTransitionError(
            f"Cannot move a job from {STATE_LABELS[from_state]} to {STATE_LABELS[to_state]}."
        )
    if role != allowed_role:
        raise InvalidRoleError(
            f"Only the {allowed_role} can move a job from {STATE_LABELS[from_state]} to {STATE_LABELS[to_state]}."
        )


def system_message(to_state, actor, reason=''):
    body = SYSTEM_MESSAGES[to_state].format(name=display_name(actor))
    if reason:
        body = f"{body}: {reason}"
    return body


def _compare_and_swap(job, to_state, now):
    swapped = Job.objects.filter(
        pk=job.pk, state=job.state, version=job.version
    ).update(state=to_state, version=F('version') + 1, updated_at=now)
    if swapped != 1:
        logger.warning(f"Stale transition on job {job.pk}: expected {job.state} v{job.version}")
        raise InvalidTransitionError("The job changed while your request was processed. Refresh and try again.")
    job.state = to_state
    job.version += 1
    job.updated_at = now


def _record_milestone(job, application, to_state, now):
    job_state, _ = JobState.objects.get_or_create(job=job)
    updates = {'state': to_state}
    if application is not None:
        updates['application'] = application
    JobState.objects.filter(pk=job_state.pk).update(**updates)
    field = MILESTONES.get(to_state)
    if field:
        # never overwrite a milestone that is already set
        JobState.objects.filter(pk=job_state.pk, **{f'{field}__isnull': True}).update(**{field: now})


def apply_transition(job, actor, to_state, chat=None, application=None, reason=''):
    """Validate and persist one transition; notifications are the caller's job.

    ``job`` is the caller's snapshot: if another request moved the job since it
    was read, the compare-and-swap fails with InvalidTransitionError.
    """
    role = role_in_job(job, actor)
    if role is None:
        raise NotFoundError("Job not found")
    validate_transition(role, job.state, to_state)

    from_state, from_version = job.state, job.version
    body = system_message(to_state, actor, reason)
    now = timezone.now()
    try:
        with transaction.atomic():
            _compare_and_swap(job, to_state, now)
            _record_milestone(job, application, to_state, now)
            audit = JobStateTransition.objects.create(
                job=job,
                application=application,
                from_state=from_state,
                to_state=to_state,
                changed_by=actor,
                version=job.version,
                message=body,
            )
            entry = None
            if chat is not None:
                entry = transcript.append_system_entry(chat, actor, body, payload={
                    'type': 'state_change',
                    'from_state': from_state,
                    'state': to_state,
                    'version': job.version,
                })
            job_state_changed.send(
                sender=Job, job=job, from_state=from_state, to_state=to_state,
                version=job.version, actor=actor,
            )
    except IntegrityError as e:
        job.state, job.version = from_state, from_version
        logger.warning(f"Concurrent transition on job {job.pk}: {str(e)}")
        raise InvalidTransitionError("The job changed while your request was processed. Refresh and try again.")
    except (OperationalError, InterfaceError) as e:
        job.state, job.version = from_state, from_version
        logger.error(f"Failed to persist transition of job {job.pk} to {to_state}: {str(e)}")
        raise DependencyUnavailableError("Job state could not be saved, please retry.") from e
    except Exception:
        job.state, job.version = from_state, from_version
        raise

    logger.info(f"Job {job.pk} moved {from_state} -> {to_state} (v{job.version}) by user {actor.pk}")
    return TransitionResult(
        job=job, from_state=from_state, to_state=to_state, actor=actor,
        transition=audit, entry=entry, application=application,
    )


def notify_transition(result):
    """Tell the counterpart about a transition. Never raises."""
    job = result.job
    try:
        recipient = dispatcher.counterpart_of(job, result.actor)
    except NotFoundError:
        recipient = None
    if recipient is None:
        return None
    if result.to_state == STATE_ACCEPTED:
        return dispatcher.notify_safely(
            recipient, job, NOTIFICATION_APPLICATION, "Application accepted!",
            f'Your application for "{job.title}" has been accepted',
            application=result.application,
        )
    return dispatcher.notify_safely(
        recipient, job, NOTIFICATION_STATE_CHANGE, "Job status updated",
        f'The job "{job.title}" changed to: {STATE_LABELS[result.to_state]}',
        application=result.application,
    )


def _load_job(job_id):
    try:
        return Job.objects.select_related('employer', 'assigned_worker__user').get(pk=job_id)
    except (Job.DoesNotExist, ValueError, TypeError):
        raise NotFoundError("Job not found")


def request_transition(job_id, application_id, actor, target_state):
    """Move the job bound to an accepted application to ``target_state``."""
    job = _load_job(job_id)
    try:
        application = JobApplication.objects.select_related('worker__user').get(pk=application_id, job=job)
    except (JobApplication.DoesNotExist, ValueError, TypeError):
        raise NotFoundError("Job or application not found")
    if not job.is_party(actor):
        raise NotFoundError("Job or application not found")
    if target_state == STATE_CANCELLED:
        return cancel_job(job.pk, actor)

    if application.status == APPLICATION_PENDING and job.state == STATE_APPLIED:
        validate_transition(role_in_job(job, actor), job.state, target_state)
        if target_state == STATE_ACCEPTED:
            from .services import accept_application
            return accept_application(application.pk, actor).transition
    if application.status != APPLICATION_ACCEPTED:
        raise NotFoundError("Job or application not found")

    chat = Chat.objects.filter(application=application).first()
    result = apply_transition(job, actor, target_state, chat=chat, application=application)
    notify_transition(result)
    return result


def cancel_job(job_id, actor, reason=''):
    """Divert a job to cancelled from any non-terminal state.

    With a worker assigned either party may cancel and the chat records it.
    Before that only the employer can, and pending applicants are turned down.
    """
    job = _load_job(job_id)
    if not job.is_party(actor):
        raise NotFoundError("Job not found")
    chat = Chat.objects.filter(job=job).select_related('application').first()
    application = chat.application if chat else None

    with transaction.atomic():
        result = apply_transition(job, actor, STATE_CANCELLED, chat=chat, application=application, reason=reason)
        rejected = []
        if chat is None:
            pending = list(
                JobApplication.objects.filter(job=job, status=APPLICATION_PENDING).select_related('worker__user')
            )
            JobApplication.objects.filter(
                pk__in=[a.pk for a in pending]
            ).update(status=APPLICATION_REJECTED, updated_at=timezone.now())
            rejected = pending

    if chat is not None:
        notify_transition(result)
    for pending_application in rejected:
        pending_application.status = APPLICATION_REJECTED
        dispatcher.notify_safely(
            pending_application.worker.user, job, NOTIFICATION_APPLICATION, "Job cancelled",
            f'The job "{job.title}" was cancelled by the employer',
            application=pending_application,
        )
    return result


def get_job_state(job_id, actor):
    job = _load_job(job_id)
    if not job.is_party(actor):
        raise NotFoundError("Job not found")
    job_state, _ = JobState.objects.get_or_create(job=job, defaults={'state': job.state})
    return job, job_state


def list_state_history(job_id, actor):
    job = _load_job(job_id)
    if not job.is_party(actor):
        raise NotFoundError("Job not found")
    return JobStateTransition.objects.filter(job=job).select_related('changed_by')
