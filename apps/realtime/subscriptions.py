from core.exceptions import NotFoundError
from apps.jobs.models import Job
from .hub import get_hub


def subscribe_to_job(job_id, user, observer_id=None):
    """Register an observer for transcript and state events of a job the user is party to."""
    try:
        job = Job.objects.select_related('assigned_worker').get(pk=job_id)
    except (Job.DoesNotExist, ValueError, TypeError):
        raise NotFoundError("Job not found")
    if not job.is_party(user):
        raise NotFoundError("Job not found")
    return get_hub().subscribe_job(job.pk, observer_id)


def subscribe_to_user(user, observer_id=None):
    return get_hub().subscribe_user(user.pk, observer_id)
