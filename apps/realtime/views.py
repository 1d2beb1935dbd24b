from django.conf import settings
from django.http import StreamingHttpResponse
from rest_framework.views import APIView
from rest_framework.renderers import JSONRenderer
from rest_framework.permissions import IsAuthenticated
from drf_yasg.utils import swagger_auto_schema
import logging

from .renderers import EventStreamRenderer
from .subscriptions import subscribe_to_job, subscribe_to_user

logger = logging.getLogger(__name__)


def event_stream(subscription, heartbeat=None):
    """Yield SSE frames for a subscription; unsubscribes when the client goes away."""
    if heartbeat is None:
        heartbeat = settings.REALTIME_HEARTBEAT_SECONDS
    try:
        yield f"retry: {int(heartbeat * 1000)}\n: connected {subscription.observer_id}\n\n"
        for event in subscription.events(timeout=heartbeat):
            if event is None:
                yield ": heartbeat\n\n"
                continue
            yield event.to_sse()
    finally:
        subscription.unsubscribe()


def _streaming_response(subscription):
    response = StreamingHttpResponse(event_stream(subscription), content_type='text/event-stream')
    response['Cache-Control'] = 'no-cache'
    response['X-Accel-Buffering'] = 'no'
    return response


class JobEventsView(APIView):
    permission_classes = [IsAuthenticated]
    renderer_classes = [EventStreamRenderer, JSONRenderer]

    @swagger_auto_schema(
        operation_description="Server-Sent Events stream of transcript entries, read receipts and state "
                              "changes for a job. Only the employer and the assigned worker may observe it.",
        responses={200: 'text/event-stream', 401: 'Unauthorized', 404: 'Job not found'}
    )
    def get(self, request, job_id):
        subscription = subscribe_to_job(job_id, request.user, request.query_params.get('observer'))
        logger.info(f"User {request.user.pk} opened event stream for job {job_id}")
        return _streaming_response(subscription)


class UserEventsView(APIView):
    permission_classes = [IsAuthenticated]
    renderer_classes = [EventStreamRenderer, JSONRenderer]

    @swagger_auto_schema(
        operation_description="Server-Sent Events stream of the authenticated user's new notifications.",
        responses={200: 'text/event-stream', 401: 'Unauthorized'}
    )
    def get(self, request):
        subscription = subscribe_to_user(request.user, request.query_params.get('observer'))
        logger.info(f"User {request.user.pk} opened notification stream")
        return _streaming_response(subscription)
