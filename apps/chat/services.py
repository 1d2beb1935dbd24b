import logging

from rest_framework.exceptions import ValidationError

from core.constants import MESSAGE_KIND_USER, ACTIVE_STATES, NOTIFICATION_MESSAGE
from core.exceptions import ForbiddenError, InvalidTransitionError
from core.utils import display_name
from apps.notifications import dispatcher
from . import transcript

logger = logging.getLogger(__name__)


def send_message(chat_id, author, body, payload=None):
    """Append a user message and notify the other party."""
    chat = transcript.get_chat(chat_id)
    body = (body or '').strip()
    if not body:
        raise ValidationError("Message body cannot be empty.")

    entry = transcript.append_entry(chat, author, MESSAGE_KIND_USER, body, payload)

    job = chat.job
    dispatcher.notify_safely(
        chat.counterpart_of(author), job, NOTIFICATION_MESSAGE, "New message",
        f'{display_name(author)} sent you a message about "{job.title}"',
        application=chat.application,
    )
    return entry


def _require_active_job(chat, author):
    if not chat.is_party(author):
        raise ForbiddenError("Only the worker and employer of this job can access its chat.")
    if chat.job.state not in ACTIVE_STATES:
        raise InvalidTransitionError("Arrival time and location can only be shared while the job is under way.")


def share_eta(chat_id, author, minutes):
    chat = transcript.get_chat(chat_id)
    _require_active_job(chat, author)
    minutes = int(minutes)
    if minutes <= 0:
        raise ValidationError("Estimated arrival must be a positive number of minutes.")
    return send_message(chat, author, f"Estimated arrival: {minutes} min", payload={
        'type': 'eta',
        'minutes': minutes,
    })


def share_location(chat_id, author, latitude, longitude):
    chat = transcript.get_chat(chat_id)
    _require_active_job(chat, author)
    latitude, longitude = float(latitude), float(longitude)
    if not (-90 <= latitude <= 90 and -180 <= longitude <= 180):
        raise ValidationError("Coordinates are out of range.")
    return send_message(chat, author, f"Shared location: {latitude:.5f}, {longitude:.5f}", payload={
        'type': 'location',
        'latitude': latitude,
        'longitude': longitude,
    })
