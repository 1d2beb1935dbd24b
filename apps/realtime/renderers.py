import json

from django.core.serializers.json import DjangoJSONEncoder
from rest_framework import renderers


class EventStreamRenderer(renderers.BaseRenderer):
    """Lets clients negotiate ``text/event-stream``; error bodies are written as JSON."""
    media_type = 'text/event-stream'
    format = 'sse'
    charset = 'utf-8'

    def render(self, data, accepted_media_type=None, renderer_context=None):
        if data is None:
            return b''
        if isinstance(data, (bytes, str)):
            return data if isinstance(data, bytes) else data.encode(self.charset)
        return json.dumps(data, cls=DjangoJSONEncoder).encode(self.charset)
