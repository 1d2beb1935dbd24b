"""
In-process fan-out of push events to observers.

Observers are registered per job (transcript and state events) or per user
(notification events). Each observer owns a bounded queue; publishing never
blocks the request that triggered it. Delivery is best-effort: a full queue
drops the event and the client is expected to catch up from the store.
"""
import logging
import queue
import threading
import uuid
from collections import defaultdict

from django.conf import settings

logger = logging.getLogger(__name__)

_CLOSED = object()


class Subscription:
    """A single observer's feed. Iterate ``events()`` until ``unsubscribe()``."""

    def __init__(self, hub, channel, key, observer_id, maxsize):
        self.hub = hub
        self.channel = channel
        self.key = key
        self.observer_id = observer_id
        self.active = True
        self._queue = queue.Queue(maxsize=maxsize)

    def offer(self, event):
        if not self.active:
            return False
        try:
            self._queue.put_nowait(event)
            return True
        except queue.Full:
            logger.warning(f"Observer {self.observer_id} on {self.channel} {self.key} is full, dropping {event.type}")
            return False

    def get(self, timeout=None):
        """Next event, or None if nothing arrived within ``timeout`` or the feed closed."""
        try:
            item = self._queue.get(timeout=timeout)
        except queue.Empty:
            return None
        if item is _CLOSED:
            return None
        return item

    def events(self, timeout=None):
        """Yield events until unsubscribed; yields None on each idle ``timeout``."""
        while self.active:
            try:
                item = self._queue.get(timeout=timeout)
            except queue.Empty:
                yield None
                continue
            if item is _CLOSED:
                break
            yield item

    def __iter__(self):
        return self.events()

    def pending(self):
        return self._queue.qsize()

    def unsubscribe(self):
        self.hub.unsubscribe(self)

    def _close(self):
        self.active = False
        try:
            self._queue.put_nowait(_CLOSED)
        except queue.Full:
            pass


class RealtimeHub:
    JOB = 'job'
    USER = 'user'

    def __init__(self, queue_size=100):
        self.queue_size = queue_size
        self._lock = threading.RLock()
        self._observers = {
            self.JOB: defaultdict(dict),
            self.USER: defaultdict(dict),
        }

    def _subscribe(self, channel, key, observer_id=None):
        observer_id = observer_id or uuid.uuid4().hex
        subscription = Subscription(self, channel, key, observer_id, self.queue_size)
        with self._lock:
            previous = self._observers[channel][key].get(observer_id)
            self._observers[channel][key][observer_id] = subscription
        if previous is not None:
            previous._close()
        logger.info(f"Observer {observer_id} subscribed to {channel} {key}")
        return subscription

    def subscribe_job(self, job_id, observer_id=None):
        return self._subscribe(self.JOB, job_id, observer_id)

    def subscribe_user(self, user_id, observer_id=None):
        return self._subscribe(self.USER, user_id, observer_id)

    def unsubscribe(self, subscription):
        with self._lock:
            observers = self._observers[subscription.channel].get(subscription.key, {})
            if observers.get(subscription.observer_id) is subscription:
                del observers[subscription.observer_id]
                if not observers:
                    self._observers[subscription.channel].pop(subscription.key, None)
        subscription._close()
        logger.info(f"Observer {subscription.observer_id} left {subscription.channel} {subscription.key}")

    def _publish(self, channel, key, event):
        with self._lock:
            targets = list(self._observers[channel].get(key, {}).values())
        delivered = sum(1 for subscription in targets if subscription.offer(event))
        logger.debug(f"Pushed {event.type} to {delivered}/{len(targets)} observers of {channel} {key}")
        return delivered

    def publish_to_job(self, job_id, event):
        return self._publish(self.JOB, job_id, event)

    def publish_to_user(self, user_id, event):
        return self._publish(self.USER, user_id, event)

    def observer_count(self, job_id=None, user_id=None):
        with self._lock:
            if job_id is not None:
                return len(self._observers[self.JOB].get(job_id, {}))
            if user_id is not None:
                return len(self._observers[self.USER].get(user_id, {}))
            return sum(len(o) for channel in self._observers.values() for o in channel.values())


# Global instance
_hub = None
_hub_lock = threading.Lock()


def get_hub():
    global _hub
    with _hub_lock:
        if _hub is None:
            _hub = RealtimeHub(queue_size=settings.REALTIME_QUEUE_SIZE)
        return _hub


def reset_hub():
    global _hub
    with _hub_lock:
        _hub = None
