"""Django signals for change notifications and cache invalidation.

Services publish through ``SignalNotifier``, which sends ``planner_changed``
after the atomic unit commits. Receivers here drop the cached event and
results payloads; transports (websockets, webhooks) can connect their own
receivers to the same signal.
"""

import logging

from django.core.cache import cache
from django.db.models.signals import post_delete, post_save
from django.dispatch import Signal, receiver

from planner.domain import EventId
from planner.models import Event
from planner.services.notifier import Notifier

logger = logging.getLogger(__name__)

# Sent with sender=SignalNotifier and kwargs event_id (str), name, payload.
planner_changed = Signal()


def event_cache_key(event_id) -> str:
    return f"planner:events:{event_id}"


def results_cache_key(event_id) -> str:
    return f"planner:events:{event_id}:results"


def invalidate_event(event_id) -> None:
    cache.delete_many([event_cache_key(event_id), results_cache_key(event_id)])


class SignalNotifier(Notifier):
    """Notifier that sends ``planner_changed``. Receiver failures are logged."""

    def emit(self, event_id: EventId, name: str, payload: dict) -> None:
        responses = planner_changed.send_robust(
            sender=self.__class__,
            event_id=str(event_id),
            name=name,
            payload=payload,
        )
        for handler, response in responses:
            if isinstance(response, Exception):
                logger.error(
                    "Change receiver failed",
                    exc_info=response,
                    extra={"event_id": str(event_id), "change": name, "receiver": getattr(handler, "__name__", repr(handler))},
                )


@receiver(planner_changed)
def invalidate_on_change(sender, event_id, name, **kwargs):
    """Drop cached payloads for an event whenever it changes."""
    invalidate_event(event_id)
    logger.debug("Planner change emitted", extra={"event_id": event_id, "change": name})


@receiver([post_save, post_delete], sender=Event)
def invalidate_event_cache(sender, instance, **kwargs):
    """Invalidate caches when an event row is saved or deleted outside the services."""
    invalidate_event(instance.pk)
