"""
Event publishers.
"""

from typing import Callable, List
import logging

from django.db import transaction

from application.manufacturing.ports import EventPublisher
from domain.shared.events import DomainEvent

logger = logging.getLogger(__name__)


class OnCommitEventPublisher(EventPublisher):
    """
    Dispatches events to subscribers once the surrounding transaction commits.

    Events of a rolled back transaction are dropped. Outside a transaction
    Django runs the callback immediately.
    """

    def __init__(self, using: str = "default"):
        self.using = using
        self._subscribers: List[Callable[[DomainEvent], None]] = []

    def subscribe(self, handler: Callable[[DomainEvent], None]) -> None:
        self._subscribers.append(handler)

    def publish(self, event: DomainEvent) -> None:
        transaction.on_commit(lambda: self._dispatch(event), using=self.using)

    def _dispatch(self, event: DomainEvent) -> None:
        logger.info(f"Dispatching {event.event_type} {event.event_id}")
        for handler in self._subscribers:
            try:
                handler(event)
            except Exception:
                logger.exception(f"Error handling {event.event_type} in {handler!r}")
