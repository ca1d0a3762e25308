"""
Application ports.

Abstract collaborators the use cases depend on besides the repositories.
"""

from abc import ABC, abstractmethod
from typing import ContextManager

from domain.shared.events import DomainEvent


class TransactionManager(ABC):
    """Wraps a lifecycle transition in a single database transaction."""

    @abstractmethod
    def atomic(self) -> ContextManager[None]:
        """Context manager; commits on normal exit, rolls back on error."""
        pass


class EventPublisher(ABC):
    """Hands domain events to whatever bus the deployment uses."""

    @abstractmethod
    def publish(self, event: DomainEvent) -> None:
        pass
