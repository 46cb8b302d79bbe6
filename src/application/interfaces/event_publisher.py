from abc import ABC, abstractmethod

from src.domain.events.domain_events import DomainEvent


class EventPublisher(ABC):
    """
    Port for publishing domain events to the marketplace event bus.

    Use cases publish inside the unit of work, after the version-checked
    save has succeeded but before the session commits. A commit that fails
    afterwards can therefore leave an event describing a transition that
    was never persisted; consumers re-read the order before acting on it.

    Implementations must not raise: a lost event never undoes a transition.
    """

    @abstractmethod
    async def publish(self, event: DomainEvent) -> None:
        ...

    async def publish_many(self, events: list[DomainEvent]) -> None:
        for event in events:
            await self.publish(event)
