from abc import ABC, abstractmethod
from dataclasses import dataclass
from uuid import UUID


@dataclass(frozen=True)
class UserSummary:
    user_id: int
    display_name: str
    avatar: str | None = None


class UserDirectory(ABC):
    """Port for identity lookup. Used only to enrich views."""

    @abstractmethod
    async def get_user(self, user_id: int) -> UserSummary | None:
        ...


class Notifier(ABC):
    """
    Port for notification delivery.

    Fire-and-forget: implementations log failures instead of raising, so a
    lost notification never rolls back a transition.
    """

    @abstractmethod
    async def notify(
        self,
        user_id: int,
        title: str,
        body: str,
        category: str,
        related_id: UUID | None = None,
    ) -> None:
        ...
