import json
from datetime import datetime, timezone
from uuid import UUID

import structlog

from src.application.interfaces.collaborators import Notifier
from src.infrastructure.messaging.rabbitmq_publisher import RabbitMQChannel
from src.infrastructure.notifications.connection_registry import ConnectionRegistry

logger = structlog.get_logger(__name__)


def _message(
    user_id: int, title: str, body: str, category: str, related_id: UUID | None
) -> dict:  # type: ignore[type-arg]
    return {
        "type": "notification",
        "user_id": user_id,
        "title": title,
        "body": body,
        "category": category,
        "related_id": str(related_id) if related_id else None,
        "sent_at": datetime.now(timezone.utc).isoformat(),
    }


class RabbitMQNotifier(Notifier):
    """Hands notifications to the messaging service over the event bus."""

    def __init__(self, channel: RabbitMQChannel | None = None) -> None:
        self._channel = channel or RabbitMQChannel()

    async def notify(
        self,
        user_id: int,
        title: str,
        body: str,
        category: str,
        related_id: UUID | None = None,
    ) -> None:
        payload = _message(user_id, title, body, category, related_id)
        await self._channel.send(f"notification.{category.lower()}", json.dumps(payload))


class RealtimeNotifier(Notifier):
    """
    Pushes notifications to the user's open sockets, then forwards them to
    ``durable`` (if given) so offline users still receive them.
    """

    def __init__(self, registry: ConnectionRegistry, durable: Notifier | None = None) -> None:
        self._registry = registry
        self._durable = durable

    async def notify(
        self,
        user_id: int,
        title: str,
        body: str,
        category: str,
        related_id: UUID | None = None,
    ) -> None:
        delivered = await self._registry.send_to_user(
            user_id, _message(user_id, title, body, category, related_id)
        )
        logger.debug("notification_pushed", user_id=user_id, category=category, sockets=delivered)

        if self._durable is not None:
            await self._durable.notify(user_id, title, body, category, related_id)
