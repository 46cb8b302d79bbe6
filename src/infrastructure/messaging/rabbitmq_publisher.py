"""
RabbitMQ publisher for domain events and notification messages.

Uses pika in a thread-pool executor so blocking I/O doesn't stall the
asyncio event loop. A new connection is opened per publish call.
"""
import asyncio
import dataclasses
import json
from decimal import Decimal
from enum import Enum
from functools import partial
from typing import Any

import pika
import structlog

from src.application.interfaces.event_publisher import EventPublisher
from src.config import settings
from src.domain.events.domain_events import (
    BargainStatusChangedEvent,
    DisputeStatusChangedEvent,
    DomainEvent,
    ListingAvailabilityChangedEvent,
    OrderOpenedEvent,
    OrderStatusChangedEvent,
    RefundStatusChangedEvent,
)

logger = structlog.get_logger(__name__)


def _event_to_routing_key(event: DomainEvent) -> str:
    if isinstance(event, OrderOpenedEvent):
        return "order.opened"
    if isinstance(event, OrderStatusChangedEvent):
        return f"order.status.{event.to_status.value.lower()}"
    if isinstance(event, RefundStatusChangedEvent):
        return f"order.refund.{event.to_status.value.lower()}"
    if isinstance(event, DisputeStatusChangedEvent):
        return f"order.dispute.{event.to_status.value.lower()}"
    if isinstance(event, ListingAvailabilityChangedEvent):
        return f"listing.availability.{event.to_availability.value.lower()}"
    if isinstance(event, BargainStatusChangedEvent):
        return f"bargain.status.{event.to_status.value.lower()}"
    return "event.unknown"


def _json_default(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, Decimal):
        return str(value)
    if hasattr(value, "isoformat"):
        return value.isoformat()
    return str(value)


def _serialise_event(event: DomainEvent) -> str:
    payload = dataclasses.asdict(event)
    payload["event_type"] = _event_to_routing_key(event)
    return json.dumps(payload, default=_json_default)


def _blocking_publish(rabbitmq_url: str, exchange: str, routing_key: str, body: str) -> None:
    connection = pika.BlockingConnection(pika.URLParameters(rabbitmq_url))
    try:
        channel = connection.channel()
        channel.exchange_declare(exchange=exchange, exchange_type="topic", durable=True)
        channel.basic_publish(
            exchange=exchange,
            routing_key=routing_key,
            body=body.encode(),
            properties=pika.BasicProperties(
                delivery_mode=pika.DeliveryMode.Persistent,
                content_type="application/json",
            ),
        )
    finally:
        connection.close()


class RabbitMQChannel:
    """Fire-and-forget JSON publishing to a topic exchange."""

    def __init__(
        self,
        rabbitmq_url: str = settings.rabbitmq_url,
        exchange: str = settings.events_exchange,
    ) -> None:
        self._url = rabbitmq_url
        self._exchange = exchange

    async def send(self, routing_key: str, body: str) -> bool:
        loop = asyncio.get_running_loop()
        try:
            await loop.run_in_executor(
                None,
                partial(_blocking_publish, self._url, self._exchange, routing_key, body),
            )
        except Exception as exc:
            # Publishing failures never fail the transition that produced them
            logger.error("failed_to_publish_message", routing_key=routing_key, error=str(exc))
            return False
        logger.debug("message_published", routing_key=routing_key)
        return True


class RabbitMQPublisher(EventPublisher):
    """Publishes domain events to a RabbitMQ topic exchange."""

    def __init__(self, channel: RabbitMQChannel | None = None) -> None:
        self._channel = channel or RabbitMQChannel()

    async def publish(self, event: DomainEvent) -> None:
        await self._channel.send(_event_to_routing_key(event), _serialise_event(event))
