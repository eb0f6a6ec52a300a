"""Publish review events to an Azure Service Bus topic for notification services."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any

from azure.servicebus import ServiceBusMessage
from azure.servicebus.aio import ServiceBusClient, ServiceBusSender

from contribution_review.events.contracts import EventEnvelope

if TYPE_CHECKING:
    from contribution_review.config import ServiceBusConfig

logger = logging.getLogger(__name__)

# Payload keys copied onto the message so subscriptions can filter without parsing.
_ROUTING_KEYS = ("case_id", "donor_id")


def build_message(envelope: EventEnvelope) -> ServiceBusMessage:
    data = envelope.data if isinstance(envelope.data, dict) else {}
    properties: dict[str, Any] = {"event_type": envelope.event}
    for key in _ROUTING_KEYS:
        if data.get(key):
            properties[key] = str(data[key])
    correlation = data.get("contribution_id") or data.get("original_contribution_id")
    return ServiceBusMessage(
        body=envelope.model_dump_json(),
        subject=envelope.event,
        content_type="application/json",
        correlation_id=str(correlation) if correlation else None,
        application_properties=properties,
    )


class ServiceBusPublisher:
    """Best-effort event publisher.

    Review actions must not fail because the broker is down, so send errors
    are logged and dropped. With no connection string configured the
    publisher is disabled and every publish is a no-op.
    """

    def __init__(self, config: ServiceBusConfig) -> None:
        self._config = config
        self._client: ServiceBusClient | None = None
        self._sender: ServiceBusSender | None = None
        self._lock = asyncio.Lock()
        self.enabled = bool(config.connection_string)
        if not self.enabled:
            logger.warning(
                "AZURE_SERVICEBUS_CONNECTION_STRING is not set, review events will not be published"
            )

    async def _get_sender(self) -> ServiceBusSender:
        async with self._lock:
            if self._sender is None:
                self._client = ServiceBusClient.from_connection_string(
                    self._config.connection_string
                )
                self._sender = self._client.get_topic_sender(topic_name=self._config.topic_name)
            return self._sender

    async def publish(self, event_type: str, data: dict[str, Any] | str) -> None:
        if not self.enabled:
            return
        envelope = EventEnvelope(event=event_type, data=data)
        try:
            sender = await self._get_sender()
            await sender.send_messages(build_message(envelope))
        except Exception:  # noqa: BLE001
            logger.warning(
                "Failed to publish event=%s topic=%s",
                event_type,
                self._config.topic_name,
                exc_info=True,
            )
            return
        logger.debug("Published event=%s topic=%s", event_type, self._config.topic_name)

    async def close(self) -> None:
        async with self._lock:
            if self._sender is not None:
                await self._sender.close()
                self._sender = None
            if self._client is not None:
                await self._client.close()
                self._client = None
