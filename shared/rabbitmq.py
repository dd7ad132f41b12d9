"""RabbitMQ event publisher used to fan out dispatch events."""

from __future__ import annotations

import asyncio
import json
import uuid
from datetime import datetime, timezone
from typing import Any

import aio_pika
import structlog

logger = structlog.get_logger()

EVENT_VERSION = "1.0"


class RabbitMQClient:
    """Async publisher bound to one durable topic exchange."""

    def __init__(
        self,
        url: str,
        *,
        service_name: str = "unknown",
        exchange_name: str = "kurirkan.events",
        connect_retries: int = 10,
        retry_delay_seconds: float = 2.0,
    ):
        self._url = url
        self._service_name = service_name
        self._exchange_name = exchange_name
        self._connect_retries = connect_retries
        self._retry_delay_seconds = retry_delay_seconds
        self._connection: aio_pika.abc.AbstractRobustConnection | None = None
        self._channel: aio_pika.abc.AbstractChannel | None = None
        self._exchange: aio_pika.abc.AbstractExchange | None = None

    async def connect(self) -> None:
        """Open a robust connection and declare the topic exchange."""
        for attempt in range(1, self._connect_retries + 1):
            try:
                self._connection = await aio_pika.connect_robust(self._url)
                break
            except Exception as exc:
                logger.warning(
                    "rabbitmq_connect_retry",
                    attempt=attempt,
                    retries=self._connect_retries,
                    error=str(exc),
                )
                if attempt == self._connect_retries:
                    raise
                await asyncio.sleep(self._retry_delay_seconds)

        assert self._connection is not None
        self._channel = await self._connection.channel()
        self._exchange = await self._channel.declare_exchange(
            self._exchange_name,
            aio_pika.ExchangeType.TOPIC,
            durable=True,
        )
        logger.info(
            "rabbitmq_connected",
            exchange=self._exchange_name,
            service=self._service_name,
        )

    async def close(self) -> None:
        if self._connection and not self._connection.is_closed:
            await self._connection.close()
            logger.info("rabbitmq_disconnected", service=self._service_name)
        self._exchange = None
        self._channel = None

    async def publish_event(
        self,
        routing_key: str,
        body: dict[str, Any],
        *,
        correlation_id: str | None = None,
    ) -> str:
        """Publish a persistent JSON message and return its correlation id.

        Every message carries ``correlation_id``, ``timestamp``,
        ``event_version`` and ``source_service`` headers.
        """
        if not self._exchange:
            raise RuntimeError("RabbitMQ not connected, call connect() first")

        cid = correlation_id or uuid.uuid4().hex
        now = datetime.now(timezone.utc)

        message = aio_pika.Message(
            body=json.dumps(body, default=str).encode(),
            content_type="application/json",
            delivery_mode=aio_pika.DeliveryMode.PERSISTENT,
            correlation_id=cid,
            message_id=uuid.uuid4().hex,
            timestamp=now,
            headers={
                "correlation_id": cid,
                "timestamp": now.isoformat(),
                "event_version": EVENT_VERSION,
                "source_service": self._service_name,
            },
        )
        await self._exchange.publish(message, routing_key=routing_key)
        logger.info("rabbitmq_published", routing_key=routing_key, correlation_id=cid)
        return cid
