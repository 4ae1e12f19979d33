"""
NATS JetStream Client for the Fulfillment Service

Publish-only event bus on nats-py. Events are JSON envelopes published to
the subject named by the event type; each subject family gets its own
stream (order.* -> order-stream, fulfillment.* -> fulfillment-stream).
"""

import json
import logging
import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional, Set

import nats

logger = logging.getLogger(__name__)


class EventType(Enum):
    """Event types published by the fulfillment pipeline"""

    # Order Events
    ORDER_CREATED = "order.created"
    ORDER_SHIPPING_ASSIGNED = "order.shipping_assigned"

    # Package Events
    PACKAGE_CREATED = "fulfillment.package.created"
    PACKAGE_DISPATCHED = "fulfillment.package.dispatched"
    PACKAGE_DISPATCH_FAILED = "fulfillment.package.dispatch_failed"


class ServiceSource(Enum):
    FULFILLMENT_SERVICE = "fulfillment_service"


class Event:
    """Event envelope"""

    def __init__(
        self,
        event_type: EventType,
        source: ServiceSource,
        data: Dict[str, Any],
        subject: Optional[str] = None,
        metadata: Optional[Dict[str, str]] = None,
    ):
        self.id = str(uuid.uuid4())
        self.type = event_type.value
        self.source = source.value
        self.data = data
        self.subject = subject
        self.timestamp = datetime.now(timezone.utc).isoformat()
        self.metadata = metadata or {}
        self.version = "1.0.0"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "source": self.source,
            "subject": self.subject,
            "timestamp": self.timestamp,
            "data": self.data,
            "metadata": self.metadata,
            "version": self.version,
        }

    def to_bytes(self) -> bytes:
        # Payloads are model_dump(mode="json") output; default=str covers stragglers
        return json.dumps(self.to_dict(), ensure_ascii=False, default=str).encode("utf-8")


def stream_for(event_type: str) -> str:
    return f"{event_type.split('.')[0]}-stream"


class NATSEventBus:
    """NATS JetStream publisher"""

    def __init__(self, service_name: str, servers: Optional[str] = None, connect_timeout: Optional[float] = None):
        from core.config import get_settings

        infra = get_settings().infrastructure
        self.service_name = service_name
        self.servers = servers or infra.nats_servers
        self.connect_timeout = connect_timeout or infra.nats_connect_timeout

        self._nc = None
        self._js = None
        self._streams: Set[str] = set()

        logger.info(f"NATS EventBus initialized: {self.servers}")

    async def connect(self):
        """Connect to NATS and open a JetStream context"""
        try:
            self._nc = await nats.connect(
                servers=[self.servers],
                name=self.service_name,
                connect_timeout=self.connect_timeout,
            )
            self._js = self._nc.jetstream()
            logger.info(f"Connected to NATS as {self.service_name}")
        except Exception as e:
            logger.error(f"Failed to connect to NATS: {e}")
            raise

    async def _ensure_stream(self, stream_name: str, prefix: str):
        if stream_name in self._streams:
            return
        try:
            await self._js.add_stream(name=stream_name, subjects=[f"{prefix}.>"])
        except Exception as e:
            # Already exists (possibly with other settings); publishing still works
            logger.debug(f"Stream {stream_name}: {e}")
        self._streams.add(stream_name)

    async def publish_event(self, event: Event) -> bool:
        """
        Publish an event to JetStream.

        Returns False instead of raising; the business operation that
        emitted the event has already been committed.
        """
        if not self.is_connected:
            logger.error("Not connected to NATS")
            return False

        try:
            stream_name = stream_for(event.type)
            await self._ensure_stream(stream_name, event.type.split('.')[0])
            ack = await self._js.publish(event.type, event.to_bytes(), stream=stream_name)
            logger.debug(f"Published {event.type} [{event.id}] to {stream_name}, seq={ack.seq}")
            return True

        except Exception as e:
            logger.error(f"Error publishing event {event.type} [{event.id}]: {e}")
            return False

    async def close(self):
        if self._nc:
            await self._nc.drain()
            self._nc = None
            self._js = None
            logger.info("Disconnected from NATS")

    @property
    def is_connected(self) -> bool:
        return bool(self._nc and self._nc.is_connected and self._js)


# Singleton instance
_event_bus: Optional[NATSEventBus] = None


async def get_event_bus(service_name: str, servers: Optional[str] = None) -> NATSEventBus:
    """
    Get or create the connected event bus.

    Args:
        service_name: Client name shown in NATS monitoring
        servers: Optional NATS URL override
    """
    global _event_bus

    if _event_bus is None:
        bus = NATSEventBus(service_name=service_name, servers=servers)
        await bus.connect()
        _event_bus = bus

    return _event_bus
