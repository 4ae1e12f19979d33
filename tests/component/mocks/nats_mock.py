"""
NATS Event Bus Mock for Component Testing

Stands in for NATSEventBus: keeps published Event envelopes in memory.
"""
from typing import Any, Dict, List, Optional


class MockEventBus:
    """Mock for NATSEventBus"""

    def __init__(self):
        self.events: List[Dict[str, Any]] = []
        self._error: Optional[Exception] = None
        self.closed = False

    async def publish_event(self, event) -> bool:
        if self._error:
            raise self._error
        self.events.append(event.to_dict())
        return True

    async def close(self):
        self.closed = True

    # Test helper methods

    def set_error(self, error: Exception):
        """Raise this error from every publish"""
        self._error = error

    def of_type(self, event_type: str) -> List[Dict[str, Any]]:
        return [e for e in self.events if e["type"] == event_type]

    @property
    def types(self) -> List[str]:
        return [e["type"] for e in self.events]

    def assert_event_published(self, event_type: str, data_match: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Return the first event of the type whose data contains data_match"""
        candidates = self.of_type(event_type)
        assert candidates, f"No '{event_type}' event published, got {self.types}"

        for event in candidates:
            data = event.get("data") or {}
            if all(data.get(key) == value for key, value in (data_match or {}).items()):
                return event
        raise AssertionError(f"No '{event_type}' event matched {data_match}: {candidates}")

    def assert_no_events_published(self, event_type: Optional[str] = None):
        found = self.of_type(event_type) if event_type else self.events
        assert not found, f"Expected no events, got {found}"
