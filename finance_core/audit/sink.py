"""
Audit Sink Interface

DESIGN DECISION: The core never performs I/O itself. Where audit events
end up (a database table, a JSON file next to the user's data, a remote
log) is the host's choice; it plugs in an implementation of this interface.

Audit logs are append-only - sinks never delete or modify events.
"""

from abc import ABC, abstractmethod
from typing import Optional
from uuid import UUID

from finance_core.models.audit import AuditEvent


class AuditSinkInterface(ABC):
    """Abstract append-only destination for audit events."""

    @abstractmethod
    def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Args:
            event: The audit event to log

        Returns:
            True if logged successfully

        Raises:
            AuditSinkError: If the event could not be written
        """
        pass

    @abstractmethod
    def get_events_by_correlation_id(self, correlation_id: UUID) -> list[AuditEvent]:
        """
        Get all events for a correlation ID (e.g., validation and build of one schedule).

        Returns:
            List of related events in chronological order
        """
        pass

    @abstractmethod
    def get_events_by_entity(self, entity_type: str, entity_id: str) -> list[AuditEvent]:
        """
        Get all events for a specific entity.

        Returns:
            List of events in chronological order
        """
        pass

    @abstractmethod
    def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        """
        Get the most recent audit events.

        Returns:
            List of recent events (newest first)
        """
        pass


class AuditSinkError(Exception):
    """An audit event could not be written."""
    pass


class InMemoryAuditSink(AuditSinkInterface):
    """
    Keeps events in a list.

    Useful for tests and for hosts that flush events themselves.
    """

    def __init__(self, capacity: Optional[int] = None):
        self._events: list[AuditEvent] = []
        self._capacity = capacity

    def append_event(self, event: AuditEvent) -> bool:
        if self._capacity is not None and len(self._events) >= self._capacity:
            raise AuditSinkError(f"Audit sink is full ({self._capacity} events)")
        self._events.append(event)
        return True

    def get_events_by_correlation_id(self, correlation_id: UUID) -> list[AuditEvent]:
        return [event for event in self._events if event.correlation_id == correlation_id]

    def get_events_by_entity(self, entity_type: str, entity_id: str) -> list[AuditEvent]:
        return [
            event for event in self._events
            if event.entity_type == entity_type and event.entity_id == entity_id
        ]

    def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        return list(reversed(self._events))[:limit]

    @property
    def events(self) -> list[AuditEvent]:
        return list(self._events)
