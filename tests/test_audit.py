"""
Tests for the audit logger and sinks.
"""

import subprocess
import sys
import textwrap
from pathlib import Path

import pytest
from uuid import uuid4

from finance_core.audit import (
    AuditLogger,
    AuditSinkError,
    AuditSinkInterface,
    InMemoryAuditSink,
    create_correlation_id,
)
from finance_core.models import AuditEventBuilder, AuditEventType, AuditSeverity

PROJECT_ROOT = Path(__file__).resolve().parent.parent


class BrokenSink(AuditSinkInterface):
    """Sink that fails on every write."""

    def append_event(self, event):
        raise AuditSinkError("disk full")

    def get_events_by_correlation_id(self, correlation_id):
        return []

    def get_events_by_entity(self, entity_type, entity_id):
        return []

    def get_recent_events(self, limit=100):
        return []


class TestInMemorySink:
    """Tests for the in-memory sink."""

    def test_queries(self):
        """Test lookups by correlation id, entity and recency."""
        sink = InMemoryAuditSink()
        cid = create_correlation_id()
        sink.append_event(AuditEventBuilder.schedule_built("c1", "annuity", 12, cid))
        sink.append_event(AuditEventBuilder.payment_applied("c1", "row1", "10661.85", cid))
        sink.append_event(AuditEventBuilder.schedule_built("c2", "annuity", 6))

        assert len(sink.get_events_by_correlation_id(cid)) == 2
        assert len(sink.get_events_by_entity("credit", "c1")) == 2
        recent = sink.get_recent_events(limit=2)
        assert [e.entity_id for e in recent] == ["c2", "c1"]
        assert recent[1].event_type == AuditEventType.PAYMENT_APPLIED

    def test_capacity(self):
        """Test that a full sink refuses new events."""
        sink = InMemoryAuditSink(capacity=1)
        sink.append_event(AuditEventBuilder.schedule_built("c1", "annuity", 12))
        with pytest.raises(AuditSinkError):
            sink.append_event(AuditEventBuilder.schedule_built("c2", "annuity", 12))


class TestAuditLogger:
    """Tests for the audit logger."""

    def test_without_sink(self):
        """Test that logging without a sink only logs locally."""
        logger = AuditLogger()
        assert logger.log(AuditEventBuilder.schedule_built("c1", "annuity", 12)) is True

    def test_wrappers_reach_sink(self):
        """Test that the log_* helpers append well-formed events."""
        sink = InMemoryAuditSink()
        logger = AuditLogger(sink)
        cid = uuid4()

        logger.log_schedule_rejected("c1", "term_months", "Term must be at least one month", cid)
        logger.log_extra_work_created("w1", 2, "5000", "single", cid)
        logger.log_summary_computed("2024-03", "4700", 1, cid)
        logger.log_error("ValueError", "boom", {"where": "test"}, cid)

        events = sink.get_events_by_correlation_id(cid)
        assert [e.event_type for e in events] == [
            AuditEventType.SCHEDULE_REJECTED,
            AuditEventType.EXTRA_WORK_CREATED,
            AuditEventType.SUMMARY_COMPUTED,
            AuditEventType.SYSTEM_ERROR,
        ]
        assert events[-1].severity == AuditSeverity.ERROR
        assert events[-1].error_message == "boom"

    def test_broken_sink_does_not_raise(self):
        """Test that a failing sink never breaks the caller."""
        logger = AuditLogger(BrokenSink())
        assert logger.log(AuditEventBuilder.schedule_built("c1", "annuity", 12)) is False
        logger.log_payment_reverted("c1", "row1")

    def test_correlation_ids_unique(self):
        """Test that each user action gets its own correlation id."""
        assert create_correlation_id() != create_correlation_id()


class TestLoggingSetup:
    """Tests for what importing the package does to stdlib logging."""

    def test_import_leaves_root_logger_alone(self):
        """Test that only an explicit configure_logging() call touches the root logger."""
        script = textwrap.dedent("""
            import logging
            root = logging.getLogger()
            before = (root.level, list(root.handlers))
            import finance_core
            assert (root.level, list(root.handlers)) == before, (root.level, root.handlers)

            from finance_core.audit import configure_logging
            from finance_core.config import LoggingSettings
            configure_logging(LoggingSettings(level="DEBUG"))
            assert root.level == logging.DEBUG
            assert root.handlers
        """)
        result = subprocess.run(
            [sys.executable, "-c", script],
            cwd=PROJECT_ROOT,
            capture_output=True,
            text=True,
        )
        assert result.returncode == 0, result.stderr


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
