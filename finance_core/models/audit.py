"""
Audit Models

Every state-changing operation exposed to the host (building or rebuilding
a schedule, applying a payment, recording extra work) produces an audit
event. This provides:
1. Traceability of how a credit's schedule came to look the way it does
2. Debugging information when totals look wrong
3. A history the host can show next to the record

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Credits
    SCHEDULE_BUILT = "schedule_built"
    SCHEDULE_REJECTED = "schedule_rejected"
    SCHEDULE_REBUILT = "schedule_rebuilt"
    PAYMENT_APPLIED = "payment_applied"
    PAYMENT_REVERTED = "payment_reverted"

    # Extra work
    EXTRA_WORK_CREATED = "extra_work_created"
    EXTRA_WORK_UPDATED = "extra_work_updated"

    # Reporting
    SUMMARY_COMPUTED = "summary_computed"

    # Validation
    VALIDATION_FAILED = "validation_failed"

    # System events
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """A single audit event."""

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=datetime.now,
        description="When the event occurred"
    )

    # Event classification
    event_type: AuditEventType
    severity: AuditSeverity = AuditSeverity.INFO

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'credit', 'extra_work', 'month')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g., validation and build of one schedule)"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    # Error information (if applicable)
    error_code: Optional[str] = None
    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_code": self.error_code,
            "error_message": self.error_message,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.schedule_built(credit_id, "annuity", 12, correlation_id)
        event = AuditEventBuilder.payment_applied(credit_id, item_id, "10661.85", correlation_id)
    """

    @staticmethod
    def schedule_built(
        credit_id: str,
        schedule_type: str,
        term_months: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SCHEDULE_BUILT,
            entity_type="credit",
            entity_id=credit_id,
            correlation_id=correlation_id,
            description=f"{schedule_type.capitalize()} schedule built for {term_months} months",
            details={
                "schedule_type": schedule_type,
                "term_months": term_months,
            },
        )

    @staticmethod
    def schedule_rejected(
        credit_id: str,
        field: str,
        reason: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SCHEDULE_REJECTED,
            severity=AuditSeverity.WARNING,
            entity_type="credit",
            entity_id=credit_id,
            correlation_id=correlation_id,
            description=f"Schedule rejected: invalid {field}",
            error_code="invalid_credit_params",
            error_message=reason,
            details={
                "field": field,
            },
        )

    @staticmethod
    def schedule_rebuilt(
        credit_id: str,
        kept_paid_rows: int,
        regenerated_rows: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SCHEDULE_REBUILT,
            entity_type="credit",
            entity_id=credit_id,
            correlation_id=correlation_id,
            description=(
                f"Schedule rebuilt: {kept_paid_rows} paid rows kept, "
                f"{regenerated_rows} regenerated"
            ),
            details={
                "kept_paid_rows": kept_paid_rows,
                "regenerated_rows": regenerated_rows,
            },
        )

    @staticmethod
    def payment_applied(
        credit_id: str,
        item_id: str,
        amount: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PAYMENT_APPLIED,
            entity_type="credit",
            entity_id=credit_id,
            correlation_id=correlation_id,
            description=f"Payment of {amount} applied",
            details={
                "item_id": item_id,
                "amount": amount,
            },
        )

    @staticmethod
    def payment_reverted(
        credit_id: str,
        item_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PAYMENT_REVERTED,
            entity_type="credit",
            entity_id=credit_id,
            correlation_id=correlation_id,
            description="Payment reverted",
            details={
                "item_id": item_id,
            },
        )

    @staticmethod
    def extra_work_created(
        work_id: str,
        days: int,
        total_amount: str,
        payment_mode: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXTRA_WORK_CREATED,
            entity_type="extra_work",
            entity_id=work_id,
            correlation_id=correlation_id,
            description=f"Extra work recorded: {days} days, total {total_amount}",
            details={
                "days": days,
                "total_amount": total_amount,
                "payment_mode": payment_mode,
            },
        )

    @staticmethod
    def extra_work_updated(
        work_id: str,
        changed_fields: list[str],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXTRA_WORK_UPDATED,
            entity_type="extra_work",
            entity_id=work_id,
            correlation_id=correlation_id,
            description=f"Extra work updated: {', '.join(changed_fields) or 'no changes'}",
            details={
                "changed_fields": changed_fields,
            },
        )

    @staticmethod
    def summary_computed(
        month_key: str,
        profit: str,
        active_days: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SUMMARY_COMPUTED,
            severity=AuditSeverity.DEBUG,
            entity_type="month",
            entity_id=month_key,
            correlation_id=correlation_id,
            description=f"Month summary computed for {month_key}",
            details={
                "profit": profit,
                "active_days": active_days,
            },
        )

    @staticmethod
    def validation_failed(
        subject: str,
        entity_id: Optional[str],
        issues: list[dict],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.VALIDATION_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type=subject,
            entity_id=entity_id,
            correlation_id=correlation_id,
            description=f"Validation failed with {len(issues)} issues",
            details={
                "issues": issues,
            },
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )
