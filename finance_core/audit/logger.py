"""
Audit Logger

DESIGN DECISION: Every state-changing operation exposed to the host is
logged. This provides:
1. Traceability of schedule builds, rebuilds and payments
2. Debugging capability when totals look wrong
3. A history the host can show next to a record

The audit logger:
- Is synchronous, like the engines it audits
- Gracefully handles failures (a broken sink never breaks a calculation)
- Supports correlation IDs to trace related events
"""

import logging
from typing import Optional
from uuid import UUID, uuid4

import structlog

from finance_core.audit.sink import AuditSinkInterface
from finance_core.config import LoggingSettings, get_settings
from finance_core.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity


def _configure_structlog(json_logs: bool) -> None:
    renderer = (
        structlog.processors.JSONRenderer()
        if json_logs
        else structlog.dev.ConsoleRenderer()
    )
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def configure_logging(settings: Optional[LoggingSettings] = None) -> None:
    """
    Route structlog output through a stdlib handler at the configured level.

    Importing the package only configures structlog; the stdlib root logger
    is left to the host. Hosts without their own logging setup call this
    once at startup.
    """
    settings = settings or get_settings().logging
    logging.basicConfig(format="%(message)s", level=settings.level)
    logging.getLogger().setLevel(settings.level)
    _configure_structlog(settings.json_logs)


_configure_structlog(get_settings().logging.json_logs)


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. An optional host-supplied sink (for persistence and user visibility)
    """

    def __init__(self, sink: Optional[AuditSinkInterface] = None):
        """
        Initialize audit logger.

        Args:
            sink: Destination for persisted events.
                  If None, only logs locally.
        """
        self._sink = sink
        self._logger = structlog.get_logger(__name__)

    def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Appends to the sink if available.

        Returns True if the sink write succeeded (or no sink is configured).
        """
        log_dict = event.to_log_dict()

        if event.severity in (AuditSeverity.ERROR, AuditSeverity.CRITICAL):
            self._logger.error("audit_event", **log_dict)
        elif event.severity == AuditSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
        elif event.severity == AuditSeverity.DEBUG:
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._sink is None:
            return True

        try:
            return self._sink.append_event(event)
        except Exception as e:
            # Log failure but don't raise
            self._logger.error(
                "audit_sink_failed",
                error=str(e),
                event_id=str(event.event_id),
            )
            return False

    def log_schedule_built(
        self,
        credit_id: str,
        schedule_type: str,
        term_months: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a freshly built schedule."""
        self.log(AuditEventBuilder.schedule_built(
            credit_id=credit_id,
            schedule_type=schedule_type,
            term_months=term_months,
            correlation_id=correlation_id,
        ))

    def log_schedule_rejected(
        self,
        credit_id: str,
        field: str,
        reason: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log credit parameters the engine refused."""
        self.log(AuditEventBuilder.schedule_rejected(
            credit_id=credit_id,
            field=field,
            reason=reason,
            correlation_id=correlation_id,
        ))

    def log_schedule_rebuilt(
        self,
        credit_id: str,
        kept_paid_rows: int,
        regenerated_rows: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.schedule_rebuilt(
            credit_id=credit_id,
            kept_paid_rows=kept_paid_rows,
            regenerated_rows=regenerated_rows,
            correlation_id=correlation_id,
        ))

    def log_payment_applied(
        self,
        credit_id: str,
        item_id: str,
        amount: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.payment_applied(
            credit_id=credit_id,
            item_id=item_id,
            amount=amount,
            correlation_id=correlation_id,
        ))

    def log_payment_reverted(
        self,
        credit_id: str,
        item_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.payment_reverted(
            credit_id=credit_id,
            item_id=item_id,
            correlation_id=correlation_id,
        ))

    def log_extra_work_created(
        self,
        work_id: str,
        days: int,
        total_amount: str,
        payment_mode: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.extra_work_created(
            work_id=work_id,
            days=days,
            total_amount=total_amount,
            payment_mode=payment_mode,
            correlation_id=correlation_id,
        ))

    def log_extra_work_updated(
        self,
        work_id: str,
        changed_fields: list[str],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.extra_work_updated(
            work_id=work_id,
            changed_fields=changed_fields,
            correlation_id=correlation_id,
        ))

    def log_summary_computed(
        self,
        month_key: str,
        profit: str,
        active_days: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.summary_computed(
            month_key=month_key,
            profit=profit,
            active_days=active_days,
            correlation_id=correlation_id,
        ))

    def log_validation_failed(
        self,
        subject: str,
        entity_id: Optional[str],
        issues: list[dict],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log validation failure."""
        self.log(AuditEventBuilder.validation_failed(
            subject=subject,
            entity_id=entity_id,
            issues=issues,
            correlation_id=correlation_id,
        ))

    def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        self.log(AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a user action (e.g., saving a credit form)
    and pass it through all subsequent operations.
    """
    return uuid4()
