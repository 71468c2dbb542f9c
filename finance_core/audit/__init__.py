"""Audit logging package."""

from finance_core.audit.logger import AuditLogger, configure_logging, create_correlation_id
from finance_core.audit.sink import AuditSinkError, AuditSinkInterface, InMemoryAuditSink

__all__ = [
    "AuditLogger",
    "AuditSinkError",
    "AuditSinkInterface",
    "InMemoryAuditSink",
    "configure_logging",
    "create_correlation_id",
]
