"""Audit logging package."""

from finquest.audit.logger import AuditLogger, configure_logging

__all__ = ["AuditLogger", "configure_logging"]
