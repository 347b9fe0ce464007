"""Application services."""

from .audit_service import AuditService, get_audit_service

__all__ = ["AuditService", "get_audit_service"]
