"""FastAPI dependencies."""
from ..services.audit_service import AuditService, get_audit_service


def audit_service() -> AuditService:
    """The shared audit service; overridden in tests."""
    return get_audit_service()
