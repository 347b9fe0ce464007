"""Health check endpoints."""
from fastapi import APIRouter, Depends
from typing import Dict, Any
import time

from ...collectors.browser import get_browser_resource
from ...core.config import settings
from ...services.audit_service import AuditService
from ..dependencies import audit_service


router = APIRouter()


@router.get("/health/ready", summary="Readiness check")
async def readiness_check(
    service: AuditService = Depends(audit_service),
) -> Dict[str, Any]:
    """Readiness check for load balancers."""
    return {
        "status": "ready",
        "timestamp": time.time(),
        "active_jobs": service.active_jobs,
        "visual_capture": settings.VISUAL_CAPTURE_ENABLED,
        "browser_running": get_browser_resource().is_healthy(),
        "pagespeed": bool(settings.PSI_KEY),
    }
