"""
Audit endpoints: start an audit, poll its status, fetch its report.
"""
from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse

from ...models.requests import AnalyzeRequest, ValidateKeyRequest
from ...models.responses import (
    AnalyzeResponse,
    JobStatusResponse,
    KeyValidationResponse,
    ReportNotReadyResponse,
)
from ...services.audit_service import AuditService
from ...utils.url_utils import ensure_scheme, is_valid_url
from ..dependencies import audit_service
from ..exceptions import InvalidURLError


router = APIRouter()


@router.post(
    "/analyze",
    response_model=AnalyzeResponse,
    summary="Start an audit",
    description="Queue a website audit and return its job id for polling",
)
async def analyze(
    request: AnalyzeRequest,
    service: AuditService = Depends(audit_service),
) -> AnalyzeResponse:
    """
    Start an audit.

    - **url**: Website to audit; `https://` is assumed when no scheme is given
    - **gemini_key**: Key for the AI reviewer
    """
    url = ensure_scheme(request.url)
    if not is_valid_url(url):
        raise InvalidURLError(request.url)
    job_id = await service.start_audit(url, request.gemini_key)
    return AnalyzeResponse(job_id=job_id)


@router.get(
    "/status",
    response_model=JobStatusResponse,
    summary="Poll audit status",
)
async def audit_status(
    uuid: str = Query(..., min_length=1, description="Job id returned by /analyze"),
    service: AuditService = Depends(audit_service),
) -> JobStatusResponse:
    return JobStatusResponse.from_job(service.get_status(uuid))


@router.get("/report", summary="Fetch the audit report")
async def audit_report(
    uuid: str = Query(..., min_length=1, description="Job id returned by /analyze"),
    service: AuditService = Depends(audit_service),
):
    """Full report once completed; `{success: false, error: "Not ready"}` before that."""
    job = service.get_status(uuid)
    report = service.get_report(uuid)
    if report is None:
        return ReportNotReadyResponse(status=job.status).model_dump(mode="json")
    return {"success": True, **report.model_dump(mode="json")}


@router.post(
    "/validate-key",
    response_model=KeyValidationResponse,
    response_model_exclude_none=True,
    summary="Validate a Gemini API key",
)
async def validate_key(
    request: ValidateKeyRequest,
    service: AuditService = Depends(audit_service),
):
    if not request.gemini_key.strip():
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"valid": False, "error": "No key provided"},
        )
    return await service.validate_key(request.gemini_key)
