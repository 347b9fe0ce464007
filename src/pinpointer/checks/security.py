"""Transport and header security checks."""
from typing import Optional

from ..models.check import Check, CheckResult, Confidence
from ..models.facts import PageFacts, PerformanceFacts, VisualFacts
from .base import CRITICAL, FAIL, MAJOR, MINOR, PASS, WARNING, check_producer

# header -> (display name, severity); a missing critical header fails
SECURITY_HEADERS = {
    "strict-transport-security": ("HSTS", CRITICAL),
    "content-security-policy": ("Content-Security-Policy", CRITICAL),
    "x-content-type-options": ("X-Content-Type-Options", MAJOR),
    "x-frame-options": ("X-Frame-Options", MAJOR),
    "referrer-policy": ("Referrer-Policy", MAJOR),
    "permissions-policy": ("Permissions-Policy", MINOR),
    "x-xss-protection": ("X-XSS-Protection", MINOR),
}

PSI_SECURITY_AUDITS = ["bp_https", "bp_no_vulnerable_libs", "bp_csp_xss"]

# CDNs that always announce themselves
ALLOWED_SERVER_HEADERS = {"cloudflare"}


@check_producer("security_auditor")
def security_auditor(
    page: PageFacts,
    performance: Optional[PerformanceFacts] = None,
    visual: Optional[VisualFacts] = None,
) -> CheckResult:
    headers = page.security_headers
    response_headers = page.response_headers
    cookies = page.cookies

    checks = [
        Check(
            test="HTTPS Enforcement",
            status=PASS if page.is_https else FAIL,
            severity=CRITICAL,
            value="HTTPS active" if page.is_https else "NOT using HTTPS",
        )
    ]
    for header, (name, severity) in SECURITY_HEADERS.items():
        value = headers.get(header)
        checks.append(Check(
            test=name,
            status=PASS if value else (FAIL if severity == CRITICAL else WARNING),
            severity=severity,
            value=f"Present: {value[:80]}" if value else "Not set",
        ))

    server = response_headers.get("server", "")
    powered_by = response_headers.get("x-powered-by", "")
    checks.append(Check(
        test="Server Version Disclosure",
        status=PASS if not server or server.lower() in ALLOWED_SERVER_HEADERS else WARNING,
        severity=MINOR,
        value=server or "Not disclosed",
    ))
    checks.append(Check(
        test="X-Powered-By Disclosure",
        status=WARNING if powered_by else PASS,
        severity=MINOR,
        value=powered_by or "Not disclosed",
    ))

    if cookies:
        insecure = [c.name for c in cookies if not c.secure]
        no_httponly = [c for c in cookies if not c.httponly]
        no_samesite = [c for c in cookies if not c.samesite]
        checks.extend([
            Check(
                test="Cookie Secure Flag",
                status=FAIL if insecure else PASS,
                severity=MAJOR,
                value=(
                    f"{len(insecure)} missing Secure: {', '.join(insecure[:3])}"
                    if insecure else "All cookies use Secure"
                ),
            ),
            Check(
                test="Cookie HttpOnly Flag",
                status=WARNING if no_httponly else PASS,
                severity=MAJOR,
                value=(
                    f"{len(no_httponly)} missing HttpOnly"
                    if no_httponly else "All cookies use HttpOnly"
                ),
            ),
            Check(
                test="Cookie SameSite",
                status=WARNING if no_samesite else PASS,
                severity=MINOR,
                value=(
                    f"{len(no_samesite)} missing SameSite"
                    if no_samesite else "All cookies have SameSite"
                ),
            ),
        ])

    if performance is not None:
        for key in PSI_SECURITY_AUDITS:
            sub = performance.sub_audit(key)
            if sub is None or sub.passed is None:
                continue
            checks.append(Check(
                test=f"PSI: {sub.title}",
                status=PASS if sub.passed else FAIL,
                severity=CRITICAL,
                value="Passed" if sub.passed else (sub.display or "Failed"),
                detail="; ".join(sub.failing_items[:3]) or None,
            ))

    return CheckResult(
        checks=checks,
        confidence=Confidence.HIGH,
        summary={
            "https": page.is_https,
            "headers_present": sum(1 for v in headers.values() if v),
            "cookies": len(cookies),
        },
    )
