"""Pytest fixtures for Pinpointer tests."""

import json
import tempfile
import shutil
from pathlib import Path
from typing import Generator, List

import pytest

from pinpointer.collectors.html_extract import extract_page_facts
from pinpointer.models.check import Check, CheckStatus, Severity
from pinpointer.models.facts import (
    CtaBox,
    MetricFacts,
    PerformanceFacts,
    StrategyFacts,
    SubAudit,
    ViewportCapture,
    ViewportData,
    VisualFacts,
)
from pinpointer.utils.rate_limit import CallRateLimiter


class SleepRecorder:
    """Async stand-in for asyncio.sleep that records requested delays."""

    def __init__(self):
        self.calls: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(float(seconds))


def make_check(status: str = "pass", severity: str = "major", test: str = "Check", value: str = "v", detail=None) -> Check:
    return Check(
        test=test,
        status=CheckStatus(status),
        severity=Severity(severity),
        value=value,
        detail=detail,
    )


def gemini_body(payload, finish_reason: str = "STOP") -> dict:
    """A generateContent response whose text is ``payload`` (JSON-encoded unless str)."""
    text = payload if isinstance(payload, str) else json.dumps(payload)
    return {
        "candidates": [{
            "content": {"parts": [{"text": text}]},
            "finishReason": finish_reason,
        }]
    }


@pytest.fixture(scope="function")
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    temp_path = Path(tempfile.mkdtemp(prefix="pinpointer_test_"))
    yield temp_path
    shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def sleeper() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def no_gap_limiter(sleeper) -> CallRateLimiter:
    return CallRateLimiter(0.0, sleep=sleeper)


@pytest.fixture(scope="function")
def landing_html() -> str:
    """A reasonably complete landing page."""
    paragraph = (
        "Our platform helps small teams plan projects, track time and ship work faster. "
        "Customers use it every day to keep clients informed and budgets under control. "
    )
    return f"""<!DOCTYPE html>
<html lang="en">
<head>
    <title>Acme Projects - Project planning for small teams</title>
    <meta name="description" content="Plan projects, track time and keep clients informed with Acme Projects, the planner built for small agencies.">
    <meta name="viewport" content="width=device-width, initial-scale=1">
    <meta property="og:title" content="Acme Projects">
    <meta property="og:description" content="Project planning for small teams">
    <meta name="twitter:card" content="summary_large_image">
    <link rel="canonical" href="https://acme.example/">
    <link rel="stylesheet" href="/main.css">
    <link rel="preconnect" href="https://fonts.example">
    <script type="application/ld+json">{{"@type": "Organization", "name": "Acme"}}</script>
    <script type="application/ld+json">{{not valid json</script>
</head>
<body>
    <header>
        <nav>
            <a href="/">Home</a>
            <a href="/pricing">Pricing</a>
            <a href="/about">About</a>
            <a href="#top">Top</a>
            <a href="javascript:void(0)">Menu</a>
        </nav>
    </header>
    <main>
        <h1>Plan projects without the chaos</h1>
        <h2>Why teams switch</h2>
        <p>{paragraph * 3}</p>
        <h2>What our customers say</h2>
        <p>Read a testimonial from a happy customer. Trusted by 2,000 teams.</p>
        <h3>Pricing</h3>
        <a class="btn btn-primary" href="/signup">Start free trial</a>
        <button>Book a demo</button>
        <img src="/hero.png" alt="Dashboard" width="800" height="400" loading="lazy">
        <img src="/logo.png">
        <form action="/subscribe">
            <label for="email">Email</label>
            <input id="email" name="email" type="email">
            <input name="company" type="text">
            <input type="hidden" name="token" value="x">
        </form>
        <a href="https://twitter.example/acme">Twitter</a>
    </main>
    <footer>
        <a href="/privacy">Privacy Policy</a>
        <a href="/terms">Terms of Service</a>
    </footer>
    <script>var tracking = "ignored";</script>
</body>
</html>"""


@pytest.fixture
def page_facts(landing_html):
    facts = extract_page_facts(
        "https://acme.example/",
        200,
        landing_html,
        headers={
            "Content-Encoding": "br",
            "Strict-Transport-Security": "max-age=63072000",
            "X-Content-Type-Options": "nosniff",
            "Server": "nginx/1.25.3",
        },
        set_cookies=["session=abc; Path=/; Secure; HttpOnly; SameSite=Lax"],
    )
    facts.robots_txt = "User-agent: *\nAllow: /"
    facts.sitemap_exists = True
    return facts


@pytest.fixture
def performance_facts() -> PerformanceFacts:
    mobile = StrategyFacts(
        scores={"performance": 42, "accessibility": 88, "seo": 95, "best-practices": 100},
        metrics={
            "LCP": MetricFacts(value="5.1 s", numeric_value=5100, score=0.1),
            "CLS": MetricFacts(value="0.05", numeric_value=0.05, score=0.98),
            "TBT": MetricFacts(value="350 ms", numeric_value=350, score=0.6),
        },
        sub_audits={
            "seo_document_title": SubAudit(title="Document has a `<title>` element", passed=True, score=1),
            "a11y_tap_targets": SubAudit(
                title="Tap targets are sized appropriately",
                passed=False,
                score=0.5,
                failing_items=["a.footer-link", "button.close"],
            ),
            "perf_render_blocking": SubAudit(
                title="Eliminate render-blocking resources",
                passed=False,
                score=0.3,
                display="Potential savings of 900 ms",
            ),
        },
    )
    desktop = StrategyFacts(scores={"performance": 91, "seo": 97})
    return PerformanceFacts(mobile=mobile, desktop=desktop)


@pytest.fixture
def visual_facts(temp_dir) -> VisualFacts:
    desktop_shot = temp_dir / "job_desktop.jpg"
    mobile_shot = temp_dir / "job_mobile.jpg"
    desktop_shot.write_bytes(b"\xff\xd8desktop")
    mobile_shot.write_bytes(b"\xff\xd8mobile")
    return VisualFacts(
        desktop=ViewportCapture(
            screenshot=str(desktop_shot),
            data=ViewportData(
                body_font_family="Inter, sans-serif",
                body_font_size="16px",
                h1_font_size="48px",
                h1_font_weight="700",
                ctas_above_fold=[
                    CtaBox(text="Start free trial", width=180, height=48, top=420, is_visible=True),
                ],
                nav_is_fixed=True,
                nav_height=72,
                content_width=1200,
                content_max_width_percent=83,
                visible_images=4,
            ),
        ),
        mobile=ViewportCapture(
            screenshot=str(mobile_shot),
            data=ViewportData(
                tap_targets_total=40,
                tap_targets_too_small=12,
                has_horizontal_overflow=False,
            ),
        ),
    )
