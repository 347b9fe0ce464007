"""
Fact models produced by the collectors and consumed by check producers.

Every field carries a neutral default so a partially populated bag of facts
still validates; producers grade missing data instead of failing on it.
"""
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field


class _Facts(BaseModel):
    model_config = ConfigDict(extra="ignore")


# ---------------------------------------------------------------- page facts

class LinkFacts(_Facts):
    internal: List[str] = Field(default_factory=list)
    external: List[str] = Field(default_factory=list)
    internal_count: int = 0
    external_count: int = 0


class ImageFacts(_Facts):
    src: str = ""
    alt: str = ""
    loading: str = ""
    width: str = ""
    height: str = ""


class FormFacts(_Facts):
    fields: int = 0


class CookieFacts(_Facts):
    name: str = ""
    secure: bool = False
    httponly: bool = False
    samesite: str = ""


class ReadabilityFacts(_Facts):
    flesch_ease: Optional[int] = None
    grade_level: Optional[float] = None
    avg_sentence_length: float = 0.0
    avg_syllables_per_word: float = 0.0


class TrustSignals(_Facts):
    has_testimonials: bool = False
    has_social_proof: bool = False
    has_privacy_policy: bool = False
    has_terms: bool = False


class ResourceHints(_Facts):
    preload: int = 0
    prefetch: int = 0
    preconnect: int = 0

    @property
    def total(self) -> int:
        return self.preload + self.prefetch + self.preconnect


class FormAccessibility(_Facts):
    total_inputs: int = 0
    all_labeled: bool = True
    unlabeled_inputs: List[str] = Field(default_factory=list)


class PageFacts(_Facts):
    """Page-level facts extracted from the raw HTML response."""
    url: str = ""
    status_code: int = 0
    meta_tags: Dict[str, str] = Field(default_factory=dict)
    headings: Dict[str, List[str]] = Field(default_factory=dict)
    links: LinkFacts = Field(default_factory=LinkFacts)
    images: List[ImageFacts] = Field(default_factory=list)
    structured_data: List[Any] = Field(default_factory=list)
    nav_items: List[str] = Field(default_factory=list)
    ctas: List[str] = Field(default_factory=list)
    body_text: str = ""
    viewport: str = ""
    robots_txt: str = ""
    sitemap_exists: bool = False
    security_headers: Dict[str, Optional[str]] = Field(default_factory=dict)
    language: str = ""
    word_count: int = 0
    forms_count: int = 0
    forms: List[FormFacts] = Field(default_factory=list)
    stylesheet_count: int = 0
    trust_signals: TrustSignals = Field(default_factory=TrustSignals)
    canonical_link: str = ""
    cookies: List[CookieFacts] = Field(default_factory=list)
    readability: ReadabilityFacts = Field(default_factory=ReadabilityFacts)
    inline_styles: int = 0
    compression: str = "none"
    is_http2: bool = False
    resource_hints: ResourceHints = Field(default_factory=ResourceHints)
    twitter_cards: Dict[str, str] = Field(default_factory=dict)
    form_accessibility: FormAccessibility = Field(default_factory=FormAccessibility)
    aria_landmarks: Dict[str, int] = Field(default_factory=dict)
    semantic_html: Dict[str, int] = Field(default_factory=dict)
    response_headers: Dict[str, str] = Field(default_factory=dict)

    def headings_at(self, level: int) -> List[str]:
        return self.headings.get(f"h{level}", [])

    @property
    def is_https(self) -> bool:
        return self.url.startswith("https://")


# --------------------------------------------------------- performance facts

class MetricFacts(_Facts):
    value: Optional[str] = None
    numeric_value: Optional[float] = None
    score: Optional[float] = None


class SubAudit(_Facts):
    title: str = ""
    passed: Optional[bool] = None
    score: Optional[float] = None
    display: str = ""
    failing_items: List[str] = Field(default_factory=list)


class Opportunity(_Facts):
    title: str = ""
    savings: str = ""
    description: str = ""


class FailedAudit(_Facts):
    id: str = ""
    title: str = ""
    score: Optional[float] = None
    display_value: str = ""


class StrategyFacts(_Facts):
    """PageSpeed Insights results for one strategy (mobile or desktop)."""
    scores: Dict[str, int] = Field(default_factory=dict)
    metrics: Dict[str, MetricFacts] = Field(default_factory=dict)
    opportunities: List[Opportunity] = Field(default_factory=list)
    failed_audits: List[FailedAudit] = Field(default_factory=list)
    sub_audits: Dict[str, SubAudit] = Field(default_factory=dict)


class PerformanceFacts(_Facts):
    mobile: Optional[StrategyFacts] = None
    desktop: Optional[StrategyFacts] = None

    def _strategies(self):
        return [s for s in (self.mobile, self.desktop) if s is not None]

    def score(self, category: str) -> Optional[int]:
        """First available score, mobile preferred."""
        for strategy in self._strategies():
            if strategy.scores.get(category) is not None:
                return strategy.scores[category]
        return None

    def sub_audit(self, key: str, mobile_only: bool = False) -> Optional[SubAudit]:
        strategies = [self.mobile] if mobile_only else self._strategies()
        for strategy in strategies:
            if strategy is not None and key in strategy.sub_audits:
                return strategy.sub_audits[key]
        return None

    def metric(self, name: str) -> Optional[MetricFacts]:
        for strategy in self._strategies():
            if name in strategy.metrics:
                return strategy.metrics[name]
        return None

    def condensed(self) -> Dict[str, Any]:
        """Scores and metrics only, as embedded in prompts and reports."""
        return {
            name: {
                "scores": strategy.scores,
                "metrics": {k: m.model_dump() for k, m in strategy.metrics.items()},
            }
            for name, strategy in (("mobile", self.mobile), ("desktop", self.desktop))
            if strategy is not None
        }


# -------------------------------------------------------------- visual facts

class CtaBox(_Facts):
    text: str = ""
    width: int = 0
    height: int = 0
    top: int = 0
    bg_color: str = ""
    color: str = ""
    font_size: str = ""
    is_visible: bool = False


class ViewportData(_Facts):
    body_font_family: str = ""
    body_font_size: str = ""
    body_color: str = ""
    body_bg_color: str = ""
    h1_font_size: Optional[str] = None
    h1_font_weight: Optional[str] = None
    h1_color: Optional[str] = None
    h1_line_height: Optional[str] = None
    ctas_above_fold: List[CtaBox] = Field(default_factory=list)
    nav_position: Optional[str] = None
    nav_height: Optional[int] = None
    nav_bg: Optional[str] = None
    nav_is_fixed: Optional[bool] = None
    tap_targets_total: int = 0
    tap_targets_too_small: int = 0
    content_width: Optional[int] = None
    content_max_width_percent: Optional[int] = None
    has_horizontal_overflow: Optional[bool] = None
    visible_images: int = 0
    oversized_images: int = 0
    high_z_index_elements: int = 0


class ViewportCapture(_Facts):
    screenshot: Optional[str] = None
    data: ViewportData = Field(default_factory=ViewportData)


class VisualFacts(_Facts):
    """Rendered-page facts for the desktop and mobile viewports."""
    desktop: ViewportCapture = Field(default_factory=ViewportCapture)
    mobile: ViewportCapture = Field(default_factory=ViewportCapture)

    @property
    def screenshots(self) -> List[str]:
        return [p for p in (self.desktop.screenshot, self.mobile.screenshot) if p]
