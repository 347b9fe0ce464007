"""Page fact extraction from raw HTML."""
import json
import re
from typing import Any, Dict, List, Mapping, Optional, Sequence

from bs4 import BeautifulSoup

from ..models.facts import (
    CookieFacts,
    FormAccessibility,
    FormFacts,
    ImageFacts,
    LinkFacts,
    PageFacts,
    ReadabilityFacts,
    ResourceHints,
    TrustSignals,
)
from ..utils.readability import compute_readability
from ..utils.url_utils import get_hostname, resolve_link

SECURITY_HEADER_NAMES = [
    "strict-transport-security",
    "content-security-policy",
    "x-content-type-options",
    "x-frame-options",
    "referrer-policy",
    "permissions-policy",
    "x-xss-protection",
]

SEMANTIC_TAGS = [
    "header", "footer", "main", "nav", "article", "section", "aside",
    "figure", "figcaption", "details", "summary", "mark", "time",
]

MAX_LINKS = 50
MAX_IMAGES = 30
MAX_FORMS = 10
MAX_BODY_TEXT = 5000

_CTA_CLASS_MARKERS = ("btn", "cta", "button")
_FORM_FIELDS = ["input", "select", "textarea"]
_SAMESITE = re.compile(r"samesite=(strict|lax|none)", re.IGNORECASE)

_TESTIMONIALS = re.compile(r"testimonial|review|rating", re.IGNORECASE)
_SOCIAL_PROOF = re.compile(r"client|partner|customer|trusted by", re.IGNORECASE)
_PRIVACY = re.compile(r"privacy.?policy", re.IGNORECASE)
_TERMS = re.compile(r"terms.?(of|and).?(service|use|conditions)", re.IGNORECASE)


def _text(element) -> str:
    return element.get_text().strip()


def _is_form_field(tag) -> bool:
    if tag.name not in _FORM_FIELDS:
        return False
    return not (tag.name == "input" and (tag.get("type") or "").lower() == "hidden")


def _meta_tags(soup) -> Dict[str, str]:
    meta: Dict[str, str] = {}
    title = soup.find('title')
    if title and _text(title):
        meta["title"] = _text(title)
    for tag in soup.find_all('meta'):
        name = tag.get('name') or tag.get('property')
        content = tag.get('content')
        if name and content:
            meta[name] = content
    return meta


def _headings(soup) -> Dict[str, List[str]]:
    headings = {}
    for level in range(1, 7):
        found = [_text(h) for h in soup.find_all(f"h{level}")]
        if found:
            headings[f"h{level}"] = found
    return headings


def _links(soup, url: str) -> LinkFacts:
    host = get_hostname(url)
    internal, external = [], []
    for anchor in soup.find_all('a', href=True):
        href = anchor['href']
        if not href or href.startswith('#') or href.startswith('javascript:'):
            continue
        resolved = resolve_link(url, href)
        if resolved is None:
            continue
        if get_hostname(resolved) == host:
            internal.append(href)
        else:
            external.append(href)
    return LinkFacts(
        internal=internal[:MAX_LINKS],
        external=external[:MAX_LINKS],
        internal_count=len(internal),
        external_count=len(external),
    )


def _images(soup) -> List[ImageFacts]:
    return [
        ImageFacts(
            src=img.get('src', ''),
            alt=img.get('alt', ''),
            loading=img.get('loading', ''),
            width=img.get('width', ''),
            height=img.get('height', ''),
        )
        for img in soup.find_all('img', limit=MAX_IMAGES)
    ]


def _structured_data(soup) -> List[Any]:
    blocks = []
    for script in soup.find_all('script', type='application/ld+json'):
        try:
            blocks.append(json.loads(script.string or ""))
        except ValueError:
            continue
    return blocks


def _ctas(soup) -> List[str]:
    ctas = [_text(b) for b in soup.find_all('button') if _text(b)]
    for anchor in soup.find_all('a'):
        classes = " ".join(anchor.get('class') or [])
        if any(marker in classes for marker in _CTA_CLASS_MARKERS) and _text(anchor):
            ctas.append(_text(anchor))
    return ctas


def _body_text(soup) -> str:
    body = soup.find('body')
    if body is None:
        return ""
    body = BeautifulSoup(str(body), 'html.parser')
    for element in body(["script", "style", "noscript"]):
        element.decompose()
    return re.sub(r"\s+", " ", body.get_text()).strip()[:MAX_BODY_TEXT]


def _cookies(set_cookies: Sequence[str]) -> List[CookieFacts]:
    cookies = []
    for raw in set_cookies:
        name = raw.split(";", 1)[0].split("=", 1)[0].strip()
        flags = raw.lower()
        samesite = _SAMESITE.search(raw)
        cookies.append(CookieFacts(
            name=name,
            secure="secure" in flags,
            httponly="httponly" in flags,
            samesite=samesite.group(1) if samesite else "",
        ))
    return cookies


def _compression(content_encoding: str) -> str:
    if "br" in content_encoding:
        return "brotli"
    if "gzip" in content_encoding:
        return "gzip"
    if "deflate" in content_encoding:
        return "deflate"
    return "none"


def _form_accessibility(soup) -> FormAccessibility:
    facts = FormAccessibility()
    for field in soup.find_all(_is_form_field):
        facts.total_inputs += 1
        field_id = field.get('id')
        labelled = (
            (field_id and soup.find('label', attrs={"for": field_id}) is not None)
            or field.get('aria-label')
            or field.get('aria-labelledby')
            or field.find_parent('label') is not None
        )
        if not labelled:
            facts.all_labeled = False
            facts.unlabeled_inputs.append(field.get('name') or field.get('type') or "unknown")
    return facts


def _count_rel(soup, rel: str) -> int:
    return sum(1 for link in soup.find_all('link') if rel in (link.get('rel') or []))


def extract_page_facts(
    url: str,
    status_code: int,
    html: str,
    headers: Optional[Mapping[str, str]] = None,
    set_cookies: Sequence[str] = (),
) -> PageFacts:
    """
    Extract page facts from an HTML document.

    Args:
        url: Final URL of the page
        status_code: HTTP status of the response
        html: Response body
        headers: Response headers (any case)
        set_cookies: Raw Set-Cookie header values

    Returns:
        PageFacts without robots.txt / sitemap information
    """
    soup = BeautifulSoup(html, 'html.parser')
    headers = {k.lower(): v for k, v in (headers or {}).items()}

    body_text = _body_text(soup)
    word_count = len(body_text.split())
    viewport = soup.find('meta', attrs={"name": "viewport"})
    html_tag = soup.find('html')
    canonical = next(
        (link.get('href', '') for link in soup.find_all('link') if "canonical" in (link.get('rel') or [])),
        "",
    )

    twitter_cards = {}
    for tag in soup.find_all('meta'):
        name = tag.get('name') or ""
        if name.startswith("twitter:") and name[len("twitter:"):]:
            twitter_cards[name[len("twitter:"):]] = tag.get('content', '')

    aria_landmarks: Dict[str, int] = {}
    for element in soup.find_all(attrs={"role": True}):
        role = element.get('role')
        if role:
            aria_landmarks[role] = aria_landmarks.get(role, 0) + 1

    semantic_html = {}
    for tag in SEMANTIC_TAGS:
        count = len(soup.find_all(tag))
        if count:
            semantic_html[tag] = count

    forms = soup.find_all('form')
    nav_items = [_text(a) for nav in soup.find_all('nav') for a in nav.find_all('a')]

    return PageFacts(
        url=url,
        status_code=status_code,
        meta_tags=_meta_tags(soup),
        headings=_headings(soup),
        links=_links(soup, url),
        images=_images(soup),
        structured_data=_structured_data(soup),
        nav_items=nav_items,
        ctas=_ctas(soup),
        body_text=body_text,
        viewport=viewport.get('content', '') if viewport else "",
        security_headers={name: headers.get(name) for name in SECURITY_HEADER_NAMES},
        language=html_tag.get('lang', '') if html_tag else "",
        word_count=word_count,
        forms_count=len(forms),
        forms=[FormFacts(fields=len(form.find_all(_is_form_field))) for form in forms[:MAX_FORMS]],
        stylesheet_count=_count_rel(soup, "stylesheet"),
        trust_signals=TrustSignals(
            has_testimonials=bool(_TESTIMONIALS.search(html)),
            has_social_proof=bool(_SOCIAL_PROOF.search(html)),
            has_privacy_policy=bool(_PRIVACY.search(html)),
            has_terms=bool(_TERMS.search(html)),
        ),
        canonical_link=canonical,
        cookies=_cookies(set_cookies),
        readability=ReadabilityFacts(**compute_readability(body_text, word_count)),
        inline_styles=len(soup.find_all(style=True)),
        compression=_compression(headers.get("content-encoding", "")),
        is_http2="h2" in headers.get("alt-svc", ""),
        resource_hints=ResourceHints(
            preload=_count_rel(soup, "preload"),
            prefetch=_count_rel(soup, "prefetch"),
            preconnect=_count_rel(soup, "preconnect"),
        ),
        twitter_cards=twitter_cards,
        form_accessibility=_form_accessibility(soup),
        aria_landmarks=aria_landmarks,
        semantic_html=semantic_html,
        response_headers={
            "server": headers.get("server", ""),
            "x-powered-by": headers.get("x-powered-by", ""),
        },
    )
