"""URL parsing and validation utilities."""
from typing import Optional
from urllib.parse import urlparse, urljoin


def is_valid_url(url: str) -> bool:
    """
    Check if a URL is an absolute http(s) URL.

    Args:
        url: URL string to validate

    Returns:
        True if URL is valid, False otherwise
    """
    try:
        result = urlparse(url)
    except ValueError:
        return False
    return result.scheme in ("http", "https") and bool(result.netloc)


def ensure_scheme(url: str) -> str:
    """
    Prepend https:// when the URL carries no scheme.

    Args:
        url: User supplied URL

    Returns:
        URL with an explicit scheme
    """
    url = url.strip()
    if not url.lower().startswith(("http://", "https://")):
        url = f"https://{url}"
    return url


def get_hostname(url: str) -> Optional[str]:
    """
    Extract the hostname from a URL.

    Args:
        url: URL to extract the host from

    Returns:
        Hostname or None if invalid URL
    """
    try:
        return urlparse(url).hostname
    except ValueError:
        return None


def site_root(url: str) -> str:
    """Scheme and host of a URL, without path."""
    parsed = urlparse(url)
    return f"{parsed.scheme}://{parsed.hostname}"


def resolve_link(base_url: str, href: str) -> Optional[str]:
    """Resolve a link against the page URL, None when it cannot be parsed."""
    try:
        return urljoin(base_url, href)
    except ValueError:
        return None
