"""Fact collectors for the audit pipeline."""

from .browser import BrowserResource, get_browser_resource
from .html_extract import extract_page_facts
from .page_facts import PageFactCollector
from .pagespeed import PageSpeedCollector, parse_pagespeed_result
from .visual import VisualCaptureService

__all__ = [
    "BrowserResource",
    "get_browser_resource",
    "extract_page_facts",
    "PageFactCollector",
    "PageSpeedCollector",
    "parse_pagespeed_result",
    "VisualCaptureService",
]
