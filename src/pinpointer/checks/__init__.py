"""
Check producers, one per audit category.

Importing this package registers every producer with the registry in
``checks.base``.
"""
from . import accessibility, content, experience, performance, security, seo
from .base import check_producer, empty_producer, get_producer, registered_keys

__all__ = [
    "accessibility",
    "content",
    "experience",
    "performance",
    "security",
    "seo",
    "check_producer",
    "empty_producer",
    "get_producer",
    "registered_keys",
]
