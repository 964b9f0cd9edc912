"""ABOUTME: Flask context processors for adding variables to template context
ABOUTME: Provides functions that inject common variables into application templates"""

import hashlib
from functools import cache

from openidp.config import get_static_path


@cache
def get_css_hash() -> str:
    """
    Short hash of application.css for cache-busting, or "" if the file doesn't exist.

    Cached so the file is only read once per process.
    """
    css_path = get_static_path() / "css" / "application.css"

    if not css_path.exists():
        return ""

    return hashlib.sha256(css_path.read_bytes()).hexdigest()[:8]


def static_versioning_context_processor() -> dict[str, str]:
    return {"css_hash": get_css_hash()}
