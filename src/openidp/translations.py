"""ABOUTME: Translation utilities for i18n/l10n support
ABOUTME: Provides gettext functions that work both in Flask context and standalone"""

from typing import Any

from flask import current_app, has_app_context
from flask_babel import LazyString
from flask_babel import gettext as flask_gettext


def _get_text_fallback(message: str, **kwargs: Any) -> str:
    """Fallback gettext used outside a Flask app (CLI, unit tests)."""
    if kwargs:
        try:
            return message % kwargs
        except (KeyError, ValueError, TypeError):
            return message
    return message


def gettext(message: str, **kwargs: Any) -> str:
    """Get translated string - works both in Flask context and standalone."""
    if has_app_context() and "babel" in current_app.extensions:
        return str(flask_gettext(message, **kwargs))

    return _get_text_fallback(message, **kwargs)


def lazy_gettext(message: str, **kwargs: Any) -> LazyString:  # type: ignore[no-any-unimported]
    """Get lazy translated string - works both in Flask context and standalone."""
    return LazyString(gettext, message, **kwargs)


_ = gettext
_l = lazy_gettext
