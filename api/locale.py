"""
api/locale.py -- Per-request language selection for response messages.

The language comes from the Accept-Language header of the current request and
is handed to core.i18n.translate() explicitly. No module keeps a "current
language" anywhere.
"""

from fastapi import Request

from core.config import get_settings
from core.i18n import negotiate_language, translate


def request_language(request: Request) -> str:
    """Return the negotiated language code for this request."""
    return negotiate_language(
        request.headers.get("accept-language"),
        default=get_settings().default_language,
    )


def localize(request: Request, key: str) -> str:
    """Translate key into the language the caller asked for."""
    return translate(key, request_language(request))
