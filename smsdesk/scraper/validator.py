"""URL gate for provider inbox pages."""

from __future__ import annotations

from urllib.parse import parse_qs, urlparse

from smsdesk.config import settings

REQUIRED_PARAMS = ("phone", "key")


def is_valid_url(url: str) -> bool:
    """Return ``True`` if *url* points at a private provider inbox page.

    The host must match ``settings.provider_host`` exactly, the path must
    contain ``settings.provider_path_segment`` and both the ``phone`` and
    ``key`` query parameters must be present.  Parameter values are not
    checked.  Never raises.
    """
    if not isinstance(url, str):
        return False
    try:
        parsed = urlparse(url.strip())
        hostname = parsed.hostname
    except ValueError:
        return False

    if hostname != settings.provider_host:
        return False
    if settings.provider_path_segment not in parsed.path:
        return False

    params = parse_qs(parsed.query, keep_blank_values=True)
    return all(name in params for name in REQUIRED_PARAMS)
