from __future__ import annotations

"""HTTP helper utilities shared by the release fetcher, installer and health probe."""

from typing import Any, Callable, Optional
from urllib.parse import urljoin, urlsplit

import aiohttp

REDIRECT_STATUSES = frozenset({301, 302, 303, 307, 308})
USER_AGENT = "AgentSmithy-Sidecar"

SessionFactory = Callable[..., Any]


def ensure_http_url(request_url: str) -> str:
    """Ensure the provided URL uses an allowed HTTP/HTTPS scheme."""
    parsed = urlsplit(request_url)
    scheme = parsed.scheme.lower()
    if scheme not in {"http", "https"}:
        raise ValueError(f"Unsupported URL scheme: {request_url}")
    if not parsed.netloc:
        raise ValueError(f"URL missing network location: {request_url}")
    return request_url


def resolve_redirect(current_url: str, location: str) -> str:
    """Resolve a ``Location`` header against the URL that produced it."""
    return ensure_http_url(urljoin(current_url, location))


def build_timeout(total: Optional[float], *, sock_read: Optional[float] = None) -> aiohttp.ClientTimeout:
    """Timeout for short JSON calls (``total``) or long streams (``sock_read`` only)."""
    return aiohttp.ClientTimeout(total=total, sock_read=sock_read)


def default_session_factory(**kwargs: Any) -> aiohttp.ClientSession:
    """Create a client session carrying the sidecar user agent."""
    headers = dict(kwargs.pop("headers", None) or {})
    headers.setdefault("User-Agent", USER_AGENT)
    return aiohttp.ClientSession(headers=headers, **kwargs)


__all__ = [
    "REDIRECT_STATUSES",
    "USER_AGENT",
    "SessionFactory",
    "build_timeout",
    "default_session_factory",
    "ensure_http_url",
    "resolve_redirect",
]
