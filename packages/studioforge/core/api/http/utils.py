"""Utility functions for HTTP client operations."""

from __future__ import annotations

from collections.abc import Mapping
from urllib.parse import urljoin, urlsplit, urlunsplit


def join_url(base_url: str, path: str) -> str:
    """Join base URL with path in a predictable way.

    Absolute ``path`` values (e.g. a video download URI returned by the
    service) are returned unchanged.

    Args:
        base_url: Base URL (e.g. "https://api.example.com/v1beta")
        path: Request path (e.g. "models/x:generateContent") or absolute URL

    Returns:
        Joined URL (e.g. "https://api.example.com/v1beta/models/x:generateContent")
    """
    if path.startswith(("http://", "https://")):
        return path
    base = base_url if base_url.endswith("/") else base_url + "/"
    return urljoin(base, path.lstrip("/"))


def strip_query(url: str) -> str:
    """Drop query string and fragment from a URL.

    Used before a URL is logged or put into an error, since download
    URLs carry the credential as a query parameter.
    """
    parts = urlsplit(url)
    return urlunsplit((parts.scheme, parts.netloc, parts.path, "", ""))


def safe_snippet(content: bytes, limit: int) -> str:
    """Extract safe text snippet from response content for logging.

    Args:
        content: Response body bytes
        limit: Maximum number of bytes to include

    Returns:
        Truncated, decoded text snippet
    """
    if not content:
        return ""
    return content[:limit].decode("utf-8", errors="replace")


def get_request_id(headers: Mapping[str, str]) -> str | None:
    """Extract request ID from common tracing headers.

    Checks for: x-request-id, x-correlation-id, request-id, trace-id (case-insensitive).

    Args:
        headers: Response headers

    Returns:
        Request ID if found, None otherwise
    """
    for key in ("x-request-id", "x-correlation-id", "request-id", "trace-id"):
        for hk, hv in headers.items():
            if hk.lower() == key:
                return hv
    return None
