"""HMAC-SHA256 request signing for the delivery API."""

from __future__ import annotations

import base64
import hashlib
import hmac
from dataclasses import dataclass
from datetime import datetime, timezone

from delivery.errors import ConfigurationError


@dataclass(frozen=True)
class SignedRequest:
    """One signed upstream call. Lives only for the duration of the request."""

    timestamp: str
    method: str
    path: str
    body: str
    signature: str


def format_timestamp(now: datetime) -> str:
    """Render ``now`` as ISO-8601 UTC with millisecond precision."""
    if now.tzinfo is not None:
        now = now.astimezone(timezone.utc)
    return now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"


def canonical_message(timestamp: str, method: str, path: str, body: str) -> str:
    # The blank line stands in for the query string, which is never signed.
    return f"{timestamp}\r\n{method}\r\n{path}\r\n\r\n{body}"


def compute_signature(secret: str, message: str) -> str:
    """Return base64(HMAC-SHA256(secret, message))."""
    digest = hmac.new(
        secret.encode("utf-8"),
        message.encode("utf-8"),
        hashlib.sha256,
    ).digest()
    return base64.b64encode(digest).decode("ascii")


def sign_request(
    method: str,
    path: str,
    body: str,
    secret: str | None,
    now: datetime | None = None,
) -> SignedRequest:
    """Sign an upstream request.

    Args:
        method: HTTP method, e.g. ``POST``.
        path: Upstream path without the version prefix, e.g. ``/quotations``.
        body: The exact JSON string that will be sent.
        secret: Shared signing secret.
        now: Clock override, defaults to the current UTC time.

    Raises:
        ConfigurationError: if ``secret`` is empty.
    """
    if not secret:
        raise ConfigurationError("LALAMOVE_API_SECRET")

    timestamp = format_timestamp(now or datetime.now(timezone.utc))
    message = canonical_message(timestamp, method, path, body)
    return SignedRequest(
        timestamp=timestamp,
        method=method,
        path=path,
        body=body,
        signature=compute_signature(secret, message),
    )
