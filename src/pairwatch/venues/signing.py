"""OKX API request signing.

prehash = timestamp + METHOD + request_path + body
signature = base64(HMAC-SHA256(secret, prehash))

For GET requests the request path includes the query string and the body is
empty; for POST the body is the exact serialized JSON that is sent.
"""

import base64
import hashlib
import hmac
from datetime import datetime, timezone


def iso_timestamp(now: datetime | None = None) -> str:
    """ISO-8601 UTC timestamp with millisecond precision, e.g. 2024-01-01T00:00:00.000Z."""
    now = now or datetime.now(timezone.utc)
    return now.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.") + (
        f"{now.microsecond // 1000:03d}Z"
    )


def prehash(timestamp: str, method: str, request_path: str, body: str = "") -> str:
    return f"{timestamp}{method.upper()}{request_path}{body}"


def sign(message: str, secret_key: str) -> str:
    digest = hmac.new(
        secret_key.encode("utf-8"), message.encode("utf-8"), hashlib.sha256
    ).digest()
    return base64.b64encode(digest).decode("ascii")


def signed_headers(
    api_key: str,
    secret_key: str,
    passphrase: str,
    method: str,
    request_path: str,
    body: str = "",
    timestamp: str | None = None,
) -> dict[str, str]:
    """Build the full OKX authentication header set for one request."""
    timestamp = timestamp or iso_timestamp()
    return {
        "OK-ACCESS-KEY": api_key,
        "OK-ACCESS-SIGN": sign(prehash(timestamp, method, request_path, body), secret_key),
        "OK-ACCESS-TIMESTAMP": timestamp,
        "OK-ACCESS-PASSPHRASE": passphrase,
        "Content-Type": "application/json",
    }
