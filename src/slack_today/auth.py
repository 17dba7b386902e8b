from __future__ import annotations

import hashlib
import hmac
import time
from typing import AbstractSet, Optional

SIGNATURE_VERSION = "v0"
REPLAY_WINDOW_SECONDS = 300


def _signature_for(signing_secret: str, timestamp: str, body: str) -> str:
    base = f"{SIGNATURE_VERSION}:{timestamp}:{body}".encode("utf-8")
    digest = hmac.new(signing_secret.encode("utf-8"), base, hashlib.sha256).hexdigest()
    return f"{SIGNATURE_VERSION}={digest}"


# PUBLIC_INTERFACE
def verify_slack_signature(
    signing_secret: str,
    signature: str,
    timestamp: str,
    body: str,
    now: Optional[float] = None,
) -> bool:
    """
    Verify a Slack request signature.

    Behavior:
    - A timestamp that is not an integer, or is older than REPLAY_WINDOW_SECONDS
      relative to `now` (defaults to the current time), is rejected before any
      HMAC work.
    - The expected value is "v0=" + hex(HMAC-SHA256(secret, "v0:{timestamp}:{body}")).
    - Comparison is constant-time; values of different length compare unequal.

    Returns:
        True only when the signature matches and the timestamp is fresh.
    """
    try:
        ts = int(timestamp)
    except (TypeError, ValueError):
        return False

    current = time.time() if now is None else now
    if ts < int(current) - REPLAY_WINDOW_SECONDS:
        return False

    expected = _signature_for(signing_secret, timestamp, body)
    return hmac.compare_digest(expected.encode("utf-8"), (signature or "").encode("utf-8"))


# PUBLIC_INTERFACE
def is_authorized(user_id: Optional[str], allowed_user_ids: AbstractSet[str]) -> bool:
    """Return True when the Slack caller is on the configured allow-list."""
    if not user_id or not user_id.strip():
        return False
    return user_id.strip() in allowed_user_ids
