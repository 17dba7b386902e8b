from __future__ import annotations

from typing import Any, Dict, Tuple

from .errors import CommandError
from .schemas import SlackMessage

Envelope = Tuple[int, Dict[str, Any]]


# PUBLIC_INTERFACE
def ephemeral_envelope(message: SlackMessage) -> Envelope:
    """
    Wrap a formatted message as a 200 response visible only to the caller.

    Returns:
        (status_code, body) where body has response_type, text and, when
        non-empty, blocks.
    """
    payload = message.model_copy(update={"response_type": "ephemeral"}).to_payload()
    return 200, payload


# PUBLIC_INTERFACE
def denial_envelope(contact: str) -> Envelope:
    """Polite 200 reply for callers who are not on the allow-list."""
    return 200, {
        "response_type": "ephemeral",
        "text": (
            "Sorry, you don't have access to this command. "
            f"Please contact {contact} to request access."
        ),
    }


# PUBLIC_INTERFACE
def error_envelope(exc: CommandError) -> Envelope:
    """
    Map a CommandError to its response.
    - Upstream failures are 200 ephemeral messages so Slack shows them.
    - Configuration and signature failures carry only the generic text.
    """
    body: Dict[str, Any] = {"text": exc.public_message}
    if exc.ephemeral:
        body = {"response_type": "ephemeral", **body}
    return exc.status_code, body
