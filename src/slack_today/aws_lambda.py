"""
AWS Lambda entry point for API Gateway (HTTP API v2 or REST API v1 proxy events).

Runs the same /today pipeline as the FastAPI route:
1) Recover the exact raw body Slack sent (base64-decoded when API Gateway wrapped it).
2) Hand headers and body to the pipeline with settings read from the Lambda environment.
3) Return the {statusCode, headers, body} structure API Gateway expects.
"""
from __future__ import annotations

import asyncio
import base64
import binascii
import json
import logging
from typing import Any, Dict, Optional

from .command import handle_today_command
from .errors import AuthenticationError, CommandError
from .settings import Settings, get_settings
from .todoist import TaskSource
from .utils import error_envelope

logger = logging.getLogger(__name__)


def _raw_body(event: Dict[str, Any]) -> str:
    body = event.get("body") or ""
    if event.get("isBase64Encoded"):
        try:
            return base64.b64decode(body).decode("utf-8")
        except (binascii.Error, UnicodeDecodeError) as e:
            raise AuthenticationError("Undecodable base64 request body") from e
    return body


def _response(status_code: int, body: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "statusCode": status_code,
        "headers": {"Content-Type": "application/json"},
        "body": json.dumps(body, ensure_ascii=False),
    }


async def _handle(event: Dict[str, Any], settings: Settings, source: Optional[TaskSource]) -> Dict[str, Any]:
    try:
        # Configuration is checked before the body is decoded
        settings.validate()
        status_code, body = await handle_today_command(
            event.get("headers") or {},
            _raw_body(event),
            settings,
            source=source,
        )
    except CommandError as exc:
        if exc.status_code >= 500:
            logger.error("%s: %s", type(exc).__name__, exc)
        else:
            logger.warning("%s: %s", type(exc).__name__, exc)
        status_code, body = error_envelope(exc)
    return _response(status_code, body)


# PUBLIC_INTERFACE
def handler(
    event: Dict[str, Any],
    context: Any = None,
    settings: Optional[Settings] = None,
    source: Optional[TaskSource] = None,
) -> Dict[str, Any]:
    """
    Lambda handler. `settings` and `source` default to the environment and the
    real Todoist client; tests inject their own.
    """
    return asyncio.run(_handle(event, settings or get_settings(), source))
