"""Hosted-function trigger for scheduled runs."""

from __future__ import annotations

import asyncio
import json
from typing import Any

import structlog

from .config import Settings
from .main import configure_logging, run

LOGGER = structlog.get_logger(__name__)


def handler(event: dict[str, Any], context: Any = None) -> dict[str, Any]:
    """
    Run one reservation for a scheduled trigger.

    The schedule fires a minute before the claim instant; the run then waits
    for the instant itself unless the event carries ``"noWait": true``.
    Failures are logged and re-raised so the platform records the invocation
    as failed.
    """
    configure_logging()
    LOGGER.info("lambda.invoked", event=event)

    settings = Settings()
    if "testMode" in event:
        settings = settings.model_copy(update={"test_mode": bool(event["testMode"])})

    try:
        result = asyncio.run(run(settings, wait=not event.get("noWait", False)))
    except Exception:
        LOGGER.exception("lambda.failed")
        raise

    return {
        "statusCode": 200,
        "body": json.dumps(
            {
                "message": "Court reserved successfully"
                if not result.test_mode
                else "Rehearsal completed and booking cancelled",
                **result.to_payload(),
            }
        ),
    }
