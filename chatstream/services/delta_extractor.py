"""Turn raw event payloads into normalized deltas."""

import json
from typing import Any

import structlog

from chatstream.providers.base import ProviderAdapter
from chatstream.schemas.model_schema import Delta

logger = structlog.get_logger()


def decode_event(payload: str) -> dict[str, Any] | None:
    """Parse one payload, discarding heartbeats and malformed frames."""
    try:
        event = json.loads(payload)
    except json.JSONDecodeError:
        logger.debug("Skipping malformed stream frame", payload=payload[:200])
        return None
    if not isinstance(event, dict):
        logger.debug("Skipping non-object stream frame", payload=payload[:200])
        return None
    return event


def extract_delta(adapter: ProviderAdapter, payload: str) -> Delta | None:
    """Decode ``payload`` and let the vendor adapter pick out its fragments.

    Returns None when the frame is discarded; an empty Delta when the frame
    parsed but carried no text.
    """
    event = decode_event(payload)
    if event is None:
        return None
    return adapter.extract_delta(event)
