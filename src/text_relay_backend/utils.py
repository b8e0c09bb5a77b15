"""
Helper functions shared by the service and the HTTP layer.

This module provides:
- ISO-8601 UTC timestamps in the format the processor expects
- Extraction of the callback record from object or array bodies
- Root logger configuration for the service process
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

LOG_FORMAT = "%(asctime)s [%(levelname)s] [%(name)s] %(message)s"

logger = logging.getLogger(__name__)

_CONFIGURED = False


def utc_timestamp(moment: Optional[datetime] = None) -> str:
    """
    Format a UTC timestamp with millisecond precision and a ``Z`` suffix.

    Example:
        >>> utc_timestamp(datetime(2024, 1, 2, 3, 4, 5, 678000, tzinfo=timezone.utc))
        '2024-01-02T03:04:05.678Z'
    """
    moment = (moment or datetime.now(timezone.utc)).astimezone(timezone.utc)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}Z"


def extract_callback_record(body: Any) -> Dict[str, Any]:
    """
    Normalize a callback body to a single record.

    The processor may post either an object or an array of objects. For an
    array only the first element is used; additional elements are ignored
    with a warning. Anything that is not an object yields an empty record.

    Args:
        body: Decoded JSON body of the callback request

    Returns:
        The callback record, or an empty dict when none can be found
    """
    if isinstance(body, list):
        if len(body) > 1:
            logger.warning(f"Callback carried {len(body)} records; only the first is used")
        body = body[0] if body else None
    return body if isinstance(body, dict) else {}


def configure_logging(level: str = "INFO") -> None:
    """
    Install a single console handler on the root logger.

    Safe to call more than once; only the first call has an effect.
    """
    global _CONFIGURED
    if _CONFIGURED:
        return

    root = logging.getLogger()
    root.setLevel(getattr(logging, str(level).upper(), logging.INFO))
    for handler in list(root.handlers):
        root.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)
    _CONFIGURED = True
