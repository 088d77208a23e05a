"""Extraction of ``::{"outputs": {...}}::`` markers from command stdout."""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Dict

LOGGER = logging.getLogger(__name__)

_MARKER = re.compile(r"^::(\{.*\})::$")


def extract_outputs(stdout: str) -> Dict[str, Any]:
    """Merge the ``outputs`` objects of every marker line; later keys win."""

    outputs: Dict[str, Any] = {}
    for line in stdout.splitlines():
        match = _MARKER.match(line.strip())
        if not match:
            continue
        try:
            payload = json.loads(match.group(1))
        except json.JSONDecodeError as exc:
            LOGGER.warning("Ignoring malformed outputs marker: %s", exc)
            continue
        values = payload.get("outputs") if isinstance(payload, dict) else None
        if not isinstance(values, dict):
            LOGGER.debug("Marker line without an outputs object ignored")
            continue
        outputs.update(values)
    return outputs
