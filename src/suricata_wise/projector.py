"""
Projection of EveBox alerts onto the registered fields, and WISE wire encoding.

Each alert is flattened once; each registered field contributes exactly one
(handle, value) pair per alert, even when the path is missing, so the host can
pair handles with values positionally.

Wire format per pair (WISE source encoding):
    [handle: u8][len(value) + 1: u8][value bytes][0x00]
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Optional, Sequence

from .fields import FieldDescriptor
from .flatten import flatten

logger = logging.getLogger(__name__)

MISSING_VALUE = "undefined"
MAX_VALUE_BYTES = 254  # length byte holds len + 1

_MISSING = object()


@dataclass(frozen=True)
class WiseResult:
    """Encoded correlation payload handed back to the host."""

    num: int  # number of (handle, value) pairs
    buffer: bytes
    pairs: tuple[tuple[int, str], ...]


def stringify(value: Any) -> str:
    """
    Render a flattened alert value the way the host displays it.

    Integral floats drop the trailing ".0" (EveBox returns JSON numbers), booleans
    are lowercase, and empty containers are JSON-encoded.
    """
    if value is _MISSING:
        return MISSING_VALUE
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (dict, list)):
        return json.dumps(value)
    return str(value)


def project_pairs(
    alerts: Sequence[dict[str, Any]], fields: Sequence[FieldDescriptor]
) -> list[tuple[int, str]]:
    """Flatten every alert and pick each field's value, alert order then field order."""
    pairs: list[tuple[int, str]] = []
    for alert in alerts:
        flat = flatten(alert)
        for descriptor in fields:
            pairs.append((descriptor.handle, stringify(flat.get(descriptor.flattened_path, _MISSING))))
    return pairs


def encode_pairs(pairs: Sequence[tuple[int, str]]) -> bytes:
    """
    Encode (handle, value) pairs into the WISE binary payload.

    Values longer than MAX_VALUE_BYTES are truncated on a UTF-8 character boundary.

    Raises:
        ValueError: If a handle does not fit in one byte
    """
    buf = bytearray()
    for handle, value in pairs:
        if not 0 <= handle <= 0xFF:
            raise ValueError(f"field handle {handle} does not fit in one byte")
        data = value.encode("utf-8")
        if len(data) > MAX_VALUE_BYTES:
            logger.debug("Truncating value | handle=%d | bytes=%d", handle, len(data))
            data = data[:MAX_VALUE_BYTES].decode("utf-8", errors="ignore").encode("utf-8")
        buf.append(handle)
        buf.append(len(data) + 1)
        buf += data
        buf.append(0)
    return bytes(buf)


def project(
    alerts: Optional[Sequence[dict[str, Any]]], fields: Sequence[FieldDescriptor]
) -> Optional[WiseResult]:
    """
    Project alerts onto the registered fields.

    Args:
        alerts: The "alerts" array from an EveBox response (None if absent)
        fields: Registered field descriptors, in configured order

    Returns:
        WiseResult, or None when there are no alerts ("no correlation found")
    """
    if not alerts:
        return None

    pairs = project_pairs(alerts, fields)
    return WiseResult(num=len(pairs), buffer=encode_pairs(pairs), pairs=tuple(pairs))
