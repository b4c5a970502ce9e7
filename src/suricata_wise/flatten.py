"""
Flatten nested alert documents into dotted-path mappings.

    {"event": {"_source": {"alert": {"severity": 2}}, "tags": []}}
    → {"event._source.alert.severity": 2, "event.tags": []}

Empty lists and dicts are kept at their own path so "present but empty" is
distinguishable from "absent".
"""

from typing import Any


def flatten(document: Any) -> dict[str, Any]:
    """
    Flatten a JSON-like document.

    Args:
        document: Any combination of dicts, lists and scalars (acyclic).

    Returns:
        Dict mapping dotted paths to scalar values or empty containers.
        A scalar root is stored under the empty-string key.
    """
    result: dict[str, Any] = {}
    _recurse(document, "", result)
    return result


def _join(prefix: str, key: Any) -> str:
    return f"{prefix}.{key}" if prefix else str(key)


def _recurse(current: Any, path: str, result: dict[str, Any]) -> None:
    if isinstance(current, dict):
        if not current:
            result[path] = {}
            return
        for key, value in current.items():
            _recurse(value, _join(path, key), result)
    elif isinstance(current, (list, tuple)):
        if not current:
            result[path] = []
            return
        for index, value in enumerate(current):
            _recurse(value, _join(path, index), result)
    else:
        result[path] = current
