"""
EveBox alert query construction.

For a decoded flow tuple, builds the GET /api/1/alerts URL:
- time window: [captured_at, captured_at + window_seconds]
- query string matching the flow in both orientations, because the capture
  pipeline and Suricata do not always agree on which endpoint is the source
- tags filter built from the must-have / must-not-have configuration

See http://evebox.readthedocs.io/en/latest/api.html#get-api-1-alerts
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Iterable
from urllib.parse import quote, urlencode

from .errors import MalformedTupleError
from .flow_tuple import FlowTuple

logger = logging.getLogger(__name__)

# Session length is unknown at lookup time; the window is padded by a fixed amount.
DEFAULT_WINDOW_SECONDS = 90

_ALERTS_PATH = "/api/1/alerts"
_ENDPOINT_KEYS = ("src_ip", "src_port", "dest_ip", "dest_port")


@dataclass(frozen=True)
class TagRule:
    tag: str
    required: bool

    def render(self) -> str:
        return self.tag if self.required else f"-{self.tag}"


@dataclass(frozen=True)
class TagFilter:
    """Ordered required/forbidden tag rules, rendered into the `tags` parameter."""

    rules: tuple[TagRule, ...] = ()

    @classmethod
    def from_lists(
        cls, must_have: Iterable[str], must_not_have: Iterable[str]
    ) -> "TagFilter":
        """
        Build the filter from the two configured tag lists.

        Required tags come first, then forbidden ones, each in configured order.
        A tag listed in both is kept only as forbidden.
        """
        forbidden = _unique(t.strip() for t in must_not_have if t.strip())
        required = []
        for tag in _unique(t.strip() for t in must_have if t.strip()):
            if tag in forbidden:
                logger.warning(
                    "Tag configured as both required and forbidden, keeping forbidden | tag=%s",
                    tag,
                )
                continue
            required.append(tag)

        rules = [TagRule(t, True) for t in required] + [TagRule(t, False) for t in forbidden]
        return cls(rules=tuple(rules))

    def render(self) -> str:
        return ",".join(rule.render() for rule in self.rules)


@dataclass(frozen=True)
class AlertQuery:
    url: str
    window_start: datetime
    window_end: datetime
    query_string: str


def format_timestamp(dt: datetime) -> str:
    """UTC ISO 8601 with millisecond precision and Z suffix: 2017-03-27T18:41:03.000Z"""
    dt = dt.astimezone(timezone.utc)
    return dt.strftime("%Y-%m-%dT%H:%M:%S.") + f"{dt.microsecond // 1000:03d}Z"


def orientations(flow: FlowTuple) -> tuple[tuple[str, str, str, str], ...]:
    """The two (src_ip, src_port, dest_ip, dest_port) orientations the query matches."""
    return _endpoints(flow), _endpoints(flow.reversed())


def _endpoints(flow: FlowTuple) -> tuple[str, str, str, str]:
    return flow.src_ip, flow.src_port, flow.dest_ip, flow.dest_port


def symmetric_query(flow: FlowTuple) -> str:
    """
    Boolean query matching the flow regardless of direction.

    (src_ip:"A" AND src_port:"P" AND dest_ip:"B" AND dest_port:"Q") OR
    (src_ip:"B" AND src_port:"Q" AND dest_ip:"A" AND dest_port:"P")
    """
    clauses = []
    for values in orientations(flow):
        terms = " AND ".join(f'{key}:"{value}"' for key, value in zip(_ENDPOINT_KEYS, values))
        clauses.append(f"({terms})")
    return " OR ".join(clauses)


def build_query(
    base_url: str,
    flow: FlowTuple,
    tag_filter: TagFilter,
    window_seconds: int = DEFAULT_WINDOW_SECONDS,
) -> AlertQuery:
    """
    Build the alert search request for one flow.

    Args:
        base_url: EveBox base URL, e.g. "http://localhost:5636"
        flow: Decoded flow tuple
        tag_filter: Configured tag rules
        window_seconds: Padding added to the capture timestamp

    Returns:
        AlertQuery with the full URL and the window bounds

    Raises:
        MalformedTupleError: If the window falls outside the datetime range
    """
    try:
        window_start = datetime.fromtimestamp(flow.captured_at, tz=timezone.utc)
        window_end = window_start + timedelta(seconds=window_seconds)
    except (OverflowError, ValueError, OSError):
        raise MalformedTupleError(
            f"window {flow.captured_at}+{window_seconds}s is out of range"
        ) from None
    query_string = symmetric_query(flow)

    params = [
        ("tags", tag_filter.render()),
        ("min_ts", format_timestamp(window_start)),
        ("max_ts", format_timestamp(window_end)),
        ("queryString", query_string),
    ]
    url = f"{base_url.rstrip('/')}{_ALERTS_PATH}?{urlencode(params, quote_via=quote, safe=',')}"

    return AlertQuery(
        url=url,
        window_start=window_start,
        window_end=window_end,
        query_string=query_string,
    )


def _unique(items: Iterable[str]) -> list[str]:
    seen: list[str] = []
    for item in items:
        if item not in seen:
            seen.append(item)
    return seen
