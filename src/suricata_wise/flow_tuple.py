"""
Flow tuple decoding.

The host pipeline identifies a session with a semicolon-delimited string:

    "1490640063;tcp;10.0.2.2;57000;10.0.2.15;22"
     timestamp  protos src_ip  src_port dest_ip dest_port

The protocol segment may itself be a comma-separated list ("tcp,http").
"""

from dataclasses import dataclass
from datetime import datetime, timezone

from .errors import MalformedTupleError

_MIN_SEGMENTS = 6


@dataclass(frozen=True)
class FlowTuple:
    captured_at: int  # epoch seconds of the first packet
    protocols: tuple[str, ...]
    src_ip: str
    src_port: str
    dest_ip: str
    dest_port: str

    def reversed(self) -> "FlowTuple":
        """Same flow seen from the other endpoint."""
        return FlowTuple(
            captured_at=self.captured_at,
            protocols=self.protocols,
            src_ip=self.dest_ip,
            src_port=self.dest_port,
            dest_ip=self.src_ip,
            dest_port=self.src_port,
        )


def decode_tuple(raw: str) -> FlowTuple:
    """
    Parse a host flow tuple string.

    Segments past the sixth are ignored.

    Raises:
        MalformedTupleError: If fewer than six segments are present or the
                             timestamp is not ASCII digits within the range
                             of a UTC datetime
    """
    segments = raw.split(";")
    if len(segments) < _MIN_SEGMENTS:
        raise MalformedTupleError(
            f"expected at least {_MIN_SEGMENTS} segments, got {len(segments)}: {raw!r}"
        )

    timestamp, protos, src_ip, src_port, dest_ip, dest_port = segments[:_MIN_SEGMENTS]
    timestamp = timestamp.strip()
    if not (timestamp.isascii() and timestamp.isdigit()):
        raise MalformedTupleError(f"invalid timestamp {timestamp!r} in {raw!r}")
    captured_at = int(timestamp)
    try:
        datetime.fromtimestamp(captured_at, tz=timezone.utc)
    except (OverflowError, ValueError, OSError):
        raise MalformedTupleError(f"timestamp {captured_at} out of range in {raw!r}") from None

    return FlowTuple(
        captured_at=captured_at,
        protocols=tuple(p.strip() for p in protos.split(",") if p.strip()),
        src_ip=src_ip.strip(),
        src_port=src_port.strip(),
        dest_ip=dest_ip.strip(),
        dest_port=dest_port.strip(),
    )
