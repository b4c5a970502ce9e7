"""
Suricata alert correlation source for WISE-style capture pipelines.

For every session the host pipeline hands over a flow tuple; the source asks
EveBox for Suricata alerts on the same endpoints (either direction) within a
short time window and returns the configured alert fields as a WISE payload.

- flatten: nested alert JSON → dotted-path mapping
- fields: allowed fields, host declarations, right-click links, session view
- flow_tuple: flow tuple decoding
- query_builder: symmetric, time-windowed EveBox query
- projector: field projection and WISE wire encoding
- source: SuricataSource, the per-lookup coordinator
- bootstrap: startup phases (validate, check connectivity, register, diagnostics)
"""

from .bootstrap import (
    RunningSource,
    check_connectivity,
    init_source,
    register,
    start_diagnostics,
    validate_config,
)
from .config import ConfigLoader, SourceConfig
from .diagnostics import Counters, DiagnosticsReporter
from .errors import (
    ConfigError,
    ConnectivityError,
    DecodeError,
    FieldConfigError,
    MalformedTupleError,
    SuricataSourceError,
)
from .fields import ALLOWED_FIELDS, AlertField, FieldDescriptor, FieldRegistry, resolve_fields
from .flatten import flatten
from .flow_tuple import FlowTuple, decode_tuple
from .projector import WiseResult, encode_pairs, project
from .query_builder import AlertQuery, TagFilter, TagRule, build_query
from .source import SuricataSource

__all__ = [
    "ALLOWED_FIELDS",
    "AlertField",
    "AlertQuery",
    "ConfigError",
    "ConfigLoader",
    "ConnectivityError",
    "Counters",
    "DecodeError",
    "DiagnosticsReporter",
    "FieldConfigError",
    "FieldDescriptor",
    "FieldRegistry",
    "FlowTuple",
    "MalformedTupleError",
    "RunningSource",
    "SourceConfig",
    "SuricataSource",
    "SuricataSourceError",
    "TagFilter",
    "TagRule",
    "WiseResult",
    "build_query",
    "check_connectivity",
    "decode_tuple",
    "encode_pairs",
    "flatten",
    "init_source",
    "project",
    "register",
    "resolve_fields",
    "start_diagnostics",
    "validate_config",
]
