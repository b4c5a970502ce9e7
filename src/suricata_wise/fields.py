"""
Field registry: the fixed set of alert attributes this source can expose.

Every AlertField case carries the data the host pipeline needs (its field
declaration string), the dotted path used to read the value out of a flattened
EveBox alert, and an optional right-click link into the EveBox UI.

Startup flow:
1. resolve_fields() validates the configured names against AlertField
2. FieldRegistry.register() declares each field with the host, stores the
   returned handle, registers right-click links and the session view
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional, Union

from .errors import FieldConfigError
from .host import HostApi

logger = logging.getLogger(__name__)

SOURCE_NAME = "suricata"

# WISE payload stores the field handle in a single byte
_MAX_HANDLE = 0xFF


class AlertField(Enum):
    """
    Allowed correlation fields.

    Value tuple: (identifier, kind, friendly name, help text, flattened path,
    right-click link name, right-click link label, right-click URL suffix)
    """

    SIGNATURE_ID = (
        "signature_id", "integer", "SID", "Suricata Signature ID",
        "event._source.alert.signature_id", None, None, None,
    )
    SEVERITY = (
        "severity", "integer", "Severity", "Suricata Alert Severity",
        "event._source.alert.severity", None, None, None,
    )
    SIGNATURE = (
        "signature", "termfield", "Signature", "Suricata Alert Signature",
        "event._source.alert.signature", None, None, None,
    )
    CATEGORY = (
        "category", "termfield", "Category", "Suricata Alert Category",
        "event._source.alert.category", None, None, None,
    )
    HOST = (
        "host", "termfield", "Host", "Suricata Host",
        "event._source.host", None, None, None,
    )
    IN_IFACE = (
        "in_iface", "termfield", "Iface", "Suricata in iface",
        "event._source.in_iface", None, None, None,
    )
    FLOW_ID = (
        "flow_id", "termfield", "flow_id", "Suricata flow id",
        "event._source.flow_id",
        "EveBoxFlowLink", "EveBox FLOW", "/#/events;q=flow_id%3A%22%TEXT%%22",
    )
    ID = (
        "_id", "termfield", "_id", "Evebox _id",
        "event._id",
        "EveBoxEventLink", "EveBox EVENT", "/#/event/%TEXT%",
    )
    INDEX = (
        "_index", "termfield", "_index", "Evebox index",
        "event._index", None, None, None,
    )

    def __init__(
        self,
        identifier: str,
        kind: str,
        friendly: str,
        help_text: str,
        flattened_path: str,
        link_name: Optional[str],
        link_label: Optional[str],
        link_suffix: Optional[str],
    ) -> None:
        self.identifier = identifier
        self.kind = kind
        self.friendly = friendly
        self.help_text = help_text
        self.flattened_path = flattened_path
        self.link_name = link_name
        self.link_label = link_label
        self.link_suffix = link_suffix

    @property
    def expression(self) -> str:
        """Host-side field expression, e.g. "suricata.severity"."""
        return f"{SOURCE_NAME}.{self.identifier}"

    @property
    def metadata(self) -> str:
        """Field declaration string passed to HostApi.add_field()."""
        return (
            f"field:{self.expression};db:{self.expression}-term;kind:{self.kind};"
            f"friendly:{self.friendly};help:{self.help_text};count:false"
        )

    def right_click(self, base_url: str) -> Optional[tuple[str, dict[str, str]]]:
        """Return (link name, link definition) for fields that link into EveBox, else None."""
        if self.link_name is None:
            return None
        return self.link_name, {
            "name": self.link_label,
            "url": base_url + self.link_suffix,
            "fields": self.expression,
        }

    @classmethod
    def from_identifier(cls, identifier: str) -> "AlertField":
        """
        Look up a field by its configured name.

        Raises:
            KeyError: If the name is not an allowed field
        """
        return _BY_IDENTIFIER[identifier]


_BY_IDENTIFIER: dict[str, AlertField] = {f.identifier: f for f in AlertField}

ALLOWED_FIELDS: tuple[str, ...] = tuple(_BY_IDENTIFIER)


@dataclass(frozen=True)
class FieldDescriptor:
    """An AlertField after registration, paired with the host's opaque handle."""

    field: AlertField
    handle: int

    @property
    def identifier(self) -> str:
        return self.field.identifier

    @property
    def metadata(self) -> str:
        return self.field.metadata

    @property
    def flattened_path(self) -> str:
        return self.field.flattened_path


def split_setting(value: Union[str, Iterable[str], None]) -> list[str]:
    """
    Split a semicolon-delimited setting into stripped, non-empty items.

    Lists are accepted as well, so YAML sequences and wise.ini strings
    ("severity;signature;") resolve the same way.
    """
    if value is None:
        return []
    items = value.split(";") if isinstance(value, str) else list(value)
    return [str(item).strip() for item in items if str(item).strip()]


def resolve_fields(names: Union[str, Iterable[str], None]) -> list[AlertField]:
    """
    Validate configured field names and return them as AlertField cases.

    Duplicates are dropped (first occurrence wins, order preserved).

    Args:
        names: Semicolon-delimited string or list of field names

    Returns:
        Ordered list of unique AlertField cases

    Raises:
        FieldConfigError: If a name is not allowed or the list is empty
    """
    fields: list[AlertField] = []
    for name in split_setting(names):
        try:
            field = AlertField.from_identifier(name)
        except KeyError:
            raise FieldConfigError(
                f"{name} is not allowed; try one of: {';'.join(ALLOWED_FIELDS)}",
                field_name=name,
            ) from None
        if field not in fields:
            fields.append(field)

    if not fields:
        raise FieldConfigError(
            "No fields defined; set fields=severity;signature;category;"
        )
    return fields


class FieldRegistry:
    """
    Holds the registered field descriptors for the process lifetime.

    Usage:
        registry = FieldRegistry(host_api, base_url="http://evebox:5636")
        descriptors = registry.register(resolve_fields("severity;signature"))
    """

    def __init__(self, api: HostApi, base_url: str) -> None:
        self._api = api
        self._base_url = base_url
        self._descriptors: list[FieldDescriptor] = []

    @property
    def descriptors(self) -> list[FieldDescriptor]:
        return list(self._descriptors)

    def register(self, fields: list[AlertField]) -> list[FieldDescriptor]:
        """
        Declare each field with the host and register links and the session view.

        Must be called once; field order is preserved in the returned descriptors
        and in every projected result.

        Args:
            fields: Output of resolve_fields()

        Returns:
            FieldDescriptor per field, carrying the host-assigned handle

        Raises:
            FieldConfigError: If the host hands out a handle that does not fit
                              the one-byte slot of the WISE payload
        """
        if self._descriptors:
            raise RuntimeError("FieldRegistry.register() called twice")

        for field in fields:
            handle = self._api.add_field(field.metadata)
            if not isinstance(handle, int) or not 0 <= handle <= _MAX_HANDLE:
                raise FieldConfigError(
                    f"host returned handle {handle!r} for {field.identifier}, expected 0..{_MAX_HANDLE}",
                    field_name=field.identifier,
                )
            self._descriptors.append(FieldDescriptor(field=field, handle=handle))

            link = field.right_click(self._base_url)
            if link is not None:
                link_name, definition = link
                self._api.add_right_click(link_name, definition)

        self._api.add_view(SOURCE_NAME, self.render_view())
        logger.info(
            "Fields registered | fields=%s",
            ",".join(d.identifier for d in self._descriptors),
        )
        return self.descriptors

    def render_view(self) -> str:
        """Session detail template listing every registered field."""
        lines = [
            f"if (session.{SOURCE_NAME})",
            "  div.sessionDetailMeta.bold Suricata ",
            "  dl.sessionDetailMeta",
        ]
        for d in self._descriptors:
            lines.append(
                f"    +arrayList(session.{SOURCE_NAME}, '{d.identifier}-term', "
                f"'{d.identifier}', '{d.field.expression}')"
            )
        return "\n".join(lines) + "\n"


def initialize_fields(
    api: HostApi, base_url: str, names: Union[str, Iterable[str], None]
) -> FieldRegistry:
    """Validate the configured names and register them with the host in one step."""
    registry = FieldRegistry(api, base_url)
    registry.register(resolve_fields(names))
    return registry
