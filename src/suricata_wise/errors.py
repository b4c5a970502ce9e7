"""
Exception hierarchy for the Suricata correlation source.

Startup errors (ConfigError, ConnectivityError during the version check)
disable the source for the process lifetime but never take the host down.
Per-lookup errors (ConnectivityError, DecodeError) are caught inside
SuricataSource.lookup() and degrade to "no correlation found".
"""

from typing import Optional


class SuricataSourceError(Exception):
    """Base class for every error raised by this package."""


class ConfigError(SuricataSourceError):
    """Settings are missing or invalid; the source cannot start."""


class FieldConfigError(ConfigError):
    """
    The configured field list is empty or names a field that is not allowed.

    Attributes:
        field_name: The offending field name, or None when the list is empty.
    """

    def __init__(self, message: str, field_name: Optional[str] = None) -> None:
        super().__init__(message)
        self.field_name = field_name


class ConnectivityError(SuricataSourceError):
    """The alert store could not be reached or answered with a non-200 status."""


class DecodeError(SuricataSourceError):
    """A tuple string or response body could not be decoded."""


class MalformedTupleError(DecodeError):
    """The flow tuple has too few segments or an unparseable timestamp."""
