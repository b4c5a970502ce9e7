"""
Host pipeline interface.

The capture pipeline (the WISE service) owns field declarations, session views
and right-click links. This module describes the calls the source makes on it,
plus RecordingHost, an in-process stand-in used by the CLI.
"""

import logging
from typing import Any, Optional, Protocol

logger = logging.getLogger(__name__)


class HostApi(Protocol):
    """Registration surface exposed by the host pipeline."""

    debug: int

    def get_config(self, section: str, key: str) -> Optional[str]:
        ...

    def add_field(self, declaration: str) -> int:
        ...

    def add_view(self, name: str, template: str) -> None:
        ...

    def add_right_click(self, name: str, definition: dict[str, str]) -> None:
        ...

    def add_source(self, name: str, source: Any) -> None:
        ...


class RecordingHost:
    """
    Minimal HostApi that records registrations and hands out sequential handles.

    Usage (CLI):
        host = RecordingHost(settings={"evBox": "http://localhost:5636", ...})
        source = await init_source(host)
    """

    def __init__(self, settings: Optional[dict[str, Any]] = None, debug: int = 0) -> None:
        self.debug = debug
        self._settings = settings or {}
        self.fields: list[str] = []
        self.views: dict[str, str] = {}
        self.right_clicks: dict[str, dict[str, str]] = {}
        self.sources: dict[str, Any] = {}

    def get_config(self, section: str, key: str) -> Optional[str]:
        value = self._settings.get(key)
        return None if value is None else str(value)

    def add_field(self, declaration: str) -> int:
        self.fields.append(declaration)
        return len(self.fields) - 1

    def add_view(self, name: str, template: str) -> None:
        self.views[name] = template

    def add_right_click(self, name: str, definition: dict[str, str]) -> None:
        self.right_clicks[name] = definition

    def add_source(self, name: str, source: Any) -> None:
        logger.info("Source registered | name=%s", name)
        self.sources[name] = source
