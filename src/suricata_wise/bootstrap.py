"""
Startup phases for the Suricata source.

    validate_config → check_connectivity → register → start_diagnostics

Each phase can be run and tested on its own; init_source() runs them in order
and stops at the first failure. A failed startup leaves the source disabled
for the process lifetime (no retry) but never raises into the host.
"""

import logging
from dataclasses import dataclass, replace
from typing import Any, Optional

import httpx

from .config import SourceConfig, config_from_host
from .diagnostics import Counters, DiagnosticsReporter
from .errors import ConfigError, ConnectivityError
from .fields import AlertField, FieldRegistry, SOURCE_NAME, resolve_fields
from .host import HostApi
from .source import SuricataSource

logger = logging.getLogger(__name__)

_VERSION_PATH = "/api/1/version"
_BASE_REPORT_INTERVAL_SECONDS = 60.0


@dataclass
class RunningSource:
    """A registered source plus the resources it owns."""

    source: SuricataSource
    client: httpx.AsyncClient
    reporter: Optional[DiagnosticsReporter] = None

    async def close(self) -> None:
        if self.reporter is not None:
            self.reporter.stop()
        await self.client.aclose()


def make_client(config: SourceConfig) -> httpx.AsyncClient:
    """Async client shared by every lookup; the timeout bounds each request."""
    return httpx.AsyncClient(timeout=config.timeout_seconds)


def validate_config(
    api: HostApi, config: Optional[SourceConfig] = None
) -> tuple[SourceConfig, list[AlertField]]:
    """
    Phase 1: resolve settings and validate the field list.

    Args:
        api: Host pipeline, used for settings when config is not given
        config: Pre-loaded settings (e.g. from ConfigLoader)

    Raises:
        ConfigError: Missing base URL, missing fields, or an unknown field name
    """
    config = config or config_from_host(api)
    fields = resolve_fields(config.fields)
    logger.info(
        "Suricata source configured | evbox=%s | fields=%s | must_have=%s | must_not_have=%s",
        config.evbox_url,
        ",".join(f.identifier for f in fields),
        ",".join(config.must_have_tags),
        ",".join(config.must_not_have_tags),
    )
    return config, fields


async def check_connectivity(client: httpx.AsyncClient, base_url: str) -> Any:
    """
    Phase 2: GET /api/1/version; must return HTTP 200 with a JSON body.

    Returns:
        The decoded version document

    Raises:
        ConnectivityError: On transport error, non-200 status or undecodable body
    """
    url = base_url.rstrip("/") + _VERSION_PATH
    try:
        response = await client.get(url)
    except httpx.HTTPError as exc:
        raise ConnectivityError(f"GET {url} failed: {exc}") from exc

    if response.status_code != 200:
        raise ConnectivityError(f"GET {url} returned HTTP {response.status_code}: {response.text}")
    try:
        version = response.json()
    except ValueError as exc:
        raise ConnectivityError(f"GET {url} returned an undecodable body: {exc}") from exc

    logger.info("%s returned %s", url, version)
    return version


def register(
    api: HostApi,
    config: SourceConfig,
    fields: list[AlertField],
    client: httpx.AsyncClient,
    counters: Optional[Counters] = None,
) -> SuricataSource:
    """
    Phase 3: declare fields, links and view with the host, then add the source.

    Returns:
        The SuricataSource registered with the host
    """
    registry = FieldRegistry(api, config.evbox_url)
    descriptors = registry.register(fields)
    source = SuricataSource(config, descriptors, client, counters=counters)
    api.add_source(SOURCE_NAME, source)
    return source


def start_diagnostics(source: SuricataSource, debug: int) -> Optional[DiagnosticsReporter]:
    """
    Phase 4: start periodic counter reporting when debug > 0.

    The interval shrinks with the debug level: 60s / debug.
    Must be called from a running event loop.
    """
    if debug <= 0:
        return None
    reporter = DiagnosticsReporter(
        source.counters,
        interval_seconds=_BASE_REPORT_INTERVAL_SECONDS / debug,
        cloudwatch_namespace=source.config.cloudwatch_namespace,
        region=source.config.region,
    )
    reporter.start()
    return reporter


async def init_source(
    api: HostApi,
    config: Optional[SourceConfig] = None,
    client: Optional[httpx.AsyncClient] = None,
) -> Optional[RunningSource]:
    """
    Run all startup phases.

    Returns:
        RunningSource, or None if any phase failed (source disabled)
    """
    try:
        config, fields = validate_config(api, config)
    except ConfigError as exc:
        logger.error("%s - %s", SOURCE_NAME, exc)
        return None

    owns_client = client is None
    client = client or make_client(config)
    try:
        await check_connectivity(client, config.evbox_url)
    except ConnectivityError as exc:
        logger.error("%s - EveBox unreachable, source disabled: %s", SOURCE_NAME, exc)
        if owns_client:
            await client.aclose()
        return None

    host_debug = getattr(api, "debug", 0)
    if isinstance(host_debug, int) and host_debug > config.debug:
        config = replace(config, debug=host_debug)

    try:
        source = register(api, config, fields, client)
    except ConfigError as exc:
        logger.error("%s - field registration failed, source disabled: %s", SOURCE_NAME, exc)
        if owns_client:
            await client.aclose()
        return None

    reporter = start_diagnostics(source, config.debug)
    return RunningSource(source=source, client=client, reporter=reporter)
