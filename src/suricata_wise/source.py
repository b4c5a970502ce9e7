"""
SuricataSource: correlates host flow tuples with EveBox alerts.

Per lookup:
1. Decode the flow tuple ("1490640063;tcp;10.0.2.2;57000;10.0.2.15;22")
2. Build the symmetric, time-windowed alert query
3. Issue one GET against EveBox (bounded timeout, no retries)
4. Project the returned alerts onto the registered fields and encode them

Every failure below the lookup boundary (malformed tuple, transport error,
non-200 status, undecodable body) degrades to None, "no correlation found".
The host sits on a per-session hot path and must never see an exception here.

Lookups are coroutines on a shared httpx.AsyncClient; any number may be in
flight. Counters are the only shared mutable state.
"""

import asyncio
import logging
from typing import Any, Callable, Optional

import httpx

from .config import SourceConfig
from .diagnostics import Counters
from .errors import ConnectivityError, DecodeError
from .fields import FieldDescriptor
from .flow_tuple import FlowTuple, decode_tuple
from .projector import WiseResult, project
from .query_builder import AlertQuery, TagFilter, build_query

logger = logging.getLogger(__name__)

LookupCallback = Callable[[Optional[int], Optional[bytes]], None]

# Host debug levels at which extra detail is logged
_DEBUG_DUMP_FAILURES = 1
_DEBUG_DUMP_RESULTS = 3
_DEBUG_LOG_URL = 4


class SuricataSource:
    """
    Correlation coordinator for one registered source.

    Usage (bootstrap.init_source):
        source = SuricataSource(config, registry.descriptors, client)
        result = await source.lookup("1490640063;tcp;10.0.2.2;57000;10.0.2.15;22")
        if result is not None:
            result.num, result.buffer
    """

    def __init__(
        self,
        config: SourceConfig,
        fields: list[FieldDescriptor],
        client: httpx.AsyncClient,
        counters: Optional[Counters] = None,
    ) -> None:
        """
        Args:
            config: Validated source settings
            fields: Registered field descriptors (order = output order)
            client: Shared async HTTP client; its timeout bounds every lookup
            counters: Counter state to update; a fresh one is created if omitted
        """
        if not fields:
            raise ValueError("SuricataSource requires at least one registered field")
        self.config = config
        self.fields = list(fields)
        self.counters = counters or Counters()
        self.tag_filter = TagFilter.from_lists(config.must_have_tags, config.must_not_have_tags)
        self._client = client

    # ------------------------------------------------------------------
    # Host-facing API
    # ------------------------------------------------------------------

    async def lookup(self, raw_tuple: str) -> Optional[WiseResult]:
        """
        Correlate one flow tuple with EveBox alerts.

        Returns:
            WiseResult, or None when the tuple is malformed, the query failed,
            or no alerts matched
        """
        self.counters.record_lookup()

        try:
            flow = decode_tuple(raw_tuple)
            query = self.build_query(flow)
        except DecodeError as exc:
            logger.debug("Skipping malformed tuple | error=%s", exc)
            return None

        if self.config.debug > _DEBUG_LOG_URL:
            logger.info("Alert query | url=%s", query.url)

        try:
            body = await self._fetch(query)
        except (ConnectivityError, DecodeError) as exc:
            self.counters.record_error()
            logger.debug("Alert query failed | error=%s", exc)
            return None

        self.counters.record_alerts_found()
        if self.config.debug > _DEBUG_DUMP_RESULTS:
            logger.info("Alert query results | body=%s", body)

        return project(body.get("alerts"), self.fields)

    def get_tuple(self, raw_tuple: str, callback: LookupCallback) -> "asyncio.Task[None]":
        """
        Callback-style entry point used by the host pipeline.

        Schedules lookup() on the running loop and calls callback(num, buffer)
        on a match or callback(None, None) otherwise. An unexpected error in
        lookup() is logged and answered with callback(None, None).
        """

        async def _run() -> None:
            try:
                result = await self.lookup(raw_tuple)
            except Exception:
                logger.exception("Lookup failed | tuple=%s", raw_tuple)
                result = None
            if result is None:
                callback(None, None)
            else:
                callback(result.num, result.buffer)

        return asyncio.get_running_loop().create_task(_run())

    def build_query(self, flow: FlowTuple) -> AlertQuery:
        return build_query(
            self.config.evbox_url,
            flow,
            self.tag_filter,
            window_seconds=self.config.window_seconds,
        )

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    async def _fetch(self, query: AlertQuery) -> dict[str, Any]:
        """
        GET the alert query and decode the JSON body.

        Raises:
            ConnectivityError: Transport error, timeout or non-200 status
            DecodeError: Body is not JSON or not a JSON object
        """
        try:
            response = await self._client.get(query.url)
        except httpx.HTTPError as exc:
            self._dump_failure(query, None, exc)
            raise ConnectivityError(f"GET {query.url} failed: {exc}") from exc

        if response.status_code != 200:
            self._dump_failure(query, response, None)
            raise ConnectivityError(f"GET {query.url} returned HTTP {response.status_code}")

        try:
            body = response.json()
        except ValueError as exc:
            self._dump_failure(query, response, exc)
            raise DecodeError(f"undecodable alert response: {exc}") from exc

        if not isinstance(body, dict):
            self._dump_failure(query, response, None)
            raise DecodeError(f"expected a JSON object, got {type(body).__name__}")
        if not isinstance(body.get("alerts", []), (list, type(None))):
            self._dump_failure(query, response, None)
            raise DecodeError("'alerts' is not a JSON array")
        return body

    def _dump_failure(
        self,
        query: AlertQuery,
        response: Optional[httpx.Response],
        exc: Optional[Exception],
    ) -> None:
        if self.config.debug <= _DEBUG_DUMP_FAILURES:
            return
        logger.warning(
            "Error for request | url=%s | status=%s | error=%s | body=%s",
            query.url,
            response.status_code if response is not None else None,
            exc,
            response.text if response is not None else None,
        )
