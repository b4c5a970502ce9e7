"""
Lookup counters and the periodic diagnostics reporter.

Counters are owned by one SuricataSource and shared with its reporter. The
reporter logs one line per interval and, if a CloudWatch namespace is
configured, publishes the same numbers as metrics. All boto3 calls are
synchronous and run in the default executor so the event loop never blocks.
"""

import asyncio
import logging
import threading
from dataclasses import dataclass
from typing import Any, Optional

import boto3

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CounterSnapshot:
    lookups: int
    alerts_found: int
    errors: int


class Counters:
    """Thread-safe lookup counters."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._lookups = 0
        self._alerts_found = 0
        self._errors = 0

    def record_lookup(self) -> None:
        with self._lock:
            self._lookups += 1

    def record_alerts_found(self) -> None:
        with self._lock:
            self._alerts_found += 1

    def record_error(self) -> None:
        with self._lock:
            self._errors += 1

    def snapshot(self) -> CounterSnapshot:
        with self._lock:
            return CounterSnapshot(self._lookups, self._alerts_found, self._errors)


class DiagnosticsReporter:
    """
    Periodically reports counters to the log and, optionally, CloudWatch.

    Usage:
        reporter = DiagnosticsReporter(source.counters, interval_seconds=60.0)
        reporter.start()        # schedules the task on the running loop
        ...
        reporter.stop()
    """

    def __init__(
        self,
        counters: Counters,
        interval_seconds: float,
        cloudwatch_namespace: Optional[str] = None,
        region: Optional[str] = None,
    ) -> None:
        self._counters = counters
        self._interval = interval_seconds
        self._namespace = cloudwatch_namespace
        self._cw: Any = (
            boto3.client("cloudwatch", region_name=region) if cloudwatch_namespace else None
        )
        self._task: Optional[asyncio.Task[None]] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> "asyncio.Task[None]":
        """Schedule the reporting loop on the running event loop."""
        if self.running:
            raise RuntimeError("DiagnosticsReporter already started")
        self._task = asyncio.get_running_loop().create_task(self._run())
        logger.info(
            "Diagnostics reporter started | interval=%.1fs | cloudwatch=%s",
            self._interval,
            self._namespace or "off",
        )
        return self._task

    def stop(self) -> None:
        if self._task is not None:
            self._task.cancel()
            self._task = None

    async def _run(self) -> None:
        loop = asyncio.get_running_loop()
        while True:
            await asyncio.sleep(self._interval)
            snapshot = self.report()
            if self._cw is not None:
                await loop.run_in_executor(None, self._publish_metrics, snapshot)

    def report(self) -> CounterSnapshot:
        """Log the current counters once and return them."""
        snapshot = self._counters.snapshot()
        logger.info(
            "Suricata: checks: %d alerts: %d query errors: %d",
            snapshot.lookups,
            snapshot.alerts_found,
            snapshot.errors,
        )
        return snapshot

    def _publish_metrics(self, snapshot: CounterSnapshot) -> None:
        """
        Publish Lookups / AlertsFound / Errors to CloudWatch.

        CloudWatch failures are logged as warnings and never stop the reporter.
        """
        try:
            self._cw.put_metric_data(
                Namespace=self._namespace,
                MetricData=[
                    {"MetricName": "Lookups", "Value": float(snapshot.lookups), "Unit": "Count"},
                    {"MetricName": "AlertsFound", "Value": float(snapshot.alerts_found), "Unit": "Count"},
                    {"MetricName": "Errors", "Value": float(snapshot.errors), "Unit": "Count"},
                ],
            )
        except Exception as exc:
            logger.warning("CloudWatch put_metric_data failed (non-fatal): %s", exc)
