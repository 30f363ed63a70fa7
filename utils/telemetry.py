"""
Decode Failure Telemetry

Best-effort reporting of packet decode failures to the diagnostics collector.
Reports are posted from a background worker; the caller never waits and
delivery failures never surface.
"""

import platform
import threading
import time
import traceback
from concurrent.futures import ThreadPoolExecutor, Future
from typing import Optional, Dict, Any

import requests

from bedrock.constants import PACKAGE_NAME, TELEMETRY_TIMEOUT, TELEMETRY_MAX_PENDING


class TelemetryReporter:
    """Fire-and-forget poster of telemetry reports."""

    def __init__(self, config, executor: Optional[ThreadPoolExecutor] = None):
        self.config = config
        self.debug = config.debug
        self._executor = executor
        self._pending = 0
        self._lock = threading.Lock()

    @property
    def enabled(self) -> bool:
        return bool(self.config.telemetry)

    def build_payload(self, event: str, message: str, error: Optional[BaseException] = None,
                      context: Optional[Dict[str, Any]] = None) -> dict:
        """
        Build the JSON body of a report.

        Args:
            event: Event name (e.g. "Packet Decode Error")
            message: Human-readable description
            error: Exception that triggered the report
            context: Free-form diagnostic fields

        Returns:
            dict: Report payload
        """
        if error is None:
            error = RuntimeError(message)

        return {
            "event": event,
            "message": message,
            "timestamp": int(time.time() * 1000),
            "protocol": self.config.protocol,
            "version": self.config.game_version,
            "runtime": {
                "arch": platform.machine(),
                "os": platform.system().lower(),
                "python": platform.python_version(),
            },
            "error": {
                "message": str(error),
                "name": type(error).__name__,
                "stack": "".join(traceback.format_exception(type(error), error, error.__traceback__)),
            },
            "context": context or {},
            "data": {
                "package": PACKAGE_NAME,
                "realmType": self.config.realm_type,
            },
        }

    def report(self, event: str, message: str, error: Optional[BaseException] = None,
               context: Optional[Dict[str, Any]] = None) -> Optional[Future]:
        """
        Queue a report for delivery.

        At most TELEMETRY_MAX_PENDING reports wait for delivery; further
        reports are dropped until the collector catches up.

        Returns:
            Future of the delivery, or None if telemetry is disabled or the
            report was dropped
        """
        if not self.enabled:
            return None

        with self._lock:
            if self._pending >= TELEMETRY_MAX_PENDING:
                if self.debug:
                    print(f"    ⚠️ Telemetry backlog full, dropping {event}")
                return None
            self._pending += 1

        try:
            payload = self.build_payload(event, message, error, context)
            if self._executor is None:
                self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="telemetry")
            future = self._executor.submit(self._post, payload)
        except Exception as e:
            self._report_done(None)
            if self.debug:
                print(f"    ⚠️ Telemetry not queued: {e}")
            return None

        future.add_done_callback(self._report_done)
        return future

    def _report_done(self, future: Optional[Future]) -> None:
        with self._lock:
            self._pending -= 1

    @property
    def pending(self) -> int:
        return self._pending

    def _post(self, payload: dict) -> bool:
        """Deliver one report. Never raises; never retried."""
        try:
            response = requests.post(
                self.config.telemetry_endpoint,
                json=payload,
                headers={"Content-Type": "application/json"},
                timeout=TELEMETRY_TIMEOUT,
            )
            return 200 <= response.status_code < 300
        except Exception as e:
            if self.debug:
                print(f"    ⚠️ Telemetry delivery failed: {e}")
            return False

    def shutdown(self, wait: bool = False) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=wait)
            self._executor = None
