from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Callable, Optional

import requests

from .config import HEALTH_INTERVAL_SECONDS

log = logging.getLogger(__name__)


class HealthState(str, Enum):
    UNKNOWN = "unknown"
    ONLINE = "online"
    OFFLINE = "offline"


STATUS_LABELS = {
    HealthState.UNKNOWN: "Checking…",
    HealthState.ONLINE: "Backend Online",
    HealthState.OFFLINE: "Backend Offline",
}


class HealthMonitor:
    """
    Polls `GET {api_base}/health` and tracks whether the backend is reachable.

    Any HTTP response counts as online, whatever its status; only a transport
    failure counts as offline. State starts as UNKNOWN and never goes back to it.

    Each probe remembers the generation it started in. `stop()` bumps the
    generation, so a probe still waiting on the network when the monitor is
    torn down is dropped when it comes back.
    """

    def __init__(
        self,
        api_base: str,
        session: Optional[requests.Session] = None,
        interval: float = HEALTH_INTERVAL_SECONDS,
        timeout: Optional[float] = None,
        on_change: Optional[Callable[[HealthState], None]] = None,
    ):
        self.api_base = api_base.rstrip("/")
        self.session = session or requests.Session()
        self.interval = interval
        self.timeout = timeout
        self.on_change = on_change

        self._state = HealthState.UNKNOWN
        self._generation = 0
        self._stopped = False
        self._task: Optional[asyncio.Task] = None

    @property
    def health_url(self) -> str:
        return f"{self.api_base}/health"

    @property
    def state(self) -> HealthState:
        return self._state

    @property
    def online(self) -> bool:
        return self._state is HealthState.ONLINE

    @property
    def offline(self) -> bool:
        return self._state is HealthState.OFFLINE

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def status_label(self) -> str:
        return STATUS_LABELS[self._state]

    def _check(self) -> HealthState:
        try:
            self.session.get(self.health_url, timeout=self.timeout)
        except requests.RequestException as e:
            log.warning("Health check failed for %s: %s", self.health_url, e)
            return HealthState.OFFLINE
        return HealthState.ONLINE

    async def probe(self) -> HealthState:
        """Run one health check and apply it unless the monitor was stopped meanwhile."""
        if self._stopped:
            return self._state

        generation = self._generation
        outcome = await asyncio.to_thread(self._check)
        if self._stopped or generation != self._generation:
            log.debug("Discarding stale health result %s", outcome.value)
            return self._state

        self._apply(outcome)
        return outcome

    def _apply(self, outcome: HealthState) -> None:
        changed = outcome is not self._state
        self._state = outcome
        if changed:
            log.info("Backend %s is now %s", self.api_base, outcome.value)
            if self.on_change is not None:
                self.on_change(outcome)

    async def _run(self) -> None:
        while True:
            await self.probe()
            await asyncio.sleep(self.interval)

    def start(self) -> asyncio.Task:
        """Probe now, then every `interval` seconds. Needs a running event loop."""
        if self._stopped:
            raise RuntimeError("HealthMonitor was stopped and cannot be restarted")
        if not self.running:
            self._task = asyncio.get_running_loop().create_task(self._run())
        return self._task

    def stop(self) -> None:
        self._stopped = True
        self._generation += 1
        if self._task is not None:
            self._task.cancel()
            self._task = None
