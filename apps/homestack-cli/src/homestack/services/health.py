"""Bounded, fixed-interval readiness polling."""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Callable, Optional

from homestack_common import (
    HEALTH_INTERVAL_SECONDS,
    HEALTH_MAX_ATTEMPTS,
    ContainerStatus,
    HealthOutcome,
    HealthProbe,
    HealthResult,
)

from homestack.errors import DockerError

log = logging.getLogger(__name__)

LIVENESS_ATTEMPTS = 3


def _check_attempts(max_attempts: int) -> None:
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")


class HealthMonitor:
    """Polls the runtime until a predicate holds or the attempts run out.

    The worst-case wait for one call is ``(max_attempts - 1) * interval``
    seconds plus query time. There is no backoff: every gap is ``interval``.
    """

    def __init__(
        self,
        runtime,
        *,
        max_attempts: int = HEALTH_MAX_ATTEMPTS,
        interval: float = HEALTH_INTERVAL_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        _check_attempts(max_attempts)
        self.runtime = runtime
        self.max_attempts = max_attempts
        self.interval = interval
        self._sleep = sleep

    def await_healthy(
        self,
        probe: HealthProbe,
        max_attempts: Optional[int] = None,
        interval: Optional[float] = None,
    ) -> HealthResult:
        """Wait for a running container matching ``probe`` to report healthy."""
        return self._poll(
            lambda: [c for c in self.runtime.containers() if probe.container in c.name],
            probe.matches,
            label=probe.container,
            max_attempts=self.max_attempts if max_attempts is None else max_attempts,
            interval=self.interval if interval is None else interval,
        )

    def await_running(
        self,
        compose_file: Path,
        max_attempts: int = LIVENESS_ATTEMPTS,
        interval: Optional[float] = None,
    ) -> HealthResult:
        """Wait for any container of a compose definition to be up."""
        return self._poll(
            lambda: self.runtime.ps(compose_file),
            lambda status: status.running,
            label=compose_file.name,
            max_attempts=max_attempts,
            interval=self.interval if interval is None else interval,
        )

    def _poll(
        self,
        query: Callable[[], list[ContainerStatus]],
        predicate: Callable[[ContainerStatus], bool],
        *,
        label: str,
        max_attempts: int,
        interval: float,
    ) -> HealthResult:
        _check_attempts(max_attempts)
        last_status = ""
        for attempt in range(1, max_attempts + 1):
            try:
                containers = query()
            except DockerError as exc:
                log.debug("status query for %s failed on attempt %d: %s", label, attempt, exc)
                containers = []
            for status in containers:
                if predicate(status):
                    return HealthResult(outcome=HealthOutcome.READY, attempts=attempt, last_status=status.status)
            if containers:
                last_status = containers[0].status
            log.debug("%s not ready (attempt %d/%d)", label, attempt, max_attempts)
            if attempt < max_attempts:
                self._sleep(interval)
        return HealthResult(outcome=HealthOutcome.TIMED_OUT, attempts=max_attempts, last_status=last_status)
