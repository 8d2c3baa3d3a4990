"""Ordered start/stop of every registered unit."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Protocol, Sequence

import typer

from homestack_common import (
    VOLUME_CONFIRMATION_PHRASE,
    HomestackConfig,
    Outcome,
    RunState,
    Unit,
    UnitResult,
)

from homestack.console import error, header, info, warn
from homestack.errors import DockerError
from homestack.services.docker import DockerRuntime
from homestack.services.health import HealthMonitor
from homestack.services.registry import StackRegistry

log = logging.getLogger(__name__)


class ConfirmationProvider(Protocol):
    def confirm(self, phrase: str) -> bool:
        """Return True only if the operator typed ``phrase`` exactly."""


class PromptConfirmation:
    """Asks on the terminal for the literal phrase."""

    def confirm(self, phrase: str) -> bool:
        answer = typer.prompt(
            f"Are you absolutely sure? Type '{phrase}' to confirm",
            default="",
            show_default=False,
        )
        return answer == phrase


def query_run_state(runtime, compose_file: Path) -> RunState:
    """Ask the runtime for the live state of one definition. No caching."""
    return RunState(containers=runtime.ps(compose_file))


class LifecycleController:
    def __init__(
        self,
        registry: StackRegistry,
        runtime,
        *,
        root: Path,
        monitor: HealthMonitor,
        networks: Sequence[str] = (),
        confirmation: Optional[ConfirmationProvider] = None,
    ) -> None:
        self.registry = registry
        self.runtime = runtime
        self.root = root
        self.monitor = monitor
        self.networks = list(networks)
        self.confirmation = confirmation or PromptConfirmation()

    @classmethod
    def from_config(
        cls,
        cfg: HomestackConfig,
        registry: Optional[StackRegistry] = None,
        confirmation: Optional[ConfirmationProvider] = None,
    ) -> "LifecycleController":
        runtime = DockerRuntime(env_file=cfg.env_file)
        monitor = HealthMonitor(
            runtime,
            max_attempts=cfg.health_max_attempts,
            interval=cfg.health_interval,
        )
        return cls(
            registry or StackRegistry(),
            runtime,
            root=cfg.root,
            monitor=monitor,
            networks=cfg.networks,
            confirmation=confirmation,
        )

    def compose_file(self, unit: Unit) -> Path:
        return self.root / unit.definition

    # ------------------------------------------------------------------
    # Start
    # ------------------------------------------------------------------

    def start_all(self) -> list[UnitResult]:
        results = []
        current = None
        for unit in self.registry.start_order:
            if unit.category != current:
                current = unit.category
                header(f"Starting {current.value} services")
            results.append(self.start_unit(unit))
        return results

    def start_unit(self, unit: Unit) -> UnitResult:
        compose_file = self.compose_file(unit)
        if not compose_file.is_file():
            error(f"Compose file {compose_file.name} not found!")
            return UnitResult(name=unit.name, outcome=Outcome.DEFINITION_MISSING, detail=str(compose_file))

        info(f"Starting {unit.name}...")
        try:
            self.runtime.up(compose_file)
        except DockerError as exc:
            warn(f"{unit.name} failed to start: {exc}")
            return UnitResult(name=unit.name, outcome=Outcome.RUNTIME_ERROR, detail=str(exc))

        if unit.health_probe is not None:
            info(f"Waiting for {unit.health_probe.container} to be healthy...")
            health = self.monitor.await_healthy(unit.health_probe)
            if health.ready:
                info(f"{unit.health_probe.container} is ready")
            else:
                warn(f"{unit.health_probe.container} health check timed out")
        else:
            health = self.monitor.await_running(compose_file)
            if health.ready:
                info(f"{unit.name} started successfully")
            else:
                warn(f"{unit.name} may not have started correctly")

        outcome = Outcome.STARTED if health.ready else Outcome.STARTED_UNHEALTHY
        return UnitResult(name=unit.name, outcome=outcome, detail=health.last_status)

    # ------------------------------------------------------------------
    # Stop
    # ------------------------------------------------------------------

    def stop_all(self, remove_networks: bool = False, remove_volumes: bool = False) -> list[UnitResult]:
        info("Stopping services in dependency order...")
        results = [self.stop_unit(unit) for unit in self.registry.stop_order]
        if remove_networks:
            results.extend(self.remove_networks())
        if remove_volumes:
            results.extend(self.remove_volumes())
        return results

    def stop_unit(self, unit: Unit) -> UnitResult:
        compose_file = self.compose_file(unit)
        if not compose_file.is_file():
            warn(f"Compose file {compose_file.name} not found, skipping {unit.name}")
            return UnitResult(name=unit.name, outcome=Outcome.DEFINITION_MISSING, detail=str(compose_file))

        info(f"Stopping {unit.name}...")
        try:
            state = query_run_state(self.runtime, compose_file)
        except DockerError as exc:
            # Unknown state: fall through to down, which is idempotent
            log.debug("could not query %s: %s", unit.name, exc)
        else:
            if not state.running:
                info(f"{unit.name} was not running")
                return UnitResult(name=unit.name, outcome=Outcome.ALREADY_STOPPED)

        try:
            self.runtime.down(compose_file)
        except DockerError as exc:
            warn(f"{unit.name} failed to stop: {exc}")
            return UnitResult(name=unit.name, outcome=Outcome.RUNTIME_ERROR, detail=str(exc))
        info(f"{unit.name} stopped")
        return UnitResult(name=unit.name, outcome=Outcome.STOPPED)

    # ------------------------------------------------------------------
    # Destructive extensions
    # ------------------------------------------------------------------

    def remove_networks(self) -> list[UnitResult]:
        header("Removing Docker Networks")
        results = []
        # Reverse of creation order
        for network in reversed(self.networks):
            if not self.runtime.network_exists(network):
                info(f"{network} does not exist")
                results.append(UnitResult(name=network, outcome=Outcome.NETWORK_ABSENT))
                continue
            info(f"Removing {network}...")
            try:
                self.runtime.network_remove(network)
            except DockerError as exc:
                warn(f"Could not remove {network} (may still be in use)")
                results.append(UnitResult(name=network, outcome=Outcome.NETWORK_IN_USE, detail=str(exc)))
                continue
            info(f"{network} removed")
            results.append(UnitResult(name=network, outcome=Outcome.NETWORK_REMOVED))
        return results

    def remove_volumes(self) -> list[UnitResult]:
        header("REMOVING DOCKER VOLUMES (ALL DATA WILL BE LOST!)")
        warn("This will delete all Bitcoin blockchain data, databases, and configurations!")
        if not self.confirmation.confirm(VOLUME_CONFIRMATION_PHRASE):
            info("Volume removal cancelled")
            return [UnitResult(name="volumes", outcome=Outcome.CONFIRMATION_REJECTED)]

        info("Removing Docker volumes...")
        try:
            self.runtime.prune_containers()
        except DockerError as exc:
            warn(f"Container prune failed: {exc}")

        try:
            volumes = self.runtime.volumes()
        except DockerError as exc:
            warn(f"Could not list volumes: {exc}")
            return [UnitResult(name="volumes", outcome=Outcome.RUNTIME_ERROR, detail=str(exc))]

        results = []
        for volume in volumes:
            try:
                self.runtime.volume_remove(volume)
            except DockerError as exc:
                warn(f"Could not remove volume {volume}")
                results.append(UnitResult(name=volume, outcome=Outcome.RUNTIME_ERROR, detail=str(exc)))
                continue
            results.append(UnitResult(name=volume, outcome=Outcome.VOLUME_REMOVED))

        removed = sum(1 for r in results if r.outcome is Outcome.VOLUME_REMOVED)
        info(f"{removed} Docker volume(s) removed")
        warn("All data has been permanently deleted!")
        return results
