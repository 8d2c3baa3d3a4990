"""Tests for the lifecycle controller."""

from __future__ import annotations

from pathlib import Path

from conftest import FakeRuntime, StaticConfirmation

from homestack_common import (
    VOLUME_CONFIRMATION_PHRASE,
    Category,
    ContainerStatus,
    HealthProbe,
    HomestackConfig,
    Outcome,
    Unit,
)

from homestack.services.health import HealthMonitor
from homestack.services.lifecycle import LifecycleController, query_run_state
from homestack.services.registry import StackRegistry


def _no_sleep(seconds: float) -> None:
    pass


def _controller(
    root: Path,
    runtime: FakeRuntime,
    units=None,
    *,
    typed: str = "",
    networks=("crypto-network", "media-network"),
) -> LifecycleController:
    registry = StackRegistry(units) if units is not None else StackRegistry()
    return LifecycleController(
        registry,
        runtime,
        root=root,
        monitor=HealthMonitor(runtime, max_attempts=3, interval=0.0, sleep=_no_sleep),
        networks=networks,
        confirmation=StaticConfirmation(typed),
    )


def _example_units() -> list[Unit]:
    return [
        Unit(name="base", category=Category.CRYPTO),
        Unit(name="indexer", category=Category.CRYPTO, depends_on=["base"]),
        Unit(name="proxy", category=Category.PROXY, depends_on=["indexer"]),
    ]


class TestStartAll:
    def test_example_order(self, tmp_path: Path, runtime: FakeRuntime, write_definitions):
        write_definitions(tmp_path, ["base", "indexer", "proxy"])
        results = _controller(tmp_path, runtime, _example_units()).start_all()
        assert runtime.calls_of("up") == ["base", "indexer", "proxy"]
        assert [r.outcome for r in results] == [Outcome.STARTED] * 3

    def test_default_registry_respects_dependencies(self, tmp_path: Path, runtime: FakeRuntime, write_definitions):
        registry = StackRegistry()
        write_definitions(tmp_path, registry.names())
        _controller(tmp_path, runtime).start_all()
        order = runtime.calls_of("up")
        assert order == registry.names()
        for unit in registry:
            for dep in unit.depends_on:
                assert order.index(dep) < order.index(unit.name)

    def test_missing_definition_is_not_fatal(self, tmp_path: Path, runtime: FakeRuntime, write_definitions):
        write_definitions(tmp_path, ["base", "proxy"])
        results = _controller(tmp_path, runtime, _example_units()).start_all()
        assert [r.outcome for r in results] == [
            Outcome.STARTED,
            Outcome.DEFINITION_MISSING,
            Outcome.STARTED,
        ]
        assert runtime.calls_of("up") == ["base", "proxy"]

    def test_runtime_error_continues(self, tmp_path: Path, runtime: FakeRuntime, write_definitions):
        write_definitions(tmp_path, ["base", "indexer", "proxy"])
        runtime.fail_up.add("indexer")
        results = _controller(tmp_path, runtime, _example_units()).start_all()
        assert results[1].outcome is Outcome.RUNTIME_ERROR
        assert "up failed" in results[1].detail
        assert results[2].outcome is Outcome.STARTED
        assert runtime.calls_of("up") == ["base", "indexer", "proxy"]

    def test_healthy_probe(self, tmp_path: Path, runtime: FakeRuntime, write_definitions):
        write_definitions(tmp_path, ["node"])
        runtime.ps_output = [ContainerStatus(name="bitcoin-core", status="Up 1 minute (healthy)")]
        units = [Unit(name="node", category=Category.CRYPTO, health_probe=HealthProbe(container="bitcoin-core"))]
        results = _controller(tmp_path, runtime, units).start_all()
        assert results[0].outcome is Outcome.STARTED

    def test_health_timeout_does_not_block_next_unit(self, tmp_path: Path, runtime: FakeRuntime, write_definitions):
        write_definitions(tmp_path, ["node", "app"])
        runtime.ps_output = [ContainerStatus(name="bitcoin-core", status="Up 1 minute (health: starting)")]
        units = [
            Unit(name="node", category=Category.CRYPTO, health_probe=HealthProbe(container="bitcoin-core")),
            Unit(name="app", category=Category.MEDIA, depends_on=["node"]),
        ]
        results = _controller(tmp_path, runtime, units).start_all()
        assert results[0].outcome is Outcome.STARTED_UNHEALTHY
        assert results[1].outcome is Outcome.STARTED
        assert runtime.calls_of("up") == ["node", "app"]

    def test_liveness_failure(self, tmp_path: Path, write_definitions):
        class ExitingRuntime(FakeRuntime):
            def up(self, compose_file: Path) -> None:
                super().up(compose_file)
                self.running["app"] = [ContainerStatus(name="app", state="exited", status="Exited (1)")]

        runtime = ExitingRuntime()
        write_definitions(tmp_path, ["app"])
        results = _controller(tmp_path, runtime, [Unit(name="app", category=Category.MEDIA)]).start_all()
        assert results[0].outcome is Outcome.STARTED_UNHEALTHY
        assert results[0].detail == "Exited (1)"


class TestStopAll:
    def test_example_order(self, tmp_path: Path, runtime: FakeRuntime, write_definitions):
        write_definitions(tmp_path, ["base", "indexer", "proxy"])
        controller = _controller(tmp_path, runtime, _example_units())
        controller.start_all()
        results = controller.stop_all()
        assert runtime.calls_of("down") == ["proxy", "indexer", "base"]
        assert [r.outcome for r in results] == [Outcome.STOPPED] * 3

    def test_reverse_of_start_order(self, tmp_path: Path, runtime: FakeRuntime, write_definitions):
        registry = StackRegistry()
        write_definitions(tmp_path, registry.names())
        controller = _controller(tmp_path, runtime)
        controller.start_all()
        controller.stop_all()
        assert runtime.calls_of("down") == list(reversed(runtime.calls_of("up")))

    def test_already_stopped_skips_down(self, tmp_path: Path, runtime: FakeRuntime, write_definitions):
        write_definitions(tmp_path, ["base", "indexer", "proxy"])
        runtime.running["indexer"] = [ContainerStatus(name="indexer", state="running", status="Up 1 hour")]
        results = _controller(tmp_path, runtime, _example_units()).stop_all()
        assert runtime.calls_of("down") == ["indexer"]
        assert [r.outcome for r in results] == [
            Outcome.ALREADY_STOPPED,
            Outcome.STOPPED,
            Outcome.ALREADY_STOPPED,
        ]

    def test_missing_definition(self, tmp_path: Path, runtime: FakeRuntime):
        results = _controller(tmp_path, runtime, _example_units()).stop_all()
        assert {r.outcome for r in results} == {Outcome.DEFINITION_MISSING}
        assert runtime.calls_of("down") == []

    def test_down_failure_continues(self, tmp_path: Path, runtime: FakeRuntime, write_definitions):
        write_definitions(tmp_path, ["base", "indexer", "proxy"])
        controller = _controller(tmp_path, runtime, _example_units())
        controller.start_all()
        runtime.fail_down.add("proxy")
        results = controller.stop_all()
        assert results[0].outcome is Outcome.RUNTIME_ERROR
        assert runtime.calls_of("down") == ["proxy", "indexer", "base"]


class TestRemoveNetworks:
    def test_removes_existing(self, tmp_path: Path, runtime: FakeRuntime):
        runtime.networks = {"crypto-network", "media-network"}
        results = _controller(tmp_path, runtime, []).stop_all(remove_networks=True)
        assert runtime.calls_of("network_remove") == ["media-network", "crypto-network"]
        assert {r.outcome for r in results} == {Outcome.NETWORK_REMOVED}
        assert runtime.networks == set()

    def test_absent_network_is_noop(self, tmp_path: Path, runtime: FakeRuntime):
        runtime.networks = {"crypto-network"}
        results = _controller(tmp_path, runtime, []).stop_all(remove_networks=True)
        outcomes = {r.name: r.outcome for r in results}
        assert outcomes["media-network"] is Outcome.NETWORK_ABSENT
        assert outcomes["crypto-network"] is Outcome.NETWORK_REMOVED
        assert runtime.calls_of("network_remove") == ["crypto-network"]

    def test_in_use_is_warning(self, tmp_path: Path, runtime: FakeRuntime):
        runtime.networks = {"crypto-network", "media-network"}
        runtime.in_use_networks = {"media-network"}
        results = _controller(tmp_path, runtime, []).stop_all(remove_networks=True)
        outcomes = {r.name: r.outcome for r in results}
        assert outcomes["media-network"] is Outcome.NETWORK_IN_USE
        assert outcomes["crypto-network"] is Outcome.NETWORK_REMOVED

    def test_not_requested(self, tmp_path: Path, runtime: FakeRuntime):
        runtime.networks = {"crypto-network"}
        _controller(tmp_path, runtime, []).stop_all()
        assert runtime.networks == {"crypto-network"}


class TestRemoveVolumes:
    def test_wrong_phrase_removes_nothing(self, tmp_path: Path, runtime: FakeRuntime):
        runtime.volume_names = ["bitcoin_data", "mempool_mysql"]
        controller = _controller(tmp_path, runtime, [], typed="delete")
        results = controller.stop_all(remove_volumes=True)
        assert [r.outcome for r in results] == [Outcome.CONFIRMATION_REJECTED]
        assert runtime.volume_names == ["bitcoin_data", "mempool_mysql"]
        assert runtime.calls_of("volume_remove") == []
        assert not runtime.pruned

    def test_empty_answer_cancels(self, tmp_path: Path, runtime: FakeRuntime):
        runtime.volume_names = ["bitcoin_data"]
        results = _controller(tmp_path, runtime, [], typed="").stop_all(remove_volumes=True)
        assert results[0].outcome is Outcome.CONFIRMATION_REJECTED
        assert runtime.volume_names == ["bitcoin_data"]

    def test_exact_phrase_removes_all(self, tmp_path: Path, runtime: FakeRuntime):
        runtime.volume_names = ["bitcoin_data", "mempool_mysql"]
        controller = _controller(tmp_path, runtime, [], typed=VOLUME_CONFIRMATION_PHRASE)
        results = controller.stop_all(remove_volumes=True)
        assert runtime.pruned
        assert runtime.calls[0] == ("prune", "")
        assert runtime.volume_names == []
        assert [r.outcome for r in results] == [Outcome.VOLUME_REMOVED] * 2
        assert controller.confirmation.prompts == [VOLUME_CONFIRMATION_PHRASE]

    def test_locked_volume_does_not_block_rest(self, tmp_path: Path, runtime: FakeRuntime):
        runtime.volume_names = ["a", "locked", "b"]
        runtime.locked_volumes = {"locked"}
        controller = _controller(tmp_path, runtime, [], typed=VOLUME_CONFIRMATION_PHRASE)
        results = controller.stop_all(remove_volumes=True)
        assert runtime.calls_of("volume_remove") == ["a", "locked", "b"]
        assert runtime.volume_names == ["locked"]
        assert [r.outcome for r in results] == [
            Outcome.VOLUME_REMOVED,
            Outcome.RUNTIME_ERROR,
            Outcome.VOLUME_REMOVED,
        ]


class TestRunState:
    def test_query_is_fresh(self, tmp_path: Path, runtime: FakeRuntime):
        compose = tmp_path / "compose.base.yml"
        assert not query_run_state(runtime, compose).running
        runtime.running["base"] = [ContainerStatus(name="base", state="running", status="Up 1 second (healthy)")]
        state = query_run_state(runtime, compose)
        assert state.running
        assert state.healthy


class TestFromConfig:
    def test_wires_config(self, tmp_config: HomestackConfig):
        controller = LifecycleController.from_config(tmp_config)
        assert controller.root == tmp_config.root
        assert controller.networks == ["crypto-network", "media-network"]
        assert controller.monitor.max_attempts == 30
        assert controller.runtime.env_file == tmp_config.env_file
