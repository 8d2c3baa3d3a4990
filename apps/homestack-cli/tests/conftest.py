"""Shared test fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest

from homestack_common import ContainerStatus, HomestackConfig, SystemCounts

from homestack.config import get_config
from homestack.errors import DockerError


def unit_name(compose_file: Path) -> str:
    # compose.<name>.yml
    return compose_file.name.split(".")[1]


class FakeRuntime:
    """In-memory stand-in for DockerRuntime that records every call."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, str]] = []
        self.running: dict[str, list[ContainerStatus]] = {}
        self.ps_output: list[ContainerStatus] = []
        self.networks: set[str] = set()
        self.volume_names: list[str] = []
        self.fail_up: set[str] = set()
        self.fail_down: set[str] = set()
        self.in_use_networks: set[str] = set()
        self.locked_volumes: set[str] = set()
        self.pruned = False

    def up(self, compose_file: Path) -> None:
        name = unit_name(compose_file)
        self.calls.append(("up", name))
        if name in self.fail_up:
            raise DockerError(f"up failed for {name}")
        self.running[name] = [ContainerStatus(name=name, state="running", status="Up 1 second")]

    def down(self, compose_file: Path) -> None:
        name = unit_name(compose_file)
        self.calls.append(("down", name))
        if name in self.fail_down:
            raise DockerError(f"down failed for {name}")
        self.running.pop(name, None)

    def ps(self, compose_file: Path) -> list[ContainerStatus]:
        return list(self.running.get(unit_name(compose_file), []))

    def containers(self) -> list[ContainerStatus]:
        return list(self.ps_output)

    def network_exists(self, name: str) -> bool:
        return name in self.networks

    def network_create(self, name: str) -> None:
        self.calls.append(("network_create", name))
        self.networks.add(name)

    def network_remove(self, name: str) -> None:
        self.calls.append(("network_remove", name))
        if name in self.in_use_networks:
            raise DockerError(f"network {name} has active endpoints")
        self.networks.discard(name)

    def volumes(self) -> list[str]:
        return list(self.volume_names)

    def volume_remove(self, name: str) -> None:
        self.calls.append(("volume_remove", name))
        if name in self.locked_volumes:
            raise DockerError(f"volume {name} is in use")
        self.volume_names.remove(name)

    def prune_containers(self) -> None:
        self.calls.append(("prune", ""))
        self.pruned = True

    def counts(self) -> SystemCounts:
        return SystemCounts(
            containers=sum(len(c) for c in self.running.values()),
            volumes=len(self.volume_names),
            networks=len(self.networks),
        )

    def calls_of(self, kind: str) -> list[str]:
        return [name for k, name in self.calls if k == kind]


class DeadRuntime(FakeRuntime):
    """Every query and command fails, as when the docker binary is missing."""

    def __init__(self, env_file: Path | None = None) -> None:
        super().__init__()
        self.env_file = env_file

    def _fail(self, *args, **kwargs):
        raise DockerError("Command not found: docker")

    up = down = ps = containers = _fail
    network_exists = network_create = network_remove = _fail
    volumes = volume_remove = prune_containers = counts = _fail


class StaticConfirmation:
    """Replays a fixed typed answer."""

    def __init__(self, typed: str) -> None:
        self.typed = typed
        self.prompts: list[str] = []

    def confirm(self, phrase: str) -> bool:
        self.prompts.append(phrase)
        return self.typed == phrase


@pytest.fixture
def runtime() -> FakeRuntime:
    return FakeRuntime()


@pytest.fixture
def tmp_config(tmp_path: Path) -> HomestackConfig:
    """Return a HomestackConfig pointing at temp directories."""
    (tmp_path / "project").mkdir()
    return HomestackConfig(
        root=tmp_path / "project",
        srv_base=tmp_path / "srv",
        domain="example.com",
        admin_email="admin@example.com",
        puid=1000,
        pgid=1000,
        log_dir=tmp_path / "log",
        audit_db_path=tmp_path / "lib" / "audit.db",
    )


@pytest.fixture
def write_definitions():
    """Create empty compose.<name>.yml files under a root."""

    def _write(root: Path, names) -> None:
        for name in names:
            (root / f"compose.{name}.yml").write_text("services: {}\n")

    return _write


@pytest.fixture
def project_env(tmp_path: Path, monkeypatch):
    """Point get_config() at a temp project root for CLI tests."""
    root = tmp_path / "cli-project"
    root.mkdir()
    monkeypatch.setenv("HOMESTACK_ROOT", str(root))
    monkeypatch.setenv("HOMESTACK_SRV_BASE", str(tmp_path / "cli-srv"))
    monkeypatch.delenv("DOMAIN", raising=False)
    get_config.cache_clear()
    yield root
    get_config.cache_clear()
