"""Docker and Docker Compose subprocess wrappers."""

from __future__ import annotations

import json
import logging
import subprocess
from pathlib import Path
from typing import Optional

from homestack_common import ContainerStatus, SystemCounts

from homestack.errors import DockerError

log = logging.getLogger(__name__)


def _run(cmd: list[str], *, check: bool = True, capture: bool = True) -> subprocess.CompletedProcess[str]:
    log.debug("running %s", " ".join(cmd))
    try:
        return subprocess.run(
            cmd,
            check=check,
            capture_output=capture,
            text=True,
        )
    except subprocess.CalledProcessError as exc:
        raise DockerError(
            f"Command failed: {' '.join(cmd)}\nstderr: {exc.stderr}"
        ) from exc
    except FileNotFoundError as exc:
        raise DockerError(f"Command not found: {cmd[0]}") from exc


def _compose(compose_file: Path, env_file: Optional[Path] = None) -> list[str]:
    cmd = ["docker", "compose", "-f", str(compose_file)]
    if env_file is not None and env_file.is_file():
        cmd.extend(["--env-file", str(env_file)])
    return cmd


def compose_up(compose_file: Path, env_file: Optional[Path] = None) -> None:
    _run([*_compose(compose_file, env_file), "up", "-d"])


def compose_down(compose_file: Path, env_file: Optional[Path] = None) -> None:
    _run([*_compose(compose_file, env_file), "down"])


def compose_logs(compose_file: Path, tail: int = 200, follow: bool = True) -> None:
    cmd = ["docker", "compose", "-f", str(compose_file), "logs", f"--tail={tail}"]
    if follow:
        cmd.append("-f")
    subprocess.run(cmd, check=False)


def compose_ps(compose_file: Path, env_file: Optional[Path] = None) -> list[ContainerStatus]:
    """Return every container (running or not) belonging to a compose file."""
    result = _run([*_compose(compose_file, env_file), "ps", "--all", "--format", "json"])
    return parse_compose_ps(result.stdout)


def compose_exec(compose_file: Path, service: str, *cmd: str) -> subprocess.CompletedProcess[str]:
    return _run(
        ["docker", "compose", "-f", str(compose_file), "exec", "-T", service, *cmd]
    )


def parse_compose_ps(raw: str) -> list[ContainerStatus]:
    """Parse ``docker compose ps --format json`` output.

    Compose v2.21+ prints one JSON object per line; older releases print a
    single JSON array.
    """
    raw = raw.strip()
    if not raw:
        return []
    if raw.startswith("["):
        entries = json.loads(raw)
    else:
        entries = [json.loads(line) for line in raw.splitlines() if line.strip()]
    return [
        ContainerStatus(
            name=entry.get("Name", ""),
            state=entry.get("State", ""),
            status=entry.get("Status", ""),
        )
        for entry in entries
    ]


def list_containers() -> list[ContainerStatus]:
    """List running containers with their status text (``Up 5 minutes (healthy)``)."""
    result = _run(["docker", "ps", "--format", "{{.Names}}\t{{.Status}}"])
    return parse_ps_lines(result.stdout)


def parse_ps_lines(raw: str) -> list[ContainerStatus]:
    containers: list[ContainerStatus] = []
    for line in raw.strip().splitlines():
        parts = line.split("\t", 1)
        if not parts[0]:
            continue
        status = parts[1].strip() if len(parts) == 2 else ""
        containers.append(ContainerStatus(name=parts[0].strip(), status=status))
    return containers


def network_exists(name: str) -> bool:
    result = _run(["docker", "network", "inspect", name], check=False)
    return result.returncode == 0


def network_create(name: str) -> None:
    _run(["docker", "network", "create", name])


def network_remove(name: str) -> None:
    _run(["docker", "network", "rm", name])


def volume_list() -> list[str]:
    result = _run(["docker", "volume", "ls", "-q"])
    return [line.strip() for line in result.stdout.splitlines() if line.strip()]


def volume_remove(name: str) -> None:
    _run(["docker", "volume", "rm", name])


def container_prune() -> None:
    _run(["docker", "container", "prune", "-f"])


def _count(cmd: list[str]) -> int:
    result = _run(cmd, check=False)
    if result.returncode != 0:
        return 0
    return len([line for line in result.stdout.splitlines() if line.strip()])


def system_counts() -> SystemCounts:
    return SystemCounts(
        containers=_count(["docker", "ps", "-q"]),
        images=_count(["docker", "images", "-q"]),
        volumes=_count(["docker", "volume", "ls", "-q"]),
        networks=_count(["docker", "network", "ls", "-q"]),
    )


class DockerRuntime:
    """The compose runtime the orchestration services talk to."""

    def __init__(self, env_file: Optional[Path] = None) -> None:
        self.env_file = env_file

    def up(self, compose_file: Path) -> None:
        compose_up(compose_file, self.env_file)

    def down(self, compose_file: Path) -> None:
        compose_down(compose_file, self.env_file)

    def ps(self, compose_file: Path) -> list[ContainerStatus]:
        return compose_ps(compose_file, self.env_file)

    def containers(self) -> list[ContainerStatus]:
        return list_containers()

    def network_exists(self, name: str) -> bool:
        return network_exists(name)

    def network_create(self, name: str) -> None:
        network_create(name)

    def network_remove(self, name: str) -> None:
        network_remove(name)

    def volumes(self) -> list[str]:
        return volume_list()

    def volume_remove(self, name: str) -> None:
        volume_remove(name)

    def prune_containers(self) -> None:
        container_prune()

    def counts(self) -> SystemCounts:
        return system_counts()
