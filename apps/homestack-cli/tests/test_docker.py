"""Tests for the docker subprocess wrappers."""

from __future__ import annotations

import subprocess
from pathlib import Path
from unittest.mock import patch

import pytest

from homestack.errors import DockerError
from homestack.services import docker


def _completed(stdout: str = "", returncode: int = 0) -> subprocess.CompletedProcess[str]:
    return subprocess.CompletedProcess(args=[], returncode=returncode, stdout=stdout, stderr="")


class TestParsers:
    def test_compose_ps_ndjson(self):
        raw = (
            '{"Name":"mempool-db","State":"running","Status":"Up 2 minutes (healthy)"}\n'
            '{"Name":"electrs","State":"exited","Status":"Exited (1) 3 seconds ago"}\n'
        )
        containers = docker.parse_compose_ps(raw)
        assert [c.name for c in containers] == ["mempool-db", "electrs"]
        assert containers[0].running and containers[0].healthy
        assert not containers[1].running

    def test_compose_ps_array(self):
        raw = '[{"Name":"jellyfin","State":"running","Status":"Up 1 minute"}]'
        containers = docker.parse_compose_ps(raw)
        assert containers[0].name == "jellyfin"
        assert containers[0].running

    def test_compose_ps_empty(self):
        assert docker.parse_compose_ps("\n") == []

    def test_ps_lines(self):
        raw = "bitcoin-core\tUp 3 hours (healthy)\nnginx\tUp 3 hours\n"
        containers = docker.parse_ps_lines(raw)
        assert [(c.name, c.running, c.healthy) for c in containers] == [
            ("bitcoin-core", True, True),
            ("nginx", True, False),
        ]

    def test_unhealthy_marker(self):
        (container,) = docker.parse_ps_lines("bitcoin-core\tUp 3 hours (unhealthy)\n")
        assert not container.healthy


class TestCommands:
    def test_compose_up_with_env_file(self, tmp_path: Path):
        env = tmp_path / ".env"
        env.write_text("DOMAIN=example.com\n")
        compose = tmp_path / "compose.bitcoin.yml"
        with patch("homestack.services.docker.subprocess.run", return_value=_completed()) as run:
            docker.compose_up(compose, env)
        cmd = run.call_args.args[0]
        assert cmd == ["docker", "compose", "-f", str(compose), "--env-file", str(env), "up", "-d"]

    def test_compose_down_without_env_file(self, tmp_path: Path):
        compose = tmp_path / "compose.bitcoin.yml"
        with patch("homestack.services.docker.subprocess.run", return_value=_completed()) as run:
            docker.compose_down(compose, tmp_path / ".env")
        assert run.call_args.args[0] == ["docker", "compose", "-f", str(compose), "down"]

    def test_failure_becomes_docker_error(self):
        error = subprocess.CalledProcessError(1, ["docker", "network", "create", "x"], stderr="boom")
        with patch("homestack.services.docker.subprocess.run", side_effect=error):
            with pytest.raises(DockerError, match="boom"):
                docker.network_create("x")

    def test_missing_binary(self):
        with patch("homestack.services.docker.subprocess.run", side_effect=FileNotFoundError("docker")):
            with pytest.raises(DockerError, match="not found"):
                docker.list_containers()

    def test_network_exists(self):
        with patch("homestack.services.docker.subprocess.run", return_value=_completed(returncode=1)):
            assert not docker.network_exists("media-network")
        with patch("homestack.services.docker.subprocess.run", return_value=_completed("[{}]")):
            assert docker.network_exists("media-network")

    def test_volume_list(self):
        with patch("homestack.services.docker.subprocess.run", return_value=_completed("a\nb\n\n")):
            assert docker.volume_list() == ["a", "b"]

    def test_system_counts(self):
        outputs = {
            ("docker", "ps", "-q"): "1\n2\n",
            ("docker", "images", "-q"): "i1\n",
            ("docker", "volume", "ls", "-q"): "",
            ("docker", "network", "ls", "-q"): "n1\nn2\nn3\n",
        }

        def fake_run(cmd, **kwargs):
            return _completed(outputs[tuple(cmd)])

        with patch("homestack.services.docker.subprocess.run", side_effect=fake_run):
            counts = docker.system_counts()
        assert (counts.containers, counts.images, counts.volumes, counts.networks) == (2, 1, 0, 3)
