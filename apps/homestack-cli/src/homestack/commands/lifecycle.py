"""Host-wide setup, start, stop and status commands."""

from __future__ import annotations

import os
import shutil

import typer

from homestack_common import HomestackConfig, Outcome

from homestack.audit import audit
from homestack.config import get_config
from homestack.console import console, header, info, warn
from homestack.errors import ConfigMissingError, PrivilegeRequiredError
from homestack.services.docker import DockerRuntime
from homestack.services.lifecycle import LifecycleController
from homestack.services.provisioner import ResourceProvisioner
from homestack.services.registry import StackRegistry
from homestack.services.status import StatusReporter, render

# (label, port variable, local scheme, external URL override, default external path)
_ACCESS = [
    ("Jellyfin", "JELLYFIN_PORT", "http", "JELLYFIN_EXTERNAL_URL", "https://jellyfin.{domain}"),
    ("Sonarr", "SONARR_PORT", "http", "SONARR_EXTERNAL_URL", "https://{domain}/sonarr"),
    ("Radarr", "RADARR_PORT", "http", "RADARR_EXTERNAL_URL", "https://{domain}/radarr"),
    ("qBittorrent", "QBITTORRENT_WEBUI_PORT", "http", "QBITTORRENT_EXTERNAL_URL", "https://{domain}/qbittorrent"),
    ("Jackett", "JACKETT_PORT", "http", "JACKETT_EXTERNAL_URL", "https://{domain}/jackett"),
    ("Mempool", "MEMPOOL_FRONTEND_PORT", "http", "MEMPOOL_EXTERNAL_URL", "https://{domain}/mempool"),
    ("Bitcoin Core RPC", "BITCOIN_RPC_PORT", "http", None, None),
    ("Electrs", "ELECTRS_PORT", "tcp", None, None),
]


def _require_root(action: str) -> None:
    if os.geteuid() != 0:
        raise PrivilegeRequiredError(f"{action} must be run as root (use sudo)")


def _require_env_file(cfg: HomestackConfig) -> None:
    if not cfg.env_file.is_file():
        raise ConfigMissingError(
            f"{cfg.env_file.name} file not found! Copy {cfg.env_example_file.name} "
            f"to {cfg.env_file.name} and edit the values"
        )


def access_urls(cfg: HomestackConfig) -> tuple[list[tuple[str, str]], list[tuple[str, str]]]:
    """Return (local, external) ``(label, url)`` pairs for the summary."""
    local = [
        (label, f"{scheme}://localhost:{cfg.ports[port_var]}")
        for label, port_var, scheme, _, _ in _ACCESS
    ]
    external = []
    if cfg.has_domain:
        for label, _, _, override, default in _ACCESS:
            if override is None:
                continue
            external.append((label, os.environ.get(override) or default.format(domain=cfg.domain)))
    return local, external


def _print_access_urls(cfg: HomestackConfig) -> None:
    header("Access URLs")
    local, external = access_urls(cfg)
    console.print("Local Access:")
    for label, url in local:
        console.print(f"  • {label}: {url}")
    if external:
        console.print("\nExternal Access (when reverse proxy is configured):")
        for label, url in external:
            console.print(f"  • {label}: {url}")


def _print_status(cfg: HomestackConfig) -> None:
    reporter = StatusReporter(StackRegistry(), DockerRuntime(env_file=cfg.env_file), cfg.networks)
    header("Service Status Summary")
    render(reporter.summarize(), console)


def setup() -> None:
    """Prepare the host: .env, networks, directories, ownership and nginx.conf."""
    _require_root("setup")
    cfg = get_config()

    with audit("setup", target=str(cfg.root)):
        if not cfg.env_file.is_file():
            if not cfg.env_example_file.is_file():
                raise ConfigMissingError(
                    f"{cfg.env_file.name} not found and {cfg.env_example_file.name} missing. "
                    f"Create {cfg.env_file.name} and rerun."
                )
            shutil.copyfile(cfg.env_example_file, cfg.env_file)
            warn(f"{cfg.env_file.name} was missing. Copied {cfg.env_example_file.name} -> {cfg.env_file.name}. "
                 "Review and update secrets/domain.")
            get_config.cache_clear()
            cfg = get_config()

        info(f"PUID={cfg.puid} PGID={cfg.pgid} DOMAIN={cfg.domain}")
        provisioner = ResourceProvisioner(DockerRuntime(), cfg)
        provisioner.provision(proxy_config=True)

        if not cfg.cert_live_dir.is_dir():
            warn(f"No certs found under {cfg.cert_live_dir}.")
            console.print("  Generate certs before starting nginx:")
            console.print(f"  homestack cert issue {cfg.domain} {cfg.admin_email} false")

        info("Setup complete.")
        console.print("Next:")
        console.print("  1) Review .env (DOMAIN, ADMIN_EMAIL, passwords).")
        console.print(f"  2) Generate TLS certs (or ensure existing under {cfg.cert_live_dir}).")
        console.print("  3) Start services: homestack start")


def start() -> None:
    """Create networks and directories, then start every unit in dependency order."""
    cfg = get_config()
    _require_env_file(cfg)

    with audit("start", target=str(cfg.root)) as event:
        header("Starting Docker Services Setup")
        ResourceProvisioner(DockerRuntime(), cfg).provision()

        results = LifecycleController.from_config(cfg).start_all()
        event.params["results"] = {r.name: r.outcome.value for r in results}

        _print_status(cfg)
        _print_access_urls(cfg)

        header("All services started!")
        info("Check the logs with: homestack stack logs <unit>")
        info("Stop all services with: homestack stop")


def stop(
    remove_networks: bool = typer.Option(
        False, "--remove-networks", help="Remove Docker networks after stopping services"
    ),
    remove_volumes: bool = typer.Option(
        False, "--remove-volumes", help="Remove Docker volumes (WARNING: This will delete all data!)"
    ),
) -> None:
    """Stop every unit in reverse dependency order."""
    cfg = get_config()

    with audit("stop", target=str(cfg.root), remove_networks=remove_networks, remove_volumes=remove_volumes) as event:
        header("Stopping Docker Services")
        results = LifecycleController.from_config(cfg).stop_all(
            remove_networks=remove_networks,
            remove_volumes=remove_volumes,
        )
        event.params["results"] = {r.name: r.outcome.value for r in results}

        reporter = StatusReporter(StackRegistry(), DockerRuntime(env_file=cfg.env_file), cfg.networks)
        report = reporter.summarize()
        header("Service Status Summary")
        failed = [r.name for r in results if r.outcome is Outcome.RUNTIME_ERROR]
        if failed:
            warn(f"Some services failed to stop: {', '.join(failed)}")
        if not report.runtime_available:
            warn("Could not confirm that services are stopped")
        elif report.running:
            warn("Some containers may still be running:")
            for row in report.running:
                console.print(f"  {row.container}: {row.status}")
        elif not failed:
            info("All services stopped successfully")
        render(report.model_copy(update={"rows": []}), console)

        if any(r.outcome is Outcome.CONFIRMATION_REJECTED for r in results):
            warn("Volumes were kept")

        header("All services stopped!")
        info("To start services again, run: homestack start")
        info("To completely clean up Docker: docker system prune -a --volumes")


def status() -> None:
    """Show which managed containers are running."""
    cfg = get_config()
    _print_status(cfg)
