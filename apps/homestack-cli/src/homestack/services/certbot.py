"""Let's Encrypt certificate issuance, renewal and cron scheduling."""

from __future__ import annotations

import shutil
import subprocess
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, select_autoescape

from homestack_common import HomestackConfig
from homestack_common.constants import RENEW_CRON_SCHEDULE, RENEW_SCRIPT_NAME

from homestack.errors import CertbotError
from homestack.services import docker

_TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates"


class Strategy(str, Enum):
    MANUAL_DNS = "manual"
    CLOUDFLARE_DNS = "cloudflare"
    HTTP = "http"

    @property
    def wildcard(self) -> bool:
        return self is not Strategy.HTTP

    @property
    def description(self) -> str:
        return _DESCRIPTIONS[self]


_DESCRIPTIONS = {
    Strategy.MANUAL_DNS: "Manual DNS challenge (requires manual DNS record creation)",
    Strategy.CLOUDFLARE_DNS: "Cloudflare DNS plugin (automated, requires Cloudflare API credentials)",
    Strategy.HTTP: "HTTP challenge (no wildcard support)",
}

# Menu order for the interactive prompt
MENU = (Strategy.MANUAL_DNS, Strategy.CLOUDFLARE_DNS, Strategy.HTTP)


def _get_env() -> Environment:
    return Environment(
        loader=FileSystemLoader(str(_TEMPLATE_DIR)),
        autoescape=select_autoescape([]),
        keep_trailing_newline=True,
        trim_blocks=True,
        lstrip_blocks=True,
    )


def _dir_args(cfg: HomestackConfig) -> list[str]:
    return [
        "--config-dir", str(cfg.certbot_dir / "conf"),
        "--work-dir", str(cfg.certbot_dir / "work"),
        "--logs-dir", str(cfg.certbot_dir / "logs"),
    ]


def build_issue_command(
    cfg: HomestackConfig,
    strategy: Strategy,
    domain: str,
    email: str,
    *,
    staging: bool = False,
) -> list[str]:
    """Assemble the ``certbot certonly`` invocation for a strategy."""
    cmd = ["certbot", "certonly"]
    if strategy is Strategy.MANUAL_DNS:
        cmd.extend(["--manual", "--preferred-challenges", "dns"])
    elif strategy is Strategy.CLOUDFLARE_DNS:
        cmd.extend([
            "--dns-cloudflare",
            "--dns-cloudflare-credentials", str(cfg.cloudflare_credentials),
        ])
    else:
        cmd.extend(["--webroot", "--webroot-path", str(cfg.certbot_dir / "www")])
    cmd.extend([
        "--email", email,
        "--agree-tos", "--no-eff-email",
        *_dir_args(cfg),
        "--force-renewal",
    ])
    if staging:
        cmd.append("--staging")
    cmd.extend(["-d", domain])
    if strategy.wildcard:
        cmd.extend(["-d", f"*.{domain}"])
    return cmd


def remove_existing(cfg: HomestackConfig, domain: str) -> bool:
    """Delete live/archive/renewal material for ``domain``. True if any existed."""
    conf = cfg.certbot_dir / "conf"
    live = conf / "live" / domain
    found = live.is_dir()
    shutil.rmtree(live, ignore_errors=True)
    shutil.rmtree(conf / "archive" / domain, ignore_errors=True)
    renewal = conf / "renewal" / f"{domain}.conf"
    if renewal.is_file():
        renewal.unlink()
    if conf.is_dir():
        for leftover in conf.rglob(f"*{domain}*"):
            if leftover.is_file():
                leftover.unlink()
    return found


def ensure_installed() -> bool:
    """Install certbot with apt-get when missing. True if an install ran."""
    if shutil.which("certbot"):
        return False
    subprocess.run(["apt-get", "update"], check=True)
    subprocess.run(
        ["apt-get", "install", "-y", "certbot", "python3-certbot-dns-cloudflare"],
        check=True,
    )
    return True


def write_cloudflare_template(path: Path) -> None:
    template = _get_env().get_template("cloudflare.ini.j2")
    path.write_text(template.render())
    path.chmod(0o600)


def issue_cert(
    cfg: HomestackConfig,
    strategy: Strategy,
    domain: str,
    email: str,
    *,
    staging: bool = False,
) -> Path:
    """Run certbot interactively and return the live certificate directory."""
    if strategy is Strategy.CLOUDFLARE_DNS and not cfg.cloudflare_credentials.is_file():
        write_cloudflare_template(cfg.cloudflare_credentials)
        raise CertbotError(
            f"Please edit {cfg.cloudflare_credentials} with your Cloudflare credentials and run again"
        )

    cmd = build_issue_command(cfg, strategy, domain, email, staging=staging)
    # Not captured: the manual DNS challenge needs the operator's terminal
    result = subprocess.run(cmd, check=False)
    live = cfg.certbot_dir / "conf" / "live" / domain
    if result.returncode != 0 or not live.is_dir():
        raise CertbotError(f"Certificate generation failed for {domain}")
    return live


def render_renew_script(cfg: HomestackConfig) -> str:
    template = _get_env().get_template("renew-ssl.sh.j2")
    return template.render(
        dir_args=" ".join(_dir_args(cfg)),
        nginx_compose=cfg.nginx_compose,
    )


def write_renew_script(cfg: HomestackConfig) -> Path:
    path = cfg.renew_script
    path.write_text(render_renew_script(cfg))
    path.chmod(0o755)
    return path


def cron_line(cfg: HomestackConfig) -> str:
    return f"{RENEW_CRON_SCHEDULE} cd {cfg.root} && ./{RENEW_SCRIPT_NAME} >> {cfg.renew_log} 2>&1"


def merge_crontab(existing: str, line: str) -> str:
    """Replace any earlier renewal entry with ``line``; keep everything else."""
    kept = [l for l in existing.splitlines() if RENEW_SCRIPT_NAME not in l]
    kept.append(line)
    return "\n".join(kept) + "\n"


def install_cron(cfg: HomestackConfig) -> bool:
    """Install the twice-daily renewal entry. True if one was already present."""
    result = subprocess.run(["crontab", "-l"], capture_output=True, text=True, check=False)
    existing = result.stdout if result.returncode == 0 else ""
    subprocess.run(
        ["crontab", "-"],
        input=merge_crontab(existing, cron_line(cfg)),
        text=True,
        check=True,
    )
    return RENEW_SCRIPT_NAME in existing


def renew(cfg: HomestackConfig) -> str:
    """Run certbot renew for all certificates."""
    result = subprocess.run(
        ["certbot", "renew", *_dir_args(cfg), "--quiet"],
        capture_output=True,
        text=True,
        check=False,
    )
    if result.returncode != 0:
        raise CertbotError(f"certbot renew failed:\n{result.stderr}")
    return result.stdout + result.stderr


def show_certificates(cfg: HomestackConfig) -> None:
    subprocess.run(
        ["certbot", "certificates", "--config-dir", str(cfg.certbot_dir / "conf")],
        check=False,
    )


def list_certs(cfg: HomestackConfig) -> list[dict[str, str]]:
    """Read expiry dates of every live certificate with openssl."""
    live_root = cfg.certbot_dir / "conf" / "live"
    lines = []
    if live_root.is_dir():
        for cert_dir in sorted(p for p in live_root.iterdir() if p.is_dir()):
            cert = cert_dir / "cert.pem"
            if not cert.is_file():
                continue
            result = docker._run(
                ["openssl", "x509", "-noout", "-enddate", "-in", str(cert)],
                check=False,
            )
            expiry = result.stdout.strip().partition("=")[2]
            lines.append(f"{cert_dir.name}|{expiry}")
    return parse_cert_output("\n".join(lines))


def parse_cert_output(raw: str) -> list[dict[str, str]]:
    """Parse ``domain|expiry`` lines into structured dicts."""
    certs: list[dict[str, str]] = []
    for line in raw.strip().splitlines():
        if "|" not in line:
            continue
        domain, expiry_raw = line.split("|", 1)
        domain = domain.strip()
        expiry_raw = expiry_raw.strip()
        status = "valid"
        try:
            expiry_dt = datetime.strptime(expiry_raw, "%b %d %H:%M:%S %Y %Z")
            expiry_dt = expiry_dt.replace(tzinfo=timezone.utc)
            if expiry_dt < datetime.now(timezone.utc):
                status = "expired"
            expiry = expiry_dt.isoformat()
        except (ValueError, TypeError):
            expiry = expiry_raw
            status = "unknown"
        certs.append({"domain": domain, "expiry": expiry, "status": status})
    return certs
