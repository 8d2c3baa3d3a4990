"""Central configuration for homestack tools."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, model_validator

from homestack_common.constants import (
    CERTBOT_SUBDIRS,
    CLOUDFLARE_CREDENTIALS_NAME,
    DEFAULT_PGID,
    DEFAULT_PORTS,
    DEFAULT_PUID,
    DOCKER_NETWORKS,
    ENV_EXAMPLE_FILE,
    ENV_FILE,
    HEALTH_INTERVAL_SECONDS,
    HEALTH_MAX_ATTEMPTS,
    NGINX_COMPOSE_FILE,
    NGINX_CONFIG_NAME,
    PLACEHOLDER_DOMAIN,
    PLACEHOLDER_EMAIL,
    RENEW_LOG_NAME,
    RENEW_SCRIPT_NAME,
    SRV_BASE,
)


def default_root() -> Path:
    env = os.environ.get("HOMESTACK_ROOT")
    if env:
        return Path(env)
    # Walk up from the working directory to the first dir holding compose files
    cwd = Path.cwd().resolve()
    for candidate in (cwd, *cwd.parents):
        if any(candidate.glob("compose.*.yml")):
            return candidate
    # Fallback
    return cwd


def _env_int(name: str, default: int) -> int:
    value = os.environ.get(name)
    return int(value) if value else default


def _env_ports() -> dict[str, int]:
    return {name: _env_int(name, port) for name, port in DEFAULT_PORTS.items()}


class HomestackConfig(BaseModel):
    """Runtime configuration resolved once at startup."""

    root: Path = Field(default_factory=default_root)
    srv_base: Path = Field(default_factory=lambda: Path(os.environ.get("HOMESTACK_SRV_BASE", SRV_BASE)))
    domain: str = Field(default_factory=lambda: os.environ.get("DOMAIN") or PLACEHOLDER_DOMAIN)
    admin_email: str = Field(default_factory=lambda: os.environ.get("ADMIN_EMAIL") or PLACEHOLDER_EMAIL)
    puid: int = Field(default_factory=lambda: _env_int("PUID", DEFAULT_PUID))
    pgid: int = Field(default_factory=lambda: _env_int("PGID", DEFAULT_PGID))
    ports: dict[str, int] = Field(default_factory=_env_ports)
    networks: list[str] = Field(default_factory=lambda: list(DOCKER_NETWORKS))
    health_max_attempts: int = HEALTH_MAX_ATTEMPTS
    health_interval: float = HEALTH_INTERVAL_SECONDS
    log_dir: Optional[Path] = Field(
        default_factory=lambda: Path(os.environ["HOMESTACK_LOG_DIR"]) if os.environ.get("HOMESTACK_LOG_DIR") else None
    )
    audit_jsonl_path: Optional[Path] = None
    audit_db_path: Optional[Path] = None

    @model_validator(mode="after")
    def _resolve_log_paths(self) -> "HomestackConfig":
        if self.log_dir is None:
            self.log_dir = self.root / "data" / "logs"
        if self.audit_jsonl_path is None:
            self.audit_jsonl_path = self.log_dir / "audit.jsonl"
        if self.audit_db_path is None:
            self.audit_db_path = self.root / "data" / "audit.db"
        return self

    @property
    def has_domain(self) -> bool:
        return bool(self.domain) and self.domain != PLACEHOLDER_DOMAIN

    @property
    def env_file(self) -> Path:
        return self.root / ENV_FILE

    @property
    def env_example_file(self) -> Path:
        return self.root / ENV_EXAMPLE_FILE

    @property
    def certbot_dir(self) -> Path:
        return self.root / "data" / "certbot"

    @property
    def certbot_dirs(self) -> list[Path]:
        return [self.certbot_dir / name for name in CERTBOT_SUBDIRS]

    @property
    def cert_live_dir(self) -> Path:
        return self.certbot_dir / "conf" / "live" / self.domain

    @property
    def nginx_source(self) -> Path:
        return self.root / NGINX_CONFIG_NAME

    @property
    def nginx_target(self) -> Path:
        return self.srv_base / NGINX_CONFIG_NAME

    @property
    def nginx_compose(self) -> Path:
        return self.root / NGINX_COMPOSE_FILE

    @property
    def renew_script(self) -> Path:
        return self.root / RENEW_SCRIPT_NAME

    @property
    def renew_log(self) -> Path:
        return self.root / RENEW_LOG_NAME

    @property
    def cloudflare_credentials(self) -> Path:
        return self.root / CLOUDFLARE_CREDENTIALS_NAME

    def compose_file(self, definition: str) -> Path:
        return self.root / definition
