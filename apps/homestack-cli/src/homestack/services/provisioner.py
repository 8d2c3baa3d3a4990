"""Idempotent provisioning of networks, directories, ownership and proxy config.

Every ``ensure`` call can be repeated with the same spec: the second call
reports ``already_exists`` and changes nothing.
"""

from __future__ import annotations

import logging
import os
import shutil
from datetime import datetime
from pathlib import Path
from typing import Iterator, Union

from pydantic import BaseModel

from homestack_common import HomestackConfig, ProvisionOutcome, ProvisionResult
from homestack_common.constants import DATA_DIRECTORIES, MEDIA_OWNED_DIRECTORIES

from homestack.console import info, warn
from homestack.errors import ConfigMissingError, DockerError
from homestack.services import nginx

log = logging.getLogger(__name__)


class NetworkSpec(BaseModel):
    name: str


class DirectorySpec(BaseModel):
    path: Path


class OwnershipSpec(BaseModel):
    path: Path
    uid: int
    gid: int


class ProxyConfigSpec(BaseModel):
    source: Path
    target: Path
    domain: str


ResourceSpec = Union[NetworkSpec, DirectorySpec, OwnershipSpec, ProxyConfigSpec]


def backup_path(target: Path, now: datetime | None = None) -> Path:
    stamp = (now or datetime.now()).strftime("%Y%m%d-%H%M%S")
    return target.with_name(f"{target.name}.bak.{stamp}")


def _walk(root: Path) -> Iterator[Path]:
    yield root
    for dirpath, dirnames, filenames in os.walk(root):
        for name in dirnames + filenames:
            yield Path(dirpath) / name


class ResourceProvisioner:
    def __init__(self, runtime, cfg: HomestackConfig) -> None:
        self.runtime = runtime
        self.cfg = cfg

    def ensure(self, spec: ResourceSpec) -> ProvisionResult:
        if isinstance(spec, NetworkSpec):
            return self.ensure_network(spec.name)
        if isinstance(spec, DirectorySpec):
            return self.ensure_directory(spec.path)
        if isinstance(spec, OwnershipSpec):
            return self.ensure_ownership(spec.path, spec.uid, spec.gid)
        if isinstance(spec, ProxyConfigSpec):
            return self.ensure_proxy_config(spec.source, spec.target, spec.domain)
        raise TypeError(f"Unsupported resource spec: {spec!r}")

    def ensure_network(self, name: str) -> ProvisionResult:
        if self.runtime.network_exists(name):
            info(f"{name} already exists")
            return ProvisionResult(resource=name, outcome=ProvisionOutcome.ALREADY_EXISTS)
        info(f"Creating {name}...")
        try:
            self.runtime.network_create(name)
        except DockerError as exc:
            # Another invocation may have created it between inspect and create
            if self.runtime.network_exists(name):
                return ProvisionResult(resource=name, outcome=ProvisionOutcome.ALREADY_EXISTS)
            warn(f"Could not create {name}: {exc}")
            return ProvisionResult(resource=name, outcome=ProvisionOutcome.FAILED, detail=str(exc))
        return ProvisionResult(resource=name, outcome=ProvisionOutcome.CREATED)

    def ensure_directory(self, path: Path) -> ProvisionResult:
        if path.is_dir():
            return ProvisionResult(resource=str(path), outcome=ProvisionOutcome.ALREADY_EXISTS)
        try:
            path.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            warn(f"Could not create {path}: {exc.strerror or exc}")
            return ProvisionResult(resource=str(path), outcome=ProvisionOutcome.FAILED, detail=str(exc))
        return ProvisionResult(resource=str(path), outcome=ProvisionOutcome.CREATED)

    def ensure_ownership(self, path: Path, uid: int, gid: int) -> ProvisionResult:
        resource = f"{path} ({uid}:{gid})"
        if not path.exists():
            return ProvisionResult(resource=resource, outcome=ProvisionOutcome.FAILED, detail="path does not exist")
        changed = False
        try:
            for entry in _walk(path):
                st = entry.lstat()
                if st.st_uid != uid or st.st_gid != gid:
                    os.chown(entry, uid, gid, follow_symlinks=False)
                    changed = True
        except PermissionError as exc:
            warn(f"Could not set ownership on {path}: {exc.strerror}")
            return ProvisionResult(resource=resource, outcome=ProvisionOutcome.FAILED, detail=str(exc))
        outcome = ProvisionOutcome.UPDATED if changed else ProvisionOutcome.ALREADY_EXISTS
        return ProvisionResult(resource=resource, outcome=outcome)

    def ensure_proxy_config(self, source: Path, target: Path, domain: str) -> ProvisionResult:
        if not source.is_file():
            raise ConfigMissingError(f"nginx.conf not found at {source}")
        patched = nginx.render_proxy_config(source.read_text(), domain)
        if nginx.CERT_PLACEHOLDER_PATH in patched:
            warn(f"DOMAIN is the placeholder. Update {target} cert paths after setting DOMAIN.")

        if target.is_file():
            if target.read_text() == patched:
                return ProvisionResult(resource=str(target), outcome=ProvisionOutcome.ALREADY_EXISTS)
            backup = backup_path(target)
            shutil.copy2(target, backup)
            info(f"Backed up existing {target} to {backup}")
            outcome = ProvisionOutcome.UPDATED
        else:
            target.parent.mkdir(parents=True, exist_ok=True)
            outcome = ProvisionOutcome.CREATED

        target.write_text(patched)
        target.chmod(0o644)
        info(f"Wrote patched proxy config to {target}")
        return ProvisionResult(resource=str(target), outcome=outcome)

    def specs(self, *, proxy_config: bool = False) -> list[ResourceSpec]:
        """The full, ordered resource set for this host."""
        cfg = self.cfg
        specs: list[ResourceSpec] = [NetworkSpec(name=name) for name in cfg.networks]
        specs.extend(DirectorySpec(path=cfg.srv_base / rel) for rel in DATA_DIRECTORIES)
        specs.extend(DirectorySpec(path=path) for path in cfg.certbot_dirs)
        specs.extend(
            OwnershipSpec(path=cfg.srv_base / rel, uid=cfg.puid, gid=cfg.pgid)
            for rel in MEDIA_OWNED_DIRECTORIES
        )
        if proxy_config:
            specs.append(ProxyConfigSpec(source=cfg.nginx_source, target=cfg.nginx_target, domain=cfg.domain))
        return specs

    def provision(self, *, proxy_config: bool = False) -> list[ProvisionResult]:
        results = []
        previous: type | None = None
        for spec in self.specs(proxy_config=proxy_config):
            if type(spec) is not previous:
                previous = type(spec)
                info(_STEP_MESSAGES[previous])
            results.append(self.ensure(spec))
        return results


_STEP_MESSAGES = {
    NetworkSpec: "Creating Docker networks...",
    DirectorySpec: "Creating required directories...",
    OwnershipSpec: "Setting directory permissions...",
    ProxyConfigSpec: "Patching reverse proxy config...",
}
