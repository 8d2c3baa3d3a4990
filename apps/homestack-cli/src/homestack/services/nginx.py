"""NGINX config patching, validation and reload."""

from __future__ import annotations

import re
from pathlib import Path

from homestack_common.constants import CERT_PLACEHOLDER_PATH, PLACEHOLDER_DOMAIN

from homestack.errors import NginxConfigError
from homestack.services import docker

WEBSOCKET_MAP_MARKER = "map $http_upgrade $connection_upgrade"
STREAMING_HEADERS_MARKER = "proxy_set_header Upgrade $http_upgrade;"

WEBSOCKET_MAP = """\
    map $http_upgrade $connection_upgrade {
        default upgrade;
        ""      close;
    }
"""

STREAMING_HEADERS = """\
            proxy_http_version 1.1;
            proxy_set_header Upgrade $http_upgrade;
            proxy_set_header Connection $connection_upgrade;
            proxy_read_timeout 36000s;
            proxy_send_timeout 36000s;
            proxy_buffering off;
"""

_HTTP_BLOCK_RE = re.compile(r"^.*\bhttp\s*\{.*$", re.MULTILINE)
_JELLYFIN_LOCATION_RE = re.compile(r"^\s*location\s+/jellyfin/\s*\{")
_CLOSING_BRACE_RE = re.compile(r"^\s*\}")


def patch_cert_paths(text: str, domain: str) -> str:
    """Point ``/etc/letsencrypt/live/_/`` at the real domain."""
    if not domain or domain == PLACEHOLDER_DOMAIN:
        return text
    return text.replace(CERT_PLACEHOLDER_PATH, f"/etc/letsencrypt/live/{domain}/")


def ensure_websocket_map(text: str) -> str:
    """Insert the Upgrade/Connection map right after the first ``http {``."""
    if WEBSOCKET_MAP_MARKER in text:
        return text
    match = _HTTP_BLOCK_RE.search(text)
    if match is None:
        return text
    end = match.end()
    prefix = text[:end] + "\n"
    rest = text[end + 1:] if text[end:end + 1] == "\n" else text[end:]
    return prefix + WEBSOCKET_MAP + rest


def ensure_streaming_headers(text: str) -> str:
    """Add WebSocket and streaming headers to the ``/jellyfin/`` location."""
    if STREAMING_HEADERS_MARKER in text:
        return text
    lines = text.splitlines(keepends=True)
    out: list[str] = []
    in_block = False
    for line in lines:
        if not in_block and _JELLYFIN_LOCATION_RE.match(line):
            in_block = True
        elif in_block and _CLOSING_BRACE_RE.match(line):
            out.append(STREAMING_HEADERS)
            in_block = False
        out.append(line)
    return "".join(out)


def render_proxy_config(source: str, domain: str) -> str:
    """Apply every patch to the source nginx.conf. Applying twice is a no-op."""
    text = patch_cert_paths(source, domain)
    text = ensure_websocket_map(text)
    return ensure_streaming_headers(text)


def validate_config(compose_file: Path) -> None:
    """Run nginx -t inside the container. Raises NginxConfigError on failure."""
    result = docker._run(
        ["docker", "compose", "-f", str(compose_file), "exec", "-T", "nginx", "nginx", "-t"],
        check=False,
    )
    if result.returncode != 0:
        raise NginxConfigError(f"NGINX config test failed:\n{result.stderr}")


def reload(compose_file: Path) -> None:
    """Validate config, then reload NGINX."""
    validate_config(compose_file)
    docker.compose_exec(compose_file, "nginx", "nginx", "-s", "reload")
