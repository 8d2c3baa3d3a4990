"""Shared constants for the homestack tools."""

from pathlib import Path

# Docker networking
CRYPTO_NETWORK = "crypto-network"
MEDIA_NETWORK = "media-network"
DOCKER_NETWORKS = (CRYPTO_NETWORK, MEDIA_NETWORK)

# Host paths (overridable via HomestackConfig / env vars)
SRV_BASE = Path("/srv")

DATA_DIRECTORIES = (
    "bitcoin/data",
    "electrs/data",
    "mempool/backend",
    "mempool/mysql",
    "jellyfin/config",
    "jellyfin/cache",
    "sonarr/config",
    "radarr/config",
    "qbittorrent/config",
    "jackett/config",
    "jackett_blackhole",
    "media/movies",
    "media/tvshows",
    "media/downloads",
)

# Chowned to PUID:PGID for the linuxserver.io images
MEDIA_OWNED_DIRECTORIES = (
    "jellyfin",
    "sonarr",
    "radarr",
    "qbittorrent",
    "jackett",
    "jackett_blackhole",
    "media",
)

CERTBOT_SUBDIRS = ("conf", "www", "work", "logs")

# Environment defaults
ENV_FILE = ".env"
ENV_EXAMPLE_FILE = ".env.example"
PLACEHOLDER_DOMAIN = "yourdomain.com"
PLACEHOLDER_EMAIL = "you@example.com"
DEFAULT_PUID = 1000
DEFAULT_PGID = 1000

DEFAULT_PORTS = {
    "JELLYFIN_PORT": 8096,
    "SONARR_PORT": 8989,
    "RADARR_PORT": 7878,
    "QBITTORRENT_WEBUI_PORT": 8080,
    "JACKETT_PORT": 9117,
    "MEMPOOL_FRONTEND_PORT": 8090,
    "BITCOIN_RPC_PORT": 8332,
    "ELECTRS_PORT": 50001,
}

# Health polling
HEALTH_MAX_ATTEMPTS = 30
HEALTH_INTERVAL_SECONDS = 2.0
HEALTHY_MARKER = "(healthy)"

# Destructive operations
VOLUME_CONFIRMATION_PHRASE = "DELETE ALL DATA"

# Reverse proxy
NGINX_CONFIG_NAME = "nginx.conf"
NGINX_COMPOSE_FILE = "compose.nginx.yml"
CERT_PLACEHOLDER_PATH = "/etc/letsencrypt/live/_/"

# Certbot
RENEW_SCRIPT_NAME = "renew-ssl.sh"
RENEW_LOG_NAME = "ssl-renewal.log"
RENEW_CRON_SCHEDULE = "0 0,12 * * *"
CLOUDFLARE_CREDENTIALS_NAME = "cloudflare.ini"
