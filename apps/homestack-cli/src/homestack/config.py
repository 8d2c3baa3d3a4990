"""CLI configuration: singleton HomestackConfig resolved at startup."""

from __future__ import annotations

from functools import lru_cache

from dotenv import load_dotenv

from homestack_common import HomestackConfig
from homestack_common.config import default_root
from homestack_common.constants import ENV_FILE


@lru_cache(maxsize=1)
def get_config() -> HomestackConfig:
    """Return the global HomestackConfig (resolved once, cached).

    The project ``.env`` is loaded first so DOMAIN, PUID and friends reach the
    config; variables already set in the process environment win.
    """
    root = default_root()
    load_dotenv(root / ENV_FILE, override=False)
    return HomestackConfig(root=root)
