"""Shared models and constants for the homestack CLI."""

from homestack_common.constants import (
    CRYPTO_NETWORK,
    DOCKER_NETWORKS,
    HEALTH_INTERVAL_SECONDS,
    HEALTH_MAX_ATTEMPTS,
    MEDIA_NETWORK,
    PLACEHOLDER_DOMAIN,
    SRV_BASE,
    VOLUME_CONFIRMATION_PHRASE,
)
from homestack_common.config import HomestackConfig
from homestack_common.models import (
    AuditEvent,
    Category,
    ContainerRow,
    ContainerStatus,
    HealthOutcome,
    HealthProbe,
    HealthResult,
    Outcome,
    ProvisionOutcome,
    ProvisionResult,
    RunState,
    StatusReport,
    SystemCounts,
    Unit,
    UnitKind,
    UnitResult,
)

__all__ = [
    "AuditEvent",
    "CRYPTO_NETWORK",
    "Category",
    "ContainerRow",
    "ContainerStatus",
    "DOCKER_NETWORKS",
    "HEALTH_INTERVAL_SECONDS",
    "HEALTH_MAX_ATTEMPTS",
    "HealthOutcome",
    "HealthProbe",
    "HealthResult",
    "HomestackConfig",
    "MEDIA_NETWORK",
    "Outcome",
    "PLACEHOLDER_DOMAIN",
    "ProvisionOutcome",
    "ProvisionResult",
    "RunState",
    "SRV_BASE",
    "StatusReport",
    "SystemCounts",
    "Unit",
    "UnitKind",
    "UnitResult",
    "VOLUME_CONFIRMATION_PHRASE",
]
