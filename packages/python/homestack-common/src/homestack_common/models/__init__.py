"""Shared Pydantic models."""

from homestack_common.models.audit_event import AuditEvent
from homestack_common.models.results import (
    ContainerStatus,
    HealthOutcome,
    HealthResult,
    Outcome,
    ProvisionOutcome,
    ProvisionResult,
    RunState,
    UnitResult,
)
from homestack_common.models.status import ContainerRow, StatusReport, SystemCounts
from homestack_common.models.unit import Category, HealthProbe, Unit, UnitKind

__all__ = [
    "AuditEvent",
    "Category",
    "ContainerRow",
    "ContainerStatus",
    "HealthOutcome",
    "HealthProbe",
    "HealthResult",
    "Outcome",
    "ProvisionOutcome",
    "ProvisionResult",
    "RunState",
    "StatusReport",
    "SystemCounts",
    "Unit",
    "UnitKind",
    "UnitResult",
]
