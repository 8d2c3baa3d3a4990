"""Result and state models returned by the orchestration services."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field

from homestack_common.constants import HEALTHY_MARKER


class ContainerStatus(BaseModel):
    """A container as reported by ``docker ps`` / ``docker compose ps``."""

    name: str
    state: str = ""
    status: str = ""

    @property
    def running(self) -> bool:
        return self.state == "running" or self.status.startswith("Up")

    @property
    def healthy(self) -> bool:
        return HEALTHY_MARKER in self.status


class RunState(BaseModel):
    """Live state of one compose definition. Never cached."""

    containers: list[ContainerStatus] = Field(default_factory=list)

    @property
    def running(self) -> bool:
        return any(c.running for c in self.containers)

    @property
    def healthy(self) -> bool:
        return any(c.healthy for c in self.containers)


class ProvisionOutcome(str, Enum):
    CREATED = "created"
    UPDATED = "updated"
    ALREADY_EXISTS = "already_exists"
    FAILED = "failed"


class ProvisionResult(BaseModel):
    resource: str
    outcome: ProvisionOutcome
    detail: str = ""


class Outcome(str, Enum):
    STARTED = "started"
    STARTED_UNHEALTHY = "started_unhealthy"
    DEFINITION_MISSING = "definition_missing"
    RUNTIME_ERROR = "runtime_error"
    STOPPED = "stopped"
    ALREADY_STOPPED = "already_stopped"
    NETWORK_REMOVED = "network_removed"
    NETWORK_ABSENT = "network_absent"
    NETWORK_IN_USE = "network_in_use"
    VOLUME_REMOVED = "volume_removed"
    CONFIRMATION_REJECTED = "confirmation_rejected"


class UnitResult(BaseModel):
    """Outcome of one lifecycle step for a unit, network or volume."""

    name: str
    outcome: Outcome
    detail: str = ""


class HealthOutcome(str, Enum):
    READY = "ready"
    TIMED_OUT = "timed_out"


class HealthResult(BaseModel):
    outcome: HealthOutcome
    attempts: int
    last_status: str = ""

    @property
    def ready(self) -> bool:
        return self.outcome is HealthOutcome.READY
