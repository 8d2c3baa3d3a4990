"""Deployable unit model."""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

from pydantic import BaseModel, Field

from homestack_common.constants import HEALTHY_MARKER

if TYPE_CHECKING:
    from homestack_common.models.results import ContainerStatus


class UnitKind(str, Enum):
    GROUPED_STACK = "grouped_stack"
    STANDALONE_SERVICE = "standalone_service"


class Category(str, Enum):
    CRYPTO = "crypto"
    MEDIA = "media"
    PROXY = "proxy"


class HealthProbe(BaseModel):
    """Readiness check: a container whose name contains ``container`` and
    whose status contains ``marker``."""

    container: str
    marker: str = HEALTHY_MARKER

    def matches(self, status: ContainerStatus) -> bool:
        return self.container in status.name and self.marker in status.status


class Unit(BaseModel):
    """One compose definition managed as a whole."""

    name: str
    kind: UnitKind = UnitKind.STANDALONE_SERVICE
    category: Category
    definition: str = ""
    depends_on: list[str] = Field(default_factory=list)
    health_probe: HealthProbe | None = None
    containers: list[str] = Field(default_factory=list)

    def model_post_init(self, __context: object) -> None:
        if not self.definition:
            self.definition = f"compose.{self.name}.yml"
        if not self.containers:
            self.containers = [self.name]
