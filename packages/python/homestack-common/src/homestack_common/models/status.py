"""Status summary models."""

from __future__ import annotations

from pydantic import BaseModel, Field

from homestack_common.models.unit import Category


class ContainerRow(BaseModel):
    category: Category
    unit: str
    container: str
    running: bool = False
    status: str = "Not running"


class SystemCounts(BaseModel):
    containers: int = 0
    images: int = 0
    volumes: int = 0
    networks: int = 0


class StatusReport(BaseModel):
    """Read-only snapshot of the managed containers and the Docker host."""

    rows: list[ContainerRow] = Field(default_factory=list)
    # None when the network could not be inspected
    networks: dict[str, bool | None] = Field(default_factory=dict)
    counts: SystemCounts = Field(default_factory=SystemCounts)
    runtime_error: str | None = None

    @property
    def runtime_available(self) -> bool:
        return self.runtime_error is None

    def by_category(self, category: Category) -> list[ContainerRow]:
        return [row for row in self.rows if row.category == category]

    @property
    def running(self) -> list[ContainerRow]:
        return [row for row in self.rows if row.running]
