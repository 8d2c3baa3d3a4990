"""Static unit registry and its dependency ordering."""

from __future__ import annotations

from collections import deque
from typing import Iterable, Iterator

from homestack_common import Category, HealthProbe, Unit, UnitKind

from homestack.errors import RegistryError, UnitNotFoundError

_MEDIA = ["qbittorrent", "jackett", "sonarr", "radarr", "jellyfin"]

DEFAULT_UNITS: tuple[Unit, ...] = (
    Unit(
        name="bitcoin",
        kind=UnitKind.GROUPED_STACK,
        category=Category.CRYPTO,
        health_probe=HealthProbe(container="bitcoin-core"),
        containers=["bitcoin-core"],
    ),
    Unit(
        name="mempool",
        kind=UnitKind.GROUPED_STACK,
        category=Category.CRYPTO,
        depends_on=["bitcoin"],
        health_probe=HealthProbe(container="mempool-db"),
        containers=["electrs", "mempool-db", "mempool-backend", "mempool-frontend"],
    ),
    Unit(name="qbittorrent", category=Category.MEDIA),
    Unit(name="jackett", category=Category.MEDIA),
    Unit(name="sonarr", category=Category.MEDIA, depends_on=["qbittorrent", "jackett"]),
    Unit(name="radarr", category=Category.MEDIA, depends_on=["qbittorrent", "jackett"]),
    Unit(name="jellyfin", category=Category.MEDIA),
    # nginx fronts everything, so it comes up last and goes down first
    Unit(name="nginx", category=Category.PROXY, depends_on=["mempool", *_MEDIA]),
    Unit(name="certbot", category=Category.PROXY, depends_on=["nginx"]),
)


def topological_order(units: Iterable[Unit]) -> list[Unit]:
    """Kahn's algorithm; ties are broken by declaration order.

    Raises RegistryError on duplicate names, unknown dependencies or cycles.
    """
    declared = list(units)
    by_name: dict[str, Unit] = {}
    for unit in declared:
        if unit.name in by_name:
            raise RegistryError(f"Duplicate unit: {unit.name}")
        by_name[unit.name] = unit

    indegree = {unit.name: 0 for unit in declared}
    dependents: dict[str, list[str]] = {unit.name: [] for unit in declared}
    for unit in declared:
        for dep in unit.depends_on:
            if dep not in by_name:
                raise RegistryError(f"Unit {unit.name} depends on unknown unit {dep}")
            indegree[unit.name] += 1
            dependents[dep].append(unit.name)

    position = {unit.name: i for i, unit in enumerate(declared)}
    ready = deque(name for name in indegree if indegree[name] == 0)
    ordered: list[Unit] = []
    while ready:
        name = ready.popleft()
        ordered.append(by_name[name])
        released = []
        for child in dependents[name]:
            indegree[child] -= 1
            if indegree[child] == 0:
                released.append(child)
        # Keep the queue sorted by declaration position
        ready = deque(sorted([*ready, *released], key=position.__getitem__))

    if len(ordered) != len(declared):
        stuck = sorted(name for name, degree in indegree.items() if degree > 0)
        raise RegistryError(f"Dependency cycle between units: {', '.join(stuck)}")
    return ordered


class StackRegistry:
    """Ordered, validated set of units. The order is fixed at construction."""

    def __init__(self, units: Iterable[Unit] = DEFAULT_UNITS) -> None:
        self._order = tuple(topological_order(units))
        self._by_name = {unit.name: unit for unit in self._order}

    def __iter__(self) -> Iterator[Unit]:
        return iter(self._order)

    def __len__(self) -> int:
        return len(self._order)

    def __contains__(self, name: object) -> bool:
        return name in self._by_name

    def get(self, name: str) -> Unit:
        try:
            return self._by_name[name]
        except KeyError:
            known = ", ".join(self.names())
            raise UnitNotFoundError(f"Unknown unit '{name}' (known: {known})") from None

    def names(self) -> list[str]:
        return [unit.name for unit in self._order]

    @property
    def start_order(self) -> tuple[Unit, ...]:
        return self._order

    @property
    def stop_order(self) -> tuple[Unit, ...]:
        return tuple(reversed(self._order))
