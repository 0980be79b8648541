"""Dependency graph over declared resources.

Checks that ids are unique and every reference resolves, then orders the
units (services, sockets, external units) so each one follows everything
it must start after.
"""

from __future__ import annotations

import graphlib
from collections.abc import Iterable, Iterator, Sequence

from virthost.errors import DependencyCycleError, UnresolvedReferenceError, ValidationError
from virthost.models.resource import (
    ExternalUnit,
    PrincipalUser,
    Resource,
    Service,
    Socket,
)

UNIT_KINDS = (Service, Socket, ExternalUnit)


def references(resource: Resource) -> Iterator[tuple[str, str]]:
    """Yield ``(relation, target_id)`` for every id *resource* refers to."""
    if isinstance(resource, Service):
        for target in resource.depends_on:
            yield "requires", target
        for target in resource.run_after:
            yield "after", target
        for target in resource.wanted_by:
            yield "wanted-by", target
    elif isinstance(resource, Socket):
        yield "activates", resource.service
        for target in resource.wanted_by:
            yield "wanted-by", target
    elif isinstance(resource, PrincipalUser):
        yield "group", f"group:{resource.group}"
    producer = getattr(resource, "producer", None)
    if producer is not None:
        yield "produced-by", producer


class DependencyGraph:
    """Validated view over a resource list."""

    def __init__(self, resources: Sequence[Resource]) -> None:
        self.resources = list(resources)
        self._by_id: dict[str, Resource] = {}
        duplicates = []
        for resource in self.resources:
            if resource.id in self._by_id:
                duplicates.append(resource.id)
            self._by_id[resource.id] = resource
        if duplicates:
            raise ValidationError("Duplicate resource ids", sorted(set(duplicates)))
        for resource in self.resources:
            for _relation, target in references(resource):
                if target not in self._by_id:
                    raise UnresolvedReferenceError(resource.id, target)

    def __contains__(self, resource_id: str) -> bool:
        return resource_id in self._by_id

    def __getitem__(self, resource_id: str) -> Resource:
        return self._by_id[resource_id]

    def predecessors(self, unit_id: str) -> list[str]:
        """Units that must be started before *unit_id*."""
        resource = self._by_id[unit_id]
        before: list[str] = []
        # Sockets and external units are ordered by the service manager itself
        if isinstance(resource, Service):
            before.extend(resource.depends_on)
            before.extend(resource.run_after)
            # A socket is listening before its service is activated
            before.extend(
                s.id for s in self.resources
                if isinstance(s, Socket) and s.service == unit_id
            )
        return [b for b in dict.fromkeys(before) if isinstance(self._by_id[b], UNIT_KINDS)]

    def units(self) -> Iterable[Resource]:
        return (r for r in self.resources if isinstance(r, UNIT_KINDS))

    def start_order(self) -> list[str]:
        """Topological order of units; declaration order breaks ties."""
        sorter: graphlib.TopologicalSorter[str] = graphlib.TopologicalSorter()
        for unit in self.units():
            sorter.add(unit.id, *self.predecessors(unit.id))
        try:
            sorter.prepare()
        except graphlib.CycleError as exc:
            raise DependencyCycleError(list(exc.args[1])) from None
        position = {r.id: i for i, r in enumerate(self.resources)}
        order: list[str] = []
        while sorter.is_active():
            ready = sorted(sorter.get_ready(), key=position.__getitem__)
            order.extend(ready)
            sorter.done(*ready)
        return order
