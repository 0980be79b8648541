"""The compiled resource plan."""

from __future__ import annotations

from typing import TypeVar

from pydantic import BaseModel, ConfigDict

from virthost.models.resource import Resource

R = TypeVar("R")


class ResourcePlan(BaseModel):
    """Ordered resource declarations plus the unit start order.

    ``start_order`` lists service, socket, and external unit ids so that
    every unit appears after the units it is ordered after.
    """

    model_config = ConfigDict(frozen=True)

    resources: tuple[Resource, ...] = ()
    start_order: tuple[str, ...] = ()

    def __len__(self) -> int:
        return len(self.resources)

    @property
    def ids(self) -> list[str]:
        return [r.id for r in self.resources]

    def get(self, resource_id: str) -> Resource | None:
        for resource in self.resources:
            if resource.id == resource_id:
                return resource
        return None

    def of_kind(self, cls: type[R]) -> list[R]:
        return [r for r in self.resources if isinstance(r, cls)]

    def produced_by(self, producer: str) -> list[Resource]:
        """Declarations materialized by the given setup service."""
        return [r for r in self.resources if getattr(r, "producer", None) == producer]
