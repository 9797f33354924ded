from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Iterator, List, Optional

from pygame.math import Vector2


@dataclass(slots=True)
class Resource:
    position: Vector2
    amount: float
    max_amount: float
    regeneration_rate: float

    def copy(self) -> "Resource":
        return replace(self, position=Vector2(self.position))


class ResourceField:
    """Fixed set of food deposits. Only ``amount`` ever changes after creation."""

    def __init__(self, regeneration_scale: float):
        self._regeneration_scale = regeneration_scale
        self._resources: List[Resource] = []

    def __iter__(self) -> Iterator[Resource]:
        return iter(self._resources)

    def __len__(self) -> int:
        return len(self._resources)

    def __getitem__(self, index: int) -> Resource:
        return self._resources[index]

    def add(self, position: Vector2, capacity: float, regeneration_rate: float) -> Resource:
        resource = Resource(
            position=Vector2(position),
            amount=capacity,
            max_amount=capacity,
            regeneration_rate=regeneration_rate,
        )
        self._resources.append(resource)
        return resource

    def clear(self) -> None:
        self._resources.clear()

    def regenerate_all(self, time_scale: float) -> None:
        scale = self._regeneration_scale * time_scale
        for resource in self._resources:
            regrown = resource.amount + resource.regeneration_rate * scale
            resource.amount = min(resource.max_amount, max(0.0, regrown))

    def find_nearest(self, point: Vector2) -> Optional[Resource]:
        nearest: Optional[Resource] = None
        nearest_dist_sq = 0.0
        px = point.x
        py = point.y
        for resource in self._resources:
            if resource.amount <= 0:
                continue
            dx = resource.position.x - px
            dy = resource.position.y - py
            dist_sq = dx * dx + dy * dy
            # Strict comparison keeps the first deposit on ties.
            if nearest is None or dist_sq < nearest_dist_sq:
                nearest = resource
                nearest_dist_sq = dist_sq
        return nearest

    def find_within(self, point: Vector2, radius: float) -> Optional[Resource]:
        nearest = self.find_nearest(point)
        if nearest is None or nearest.position.distance_to(point) >= radius:
            return None
        return nearest

    @staticmethod
    def consume(resource: Resource, requested: float) -> float:
        consumed = max(0.0, min(requested, resource.amount))
        resource.amount -= consumed
        if resource.amount < 0.0:
            resource.amount = 0.0
        return consumed

    def total_amount(self) -> float:
        return sum(resource.amount for resource in self._resources)
