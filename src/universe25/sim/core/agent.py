from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Optional, Set, Tuple

from pygame.math import Vector2


class AgentState(str, Enum):
    EXPLORING = "exploring"
    EATING = "eating"
    MATING = "mating"
    RESTING = "resting"

    @property
    def symbol(self) -> str:
        return _STATE_SYMBOLS[self]

    @property
    def color(self) -> str:
        return _STATE_COLORS[self]


_STATE_SYMBOLS = {
    AgentState.EXPLORING: "◉",
    AgentState.EATING: "★",
    AgentState.MATING: "♥",
    AgentState.RESTING: "✤",
}

_STATE_COLORS = {
    AgentState.EXPLORING: "#4AFF83",
    AgentState.EATING: "#FFE837",
    AgentState.MATING: "#FF71B3",
    AgentState.RESTING: "#C875FF",
}


class Sex(str, Enum):
    MALE = "male"
    FEMALE = "female"

    @property
    def symbol(self) -> str:
        return "♂" if self is Sex.MALE else "♀"

    @property
    def color(self) -> str:
        return "#4444FF" if self is Sex.MALE else "#FF4444"


@dataclass(slots=True)
class Agent:
    id: int
    position: Vector2
    sex: Sex
    state: AgentState = AgentState.EXPLORING
    age: float = 0.0
    hunger: float = 50.0
    energy: float = 100.0
    stress: float = 0.0
    target: Optional[Vector2] = None
    direction: Vector2 = field(default_factory=Vector2)
    birth_tick: int = 0
    parent_ids: Optional[Tuple[int, int]] = None
    social_connections: Set[int] = field(default_factory=set)

    def set_target(self, point: Vector2) -> None:
        self.target = Vector2(point)

    def clear_target(self) -> None:
        self.target = None

    def is_newborn(self, tick: int, grace_ticks: int) -> bool:
        # Founders are never shown as newborns.
        return self.parent_ids is not None and 0 <= tick - self.birth_tick < grace_ticks

    def copy(self) -> "Agent":
        return replace(
            self,
            position=Vector2(self.position),
            target=None if self.target is None else Vector2(self.target),
            direction=Vector2(self.direction),
            social_connections=set(self.social_connections),
        )
