from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict


@dataclass(slots=True)
class DeathStatistics:
    starvation: int = 0
    old_age: int = 0
    stress: int = 0
    total: int = 0

    def copy(self) -> "DeathStatistics":
        return DeathStatistics(self.starvation, self.old_age, self.stress, self.total)

    def as_dict(self) -> Dict[str, int]:
        return {
            "starvation": self.starvation,
            "oldAge": self.old_age,
            "stress": self.stress,
            "total": self.total,
        }


@dataclass(slots=True)
class SimulationStats:
    population: int
    tick: int
    births: int
    deaths: DeathStatistics
    by_state: Dict[str, int] = field(default_factory=dict)
    avg_stress: float = 0.0
    avg_hunger: float = 0.0
    avg_energy: float = 0.0
    total_resources: float = 0.0

    def as_dict(self) -> Dict[str, Any]:
        """Payload shaped like the dashboard's stats object."""
        return {
            "population": self.population,
            "tick": self.tick,
            "births": self.births,
            "deaths": self.deaths.as_dict(),
            "byState": dict(self.by_state),
            "avgStress": self.avg_stress,
            "avgHunger": self.avg_hunger,
            "avgEnergy": self.avg_energy,
            "totalResources": self.total_resources,
        }
