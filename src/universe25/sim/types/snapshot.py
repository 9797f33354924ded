from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List

from .metrics import SimulationStats


@dataclass(slots=True)
class Snapshot:
    tick: int
    stats: SimulationStats
    agents: List[Dict[str, Any]]
    resources: List[Dict[str, Any]]
    world: "SnapshotWorld"
    metadata: "SnapshotMetadata"

    def as_dict(self) -> Dict[str, Any]:
        return {
            "tick": self.tick,
            "stats": self.stats.as_dict(),
            "agents": self.agents,
            "resources": self.resources,
            "world": {"width": self.world.width, "height": self.world.height},
            "metadata": {
                "seed": self.metadata.seed,
                "time_scale": self.metadata.time_scale,
                "birth_rate": self.metadata.birth_rate,
                "config_version": self.metadata.config_version,
            },
        }


@dataclass(slots=True)
class SnapshotWorld:
    width: float
    height: float


@dataclass(slots=True)
class SnapshotMetadata:
    seed: int
    time_scale: float
    birth_rate: float
    config_version: str
