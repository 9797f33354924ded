from __future__ import annotations

from typing import TYPE_CHECKING

from ..core.agent import Agent
from ..utils.math2d import _clamp_stat, _distance_sq

if TYPE_CHECKING:
    from ..core.world import World


def apply_decay(world: World, agent: Agent, time_scale: float) -> None:
    physiology = world._config.physiology
    agent.age += time_scale
    agent.hunger = _clamp_stat(agent.hunger + physiology.hunger_per_tick * time_scale)
    agent.energy = _clamp_stat(agent.energy - physiology.energy_decay_per_tick * time_scale)


def count_crowding(world: World, agent: Agent) -> int:
    radius = world._config.physiology.stress_radius
    radius_sq = radius * radius
    position = agent.position
    crowd = 0
    for other in world._agents:
        if other.id == agent.id:
            continue
        if _distance_sq(other.position, position) < radius_sq:
            crowd += 1
    return crowd


def accumulate_stress(world: World, agent: Agent) -> int:
    crowd = count_crowding(world, agent)
    if crowd:
        agent.stress = _clamp_stat(agent.stress + crowd * world._config.physiology.stress_per_neighbor)
    return crowd


def decay_stress(world: World, agent: Agent, time_scale: float) -> None:
    if agent.stress > 0:
        agent.stress = _clamp_stat(agent.stress - world._config.physiology.stress_decay_per_tick * time_scale)
