from __future__ import annotations

import logging
from typing import TYPE_CHECKING, List

from ..core.agent import Agent

if TYPE_CHECKING:
    from ..core.config import PhysiologyConfig
    from ..core.world import World

logger = logging.getLogger(__name__)

STARVATION = "starvation"
OLD_AGE = "old_age"
STRESS = "stress"

_STARVATION_LIMIT = 100.0
_STRESS_LIMIT = 100.0


def death_causes(agent: Agent, physiology: PhysiologyConfig) -> List[str]:
    causes = []
    if agent.hunger >= _STARVATION_LIMIT:
        causes.append(STARVATION)
    # Compared after this tick's aging, so an agent dies once its age exceeds max_age.
    if agent.age > physiology.max_age:
        causes.append(OLD_AGE)
    if agent.stress >= _STRESS_LIMIT:
        causes.append(STRESS)
    return causes


def sweep(world: World) -> int:
    physiology = world._config.physiology
    deaths = world._deaths
    survivors = []
    removed = 0
    for agent in world._agents:
        causes = death_causes(agent, physiology)
        if not causes:
            survivors.append(agent)
            continue
        removed += 1
        if STARVATION in causes:
            deaths.starvation += 1
        if OLD_AGE in causes:
            deaths.old_age += 1
        if STRESS in causes:
            deaths.stress += 1
        logger.debug("Agent #%d died at age %.1f (%s)", agent.id, agent.age, ", ".join(causes))
    world._agents = survivors
    # Derived from the population delta, not the cause counters.
    deaths.total = world._next_id - len(survivors)
    return removed
