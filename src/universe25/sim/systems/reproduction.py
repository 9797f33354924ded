from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional

from pygame.math import Vector2

from ..core.agent import Agent, AgentState
from ..utils.math2d import _clamp_value, _distance_sq
from . import behavior

if TYPE_CHECKING:
    from ..core.world import World

logger = logging.getLogger(__name__)


def is_eligible_partner(world: World, agent: Agent, other: Agent) -> bool:
    settings = world._config.reproduction
    return (
        other.id != agent.id
        and other.state is AgentState.MATING
        and other.sex is not agent.sex
        and other.energy > settings.partner_min_energy
        and _distance_sq(other.position, agent.position) < settings.mate_radius * settings.mate_radius
    )


def find_partner(world: World, agent: Agent) -> Optional[Agent]:
    """First eligible partner in population order, so ties never depend on chance."""
    for other in world._agents:
        if is_eligible_partner(world, agent, other):
            return other
    return None


def attempt_mating(world: World, agent: Agent, time_scale: float) -> Optional[Agent]:
    if agent.state is not AgentState.MATING:
        return None
    partner = find_partner(world, agent)
    if partner is not None and world._rng.next_float() < world._config.birth_rate:
        child = _conceive(world, agent, partner)
        _settle_parent(world, agent, partner, child, time_scale)
        _settle_parent(world, partner, agent, child, time_scale)
        logger.debug(
            "Mating successful between %s #%d and %s #%d",
            agent.sex.value,
            agent.id,
            partner.sex.value,
            partner.id,
        )
        return child
    behavior.abandon_courtship(world, agent, time_scale)
    return None


def _conceive(world: World, first: Agent, second: Agent) -> Agent:
    config = world._config
    rng = world._rng
    jitter = config.reproduction.offspring_jitter
    spawn_center = (first.position + second.position) * 0.5
    position = Vector2(
        _clamp_value(spawn_center.x + rng.next_range(-jitter, jitter), 0.0, config.world_width),
        _clamp_value(spawn_center.y + rng.next_range(-jitter, jitter), 0.0, config.world_height),
    )
    child = world._create_agent(
        position,
        heading_speed=config.behavior.offspring_heading_speed,
        parents=(first, second),
    )
    behavior.start_foraging(world, child)
    world._birth_queue.append(child)
    return child


def _settle_parent(world: World, parent: Agent, mate: Agent, child: Agent, time_scale: float) -> None:
    parent.social_connections.add(mate.id)
    parent.social_connections.add(child.id)
    cost = world._config.reproduction.energy_cost * time_scale
    parent.energy = max(0.0, parent.energy - cost)
    parent.state = AgentState.EXPLORING
    parent.clear_target()
    behavior.start_foraging(world, parent)
