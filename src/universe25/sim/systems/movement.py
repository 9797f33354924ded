from __future__ import annotations

import math
from typing import TYPE_CHECKING

from ..core.agent import Agent, AgentState
from ..utils.math2d import _clamp_value, _heading

if TYPE_CHECKING:
    from ..core.world import World


def move(world: World, agent: Agent, time_scale: float) -> None:
    if agent.state is AgentState.RESTING:
        return
    if agent.target is not None:
        pursue(world, agent, time_scale)
    else:
        wander(world, agent, time_scale)


def pursue(world: World, agent: Agent, time_scale: float) -> None:
    behavior = world._config.behavior
    target = agent.target
    dx = target.x - agent.position.x
    dy = target.y - agent.position.y
    distance = math.sqrt(dx * dx + dy * dy)
    if distance < behavior.arrival_radius:
        agent.clear_target()
        return
    base_speed = behavior.forage_speed if agent.state is AgentState.EATING else behavior.travel_speed
    step = base_speed * time_scale / distance
    agent.position.update(agent.position.x + dx * step, agent.position.y + dy * step)


def wander(world: World, agent: Agent, time_scale: float) -> None:
    rng = world._rng
    behavior = world._config.behavior
    jitter = behavior.wander_jitter
    if rng.next_float() < behavior.wander_turn_chance * time_scale:
        angle = rng.next_angle()
        speed = (0.5 + rng.next_float() * 0.5) * time_scale
        agent.direction = _heading(angle, speed)

    x = agent.position.x + (agent.direction.x + (rng.next_float() - 0.5) * jitter) * time_scale
    y = agent.position.y + (agent.direction.y + (rng.next_float() - 0.5) * jitter) * time_scale
    width = world._config.world_width
    height = world._config.world_height
    if x <= 0 or x >= width:
        agent.direction.x = -agent.direction.x + (rng.next_float() - 0.5) * jitter * time_scale
        x = _clamp_value(x, 0.0, width)
    if y <= 0 or y >= height:
        agent.direction.y = -agent.direction.y + (rng.next_float() - 0.5) * jitter * time_scale
        y = _clamp_value(y, 0.0, height)
    agent.position.update(x, y)
