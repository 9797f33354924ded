"""Per-agent behavioral state machine.

Each :class:`AgentState` owns one handler. Handlers run once per tick after
physiological decay and only ever move an agent between the four states;
movement, courtship and death live in their own systems.
"""
from __future__ import annotations

from typing import TYPE_CHECKING, Callable, Dict

from ..core.agent import Agent, AgentState
from ..core.resource import Resource
from ..utils.math2d import _clamp_stat

if TYPE_CHECKING:
    from ..core.world import World


def transition(world: World, agent: Agent) -> None:
    _HANDLERS[agent.state](world, agent)


def start_foraging(world: World, agent: Agent) -> bool:
    """Send the agent to its nearest stocked resource. False when every deposit is empty."""
    resource = world._resources.find_nearest(agent.position)
    if resource is None:
        return False
    agent.state = AgentState.EATING
    agent.set_target(resource.position)
    return True


def retarget_forager(world: World, agent: Agent) -> None:
    resource = world._resources.find_nearest(agent.position)
    if resource is not None:
        agent.set_target(resource.position)


def feed(world: World, agent: Agent, resource: Resource, requested: float) -> float:
    consumed = world._resources.consume(resource, requested)
    if consumed > 0.0:
        agent.hunger = _clamp_stat(agent.hunger - consumed)
        agent.energy = _clamp_stat(agent.energy + consumed * world._config.resources.energy_per_unit)
    return consumed


def graze(world: World, agent: Agent, time_scale: float) -> float:
    """Opportunistic bite for any agent standing at a deposit, whatever its state."""
    settings = world._config.resources
    resource = world._resources.find_within(agent.position, settings.reach_radius)
    if resource is None:
        return 0.0
    return feed(world, agent, resource, settings.graze_per_tick * time_scale)


def abandon_courtship(world: World, agent: Agent, time_scale: float) -> bool:
    chance = world._config.behavior.courtship_abandon_chance * time_scale
    if world._rng.next_float() < chance:
        agent.state = AgentState.EXPLORING
        return True
    return False


def _explore(world: World, agent: Agent) -> None:
    behavior = world._config.behavior
    if agent.hunger > behavior.hungry_threshold and start_foraging(world, agent):
        return
    if agent.energy < behavior.tired_threshold:
        agent.state = AgentState.RESTING
    elif agent.hunger < behavior.mating_hunger_max and agent.energy > behavior.mating_energy_min:
        agent.state = AgentState.MATING


def _eat(world: World, agent: Agent) -> None:
    settings = world._config.resources
    resource = world._resources.find_within(agent.position, settings.reach_radius)
    if resource is None:
        return
    feed(world, agent, resource, settings.meal_size)
    if agent.hunger < world._config.behavior.sated_threshold:
        agent.state = AgentState.EXPLORING
        agent.clear_target()


def _rest(world: World, agent: Agent) -> None:
    behavior = world._config.behavior
    agent.energy = _clamp_stat(agent.energy + behavior.rest_energy_per_tick)
    if agent.energy > behavior.rested_threshold:
        agent.state = AgentState.EXPLORING


def _court(world: World, agent: Agent) -> None:
    # Pairing and the give-up roll happen in the reproduction pass.
    return None


_HANDLERS: Dict[AgentState, Callable[["World", Agent], None]] = {
    AgentState.EXPLORING: _explore,
    AgentState.EATING: _eat,
    AgentState.MATING: _court,
    AgentState.RESTING: _rest,
}
