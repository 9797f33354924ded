from __future__ import annotations

from typing import TYPE_CHECKING

from ..core.agent import AgentState
from ..types.metrics import SimulationStats

if TYPE_CHECKING:
    from ..core.world import World


def create_stats(world: World) -> SimulationStats:
    agents = world._agents
    by_state = {state.value: 0 for state in AgentState}
    stress_sum = 0.0
    hunger_sum = 0.0
    energy_sum = 0.0
    for agent in agents:
        by_state[agent.state.value] += 1
        stress_sum += agent.stress
        hunger_sum += agent.hunger
        energy_sum += agent.energy
    population = len(agents)
    divisor = population or 1
    return SimulationStats(
        population=population,
        tick=world._tick,
        births=world._next_id,
        deaths=world._deaths.copy(),
        by_state=by_state,
        avg_stress=stress_sum / divisor,
        avg_hunger=hunger_sum / divisor,
        avg_energy=energy_sum / divisor,
        total_resources=world._resources.total_amount(),
    )
