from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple

from pygame.math import Vector2

from .agent import Agent, AgentState, Sex
from .config import ConfigurationError, SimulationConfig, validate_config
from .resource import Resource, ResourceField
from .rng import DeterministicRng, time_based_seed
from ..systems import behavior, metrics as metrics_system, mortality, movement, physiology, reproduction
from ..types.metrics import DeathStatistics, SimulationStats
from ..types.snapshot import Snapshot, SnapshotMetadata, SnapshotWorld
from ..utils.math2d import _heading

logger = logging.getLogger(__name__)


class World:
    """Owns the population, the resource field and the death counters.

    ``update()`` advances one tick. Every per-agent pass walks the population
    in storage order, and that order decides who wins a contested deposit or
    mate. Readers get copies of agents, resources and snapshots; nothing
    handed out aliases engine state.
    """

    def __init__(self, config: SimulationConfig):
        validate_config(config)
        self._config = config
        seed = config.seed if config.seed is not None else time_based_seed()
        self._rng = DeterministicRng(seed, config.world_width, config.world_height)
        if config.environmental_factor is not None:
            self._rng.set_environmental_factor(config.environmental_factor)
        self._resources = ResourceField(config.resources.regeneration_scale)
        self._agents: List[Agent] = []
        self._birth_queue: List[Agent] = []
        self._deaths = DeathStatistics()
        self._next_id = 0
        self._tick = 0
        self._bootstrap()
        logger.info(
            "World created: seed=%d population=%d resource_spots=%d",
            self._rng.seed,
            len(self._agents),
            len(self._resources),
        )

    @property
    def config(self) -> SimulationConfig:
        return self._config

    @property
    def seed(self) -> int:
        return self._rng.seed

    @property
    def tick(self) -> int:
        return self._tick

    @property
    def agents(self) -> Tuple[Agent, ...]:
        return tuple(agent.copy() for agent in self._agents)

    @property
    def population(self) -> int:
        return len(self._agents)

    @property
    def resources(self) -> Tuple[Resource, ...]:
        return tuple(resource.copy() for resource in self._resources)

    @property
    def births(self) -> int:
        return self._next_id

    @property
    def deaths(self) -> DeathStatistics:
        return self._deaths.copy()

    def reset(self) -> None:
        self._rng.reset()
        self._resources.clear()
        self._agents.clear()
        self._birth_queue.clear()
        self._deaths = DeathStatistics()
        self._next_id = 0
        self._tick = 0
        self._bootstrap()
        logger.info("World reset: seed=%d population=%d", self._rng.seed, len(self._agents))

    def update(self, time_scale: Optional[float] = None) -> None:
        scale = self._config.time_scale if time_scale is None else time_scale
        if scale <= 0:
            raise ConfigurationError("time_scale", "must be a positive number")
        self._tick += 1
        self._resources.regenerate_all(scale)

        agents = self._agents
        for agent in agents:
            physiology.apply_decay(self, agent, scale)
        for agent in agents:
            physiology.accumulate_stress(self, agent)
            behavior.transition(self, agent)
        for agent in agents:
            if agent.state is AgentState.EATING:
                behavior.retarget_forager(self, agent)
        for agent in agents:
            movement.move(self, agent, scale)
        for agent in agents:
            reproduction.attempt_mating(self, agent, scale)
        for agent in agents:
            behavior.graze(self, agent, scale)
        for agent in agents:
            physiology.decay_stress(self, agent, scale)

        self._apply_births()
        mortality.sweep(self)

    def stats(self) -> SimulationStats:
        return metrics_system.create_stats(self)

    def snapshot(self) -> Snapshot:
        return Snapshot(
            tick=self._tick,
            stats=self.stats(),
            agents=[self._agent_snapshot(agent) for agent in self._agents],
            resources=[self._resource_snapshot(resource) for resource in self._resources],
            world=SnapshotWorld(width=self._config.world_width, height=self._config.world_height),
            metadata=SnapshotMetadata(
                seed=self._rng.seed,
                time_scale=self._config.time_scale,
                birth_rate=self._config.birth_rate,
                config_version=self._config.config_version,
            ),
        )

    def _bootstrap(self) -> None:
        config = self._config
        capacity = config.resource_capacity / config.resource_spots
        for _ in range(config.resource_spots):
            self._resources.add(
                self._rng.random_position(config.spawn_padding),
                capacity,
                config.resource_regeneration_rate,
            )
        for _ in range(config.initial_population):
            agent = self._create_agent(
                self._rng.random_position(config.spawn_padding),
                heading_speed=config.behavior.founder_heading_speed,
            )
            self._agents.append(agent)

    def _create_agent(
        self,
        position: Vector2,
        heading_speed: float,
        parents: Optional[Tuple[Agent, Agent]] = None,
    ) -> Agent:
        angle = self._rng.next_angle()
        sex = Sex.MALE if self._rng.next_float() < 0.5 else Sex.FEMALE
        physiology_config = self._config.physiology
        agent = Agent(
            id=self._next_id,
            position=Vector2(position),
            sex=sex,
            hunger=physiology_config.initial_hunger,
            energy=physiology_config.initial_energy,
            direction=_heading(angle, heading_speed),
            birth_tick=self._tick,
            parent_ids=(parents[0].id, parents[1].id) if parents else None,
        )
        self._next_id += 1
        logger.debug(
            "New agent #%d (%s) at (%.2f, %.2f), parents: %s",
            agent.id,
            sex.value,
            agent.position.x,
            agent.position.y,
            f"{parents[0].id} & {parents[1].id}" if parents else "none",
        )
        return agent

    def _apply_births(self) -> None:
        for agent in self._birth_queue:
            self._agents.append(agent)
        self._birth_queue.clear()

    def _agent_snapshot(self, agent: Agent) -> Dict[str, Any]:
        newborn = agent.is_newborn(self._tick, self._config.behavior.newborn_ticks)
        if newborn:
            color = f"hsl({(self._tick - agent.birth_tick) * 6}, 100%, 70%)"
        else:
            color = agent.sex.color
        target = agent.target
        return {
            "id": agent.id,
            "x": agent.position.x,
            "y": agent.position.y,
            "target_x": None if target is None else target.x,
            "target_y": None if target is None else target.y,
            "state": agent.state.value,
            "state_symbol": agent.state.symbol,
            "state_color": agent.state.color,
            "sex": agent.sex.value,
            "symbol": agent.sex.symbol,
            "color": color,
            "age": agent.age,
            "hunger": agent.hunger,
            "energy": agent.energy,
            "stress": agent.stress,
            "birth_tick": agent.birth_tick,
            "newborn": newborn,
            "parent_ids": None if agent.parent_ids is None else list(agent.parent_ids),
            "social_connections": sorted(agent.social_connections),
        }

    @staticmethod
    def _resource_snapshot(resource: Resource) -> Dict[str, float]:
        return {
            "x": resource.position.x,
            "y": resource.position.y,
            "amount": resource.amount,
            "max_amount": resource.max_amount,
            "regeneration_rate": resource.regeneration_rate,
        }
