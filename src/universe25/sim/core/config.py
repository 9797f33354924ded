from __future__ import annotations

import math
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml


class ConfigurationError(ValueError):
    """Raised when a simulation cannot be built from the supplied configuration."""

    def __init__(self, field_name: str, message: str):
        super().__init__(f"{field_name}: {message}")
        self.field = field_name


@dataclass
class PhysiologyConfig:
    hunger_per_tick: float = 0.2
    energy_decay_per_tick: float = 0.08
    max_age: float = 2000.0
    stress_radius: float = 50.0
    stress_per_neighbor: float = 0.01
    stress_decay_per_tick: float = 0.2
    initial_hunger: float = 50.0
    initial_energy: float = 100.0


@dataclass
class BehaviorConfig:
    hungry_threshold: float = 70.0
    tired_threshold: float = 20.0
    mating_hunger_max: float = 50.0
    mating_energy_min: float = 50.0
    sated_threshold: float = 30.0
    rested_threshold: float = 80.0
    rest_energy_per_tick: float = 3.0
    courtship_abandon_chance: float = 0.005
    newborn_ticks: int = 60
    wander_turn_chance: float = 0.05
    wander_jitter: float = 0.2
    founder_heading_speed: float = 1.0
    offspring_heading_speed: float = 2.0
    forage_speed: float = 3.0
    travel_speed: float = 2.0
    arrival_radius: float = 2.0


@dataclass
class ReproductionConfig:
    mate_radius: float = 30.0
    partner_min_energy: float = 30.0
    energy_cost: float = 10.0
    offspring_jitter: float = 20.0


@dataclass
class ResourceConfig:
    regeneration_scale: float = 3.0
    reach_radius: float = 5.0
    meal_size: float = 20.0
    graze_per_tick: float = 15.0
    energy_per_unit: float = 0.8


@dataclass
class SimulationConfig:
    initial_population: int = 10
    resource_capacity: float = 50.0
    birth_rate: float = 0.1
    time_scale: float = 1.0
    resource_spots: int = 5
    resource_regeneration_rate: float = 0.1
    seed: Optional[int] = None
    environmental_factor: Optional[float] = None
    world_width: float = 1280.0
    world_height: float = 720.0
    spawn_padding: float = 50.0
    config_version: str = "v1"
    physiology: PhysiologyConfig = field(default_factory=PhysiologyConfig)
    behavior: BehaviorConfig = field(default_factory=BehaviorConfig)
    reproduction: ReproductionConfig = field(default_factory=ReproductionConfig)
    resources: ResourceConfig = field(default_factory=ResourceConfig)

    @staticmethod
    def from_yaml(path: Path) -> "SimulationConfig":
        data = yaml.safe_load(Path(path).read_text()) or {}
        return load_config(data)

    @staticmethod
    def preset(name: str) -> "SimulationConfig":
        try:
            raw = PRESETS[name]
        except KeyError:
            raise ConfigurationError("preset", f"unknown preset {name!r}") from None
        return load_config(dict(raw))


# Keys used by the browser front-end; accepted so saved parameter sets load unchanged.
_CAMEL_CASE_ALIASES = {
    "initialPopulation": "initial_population",
    "resourceCapacity": "resource_capacity",
    "birthRate": "birth_rate",
    "timeScale": "time_scale",
    "resourceSpots": "resource_spots",
    "resourceRegenerationRate": "resource_regeneration_rate",
    "environmentalFactor": "environmental_factor",
}

_NESTED = {
    "physiology": PhysiologyConfig,
    "behavior": BehaviorConfig,
    "reproduction": ReproductionConfig,
    "resources": ResourceConfig,
}

PRESETS: Dict[str, Dict[str, Any]] = {
    "utopia": {
        "initial_population": 15,
        "resource_capacity": 300.0,
        "birth_rate": 0.08,
        "time_scale": 1.0,
        "resource_spots": 12,
        "resource_regeneration_rate": 0.4,
    },
}


def _build_section(name: str, cls: type, raw: Any) -> Any:
    if raw is None:
        return cls()
    if not isinstance(raw, dict):
        raise ConfigurationError(name, "expected a mapping")
    known = {f.name for f in fields(cls)}
    unknown = sorted(set(raw) - known)
    if unknown:
        raise ConfigurationError(name, f"unknown keys {unknown}")
    return cls(**raw)


def load_config(raw: dict) -> SimulationConfig:
    if not isinstance(raw, dict):
        raise ConfigurationError("config", "expected a mapping at the top level")
    values = {_CAMEL_CASE_ALIASES.get(k, k): v for k, v in raw.items()}
    preset_name = values.pop("preset", None)
    if preset_name is not None:
        if preset_name not in PRESETS:
            raise ConfigurationError("preset", f"unknown preset {preset_name!r}")
        values = {**PRESETS[preset_name], **values}

    nested = {name: _build_section(name, cls, values.pop(name, None)) for name, cls in _NESTED.items()}
    known = {f.name for f in fields(SimulationConfig)}
    unknown = sorted(set(values) - known)
    if unknown:
        raise ConfigurationError("config", f"unknown keys {unknown}")
    return SimulationConfig(**nested, **values)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def validate_config(config: SimulationConfig) -> None:
    """Fail fast on parameters the engine cannot run with."""
    if not isinstance(config.initial_population, int) or isinstance(config.initial_population, bool):
        raise ConfigurationError("initial_population", "must be an integer")
    if config.initial_population <= 0:
        raise ConfigurationError("initial_population", "must be greater than zero")
    if not _is_number(config.resource_capacity) or config.resource_capacity <= 0:
        raise ConfigurationError("resource_capacity", "must be a positive number")
    if not _is_number(config.birth_rate) or not 0.0 <= config.birth_rate <= 1.0:
        raise ConfigurationError("birth_rate", "must be within [0, 1]")
    if not _is_number(config.time_scale) or config.time_scale <= 0:
        raise ConfigurationError("time_scale", "must be a positive number")
    if not isinstance(config.resource_spots, int) or isinstance(config.resource_spots, bool):
        raise ConfigurationError("resource_spots", "must be an integer")
    if config.resource_spots <= 0:
        raise ConfigurationError("resource_spots", "must be greater than zero")
    if not _is_number(config.resource_regeneration_rate) or not 0.0 <= config.resource_regeneration_rate <= 1.0:
        raise ConfigurationError("resource_regeneration_rate", "must be within [0, 1]")
    if config.seed is not None and (not isinstance(config.seed, int) or isinstance(config.seed, bool)):
        raise ConfigurationError("seed", "must be an integer or null")
    if not _is_number(config.spawn_padding) or config.spawn_padding < 0:
        raise ConfigurationError("spawn_padding", "must be a non-negative number")
    min_extent = 2.0 * config.spawn_padding
    if not _is_number(config.world_width) or config.world_width <= min_extent:
        raise ConfigurationError("world_width", "must exceed twice the spawn padding")
    if not _is_number(config.world_height) or config.world_height <= min_extent:
        raise ConfigurationError("world_height", "must exceed twice the spawn padding")
    _validate_sections(config)


_PERCENT = (0.0, 100.0)
_PROBABILITY = (0.0, 1.0)
_NON_NEGATIVE = (0.0, None)

# Allowed (low, high) per tuning field; None leaves that side open.
_SECTION_BOUNDS: Dict[str, Dict[str, Tuple[float, Optional[float]]]] = {
    "physiology": {
        "hunger_per_tick": _NON_NEGATIVE,
        "energy_decay_per_tick": _NON_NEGATIVE,
        "max_age": _NON_NEGATIVE,
        "stress_radius": _NON_NEGATIVE,
        "stress_per_neighbor": _NON_NEGATIVE,
        "stress_decay_per_tick": _NON_NEGATIVE,
        "initial_hunger": _PERCENT,
        "initial_energy": _PERCENT,
    },
    "behavior": {
        "hungry_threshold": _PERCENT,
        "tired_threshold": _PERCENT,
        "mating_hunger_max": _PERCENT,
        "mating_energy_min": _PERCENT,
        "sated_threshold": _PERCENT,
        "rested_threshold": _PERCENT,
        "rest_energy_per_tick": _NON_NEGATIVE,
        "courtship_abandon_chance": _PROBABILITY,
        "newborn_ticks": _NON_NEGATIVE,
        "wander_turn_chance": _PROBABILITY,
        "wander_jitter": _NON_NEGATIVE,
        "founder_heading_speed": _NON_NEGATIVE,
        "offspring_heading_speed": _NON_NEGATIVE,
        "forage_speed": _NON_NEGATIVE,
        "travel_speed": _NON_NEGATIVE,
        "arrival_radius": _NON_NEGATIVE,
    },
    "reproduction": {
        "mate_radius": _NON_NEGATIVE,
        "partner_min_energy": _PERCENT,
        "energy_cost": _NON_NEGATIVE,
        "offspring_jitter": _NON_NEGATIVE,
    },
    "resources": {
        "regeneration_scale": _NON_NEGATIVE,
        "reach_radius": _NON_NEGATIVE,
        "meal_size": _NON_NEGATIVE,
        "graze_per_tick": _NON_NEGATIVE,
        "energy_per_unit": _NON_NEGATIVE,
    },
}


def _validate_sections(config: SimulationConfig) -> None:
    for name, cls in _NESTED.items():
        section = getattr(config, name)
        if not isinstance(section, cls):
            raise ConfigurationError(name, f"expected {cls.__name__}")
        for key, (low, high) in _SECTION_BOUNDS[name].items():
            value = getattr(section, key)
            field_name = f"{name}.{key}"
            if not _is_number(value):
                raise ConfigurationError(field_name, "must be a finite number")
            if value < low or (high is not None and value > high):
                bound = f"within [{low:g}, {high:g}]" if high is not None else f"at least {low:g}"
                raise ConfigurationError(field_name, f"must be {bound}")
    if not isinstance(config.behavior.newborn_ticks, int):
        raise ConfigurationError("behavior.newborn_ticks", "must be an integer")
