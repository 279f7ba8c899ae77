from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import List

import yaml

Range = tuple[float, float]
Color = tuple[float, float, float, float]


class ConfigurationError(ValueError):
    """Raised when a configuration cannot start a simulation."""


def _default_tier_colors() -> List[Color]:
    return [
        (0.0, 1.0, 0.0, 1.0),
        (1.0, 0.65, 0.0, 1.0),
        (1.0, 0.2, 0.2, 1.0),
        (0.6, 0.3, 1.0, 1.0),
    ]


@dataclass
class FishConfig:
    quantity: int = 20
    scale_range: Range = (0.5, 1.5)
    max_speed_range: Range = (1.5, 4.0)
    max_steering_force_range: Range = (0.05, 0.2)
    total_food_chain_links: int = 3
    # Rendering only; the simulation core never reads it.
    frames_per_animation_frame: float = 6.0
    tier_colors: List[Color] = field(default_factory=_default_tier_colors)


@dataclass
class FoodConfig:
    quantity: int = 60
    radius_range: Range = (3.0, 6.0)
    spawn_probability: float = 0.05
    spawn_radius: float = 4.0
    color: Color = (0.2, 0.8, 0.2, 1.0)


@dataclass
class EvolutionConfig:
    mutation_rate: float = 0.1
    mutation_amount: float = 0.1
    reproduction_probability: float = 0.002
    prey_attraction_range: Range = (0.5, 2.0)
    predator_repulsion_range: Range = (-2.0, -0.5)
    prey_perception_range: Range = (50.0, 200.0)
    predator_perception_range: Range = (50.0, 200.0)


@dataclass
class SimulationConfig:
    window_size: Range = (1280.0, 720.0)
    boundary_padding: float = 25.0
    eating_radius: float = 2.0
    health_decay: float = 0.001
    heal_amount: float = 0.01
    # 0: agents hunt their own tier, 1: agents hunt the tier below.
    prey_tier_offset: int = 0
    frame_interval: float = 1.0 / 60.0
    seed: int = 42
    config_version: str = "v1"
    fish: FishConfig = field(default_factory=FishConfig)
    food: FoodConfig = field(default_factory=FoodConfig)
    evolution: EvolutionConfig = field(default_factory=EvolutionConfig)

    @property
    def tier_count(self) -> int:
        return self.fish.total_food_chain_links

    @staticmethod
    def from_yaml(path: Path) -> "SimulationConfig":
        data = yaml.safe_load(Path(path).read_text()) or {}
        return load_config(data)

    def validate(self) -> None:
        fish = self.fish
        food = self.food
        evolution = self.evolution
        ranges = {
            "fish.scale_range": fish.scale_range,
            "fish.max_speed_range": fish.max_speed_range,
            "fish.max_steering_force_range": fish.max_steering_force_range,
            "food.radius_range": food.radius_range,
            "evolution.prey_attraction_range": evolution.prey_attraction_range,
            "evolution.predator_repulsion_range": evolution.predator_repulsion_range,
            "evolution.prey_perception_range": evolution.prey_perception_range,
            "evolution.predator_perception_range": evolution.predator_perception_range,
        }
        for name, (low, high) in ranges.items():
            if low > high:
                raise ConfigurationError(f"{name} must satisfy low <= high, got ({low}, {high})")
        # scale_range is the denominator of the scale -> speed/steering mapping.
        if fish.scale_range[0] == fish.scale_range[1]:
            raise ConfigurationError(f"fish.scale_range must not be degenerate, got {fish.scale_range}")
        if fish.total_food_chain_links < 1:
            raise ConfigurationError("fish.total_food_chain_links must be at least 1")
        if fish.quantity < 0 or food.quantity < 0:
            raise ConfigurationError("fish.quantity and food.quantity must not be negative")
        if not fish.tier_colors:
            raise ConfigurationError("fish.tier_colors must contain at least one color")
        for name, value in (
            ("food.spawn_probability", food.spawn_probability),
            ("evolution.mutation_rate", evolution.mutation_rate),
            ("evolution.reproduction_probability", evolution.reproduction_probability),
        ):
            if not 0.0 <= value <= 1.0:
                raise ConfigurationError(f"{name} must be within [0, 1], got {value}")
        width, height = self.window_size
        if width <= 0 or height <= 0:
            raise ConfigurationError(f"window_size must be positive, got {self.window_size}")
        if self.boundary_padding < 0 or 2 * self.boundary_padding >= min(width, height):
            raise ConfigurationError(
                f"boundary_padding {self.boundary_padding} leaves no interior in window {self.window_size}"
            )
        if self.prey_tier_offset not in (0, 1):
            raise ConfigurationError(f"prey_tier_offset must be 0 or 1, got {self.prey_tier_offset}")


@dataclass
class AppConfig:
    """Server settings around a simulation; read from the `server` section of the YAML file."""

    simulation: SimulationConfig = field(default_factory=SimulationConfig)
    broadcast_interval: int = 2
    max_queued_snapshots: int = 120
    autostart: bool = True

    @classmethod
    def from_yaml(cls, path: str | Path) -> "AppConfig":
        data = yaml.safe_load(Path(path).read_text()) or {}
        return load_app_config(data)

    def validate(self) -> None:
        self.simulation.validate()
        if self.broadcast_interval < 1:
            raise ConfigurationError(f"server.broadcast_interval must be at least 1, got {self.broadcast_interval}")
        if self.max_queued_snapshots < 1:
            raise ConfigurationError(
                f"server.max_queued_snapshots must be at least 1, got {self.max_queued_snapshots}"
            )


def _pair(value: Range | list[float] | None, default: Range) -> Range:
    if isinstance(value, (tuple, list)) and len(value) == 2:
        return (float(value[0]), float(value[1]))
    return default


def _color(value: Color | list[float] | None, default: Color) -> Color:
    if isinstance(value, (tuple, list)) and len(value) == 4:
        return (float(value[0]), float(value[1]), float(value[2]), float(value[3]))
    return default


def load_config(raw: dict) -> SimulationConfig:
    default_fish = FishConfig()
    default_food = FoodConfig()
    default_evolution = EvolutionConfig()

    fish_raw = dict(raw.get("fish", {}))
    fish = FishConfig(
        scale_range=_pair(fish_raw.pop("scale_range", None), default_fish.scale_range),
        max_speed_range=_pair(fish_raw.pop("max_speed_range", None), default_fish.max_speed_range),
        max_steering_force_range=_pair(
            fish_raw.pop("max_steering_force_range", None), default_fish.max_steering_force_range
        ),
        tier_colors=[_color(c, (1.0, 1.0, 1.0, 1.0)) for c in fish_raw.pop("tier_colors", default_fish.tier_colors)],
        **fish_raw,
    )

    food_raw = dict(raw.get("food", {}))
    food = FoodConfig(
        radius_range=_pair(food_raw.pop("radius_range", None), default_food.radius_range),
        color=_color(food_raw.pop("color", None), default_food.color),
        **food_raw,
    )

    evolution_raw = dict(raw.get("evolution", {}))
    range_keys = (
        "prey_attraction_range",
        "predator_repulsion_range",
        "prey_perception_range",
        "predator_perception_range",
    )
    evolution_ranges = {
        key: _pair(evolution_raw.pop(key, None), getattr(default_evolution, key)) for key in range_keys
    }
    evolution = EvolutionConfig(**evolution_ranges, **evolution_raw)

    sim_values = {k: v for k, v in raw.items() if k not in {"fish", "food", "evolution", "server"}}
    if "window_size" in sim_values:
        sim_values["window_size"] = _pair(sim_values["window_size"], SimulationConfig().window_size)
    return SimulationConfig(fish=fish, food=food, evolution=evolution, **sim_values)


def load_app_config(raw: dict) -> AppConfig:
    return AppConfig(simulation=load_config(raw), **dict(raw.get("server", {})))
