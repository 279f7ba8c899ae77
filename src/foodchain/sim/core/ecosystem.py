from __future__ import annotations

import logging
from time import perf_counter
from typing import Any, Dict, List, Optional

from pygame.math import Vector2

from ...config import SimulationConfig
from ..systems.avoidance import avoid
from ..systems.boundary import contain
from ..systems.evolution import clone, sample_dna
from ..systems.feeding import eat
from ..systems.metrics import StepCounters, create_metrics
from ..systems.spawning import FoodSpawner, initial_food, random_position
from ..types.metrics import TickMetrics
from ..types.snapshot import Snapshot, SnapshotMetadata, SnapshotWorld
from ..utils.math2d import clamp_value, inverse_map_range
from .agent import Agent
from .food import Food
from .rng import DeterministicRng

logger = logging.getLogger(__name__)


class Ecosystem:
    """Owns the food and every food-chain tier and advances them one frame at a time.

    Tier 0 is the bottom of the food chain and the last tier is the apex,
    which nothing hunts. Dead agents stay in their tier, inert, until the
    next pruning pass over that tier.
    """

    def __init__(self, config: SimulationConfig, rng: DeterministicRng | None = None):
        config.validate()
        self._config = config
        self._rng = rng if rng is not None else DeterministicRng(config.seed)
        self._spawner = FoodSpawner(self._rng, config.food, config.window_size)
        self._tiers: List[List[Agent]] = []
        self._food: List[Food] = []
        self._next_id = 0
        self._metrics: TickMetrics | None = None
        self._bootstrap_population()
        logger.info(
            "Ecosystem ready: %d tiers x %d fish, %d food, seed %s",
            config.tier_count,
            config.fish.quantity,
            len(self._food),
            self._rng.seed,
        )

    @property
    def config(self) -> SimulationConfig:
        return self._config

    @property
    def tiers(self) -> List[List[Agent]]:
        return self._tiers

    @property
    def food(self) -> List[Food]:
        return self._food

    @property
    def agents(self) -> List[Agent]:
        return [agent for tier in self._tiers for agent in tier]

    @property
    def metrics(self) -> TickMetrics | None:
        return self._metrics

    def reset(self) -> None:
        self._rng.reset()
        self._tiers = []
        self._food = []
        self._next_id = 0
        self._metrics = None
        self._bootstrap_population()
        logger.info("Ecosystem reset with seed %s", self._rng.seed)

    def step(self, tick: int) -> TickMetrics:
        start = perf_counter()
        config = self._config
        counters = StepCounters()

        self._spawner.maybe_spawn(self._food)

        for index, tier in enumerate(self._tiers):
            predators = self._predator_positions(index)
            counters.deaths += self._remove_dead(index)
            prey = self._prey_for(index)
            newborn: Agent | None = None

            # Iterate over a copy: same-tier predation removes agents mid-pass.
            for agent in list(tier):
                if not agent.alive:
                    continue
                if newborn is None and self._rng.next_float() < config.evolution.reproduction_probability:
                    newborn = clone(agent, self._allocate_id(), self._rng, config.evolution)

                meal = eat(agent, self._food, prey, config.eating_radius, config.heal_amount)
                counters.record_meal(meal.eaten)
                agent.apply_force(meal.force)
                agent.apply_force(avoid(agent, predators))
                agent.apply_force(contain(agent, config.window_size, config.boundary_padding))
                agent.update(config.health_decay)

            if newborn is not None:
                tier.append(newborn)
                counters.births += 1
                logger.debug("Agent %d born in tier %d (generation %d)", newborn.id, index, newborn.generation)

        elapsed_ms = (perf_counter() - start) * 1000.0
        metrics = create_metrics(tick, self._tiers, self._food, counters, elapsed_ms)
        self._metrics = metrics
        return metrics

    def snapshot(self, tick: int) -> Snapshot:
        metrics = self._metrics
        if metrics is None:
            metrics = create_metrics(tick, self._tiers, self._food, StepCounters(), 0.0)
        width, height = self._config.window_size
        return Snapshot(
            tick=tick,
            metrics=metrics,
            agents=[self._agent_snapshot(agent) for tier in self._tiers for agent in tier if agent.alive],
            food=[self._food_snapshot(item) for item in self._food],
            world=SnapshotWorld(width=width, height=height),
            metadata=SnapshotMetadata(
                seed=self._rng.seed,
                config_version=self._config.config_version,
                tier_count=len(self._tiers),
                frame_interval=self._config.frame_interval,
                frames_per_animation_frame=self._config.fish.frames_per_animation_frame,
            ),
        )

    def _predator_positions(self, index: int) -> Optional[List[Vector2]]:
        if index + 1 >= len(self._tiers):
            return None
        return [Vector2(agent.position) for agent in self._tiers[index + 1] if agent.alive]

    def _prey_for(self, index: int) -> Optional[List[Agent]]:
        prey_index = index - self._config.prey_tier_offset
        if prey_index < 0:
            return None
        return self._tiers[prey_index]

    def _remove_dead(self, index: int) -> int:
        tier = self._tiers[index]
        before = len(tier)
        tier[:] = [agent for agent in tier if agent.alive]
        removed = before - len(tier)
        if removed and not tier:
            logger.info("Tier %d died out", index)
        return removed

    def _allocate_id(self) -> int:
        agent_id = self._next_id
        self._next_id += 1
        return agent_id

    def _bootstrap_population(self) -> None:
        config = self._config
        for index in range(config.tier_count):
            tier = [self._create_agent(index) for _ in range(config.fish.quantity)]
            self._tiers.append(tier)
        self._food = initial_food(self._rng, config.food, config.window_size)

    def _create_agent(self, tier: int) -> Agent:
        fish = self._config.fish
        scale = self._rng.next_range(*fish.scale_range)
        colors = fish.tier_colors
        return Agent(
            id=self._allocate_id(),
            tier=tier,
            position=random_position(self._rng, self._config.window_size),
            scale=scale,
            # Larger fish are slower and turn less sharply.
            max_speed=inverse_map_range(scale, fish.scale_range, fish.max_speed_range),
            max_steering_force=inverse_map_range(scale, fish.scale_range, fish.max_steering_force_range),
            dna=sample_dna(self._rng, self._config.evolution),
            color=colors[tier % len(colors)],
            heading=self._rng.next_angle(),
        )

    @staticmethod
    def _agent_snapshot(agent: Agent) -> Dict[str, Any]:
        return {
            "id": agent.id,
            "tier": agent.tier,
            "x": agent.position.x,
            "y": agent.position.y,
            "vx": agent.velocity.x,
            "vy": agent.velocity.y,
            "heading": agent.heading,
            "scale": agent.scale,
            "radius": agent.radius,
            "color": list(agent.color),
            "health": agent.health,
            "opacity": clamp_value(agent.health, 0.0, 1.0),
            "generation": agent.generation,
            "dna": agent.dna._asdict(),
        }

    @staticmethod
    def _food_snapshot(item: Food) -> Dict[str, Any]:
        return {
            "x": item.position.x,
            "y": item.position.y,
            "radius": item.radius,
            "color": list(item.color),
        }
