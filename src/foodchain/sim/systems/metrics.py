from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence

from ..core.agent import Agent, Dna
from ..core.food import Food
from ..types.metrics import TickMetrics, TierSummary


@dataclass(slots=True)
class StepCounters:
    births: int = 0
    deaths: int = 0
    eaten_food: int = 0
    eaten_prey: int = 0

    def record_meal(self, eaten: object) -> None:
        if isinstance(eaten, Food):
            self.eaten_food += 1
        elif isinstance(eaten, Agent):
            self.eaten_prey += 1


def create_metrics(
    tick: int,
    tiers: Sequence[Sequence[Agent]],
    food: Sequence[Food],
    counters: StepCounters,
    duration_ms: float,
) -> TickMetrics:
    tier_populations: List[int] = []
    health_sum = 0.0
    for tier in tiers:
        alive = 0
        for agent in tier:
            if agent.alive:
                alive += 1
                health_sum += agent.health
        tier_populations.append(alive)
    population = sum(tier_populations)
    return TickMetrics(
        tick=tick,
        population=population,
        tier_populations=tier_populations,
        births=counters.births,
        deaths=counters.deaths,
        eaten_food=counters.eaten_food,
        eaten_prey=counters.eaten_prey,
        food=len(food),
        average_health=0.0 if population == 0 else health_sum / population,
        tick_duration_ms=duration_ms,
    )


def summarize_tiers(tiers: Sequence[Sequence[Agent]]) -> List[TierSummary]:
    """Per-tier population, health, lineage depth and mean genes of the live agents."""
    summaries: List[TierSummary] = []
    for index, tier in enumerate(tiers):
        alive = [agent for agent in tier if agent.alive]
        summary = TierSummary(tier=index, population=len(alive))
        if alive:
            count = len(alive)
            summary.average_health = sum(agent.health for agent in alive) / count
            summary.average_generation = sum(agent.generation for agent in alive) / count
            summary.max_generation = max(agent.generation for agent in alive)
            summary.genes = {
                name: sum(getattr(agent.dna, name) for agent in alive) / count for name in Dna._fields
            }
        summaries.append(summary)
    return summaries
