from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List


@dataclass(slots=True)
class TickMetrics:
    tick: int
    population: int
    tier_populations: List[int] = field(default_factory=list)
    births: int = 0
    deaths: int = 0
    eaten_food: int = 0
    eaten_prey: int = 0
    food: int = 0
    average_health: float = 0.0
    tick_duration_ms: float = 0.0


@dataclass(slots=True)
class TierSummary:
    tier: int
    population: int
    average_health: float = 0.0
    average_generation: float = 0.0
    max_generation: int = 0
    genes: Dict[str, float] = field(default_factory=dict)
