from __future__ import annotations

from dataclasses import dataclass
from typing import List, MutableSequence, Optional, Sequence

from pygame.math import Vector2

from ..core.agent import Agent
from ..core.edible import Edible
from ..core.food import Food
from ..utils.math2d import distance


@dataclass(slots=True)
class FeedingResult:
    force: Vector2
    eaten: Optional[Edible] = None


@dataclass(slots=True)
class _Nearest:
    target: Edible
    owner: MutableSequence
    distance: float


def nearest_edible(
    agent: Agent,
    food: Sequence[Food],
    prey: Optional[Sequence[Agent]],
) -> Optional[_Nearest]:
    """Nearest food (any distance) or prey (within ``prey_perception``).

    ``agent`` itself is never a candidate even when ``prey`` is its own tier.
    Ties keep the first candidate found, food before prey.
    """
    best: Optional[_Nearest] = None
    position = agent.position
    for item in food:
        dist = distance(position, item.position)
        if best is None or dist < best.distance:
            best = _Nearest(item, food, dist)
    if prey:
        perception = agent.dna.prey_perception
        for other in prey:
            if other is agent:
                continue
            dist = distance(position, other.position)
            if dist > perception:
                continue
            if best is None or dist < best.distance:
                best = _Nearest(other, prey, dist)
    return best


def eat(
    agent: Agent,
    food: List[Food],
    prey: Optional[List[Agent]],
    eating_radius: float,
    heal_amount: float,
) -> FeedingResult:
    nearest = nearest_edible(agent, food, prey)
    if nearest is None:
        return FeedingResult(Vector2())

    target = nearest.target
    force = agent.seek(target.position) * agent.dna.prey_attraction
    if nearest.distance > target.radius + eating_radius:
        return FeedingResult(force)

    nearest.owner.remove(target)
    if isinstance(target, Agent):
        # Eaten prey is gone; anything still iterating over it must see it as dead.
        target.health = 0.0
    agent.heal(heal_amount)
    return FeedingResult(force, eaten=target)
