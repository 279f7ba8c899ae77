from __future__ import annotations

from typing import Optional, Sequence

from pygame.math import Vector2

from ..core.agent import Agent
from ..utils.math2d import distance


def nearest_predator(agent: Agent, predators: Sequence[Vector2]) -> tuple[Optional[Vector2], float]:
    nearest: Optional[Vector2] = None
    record = 0.0
    for position in predators:
        dist = distance(agent.position, position)
        if nearest is None or dist < record:
            nearest = position
            record = dist
    return nearest, record


def avoid(agent: Agent, predators: Optional[Sequence[Vector2]]) -> Vector2:
    """Steering away from the nearest perceived predator.

    ``predators`` is ``None`` for the apex tier. The repulsion comes from the
    sign of ``dna.predator_repulsion``; a positive weight would attract.
    """
    if not predators:
        return Vector2()
    nearest, record = nearest_predator(agent, predators)
    if nearest is None or record > agent.dna.predator_perception:
        return Vector2()
    return agent.seek(nearest) * agent.dna.predator_repulsion
