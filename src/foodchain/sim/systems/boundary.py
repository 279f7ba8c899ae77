from __future__ import annotations

from pygame.math import Vector2

from ..core.agent import Agent


def is_out_of_bounds(position: Vector2, window_size: tuple[float, float], padding: float) -> bool:
    width, height = window_size
    return (
        position.x < padding
        or position.x > width - padding
        or position.y < padding
        or position.y > height - padding
    )


def contain(agent: Agent, window_size: tuple[float, float], padding: float) -> Vector2:
    if not is_out_of_bounds(agent.position, window_size, padding):
        return Vector2()
    center = Vector2(window_size[0] * 0.5, window_size[1] * 0.5)
    return agent.seek(center)
