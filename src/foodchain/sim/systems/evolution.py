from __future__ import annotations

from pygame.math import Vector2

from ...config import EvolutionConfig
from ..core.agent import Agent, Dna
from ..core.rng import DeterministicRng


def sample_dna(rng: DeterministicRng, evolution: EvolutionConfig) -> Dna:
    return Dna(
        prey_attraction=rng.next_range(*evolution.prey_attraction_range),
        predator_repulsion=rng.next_range(*evolution.predator_repulsion_range),
        prey_perception=rng.next_range(*evolution.prey_perception_range),
        predator_perception=rng.next_range(*evolution.predator_perception_range),
    )


def mutate_dna(dna: Dna, rng: DeterministicRng, mutation_rate: float, mutation_amount: float) -> Dna:
    """Offset each gene independently with probability ``mutation_rate``."""
    genes = []
    for gene in dna:
        if rng.next_float() < mutation_rate:
            gene += rng.next_range(-mutation_amount, mutation_amount)
        genes.append(gene)
    return Dna(*genes)


def clone(parent: Agent, agent_id: int, rng: DeterministicRng, evolution: EvolutionConfig) -> Agent:
    return Agent(
        id=agent_id,
        tier=parent.tier,
        position=Vector2(parent.position),
        scale=parent.scale,
        max_speed=parent.max_speed,
        max_steering_force=parent.max_steering_force,
        dna=mutate_dna(parent.dna, rng, evolution.mutation_rate, evolution.mutation_amount),
        color=parent.color,
        heading=rng.next_angle(),
        health=1.0,
        generation=parent.generation + 1,
    )
