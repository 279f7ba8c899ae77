from __future__ import annotations

from pygame.math import Vector2
from pytest import approx

from foodchain.sim.core.agent import Dna
from foodchain.sim.core.food import Food
from foodchain.sim.systems.metrics import StepCounters, create_metrics, summarize_tiers


def test_summarize_tiers_ignores_dead_agents(make_agent):
    first = make_agent(agent_id=0, health=0.5, dna=Dna(1.0, -1.0, 40.0, 60.0))
    second = make_agent(agent_id=1, health=1.0, dna=Dna(2.0, -2.0, 80.0, 100.0))
    second.generation = 3
    dead = make_agent(agent_id=2, health=0.0, dna=Dna(9.0, -9.0, 900.0, 900.0))
    dead.generation = 10

    summaries = summarize_tiers([[first, second, dead], []])

    assert [summary.population for summary in summaries] == [2, 0]
    top = summaries[0]
    assert top.average_health == approx(0.75)
    assert top.average_generation == approx(1.5)
    assert top.max_generation == 3
    assert top.genes == {
        "prey_attraction": approx(1.5),
        "predator_repulsion": approx(-1.5),
        "prey_perception": approx(60.0),
        "predator_perception": approx(80.0),
    }
    assert summaries[1].genes == {}
    assert summaries[1].average_health == 0.0


def test_create_metrics_counts_live_agents_per_tier(make_agent):
    counters = StepCounters()
    counters.record_meal(Food(Vector2(), 3.0))
    counters.record_meal(make_agent())
    counters.record_meal(None)
    tiers = [[make_agent(health=0.4), make_agent(health=0.0)], [make_agent(health=0.8)]]

    metrics = create_metrics(7, tiers, [Food(Vector2(), 3.0)], counters, 1.5)

    assert metrics.tick == 7
    assert metrics.tier_populations == [1, 1]
    assert metrics.population == 2
    assert metrics.eaten_food == 1
    assert metrics.eaten_prey == 1
    assert metrics.food == 1
    assert metrics.average_health == approx(0.6)
