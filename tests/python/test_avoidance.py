from __future__ import annotations

from pygame.math import Vector2
from pytest import approx

from foodchain.sim.core.agent import Dna
from foodchain.sim.systems.avoidance import avoid, nearest_predator


def test_apex_tier_without_predators_gets_zero(make_agent):
    agent = make_agent()

    assert avoid(agent, None) == Vector2()
    assert avoid(agent, []) == Vector2()


def test_predator_beyond_perception_is_ignored(make_agent):
    agent = make_agent(position=(0.0, 0.0), dna=Dna(1.0, -1.0, 50.0, 40.0))

    assert avoid(agent, [Vector2(40.5, 0.0)]) == Vector2()


def test_predator_at_perception_edge_is_avoided(make_agent):
    agent = make_agent(position=(0.0, 0.0), dna=Dna(1.0, -1.0, 50.0, 40.0))

    force = avoid(agent, [Vector2(40.0, 0.0)])

    assert force.x < 0.0


def test_negative_weight_steers_away_from_nearest_predator(make_agent):
    agent = make_agent(position=(0.0, 0.0), max_steering_force=0.5, dna=Dna(1.0, -2.0, 50.0, 100.0))
    predators = [Vector2(90.0, 0.0), Vector2(0.0, 20.0)]

    force = avoid(agent, predators)

    assert force.x == approx(0.0)
    assert force.y == approx(-1.0)


def test_nearest_predator_picks_closest():
    agent_position = Vector2(0.0, 0.0)
    predators = [Vector2(30.0, 0.0), Vector2(10.0, 10.0), Vector2(-50.0, 0.0)]

    class _Probe:
        position = agent_position

    nearest, record = nearest_predator(_Probe(), predators)

    assert nearest is predators[1]
    assert record == approx(200 ** 0.5)
