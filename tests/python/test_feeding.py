from __future__ import annotations

from pygame.math import Vector2
from pytest import approx

from foodchain.sim.core.agent import Dna
from foodchain.sim.core.food import Food
from foodchain.sim.systems.feeding import eat, nearest_edible


def test_agent_on_top_of_food_eats_it_and_heals(make_agent):
    agent = make_agent(position=(100.0, 100.0), health=0.5)
    food = [Food(position=Vector2(100.0, 100.0), radius=5.0)]

    result = eat(agent, food, None, eating_radius=2.0, heal_amount=0.01)

    assert food == []
    assert result.eaten is not None
    assert agent.health == approx(0.51)


def test_eating_at_full_health_stays_capped(make_agent):
    agent = make_agent(position=(100.0, 100.0), health=1.0)
    food = [Food(position=Vector2(100.0, 100.0), radius=5.0)]

    eat(agent, food, None, eating_radius=2.0, heal_amount=0.01)

    assert agent.health == 1.0


def test_consumption_threshold_is_target_radius_plus_eating_radius(make_agent):
    agent = make_agent(position=(0.0, 0.0))
    just_inside = [Food(position=Vector2(7.0, 0.0), radius=5.0)]
    just_outside = [Food(position=Vector2(7.01, 0.0), radius=5.0)]

    eat(agent, just_inside, None, eating_radius=2.0, heal_amount=0.01)
    result = eat(agent, just_outside, None, eating_radius=2.0, heal_amount=0.01)

    assert just_inside == []
    assert len(just_outside) == 1
    assert result.eaten is None
    assert result.force.x > 0.0


def test_out_of_range_food_is_sought_not_eaten(make_agent):
    agent = make_agent(position=(0.0, 0.0), max_steering_force=0.5, dna=Dna(2.0, -1.0, 50.0, 50.0))
    food = [Food(position=Vector2(100.0, 0.0), radius=3.0)]

    result = eat(agent, food, None, eating_radius=2.0, heal_amount=0.01)

    assert len(food) == 1
    assert result.eaten is None
    assert result.force.x == approx(1.0)
    assert result.force.y == approx(0.0)


def test_at_most_one_entity_is_consumed_per_call(make_agent):
    agent = make_agent(position=(0.0, 0.0))
    nearer = Food(position=Vector2(1.0, 0.0), radius=5.0)
    farther = Food(position=Vector2(2.0, 0.0), radius=5.0)
    food = [farther, nearer]

    result = eat(agent, food, None, eating_radius=2.0, heal_amount=0.01)

    assert result.eaten is nearer
    assert food == [farther]


def test_nothing_to_eat_gives_zero_force(make_agent):
    agent = make_agent(velocity=(1.0, 0.0))

    result = eat(agent, [], [], eating_radius=2.0, heal_amount=0.01)

    assert result.force == Vector2()
    assert result.eaten is None


def test_food_is_perceived_at_any_distance(make_agent):
    agent = make_agent(position=(0.0, 0.0), dna=Dna(1.0, -1.0, 10.0, 10.0))
    far_food = Food(position=Vector2(5000.0, 0.0), radius=3.0)

    nearest = nearest_edible(agent, [far_food], [])

    assert nearest is not None
    assert nearest.target is far_food


def test_prey_outside_perception_is_ignored(make_agent):
    agent = make_agent(position=(0.0, 0.0), dna=Dna(1.0, -1.0, 50.0, 50.0))
    prey = [make_agent(position=(60.0, 0.0), agent_id=1)]
    food = [Food(position=Vector2(100.0, 0.0), radius=3.0)]

    nearest = nearest_edible(agent, food, prey)

    assert nearest is not None
    assert nearest.target is food[0]


def test_prey_outside_perception_and_no_food_gives_zero_force(make_agent):
    agent = make_agent(position=(0.0, 0.0), dna=Dna(1.0, -1.0, 50.0, 50.0))
    prey = [make_agent(position=(60.0, 0.0), agent_id=1)]

    result = eat(agent, [], prey, eating_radius=2.0, heal_amount=0.01)

    assert result.force == Vector2()
    assert len(prey) == 1


def test_nearer_prey_wins_over_food(make_agent):
    agent = make_agent(position=(0.0, 0.0), dna=Dna(1.0, -1.0, 50.0, 50.0))
    prey_agent = make_agent(position=(30.0, 0.0), agent_id=1)
    food = [Food(position=Vector2(100.0, 0.0), radius=3.0)]

    nearest = nearest_edible(agent, food, [prey_agent])

    assert nearest is not None
    assert nearest.target is prey_agent


def test_eaten_prey_is_removed_from_its_tier_and_marked_dead(make_agent):
    agent = make_agent(position=(0.0, 0.0), health=0.5)
    prey_agent = make_agent(position=(5.0, 0.0), agent_id=1)
    tier = [prey_agent]
    food = [Food(position=Vector2(300.0, 0.0), radius=3.0)]

    result = eat(agent, food, tier, eating_radius=2.0, heal_amount=0.01)

    assert result.eaten is prey_agent
    assert tier == []
    assert len(food) == 1
    assert not prey_agent.alive
    assert agent.health == approx(0.51)


def test_agent_never_targets_itself(make_agent):
    agent = make_agent(position=(0.0, 0.0))
    tier = [agent]

    result = eat(agent, [], tier, eating_radius=2.0, heal_amount=0.01)

    assert tier == [agent]
    assert result.force == Vector2()
    assert agent.alive


def test_same_tier_neighbour_is_eaten_not_self(make_agent):
    agent = make_agent(position=(0.0, 0.0))
    neighbour = make_agent(position=(3.0, 0.0), agent_id=1)
    tier = [agent, neighbour]

    result = eat(agent, [], tier, eating_radius=2.0, heal_amount=0.01)

    assert result.eaten is neighbour
    assert tier == [agent]


def test_equal_distance_keeps_first_found(make_agent):
    agent = make_agent(position=(0.0, 0.0))
    first = Food(position=Vector2(10.0, 0.0), radius=1.0)
    second = Food(position=Vector2(0.0, 10.0), radius=1.0)
    prey_agent = make_agent(position=(-10.0, 0.0), agent_id=1)

    nearest = nearest_edible(agent, [first, second], [prey_agent])

    assert nearest is not None
    assert nearest.target is first
