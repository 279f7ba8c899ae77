import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[2]
src_root = ROOT / "src"
if str(src_root) not in sys.path:
    sys.path.insert(0, str(src_root))

from pygame.math import Vector2  # noqa: E402

from foodchain.sim.core.agent import Agent, Dna  # noqa: E402
from foodchain.sim.core.rng import DeterministicRng  # noqa: E402


def pytest_addoption(parser: pytest.Parser) -> None:
    parser.addoption(
        "--run-long",
        action="store_true",
        default=False,
        help="run long multi-thousand frame simulations",
    )


def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line(
        "markers",
        "long_run: marks tests that run the ecosystem for thousands of frames",
    )


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    if config.getoption("--run-long"):
        return

    skip_marker = pytest.mark.skip(reason="Long simulation run (use --run-long)")

    for item in items:
        if "long_run" in item.keywords:
            item.add_marker(skip_marker)


class ScriptedRng(DeterministicRng):
    """Replays queued values before falling back to the seeded stream."""

    def __init__(self, floats=(), ranges=(), seed: int = 0):
        super().__init__(seed)
        self._floats = list(floats)
        self._ranges = list(ranges)

    def next_float(self) -> float:
        if self._floats:
            return self._floats.pop(0)
        return super().next_float()

    def next_range(self, low: float, high: float) -> float:
        if self._ranges:
            return self._ranges.pop(0)
        return super().next_range(low, high)


@pytest.fixture
def scripted_rng():
    return ScriptedRng


@pytest.fixture
def make_agent():
    def _make_agent(
        position=(0.0, 0.0),
        velocity=(0.0, 0.0),
        max_speed: float = 4.0,
        max_steering_force: float = 0.5,
        dna: Dna = Dna(1.0, -1.0, 50.0, 50.0),
        health: float = 1.0,
        scale: float = 1.0,
        agent_id: int = 0,
        tier: int = 0,
    ) -> Agent:
        return Agent(
            id=agent_id,
            tier=tier,
            position=Vector2(position),
            velocity=Vector2(velocity),
            scale=scale,
            max_speed=max_speed,
            max_steering_force=max_steering_force,
            dna=dna,
            health=health,
        )

    return _make_agent
