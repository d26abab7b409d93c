"""
Pytest configuration for the load balancer simulator.
Puts the project root on the path so the flat modules import directly.
"""
import sys
from pathlib import Path

import pytest

root = Path(__file__).parent.parent
if str(root) not in sys.path:
    sys.path.insert(0, str(root))


class FixedDraw:
    """Stand-in generator whose uniform draw is a fixed fraction of the range."""

    def __init__(self, fraction):
        self.fraction = fraction

    def uniform(self, low, high):
        return low + (high - low) * self.fraction


@pytest.fixture
def fixed_draw():
    return FixedDraw


@pytest.fixture
def scenario_tasks():
    return [2.0, 3.0, 1.0, 4.0]
