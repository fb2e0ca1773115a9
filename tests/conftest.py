import random

import numpy as np
import pytest

from smoke import SmokePool


class FakeModel:
    """Stands in for GestureModel: fixed score, counts predict calls."""

    def __init__(self, prob=0.0, ready=True):
        self.prob = prob
        self.ready = ready
        self.calls = 0
        self.last_vector = None

    def predict(self, vector):
        self.calls += 1
        self.last_vector = vector
        return self.prob


def random_hand(rng, scale=0.1):
    # plausible normalized-image hand: wrist near the middle, joints spread around it
    wrist = rng.uniform(0.3, 0.7, size=3)
    wrist[2] = 0.0
    offsets = rng.normal(0.0, scale, size=(21, 3))
    offsets[0] = 0.0
    return wrist + offsets


def fake_frames(folder, count=5):
    return [np.full((10, 10, 4), 255, dtype=np.uint8) for _ in range(count)]


@pytest.fixture
def rng():
    return np.random.default_rng(7)


@pytest.fixture
def hands(rng):
    return random_hand(rng), random_hand(rng)


@pytest.fixture
def pool():
    return SmokePool(rng=random.Random(3), loader=fake_frames)
