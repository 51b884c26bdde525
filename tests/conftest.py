import numpy as np
import pytest

from face_detector.config import TrainingConfig
from face_detector.store import ArrayFeatureStore, ExampleSet


def make_example_set(values, count_pos: int) -> ExampleSet:
    values = np.asarray(values, dtype=np.int64)
    return ExampleSet(ArrayFeatureStore(values), count_pos, values.shape[1] - count_pos)


@pytest.fixture
def separable() -> ExampleSet:
    # Feature 0 alone tells faces from non-faces
    rng = np.random.RandomState(0)
    pos, neg = 8, 10
    values = rng.randint(-50, 50, size=(6, pos + neg))
    values[0, :pos] = rng.randint(100, 200, size=pos)
    values[0, pos:] = rng.randint(-200, -100, size=neg)
    return make_example_set(values, pos)


@pytest.fixture
def noisy() -> ExampleSet:
    # Three informative but overlapping features, five noise features
    rng = np.random.RandomState(1)
    pos, neg = 30, 40
    labels = np.hstack([np.ones(pos), -np.ones(neg)])
    values = rng.randint(-100, 100, size=(8, pos + neg))
    values[:3] += (labels * rng.randint(10, 60, size=(3, 1))).astype(np.int64)
    return make_example_set(values, pos)


@pytest.fixture
def config() -> TrainingConfig:
    return TrainingConfig(width=4, height=4, workers=2)
