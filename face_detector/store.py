"""
Feature value storage.

Training only reads feature values; how they were produced and where they
live is the store's business. Examples keep a fixed order: every positive
first, then every negative.
"""

from abc import ABC, abstractmethod
from typing import Tuple

import numpy as np

from .errors import FeatureStoreError


class FeatureValueStore(ABC):

    @property
    @abstractmethod
    def feature_count(self) -> int:
        ...

    @property
    @abstractmethod
    def example_count(self) -> int:
        ...

    @abstractmethod
    def feature_row(self, feature_index: int) -> np.ndarray:
        """Values of one feature, indexed by example."""

    @abstractmethod
    def example_values(self, example_index: int) -> np.ndarray:
        """Every feature value of one example, indexed by feature."""

    def value_at(self, feature_index: int, example_index: int) -> int:
        return int(self.feature_row(feature_index)[example_index])

    def values_for_feature(self, feature_index: int) -> Tuple[np.ndarray, np.ndarray]:
        """(example indexes, values) of one feature, sorted by value then by example index."""
        row = self.feature_row(feature_index)
        order = np.argsort(row, kind='stable')
        return order, row[order]


class ArrayFeatureStore(FeatureValueStore):
    """Store backed by a (features, examples) matrix, possibly memory-mapped."""

    def __init__(self, values: np.ndarray):
        if values.ndim != 2:
            raise FeatureStoreError(f'Expected a (features, examples) matrix, got shape {values.shape}')
        self.values = values

    @classmethod
    def from_examples(cls, example_vectors) -> 'ArrayFeatureStore':
        vectors = list(example_vectors)
        if not vectors:
            raise FeatureStoreError('No example feature vectors given')
        return cls(np.stack(vectors, axis=1))

    @classmethod
    def load(cls, path: str) -> 'ArrayFeatureStore':
        try:
            return cls(np.load(path, mmap_mode='r'))
        except (OSError, ValueError) as e:
            raise FeatureStoreError(f'Cannot read feature values from {path}: {e}') from e

    def save(self, path: str) -> None:
        try:
            np.save(path, np.asarray(self.values))
        except OSError as e:
            raise FeatureStoreError(f'Cannot write feature values to {path}: {e}') from e

    @property
    def feature_count(self) -> int:
        return self.values.shape[0]

    @property
    def example_count(self) -> int:
        return self.values.shape[1]

    def feature_row(self, feature_index: int) -> np.ndarray:
        return np.asarray(self.values[feature_index])

    def example_values(self, example_index: int) -> np.ndarray:
        return np.asarray(self.values[:, example_index])


class ExampleSet:
    """A labeled pool: the first count_pos examples are faces, the rest are not."""

    def __init__(self, store: FeatureValueStore, count_pos: int, count_neg: int):
        if store.example_count != count_pos + count_neg:
            raise FeatureStoreError(f'Store holds {store.example_count} examples, '
                                    f'expected {count_pos} + {count_neg}')
        self.store = store
        self.count_pos = count_pos
        self.count_neg = count_neg
        self.labels = np.hstack([np.ones((count_pos,)), -np.ones((count_neg,))])
        self.labels.setflags(write=False)

    def __len__(self) -> int:
        return self.count_pos + self.count_neg

    def __repr__(self):
        return f'{self.__class__.__name__}(pos={self.count_pos}, neg={self.count_neg}, features={self.store.feature_count})'
