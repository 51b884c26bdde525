"""
Haar-like feature catalog.

Five shapes are placed at every position and at every size multiple of their
unit cell inside a fixed frame. The enumeration order (type A..E, then width,
height, x, y) defines the feature index used everywhere else, so it must not
change between runs.
"""

from enum import Enum
from functools import lru_cache
from itertools import islice
from typing import Iterator, List, NamedTuple, Tuple

import numpy as np

from .integral import rectangle_sum

Rectangle = NamedTuple('Rectangle', [('x', int), ('y', int), ('width', int), ('height', int)])


class FeatureType(Enum):
    # value = unit cell (columns, rows)
    A = (2, 1)  # two horizontal halves
    B = (3, 1)  # three horizontal thirds
    C = (1, 2)  # two vertical halves
    D = (1, 3)  # three vertical thirds
    E = (2, 2)  # 2x2 quadrants

    @property
    def unit_width(self) -> int:
        return self.value[0]

    @property
    def unit_height(self) -> int:
        return self.value[1]


# Sign of each cell, row by row
_SIGNS = {
    FeatureType.A: (1, -1),
    FeatureType.B: (1, -1, 1),
    FeatureType.C: (-1, 1),
    FeatureType.D: (1, -1, 1),
    FeatureType.E: (1, -1, -1, 1),
}

Feature = NamedTuple('Feature', [('type', FeatureType), ('rectangle', Rectangle)])


def sub_rectangles(feature: Feature) -> List[Tuple[int, Rectangle]]:
    """Split a feature into its signed cells."""
    ftype, r = feature
    w = r.width // ftype.unit_width
    h = r.height // ftype.unit_height
    cells = [Rectangle(r.x + i * w, r.y + j * h, w, h)
             for j in range(ftype.unit_height)
             for i in range(ftype.unit_width)]
    return list(zip(_SIGNS[ftype], cells))


def evaluate(integral: np.ndarray, feature: Feature) -> int:
    """Value of a feature on an integral image: signed sum of its cells."""
    return sum(sign * rectangle_sum(integral, *cell) for sign, cell in sub_rectangles(feature))


class PositionCursor:
    """Explicit enumeration state over the placements of one feature type."""

    def __init__(self, unit_width: int, unit_height: int, frame_width: int, frame_height: int):
        self.unit_width = unit_width
        self.unit_height = unit_height
        self.frame_width = frame_width
        self.frame_height = frame_height
        self.width = unit_width
        self.height = unit_height
        self.x = 0
        self.y = 0

    def __iter__(self) -> 'PositionCursor':
        return self

    def __next__(self) -> Rectangle:
        if self.width > self.frame_width or self.height > self.frame_height:
            raise StopIteration
        rectangle = Rectangle(self.x, self.y, self.width, self.height)
        self._advance()
        return rectangle

    def _advance(self) -> None:
        self.y += 1
        if self.y <= self.frame_height - self.height:
            return
        self.y = 0
        self.x += 1
        if self.x <= self.frame_width - self.width:
            return
        self.x = 0
        self.height += self.unit_height
        if self.height <= self.frame_height:
            return
        self.height = self.unit_height
        self.width += self.unit_width


class FeaturePositions:
    """Every valid rectangle of one feature type; each iteration starts over."""

    def __init__(self, feature_type: FeatureType, frame_width: int, frame_height: int):
        self.feature_type = feature_type
        self.frame_width = frame_width
        self.frame_height = frame_height

    def __iter__(self) -> PositionCursor:
        return PositionCursor(self.feature_type.unit_width, self.feature_type.unit_height,
                              self.frame_width, self.frame_height)

    def __len__(self) -> int:
        return count_features(self.feature_type, self.frame_width, self.frame_height)


def _placements(unit: int, frame: int) -> int:
    # sum over sizes s = unit, 2*unit, ... <= frame of (frame - s + 1)
    k = frame // unit
    return k * (frame + 1) - unit * k * (k + 1) // 2


def count_features(feature_type: FeatureType, frame_width: int, frame_height: int) -> int:
    return (_placements(feature_type.unit_width, frame_width)
            * _placements(feature_type.unit_height, frame_height))


def count_all_features(frame_width: int, frame_height: int) -> int:
    return sum(count_features(t, frame_width, frame_height) for t in FeatureType)


class FeatureCatalog:
    """All features of a frame, in index order."""

    def __init__(self, frame_width: int, frame_height: int):
        self.frame_width = frame_width
        self.frame_height = frame_height

    def __iter__(self) -> Iterator[Feature]:
        for ftype in FeatureType:
            for rectangle in FeaturePositions(ftype, self.frame_width, self.frame_height):
                yield Feature(ftype, rectangle)

    def __len__(self) -> int:
        return count_all_features(self.frame_width, self.frame_height)

    def __getitem__(self, index: int) -> Feature:
        if not 0 <= index < len(self):
            raise IndexError(f'feature index {index} out of range')
        for ftype in FeatureType:
            count = count_features(ftype, self.frame_width, self.frame_height)
            if index < count:
                positions = FeaturePositions(ftype, self.frame_width, self.frame_height)
                return Feature(ftype, next(islice(positions, index, None)))
            index -= count
        raise IndexError(index)

    def compute_all(self, integral: np.ndarray) -> np.ndarray:
        """Value of every feature on one integral image, in index order."""
        coords_y, coords_x, coeffs = _corner_table(self.frame_width, self.frame_height)
        return np.sum(np.multiply(integral[coords_y, coords_x], coeffs), axis=1)


@lru_cache(maxsize=4)
def _corner_table(frame_width: int, frame_height: int) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    # 4 cells x 4 corners at most; unused slots have a zero coefficient
    n = count_all_features(frame_width, frame_height)
    coords_x = np.zeros((n, 16), dtype=np.intp)
    coords_y = np.zeros((n, 16), dtype=np.intp)
    coeffs = np.zeros((n, 16), dtype=np.int64)
    for i, feature in enumerate(FeatureCatalog(frame_width, frame_height)):
        k = 0
        for sign, (x, y, w, h) in sub_rectangles(feature):
            coords_x[i, k:k + 4] = [x, x + w, x,     x + w]
            coords_y[i, k:k + 4] = [y, y,     y + h, y + h]
            coeffs[i, k:k + 4]   = [sign, -sign, -sign, sign]
            k += 4
    for table in (coords_x, coords_y, coeffs):
        table.setflags(write=False)
    return coords_y, coords_x, coeffs
