"""Integral image (summed-area table) of a grayscale patch."""

import numpy as np

from .errors import OutOfBoundsError


def to_integral(img: np.ndarray) -> np.ndarray:
    """Return the (H+1, W+1) table where [y, x] sums every pixel above and left of (x, y)."""
    integral = np.cumsum(np.cumsum(np.asarray(img, dtype=np.int64), axis=0), axis=1)
    return np.pad(integral, (1, 1), 'constant', constant_values=(0, 0))[:-1, :-1]


def rectangle_sum(integral: np.ndarray, x: int, y: int, width: int, height: int) -> int:
    """Sum of the pixels in [x, x+width) x [y, y+height), from four corner lookups."""
    rows, cols = integral.shape
    if x < 0 or y < 0 or width < 0 or height < 0 or x + width > cols - 1 or y + height > rows - 1:
        raise OutOfBoundsError(f'Rectangle(x={x}, y={y}, width={width}, height={height}) '
                               f'outside a {cols - 1}x{rows - 1} frame')
    return int(integral[y + height, x + width] - integral[y, x + width]
               - integral[y + height, x] + integral[y, x])
