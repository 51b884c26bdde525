import numpy as np
import pytest

from face_detector.errors import OutOfBoundsError
from face_detector.integral import rectangle_sum, to_integral


@pytest.fixture
def image():
    return np.random.RandomState(3).randint(0, 256, size=(4, 5))


def test_integral_shape_and_borders(image):
    integral = to_integral(image)
    assert integral.shape == (5, 6)
    assert not integral[0, :].any()
    assert not integral[:, 0].any()
    assert integral[-1, -1] == image.sum()


def test_rectangle_sum_matches_pixels(image):
    integral = to_integral(image)
    for x in range(5):
        for y in range(4):
            for w in range(5 - x + 1):
                for h in range(4 - y + 1):
                    assert rectangle_sum(integral, x, y, w, h) == image[y:y + h, x:x + w].sum()


@pytest.mark.parametrize('rect', [(0, 0, 6, 1), (0, 0, 1, 5), (4, 3, 2, 1), (-1, 0, 1, 1), (0, 0, -1, 2)])
def test_rectangle_outside_frame(image, rect):
    with pytest.raises(OutOfBoundsError):
        rectangle_sum(to_integral(image), *rect)


def test_out_of_bounds_is_an_index_error(image):
    with pytest.raises(IndexError):
        rectangle_sum(to_integral(image), 5, 4, 1, 1)
