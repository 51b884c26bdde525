import numpy as np
import pytest

from face_detector.features import (Feature, FeatureCatalog, FeaturePositions, FeatureType, Rectangle,
                                    count_all_features, count_features, evaluate, sub_rectangles)
from face_detector.integral import to_integral


def test_count_all_features():
    assert count_all_features(4, 4) == 136
    assert count_all_features(24, 24) == 162336
    assert count_all_features(500, 500) == 29979041500
    assert count_all_features(4, 3) == 8 + 6 + 4 + 2 + 9 + 3 + 6 + 2 + 3 + 1 + 4 + 3 + 2 + 1 + 6 + 4 + 2 + 6 + 2


@pytest.mark.parametrize('ftype,expected', [(FeatureType.A, 40), (FeatureType.B, 20), (FeatureType.C, 40),
                                            (FeatureType.D, 20), (FeatureType.E, 16)])
def test_enumeration_counts_4x4(ftype, expected):
    positions = FeaturePositions(ftype, 4, 4)
    assert len(list(positions)) == expected
    assert len(positions) == expected


def test_enumeration_sums_to_closed_form():
    for w, h in [(4, 4), (5, 3), (6, 7), (1, 1), (2, 5)]:
        total = sum(len(list(FeaturePositions(t, w, h))) for t in FeatureType)
        assert total == count_all_features(w, h)
        assert len(list(FeatureCatalog(w, h))) == total


def test_enumeration_is_restartable():
    positions = FeaturePositions(FeatureType.B, 6, 4)
    first = list(positions)
    assert list(positions) == first

    cursor = iter(positions)
    next(cursor)
    assert list(iter(positions)) == first


def test_enumeration_order():
    rects = list(FeaturePositions(FeatureType.A, 4, 4))
    assert rects[0] == Rectangle(0, 0, 2, 1)
    assert rects[1] == Rectangle(0, 1, 2, 1)
    assert rects[4] == Rectangle(1, 0, 2, 1)
    assert rects[-1] == Rectangle(0, 0, 4, 4)


@pytest.mark.parametrize('ftype', list(FeatureType))
def test_positions_fit_the_frame(ftype):
    for x, y, w, h in FeaturePositions(ftype, 7, 6):
        assert w % ftype.unit_width == 0 and h % ftype.unit_height == 0
        assert 0 <= x and x + w <= 7
        assert 0 <= y and y + h <= 6


def test_no_positions_when_unit_exceeds_frame():
    assert list(FeaturePositions(FeatureType.B, 2, 5)) == []
    assert count_features(FeatureType.B, 2, 5) == 0


def test_sub_rectangles_cover_the_feature():
    feature = Feature(FeatureType.E, Rectangle(1, 2, 4, 6))
    cells = sub_rectangles(feature)
    assert [sign for sign, _ in cells] == [1, -1, -1, 1]
    assert sum(w * h for _, (_, _, w, h) in cells) == 24


def test_evaluate_two_halves():
    image = np.zeros((2, 4), dtype=np.int64)
    image[:, :2] = 10
    integral = to_integral(image)
    assert evaluate(integral, Feature(FeatureType.A, Rectangle(0, 0, 4, 2))) == 40
    assert evaluate(integral, Feature(FeatureType.C, Rectangle(0, 0, 4, 2))) == 0
    assert evaluate(integral, Feature(FeatureType.B, Rectangle(0, 0, 3, 1))) == 10 - 10 + 0


def test_evaluate_vertical_thirds():
    image = np.arange(9, dtype=np.int64).reshape(3, 3)
    integral = to_integral(image)
    # rows sum to 3, 12, 21
    assert evaluate(integral, Feature(FeatureType.D, Rectangle(0, 0, 3, 3))) == 3 - 12 + 21
    assert evaluate(integral, Feature(FeatureType.C, Rectangle(0, 0, 3, 2))) == 12 - 3


def test_compute_all_matches_evaluate():
    image = np.random.RandomState(5).randint(0, 256, size=(5, 6))
    integral = to_integral(image)
    catalog = FeatureCatalog(6, 5)
    values = catalog.compute_all(integral)
    assert values.shape == (len(catalog),)
    assert list(values) == [evaluate(integral, f) for f in catalog]


def test_catalog_indexing():
    catalog = FeatureCatalog(4, 4)
    features = list(catalog)
    for i in (0, 39, 40, 59, 60, 100, 119, 120, 135):
        assert catalog[i] == features[i]
    with pytest.raises(IndexError):
        catalog[136]
