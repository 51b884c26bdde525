import os

import numpy as np
import pytest
from PIL import Image

from face_detector.dataset import (compute_image_features, list_examples, load_example_set, manifest_path,
                                   open_face)
from face_detector.errors import FeatureStoreError
from face_detector.features import count_all_features


def save(path, pixels):
    os.makedirs(os.path.dirname(path), exist_ok=True)
    Image.fromarray(np.asarray(pixels, dtype=np.uint8)).save(path)


def test_open_face_resizes(tmp_path):
    path = str(tmp_path / 'big.png')
    save(path, np.full((8, 8), 90))
    pixels = open_face(path, 4, 4)
    assert pixels.shape == (4, 4)
    assert pixels.dtype == np.int64
    assert (pixels == 90).all()


def test_unreadable_image(tmp_path):
    path = tmp_path / 'broken.png'
    path.write_bytes(b'not an image')
    with pytest.raises(FeatureStoreError):
        open_face(str(path), 4, 4)


def test_list_examples_is_sorted(tmp_path):
    for name in ('b', 'a', 'c'):
        save(str(tmp_path / 'faces' / f'{name}.png'), np.zeros((4, 4)))
    save(str(tmp_path / 'non-faces' / 'sub' / 'z.png'), np.zeros((4, 4)))
    faces, non_faces = list_examples(str(tmp_path))
    assert [os.path.basename(f) for f in faces] == ['a.png', 'b.png', 'c.png']
    assert len(non_faces) == 1


def test_missing_class(tmp_path):
    save(str(tmp_path / 'faces' / 'a.png'), np.zeros((4, 4)))
    with pytest.raises(FeatureStoreError):
        load_example_set(str(tmp_path), 4, 4)


def test_load_example_set(tmp_path):
    save(str(tmp_path / 'faces' / 'a.png'), np.arange(16).reshape(4, 4))
    save(str(tmp_path / 'non-faces' / 'b.png'), np.arange(16).reshape(4, 4)[::-1])
    save(str(tmp_path / 'non-faces' / 'c.png'), np.full((4, 4), 30))
    examples = load_example_set(str(tmp_path), 4, 4)
    assert (examples.count_pos, examples.count_neg) == (1, 2)
    assert examples.store.feature_count == count_all_features(4, 4)
    assert examples.store.example_count == 3

    again = load_example_set(str(tmp_path), 4, 4)
    assert np.array_equal(np.asarray(again.store.values), np.asarray(examples.store.values))


def test_cache_is_recomputed_when_an_image_changes(tmp_path):
    face = str(tmp_path / 'faces' / 'a.png')
    save(face, np.arange(16).reshape(4, 4))
    save(str(tmp_path / 'non-faces' / 'b.png'), np.full((4, 4), 30))
    first = np.array(load_example_set(str(tmp_path), 4, 4).store.example_values(0))
    assert os.path.exists(manifest_path(str(tmp_path), 4, 4))

    # same file names and count, different pixels
    save(face, np.arange(16).reshape(4, 4)[:, ::-1] * 3)
    st = os.stat(face)
    os.utime(face, ns=(st.st_atime_ns, st.st_mtime_ns + 5 * 10 ** 9))
    second = np.array(load_example_set(str(tmp_path), 4, 4).store.example_values(0))

    assert not np.array_equal(first, second)
    assert np.array_equal(second, compute_image_features(face, 4, 4))
