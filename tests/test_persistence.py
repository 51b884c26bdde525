import os

import pytest

from face_detector.errors import ModelStoreError
from face_detector.persistence import ModelStore
from face_detector.stump import StumpRule

CASCADE = [
    [StumpRule(12, 3.5, 1, .125, .01)],
    [StumpRule(7, -20., -1, .25, 0.), StumpRule(40, 101.5, 1, .3125, .2)],
]
TWEAKS = [0., -.0375]


def test_round_trip(tmp_path):
    store = ModelStore(str(tmp_path / 'model'))
    store.write(CASCADE, TWEAKS)
    cascade, tweaks = store.read()
    assert cascade == CASCADE
    assert tweaks == TWEAKS
    assert all(isinstance(rule, StumpRule) for committee in cascade for rule in committee)


def test_layers_are_appended(tmp_path):
    store = ModelStore(str(tmp_path))
    store.write_layer(CASCADE[0], first=True)
    store.write_tweaks(CASCADE[:1], TWEAKS[:1])
    store.write_layer(CASCADE[1])
    store.write_tweaks(CASCADE, TWEAKS)
    assert store.read() == (CASCADE, TWEAKS)

    # a new training run starts the file over
    store.write_layer(CASCADE[1], first=True)
    store.write_tweaks(CASCADE[1:], TWEAKS[1:])
    assert store.read() == (CASCADE[1:], TWEAKS[1:])


def test_layer_without_tweak_is_ignored(tmp_path):
    store = ModelStore(str(tmp_path))
    store.write_layer(CASCADE[0], first=True)
    store.write_tweaks(CASCADE[:1], TWEAKS[:1])
    # interrupted before the tweaks were rewritten
    store.write_layer(CASCADE[1])
    assert store.read() == (CASCADE[:1], TWEAKS[:1])
    assert not [f for f in os.listdir(str(tmp_path)) if f.endswith('.tmp')]


def test_missing_model(tmp_path):
    with pytest.raises(ModelStoreError):
        ModelStore(str(tmp_path / 'nowhere')).read()


def test_mismatched_layer_sizes(tmp_path):
    store = ModelStore(str(tmp_path))
    store.write_layer(CASCADE[1], first=True)
    store.write_tweaks(CASCADE[:1], TWEAKS[:1])
    with pytest.raises(ModelStoreError):
        store.read()
