import json

import pytest

from face_detector.config import WINDOW_SIZE, TrainingConfig, load_config


def test_defaults():
    config = load_config()
    assert (config.width, config.height) == (WINDOW_SIZE, WINDOW_SIZE)
    assert config.layer_detection_rate == .995
    assert config.layer_false_positive_rate == .5


def test_committee_size_guide():
    config = TrainingConfig()
    assert config.committee_size_guide(0) == 20
    assert config.committee_size_guide(3) == 50
    assert config.committee_size_guide(18) == 200
    assert config.committee_size_guide(40) == 200


def test_json_and_overrides(tmp_path):
    path = tmp_path / 'config.json'
    path.write_text(json.dumps({'width': 24, 'height': 24, 'workers': 4}))
    config = load_config(str(path), workers=None, goal=1e-3)
    assert (config.width, config.height, config.workers) == (24, 24, 4)
    assert config.goal == 1e-3
    assert config.to_dict()['width'] == 24


def test_unknown_key(tmp_path):
    path = tmp_path / 'config.json'
    path.write_text(json.dumps({'window': 24}))
    with pytest.raises(ValueError):
        load_config(str(path))


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(str(tmp_path / 'missing.json'))
