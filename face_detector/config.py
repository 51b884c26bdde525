'''
    Training constants and the per-run configuration.

    Values can be overridden from a JSON file whose keys are the field
    names of TrainingConfig.
'''

import json
import os
from dataclasses import asdict, dataclass, fields
from typing import Optional

# We are given images of 19x19 size
WINDOW_SIZE = 19

# Tweak search
TWEAK_UNIT = 1e-2       # initial tweak step
MIN_TWEAK = 1e-5        # the step cannot go lower than this
TWEAK_LIMIT = 1.1       # |tweak| must stay below this
FINAL_DETECTION_RATE = 0.99

# Cascade stops once the accumulated false positive rate reaches this
GOAL = 1e-7

# Below this dispersion all pixels have (nearly) the same color
FLAT_IMAGE_THRESHOLD = 1.


@dataclass
class TrainingConfig:
    width: int = WINDOW_SIZE
    height: int = WINDOW_SIZE
    workers: int = -1

    initial_positive_weight: float = .5
    overall_detection_rate: float = .80
    overall_false_positive_rate: float = 1e-6
    layer_detection_rate: float = .995
    layer_false_positive_rate: float = .5
    goal: float = GOAL

    tweak_unit: float = TWEAK_UNIT
    min_tweak: float = MIN_TWEAK
    tweak_limit: float = TWEAK_LIMIT
    final_detection_rate: float = FINAL_DETECTION_RATE
    flat_image_threshold: float = FLAT_IMAGE_THRESHOLD

    # Committee size guide: min(base + round * step, cap)
    committee_base: int = 20
    committee_step: int = 10
    committee_cap: int = 200
    extra_rounds: int = 20

    def committee_size_guide(self, round_index: int) -> int:
        return min(self.committee_base + round_index * self.committee_step, self.committee_cap)

    def to_dict(self) -> dict:
        return asdict(self)


def load_config(path: Optional[str] = None, **overrides) -> TrainingConfig:
    """Build a TrainingConfig from defaults, an optional JSON file, then keyword overrides."""
    values = {}
    if path is not None:
        if not os.path.exists(path):
            raise FileNotFoundError(path)
        with open(path, 'r', encoding='utf-8') as f:
            values.update(json.load(f))
    values.update({k: v for k, v in overrides.items() if v is not None})

    known = {f.name for f in fields(TrainingConfig)}
    unknown = sorted(set(values) - known)
    if unknown:
        raise ValueError(f'Unknown configuration keys: {", ".join(unknown)}')
    return TrainingConfig(**values)
