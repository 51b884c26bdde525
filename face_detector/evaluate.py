"""Running one example through a trained cascade."""

import logging
from typing import Optional, Sequence

import numpy as np

from .boosting import committee_vote
from .config import FLAT_IMAGE_THRESHOLD
from .errors import DataError
from .stump import StumpRule

logger = logging.getLogger(__name__)


def standard_deviation(feature_values: np.ndarray) -> float:
    values = np.asarray(feature_values, dtype=np.float64)
    n = float(len(values))
    total = values.sum()
    total_sq = np.square(values).sum()
    # TODO: this is not the population variance sumSq/n - (sum/n)**2; confirm which one is
    #  intended before changing it, since it decides which patches are rejected as flat.
    with np.errstate(invalid='ignore', divide='ignore'):
        return float(np.sqrt(total_sq / n ** 2 - (total / n ** 2) ** 2))


def check_not_flat(feature_values: np.ndarray, flat_threshold: float = FLAT_IMAGE_THRESHOLD) -> float:
    deviation = standard_deviation(feature_values)
    if not np.isfinite(deviation) or deviation < flat_threshold:
        raise DataError(f'Flat patch, standard deviation {deviation}')
    return deviation


def classify(cascade: Sequence[Sequence[StumpRule]], tweaks: Sequence[float], feature_values: np.ndarray,
             layer_limit: Optional[int] = None, flat_threshold: float = FLAT_IMAGE_THRESHOLD) -> bool:
    """
    True when every layer up to layer_limit accepts the example.

    Flat patches cannot be discriminated and are never faces. A None or
    negative layer_limit uses every layer; a limit past the last layer is
    the same as no limit.
    """
    try:
        check_not_flat(feature_values, flat_threshold)
    except DataError as e:
        logger.debug(f'Rejected as non-face: {e}')
        return False

    layer_count = len(tweaks)
    if layer_limit is not None and layer_limit >= 0:
        layer_count = min(layer_limit, layer_count)

    feature_values = np.asarray(feature_values)
    for layer in range(layer_count):
        committee = cascade[layer]
        member_values = feature_values[[rule.feature_index for rule in committee]][:, None]
        if committee_vote(committee, member_values, tweaks[layer])[0] < 0:
            return False
    return True
