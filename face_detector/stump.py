"""Decision stump: the weak learner of the boosted cascade."""

from typing import NamedTuple

import numpy as np

StumpRule = NamedTuple('StumpRule', [('feature_index', int), ('threshold', float), ('toggle', int),
                                     ('error', float), ('margin', float)])


def better_than(current: StumpRule, best: StumpRule) -> bool:
    """Lower weighted error wins; on an exact tie the wider margin wins."""
    if current.error < best.error:
        return True
    return current.error == best.error and current.margin > best.margin


def predict(rule: StumpRule, values: np.ndarray) -> np.ndarray:
    """+1 / -1 verdict of a stump on feature values."""
    return np.where(values > rule.threshold, 1, -1) * rule.toggle


def build_running_sums(ys: np.ndarray, ws: np.ndarray):
    # Weight of positives / negatives among the first j sorted examples, j = 0..N
    pos = np.where(ys > 0, ws, 0.)
    neg = np.where(ys > 0, 0., ws)
    s_plus = np.concatenate(([0.], np.cumsum(pos)))
    s_minus = np.concatenate(([0.], np.cumsum(neg)))
    return s_plus, s_minus


def candidate_thresholds(zs: np.ndarray) -> np.ndarray:
    # Split j puts the first j sorted values below the threshold
    n = len(zs)
    thresholds = np.empty(n + 1, dtype=np.float64)
    thresholds[0] = zs[0] - 1.
    thresholds[n] = zs[n - 1] + 1.
    thresholds[1:n] = (zs[:-1] + zs[1:]) / 2.
    return thresholds


def decision_stump(labels: np.ndarray, weights: np.ndarray, feature_index: int,
                   example_indexes: np.ndarray, values: np.ndarray,
                   total_weight_pos: float, total_weight_neg: float, min_weight: float) -> StumpRule:
    """
    Find the threshold and polarity of one feature with the lowest weighted error.

    labels/weights are indexed by example; example_indexes/values give the
    feature value of each example in any order. Toggle +1 calls an example a
    face when its value is above the threshold, toggle -1 when it is below.
    Thresholds are only tried between distinct values, and outside the range.
    """
    example_indexes = np.asarray(example_indexes)
    values = np.asarray(values, dtype=np.float64)

    # Sort according to value, ties by example index
    p = np.lexsort((example_indexes, values))
    zs = values[p]
    ys = labels[example_indexes[p]]
    ws = weights[example_indexes[p]]

    s_plus, s_minus = build_running_sums(ys, ws)
    valid = np.ones(len(zs) + 1, dtype=bool)
    valid[1:-1] = zs[1:] != zs[:-1]
    splits = np.flatnonzero(valid)

    # Toggle +1 misses positives below and negatives above; toggle -1 the opposite
    error_plus = s_plus[splits] + (total_weight_neg - s_minus[splits])
    error_minus = s_minus[splits] + (total_weight_pos - s_plus[splits])
    errors = np.maximum(np.concatenate((error_plus, error_minus)), 0.)
    # Anything lighter than the lightest example is rounding noise
    errors[errors < min_weight / 2.] = 0.

    best = int(np.argmin(errors))
    runner_up = np.partition(errors, 1)[1] if len(errors) > 1 else errors[best]
    split = splits[best % len(splits)]
    toggle = 1 if best < len(splits) else -1

    return StumpRule(feature_index=feature_index,
                     threshold=float(candidate_thresholds(zs)[split]),
                     toggle=toggle,
                     error=float(errors[best]),
                     margin=float(abs(runner_up - errors[best])))
