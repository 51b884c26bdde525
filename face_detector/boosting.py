"""
AdaBoost over decision stumps.

One round searches every feature in parallel for its best stump, keeps the
global best, and reweights the training examples the committee gets wrong.
The weight distribution travels between rounds as an explicit TrainingState.
"""

import logging
from datetime import datetime
from typing import List, NamedTuple, Optional, Sequence, Tuple

import numpy as np
from joblib import Parallel, delayed

from .errors import BoostingInvariantViolation
from .store import ExampleSet, FeatureValueStore
from .stump import StumpRule, better_than, decision_stump

logger = logging.getLogger(__name__)

# Weight multiplier for misclassified examples when the best stump is perfect
MAX_WEIGHT_UPDATE = 1e200

TrainingState = NamedTuple('TrainingState', [('weights', np.ndarray),
                                             ('total_weight_pos', float), ('total_weight_neg', float),
                                             ('min_weight', float), ('max_weight', float)])


def normalize_weights(w: np.ndarray) -> np.ndarray:
    return w / w.sum()


def make_state(weights: np.ndarray, labels: np.ndarray) -> TrainingState:
    weights = np.array(weights, dtype=np.float64)
    weights.setflags(write=False)
    total_weight_pos = float(weights[labels > 0].sum())
    return TrainingState(weights=weights,
                         total_weight_pos=total_weight_pos,
                         total_weight_neg=1. - total_weight_pos,
                         min_weight=float(weights.min()),
                         max_weight=float(weights.max()))


def initial_state(examples: ExampleSet, positive_weight: float = .5) -> TrainingState:
    """Positives share positive_weight, negatives share the rest."""
    ws = np.zeros_like(examples.labels)
    ws[examples.labels > 0] = positive_weight / examples.count_pos
    ws[examples.labels < 0] = (1. - positive_weight) / examples.count_neg
    return make_state(ws, examples.labels)


def check_committee(committee: Sequence[StumpRule], round_index: int = -1) -> None:
    for member, rule in enumerate(committee):
        if rule.error == 0 and member != 0:
            raise BoostingInvariantViolation('Perfect stump found after the first committee member',
                                             rule.feature_index, round_index, rule.error)


def vote_weights(committee: Sequence[StumpRule]) -> np.ndarray:
    errors = np.array([rule.error for rule in committee], dtype=np.float64)
    for rule, error in zip(committee, errors):
        if not np.isfinite(error):
            raise BoostingInvariantViolation('Committee member with a non-finite error', rule.feature_index,
                                             error=float(error))
    return np.log(1. / errors - 1.)


def committee_vote(committee: Sequence[StumpRule], member_values: np.ndarray, tweak: float = 0.) -> np.ndarray:
    """
    Weighted vote of a committee.

    member_values[k] holds the values of committee[k]'s feature for each
    example. Each member votes +1/-1 plus the tweak, weighted by
    log(1/error - 1). A perfect first member decides alone.
    """
    check_committee(committee)
    thresholds = np.array([rule.threshold for rule in committee])[:, None]
    toggles = np.array([rule.toggle for rule in committee])[:, None]
    verdicts = np.where(member_values > thresholds, 1., -1.) * toggles + tweak
    if committee[0].error == 0:
        return verdicts[0]
    return vote_weights(committee) @ verdicts


def predict_label(committee: Sequence[StumpRule], store: FeatureValueStore, tweak: float = 0.) -> np.ndarray:
    """
    +1 / -1 verdict of a committee for every example of a store.

    A vote of exactly 0 is a rejection here, while classify() accepts it.
    At tweak -1 a unanimous committee scores 0, so the final tweak search
    only starts accepting one step later.
    """
    member_values = np.vstack([store.feature_row(rule.feature_index) for rule in committee])
    return np.where(committee_vote(committee, member_values, tweak) > 0, 1, -1)


def _feature_stump(examples: ExampleSet, state: TrainingState, feature_index: int) -> StumpRule:
    example_indexes, values = examples.store.values_for_feature(feature_index)
    return decision_stump(examples.labels, state.weights, feature_index, example_indexes, values,
                          state.total_weight_pos, state.total_weight_neg, state.min_weight)


def best_stump(examples: ExampleSet, state: TrainingState,
               parallel: Optional[Parallel] = None, round_index: int = -1) -> StumpRule:
    """Most discriminative stump over all features under the current weights."""
    if parallel is None:
        parallel = Parallel(n_jobs=-1, backend='threading')

    store = examples.store
    start_time = datetime.now()
    results = parallel(delayed(_feature_stump)(examples, state, i) for i in range(store.feature_count))

    best = results[0]
    for current in results[1:]:
        if better_than(current, best):
            best = current

    if best.error >= .5:
        raise BoostingInvariantViolation('No stump beats random guessing', best.feature_index, round_index, best.error)

    logger.debug(f'Found best stump in {(datetime.now() - start_time).total_seconds():.2f}s: '
                 f'(feature: {best.feature_index}, threshold: {best.threshold}, margin: {best.margin}, '
                 f'error: {best.error:.5f}, toggle: {best.toggle})')
    return best


def reweight(state: TrainingState, labels: np.ndarray, predictions: np.ndarray, error: float) -> TrainingState:
    misclassified = labels * predictions < 0
    if not misclassified.any():
        return state

    ws = np.array(state.weights)
    ws[misclassified] *= MAX_WEIGHT_UPDATE if error == 0 else (1. / error) - 1.
    return make_state(normalize_weights(ws), labels)


def adaboost_round(committee: List[StumpRule], examples: ExampleSet, state: TrainingState,
                   parallel: Optional[Parallel] = None,
                   round_index: int = -1) -> Tuple[List[StumpRule], TrainingState]:
    """Add the best stump to the committee and reweight; returns the new committee and state."""
    best = best_stump(examples, state, parallel, round_index)
    if best.error == 0 and committee:
        raise BoostingInvariantViolation('Perfect stump found after the first committee member',
                                         best.feature_index, round_index, best.error)
    committee = committee + [best]

    predictions = predict_label(committee, examples.store)
    return committee, reweight(state, examples.labels, predictions, best.error)
