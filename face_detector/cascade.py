"""
Attentional cascade layer training.

A layer grows its committee one AdaBoost round at a time. After every round
a bias ("tweak") added to each member's vote is searched so that the new
layer reaches its detection and false positive targets on the examples that
survive the earlier layers. Detection and false positive rate are not
jointly monotone in the tweak, so the search steps, halves its step when it
starts oscillating, and falls back to a plain upward scan when no compromise
exists.
"""

import logging
from datetime import datetime
from enum import Enum
from typing import Callable, List, NamedTuple, Optional, Sequence, Tuple

import numpy as np
from joblib import Parallel

from .boosting import adaboost_round, initial_state, predict_label
from .config import TrainingConfig
from .store import ExampleSet
from .stump import StumpRule

logger = logging.getLogger(__name__)


class LayerState(Enum):
    GROWING = 'growing'
    SIZE_CAPPED = 'size-capped'
    TWEAKING = 'tweaking'
    DONE = 'done'


TweakResult = NamedTuple('TweakResult', [('tweak', float), ('accomplished', bool), ('final', bool),
                                         ('steps', int), ('units', List[float])])

# states lists every state the layer went through, DONE included
LayerResult = NamedTuple('LayerResult', [('committee', List[StumpRule]), ('tweak', float),
                                         ('states', List[LayerState]), ('searches', List[TweakResult])])

# (worst false positive rate, worst detection rate) of the layer for a tweak
RateFunction = Callable[[float], Tuple[float, float]]


def surviving(cascade: Sequence[Sequence[StumpRule]], tweaks: Sequence[float], examples: ExampleSet) -> np.ndarray:
    """Mask of the examples every layer of the cascade accepts."""
    verdicts = np.ones(len(examples), dtype=np.int64)
    for committee, tweak in zip(cascade, tweaks):
        # Once at -1, an example stays rejected
        verdicts = np.minimum(verdicts, predict_label(committee, examples.store, tweak))
    return verdicts > 0


def empirical_error(cascade: Sequence[Sequence[StumpRule]], tweaks: Sequence[float],
                    examples: ExampleSet) -> Tuple[float, float]:
    """False positive rate and detection rate of the cascade on a pool."""
    survivors = surviving(cascade, tweaks, examples)
    false_positive = np.count_nonzero(survivors[examples.count_pos:]) / examples.count_neg
    detection = np.count_nonzero(survivors[:examples.count_pos]) / examples.count_pos
    return false_positive, detection


def layer_error(committee: Sequence[StumpRule], tweak: float, examples: ExampleSet,
                survivors: np.ndarray) -> Tuple[float, float]:
    """
    False positive rate and detection rate of one layer among the survivors.

    With no surviving negative nothing can be a false positive (0.); with no
    surviving positive nothing can be missed (1.).
    """
    accepted = (predict_label(committee, examples.store, tweak) > 0) & survivors
    p = examples.count_pos
    negatives, positives = np.count_nonzero(survivors[p:]), np.count_nonzero(survivors[:p])
    false_positive = np.count_nonzero(accepted[p:]) / negatives if negatives else 0.
    detection = np.count_nonzero(accepted[:p]) / positives if positives else 1.
    return false_positive, detection


def search_tweak(rates: RateFunction, detection_target: float, false_positive_target: float,
                 config: TrainingConfig, final_tweak: bool = False) -> TweakResult:
    """
    Search the layer bias.

    While both targets cannot be met at once, the tweak moves down when only
    false positives are too high and up when only detection is too low. Two
    moves that cancel halve the step and step back the halved amount. When
    both rates miss, or the step falls under the floor, the search restarts
    from -1 and climbs until detection reaches config.final_detection_rate.
    """
    tweak = -1. if final_tweak else 0.
    applied = tweak
    unit = config.tweak_unit
    units = [unit]
    counter = 0
    oscillation_observer = [0, 0]
    steps = 0

    while abs(tweak) < config.tweak_limit:
        applied = tweak
        steps += 1
        worst_false_positive, worst_detection = rates(tweak)

        if final_tweak:
            if worst_detection >= config.final_detection_rate:
                logger.info(f'    - Final tweak settles to {tweak:.5f}')
                return TweakResult(tweak, False, True, steps, units)
            tweak += config.tweak_unit
            continue

        detection_ok = worst_detection >= detection_target
        false_positive_ok = worst_false_positive <= false_positive_target
        if detection_ok and false_positive_ok:
            logger.info(f'    - worstDetectionRate: {worst_detection:.5f} >= {detection_target} '
                        f'&& worstFalsePositive: {worst_false_positive:.5f} <= {false_positive_target}')
            return TweakResult(tweak, True, False, steps, units)
        elif detection_ok:
            tweak -= unit
            counter += 1
            oscillation_observer[counter % 2] = -1
        elif false_positive_ok:
            tweak += unit
            counter += 1
            oscillation_observer[counter % 2] = 1
        else:
            logger.info(f'    - No way out at tweak {tweak:.5f} (detection {worst_detection:.5f}, '
                        f'false positive {worst_false_positive:.5f}), final tweak from -1')
            final_tweak = True
            tweak = -1.
            continue

        # The tweak vacillates: reduce the step and go back toward the previous direction
        if counter > 1 and oscillation_observer[0] + oscillation_observer[1] == 0:
            unit /= 2
            tweak += -unit if oscillation_observer[counter % 2] == 1 else unit
            units.append(unit)
            logger.debug(f'    - Backtracked at {counter}! Tweak unit is now {unit}')

            if unit < config.min_tweak:
                logger.warning(f'    - Tweak unit {unit} below {config.min_tweak}, final tweak from -1')
                final_tweak = True
                tweak = -1.

    return TweakResult(applied, False, final_tweak, steps, units)


def train_layer(round_index: int, cascade: Sequence[Sequence[StumpRule]], tweaks: Sequence[float],
                train: ExampleSet, test: ExampleSet, config: TrainingConfig,
                parallel: Optional[Parallel] = None) -> LayerResult:
    """
    Grow one cascade layer on top of the finished layers.

    GROWING adds a member, then moves to TWEAKING, or to SIZE_CAPPED once the
    committee outgrows its size guide. TWEAKING ends the layer (DONE) when a
    tweak meets both per-layer targets on the train and test survivors, and
    goes back to GROWING otherwise. SIZE_CAPPED runs a last final-tweak
    search and ends the layer.
    """
    committee_size_guide = config.committee_size_guide(round_index)
    logger.info(f'    - CommitteeSizeGuide = {committee_size_guide}')

    state = initial_state(train, config.initial_positive_weight)
    train_survivors = surviving(cascade, tweaks, train)
    test_survivors = surviving(cascade, tweaks, test)
    committee: List[StumpRule] = []
    start_time = datetime.now()

    def rates(tweak: float) -> Tuple[float, float]:
        fp_train, detection_train = layer_error(committee, tweak, train, train_survivors)
        fp_test, detection_test = layer_error(committee, tweak, test, test_survivors)
        return max(fp_train, fp_test), min(detection_train, detection_test)

    layer_state = LayerState.GROWING
    states: List[LayerState] = []
    searches: List[TweakResult] = []
    while layer_state is not LayerState.DONE:
        states.append(layer_state)

        if layer_state is LayerState.GROWING:
            committee, state = adaboost_round(committee, train, state, parallel, round_index)
            logger.info(f'    - t={len(committee)} {(datetime.now() - start_time).total_seconds():.2f}s, '
                        f'feature {committee[-1].feature_index}, error {committee[-1].error:.5f}')
            if len(committee) > committee_size_guide:
                logger.info(f'    - Committee of {len(committee)} exceeds the guide, last tweak search')
                layer_state = LayerState.SIZE_CAPPED
            else:
                layer_state = LayerState.TWEAKING

        elif layer_state is LayerState.TWEAKING:
            searches.append(search_tweak(rates, config.layer_detection_rate, config.layer_false_positive_rate,
                                         config))
            layer_state = LayerState.DONE if searches[-1].accomplished else LayerState.GROWING

        else:
            searches.append(search_tweak(rates, config.layer_detection_rate, config.layer_false_positive_rate,
                                         config, final_tweak=True))
            layer_state = LayerState.DONE

    states.append(layer_state)
    tweak = searches[-1].tweak
    logger.info(f'    - Layer {round_index} done with {len(committee)} weak classifiers, tweak {tweak:.5f} '
                f'({" -> ".join(s.value for s in states[-3:])})')
    return LayerResult(committee, tweak, states, searches)
