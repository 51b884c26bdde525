"""
Training and testing a cascade of boosted classifiers.

A classifier maps the Haar features of a patch to face (+1) or non-face (-1).
Layers are trained one after another until the product of their false
positive rates reaches the goal; each finished layer is written to the model
store right away. Training only works on same-sized patches.
"""

import logging
import math
from datetime import datetime
from typing import List, Optional, Tuple

import numpy as np
from joblib import Parallel

from .cascade import empirical_error, layer_error, surviving, train_layer
from .config import TrainingConfig
from .dataset import load_example_set
from .evaluate import classify
from .features import FeatureCatalog, count_all_features
from .persistence import ModelStore
from .report import PredictionStats, describe, plot_confusion, prediction_stats
from .store import ExampleSet
from .stump import StumpRule

logger = logging.getLogger(__name__)


def estimate_boosting_rounds(overall_false_positive_rate: float, layer_false_positive_rate: float,
                             extra_rounds: int = 20) -> int:
    return int(math.ceil(math.log(overall_false_positive_rate) / math.log(layer_false_positive_rate))) + extra_rounds


class Classifier:

    def __init__(self, config: Optional[TrainingConfig] = None):
        self.config = config or TrainingConfig()
        self.feature_count = count_all_features(self.config.width, self.config.height)
        self.cascade: List[List[StumpRule]] = []
        self.tweaks: List[float] = []
        # false positive rate of each layer on the test survivors of the layers before it
        self.false_positive_rates: List[float] = []
        self.accumulated_false_positive = 1.
        self.computed = False
        logger.info(f'Feature count for {self.config.width}x{self.config.height}: {self.feature_count}')

    def _parallel(self) -> Parallel:
        return Parallel(n_jobs=self.config.workers, backend='threading')

    def train(self, train: ExampleSet, test: ExampleSet, model_store: ModelStore,
              parallel: Optional[Parallel] = None) -> Tuple[List[List[StumpRule]], List[float]]:
        """Train layers until the accumulated false positive rate reaches the goal."""
        if self.computed:
            logger.info('Training already done!')
            return self.cascade, self.tweaks

        if parallel is None:
            with self._parallel() as parallel:
                return self.train(train, test, model_store, parallel)

        config = self.config
        total_start_time = datetime.now()
        logger.info(f'Training classifier on {train} validated on {test}')

        boosting_rounds = estimate_boosting_rounds(config.overall_false_positive_rate,
                                                   config.layer_false_positive_rate, config.extra_rounds)
        logger.info(f'  - Estimated needed boosting rounds: {boosting_rounds}')

        cascade: List[List[StumpRule]] = []
        tweaks: List[float] = []
        false_positive_rates: List[float] = []
        accumulated_false_positive = 1.
        for round_index in range(boosting_rounds):
            if accumulated_false_positive <= config.goal:
                break
            start_time = datetime.now()
            logger.info(f'  - Round N.{round_index}:')

            test_survivors = surviving(cascade, tweaks, test)
            layer = train_layer(round_index, cascade, tweaks, train, test, config, parallel)
            layer_false_positive, layer_detection = layer_error(layer.committee, layer.tweak, test, test_survivors)
            cascade.append(layer.committee)
            tweaks.append(layer.tweak)

            fp_train, detection_train = empirical_error(cascade, tweaks, train)
            fp_test, detection_test = empirical_error(cascade, tweaks, test)
            logger.info(f'    - The current tweak {layer.tweak:.5f} has falsePositive {fp_train:.5f} '
                        f'and detectionRate {detection_train:.5f} on the training examples.')
            logger.info(f'    - The current tweak {layer.tweak:.5f} has falsePositive {fp_test:.5f} '
                        f'and detectionRate {detection_test:.5f} on the validation examples.')
            logger.info(f'    - The layer alone has falsePositive {layer_false_positive:.5f} '
                        f'and detectionRate {layer_detection:.5f} on the surviving validation examples.')
            false_positive_rates.append(layer_false_positive)
            accumulated_false_positive *= layer_false_positive
            logger.info(f'    - Accumulated False Positive Rate is around {accumulated_false_positive}')

            # Record the boosted layer right away
            model_store.write_layer(layer.committee, first=round_index == 0)
            model_store.write_tweaks(cascade, tweaks)
            logger.info(f'    - Layer computed in {(datetime.now() - start_time).total_seconds():.2f}s '
                        f'with {len(layer.committee)} weak classifiers')

        self.cascade, self.tweaks = cascade, tweaks
        self.false_positive_rates = false_positive_rates
        self.accumulated_false_positive = accumulated_false_positive
        self.computed = True

        logger.info(f'Training done in {(datetime.now() - total_start_time).total_seconds():.2f}s!')
        logger.info(f'  - Cascade of {len(cascade)} layers')
        for i, committee in enumerate(cascade):
            logger.info(f'    - Layer {i}: {len(committee)} weak classifiers, first feature '
                        f'{self._describe_feature(committee[0].feature_index)}')
        return cascade, tweaks

    def train_directories(self, train_dir: str, test_dir: str,
                          model_dir: str) -> Tuple[List[List[StumpRule]], List[float]]:
        """Compute (or reload) feature values of both pools, then train."""
        with self._parallel() as parallel:
            train = load_example_set(train_dir, self.config.width, self.config.height, parallel)
            test = load_example_set(test_dir, self.config.width, self.config.height, parallel)
            return self.train(train, test, ModelStore(model_dir), parallel)

    def predict(self, examples: ExampleSet, layer_limit: Optional[int] = None) -> np.ndarray:
        """1 for every example the cascade accepts as a face, else 0."""
        return np.array([int(classify(self.cascade, self.tweaks, examples.store.example_values(i),
                                      layer_limit, self.config.flat_image_threshold))
                         for i in range(len(examples))], dtype=np.int64)

    def evaluate(self, examples: ExampleSet, heatmap: Optional[str] = None) -> PredictionStats:
        y_true = (examples.labels > 0).astype(np.int64)
        c, s = prediction_stats(y_true, self.predict(examples))
        logger.info(f'True positives: {s.tp} / {examples.count_pos}, false negatives: {s.fn} / {examples.count_pos}')
        logger.info(f'True negatives: {s.tn} / {examples.count_neg}, false positives: {s.fp} / {examples.count_neg}')
        logger.info(describe(s, f'Cascade of {len(self.tweaks)} layers'))
        if heatmap is not None:
            plot_confusion(c, heatmap, f'Cascade of {len(self.tweaks)} layers')
        return s

    def test(self, test_dir: str, model_dir: str, heatmap: Optional[str] = None) -> PredictionStats:
        """Load a saved cascade and report its confusion counts on a directory of patches."""
        self.cascade, self.tweaks = ModelStore(model_dir).read()
        with self._parallel() as parallel:
            examples = load_example_set(test_dir, self.config.width, self.config.height, parallel)
        return self.evaluate(examples, heatmap)

    def _describe_feature(self, feature_index: int) -> str:
        if feature_index >= self.feature_count:
            return str(feature_index)
        catalog = FeatureCatalog(self.config.width, self.config.height)
        ftype, rect = catalog[feature_index]
        return f'{feature_index} {ftype.name}(x={rect.x}, y={rect.y}, width={rect.width}, height={rect.height})'
