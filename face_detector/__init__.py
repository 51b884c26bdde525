"""Viola-Jones face classifier: Haar features, boosted stumps and an attentional cascade."""

from .classifier import Classifier, estimate_boosting_rounds
from .config import TrainingConfig, load_config
from .errors import (BoostingInvariantViolation, DataError, FaceDetectorError, FeatureStoreError,
                     ModelStoreError, OutOfBoundsError, ResourceError)
from .evaluate import classify
from .features import Feature, FeatureCatalog, FeatureType, Rectangle, count_all_features
from .integral import rectangle_sum, to_integral
from .persistence import ModelStore
from .store import ArrayFeatureStore, ExampleSet, FeatureValueStore
from .stump import StumpRule, decision_stump

__version__ = '0.1.0'
