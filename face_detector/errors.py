"""Errors raised while training or evaluating a cascade."""


class FaceDetectorError(Exception):
    pass


class OutOfBoundsError(FaceDetectorError, IndexError):
    """A rectangle does not fit inside the integral image."""


class DataError(FaceDetectorError):
    """An example cannot be discriminated, e.g. a constant-color patch."""


class BoostingInvariantViolation(FaceDetectorError):
    """Boosting cannot go on: no stump beats chance, or a later member is perfect."""

    def __init__(self, message: str, feature_index: int = -1, round_index: int = -1, error: float = float('nan')):
        super().__init__(f'{message} (feature {feature_index}, round {round_index}, error {error})')
        self.feature_index = feature_index
        self.round_index = round_index
        self.error = error


class ResourceError(FaceDetectorError):
    pass


class FeatureStoreError(ResourceError):
    pass


class ModelStoreError(ResourceError):
    pass
