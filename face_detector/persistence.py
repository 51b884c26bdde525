"""Saving and loading a trained cascade."""

import logging
import os
import pickle
import tempfile
from typing import List, Sequence, Tuple

from .errors import ModelStoreError
from .stump import StumpRule

logger = logging.getLogger(__name__)

CASCADE_FILE = 'cascade.pickle'
TWEAKS_FILE = 'tweaks.pickle'


class ModelStore:
    """
    A model directory.

    cascade.pickle is a stream of pickled layers, appended one per finished
    layer. tweaks.pickle holds the layer sizes and tweak vector and is
    replaced as a whole, so a crash never leaves it half written.
    """

    def __init__(self, directory: str):
        self.directory = directory

    @property
    def cascade_path(self) -> str:
        return os.path.join(self.directory, CASCADE_FILE)

    @property
    def tweaks_path(self) -> str:
        return os.path.join(self.directory, TWEAKS_FILE)

    def write_layer(self, committee: Sequence[StumpRule], first: bool = False) -> None:
        try:
            os.makedirs(self.directory, exist_ok=True)
            with open(self.cascade_path, 'wb' if first else 'ab') as f:
                pickle.dump([tuple(rule) for rule in committee], f)
        except OSError as e:
            raise ModelStoreError(f'Cannot write layer to {self.cascade_path}: {e}') from e

    def write_tweaks(self, cascade: Sequence[Sequence[StumpRule]], tweaks: Sequence[float]) -> None:
        layers = {'layer_sizes': [len(committee) for committee in cascade],
                  'tweaks': [float(t) for t in tweaks]}
        try:
            os.makedirs(self.directory, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=self.directory, suffix='.tmp')
            with os.fdopen(fd, 'wb') as f:
                pickle.dump(layers, f)
            os.replace(tmp_path, self.tweaks_path)
        except OSError as e:
            raise ModelStoreError(f'Cannot write tweaks to {self.tweaks_path}: {e}') from e

    def write(self, cascade: Sequence[Sequence[StumpRule]], tweaks: Sequence[float]) -> None:
        for i, committee in enumerate(cascade):
            self.write_layer(committee, first=i == 0)
        self.write_tweaks(cascade, tweaks)

    def read(self) -> Tuple[List[List[StumpRule]], List[float]]:
        """Layers that have a tweak, with their tweaks."""
        try:
            with open(self.tweaks_path, 'rb') as f:
                layers = pickle.load(f)
            cascade = []
            with open(self.cascade_path, 'rb') as f:
                while len(cascade) < len(layers['tweaks']):
                    try:
                        cascade.append([StumpRule(*fields) for fields in pickle.load(f)])
                    except EOFError:
                        break
        except (OSError, pickle.UnpicklingError, KeyError, TypeError) as e:
            raise ModelStoreError(f'Cannot read model from {self.directory}: {e}') from e

        tweaks = layers['tweaks'][:len(cascade)]
        if [len(c) for c in cascade] != layers['layer_sizes'][:len(cascade)]:
            raise ModelStoreError(f'Layer sizes in {self.cascade_path} do not match {self.tweaks_path}')
        logger.info(f'Loaded a cascade of {len(cascade)} layers from {self.directory}')
        return cascade, tweaks
