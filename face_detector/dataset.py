"""Loading face / non-face patches from disk and turning them into feature stores."""

import glob
import json
import logging
import os
from datetime import datetime
from typing import List, Optional, Tuple

import numpy as np
from joblib import Parallel, delayed
from PIL import Image

from .errors import FeatureStoreError
from .features import FeatureCatalog, count_all_features
from .integral import to_integral
from .store import ArrayFeatureStore, ExampleSet

logger = logging.getLogger(__name__)

IMAGES_EXTENSION = 'png'
FACES_DIR = 'faces'
NON_FACES_DIR = 'non-faces'


def list_images(directory: str) -> List[str]:
    return sorted(glob.glob(os.path.join(directory, '**', f'*.{IMAGES_EXTENSION}'), recursive=True))


def list_examples(directory: str) -> Tuple[List[str], List[str]]:
    return (list_images(os.path.join(directory, FACES_DIR)),
            list_images(os.path.join(directory, NON_FACES_DIR)))


def open_face(path: str, width: int, height: int) -> np.ndarray:
    """Grayscale pixels of a patch, resized to the frame if needed."""
    try:
        img = Image.open(path).convert('L')
    except OSError as e:
        raise FeatureStoreError(f'Cannot read image {path}: {e}') from e
    if img.size != (width, height):
        img = img.resize((width, height))
    return np.array(img, dtype=np.int64)


def compute_image_features(path: str, width: int, height: int) -> np.ndarray:
    return FeatureCatalog(width, height).compute_all(to_integral(open_face(path, width, height)))


def cache_path(directory: str, width: int, height: int) -> str:
    return os.path.join(directory, f'features-{width}x{height}.npy')


def manifest_path(directory: str, width: int, height: int) -> str:
    return os.path.join(directory, f'features-{width}x{height}.json')


def image_manifest(directory: str, files: List[str]) -> List[List]:
    """(relative path, size, mtime) of every patch, in example order."""
    manifest = []
    for f in files:
        st = os.stat(f)
        manifest.append([os.path.relpath(f, directory), st.st_size, st.st_mtime_ns])
    return manifest


def read_manifest(path: str) -> Optional[List[List]]:
    try:
        with open(path, 'r', encoding='utf-8') as f:
            return json.load(f)
    except (OSError, ValueError):
        return None


def write_manifest(path: str, manifest: List[List]) -> None:
    try:
        with open(path, 'w', encoding='utf-8') as f:
            json.dump(manifest, f)
    except OSError as e:
        raise FeatureStoreError(f'Cannot write {path}: {e}') from e


def load_example_set(directory: str, width: int, height: int,
                     parallel: Optional[Parallel] = None, use_cache: bool = True) -> ExampleSet:
    """Feature values of every patch under directory/faces and directory/non-faces."""
    faces, non_faces = list_examples(directory)
    if not faces or not non_faces:
        raise FeatureStoreError(f'Need both {FACES_DIR}/ and {NON_FACES_DIR}/ images under {directory} '
                                f'(found {len(faces)} and {len(non_faces)})')
    logger.info(f'{directory}: {len(faces) + len(non_faces)} images (pos: {len(faces)}, neg: {len(non_faces)})')

    path = cache_path(directory, width, height)
    expected = (count_all_features(width, height), len(faces) + len(non_faces))
    manifest = image_manifest(directory, faces + non_faces)
    if use_cache and os.path.exists(path):
        store = ArrayFeatureStore.load(path)
        if store.values.shape != expected:
            logger.info(f'Ignoring {path}: shape {store.values.shape} != {expected}')
        elif read_manifest(manifest_path(directory, width, height)) != manifest:
            logger.info(f'Ignoring {path}: the images changed since it was written')
        else:
            logger.info(f'Reusing feature values from {path}')
            return ExampleSet(store, len(faces), len(non_faces))

    if parallel is None:
        parallel = Parallel(n_jobs=-1, backend='threading')

    start_time = datetime.now()
    vectors = parallel(delayed(compute_image_features)(f, width, height) for f in faces + non_faces)
    store = ArrayFeatureStore.from_examples(vectors)
    logger.info(f'Computed {expected[0]} features for {expected[1]} images '
                f'in {(datetime.now() - start_time).total_seconds():.2f}s')
    if use_cache:
        store.save(path)
        write_manifest(manifest_path(directory, width, height), manifest)
    return ExampleSet(store, len(faces), len(non_faces))
