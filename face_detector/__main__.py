"""
Command line: train a cascade or test a saved one.

    python -m face_detector train data/trainset data/testset model/
    python -m face_detector test data/testset model/ --heatmap confusion.png
"""

import argparse
import logging
import sys

from .classifier import Classifier
from .config import load_config
from .errors import BoostingInvariantViolation, ResourceError

logger = logging.getLogger('face_detector')


def parse_args(argv=None):
    parser = argparse.ArgumentParser(prog='face_detector', description='Viola-Jones cascade training and testing')
    parser.add_argument('--config', help='JSON file overriding TrainingConfig fields')
    parser.add_argument('--workers', type=int, help='Worker threads for the stump search (-1: all cores)')
    parser.add_argument('-v', '--verbose', action='store_true', help='Verbose logging')
    sub = parser.add_subparsers(dest='command', required=True)

    train = sub.add_parser('train', help='Train a cascade')
    train.add_argument('train_dir', help='Directory with faces/ and non-faces/ training patches')
    train.add_argument('test_dir', help='Directory with faces/ and non-faces/ validation patches')
    train.add_argument('model_dir', help='Where the cascade is written')

    test = sub.add_parser('test', help='Test a saved cascade')
    test.add_argument('test_dir', help='Directory with faces/ and non-faces/ patches')
    test.add_argument('model_dir', help='Directory of a trained cascade')
    test.add_argument('--heatmap', help='Save the confusion matrix heat map to this file')
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    try:
        config = load_config(args.config, workers=args.workers)
        classifier = Classifier(config)
        if args.command == 'train':
            classifier.train_directories(args.train_dir, args.test_dir, args.model_dir)
        else:
            classifier.test(args.test_dir, args.model_dir, args.heatmap)
    except BoostingInvariantViolation as e:
        logger.error(f'Boosting failed: {e}')
        return 2
    except (ResourceError, ValueError, FileNotFoundError) as e:
        logger.error(str(e))
        return 1
    return 0


if __name__ == '__main__':
    sys.exit(main())
