"""Confusion statistics of a face / non-face evaluation."""

from typing import NamedTuple, Optional, Tuple

import numpy as np
import seaborn as sns
from matplotlib.figure import Figure
from sklearn.metrics import confusion_matrix

# Define total negative, false positive, false negative and true positive counts
PredictionStats = NamedTuple('PredictionStats', [('tn', int), ('fp', int), ('fn', int), ('tp', int)])


def prediction_stats(y_true: np.ndarray, y_pred: np.ndarray) -> Tuple[np.ndarray, PredictionStats]:
    c = confusion_matrix(y_true, y_pred, labels=[0, 1])
    tn, fp, fn, tp = (int(v) for v in c.ravel())
    return c, PredictionStats(tn=tn, fp=fp, fn=fn, tp=tp)


def _ratio(a: int, b: int) -> float:
    return a / b if b else float('nan')


def describe(s: PredictionStats, name: str = 'Cascade') -> str:
    return (f'{name}, Precision {_ratio(s.tp, s.tp + s.fp):.2f}, recall {_ratio(s.tp, s.tp + s.fn):.2f}, '
            f'false positive rate {_ratio(s.fp, s.fp + s.tn):.2f}, '
            f'false negative rate {_ratio(s.fn, s.tp + s.fn):.2f}.')


def plot_confusion(c: np.ndarray, path: str, title: Optional[str] = None) -> None:
    """Save the normalized confusion matrix as a heat map; pyplot and its backend are left alone."""
    fig = Figure()
    ax = fig.subplots(1)
    sns.heatmap(c / max(c.sum(), 1), cmap='YlGnBu', annot=True, square=True, fmt='.1%',
                xticklabels=['Predicted negative', 'Predicted positive'],
                yticklabels=['Negative', 'Positive'], ax=ax)
    if title:
        ax.set_title(title)
    fig.savefig(path, bbox_inches='tight')
