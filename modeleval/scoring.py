# Scoring utilities
# RMSE, MAE, R2, accuracy and rank-based ROC-AUC

from dataclasses import dataclass

import numpy as np
from scipy.stats import rankdata

from .errors import DegenerateMetric, InvalidParameter
from .models import predict, predict_scores


METRIC_KINDS = ['rmse', 'mae', 'r2', 'accuracy', 'roc_auc']

LOWER_IS_BETTER = ['rmse', 'mae']

REGRESSION_METRICS = ['rmse', 'mae', 'r2']
CLASSIFICATION_METRICS = ['accuracy', 'roc_auc']


@dataclass(frozen=True)
class Metric:
    """A named score computed on n records."""

    name: str
    value: float
    n: int

    def __repr__(self):
        return f"{self.name.upper()}: {self.value:.4f} (n={self.n})"


def metric_direction(kind):
    """Return 'min' for error metrics and 'max' for goodness metrics."""
    if kind not in METRIC_KINDS:
        raise InvalidParameter(f"Unknown metric '{kind}'. Supported: {METRIC_KINDS}")
    return 'min' if kind in LOWER_IS_BETTER else 'max'


def default_metrics(task):
    if task == 'regression':
        return ['rmse', 'r2']
    if task == 'classification':
        return ['accuracy', 'roc_auc']
    raise InvalidParameter(f"Unknown task '{task}'")


def rmse(predictions, truth):
    return float(np.sqrt(np.mean((predictions - truth) ** 2)))


def mae(predictions, truth):
    return float(np.mean(np.abs(predictions - truth)))


def r2(predictions, truth):
    ss_res = np.sum((truth - predictions) ** 2)
    ss_tot = np.sum((truth - np.mean(truth)) ** 2)
    if ss_tot == 0:
        raise DegenerateMetric("R2 is undefined when the truth has zero variance")
    return float(1 - ss_res / ss_tot)


def accuracy(predictions, truth):
    return float(np.mean(predictions == truth))


def roc_auc(scores, truth, positive=None):
    """
    Rank-based ROC-AUC (Mann-Whitney U / (n_pos * n_neg)).

    Tied scores get average ranks, so a constant scorer has AUC 0.5.
    `positive` defaults to the last of the sorted truth labels.
    """
    labels = np.unique(truth)
    if len(labels) > 2:
        raise DegenerateMetric(f"ROC-AUC needs binary labels, got {len(labels)} classes")
    if positive is None:
        positive = labels[-1]

    is_pos = truth == positive
    n_pos = int(is_pos.sum())
    n_neg = len(truth) - n_pos
    if n_pos == 0 or n_neg == 0:
        raise DegenerateMetric("ROC-AUC needs at least one positive and one negative record")

    ranks = rankdata(np.asarray(scores, dtype=float))
    u = ranks[is_pos].sum() - n_pos * (n_pos + 1) / 2.0
    return float(u / (n_pos * n_neg))


def score(predictions, truth, metric_kind, positive=None):
    """
    Score predictions against truth.

    Args:
        predictions: one prediction (or score, for roc_auc) per record
        truth: observed values, same order
        metric_kind: one of METRIC_KINDS
        positive: positive label for roc_auc

    Returns:
        Metric
    """
    metric_direction(metric_kind)
    predictions = np.asarray(predictions)
    truth = np.asarray(truth)

    if len(predictions) != len(truth):
        raise InvalidParameter(
            f"Got {len(predictions)} predictions for {len(truth)} observed values"
        )
    if len(truth) == 0:
        raise DegenerateMetric(f"{metric_kind} is undefined on an empty subset")

    if metric_kind == 'rmse':
        value = rmse(predictions.astype(float), truth.astype(float))
    elif metric_kind == 'mae':
        value = mae(predictions.astype(float), truth.astype(float))
    elif metric_kind == 'r2':
        value = r2(predictions.astype(float), truth.astype(float))
    elif metric_kind == 'accuracy':
        value = accuracy(predictions, truth)
    else:
        value = roc_auc(predictions, truth, positive=positive)

    return Metric(name=metric_kind, value=value, n=len(truth))


def score_model(fitted, subset, metric_kind):
    """Predict on subset with a fitted model and score against its outcome column."""
    truth = subset[fitted.spec.outcome].to_numpy()
    if metric_kind == 'roc_auc':
        return score(predict_scores(fitted, subset), truth, metric_kind,
                     positive=fitted.positive_class)
    return score(predict(fitted, subset), truth, metric_kind)
