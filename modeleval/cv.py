# Cross-validation utilities
# Holdout, in-sample and repeated k-fold evaluation of competing model specs

from dataclasses import asdict, dataclass
from typing import Optional

import numpy as np
import pandas as pd
from joblib import Parallel, delayed

from .errors import EvaluationError
from .models import fit
from .scoring import score_model
from .seeds import derive_seed
from .splits import kfold_split, validate_fold


@dataclass
class ScoreRecord:
    """
    One metric for one (model, evaluation subset) pair.

    status is 'ok' or 'unavailable'; unavailable records keep value NaN and
    the error text so failed pairs stay visible in every table.
    """

    model: str
    family: str
    mode: str
    metric: str
    value: float = float('nan')
    repeat: Optional[int] = None
    fold: Optional[int] = None
    status: str = 'ok'
    error: Optional[str] = None

    @property
    def ok(self):
        return self.status == 'ok'


def _evaluate_pair(spec, train, evaluation, metrics, seed, mode, repeat=None, fold=None):
    """Fit spec on train and score it on evaluation for every metric."""
    base = dict(model=spec.label, family=spec.family, mode=mode, repeat=repeat, fold=fold)

    try:
        fitted = fit(spec, train, seed=seed)
    except EvaluationError as e:
        error = f"{type(e).__name__}: {e}"
        return [ScoreRecord(metric=m, status='unavailable', error=error, **base) for m in metrics]

    records = []
    for metric in metrics:
        try:
            value = score_model(fitted, evaluation, metric).value
            records.append(ScoreRecord(metric=metric, value=value, **base))
        except EvaluationError as e:
            records.append(ScoreRecord(metric=metric, status='unavailable',
                                       error=f"{type(e).__name__}: {e}", **base))
    return records


def evaluate_holdout(train, test, specs, metrics, seed=0):
    """Fit every spec on train and score it on test."""
    print(f"Holdout evaluation: {len(train)} train / {len(test)} test records, {len(specs)} models...")
    records = []
    for spec in specs:
        records.extend(_evaluate_pair(spec, train, test, metrics, seed, mode='holdout'))
    return records


def evaluate_in_sample(train, specs, metrics, seed=0):
    """
    Fit and score every spec on the same subset.

    In-sample scores are optimistic and only serve as a labelled reference,
    not as an estimate of predictive performance.
    """
    print(f"In-sample evaluation on {len(train)} records, {len(specs)} models...")
    records = []
    for spec in specs:
        records.extend(_evaluate_pair(spec, train, train, metrics, seed, mode='in_sample'))
    return records


def run_repeated_cv(dataset, specs, metrics, k=5, repeats=1, seed=0, n_jobs=1, strata=None):
    """
    Run repeated K-fold cross-validation for every spec.

    Every (model, fold) pair contributes one record per metric, including
    pairs whose fit or score failed. Fold i fits with seed + i so ensemble
    randomness does not depend on execution order.

    Returns:
        list of ScoreRecord in (fold, model, metric) order
    """
    print(f"Running {k}-fold x {repeats} repeats CV on {len(dataset)} records...")

    folds = kfold_split(dataset, k, repeats=repeats, seed=seed, strata=strata)
    for f in folds:
        validate_fold(f)

    jobs = []
    for fold_idx, f in enumerate(folds):
        fit_seed = derive_seed(seed, fold_idx)
        for spec in specs:
            jobs.append(delayed(_evaluate_pair)(
                spec, f.train, f.validation, metrics, fit_seed,
                mode='cv', repeat=f.repeat, fold=f.fold
            ))

    results = Parallel(n_jobs=n_jobs)(jobs)
    records = [r for pair in results for r in pair]

    n_failed = sum(1 for r in records if not r.ok)
    if n_failed:
        print(f"  {n_failed} of {len(records)} (model, fold, metric) scores unavailable")
    return records


def summarize_cv(records):
    """
    Summarise fold-level records per model.

    Returns:
        dict model -> metric -> {'mean', 'std', 'all', 'n_failed'}
        'all' holds the fold scores that succeeded, in fold order.
    """
    summary = {}
    for r in records:
        entry = summary.setdefault(r.model, {}).setdefault(
            r.metric, {'all': [], 'n_failed': 0}
        )
        if r.ok:
            entry['all'].append(float(r.value))
        else:
            entry['n_failed'] += 1

    for metrics in summary.values():
        for entry in metrics.values():
            scores = entry['all']
            entry['mean'] = float(np.mean(scores)) if scores else float('nan')
            entry['std'] = float(np.std(scores)) if scores else float('nan')
    return summary


def records_to_frame(records):
    """Flatten ScoreRecords into a DataFrame, one row per record."""
    columns = list(ScoreRecord.__dataclass_fields__)
    return pd.DataFrame([asdict(r) for r in records], columns=columns)
