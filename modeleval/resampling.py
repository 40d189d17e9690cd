# Bootstrap resampling
# Repeated fit + predict on resampled training data, summarised per record

import numpy as np
import pandas as pd
from joblib import Parallel, delayed

from .errors import InvalidParameter
from .models import fit, predict, predict_scores
from .scoring import score_model
from .seeds import derive_seed


def _draw_rows(n, seed, draw):
    rng = np.random.RandomState(derive_seed(seed, draw))
    return rng.randint(0, n, size=n)


def _bootstrap_draw(training, spec, seed, draw):
    """Fit on one resample and predict the original training subset."""
    rows = _draw_rows(len(training), seed, draw)
    fitted = fit(spec, training.iloc[rows], seed=derive_seed(seed, draw))
    if spec.task == 'classification':
        return predict_scores(fitted, training)
    return predict(fitted, training).astype(float)


def _check_draws(n_draws):
    if not isinstance(n_draws, (int, np.integer)) or n_draws < 1:
        raise InvalidParameter(f"Number of bootstrap draws must be an integer >= 1, got {n_draws!r}")


def bootstrap(training, spec, n_draws, seed, n_jobs=1):
    """
    Bootstrap prediction intervals for every training record.

    Draws n_draws samples of len(training) rows with replacement, fits spec on
    each and predicts the original training subset, which is the evaluation set
    for every model so summaries are comparable across models. Draw i uses
    RandomState(seed + i) for its rows and seed + i for ensemble randomness,
    so each draw can be reproduced on its own.

    Classification specs are summarised on positive-class probabilities.

    Returns:
        DataFrame indexed like training with columns
        Observed, Lower_95, Median, Upper_95, Mean
    """
    _check_draws(n_draws)
    if len(training) == 0:
        raise InvalidParameter("Cannot bootstrap an empty training subset")

    print(f"Bootstrapping '{spec.label}' with {n_draws} draws...")

    draws = Parallel(n_jobs=n_jobs)(
        delayed(_bootstrap_draw)(training, spec, seed, i) for i in range(n_draws)
    )
    preds = np.vstack(draws)

    summary = pd.DataFrame({
        'Observed': training[spec.outcome].to_numpy(),
        'Lower_95': np.percentile(preds, 2.5, axis=0),
        'Median': np.percentile(preds, 50, axis=0),
        'Upper_95': np.percentile(preds, 97.5, axis=0),
        'Mean': preds.mean(axis=0),
    }, index=training.index)
    summary.attrs['n_draws'] = int(n_draws)
    summary.attrs['seed'] = seed
    summary.attrs['model'] = spec.label
    return summary


def _metrics_draw(training, evaluation, spec, metric_kinds, seed, draw):
    rows = _draw_rows(len(training), seed, draw)
    fitted = fit(spec, training.iloc[rows], seed=derive_seed(seed, draw))
    return [score_model(fitted, evaluation, m).value for m in metric_kinds]


def bootstrap_metrics(training, spec, metric_kinds, n_draws, seed, evaluation=None, n_jobs=1):
    """
    Bootstrap distribution of one or more metrics.

    Each draw refits spec on a resample of training (same rows as bootstrap()
    for the same seed) and scores it on evaluation, the training subset
    itself when not given.

    Returns:
        dict metric -> {'lower', 'upper', 'mean', 'all'} with the 2.5 / 97.5
        percentiles of the draw scores as lower / upper
    """
    _check_draws(n_draws)
    if evaluation is None:
        evaluation = training

    draws = Parallel(n_jobs=n_jobs)(
        delayed(_metrics_draw)(training, evaluation, spec, metric_kinds, seed, i)
        for i in range(n_draws)
    )
    values = np.asarray(draws, dtype=float).reshape(n_draws, len(metric_kinds))

    intervals = {}
    for j, metric in enumerate(metric_kinds):
        col = values[:, j]
        intervals[metric] = {
            'lower': float(np.percentile(col, 2.5)),
            'upper': float(np.percentile(col, 97.5)),
            'mean': float(col.mean()),
            'all': col.tolist(),
        }
    return intervals
