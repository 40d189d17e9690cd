# Hyperparameter tuning
# Grid search over a spec's hyperparameters scored with repeated CV

import itertools

import numpy as np
import pandas as pd

from .cv import run_repeated_cv
from .errors import InvalidParameter
from .scoring import metric_direction


def expand_grid(grid):
    """
    Cartesian product of a {param: [values]} grid.

    Parameters vary in sorted-name order with the last name changing fastest,
    so the same grid always yields the same list.
    """
    if not grid:
        return [{}]
    names = sorted(grid)
    for name in names:
        if not isinstance(grid[name], (list, tuple)) or len(grid[name]) == 0:
            raise InvalidParameter(f"Grid values for '{name}' must be a non-empty list")
    return [dict(zip(names, combo)) for combo in itertools.product(*(grid[n] for n in names))]


def tune_grid(dataset, spec, grid, metric, k=5, repeats=1, seed=0, n_jobs=1):
    """
    Score every grid point of spec with the same repeated CV folds.

    Grid points whose hyperparameters are invalid, or that fail on every fold,
    stay in the result with NaN scores and the error text.

    Returns:
        DataFrame with one row per grid point: the hyperparameters, then
        mean, std, n_scored, n_failed, error
    """
    metric_direction(metric)
    points = expand_grid(grid)
    print(f"Tuning '{spec.label}' over {len(points)} grid points ({metric})...")

    rows = []
    for point in points:
        row = dict(point)
        try:
            candidate = spec.with_params(**point)
        except InvalidParameter as e:
            row.update(mean=np.nan, std=np.nan, n_scored=0, n_failed=0, error=str(e))
            rows.append(row)
            continue

        records = run_repeated_cv(dataset, [candidate], [metric], k=k, repeats=repeats,
                                  seed=seed, n_jobs=n_jobs)
        scores = [r.value for r in records if r.ok]
        errors = sorted({r.error for r in records if not r.ok})
        row.update(
            mean=float(np.mean(scores)) if scores else np.nan,
            std=float(np.std(scores)) if scores else np.nan,
            n_scored=len(scores),
            n_failed=len(records) - len(scores),
            error='; '.join(errors) if errors else None,
        )
        rows.append(row)

    return pd.DataFrame(rows)


def select_best(results, metric):
    """Hyperparameters of the best-scoring grid point."""
    scored = results[results['n_scored'] > 0]
    if scored.empty:
        raise InvalidParameter("No grid point produced a score")

    if metric_direction(metric) == 'min':
        best = scored.loc[scored['mean'].idxmin()]
    else:
        best = scored.loc[scored['mean'].idxmax()]

    meta = {'mean', 'std', 'n_scored', 'n_failed', 'error'}
    params = {}
    for name in results.columns:
        if name in meta:
            continue
        value = best[name]
        # numpy scalars back to plain python for ModelSpec validation
        params[name] = value.item() if hasattr(value, 'item') else value
    return params
