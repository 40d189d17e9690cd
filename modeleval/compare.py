# Model comparison
# Ranks per-model scores against the null model reference

import numpy as np
import pandas as pd
from scipy import stats

from .cv import ScoreRecord
from .errors import InvalidParameter
from .scoring import Metric, metric_direction


TABLE_COLUMNS = [
    'model', 'family', 'mode', 'metric', 'value', 'std', 'ci_lower', 'ci_upper',
    'n_scored', 'n_failed', 'status', 'rank'
]


def _as_record(entry, metric_kind):
    """Accept ScoreRecords or (ModelSpec, Metric | Exception) pairs."""
    if isinstance(entry, ScoreRecord):
        return entry

    spec, outcome = entry
    base = dict(model=spec.label, family=spec.family, mode='')
    if isinstance(outcome, Metric):
        return ScoreRecord(metric=outcome.name, value=outcome.value, **base)
    if isinstance(outcome, Exception):
        if metric_kind is None:
            raise InvalidParameter("metric_kind is required when entries contain failures")
        return ScoreRecord(metric=metric_kind, status='unavailable',
                           error=f"{type(outcome).__name__}: {outcome}", **base)
    raise InvalidParameter(f"Cannot compare entry for '{spec.label}': {outcome!r}")


def _select_metric(records, metric_kind):
    kinds = sorted({r.metric for r in records})
    if metric_kind is None:
        if len(kinds) != 1:
            raise InvalidParameter(f"Entries mix metric kinds {kinds}; pass metric_kind")
        metric_kind = kinds[0]
    metric_direction(metric_kind)
    return metric_kind, [r for r in records if r.metric == metric_kind]


def compare(entries, metric_kind=None):
    """
    Build a ranked comparison table.

    Fold-level entries of the same model are aggregated: value is the mean of
    the successful scores, std and the 2.5/97.5 percentile interval describe
    their spread. Available models are sorted ascending for error metrics and
    descending for goodness metrics. The null model is always the first row,
    whatever its rank, and models without any successful score come last with
    status 'unavailable'.

    Returns:
        DataFrame with TABLE_COLUMNS
    """
    records = [_as_record(e, metric_kind) for e in entries]
    metric_kind, records = _select_metric(records, metric_kind)

    groups = {}
    for r in records:
        groups.setdefault(r.model, []).append(r)

    if not any(rs[0].family == 'null' for rs in groups.values()):
        raise InvalidParameter("Comparison needs a null model entry as reference")

    rows = []
    for model, rs in groups.items():
        scores = np.array([r.value for r in rs if r.ok], dtype=float)
        n_scored = len(scores)
        multi = n_scored > 1
        rows.append({
            'model': model,
            'family': rs[0].family,
            'mode': rs[0].mode,
            'metric': metric_kind,
            'value': float(scores.mean()) if n_scored else np.nan,
            'std': float(scores.std()) if multi else np.nan,
            'ci_lower': float(np.percentile(scores, 2.5)) if multi else np.nan,
            'ci_upper': float(np.percentile(scores, 97.5)) if multi else np.nan,
            'n_scored': n_scored,
            'n_failed': len(rs) - n_scored,
            'status': 'ok' if n_scored else 'unavailable',
        })

    table = pd.DataFrame(rows, columns=TABLE_COLUMNS[:-1])
    ascending = metric_direction(metric_kind) == 'min'

    available = table['status'] == 'ok'
    table['rank'] = np.nan
    table.loc[available, 'rank'] = table.loc[available, 'value'].rank(
        method='min', ascending=ascending
    )

    is_null = table['family'] == 'null'
    ranked = table[available & ~is_null].sort_values('value', ascending=ascending, kind='mergesort')
    ordered = pd.concat([table[is_null], ranked, table[~available & ~is_null]])
    return ordered.reset_index(drop=True)


def attach_intervals(table, intervals):
    """
    Fill ci_lower / ci_upper from externally computed intervals.

    intervals maps model label to a (lower, upper) pair or to a dict with
    'lower' and 'upper' keys (as returned per metric by resampling.bootstrap_metrics).
    """
    table = table.copy()
    for model, interval in intervals.items():
        if isinstance(interval, dict):
            lower, upper = interval['lower'], interval['upper']
        else:
            lower, upper = interval
        mask = table['model'] == model
        table.loc[mask, 'ci_lower'] = lower
        table.loc[mask, 'ci_upper'] = upper
    return table


def paired_tests(records, metric_kind, alpha=0.05):
    """
    Paired t-test of each model's fold scores against the null model's.

    Folds are matched on (repeat, fold); folds where either side failed are
    skipped. mean_diff is model minus null.
    """
    records = [r for r in records if r.metric == metric_kind and r.ok]
    null_scores = {(r.repeat, r.fold): r.value for r in records if r.family == 'null'}
    if not null_scores:
        raise InvalidParameter("Paired tests need null model fold scores")

    models = []
    for r in records:
        if r.family != 'null' and r.model not in models:
            models.append(r.model)

    rows = []
    for model in models:
        pairs = [(r.value, null_scores[(r.repeat, r.fold)]) for r in records
                 if r.model == model and (r.repeat, r.fold) in null_scores]
        row = {'model': model, 'metric': metric_kind, 'n_pairs': len(pairs),
               'mean_diff': np.nan, 't_stat': np.nan, 'p_value': np.nan, 'significant': False}
        if len(pairs) >= 2:
            a = np.array([p[0] for p in pairs])
            b = np.array([p[1] for p in pairs])
            row['mean_diff'] = float(np.mean(a - b))
            if np.ptp(a - b) > 0:
                t_stat, p_value = stats.ttest_rel(a, b)
                row['t_stat'] = float(t_stat)
                row['p_value'] = float(p_value)
                row['significant'] = bool(p_value < alpha)
        rows.append(row)

    return pd.DataFrame(rows, columns=['model', 'metric', 'n_pairs', 'mean_diff',
                                       't_stat', 'p_value', 'significant'])
