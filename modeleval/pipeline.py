# End-to-end model comparison
# split -> (tune) -> cross-validate -> holdout -> bootstrap -> compare

from dataclasses import dataclass, field
from typing import Dict, List

import pandas as pd

from .compare import attach_intervals, compare, paired_tests
from .cv import evaluate_holdout, evaluate_in_sample, run_repeated_cv, summarize_cv
from .data import model_frame, preprocess_data, validate_data_integrity
from .errors import EvaluationError, InvalidParameter
from .models import specs_from_config
from .resampling import bootstrap, bootstrap_metrics
from .scoring import default_metrics
from .splits import holdout_split
from .tuning import select_best, tune_grid


@dataclass
class ComparisonReport:
    """Everything one comparison run produced, keyed by metric or model label."""

    specs: list
    metrics: List[str]
    n_train: int
    n_test: int
    cv_records: list = field(default_factory=list)
    cv_tables: Dict[str, pd.DataFrame] = field(default_factory=dict)
    cv_summary: dict = field(default_factory=dict)
    paired: Dict[str, pd.DataFrame] = field(default_factory=dict)
    holdout_records: list = field(default_factory=list)
    holdout_tables: Dict[str, pd.DataFrame] = field(default_factory=dict)
    in_sample_records: list = field(default_factory=list)
    in_sample_tables: Dict[str, pd.DataFrame] = field(default_factory=dict)
    bootstrap: Dict[str, pd.DataFrame] = field(default_factory=dict)
    bootstrap_errors: Dict[str, str] = field(default_factory=dict)
    tuning: Dict[str, pd.DataFrame] = field(default_factory=dict)


def _tune_specs(specs, train, config, metrics, seed, n_jobs):
    """Replace tuned specs with their best grid point; returns (specs, results)."""
    cv_cfg = config['cross_validation']
    by_label = {s.label: s for s in specs}
    results = {}

    for entry in config.get('tuning') or []:
        label = entry['model']
        if label not in by_label:
            raise InvalidParameter(f"Tuning refers to unknown model '{label}'. Known: {list(by_label)}")
        metric = entry.get('metric', metrics[0])
        table = tune_grid(train, by_label[label], entry['grid'], metric,
                          k=cv_cfg['n_splits'], repeats=cv_cfg.get('n_repeats', 1),
                          seed=seed, n_jobs=n_jobs)
        best = select_best(table, metric)
        print(f"  best {label}: {best}")
        by_label[label] = by_label[label].with_params(label=label, **best)
        results[label] = table

    return [by_label[s.label] for s in specs], results


def _tables(records, metrics):
    return {m: compare(records, m) for m in metrics}


def run_comparison(df, config):
    """
    Run the full comparison described by a validated config.

    The holdout training subset feeds tuning, cross-validation and the
    bootstrap; the test subset is only used for the holdout tables. Every
    randomized step derives its seed from experiment.seed.

    Returns:
        ComparisonReport
    """
    seed = config['experiment']['seed']
    task = config['data'].get('target_type', 'regression')
    n_jobs = config.get('runtime', {}).get('n_jobs', 1)
    cv_cfg = config['cross_validation']
    metrics = config.get('evaluation', {}).get('metrics') or default_metrics(task)

    X, y = preprocess_data(df, config)
    validate_data_integrity(X, y, config)
    frame = model_frame(X, y)

    specs = specs_from_config(config, list(X.columns))
    train, test = holdout_split(frame, config['split']['train_fraction'], seed,
                                strata=config['split'].get('strata'))
    print(f"Holdout split: {len(train)} train / {len(test)} test (seed={seed})")

    specs, tuning = _tune_specs(specs, train, config, metrics, seed, n_jobs)
    report = ComparisonReport(specs=specs, metrics=list(metrics),
                              n_train=len(train), n_test=len(test), tuning=tuning)

    report.cv_records = run_repeated_cv(
        train, specs, metrics, k=cv_cfg['n_splits'], repeats=cv_cfg.get('n_repeats', 1),
        seed=seed, n_jobs=n_jobs, strata=config['split'].get('strata')
    )
    report.cv_tables = _tables(report.cv_records, metrics)
    report.cv_summary = summarize_cv(report.cv_records)
    for m in metrics:
        try:
            report.paired[m] = paired_tests(report.cv_records, m)
        except InvalidParameter as e:
            print(f"  Skipping paired tests for {m}: {e}")

    report.holdout_records = evaluate_holdout(train, test, specs, metrics, seed=seed)
    report.holdout_tables = _tables(report.holdout_records, metrics)

    if config.get('evaluation', {}).get('in_sample', False):
        report.in_sample_records = evaluate_in_sample(train, specs, metrics, seed=seed)
        report.in_sample_tables = _tables(report.in_sample_records, metrics)

    boot = config.get('bootstrap', {})
    if boot.get('enabled'):
        n_draws = boot.get('n_draws', 100)
        wanted = boot.get('models') or [s.label for s in specs]
        intervals = {m: {} for m in metrics}
        for spec in specs:
            if spec.label not in wanted:
                continue
            try:
                summary = bootstrap(train, spec, n_draws, seed, n_jobs=n_jobs)
                per_metric = bootstrap_metrics(train, spec, metrics, n_draws, seed,
                                               evaluation=test, n_jobs=n_jobs)
            except EvaluationError as e:
                error = f"{type(e).__name__}: {e}"
                print(f"  Bootstrap unavailable for '{spec.label}': {error}")
                report.bootstrap_errors[spec.label] = error
                continue
            report.bootstrap[spec.label] = summary
            for m in metrics:
                intervals[m][spec.label] = per_metric[m]
        for m in metrics:
            report.holdout_tables[m] = attach_intervals(report.holdout_tables[m], intervals[m])

    return report


def print_report(report):
    """Print the comparison tables to stdout."""
    columns = ['model', 'value', 'std', 'ci_lower', 'ci_upper', 'n_scored', 'n_failed', 'status', 'rank']
    sections = [
        ('CROSS-VALIDATION', report.cv_tables),
        ('HOLDOUT (test set)', report.holdout_tables),
        ('IN-SAMPLE (optimistic, not a generalization estimate)', report.in_sample_tables),
    ]
    for title, tables in sections:
        for metric, table in tables.items():
            print("\n" + "=" * 60)
            print(f"{title} - {metric.upper()}")
            print("=" * 60)
            print(table[columns].to_string(index=False, float_format=lambda v: f"{v:.4f}"))

    for metric, table in report.paired.items():
        print(f"\nPaired t-tests vs null ({metric}):")
        print(table.to_string(index=False, float_format=lambda v: f"{v:.4f}"))

    if report.bootstrap_errors:
        print("\nBootstrap unavailable (no holdout intervals):")
        for label, error in report.bootstrap_errors.items():
            print(f"  {label}: {error}")
