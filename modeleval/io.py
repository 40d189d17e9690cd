# I/O utilities for the comparison pipeline
# Config loading, result saving, run directory management

import os
import re
import json
import hashlib
from datetime import datetime

import yaml
import numpy as np
from pandas.api.types import is_numeric_dtype


def load_config(config_path):
    """Load YAML configuration file."""
    if not os.path.exists(config_path):
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path, 'r') as f:
        config = yaml.safe_load(f)

    if config is None:
        raise ValueError(f"Config file is empty or invalid: {config_path}")

    return config


def config_hash(config):
    """Generate deterministic hash of config for run naming."""
    config_str = json.dumps(config, sort_keys=True)
    return hashlib.md5(config_str.encode()).hexdigest()[:8]


def dataset_hash(df):
    """Generate hash of dataset content for fingerprinting."""
    # Hash based on shape and sample of data
    content = f"{df.shape}_{df.columns.tolist()}_{df.head(10).to_json()}_{df.tail(10).to_json()}"
    return hashlib.md5(content.encode()).hexdigest()[:12]


def create_run_dir(config, output_dir=None):
    """Create unique run directory for experiment outputs."""
    output_dir = output_dir or config['experiment'].get('output_dir', 'runs')
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    cfg_hash = config_hash(config)
    run_name = f"{config['experiment']['name']}_{timestamp}_{cfg_hash}"
    run_dir = os.path.join(output_dir, run_name)
    os.makedirs(run_dir, exist_ok=True)
    return run_dir


def safe_name(label):
    """Model label -> filename fragment."""
    return re.sub(r'[^A-Za-z0-9]+', '_', label).strip('_').lower() or 'model'


def _json_value(value):
    if value is None:
        return None
    value = float(value)
    return None if np.isnan(value) else value


def save_results(run_dir, config, report):
    """Save all comparison artifacts to run directory."""
    from .cv import records_to_frame

    # Save config
    with open(os.path.join(run_dir, 'config.yaml'), 'w') as f:
        yaml.dump(config, f, default_flow_style=False)

    # Save metrics (include fold-level scores for CI/boxplots)
    results_json = {
        'experiment_name': config['experiment']['name'],
        'seed': config['experiment']['seed'],
        'target_column': config['data']['target_column'],
        'target_type': config['data'].get('target_type', 'regression'),
        'models': [s.label for s in report.specs],
        'metrics': report.metrics,
        'split': {'n_train': report.n_train, 'n_test': report.n_test},
        'cv_results': {},
        'holdout_results': {},
        'bootstrap_errors': dict(report.bootstrap_errors),
    }

    for model, metrics in report.cv_summary.items():
        results_json['cv_results'][model] = {
            metric: {
                'mean': _json_value(values['mean']),
                'std': _json_value(values['std']),
                'all': [float(v) for v in values['all']],  # Include fold-level scores
                'n_failed': int(values['n_failed']),
            }
            for metric, values in metrics.items()
        }

    for r in report.holdout_records:
        results_json['holdout_results'].setdefault(r.model, {})[r.metric] = {
            'value': _json_value(r.value),
            'status': r.status,
            'error': r.error,
        }

    with open(os.path.join(run_dir, 'metrics.json'), 'w') as f:
        json.dump(results_json, f, indent=2)

    # Comparison tables
    for metric, table in report.cv_tables.items():
        table.to_csv(os.path.join(run_dir, f'cv_{metric}.csv'), index=False)
    for metric, table in report.holdout_tables.items():
        table.to_csv(os.path.join(run_dir, f'holdout_{metric}.csv'), index=False)
    for metric, table in report.in_sample_tables.items():
        table.to_csv(os.path.join(run_dir, f'in_sample_{metric}.csv'), index=False)
    for metric, table in report.paired.items():
        table.to_csv(os.path.join(run_dir, f'paired_tests_{metric}.csv'), index=False)
    records_to_frame(report.cv_records).to_csv(os.path.join(run_dir, 'cv_records.csv'), index=False)

    for label, summary in report.bootstrap.items():
        summary.to_csv(os.path.join(run_dir, f'bootstrap_{safe_name(label)}.csv'))
    for label, table in report.tuning.items():
        table.to_csv(os.path.join(run_dir, f'tuning_{safe_name(label)}.csv'), index=False)

    # Save CV distribution plot
    if config.get('metrics', {}).get('save_plots', True):
        _save_cv_plot(run_dir, config, report)

    print(f"Results saved to: {run_dir}")
    return run_dir


def _save_cv_plot(run_dir, config, report):
    """Save per-model CV score distributions, one panel per metric."""
    import matplotlib
    matplotlib.use('Agg')
    import matplotlib.pyplot as plt

    metrics = report.metrics
    fig, axes = plt.subplots(1, len(metrics), figsize=(6 * len(metrics), 5), squeeze=False)

    for ax, metric in zip(axes[0], metrics):
        labels = []
        scores = []
        for model, values in report.cv_summary.items():
            if values.get(metric, {}).get('all'):
                labels.append(model)
                scores.append(values[metric]['all'])
        if scores:
            ax.boxplot(scores)
            ax.set_xticks(range(1, len(labels) + 1))
            ax.set_xticklabels(labels, rotation=30, ha='right')
        ax.set_title(f"{metric.upper()} across folds")
        ax.set_ylabel(metric)

    plt.suptitle(f"{config['experiment']['name']} - {config['data']['target_column']}", fontsize=14)
    plt.tight_layout()
    plt.savefig(os.path.join(run_dir, 'cv_distribution.png'), dpi=150)
    plt.close()


def save_data_profile(run_dir, df, X, y, dataset_path):
    """Save dataset fingerprint/profile for reproducibility tracking."""
    numeric_target = is_numeric_dtype(y)
    profile = {
        'dataset_path': str(dataset_path) if dataset_path else 'in_memory',
        'dataset_hash': dataset_hash(df),
        'total_rows': len(df),
        'total_columns': len(df.columns),
        'feature_count': len(X.columns),
        'features_used': list(X.columns),
        'categorical_features': [c for c in X.columns if not is_numeric_dtype(X[c])],
        'target_column': y.name,
        'target_stats': {
            'mean': float(y.mean()) if numeric_target else None,
            'std': float(y.std()) if numeric_target else None,
            'min': float(y.min()) if numeric_target else None,
            'max': float(y.max()) if numeric_target else None,
            'unique_values': int(y.nunique()),
            'value_counts': {str(k): int(v) for k, v in y.value_counts().items()} if y.nunique() <= 10 else None
        },
        'missing_values': int(X.isnull().sum().sum()),
        'timestamp': datetime.now().isoformat()
    }

    with open(os.path.join(run_dir, 'data_profile.json'), 'w') as f:
        json.dump(profile, f, indent=2)

    return profile
