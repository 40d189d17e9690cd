# Config schema validation
# Validates config structure, types and value ranges

from .models import FAMILIES, SUPPORTED_MODELS
from .scoring import CLASSIFICATION_METRICS, REGRESSION_METRICS

REQUIRED_KEYS = {
    'experiment': ['name', 'seed'],
    'data': ['target_column', 'target_type'],
    'split': ['train_fraction'],
    'cross_validation': ['n_splits'],
}

ALLOWED_TARGET_TYPES = ['regression', 'classification']

ALLOWED_MODEL_TYPES = FAMILIES

ALLOWED_METRICS = {
    'regression': REGRESSION_METRICS,
    'classification': CLASSIFICATION_METRICS,
}


class ConfigValidationError(Exception):
    """Raised when config validation fails."""
    pass


def _is_int(value):
    return isinstance(value, int) and not isinstance(value, bool)


def _is_number(value):
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def validate_config(config):
    """
    Validate a model comparison run configuration.

    Args:
        config: dict - Configuration dictionary

    Raises:
        ConfigValidationError listing every problem found
    """
    errors = []

    if not isinstance(config, dict):
        raise ConfigValidationError("Config validation failed:\n  - config must be a mapping")

    # Check required top-level keys
    for section, required_keys in REQUIRED_KEYS.items():
        if section not in config:
            errors.append(f"Missing required section: '{section}'")
            continue
        for key in required_keys:
            if key not in config[section]:
                errors.append(f"Missing required key: '{section}.{key}'")

    if 'models' not in config:
        errors.append("Missing required section: 'models'")

    if errors:
        raise ConfigValidationError("Config validation failed:\n  - " + "\n  - ".join(errors))

    # Validate target_type
    target_type = config['data'].get('target_type')
    if target_type not in ALLOWED_TARGET_TYPES:
        errors.append(f"Invalid target_type '{target_type}'. Allowed: {ALLOWED_TARGET_TYPES}")

    # Validate models
    models = config['models']
    if not isinstance(models, list) or not models:
        errors.append("models must be a non-empty list")
        models = []
    for i, entry in enumerate(models):
        if not isinstance(entry, dict) or 'type' not in entry:
            errors.append(f"models[{i}] must be a mapping with a 'type' key")
            continue
        model_type = entry['type']
        if model_type not in ALLOWED_MODEL_TYPES:
            errors.append(f"Invalid model type '{model_type}'. Allowed: {ALLOWED_MODEL_TYPES}")
        elif target_type in SUPPORTED_MODELS and model_type not in SUPPORTED_MODELS[target_type]:
            errors.append(
                f"Model type '{model_type}' does not support target_type '{target_type}'. "
                f"Allowed: {SUPPORTED_MODELS[target_type]}"
            )
        if not isinstance(entry.get('params') or {}, dict):
            errors.append(f"models[{i}].params must be a mapping")

    # Validate metrics
    metrics = config.get('evaluation', {}).get('metrics')
    if metrics is not None and target_type in ALLOWED_METRICS:
        if not isinstance(metrics, list) or not metrics:
            errors.append("evaluation.metrics must be a non-empty list")
        else:
            bad = [m for m in metrics if m not in ALLOWED_METRICS[target_type]]
            if bad:
                errors.append(
                    f"Invalid metrics {bad} for target_type '{target_type}'. "
                    f"Allowed: {ALLOWED_METRICS[target_type]}"
                )

    # Validate types
    if not _is_int(config['experiment'].get('seed')):
        errors.append("experiment.seed must be an integer")

    fraction = config['split'].get('train_fraction')
    if not _is_number(fraction) or not 0 < fraction < 1:
        errors.append("split.train_fraction must be a number in (0, 1)")

    n_splits = config['cross_validation'].get('n_splits')
    if not _is_int(n_splits):
        errors.append("cross_validation.n_splits must be an integer")
    elif n_splits < 2:
        errors.append("cross_validation.n_splits must be >= 2")

    n_repeats = config['cross_validation'].get('n_repeats', 1)
    if not _is_int(n_repeats) or n_repeats < 1:
        errors.append("cross_validation.n_repeats must be an integer >= 1")

    boot = config.get('bootstrap', {})
    if boot.get('enabled'):
        n_draws = boot.get('n_draws', 100)
        if not _is_int(n_draws) or n_draws < 1:
            errors.append("bootstrap.n_draws must be an integer >= 1")

    n_jobs = config.get('runtime', {}).get('n_jobs', 1)
    if not _is_int(n_jobs) or n_jobs == 0:
        errors.append("runtime.n_jobs must be a non-zero integer")

    for i, entry in enumerate(config.get('tuning', []) or []):
        if not isinstance(entry, dict) or 'model' not in entry or not isinstance(entry.get('grid'), dict):
            errors.append(f"tuning[{i}] must be a mapping with 'model' and a 'grid' mapping")

    if errors:
        raise ConfigValidationError("Config validation failed:\n  - " + "\n  - ".join(errors))

    return True
