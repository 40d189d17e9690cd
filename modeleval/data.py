# Data loading and preprocessing utilities

import numpy as np
import pandas as pd
from pandas.api.types import is_numeric_dtype


def load_dataset(config, dataset_path=None):
    """Load dataset CSV from an explicit path or the config's data.dataset_path."""
    path = dataset_path or config['data'].get('dataset_path')
    if path is None:
        raise ValueError("No dataset path given (pass --dataset or set data.dataset_path)")

    print(f"Loading dataset: {path}")
    df = pd.read_csv(path)

    return df, path


def preprocess_data(df, config):
    """
    Preprocess dataset: extract features and target.

    Predictors are data.predictors when the config lists them, otherwise every
    column that is not the target, dropped or ignored.

    Returns:
        X: DataFrame of features
        y: Series of target values
    """
    target = config['data']['target_column']
    preprocessing = config.get('preprocessing', {})

    # Drop auxiliary columns
    cols_to_drop = preprocessing.get('columns_to_drop', [])
    df = df.drop(columns=[c for c in cols_to_drop if c in df.columns], errors='ignore')

    # Verify target exists
    if target not in df.columns:
        raise ValueError(f"Target column '{target}' not found in dataset. Available: {list(df.columns)}")

    # Get ignored columns (not dropped, just not used as features)
    ignored = preprocessing.get('ignored_columns', [])
    ignored = [c for c in ignored if c in df.columns and c != target]

    predictors = config['data'].get('predictors')
    if predictors:
        missing = [c for c in predictors if c not in df.columns]
        if missing:
            raise ValueError(f"Predictor columns not found in dataset: {missing}")
        if target in predictors:
            raise ValueError(f"Target column '{target}' cannot also be a predictor")
        feature_cols = list(predictors)
    else:
        feature_cols = [c for c in df.columns if c != target and c not in ignored]

    if not feature_cols:
        raise ValueError("No predictor columns left after dropping target and ignored columns")

    X = df[feature_cols].copy()
    y = df[target].copy()

    if ignored:
        print(f"IGNORED columns (not used in training): {ignored}")

    return X, y


def model_frame(X, y):
    """Join predictors and target back into the single frame the pipeline splits."""
    frame = X.copy()
    frame[y.name] = y.values
    return frame


def validate_data_integrity(X, y, config):
    """
    Validate data integrity before training.

    Checks:
    - No NaN/infinite values
    - Unique row index (fold leakage checks compare index labels)
    - Numeric target for regression, at least two classes for classification
    """
    errors = []

    # Check for NaN in features
    nan_cols = X.columns[X.isnull().any()].tolist()
    if nan_cols:
        errors.append(f"NaN values found in features: {nan_cols}")

    # Check for NaN in target
    if y.isnull().any():
        errors.append(f"NaN values found in target ({y.name}): {y.isnull().sum()} missing")

    # Check for infinite values in features
    numeric_cols = X.select_dtypes(include=[np.number]).columns
    for col in numeric_cols:
        if not np.isfinite(X[col]).all():
            errors.append(f"Infinite values found in feature: {col}")

    if not X.index.is_unique:
        errors.append("Row index contains duplicate labels")

    target_type = config['data'].get('target_type', 'regression')
    if target_type == 'regression':
        if not is_numeric_dtype(y):
            errors.append(f"Regression target {y.name} must be numeric, got {y.dtype}")
        elif not np.isfinite(y).all():
            errors.append(f"Infinite values found in target: {y.name}")
    elif y.nunique() < 2:
        errors.append(f"Classification target {y.name} has fewer than two classes")

    if errors:
        raise ValueError("Data integrity check failed:\n  - " + "\n  - ".join(errors))

    return True
