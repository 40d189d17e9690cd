import pytest
import numpy as np
import pandas as pd

from modeleval.data import preprocess_data, validate_data_integrity, model_frame, load_dataset


def test_ignored_columns_never_become_features(dose_df, base_regression_config):
    X, y = preprocess_data(dose_df, base_regression_config)
    assert "ID" not in X.columns
    assert "Y" not in X.columns
    assert y.name == "Y"
    assert list(X.columns) == ["DOSE", "AGE", "WT", "SEX", "RACE"]


def test_columns_to_drop_removed(dose_df, base_regression_config):
    base_regression_config["preprocessing"]["columns_to_drop"] = ["AGE"]
    X, _ = preprocess_data(dose_df, base_regression_config)
    assert "AGE" not in X.columns


def test_explicit_predictors(dose_df, base_regression_config):
    base_regression_config["data"]["predictors"] = ["WT", "DOSE"]
    X, _ = preprocess_data(dose_df, base_regression_config)
    assert list(X.columns) == ["WT", "DOSE"]


def test_explicit_predictor_missing(dose_df, base_regression_config):
    base_regression_config["data"]["predictors"] = ["HEIGHT"]
    with pytest.raises(ValueError, match="not found"):
        preprocess_data(dose_df, base_regression_config)


def test_missing_target(dose_df, base_regression_config):
    base_regression_config["data"]["target_column"] = "CONC"
    with pytest.raises(ValueError, match="not found"):
        preprocess_data(dose_df, base_regression_config)


def test_nan_feature_detected(dose_df, base_regression_config):
    X, y = preprocess_data(dose_df, base_regression_config)
    X.loc[X.index[3], "WT"] = np.nan
    with pytest.raises(ValueError, match="NaN values found in features"):
        validate_data_integrity(X, y, base_regression_config)


def test_infinite_target_detected(dose_df, base_regression_config):
    X, y = preprocess_data(dose_df, base_regression_config)
    y.iloc[0] = np.inf
    with pytest.raises(ValueError, match="Infinite values found in target"):
        validate_data_integrity(X, y, base_regression_config)


def test_non_numeric_regression_target(dose_df, base_regression_config):
    base_regression_config["data"]["target_column"] = "RACE"
    X, y = preprocess_data(dose_df, base_regression_config)
    with pytest.raises(ValueError, match="must be numeric"):
        validate_data_integrity(X, y, base_regression_config)


def test_single_class_target(dose_df, base_classification_config):
    df = dose_df.copy()
    df["SEX"] = 1
    X, y = preprocess_data(df, base_classification_config)
    with pytest.raises(ValueError, match="fewer than two classes"):
        validate_data_integrity(X, y, base_classification_config)


def test_duplicate_index_detected(dose_df, base_regression_config):
    df = pd.concat([dose_df, dose_df.head(2)])
    X, y = preprocess_data(df, base_regression_config)
    with pytest.raises(ValueError, match="duplicate"):
        validate_data_integrity(X, y, base_regression_config)


def test_clean_data_passes(dose_df, base_regression_config):
    X, y = preprocess_data(dose_df, base_regression_config)
    assert validate_data_integrity(X, y, base_regression_config)


def test_model_frame_joins_target(dose_df, base_regression_config):
    X, y = preprocess_data(dose_df, base_regression_config)
    frame = model_frame(X, y)
    assert list(frame.columns) == list(X.columns) + ["Y"]
    assert len(frame) == len(dose_df)


def test_load_dataset_reads_csv(tmp_path, dose_df, base_regression_config):
    path = tmp_path / "data.csv"
    dose_df.to_csv(path, index=False)
    df, actual = load_dataset(base_regression_config, str(path))
    assert actual == str(path)
    assert df.shape == dose_df.shape


def test_load_dataset_needs_path(base_regression_config):
    del base_regression_config["data"]["dataset_path"]
    with pytest.raises(ValueError, match="No dataset path"):
        load_dataset(base_regression_config)
