import os

import pytest

from modeleval.config_schema import validate_config, ConfigValidationError
from modeleval.io import load_config


def test_valid_configs_pass(base_regression_config, base_classification_config):
    assert validate_config(base_regression_config)
    assert validate_config(base_classification_config)


CONFIG_DIR = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "configs")


@pytest.mark.parametrize("name", ["comparison_regression.yaml", "comparison_classification.yaml"])
def test_shipped_configs_are_valid(name):
    assert validate_config(load_config(os.path.join(CONFIG_DIR, name)))


def test_missing_section_reported(base_regression_config):
    del base_regression_config["split"]
    with pytest.raises(ConfigValidationError, match="Missing required section: 'split'"):
        validate_config(base_regression_config)


def test_missing_key_reported(base_regression_config):
    del base_regression_config["data"]["target_column"]
    with pytest.raises(ConfigValidationError, match="data.target_column"):
        validate_config(base_regression_config)


def test_missing_models_reported(base_regression_config):
    del base_regression_config["models"]
    with pytest.raises(ConfigValidationError, match="'models'"):
        validate_config(base_regression_config)


def test_invalid_target_type(base_regression_config):
    base_regression_config["data"]["target_type"] = "survival"
    with pytest.raises(ConfigValidationError, match="Invalid target_type"):
        validate_config(base_regression_config)


def test_invalid_model_type(base_regression_config):
    base_regression_config["models"].append({"type": "xgboost"})
    with pytest.raises(ConfigValidationError, match="Invalid model type 'xgboost'"):
        validate_config(base_regression_config)


def test_model_task_mismatch(base_regression_config):
    base_regression_config["models"].append({"type": "logistic"})
    with pytest.raises(ConfigValidationError, match="does not support target_type"):
        validate_config(base_regression_config)


def test_metric_task_mismatch(base_regression_config):
    base_regression_config["evaluation"]["metrics"] = ["rmse", "roc_auc"]
    with pytest.raises(ConfigValidationError, match="Invalid metrics"):
        validate_config(base_regression_config)


@pytest.mark.parametrize("fraction", [0, 1, 1.2, "0.75"])
def test_train_fraction_range(base_regression_config, fraction):
    base_regression_config["split"]["train_fraction"] = fraction
    with pytest.raises(ConfigValidationError, match="train_fraction"):
        validate_config(base_regression_config)


def test_n_splits_below_two(base_regression_config):
    base_regression_config["cross_validation"]["n_splits"] = 1
    with pytest.raises(ConfigValidationError, match="n_splits must be >= 2"):
        validate_config(base_regression_config)


def test_seed_must_be_int(base_regression_config):
    base_regression_config["experiment"]["seed"] = "1234"
    with pytest.raises(ConfigValidationError, match="seed must be an integer"):
        validate_config(base_regression_config)


def test_bootstrap_draws_checked_only_when_enabled(base_regression_config):
    base_regression_config["bootstrap"]["n_draws"] = 0
    with pytest.raises(ConfigValidationError, match="n_draws"):
        validate_config(base_regression_config)

    base_regression_config["bootstrap"]["enabled"] = False
    assert validate_config(base_regression_config)


def test_n_jobs_zero_rejected(base_regression_config):
    base_regression_config["runtime"]["n_jobs"] = 0
    with pytest.raises(ConfigValidationError, match="n_jobs"):
        validate_config(base_regression_config)


def test_malformed_tuning_entry(base_regression_config):
    base_regression_config["tuning"] = [{"model": "lasso", "grid": [0.1, 1.0]}]
    with pytest.raises(ConfigValidationError, match="tuning\\[0\\]"):
        validate_config(base_regression_config)


def test_all_errors_reported_together(base_regression_config):
    base_regression_config["experiment"]["seed"] = 1.5
    base_regression_config["cross_validation"]["n_splits"] = 1
    base_regression_config["split"]["train_fraction"] = 2
    with pytest.raises(ConfigValidationError) as exc:
        validate_config(base_regression_config)
    msg = str(exc.value)
    assert "seed" in msg and "n_splits" in msg and "train_fraction" in msg


def test_load_config_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(str(tmp_path / "nope.yaml"))


def test_load_config_roundtrip(base_regression_config, write_yaml):
    path = write_yaml(base_regression_config)
    assert load_config(path) == base_regression_config
