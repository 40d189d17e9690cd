import copy
import pytest
import pandas as pd
import numpy as np

from modeleval.models import ModelSpec


@pytest.fixture(scope="session")
def seed():
    return 1234


@pytest.fixture
def dose_df(seed):
    """
    120 records resembling the dose-response data.
    Includes:
      - Y (continuous outcome, increasing with DOSE and WT)
      - DOSE with three levels {25, 37.5, 50}
      - SEX (binary 1/2, depends on WT)
      - RACE (categorical strings)
      - ID (identifier that must never enter features)
    """
    rng = np.random.default_rng(seed)
    n = 120

    dose = np.repeat([25.0, 37.5, 50.0], n // 3)
    wt = rng.normal(loc=80.0, scale=12.0, size=n)
    age = rng.integers(18, 60, size=n)
    p_female = 1.0 / (1.0 + np.exp((wt - 78.0) / 4.0))
    sex = np.where(rng.random(n) < p_female, 2, 1)

    df = pd.DataFrame({
        "ID": np.arange(1, n + 1),
        "Y": 100.0 + 60.0 * dose + 8.0 * wt + rng.normal(loc=0.0, scale=250.0, size=n),
        "DOSE": dose,
        "AGE": age,
        "WT": wt,
        "SEX": sex,
        "RACE": rng.choice(["1", "2", "7", "88"], size=n),
    })
    return df


@pytest.fixture
def dose_spec():
    return ModelSpec(family="linear", outcome="Y", predictors=("DOSE",), label="dose_only")


@pytest.fixture
def null_reg_spec():
    return ModelSpec(family="null", outcome="Y")


@pytest.fixture
def base_regression_config(tmp_path, seed):
    """
    Minimal config for a regression comparison on Y.
    """
    cfg = {
        "experiment": {
            "name": "pytest_regression",
            "seed": seed,
            "output_dir": str(tmp_path / "runs")
        },
        "data": {
            "dataset_path": "DUMMY.csv",
            "target_column": "Y",
            "target_type": "regression"
        },
        "preprocessing": {
            "columns_to_drop": [],
            "ignored_columns": ["ID"]
        },
        "split": {
            "train_fraction": 0.75
        },
        "cross_validation": {
            "n_splits": 4,
            "n_repeats": 2
        },
        "evaluation": {
            "metrics": ["rmse", "r2"],
            "in_sample": True
        },
        "models": [
            {"type": "linear", "label": "dose_only", "predictors": ["DOSE"]},
            {"type": "linear", "label": "all_predictors"},
            {"type": "lasso", "label": "lasso", "params": {"penalty": 0.1}},
            {"type": "random_forest", "label": "random_forest", "params": {"trees": 20}},
        ],
        "bootstrap": {
            "enabled": True,
            "n_draws": 20,
            "models": ["dose_only"]
        },
        "metrics": {"save_plots": False},
        "runtime": {"n_jobs": 1}
    }
    return cfg


@pytest.fixture
def base_classification_config(base_regression_config):
    cfg = copy.deepcopy(base_regression_config)
    cfg["experiment"]["name"] = "pytest_classification"
    cfg["data"]["target_column"] = "SEX"
    cfg["data"]["target_type"] = "classification"
    cfg["split"]["strata"] = "SEX"
    cfg["evaluation"] = {"metrics": ["accuracy", "roc_auc"], "in_sample": False}
    cfg["models"] = [
        {"type": "logistic", "label": "weight_only", "predictors": ["WT"]},
        {"type": "logistic", "label": "all_predictors", "params": {"max_iter": 2000}},
        {"type": "random_forest", "label": "random_forest", "params": {"trees": 20, "min_n": 2}},
    ]
    cfg["bootstrap"] = {"enabled": False}
    return cfg


@pytest.fixture
def patch_dataset_loader(monkeypatch, dose_df):
    """
    Monkeypatch load_dataset so runs don't hit disk.
    """
    def _fake_load_dataset(config, dataset_path=None):
        return dose_df.copy(), "test_dataset.csv"

    monkeypatch.setattr("modeleval.data.load_dataset", _fake_load_dataset)
    monkeypatch.setattr("runners.run_comparison.load_dataset", _fake_load_dataset)
    return _fake_load_dataset


@pytest.fixture
def write_yaml(tmp_path):
    import yaml
    def _write(cfg, name="temp.yaml"):
        p = tmp_path / name
        with open(p, "w") as f:
            yaml.safe_dump(cfg, f, default_flow_style=False)
        return str(p)
    return _write
