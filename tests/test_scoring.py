import pytest
import numpy as np

from modeleval.errors import DegenerateMetric, InvalidParameter
from modeleval.models import fit, predict
from modeleval.scoring import score, score_model, metric_direction, default_metrics, Metric


def test_rmse_and_mae_known_values():
    preds = np.array([1.0, 2.0, 3.0, 4.0])
    truth = np.array([1.0, 2.0, 5.0, 0.0])
    assert score(preds, truth, "rmse").value == pytest.approx(np.sqrt((0 + 0 + 4 + 16) / 4))
    assert score(preds, truth, "mae").value == pytest.approx(1.5)


def test_perfect_predictions():
    truth = np.array([3.0, 1.0, 4.0, 1.0, 5.0])
    assert score(truth, truth, "rmse").value == 0.0
    assert score(truth, truth, "r2").value == 1.0


def test_r2_matches_rmse_identity(dose_df, dose_spec):
    fitted = fit(dose_spec, dose_df)
    preds = predict(fitted, dose_df)
    truth = dose_df["Y"].to_numpy()

    rmse = score(preds, truth, "rmse").value
    r2 = score(preds, truth, "r2").value
    ss_tot = np.sum((truth - truth.mean()) ** 2)
    assert r2 == pytest.approx(1 - rmse ** 2 * len(truth) / ss_tot)


def test_r2_undefined_for_constant_truth():
    with pytest.raises(DegenerateMetric, match="zero variance"):
        score(np.array([1.0, 2.0, 3.0]), np.array([2.0, 2.0, 2.0]), "r2")


def test_accuracy():
    m = score(np.array([1, 2, 2, 1]), np.array([1, 2, 1, 1]), "accuracy")
    assert m.value == 0.75
    assert m.n == 4
    assert isinstance(m, Metric)


def test_roc_auc_perfect_inverted_and_constant():
    truth = np.array([0, 0, 1, 1])
    assert score(np.array([0.1, 0.2, 0.8, 0.9]), truth, "roc_auc").value == 1.0
    assert score(np.array([0.9, 0.8, 0.2, 0.1]), truth, "roc_auc").value == 0.0
    assert score(np.full(4, 0.5), truth, "roc_auc").value == 0.5


def test_roc_auc_explicit_positive_label():
    truth = np.array([1, 1, 2, 2])
    scores = np.array([0.9, 0.8, 0.2, 0.1])
    assert score(scores, truth, "roc_auc", positive=1).value == 1.0
    assert score(scores, truth, "roc_auc").value == 0.0


def test_roc_auc_single_class_is_degenerate():
    with pytest.raises(DegenerateMetric):
        score(np.array([0.1, 0.7]), np.array([1, 1]), "roc_auc")


def test_length_mismatch_rejected():
    with pytest.raises(InvalidParameter, match="predictions"):
        score(np.array([1.0, 2.0]), np.array([1.0]), "rmse")


def test_empty_subset_is_degenerate():
    with pytest.raises(DegenerateMetric, match="empty"):
        score(np.array([]), np.array([]), "rmse")


def test_unknown_metric_rejected():
    with pytest.raises(InvalidParameter, match="Unknown metric"):
        score(np.array([1.0]), np.array([1.0]), "mape")


def test_metric_direction():
    assert metric_direction("rmse") == "min"
    assert metric_direction("mae") == "min"
    assert metric_direction("r2") == "max"
    assert metric_direction("roc_auc") == "max"
    assert default_metrics("classification") == ["accuracy", "roc_auc"]


def test_score_model_null_is_worse_than_dose(dose_df, dose_spec, null_reg_spec):
    null_rmse = score_model(fit(null_reg_spec, dose_df), dose_df, "rmse").value
    dose_rmse = score_model(fit(dose_spec, dose_df), dose_df, "rmse").value
    assert dose_rmse < null_rmse
    # Null model R2 on its own training data is exactly zero
    assert score_model(fit(null_reg_spec, dose_df), dose_df, "r2").value == pytest.approx(0.0)
