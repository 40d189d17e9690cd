# Model evaluation package
# Split, fit, score, resample and compare competing predictive models

from .errors import EvaluationError, InvalidParameter, InsufficientData, DegenerateMetric
from .config_schema import validate_config, ConfigValidationError
from .io import load_config, save_results, create_run_dir, save_data_profile
from .data import load_dataset, preprocess_data, validate_data_integrity
from .splits import Fold, holdout_split, kfold_split
from .encoding import FeatureEncoder
from .models import ModelSpec, FittedModel, SUPPORTED_MODELS, fit, predict, predict_scores
from .scoring import Metric, score, score_model
from .resampling import bootstrap, bootstrap_metrics
from .cv import ScoreRecord, evaluate_holdout, evaluate_in_sample, run_repeated_cv, summarize_cv
from .compare import compare, attach_intervals, paired_tests
from .tuning import expand_grid, tune_grid, select_best
from .pipeline import ComparisonReport, run_comparison

__all__ = [
    'EvaluationError',
    'InvalidParameter',
    'InsufficientData',
    'DegenerateMetric',
    'validate_config',
    'ConfigValidationError',
    'load_config',
    'save_results',
    'create_run_dir',
    'save_data_profile',
    'load_dataset',
    'preprocess_data',
    'validate_data_integrity',
    'Fold',
    'holdout_split',
    'kfold_split',
    'FeatureEncoder',
    'ModelSpec',
    'FittedModel',
    'SUPPORTED_MODELS',
    'fit',
    'predict',
    'predict_scores',
    'Metric',
    'score',
    'score_model',
    'bootstrap',
    'bootstrap_metrics',
    'ScoreRecord',
    'evaluate_holdout',
    'evaluate_in_sample',
    'run_repeated_cv',
    'summarize_cv',
    'compare',
    'attach_intervals',
    'paired_tests',
    'expand_grid',
    'tune_grid',
    'select_best',
    'ComparisonReport',
    'run_comparison',
]
