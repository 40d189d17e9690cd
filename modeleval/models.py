# Model building utilities
# Closed set of model families behind one fit/predict interface

from dataclasses import dataclass, field, replace
from numbers import Real
from typing import Any, Optional, Tuple

import numpy as np
import pandas as pd
from pandas.api.types import is_numeric_dtype
from sklearn.ensemble import RandomForestClassifier, RandomForestRegressor
from sklearn.linear_model import Lasso, LinearRegression, LogisticRegression
from sklearn.pipeline import make_pipeline
from sklearn.preprocessing import StandardScaler

from .encoding import FeatureEncoder
from .errors import InsufficientData, InvalidParameter


SUPPORTED_MODELS = {
    'regression': ['null', 'linear', 'lasso', 'random_forest'],
    'classification': ['null', 'logistic', 'random_forest']
}

FAMILIES = ['null', 'linear', 'lasso', 'logistic', 'random_forest']

DEFAULT_TASK = {
    'null': 'regression',
    'linear': 'regression',
    'lasso': 'regression',
    'logistic': 'classification',
    'random_forest': 'regression',
}

ALLOWED_PARAMS = {
    'null': [],
    'linear': [],
    'lasso': ['penalty'],
    'logistic': ['C', 'max_iter'],
    'random_forest': ['trees', 'mtry', 'min_n'],
}

# Models that support random_state parameter
MODELS_WITH_RANDOM_STATE = ['random_forest']

# Models that are deterministic (no random_state needed)
DETERMINISTIC_MODELS = ['null', 'linear', 'lasso', 'logistic']

# Families whose parameter count is one coefficient per encoded column plus an intercept
PARAMETRIC_MODELS = ['linear', 'lasso', 'logistic']

DEFAULT_LASSO_PENALTY = 0.1
# Large C makes the logistic fit effectively unpenalised
DEFAULT_LOGISTIC_C = 1e6
DEFAULT_TREES = 500


def _is_int(value):
    return isinstance(value, (int, np.integer)) and not isinstance(value, bool)


@dataclass(frozen=True)
class ModelSpec:
    """
    Immutable description of one candidate model.

    family: one of FAMILIES
    outcome: outcome column
    predictors: predictor columns (ignored by the null model)
    task: 'regression' or 'classification' (defaults per family)
    params: hyperparameters, stored as sorted (name, value) pairs
    label: display name used in comparison tables
    """

    family: str
    outcome: str
    predictors: Tuple[str, ...] = ()
    task: Optional[str] = None
    params: Any = field(default_factory=tuple)
    label: Optional[str] = None

    def __post_init__(self):
        if self.family not in FAMILIES:
            raise InvalidParameter(f"Unknown model family: '{self.family}'. Supported: {FAMILIES}")

        task = self.task or DEFAULT_TASK[self.family]
        if self.family not in SUPPORTED_MODELS.get(task, []):
            raise InvalidParameter(
                f"Model family '{self.family}' does not support task '{task}'. "
                f"Supported: {SUPPORTED_MODELS}"
            )

        predictors = () if self.family == 'null' else tuple(self.predictors)
        if self.family != 'null' and not predictors:
            raise InvalidParameter(f"Model family '{self.family}' needs at least one predictor")
        if self.outcome in predictors:
            raise InvalidParameter(f"Outcome '{self.outcome}' cannot also be a predictor")

        params = dict(self.params)
        _validate_params(self.family, params, len(predictors))

        label = self.label
        if label is None:
            label = 'null' if self.family == 'null' else f"{self.family}({', '.join(predictors)})"

        object.__setattr__(self, 'task', task)
        object.__setattr__(self, 'predictors', predictors)
        object.__setattr__(self, 'params', tuple(sorted(params.items())))
        object.__setattr__(self, 'label', label)

    @property
    def hyperparameters(self):
        return dict(self.params)

    def param(self, name, default=None):
        return self.hyperparameters.get(name, default)

    def with_params(self, label=None, **params):
        """Return a copy with some hyperparameters replaced."""
        merged = self.hyperparameters
        merged.update(params)
        return replace(self, params=merged, label=label)

    @property
    def is_null(self):
        return self.family == 'null'


def _validate_params(family, params, n_predictors):
    errors = []
    unknown = [k for k in params if k not in ALLOWED_PARAMS[family]]
    if unknown:
        errors.append(f"Unknown hyperparameters for '{family}': {unknown}. Allowed: {ALLOWED_PARAMS[family]}")

    if 'penalty' in params:
        p = params['penalty']
        if not isinstance(p, Real) or isinstance(p, bool) or p < 0:
            errors.append(f"penalty must be a number >= 0, got {p!r}")
    if 'C' in params:
        c = params['C']
        if not isinstance(c, Real) or isinstance(c, bool) or c <= 0:
            errors.append(f"C must be a number > 0, got {c!r}")
    for name in ('trees', 'min_n', 'max_iter'):
        if name in params and (not _is_int(params[name]) or params[name] < 1):
            errors.append(f"{name} must be an integer >= 1, got {params[name]!r}")
    if 'mtry' in params:
        m = params['mtry']
        if not _is_int(m) or m < 1 or m > n_predictors:
            errors.append(f"mtry must be an integer in [1, {n_predictors}], got {m!r}")

    if errors:
        raise InvalidParameter("; ".join(errors))


@dataclass(frozen=True)
class FittedModel:
    """Result of fit(): the ModelSpec plus everything needed to predict."""

    spec: ModelSpec
    encoder: Optional[FeatureEncoder]
    estimator: Any
    n_train: int
    classes: Tuple[Any, ...] = ()
    constant: Any = None
    positive_rate: Optional[float] = None

    @property
    def positive_class(self):
        return self.classes[-1] if self.classes else None


def build_estimator(spec, n_features, seed=0):
    """
    Build and return an unfitted estimator for a spec.

    Note: linear, lasso and logistic fits are deterministic solvers and don't use
    the seed. Random forests use it as random_state.
    """
    family = spec.family

    if family == 'linear':
        return LinearRegression()

    elif family == 'lasso':
        penalty = spec.param('penalty', DEFAULT_LASSO_PENALTY)
        # Predictors are standardised before the L1 penalty is applied
        if penalty == 0:
            return make_pipeline(StandardScaler(), LinearRegression())
        return make_pipeline(StandardScaler(), Lasso(alpha=penalty, max_iter=10000))

    elif family == 'logistic':
        return LogisticRegression(
            C=spec.param('C', DEFAULT_LOGISTIC_C),
            max_iter=spec.param('max_iter', 1000)
        )

    elif family == 'random_forest':
        mtry = spec.param('mtry')
        if mtry is None:
            max_features = max(1, int(np.floor(np.sqrt(n_features))))
        else:
            max_features = min(mtry, n_features)
        default_min_n = 5 if spec.task == 'regression' else 1
        params = {
            'n_estimators': spec.param('trees', DEFAULT_TREES),
            'min_samples_leaf': spec.param('min_n', default_min_n),
            'max_features': max_features,
            'random_state': seed,
        }
        if spec.task == 'regression':
            return RandomForestRegressor(**params)
        return RandomForestClassifier(**params)

    else:
        raise InvalidParameter(f"No estimator for model family '{family}'")


def _required_records(spec, n_features):
    if spec.family in PARAMETRIC_MODELS:
        return n_features + 1
    if spec.family == 'random_forest':
        return 2
    return 1


def fit(spec, training, seed=0):
    """
    Fit a spec on a training subset.

    Categorical predictors are one-hot encoded by a FeatureEncoder learned on
    this subset; the encoder travels with the FittedModel so any later subset
    is encoded the same way. The training frame is never modified.

    Raises:
        InsufficientData: fewer records than estimable parameters, or a
            classification fit that sees a single class
    """
    if spec.outcome not in training.columns:
        raise ValueError(f"Outcome column '{spec.outcome}' not found. Available: {list(training.columns)}")

    y = training[spec.outcome]
    if len(y) < 1:
        raise InsufficientData(f"Cannot fit '{spec.label}' on an empty subset")
    if spec.task == 'regression' and not is_numeric_dtype(y):
        raise InvalidParameter(f"Regression outcome '{spec.outcome}' must be numeric, got {y.dtype}")

    classes = ()
    positive_rate = None
    if spec.task == 'classification':
        classes = tuple(sorted(pd.unique(y)))
        positive_rate = float((y == classes[-1]).mean())

    if spec.is_null:
        if spec.task == 'regression':
            constant = float(y.mean())
        else:
            counts = y.value_counts()
            constant = sorted(counts[counts == counts.max()].index)[0]
        return FittedModel(spec=spec, encoder=None, estimator=None, n_train=len(y),
                           classes=classes, constant=constant, positive_rate=positive_rate)

    encoder = FeatureEncoder(spec.predictors).fit(training)
    X = encoder.transform(training).to_numpy()

    required = _required_records(spec, X.shape[1])
    if len(y) < required:
        raise InsufficientData(
            f"'{spec.label}' needs at least {required} records for {X.shape[1]} "
            f"encoded predictors, got {len(y)}"
        )
    if spec.task == 'classification' and len(classes) < 2:
        raise InsufficientData(
            f"'{spec.label}' needs at least two classes of '{spec.outcome}', got {list(classes)}"
        )

    estimator = build_estimator(spec, X.shape[1], seed=seed)
    estimator.fit(X, y.to_numpy())

    return FittedModel(spec=spec, encoder=encoder, estimator=estimator, n_train=len(y),
                       classes=classes, positive_rate=positive_rate)


def predict(fitted, subset):
    """One prediction per record of subset, in the same order."""
    n = len(subset)
    if fitted.spec.is_null:
        return np.array([fitted.constant] * n)
    if n == 0:
        return np.array([])
    X = fitted.encoder.transform(subset).to_numpy()
    return np.asarray(fitted.estimator.predict(X))


def predict_scores(fitted, subset):
    """
    Continuous scores per record.

    Regression models return their predictions. Binary classifiers return the
    probability of the positive class (the last of the sorted labels).
    """
    if fitted.spec.task == 'regression':
        return predict(fitted, subset).astype(float)

    if len(fitted.classes) > 2:
        raise InvalidParameter(
            f"Positive-class scores need binary labels, '{fitted.spec.label}' "
            f"was fitted on {len(fitted.classes)} classes"
        )

    n = len(subset)
    if fitted.spec.is_null:
        return np.full(n, fitted.positive_rate, dtype=float)
    if n == 0:
        return np.array([], dtype=float)

    X = fitted.encoder.transform(subset).to_numpy()
    proba = fitted.estimator.predict_proba(X)
    col = list(fitted.estimator.classes_).index(fitted.positive_class)
    return proba[:, col]


def null_spec(outcome, task='regression'):
    return ModelSpec(family='null', outcome=outcome, task=task, label='null')


def specs_from_config(config, predictors):
    """
    Build ModelSpecs from the `models` section of a run config.

    The null model is always first; a `null` entry in the config is not
    duplicated. Each entry may override `predictors` and `label`.
    """
    outcome = config['data']['target_column']
    task = config['data'].get('target_type', 'regression')

    specs = [null_spec(outcome, task)]
    for entry in config.get('models', []):
        family = entry['type']
        if family == 'null':
            continue
        specs.append(ModelSpec(
            family=family,
            outcome=outcome,
            predictors=tuple(entry.get('predictors') or predictors),
            task=task,
            params=entry.get('params') or {},
            label=entry.get('label'),
        ))

    labels = [s.label for s in specs]
    duplicates = sorted({l for l in labels if labels.count(l) > 1})
    if duplicates:
        raise InvalidParameter(f"Model labels must be unique, duplicated: {duplicates}")
    return specs


def get_model_info(model_type):
    """Get information about a model family."""
    info = {
        'type': model_type,
        'supports_random_state': model_type in MODELS_WITH_RANDOM_STATE,
        'is_deterministic': model_type in DETERMINISTIC_MODELS,
        'tasks': [t for t, families in SUPPORTED_MODELS.items() if model_type in families],
        'params': ALLOWED_PARAMS.get(model_type, [])
    }
    return info
