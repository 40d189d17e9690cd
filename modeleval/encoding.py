# Predictor encoding
# One-hot encoding learned on training data and reapplied unchanged to other subsets

import numpy as np
import pandas as pd
from pandas.api.types import is_numeric_dtype
from sklearn.preprocessing import OneHotEncoder


class FeatureEncoder:
    """
    Turns predictor columns into a numeric design matrix.

    Numeric columns pass through as floats. Every non-numeric column expands
    into one indicator column per category seen during fit(). Categories that
    were not seen during fit() encode as an all-zero indicator block, so test
    and validation subsets always get the training layout.
    """

    def __init__(self, predictors):
        self.predictors = list(predictors)
        self.numeric_columns = []
        self.categorical_columns = []
        self._onehot = None
        self._feature_names = None

    @property
    def is_fitted(self):
        return self._feature_names is not None

    @property
    def feature_names(self):
        if not self.is_fitted:
            raise RuntimeError("FeatureEncoder has not been fitted")
        return list(self._feature_names)

    def _check_columns(self, frame):
        missing = [c for c in self.predictors if c not in frame.columns]
        if missing:
            raise ValueError(f"Missing required predictor columns: {missing}")

    def fit(self, frame):
        self._check_columns(frame)
        self.numeric_columns = [c for c in self.predictors if is_numeric_dtype(frame[c])]
        self.categorical_columns = [c for c in self.predictors if c not in self.numeric_columns]

        names = list(self.numeric_columns)
        if self.categorical_columns:
            self._onehot = OneHotEncoder(handle_unknown='ignore', sparse_output=False)
            self._onehot.fit(frame[self.categorical_columns].astype(str))
            names.extend(self._onehot.get_feature_names_out(self.categorical_columns))
        self._feature_names = names
        return self

    def transform(self, frame):
        if not self.is_fitted:
            raise RuntimeError("FeatureEncoder has not been fitted")
        self._check_columns(frame)

        blocks = []
        if self.numeric_columns:
            blocks.append(frame[self.numeric_columns].to_numpy(dtype=float))
        if self.categorical_columns:
            blocks.append(self._onehot.transform(frame[self.categorical_columns].astype(str)))

        if blocks:
            values = np.hstack(blocks)
        else:
            values = np.empty((len(frame), 0))
        return pd.DataFrame(values, columns=self._feature_names, index=frame.index)

    def fit_transform(self, frame):
        return self.fit(frame).transform(frame)

    def __repr__(self):
        return (f"FeatureEncoder(numeric={self.numeric_columns}, "
                f"categorical={self.categorical_columns})")
