# Dataset splitting utilities
# Holdout train/test partitions and repeated k-fold folds

from dataclasses import dataclass

import numpy as np
import pandas as pd
from sklearn.model_selection import (
    RepeatedKFold, RepeatedStratifiedKFold, train_test_split
)

from .errors import InvalidParameter
from .seeds import derive_seed


@dataclass(frozen=True)
class Fold:
    """One (train, validation) pair of a repeated k-fold split."""

    train: pd.DataFrame
    validation: pd.DataFrame
    repeat: int
    fold: int

    @property
    def index(self):
        return (self.repeat, self.fold)


def holdout_split(dataset, train_fraction, seed, strata=None):
    """
    Partition records into disjoint training and testing subsets.

    The training subset gets floor(train_fraction * n) records, so 120 records
    at 0.75 always split 90/30. The same seed always yields the same partition.

    Args:
        dataset: DataFrame to split (left untouched)
        train_fraction: float strictly between 0 and 1
        seed: any integer; wrapped modulo 2**32 before shuffling
        strata: optional column name to stratify on

    Returns:
        (train, test) DataFrame copies keeping the original index
    """
    if not 0 < train_fraction < 1:
        raise InvalidParameter(f"train_fraction must be in (0, 1), got {train_fraction}")

    n = len(dataset)
    n_train = int(np.floor(train_fraction * n))
    if n_train < 1 or n_train >= n:
        raise InvalidParameter(
            f"train_fraction={train_fraction} on {n} records leaves an empty "
            f"training or testing subset"
        )

    stratify = None
    if strata is not None:
        if strata not in dataset.columns:
            raise InvalidParameter(f"Strata column '{strata}' not found in dataset")
        stratify = dataset[strata].values

    positions = np.arange(n)
    try:
        train_pos, test_pos = train_test_split(
            positions, train_size=n_train, random_state=derive_seed(seed, 0),
            shuffle=True, stratify=stratify
        )
    except ValueError as e:
        # sklearn rejects strata with too few members per class
        if strata is None:
            raise
        raise InvalidParameter(f"Cannot stratify holdout split on '{strata}': {e}") from e

    train = dataset.iloc[np.sort(train_pos)].copy()
    test = dataset.iloc[np.sort(test_pos)].copy()
    return train, test


def kfold_split(dataset, k, repeats=1, seed=0, strata=None):
    """
    Build k * repeats (train, validation) folds.

    Within one repeat the validation sets are disjoint and together cover
    every record exactly once. Each repeat reshuffles from the seed.
    """
    if k < 2:
        raise InvalidParameter(f"k must be >= 2, got {k}")
    if repeats < 1:
        raise InvalidParameter(f"repeats must be >= 1, got {repeats}")
    if len(dataset) < k:
        raise InvalidParameter(f"Cannot build {k} folds from {len(dataset)} records")

    # Any integer seed, wrapped into the range sklearn accepts
    seed = derive_seed(seed, 0)
    positions = np.arange(len(dataset))
    if strata is None:
        cv = RepeatedKFold(n_splits=k, n_repeats=repeats, random_state=seed)
        split_iter = cv.split(positions)
    else:
        if strata not in dataset.columns:
            raise InvalidParameter(f"Strata column '{strata}' not found in dataset")
        counts = dataset[strata].value_counts()
        if counts.min() < k:
            raise InvalidParameter(
                f"Stratified {k}-fold needs at least {k} records per class of '{strata}', "
                f"smallest class has {counts.min()}"
            )
        cv = RepeatedStratifiedKFold(n_splits=k, n_repeats=repeats, random_state=seed)
        split_iter = cv.split(positions, dataset[strata].values)

    folds = []
    for fold_idx, (train_pos, val_pos) in enumerate(split_iter):
        folds.append(Fold(
            train=dataset.iloc[np.sort(train_pos)].copy(),
            validation=dataset.iloc[np.sort(val_pos)].copy(),
            repeat=fold_idx // k,
            fold=fold_idx % k,
        ))
    return folds


def validate_fold(fold):
    """
    Check that a fold's train and validation indices are disjoint.

    Raises ValueError on overlap, which would leak validation records
    into training.
    """
    overlap = set(fold.train.index).intersection(fold.validation.index)
    if overlap:
        raise ValueError(f"CV LEAK: Train/val indices overlap! {len(overlap)} shared indices")
    return True
