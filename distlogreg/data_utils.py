"""Helpers for splitting datasets and measuring model accuracy."""

from __future__ import annotations

import math

import numpy as np

__all__ = ["split_dataset_argument", "train_test_split", "train_test_accuracy"]


def split_dataset_argument(arg):
    """Split ``"train,test"`` into its two file names.

    The test file name is empty if no comma is present.
    """
    train_file, _, test_file = arg.partition(",")
    return train_file, test_file


def train_test_split(data, labels, train_pct=0.8, rng=None):
    """Shuffle the columns of ``data`` and split them into train and test sets.

    ``data`` has one column per point (dense or sparse).  ``rng`` may be a
    numpy ``Generator``, a seed, or ``None``.  Returns
    ``(train_data, train_labels, test_data, test_labels)``.
    """
    generator = np.random.default_rng(rng)
    labels = np.asarray(labels)
    n_points = data.shape[1]
    if labels.shape[0] != n_points:
        raise ValueError("labels must have one entry per column of data")
    last_train_index = int(train_pct * n_points)
    order = generator.permutation(n_points)
    train_cols = order[:last_train_index]
    test_cols = order[last_train_index:]

    train_data = data[:, train_cols]
    test_data = data[:, test_cols]
    if hasattr(train_data, "tocsc"):
        train_data = train_data.tocsc()
        test_data = test_data.tocsc()
    return train_data, labels[train_cols], test_data, labels[test_cols]


def _accuracy(model, data, labels) -> float:
    labels = np.asarray(labels)
    if labels.size == 0:
        return math.nan
    predictions = np.asarray(model.classify(data))
    return float(np.count_nonzero(labels == predictions)) / labels.size


def train_test_accuracy(model, train_data, train_labels, test_data, test_labels):
    """Return ``(train_accuracy, test_accuracy)`` of a model with ``classify``."""
    return (
        _accuracy(model, train_data, train_labels),
        _accuracy(model, test_data, test_labels),
    )