"""Splitting data into per-partition problems and training on one of them."""

from __future__ import annotations

import numpy as np
from scipy import sparse

from distlogreg.l1r_lr import solve_l1r_lr_weighted

__all__ = ["to_transposed_features", "partition_labels", "train"]


def _partition_bounds(n_points, partitions):
    """Return ``(start, end)`` for each partition.

    Every partition but the last holds ``ceil(n_points / partitions)`` points;
    the last holds the rest, which must not be empty.
    """
    if partitions < 1:
        raise ValueError("partitions must be at least 1")
    per_partition = -(-n_points // partitions)
    if (partitions - 1) * per_partition >= n_points:
        raise ValueError(
            f"{n_points} points cannot be split into {partitions} partitions "
            "with a non-empty last partition"
        )
    return [
        (p * per_partition, min((p + 1) * per_partition, n_points))
        for p in range(partitions)
    ]


def to_transposed_features(data, partitions):
    """Split the columns (points) of ``data`` into ``partitions`` blocks.

    ``data`` has one column per point.  Each returned block is a sparse CSC
    matrix with one row per point and one column per dimension.
    """
    matrix = sparse.csc_matrix(data, dtype=np.float64)
    return [
        matrix[:, start:end].T.tocsc()
        for start, end in _partition_bounds(matrix.shape[1], partitions)
    ]


def partition_labels(labels, partitions):
    """Split ``labels`` the same way :func:`to_transposed_features` splits points."""
    labels = np.asarray(labels, dtype=np.float64).ravel()
    return [
        labels[start:end].copy()
        for start, end in _partition_bounds(labels.shape[0], partitions)
    ]


def train(features, responses, lambda_, max_outer_iter=20, max_inner_iter=50,
          epsilon=0.001, seed=0, weights=None, verbose=False):
    """Fit L1-regularized logistic regression on one partition.

    ``features`` has one row per point.  The fitted weights minimise the mean
    logistic loss plus ``lambda_`` times the L1 norm of the weights.
    """
    if lambda_ <= 0:
        raise ValueError("lambda must be positive")
    n_points = sparse.csc_matrix(features).shape[0]
    if n_points == 0:
        raise ValueError("cannot train on an empty set of points")
    cost = 1.0 / (lambda_ * n_points)
    w, _ = solve_l1r_lr_weighted(
        features,
        responses,
        weights=weights,
        cp=cost,
        cn=cost,
        eps=epsilon,
        max_outer_iter=max_outer_iter,
        max_inner_iter=max_inner_iter,
        regularize_bias=True,
        seed=seed,
        verbose=verbose,
    )
    return w