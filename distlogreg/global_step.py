"""Distributed logistic regression refined by rounds of global-gradient steps.

Training splits the points into partitions and fits an L1-regularized model
on each.  The averaged model can then be improved with CSL updates (one node
solves a gradient-shifted objective) or DANE updates (every node solves one
and the results are averaged).
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor

import numpy as np
from scipy.special import expit

from distlogreg.csl_solvers import lr_gradient, lr_obj, solve_csl_owlqn
from distlogreg.partitioning import partition_labels, to_transposed_features, train

__all__ = ["GlobalStep"]

logger = logging.getLogger(__name__)


class GlobalStep:
    """Partitioned L1 logistic regression with global gradient refinement.

    After training, ``model`` holds one weight per dimension,
    ``model_nonzeros`` counts its nonzero weights and ``nonzero_dims`` lists
    the dimensions used by the last step.  A shallow copy shares the cached
    partitions, so copies can be retrained with other settings.
    """

    def __init__(self, lambda_=0.0, partitions=1):
        self.lambda_ = lambda_
        self.partitions = partitions
        self.verbose = False
        self.num_threads = 1
        self.seed = 0
        self.model = np.zeros(0)
        self.model_nonzeros = 0
        self.nonzero_dims = np.zeros(0, dtype=np.intp)
        self._features = None
        self._responses = None
        self._dims = 0
        self._total_points = 0

    def _require_trained(self, caller):
        if self._features is None:
            raise RuntimeError(
                f"GlobalStep.{caller}(): you must first call naive_train()!"
            )

    def _map_partitions(self, func):
        """Apply ``func`` to every partition index, in order."""
        indices = range(self.partitions)
        workers = max(1, int(self.num_threads))
        if workers == 1 or self.partitions == 1:
            return [func(i) for i in indices]
        with ThreadPoolExecutor(max_workers=workers) as pool:
            return list(pool.map(func, indices))

    def _columns(self, vectors):
        return np.column_stack(vectors) if vectors else np.zeros((self._dims, 0))

    def naive_train(self, data, labels):
        """Cache ``data`` (one column per point) by partition, then fit."""
        labels = np.asarray(labels, dtype=np.float64).ravel()
        if labels.shape[0] != data.shape[1]:
            raise ValueError("labels must have one entry per column of data")
        self._features = to_transposed_features(data, self.partitions)
        self._responses = partition_labels(labels, self.partitions)
        self._dims = data.shape[0]
        self._total_points = data.shape[1]
        self.naive_retrain()

    def naive_retrain(self):
        """Fit each partition and average the partition models."""
        self._require_trained("naive_retrain")
        models = self._columns(self._map_partitions(
            lambda i: train(
                self._features[i],
                self._responses[i],
                self.lambda_,
                max_outer_iter=20,
                max_inner_iter=50,
                epsilon=0.001,
                seed=self.seed + i,
                verbose=self.verbose,
            )
        ))
        self.model = models.mean(axis=1)
        self.model_nonzeros = int(np.count_nonzero(self.model))
        self.nonzero_dims = np.flatnonzero(models.sum(axis=1))

    def csl_update(self, lambda_t=-1.0, alpha=0.0):
        """One CSL step: solve the shifted objective on the first partition.

        A negative ``lambda_t`` means ``lambda_`` is used.
        """
        self._require_trained("csl_update")
        lambda_use = self.lambda_ if lambda_t < 0 else lambda_t
        model = self.model
        grads = self._columns(self._map_partitions(
            lambda i: lr_gradient(self._features[i], self._responses[i],
                                  model, normalize=False)
        ))
        ugrad = (grads / self._total_points).sum(axis=1)
        igrad = grads[:, 0] / self._responses[0].shape[0]

        self.model = solve_csl_owlqn(
            self._features[0],
            self._responses[0],
            model,
            igrad,
            ugrad,
            lambda_use,
            max_itr=100,
            active_dims=None,
            alpha=alpha,
            verbose=False,
        )
        self.model_nonzeros = int(np.count_nonzero(self.model))
        self.nonzero_dims = np.flatnonzero(self.model)

    def dane_update(self, alpha=0.0):
        """One DANE step: every partition solves its shifted objective."""
        self._require_trained("dane_update")
        model = self.model
        grads = self._columns(self._map_partitions(
            lambda i: lr_gradient(self._features[i], self._responses[i],
                                  model, normalize=True)
        ))
        sizes = np.array([r.shape[0] for r in self._responses], dtype=np.float64)
        ugrad = (grads @ sizes) / self._total_points

        models = self._columns(self._map_partitions(
            lambda i: solve_csl_owlqn(
                self._features[i],
                self._responses[i],
                model,
                grads[:, i],
                ugrad,
                self.lambda_,
                max_itr=100,
                active_dims=None,
                alpha=alpha,
            )
        ))
        self.model = models.mean(axis=1)
        self.model_nonzeros = int(np.count_nonzero(self.model))
        self.nonzero_dims = np.flatnonzero(models.sum(axis=1))

    def get_objective(self, any_model):
        """Regularized mean logistic loss of ``any_model`` over all points."""
        self._require_trained("get_objective")
        any_model = np.asarray(any_model, dtype=np.float64).ravel()
        objs = np.array(self._map_partitions(
            lambda i: lr_obj(self._features[i], self._responses[i],
                             any_model, self.lambda_)
        ))
        sizes = np.array([r.shape[0] for r in self._responses], dtype=np.float64)
        return float(objs @ sizes) / self._total_points

    def classify(self, data):
        """Predict a label of +1 or -1 for each column of ``data``."""
        scores = np.asarray(data.T @ self.model).ravel()
        return np.where(expit(scores) >= 0.5, 1.0, -1.0)