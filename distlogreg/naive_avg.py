"""Naive-averaging distributed logistic regression."""

from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor

import numpy as np
from scipy.special import expit

from distlogreg.partitioning import partition_labels, to_transposed_features, train

__all__ = ["NaiveAvg"]

logger = logging.getLogger(__name__)


class NaiveAvg:
    """Fit L1-regularized logistic regression per partition and average.

    After training, ``model`` holds one weight per dimension and
    ``model_nonzeros`` counts its nonzero weights.  A shallow copy shares the
    cached partitions, so copies can be retrained with other settings.
    """

    def __init__(self, lambda_=0.0, partitions=1):
        self.lambda_ = lambda_
        self.partitions = partitions
        self.verbose = False
        self.num_threads = 1
        self.seed = 0
        self.model = np.zeros(0)
        self.model_nonzeros = 0
        self._features = None
        self._responses = None
        self._dims = 0

    def train(self, data, labels):
        """Cache ``data`` (one column per point) by partition, then fit."""
        labels = np.asarray(labels, dtype=np.float64).ravel()
        if labels.shape[0] != data.shape[1]:
            raise ValueError("labels must have one entry per column of data")

        started = time.perf_counter()
        self._features = to_transposed_features(data, self.partitions)
        logger.info("Converting features to LIBLINEAR format took %.6fs.",
                    time.perf_counter() - started)

        started = time.perf_counter()
        self._responses = partition_labels(labels, self.partitions)
        self._dims = data.shape[0]
        logger.info("Converting responses to LIBLINEAR format took %.6fs.",
                    time.perf_counter() - started)

        self.retrain()

    def _fit_partition(self, index):
        return train(
            self._features[index],
            self._responses[index],
            self.lambda_,
            max_outer_iter=20,
            max_inner_iter=50,
            epsilon=0.001,
            seed=self.seed + index,
            verbose=self.verbose,
        )

    def retrain(self):
        """Fit every partition again and average the partition models."""
        if self._features is None:
            raise RuntimeError("NaiveAvg.retrain(): you must first call train()!")

        indices = range(len(self._features))
        workers = max(1, int(self.num_threads))
        if workers == 1 or len(self._features) == 1:
            models = [self._fit_partition(i) for i in indices]
        else:
            with ThreadPoolExecutor(max_workers=workers) as pool:
                models = list(pool.map(self._fit_partition, indices))

        self.model = np.column_stack(models).mean(axis=1)
        self.model_nonzeros = int(np.count_nonzero(self.model))

    def classify(self, data):
        """Predict a label of +1 or -1 for each column of ``data``."""
        scores = np.asarray(data.T @ self.model).ravel()
        return np.where(expit(scores) >= 0.5, 1.0, -1.0)