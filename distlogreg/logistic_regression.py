"""L1-regularized logistic regression trained on the full dataset."""

from __future__ import annotations

import logging
import time

import numpy as np
from scipy.special import expit

from distlogreg.partitioning import to_transposed_features, train

__all__ = ["LogisticRegression"]

logger = logging.getLogger(__name__)


class LogisticRegression:
    """L1-regularized logistic regression.

    ``model`` holds one weight per dimension after training and
    ``model_nonzeros`` counts its nonzero weights.  A shallow copy shares the
    cached training data, so copies can be retrained with other settings.
    """

    def __init__(self, lambda_=0.0):
        self.lambda_ = lambda_
        self.verbose = False
        self.seed = 0
        self.model = np.zeros(0)
        self.model_nonzeros = 0
        self._features = None
        self._responses = None

    def train(self, data, labels, fast_train=True):
        """Cache ``data`` (one column per point) and ``labels``, then fit."""
        started = time.perf_counter()
        self._features = to_transposed_features(data, 1)[0]
        logger.info("Converting to LIBLINEAR format took %.6fs.",
                    time.perf_counter() - started)
        self._responses = np.asarray(labels, dtype=np.float64).ravel()
        self.retrain(fast_train)

    def retrain(self, fast_train=False):
        """Fit again on the cached data, e.g. after changing ``lambda_``."""
        if self._features is None:
            raise RuntimeError("LogisticRegression.retrain(): you must first "
                               "call train()!")
        if self.lambda_ < 0:
            raise ValueError("LogisticRegression.retrain(): lambda must be >= 0")

        self.model = train(
            self._features,
            self._responses,
            self.lambda_,
            max_outer_iter=20 if fast_train else 100,
            max_inner_iter=50 if fast_train else 1000,
            epsilon=0.001,
            seed=self.seed,
            verbose=self.verbose,
        )
        self.model_nonzeros = int(np.count_nonzero(self.model))

    def classify(self, data):
        """Predict a label of +1 or -1 for each column of ``data``."""
        scores = np.asarray(data.T @ self.model).ravel()
        return np.where(expit(scores) >= 0.5, 1.0, -1.0)