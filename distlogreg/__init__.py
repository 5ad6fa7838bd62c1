"""Distributed L1-regularized logistic regression: full, naive averaging, CSL and DANE."""

__version__ = "0.1.0"