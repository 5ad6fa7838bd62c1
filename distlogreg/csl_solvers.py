"""Logistic-loss objectives and the CSL/DANE shifted-objective solver.

``features`` arguments have one row per point and one column per dimension;
``responses`` hold one label per point, where a label equal to 1 is positive.
"""

from __future__ import annotations

import logging
from collections import deque

import numpy as np
from scipy import sparse
from scipy.special import expit

__all__ = ["log1p_exp", "lr_obj", "csl_obj", "lr_gradient", "solve_csl_owlqn"]

logger = logging.getLogger(__name__)

# Settings of the limited-memory quasi-Newton search.
_HISTORY = 6
_EPSILON = 1e-5
_FTOL = 1e-4
_MIN_STEP = 1e-20
_MAX_STEP = 1e20
_MAX_LINE_SEARCH = 40


def log1p_exp(s):
    """Compute ``log(1 + exp(s))`` without overflow for large ``s``."""
    values = np.asarray(s, dtype=np.float64)
    negative = np.log1p(np.exp(np.minimum(values, 0.0)))
    positive = values + np.log1p(np.exp(-np.maximum(values, 0.0)))
    result = np.where(values < 0, negative, positive)
    return float(result) if result.ndim == 0 else result


def _as_matrix(features):
    return sparse.csr_matrix(features, dtype=np.float64)


def _check_sizes(x, responses, w):
    if x.shape[1] != w.shape[0]:
        raise ValueError("w must have one entry per dimension of features")
    if x.shape[0] != responses.shape[0]:
        raise ValueError("responses must have one entry per point")
    if x.shape[0] == 0:
        raise ValueError("features must hold at least one point")


def lr_obj(features, responses, w, lambd, verbose=False):
    """Mean logistic loss of ``w`` plus ``lambd`` times its L1 norm."""
    x = _as_matrix(features)
    y = np.asarray(responses, dtype=np.float64).ravel()
    w = np.asarray(w, dtype=np.float64).ravel()
    _check_sizes(x, y, w)

    xtw = np.asarray(x @ w).ravel()
    loss = float(np.sum(log1p_exp(xtw)) - np.sum(xtw[y == 1])) / y.shape[0]
    reg = lambd * float(np.abs(w).sum())
    if verbose:
        logger.info("--> lr loss: %s", loss)
        logger.info("--> reg loss: %s", reg)
    return loss + reg


def csl_obj(features, responses, w, igrad, ugrad, lambd, alpha=0.0,
            w_prev=None, verbose=False):
    """The CSL surrogate objective.

    This is :func:`lr_obj` plus ``(ugrad - igrad) . w``; if ``w_prev`` is
    given, ``alpha / 2 * ||w - w_prev||^2`` is added as well.  Both gradients
    must already be normalised by their number of points.
    """
    w = np.asarray(w, dtype=np.float64).ravel()
    obj = lr_obj(features, responses, w, lambd, verbose)
    shift = np.asarray(ugrad, dtype=np.float64).ravel() - \
        np.asarray(igrad, dtype=np.float64).ravel()
    gtw = float(shift @ w)
    if verbose:
        logger.info("--> csl loss: %s", gtw)
    if w_prev is None:
        return obj + gtw

    diff = w - np.asarray(w_prev, dtype=np.float64).ravel()
    ad2 = 0.5 * alpha * float(diff @ diff)
    if verbose:
        logger.info("--> csl reg loss: %s", ad2)
    return obj + gtw + ad2


def lr_gradient(features, responses, w, normalize=True, active_dims=None):
    """Gradient of the unregularised logistic loss at ``w``.

    Only the dimensions in ``active_dims`` (all if ``None``) take part in the
    prediction and get a gradient; the other entries are zero.  With
    ``normalize`` the gradient is divided by the number of points.
    """
    x = _as_matrix(features)
    y = np.asarray(responses, dtype=np.float64).ravel()
    w = np.asarray(w, dtype=np.float64).ravel()
    _check_sizes(x, y, w)

    if active_dims is None:
        active = np.arange(w.shape[0])
    else:
        active = np.asarray(active_dims, dtype=np.intp).ravel()
    sub = x[:, active]

    resid = expit(np.asarray(sub @ w[active]).ravel())
    resid[y == 1] -= 1.0

    grad = np.zeros(w.shape[0])
    grad[active] = np.asarray(sub.T @ resid).ravel()
    if normalize:
        grad /= y.shape[0]
    return grad


def _pseudo_gradient(x, g, c):
    """Pseudo-gradient of ``f(x) + c * ||x||_1``."""
    pg = np.where(x < 0, g - c, np.where(x > 0, g + c, 0.0))
    at_zero = x == 0
    pg = np.where(at_zero & (g < -c), g + c, pg)
    return np.where(at_zero & (g > c), g - c, pg)


def _line_search(evaluate, xp, f_init, direction, step, pg, c):
    """Backtracking search that keeps each coordinate in its orthant.

    Returns ``(x, f, g)`` or ``None`` if no acceptable step is found.
    """
    if step <= 0:
        return None
    orthant = np.where(xp == 0, -pg, xp)
    for _ in range(_MAX_LINE_SEARCH):
        x = xp + step * direction
        x[x * orthant <= 0] = 0.0
        f, g = evaluate(x)
        f += c * float(np.abs(x).sum())
        if f <= f_init + _FTOL * float((x - xp) @ pg):
            return x, f, g
        if step < _MIN_STEP or step > _MAX_STEP:
            return None
        step *= 0.5
    return None


def _owlqn(evaluate, n, c, max_iterations):
    """Minimise ``f(x) + c * ||x||_1`` from ``x = 0`` with OWL-QN."""
    x = np.zeros(n)
    fx, g = evaluate(x)
    fx += c * float(np.abs(x).sum())
    pg = _pseudo_gradient(x, g, c)

    gnorm = float(np.linalg.norm(pg))
    if gnorm / max(float(np.linalg.norm(x)), 1.0) <= _EPSILON:
        return x

    direction = -pg
    step = 1.0 / gnorm
    history = deque(maxlen=_HISTORY)
    k = 1
    while True:
        xp, gp = x, g
        found = _line_search(evaluate, xp, fx, direction, step, pg, c)
        if found is None:
            return xp
        x, fx, g = found
        pg = _pseudo_gradient(x, g, c)

        xnorm = max(float(np.linalg.norm(x)), 1.0)
        if float(np.linalg.norm(pg)) / xnorm <= _EPSILON:
            return x
        if max_iterations and max_iterations < k + 1:
            return x

        s = x - xp
        y = g - gp
        ys = float(y @ s)
        yy = float(y @ y)
        if yy == 0.0 or ys == 0.0:
            return x
        history.append((s, y, ys))
        k += 1

        direction = -pg
        alphas = []
        for s_i, y_i, ys_i in reversed(history):
            a = float(s_i @ direction) / ys_i
            alphas.append(a)
            direction -= a * y_i
        direction *= ys / yy
        for (s_i, y_i, ys_i), a in zip(history, reversed(alphas)):
            beta = float(y_i @ direction) / ys_i
            direction += (a - beta) * s_i
        direction[direction * pg >= 0] = 0.0
        step = 1.0


def solve_csl_owlqn(features, responses, w, igrad, ugrad, lambda_,
                    max_itr=100, active_dims=None, alpha=0.0, verbose=False):
    """Minimise the CSL objective with L1 penalty ``lambda_`` by OWL-QN.

    The search starts from zero; ``w`` is the model the ``alpha`` proximal
    term pulls towards.  Returns the new model; ``w`` is left unchanged.
    """
    x = _as_matrix(features)
    y = np.asarray(responses, dtype=np.float64).ravel()
    w_prev = np.array(w, dtype=np.float64).ravel()
    _check_sizes(x, y, w_prev)
    n = w_prev.shape[0]
    if n == 0:
        raise ValueError("the model must have at least one dimension")
    igrad = np.asarray(igrad, dtype=np.float64).ravel()
    ugrad = np.asarray(ugrad, dtype=np.float64).ravel()
    if igrad.shape[0] != n or ugrad.shape[0] != n:
        raise ValueError("gradients must have one entry per dimension")

    if active_dims is None:
        active = np.arange(n)
    else:
        active = np.asarray(active_dims, dtype=np.intp).ravel()
    shift = ugrad - igrad

    if verbose:
        logger.info("==== Solving CSL objective with OWL-QN ====")
        logger.info("CSL starting objective: %s",
                    csl_obj(x, y, w_prev, igrad, ugrad, lambda_, alpha, w_prev))
        logger.info("local lr starting objective: %s",
                    lr_obj(x, y, w_prev, lambda_))

    def evaluate(point):
        obj = csl_obj(x, y, point, igrad, ugrad, lambda_, alpha, w_prev)
        grad = lr_gradient(x, y, point, True, active_dims)
        grad[active] += shift[active] + alpha * (point[active] - w_prev[active])
        return obj, grad

    result = _owlqn(evaluate, n, lambda_, int(max_itr))

    if verbose:
        logger.info("CSL ending objective: %s",
                    csl_obj(x, y, result, igrad, ugrad, lambda_, alpha, w_prev))
        logger.info("local lr ending objective: %s",
                    lr_obj(x, y, result, lambda_))
    return result