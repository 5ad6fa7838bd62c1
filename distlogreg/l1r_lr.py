"""Newton coordinate-descent solver for L1-regularized logistic regression.

The solver minimises

    sum_j |w_j| + sum_i C_i * log(1 + exp(-y_i * w^T x_i))

where ``C_i`` is the instance weight times ``cp`` for positive labels and
times ``cn`` otherwise.  It follows the method of Yuan et al. (2011) with
outer-level and inner-level shrinking and an Armijo line search.
"""

from __future__ import annotations

import logging

import numpy as np
from scipy import sparse

__all__ = ["solve_l1r_lr_weighted"]

logger = logging.getLogger(__name__)

_NU = 1e-12
_SIGMA = 0.01
_MAX_LINE_SEARCH = 20
_STEP_LIMIT = 10.0
_MIN_STEP = 1.0e-12


def _curvature(cost, exp_wtx):
    """Return the per-point ``tau`` and ``D`` terms of the Newton model."""
    with np.errstate(over="ignore", invalid="ignore", divide="ignore"):
        tau_tmp = 1.0 / (1.0 + exp_wtx)
        return cost * tau_tmp, cost * exp_wtx * tau_tmp * tau_tmp


def _l1_norm(vector, free_last):
    norm = float(np.abs(vector).sum())
    if free_last:
        norm -= abs(float(vector[-1]))
    return norm


def _outer_violations(grad, point, threshold, free_last):
    """Optimality violations at ``point`` and the coordinates to shrink."""
    gp = grad + 1.0
    gn = grad - 1.0
    at_zero = point == 0
    violation = np.where(point > 0, np.abs(gp), np.abs(gn))
    zero_violation = np.where(gp < 0, -gp, np.where(gn > 0, gn, 0.0))
    violation = np.where(at_zero, zero_violation, violation)
    shrink = at_zero & (gp >= 0) & (gn <= 0) & (gp > threshold) & (gn < -threshold)
    if free_last:
        violation[-1] = abs(grad[-1])
        shrink[-1] = False
    return violation, shrink


def _one_variable_step(g, h, current):
    """Closed-form minimiser of the one-variable L1 subproblem."""
    gp = g + 1.0
    gn = g - 1.0
    if gp < h * current:
        return -gp / h
    if gn > h * current:
        return -gn / h
    return -current


def solve_l1r_lr_weighted(features, labels, weights=None, cp=1.0, cn=1.0,
                          eps=0.01, max_outer_iter=100, max_inner_iter=1000,
                          regularize_bias=True, seed=0, verbose=False):
    """Solve weighted L1-regularized logistic regression from a zero start.

    ``features`` is a matrix with one row per point and one column per
    feature.  Labels greater than zero are positive.  ``weights`` are
    per-instance weights (all ones by default).  If ``regularize_bias`` is
    false the last feature is left out of the L1 penalty.

    Returns ``(w, iterations)``: the weight vector and the number of outer
    Newton iterations done.
    """
    x = sparse.csc_matrix(features, dtype=np.float64)
    x.sum_duplicates()
    n_points, n_features = x.shape
    if n_points == 0:
        raise ValueError("cannot train on an empty set of points")

    labels = np.asarray(labels, dtype=np.float64).ravel()
    if labels.shape[0] != n_points:
        raise ValueError("labels must have one entry per point")
    if weights is None:
        instance_weights = np.ones(n_points)
    else:
        instance_weights = np.asarray(weights, dtype=np.float64).ravel()
        if instance_weights.shape[0] != n_points:
            raise ValueError("weights must have one entry per point")

    positive = labels > 0
    cost = instance_weights * np.where(positive, cp, cn)
    negative_cost = np.where(positive, 0.0, cost)
    free_last = (not regularize_bias) and n_features > 0

    columns = [
        (x.indices[start:end], x.data[start:end])
        for start, end in zip(x.indptr[:-1], x.indptr[1:])
    ]
    squared = x.multiply(x).tocsc()

    w = np.zeros(n_features)
    wpd = np.zeros(n_features)
    xjneg_sum = x.T @ negative_cost
    exp_wtx = np.exp(x @ w)
    tau, d = _curvature(cost, exp_wtx)
    w_norm = _l1_norm(w, free_last)

    rng = np.random.default_rng(seed)
    gnorm1_init = -1.0
    gmax_old = np.inf
    inner_eps = 1.0
    newton_iter = 0

    while newton_iter < max_outer_iter:
        hdiag = _NU + squared.T @ d
        grad = xjneg_sum - x.T @ tau
        violation, shrink = _outer_violations(grad, w, gmax_old / n_points,
                                              free_last)
        gmax_new = float(violation.max(initial=0.0))
        gnorm1_new = float(violation.sum())
        index = np.concatenate([np.flatnonzero(~shrink), np.flatnonzero(shrink)])
        active_size = int(np.count_nonzero(~shrink))

        if newton_iter == 0:
            gnorm1_init = gnorm1_new
        if gnorm1_new <= eps * gnorm1_init:
            break

        # Optimise the quadratic model over wpd.
        qp_iter = 0
        qp_gmax_old = np.inf
        qp_size = active_size
        xtd = np.zeros(n_points)
        while qp_iter < max_inner_iter:
            qp_gmax_new = 0.0
            qp_gnorm1_new = 0.0
            rng.shuffle(index[:qp_size])

            s = 0
            while s < qp_size:
                j = index[s]
                rows, vals = columns[j]
                h = hdiag[j]
                g = grad[j] + (wpd[j] - w[j]) * _NU + float(vals @ (d[rows] * xtd[rows]))

                if free_last and j == n_features - 1:
                    step_violation = abs(g)
                    z = -g / h
                else:
                    gp = g + 1.0
                    gn = g - 1.0
                    if wpd[j] == 0:
                        if gp < 0:
                            step_violation = -gp
                        elif gn > 0:
                            step_violation = gn
                        elif gp > qp_gmax_old / n_points and gn < -qp_gmax_old / n_points:
                            qp_size -= 1
                            index[s], index[qp_size] = index[qp_size], index[s]
                            continue
                        else:
                            step_violation = 0.0
                    elif wpd[j] > 0:
                        step_violation = abs(gp)
                    else:
                        step_violation = abs(gn)
                    z = _one_variable_step(g, h, wpd[j])

                qp_gmax_new = max(qp_gmax_new, step_violation)
                qp_gnorm1_new += step_violation
                s += 1

                if abs(z) < _MIN_STEP:
                    continue
                z = min(max(z, -_STEP_LIMIT), _STEP_LIMIT)
                wpd[j] += z
                xtd[rows] += z * vals

            qp_iter += 1

            if qp_gnorm1_new <= inner_eps * gnorm1_init:
                if qp_size == active_size:
                    break
                qp_size = active_size
                qp_gmax_old = np.inf
                continue

            qp_gmax_old = qp_gmax_new

        if qp_iter >= max_inner_iter and verbose:
            logger.warning("reaching max number of inner iterations")

        delta = float(grad @ (wpd - w))
        w_norm_new = _l1_norm(wpd, free_last)
        delta += w_norm_new - w_norm
        negsum_xtd = float(negative_cost @ xtd)

        with np.errstate(over="ignore", invalid="ignore", divide="ignore"):
            for _ in range(_MAX_LINE_SEARCH):
                cond = w_norm_new - w_norm + negsum_xtd - _SIGMA * delta
                exp_xtd = np.exp(xtd)
                exp_wtx_new = exp_wtx * exp_xtd
                cond += float(cost @ np.log((1.0 + exp_wtx_new) /
                                            (exp_xtd + exp_wtx_new)))
                if cond <= 0:
                    w_norm = w_norm_new
                    w[:] = wpd
                    exp_wtx = exp_wtx_new
                    tau, d = _curvature(cost, exp_wtx)
                    break
                wpd += w
                wpd *= 0.5
                w_norm_new = _l1_norm(wpd, free_last)
                delta *= 0.5
                negsum_xtd *= 0.5
                xtd *= 0.5
            else:
                # Too many line search steps: recompute from the current w.
                exp_wtx = np.exp(x @ w)

        if qp_iter == 1:
            inner_eps *= 0.25

        newton_iter += 1
        gmax_old = gmax_new

        if verbose:
            logger.info("iter %3d  #CD cycles %d", newton_iter, qp_iter)

    if verbose:
        logger.info("optimization finished, #iter = %d", newton_iter)
        if newton_iter >= max_outer_iter:
            logger.warning("reaching max number of iterations")
        with np.errstate(over="ignore", divide="ignore"):
            loss = np.where(positive, np.log1p(1.0 / exp_wtx), np.log1p(exp_wtx))
        objective = _l1_norm(w, free_last) + float(cost @ loss)
        logger.info("Objective value = %f", objective)
        logger.info("#nonzeros/#features = %d/%d",
                    int(np.count_nonzero(w)), n_features)

    return w, newton_iter