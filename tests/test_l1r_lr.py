import numpy as np
import pytest
from scipy import sparse

from distlogreg.l1r_lr import solve_l1r_lr_weighted


def _dataset(n_points=200, seed=0):
    rng = np.random.default_rng(seed)
    labels = np.where(rng.random(n_points) < 0.5, 1.0, -1.0)
    informative = labels * 1.5 + rng.normal(scale=0.5, size=n_points)
    noise = rng.normal(scale=0.5, size=n_points)
    features = np.column_stack([informative, noise])
    return sparse.csc_matrix(features), labels


def _objective(features, labels, w, c):
    margins = labels * (features @ w)
    return np.abs(w).sum() + c * np.sum(np.logaddexp(0.0, -margins))


def test_tiny_cost_keeps_zero_model_without_iterations():
    features, labels = _dataset()
    w, iterations = solve_l1r_lr_weighted(features, labels, cp=1e-6, cn=1e-6)
    assert iterations == 0
    assert np.all(w == 0)
    assert w.shape == (2,)


def test_informative_feature_gets_positive_weight():
    features, labels = _dataset()
    w, iterations = solve_l1r_lr_weighted(features, labels, cp=1.0, cn=1.0)
    assert iterations >= 1
    assert w[0] > 0
    assert abs(w[0]) > abs(w[1])


def test_objective_improves_on_zero_start():
    features, labels = _dataset()
    w, _ = solve_l1r_lr_weighted(features, labels, cp=0.5, cn=0.5)
    start = _objective(features, labels, np.zeros(2), 0.5)
    assert _objective(features, labels, w, 0.5) < start


def test_same_seed_is_deterministic():
    features, labels = _dataset()
    first, it1 = solve_l1r_lr_weighted(features, labels, seed=7)
    second, it2 = solve_l1r_lr_weighted(features, labels, seed=7)
    assert it1 == it2
    np.testing.assert_array_equal(first, second)


def test_instance_weights_scale_like_costs():
    features, labels = _dataset(n_points=120, seed=3)
    weighted, _ = solve_l1r_lr_weighted(
        features, labels, weights=np.full(120, 2.0), cp=1.0, cn=1.0, seed=1)
    scaled, _ = solve_l1r_lr_weighted(features, labels, cp=2.0, cn=2.0, seed=1)
    np.testing.assert_allclose(weighted, scaled)


def test_unregularized_bias_moves_with_tiny_cost():
    labels = np.array([1.0] * 3 + [-1.0] * 7)
    features = np.column_stack([np.zeros(10), np.ones(10)])
    w, _ = solve_l1r_lr_weighted(features, labels, cp=0.01, cn=0.01,
                                 regularize_bias=False)
    assert w[0] == 0
    assert w[1] < 0


def test_label_length_mismatch_raises():
    features, labels = _dataset()
    with pytest.raises(ValueError):
        solve_l1r_lr_weighted(features, labels[:-1])


def test_weight_length_mismatch_raises():
    features, labels = _dataset()
    with pytest.raises(ValueError):
        solve_l1r_lr_weighted(features, labels, weights=np.ones(3))