import copy
import math

import numpy as np
import pytest
from scipy import sparse

from distlogreg.csl_solvers import lr_obj
from distlogreg.global_step import GlobalStep
from distlogreg.partitioning import partition_labels, to_transposed_features, train


def _dataset(n_points=120, dims=5, seed=3):
    rng = np.random.default_rng(seed)
    data = rng.normal(size=(dims, n_points))
    true_w = np.zeros(dims)
    true_w[0] = 2.0
    true_w[1] = -1.5
    labels = np.where(true_w @ data > 0, 1.0, -1.0)
    return data, labels


def _accuracy(model, data, labels):
    return float(np.mean(model.classify(data) == labels))


def _trained(partitions=3, lambda_=0.01):
    data, labels = _dataset()
    gs = GlobalStep(lambda_, partitions)
    gs.naive_train(data, labels)
    return gs, data, labels


def test_untrained_methods_raise():
    gs = GlobalStep(0.01, 2)
    with pytest.raises(RuntimeError):
        gs.naive_retrain()
    with pytest.raises(RuntimeError):
        gs.csl_update()
    with pytest.raises(RuntimeError):
        gs.dane_update()
    with pytest.raises(RuntimeError):
        gs.get_objective(np.zeros(3))


def test_uneven_partitions_rejected():
    data, labels = _dataset(n_points=9)
    with pytest.raises(ValueError):
        GlobalStep(0.01, 4).naive_train(data, labels)


def test_label_count_mismatch_rejected():
    data, labels = _dataset()
    with pytest.raises(ValueError):
        GlobalStep(0.01, 2).naive_train(data, labels[:-1])


def test_naive_model_is_mean_of_partition_models():
    gs, data, labels = _trained()
    features = to_transposed_features(data, 3)
    responses = partition_labels(labels, 3)
    models = np.column_stack([
        train(features[i], responses[i], 0.01, 20, 50, 0.001, seed=i)
        for i in range(3)
    ])
    np.testing.assert_allclose(gs.model, models.mean(axis=1))
    assert gs.model_nonzeros == np.count_nonzero(gs.model)
    np.testing.assert_array_equal(gs.nonzero_dims,
                                  np.flatnonzero(models.sum(axis=1)))


def test_naive_classifies_separable_data():
    gs, data, labels = _trained()
    assert gs.model.shape == (5,)
    predictions = gs.classify(data)
    assert set(np.unique(predictions)) <= {-1.0, 1.0}
    assert _accuracy(gs, data, labels) > 0.85


def test_sparse_input_matches_dense():
    data, labels = _dataset()
    dense = GlobalStep(0.01, 2)
    dense.naive_train(data, labels)
    sp = GlobalStep(0.01, 2)
    sp.naive_train(sparse.csc_matrix(data), labels)
    np.testing.assert_allclose(sp.model, dense.model)
    np.testing.assert_array_equal(sp.classify(sparse.csc_matrix(data)),
                                  dense.classify(data))


def test_zero_model_objective_is_log_two():
    gs, _, _ = _trained()
    assert gs.get_objective(np.zeros(5)) == pytest.approx(math.log(2.0))


def test_objective_matches_full_data_objective():
    data, labels = _dataset(n_points=100)
    gs = GlobalStep(0.05, 3)
    gs.naive_train(data, labels)
    w = np.array([0.5, -0.25, 0.0, 1.0, -2.0])
    expected = lr_obj(data.T, labels, w, 0.05)
    assert gs.get_objective(w) == pytest.approx(expected)


def test_csl_update_improves_on_zero_model():
    gs, data, labels = _trained()
    gs.model = np.zeros(5)
    gs.csl_update()
    assert gs.get_objective(gs.model) < math.log(2.0)
    assert gs.model_nonzeros == np.count_nonzero(gs.model)
    np.testing.assert_array_equal(gs.nonzero_dims, np.flatnonzero(gs.model))
    assert _accuracy(gs, data, labels) > 0.85


def test_csl_negative_lambda_uses_own_lambda():
    gs, _, _ = _trained()
    first = copy.deepcopy(gs)
    second = copy.deepcopy(gs)
    first.csl_update(-1.0, 0.0)
    second.csl_update(gs.lambda_, 0.0)
    np.testing.assert_allclose(first.model, second.model)


def test_csl_update_keeps_naive_model_unchanged_in_copy():
    gs, _, _ = _trained()
    before = gs.model.copy()
    other = copy.copy(gs)
    other.csl_update()
    np.testing.assert_array_equal(gs.model, before)


def test_dane_update_improves_on_zero_model():
    gs, data, labels = _trained()
    gs.model = np.zeros(5)
    gs.dane_update()
    assert gs.model.shape == (5,)
    assert gs.get_objective(gs.model) < math.log(2.0)
    assert gs.model_nonzeros == np.count_nonzero(gs.model)
    assert _accuracy(gs, data, labels) > 0.85


def test_two_dane_updates_do_not_worsen_objective_much():
    gs, _, _ = _trained()
    gs.dane_update()
    after_one = gs.get_objective(gs.model)
    gs.dane_update()
    after_two = gs.get_objective(gs.model)
    assert after_two <= after_one + 1e-3


def test_threaded_partitions_match_sequential():
    data, labels = _dataset()
    sequential = GlobalStep(0.01, 3)
    sequential.naive_train(data, labels)
    threaded = GlobalStep(0.01, 3)
    threaded.num_threads = 3
    threaded.naive_train(data, labels)
    np.testing.assert_allclose(threaded.model, sequential.model)
    sequential.dane_update()
    threaded.dane_update()
    np.testing.assert_allclose(threaded.model, sequential.model)