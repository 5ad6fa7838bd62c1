import math

import numpy as np
import pytest
from scipy import sparse

from distlogreg.data_utils import (
    split_dataset_argument,
    train_test_accuracy,
    train_test_split,
)


@pytest.mark.parametrize(
    "arg, expected",
    [
        ("train.svm,test.svm", ("train.svm", "test.svm")),
        ("train.svm", ("train.svm", "")),
        ("a,b,c", ("a", "b,c")),
        (",b", ("", "b")),
    ],
)
def test_split_dataset_argument(arg, expected):
    assert split_dataset_argument(arg) == expected


def _indexed_data(n):
    # Column j holds value j + 1 in row 0; its label is its index too.
    dense = np.zeros((2, n))
    dense[0] = np.arange(1, n + 1)
    return dense, np.arange(n, dtype=float)


def test_split_sizes_and_partition_sparse():
    dense, labels = _indexed_data(10)
    data = sparse.csc_matrix(dense)
    train, train_labels, test, test_labels = train_test_split(
        data, labels, 0.8, np.random.default_rng(1)
    )
    assert train.shape == (2, 8)
    assert test.shape == (2, 2)
    assert sparse.issparse(train)
    all_labels = np.concatenate([train_labels, test_labels])
    assert sorted(all_labels) == list(labels)
    # Columns and labels stay paired.
    np.testing.assert_array_equal(train.toarray()[0], train_labels + 1)
    np.testing.assert_array_equal(test.toarray()[0], test_labels + 1)


def test_split_dense_pairs_columns_with_labels():
    dense, labels = _indexed_data(7)
    train, train_labels, test, test_labels = train_test_split(
        dense, labels, 0.8, 3
    )
    assert train.shape[1] + test.shape[1] == 7
    assert train.shape[1] == int(0.8 * 7)
    np.testing.assert_array_equal(train[0], train_labels + 1)
    np.testing.assert_array_equal(test[0], test_labels + 1)


def test_split_is_deterministic_for_seed():
    dense, labels = _indexed_data(20)
    first = train_test_split(dense, labels, 0.8, 42)
    second = train_test_split(dense, labels, 0.8, 42)
    np.testing.assert_array_equal(first[1], second[1])
    np.testing.assert_array_equal(first[3], second[3])


def test_split_rejects_mismatched_labels():
    dense, _ = _indexed_data(5)
    with pytest.raises(ValueError):
        train_test_split(dense, np.zeros(4), 0.8, 0)


class _SignModel:
    def classify(self, data):
        return np.where(np.asarray(data)[0] > 0, 1.0, -1.0)


def test_train_test_accuracy():
    train = np.array([[1.0, -1.0, -1.0, -1.0]])
    train_labels = np.array([1.0, 1.0, -1.0, -1.0])
    test = np.array([[1.0, -1.0]])
    test_labels = np.array([1.0, -1.0])
    train_acc, test_acc = train_test_accuracy(
        _SignModel(), train, train_labels, test, test_labels
    )
    assert train_acc == pytest.approx(0.75)
    assert test_acc == 1.0


def test_accuracy_on_empty_set_is_nan():
    train = np.array([[1.0]])
    test = np.zeros((1, 0))
    train_acc, test_acc = train_test_accuracy(
        _SignModel(), train, np.array([-1.0]), test, np.zeros(0)
    )
    assert train_acc == 0.0
    assert math.isnan(test_acc)