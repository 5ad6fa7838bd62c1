"""Sweeps of regularization strength for full and naive-averaged models.

Each sweep writes one CSV row per lambda value with the number of nonzero
weights, training and test accuracy and training time.
"""

from __future__ import annotations

import copy
import os
import sys
import time

import numpy as np
from scipy import sparse

from distlogreg.data_utils import (
    split_dataset_argument,
    train_test_accuracy,
    train_test_split,
)
from distlogreg.libsvm import load_libsvm
from distlogreg.logistic_regression import LogisticRegression
from distlogreg.naive_avg import NaiveAvg

__all__ = [
    "prepare_data",
    "drop_uneven_points",
    "lambda_grid",
    "lr_main",
    "naive_avg_main",
]

CSV_HEADER = "method,index,lambda,lambda_pow,nnz,train_acc,test_acc,time"


def prepare_data(dataset_argument, seed):
    """Load ``"train[,test]"`` and return the train and test sets.

    Without a test file the training file is shuffled with ``seed`` and split
    80/20.  With one, both matrices are padded to the same number of
    dimensions.  Returns ``(train_data, train_labels, test_data, test_labels)``.
    """
    train_file, test_file = split_dataset_argument(dataset_argument)
    data, labels = load_libsvm(train_file)
    if not test_file:
        return train_test_split(data, labels, 0.8, seed)

    test_data, test_labels = load_libsvm(test_file)
    train_data = sparse.csc_matrix(data)
    test_data = sparse.csc_matrix(test_data)
    dims = max(train_data.shape[0], test_data.shape[0])
    train_data.resize((dims, train_data.shape[1]))
    test_data.resize((dims, test_data.shape[1]))
    return train_data, labels, test_data, test_labels


def drop_uneven_points(data, labels, partitions):
    """Drop trailing points if they cannot fill a non-empty last partition."""
    if partitions < 1:
        raise ValueError("partitions must be at least 1")
    n_points = data.shape[1]
    per_partition = -(-n_points // partitions)
    if per_partition * (partitions - 1) < n_points:
        return data, labels

    keep = (n_points // partitions) * partitions
    print(f"Things don't divide evenly; dropping points {keep} to "
          f"{n_points - 1}; this gives {keep} points overall.")
    return data[:, :keep], np.asarray(labels)[:keep]


def lambda_grid(min_reg, max_reg, count, start=0):
    """Yield ``(index, power, lambda)`` from ``10**max_reg`` down to ``10**min_reg``."""
    if count < 2:
        raise ValueError("count must be at least 2")
    step = (max_reg - min_reg) / (count - 1)
    for index in range(start, count):
        power = max_reg - step * index
        yield index, power, 10.0 ** power


def _usage(program, with_partitions):
    partitions = " partitions" if with_partitions else ""
    print(f"Usage: {program} input_data.svm output_file.csv seed "
          f"min_reg max_reg count{partitions} [start [verbose]]\n\n"
          " - note: lambda values are between 10^{min_reg} and 10^{max_reg}\n"
          " - if start is given, the grid will start from that index\n"
          " - verbose output is given if *any* argument is given")


def _parse(argv, with_partitions, program):
    """Parse the shared arguments; ``None`` after printing usage on error."""
    base = 7 if with_partitions else 6
    if len(argv) not in (base, base + 1, base + 2):
        _usage(program, with_partitions)
        return None
    try:
        options = {
            "dataset": argv[0],
            "output": argv[1],
            "seed": int(argv[2]),
            "min_reg": float(argv[3]),
            "max_reg": float(argv[4]),
            "count": int(argv[5]),
            "partitions": int(argv[6]) if with_partitions else 1,
            "start": int(argv[base]) if len(argv) == base + 1 else 0,
            "verbose": len(argv) == base + 2,
        }
    except ValueError:
        _usage(program, with_partitions)
        return None
    return options


def _open_output(path, start):
    try:
        handle = open(path, "w")
    except OSError:
        print(f"Failed to open output file '{path}'!", file=sys.stderr)
        return None
    if start == 0:
        handle.write(CSV_HEADER + "\n")
    return handle


def _row(method, index, lambda_, power, nnz, accs, seconds):
    return (f"{method},{index},{lambda_:g},{power:g},{nnz},"
            f"{accs[0]:g},{accs[1]:g},{seconds:g}\n")


def lr_main(argv=None):
    """Sweep full-data L1 logistic regression; returns the exit status."""
    argv = sys.argv[1:] if argv is None else list(argv)
    options = _parse(argv, False, "sweep_lr")
    if options is None:
        return 1

    train_data, train_labels, test_data, test_labels = prepare_data(
        options["dataset"], options["seed"])
    grid = list(lambda_grid(options["min_reg"], options["max_reg"],
                            options["count"], options["start"]))

    output = _open_output(options["output"], options["start"])
    if output is None:
        return 1

    total_threads = os.cpu_count() or 1
    print(f"Total threads: {total_threads}.")

    with output:
        lr = LogisticRegression()
        lr.verbose = options["verbose"]
        lr.seed = options["seed"]
        lr.lambda_ = grid[0][2] if grid else 10.0 ** options["max_reg"]
        lr.train(train_data, train_labels, False)

        for index, power, lambda_ in grid:
            model = copy.copy(lr)
            started = time.perf_counter()
            model.lambda_ = lambda_
            model.retrain(False)
            seconds = time.perf_counter() - started

            accs = train_test_accuracy(model, train_data, train_labels,
                                       test_data, test_labels)
            output.write(_row("full", index, lambda_, power,
                              model.model_nonzeros, accs, seconds))
            output.flush()
            print(f"L1-regularized logistic regression, lambda 10^{power:g}: "
                  f"{seconds:g}s training time; {model.model_nonzeros} "
                  f"nonzeros; {accs[0]:g} training accuracy; {accs[1]:g} "
                  "testing accuracy.")
    return 0


def naive_avg_main(argv=None):
    """Sweep naive-averaged distributed models; returns the exit status."""
    argv = sys.argv[1:] if argv is None else list(argv)
    options = _parse(argv, True, "sweep_naive_avg")
    if options is None:
        return 1

    partitions = options["partitions"]
    train_data, train_labels, test_data, test_labels = prepare_data(
        options["dataset"], options["seed"])
    train_data, train_labels = drop_uneven_points(train_data, train_labels,
                                                  partitions)
    grid = list(lambda_grid(options["min_reg"], options["max_reg"],
                            options["count"], options["start"]))

    output = _open_output(options["output"], options["start"])
    if output is None:
        return 1

    total_threads = os.cpu_count() or 1
    print(f"Total threads: {total_threads}.")

    with output:
        first_lambda = grid[0][2] if grid else 10.0 ** options["max_reg"]
        navg = NaiveAvg(first_lambda, partitions)
        navg.num_threads = total_threads
        navg.verbose = options["verbose"]
        navg.seed = options["seed"]
        navg.train(train_data, train_labels)

        for index, power, lambda_ in grid:
            model = copy.copy(navg)
            started = time.perf_counter()
            model.lambda_ = lambda_
            model.num_threads = total_threads
            model.retrain()
            seconds = time.perf_counter() - started

            accs = train_test_accuracy(model, train_data, train_labels,
                                       test_data, test_labels)
            output.write(_row(f"naive_avg-{partitions}", index, lambda_, power,
                              model.model_nonzeros, accs, seconds))
            output.flush()
            print(f"Naive averaging, {partitions} partitions, lambda "
                  f"10^{power:g}: {seconds:g}s training time; "
                  f"{model.model_nonzeros} nonzeros; {accs[0]:g} training "
                  f"accuracy; {accs[1]:g} testing accuracy.")
    return 0