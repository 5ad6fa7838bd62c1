"""Sweeps of regularization strength for models refined by global steps.

Each lambda value starts from an initial model (all zeros or the naive
average of the partition models) and applies two CSL or two DANE updates.
One CSV row per lambda value records the number of nonzero weights,
training and test accuracy and training time.
"""

from __future__ import annotations

import copy
import os
import sys
import time

import numpy as np

from distlogreg.data_utils import train_test_accuracy
from distlogreg.global_step import GlobalStep
from distlogreg.sweep import (
    CSV_HEADER,
    drop_uneven_points,
    lambda_grid,
    prepare_data,
)

__all__ = ["run_global_sweep", "csl_main", "dane_main"]

_METHODS = {"csl": "CSL", "dane": "DANE"}
_START_ZEROS = 0
_START_NAIVE = 1
_START_OWA = 2
_ALPHA = 0.0
_UPDATES = 2


def _usage(program):
    print(f"Usage: {program} input_data.svm output_file.csv seed "
          "min_reg max_reg count partitions start_mode\n\n"
          " - note: lambda values are between 10^{min_reg} and 10^{max_reg}\n"
          " - start_mode determines initial solution: 0=zeros, 1=naive, 2=owa")


def _parse(argv, program):
    """Parse the arguments; ``None`` after printing usage on error."""
    if len(argv) != 8:
        _usage(program)
        return None
    try:
        return {
            "dataset": argv[0],
            "output": argv[1],
            "seed": int(argv[2]),
            "min_reg": float(argv[3]),
            "max_reg": float(argv[4]),
            "count": int(argv[5]),
            "partitions": int(argv[6]),
            "start_mode": int(argv[7]),
        }
    except ValueError:
        _usage(program)
        return None


def _initialise(model, start_mode):
    """Fit the starting model in place according to ``start_mode``."""
    model.naive_retrain()
    if start_mode == _START_ZEROS:
        model.model = np.zeros_like(model.model)
        model.model_nonzeros = 0


def run_global_sweep(method, argv=None):
    """Sweep ``"csl"`` or ``"dane"`` updates over a lambda grid.

    ``argv`` holds the command-line arguments without the program name.
    Returns the exit status.
    """
    if method not in _METHODS:
        raise ValueError(f"unknown method {method!r}; expected 'csl' or 'dane'")
    label = _METHODS[method]
    program = f"sweep_{method}"
    argv = sys.argv[1:] if argv is None else list(argv)

    options = _parse(argv, program)
    if options is None:
        return 1
    start_mode = options["start_mode"]
    if start_mode == _START_OWA:
        print("start_mode 2 (owa) is not available; use 0=zeros or 1=naive",
              file=sys.stderr)
        return 1
    if start_mode not in (_START_ZEROS, _START_NAIVE):
        _usage(program)
        return 1
    try:
        grid = list(lambda_grid(options["min_reg"], options["max_reg"],
                                options["count"]))
    except ValueError as exc:
        print(exc, file=sys.stderr)
        return 1

    partitions = options["partitions"]
    seed = options["seed"]
    train_data, train_labels, test_data, test_labels = prepare_data(
        options["dataset"], seed)
    train_data, train_labels = drop_uneven_points(train_data, train_labels,
                                                  partitions)

    try:
        output = open(options["output"], "w")
    except OSError:
        print(f"Failed to open output file '{options['output']}'!",
              file=sys.stderr)
        return 1

    total_threads = os.cpu_count() or 1
    print(f"Total threads: {total_threads}.")

    with output:
        output.write(CSV_HEADER + "\n")
        base = GlobalStep(grid[0][2], partitions)
        base.num_threads = total_threads
        base.verbose = False
        base.seed = seed
        base.naive_train(train_data, train_labels)

        for index, power, lambda_ in grid:
            model = copy.copy(base)
            started = time.perf_counter()
            model.lambda_ = lambda_
            model.num_threads = total_threads
            _initialise(model, start_mode)
            for _ in range(_UPDATES):
                if method == "csl":
                    model.csl_update(-1.0, _ALPHA)
                else:
                    model.dane_update(_ALPHA)
            seconds = time.perf_counter() - started

            accs = train_test_accuracy(model, train_data, train_labels,
                                       test_data, test_labels)
            output.write(f"{method}-{partitions},{index},{lambda_:g},{power:g},"
                         f"{model.model_nonzeros},{accs[0]:g},{accs[1]:g},"
                         f"{seconds:g}\n")
            output.flush()
            print(f"{label}, {partitions} partitions, lambda 10^{power:g}: "
                  f"{seconds:g}s training time; {model.model_nonzeros} "
                  f"nonzeros; {accs[0]:g} training accuracy; {accs[1]:g} "
                  "testing accuracy.")
    return 0


def csl_main(argv=None):
    """Sweep distributed lasso followed by two CSL updates."""
    return run_global_sweep("csl", argv)


def dane_main(argv=None):
    """Sweep distributed lasso followed by two DANE updates."""
    return run_global_sweep("dane", argv)