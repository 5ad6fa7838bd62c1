# distlogreg

Distributed L1-regularized logistic regression on sparse data.

The training set is split into partitions, a sparse logistic regression model
is fitted on each one with a coordinate-descent Newton solver, and the
partition models are then combined. The strategies are:

- **full**: a single L1-regularized model on all of the training data
  (`LogisticRegression`);
- **naive averaging**: the mean of the partition models (`NaiveAvg`);
- **CSL**: updates of a starting model that solve a gradient-shifted objective
  on the first partition with OWL-QN (`GlobalStep.csl_update`);
- **DANE**: updates in which every partition solves its shifted objective and
  the results are averaged (`GlobalStep.dane_update`).

Each strategy comes with a command that sweeps a grid of regularization values
and writes train and test accuracy for each value to a CSV file.

## Installation

```
pip install .
```

The tests need the `test` extra:

```
pip install ".[test]"
pytest
```

## Data

Input files are in LIBSVM format, one point per line:

```
+1 3:0.5 17:1.25 102:-2
-1 1:1 17:0.75
```

Dimensions start at 1 and are expected in increasing order on each line.
A label equal to `1` becomes `+1`; any other label becomes `-1`. Comment lines
are not allowed. `distlogreg.libsvm.load_libsvm` returns a sparse CSC matrix
with one column per point, plus the labels, and raises `LibsvmFormatError`
for malformed lines.

Wherever a command takes a dataset, you may give either a single file, which
is shuffled with the given seed and split 80% / 20% into training and test
sets, or two files separated by a comma, `train.svm,test.svm`, in which case
the second file is the test set and both are padded to the same number of
dimensions.

## Commands

Every command writes a CSV file (overwriting it) with the header

```
method,index,lambda,lambda_pow,nnz,train_acc,test_acc,time
```

and one row per lambda value; progress is also printed. Lambda values run from
`10^max_reg` down to `10^min_reg` over `count` evenly spaced exponents, so
`count` must be at least 2. Partitions are fitted on a thread pool sized to
the number of CPUs.

### Full logistic regression

```
sweep-lr input_data.svm output_file.csv seed min_reg max_reg count [start [verbose]]
```

### Naive averaging

```
sweep-naive-avg input_data.svm output_file.csv seed min_reg max_reg count partitions [start [verbose]]
```

For both commands, if `start` is given the grid begins at that index (and the
CSV header is omitted unless `start` is 0); verbose solver logging is switched
on when any further argument follows.

### CSL and DANE

```
sweep-csl input_data.svm output_file.csv seed min_reg max_reg count partitions start_mode
sweep-dane input_data.svm output_file.csv seed min_reg max_reg count partitions start_mode
```

For each lambda value, two CSL (or DANE) updates are applied to a starting
model chosen by `start_mode`:

| start_mode | starting model            |
|------------|---------------------------|
| 0          | all zeros                 |
| 1          | naive average             |

Any other `start_mode` is refused with exit status 1.

For `sweep-naive-avg`, `sweep-csl` and `sweep-dane`, if the training points
cannot fill every partition, trailing points are dropped until they divide
evenly.

Example:

```
sweep-naive-avg data.svm,data.t.svm results.csv 42 -6 -1 20 8
```

## Library use

```python
from distlogreg.libsvm import load_libsvm
from distlogreg.data_utils import split_dataset_argument, train_test_accuracy
from distlogreg.naive_avg import NaiveAvg
from distlogreg.global_step import GlobalStep

train_file, test_file = split_dataset_argument("data.svm,data.t.svm")
train_data, train_labels = load_libsvm(train_file)   # one column per point
test_data, test_labels = load_libsvm(test_file)

navg = NaiveAvg(1e-3, 4)
navg.train(train_data, train_labels)
predictions = navg.classify(test_data)               # values in {-1, +1}

gs = GlobalStep(1e-3, 4)
gs.naive_train(train_data, train_labels)
gs.csl_update(-1, 0.0)
gs.csl_update(-1, 0.0)
train_acc, test_acc = train_test_accuracy(
    gs, train_data, train_labels, test_data, test_labels
)
```

`LogisticRegression` in `distlogreg.logistic_regression` fits a single model on
the whole dataset with the same `train`, `retrain` and `classify` methods.
After training, every model exposes its weights as `model` and the count of
nonzero weights as `model_nonzeros`; `GlobalStep` also offers
`get_objective(any_model)` and `dane_update(alpha)`. Changing `lambda_` and
calling `retrain` (or `naive_retrain`) refits on the cached data without
converting it again, and a `copy.copy` of a trained model shares that cache.

Lower-level pieces are available too: `distlogreg.l1r_lr.solve_l1r_lr_weighted`
(the weighted coordinate-descent solver), `distlogreg.partitioning`
(splitting points into partitions and `train`), `distlogreg.csl_solvers`
(logistic objectives, gradients and `solve_csl_owlqn`),
`distlogreg.filter_dims.filter_dims` and
`distlogreg.data_utils.train_test_split`. Library progress messages go through
the standard `logging` module.

## What the package does not do

- All partitions run inside one process; there is no execution across several
  machines or processes.
- There is no one-shot weighted averaging method that fits a second-round
  model on the partition models, so it cannot serve as a starting model for
  CSL or DANE, and there is no debiased averaging.