"""Restrict a data matrix to a subset of its dimensions (rows)."""

from __future__ import annotations

import numpy as np
from scipy import sparse

__all__ = ["filter_dims"]


def filter_dims(data, nonzero_dims, cols=None):
    """Keep the rows ``nonzero_dims`` (in that order) and the columns ``cols``.

    Row ``nonzero_dims[i]`` of ``data`` becomes row ``i`` of the result.  If
    ``cols`` is ``None`` all columns are kept.  Sparse input gives a sparse CSC
    result; dense input gives a dense array.
    """
    rows = np.asarray(nonzero_dims, dtype=np.intp)
    if sparse.issparse(data):
        result = sparse.csc_matrix(data)
        if cols is not None:
            result = result[:, np.asarray(cols, dtype=np.intp)]
        result = result[rows, :].tocsc()
        result.sort_indices()
        return result

    dense = np.asarray(data)
    if cols is None:
        return dense[rows, :]
    return dense[np.ix_(rows, np.asarray(cols, dtype=np.intp))]