"""Loader for data files in the LIBSVM sparse text format."""

from __future__ import annotations

import logging
import math
import re
import time
from pathlib import Path

import numpy as np
from scipy import sparse

__all__ = ["LibsvmFormatError", "load_libsvm"]

logger = logging.getLogger(__name__)

_INT_PREFIX = re.compile(r"\s*([+-]?\d+)")
_FLOAT_PREFIX = re.compile(
    r"\s*([+-]?(?:inf(?:inity)?|nan|(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?))",
    re.IGNORECASE,
)
_TRAILING_WHITESPACE = " \n\r\t"


class LibsvmFormatError(ValueError):
    """Raised when a LIBSVM file cannot be parsed."""


def _leading_int(text: str) -> int:
    """Parse the integer prefix of ``text``; 0 if there is none."""
    match = _INT_PREFIX.match(text)
    return int(match.group(1)) if match else 0


def _leading_float(text: str) -> tuple[float, bool]:
    """Parse the float prefix of ``text``.

    Returns the value and whether it was out of the range of a double.
    Text without a numeric prefix parses as 0.0.
    """
    match = _FLOAT_PREFIX.match(text)
    if not match:
        return 0.0, False
    literal = match.group(1)
    value = float(literal)
    lowered = literal.lower()
    if math.isinf(value) and "inf" not in lowered:
        return value, True
    if value == 0.0:
        mantissa = re.split(r"[eE]", literal)[0]
        if any(ch in "123456789" for ch in mantissa):
            return value, True
    return value, False


def _read_lines(path: Path):
    try:
        handle = path.open("r")
    except OSError as exc:
        raise OSError(f"Error opening file '{path}' for reading.") from exc
    with handle:
        for line in handle:
            yield line.rstrip(_TRAILING_WHITESPACE)


def _count_dimensions(path: Path) -> tuple[int, int]:
    """First pass: return (number of lines, number of dimensions)."""
    max_row = 0
    line_count = 0
    for line_num, line in enumerate(_read_lines(path), start=1):
        line_count = line_num
        last_space = line.rfind(" ")
        last_colon = line.rfind(":")
        if last_space == -1 or last_colon == -1:
            continue
        if last_space < last_colon:
            raw_dim = _leading_int(line[last_space + 1:last_colon])
            if raw_dim <= 0:
                raise LibsvmFormatError(
                    f"Error on line {line_num}: could not extract dimension "
                    f"from final token {line[last_space + 1:]} (note, "
                    "dimensions must start from 1)"
                )
            max_row = max(max_row, raw_dim - 1)
        else:
            raise LibsvmFormatError(
                f"Error on line {line_num} extracting dimension from last token"
            )
    return line_count, max_row + 1


def _parse_entry(token: str, line_num: int, n_dims: int) -> tuple[int, float]:
    dim_text, colon, val_text = token.partition(":")
    if not colon:
        raise LibsvmFormatError(
            f"Error on line {line_num}: no ':' found in token: {token}"
        )
    if not dim_text:
        raise LibsvmFormatError(
            f"Error on line {line_num}: no dimension found for token: {token}"
        )
    dim = _leading_int(dim_text)
    if dim <= 0:
        raise LibsvmFormatError(
            f"Error on line {line_num}: could not parse dimension: {dim_text}; "
            "note that dimensions must start from 1"
        )
    if dim > n_dims:
        raise LibsvmFormatError(
            f"Error on line {line_num}: dimension {dim} exceeds the final "
            f"dimension {n_dims} of the line; dimensions must be increasing"
        )
    value, out_of_range = _leading_float(val_text)
    if out_of_range:
        raise LibsvmFormatError(
            f"Error on line {line_num}: value '{val_text}' is out of range"
        )
    return dim - 1, value


def load_libsvm(filename):
    """Load a LIBSVM file.

    Returns ``(data, labels)`` where ``data`` is a sparse CSC matrix with one
    column per observation and ``labels`` holds +1 for label 1 and -1 for any
    other label.  Comment lines are not allowed.
    """
    path = Path(filename)
    started = time.perf_counter()
    n_points, n_dims = _count_dimensions(path)
    logger.info(
        "File '%s' contains a matrix with %d observations in %d dimensions.",
        path, n_points, n_dims,
    )
    logger.info("First pass took %.6fs.", time.perf_counter() - started)

    started = time.perf_counter()
    labels = np.zeros(n_points)
    rows: list[int] = []
    cols: list[int] = []
    vals: list[float] = []
    for col, line in enumerate(_read_lines(path)):
        label_text, *entries = line.split(" ")
        _, label_match = None, _FLOAT_PREFIX.match(label_text)
        label = float(label_match.group(1)) if label_match else 0.0
        labels[col] = 1.0 if np.float32(label) == 1.0 else -1.0

        column: dict[int, float] = {}
        for token in entries:
            dim, value = _parse_entry(token, col + 1, n_dims)
            column[dim] = value
        for dim, value in column.items():
            if value != 0.0:
                rows.append(dim)
                cols.append(col)
                vals.append(value)

    data = sparse.csc_matrix(
        (np.asarray(vals, dtype=np.float64),
         (np.asarray(rows, dtype=np.intp), np.asarray(cols, dtype=np.intp))),
        shape=(n_dims, n_points),
    )
    data.sort_indices()
    logger.info("Second pass for loading took %.6fs.",
                time.perf_counter() - started)
    return data, labels