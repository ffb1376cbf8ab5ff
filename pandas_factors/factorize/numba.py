from typing import Tuple

import numba as nb
import numpy as np
import pandas as pd
import polars as pl
import pyarrow as pa
from numba.typed import Dict

from ..util import ArrayType1D, _maybe_cast_timestamp_arr


# ===== Array Preparation Methods =====


def _val_to_numpy(val: ArrayType1D) -> Tuple[np.ndarray, np.dtype]:
    """
    Convert various array types to a 1-D numpy array.

    Parameters
    ----------
    val : ArrayType1D
        Input array to convert (numpy array, list, pandas Series, polars Series, etc.)

    Returns
    -------
    Tuple[np.ndarray, np.dtype]
        NumPy array representation of the input, with datetimes viewed as int64,
        along with the original dtype

    Raises
    ------
    ValueError
        If the input is not one-dimensional
    """
    if isinstance(val, pl.Series):
        arrow = val.to_arrow()
    elif isinstance(val, pd.Series) and "pyarrow" in str(val.dtype):
        arrow = pa.Array.from_pandas(val)  # type: ignore
    else:
        arrow = None

    if isinstance(arrow, pa.ChunkedArray):
        val_list = [chunk.to_numpy(zero_copy_only=False) for chunk in arrow.chunks]
        val = np.concatenate(val_list) if val_list else np.array([])
    elif arrow is not None:
        val = arrow.to_numpy(zero_copy_only=False)
    elif hasattr(val, "to_numpy"):
        val = val.to_numpy()  # type: ignore
    else:
        val = np.asarray(val)

    if val.ndim != 1:
        raise ValueError(f"Expected a 1-D array, got {val.ndim} dimensions")

    return _maybe_cast_timestamp_arr(val)


def _is_jit_hashable(arr: np.ndarray) -> bool:
    """True when the first-seen pass can run in the compiled kernel."""
    return arr.dtype.kind in "iu" or (
        arr.dtype.kind == "f" and arr.dtype.itemsize in (4, 8)
    )


# ===== Single-variable Discovery =====


@nb.njit(nogil=True)
def _first_seen_codes_jit(values: np.ndarray, mapping):
    n = len(values)
    codes = np.empty(n, dtype=np.int64)
    first_index = np.empty(n, dtype=np.int64)
    n_uniques = 0
    for i in range(n):
        key = values[i]
        if key in mapping:
            label = mapping[key]
        else:
            label = n_uniques
            mapping[key] = label
            first_index[n_uniques] = i
            n_uniques += 1
        codes[i] = label
    return codes, first_index[:n_uniques]


def _first_seen_codes(values: np.ndarray):
    """
    Label each value by order of first occurrence in a single hashed pass.

    Returns
    -------
    tuple[np.ndarray, np.ndarray]
        - codes: first-seen label of each observation
        - first_index: position of the first occurrence of each label
    """
    # key type pinned to the array's own scalar type so lookups never cast
    mapping = Dict.empty(
        key_type=nb.from_dtype(values.dtype), value_type=nb.int64
    )
    return _first_seen_codes_jit(values, mapping)


@nb.njit(nogil=True)
def _remap_codes(codes: np.ndarray, remapping: np.ndarray, out: np.ndarray):
    for i in range(len(codes)):
        out[i] = remapping[codes[i]]
    return out


# ===== Multi-variable Discovery =====


@nb.njit(nogil=True)
def _label_sorted_combinations(ranks: np.ndarray, order: np.ndarray):
    """
    Assign dense codes to observations visited in sorted combination order.

    Parameters
    ----------
    ranks : np.ndarray
        Array of shape (n_variables, n_obs). Row f holds the sorted-level code
        of variable f for each observation.
    order : np.ndarray
        Observation indices sorted lexicographically by the columns of `ranks`,
        with ties kept in observation order.

    Returns
    -------
    tuple[np.ndarray, np.ndarray]
        - codes: position of each observation's combination in sorted order
        - first_index: first observation carrying each combination
    """
    n_vars, n = ranks.shape
    codes = np.empty(n, dtype=np.int64)
    first_index = np.empty(n, dtype=np.int64)
    n_uniques = 0
    for j in range(n):
        i = order[j]
        is_new = j == 0
        if not is_new:
            prev = order[j - 1]
            for f in range(n_vars):
                if ranks[f, i] != ranks[f, prev]:
                    is_new = True
                    break
        if is_new:
            first_index[n_uniques] = i
            n_uniques += 1
        codes[i] = n_uniques - 1
    return codes, first_index[:n_uniques]


# ===== Mixed-radix Encoding =====


@nb.njit(nogil=True)
def _find_out_of_range(values: np.ndarray, upper: int) -> int:
    """Position of the first value outside [0, upper), or -1."""
    for i in range(len(values)):
        if values[i] < 0 or values[i] >= upper:
            return i
    return -1


@nb.njit(nogil=True)
def _accumulate_mixed_radix(codes: np.ndarray, values: np.ndarray, stride):
    """
    Add the contribution of a more significant variable to the running codes.

    `stride` is the number of combinations spanned by the variables already
    accumulated, so `values[i] * stride + codes[i]` stays below the new total.
    """
    for i in range(len(codes)):
        codes[i] += values[i] * stride
    return codes
