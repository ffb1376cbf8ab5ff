"""
Pandas-compatible entry points for pandas-factors.

These wrappers accept the containers pandas users work with (Series, DataFrames,
dicts of arrays, polars objects) and return pandas objects, delegating the
encoding itself to the functions in :mod:`pandas_factors.factorize.core`.
"""

from collections.abc import Mapping, Sequence
from typing import List, Optional, Tuple

import numpy as np
import pandas as pd

from .core import combine_full, combine_observed, factorize
from ..util import (
    ArrayType1D,
    ArrayType2D,
    TempName,
    convert_data_to_arr_list_and_keys,
)

ArrayCollection = (
    ArrayType1D | ArrayType2D | Sequence[ArrayType1D] | Mapping[str, ArrayType1D]
)


def _validate_input_indexes(arr_list: List[ArrayType1D]) -> Optional[pd.Index]:
    """
    Validate that any pandas indexes among the inputs are identical.

    Returns
    -------
    pd.Index or None
        Returns the first index if any exists, otherwise None

    Raises
    ------
    ValueError
        If the pandas indexes do not match
    """
    indexes = [arr.index for arr in arr_list if isinstance(arr, pd.Series)]
    if len(indexes) == 0:
        return None

    for left, right in zip(indexes, indexes[1:]):
        if not left.equals(right):
            raise ValueError("Found different indices in the array_inputs")

    return indexes[0]


def _existing_categorical(values):
    if isinstance(values, pd.Categorical):
        return values
    if isinstance(values, pd.Series) and isinstance(values.dtype, pd.CategoricalDtype):
        return values.array
    return None


def factorize_array(values: ArrayType1D):
    """
    Encode a 1-D array as a pandas Categorical with sorted categories.

    Parameters
    ----------
    values : ArrayType1D
        Values to encode. Can be np.ndarray, list, pd.Series, pl.Series,
        pd.Index or pd.Categorical.

    Returns
    -------
    pd.Categorical or pd.Series
        Categorical whose categories are the sorted unique values. If `values`
        is a pd.Series, returns a categorical pd.Series with the same index and
        name. Existing pandas categoricals are returned with their own categories.

    Examples
    --------
    >>> factorize_array(["b", "a", "b"])
    ['b', 'a', 'b']
    Categories (2, object): ['a', 'b']
    """
    out = _existing_categorical(values)
    if out is None:
        out = factorize(values).to_categorical()

    if isinstance(values, pd.Series):
        out = pd.Series(out, index=values.index, name=values.name)

    return out


def _level_names(names) -> List:
    return [None if isinstance(name, TempName) else name for name in names]


def combine_arrays(
    arrays: ArrayCollection, observed: bool = True
) -> Tuple[np.ndarray, pd.MultiIndex]:
    """
    Encode multiple 1-D arrays as a single integer key over their combinations.

    Parameters
    ----------
    arrays : ArrayCollection
        The variables to combine: a mapping of name to array, a list of arrays,
        a 2-D array (one variable per column), or a pandas/polars DataFrame.
    observed : bool, default True
        If True, only combinations present in the data are reported. If False,
        every combination of the distinct values of each variable is reported,
        including those that never occur together.

    Returns
    -------
    codes : np.ndarray[int64]
        For each row, the position of its combination in `index`
    index : pd.MultiIndex
        The sorted combinations, one level per input array. Level names are
        taken from mapping keys, DataFrame columns or Series names.

    Raises
    ------
    ValueError
        If no arrays are given, the arrays have different lengths or pandas
        inputs have different indexes

    Examples
    --------
    >>> codes, index = combine_arrays({"x": [1, 2, 1], "y": ["a", "a", "b"]})
    >>> codes
    array([0, 2, 1])
    >>> index.tolist()
    [(1, 'a'), (1, 'b'), (2, 'a')]
    """
    arr_list, names = convert_data_to_arr_list_and_keys(arrays)
    if not arr_list:
        raise ValueError("At least one array is required to build a MultiIndex")
    _validate_input_indexes(arr_list)

    if observed:
        combined = combine_observed(arr_list)
        levels = combined.levels
    else:
        factors = [factorize(arr) for arr in arr_list]
        combined = combine_full(
            [factor.codes for factor in factors],
            [factor.n_levels for factor in factors],
        )
        levels = [
            factor.levels[table]
            for factor, table in zip(factors, combined.levels)
        ]

    index = pd.MultiIndex.from_arrays(levels, names=_level_names(names))
    return combined.codes, index
