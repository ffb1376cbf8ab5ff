import logging
import operator
from typing import List, NamedTuple, Optional, Sequence

import numpy as np
import pandas as pd

from . import numba as numba_funcs
from ..util import (
    ArrayType1D,
    check_data_inputs_aligned,
    checked_cast,
    checked_empty,
    checked_mul,
    resolve_code_dtype,
    validate_variable_lengths,
)

logger = logging.getLogger(__name__)


class Factor(NamedTuple):
    """
    Integer-coded representation of one categorical variable.

    Attributes
    ----------
    levels : np.ndarray
        The distinct values, sorted ascending
    codes : np.ndarray
        For each observation, the position of its value in `levels`
    """

    levels: np.ndarray
    codes: np.ndarray

    @property
    def n_levels(self) -> int:
        return len(self.levels)

    def reconstruct(self) -> np.ndarray:
        """Recover the original observations from levels and codes."""
        return self.levels[self.codes]

    def to_categorical(self) -> pd.Categorical:
        """
        Convert to a pandas Categorical with the sorted levels as categories.
        """
        return pd.Categorical.from_codes(self.codes, self.levels)


class CombinedFactor(NamedTuple):
    """
    Integer-coded representation of several categorical variables combined.

    Attributes
    ----------
    levels : list of np.ndarray
        One array per variable, all of the same length. Entry j of each array
        together form the j-th combination. Combinations are sorted by the
        first variable, then the second, and so on.
    codes : np.ndarray
        For each observation, the position of its combination
    """

    levels: List[np.ndarray]
    codes: np.ndarray

    @property
    def n_variables(self) -> int:
        return len(self.levels)

    @property
    def n_levels(self) -> int:
        # zero variables combine into a single empty combination
        if not self.levels:
            return 1
        return len(self.levels[0])

    def reconstruct(self) -> List[np.ndarray]:
        """Recover each variable's observations from the table and codes."""
        return [level[self.codes] for level in self.levels]

    def to_multiindex(self, names: Optional[Sequence] = None) -> pd.MultiIndex:
        """
        Convert the combination table to a MultiIndex with one level per variable.

        The codes index positions of the returned MultiIndex.
        """
        if not self.levels:
            raise ValueError("Cannot build a MultiIndex from zero variables")
        return pd.MultiIndex.from_arrays(self.levels, names=names)


def _prepare_values(values: ArrayType1D):
    arr, orig_type = numba_funcs._val_to_numpy(values)
    if len(arr) and pd.isna(arr.view(orig_type)).any():
        raise ValueError("Null values cannot be ordered and are not supported as levels")
    return arr, orig_type


def factorize(values: ArrayType1D, code_dtype=None) -> Factor:
    """
    Encode a categorical variable as sorted unique levels and integer codes.

    Values are discovered with one hashed pass that labels them in order of
    first appearance. The distinct values are then sorted and the labels are
    remapped so that codes index the sorted levels.

    Parameters
    ----------
    values : array-like
        Sequence to be encoded. Can be a list, numpy array, pandas Series/Index/
        Categorical or polars Series. Values must be hashable and orderable.
    code_dtype : dtype-like, optional
        Integer type of the returned codes. Defaults to int64.

    Returns
    -------
    Factor
        Named tuple of (levels, codes) such that ``levels[codes[i]] == values[i]``.
        Every code in ``[0, len(levels))`` is used at least once.

    Raises
    ------
    ValueError
        If `values` contains nulls (NaN, NaT, None)
    FactorOverflowError
        If the number of distinct values does not fit in `code_dtype`

    Examples
    --------
    >>> levels, codes = factorize([10, 30, 20, 10])
    >>> levels
    array([10, 20, 30])
    >>> codes
    array([0, 2, 1, 0])
    """
    code_dtype = resolve_code_dtype(code_dtype)
    arr, orig_type = _prepare_values(values)

    if arr.dtype.kind == "b":
        codes, first_index = numba_funcs._first_seen_codes(arr.view(np.uint8))
        uniques = arr[first_index]
    elif numba_funcs._is_jit_hashable(arr):
        codes, first_index = numba_funcs._first_seen_codes(arr)
        uniques = arr[first_index]
    else:
        # nulls are rejected above, so no -1 sentinel codes come back
        codes, uniques = pd.factorize(arr, sort=False)
        uniques = np.asarray(uniques, dtype=arr.dtype)

    n_uniques = checked_cast(len(uniques), code_dtype)

    order = np.argsort(uniques, kind="stable")
    remapping = np.empty(n_uniques, dtype=code_dtype)
    remapping[order] = np.arange(n_uniques, dtype=code_dtype)

    out = checked_empty(len(codes), code_dtype)
    numba_funcs._remap_codes(codes, remapping, out)

    levels = uniques[order]
    if levels.dtype != orig_type:
        levels = levels.view(orig_type)

    logger.debug("Factorized %d observations into %d levels", len(out), n_uniques)
    return Factor(levels, out)


def _rank_and_label(variables: Sequence[ArrayType1D]):
    """
    Discover the unique combinations in sorted order.

    Each variable is ranked by its sorted-level code, so comparing rank columns
    compares the underlying values variable by variable. Observation indices are
    then sorted by those columns (first variable most significant) and labelled
    in a single pass.
    """
    factors = [factorize(values) for values in variables]
    ranks = np.vstack([factor.codes for factor in factors])
    # lexsort treats its last key as the primary one
    order = np.lexsort(ranks[::-1])
    codes, first_index = numba_funcs._label_sorted_combinations(ranks, order)
    return factors, codes, first_index


def combine_observed(
    variables: Sequence[ArrayType1D], n: Optional[int] = None, code_dtype=None
) -> CombinedFactor:
    """
    Combine categorical variables into a single factor over observed combinations.

    Parameters
    ----------
    variables : sequence of array-like
        The categorical variables, all of the same length. Values must be
        hashable and orderable within each variable.
    n : int, optional
        Number of observations. Only required when `variables` is empty, in
        which case every code is 0.
    code_dtype : dtype-like, optional
        Integer type of the returned codes. Defaults to int64.

    Returns
    -------
    CombinedFactor
        Named tuple of (levels, codes). ``levels`` holds one array per variable;
        ``(levels[0][j], levels[1][j], ...)`` is the j-th unique combination.
        Combinations are unique and sorted lexicographically. For observation
        i, ``levels[f][codes[i]] == variables[f][i]`` for every f.

    Raises
    ------
    ValueError
        If the variables have different lengths or contain nulls
    FactorOverflowError
        If the number of unique combinations does not fit in `code_dtype`

    Examples
    --------
    >>> levels, codes = combine_observed([["b", "a", "b", "c"], [1, 1, 2, 1]])
    >>> [level.tolist() for level in levels]
    [['a', 'b', 'b', 'c'], [1, 1, 2, 1]]
    >>> codes
    array([1, 0, 2, 3])
    """
    code_dtype = resolve_code_dtype(code_dtype)
    n_obs = validate_variable_lengths(list(variables), n)

    if len(variables) == 0:
        return CombinedFactor([], np.zeros(n_obs, dtype=code_dtype))

    if len(variables) == 1:
        factor = factorize(variables[0], code_dtype=code_dtype)
        return CombinedFactor([factor.levels], factor.codes)

    factors, codes, first_index = _rank_and_label(variables)
    n_uniques = checked_cast(len(first_index), code_dtype)

    levels = [factor.levels[factor.codes[first_index]] for factor in factors]

    logger.debug(
        "Combined %d variables over %d observations into %d observed combinations",
        len(levels),
        n_obs,
        n_uniques,
    )
    return CombinedFactor(levels, codes.astype(code_dtype, copy=False))


def _level_dtype(dtype: np.dtype, cardinality: int) -> np.dtype:
    if dtype.kind in "iu" and np.iinfo(dtype).max >= cardinality - 1:
        return dtype
    return np.dtype(np.int64)


def _prepare_coded_variable(values: ArrayType1D, cardinality: int, position: int):
    arr = numba_funcs._val_to_numpy(values)[0]
    if arr.dtype.kind == "b":
        arr = arr.view(np.uint8)
    if arr.dtype.kind not in "iu":
        raise ValueError(
            f"Variable {position} must hold integer level codes, got dtype {arr.dtype}"
        )
    bad = numba_funcs._find_out_of_range(arr, cardinality)
    if bad >= 0:
        raise ValueError(
            f"Variable {position} has value {arr[bad]} at position {bad}, "
            f"outside of [0, {cardinality})"
        )
    return arr


def _cartesian_column(
    cardinality: int, inner_repeats: int, outer_repeats: int, total: int, dtype
) -> np.ndarray:
    """
    Build one column of the Cartesian table by block replication.

    Each level in ``[0, cardinality)`` is repeated `inner_repeats` times to form
    one cycle, and the cycle is replicated `outer_repeats` times end to end.
    """
    out = checked_empty(total, dtype)
    cycle = np.repeat(np.arange(cardinality, dtype=dtype), inner_repeats)
    out.reshape(outer_repeats, len(cycle))[:] = cycle
    return out


@check_data_inputs_aligned("variables", "cardinalities", check_index=False)
def combine_full(
    variables: Sequence[ArrayType1D],
    cardinalities: Sequence[int],
    n: Optional[int] = None,
    code_dtype=None,
) -> CombinedFactor:
    """
    Combine coded categorical variables into a factor over all possible combinations.

    Unlike `combine_observed`, the table holds every combination of levels,
    including those that never occur. Codes are computed positionally, with the
    first variable as the most significant (slowest varying) digit and each
    variable's cardinality as its radix.

    Parameters
    ----------
    variables : sequence of array-like
        Integer-coded variables, all of the same length. Variable f must only
        contain values in ``[0, cardinalities[f])``.
    cardinalities : sequence of int
        Number of possible levels of each variable, which may exceed the
        largest observed value.
    n : int, optional
        Number of observations. Only required when `variables` is empty, in
        which case every code is 0.
    code_dtype : dtype-like, optional
        Integer type of the returned codes. Defaults to int64.

    Returns
    -------
    CombinedFactor
        Named tuple of (levels, codes). Each array in ``levels`` has length
        ``prod(cardinalities)`` and together they enumerate every combination
        in lexicographic order.

    Raises
    ------
    ValueError
        If the inputs have different lengths, a cardinality is negative or a
        value lies outside of its variable's cardinality
    FactorOverflowError
        If the number of combinations does not fit in `code_dtype` or cannot be
        allocated

    Examples
    --------
    >>> levels, codes = combine_full([[0, 1, 0], [2, 0, 1]], [2, 3])
    >>> [level.tolist() for level in levels]
    [[0, 0, 0, 1, 1, 1], [0, 1, 2, 0, 1, 2]]
    >>> codes
    array([2, 3, 1])
    """
    code_dtype = resolve_code_dtype(code_dtype)
    cardinalities = [operator.index(c) for c in cardinalities]
    for f, cardinality in enumerate(cardinalities):
        if cardinality < 0:
            raise ValueError(f"Cardinality of variable {f} is negative: {cardinality}")

    n_vars = len(variables)
    if n_vars == 0:
        n_obs = validate_variable_lengths([], n)
        return CombinedFactor([], np.zeros(n_obs, dtype=code_dtype))

    # the full table size is checked before touching any observation
    ncombos = checked_cast(cardinalities[-1], code_dtype)
    for cardinality in cardinalities[-2::-1]:
        ncombos = checked_mul(ncombos, cardinality, code_dtype)
    checked_cast(ncombos, np.intp)

    arr_list = [
        _prepare_coded_variable(v, c, f)
        for f, (v, c) in enumerate(zip(variables, cardinalities))
    ]
    n_obs = validate_variable_lengths(arr_list, n)

    if n_vars == 1:
        cardinality = cardinalities[0]
        levels = np.arange(cardinality, dtype=_level_dtype(arr_list[0].dtype, cardinality))
        return CombinedFactor([levels], arr_list[0].astype(code_dtype))

    # back to front: the first variable is the slowest changing
    codes = arr_list[-1].astype(code_dtype)
    stride = cardinalities[-1]
    for arr, cardinality in zip(arr_list[-2::-1], cardinalities[-2::-1]):
        numba_funcs._accumulate_mixed_radix(
            codes, arr.astype(code_dtype), code_dtype.type(stride)
        )
        stride = stride * cardinality

    levels = [None] * n_vars
    inner_repeats = 1
    outer_repeats = ncombos
    for f in range(n_vars - 1, -1, -1):
        cardinality = cardinalities[f]
        dtype = _level_dtype(arr_list[f].dtype, cardinality)
        if ncombos == 0:
            levels[f] = np.empty(0, dtype=dtype)
            continue
        outer_repeats //= cardinality
        levels[f] = _cartesian_column(
            cardinality, inner_repeats, outer_repeats, ncombos, dtype
        )
        inner_repeats *= cardinality

    logger.debug(
        "Combined %d variables over %d observations into %d possible combinations",
        n_vars,
        n_obs,
        ncombos,
    )
    return CombinedFactor(levels, codes)
