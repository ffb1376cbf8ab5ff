from functools import wraps
from inspect import signature
from typing import Mapping, Union, Any, Callable, TypeVar, cast, List, Tuple

import numpy as np
import pandas as pd
import polars as pl

F = TypeVar("F", bound=Callable[..., Any])

DEFAULT_CODE_DTYPE = np.dtype(np.int64)

ArrayType1D = Union[np.ndarray, pl.Series, pd.Series, pd.Index, pd.Categorical]
ArrayType2D = Union[np.ndarray, pl.DataFrame, pd.DataFrame, pd.MultiIndex]


class FactorOverflowError(OverflowError):
    """
    Raised when a count of levels, combinations or a mixed-radix stride
    cannot be represented by the requested integer type.
    """


def resolve_code_dtype(dtype) -> np.dtype:
    """
    Normalise the integer type used for factor codes.

    Parameters
    ----------
    dtype : dtype-like or None
        Any numpy integer dtype specification. None selects DEFAULT_CODE_DTYPE.

    Returns
    -------
    np.dtype

    Raises
    ------
    TypeError
        If `dtype` is not a signed or unsigned integer type
    """
    if dtype is None:
        return DEFAULT_CODE_DTYPE
    dtype = np.dtype(dtype)
    if dtype.kind not in "iu":
        raise TypeError(f"Codes must have an integer dtype, got {dtype}")
    return dtype


def checked_cast(value: int, dtype) -> int:
    """
    Check that an integer can be stored in the given integer dtype.

    Parameters
    ----------
    value : int
        Integer to check
    dtype : dtype-like
        Target integer type

    Returns
    -------
    int
        `value` as a Python int

    Raises
    ------
    FactorOverflowError
        If `value` lies outside the range of `dtype`

    Examples
    --------
    >>> checked_cast(255, np.uint8)
    255
    >>> checked_cast(256, np.uint8)
    Traceback (most recent call last):
    ...
    pandas_factors.util.FactorOverflowError: 256 does not fit in uint8 (range [0, 255])
    """
    value = int(value)
    info = np.iinfo(dtype)
    if value < info.min or value > info.max:
        raise FactorOverflowError(
            f"{value} does not fit in {np.dtype(dtype)} (range [{info.min}, {info.max}])"
        )
    return value


def checked_mul(a: int, b: int, dtype) -> int:
    """
    Multiply two integers, failing if the product does not fit in `dtype`.

    The product is formed with Python integers so it never wraps around.
    """
    return checked_cast(int(a) * int(b), dtype)


def checked_empty(size: int, dtype) -> np.ndarray:
    """
    Allocate an uninitialised 1-D array of exactly `size` elements.

    Raises
    ------
    FactorOverflowError
        If `size` is not a valid array length on this platform
    """
    size = checked_cast(size, np.intp)
    if size < 0:
        raise FactorOverflowError(f"Cannot allocate an array of negative length {size}")
    return np.empty(size, dtype=dtype)


def _maybe_cast_timestamp_arr(arr):
    if arr.dtype.kind in 'mM':
        return arr.view('int64'), arr.dtype
    else:
        return arr, arr.dtype


def check_data_inputs_aligned(
    *args_to_check, check_index: bool = True
) -> Callable[[F], F]:
    """
    Factory function that returns a decorator which ensures all arguments passed to the
    decorated function have equal length and, if pandas objects and check_index is True,
    share a common index.

    Args:
        check_index: If True, also checks that pandas objects share the same index

    Returns:
        A decorator function
    """

    def decorator(func: F) -> F:
        @wraps(func)
        def wrapper(*args, **kwargs) -> Any:
            if not args and not kwargs:
                return func(*args, **kwargs)

            arguments = signature(func).bind(*args, **kwargs).arguments
            lengths = {}
            # Extract args that have a length
            for k, x in arguments.items():
                if not args_to_check or k in args_to_check:
                    if x is not None:
                        lengths[k] = len(x)
            if len(set(lengths.values())) > 1:
                raise ValueError(
                    f"All arguments must have equal length. " f"Got lengths: {lengths}"
                )

            if check_index:
                pandas_args = [
                    arg for arg in args if isinstance(arg, (pd.Series, pd.DataFrame))
                ]
                if pandas_args:
                    first_index = pandas_args[0].index
                    for arg in pandas_args[1:]:
                        if not first_index.equals(arg.index):
                            raise ValueError(
                                "All pandas objects must share the same index"
                            )

            return func(*args, **kwargs)

        return cast(F, wrapper)

    return decorator


def validate_variable_lengths(arr_list: List[np.ndarray], n=None) -> int:
    """
    Check that all variables describe the same observations.

    Parameters
    ----------
    arr_list : list of np.ndarray
        One 1-D array per categorical variable
    n : int, optional
        Expected number of observations. Required when `arr_list` is empty.

    Returns
    -------
    int
        The number of observations

    Raises
    ------
    ValueError
        If the arrays have different lengths, or disagree with `n`
    """
    lengths = set(map(len, arr_list))
    if n is not None:
        lengths.add(int(n))
    if len(lengths) > 1:
        raise ValueError(f"found more than one unique length: {lengths}")
    return lengths.pop() if lengths else 0


def get_array_name(array: Union[np.ndarray, pd.Series, pl.Series]):
    """
    Get the name attribute of an array if it exists and is not empty.

    Parameters
    ----------
    array : Union[np.ndarray, pd.Series, pl.Series]
        Array-like object to get name from

    Returns
    -------
    str or None
        The name of the array if it exists and is not empty, otherwise None
    """
    name = getattr(array, "name", None)
    if name is None or name == "":
        return None
    return name


class TempName(str): ...


def convert_data_to_arr_list_and_keys(arrays, temp_name_root: str = "_arr_") -> Tuple[List[np.ndarray], List[str]]:
    """
    Split a collection of categorical variables into a list of arrays and their names.

    Parameters
    ----------
    arrays : Various types
        Input arrays in various formats (Mapping, list/tuple of arrays, 2D array,
        pandas/polars Series or DataFrame)
    temp_name_root : str, default "_arr_"
        Prefix to use for generating temporary names for unnamed arrays

    Returns
    -------
    tuple of (list, list)
        The arrays and one name per array. Unnamed arrays get a TempName.

    Raises
    ------
    TypeError
        If the input type is not supported
    """
    if isinstance(arrays, Mapping):
        array = dict(arrays)
        return list(array.values()), list(array.keys())
    elif isinstance(arrays, (tuple, list)):
        names = map(get_array_name, arrays)
        keys = [
            name or TempName(f"{temp_name_root}{i}") for i, name in enumerate(names)
        ]
        return list(arrays), keys
    elif isinstance(arrays, np.ndarray) and arrays.ndim == 2:
        return convert_data_to_arr_list_and_keys(list(arrays.T))
    elif isinstance(
            arrays, (pd.Series, pl.Series, np.ndarray, pd.Index, pd.Categorical)
    ):
        name = get_array_name(arrays)
        if name is None:
            name = TempName(f"{temp_name_root}0")
        return [arrays], [name]
    elif isinstance(arrays, (pl.DataFrame, pd.DataFrame)):
        return [arrays[key] for key in arrays.columns], list(arrays.columns)
    else:
        raise TypeError(f"Input type {type(arrays)} not supported")
