import warnings

import numpy as np
import pandas as pd
import polars as pl
import pytest
from numba.core.errors import NumbaTypeSafetyWarning

from pandas_factors.factorize.numba import (
    _accumulate_mixed_radix,
    _find_out_of_range,
    _first_seen_codes,
    _is_jit_hashable,
    _label_sorted_combinations,
    _remap_codes,
    _val_to_numpy,
)


class TestValToNumpy:

    @pytest.mark.parametrize("array_type", [list, np.array, pd.Series, pd.Index])
    def test_basic_types(self, array_type):
        arr, orig_type = _val_to_numpy(array_type([3, 1, 2]))
        assert isinstance(arr, np.ndarray)
        np.testing.assert_array_equal(arr, [3, 1, 2])
        assert orig_type == arr.dtype

    def test_polars_series(self):
        arr, orig_type = _val_to_numpy(pl.Series("a", [1.5, 2.5]))
        np.testing.assert_array_equal(arr, [1.5, 2.5])
        assert orig_type == np.float64

    def test_polars_strings(self):
        arr, _ = _val_to_numpy(pl.Series("a", ["x", "y"]))
        assert arr.tolist() == ["x", "y"]

    def test_pyarrow_backed_series(self):
        arr, _ = _val_to_numpy(pd.Series([1, 2, 3], dtype="int64[pyarrow]"))
        np.testing.assert_array_equal(arr, [1, 2, 3])

    def test_datetimes_viewed_as_int64(self):
        values = pd.Series(np.array(["2020-01-01", "2021-01-01"], dtype="M8[ns]"))
        arr, orig_type = _val_to_numpy(values)
        assert arr.dtype == np.int64
        assert orig_type == values.dtype

    def test_rejects_2d(self):
        with pytest.raises(ValueError, match="1-D"):
            _val_to_numpy(np.zeros((2, 2)))


@pytest.mark.parametrize(
    "dtype, expected",
    [
        (np.int8, True),
        (np.uint64, True),
        (np.float64, True),
        (np.float32, True),
        (np.float16, False),
        (object, False),
        ("U3", False),
    ],
)
def test_is_jit_hashable(dtype, expected):
    assert _is_jit_hashable(np.zeros(1, dtype=dtype)) == expected


class TestFirstSeenCodes:

    @pytest.mark.parametrize("dtype", [np.int64, np.int32, np.uint16, np.float64])
    def test_numeric(self, dtype):
        codes, first_index = _first_seen_codes(np.array([5, 3, 5, 7, 3], dtype=dtype))
        np.testing.assert_array_equal(codes, [0, 1, 0, 2, 1])
        np.testing.assert_array_equal(first_index, [0, 1, 3])

    def test_empty(self):
        codes, first_index = _first_seen_codes(np.array([], dtype=np.int64))
        assert len(codes) == 0
        assert len(first_index) == 0

    @pytest.mark.parametrize("dtype", [np.int32, np.uint16, np.int8, np.float32])
    def test_narrow_dtypes_no_type_safety_warning(self, dtype):
        values = np.array([4, 2, 4, 9], dtype=dtype)
        with warnings.catch_warnings():
            warnings.simplefilter("error", NumbaTypeSafetyWarning)
            codes, first_index = _first_seen_codes(values)
        np.testing.assert_array_equal(codes, [0, 1, 0, 2])
        np.testing.assert_array_equal(first_index, [0, 1, 3])


def test_remap_codes():
    codes = np.array([0, 1, 0, 2], dtype=np.int64)
    remapping = np.array([2, 0, 1], dtype=np.int16)
    out = np.empty(4, dtype=np.int16)
    result = _remap_codes(codes, remapping, out)
    assert result is out
    np.testing.assert_array_equal(out, [2, 0, 2, 1])


class TestLabelSortedCombinations:

    def test_basic(self):
        ranks = np.array([[1, 0, 1, 2], [0, 0, 1, 0]], dtype=np.int64)
        order = np.lexsort(ranks[::-1])
        codes, first_index = _label_sorted_combinations(ranks, order)
        np.testing.assert_array_equal(codes, [1, 0, 2, 3])
        np.testing.assert_array_equal(first_index, [1, 0, 2, 3])

    def test_repeated_combinations(self):
        ranks = np.array([[1, 0, 1, 0, 1], [0, 1, 0, 1, 1]], dtype=np.int64)
        order = np.lexsort(ranks[::-1])
        codes, first_index = _label_sorted_combinations(ranks, order)
        np.testing.assert_array_equal(codes, [1, 0, 1, 0, 2])
        # ties keep observation order, so the earliest occurrence is reported
        np.testing.assert_array_equal(first_index, [1, 0, 4])

    def test_empty(self):
        ranks = np.zeros((2, 0), dtype=np.int64)
        codes, first_index = _label_sorted_combinations(ranks, np.lexsort(ranks[::-1]))
        assert len(codes) == 0
        assert len(first_index) == 0


def test_find_out_of_range():
    assert _find_out_of_range(np.array([0, 1, 2]), 3) == -1
    assert _find_out_of_range(np.array([0, 3, 5]), 3) == 1
    assert _find_out_of_range(np.array([0, -1]), 3) == 1
    assert _find_out_of_range(np.array([], dtype=np.int64), 0) == -1


@pytest.mark.parametrize("dtype", [np.int64, np.int16, np.uint32])
def test_accumulate_mixed_radix(dtype):
    codes = np.array([2, 0, 1], dtype=dtype)
    values = np.array([0, 1, 0], dtype=dtype)
    result = _accumulate_mixed_radix(codes, values, np.dtype(dtype).type(3))
    assert result is codes
    np.testing.assert_array_equal(codes, [2, 3, 1])
