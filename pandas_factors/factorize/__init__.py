from .core import Factor, CombinedFactor, factorize, combine_observed, combine_full
from .api import factorize_array, combine_arrays
from . import numba
