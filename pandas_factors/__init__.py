from ._version import __version__
from .factorize import (
    Factor,
    CombinedFactor,
    factorize,
    combine_observed,
    combine_full,
    factorize_array,
    combine_arrays,
)
from .util import (
    FactorOverflowError,
    checked_cast,
    checked_empty,
    checked_mul,
)
