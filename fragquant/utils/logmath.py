# This file is part of Fragquant.
# Original Telescope code by Matthew L. Bendall (https://github.com/mlbendall/telescope)
#
# New code and modifications by Duane Storey (https://github.com/duanestorey) and Claude (Anthropic).
# Licensed under MIT License.

"""Natural-log domain constants and helpers.

``LOG_0`` is the canonical zero-probability sentinel. Anything equal to it
maps to linear zero.
"""

import numpy as np

LOG_0 = -np.inf
LOG_1 = 0.0
LOG_ONEHALF = np.log(0.5)
LOG_ORPHAN_PROB = np.log(0.05)
LOG_BILLION = np.log(1e9)
MILLION = 1e6


def log_count(n):
    """``log(n)`` for a non-negative count, ``LOG_0`` when n is zero."""
    if n <= 0:
        return LOG_0
    return float(np.log(n))


def safe_exp(x):
    """``exp(x)`` that maps the ``LOG_0`` sentinel (and NaN) to 0.0."""
    if x == LOG_0 or np.isnan(x):
        return 0.0
    return float(np.exp(x))
