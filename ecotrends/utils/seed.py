"""
Random Seed Utility
===================
Build NumPy random generators for reproducible permutations.
"""

import numpy as np


def make_rng(rng=None):
    """
    Normalise a seed-like argument into a NumPy Generator.

    Args:
        rng: None (fresh OS entropy), an int seed, or an existing Generator
             (returned unchanged so the caller's stream keeps advancing)

    Returns:
        numpy.random.Generator
    """
    if isinstance(rng, np.random.Generator):
        return rng
    return np.random.default_rng(rng)
