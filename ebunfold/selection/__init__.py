# ebunfold/selection/__init__.py
# --------------------------------------------------------------
# Author: Emmanuel Vazquez <emmanuel.vazquez@centralesupelec.fr>
# Copyright (c) 2022-2026, CentraleSupelec
# License: GPLv3 (see LICENSE)
# --------------------------------------------------------------
"""
Selection of the regularization weights.

Public API
----------
select_alphas
    Empirical-Bayes estimate of the weights, with fallback policy.
autoselect_alphas
    SciPy driver minimizing a criterion of log(alpha).
has_converged
    Convergence decision on a driver result.
HyperparameterEstimator
    Callable holding the optimizer configuration.
"""

from .parameter_selection import (
    HyperparameterEstimator,
    autoselect_alphas,
    has_converged,
    select_alphas,
)

__all__ = [
    "HyperparameterEstimator",
    "autoselect_alphas",
    "has_converged",
    "select_alphas",
]
