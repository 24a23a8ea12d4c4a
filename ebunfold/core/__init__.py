# ebunfold/core/__init__.py
# --------------------------------------------------------------
# Author: Emmanuel Vazquez <emmanuel.vazquez@centralesupelec.fr>
# Copyright (c) 2022-2026, CentraleSupelec
# License: GPLv3 (see LICENSE)
# --------------------------------------------------------------

"""
Core components of the ebunfold package.

This subpackage contains the regularization setup, the marginal
likelihood of the regularization weights, the supporting linear algebra
utilities, and the unfolders built on them.

Public API
----------
RegularizationSpec, Method : class
    Validated omegas and weights.
MatrixUnfolder : class
    Unfolding of discrete data.
ContinuousUnfolder : class
    Unfolding with kernel, data and errors given as arrays or functions.
SolveResult : class
    Coefficients, covariance and weights returned by the unfolders.
last_alphas : function
    Weights used by the last solve run with a spec.
"""

from .regularization import Method, RegularizationSpec, difference_omega
from .unfolder import MatrixUnfolder, SolveResult, last_alphas
from .continuous import ContinuousUnfolder, Continuous, Discrete
from .likelihood import marginal_log_likelihood, marginal_likelihood_scan

__all__ = [
    "Method",
    "RegularizationSpec",
    "difference_omega",
    "MatrixUnfolder",
    "SolveResult",
    "last_alphas",
    "ContinuousUnfolder",
    "Continuous",
    "Discrete",
    "marginal_log_likelihood",
    "marginal_likelihood_scan",
]
