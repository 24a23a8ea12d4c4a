# ebunfold/core/unfolder.py
# --------------------------------------------------------------
# Author: Emmanuel Vazquez <emmanuel.vazquez@centralesupelec.fr>
# Copyright (c) 2022-2026, CentraleSupelec
# License: GPLv3 (see LICENSE)
# --------------------------------------------------------------
"""
Regularized least-squares unfolding of discrete data.
"""
from dataclasses import dataclass, field
from typing import Any, Optional

import ebunfold.num as enp
from ebunfold.config import get_config, get_logger
from ebunfold.selection import HyperparameterEstimator

from . import utils
from .linalg import checked_inv, normal_equations, weighted_precision
from .regularization import Method, RegularizationSpec

_logger = get_logger()

_LAST_ALPHAS_CACHE = "last_alphas"


@dataclass
class SolveResult:
    """Posterior mean and covariance of the coefficients.

    Attributes
    ----------
    coeff : ndarray, shape (n,)
        Posterior mean of the coefficients.
    covariance : ndarray, shape (n, n)
        Posterior covariance of the coefficients.
    alphas : ndarray, shape (k,)
        Regularization weights used for the solve.
    method : str
        "EmpiricalBayes", "User" or "Sampling".
    converged : bool or None
        Whether the weight selection converged; None if no selection ran.
    fallback : bool
        True if the fallback weight replaced the selected one.
    selection_info : object, optional
        Optimizer (or sampler) diagnostics.
    """

    coeff: Any
    covariance: Any
    alphas: Any
    method: str = Method.USER.value
    converged: Optional[bool] = None
    fallback: bool = False
    selection_info: Any = field(default=None, repr=False)

    _KEYS = {"coeff": "coeff", "sig": "covariance", "covariance": "covariance", "alphas": "alphas"}

    def __getitem__(self, key):
        try:
            return getattr(self, self._KEYS[key])
        except KeyError:
            raise KeyError(key) from None

    def errors(self):
        """Standard deviations of the coefficients."""
        return enp.sqrt(enp.diagonal(self.covariance))


def last_alphas(spec):
    """Return the alphas of the last solve run with `spec`, or None."""
    return get_config().weak_cache(_LAST_ALPHAS_CACHE).get(spec)


def _remember_alphas(spec, alphas):
    get_config().weak_cache(_LAST_ALPHAS_CACHE)[spec] = enp.copy(alphas)


class MatrixUnfolder:
    """Unfolding of discrete data with quadratic regularization.

    Solves d = K phi + noise, noise ~ N(0, Sigma), with the Gaussian prior
    density proportional to exp(-phi^T A(alpha) phi / 2),
    A(alpha) = sum_i alpha_i omega_i.

    Parameters
    ----------
    omegas : sequence of ndarray or RegularizationSpec
        Regularization matrices, or an already built spec.
    method : {"EmpiricalBayes", "User"}, optional
        Weight selection method (ignored if a spec is given).
    alphas : array_like, optional
        Weights, required for method "User" (ignored if a spec is given).
    estimator : HyperparameterEstimator, optional
        Weight estimator used by the "EmpiricalBayes" method.

    Examples
    --------
    >>> import numpy as np
    >>> from ebunfold.core import MatrixUnfolder
    >>> unfolder = MatrixUnfolder([np.eye(2)], method="User", alphas=[1.0])
    >>> result = unfolder.solve(np.eye(2), np.array([1.0, 2.0]), np.ones(2))
    >>> result.coeff
    array([0.5, 1. ])
    """

    def __init__(
        self,
        omegas,
        method=Method.EMPIRICAL_BAYES,
        alphas=None,
        estimator=None,
    ):
        if isinstance(omegas, RegularizationSpec):
            self.spec = omegas
        else:
            self.spec = RegularizationSpec(omegas, method, alphas)
        self.estimator = estimator or HyperparameterEstimator()

    @property
    def n(self):
        return self.spec.n

    @property
    def omegas(self):
        return self.spec.omegas

    @property
    def method(self):
        return self.spec.method

    @property
    def alphas(self):
        """Alphas of the last solve, or the RegularizationSpec's alphas before any solve."""
        alphas = last_alphas(self.spec)
        return self.spec.alphas if alphas is None else alphas

    def normal_equations(self, kernel, data, data_errors):
        """Validate the problem and return (B, b).

        See `ebunfold.core.linalg.normal_equations`.
        """
        K, d, Sigma = utils.ensure_problem(kernel, data, data_errors, self.n)
        return normal_equations(K, d, Sigma)

    def resolve_alphas(self, B, b):
        """Return (alphas, info) for the normal-equation terms (B, b).

        With the "User" method a copy of the RegularizationSpec's alphas is
        returned and info is None.
        """
        if self.spec.method == Method.USER:
            return enp.copy(self.spec.alphas), None
        return self.estimator(B, b, self.spec.omegas)

    def solve(self, kernel, data, data_errors):
        """Compute the regularized solution.

        Parameters
        ----------
        kernel : array_like, shape (m, n)
        data : array_like, shape (m,)
        data_errors : array_like, shape (m,) or (m, m)
            Variances of the data, or their covariance matrix.

        Returns
        -------
        SolveResult

        Raises
        ------
        DimensionError
            If the shapes of kernel, data, data_errors and omegas disagree.
        SingularMatrixError
            If the data covariance or B + A(alpha) is not invertible.
        """
        _logger.debug("Starting solve (n=%d, method=%s)", self.n, self.spec.method)
        B, b = self.normal_equations(kernel, data, data_errors)

        alphas, info = self.resolve_alphas(B, b)

        S = B + weighted_precision(alphas, self.spec.omegas)
        S_inv = checked_inv(S, "B + A(alpha)")
        coeff = enp.matmul(S_inv, b)
        _remember_alphas(self.spec, alphas)
        _logger.debug("Ending solve")

        return SolveResult(
            coeff=coeff,
            covariance=S_inv,
            alphas=alphas,
            method=self.spec.method.value,
            converged=None if info is None else info.converged,
            fallback=False if info is None else info.fallback,
            selection_info=info,
        )
