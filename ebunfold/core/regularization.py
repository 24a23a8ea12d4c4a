# ebunfold/core/regularization.py
# --------------------------------------------------------------
# Author: Emmanuel Vazquez <emmanuel.vazquez@centralesupelec.fr>
# Copyright (c) 2022-2026, CentraleSupelec
# License: GPLv3 (see LICENSE)
# --------------------------------------------------------------
"""
Regularization setup: omega matrices and their weights.
"""
from enum import Enum

import ebunfold.num as enp
from ebunfold.errors import ConfigurationError
from .linalg import weighted_precision


class Method(str, Enum):
    """How the regularization weights are obtained."""

    EMPIRICAL_BAYES = "EmpiricalBayes"
    USER = "User"

    def __str__(self):
        return self.value


class RegularizationSpec:
    """Validated collection of regularization matrices and weights.

    Attributes
    ----------
    omegas : list of ndarray, shape (n, n)
        Regularization matrices. Each encodes a quadratic penalty
        phi^T omega phi on the coefficients phi.
    n : int
        Shared dimension of the omegas (number of coefficients).
    method : Method
        `Method.EMPIRICAL_BAYES` to estimate the weights by maximizing
        the marginal likelihood, `Method.USER` to use `alphas` as given.
    alphas : ndarray, shape (k,) or None
        Weights of the omegas. Required when method is "User".

    Notes
    -----
    A spec is not modified by a solve. The weights estimated by the
    Empirical-Bayes method are returned in the solve result, and the last
    weights used with a given spec can be read with
    `ebunfold.core.last_alphas(spec)`.

    Examples
    --------
    >>> import numpy as np
    >>> from ebunfold.core import RegularizationSpec
    >>> spec = RegularizationSpec([np.eye(3)], method="User", alphas=[0.1])
    >>> spec.n, spec.k
    (3, 1)
    """

    def __init__(self, omegas, method=Method.EMPIRICAL_BAYES, alphas=None):
        if omegas is None or len(omegas) == 0:
            raise ConfigurationError("Regularization matrix omega is absent")

        self.omegas = [self._validate_omega(omega) for omega in omegas]
        n = self.omegas[0].shape[0]
        for omega in self.omegas[1:]:
            if omega.shape[0] != n:
                raise ConfigurationError(
                    "All omega matrices must have equal dimensions, "
                    f"got {n}x{n} and {omega.shape[0]}x{omega.shape[1]}"
                )
        self.n = n

        try:
            self.method = Method(method)
        except ValueError as e:
            raise ConfigurationError(
                f"method must be one of {[m.value for m in Method]}, got {method!r}"
            ) from e

        if alphas is not None:
            alphas = self.validate_alphas(alphas)
        elif self.method == Method.USER:
            raise ConfigurationError("alphas must be defined for method='User'")
        self.alphas = alphas

    @staticmethod
    def _validate_omega(omega):
        try:
            omega = enp.asdouble(omega)
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"omega cannot be converted to a numeric array: {e}") from e
        if omega.ndim != 2:
            raise ConfigurationError(
                f"Matrix omega must have two dimensions, got {omega.ndim}"
            )
        if omega.shape[0] != omega.shape[1]:
            raise ConfigurationError(f"Matrix omega must be square, got shape {omega.shape}")
        return omega

    def validate_alphas(self, alphas):
        alphas = enp.asdouble(alphas).reshape(-1)
        if alphas.shape[0] != self.k:
            raise ConfigurationError(
                f"omegas and alphas must have equal size, got {self.k} and {alphas.shape[0]}"
            )
        if not enp.all(enp.isfinite(alphas)) or enp.any(alphas < 0.0):
            raise ConfigurationError(f"alphas must be finite and non-negative, got {alphas}")
        return alphas

    @property
    def k(self):
        """Number of regularization matrices."""
        return len(self.omegas)

    def precision(self, alphas=None):
        """Return A(alpha) = sum_i alphas[i] * omegas[i].

        Uses the RegularizationSpec's own alphas when `alphas` is None.
        """
        if alphas is None:
            if self.alphas is None:
                raise ConfigurationError("alphas are not defined for this spec")
            alphas = self.alphas
        else:
            alphas = self.validate_alphas(alphas)
        return weighted_precision(alphas, self.omegas)

    def __repr__(self):
        return (
            f"RegularizationSpec(n={self.n}, k={self.k}, "
            f"method={self.method.value!r}, alphas={self.alphas})"
        )


def difference_matrix(n, order):
    """Finite-difference operator L of the given order.

    Parameters
    ----------
    n : int
        Number of coefficients.
    order : {0, 1, 2}
        0: identity (n x n); 1: first differences (n-1 x n);
        2: second differences (n-2 x n).
    """
    if order == 0:
        return enp.eye(n)
    if order not in (1, 2):
        raise ConfigurationError("order must be 0, 1, or 2")
    if n <= order:
        raise ConfigurationError(f"n must be larger than the order, got n={n}")
    stencil = [-1.0, 1.0] if order == 1 else [1.0, -2.0, 1.0]
    L = enp.zeros((n - order, n))
    for i in range(n - order):
        L[i, i : i + order + 1] = stencil
    return L


def difference_omega(n, order):
    """Roughness penalty omega = L^T L for the difference operator L.

    The result is symmetric positive semi-definite with rank n - order,
    so for order > 0 it is singular.
    """
    L = difference_matrix(n, order)
    return enp.matmul(L.T, L)
