# ebunfold/basis/base.py
# --------------------------------------------------------------
# Author: Emmanuel Vazquez <emmanuel.vazquez@centralesupelec.fr>
# Copyright (c) 2022-2026, CentraleSupelec
# License: GPLv3 (see LICENSE)
# --------------------------------------------------------------
"""
Function bases used to discretize continuous unfolding problems.

An unfolded function is written f(x) = sum_j phi_j f_j(x) on [a, b].
A basis turns a kernel function kernel(x, y) into the matrix

    K[i, j] = int_a^b kernel(x, y_i) f_j(x) dx,

provides the roughness matrices

    omega[j, l] = int_a^b f_j^(p)(x) f_l^(p)(x) dx

for a derivative order p, and evaluates expansions and their errors.
"""
from abc import ABC, abstractmethod

import numpy as np
from numpy.polynomial.legendre import leggauss
from scipy.integrate import quad_vec

import ebunfold.num as enp
from ebunfold.errors import ConfigurationError


class Basis(ABC):
    """Abstract basis of n functions on the interval [a, b].

    Subclasses implement `design`.

    Parameters
    ----------
    a, b : float
        Interval bounds, a < b.
    n : int
        Number of basis functions.
    n_quad : int, optional
        Number of Gauss-Legendre nodes used to compute omega matrices.
        Defaults to 2 * n + 64.
    """

    def __init__(self, a, b, n, n_quad=None):
        a, b = float(a), float(b)
        if not a < b:
            raise ConfigurationError(f"basis interval must satisfy a < b, got [{a}, {b}]")
        if int(n) != n or n < 1:
            raise ConfigurationError(f"number of basis functions must be a positive integer, got {n}")
        self.a = a
        self.b = b
        self.n = int(n)
        self.n_quad = 2 * self.n + 64 if n_quad is None else int(n_quad)

    def __len__(self):
        return self.n

    def __repr__(self):
        return f"{type(self).__name__}(a={self.a}, b={self.b}, n={self.n})"

    @abstractmethod
    def design(self, x, order=0):
        """Matrix of basis function derivatives.

        Parameters
        ----------
        x : array_like, shape (q,)
            Points in [a, b].
        order : int, optional
            Derivative order (0 for the functions themselves).

        Returns
        -------
        ndarray, shape (q, n)
            Entry [l, j] is the order-th derivative of f_j at x[l].
        """

    def quadrature(self):
        """Gauss-Legendre nodes and weights on [a, b]."""
        t, w = leggauss(self.n_quad)
        half = 0.5 * (self.b - self.a)
        return self.a + half * (t + 1.0), half * w

    def omega(self, order):
        """Roughness matrix for the given derivative order.

        Returns
        -------
        ndarray, shape (n, n)
            Symmetric positive semi-definite matrix.
        """
        if int(order) != order or order < 0:
            raise ConfigurationError(f"derivative order must be a non-negative integer, got {order}")
        x, w = self.quadrature()
        D = self.design(x, order)
        omega = enp.matmul(D.T * w, D)
        return 0.5 * (omega + omega.T)

    def discretize_kernel(self, kernel, y):
        """Discretize kernel(x, y) at the measurement points y.

        Parameters
        ----------
        kernel : callable
            kernel(x, y) for scalar x in [a, b] and scalar y.
        y : array_like, shape (m,)

        Returns
        -------
        ndarray, shape (m, n)
        """
        y = enp.asdouble(y).reshape(-1)
        K = enp.empty((y.shape[0], self.n))
        for i, yi in enumerate(y):

            def integrand(x, yi=yi):
                return kernel(x, yi) * self.design(np.atleast_1d(x))[0]

            K[i], _ = quad_vec(integrand, self.a, self.b)
        return K

    def evaluate(self, coeff, x):
        """Evaluate f(x) = sum_j coeff_j f_j(x)."""
        x = enp.asdouble(x).reshape(-1)
        return enp.matmul(self.design(x), enp.asdouble(coeff))

    def evaluate_errors(self, covariance, x):
        """Standard deviation of f(x) for coefficients with the given covariance."""
        x = enp.asdouble(x).reshape(-1)
        D = self.design(x)
        var = enp.einsum("lj,jk,lk->l", D, enp.asdouble(covariance), D)
        return enp.sqrt(enp.maximum(var, 0.0))


def discretize_kernel(basis, kernel, y):
    """Discretize kernel(x, y) in `basis` at the measurement points y."""
    return basis.discretize_kernel(kernel, y)
