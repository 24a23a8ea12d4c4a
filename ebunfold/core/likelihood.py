# ebunfold/core/likelihood.py
# --------------------------------------------------------------
# Author: Emmanuel Vazquez <emmanuel.vazquez@centralesupelec.fr>
# Copyright (c) 2022-2026, CentraleSupelec
# License: GPLv3 (see LICENSE)
# --------------------------------------------------------------
"""
Marginal log-likelihood of the regularization weights.

With B = K^T Sigma^{-1} K, b = K^T Sigma^{-1} d and
A(alpha) = sum_i alpha_i omega_i, the coefficients can be integrated
out analytically and, up to an additive constant and a factor 1/2,

    L(alpha) = log|A(alpha)| - log|B + A(alpha)| + b^T (B + A(alpha))^{-1} b.

When A(alpha) is singular (a roughness penalty has a null space),
log|A| is replaced by the pseudo-log-determinant over the non-null
subspace of A, see `ebunfold.core.linalg.pseudo_logdet`.
"""
import ebunfold.num as enp
from .linalg import (
    checked_inv,
    generalized_logdet,
    logdet,
    truncated_pinv,
    weighted_precision,
)


def marginal_log_likelihood(alphas, B, b, omegas):
    """Compute the marginal log-likelihood L(alpha).

    Parameters
    ----------
    alphas : array_like, shape (k,)
        Positive regularization weights.
    B : ndarray, shape (n, n)
        K^T Sigma^{-1} K.
    b : ndarray, shape (n,)
        K^T Sigma^{-1} d.
    omegas : sequence of ndarray, shape (n, n)
        Regularization matrices.

    Returns
    -------
    L : float

    Raises
    ------
    SingularMatrixError
        If B + A(alpha) is not invertible.
    """
    A = weighted_precision(alphas, omegas)
    S = B + A
    S_inv = checked_inv(S, "B + A(alpha)")
    quad = enp.einsum("i,ij,j->", b, S_inv, b)
    ldetA, _ = generalized_logdet(A)
    ldetS = logdet(S, "B + A(alpha)")
    return ldetA - ldetS + quad


def marginal_log_likelihood_gradient(alphas, B, b, omegas):
    """Gradient of L with respect to alpha.

    Returns
    -------
    grad : ndarray, shape (k,)
        dL/dalpha_i = tr(A^+ omega_i) - tr(S^{-1} omega_i) - c^T omega_i c,
        where S = B + A(alpha), c = S^{-1} b and A^+ is the pseudo-inverse
        of A restricted to its numerical rank (A^{-1} when A is regular).
    """
    A = weighted_precision(alphas, omegas)
    S_inv = checked_inv(B + A, "B + A(alpha)")
    A_pinv = truncated_pinv(A)
    c = enp.matmul(S_inv, b)
    grad = enp.zeros(len(omegas))
    for i, omega in enumerate(omegas):
        grad[i] = (
            enp.sum(A_pinv * omega.T)
            - enp.sum(S_inv * omega.T)
            - enp.einsum("i,ij,j->", c, omega, c)
        )
    return grad


def make_log_alpha_criterion(B, b, omegas):
    """Build the criterion minimized over x = log(alpha).

    Returns
    -------
    criterion : callable
        x -> -L(exp(x)).
    gradient : callable
        x -> d(-L(exp(x)))/dx = -exp(x) * dL/dalpha.
    """

    def criterion(x):
        return -marginal_log_likelihood(enp.exp(x), B, b, omegas)

    def gradient(x):
        alphas = enp.exp(x)
        return -alphas * marginal_log_likelihood_gradient(alphas, B, b, omegas)

    return criterion, gradient


def marginal_likelihood_scan(B, b, omegas, t_min=-100.0, t_max=0.5, num=500):
    """Lazily evaluate L(alpha) on the log-spaced grid alpha = exp(t).

    The same alpha is used for every omega. Points where B + A(alpha) is
    singular yield -inf. The scan is a diagnostic: it has no effect on
    the weight selection.

    Yields
    ------
    (alpha, L) : tuple of float
    """
    k = len(omegas)
    for t in enp.linspace(t_min, t_max, num):
        alpha = float(enp.exp(t))
        try:
            value = marginal_log_likelihood(enp.full(k, alpha), B, b, omegas)
        except enp.LinAlgError:
            value = -enp.inf
        yield alpha, float(value)
