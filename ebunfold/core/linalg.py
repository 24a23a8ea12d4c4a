# ebunfold/core/linalg.py
# --------------------------------------------------------------
# Author: Emmanuel Vazquez <emmanuel.vazquez@centralesupelec.fr>
# Copyright (c) 2022-2026, CentraleSupelec
# License: GPLv3 (see LICENSE)
# --------------------------------------------------------------
"""
Linear-algebra utilities shared across ebunfold.core modules.

This file isolates small helpers (built on top of `ebunfold.num as enp`)
so they can be reused by the unfolders, the marginal likelihood and the
sampling adapter without import cycles. Every inverse goes through
`checked_inv`, which raises SingularMatrixError instead of returning
garbage for numerically singular matrices.
"""
import ebunfold.num as enp
from ebunfold.config import get_config
from ebunfold.errors import SingularMatrixError


def singular_rcond():
    """Reciprocal condition number below which a matrix is singular."""
    rcond = get_config().singular_rcond
    return enp.eps if rcond is None else rcond


def check_invertible(A, name="matrix"):
    """Raise SingularMatrixError if A is numerically singular.

    Parameters
    ----------
    A : array_like, shape (n, n)
        Square matrix.
    name : str, optional
        Name used in the error message.

    Notes
    -----
    A is declared singular when 1 / cond(A) <= singular_rcond(), the
    default threshold being the machine epsilon of the backend dtype.
    """
    try:
        c = enp.cond(A)
    except enp.LinAlgError as exc:
        raise SingularMatrixError(f"{name} is singular: {exc}") from exc
    if not enp.isfinite(c) or 1.0 / c <= singular_rcond():
        raise SingularMatrixError(
            f"{name} is singular to working precision (cond = {c:.3e})"
        )


def checked_inv(A, name="matrix"):
    """Return A^{-1}, raising SingularMatrixError if A is singular."""
    check_invertible(A, name)
    try:
        return enp.inv(A)
    except enp.LinAlgError as exc:
        raise SingularMatrixError(f"{name} is singular: {exc}") from exc


def numerical_rank(A):
    """Rank of A from its singular values.

    Singular values below s_max * n * eps are treated as zero, which is the
    NumPy default for `matrix_rank`.
    """
    s = enp.svd(A, compute_uv=False)
    if s.shape[0] == 0 or s[0] == 0.0:
        return 0
    tol = s[0] * max(A.shape) * enp.eps
    return int(enp.sum(s > tol))


def logdet(A, name="matrix"):
    """Return log|det(A)| for a nonsingular A."""
    sign, logabsdet = enp.slogdet(A)
    if sign == 0 or not enp.isfinite(logabsdet):
        raise SingularMatrixError(f"{name} has a zero determinant")
    return logabsdet


def pseudo_logdet(A, rank=None):
    """Sum of log|eigenvalue| over the non-null subspace of A.

    Parameters
    ----------
    A : array_like, shape (n, n)
        Square matrix, possibly singular.
    rank : int, optional
        Numerical rank of A. Computed with `numerical_rank` if omitted.

    Returns
    -------
    float
        With d = n - rank, the eigenvalues of A are sorted by magnitude
        and the d smallest are excluded as null-space eigenvalues; the
        result is the sum of log|lambda| over the n - d remaining ones.
    """
    n = A.shape[0]
    if rank is None:
        rank = numerical_rank(A)
    if rank == 0:
        raise SingularMatrixError("pseudo-log-determinant of a zero matrix")
    lam = enp.abs(enp.eigvals(A))
    lam = enp.sort(lam)
    d = n - rank
    return enp.sum(enp.log(lam[d:]))


def generalized_logdet(A):
    """log|A| if A has full rank, pseudo-log-determinant otherwise.

    Returns
    -------
    value : float
    rank : int
    """
    n = A.shape[0]
    rank = numerical_rank(A)
    if rank == n:
        return logdet(A), rank
    return pseudo_logdet(A, rank), rank


def truncated_pinv(A, rank=None):
    """Pseudo-inverse of A restricted to its `rank` leading singular triplets."""
    if rank is None:
        rank = numerical_rank(A)
    U, s, Vt = enp.svd(A)
    return enp.matmul(Vt[:rank].T / s[:rank], U[:, :rank].T)


def normal_equations(kernel, data, data_errors):
    """Compute B = K^T Sigma^{-1} K and b = K^T Sigma^{-T} d.

    Parameters
    ----------
    kernel : ndarray, shape (m, n)
    data : ndarray, shape (m,)
    data_errors : ndarray, shape (m, m)
        Covariance matrix of the data.

    Returns
    -------
    B : ndarray, shape (n, n)
    b : ndarray, shape (n,)

    Raises
    ------
    SingularMatrixError
        If the data covariance is not invertible.
    """
    Sigma_inv = checked_inv(data_errors, "data covariance")
    B = enp.matmul(kernel.T, enp.matmul(Sigma_inv, kernel))
    b = enp.matmul(kernel.T, enp.matmul(Sigma_inv.T, data))
    return B, b


def weighted_precision(alphas, omegas):
    """Return A(alpha) = sum_i alpha_i * omega_i."""
    A = enp.zeros(omegas[0].shape)
    for alpha, omega in zip(alphas, omegas):
        A = A + alpha * omega
    return A
