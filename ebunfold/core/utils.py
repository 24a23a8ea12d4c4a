# ebunfold/core/utils.py
# --------------------------------------------------------------
# Author: Emmanuel Vazquez <emmanuel.vazquez@centralesupelec.fr>
# Copyright (c) 2022-2026, CentraleSupelec
# License: GPLv3 (see LICENSE)
# --------------------------------------------------------------
"""
Small utilities used across `ebunfold.core` modules.

This file hosts shape/type validation and conversion helpers for the
(kernel, data, data_errors) triple of a linear unfolding problem.
Every check here runs before any linear algebra.
"""
import ebunfold.num as enp
from ebunfold.errors import DimensionError


def _as_float_array(x, name):
    try:
        return enp.asdouble(x)
    except (TypeError, ValueError) as e:
        raise DimensionError(f"{name} cannot be converted to a numeric array: {e}") from e


def ensure_kernel(kernel, n):
    """Return kernel as an (m, n) array.

    Raises
    ------
    DimensionError
        If kernel is not 2D or its column count differs from n.
    """
    K = _as_float_array(kernel, "kernel")
    if K.ndim != 2:
        raise DimensionError(f"kernel must be 2D, got {K.ndim}D with shape {K.shape}")
    if K.shape[1] != n:
        raise DimensionError(
            f"kernel has {K.shape[1]} columns but the regularization matrices "
            f"are {n}x{n}; kernel and unfolder must have equal dimensions"
        )
    return K


def ensure_data(data, m):
    """Return data as an (m,) array. A single-column 2D array is flattened."""
    d = _as_float_array(data, "data")
    if d.ndim == 2 and d.shape[1] == 1:
        d = d.reshape(-1)
    if d.ndim != 1:
        raise DimensionError(f"data must be 1D, got shape {d.shape}")
    if d.shape[0] != m:
        raise DimensionError(
            f"kernel and data must be (m, n) and (m,) dimensional, "
            f"got m = {m} and data of length {d.shape[0]}"
        )
    return d


def ensure_data_errors(data_errors, m):
    """Return data_errors as an (m, m) covariance matrix.

    A 1D array of variances is promoted to a diagonal matrix.
    """
    S = _as_float_array(data_errors, "data_errors")
    if S.ndim == 1:
        S = enp.diag(S)
    elif S.ndim != 2:
        raise DimensionError(f"data_errors must be 1D or 2D, got {S.ndim}D")
    if S.shape[0] != S.shape[1]:
        raise DimensionError(f"data_errors matrix must be square, got shape {S.shape}")
    if S.shape[0] != m:
        raise DimensionError(
            f"data_errors and data must have equal dimensions, "
            f"got {S.shape[0]} and {m}"
        )
    return S


def ensure_problem(kernel, data, data_errors, n):
    """Validate and convert a (kernel, data, data_errors) triple.

    Parameters
    ----------
    kernel : array_like, shape (m, n)
    data : array_like, shape (m,) or (m, 1)
    data_errors : array_like, shape (m,) or (m, m)
        Variances or covariance matrix of the data.
    n : int
        Dimension of the regularization matrices.

    Returns
    -------
    tuple
        (K, d, Sigma) with shapes (m, n), (m,), (m, m).
    """
    K = ensure_kernel(kernel, n)
    m = K.shape[0]
    d = ensure_data(data, m)
    Sigma = ensure_data_errors(data_errors, m)
    return K, d, Sigma
