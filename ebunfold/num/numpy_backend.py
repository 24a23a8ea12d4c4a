# ebunfold/num/numpy_backend.py
# --------------------------------------------------------------
# Author: Emmanuel Vazquez <emmanuel.vazquez@centralesupelec.fr>
# Copyright (c) 2022-2026, CentraleSupelec
# License: GPLv3 (see LICENSE)
# --------------------------------------------------------------
"""NumPy numerical backend for ebunfold.

This module defines the NumPy/SciPy implementation of the ebunfold.num API.
"""

import builtins
from typing import Any
from ebunfold.config import get_config, init_backend, get_logger

ArrayLike = Any

_ebunfold_backend_: str = init_backend()
_config = get_config()
_logger = get_logger()
_logger.debug("Using backend: %s", _ebunfold_backend_)

_LINALG_ERROR_KEYWORDS = (
    "singular",
    "not positive definite",
    "not positive-definite",
    "matrix is not invertible",
    "svd did not converge",
    "eigenvalues did not converge",
    "ill-conditioned",
    "linalg",
    "lapack",
    "array must not contain infs or nans",
)

# -----------------------------------------------------
#
#                      NUMPY
#
# -----------------------------------------------------

import numpy

_np_dtype = numpy.dtype(_config.dtype).type

from numpy import (
    copy,
    where,
    any,
    isfinite,
    diag,
    diagonal,
    arange,
    abs,
    sqrt,
    exp,
    log,
    sin,
    cos,
    sum,
    sort,
    maximum,
    einsum,
    matmul,
    outer,
    all,
)
from numpy.linalg import cond, slogdet, eigvals, svd, inv, pinv
from numpy.linalg import LinAlgError
from numpy import pi, inf
from numpy import finfo
from scipy.stats import multivariate_normal as scipy_mvnormal


# ..................................................

eps = finfo(_np_dtype).eps


# ..................................................


def _is_linalg_exception(exc: Exception) -> bool:
    if isinstance(exc, LinAlgError):
        return True
    msg = str(exc).lower()
    return builtins.any(keyword in msg for keyword in _LINALG_ERROR_KEYWORDS)


# ..................................................


def array(x, dtype=None):
    if dtype is not None:
        return numpy.array(x, dtype=dtype)
    out = numpy.array(x)
    if numpy.issubdtype(out.dtype, numpy.floating) or numpy.issubdtype(
        out.dtype, numpy.integer
    ):
        return out.astype(_np_dtype, copy=False)
    return out


def asarray(x, dtype=None):
    if dtype is not None:
        return numpy.asarray(x, dtype=dtype)
    if isinstance(x, numpy.ndarray):
        if numpy.issubdtype(x.dtype, numpy.floating):
            return x.astype(_np_dtype, copy=False)
        return x
    elif isinstance(x, (int, float)):
        return numpy.array([x], dtype=_np_dtype)
    else:
        out = numpy.asarray(x)
        if numpy.issubdtype(out.dtype, numpy.floating):
            return out.astype(_np_dtype, copy=False)
        return out


def asdouble(x):
    """Convert to a floating array of the backend dtype (ints included)."""
    return numpy.asarray(x).astype(_np_dtype, copy=False)


def empty(shape, dtype=None):
    return numpy.empty(shape, dtype=_np_dtype if dtype is None else dtype)


def zeros(shape, dtype=None):
    return numpy.zeros(shape, dtype=_np_dtype if dtype is None else dtype)


def ones(shape, dtype=None):
    return numpy.ones(shape, dtype=_np_dtype if dtype is None else dtype)


def full(shape, fill_value, dtype=None):
    return numpy.full(
        shape, fill_value, dtype=_np_dtype if dtype is None else dtype
    )


def eye(n, m=None, k=0, dtype=None):
    return numpy.eye(n, M=m, k=k, dtype=_np_dtype if dtype is None else dtype)


def linspace(start, stop, num=50, endpoint=True, dtype=None):
    return numpy.linspace(
        start,
        stop,
        num=num,
        endpoint=endpoint,
        dtype=_np_dtype if dtype is None else dtype,
    )


# ..................................................

# Build one global RNG (or let the user set the seed somewhere):
_np_rng = numpy.random.default_rng(seed=_config.seed)


def set_seed(seed: int) -> None:
    """Set the global NumPy generator seed."""
    global _np_rng
    _np_rng = numpy.random.default_rng(seed=seed)


def randn(*shape: int) -> ArrayLike:
    return _np_rng.normal(loc=0, scale=1, size=shape).astype(_np_dtype, copy=False)


class multivariate_normal:
    @staticmethod
    def _mean_array(mean, d: int):
        m = numpy.asarray(mean)
        if m.ndim == 0:
            return numpy.full((d,), float(m), dtype=_np_dtype)
        m = m.astype(_np_dtype, copy=False).reshape(-1)
        if m.size != d:
            raise ValueError("mean has incompatible length.")
        return m

    @staticmethod
    def frozen(mean, cov):
        """Frozen SciPy distribution; cov is factorized once here."""
        cov = numpy.asarray(cov)
        if cov.ndim != 2 or cov.shape[0] != cov.shape[1]:
            raise ValueError("cov must be a square 2D matrix.")
        mean_array = multivariate_normal._mean_array(mean, cov.shape[0])
        return scipy_mvnormal(mean=mean_array, cov=cov)
