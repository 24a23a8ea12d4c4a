# ebunfold/core/continuous.py
# --------------------------------------------------------------
# Author: Emmanuel Vazquez <emmanuel.vazquez@centralesupelec.fr>
# Copyright (c) 2022-2026, CentraleSupelec
# License: GPLv3 (see LICENSE)
# --------------------------------------------------------------
"""
Unfolding with kernel, data and errors given as arrays or functions.
"""
from dataclasses import dataclass
from typing import Any, Callable, Union

import ebunfold.num as enp
from ebunfold.errors import ConfigurationError

from .regularization import Method, RegularizationSpec
from .unfolder import MatrixUnfolder


@dataclass(frozen=True)
class Discrete:
    """Input given as a precomputed array."""

    value: Any


@dataclass(frozen=True)
class Continuous:
    """Input given as a function of the evaluation points."""

    func: Callable


Input = Union[Discrete, Continuous]


def as_input(x) -> Input:
    """Classify x as Continuous (callable) or Discrete (anything else)."""
    if isinstance(x, (Discrete, Continuous)):
        return x
    if callable(x):
        return Continuous(x)
    return Discrete(x)


class ContinuousUnfolder:
    """Unfolding in a function basis.

    Parameters
    ----------
    basis : ebunfold.basis.Basis
        Basis of the unfolded function. Discretizes kernel functions.
    omegas : sequence of ndarray or RegularizationSpec
        Regularization matrices in the basis.
    method : {"EmpiricalBayes", "User"}, optional
    alphas : array_like, optional
        Required for method "User".
    estimator : HyperparameterEstimator, optional

    Examples
    --------
    >>> import numpy as np
    >>> from ebunfold.basis import LegendreBasis
    >>> from ebunfold.core import ContinuousUnfolder
    >>> basis = LegendreBasis(0.0, 1.0, 5)
    >>> unfolder = ContinuousUnfolder.from_basis(basis, orders=[2])
    >>> y = np.linspace(0.0, 1.0, 20)
    >>> kernel = lambda x, y: np.exp(-((x - y) ** 2) / 0.02)
    >>> result = unfolder.solve(kernel, np.sin(y), 1e-4 * np.ones(20), y)
    """

    def __init__(
        self,
        basis,
        omegas,
        method=Method.EMPIRICAL_BAYES,
        alphas=None,
        estimator=None,
    ):
        self.basis = basis
        self.solver = MatrixUnfolder(omegas, method, alphas, estimator=estimator)

    @classmethod
    def from_basis(cls, basis, orders=(2,), method=Method.EMPIRICAL_BAYES, alphas=None, estimator=None):
        """Build the omegas with `basis.omega(order)` for each order."""
        omegas = [basis.omega(order) for order in orders]
        return cls(basis, omegas, method, alphas, estimator=estimator)

    @property
    def spec(self) -> RegularizationSpec:
        return self.solver.spec

    def discretize(self, kernel, data, data_errors, y=None):
        """Turn the three inputs into arrays.

        Returns
        -------
        tuple
            (kernel_array, data_array, data_errors_array)

        Raises
        ------
        ConfigurationError
            If an input is a function and `y` is None.
        """
        kernel, data, data_errors = (as_input(x) for x in (kernel, data, data_errors))

        if y is None and any(
            isinstance(x, Continuous) for x in (kernel, data, data_errors)
        ):
            raise ConfigurationError("For callable arguments `y` must be defined")
        if y is not None:
            y = enp.asdouble(y).reshape(-1)

        if isinstance(kernel, Continuous):
            kernel_array = self.basis.discretize_kernel(kernel.func, y)
        else:
            kernel_array = kernel.value

        data_array, data_errors_array = (
            enp.asdouble([x.func(yi) for yi in y]) if isinstance(x, Continuous) else x.value
            for x in (data, data_errors)
        )
        return kernel_array, data_array, data_errors_array

    def solve(self, kernel, data, data_errors, y=None):
        """Discretize the inputs and solve with MatrixUnfolder.

        Parameters
        ----------
        kernel : array_like (m, n) or callable
            Kernel matrix, or kernel function kernel(x, y).
        data : array_like (m,) or callable
            Data, or data function evaluated at each point of y.
        data_errors : array_like (m,) or callable
            Variances of the data, or a function evaluated at each point of y.
        y : array_like, shape (m,), optional
            Measurement points. Required if an input is callable.

        Returns
        -------
        SolveResult
        """
        arrays = self.discretize(kernel, data, data_errors, y)
        return self.solver.solve(*arrays)
