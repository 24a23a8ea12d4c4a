import numpy as np
import pytest

import ebunfold.num as enp
from ebunfold.basis import LegendreBasis
from ebunfold.core import Continuous, ContinuousUnfolder, Discrete, MatrixUnfolder
from ebunfold.core.continuous import as_input
from ebunfold.errors import ConfigurationError


def gaussian_kernel(x, y):
    return np.exp(-((x - y) ** 2) / 0.02)


def test_as_input():
    assert isinstance(as_input(np.ones(2)), Discrete)
    assert isinstance(as_input(np.sin), Continuous)
    d = Discrete([1.0])
    assert as_input(d) is d


def test_callable_without_points():
    unfolder = ContinuousUnfolder(LegendreBasis(0.0, 1.0, 2), [enp.eye(2)], method="User", alphas=[1.0])
    with pytest.raises(ConfigurationError):
        unfolder.solve(enp.eye(2), lambda y: y, enp.ones(2))
    with pytest.raises(ConfigurationError):
        unfolder.solve(gaussian_kernel, enp.ones(2), enp.ones(2))


def test_discrete_inputs_match_matrix_unfolder():
    basis = LegendreBasis(0.0, 1.0, 2)
    unfolder = ContinuousUnfolder(basis, [enp.eye(2)], method="User", alphas=[1.0])
    result = unfolder.solve(enp.eye(2), enp.array([1.0, 2.0]), enp.ones(2))
    reference = MatrixUnfolder([enp.eye(2)], method="User", alphas=[1.0]).solve(
        enp.eye(2), enp.array([1.0, 2.0]), enp.ones(2)
    )
    assert np.array_equal(result.coeff, reference.coeff)
    assert np.array_equal(result.covariance, reference.covariance)


def test_callable_data_and_errors():
    unfolder = ContinuousUnfolder(LegendreBasis(0.0, 1.0, 2), [enp.eye(2)], method="User", alphas=[1.0])
    y = enp.array([1.0, 2.0])
    result = unfolder.solve(enp.eye(2), lambda t: t, lambda t: 1.0, y)
    assert np.allclose(result.coeff, [0.5, 1.0])


def test_discretize_with_kernel_function():
    basis = LegendreBasis(0.0, 1.0, 4)
    unfolder = ContinuousUnfolder.from_basis(basis, orders=[2], method="User", alphas=[1e-4])
    y = enp.linspace(0.0, 1.0, 9)
    K, d, errors = unfolder.discretize(gaussian_kernel, np.cos, lambda t: 1e-4, y)
    assert K.shape == (9, 4)
    assert np.allclose(d, np.cos(y))
    assert np.allclose(errors, 1e-4)
    assert np.allclose(K, basis.discretize_kernel(gaussian_kernel, y))


def test_from_basis_and_solve():
    basis = LegendreBasis(0.0, 1.0, 6)
    unfolder = ContinuousUnfolder.from_basis(basis, orders=[2])
    assert unfolder.spec.k == 1
    assert unfolder.spec.n == 6

    def truth(x):
        return 1.0 + x**2

    y = enp.linspace(0.0, 1.0, 25)
    K = basis.discretize_kernel(gaussian_kernel, y)
    coeff_true = np.linalg.lstsq(basis.design(y), truth(y), rcond=None)[0]
    data = K @ coeff_true
    result = unfolder.solve(gaussian_kernel, data, 1e-8 * enp.ones(25), y)
    x = enp.linspace(0.1, 0.9, 5)
    assert np.allclose(basis.evaluate(result.coeff, x), truth(x), atol=1e-2)
