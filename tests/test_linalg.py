import numpy as np
import pytest

import ebunfold.num as enp
from ebunfold.core import difference_omega
from ebunfold.core.linalg import (
    check_invertible,
    checked_inv,
    generalized_logdet,
    logdet,
    normal_equations,
    numerical_rank,
    pseudo_logdet,
    truncated_pinv,
    weighted_precision,
)
from ebunfold.errors import SingularMatrixError


def test_checked_inv():
    A = enp.array([[2.0, 1.0], [1.0, 3.0]])
    assert np.allclose(checked_inv(A) @ A, np.eye(2))


def test_singular_matrix_raises():
    A = enp.array([[1.0, 1.0], [1.0, 1.0]])
    with pytest.raises(SingularMatrixError):
        check_invertible(A)
    with pytest.raises(SingularMatrixError):
        checked_inv(A, "A")
    with pytest.raises(np.linalg.LinAlgError):
        checked_inv(enp.zeros((3, 3)))


def test_logdet():
    A = enp.diag(enp.array([2.0, 3.0, 4.0]))
    assert np.isclose(logdet(A), np.log(24.0))
    with pytest.raises(SingularMatrixError):
        logdet(enp.zeros((2, 2)))


def test_pseudo_logdet_diagonal():
    A = enp.diag(enp.array([0.0, 2.0, 3.0]))
    assert numerical_rank(A) == 2
    assert np.isclose(pseudo_logdet(A), np.log(6.0))


def test_pseudo_logdet_drops_smallest_eigenvalues():
    n = 7
    omega = 3.0 * difference_omega(n, 2)
    lam = np.sort(np.abs(np.linalg.eigvals(omega)))
    expected = np.sum(np.log(lam[2:]))
    assert np.isclose(pseudo_logdet(omega), expected)
    value, rank = generalized_logdet(omega)
    assert rank == n - 2
    assert np.isclose(value, expected)


def test_generalized_logdet_full_rank():
    A = enp.array([[2.0, 0.5], [0.5, 1.0]])
    value, rank = generalized_logdet(A)
    assert rank == 2
    assert np.isclose(value, np.log(np.linalg.det(A)))


def test_pseudo_logdet_zero_matrix():
    with pytest.raises(SingularMatrixError):
        pseudo_logdet(enp.zeros((3, 3)))


def test_truncated_pinv():
    omega = difference_omega(5, 1)
    assert np.allclose(truncated_pinv(omega), np.linalg.pinv(omega))


def test_normal_equations():
    K = enp.array([[1.0, 2.0], [0.0, 1.0], [1.0, 1.0]])
    d = enp.array([1.0, 2.0, 3.0])
    Sigma = enp.diag(enp.array([1.0, 2.0, 4.0]))
    B, b = normal_equations(K, d, Sigma)
    W = np.linalg.inv(Sigma)
    assert np.allclose(B, K.T @ W @ K)
    assert np.allclose(b, K.T @ W @ d)


def test_weighted_precision():
    omegas = [enp.eye(2), enp.ones((2, 2))]
    assert np.allclose(weighted_precision([0.5, 2.0], omegas), 0.5 * np.eye(2) + 2.0)
