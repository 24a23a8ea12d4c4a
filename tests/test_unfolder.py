"""
Unit tests for MatrixUnfolder and SolveResult.
"""

import unittest

import numpy as np

import ebunfold.num as enp
from ebunfold.core import MatrixUnfolder, RegularizationSpec, difference_omega, last_alphas
from ebunfold.errors import DimensionError, SingularMatrixError
from ebunfold.selection import HyperparameterEstimator


# ----------------------------------------------------------------------
# Helper
# ----------------------------------------------------------------------
def identity_problem():
    """n = 2, omega = K = Sigma = I, d = [1, 2]."""
    return enp.eye(2), enp.array([1.0, 2.0]), enp.ones(2)


def smooth_problem(n=12, noise=1e-2, seed=0):
    enp.set_seed(seed)
    x = enp.linspace(0.0, 1.0, n)
    K = enp.exp(-((x[:, None] - x[None, :]) ** 2) / 0.02)
    K = K / enp.sum(K, axis=1)[:, None]
    d = K @ enp.sin(2 * enp.pi * x) + noise * enp.randn(n)
    return K, d, noise**2 * enp.ones(n)


# ======================================================================
#                           Test cases
# ======================================================================
class TestUserAlphas(unittest.TestCase):

    def test_identity_scenario(self):
        unfolder = MatrixUnfolder([enp.eye(2)], method="User", alphas=[1.0])
        result = unfolder.solve(*identity_problem())
        self.assertTrue(np.allclose(result.coeff, [0.5, 1.0]))
        self.assertTrue(np.allclose(result.covariance, 0.5 * np.eye(2)))
        self.assertTrue(np.array_equal(result.alphas, [1.0]))
        self.assertEqual(result.method, "User")
        self.assertIsNone(result.converged)
        self.assertFalse(result.fallback)

    def test_coeff_is_covariance_times_b(self):
        K, d, errors = smooth_problem()
        n = K.shape[1]
        unfolder = MatrixUnfolder([difference_omega(n, 2)], method="User", alphas=[1e-3])
        result = unfolder.solve(K, d, errors)
        _, b = unfolder.normal_equations(K, d, errors)
        self.assertTrue(np.allclose(result.coeff, result.covariance @ b))
        self.assertTrue(np.allclose(result.covariance, result.covariance.T))

    def test_vector_and_matrix_errors_agree(self):
        K, d, errors = smooth_problem()
        n = K.shape[1]
        unfolder = MatrixUnfolder([difference_omega(n, 2)], method="User", alphas=[1e-3])
        r1 = unfolder.solve(K, d, errors)
        r2 = unfolder.solve(K, d, np.diag(errors))
        self.assertTrue(np.array_equal(r1.coeff, r2.coeff))
        self.assertTrue(np.array_equal(r1.covariance, r2.covariance))

    def test_column_data_is_flattened(self):
        K, d, errors = identity_problem()
        unfolder = MatrixUnfolder([enp.eye(2)], method="User", alphas=[1.0])
        result = unfolder.solve(K, d.reshape(-1, 1), errors)
        self.assertTrue(np.allclose(result.coeff, [0.5, 1.0]))

    def test_mapping_access(self):
        unfolder = MatrixUnfolder([enp.eye(2)], method="User", alphas=[1.0])
        result = unfolder.solve(*identity_problem())
        self.assertIs(result["coeff"], result.coeff)
        self.assertIs(result["sig"], result.covariance)
        self.assertIs(result["alphas"], result.alphas)
        with self.assertRaises(KeyError):
            result["foo"]
        self.assertTrue(np.allclose(result.errors(), np.sqrt(0.5)))


class TestValidation(unittest.TestCase):

    def setUp(self):
        self.unfolder = MatrixUnfolder([enp.eye(2)], method="User", alphas=[1.0])

    def test_kernel_columns(self):
        with self.assertRaises(DimensionError):
            self.unfolder.solve(enp.ones((2, 3)), enp.ones(2), enp.ones(2))

    def test_kernel_not_2d(self):
        with self.assertRaises(DimensionError):
            self.unfolder.solve(enp.ones(2), enp.ones(2), enp.ones(2))

    def test_data_length(self):
        with self.assertRaises(DimensionError):
            self.unfolder.solve(enp.eye(2), enp.ones(3), enp.ones(2))

    def test_data_errors_shape(self):
        with self.assertRaises(DimensionError):
            self.unfolder.solve(enp.eye(2), enp.ones(2), enp.ones(3))
        with self.assertRaises(DimensionError):
            self.unfolder.solve(enp.eye(2), enp.ones(2), enp.ones((2, 3)))
        with self.assertRaises(DimensionError):
            self.unfolder.solve(enp.eye(2), enp.ones(2), enp.ones((2, 2, 2)))

    def test_dimension_error_is_value_error(self):
        with self.assertRaises(ValueError):
            self.unfolder.solve(enp.ones((2, 3)), enp.ones(2), enp.ones(2))

    def test_dimensions_checked_before_inversion(self):
        # wrong column count and a singular data covariance
        with self.assertRaises(DimensionError):
            self.unfolder.solve(enp.ones((2, 3)), enp.ones(2), enp.array([1.0, 0.0]))
        with self.assertRaises(DimensionError):
            self.unfolder.solve(enp.eye(2), enp.ones(3), enp.zeros((2, 2)))

    def test_singular_data_covariance(self):
        with self.assertRaises(SingularMatrixError):
            self.unfolder.solve(enp.eye(2), enp.ones(2), enp.array([1.0, 0.0]))

    def test_singular_system(self):
        unfolder = MatrixUnfolder([difference_omega(3, 1)], method="User", alphas=[1.0])
        K = enp.array([[1.0, -1.0, 0.0]])
        with self.assertRaises(SingularMatrixError):
            unfolder.solve(K, enp.ones(1), enp.ones(1))


class TestEmpiricalBayes(unittest.TestCase):

    def test_identity_scenario(self):
        spec = RegularizationSpec([enp.eye(2)])
        unfolder = MatrixUnfolder(spec)
        result = unfolder.solve(*identity_problem())
        self.assertAlmostEqual(float(result.alphas[0]), 2.0 / 3.0, places=5)
        self.assertTrue(np.allclose(result.coeff, np.array([1.0, 2.0]) / (1 + 2.0 / 3.0)))
        self.assertEqual(result.method, "EmpiricalBayes")
        self.assertTrue(result.converged)
        self.assertFalse(result.fallback)
        self.assertIsNotNone(result.selection_info)

    def test_spec_is_not_mutated(self):
        spec = RegularizationSpec([enp.eye(2)])
        unfolder = MatrixUnfolder(spec)
        self.assertIsNone(last_alphas(spec))
        result = unfolder.solve(*identity_problem())
        self.assertIsNone(spec.alphas)
        self.assertTrue(np.array_equal(last_alphas(spec), result.alphas))
        self.assertTrue(np.array_equal(unfolder.alphas, result.alphas))

    def test_fallback_annotations(self):
        estimator = HyperparameterEstimator(minimizer=lambda crit, x0: (x0, False))
        unfolder = MatrixUnfolder([enp.eye(2)], estimator=estimator)
        with self.assertLogs("ebunfold", level="WARNING"):
            result = unfolder.solve(*identity_problem())
        self.assertTrue(np.array_equal(result.alphas, [0.05]))
        self.assertFalse(result.converged)
        self.assertTrue(result.fallback)

    def test_rank_deficient_omega(self):
        for n, order, seed in [(8, 1, 3), (8, 1, 4), (12, 2, 0), (20, 2, 1), (20, 2, 2)]:
            with self.subTest(n=n, order=order, seed=seed):
                K, d, errors = smooth_problem(n=n, seed=seed)
                unfolder = MatrixUnfolder([difference_omega(n, order)])
                result = unfolder.solve(K, d, errors)
                self.assertTrue(result.converged)
                self.assertFalse(result.fallback)
                self.assertEqual(result.coeff.shape, (n,))
                self.assertTrue(np.all(np.isfinite(result.coeff)))

    def test_solve_is_idempotent(self):
        K, d, errors = smooth_problem()
        n = K.shape[1]
        r1 = MatrixUnfolder([difference_omega(n, 2)]).solve(K, d, errors)
        r2 = MatrixUnfolder([difference_omega(n, 2)]).solve(K, d, errors)
        self.assertTrue(np.array_equal(r1.alphas, r2.alphas))
        self.assertTrue(np.array_equal(r1.coeff, r2.coeff))


class TestUserAlphasAreCopied(unittest.TestCase):

    def test_editing_result_leaves_spec_alone(self):
        spec = RegularizationSpec([enp.eye(2)], method="User", alphas=[1.0])
        result = MatrixUnfolder(spec).solve(*identity_problem())
        result.alphas[0] = 5.0
        self.assertTrue(np.array_equal(spec.alphas, [1.0]))


if __name__ == "__main__":
    unittest.main()
