"""
Unit tests for the Metropolis-Hastings sampler and SamplingUnfolder.
"""

import unittest
from unittest import mock

import numpy as np
from scipy.stats import multivariate_normal

import ebunfold.mcmc as mcmc
import ebunfold.num as enp
from ebunfold.core import difference_omega, last_alphas
from ebunfold.errors import ConfigurationError, SingularMatrixError
from ebunfold.mcmc import (
    MetropolisHastings,
    MetropolisHastingsEngine,
    MHOptions,
    PhiBounds,
    SamplingEngine,
    SamplingOutput,
    SamplingUnfolder,
    log_bounds_correction,
)


# ----------------------------------------------------------------------
# Helper
# ----------------------------------------------------------------------
class RecordingEngine(SamplingEngine):
    """Evaluates the log-density at given points instead of sampling."""

    def __init__(self, points):
        self.points = [np.asarray(p, dtype=float) for p in points]
        self.values = None

    def sample(self, log_density, initial, n_samples, n_chains=1):
        self.values = [log_density(p) for p in self.points]
        mode = self.points[int(np.argmax(self.values))]
        return SamplingOutput(
            samples=np.array(self.points)[None],
            mode=mode,
            covariance=np.eye(len(initial)),
        )


def identity_problem():
    return enp.eye(2), enp.array([1.0, 2.0]), enp.ones(2)


# ======================================================================
#                           Test cases
# ======================================================================
class TestMetropolisHastings(unittest.TestCase):

    def test_gaussian_target(self):
        mean = np.array([1.0, -1.0])
        prec = np.diag([1.0, 4.0])

        def log_target(x):
            r = x - mean
            return -0.5 * r @ prec @ r

        for method in ("Haario", "RM"):
            options = MHOptions(dim=2, n_chains=2, adaptation_method=method, seed=0)
            sampler = MetropolisHastings(log_target, options)
            chains = sampler.scheduler(np.zeros(2), 6000, 1000)
            self.assertEqual(chains.shape, (2, 5000, 2))
            x = chains.reshape(-1, 2)
            self.assertTrue(np.allclose(x.mean(axis=0), mean, atol=0.2))
            self.assertTrue(np.allclose(x.var(axis=0), [1.0, 0.25], rtol=0.35))
            rhat = sampler.check_convergence_gelman_rubin(threshold=1.2)["rhat"]
            self.assertEqual(rhat.shape, (2,))

    def test_seeded_runs_are_reproducible(self):
        def log_target(x):
            return -0.5 * x @ x

        runs = []
        for _ in range(2):
            sampler = MetropolisHastings(log_target, MHOptions(dim=2, seed=7))
            runs.append(sampler.scheduler(np.zeros(2), 300, 100))
        self.assertTrue(np.array_equal(runs[0], runs[1]))

    def test_invalid_options(self):
        with self.assertRaises(ValueError):
            MHOptions(adaptation_method="foo")
        with self.assertRaises(TypeError):
            MHOptions(acceptance_tol=0.1)
        sampler = MetropolisHastings(lambda x: 0.0, MHOptions(dim=2))
        with self.assertRaises(ValueError):
            sampler.scheduler(np.zeros(3), 100, 10)
        with self.assertRaises(ValueError):
            sampler.scheduler(np.zeros(2), 10, 100)
        with self.assertRaises(ValueError):
            MetropolisHastings(lambda x: -np.inf, MHOptions(dim=1)).scheduler(np.zeros(1), 10, 5)


class TestBounds(unittest.TestCase):

    def test_log_bounds_correction(self):
        bounds = PhiBounds([0.0, 0.0], lower=[-1.0, 0.0], upper=[1.0, 2.0])
        self.assertEqual(log_bounds_correction([0.5, 1.0], bounds), 0.0)
        self.assertEqual(log_bounds_correction([0.5, -0.1], bounds), -np.inf)
        self.assertEqual(log_bounds_correction([1.5, 1.0], bounds), -np.inf)

    def test_default_bounds_are_unconstrained(self):
        bounds = PhiBounds(np.zeros(3))
        self.assertEqual(bounds.n, 3)
        self.assertEqual(log_bounds_correction([1e300, -1e300, 0.0], bounds), 0.0)

    def test_invalid_bounds(self):
        with self.assertRaises(ConfigurationError):
            PhiBounds([0.0, 0.0], lower=[0.0])
        with self.assertRaises(ConfigurationError):
            PhiBounds([0.0], lower=[1.0], upper=[0.0])
        with self.assertRaises(ConfigurationError):
            PhiBounds([2.0], lower=[0.0], upper=[1.0])


class TestSamplingUnfolder(unittest.TestCase):

    def test_posterior_log_density(self):
        engine = RecordingEngine([[0.5, 1.0], [0.0, 0.0], [5.0, 0.0]])
        bounds = PhiBounds([0.0, 0.0], upper=[2.0, 2.0])
        unfolder = SamplingUnfolder(
            [enp.eye(2)], method="User", alphas=[1.0], bounds=bounds, engine=engine
        )
        result = unfolder.solve(*identity_problem())
        # posterior N([0.5, 1.0], I / 2) up to a constant
        v_mode, v_zero, v_out = engine.values
        self.assertAlmostEqual(v_mode - v_zero, 0.5 * 2.0 * (0.25 + 1.0))
        self.assertEqual(v_out, -np.inf)
        self.assertTrue(np.array_equal(result.coeff, [0.5, 1.0]))
        self.assertEqual(result.method, "Sampling")
        self.assertIsInstance(result.selection_info, SamplingOutput)

    def test_custom_log_likelihood(self):
        engine = RecordingEngine([[0.0], [1.0]])
        unfolder = SamplingUnfolder(
            [enp.eye(1)],
            method="User",
            alphas=[2.0],
            log_likelihood=lambda phi: 10.0 * phi[0],
            engine=engine,
        )
        unfolder.solve()
        self.assertAlmostEqual(engine.values[1] - engine.values[0], 10.0 - 1.0)

    def test_explicit_alphas_override(self):
        engine = RecordingEngine([[0.0]])
        spec_alphas = [1.0]
        unfolder = SamplingUnfolder(
            [enp.eye(1)], method="User", alphas=spec_alphas, log_likelihood=lambda phi: 0.0, engine=engine
        )
        result = unfolder.solve(alphas=[3.0])
        self.assertTrue(np.array_equal(result.alphas, [3.0]))
        self.assertTrue(np.array_equal(unfolder.spec.alphas, spec_alphas))
        self.assertTrue(np.array_equal(last_alphas(unfolder.spec), [3.0]))

    def test_empirical_bayes_alphas(self):
        engine = RecordingEngine([[0.0, 0.0]])
        unfolder = SamplingUnfolder([enp.eye(2)], engine=engine)
        result = unfolder.solve(*identity_problem())
        self.assertAlmostEqual(float(result.alphas[0]), 2.0 / 3.0, places=5)
        self.assertTrue(result.converged)

    def test_missing_inputs(self):
        unfolder = SamplingUnfolder([enp.eye(2)], engine=RecordingEngine([[0.0, 0.0]]))
        with self.assertRaises(ConfigurationError):
            unfolder.solve()
        unfolder = SamplingUnfolder(
            [enp.eye(2)], log_likelihood=lambda phi: 0.0, engine=RecordingEngine([[0.0, 0.0]])
        )
        with self.assertRaises(ConfigurationError):
            unfolder.solve()

    def test_bounds_dimension(self):
        with self.assertRaises(ConfigurationError):
            SamplingUnfolder([enp.eye(2)], bounds=PhiBounds([0.0]))

    def test_singular_prior(self):
        unfolder = SamplingUnfolder(
            [difference_omega(3, 2)], method="User", alphas=[1.0], log_likelihood=lambda phi: 0.0
        )
        with self.assertRaises(SingularMatrixError):
            unfolder.solve()

    def test_prior_is_factorized_once(self):
        unfolder = SamplingUnfolder(
            [enp.eye(2)], method="User", alphas=[2.0], bounds=PhiBounds([1.0, 0.0])
        )
        with mock.patch.object(
            enp.multivariate_normal, "frozen", wraps=enp.multivariate_normal.frozen
        ) as frozen:
            log_density = unfolder.log_posterior(enp.array([2.0]), lambda phi: 0.0)
            values = [log_density(enp.array(phi)) for phi in ([0.0, 0.0], [1.0, 2.0], [3.0, -1.0])]
        self.assertEqual(frozen.call_count, 1)
        expected = multivariate_normal(mean=[1.0, 0.0], cov=0.5 * np.eye(2)).logpdf([1.0, 2.0])
        self.assertAlmostEqual(values[1], expected)

    def test_user_alphas_are_copied(self):
        unfolder = SamplingUnfolder(
            [enp.eye(1)],
            method="User",
            alphas=[1.0],
            log_likelihood=lambda phi: 0.0,
            engine=RecordingEngine([[0.0]]),
        )
        result = unfolder.solve()
        result.alphas[0] = 4.0
        self.assertTrue(np.array_equal(unfolder.spec.alphas, [1.0]))

    def test_metropolis_hastings_engine(self):
        unfolder = SamplingUnfolder(
            [enp.eye(2)],
            method="User",
            alphas=[1.0],
            engine=MetropolisHastingsEngine(seed=1),
        )
        result = unfolder.solve(*identity_problem(), n_samples=3000, n_chains=2)
        self.assertTrue(np.allclose(result.coeff, [0.5, 1.0], atol=0.15))
        self.assertTrue(np.allclose(result.covariance, 0.5 * np.eye(2), atol=0.15))
        self.assertEqual(result.selection_info.samples.shape, (2, 3000, 2))


class TestLazyExports(unittest.TestCase):

    def test_unknown_attribute(self):
        with self.assertRaises(AttributeError):
            mcmc.NotASampler
        self.assertIn("SamplingUnfolder", dir(mcmc))


if __name__ == "__main__":
    unittest.main()
