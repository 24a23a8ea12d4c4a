# ebunfold/mcmc/sampling.py
# --------------------------------------------------------------
# Author: Emmanuel Vazquez <emmanuel.vazquez@centralesupelec.fr>
# Copyright (c) 2022-2026, CentraleSupelec
# License: GPLv3 (see LICENSE)
# --------------------------------------------------------------
"""
Unfolding by sampling the posterior of the coefficients.

The posterior log-density of the coefficients phi is

    log_likelihood(phi) + log_bounds_correction(phi, bounds)
        + log N(phi; bounds.initial, A(alpha)^{-1}),

with A(alpha) = sum_i alpha_i omega_i. Its exploration is delegated to a
SamplingEngine. The default engine runs the adaptive Metropolis-Hastings
sampler of `ebunfold.mcmc.mh`.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

import numpy as np

import ebunfold.num as enp
from ebunfold.config import get_logger
from ebunfold.core import utils
from ebunfold.core.linalg import checked_inv, normal_equations, weighted_precision
from ebunfold.core.regularization import Method, RegularizationSpec
from ebunfold.core.unfolder import SolveResult, _remember_alphas
from ebunfold.errors import ConfigurationError
from ebunfold.selection import HyperparameterEstimator

from .mh import MetropolisHastings, MHOptions

_logger = get_logger()


@dataclass
class PhiBounds:
    """Initial state and box constraints of the coefficients.

    Parameters
    ----------
    initial : array_like, shape (n,)
        Starting point of the chains and mean of the prior.
    lower, upper : array_like, shape (n,), optional
        Box bounds, -inf and +inf by default.
    """

    initial: Any
    lower: Any = None
    upper: Any = None

    def __post_init__(self):
        self.initial = enp.asdouble(self.initial).reshape(-1)
        n = self.initial.shape[0]
        self.lower = (
            enp.full((n,), -enp.inf) if self.lower is None else enp.asdouble(self.lower).reshape(-1)
        )
        self.upper = (
            enp.full((n,), enp.inf) if self.upper is None else enp.asdouble(self.upper).reshape(-1)
        )
        if self.lower.shape != (n,) or self.upper.shape != (n,):
            raise ConfigurationError(
                f"bounds must have the shape of initial ({n},), "
                f"got {self.lower.shape} and {self.upper.shape}"
            )
        if enp.any(self.lower > self.upper):
            raise ConfigurationError("lower bounds must not exceed upper bounds")
        if not log_bounds_correction(self.initial, self) == 0.0:
            raise ConfigurationError("initial must lie within the bounds")

    @property
    def n(self):
        return self.initial.shape[0]


def log_bounds_correction(phi, bounds):
    """0 if lower <= phi <= upper componentwise, -inf otherwise."""
    phi = enp.asarray(phi)
    if enp.all(phi >= bounds.lower) and enp.all(phi <= bounds.upper):
        return 0.0
    return -enp.inf


@dataclass
class SamplingOutput:
    """Result of a SamplingEngine run.

    Attributes
    ----------
    samples : ndarray, shape (n_chains, n_samples, n)
    mode : ndarray, shape (n,)
        Visited state with the highest log-density.
    covariance : ndarray, shape (n, n)
        Empirical covariance of the samples.
    info : object, optional
        Engine-specific diagnostics.
    """

    samples: Any
    mode: Any
    covariance: Any
    info: Any = field(default=None, repr=False)


class SamplingEngine(ABC):
    """Interface of the posterior exploration engines."""

    @abstractmethod
    def sample(self, log_density, initial, n_samples, n_chains=1) -> SamplingOutput:
        """Sample from the density exp(log_density).

        Parameters
        ----------
        log_density : callable
            Unnormalized log-density of a state of shape (n,).
        initial : ndarray, shape (n,)
        n_samples : int
            Number of samples kept per chain.
        n_chains : int, optional

        Returns
        -------
        SamplingOutput
        """


class MetropolisHastingsEngine(SamplingEngine):
    """Engine running the adaptive Metropolis-Hastings sampler.

    Parameters
    ----------
    burnin : int, optional
        Burn-in length. Defaults to n_samples.
    seed : int, optional
        Seed of the sampler. Defaults to the configuration seed.
    **options
        Extra MHOptions fields (adaptation_method, target_acceptance, ...).
    """

    def __init__(self, burnin=None, seed=None, **options):
        self.burnin = burnin
        self.seed = seed
        self.options = options

    def sample(self, log_density, initial, n_samples, n_chains=1):
        initial = np.asarray(initial, dtype=float).reshape(-1)
        burnin = n_samples if self.burnin is None else self.burnin
        options = MHOptions(
            dim=initial.shape[0],
            n_chains=n_chains,
            seed=self.seed,
            discard_burnin=True,
            **self.options,
        )
        sampler = MetropolisHastings(log_density, options)
        samples = sampler.scheduler(initial, burnin + n_samples, burnin)

        visited = sampler.x[:, : sampler.global_total].reshape(-1, sampler.dim)
        log_p = sampler.log_p[:, : sampler.global_total].reshape(-1)
        mode = visited[np.argmax(log_p)]
        covariance = np.atleast_2d(np.cov(samples.reshape(-1, sampler.dim).T, ddof=1))
        return SamplingOutput(samples=samples, mode=mode, covariance=covariance, info=sampler)


def gaussian_log_likelihood(kernel, data, data_errors):
    """Return phi -> -(d - K phi)^T Sigma^{-1} (d - K phi) / 2.

    Raises
    ------
    SingularMatrixError
        If the data covariance is not invertible.
    """
    Sigma_inv = checked_inv(data_errors, "data covariance")

    def log_likelihood(phi):
        r = data - enp.matmul(kernel, phi)
        return -0.5 * enp.matmul(r, enp.matmul(Sigma_inv, r))

    return log_likelihood


class SamplingUnfolder:
    """Unfolding by posterior sampling.

    Parameters
    ----------
    omegas : sequence of ndarray or RegularizationSpec
    method : {"EmpiricalBayes", "User"}, optional
    alphas : array_like, optional
    bounds : PhiBounds, optional
        Defaults to initial = 0 without constraints.
    log_likelihood : callable, optional
        phi -> log-likelihood. Defaults to the Gaussian log-likelihood of
        the kernel, data and data_errors given to `solve`.
    engine : SamplingEngine, optional
        Defaults to MetropolisHastingsEngine().
    estimator : HyperparameterEstimator, optional
        Estimates the alphas when method is "EmpiricalBayes".

    Examples
    --------
    >>> import numpy as np
    >>> from ebunfold.mcmc import SamplingUnfolder
    >>> unfolder = SamplingUnfolder([np.eye(2)], method="User", alphas=[1.0])
    >>> result = unfolder.solve(np.eye(2), np.array([1.0, 2.0]), np.ones(2))
    """

    def __init__(
        self,
        omegas,
        method=Method.EMPIRICAL_BAYES,
        alphas=None,
        bounds=None,
        log_likelihood=None,
        engine=None,
        estimator=None,
    ):
        if isinstance(omegas, RegularizationSpec):
            self.spec = omegas
        else:
            self.spec = RegularizationSpec(omegas, method, alphas)
        if bounds is None:
            bounds = PhiBounds(enp.zeros(self.spec.n))
        if bounds.n != self.spec.n:
            raise ConfigurationError(
                f"bounds have dimension {bounds.n}, omegas have dimension {self.spec.n}"
            )
        self.bounds = bounds
        self.log_likelihood = log_likelihood
        self.engine = engine or MetropolisHastingsEngine()
        self.estimator = estimator or HyperparameterEstimator()

    def _problem(self, kernel, data, data_errors):
        if kernel is None or data is None or data_errors is None:
            return None
        return utils.ensure_problem(kernel, data, data_errors, self.spec.n)

    def resolve_alphas(self, problem, alphas=None):
        """Return (alphas, info): explicit alphas, User alphas, or estimated ones."""
        if alphas is not None:
            return self.spec.validate_alphas(alphas), None
        if self.spec.method == Method.USER:
            return enp.copy(self.spec.alphas), None
        if problem is None:
            raise ConfigurationError(
                "EmpiricalBayes sampling needs alphas or kernel, data and data_errors"
            )
        B, b = normal_equations(*problem)
        return self.estimator(B, b, self.spec.omegas)

    def log_posterior(self, alphas, log_likelihood):
        """Build the posterior log-density of phi for the given alphas.

        Raises
        ------
        SingularMatrixError
            If A(alpha) is not invertible.
        """
        A = weighted_precision(alphas, self.spec.omegas)
        prior = enp.multivariate_normal.frozen(
            mean=self.bounds.initial, cov=checked_inv(A, "A(alpha)")
        )
        bounds = self.bounds

        def log_density(phi):
            correction = log_bounds_correction(phi, bounds)
            if correction == -enp.inf:
                return correction
            return log_likelihood(phi) + prior.logpdf(phi)

        return log_density

    def solve(
        self,
        kernel=None,
        data=None,
        data_errors=None,
        alphas=None,
        n_samples=2000,
        n_chains=2,
    ):
        """Sample the posterior of the coefficients.

        Parameters
        ----------
        kernel, data, data_errors : array_like, optional
            Discrete problem, used for the default log-likelihood and for
            the EmpiricalBayes alphas.
        alphas : array_like, optional
            Weights overriding those of the RegularizationSpec.
        n_samples : int, optional
            Samples kept per chain.
        n_chains : int, optional

        Returns
        -------
        SolveResult
            coeff is the sampler's mode, covariance its empirical
            covariance, and selection_info the SamplingOutput.

        Raises
        ------
        ConfigurationError
            If neither a log-likelihood nor a discrete problem is available.
        SingularMatrixError
            If A(alpha) or the data covariance is not invertible.
        """
        problem = self._problem(kernel, data, data_errors)
        log_likelihood = self.log_likelihood
        if log_likelihood is None:
            if problem is None:
                raise ConfigurationError(
                    "a log_likelihood or kernel, data and data_errors are required"
                )
            log_likelihood = gaussian_log_likelihood(*problem)

        alphas, info = self.resolve_alphas(problem, alphas)
        log_density = self.log_posterior(alphas, log_likelihood)

        _logger.debug("Sampling posterior (n=%d, alphas=%s)", self.spec.n, alphas)
        output = self.engine.sample(log_density, self.bounds.initial, n_samples, n_chains)
        _remember_alphas(self.spec, alphas)

        return SolveResult(
            coeff=output.mode,
            covariance=output.covariance,
            alphas=alphas,
            method="Sampling",
            converged=None if info is None else info.converged,
            fallback=False if info is None else info.fallback,
            selection_info=output,
        )
