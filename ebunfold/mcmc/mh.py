# ebunfold/mcmc/mh.py
# --------------------------------------------------------------
# Author: Emmanuel Vazquez <emmanuel.vazquez@centralesupelec.fr>
# Copyright (c) 2022-2026, CentraleSupelec
# License: GPLv3 (see LICENSE)
# --------------------------------------------------------------
"""
Adaptive Metropolis-Hastings sampler.

Random-walk proposals N(x, C) with two adaptation policies applied block
by block during burn-in:

- RM (Robbins-Monro) on a diagonal proposal:
  C_i *= exp(gamma * (rate - target))
- Haario on a full covariance:
  C = s * EmpCov + eps * I, with s adapted like the RM step.
"""
import math
import time
from dataclasses import dataclass, field
from typing import Callable, Optional, Union

import numpy as np

from ebunfold.config import get_config, get_logger

_logger = get_logger()


@dataclass
class MHOptions:
    """
    Configuration for the Metropolis-Hastings sampler.
    """

    dim: int = 1
    n_chains: int = 1
    target_acceptance: float = 0.3
    adaptation_method: str = "Haario"
    proposal_distribution_param_init: Union[np.ndarray, None] = field(default=None)
    adaptation_interval: int = 50
    freeze_adaptation: bool = True
    discard_burnin: bool = True
    RM_adapt_factor: float = 1.0
    RM_diminishing: bool = True
    haario_adapt_factor_burnin_phase: float = 1.0
    haario_adapt_factor_sampling_phase: float = 0.5
    haario_initial_scaling_factor: Optional[float] = 1.0
    progress_interval: int = 0
    seed: Optional[int] = None

    def __post_init__(self):
        if self.proposal_distribution_param_init is None:
            self.proposal_distribution_param_init = np.ones(self.dim, dtype=float)
        else:
            self.proposal_distribution_param_init = np.asarray(
                self.proposal_distribution_param_init, dtype=float
            )
        if self.adaptation_method.lower() not in ("rm", "haario"):
            raise ValueError("adaptation_method must be 'RM' or 'Haario'.")


class MetropolisHastings:
    """
    Metropolis-Hastings sampler with RM or Haario adaptation.

    Parameters
    ----------
    log_target : callable
        log_target(x) returns the log of the (unnormalized) target density
        at x, shape (dim,). May return -inf.
    options : MHOptions, optional

    Attributes
    ----------
    x : ndarray, shape (n_chains, n_steps + 1, dim)
        Chain history.
    log_p : ndarray, shape (n_chains, n_steps + 1)
        Log-target values along the chains.
    accept : ndarray of bool, shape (n_chains, n_steps + 1)
    """

    def __init__(
        self,
        log_target: Callable[[np.ndarray], float],
        options: MHOptions = None,
    ):
        self.options = options or MHOptions()
        self.log_target = log_target
        seed = self.options.seed
        self.rng = np.random.default_rng(get_config().seed if seed is None else seed)

        self.n_chains = self.options.n_chains
        self.dim = self.options.dim
        self.target_acceptance = self.options.target_acceptance

        self.proposal_distribution_params = None

        self.haario_adapt_factor = None
        if self.options.haario_initial_scaling_factor is not None:
            s0 = self.options.haario_initial_scaling_factor
        else:
            # 2.38^2 / dim, optimal for Gaussian targets
            s0 = 2.38**2 / self.dim
        self.haario_scaling_factors = [s0] * self.n_chains

        self.x = None
        self.log_p = None
        self.accept = None
        self.rates = None

        self.sampling_mode = "init"
        self.burnin_period = 0
        self.global_iter = 0
        self.global_total = 0
        self.start_time = None

    def _get_cov_parameter(self, chain_idx: int) -> np.ndarray:
        p = self.proposal_distribution_params[chain_idx]
        if np.isscalar(p) or p.ndim == 0:
            return p * np.eye(self.dim)
        elif p.ndim == 1:
            return np.diag(p)
        elif p.ndim == 2:
            return p
        raise ValueError("proposal parameters must be scalar, 1D, or 2D per chain.")

    def _initialize_proposal_distribution_params(self, p_init: np.ndarray) -> list:
        if p_init.ndim == 1 and p_init.shape[0] == self.dim:
            return [p_init.copy() for _ in range(self.n_chains)]
        if p_init.ndim == 2 and p_init.shape == (self.dim, self.dim):
            return [p_init.copy() for _ in range(self.n_chains)]
        if p_init.ndim == 3 and p_init.shape[0] == self.n_chains:
            return [p_init[i].copy() for i in range(self.n_chains)]
        raise ValueError("Invalid proposal_distribution_param_init shape.")

    def _diminishing_adaptation_schedule(self, n, n_total, base, final_frac=0.1):
        """Cosine schedule going from base at step 0 to base * final_frac at n_total."""
        cosine_component = math.cos(math.pi * min(n, n_total) / max(n_total, 1))
        return base * (final_frac + (1 - final_frac) * 0.5 * (1 + cosine_component))

    def _log_progress(self):
        elapsed_time = time.time() - self.start_time
        avg_time = elapsed_time / (self.global_iter + 1)
        remaining = avg_time * (self.global_total - (self.global_iter + 1))
        pct = (self.global_iter + 1) / self.global_total * 100
        _logger.info("MH progress: %5.2f%% | time left: %5.1fs", pct, remaining)

    def set_mode(self, mode: str):
        self.sampling_mode = mode
        if mode == "burnin":
            self.haario_adapt_factor = self.options.haario_adapt_factor_burnin_phase
        elif mode == "sampling_adaptation":
            self.haario_adapt_factor = self.options.haario_adapt_factor_sampling_phase

    def propose(self, x: np.ndarray, chain_idx: int) -> np.ndarray:
        """Random-walk proposal x + N(0, C_chain)."""
        cov = self._get_cov_parameter(chain_idx)
        return x + self.rng.multivariate_normal(np.zeros(self.dim), cov)

    def haario_covariance(self, raw_cov, scaling=None, epsilon=1e-6):
        """Haario proposal covariance scaling * raw_cov + epsilon * I."""
        if scaling is None:
            scaling = (2.38**2) / self.dim
        return scaling * np.atleast_2d(raw_cov) + epsilon * np.eye(self.dim)

    def mhstep(self, x_current, log_p_current, chain_idx):
        """Single Metropolis-Hastings update.

        Returns
        -------
        tuple
            (x_next, log_p_next, accepted)
        """
        y = self.propose(x_current, chain_idx)
        log_p_y = self.log_target(y)
        log_a = log_p_y - log_p_current
        if np.log(self.rng.random()) < log_a:
            return y, log_p_y, True
        return x_current, log_p_current, False

    def run_samples(self, n_steps: int) -> np.ndarray:
        """Run n_steps iterations and return the acceptance rate per chain."""
        i0 = self.global_iter + 1
        i1 = self.global_iter + 1 + n_steps
        interval = self.options.progress_interval
        for t in range(i0, i1):
            for c in range(self.n_chains):
                self.x[c, t], self.log_p[c, t], self.accept[c, t] = self.mhstep(
                    self.x[c, t - 1], self.log_p[c, t - 1], c
                )
            self.global_iter += 1
            if interval and self.global_iter % interval == 0:
                self._log_progress()
        return np.mean(self.accept[:, i0:i1], axis=1)

    def run_adaptive_RM(self, n_block_size: int, diminishing: bool = True):
        """Run one block of Robbins-Monro adaptation."""
        rates = self.run_samples(n_block_size)
        gamma = self.options.RM_adapt_factor
        if diminishing:
            gamma = self._diminishing_adaptation_schedule(
                self.global_iter, self.burnin_period, gamma
            )
        for c in range(self.n_chains):
            self.proposal_distribution_params[c] = self.proposal_distribution_params[
                c
            ] * np.exp(gamma * (rates[c] - self.target_acceptance))

    def run_adaptive_Haario(self, n_block_size: int, epsilon: float = 1e-6):
        """Run one block of Haario adaptation."""
        rates = self.run_samples(n_block_size)
        i0 = self.global_iter - n_block_size + 1
        i1 = self.global_iter + 1
        for c in range(self.n_chains):
            self.haario_scaling_factors[c] *= np.exp(
                self.haario_adapt_factor * (rates[c] - self.target_acceptance)
            )
            raw_cov = np.cov(self.x[c, i0:i1].T, ddof=1)
            self.proposal_distribution_params[c] = self.haario_covariance(
                raw_cov, self.haario_scaling_factors[c], epsilon
            )

    def _run_adaptive_block(self, diminishing):
        if self.options.adaptation_method.lower() == "rm":
            self.run_adaptive_RM(self.options.adaptation_interval, diminishing)
        else:
            self.run_adaptive_Haario(self.options.adaptation_interval)

    def run_burnin(self, burnin_period: int) -> None:
        """Run the burn-in phase block by block, adapting the proposals."""
        n_blocks = burnin_period // self.options.adaptation_interval
        for _ in range(n_blocks):
            self._run_adaptive_block(self.options.RM_diminishing)
        remainder = burnin_period - n_blocks * self.options.adaptation_interval
        if remainder > 0:
            self.run_samples(remainder)

    def scheduler(
        self,
        chains_state_initial: np.ndarray,
        n_steps_total: int,
        burnin_period: int,
    ) -> np.ndarray:
        """Run burn-in then sampling.

        Parameters
        ----------
        chains_state_initial : ndarray, shape (dim,) or (n_chains, dim)
            A single state is replicated over the chains.
        n_steps_total : int
            Number of steps, burn-in included.
        burnin_period : int

        Returns
        -------
        ndarray, shape (n_chains, n_kept, dim)
            The chains, burn-in excluded if options.discard_burnin.
        """
        if n_steps_total < burnin_period:
            raise ValueError("Total steps < burnin")
        x0 = np.atleast_2d(np.asarray(chains_state_initial, dtype=float))
        if x0.shape == (1, self.dim) and self.n_chains > 1:
            x0 = np.tile(x0, (self.n_chains, 1))
        if x0.shape != (self.n_chains, self.dim):
            raise ValueError(
                f"chains_state_initial must have shape ({self.n_chains}, {self.dim})"
                f" or ({self.dim},). Got {x0.shape}."
            )
        self.proposal_distribution_params = (
            self._initialize_proposal_distribution_params(
                self.options.proposal_distribution_param_init
            )
        )
        self.x = np.empty((self.n_chains, 1 + n_steps_total, self.dim), dtype=float)
        self.log_p = np.empty((self.n_chains, 1 + n_steps_total), dtype=float)
        self.accept = np.empty((self.n_chains, 1 + n_steps_total), dtype=bool)
        self.burnin_period = burnin_period
        self.global_iter = 0
        self.global_total = 1 + n_steps_total
        self.start_time = time.time()
        self.x[:, 0, :] = x0
        self.log_p[:, 0] = [self.log_target(x0[c]) for c in range(self.n_chains)]
        self.accept[:, 0] = True
        if not np.all(np.isfinite(self.log_p[:, 0])):
            raise ValueError("log target is not finite at the initial state")

        _logger.info(
            "Metropolis-Hastings: dim=%d, steps=%d, burn-in=%d, chains=%d",
            self.dim,
            n_steps_total,
            burnin_period,
            self.n_chains,
        )

        self.set_mode("burnin")
        self.run_burnin(burnin_period)

        n_remain = n_steps_total - burnin_period
        if self.options.freeze_adaptation:
            self.set_mode("sampling_freeze_adaptation")
            self.run_samples(n_remain)
        else:
            self.set_mode("sampling_adaptation")
            n_blocks = n_remain // self.options.adaptation_interval
            for _ in range(n_blocks):
                self._run_adaptive_block(False)
            self.run_samples(n_remain - n_blocks * self.options.adaptation_interval)

        self.global_total = self.global_iter + 1
        _logger.debug(
            "Metropolis-Hastings done in %.3fs, acceptance rates %s",
            time.time() - self.start_time,
            self.acceptance_rates(),
        )
        return self.chains()

    def chains(self, log_p=False):
        """Chain states (or log-target values) kept after the run."""
        values = self.log_p if log_p else self.x
        i0 = self.burnin_period + 1 if self.options.discard_burnin else 0
        return values[:, i0 : self.global_total]

    def acceptance_rates(self) -> np.ndarray:
        """Acceptance rate of each chain after burn-in."""
        i0 = self.burnin_period + 1
        if self.global_total <= i0:
            return np.full(self.n_chains, np.nan)
        return np.mean(self.accept[:, i0 : self.global_total], axis=1)

    def compute_gelman_rubin_rhat(self, burnin_period: Optional[int] = None) -> np.ndarray:
        """
        Gelman-Rubin R-hat statistic of each coordinate.

        Parameters
        ----------
        burnin_period : int, optional
            Number of initial iterations to ignore (defaults to the burn-in).

        Returns
        -------
        ndarray, shape (dim,)
        """
        if burnin_period is None:
            burnin_period = self.burnin_period
        if self.x is None:
            raise ValueError("No chain data available.")
        if self.n_chains < 2:
            raise ValueError("At least 2 chains are required.")
        block = self.x[:, burnin_period + 1 : self.global_total, :]
        n_block = block.shape[1]
        if n_block <= 1:
            raise ValueError("Not enough samples to compute Gelman-Rubin diagnostic.")
        chain_means = np.mean(block, axis=1)
        W = np.mean(np.var(block, axis=1, ddof=1), axis=0)
        B = n_block * np.var(chain_means, axis=0, ddof=1)
        var_post = ((n_block - 1) / n_block) * W + B / n_block
        return np.sqrt(var_post / W)

    def check_convergence_gelman_rubin(self, threshold: float = 1.1) -> dict:
        """Log and return {'rhat': ..., 'ok': all(rhat < threshold)}."""
        rhat = self.compute_gelman_rubin_rhat()
        ok = bool(np.all(rhat < threshold))
        if ok:
            _logger.info("Gelman-Rubin: all R-hat < %s (%s)", threshold, rhat)
        else:
            _logger.warning("Gelman-Rubin: some R-hat >= %s (%s)", threshold, rhat)
        return {"rhat": rhat, "ok": ok}
