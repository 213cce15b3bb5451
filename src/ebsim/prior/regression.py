"""Beta-binomial regression: a prior whose mean depends on log(at-bats).

The Beta mean for player ``i`` is ``expit(mu_intercept + mu_log_ab * log(AB_i))``
and a single dispersion ``sigma`` is shared, so that

    alpha_i = mu_i / sigma
    beta_i = (1 - mu_i) / sigma

Better hitters get more at-bats, so a shared prior shrinks low-AB players
toward a mean that is too high for them; conditioning on at-bats removes
that bias.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Tuple

import numpy as np
from scipy.optimize import minimize
from scipy.special import expit, logit

from .beta import fit_beta_prior
from .likelihood import (
    check_converged,
    log_likelihood_gradient,
    log_likelihood_terms,
    numerical_hessian,
    standard_errors,
    validate_counts,
)


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RegressionPrior:
    mu_intercept: float
    mu_log_ab: float
    sigma: float
    mu_intercept_se: float = float("nan")
    mu_log_ab_se: float = float("nan")
    sigma_se: float = float("nan")
    n_players: int = 0
    log_likelihood: float = float("nan")
    iterations: int = 0

    def mu(self, at_bats) -> np.ndarray:
        return expit(self.mu_intercept + self.mu_log_ab * np.log(np.asarray(at_bats, dtype=float)))

    def parameters(self, at_bats) -> Tuple[np.ndarray, np.ndarray]:
        """Per-player (alpha_i, beta_i) implied by each player's at-bats."""

        mu = self.mu(at_bats)
        return mu / self.sigma, (1 - mu) / self.sigma

    def to_dict(self) -> dict:
        return {
            "model": "ab_dependent",
            "method": "mle",
            "mu_intercept": self.mu_intercept,
            "mu_log_ab": self.mu_log_ab,
            "sigma": self.sigma,
            "mu_intercept_se": self.mu_intercept_se,
            "mu_log_ab_se": self.mu_log_ab_se,
            "sigma_se": self.sigma_se,
            "n_players": self.n_players,
            "log_likelihood": self.log_likelihood,
            "iterations": self.iterations,
        }


def _total_gradient(hits, at_bats, covariate, params: np.ndarray) -> np.ndarray:
    """Gradient of the total log likelihood in (intercept, slope, log sigma)."""

    intercept, slope, log_sigma = params
    sigma = np.exp(log_sigma)
    mu = expit(intercept + slope * covariate)
    alpha = mu / sigma
    beta = (1 - mu) / sigma
    d_alpha, d_beta = log_likelihood_gradient(hits, at_bats, alpha, beta)
    d_eta = (d_alpha - d_beta) * mu * (1 - mu) / sigma
    return np.array(
        [
            np.sum(d_eta),
            np.sum(d_eta * covariate),
            np.sum(-d_alpha * alpha - d_beta * beta),
        ]
    )


def fit_beta_regression(hits, at_bats, *, min_at_bats: int = 500) -> RegressionPrior:
    """Maximum-likelihood fit of the AB-dependent beta-binomial prior.

    Starts from the flat Beta fit (slope 0) and optimises on a centred
    covariate; the intercept is shifted back to the raw ``log(AB)`` scale
    before the standard errors are computed.
    """

    hits, at_bats = validate_counts(hits, at_bats)
    n_players = hits.size
    log_ab = np.log(at_bats)
    centre = float(np.mean(log_ab))
    centred = log_ab - centre

    flat = fit_beta_prior(hits, at_bats, min_at_bats=min_at_bats)
    x0 = np.array([logit(flat.mean), 0.0, -np.log(flat.concentration)])

    def objective(x: np.ndarray) -> float:
        intercept, slope, log_sigma = x
        sigma = np.exp(log_sigma)
        mu = expit(intercept + slope * centred)
        terms = log_likelihood_terms(hits, at_bats, mu / sigma, (1 - mu) / sigma)
        return -float(np.sum(terms)) / n_players

    def gradient(x: np.ndarray) -> np.ndarray:
        return -_total_gradient(hits, at_bats, centred, x) / n_players

    result = minimize(
        objective,
        x0,
        jac=gradient,
        method="BFGS",
        options={"maxiter": 2000, "gtol": 1e-8},
    )
    check_converged(result, label="Beta-binomial regression")

    intercept_c, slope, log_sigma = (float(value) for value in result.x)
    intercept = intercept_c - slope * centre
    params = np.array([intercept, slope, log_sigma])

    hessian = numerical_hessian(lambda x: -_total_gradient(hits, at_bats, log_ab, x), params)
    intercept_se, slope_se, log_sigma_se = standard_errors(hessian)
    sigma = float(np.exp(log_sigma))

    prior = RegressionPrior(
        mu_intercept=intercept,
        mu_log_ab=slope,
        sigma=sigma,
        mu_intercept_se=float(intercept_se),
        mu_log_ab_se=float(slope_se),
        # delta method from log(sigma)
        sigma_se=float(sigma * log_sigma_se),
        n_players=n_players,
        log_likelihood=-float(result.fun) * n_players,
        iterations=int(result.nit),
    )
    logger.info(
        "Fitted beta-binomial regression mu=expit(%.4f + %.4f*log(AB)) sigma=%.5f on %s players",
        prior.mu_intercept,
        prior.mu_log_ab,
        prior.sigma,
        n_players,
    )
    return prior
