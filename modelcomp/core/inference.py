"""Confidence intervals for the population R² of an OLS model.

Two sampling models are supported:

- fixed predictors: the F statistic of the model follows a noncentral F
  distribution; the interval for the noncentrality parameter is obtained by
  inverting its CDF and mapped to R² via ``lambda / (lambda + n)``.
- observed (random, multivariate normal) predictors: the sample R² follows
  Fisher's distribution, a negative-binomial mixture of beta distributions;
  the interval is obtained by inverting that CDF in ``rho²`` directly.

Both inversions are equal-tailed and truncate at zero.
"""

from __future__ import annotations

from collections.abc import Callable

import numpy as np
from scipy import optimize, stats

__all__ = ["r2_cdf_fixed", "r2_cdf_random", "r2_confint"]

# Tail mass ignored when truncating the negative-binomial mixture.
_MIXTURE_TAIL: float = 1e-12
_MAX_BRACKET_STEPS: int = 60
# Largest rho² at which the mixture is evaluated; its size grows like 1 / (1 - rho²).
_RHO2_MAX: float = 0.9999


def _validate(r2: float, n_obs: int, n_predictors: int) -> tuple[float, int, int]:
    r2 = float(r2)
    n_obs = int(n_obs)
    n_predictors = int(n_predictors)
    if not (0.0 <= r2 <= 1.0):
        raise ValueError(f"r2 must lie in [0, 1]; got {r2:g}.")
    if n_predictors < 0:
        raise ValueError("n_predictors must be non-negative.")
    if n_obs - n_predictors - 1 <= 0:
        msg = (
            f"Need n_obs > n_predictors + 1 for an R² interval; got n_obs={n_obs}, "
            f"n_predictors={n_predictors}."
        )
        raise ValueError(msg)
    return r2, n_obs, n_predictors


def r2_cdf_fixed(r2: float, lam: float, n_obs: int, n_predictors: int) -> float:
    """P(R² <= r2) under fixed predictors with noncentrality ``lam``."""
    df1 = float(n_predictors)
    df2 = float(n_obs - n_predictors - 1)
    if r2 >= 1.0:
        return 1.0
    f_obs = (r2 / df1) / ((1.0 - r2) / df2)
    if lam <= 0.0:
        return float(stats.f.cdf(f_obs, df1, df2))
    return float(stats.ncf.cdf(f_obs, df1, df2, lam))


def r2_cdf_random(r2: float, rho2: float, n_obs: int, n_predictors: int) -> float:
    """P(R² <= r2) under multivariate-normal predictors with population ``rho2``."""
    a = n_predictors / 2.0
    b = (n_obs - n_predictors - 1) / 2.0
    if rho2 <= 0.0:
        return float(stats.beta.cdf(r2, a, b))
    size = (n_obs - 1) / 2.0
    mix = stats.nbinom(size, 1.0 - rho2)
    kmax = int(mix.ppf(1.0 - _MIXTURE_TAIL)) + 1
    j = np.arange(kmax + 1, dtype=np.float64)
    w = mix.pmf(j)
    return float(np.sum(w * stats.beta.cdf(r2, a + j, b)))


def _invert(
    cdf: Callable[[float], float],
    target: float,
    *,
    start: float,
    grow: Callable[[float], float],
    upper_limit: float | None = None,
) -> float:
    """Find ``theta >= 0`` with ``cdf(theta) == target`` for decreasing ``cdf``."""
    if cdf(0.0) <= target:
        return 0.0
    hi = start
    for _ in range(_MAX_BRACKET_STEPS):
        if cdf(hi) < target:
            break
        nxt = grow(hi)
        if upper_limit is not None and nxt >= upper_limit:
            return hi
        hi = nxt
    else:
        return hi
    return float(optimize.brentq(lambda t: cdf(t) - target, 0.0, hi, xtol=1e-10))


def r2_confint(
    r2: float,
    n_obs: int,
    n_predictors: int,
    *,
    ci: float = 0.90,
    observed_predictors: bool = True,
) -> tuple[float, float]:
    """Equal-tailed confidence interval for the population R².

    Parameters
    ----------
    r2 : float
        Sample coefficient of determination.
    n_obs : int
        Number of observations.
    n_predictors : int
        Number of predictors, excluding the intercept.
    ci : float
        Confidence level in (0, 1).
    observed_predictors : bool
        True when predictor values were observed (random) rather than fixed by
        design.

    Returns
    -------
    tuple of float
        ``(lower, upper)`` in [0, 1].

    """
    r2, n_obs, k = _validate(r2, n_obs, n_predictors)
    if not (0.0 < float(ci) < 1.0):
        raise ValueError(f"ci must lie in (0, 1); got {ci!r}.")
    if k == 0:
        return (0.0, 0.0)
    if r2 >= 1.0:
        return (1.0, 1.0)
    alpha = 1.0 - float(ci)
    lower_target = 1.0 - alpha / 2.0
    upper_target = alpha / 2.0

    if observed_predictors:
        def cdf(rho2: float) -> float:
            return r2_cdf_random(r2, rho2, n_obs, k)

        start = min(r2 + 0.1, 0.99)

        def grow(x: float) -> float:
            return (x + 1.0) / 2.0

        lo = _invert(cdf, lower_target, start=start, grow=grow, upper_limit=_RHO2_MAX)
        hi = _invert(cdf, upper_target, start=start, grow=grow, upper_limit=_RHO2_MAX)
        return (float(lo), float(hi))

    def cdf_lam(lam: float) -> float:
        return r2_cdf_fixed(r2, lam, n_obs, k)

    f_obs = (r2 / k) / ((1.0 - r2) / (n_obs - k - 1))
    start = max(10.0, 2.0 * f_obs * k)

    def grow_lam(x: float) -> float:
        return 2.0 * x

    lam_lo = _invert(cdf_lam, lower_target, start=start, grow=grow_lam)
    lam_hi = _invert(cdf_lam, upper_target, start=start, grow=grow_lam)
    return (lam_lo / (lam_lo + n_obs), lam_hi / (lam_hi + n_obs))
