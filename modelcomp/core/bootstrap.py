"""Case-resampling bootstrap for delta-R² of nested OLS models.

Rows are resampled jointly for every model in the sequence, each model is
refit on the resample and the successive R² differences are recorded. The
interval per step is the percentile interval of those draws.
"""

from __future__ import annotations

import logging
import warnings
from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, Any

import numpy as np
import pandas as pd

from . import linalg as la
from .base import BootConfig, BootstrapFailure, design_matrices

if TYPE_CHECKING:
    from numpy.typing import NDArray

__all__ = ["MIN_RECOMMENDED_ITERATIONS", "bootstrap_delta_r2", "delta_r2_ci", "percentile_interval"]

LOGGER = logging.getLogger(__name__)

# Percentile intervals below this many draws are unstable in the tails.
MIN_RECOMMENDED_ITERATIONS: int = 100


def percentile_interval(draws: NDArray[np.float64], *, ci: float) -> NDArray[np.float64]:
    """Equal-tailed percentile interval per row of ``draws``.

    This function is intentionally strict:

    - Requires at least 2 bootstrap draws.
    - Rejects any non-finite (NaN/Inf) values.

    Parameters
    ----------
    draws : (K, B) array
        Bootstrap draws of K statistics.
    ci : float
        Confidence level in (0, 1).

    Returns
    -------
    (K, 2) array
        Lower and upper bounds.

    """
    arr = np.asarray(draws, dtype=np.float64)
    if arr.ndim == 1:
        arr = arr.reshape(1, -1)
    if arr.ndim != 2:
        raise BootstrapFailure("draws must be a 2-D array of shape (K, B).")
    _K, B = arr.shape
    if B < 2:
        raise BootstrapFailure(f"percentile interval requires at least 2 draws; got B={B}.")
    if not np.isfinite(arr).all():
        bad = np.argwhere(~np.isfinite(arr))
        head = bad[:10].tolist()
        msg = (
            "Non-finite bootstrap draws detected (showing up to 10 [k,b] indices): "
            f"{head}. A resample left a model without outcome variation."
        )
        raise BootstrapFailure(msg)
    alpha = 1.0 - float(ci)
    q = np.quantile(arr, [alpha / 2.0, 1.0 - alpha / 2.0], axis=1)
    return q.T.astype(np.float64)


def _model_designs(models: Sequence[Any]) -> tuple[NDArray[np.float64], list[tuple[NDArray[np.float64], bool]]]:
    """Shared outcome and per-model design matrices; all models must use the same rows."""
    y_ref: NDArray[np.float64] | None = None
    designs: list[tuple[NDArray[np.float64], bool]] = []
    for i, model in enumerate(models):
        y, X, has_const = design_matrices(model, label=f"models[{i}]")
        if y_ref is None:
            y_ref = y
        elif y.shape != y_ref.shape or not np.array_equal(y, y_ref):
            msg = (
                f"models[{i}] was fit on a different outcome or sample than models[0]; "
                "nested models must share the same observations to be resampled jointly."
            )
            raise BootstrapFailure(msg)
        if X.shape[0] != y.shape[0]:
            raise BootstrapFailure(f"models[{i}] has mismatched design and outcome lengths.")
        designs.append((X, has_const))
    if y_ref is None:
        raise BootstrapFailure("no models supplied.")
    return y_ref, designs


def bootstrap_delta_r2(
    models: Sequence[Any],
    *,
    boot: BootConfig | None = None,
) -> NDArray[np.float64]:
    """Draw bootstrap replicates of the successive R² differences.

    Returns
    -------
    (n_models - 1, B) array

    """
    boot = boot if boot is not None else BootConfig()
    n_boot = int(boot.n_boot)
    if n_boot < 2:
        raise BootstrapFailure(f"n_boot must be at least 2; got {n_boot}.")
    if len(models) < 2:
        raise BootstrapFailure("at least two models are needed for delta-R².")
    y, designs = _model_designs(models)
    n = y.shape[0]
    rng = boot.rng()
    LOGGER.debug("delta-R² bootstrap: n=%d, models=%d, B=%d, seed=%s", n, len(designs), n_boot, boot.seed)

    r2_star = np.empty((len(designs), n_boot), dtype=np.float64)
    for b in range(n_boot):
        idx = rng.integers(0, n, size=n)
        y_b = y[idx]
        for m, (X, has_const) in enumerate(designs):
            r2_star[m, b] = la.r_squared(X[idx], y_b, has_constant=has_const)
    return np.diff(r2_star, axis=0)


def delta_r2_ci(
    comparison: pd.DataFrame,
    models: Sequence[Any] | Mapping[str, Any],
    *,
    ci: float,
    boot: BootConfig | None = None,
) -> pd.DataFrame:
    """Percentile bootstrap interval for each step's delta-R².

    Parameters
    ----------
    comparison : DataFrame
        Step table; one row per adjacent pair of models.
    models : sequence or mapping of fitted OLS results
        ``len(comparison) + 1`` nested models, all fit on the same rows.
    ci : float
        Confidence level in (0, 1).
    boot : BootConfig
        Replications and seed.

    Returns
    -------
    DataFrame
        Columns ``lower`` and ``upper``, one row per step in step order,
        indexed like ``comparison``.

    """
    model_list = list(models.values()) if isinstance(models, Mapping) else list(models)
    if len(model_list) != len(comparison) + 1:
        msg = (
            f"expected {len(comparison) + 1} models for {len(comparison)} comparison "
            f"steps; got {len(model_list)}."
        )
        raise BootstrapFailure(msg)
    boot = boot if boot is not None else BootConfig()
    if boot.n_boot < MIN_RECOMMENDED_ITERATIONS:
        warnings.warn(
            f"Only {boot.n_boot} bootstrap replications; percentile intervals "
            f"need at least {MIN_RECOMMENDED_ITERATIONS} to be stable.",
            RuntimeWarning,
            stacklevel=2,
        )
    draws = bootstrap_delta_r2(model_list, boot=boot)
    bounds = percentile_interval(draws, ci=ci)
    return pd.DataFrame(bounds, columns=["lower", "upper"], index=comparison.index)
