"""Base configuration, errors and fitted-model accessors.

This module defines the package exceptions, the bootstrap configuration data
structure and the thin accessors that read fit statistics, coefficients and
design matrices off fitted statsmodels OLS results.
"""

# modelcomp/core/base.py
from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import numpy as np
import pandas as pd

if TYPE_CHECKING:
    from numpy.typing import NDArray

__all__ = [
    "DEFAULT_BOOTSTRAP_ITERATIONS",
    "DEFAULT_CI_LEVEL",
    "DEFAULT_COEF_CI_LEVEL",
    "BootConfig",
    "BootstrapFailure",
    "FitStatistics",
    "InvalidInput",
    "MissingCollaboratorData",
    "ModelComparisonError",
    "coefficient_frame",
    "design_matrices",
    "fit_statistics",
    "model_attr",
    "param_names",
]

# Confidence level of delta-R² and R² intervals in model comparisons.
DEFAULT_CI_LEVEL: float = 0.90
# Confidence level of coefficient intervals of a single model.
DEFAULT_COEF_CI_LEVEL: float = 0.95
DEFAULT_BOOTSTRAP_ITERATIONS: int = 1000


# ---------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------


class ModelComparisonError(Exception):
    """Base class of all errors raised by modelcomp."""


class InvalidInput(ModelComparisonError, ValueError):
    """An argument violates a shape, type or range constraint."""


class MissingCollaboratorData(ModelComparisonError, AttributeError):
    """A fitted model does not expose a required summary field."""


class BootstrapFailure(ModelComparisonError, RuntimeError):
    """Resampling could not produce a confidence interval."""


# ---------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------


@dataclass(frozen=True)
class BootConfig:
    """Case-resampling bootstrap configuration.

    Notes
    -----
    - Replications: default is 1000 (project-wide).
    - Reproducibility: ``seed`` initialises a ``numpy.random.Generator``.
      ``None`` draws fresh entropy on every call.

    """

    n_boot: int = DEFAULT_BOOTSTRAP_ITERATIONS
    seed: int | None = None

    def rng(self) -> np.random.Generator:
        return np.random.default_rng(self.seed)


# ---------------------------------------------------------------------
# Fitted-model accessors
# ---------------------------------------------------------------------


@dataclass(frozen=True)
class FitStatistics:
    """Overall fit indices of one OLS model."""

    r2: float
    r2_adj: float
    statistic: float
    df: float
    df_res: float
    p_value: float
    aic: float
    bic: float
    n_obs: int

    def as_dict(self) -> dict[str, float]:
        return {
            "r2": self.r2,
            "statistic": self.statistic,
            "df": self.df,
            "df_res": self.df_res,
            "p_value": self.p_value,
            "aic": self.aic,
            "bic": self.bic,
        }


def model_attr(model: Any, attr: str, *, label: str = "model") -> Any:
    """Read ``attr`` from a fitted model or raise :class:`MissingCollaboratorData`."""
    obj = model
    for part in attr.split("."):
        try:
            obj = getattr(obj, part)
        except AttributeError as e:
            msg = f"{label} does not expose '{attr}' (a fitted OLS result is required)."
            raise MissingCollaboratorData(msg) from e
        if obj is None:
            msg = f"{label} has no value for '{attr}'."
            raise MissingCollaboratorData(msg)
    return obj


def fit_statistics(model: Any, *, label: str = "model") -> FitStatistics:
    """Collect R², the omnibus F test and information criteria of ``model``.

    A model without predictors has R² = 0 exactly; the rounding noise in the
    fitted result's value is discarded.
    """
    df = float(model_attr(model, "df_model", label=label))
    r2 = float(model_attr(model, "rsquared", label=label))
    r2_adj = float(model_attr(model, "rsquared_adj", label=label))
    if df == 0:
        r2 = r2_adj = 0.0
    return FitStatistics(
        r2=r2,
        r2_adj=r2_adj,
        statistic=float(model_attr(model, "fvalue", label=label)),
        df=df,
        df_res=float(model_attr(model, "df_resid", label=label)),
        p_value=float(model_attr(model, "f_pvalue", label=label)),
        aic=float(model_attr(model, "aic", label=label)),
        bic=float(model_attr(model, "bic", label=label)),
        n_obs=int(model_attr(model, "nobs", label=label)),
    )


def param_names(model: Any, *, label: str = "model") -> list[str]:
    """Raw parameter labels of ``model`` (``params`` index, else ``exog_names``)."""
    params = model_attr(model, "params", label=label)
    names = list(getattr(params, "index", [])) or list(
        getattr(getattr(model, "model", None), "exog_names", None)
        or [f"x{i}" for i in range(len(params))]
    )
    return [str(n) for n in names]


def coefficient_frame(model: Any, *, level: float, label: str = "model") -> pd.DataFrame:
    """Coefficients with confidence bounds, t statistics and p values.

    Returns a frame indexed by the model's parameter names with columns
    ``estimate``, ``lower``, ``upper``, ``statistic``, ``p_value``.
    """
    params = model_attr(model, "params", label=label)
    conf_int = model_attr(model, "conf_int", label=label)
    bounds = conf_int(alpha=1.0 - float(level))
    names = param_names(model, label=label)
    bounds_arr = np.asarray(bounds, dtype=np.float64).reshape(len(names), 2)
    return pd.DataFrame(
        {
            "estimate": np.asarray(params, dtype=np.float64),
            "lower": bounds_arr[:, 0],
            "upper": bounds_arr[:, 1],
            "statistic": np.asarray(model_attr(model, "tvalues", label=label), dtype=np.float64),
            "p_value": np.asarray(model_attr(model, "pvalues", label=label), dtype=np.float64),
        },
        index=pd.Index(names, name="predictor"),
    )


def design_matrices(
    model: Any, *, label: str = "model",
) -> tuple[NDArray[np.float64], NDArray[np.float64], bool]:
    """Return ``(y, X, has_constant)`` used to fit ``model``."""
    y = np.asarray(model_attr(model, "model.endog", label=label), dtype=np.float64).reshape(-1)
    X = np.asarray(model_attr(model, "model.exog", label=label), dtype=np.float64)
    if X.ndim == 1:
        X = X.reshape(-1, 1)
    k_constant = getattr(model.model, "k_constant", None)
    if k_constant is None:
        has_constant = bool(np.any(np.all(X == X[:1, :], axis=0) & (X[0, :] != 0)))
    else:
        has_constant = int(k_constant) > 0
    return y, X, has_constant
