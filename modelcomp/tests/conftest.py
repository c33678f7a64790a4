from __future__ import annotations

import sys
from pathlib import Path

import numpy as np
import pandas as pd
import pytest


def pytest_configure() -> None:
    """Ensure the repository root is on sys.path.

    Tests live inside the package directory, so pytest may put only
    ``modelcomp/tests`` on ``sys.path``. Importing the top-level package
    ``modelcomp`` from an uninstalled checkout then fails unless the
    repository root is on ``sys.path`` as well.
    """

    repo_root = Path(__file__).resolve().parents[2]
    repo_root_str = str(repo_root)
    if repo_root_str not in sys.path:
        sys.path.insert(0, repo_root_str)


# ---------------------------------------------------------------------
# Data and fitted models
# ---------------------------------------------------------------------

@pytest.fixture
def rng():
    return np.random.default_rng(12345)


@pytest.fixture
def data_nested(rng):
    n = 120
    X = rng.standard_normal((n, 4))
    y = 1.0 + 0.8 * X[:, 0] + 0.5 * X[:, 1] + 0.3 * X[:, 2] + 0.2 * X[:, 3] + rng.standard_normal(n)
    return pd.DataFrame({"y": y, "x1": X[:, 0], "x2": X[:, 1], "x3": X[:, 2], "x4": X[:, 3]})


@pytest.fixture
def nested_models(data_nested):
    import statsmodels.formula.api as smf

    formulas = ["y ~ x1", "y ~ x1 + x2", "y ~ x1 + x2 + x3"]
    return [smf.ols(f, data=data_nested).fit() for f in formulas]


@pytest.fixture
def nested_models_4(data_nested):
    import statsmodels.formula.api as smf

    formulas = ["y ~ x1", "y ~ x1 + x2", "y ~ x1 + x2 + x3", "y ~ x1 + x2 + x3 + x4"]
    return [smf.ols(f, data=data_nested).fit() for f in formulas]


# ---------------------------------------------------------------------
# Deterministic stand-ins for fitted OLS results
# ---------------------------------------------------------------------

class FakeOLS:
    """Exposes the attributes of a statsmodels OLS result with fixed values."""

    def __init__(self, params, *, rsquared, fvalue, f_pvalue, aic, bic, nobs=100):
        self.params = pd.Series(params, dtype=float)
        self.rsquared = rsquared
        self.rsquared_adj = rsquared - 0.01
        self.fvalue = fvalue
        self.f_pvalue = f_pvalue
        self.df_model = float(len(self.params) - 1)
        self.df_resid = float(nobs - len(self.params))
        self.aic = aic
        self.bic = bic
        self.nobs = float(nobs)
        self.tvalues = self.params / 0.05
        self.pvalues = pd.Series(0.01, index=self.params.index)

    def conf_int(self, alpha=0.05):
        return pd.DataFrame({0: self.params - 0.1, 1: self.params + 0.1})


@pytest.fixture
def fake_models():
    """Three nested models with R² = .60, .75, .80."""
    return [
        FakeOLS({"Intercept": 1.0, "x1": 0.5}, rsquared=0.60, fvalue=147.0, f_pvalue=1e-20, aic=300.0, bic=305.2),
        FakeOLS(
            {"Intercept": 1.0, "x1": 0.5, "x2": 0.3},
            rsquared=0.75, fvalue=145.5, f_pvalue=1e-25, aic=280.0, bic=287.8,
        ),
        FakeOLS(
            {"Intercept": 1.0, "x1": 0.5, "x2": 0.3, "x3": -0.2},
            rsquared=0.80, fvalue=128.0, f_pvalue=1e-30, aic=276.5, bic=286.9,
        ),
    ]


@pytest.fixture
def fake_comparison():
    return pd.DataFrame(
        {
            "term": ["x2", "x3"],
            "statistic": [20.5, 4.0],
            "df": [1.0, 1.0],
            "df_res": [97.0, 96.0],
            "p_value": [0.00001, 0.048],
        },
    )
