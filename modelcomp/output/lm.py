"""Manuscript-ready summary of a single fitted OLS model.

:func:`apa_lm` turns one fitted statsmodels OLS result into report strings:
one estimate/statistic pair per coefficient, strings for the overall model fit
(R² with its confidence interval, adjusted R², the omnibus F test, AIC, BIC)
and a coefficient table of display strings.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import pandas as pd

from modelcomp.core.base import (
    DEFAULT_COEF_CI_LEVEL,
    FitStatistics,
    InvalidInput,
    coefficient_frame,
    fit_statistics,
)
from modelcomp.core.inference import r2_confint
from modelcomp.utils.formatting import (
    add_equals,
    in_paren as _in_paren,
    print_confint,
    print_df,
    printnum,
    printp,
)
from modelcomp.utils.helpers import format_level, pretty_term
from modelcomp.utils.validation import validate_ci, validate_flag

__all__ = ["LMSummary", "apa_lm", "r2_level_for"]


@dataclass(frozen=True)
class LMSummary:
    """Report strings for one OLS model.

    ``r2_value`` / ``r2_ci`` are the display pieces from which both the
    narrative ``modelfit["r2"]`` string and table cells are built.
    """

    estimate: dict[str, str]
    statistic: dict[str, str]
    full_result: dict[str, str]
    modelfit: dict[str, str]
    table: pd.DataFrame
    fit: FitStatistics
    r2_value: str
    r2_ci: str | None = None
    r2_level: float | None = None

    @property
    def r2_cell(self) -> str:
        """R² as a table cell: ``$.60$ [.45, .70]`` (interval omitted when absent)."""
        cell = f"${self.r2_value}$"
        return f"{cell} {self.r2_ci}" if self.r2_ci else cell


def r2_level_for(coef_level: float) -> float:
    """Confidence level of the R² interval reported next to ``coef_level`` coefficients.

    R² can only grow, so its interval is read as one-sided: a two-sided interval
    at ``1 - 2 * (1 - coef_level)`` has the same upper-tail error as the
    coefficient intervals.
    """
    return 1.0 - 2.0 * (1.0 - float(coef_level))


def apa_lm(
    model: Any,
    *,
    ci: float = DEFAULT_COEF_CI_LEVEL,
    observed_predictors: bool = True,
    r2_ci: bool = True,
    in_paren: bool = False,
    label: str = "model",
) -> LMSummary:
    """Format a fitted OLS model for reporting.

    Parameters
    ----------
    model : statsmodels RegressionResults
        Fitted OLS model.
    ci : float
        Confidence level of the coefficient intervals. The R² interval uses
        :func:`r2_level_for` (0.95 -> 0.90).
    observed_predictors : bool
        Whether predictor values were observed (random) rather than fixed; picks
        the sampling model of the R² interval.
    r2_ci : bool
        Compute the R² interval at all.
    in_paren : bool
        Prepare statistic strings for use inside parentheses.
    label : str
        Name used in error messages.

    Returns
    -------
    LMSummary

    """
    level = validate_ci(ci)
    if level is None:
        level = DEFAULT_COEF_CI_LEVEL
    validate_flag(observed_predictors, name="observed_predictors")
    validate_flag(r2_ci, name="r2_ci")
    validate_flag(in_paren, name="in_paren")
    if r2_ci and level <= 0.5:
        msg = f"ci must exceed 0.5 when an R² interval is requested; got {level:g}."
        raise InvalidInput(msg)

    fit = fit_statistics(model, label=label)
    coefs = coefficient_frame(model, level=level, label=label)
    pct = format_level(level)
    df_res = print_df(fit.df_res)

    estimate: dict[str, str] = {}
    statistic: dict[str, str] = {}
    rows = []
    for raw_name, row in coefs.iterrows():
        name = pretty_term(raw_name)
        b = printnum(row["estimate"])
        conf = print_confint((row["lower"], row["upper"]))
        t = printnum(row["statistic"])
        p = printp(row["p_value"])
        estimate[name] = f"$b = {b}$, {pct}\\% CI {conf}"
        stat = f"$t({df_res}) = {t}$, $p {add_equals(p)}$"
        statistic[name] = _in_paren(stat) if in_paren else stat
        rows.append({"predictor": name, "estimate": b, "conf_int": conf, "statistic": t, "p_value": p})
    full_result = {k: f"{estimate[k]}, {statistic[k]}" for k in estimate}

    r2_value = printnum(fit.r2, gt1=False, zero=False)
    r2_interval: str | None = None
    r2_lvl: float | None = None
    r2_text = f"$R^2 = {r2_value}$"
    if r2_ci:
        r2_lvl = r2_level_for(level)
        bounds = r2_confint(
            fit.r2,
            fit.n_obs,
            int(round(fit.df)),
            ci=r2_lvl,
            observed_predictors=observed_predictors,
        )
        r2_interval = print_confint(bounds, gt1=False, zero=False)
        r2_text += f", {format_level(r2_lvl)}\\% CI {r2_interval}"

    f_test = (
        f"$F({print_df(fit.df)}, {df_res}) = {printnum(fit.statistic)}$, "
        f"$p {add_equals(printp(fit.p_value))}$"
    )
    modelfit = {
        "r2": r2_text,
        "r2_adj": f"$R^2_{{adj}} = {printnum(fit.r2_adj, gt1=abs(fit.r2_adj) > 1, zero=False)}$",
        "statistic": _in_paren(f_test) if in_paren else f_test,
        "aic": f"$\\mathrm{{AIC}} = {printnum(fit.aic)}$",
        "bic": f"$\\mathrm{{BIC}} = {printnum(fit.bic)}$",
    }

    table = pd.DataFrame(rows, columns=["predictor", "estimate", "conf_int", "statistic", "p_value"])
    return LMSummary(
        estimate=estimate,
        statistic=statistic,
        full_result=full_result,
        modelfit=modelfit,
        table=table,
        fit=fit,
        r2_value=r2_value,
        r2_ci=r2_interval,
        r2_level=r2_lvl,
    )
