"""Reporting of nested OLS model comparisons.

Turns a step table (one F test per pair of adjacent models) and the fitted
models into report strings and one consolidated table:

- ``estimate``: delta-R² per step, optionally with a percentile-bootstrap CI,
- ``statistic``: the step F test,
- ``full_result``: both, joined,
- ``table``: coefficients of every model (staircase layout), their fit
  indices, and the step statistics, one column per model.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

import numpy as np
import pandas as pd

from modelcomp.core import bootstrap as bt
from modelcomp.core.anova import anova_table
from modelcomp.core.base import (
    DEFAULT_BOOTSTRAP_ITERATIONS,
    DEFAULT_CI_LEVEL,
    DEFAULT_COEF_CI_LEVEL,
    BootConfig,
    InvalidInput,
    fit_statistics,
    param_names,
)
from modelcomp.output.lm import LMSummary, apa_lm
from modelcomp.utils.formatting import (
    DIFF_FORMATS,
    FIT_FORMATS,
    add_equals,
    format_field,
    in_paren as _in_paren,
    print_confint,
    print_df,
    printnum,
    printp,
)
from modelcomp.utils.helpers import INTERCEPT, collect_param_index, format_level, pretty_term, sanitize_terms
from modelcomp.utils.validation import (
    validate_boot_samples,
    validate_ci,
    validate_comparison,
    validate_flag,
    validate_labels,
    validate_models,
)

__all__ = [
    "DeltaR2",
    "ResultBundle",
    "compare_models",
    "delta_r2_estimates",
    "fit_statistics_block",
    "format_model_comparison",
    "merge_coefficient_tables",
    "stats_row_labels",
    "step_statistics",
]

LOGGER = logging.getLogger(__name__)

BASELINE_NAME = "Baseline"

# Row labels of the statistics block. Step rows carry a trailing space so that
# they stay distinct from the per-model rows of the same statistic.
FIT_ROW_LABELS: dict[str, str] = {
    "statistic": "$F$",
    "df": "$df_1$",
    "df_res": "$df_2$",
    "p_value": "$p$",
    "aic": "$\\mathrm{AIC}$",
    "bic": "$\\mathrm{BIC}$",
}
STEP_ROW_LABELS: dict[str, str] = {
    "statistic": "$F$ ",
    "df": "$df_1$ ",
    "df_res": "$df_2$ ",
    "p_value": "$p$ ",
}
DIFF_ROW_LABELS: dict[str, str] = {
    "aic": "$\\Delta \\mathrm{AIC}$",
    "bic": "$\\Delta \\mathrm{BIC}$",
}


@dataclass(frozen=True)
class ResultBundle:
    """Finished report for one model comparison.

    The three mappings share the same keys (one per step, in step order).
    ``table`` holds display strings only; empty cells are ``""``.
    """

    statistic: dict[str, str]
    estimate: dict[str, str]
    full_result: dict[str, str]
    table: pd.DataFrame


@dataclass(frozen=True)
class DeltaR2:
    """Display pieces of one step's delta-R²."""

    value: str
    ci: str | None = None
    level: float | None = None

    @property
    def text(self) -> str:
        out = f"$\\Delta R^2 {add_equals(self.value)}$"
        if self.ci is not None and self.level is not None:
            out += f", {format_level(self.level)}\\% CI {self.ci}"
        return out

    @property
    def cell(self) -> str:
        out = f"${self.value}$"
        return f"{out} {self.ci}" if self.ci is not None else out


class _ResultBuilder:
    """Collects the parts of a :class:`ResultBundle`; emits it once complete."""

    def __init__(self, keys: Sequence[str]) -> None:
        self._keys = list(keys)
        self._estimate: list[str] | None = None
        self._statistic: list[str] | None = None
        self._table: pd.DataFrame | None = None

    def _check(self, values: Sequence[str], what: str) -> list[str]:
        out = list(values)
        if len(out) != len(self._keys):
            msg = f"{what}: expected {len(self._keys)} steps, got {len(out)}."
            raise ValueError(msg)
        return out

    def estimate(self, values: Sequence[str]) -> _ResultBuilder:
        self._estimate = self._check(values, "estimate")
        return self

    def statistic(self, values: Sequence[str]) -> _ResultBuilder:
        self._statistic = self._check(values, "statistic")
        return self

    def table(self, table: pd.DataFrame) -> _ResultBuilder:
        self._table = table
        return self

    def build(self) -> ResultBundle:
        if self._estimate is None or self._statistic is None or self._table is None:
            raise ValueError("ResultBundle is incomplete; estimate, statistic and table are required.")
        estimate = dict(zip(self._keys, self._estimate))
        statistic = dict(zip(self._keys, self._statistic))
        full_result = {k: f"{estimate[k]}, {statistic[k]}" for k in self._keys}
        return ResultBundle(
            statistic=statistic,
            estimate=estimate,
            full_result=full_result,
            table=self._table,
        )


# ---------------------------------------------------------------------
# Delta-R²
# ---------------------------------------------------------------------


def delta_r2_estimates(
    comparison: pd.DataFrame,
    models: Sequence[Any],
    *,
    ci: float | None,
    boot_samples: int,
    seed: int | None = None,
) -> list[DeltaR2]:
    """Delta-R² per step, with a bootstrap CI when ``boot_samples > 0`` and ``ci`` is set."""
    r2s = np.array(
        [fit_statistics(m, label=f"models[{i}]").r2 for i, m in enumerate(models)],
        dtype=np.float64,
    )
    deltas = np.diff(r2s)
    values = [format_field(d, DIFF_FORMATS["r2"]) for d in deltas]
    if boot_samples <= 0 or ci is None:
        return [DeltaR2(value=v) for v in values]

    bounds = bt.delta_r2_ci(comparison, models, ci=ci, boot=BootConfig(n_boot=boot_samples, seed=seed))
    return [
        DeltaR2(value=v, ci=print_confint((lo, hi), gt1=False), level=ci)
        for v, (lo, hi) in zip(values, bounds[["lower", "upper"]].to_numpy())
    ]


# ---------------------------------------------------------------------
# Step F tests
# ---------------------------------------------------------------------


def step_statistics(comparison: pd.DataFrame, *, in_paren: bool = False) -> tuple[list[str], pd.DataFrame]:
    """Format the F test of every step.

    Returns the narrative strings (in row order) and a frame of table cells with
    columns ``statistic``, ``df``, ``df_res``, ``p_value``.
    """
    texts: list[str] = []
    cells = []
    for row in comparison.itertuples(index=False):
        f_val = printnum(row.statistic)
        df1 = print_df(row.df)
        df2 = print_df(row.df_res)
        p = printp(row.p_value)
        text = f"$F({df1}, {df2}) = {f_val}$, $p {add_equals(p)}$"
        texts.append(_in_paren(text) if in_paren else text)
        cells.append({"statistic": f_val, "df": df1, "df_res": df2, "p_value": p})
    return texts, pd.DataFrame(cells, columns=list(STEP_ROW_LABELS))


# ---------------------------------------------------------------------
# Coefficient tables
# ---------------------------------------------------------------------


def merge_coefficient_tables(tables: Sequence[pd.DataFrame], names: Sequence[str]) -> pd.DataFrame:
    """Outer-join per-model coefficient tables on predictor name.

    Each input has columns ``predictor``, ``estimate`` and ``conf_int``. Rows
    are ordered by the number of models lacking the predictor (fewest first),
    ties by first appearance; the intercept always comes first. Missing cells
    are ``""``.
    """
    columns: list[dict[str, str]] = []
    for name, tab in zip(names, tables):
        predictors = validate_labels(tab["predictor"].tolist(), name=f"predictors of model '{name}'")
        columns.append(
            {
                p: f"${est}$ {conf}"
                for p, est, conf in zip(predictors, tab["estimate"], tab["conf_int"])
            },
        )
    counts = collect_param_index([list(col) for col in columns])
    first_seen = {p: i for i, p in enumerate(counts)}
    order = sorted(counts, key=lambda p: (len(columns) - counts[p], first_seen[p]))
    if INTERCEPT in order:
        order.remove(INTERCEPT)
        order.insert(0, INTERCEPT)
    data = {name: [col.get(p, "") for p in order] for name, col in zip(names, columns)}
    return pd.DataFrame(data, index=pd.Index(order, name=None), columns=list(names), dtype=object)


# ---------------------------------------------------------------------
# Fit statistics
# ---------------------------------------------------------------------


def _r2_row_labels(ci: float | None, *, bootstrapped: bool) -> tuple[str, str]:
    r2_label = f"$R^2$ [{format_level(ci)}\\% CI]" if ci is not None else "$R^2$"
    dr2_label = (
        f"$\\Delta R^2$ [{format_level(ci)}\\% CI]" if bootstrapped and ci is not None else "$\\Delta R^2$"
    )
    return r2_label, dr2_label


def stats_row_labels(ci: float | None, *, bootstrapped: bool) -> set[str]:
    """Row labels of the statistics block; predictor names must avoid them."""
    return {
        *_r2_row_labels(ci, bootstrapped=bootstrapped),
        *FIT_ROW_LABELS.values(),
        *STEP_ROW_LABELS.values(),
        *DIFF_ROW_LABELS.values(),
    }


def _check_predictors(models: Sequence[Any], names: Sequence[str], reserved: set[str]) -> None:
    """Reject duplicated predictors and predictors named like a statistics row."""
    for name, model in zip(names, models):
        label = f"model '{name}'"
        predictors = validate_labels(
            [pretty_term(p) for p in param_names(model, label=label)],
            name=f"predictors of {label}",
        )
        clash = sorted(set(predictors) & reserved)
        if clash:
            msg = f"predictor name(s) of {label} collide with fit-statistic row labels: {', '.join(clash)}."
            raise InvalidInput(msg)


def fit_statistics_block(
    summaries: Sequence[LMSummary],
    names: Sequence[str],
    *,
    deltas: Sequence[DeltaR2],
    steps: pd.DataFrame,
    ci: float | None,
    bootstrapped: bool,
) -> pd.DataFrame:
    """Fit indices per model followed by the step statistics and differences."""
    r2_label, dr2_label = _r2_row_labels(ci, bootstrapped=bootstrapped)
    fits = [s.fit.as_dict() for s in summaries]

    rows: dict[str, list[str]] = {r2_label: [s.r2_cell for s in summaries]}
    for key, label in FIT_ROW_LABELS.items():
        rows[label] = [format_field(f[key], FIT_FORMATS[key]) for f in fits]

    rows[dr2_label] = ["", *(d.cell for d in deltas)]
    for key, label in STEP_ROW_LABELS.items():
        rows[label] = ["", *steps[key].tolist()]
    for key, label in DIFF_ROW_LABELS.items():
        diffs = np.diff([f[key] for f in fits])
        rows[label] = ["", *(format_field(d, DIFF_FORMATS[key]) for d in diffs)]

    return pd.DataFrame.from_dict(rows, orient="index", columns=list(names), dtype=object)


# ---------------------------------------------------------------------
# Entry points
# ---------------------------------------------------------------------


def format_model_comparison(  # noqa: PLR0913
    comparison: pd.DataFrame,
    models: Sequence[Any] | Mapping[str, Any],
    *,
    model_names: Sequence[str] | None = None,
    ci: float | None = DEFAULT_CI_LEVEL,
    boot_samples: int = DEFAULT_BOOTSTRAP_ITERATIONS,
    in_paren: bool = False,
    observed_predictors: bool = True,
    seed: int | None = None,
) -> ResultBundle:
    """Format a comparison of nested OLS models for reporting.

    Parameters
    ----------
    comparison : DataFrame
        Step table with columns ``term``, ``statistic``, ``df``, ``df_res`` and
        ``p_value``; one row per adjacent pair of models (see
        :func:`modelcomp.core.anova.anova_table`).
    models : sequence or mapping of fitted OLS results
        ``len(comparison) + 1`` nested models. Mapping keys name the models.
    model_names : sequence of str, optional
        Model names (table column headers); override mapping keys. Without
        names, columns are ``"Baseline"`` and the sanitized step terms. The
        report strings are always keyed by the ``term`` column as given.
    ci : float or None
        Confidence level of the delta-R² and R² intervals. Coefficient intervals
        use ``ci + (1 - ci) / 2``. None disables both intervals.
    boot_samples : int
        Bootstrap replications for the delta-R² interval; ``<= 0`` disables it.
    in_paren : bool
        Prepare statistic strings for use inside parentheses.
    observed_predictors : bool
        Whether predictor values were observed rather than fixed by design.
    seed : int, optional
        Seed of the bootstrap generator.

    Returns
    -------
    ResultBundle

    """
    comparison = validate_comparison(comparison)
    in_paren = validate_flag(in_paren, name="in_paren")
    observed_predictors = validate_flag(observed_predictors, name="observed_predictors")
    ci = validate_ci(ci)
    boot_samples = validate_boot_samples(boot_samples)
    if seed is not None and validate_boot_samples(seed, name="seed") < 0:
        raise InvalidInput("seed must be a non-negative integer or None.")
    model_list, names = validate_models(models, n_models=len(comparison) + 1, model_names=model_names)
    keys = validate_labels(comparison["term"], name="comparison terms")
    if names is None:
        columns = validate_labels(sanitize_terms(keys), name="sanitized comparison terms")
        names = validate_labels([BASELINE_NAME, *columns], name="model names")

    bootstrapped = boot_samples > 0 and ci is not None
    _check_predictors(model_list, names, stats_row_labels(ci, bootstrapped=bootstrapped))
    LOGGER.debug(
        "model comparison: %d steps, ci=%s, bootstrap=%s", len(keys), ci, boot_samples if bootstrapped else 0,
    )

    deltas = delta_r2_estimates(comparison, model_list, ci=ci, boot_samples=boot_samples, seed=seed)
    step_texts, step_cells = step_statistics(comparison, in_paren=in_paren)

    coef_level = ci + (1.0 - ci) / 2.0 if ci is not None else DEFAULT_COEF_CI_LEVEL
    summaries = [
        apa_lm(
            m,
            ci=coef_level,
            observed_predictors=observed_predictors,
            r2_ci=ci is not None,
            label=f"model '{name}'",
        )
        for name, m in zip(names, model_list)
    ]
    coef_table = merge_coefficient_tables([s.table for s in summaries], names)
    stats_block = fit_statistics_block(
        summaries, names, deltas=deltas, steps=step_cells, ci=ci, bootstrapped=bootstrapped,
    )
    LOGGER.debug("merged %d predictors across %d models", coef_table.shape[0], len(names))

    table = pd.concat([coef_table, stats_block], axis=0)
    table = table.fillna("").astype(object)

    return (
        _ResultBuilder(keys)
        .estimate([d.text for d in deltas])
        .statistic(step_texts)
        .table(table)
        .build()
    )


def compare_models(
    models: Sequence[Any] | Mapping[str, Any],
    *,
    model_names: Sequence[str] | None = None,
    **kwargs: Any,
) -> ResultBundle:
    """Compare nested OLS models in one call.

    Builds the step table with :func:`~modelcomp.core.anova.anova_table` and
    formats it with :func:`format_model_comparison`; ``kwargs`` are passed on.
    """
    comparison = anova_table(models, model_names=model_names)
    return format_model_comparison(comparison, models, model_names=model_names, **kwargs)
