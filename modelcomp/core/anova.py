"""Step table for a sequence of nested OLS models.

Wraps :func:`statsmodels.stats.anova.anova_lm` and reshapes its output into
the comparison-table layout consumed by :mod:`modelcomp.output.comparison`.
"""

from __future__ import annotations

import logging
import warnings
from collections.abc import Mapping, Sequence
from typing import Any

import pandas as pd
from statsmodels.stats.anova import anova_lm

from modelcomp.core.base import InvalidInput, model_attr
from modelcomp.utils.helpers import pretty_term
from modelcomp.utils.validation import validate_models

__all__ = ["added_terms", "anova_table"]

LOGGER = logging.getLogger(__name__)


def _exog_names(model: Any, label: str) -> list[str]:
    names = model_attr(model, "model.exog_names", label=label)
    return [pretty_term(n) for n in names]


def added_terms(models: Sequence[Any]) -> list[list[str]]:
    """Predictors entering at each step (one list per adjacent pair of models).

    Warns when a model drops a predictor of its predecessor, i.e. the sequence
    is not nested.
    """
    names = [_exog_names(m, f"models[{i}]") for i, m in enumerate(models)]
    out: list[list[str]] = []
    for i in range(1, len(names)):
        prev, cur = names[i - 1], names[i]
        dropped = [n for n in prev if n not in cur]
        if dropped:
            warnings.warn(
                f"models[{i}] drops {', '.join(dropped)} from models[{i - 1}]; "
                "the models are not nested and the F tests are not interpretable.",
                UserWarning,
                stacklevel=3,
            )
        out.append([n for n in cur if n not in prev])
    return out


def anova_table(
    models: Sequence[Any] | Mapping[str, Any],
    *,
    model_names: Sequence[str] | None = None,
) -> pd.DataFrame:
    """Build the comparison table for adjacent pairs of nested models.

    Parameters
    ----------
    models : sequence or mapping of fitted OLS results
        Models in order of increasing complexity.
    model_names : sequence of str, optional
        Names of the models; overrides mapping keys.

    Returns
    -------
    DataFrame
        One row per step with columns ``term``, ``statistic``, ``df``,
        ``df_res``, ``p_value``. ``term`` is the name of the larger model when
        names are known, otherwise the predictors it adds (``"x2 + x3"``).

    """
    model_list, names = validate_models(models, model_names=model_names)
    for i, m in enumerate(model_list):
        model_attr(m, "ssr", label=f"models[{i}]")
        model_attr(m, "df_resid", label=f"models[{i}]")
    nobs = {int(model_attr(m, "nobs", label=f"models[{i}]")) for i, m in enumerate(model_list)}
    if len(nobs) > 1:
        msg = f"models were fit on different numbers of observations: {sorted(nobs)}."
        raise InvalidInput(msg)

    table = anova_lm(*model_list)
    steps = table.iloc[1:]
    if names is not None:
        terms = names[1:]
    else:
        terms = []
        for i, added in enumerate(added_terms(model_list), start=2):
            terms.append(" + ".join(added) if added else f"model{i}")
    LOGGER.debug("anova_table: %d models, %d steps", len(model_list), len(terms))
    return pd.DataFrame(
        {
            "term": terms,
            "statistic": steps["F"].to_numpy(dtype=float),
            "df": steps["df_diff"].to_numpy(dtype=float),
            "df_res": steps["df_resid"].to_numpy(dtype=float),
            "p_value": steps["Pr(>F)"].to_numpy(dtype=float),
        },
    )
