"""Argument validation for the model-comparison entry points.

Every check raises :class:`~modelcomp.core.base.InvalidInput` with a message
that names the offending argument and the violated constraint. All checks run
before any numeric work.
"""
from __future__ import annotations

import numbers
from collections.abc import Mapping, Sequence
from typing import Any

import numpy as np
import pandas as pd

from modelcomp.core.base import InvalidInput

__all__ = [
    "COMPARISON_COLUMNS",
    "validate_boot_samples",
    "validate_ci",
    "validate_comparison",
    "validate_flag",
    "validate_labels",
    "validate_models",
]

COMPARISON_COLUMNS: tuple[str, ...] = ("term", "statistic", "df", "df_res", "p_value")


def validate_comparison(x: Any, *, name: str = "comparison") -> pd.DataFrame:
    """Check that ``x`` is a non-empty step table with the required columns."""
    if not isinstance(x, pd.DataFrame):
        msg = f"{name} must be a pandas DataFrame; got {type(x).__name__}."
        raise InvalidInput(msg)
    missing = [c for c in COMPARISON_COLUMNS if c not in x.columns]
    if missing:
        msg = f"{name} is missing required column(s): {', '.join(missing)}."
        raise InvalidInput(msg)
    if x.shape[0] < 1:
        raise InvalidInput(f"{name} must contain at least one comparison row.")
    for col in COMPARISON_COLUMNS[1:]:
        values = x[col]
        if not pd.api.types.is_numeric_dtype(values) or pd.api.types.is_bool_dtype(values):
            msg = f"{name}['{col}'] must be numeric; got dtype {values.dtype}."
            raise InvalidInput(msg)
        _reject_rows(x, values.isna(), f"{name}['{col}'] has missing values")

    _reject_rows(x, x["statistic"] < 0, f"{name}['statistic'] must be non-negative")
    _reject_rows(x, x["df"] <= 0, f"{name}['df'] must be positive")
    _reject_rows(x, x["df_res"] <= 0, f"{name}['df_res'] must be positive")
    p = x["p_value"]
    _reject_rows(x, (p < 0) | (p > 1), f"{name}['p_value'] must lie in [0, 1]")
    return x


def _reject_rows(x: pd.DataFrame, mask: pd.Series, what: str) -> None:
    if mask.any():
        rows = [str(i) for i in x.index[mask.to_numpy()]]
        raise InvalidInput(f"{what}; offending row(s): {', '.join(rows)}.")


def validate_flag(value: Any, *, name: str) -> bool:
    """Check for a single boolean."""
    if not isinstance(value, (bool, np.bool_)):
        msg = f"{name} must be a single logical value (True/False); got {value!r}."
        raise InvalidInput(msg)
    return bool(value)


def validate_ci(ci: Any, *, name: str = "ci") -> float | None:
    """Check an optional confidence level: one real number strictly inside (0, 1)."""
    if ci is None:
        return None
    if isinstance(ci, (bool, np.bool_)) or not isinstance(ci, numbers.Real):
        msg = f"{name} must be a single number in (0, 1) or None; got {ci!r}."
        raise InvalidInput(msg)
    level = float(ci)
    if not (0.0 < level < 1.0):
        msg = f"{name} must lie strictly between 0 and 1; got {level:g}."
        raise InvalidInput(msg)
    return level


def validate_boot_samples(value: Any, *, name: str = "boot_samples") -> int:
    """Check the number of bootstrap replications (any integer; <= 0 disables)."""
    if isinstance(value, (bool, np.bool_)) or not isinstance(value, numbers.Integral):
        msg = f"{name} must be a single integer; got {value!r}."
        raise InvalidInput(msg)
    return int(value)


def validate_labels(labels: Sequence[Any], *, name: str) -> list[str]:
    """Check that labels are non-empty and unique."""
    out = [str(lab) for lab in labels]
    empty = [i for i, lab in enumerate(out) if not lab.strip()]
    if empty:
        msg = f"{name} contains empty label(s) at position(s) {empty}."
        raise InvalidInput(msg)
    seen: set[str] = set()
    dupes = []
    for lab in out:
        if lab in seen and lab not in dupes:
            dupes.append(lab)
        seen.add(lab)
    if dupes:
        msg = f"{name} must be unique; duplicated: {', '.join(dupes)}."
        raise InvalidInput(msg)
    return out


def validate_models(
    models: Any,
    *,
    n_models: int | None = None,
    model_names: Sequence[Any] | None = None,
    name: str = "models",
) -> tuple[list[Any], list[str] | None]:
    """Split ``models`` into a list and optional names, checking the length.

    ``models`` may be a sequence of fitted results or a mapping from model name
    to fitted result. Explicit ``model_names`` take precedence over mapping keys.
    """
    if isinstance(models, Mapping):
        model_list = list(models.values())
        names: list[Any] | None = list(models.keys())
    elif isinstance(models, Sequence) and not isinstance(models, (str, bytes)):
        model_list = list(models)
        names = None
    else:
        msg = f"{name} must be a list or dict of fitted models; got {type(models).__name__}."
        raise InvalidInput(msg)
    if n_models is not None and len(model_list) != n_models:
        msg = (
            f"{name} must contain exactly {n_models} models (one more than the number of "
            f"comparison rows); got {len(model_list)}."
        )
        raise InvalidInput(msg)
    if n_models is None and len(model_list) < 2:
        raise InvalidInput(f"{name} must contain at least two models.")
    if any(m is None for m in model_list):
        pos = [i for i, m in enumerate(model_list) if m is None]
        raise InvalidInput(f"{name} contains None at position(s) {pos}.")
    if model_names is not None:
        if isinstance(model_names, (str, bytes)) or len(model_names) != len(model_list):
            msg = f"model_names must have one entry per model ({len(model_list)})."
            raise InvalidInput(msg)
        names = list(model_names)
    if names is not None:
        names = validate_labels(names, name="model names")
    return model_list, names
