"""Shared helper utilities.

Label cleanup and predictor bookkeeping for the output modules.
"""
from __future__ import annotations

import re
from collections.abc import Iterable, Sequence
from typing import Any

__all__ = [
    "INTERCEPT",
    "collect_param_index",
    "format_level",
    "pretty_term",
    "sanitize_terms",
]

INTERCEPT = "Intercept"

# Spellings of the constant used by statsmodels (formula and array API) and R.
_INTERCEPT_ALIASES = {"intercept", "(intercept)", "const", "_cons"}


def pretty_term(name: Any) -> str:
    """Normalise a coefficient label for display.

    All spellings of the constant collapse to ``"Intercept"``; other labels are
    returned unchanged.
    """
    text = str(name).strip()
    if text.lower() in _INTERCEPT_ALIASES:
        return INTERCEPT
    return text


def sanitize_terms(terms: Iterable[Any]) -> list[str]:
    """Turn free-form term labels into identifier-like keys.

    Parentheses are removed and every run of characters other than letters,
    digits and underscores becomes a single underscore::

        >>> sanitize_terms(["(Intercept)", "x2 + x3", "log(income)"])
        ['Intercept', 'x2_x3', 'logincome']
    """
    out: list[str] = []
    for term in terms:
        text = str(term).strip()
        text = re.sub(r"[()]", "", text)
        text = re.sub(r"\W+", "_", text)
        out.append(text.strip("_"))
    return out


def collect_param_index(tables: Sequence[Sequence[Any]]) -> dict[Any, int]:
    """Map each predictor to the number of tables that contain it.

    Keys are ordered by first appearance across ``tables`` (table order, then
    order within a table).
    """
    counts: dict[Any, int] = {}
    for names in tables:
        for name in dict.fromkeys(names):
            counts[name] = counts.get(name, 0) + 1
    return counts


def format_level(level: float) -> str:
    """Render a confidence level as a percentage label (``0.9 -> '90'``)."""
    return f"{float(level) * 100:.6g}"
