"""Numeric display conventions for manuscript tables.

Every number that ends up in a report goes through one of the helpers below so
that the same quantity is always rendered the same way:

- ``printnum`` rounds to a fixed number of decimals. ``gt1=False`` marks
  quantities bounded by 1 in magnitude (proportions, correlations, R²); their
  leading zero is dropped. ``zero=False`` marks quantities that are never
  exactly zero in practice; values that merely *round* to zero are shown as
  ``< .01`` / ``> -.01`` instead of a misleading ``.00``.
- ``printp`` renders probabilities with three decimals, ``< .001`` and
  ``> .999`` at the boundaries.
- ``print_df`` renders degrees of freedom as integers, or with one decimal when
  a correction made them fractional.

Per-field rules are declared with :class:`FieldFormat` and applied with
:func:`format_field`.
"""

from __future__ import annotations

import math
import numbers
from dataclasses import dataclass
from typing import Any, Literal

import numpy as np

__all__ = [
    "DIFF_FORMATS",
    "FIT_FORMATS",
    "FieldFormat",
    "add_equals",
    "format_field",
    "in_paren",
    "print_confint",
    "print_df",
    "printnum",
    "printp",
]


@dataclass(frozen=True)
class FieldFormat:
    """Display rule for one numeric field.

    Parameters
    ----------
    digits
        Number of decimals.
    gt1
        Whether the magnitude may exceed 1. When False the leading zero is dropped.
    zero
        Whether the value may be exactly zero. When False, non-zero values that
        round to zero are shown with a comparator.
    kind
        ``"number"`` (:func:`printnum`), ``"p"`` (:func:`printp`) or ``"df"``
        (:func:`print_df`).

    """

    digits: int = 2
    gt1: bool = True
    zero: bool = True
    kind: Literal["number", "p", "df"] = "number"


# Overall fit indices of a single model, in table order.
FIT_FORMATS: dict[str, FieldFormat] = {
    "r2": FieldFormat(digits=2, gt1=False, zero=False),
    "statistic": FieldFormat(digits=2),
    "df": FieldFormat(kind="df"),
    "df_res": FieldFormat(kind="df"),
    "p_value": FieldFormat(digits=3, gt1=False, zero=False, kind="p"),
    "aic": FieldFormat(digits=2),
    "bic": FieldFormat(digits=2),
}

# Step-to-step differences of the fit indices.
DIFF_FORMATS: dict[str, FieldFormat] = {
    "r2": FieldFormat(digits=2, gt1=False, zero=False),
    "aic": FieldFormat(digits=2),
    "bic": FieldFormat(digits=2),
}


def _as_float(x: Any, *, name: str = "x") -> float:
    if isinstance(x, bool) or not isinstance(x, (numbers.Real, np.floating, np.integer)):
        msg = f"{name} must be a real number; got {type(x).__name__}."
        raise TypeError(msg)
    return float(x)


def printnum(
    x: Any,
    *,
    digits: int = 2,
    gt1: bool = True,
    zero: bool = True,
    na_string: str = "",
) -> str:
    """Round ``x`` to ``digits`` decimals following the report conventions.

    >>> printnum(0.153, gt1=False)
    '.15'
    >>> printnum(-0.0004, gt1=False, zero=False)
    '> -.01'
    """
    if x is None:
        return na_string
    value = _as_float(x)
    if math.isnan(value):
        return na_string
    if math.isinf(value):
        return "-Inf" if value < 0 else "Inf"
    if not gt1 and abs(value) > 1:
        msg = f"gt1=False but |x| = {abs(value):g} exceeds 1."
        raise ValueError(msg)

    digits = int(digits)
    rounded = round(value, digits)
    if rounded == 0 and value != 0 and not zero:
        bound = f"{10.0 ** -digits:.{digits}f}"
        if not gt1:
            bound = bound.removeprefix("0")
        return f"< {bound}" if value > 0 else f"> -{bound}"

    # rounded == 0 also covers -0.0, which is shown without a sign
    sign = "-" if rounded < 0 else ""
    text = f"{abs(rounded):.{digits}f}"
    if not gt1 and text.startswith("0"):
        text = text[1:]
    return sign + text


def printp(p: Any, *, digits: int = 3, add_equals: bool = False, na_string: str = "") -> str:
    """Format a probability; never prints exactly 0 or 1.

    >>> printp(0.05, add_equals=True)
    '= .050'
    >>> printp(0.0002)
    '< .001'
    """
    if p is None:
        return na_string
    value = _as_float(p, name="p")
    if math.isnan(value):
        return na_string
    if not (0.0 <= value <= 1.0):
        msg = f"p must lie in [0, 1]; got {value:g}."
        raise ValueError(msg)
    threshold = 10.0 ** -int(digits)
    if value < threshold:
        text = "< " + f"{threshold:.{digits}f}".removeprefix("0")
    elif value > 1.0 - threshold:
        text = "> " + f"{1.0 - threshold:.{digits}f}".removeprefix("0")
    else:
        text = printnum(value, digits=digits, gt1=False, zero=False)
    return _add_equals(text) if add_equals else text


def print_df(x: Any, *, na_string: str = "") -> str:
    """Degrees of freedom: integer when whole, otherwise one decimal."""
    if x is None:
        return na_string
    value = _as_float(x, name="df")
    if math.isnan(value):
        return na_string
    if float(value).is_integer():
        return f"{int(value):d}"
    return printnum(value, digits=1)


def print_confint(
    bounds: Any,
    *,
    digits: int = 2,
    gt1: bool = True,
    zero: bool = True,
) -> str:
    """Render an interval as ``[lower, upper]``."""
    arr = np.asarray(bounds, dtype=np.float64).reshape(-1)
    if arr.size != 2:
        msg = f"bounds must contain exactly two values; got {arr.size}."
        raise ValueError(msg)
    lo = printnum(arr[0], digits=digits, gt1=gt1, zero=zero)
    hi = printnum(arr[1], digits=digits, gt1=gt1, zero=zero)
    return f"[{lo}, {hi}]"


def _add_equals(text: str) -> str:
    if text.startswith(("<", ">", "=")):
        return text
    return f"= {text}"


def add_equals(text: str) -> str:
    """Prefix ``= `` unless the string already carries a comparator."""
    return _add_equals(str(text))


def in_paren(text: str) -> str:
    """Prepare a result string for use inside parentheses.

    Inner parentheses become brackets and the whole string is wrapped.
    """
    inner = str(text).replace("(", "[").replace(")", "]")
    return f"({inner})"


def format_field(value: Any, fmt: FieldFormat) -> str:
    """Apply a :class:`FieldFormat` to a single value."""
    if fmt.kind == "p":
        return printp(value, digits=fmt.digits)
    if fmt.kind == "df":
        return print_df(value)
    return printnum(value, digits=fmt.digits, gt1=fmt.gt1, zero=fmt.zero)
