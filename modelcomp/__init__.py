"""modelcomp: manuscript-ready reports for nested OLS model comparisons.

This package formats a sequence of nested regression models into step F tests,
delta-R² estimates (with optional bootstrap confidence intervals) and one
consolidated coefficient and fit-statistics table.
"""
from __future__ import annotations

from importlib import import_module
from typing import Any

__version__ = "0.1.0"

__all__ = [
    "BootConfig",
    "BootstrapFailure",
    "InvalidInput",
    "LMSummary",
    "MissingCollaboratorData",
    "ModelComparisonError",
    "ResultBundle",
    "anova_table",
    "apa_lm",
    "compare_models",
    "delta_r2_ci",
    "format_model_comparison",
    "r2_confint",
]

_LAZY_IMPORTS: dict[str, tuple[str, str]] = {
    "BootConfig": ("modelcomp.core.base", "BootConfig"),
    "BootstrapFailure": ("modelcomp.core.base", "BootstrapFailure"),
    "InvalidInput": ("modelcomp.core.base", "InvalidInput"),
    "MissingCollaboratorData": ("modelcomp.core.base", "MissingCollaboratorData"),
    "ModelComparisonError": ("modelcomp.core.base", "ModelComparisonError"),
    "anova_table": ("modelcomp.core.anova", "anova_table"),
    "delta_r2_ci": ("modelcomp.core.bootstrap", "delta_r2_ci"),
    "r2_confint": ("modelcomp.core.inference", "r2_confint"),
    "LMSummary": ("modelcomp.output.lm", "LMSummary"),
    "apa_lm": ("modelcomp.output.lm", "apa_lm"),
    "ResultBundle": ("modelcomp.output.comparison", "ResultBundle"),
    "compare_models": ("modelcomp.output.comparison", "compare_models"),
    "format_model_comparison": ("modelcomp.output.comparison", "format_model_comparison"),
}


def __getattr__(name: str) -> Any:
    """Lazily import public functions and classes on first access."""
    if name in _LAZY_IMPORTS:
        module_name, attr_name = _LAZY_IMPORTS[name]
        module = import_module(module_name)
        attr = getattr(module, attr_name)
        globals()[name] = attr
        return attr
    raise AttributeError(f"module 'modelcomp' has no attribute '{name}'")


def __dir__() -> list[str]:
    """Ensure dir() exposes lazily imported names."""
    return sorted(set(globals()) | set(__all__))
