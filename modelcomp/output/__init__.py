# modelcomp/output/__init__.py
"""Report strings and tables for fitted models and model comparisons."""
from .comparison import ResultBundle, compare_models, format_model_comparison
from .lm import LMSummary, apa_lm

__all__ = [
    "LMSummary",
    "ResultBundle",
    "apa_lm",
    "compare_models",
    "format_model_comparison",
]
