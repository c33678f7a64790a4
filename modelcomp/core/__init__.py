# modelcomp/core/__init__.py
"""Core computational modules for modelcomp."""
from . import anova, base, bootstrap, inference, linalg

__all__ = ["anova", "base", "bootstrap", "inference", "linalg"]
