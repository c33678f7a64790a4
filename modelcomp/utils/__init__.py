# modelcomp/utils/__init__.py
"""Utility functions module."""
from .formatting import (
    FieldFormat,
    add_equals,
    format_field,
    in_paren,
    print_confint,
    print_df,
    printnum,
    printp,
)
from .helpers import pretty_term, sanitize_terms

__all__ = [
    "FieldFormat",
    "add_equals",
    "format_field",
    "in_paren",
    "pretty_term",
    "print_confint",
    "print_df",
    "printnum",
    "printp",
    "sanitize_terms",
]
