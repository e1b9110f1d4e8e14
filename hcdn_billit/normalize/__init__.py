"""Normalization of raw HCDN bills into billit records"""

from .bill_normalizer import normalize_bill, to_paperwork, to_directive, escape_title

__all__ = [
    "normalize_bill",
    "to_paperwork",
    "to_directive",
    "escape_title",
]
