"""Utilities: total arithmetic helpers for metric derivation."""

from elasticsearch_agent.utils.math_helpers import first_number, per_second, safe_ratio

__all__ = [
    "first_number",
    "per_second",
    "safe_ratio",
]
