"""
Mathematical helper functions.

Total arithmetic for metric derivation: every edge case maps to a defined
fallback value instead of raising.
"""

from typing import Any, Optional, Sequence


def per_second(delta: float, elapsed: float) -> float:
    """
    Rate of change per second.

    Args:
        delta: Change in value between two samples
        elapsed: Seconds between the samples

    Returns:
        delta / elapsed, or 0.0 if elapsed <= 0
    """
    if elapsed <= 0:
        return 0.0
    return float(delta) / float(elapsed)


def safe_ratio(part: Optional[float], other: Optional[float]) -> float:
    """
    part / (part + other), e.g. swap used / (used + free).

    Returns:
        Ratio in [0, 1] for non-negative inputs; 0.0 if either operand is
        missing or the denominator is 0
    """
    if part is None or other is None:
        return 0.0
    total = part + other
    if total == 0:
        return 0.0
    return float(part) / float(total)


def first_number(values: Optional[Sequence[Any]]) -> Optional[float]:
    """First element of a sequence if it is a number, else None."""
    if not values:
        return None
    head = values[0]
    if isinstance(head, bool) or not isinstance(head, (int, float)):
        return None
    return head
