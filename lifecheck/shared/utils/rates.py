"""Percentage helpers shared by the statistics components."""


def percentage(part: int, total: int, digits: int = 1) -> float:
    """Share of part in total as a percentage, rounded.

    A zero (or negative) total yields 0.0 so callers never see NaN or
    infinity. The result is bounded to 0-100.

    Example:
        >>> percentage(2, 3)
        66.7
    """
    if total <= 0:
        return 0.0
    value = round(part / total * 100, digits)
    return min(max(value, 0.0), 100.0)
