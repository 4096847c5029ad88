"""
Prediction function for a fitted line.
"""


def predict(intercept: float, slope: float, x: float) -> float:
    """
    Evaluate y = slope * x + intercept.

    Pure function: usable with coefficients obtained anywhere, not only
    from a model built by this package.

    Example:
        >>> predict(1.0, 2.0, 3.0)
        7.0
    """
    return slope * x + intercept
