"""
Least-squares fits for FirePM response surfaces.

``linear_fit`` is an ordinary least-squares line with the goodness-of-fit
measures reported in the power-curve artifact; ``power_fit`` applies it to
log-transformed data to fit ``Y = a * X**b``.
"""

from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np

from ..exceptions import InsufficientSamples, NonPositiveDomain

FLOAT_NEAR_ZERO = 1e-15


@dataclass(frozen=True)
class LinearFit:
    """Result of ``y = intercept + slope * x``.

    Attributes:
        intercept: Fitted intercept.
        slope: Fitted slope.
        r_squared: ``SSxy**2 / (SSxx * SSyy)``.
        s_squared: Residual variance ``(SSyy - slope * SSxy) / (n - 2)``;
            ``None`` when ``n <= 2``.
        n_samples: Number of sample pairs.
    """

    intercept: float
    slope: float
    r_squared: float
    s_squared: Optional[float]
    n_samples: int


@dataclass(frozen=True)
class PowerFit:
    """Result of ``Y = a * X**b`` fitted on the log-log scale."""

    a: float
    b: float
    r_squared: float
    s_squared: Optional[float]
    n_samples: int


def linear_fit(x: Sequence[float], y: Sequence[float]) -> LinearFit:
    """Fit a straight line by ordinary least squares.

    Args:
        x: Abscissa samples.
        y: Ordinate samples, same length as *x*.

    Returns:
        A ``LinearFit``. A constant *y* yields ``r_squared == 0``.

    Raises:
        InsufficientSamples: With fewer than two samples, mismatched
            lengths or identical *x* values.
    """
    from scipy.stats import linregress

    x = np.asarray(x, dtype=float)
    y = np.asarray(y, dtype=float)
    n = x.size
    if n != y.size:
        raise InsufficientSamples(f"x and y lengths differ ({n} vs {y.size})")
    if n < 2:
        raise InsufficientSamples(f"At least 2 samples are needed for a fit, got {n}")

    ss_xx = float(np.sum((x - x.mean()) ** 2))
    ss_yy = float(np.sum((y - y.mean()) ** 2))
    ss_xy = float(np.sum((x - x.mean()) * (y - y.mean())))
    if ss_xx < FLOAT_NEAR_ZERO:
        raise InsufficientSamples("All x values are identical; slope is undefined")

    result = linregress(x, y)
    r_squared = float(result.rvalue) ** 2

    s_squared = None
    if n > 2:
        s_squared = max((ss_yy - result.slope * ss_xy) / (n - 2), 0.0)

    return LinearFit(
        intercept=float(result.intercept),
        slope=float(result.slope),
        r_squared=r_squared,
        s_squared=s_squared,
        n_samples=n,
    )


def power_fit(x: Sequence[float], y: Sequence[float]) -> PowerFit:
    """Fit ``Y = a * X**b`` by least squares on ``(log X, log Y)``.

    Raises:
        NonPositiveDomain: If any sample is zero, negative or not finite.
        InsufficientSamples: See ``linear_fit``.
    """
    x = np.asarray(x, dtype=float)
    y = np.asarray(y, dtype=float)
    bad_x = ~np.isfinite(x) | (x <= 0)
    bad_y = ~np.isfinite(y) | (y <= 0)
    if np.any(bad_x) or np.any(bad_y):
        bad = [float(v) for v in np.concatenate([x[bad_x], y[bad_y]])]
        raise NonPositiveDomain(f"Power-law fit needs finite, strictly positive values, got {bad}")

    fit = linear_fit(np.log(x), np.log(y))
    return PowerFit(
        a=float(np.exp(fit.intercept)),
        b=fit.slope,
        r_squared=fit.r_squared,
        s_squared=fit.s_squared,
        n_samples=fit.n_samples,
    )


def evaluate_power(a: float, b: float, x: float) -> float:
    """Evaluate ``a * x**b``."""
    return float(a * np.power(x, b))
