"""
Trend line fitting for ``lm``/``smooth`` layers and trend decorations.

Functions
---------
fit_trend_line(x, y, method, dots=200, x_range=None, frac=2/3)
    Fit a linear or smoothed trend and return plotting coordinates.

Notes
-----
The linear fit is ordinary least squares computed with NumPy. The smoothed
fit is LOWESS from statsmodels; its fitted values are interpolated onto an
evenly spaced x-domain so both methods return curves of the same shape.
"""

from numbers import Real

import numpy as np
import pandas as pd
from statsmodels.nonparametric.smoothers_lowess import lowess

from formulaplot._utils import convert_from_alias, read_config, validate_string_flag
from formulaplot.types import NaturalNumber

TREND_KINDS = ("linear", "smoothed")

# minimum number of distinct x values per method
MIN_POINTS = {"linear": 2, "smoothed": 3}

ERR_MSG_UNSUPPORTED_METHOD_F = read_config("messages")["errors"]["unsupported_method_f"]
ERR_MSG_NATURAL_NUMBER_REQUIRED_F = read_config("messages")["errors"][
    "natural_number_required_f"
]
ERR_MSG_FRAC_OUT_OF_RANGE_F = read_config("messages")["errors"]["frac_out_of_range_f"]


def resolve_trend_kind(kind: str) -> str:
    """
    Canonicalise a trend kind (``'lm'`` -> ``'linear'``, ``'loess'`` ->
    ``'smoothed'``).

    Raises
    ------
    ValueError
        If the kind is not supported.
    """
    kind = convert_from_alias(kind, TREND_KINDS, path="trend_kind")
    validate_string_flag(
        kind, TREND_KINDS, ERR_MSG_UNSUPPORTED_METHOD_F.format(kind, TREND_KINDS)
    )
    return kind


def validate_frac(frac) -> None:
    """Raise ValueError unless `frac` is a LOWESS span in (0, 1]."""
    if isinstance(frac, bool) or not isinstance(frac, Real) or not 0 < frac <= 1:
        raise ValueError(ERR_MSG_FRAC_OUT_OF_RANGE_F.format(frac))


def has_enough_points(x: pd.Series, y: pd.Series, method: str) -> bool:
    """True if the complete (x, y) pairs support a fit with `method`."""
    complete = pd.DataFrame({"x": x, "y": y}).dropna()
    return complete["x"].nunique() >= MIN_POINTS[method]


def fit_trend_line(
    x: pd.Series,
    y: pd.Series,
    method: str,
    dots: int = 200,
    x_range: tuple[float, float] = None,
    frac: float = 2 / 3,
) -> tuple[np.ndarray, np.ndarray]:
    """
    Fit a trend of `y` on `x` and return coordinates for plotting.

    Parameters
    ----------
    x : pandas.Series
        Explanatory values. Pairs with a missing value are ignored.
    y : pandas.Series
        Response values.
    method : {'linear', 'smoothed'}
        ``'linear'``: ordinary least squares line.
        ``'smoothed'``: LOWESS curve.
    dots : int, default=200
        Number of points in the returned curve.
    x_range : tuple[float, float], optional
        Domain of the curve; defaults to the range of `x`.
    frac : float, default=2/3
        LOWESS smoothing span (fraction of points used per local fit).

    Returns
    -------
    tuple[numpy.ndarray, numpy.ndarray]
        ``(x_domain, y_predicted)``.

    Raises
    ------
    ValueError
        If `method` is unsupported, `dots` is not a positive integer, `frac`
        is not in (0, 1], or there are too few distinct x values.
    """
    method = resolve_trend_kind(method)
    if not isinstance(dots, NaturalNumber):
        raise ValueError(ERR_MSG_NATURAL_NUMBER_REQUIRED_F.format("dots", dots))
    validate_frac(frac)
    complete = pd.DataFrame(
        {"x": pd.to_numeric(x, errors="coerce"), "y": pd.to_numeric(y, errors="coerce")}
    ).dropna()
    if complete["x"].nunique() < MIN_POINTS[method]:
        raise ValueError(
            f"A {method} trend needs at least {MIN_POINTS[method]} distinct x values, "
            f"got {complete['x'].nunique()}."
        )
    xs = complete["x"].to_numpy(dtype=float)
    ys = complete["y"].to_numpy(dtype=float)
    x_min, x_max = x_range if x_range is not None else (xs.min(), xs.max())
    x_domain = np.linspace(x_min, x_max, int(dots))

    if method == "linear":
        x_with_intercept = np.column_stack([xs, np.ones_like(xs)])
        coefficients = np.linalg.lstsq(x_with_intercept, ys, rcond=None)[0]
        y_pred = x_domain * coefficients[0] + coefficients[1]
    else:
        smoothed = lowess(ys, xs, frac=frac, return_sorted=True)
        # np.interp needs strictly increasing sample points
        fitted = pd.Series(smoothed[:, 1]).groupby(smoothed[:, 0]).mean()
        y_pred = np.interp(x_domain, fitted.index.to_numpy(), fitted.to_numpy())
    return x_domain, y_pred
