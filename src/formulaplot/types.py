"""
Type utilities shared across formulaplot.

Classes
-------
VisualizationResult
    Container returned by ``PlotObject.draw``. Stores the generated figure,
    the panel axes (Matplotlib only), engine metadata, sizing information and
    a dictionary describing what was drawn.
NaturalNumber
    Type descriptor enabling ``isinstance(x, NaturalNumber)`` checks for
    positive integers. Used to validate ``bins``, ``ncol`` and similar
    parameters.
ColumnKind
    Literal type of the four column kinds a Dataset distinguishes.

Examples
--------
>>> from formulaplot.types import NaturalNumber
>>> isinstance(5, NaturalNumber)
True
>>> isinstance(0, NaturalNumber)
False
"""

from dataclasses import dataclass, field
from numbers import Number
from typing import Any, Literal, Optional, Union

import numpy as np
from matplotlib.figure import Figure
from plotly.graph_objects import Figure as PxFigure

ColumnKind = Literal["categorical", "integer", "real", "boolean"]

COLUMN_KINDS = ("categorical", "integer", "real", "boolean")
NUMERIC_KINDS = ("integer", "real")
DISCRETE_KINDS = ("categorical", "boolean")


class _NaturalNumberMeta(type):
    """Metaclass to enable isinstance checks for natural numbers."""

    def __instancecheck__(cls, instance):
        """Return True if instance is a positive integer."""
        return (
            isinstance(instance, Number)
            and not isinstance(instance, bool)
            and instance > 0
            and instance == int(instance)
        )

    def __repr__(cls):
        return "NaturalNumber"

    def __init__(cls, *_):
        cls.__name__ = "NaturalNumber"


# pylint: disable=R0903
class NaturalNumber(metaclass=_NaturalNumberMeta):
    """
    Type descriptor for natural numbers (positive integers).

    ``isinstance(value, NaturalNumber)`` is True if and only if `value` is a
    number, strictly greater than zero and integral. Floats such as ``3.0``
    are accepted, booleans are not.

    Examples
    --------
    >>> isinstance(1, NaturalNumber)
    True
    >>> isinstance(3.14, NaturalNumber)
    False
    >>> isinstance(True, NaturalNumber)
    False
    """


@dataclass
class VisualizationResult:
    """
    Standardized container for a drawn plot.

    Parameters
    ----------
    figure : matplotlib.figure.Figure or plotly.graph_objects.Figure
        The figure object produced by the renderer.
    axes : numpy.ndarray of matplotlib.axes.Axes or None, default=None
        Two-dimensional array of panel axes (``nrows x ncols``) when using
        Matplotlib; ``None`` for Plotly.
    engine : {'matplotlib', 'plotly'}
        Name of the plotting engine used to generate the visualization.
    width : float or None
        Figure width, inches for Matplotlib and pixels for Plotly.
    height : float or None
        Figure height, inches for Matplotlib and pixels for Plotly.
    title : str or None
        Title of the generated visualization.
    extra_info : dict
        Metadata about what was drawn. Keys:

        - ``'kind'``: chart kind (e.g. ``'point'``),
        - ``'x'`` / ``'y'``: explanatory / response column names,
        - ``'n_observations'``: rows bound to the plot,
        - ``'n_panels'``: number of facet panels,
        - ``'panels'``: list of panel keys (tuples of facet levels),
        - ``'scales'``: mapping aesthetic role -> scale kind,
        - ``'trend_lines'``: list of fitted trend line kinds.

    Notes
    -----
    Backend-specific methods remain available on ``figure``:
    ``figure.savefig(...)`` for Matplotlib, ``figure.write_html(...)`` for
    Plotly.
    """

    figure: Union[Figure, PxFigure]
    axes: Optional[np.ndarray] = None
    engine: str = "matplotlib"
    width: Optional[float] = None
    height: Optional[float] = None
    title: Optional[str] = None
    extra_info: dict[str, Any] = field(default_factory=dict)

    @property
    def ax(self):
        """The first panel's axes (Matplotlib only)."""
        if self.axes is None:
            return None
        return self.axes.flat[0]
