"""
Plot objects and their decorations.

A :class:`PlotObject` is an immutable description of a chart: what kind of
chart, which rows, which variables on which axis, how aesthetics map to
columns, and an ordered list of decorations (facets, labels, trend lines).
Decorating a plot never changes it; each decoration returns a new
PlotObject layered on top of the previous one, so plots can be chained::

    plot = (
        gf_point("SalePrice ~ GrLivArea", houses, color="~CentralAir", alpha=0.2)
        .facet_grid(". ~ KitchenQual")
        .labs(title="Sales by living area", ylabel="Price ($)")
        .trend("linear")
    )
    result = plot.draw()

Classes
-------
PlotSpec
    Chart kind, dataset, variables, aesthetics and styling parameters.
PlotObject
    A PlotSpec bound to its rows plus decorations.
Facet, Labels, TrendLine
    Decorations.

Functions
---------
add_facet(plot, row=None, col=None)
    Split a plot into a grid of panels.
add_facet_wrap(plot, var, ncol=None)
    Split a plot into panels wrapped into rows.
add_labels(plot, title=None, ylabel=None, xlabel=None, caption=None)
    Add a title, axis labels and caption.
add_trend_line(plot, kind="linear", **line_kws)
    Overlay a fitted trend of the response on the explanatory variable.
"""

import logging
import warnings
from dataclasses import dataclass, field, replace
from numbers import Integral, Real
from typing import Any, Mapping, Optional

import numpy as np
import pandas as pd

from formulaplot._utils import (
    read_config,
    validate_at_least_one_exist,
    validate_string_flag,
)
from formulaplot.aesthetics import ResolvedAesthetic, column_reference
from formulaplot.data import Dataset
from formulaplot.exceptions import TypeMismatchError
from formulaplot.formula import is_formula, parse_facet_formula
from formulaplot.types import NaturalNumber, VisualizationResult
from formulaplot.visualizations._layout import FacetLayout, facet_layout
from formulaplot.visualizations._utils import (
    DEFAULT_MPL_PLOT_PARAMS,
    WRN_MSG_EMPTY_DATA_F,
    get_empty_plot,
    save_plot,
    temp_plot_theme,
)
from formulaplot.visualizations.trendlines import resolve_trend_kind, validate_frac

logger = logging.getLogger(__name__)

ENGINES = ("matplotlib", "plotly")

ERR_MSG_FACET_REQUIRED = read_config("messages")["errors"]["facet_required"]
ERR_MSG_RESPONSE_REQUIRED_F = read_config("messages")["errors"]["response_required_f"]
ERR_MSG_TYPE_MISMATCH_F = read_config("messages")["errors"]["type_mismatch_f"]
ERR_MSG_NATURAL_NUMBER_REQUIRED_F = read_config("messages")["errors"][
    "natural_number_required_f"
]
ERR_MSG_UNKNOWN_PARAMETER_F = read_config("messages")["errors"]["unknown_parameter_f"]
ERR_MSG_NON_NEGATIVE_REQUIRED_F = read_config("messages")["errors"][
    "non_negative_required_f"
]
ERR_MSG_SEED_INVALID_F = read_config("messages")["errors"]["seed_invalid_f"]

# response: 'required', 'optional' or 'forbidden'
# grouped: aesthetics split the data into groups, so colour/fill must be discrete
# literal_aesthetics: roles that take a literal only (size is the line width)
CHART_KINDS = {
    "point": {
        "response": "required",
        "numeric_response": True,
        "numeric_explanatory": False,
        "aesthetics": ("color", "fill", "shape", "size", "alpha"),
        "grouped": False,
        "literal_aesthetics": (),
    },
    "jitter": {
        "response": "required",
        "numeric_response": True,
        "numeric_explanatory": False,
        "aesthetics": ("color", "fill", "shape", "size", "alpha"),
        "grouped": False,
        "literal_aesthetics": (),
    },
    "density": {
        "response": "forbidden",
        "numeric_response": False,
        "numeric_explanatory": True,
        "aesthetics": ("color", "fill", "alpha"),
        "grouped": True,
        "literal_aesthetics": (),
    },
    "histogram": {
        "response": "forbidden",
        "numeric_response": False,
        "numeric_explanatory": True,
        "aesthetics": ("color", "fill", "alpha"),
        "grouped": True,
        "literal_aesthetics": (),
    },
    "boxplot": {
        "response": "optional",
        "numeric_response": True,
        "numeric_explanatory": False,
        "aesthetics": ("color", "fill", "alpha"),
        "grouped": True,
        "literal_aesthetics": (),
    },
    "lm": {
        "response": "required",
        "numeric_response": True,
        "numeric_explanatory": True,
        "aesthetics": ("color", "size", "alpha"),
        "grouped": True,
        "literal_aesthetics": ("size",),
    },
    "smooth": {
        "response": "required",
        "numeric_response": True,
        "numeric_explanatory": True,
        "aesthetics": ("color", "size", "alpha"),
        "grouped": True,
        "literal_aesthetics": ("size",),
    },
}

# styling parameters beyond DEFAULT_MPL_PLOT_PARAMS
CHART_PARAMS = {
    "bins": 30,
    "jitter_width": None,
    "jitter_height": None,
    "seed": None,
    "frac": 2 / 3,
}


@dataclass(frozen=True)
class Facet:
    """Facet decoration; `wrap` panels use `col` as the single variable."""

    row: Optional[str] = None
    col: Optional[str] = None
    wrap: bool = False
    ncol: Optional[int] = None


@dataclass(frozen=True)
class Labels:
    """Text decoration; fields left as None keep earlier values."""

    title: Optional[str] = None
    ylabel: Optional[str] = None
    xlabel: Optional[str] = None
    caption: Optional[str] = None


@dataclass(frozen=True)
class TrendLine:
    """
    Trend line decoration.

    Attributes
    ----------
    kind : {'linear', 'smoothed'}
    by_group : bool
        Fit one line per discrete colour group instead of one per panel.
    color, linestyle, linewidth
        Line styling; `color` None uses the group colour, or the second
        colour of the cycle when ungrouped.
    frac : float
        LOWESS span for smoothed lines.
    dots : int
        Points per fitted curve.
    """

    kind: str = "linear"
    by_group: bool = True
    color: Any = None
    linestyle: str = "-"
    linewidth: float = 2.0
    frac: float = 2 / 3
    dots: int = 200


@dataclass(frozen=True)
class PlotSpec:
    """
    What to draw.

    Attributes
    ----------
    kind : str
        Canonical chart kind, a key of ``CHART_KINDS``.
    dataset : Dataset
        Source table.
    response : str or None
        Variable on the y-axis.
    explanatory : str
        Variable on the x-axis.
    aesthetics : dict
        Canonical role -> literal or column reference, as given.
    params : dict
        Styling parameters merged with ``DEFAULT_MPL_PLOT_PARAMS``.
    """

    kind: str
    dataset: Dataset
    response: Optional[str]
    explanatory: str
    aesthetics: dict = field(default_factory=dict)
    params: dict = field(default_factory=dict)


@dataclass(frozen=True, eq=False)
class PlotObject:
    """
    A chart bound to its rows, plus decorations.

    PlotObjects are created by :func:`formulaplot.render` (or the ``gf_*``
    shortcuts) and never modified; :meth:`facet_grid`, :meth:`facet_wrap`,
    :meth:`labs` and :meth:`trend` return new objects.

    Attributes
    ----------
    spec : PlotSpec
    rows : pandas.DataFrame
        The observations bound to the plot.
    scales : dict[str, ResolvedAesthetic]
        Resolved aesthetics.
    decorations : tuple
        Facet, Labels and TrendLine decorations, in the order applied.
    """

    spec: PlotSpec
    rows: pd.DataFrame
    scales: dict = field(default_factory=dict)
    decorations: tuple = ()

    def __repr__(self):
        y = self.y if self.y is not None else ""
        return (
            f"PlotObject(kind='{self.kind}', formula='{y} ~ {self.x}', "
            f"n_observations={self.n_observations}, "
            f"decorations={[type(d).__name__ for d in self.decorations]})"
        )

    @property
    def kind(self) -> str:
        return self.spec.kind

    @property
    def dataset(self) -> Dataset:
        return self.spec.dataset

    @property
    def x(self) -> str:
        """Name of the column bound to the x-axis."""
        return self.spec.explanatory

    @property
    def y(self) -> Optional[str]:
        """Name of the column bound to the y-axis (None for univariate plots)."""
        return self.spec.response

    @property
    def params(self) -> dict:
        return dict(self.spec.params)

    @property
    def data(self) -> pd.DataFrame:
        """A copy of the rows bound to the plot."""
        return self.rows.copy()

    @property
    def n_observations(self) -> int:
        return len(self.rows)

    @property
    def facet(self) -> Optional[Facet]:
        """The most recent facet decoration; later facets replace earlier ones."""
        facets = [d for d in self.decorations if isinstance(d, Facet)]
        return facets[-1] if facets else None

    @property
    def labels(self) -> Labels:
        """All label decorations merged, later values winning."""
        merged = {}
        for decoration in self.decorations:
            if isinstance(decoration, Labels):
                merged.update(
                    {k: v for k, v in decoration.__dict__.items() if v is not None}
                )
        return Labels(**merged)

    @property
    def trend_lines(self) -> tuple:
        return tuple(d for d in self.decorations if isinstance(d, TrendLine))

    def scale(self, role: str) -> Optional[ResolvedAesthetic]:
        return self.scales.get(role)

    def layout(self) -> FacetLayout:
        """Panel grid for the current facet decoration."""
        return facet_layout(self.rows, self.facet)

    def decorate(self, decoration) -> "PlotObject":
        """Return a new PlotObject with `decoration` layered on top."""
        return replace(self, decorations=self.decorations + (decoration,))

    def facet_grid(self, row: Optional[str] = None, col: Optional[str] = None):
        """Shortcut for :func:`add_facet`."""
        return add_facet(self, row=row, col=col)

    def facet_wrap(self, var: str, ncol: Optional[int] = None):
        """Shortcut for :func:`add_facet_wrap`."""
        return add_facet_wrap(self, var, ncol=ncol)

    def labs(self, title=None, ylabel=None, xlabel=None, caption=None):
        """Shortcut for :func:`add_labels`."""
        return add_labels(self, title=title, ylabel=ylabel, xlabel=xlabel,
                          caption=caption)

    def trend(self, kind: str = "linear", **line_kws):
        """Shortcut for :func:`add_trend_line`."""
        return add_trend_line(self, kind=kind, **line_kws)

    def draw(self, engine: str = "matplotlib") -> VisualizationResult:
        """
        Draw the plot.

        Parameters
        ----------
        engine : {'matplotlib', 'plotly'}, default='matplotlib'
            Static Matplotlib figure or interactive Plotly figure.

        Returns
        -------
        VisualizationResult
            Figure, panel axes (Matplotlib) and metadata; see
            :class:`formulaplot.types.VisualizationResult`.

        Warns
        -----
        UserWarning
            If no rows are bound to the plot; a placeholder figure with a
            message is returned.
        """
        validate_string_flag(
            engine,
            ENGINES,
            err_msg=f"Unsupported engine '{engine}'. Choose from: {ENGINES}.",
        )
        params = self.params
        if self.rows.empty:
            warnings.warn(WRN_MSG_EMPTY_DATA_F.format(self.kind), UserWarning)
            return self._draw_empty(engine, params)
        with temp_plot_theme(palette=params["palette"], style=params["style"]):
            if engine == "plotly":
                # pylint: disable=C0415
                from formulaplot.visualizations._plotly import draw_plotly

                return draw_plotly(self)
            from formulaplot.visualizations._matplotlib import draw_matplotlib

            return draw_matplotlib(self)

    def _draw_empty(self, engine: str, params: dict) -> VisualizationResult:
        labels = self.labels
        extra_info = self._base_info(n_panels=0, panels=[])
        if engine == "plotly":
            fig = get_empty_plot(figsize=params["figsize"], engine="plotly")
            return VisualizationResult(
                figure=fig,
                engine="plotly",
                width=fig.layout.width,
                height=fig.layout.height,
                title=labels.title,
                extra_info=extra_info,
            )
        fig, ax = get_empty_plot(figsize=params["figsize"])
        ax.set_title(labels.title or "")
        ax.set_xlabel(labels.xlabel or "")
        ax.set_ylabel(labels.ylabel or "")
        return VisualizationResult(
            figure=fig,
            axes=_axes_grid([[ax]]),
            engine="matplotlib",
            width=params["figsize"][0],
            height=params["figsize"][1],
            title=labels.title,
            extra_info=extra_info,
        )

    def _base_info(self, n_panels: int, panels: list) -> dict:
        return {
            "kind": self.kind,
            "x": self.x,
            "y": self.y,
            "n_observations": self.n_observations,
            "n_panels": n_panels,
            "panels": panels,
            "scales": {role: scale.scale for role, scale in self.scales.items()},
            "trend_lines": [t.kind for t in self.trend_lines],
        }

    def save(
        self,
        directory: str = ".",
        plot_name: Optional[str] = None,
        overwrite: bool = True,
        engine: str = "matplotlib",
        verbose: bool = None,
    ) -> VisualizationResult:
        """
        Draw the plot and write it to disk.

        Parameters
        ----------
        directory : str, default="."
            File path with extension (``"plots/price.svg"``) or a directory,
            in which case the file is named ``{plot_name}.png`` (Matplotlib)
            or ``{plot_name}.html`` (Plotly).
        plot_name : str, optional
            Defaults to the chart kind.
        overwrite : bool, default=True
            If False, an existing file raises FileExistsError.
        engine : {'matplotlib', 'plotly'}, default='matplotlib'
        verbose : bool, optional
            Log the output path; defaults to the plot's `verbose` parameter.

        Returns
        -------
        VisualizationResult
            The drawn plot.
        """
        result = self.draw(engine=engine)
        save_plot(
            result.figure,
            directory=directory,
            overwrite=overwrite,
            plot_name=plot_name or self.kind,
            engine=engine,
            verbose=self.params["verbose"] if verbose is None else verbose,
        )
        return result


def _axes_grid(rows) -> np.ndarray:
    grid = np.empty((len(rows), len(rows[0])), dtype=object)
    for i, row in enumerate(rows):
        for j, ax in enumerate(row):
            grid[i, j] = ax
    return grid


def _require_numeric(plot: PlotObject, column: str, role: str) -> None:
    if not plot.dataset.is_numeric(column):
        raise TypeMismatchError(
            ERR_MSG_TYPE_MISMATCH_F.format(
                role, "numeric", column, plot.dataset.column_kind(column)
            )
        )


def _as_variable(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    reference = column_reference(value)
    return reference if reference is not None else value


def add_facet(
    plot: PlotObject, row: Optional[str] = None, col: Optional[str] = None
) -> PlotObject:
    """
    Split a plot into a grid of panels, one per combination of levels.

    Parameters
    ----------
    plot : PlotObject
    row : str, optional
        Variable whose levels form the panel rows. A facet formula such as
        ``"KitchenQual ~ CentralAir"`` or ``". ~ CentralAir"`` may be given
        here instead of `row`/`col`.
    col : str, optional
        Variable whose levels form the panel columns.

    Returns
    -------
    PlotObject
        New plot; with one variable of k levels it draws k panels, with two
        variables one panel per level combination.

    Raises
    ------
    ValueError
        If neither `row` nor `col` is given.
    MissingFieldError
        If a facet variable is not a column.
    """
    if col is None and is_formula(row) and not row.lstrip().startswith("~"):
        row, col = parse_facet_formula(row)
    elif col is None and is_formula(row):
        row, col = None, _as_variable(row)
    row, col = _as_variable(row), _as_variable(col)
    validate_at_least_one_exist((row, col), ERR_MSG_FACET_REQUIRED)
    plot.dataset.require(*(v for v in (row, col) if v is not None), parameter="facet")
    logger.debug("faceting %s by row=%s, col=%s", plot.kind, row, col)
    return plot.decorate(Facet(row=row, col=col))


def add_facet_wrap(plot: PlotObject, var: str, ncol: Optional[int] = None) -> PlotObject:
    """
    Split a plot into one panel per level of `var`, wrapped into rows.

    Parameters
    ----------
    plot : PlotObject
    var : str
        Facet variable (``"Neighborhood"`` or ``"~Neighborhood"``).
    ncol : int, optional
        Panels per row; defaults to a near-square layout.

    Raises
    ------
    MissingFieldError
        If `var` is not a column.
    ValueError
        If `ncol` is not a positive integer.
    """
    var = _as_variable(var)
    plot.dataset.require(var, parameter="facet")
    if ncol is not None and not isinstance(ncol, NaturalNumber):
        raise ValueError(ERR_MSG_NATURAL_NUMBER_REQUIRED_F.format("ncol", ncol))
    return plot.decorate(Facet(col=var, wrap=True, ncol=ncol))


def add_labels(
    plot: PlotObject,
    title: Optional[str] = None,
    ylabel: Optional[str] = None,
    xlabel: Optional[str] = None,
    caption: Optional[str] = None,
) -> PlotObject:
    """
    Add a title, axis labels and a caption.

    Labels are text only; the data mapping is unchanged. Arguments left as
    None keep whatever an earlier decoration set, or the default (the
    variable names).
    """
    return plot.decorate(
        Labels(title=title, ylabel=ylabel, xlabel=xlabel, caption=caption)
    )


def add_trend_line(plot: PlotObject, kind: str = "linear", **line_kws) -> PlotObject:
    """
    Overlay a trend of the response on the explanatory variable.

    The trend is fitted separately in every facet panel and, when colour is
    mapped to a discrete column and ``by_group=True``, for every colour
    group.

    Parameters
    ----------
    plot : PlotObject
    kind : {'linear', 'smoothed'}, default='linear'
        Least squares line, or LOWESS curve. Aliases such as ``'lm'`` and
        ``'loess'`` are accepted.
    **line_kws
        Fields of :class:`TrendLine`: ``by_group``, ``color``, ``linestyle``,
        ``linewidth``, ``frac``, ``dots``.

    Raises
    ------
    ValueError
        If the plot has no response, `kind` is unsupported, `frac` is
        outside (0, 1], `dots` is not a positive integer or `linewidth` is
        negative.
    TypeMismatchError
        If the response or explanatory variable is not numeric.
    TypeError
        If `line_kws` holds an unknown field.
    """
    kind = resolve_trend_kind(kind)
    if plot.y is None:
        raise ValueError(ERR_MSG_RESPONSE_REQUIRED_F.format(f"{kind} trend line"))
    _require_numeric(plot, plot.y, "trend line response")
    _require_numeric(plot, plot.x, "trend line explanatory")
    trend = TrendLine(kind=kind, **line_kws)
    validate_frac(trend.frac)
    if not isinstance(trend.dots, NaturalNumber):
        raise ValueError(ERR_MSG_NATURAL_NUMBER_REQUIRED_F.format("dots", trend.dots))
    if (
        isinstance(trend.linewidth, bool)
        or not isinstance(trend.linewidth, Real)
        or trend.linewidth < 0
    ):
        raise ValueError(
            ERR_MSG_NON_NEGATIVE_REQUIRED_F.format("linewidth", trend.linewidth)
        )
    return plot.decorate(trend)


def default_params(**overrides: Any) -> dict:
    """``DEFAULT_MPL_PLOT_PARAMS`` merged with chart defaults and `overrides`."""
    return {**DEFAULT_MPL_PLOT_PARAMS, **CHART_PARAMS, **overrides}


def validate_params(params: Mapping[str, Any]) -> None:
    """
    Check styling parameters that are validated before drawing.

    Raises
    ------
    ValueError
        If a parameter name is unknown, `bins` is not a positive integer,
        `figsize` is not a pair, `frac` is outside (0, 1], a jitter
        amplitude is negative or `seed` is not a non-negative integer.
    """
    supported = (*DEFAULT_MPL_PLOT_PARAMS, *CHART_PARAMS)
    for key in params:
        if key not in supported:
            raise ValueError(ERR_MSG_UNKNOWN_PARAMETER_F.format(key, supported))
    if not isinstance(params["bins"], NaturalNumber):
        raise ValueError(ERR_MSG_NATURAL_NUMBER_REQUIRED_F.format("bins", params["bins"]))
    if len(tuple(params["figsize"])) != 2:
        raise ValueError(f"'figsize' must be a (width, height) pair, got {params['figsize']!r}.")
    validate_frac(params["frac"])
    for key in ("jitter_width", "jitter_height"):
        value = params[key]
        if value is None:
            continue
        if isinstance(value, bool) or not isinstance(value, Real) or value < 0:
            raise ValueError(ERR_MSG_NON_NEGATIVE_REQUIRED_F.format(key, value))
    seed = params["seed"]
    if seed is not None and (
        isinstance(seed, bool) or not isinstance(seed, Integral) or seed < 0
    ):
        raise ValueError(ERR_MSG_SEED_INVALID_F.format(seed))
