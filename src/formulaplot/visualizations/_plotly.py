"""
Plotly rendering of PlotObjects.

Mirrors :mod:`formulaplot.visualizations._matplotlib`: panels, groups and
colours come from :mod:`formulaplot.visualizations._layout`, so both engines
draw the same panels with the same colours. Density curves are computed
with :class:`scipy.stats.gaussian_kde`.
"""

import itertools
import logging
import math
import warnings

import numpy as np
import pandas as pd
import plotly.graph_objects as go
from plotly.subplots import make_subplots
from scipy.stats import gaussian_kde

from formulaplot._utils import read_config
from formulaplot.types import VisualizationResult
from formulaplot.visualizations._layout import (
    axis_positions,
    cycle_color,
    default_labels,
    format_level,
    group_label,
    group_rows,
    group_value,
    histogram_edges,
    jittered,
    legend_entries,
    level_mask,
    literal_alpha,
    numeric,
    row_values,
    x_levels,
)
from formulaplot.visualizations._utils import PLOTLY_DPI, to_plotly_color
from formulaplot.visualizations.trendlines import (
    MIN_POINTS,
    fit_trend_line,
    has_enough_points,
)

logger = logging.getLogger(__name__)

WRN_MSG_TREND_NOT_ENOUGH_POINTS_F = read_config("messages")["warns"]["Renderer"][
    "trend_not_enough_points_f"
]

PLOTLY_SYMBOLS = {
    "o": "circle",
    "^": "triangle-up",
    "s": "square",
    "D": "diamond",
    "v": "triangle-down",
    "P": "cross",
    "X": "x",
    "*": "star",
    "<": "triangle-left",
    ">": "triangle-right",
    "p": "pentagon",
    "h": "hexagon",
    ".": "circle",
    "+": "cross-thin",
    "x": "x-thin",
    "d": "diamond-tall",
}

PLOTLY_DASHES = {"-": "solid", "--": "dash", ":": "dot", "-.": "dashdot"}

DEFAULT_MARKER_SIZE = 36.0  # points^2, as in Matplotlib scatter
DEFAULT_LINEWIDTH = 2.0
KDE_POINTS = 200


def _symbol(marker) -> str:
    symbol = PLOTLY_SYMBOLS.get(marker)
    if symbol is None:
        logger.debug("marker %r has no Plotly symbol, drawing circles", marker)
        return "circle"
    return symbol


class _Panel:
    """A subplot cell plus legend bookkeeping shared between its layers."""

    def __init__(self, fig, row, col, shown):
        self.fig = fig
        self.row = row
        self.col = col
        self.shown = shown

    def add(self, trace, legend_key=None):
        if legend_key is not None:
            trace.legendgroup = legend_key
            trace.showlegend = legend_key not in self.shown
            self.shown.add(legend_key)
        else:
            trace.showlegend = False
        self.fig.add_trace(trace, row=self.row, col=self.col)


def _point_layer(panel, plot, index, levels, jitter=False):
    rows = plot.rows.loc[index]
    if levels is not None:
        xs = axis_positions(rows[plot.x], levels)
    else:
        xs = numeric(rows[plot.x])
    ys = numeric(rows[plot.y])
    if jitter:
        xs, ys = jittered(plot, xs, ys)

    colors = np.array(row_values(plot, "color", index, cycle_color(0)), dtype=float)
    fills = plot.scale("fill")
    faces = (
        np.array(row_values(plot, "fill", index, None), dtype=float)
        if fills is not None
        else colors
    )
    sizes = np.sqrt(
        np.array(row_values(plot, "size", index, DEFAULT_MARKER_SIZE), dtype=float)
    )
    markers = np.array(row_values(plot, "shape", index, "o"), dtype=object)
    for marker in pd.unique(markers):
        selected = markers == marker
        panel.add(
            go.Scatter(
                x=xs[selected],
                y=ys[selected],
                mode="markers",
                opacity=literal_alpha(plot),
                marker={
                    "symbol": _symbol(marker),
                    "color": [to_plotly_color(c) for c in faces[selected]],
                    "size": sizes[selected],
                    "line": {
                        "color": [to_plotly_color(c) for c in colors[selected]],
                        "width": 1 if fills is not None else 0,
                    },
                },
                **plot.params["plot_kws"],
            )
        )


def _jitter_layer(panel, plot, index, levels):
    _point_layer(panel, plot, index, levels, jitter=True)


def _density_layer(panel, plot, index, _levels):
    alpha = literal_alpha(plot)
    for i, (group, rows) in enumerate(group_rows(plot.rows, index, plot.scales)):
        values = pd.Series(numeric(plot.rows.loc[rows, plot.x])).dropna()
        if values.nunique() < 2:
            logger.warning(
                "Density of group '%s' skipped: fewer than 2 distinct values.",
                group_label(group),
            )
            continue
        kde = gaussian_kde(values.to_numpy())
        # same padding as seaborn's default cut=3
        pad = 3 * kde.factor * values.std(ddof=1)
        grid = np.linspace(values.min() - pad, values.max() + pad, KDE_POINTS)
        line = group_value(plot, "color", rows)
        fill = group_value(plot, "fill", rows)
        color = line or fill or cycle_color(i if group else 0)
        trace_kws = {
            "x": grid,
            "y": kde(grid),
            "mode": "lines",
            "name": group_label(group),
            "opacity": alpha,
            "line": {"color": to_plotly_color(color)},
        }
        if fill is not None:
            trace_kws.update(fill="tozeroy", fillcolor=to_plotly_color(fill))
        panel.add(go.Scatter(**trace_kws, **plot.params["plot_kws"]), group_label(group))


def _histogram_layer(panel, plot, index, _levels):
    edges = histogram_edges(plot)
    for i, (group, rows) in enumerate(group_rows(plot.rows, index, plot.scales)):
        values = pd.Series(numeric(plot.rows.loc[rows, plot.x])).dropna()
        if values.empty:
            continue
        line = group_value(plot, "color", rows)
        fill = group_value(plot, "fill", rows)
        panel.add(
            go.Histogram(
                x=values,
                name=group_label(group),
                opacity=literal_alpha(plot),
                xbins={
                    "start": float(edges[0]),
                    "end": float(edges[-1]),
                    "size": float(edges[1] - edges[0]),
                },
                marker={
                    "color": to_plotly_color(fill or line or cycle_color(i if group else 0)),
                    "line": {"color": to_plotly_color(line or "white"), "width": 1},
                },
                **plot.params["plot_kws"],
            ),
            group_label(group),
        )


def _boxplot_layer(panel, plot, index, levels):
    rows = plot.rows.loc[index]
    value_column = plot.y if plot.y is not None else plot.x
    for j, (group, group_index) in enumerate(
        group_rows(plot.rows, plot.rows.index, plot.scales)
    ):
        members = rows.index.intersection(group_index)
        if levels is not None:
            known = np.zeros(len(members), dtype=bool)
            for level in levels:
                known |= level_mask(rows.loc[members, plot.x], level)
            members = members[known]
        values = numeric(plot.rows.loc[members, value_column])
        if len(members) == 0:
            continue
        line = group_value(plot, "color", members, "black")
        fill = group_value(plot, "fill", members, "white")
        trace_kws = {
            "y": values,
            "name": group_label(group) or value_column,
            "offsetgroup": str(j),
            "opacity": literal_alpha(plot),
            "line": {"color": to_plotly_color(line)},
            "fillcolor": to_plotly_color(fill),
            **plot.params["plot_kws"],
        }
        if levels is not None:
            trace_kws["x"] = [format_level(v) for v in rows.loc[members, plot.x]]
        panel.add(go.Box(**trace_kws), group_label(group))


def _fit_layer(panel, plot, index, _levels, method):
    size = plot.scale("size")
    linewidth = size.value if size is not None else DEFAULT_LINEWIDTH
    for i, (group, rows) in enumerate(group_rows(plot.rows, index, plot.scales)):
        xs = plot.rows.loc[rows, plot.x]
        ys = plot.rows.loc[rows, plot.y]
        if not has_enough_points(xs, ys, method):
            warnings.warn(
                WRN_MSG_TREND_NOT_ENOUGH_POINTS_F.format(
                    group_label(group) or plot.kind, MIN_POINTS[method]
                ),
                UserWarning,
            )
            continue
        x_domain, y_pred = fit_trend_line(xs, ys, method, frac=plot.params["frac"])
        color = group_value(plot, "color", rows, cycle_color(i if group else 0))
        panel.add(
            go.Scatter(
                x=x_domain,
                y=y_pred,
                mode="lines",
                name=group_label(group),
                opacity=literal_alpha(plot),
                line={"color": to_plotly_color(color), "width": linewidth},
                **plot.params["plot_kws"],
            ),
            group_label(group),
        )


def _lm_layer(panel, plot, index, levels):
    _fit_layer(panel, plot, index, levels, "linear")


def _smooth_layer(panel, plot, index, levels):
    _fit_layer(panel, plot, index, levels, "smoothed")


LAYERS = {
    "point": _point_layer,
    "jitter": _jitter_layer,
    "density": _density_layer,
    "histogram": _histogram_layer,
    "boxplot": _boxplot_layer,
    "lm": _lm_layer,
    "smooth": _smooth_layer,
}


def _trend_layer(panel, plot, layout_panel, trend):
    if trend.by_group:
        groups = group_rows(plot.rows, layout_panel.index, plot.scales)
    else:
        groups = [((), layout_panel.index)]
    for group, rows in groups:
        xs = plot.rows.loc[rows, plot.x]
        ys = plot.rows.loc[rows, plot.y]
        if not has_enough_points(xs, ys, trend.kind):
            warnings.warn(
                WRN_MSG_TREND_NOT_ENOUGH_POINTS_F.format(
                    " | ".join(filter(None, [layout_panel.title, group_label(group)]))
                    or plot.kind,
                    MIN_POINTS[trend.kind],
                ),
                UserWarning,
            )
            continue
        x_domain, y_pred = fit_trend_line(
            xs, ys, trend.kind, dots=trend.dots, frac=trend.frac
        )
        color = trend.color
        if color is None:
            color = group_value(plot, "color", rows) if group else cycle_color(1)
        panel.add(
            go.Scatter(
                x=x_domain,
                y=y_pred,
                mode="lines",
                name=f"{trend.kind} trend",
                line={
                    "color": to_plotly_color(color or cycle_color(1)),
                    "width": trend.linewidth,
                    "dash": PLOTLY_DASHES.get(trend.linestyle, "solid"),
                },
            )
        )


def _legend_traces(fig, plot):
    """Invisible marker traces that label discrete scales of point charts."""
    for column, entries in legend_entries(plot):
        for label, styles in entries:
            color = styles.get("fill") or styles.get("color") or "gray"
            fig.add_trace(
                go.Scatter(
                    x=[None],
                    y=[None],
                    mode="markers",
                    name=label,
                    legendgroup=column,
                    legendgrouptitle_text=column,
                    marker={
                        "symbol": _symbol(styles.get("shape", "o")),
                        "size": math.sqrt(styles.get("size", DEFAULT_MARKER_SIZE)),
                        "color": to_plotly_color(color),
                    },
                )
            )


def _colorbar_trace(fig, plot):
    for role in ("color", "fill"):
        scale = plot.scale(role)
        if scale is None or scale.scale != "continuous":
            continue
        stops = np.linspace(0, 1, 11)
        fig.add_trace(
            go.Scatter(
                x=[None],
                y=[None],
                mode="markers",
                showlegend=False,
                marker={
                    "colorscale": [
                        [float(t), to_plotly_color(scale.cmap(float(t)))] for t in stops
                    ],
                    "cmin": scale.norm.vmin,
                    "cmax": scale.norm.vmax,
                    "color": [scale.norm.vmin],
                    "showscale": True,
                    "colorbar": {"title": {"text": scale.column}},
                },
            )
        )
        return


def draw_plotly(plot) -> VisualizationResult:
    """
    Draw `plot` with Plotly.

    Returns
    -------
    VisualizationResult
        ``figure`` is a ``plotly.graph_objects.Figure``; ``axes`` is None.
        Width and height are in pixels.
    """
    params = plot.params
    layout = plot.layout()
    titles = [""] * (layout.nrows * layout.ncols)
    for p in layout.panels:
        titles[p.row * layout.ncols + p.col] = p.title
    fig = make_subplots(
        rows=layout.nrows,
        cols=layout.ncols,
        shared_xaxes=True,
        shared_yaxes=True,
        subplot_titles=titles if any(titles) else None,
    )
    levels = x_levels(plot)
    layer = LAYERS[plot.kind]
    shown = set()
    for layout_panel in layout.panels:
        panel = _Panel(fig, layout_panel.row + 1, layout_panel.col + 1, shown)
        layer(panel, plot, layout_panel.index, levels)
        for trend in plot.trend_lines:
            _trend_layer(panel, plot, layout_panel, trend)

    if plot.kind in ("point", "jitter"):
        _legend_traces(fig, plot)
        if levels is not None:
            fig.update_xaxes(
                tickvals=list(range(len(levels))),
                ticktext=[format_level(v) for v in levels],
            )
    _colorbar_trace(fig, plot)

    labels = plot.labels
    default_x, default_y = default_labels(plot)
    xlabel = labels.xlabel if labels.xlabel is not None else default_x
    ylabel = labels.ylabel if labels.ylabel is not None else (default_y or "")
    drawn = {(p.row, p.col) for p in layout.panels}
    for row, col in itertools.product(range(layout.nrows), range(layout.ncols)):
        if (row, col) not in drawn:
            fig.update_xaxes(visible=False, row=row + 1, col=col + 1)
            fig.update_yaxes(visible=False, row=row + 1, col=col + 1)
        elif (row + 1, col) not in drawn:
            # lowest panel of its column carries the x title and tick labels
            fig.update_xaxes(
                title_text=xlabel, showticklabels=True, row=row + 1, col=col + 1
            )
    fig.update_yaxes(title_text=ylabel, col=1)
    width = params["figsize"][0] * PLOTLY_DPI
    height = params["figsize"][1] * PLOTLY_DPI
    fig.update_layout(
        title={"text": labels.title or "", "x": 0.5},
        width=width,
        height=height,
        template="simple_white",
        barmode="overlay",
        boxmode="group",
    )
    if labels.caption:
        fig.add_annotation(
            text=labels.caption,
            x=1,
            y=0,
            xref="paper",
            yref="paper",
            xanchor="right",
            yanchor="top",
            yshift=-40,
            showarrow=False,
            font={"size": 10, "color": "gray"},
        )

    extra_info = plot._base_info(  # pylint: disable=W0212
        n_panels=layout.n_panels, panels=[p.key for p in layout.panels]
    )
    return VisualizationResult(
        figure=fig,
        axes=None,
        engine="plotly",
        width=width,
        height=height,
        title=labels.title,
        extra_info=extra_info,
    )
