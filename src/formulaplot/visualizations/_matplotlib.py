"""
Matplotlib rendering of PlotObjects.

One layer function per chart kind draws the rows of a single facet panel
onto an Axes; :func:`draw_matplotlib` builds the panel grid, overlays trend
lines, and adds labels and legends.
"""

import logging
import math
import warnings

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import seaborn as sns
from matplotlib.cm import ScalarMappable
from matplotlib.lines import Line2D
from matplotlib.patches import Patch

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
from formulaplot.visualizations.trendlines import (
    MIN_POINTS,
    fit_trend_line,
    has_enough_points,
)

logger = logging.getLogger(__name__)

WRN_MSG_TREND_NOT_ENOUGH_POINTS_F = read_config("messages")["warns"]["Renderer"][
    "trend_not_enough_points_f"
]

DEFAULT_LINEWIDTH = 2.0


def _point_layer(ax, plot, index, levels, jitter=False):
    params = plot.params
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
    sizes = np.array(
        row_values(plot, "size", index, plt.rcParams["lines.markersize"] ** 2),
        dtype=float,
    )
    markers = np.array(row_values(plot, "shape", index, "o"), dtype=object)
    scatter_kws = {"alpha": literal_alpha(plot), **params["plot_kws"]}

    for marker in pd.unique(markers):
        selected = markers == marker
        if fills is not None:
            scatter_kws["edgecolors"] = colors[selected]
        ax.scatter(
            xs[selected],
            ys[selected],
            c=faces[selected],
            s=sizes[selected],
            marker=marker,
            **scatter_kws,
        )


def _jitter_layer(ax, plot, index, levels):
    _point_layer(ax, plot, index, levels, jitter=True)


def _density_layer(ax, plot, index, _levels):
    alpha = literal_alpha(plot)
    for i, (group, rows) in enumerate(group_rows(plot.rows, index, plot.scales)):
        values = pd.Series(numeric(plot.rows.loc[rows, plot.x])).dropna()
        if values.nunique() < 2:
            logger.warning(
                "Density of group '%s' skipped: fewer than 2 distinct values.",
                group_label(group),
            )
            continue
        line = group_value(plot, "color", rows)
        fill = group_value(plot, "fill", rows)
        kde_kws = {
            "x": values,
            "ax": ax,
            "alpha": alpha,
            "label": group_label(group),
            **plot.params["plot_kws"],
        }
        if fill is not None:
            kde_kws.update(fill=True, color=fill, edgecolor=line or fill)
        else:
            kde_kws.update(color=line or cycle_color(i if group else 0))
        sns.kdeplot(**kde_kws)


def _histogram_layer(ax, plot, index, _levels):
    alpha = literal_alpha(plot)
    edges = histogram_edges(plot)
    for i, (group, rows) in enumerate(group_rows(plot.rows, index, plot.scales)):
        values = pd.Series(numeric(plot.rows.loc[rows, plot.x])).dropna()
        if values.empty:
            continue
        line = group_value(plot, "color", rows)
        fill = group_value(plot, "fill", rows)
        hist_kws = {
            "x": values,
            "ax": ax,
            "bins": edges,
            "alpha": alpha,
            "color": fill or line or cycle_color(i if group else 0),
            "edgecolor": line or "white",
            "label": group_label(group),
            **plot.params["plot_kws"],
        }
        sns.histplot(**hist_kws)


def _boxplot_layer(ax, plot, index, levels):
    alpha = literal_alpha(plot)
    rows = plot.rows.loc[index]
    value_column = plot.y if plot.y is not None else plot.x
    slots = levels if levels is not None else [None]
    groups = group_rows(plot.rows, plot.rows.index, plot.scales)
    width = 0.8 / len(groups)

    for i, slot in enumerate(slots):
        in_slot = rows.index if slot is None else rows.index[level_mask(rows[plot.x], slot)]
        for j, (_, group_index) in enumerate(groups):
            members = in_slot.intersection(group_index)
            values = pd.Series(numeric(plot.rows.loc[members, value_column])).dropna()
            if values.empty:
                continue
            line = group_value(plot, "color", members, "black")
            fill = group_value(plot, "fill", members, "white")
            position = i + (j - (len(groups) - 1) / 2) * width
            parts = ax.boxplot(
                [values.to_numpy()],
                positions=[position],
                widths=width * 0.8,
                patch_artist=True,
                manage_ticks=False,
                **plot.params["plot_kws"],
            )
            for box in parts["boxes"]:
                box.set_facecolor(fill)
                box.set_edgecolor(line)
                box.set_alpha(alpha)
            for key in ("whiskers", "caps", "medians"):
                for artist in parts[key]:
                    artist.set_color(line)
            for flier in parts["fliers"]:
                flier.set_markeredgecolor(line)
    if levels is not None:
        ax.set_xticks(range(len(slots)), [format_level(s) for s in slots])
    else:
        ax.set_xticks([])


def _fit_layer(ax, plot, index, _levels, method):
    alpha = literal_alpha(plot)
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
        ax.plot(
            x_domain,
            y_pred,
            color=group_value(plot, "color", rows, cycle_color(i if group else 0)),
            linewidth=linewidth,
            alpha=alpha,
            label=group_label(group),
            **plot.params["plot_kws"],
        )


def _lm_layer(ax, plot, index, levels):
    _fit_layer(ax, plot, index, levels, "linear")


def _smooth_layer(ax, plot, index, levels):
    _fit_layer(ax, plot, index, levels, "smoothed")


LAYERS = {
    "point": _point_layer,
    "jitter": _jitter_layer,
    "density": _density_layer,
    "histogram": _histogram_layer,
    "boxplot": _boxplot_layer,
    "lm": _lm_layer,
    "smooth": _smooth_layer,
}


def _trend_layer(ax, plot, panel, trend):
    if trend.by_group:
        groups = group_rows(plot.rows, panel.index, plot.scales)
    else:
        groups = [((), panel.index)]
    for group, rows in groups:
        xs = plot.rows.loc[rows, plot.x]
        ys = plot.rows.loc[rows, plot.y]
        if not has_enough_points(xs, ys, trend.kind):
            warnings.warn(
                WRN_MSG_TREND_NOT_ENOUGH_POINTS_F.format(
                    " | ".join(filter(None, [panel.title, group_label(group)]))
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
        ax.plot(
            x_domain,
            y_pred,
            color=color,
            linestyle=trend.linestyle,
            linewidth=trend.linewidth,
        )


def _legend_handle(plot, label, styles):
    color = styles.get("color")
    fill = styles.get("fill")
    if plot.kind in ("point", "jitter"):
        size = styles.get("size", plt.rcParams["lines.markersize"] ** 2)
        return Line2D(
            [],
            [],
            linestyle="",
            marker=styles.get("shape", "o"),
            markersize=math.sqrt(size),
            markerfacecolor=fill or color or "gray",
            markeredgecolor=color or fill or "gray",
            label=label,
        )
    if plot.kind in ("lm", "smooth"):
        return Line2D([], [], color=color or "gray", label=label)
    return Patch(facecolor=fill or "white", edgecolor=color or "black", label=label)


def _add_legends(fig, axes, plot):
    anchor_ax = axes[0, -1]
    legends = legend_entries(plot)
    for i, (column, entries) in enumerate(legends):
        handles = [_legend_handle(plot, label, styles) for label, styles in entries]
        legend = anchor_ax.legend(
            handles=handles,
            title=column,
            bbox_to_anchor=(1.05, 1 - i / max(len(legends), 1)),
            loc="upper left",
        )
        if i < len(legends) - 1:
            anchor_ax.add_artist(legend)
    visible = [ax for ax in axes.flat if ax.get_visible()]
    for role in ("color", "fill"):
        scale = plot.scale(role)
        if scale is not None and scale.scale == "continuous":
            fig.colorbar(
                ScalarMappable(norm=scale.norm, cmap=scale.cmap),
                ax=visible,
                label=scale.column,
            )
            break


def draw_matplotlib(plot) -> VisualizationResult:
    """
    Draw `plot` with Matplotlib.

    Returns
    -------
    VisualizationResult
        ``axes`` is a ``nrows x ncols`` array of panel axes; unused wrap
        slots are hidden.
    """
    params = plot.params
    layout = plot.layout()
    fig, axes = plt.subplots(
        layout.nrows,
        layout.ncols,
        figsize=params["figsize"],
        sharex=True,
        sharey=True,
        squeeze=False,
    )
    levels = x_levels(plot)
    layer = LAYERS[plot.kind]
    drawn = set()
    for panel in layout.panels:
        ax = axes[panel.row, panel.col]
        drawn.add((panel.row, panel.col))
        layer(ax, plot, panel.index, levels)
        if plot.kind in ("point", "jitter") and levels is not None:
            ax.set_xticks(range(len(levels)), [format_level(v) for v in levels])
        for trend in plot.trend_lines:
            _trend_layer(ax, plot, panel, trend)
        if panel.title:
            ax.set_title(panel.title, fontsize=10)
    for ax_position in np.ndindex(axes.shape):
        if ax_position not in drawn:
            axes[ax_position].set_visible(False)

    labels = plot.labels
    default_x, default_y = default_labels(plot)
    xlabel = labels.xlabel if labels.xlabel is not None else default_x
    ylabel = labels.ylabel if labels.ylabel is not None else (default_y or "")
    for row, col in drawn:
        ax = axes[row, col]
        ax.set_xlabel(xlabel if (row + 1, col) not in drawn else "")
        ax.set_ylabel(ylabel if col == 0 else "")
    if layout.n_panels == 1 and plot.facet is None:
        axes[0, 0].set_title(labels.title or "")
    elif labels.title:
        fig.suptitle(labels.title)
    if labels.caption:
        fig.text(0.99, 0.01, labels.caption, ha="right", va="bottom",
                 fontsize=9, style="italic")
    _add_legends(fig, axes, plot)

    extra_info = plot._base_info(  # pylint: disable=W0212
        n_panels=layout.n_panels, panels=[p.key for p in layout.panels]
    )
    logger.debug("drew %s with %d panel(s)", plot.kind, layout.n_panels)
    return VisualizationResult(
        figure=fig,
        axes=axes,
        engine="matplotlib",
        width=params["figsize"][0],
        height=params["figsize"][1],
        title=labels.title,
        extra_info=extra_info,
    )
