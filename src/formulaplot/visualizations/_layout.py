"""
Engine-independent layout helpers: facet panels, groups, axis positions.

Both the Matplotlib and the Plotly renderer ask this module which rows go
into which panel and which group, so the two engines always agree on
panel counts and colours.
"""

import itertools
import math
from dataclasses import dataclass
from typing import Any, Optional

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
from matplotlib.colors import to_rgba

from formulaplot.aesthetics import levels_of

_ALL = object()


@dataclass(frozen=True)
class Panel:
    """One facet panel: its grid position, facet levels and rows."""

    row: int
    col: int
    key: tuple
    title: str
    index: pd.Index


@dataclass(frozen=True)
class FacetLayout:
    """Grid shape plus the panels to draw, in row-major order."""

    nrows: int
    ncols: int
    panels: tuple

    @property
    def n_panels(self) -> int:
        return len(self.panels)


def facet_levels(series: pd.Series) -> list:
    """Levels of a facet variable; missing values form a trailing None level."""
    levels = levels_of(series)
    if series.isna().any():
        levels.append(None)
    return levels


def level_mask(series: pd.Series, level: Any) -> np.ndarray:
    """Boolean mask of rows equal to `level` (None selects missing values)."""
    if level is None:
        return series.isna().to_numpy()
    return (series == level).fillna(False).to_numpy(dtype=bool)


def format_level(level: Any) -> str:
    return "NA" if level is None else str(level)


def facet_layout(data: pd.DataFrame, facet) -> FacetLayout:
    """
    Compute the panel grid for `facet`.

    Parameters
    ----------
    data : pandas.DataFrame
        Rows bound to the plot.
    facet : Facet or None
        Facet decoration; None gives a single panel with every row.

    Returns
    -------
    FacetLayout
        ``facet_grid`` with one variable of k levels gives k panels in a
        single row or column; with two variables, one panel per combination
        of levels (``r x c``), including empty combinations. ``facet_wrap``
        gives k panels wrapped into rows of `ncol`.
    """
    if facet is None or data.empty:
        return FacetLayout(1, 1, (Panel(0, 0, (), "", data.index),))

    if facet.wrap:
        series = data[facet.col]
        levels = facet_levels(series)
        ncol = min(int(facet.ncol or math.ceil(math.sqrt(len(levels)))), len(levels))
        nrows = math.ceil(len(levels) / ncol)
        panels = tuple(
            Panel(
                i // ncol,
                i % ncol,
                (level,),
                f"{facet.col}: {format_level(level)}",
                data.index[level_mask(series, level)],
            )
            for i, level in enumerate(levels)
        )
        return FacetLayout(nrows, ncol, panels)

    row_levels = facet_levels(data[facet.row]) if facet.row else [_ALL]
    col_levels = facet_levels(data[facet.col]) if facet.col else [_ALL]
    panels = []
    for (i, r), (j, c) in itertools.product(enumerate(row_levels), enumerate(col_levels)):
        mask = np.ones(len(data), dtype=bool)
        key, parts = [], []
        for variable, level in ((facet.row, r), (facet.col, c)):
            if level is _ALL:
                continue
            mask &= level_mask(data[variable], level)
            key.append(level)
            parts.append(f"{variable}: {format_level(level)}")
        panels.append(Panel(i, j, tuple(key), " | ".join(parts), data.index[mask]))
    return FacetLayout(len(row_levels), len(col_levels), tuple(panels))


def group_columns(scales: dict) -> list[str]:
    """Columns mapped to discrete colour/fill scales, in role order."""
    columns = []
    for role in ("color", "fill"):
        scale = scales.get(role)
        if scale is not None and scale.scale == "discrete" and scale.column not in columns:
            columns.append(scale.column)
    return columns


def group_rows(data: pd.DataFrame, index: pd.Index, scales: dict) -> list:
    """
    Split the rows of one panel into colour/fill groups.

    Returns
    -------
    list[tuple[tuple, pandas.Index]]
        ``(group_levels, row_index)`` for every non-empty group, ordered by
        level. Without a discrete colour/fill mapping there is a single
        group ``((), index)``.
    """
    columns = group_columns(scales)
    if not columns:
        return [((), index)]
    subset = data.loc[index]
    groups = []
    for levels in itertools.product(*(facet_levels(data[c]) for c in columns)):
        mask = np.ones(len(subset), dtype=bool)
        for column, level in zip(columns, levels):
            mask &= level_mask(subset[column], level)
        if mask.any():
            groups.append((levels, subset.index[mask]))
    return groups


def group_label(levels: tuple) -> Optional[str]:
    if not levels:
        return None
    return ", ".join(format_level(level) for level in levels)


def axis_positions(values: pd.Series, levels: list) -> np.ndarray:
    """Map discrete values to integer positions ``0..k-1`` (NaN if unknown)."""
    lookup = {level: i for i, level in enumerate(levels)}
    return np.array(
        [lookup.get(v, np.nan) if not pd.isna(v) else np.nan for v in values],
        dtype=float,
    )


def resolution(values: np.ndarray) -> float:
    """Smallest gap between distinct finite values; 1 if there is none."""
    finite = np.unique(values[np.isfinite(values)])
    if len(finite) < 2:
        return 1.0
    return float(np.min(np.diff(finite)))


def cycle_color(i: int = 0) -> tuple:
    """The i-th colour of the active Matplotlib colour cycle, as RGBA."""
    colors = plt.rcParams["axes.prop_cycle"].by_key()["color"]
    return to_rgba(colors[i % len(colors)])


def literal_alpha(plot, default: float = 1.0) -> float:
    scale = plot.scale("alpha")
    return scale.value if scale is not None else default


def row_values(plot, role: str, index, default) -> list:
    """Per-row values of an aesthetic, or `default` for every row."""
    scale = plot.scale(role)
    if scale is None:
        return [default] * len(index)
    return scale.values_for(index)


def group_value(plot, role: str, index, default=None):
    """Value of an aesthetic shared by every row of a group."""
    scale = plot.scale(role)
    if scale is None or len(index) == 0:
        return default
    return scale.values_for(index[:1])[0]


def numeric(values: pd.Series) -> np.ndarray:
    return pd.to_numeric(values, errors="coerce").to_numpy(dtype=float)


def x_levels(plot) -> Optional[list]:
    """Levels of a discrete x-axis, or None when x is continuous."""
    if plot.kind == "boxplot":
        return levels_of(plot.rows[plot.x]) if plot.y is not None else None
    if plot.kind in ("point", "jitter") and not plot.dataset.is_numeric(plot.x):
        return levels_of(plot.rows[plot.x])
    return None


def jittered(plot, xs: np.ndarray, ys: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    """
    Add uniform noise to point coordinates.

    The default amplitude is 40% of the data resolution on each axis, so
    jittered points never cross into a neighbouring category.
    """
    params = plot.params
    rng = np.random.default_rng(params["seed"])
    width = params["jitter_width"]
    height = params["jitter_height"]
    width = 0.4 * resolution(xs) if width is None else width
    height = 0.4 * resolution(ys) if height is None else height
    return (
        xs + rng.uniform(-width, width, len(xs)),
        ys + rng.uniform(-height, height, len(ys)),
    )


def histogram_edges(plot) -> np.ndarray:
    """Bin edges shared by every panel and group."""
    values = pd.Series(numeric(plot.rows[plot.x])).dropna()
    if values.empty:
        return np.array([0.0, 1.0])
    return np.histogram_bin_edges(values, bins=int(plot.params["bins"]))


def default_labels(plot) -> tuple[str, str]:
    """Default (xlabel, ylabel) for a plot."""
    if plot.kind == "density":
        return plot.x, "density"
    if plot.kind == "histogram":
        return plot.x, "count"
    if plot.kind == "boxplot" and plot.y is None:
        return "", plot.x
    return plot.x, plot.y


def legend_entries(plot) -> list:
    """
    Legend contents for discrete scales.

    Returns
    -------
    list[tuple[str, list[tuple[str, dict]]]]
        ``(column, [(level_label, {role: value, ...}), ...])`` per legend.
        Roles mapped to the same column share one legend.
    """
    legends = {}
    for role in ("color", "fill", "shape", "size"):
        scale = plot.scale(role)
        if scale is None or scale.scale != "discrete":
            continue
        entries = legends.setdefault(scale.column, {})
        for level in scale.levels:
            entries.setdefault(format_level(level), {})[role] = scale.mapping[level]
    return [(column, list(entries.items())) for column, entries in legends.items()]
