"""
Chart construction, decoration and drawing.

Functions available at the top level include:
- render: build a plot of any supported chart kind
- gf_point, gf_jitter, gf_density, gf_histogram, gf_boxplot, gf_lm,
  gf_smooth: formula shortcuts for render
- add_facet, add_facet_wrap, add_labels, add_trend_line: decorations
- fit_trend_line: linear and LOWESS trend fitting
- save_plot: write a Matplotlib or Plotly figure to disk
"""

from .plot_object import (
    CHART_KINDS,
    Facet,
    Labels,
    PlotObject,
    PlotSpec,
    TrendLine,
    add_facet,
    add_facet_wrap,
    add_labels,
    add_trend_line,
)
from .plots import (
    gf_boxplot,
    gf_density,
    gf_histogram,
    gf_jitter,
    gf_lm,
    gf_point,
    gf_smooth,
    render,
)
from ._utils import save_plot, temp_plot_theme
from .trendlines import fit_trend_line

__all__ = [
    "CHART_KINDS",
    "Facet",
    "Labels",
    "PlotObject",
    "PlotSpec",
    "TrendLine",
    "add_facet",
    "add_facet_wrap",
    "add_labels",
    "add_trend_line",
    "fit_trend_line",
    "gf_boxplot",
    "gf_density",
    "gf_histogram",
    "gf_jitter",
    "gf_lm",
    "gf_point",
    "gf_smooth",
    "render",
    "save_plot",
    "temp_plot_theme",
]
