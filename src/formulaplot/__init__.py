"""
formulaplot: formula-driven statistical graphics for tabular data.

Features include:
- Loading CSV tables with per-column kinds (categorical, integer, real, boolean)
- Formula-style plot specifications such as ``"SalePrice ~ GrLivArea"``
- Literal and column-mapped aesthetics (colour, fill, shape, size, alpha)
- Faceting, labels and linear or LOWESS trend lines
- Static Matplotlib and interactive Plotly output
"""
import logging

from .aesthetics import col
from .data import Dataset, read_csv
from .exceptions import (
    FormulaError,
    FormulaplotError,
    MissingFieldError,
    ParameterOutOfRangeError,
    TypeMismatchError,
)
from .formula import parse_facet_formula, parse_formula
from .types import VisualizationResult
from .visualizations import (
    PlotObject,
    add_facet,
    add_facet_wrap,
    add_labels,
    add_trend_line,
    gf_boxplot,
    gf_density,
    gf_histogram,
    gf_jitter,
    gf_lm,
    gf_point,
    gf_smooth,
    render,
    save_plot,
)

__version__ = "0.1.0"

__all__ = [
    "Dataset",
    "FormulaError",
    "FormulaplotError",
    "MissingFieldError",
    "ParameterOutOfRangeError",
    "PlotObject",
    "TypeMismatchError",
    "VisualizationResult",
    "add_facet",
    "add_facet_wrap",
    "add_labels",
    "add_trend_line",
    "col",
    "gf_boxplot",
    "gf_density",
    "gf_histogram",
    "gf_jitter",
    "gf_lm",
    "gf_point",
    "gf_smooth",
    "parse_facet_formula",
    "parse_formula",
    "read_csv",
    "render",
    "save_plot",
]

logger = logging.getLogger("formulaplot")
if not logger.hasHandlers():
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("[%(levelname)s] %(name)s: %(message)s"))
    logger.addHandler(handler)
logger.setLevel(logging.WARNING)
