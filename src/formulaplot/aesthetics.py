"""
Aesthetic mappings: literal values versus column references.

An aesthetic role (``color``, ``fill``, ``shape``, ``size`` or ``alpha``) is
either given a **literal**, applied uniformly to every observation, or a
**column reference**, applied per observation. The two are syntactically
distinct:

- ``color="navy"`` is always the colour navy;
- ``color=col("Neighborhood")`` or the formula shorthand
  ``color="~Neighborhood"`` always refers to a column.

For column references the scale is picked from the column kind recorded in
the :class:`~formulaplot.data.Dataset`: categorical and boolean columns get a
discrete scale (a palette, marker set or size steps), integer and real
columns a continuous one (a colormap or a linear size range).

Classes
-------
Column
    Explicit column reference.
ResolvedAesthetic
    Per-observation values of one aesthetic plus scale metadata.

Functions
---------
col(name)
    Create a :class:`Column` reference.
normalize_aesthetics(aesthetics, supported)
    Canonicalise role names and reject unknown roles.
resolve_aesthetics(dataset, data, aesthetics, palette, cmap)
    Validate and resolve every aesthetic against the plotted rows.
levels_of(series)
    Ordered distinct non-missing values of a column.

Examples
--------
>>> import pandas as pd
>>> from formulaplot.data import Dataset
>>> ds = Dataset({"GrLivArea": [856, 1262], "Neighborhood": ["CollgCr", "Veenker"]})
>>> scales = resolve_aesthetics(ds, ds.df, {"color": "~Neighborhood", "alpha": 0.2})
>>> scales["color"].scale, scales["alpha"].scale
('discrete', 'identity')
"""

import logging
import warnings
from dataclasses import dataclass, field
from numbers import Real
from typing import Any, Iterable, Mapping, Optional

import matplotlib as mpl
import numpy as np
import pandas as pd
import seaborn as sns
from matplotlib.colors import Colormap, Normalize, is_color_like, to_rgba
from matplotlib.markers import MarkerStyle

from formulaplot._utils import convert_from_alias, read_config
from formulaplot.data import Dataset
from formulaplot.exceptions import (
    ParameterOutOfRangeError,
    TypeMismatchError,
)
from formulaplot.formula import as_column_reference
from formulaplot.types import DISCRETE_KINDS

logger = logging.getLogger(__name__)

SUPPORTED_AESTHETICS = ("color", "fill", "shape", "size", "alpha")

MARKERS = ("o", "^", "s", "D", "v", "P", "X", "*", "<", ">", "p", "h")
SIZE_RANGE = (15.0, 150.0)
DEFAULT_CMAP = "viridis"
NA_COLOR = (0.5, 0.5, 0.5, 1.0)

ERR_MSG_UNSUPPORTED_AESTHETIC_F = read_config("messages")["errors"][
    "unsupported_aesthetic_f"
]
ERR_MSG_TYPE_MISMATCH_F = read_config("messages")["errors"]["type_mismatch_f"]
ERR_MSG_LITERAL_TYPE_MISMATCH_F = read_config("messages")["errors"][
    "literal_type_mismatch_f"
]
ERR_MSG_ALPHA_OUT_OF_RANGE_F = read_config("messages")["errors"]["alpha_out_of_range_f"]
ERR_MSG_SIZE_OUT_OF_RANGE_F = read_config("messages")["errors"]["size_out_of_range_f"]
ERR_MSG_TOO_MANY_SHAPES_F = read_config("messages")["errors"]["too_many_shapes_f"]
WRN_MSG_CATEGORIES_EXCEEDS_PALETTE_F = read_config("messages")["warns"]["Renderer"][
    "categories_exceeds_palette_f"
]


@dataclass(frozen=True)
class Column:
    """Reference to a dataset column, used as an aesthetic value."""

    name: str


def col(name: str) -> Column:
    """
    Refer to a column in an aesthetic mapping.

    Examples
    --------
    >>> col("Neighborhood")
    Column(name='Neighborhood')
    """
    return Column(name)


def column_reference(value: Any) -> Optional[str]:
    """Return the column name `value` refers to, or None for a literal."""
    if isinstance(value, Column):
        return value.name
    return as_column_reference(value)


@dataclass
class ResolvedAesthetic:
    """
    One aesthetic resolved against the plotted rows.

    Attributes
    ----------
    role : str
        Aesthetic role (``'color'``, ``'fill'``, ...).
    scale : {'identity', 'discrete', 'continuous'}
        ``'identity'`` for literals.
    value : Any
        The literal value (identity scale only), already converted
        (colours to RGBA tuples).
    column : str or None
        Mapped column (discrete/continuous scales only).
    values : pandas.Series or None
        Per-row values, indexed like the plotted data.
    levels : list
        Ordered levels (discrete scale only).
    mapping : dict
        Level -> visual value (discrete scale only).
    norm : matplotlib.colors.Normalize or None
        Normaliser of a continuous colour scale.
    cmap : matplotlib.colors.Colormap or None
        Colormap of a continuous colour scale.
    """

    role: str
    scale: str
    value: Any = None
    column: Optional[str] = None
    values: Optional[pd.Series] = None
    levels: list = field(default_factory=list)
    mapping: dict = field(default_factory=dict)
    norm: Optional[Normalize] = None
    cmap: Optional[Colormap] = None

    @property
    def is_mapped(self) -> bool:
        return self.scale != "identity"

    def values_for(self, index: Iterable) -> list:
        """Per-row values for the rows in `index`."""
        index = list(index)
        if self.values is None:
            return [self.value] * len(index)
        return list(self.values.loc[index])


def normalize_aesthetics(
    aesthetics: Mapping[str, Any] | None,
    supported: Iterable[str] = SUPPORTED_AESTHETICS,
) -> dict[str, Any]:
    """
    Canonicalise aesthetic role names.

    Aliases such as ``colour``, ``opacity`` or ``transparency`` are mapped to
    their canonical role. ``None`` values are dropped.

    Raises
    ------
    ValueError
        If a role is not in `supported`.
    """
    supported = tuple(supported)
    normalized = {}
    for role, value in (aesthetics or {}).items():
        canonical = convert_from_alias(role, SUPPORTED_AESTHETICS, path="aesthetic")
        if canonical not in supported:
            raise ValueError(ERR_MSG_UNSUPPORTED_AESTHETIC_F.format(role, supported))
        if value is not None:
            normalized[canonical] = value
    return normalized


def levels_of(series: pd.Series) -> list:
    """
    Ordered distinct non-missing values of `series`.

    Categorical dtypes keep their category order (unused categories are
    skipped), booleans are ``[False, True]``, anything else is sorted.
    """
    present = series.dropna()
    if isinstance(series.dtype, pd.CategoricalDtype):
        used = set(present.unique())
        return [c for c in series.cat.categories if c in used]
    unique = list(pd.unique(present))
    try:
        return sorted(unique)
    except TypeError:
        return sorted(unique, key=str)


def _discrete_colors(column: str, levels: list, palette) -> dict:
    colors = sns.color_palette(palette, n_colors=max(len(levels), 1))
    if len(set(colors)) < len(levels):
        warnings.warn(
            WRN_MSG_CATEGORIES_EXCEEDS_PALETTE_F.format(
                column, len(levels), len(set(colors))
            ),
            UserWarning,
        )
    return {level: tuple(to_rgba(colors[i])) for i, level in enumerate(levels)}


def _map_discrete(series: pd.Series, mapping: dict, na_value) -> pd.Series:
    mapped = [mapping.get(v, na_value) if not pd.isna(v) else na_value for v in series]
    return pd.Series(mapped, index=series.index, dtype=object)


def _resolve_literal(role: str, value: Any) -> ResolvedAesthetic:
    if role in ("color", "fill"):
        if not is_color_like(value):
            raise TypeMismatchError(
                ERR_MSG_LITERAL_TYPE_MISMATCH_F.format(role, "a colour", value)
            )
        return ResolvedAesthetic(role, "identity", value=tuple(to_rgba(value)))
    if role == "alpha":
        if isinstance(value, bool) or not isinstance(value, Real):
            raise TypeMismatchError(
                ERR_MSG_LITERAL_TYPE_MISMATCH_F.format(role, "a real number", value)
            )
        if not 0 <= value <= 1:
            raise ParameterOutOfRangeError(ERR_MSG_ALPHA_OUT_OF_RANGE_F.format(value))
        return ResolvedAesthetic(role, "identity", value=float(value))
    if role == "size":
        if isinstance(value, bool) or not isinstance(value, Real):
            raise TypeMismatchError(
                ERR_MSG_LITERAL_TYPE_MISMATCH_F.format(role, "a positive number", value)
            )
        if not value > 0:
            raise ParameterOutOfRangeError(ERR_MSG_SIZE_OUT_OF_RANGE_F.format(value))
        return ResolvedAesthetic(role, "identity", value=float(value))
    # shape
    try:
        MarkerStyle(value)
    except (ValueError, TypeError) as exc:
        raise TypeMismatchError(
            ERR_MSG_LITERAL_TYPE_MISMATCH_F.format(role, "a matplotlib marker", value)
        ) from exc
    return ResolvedAesthetic(role, "identity", value=value)


def _resolve_column(
    role: str, column: str, dataset: Dataset, data: pd.DataFrame, palette, cmap
) -> ResolvedAesthetic:
    dataset.require(column, parameter=role)
    kind = dataset.column_kind(column)
    series = data[column]
    discrete = kind in DISCRETE_KINDS

    if role == "alpha":
        raise TypeMismatchError(
            ERR_MSG_LITERAL_TYPE_MISMATCH_F.format(
                role, "a literal number in [0, 1]", f"~{column}"
            )
        )
    if role == "shape" and not discrete:
        raise TypeMismatchError(
            ERR_MSG_TYPE_MISMATCH_F.format(role, "categorical or boolean", column, kind)
        )

    if discrete:
        levels = levels_of(series)
        if role in ("color", "fill"):
            mapping = _discrete_colors(column, levels, palette)
            na_value = NA_COLOR
        elif role == "shape":
            if len(levels) > len(MARKERS):
                raise ValueError(
                    ERR_MSG_TOO_MANY_SHAPES_F.format(column, len(levels), len(MARKERS))
                )
            mapping = {level: MARKERS[i] for i, level in enumerate(levels)}
            na_value = MARKERS[0]
        else:
            steps = np.linspace(SIZE_RANGE[0], SIZE_RANGE[1], max(len(levels), 1))
            mapping = {level: float(steps[i]) for i, level in enumerate(levels)}
            na_value = float(np.mean(SIZE_RANGE))
        return ResolvedAesthetic(
            role,
            "discrete",
            column=column,
            values=_map_discrete(series, mapping, na_value),
            levels=levels,
            mapping=mapping,
        )

    numeric = pd.to_numeric(series, errors="coerce").astype(float)
    low, high = numeric.min(), numeric.max()
    if pd.isna(low):
        low, high = 0.0, 1.0
    if role in ("color", "fill"):
        colormap = mpl.colormaps[cmap or DEFAULT_CMAP]
        norm = Normalize(vmin=low, vmax=high if high > low else low + 1)
        values = [
            tuple(colormap(norm(v))) if not np.isnan(v) else NA_COLOR for v in numeric
        ]
        return ResolvedAesthetic(
            role,
            "continuous",
            column=column,
            values=pd.Series(values, index=series.index, dtype=object),
            norm=norm,
            cmap=colormap,
        )
    # size
    span = high - low
    if span > 0:
        scaled = SIZE_RANGE[0] + (numeric - low) / span * (SIZE_RANGE[1] - SIZE_RANGE[0])
    else:
        scaled = pd.Series(np.mean(SIZE_RANGE), index=numeric.index)
    scaled = scaled.fillna(float(np.mean(SIZE_RANGE)))
    return ResolvedAesthetic(
        role,
        "continuous",
        column=column,
        values=scaled.astype(object),
        norm=Normalize(vmin=low, vmax=high),
    )


def resolve_aesthetics(
    dataset: Dataset,
    data: pd.DataFrame,
    aesthetics: Mapping[str, Any] | None,
    palette=None,
    cmap: str = None,
    supported: Iterable[str] = SUPPORTED_AESTHETICS,
) -> dict[str, ResolvedAesthetic]:
    """
    Validate and resolve aesthetics against the rows being plotted.

    Parameters
    ----------
    dataset : Dataset
        Source of column kinds.
    data : pandas.DataFrame
        The rows bound to the plot (possibly a NaN-filtered subset of
        ``dataset.df``).
    aesthetics : Mapping[str, Any]
        Role -> literal or column reference.
    palette : str or list, optional
        Seaborn palette for discrete colour scales. Defaults to the current
        colour cycle.
    cmap : str, optional
        Matplotlib colormap for continuous colour scales, default
        ``'viridis'``.
    supported : Iterable[str]
        Roles accepted by the calling chart kind.

    Returns
    -------
    dict[str, ResolvedAesthetic]

    Raises
    ------
    ValueError
        Unknown role, or more shape levels than markers.
    MissingFieldError
        A column reference names an unknown column.
    TypeMismatchError
        A literal of the wrong type, a numeric column mapped to ``shape``,
        or a column mapped to ``alpha``.
    ParameterOutOfRangeError
        ``alpha`` outside [0, 1] or a non-positive ``size``.

    Warns
    -----
    UserWarning
        If a discrete colour scale has more levels than palette colours.
    """
    resolved = {}
    for role, value in normalize_aesthetics(aesthetics, supported).items():
        column = column_reference(value)
        if column is None:
            resolved[role] = _resolve_literal(role, value)
        else:
            resolved[role] = _resolve_column(role, column, dataset, data, palette, cmap)
        logger.debug("aesthetic '%s' resolved with %s scale", role, resolved[role].scale)
    return resolved

