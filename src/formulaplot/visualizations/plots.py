"""
Chart constructors.

:func:`render` builds a :class:`~formulaplot.visualizations.PlotObject` from
a chart kind, a dataset, the variables to plot and the aesthetic mappings.
Every check that can fail (unknown columns, wrong column kinds, out of range
literals) happens here, before anything is drawn.

The ``gf_*`` functions are formula-first shortcuts for :func:`render`::

    gf_point("SalePrice ~ GrLivArea", houses, color="~CentralAir", alpha=0.2)

Functions
---------
render(kind, dataset, response=None, explanatory=None, aesthetics=None, **kwargs)
    Build a plot of any supported kind.
gf_point, gf_jitter, gf_density, gf_histogram, gf_boxplot, gf_lm, gf_smooth
    Formula shortcuts, one per chart kind.
"""

import contextlib
import logging
from typing import Any, Mapping, Optional

import pandas as pd

from formulaplot._utils import (
    convert_from_alias,
    handle_nan,
    read_config,
    temp_log_level,
    validate_string_flag,
)
from formulaplot.aesthetics import (
    SUPPORTED_AESTHETICS,
    column_reference,
    normalize_aesthetics,
    resolve_aesthetics,
)
from formulaplot.data import Dataset
from formulaplot.exceptions import TypeMismatchError
from formulaplot.formula import is_formula, parse_formula
from formulaplot.types import DISCRETE_KINDS
from formulaplot.visualizations.plot_object import (
    CHART_KINDS,
    PlotObject,
    PlotSpec,
    add_labels,
    default_params,
    validate_params,
)

logger = logging.getLogger(__name__)

ERR_MSG_UNSUPPORTED_CHART_KIND_F = read_config("messages")["errors"][
    "unsupported_chart_kind_f"
]
ERR_MSG_RESPONSE_REQUIRED_F = read_config("messages")["errors"]["response_required_f"]
ERR_MSG_RESPONSE_NOT_ALLOWED_F = read_config("messages")["errors"][
    "response_not_allowed_f"
]
ERR_MSG_EXPLANATORY_REQUIRED = read_config("messages")["errors"]["explanatory_required"]
ERR_MSG_TYPE_MISMATCH_F = read_config("messages")["errors"]["type_mismatch_f"]
ERR_MSG_LITERAL_TYPE_MISMATCH_F = read_config("messages")["errors"][
    "literal_type_mismatch_f"
]
ERR_MSG_DUPLICATE_AESTHETIC_F = read_config("messages")["errors"][
    "duplicate_aesthetic_f"
]

LABEL_KEYS = ("title", "xlabel", "ylabel", "caption")


def resolve_chart_kind(kind: str) -> str:
    """Canonicalise a chart kind (``'scatter'`` -> ``'point'``)."""
    kind = convert_from_alias(kind, CHART_KINDS, path="chart_kind")
    validate_string_flag(
        kind,
        CHART_KINDS,
        ERR_MSG_UNSUPPORTED_CHART_KIND_F.format(kind, tuple(CHART_KINDS)),
    )
    return kind


def _as_dataset(dataset) -> Dataset:
    if isinstance(dataset, Dataset):
        return dataset
    if isinstance(dataset, pd.DataFrame):
        return Dataset(dataset)
    raise TypeError(
        f"'dataset' must be a Dataset or a pandas DataFrame, got {type(dataset).__name__}."
    )


def _check_kind(dataset: Dataset, column: str, role: str, expected: str) -> None:
    if expected == "numeric" and not dataset.is_numeric(column):
        raise TypeMismatchError(
            ERR_MSG_TYPE_MISMATCH_F.format(
                role, "numeric", column, dataset.column_kind(column)
            )
        )


def _check_variables(kind: str, dataset: Dataset, response, explanatory) -> None:
    rules = CHART_KINDS[kind]
    if rules["response"] == "required" and response is None:
        raise ValueError(ERR_MSG_RESPONSE_REQUIRED_F.format(kind))
    if rules["response"] == "forbidden" and response is not None:
        raise ValueError(ERR_MSG_RESPONSE_NOT_ALLOWED_F.format(kind, response))
    dataset.require(explanatory, parameter="explanatory")
    if response is not None:
        dataset.require(response, parameter="response")
        if rules["numeric_response"]:
            _check_kind(dataset, response, "response", "numeric")
    if rules["numeric_explanatory"] or (kind == "boxplot" and response is None):
        _check_kind(dataset, explanatory, "explanatory", "numeric")


def _check_grouping(kind: str, dataset: Dataset, aesthetics: Mapping[str, Any]) -> None:
    """Grouped kinds split rows by colour/fill, so those must be discrete."""
    if not CHART_KINDS[kind]["grouped"]:
        return
    for role in ("color", "fill"):
        column = column_reference(aesthetics.get(role))
        if column is None:
            continue
        dataset.require(column, parameter=role)
        if dataset.column_kind(column) not in DISCRETE_KINDS:
            raise TypeMismatchError(
                ERR_MSG_TYPE_MISMATCH_F.format(
                    f"{role} ({kind})",
                    "categorical or boolean",
                    column,
                    dataset.column_kind(column),
                )
            )


def _split_keywords(aesthetics, kwargs: dict) -> tuple[dict, dict]:
    """Move aesthetic roles given as keywords into `aesthetics`."""
    merged = dict(aesthetics or {})
    roles = {
        convert_from_alias(role, SUPPORTED_AESTHETICS, path="aesthetic") for role in merged
    }
    params = {}
    for key, value in kwargs.items():
        role = convert_from_alias(key, SUPPORTED_AESTHETICS, path="aesthetic")
        if role not in SUPPORTED_AESTHETICS:
            params[key] = value
            continue
        if role in roles:
            raise ValueError(ERR_MSG_DUPLICATE_AESTHETIC_F.format(key))
        merged[key] = value
        roles.add(role)
    return merged, params


def _check_literals(kind: str, aesthetics: Mapping[str, Any]) -> None:
    for role in CHART_KINDS[kind]["literal_aesthetics"]:
        value = aesthetics.get(role)
        if column_reference(value) is not None:
            raise TypeMismatchError(
                ERR_MSG_LITERAL_TYPE_MISMATCH_F.format(
                    f"{role} ({kind})", "a literal value", value
                )
            )


def render(
    kind: str,
    dataset,
    response: Optional[str] = None,
    explanatory: Optional[str] = None,
    aesthetics: Optional[Mapping[str, Any]] = None,
    **kwargs,
) -> PlotObject:
    """
    Build a plot object.

    Parameters
    ----------
    kind : str
        Chart kind: ``'point'``, ``'jitter'``, ``'density'``,
        ``'histogram'``, ``'boxplot'``, ``'lm'`` or ``'smooth'``. Aliases
        such as ``'scatter'``, ``'hist'``, ``'box'``, ``'linear'`` and
        ``'loess'`` are accepted.
    dataset : Dataset or pandas.DataFrame
        Source table. A DataFrame is wrapped in a Dataset with inferred
        column kinds.
    response : str, optional
        Variable on the y-axis, or a whole formula (``"SalePrice ~
        GrLivArea"``, ``"~ SalePrice"``) in which case `explanatory` must be
        omitted.
    explanatory : str, optional
        Variable on the x-axis. Required unless given through a formula.
    aesthetics : Mapping[str, Any], optional
        Aesthetic role -> literal or column reference. Literals apply to
        every observation (``{"color": "navy", "alpha": 0.2}``); column
        references (``col("KitchenQual")`` or ``"~KitchenQual"``) map a
        column through a discrete or continuous scale.
        Aesthetic roles may also be passed as keywords
        (``render("point", ds, "y ~ x", alpha=0.2)``); a role given both
        ways raises ValueError.

    Other Parameters
    ----------------
    figsize : tuple[float, float], default=(10, 6)
        Figure size in inches (Plotly converts to pixels).
    palette : str or list, optional
        Seaborn palette for discrete colour scales and the colour cycle.
    cmap : str, optional
        Colormap for continuous colour scales, default ``'viridis'``.
    style : str, optional
        Seaborn style applied while drawing.
    nan_policy : {'include', 'drop', 'raise'}, default='include'
        Rows missing a plotted value are kept but not drawn (``'include'``),
        removed (``'drop'``, logged at INFO) or rejected (``'raise'``).
    bins : int, default=30
        Histogram bins.
    jitter_width, jitter_height : float, optional
        Jitter amplitude; defaults to 40% of the data resolution.
    seed : int, optional
        Random seed for jitter.
    frac : float, default=2/3
        LOWESS span of ``smooth`` charts.
    plot_kws : dict, optional
        Forwarded to the underlying drawing call of the engine.
    verbose : bool, default=False
        Log construction steps at INFO level.

    Returns
    -------
    PlotObject

    Raises
    ------
    ValueError
        Unknown chart kind or aesthetic role, missing response or explanatory
        variable, response given to a univariate kind, malformed formula,
        unknown or invalid parameter, or an aesthetic given twice.
    MissingFieldError
        A variable or aesthetic refers to a column not in the dataset.
    TypeMismatchError
        A variable or aesthetic column of the wrong kind, or a literal of
        the wrong type.
    ParameterOutOfRangeError
        ``alpha`` outside [0, 1] or a non-positive ``size``.

    Examples
    --------
    >>> from formulaplot import read_csv, render
    >>> houses = read_csv("ames.csv")  # doctest: +SKIP
    >>> plot = render("point", houses, "SalePrice ~ GrLivArea",
    ...               aesthetics={"color": "~CentralAir"})  # doctest: +SKIP
    >>> plot.n_observations  # doctest: +SKIP
    1460
    """
    aesthetics, kwargs = _split_keywords(aesthetics, kwargs)
    params = default_params(**kwargs)
    if params["verbose"]:
        log_context = temp_log_level(logging.getLogger("formulaplot"), logging.INFO)
    else:
        log_context = contextlib.nullcontext()

    with log_context:
        kind = resolve_chart_kind(kind)
        dataset = _as_dataset(dataset)
        if is_formula(response):
            if explanatory is not None:
                raise ValueError(
                    "Give either a formula or response/explanatory variables, not both."
                )
            response, explanatory = parse_formula(response)
        if explanatory is None:
            raise ValueError(ERR_MSG_EXPLANATORY_REQUIRED)
        validate_params(params)
        _check_variables(kind, dataset, response, explanatory)

        supported = CHART_KINDS[kind]["aesthetics"]
        aesthetics = normalize_aesthetics(aesthetics, supported)
        _check_literals(kind, aesthetics)
        _check_grouping(kind, dataset, aesthetics)

        used = [explanatory] + ([response] if response is not None else [])
        used += [
            c for c in map(column_reference, aesthetics.values())
            if c is not None and c in dataset
        ]
        rows = handle_nan(
            dataset.df,
            params["nan_policy"],
            subset=list(dict.fromkeys(used)),
            data_name=f"{kind} data",
        )
        scales = resolve_aesthetics(
            dataset,
            rows,
            aesthetics,
            palette=params["palette"],
            cmap=params["cmap"],
            supported=supported,
        )
        spec = PlotSpec(
            kind=kind,
            dataset=dataset,
            response=response,
            explanatory=explanatory,
            aesthetics=dict(aesthetics),
            params=params,
        )
        logger.info(
            "%s plot of %s ~ %s over %d rows",
            kind,
            response if response is not None else "",
            explanatory,
            len(rows),
        )
    return PlotObject(spec=spec, rows=rows, scales=scales)


def _formula_plot(kind: str, formula: str, data, kwargs: dict) -> PlotObject:
    """Split label keywords off `kwargs`; the rest goes to :func:`render`."""
    labels = {key: kwargs.pop(key) for key in LABEL_KEYS if key in kwargs}
    plot = render(kind, data, formula, **kwargs)
    if labels:
        plot = add_labels(plot, **labels)
    return plot


def gf_point(formula: str, data, **kwargs) -> PlotObject:
    """
    Scatter plot of ``response ~ explanatory``.

    Parameters
    ----------
    formula : str
        ``"y ~ x"``.
    data : Dataset or pandas.DataFrame
    **kwargs
        Aesthetics (``color``, ``fill``, ``shape``, ``size``, ``alpha`` and
        their aliases), labels (``title``, ``xlabel``, ``ylabel``,
        ``caption``) and styling parameters of :func:`render`.

    Examples
    --------
    >>> gf_point("SalePrice ~ GrLivArea", houses, alpha=0.2)  # doctest: +SKIP
    """
    return _formula_plot("point", formula, data, kwargs)


def gf_jitter(formula: str, data, **kwargs) -> PlotObject:
    """Jittered scatter plot; see :func:`gf_point`. ``seed`` fixes the noise."""
    return _formula_plot("jitter", formula, data, kwargs)


def gf_density(formula: str, data, **kwargs) -> PlotObject:
    """Kernel density of a numeric variable, ``"~ x"``."""
    return _formula_plot("density", formula, data, kwargs)


def gf_histogram(formula: str, data, **kwargs) -> PlotObject:
    """Histogram of a numeric variable, ``"~ x"``; ``bins`` sets the bin count."""
    return _formula_plot("histogram", formula, data, kwargs)


def gf_boxplot(formula: str, data, **kwargs) -> PlotObject:
    """
    Box plot of a numeric response by the levels of the explanatory variable.

    ``"y ~ group"`` draws one box per group; ``"~ y"`` draws a single box.
    """
    return _formula_plot("boxplot", formula, data, kwargs)


def gf_lm(formula: str, data, **kwargs) -> PlotObject:
    """Least squares line of ``y ~ x``, one per colour group; a literal ``size`` sets the width."""
    return _formula_plot("lm", formula, data, kwargs)


def gf_smooth(formula: str, data, **kwargs) -> PlotObject:
    """LOWESS curve of ``y ~ x``; ``frac`` sets the span."""
    return _formula_plot("smooth", formula, data, kwargs)
