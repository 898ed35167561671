"""
Conversion utilities for input standardization.

Methods
-------
convert_from_alias(arg, default_values, path)
    Convert a string alias into its canonical (default) configuration value.
convert_series(data, name)
    Convert a sequence-like input into a pandas Series.

Examples
--------
>>> from formulaplot._utils import convert_from_alias

>>> convert_from_alias("scatter", path="chart_kind")
'point'
>>> convert_from_alias("Colour", path="aesthetic")
'color'
"""

from typing import Any, Hashable, Iterable, Sequence

import numpy as np
import pandas as pd

from .readers import read_config


def convert_from_alias(arg: str, default_values: Iterable = None, path: str = "global"):
    """
    Convert a string alias into its canonical (default) configuration value.

    Parameters
    ----------
    arg : str
        Input string to convert. The function is case-insensitive.
    default_values : Iterable, optional
        Subset of default values to restrict the search domain.
        If ``None`` (default), lookup is performed across the entire
        alias set for the specified path.
    path : str, default='global'
        Section name in the alias configuration, e.g. ``"chart_kind"`` or
        ``"aesthetic"``.

    Returns
    -------
    str
        Canonical name corresponding to the alias.
        If no matching alias is found, returns the input argument unchanged.

    Raises
    ------
    KeyError
        If the specified alias section ``path`` does not exist in the configuration.
    """
    alias_dict = read_config("aliases")

    if path not in alias_dict:
        raise KeyError(f"Aliases path '{path}' not found in configuration.")
    if not isinstance(arg, str):
        return arg

    arg_lower = arg.strip().lower()
    if default_values is None:
        for default_value, aliases in alias_dict[path].items():
            if arg_lower in aliases:
                return default_value
    else:
        for default_value in default_values:
            if default_value in alias_dict[path]:
                if arg_lower in alias_dict[path][default_value]:
                    return default_value
    return arg


def convert_series(data: Sequence[Any], name: Hashable = None) -> pd.Series:
    """
    Convert an input sequence into a one-dimensional pandas Series.

    Series are copied, NumPy arrays must be one-dimensional and scalars are
    rejected.

    Parameters
    ----------
    data : Sequence or pandas.Series or numpy.ndarray
        The values to convert.
    name : Hashable, optional
        Name given to the resulting Series. Keeps the existing name of a
        Series when omitted.

    Returns
    -------
    pandas.Series

    Raises
    ------
    ValueError
        If `data` has more than one dimension.
    TypeError
        If `data` is a scalar or a string.
    """
    if isinstance(data, pd.Series):
        series = data.copy()
        if name is not None:
            series.name = name
        return series
    if isinstance(data, (str, bytes)) or np.isscalar(data):
        raise TypeError(
            f"Expected a sequence of values, got {type(data).__name__}."
        )
    if np.ndim(data) > 1:
        raise ValueError(
            read_config("messages")["errors"]["multidimensional_data_f"].format(
                np.ndim(data)
            )
        )
    return pd.Series(list(data), name=name)
