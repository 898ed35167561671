"""
General-purpose helpers.

Methods
-------
handle_nan(data, nan_policy, supported_policy, subset, data_name)
    Handles NaN values in a DataFrame according to a specified policy.
temp_log_level(logger, level)
    Temporarily sets the logging level of a logger within a context.

Examples
--------
>>> import pandas as pd
>>> from formulaplot._utils import helpers

>>> df = pd.DataFrame({"x": [1.0, None, 3.0]})
>>> helpers.handle_nan(df, nan_policy="drop")
     x
0  1.0
2  3.0
"""

import logging
from contextlib import contextmanager
from typing import Iterable, Literal, Sequence

import pandas as pd

from .conversion import convert_from_alias
from .readers import read_config
from .validation import validate_string_flag

logger = logging.getLogger(__name__)


def handle_nan(
    data: pd.DataFrame,
    nan_policy: Literal["drop", "raise", "include"],
    supported_policy: Iterable[str] = ("drop", "raise", "include"),
    subset: Sequence[str] = None,
    data_name: str = "data",
) -> pd.DataFrame:
    """
    Handles NaN values in a DataFrame according to a specified policy.

    Parameters
    ----------
    data : pandas.DataFrame
        Input data to process. Never modified in place.
    nan_policy : {'drop', 'raise', 'include'}
        Policy for handling NaN values:
        - 'drop': drop rows with NaNs in `subset`.
        - 'raise': raise ValueError if NaNs are present in `subset`.
        - 'include': keep every row (do nothing).
    supported_policy : Iterable[str], default=('drop', 'raise', 'include')
        nan_policy values that are allowed in the current context.
    subset : Sequence[str], optional
        Columns to inspect. Defaults to all columns.
    data_name : str, default='data'
        Name of the dataset (used in error messages).

    Returns
    -------
    pandas.DataFrame
        DataFrame with NaNs handled according to the policy.

    Raises
    ------
    ValueError
        If `nan_policy` is 'raise' and NaNs are present in the data.
        If `nan_policy` not in `supported_policy`.
    """
    df = data.copy()
    supported_policy = tuple(supported_policy)
    nan_policy = convert_from_alias(nan_policy, supported_policy)
    validate_string_flag(
        nan_policy,
        supported_policy,
        err_msg=(
            f"Unsupported nan_policy: '{nan_policy}'. "
            f"Choose from: {supported_policy}"
        ),
    )
    columns = list(subset) if subset is not None else list(df.columns)

    if nan_policy == "drop":
        n_before = len(df)
        df = df.dropna(axis=0, subset=columns)
        if len(df) < n_before:
            logger.info(
                "Dropped %d of %d rows of %s containing missing values.",
                n_before - len(df),
                n_before,
                data_name,
            )
    elif nan_policy == "raise":
        if df[columns].isna().values.any():
            raise ValueError(
                read_config("messages")["errors"]["array_contains_nans_f"].format(
                    data_name
                )
            )
    # 'include' -> do nothing
    return df


@contextmanager
def temp_log_level(logger, level):
    """
    Temporarily sets the logging level of a logger within a context.

    Parameters
    ----------
    logger : logging.Logger
        The logger whose level will be temporarily changed.
    level : int
        The logging level to set (e.g., logging.INFO, logging.DEBUG).

    Notes
    -----
    After exiting the context, the original log level is always restored,
    even if an exception occurs.
    """
    old_level = logger.level
    logger.setLevel(level)
    try:
        yield
    finally:
        logger.setLevel(old_level)
