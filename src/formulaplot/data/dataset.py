"""
Immutable tabular dataset used as plotting input.

A :class:`Dataset` wraps a pandas DataFrame and records the *kind* of each
column (``categorical``, ``integer``, ``real`` or ``boolean``). The kind
decides whether a column mapped to an aesthetic gets a discrete palette or a
continuous gradient, so it is a property of the data rather than of any
plotting call.

Every derivation (:meth:`Dataset.filter`, :meth:`Dataset.mutate`,
:meth:`Dataset.as_categorical`) returns a new, independent Dataset; the
source is never modified.

Classes
-------
Dataset
    Table of observations with per-column kinds.

Functions
---------
read_csv(path, **read_csv_kws)
    Load a comma-separated file into a Dataset.
infer_column_kind(series)
    Infer the kind of a single column from its content.

Examples
--------
>>> from formulaplot.data import read_csv
>>> houses = read_csv("AmesHousing.csv")  # doctest: +SKIP
>>> small = houses.filter("BedroomAbvGr < 3")  # doctest: +SKIP
>>> small = small.mutate(  # doctest: +SKIP
...     Size=lambda df: df["GrLivArea"].gt(1500).map({True: "large", False: "small"})
... )
>>> len(small) <= len(houses)  # doctest: +SKIP
True
"""

import logging
from pathlib import Path
from typing import Any, Callable, Hashable, Mapping, Sequence, Union

import numpy as np
import pandas as pd

from formulaplot._utils import (
    convert_from_alias,
    convert_series,
    read_config,
    validate_lengths_match,
    validate_string_flag,
)
from formulaplot.exceptions import MissingFieldError, TypeMismatchError
from formulaplot.types import COLUMN_KINDS, NUMERIC_KINDS, ColumnKind

logger = logging.getLogger(__name__)

ERR_MSG_MISSING_FIELD_F = read_config("messages")["errors"]["missing_field_f"]
ERR_MSG_MISSING_FILE_F = read_config("messages")["errors"]["missing_file_f"]
ERR_MSG_KIND_CONVERSION_F = read_config("messages")["errors"]["kind_conversion_f"]
ERR_MSG_MUTATE_LENGTH_MISMATCH_F = read_config("messages")["errors"][
    "mutate_length_mismatch_f"
]

BOOLEAN_TOKENS = {
    "true": True,
    "false": False,
    "t": True,
    "f": False,
    "yes": True,
    "no": False,
    "y": True,
    "n": False,
}

Condition = Union[str, Sequence[bool], pd.Series, Callable[[pd.DataFrame], Any]]


def _as_boolean(series: pd.Series) -> pd.Series | None:
    """Return `series` as a nullable boolean column if every value is a token."""
    values = series.dropna()
    if values.empty:
        return None
    lowered = values.astype(str).str.strip().str.lower()
    if not lowered.isin(BOOLEAN_TOKENS.keys()).all():
        return None
    converted = pd.Series(pd.NA, index=series.index, dtype="boolean")
    converted.loc[values.index] = lowered.map(BOOLEAN_TOKENS).astype("boolean")
    return converted


def _as_numeric(series: pd.Series, column: str, kind: str) -> pd.Series:
    """Convert a column declared `integer` or `real`, failing on non-numbers."""
    if isinstance(series.dtype, pd.CategoricalDtype):
        series = series.astype(object)
    if pd.api.types.is_bool_dtype(series.dtype):
        return series
    try:
        converted = pd.to_numeric(series, errors="raise")
    except (ValueError, TypeError) as exc:
        raise TypeMismatchError(
            ERR_MSG_KIND_CONVERSION_F.format(column, kind, exc)
        ) from exc
    present = converted.dropna()
    if kind == "integer" and not (present == np.floor(present)).all():
        raise TypeMismatchError(
            ERR_MSG_KIND_CONVERSION_F.format(
                column, kind, "it holds non-integral values"
            )
        )
    return converted


def infer_column_kind(series: pd.Series) -> ColumnKind:
    """
    Infer the kind of a column from its dtype.

    Parameters
    ----------
    series : pandas.Series
        The column to inspect.

    Returns
    -------
    {'categorical', 'integer', 'real', 'boolean'}

    Examples
    --------
    >>> infer_column_kind(pd.Series([1, 2, 3]))
    'integer'
    >>> infer_column_kind(pd.Series([1.5, None]))
    'real'
    >>> infer_column_kind(pd.Series(["NAmes", "Edwards"]))
    'categorical'
    """
    if pd.api.types.is_bool_dtype(series.dtype):
        return "boolean"
    if pd.api.types.is_integer_dtype(series.dtype):
        return "integer"
    if pd.api.types.is_float_dtype(series.dtype):
        non_missing = series.dropna()
        # integer columns with missing values are read as float by pandas
        if (
            not non_missing.empty
            and isinstance(series.dtype, np.dtype)
            and np.all(np.mod(non_missing.to_numpy(), 1) == 0)
            and series.isna().any()
        ):
            return "integer"
        return "real"
    return "categorical"


class Dataset:
    """
    Immutable table of observations with per-column kinds.

    Parameters
    ----------
    data : pandas.DataFrame or Mapping[str, Sequence]
        The observations. The frame is copied on construction.
    kinds : Mapping[str, str], optional
        Explicit kinds for some columns (aliases such as ``'factor'`` or
        ``'float'`` are accepted). Remaining columns are inferred with
        :func:`infer_column_kind`; text columns holding only boolean-like
        tokens (``yes``/``no``, ``true``/``false``, ``y``/``n``) are
        converted to a nullable boolean dtype.

    Attributes
    ----------
    columns : list[str]
        Column names, in table order.
    kinds : dict[str, str]
        Mapping column -> kind.

    Raises
    ------
    MissingFieldError
        If `kinds` names a column that is not in `data`.
    ValueError
        If `kinds` contains an unsupported kind.
    TypeMismatchError
        If a column declared ``integer`` or ``real`` holds values that are
        not numbers (or, for ``integer``, not whole numbers).

    Examples
    --------
    >>> ds = Dataset({"SalePrice": [208500, 181500], "CentralAir": ["Y", "N"]})
    >>> ds.kinds
    {'SalePrice': 'integer', 'CentralAir': 'boolean'}
    >>> len(ds)
    2
    """

    def __init__(
        self,
        data: pd.DataFrame | Mapping[str, Sequence],
        kinds: Mapping[str, str] = None,
    ):
        df = data.copy() if isinstance(data, pd.DataFrame) else pd.DataFrame(data)
        df.columns = [str(c) for c in df.columns]
        explicit = {}
        for column, kind in (kinds or {}).items():
            if column not in df.columns:
                raise MissingFieldError(
                    ERR_MSG_MISSING_FIELD_F.format(column, "kinds", list(df.columns)),
                    column=column,
                    parameter="kinds",
                )
            kind = convert_from_alias(kind, COLUMN_KINDS, path="column_kind")
            validate_string_flag(
                kind,
                COLUMN_KINDS,
                err_msg=f"Unsupported column kind '{kind}'. Choose from: {COLUMN_KINDS}.",
            )
            explicit[column] = kind

        resolved = {}
        for column in df.columns:
            if column in explicit:
                kind = explicit[column]
                if kind == "categorical" and (
                    pd.api.types.is_numeric_dtype(df[column].dtype)
                    or pd.api.types.is_bool_dtype(df[column].dtype)
                ):
                    df[column] = df[column].astype("category")
                elif kind in NUMERIC_KINDS:
                    df[column] = _as_numeric(df[column], column, kind)
                elif kind == "boolean" and not pd.api.types.is_bool_dtype(
                    df[column].dtype
                ):
                    as_bool = _as_boolean(df[column])
                    df[column] = (
                        as_bool if as_bool is not None else df[column].astype("boolean")
                    )
            else:
                kind = infer_column_kind(df[column])
                if kind == "categorical":
                    as_bool = _as_boolean(df[column])
                    if as_bool is not None:
                        df[column] = as_bool
                        kind = "boolean"
            resolved[column] = kind

        self._df = df
        self._kinds = resolved

    @classmethod
    def from_csv(cls, path: str | Path, kinds: Mapping[str, str] = None,
                 **read_csv_kws) -> "Dataset":
        """
        Load a comma-separated file with a header row.

        Parameters
        ----------
        path : str or pathlib.Path
            Location of the CSV file.
        kinds : Mapping[str, str], optional
            Explicit column kinds, see :class:`Dataset`.
        **read_csv_kws
            Forwarded to :func:`pandas.read_csv`.

        Returns
        -------
        Dataset

        Raises
        ------
        FileNotFoundError
            If `path` does not exist.
        """
        path = Path(path)
        if not path.is_file():
            err_msg = ERR_MSG_MISSING_FILE_F.format(path)
            logger.error(err_msg)
            raise FileNotFoundError(err_msg)
        df = pd.read_csv(path, **read_csv_kws)
        dataset = cls(df, kinds=kinds)
        logger.info(
            "Loaded %d rows and %d columns from %s", len(dataset),
            len(dataset.columns), path
        )
        return dataset

    def _derive(self, df: pd.DataFrame, kinds: Mapping[str, str] = None) -> "Dataset":
        kept = {c: k for c, k in self._kinds.items() if c in df.columns}
        kept.update(kinds or {})
        return Dataset(df, kinds=kept)

    @property
    def df(self) -> pd.DataFrame:
        """A copy of the underlying DataFrame."""
        return self._df.copy()

    @property
    def columns(self) -> list[str]:
        return list(self._df.columns)

    @property
    def kinds(self) -> dict[str, str]:
        return dict(self._kinds)

    @property
    def n_rows(self) -> int:
        return len(self._df)

    def __len__(self):
        return len(self._df)

    def __contains__(self, column: Hashable):
        return column in self._kinds

    def __repr__(self):
        kinds = ", ".join(f"{c}: {k}" for c, k in self._kinds.items())
        return f"Dataset({len(self)} rows; {kinds})"

    def require(self, *names: str, parameter: str = "column") -> None:
        """
        Check that every name is a column of this dataset.

        Raises
        ------
        MissingFieldError
            For the first name that is not a column.
        """
        for name in names:
            if name not in self._kinds:
                raise MissingFieldError(
                    ERR_MSG_MISSING_FIELD_F.format(name, parameter, self.columns),
                    column=name,
                    parameter=parameter,
                )

    def column_kind(self, name: str) -> str:
        """Kind of column `name`."""
        self.require(name)
        return self._kinds[name]

    def is_numeric(self, name: str) -> bool:
        """True if column `name` is an integer or real column."""
        return self.column_kind(name) in NUMERIC_KINDS

    def column(self, name: str) -> pd.Series:
        """A copy of column `name`."""
        self.require(name)
        return self._df[name].copy()

    def head(self, n: int = 5) -> pd.DataFrame:
        return self._df.head(n).copy()

    def filter(self, condition: Condition) -> "Dataset":
        """
        Keep only the rows matching `condition`.

        Parameters
        ----------
        condition : str, Sequence[bool], pandas.Series or Callable
            - str: a :meth:`pandas.DataFrame.query` expression,
              e.g. ``"BedroomAbvGr < 3"``.
            - boolean sequence/Series aligned with the rows.
            - callable taking the DataFrame and returning such a mask.

        Returns
        -------
        Dataset
            A new dataset with at most as many rows as this one. Column
            kinds carry over.

        Raises
        ------
        MissingFieldError
            If a query string references an unknown column.
        ValueError
            If a mask has the wrong length.
        """
        if isinstance(condition, str):
            try:
                df = self._df.query(condition)
            except pd.errors.UndefinedVariableError as exc:
                raise MissingFieldError(
                    ERR_MSG_MISSING_FIELD_F.format(
                        str(exc).split("'")[1] if "'" in str(exc) else condition,
                        "filter",
                        self.columns,
                    ),
                    parameter="filter",
                ) from exc
        else:
            mask = condition(self.df) if callable(condition) else condition
            mask = convert_series(mask)
            validate_lengths_match(
                mask,
                self._df,
                ERR_MSG_MUTATE_LENGTH_MISMATCH_F.format(
                    "filter mask", len(mask), len(self._df)
                ),
            )
            mask = mask.fillna(False).astype(bool).to_numpy()
            df = self._df.loc[mask]
        logger.debug("filter kept %d of %d rows", len(df), len(self._df))
        return self._derive(df)

    def mutate(self, **columns: Any) -> "Dataset":
        """
        Add or replace columns.

        Parameters
        ----------
        **columns
            ``name=value`` pairs. A value may be a callable receiving a copy
            of the DataFrame (columns added earlier in the same call are
            visible), a sequence with one value per row, or a scalar.

        Returns
        -------
        Dataset
            A new dataset; kinds of the new columns are inferred.

        Raises
        ------
        ValueError
            If a sequence does not have one value per row.
        """
        df = self._df.copy()
        replaced = set()
        for name, value in columns.items():
            if callable(value):
                value = value(df.copy())
            if np.isscalar(value) or value is None:
                df[name] = value
            else:
                series = convert_series(value, name=name)
                validate_lengths_match(
                    series,
                    df,
                    ERR_MSG_MUTATE_LENGTH_MISMATCH_F.format(name, len(series), len(df)),
                )
                df[name] = series.set_axis(df.index)
            replaced.add(name)
        kept = {c: k for c, k in self._kinds.items() if c not in replaced}
        return Dataset(df, kinds=kept)

    def as_categorical(self, *names: str) -> "Dataset":
        """
        Declare columns categorical.

        This is how a numeric code (e.g. ``OverallQual``) is turned into a
        factor so that aesthetics mapped to it use a discrete palette.

        Raises
        ------
        MissingFieldError
            If a name is not a column.
        """
        self.require(*names, parameter="as_categorical")
        return self._derive(self._df, kinds={name: "categorical" for name in names})


def read_csv(path: str | Path, kinds: Mapping[str, str] = None, **read_csv_kws) -> Dataset:
    """Load a comma-separated file into a :class:`Dataset`."""
    return Dataset.from_csv(path, kinds=kinds, **read_csv_kws)
