"""
Data validation utilities.

Methods
-------
validate_string_flag(arg, supported_values, err_msg)
    Validate that a string flag is among a set of supported values.
validate_at_least_one_exist(values, err_msg)
    Ensure that at least one element in an iterable is not ``None``.
validate_lengths_match(array1, array2, err_msg)
    Check that two sequences have the same number of elements.

Examples
--------
>>> from formulaplot._utils import validate_string_flag

>>> validate_string_flag("hexbin", {"point", "density"},
...                      err_msg="Unsupported chart kind 'hexbin'.")
Traceback (most recent call last):
    ...
ValueError: Unsupported chart kind 'hexbin'.
"""

from typing import Iterable, Sized


def validate_string_flag(
    arg: str, supported_values: Iterable[str], err_msg: str
) -> None:
    """
    Validate a string flag against a set of supported values.

    Parameters
    ----------
    arg : str
        The string flag to validate.
    supported_values : Iterable[str]
        All supported flag values.
    err_msg : str
        The error message used in the raised ``ValueError`` if validation fails.

    Raises
    ------
    ValueError
        If `arg` is not found in `supported_values`.
    """
    if arg not in supported_values:
        raise ValueError(err_msg)


def validate_at_least_one_exist(values: Iterable, err_msg: str) -> None:
    """
    Validate that at least one element in the iterable is not ``None``.

    Parameters
    ----------
    values : Iterable
        Iterable of elements to check.
    err_msg : str
        Error message to be used in the raised ``ValueError`` if
        validation fails.

    Raises
    ------
    ValueError
        If all elements in ``values`` are ``None``.
    """
    if all(value is None for value in values):
        raise ValueError(err_msg)


def validate_lengths_match(array1: Sized, array2: Sized, err_msg: str) -> None:
    """
    Validate that two sequences have the same number of elements.

    Raises
    ------
    ValueError
        If the lengths differ.
    """
    if len(array1) != len(array2):
        raise ValueError(err_msg)
