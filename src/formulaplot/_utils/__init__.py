"""
Internal utilities for formulaplot.

This module provides low-level helpers for configuration reading, alias
resolution, validation, NaN handling and logging. These are internal APIs
and may change without notice.

Methods
-------
convert_from_alias(arg, default_values, path)
    Convert a string alias into its canonical (default) configuration value.
convert_series(data, name)
    Convert a sequence-like input into a pandas Series.
validate_string_flag(arg, supported_values, err_msg)
    Validate a string flag against a set of supported values.
validate_at_least_one_exist(values, err_msg)
    Validate that at least one element in the iterable is not ``None``.
validate_lengths_match(array1, array2, err_msg)
    Validate that two sequences have matching lengths.
handle_nan(data, nan_policy, supported_policy, subset, data_name)
    Handles NaN values in a DataFrame according to a specified policy.
temp_log_level(logger, level)
    Temporarily sets the logging level of a logger within a context.
read_config(name)
    Read and cache JSON configuration files.
"""

from .conversion import convert_from_alias, convert_series
from .helpers import handle_nan, temp_log_level
from .readers import read_config
from .validation import (
    validate_at_least_one_exist,
    validate_lengths_match,
    validate_string_flag,
)

__all__ = [
    "convert_from_alias",
    "convert_series",
    "validate_at_least_one_exist",
    "validate_lengths_match",
    "validate_string_flag",
    "handle_nan",
    "temp_log_level",
    "read_config",
]
