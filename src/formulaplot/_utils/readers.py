"""
Configuration reading utilities.

This module reads the JSON configuration files shipped with formulaplot
(error and warning templates, alias tables). Results are cached so that the
many module-level message constants do not re-read the same file.

Methods
-------
read_config
    Read and cache a JSON configuration file from the package's config directory.

Examples
--------
>>> from formulaplot._utils import read_config

>>> read_config("messages")["errors"]["alpha_out_of_range_f"]
"'alpha' must lie in [0, 1], got {}."
"""

import json
import pathlib
from functools import lru_cache


@lru_cache(maxsize=2)
def read_config(name) -> dict:
    """
    Read and cache JSON configuration files.

    Parameters
    ----------
    name : str
        The name of the configuration file (without .json extension).
        File is located at `config/{name}.json` relative to the package root.

    Returns
    -------
    dict
        The parsed JSON content of the configuration file.

    Raises
    ------
    FileNotFoundError
        If the requested configuration file does not exist.

    Notes
    -----
    - The cache size is set to 2 because formulaplot ships exactly two
      configuration files: ``messages`` and ``aliases``.
    """
    path = pathlib.Path(__file__).resolve().parent.parent / f"config/{name}.json"
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)
