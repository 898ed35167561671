"""
Parsing of formula-style variable specifications.

A formula pairs a response with an explanatory variable, ``"y ~ x"``; the
one-sided form ``"~ x"`` describes a univariate plot. Facet formulas use the
same syntax for panel rows and columns, with ``.`` standing for "not faceted
on this axis": ``"KitchenQual ~ ."`` gives one panel row per kitchen
quality, ``". ~ CentralAir"`` one panel column per air-conditioning value.

Functions
---------
parse_formula(formula)
    Split a formula into response and explanatory variable names.
parse_facet_formula(formula)
    Split a facet formula into row and column variable names.
as_column_reference(value)
    Return the column name behind a ``"~name"`` shorthand, or None.

Examples
--------
>>> parse_formula("SalePrice ~ GrLivArea")
Formula(response='SalePrice', explanatory='GrLivArea')
>>> parse_formula("~ GrLivArea")
Formula(response=None, explanatory='GrLivArea')
>>> parse_facet_formula(". ~ CentralAir")
(None, 'CentralAir')
"""

import re
from typing import NamedTuple, Optional

from formulaplot._utils import read_config
from formulaplot.exceptions import FormulaError

ERR_MSG_MALFORMED_FORMULA_F = read_config("messages")["errors"]["malformed_formula_f"]

# backticks allow names with spaces, as in R formulas
_TERM = re.compile(r"^(?:`(?P<quoted>[^`]+)`|(?P<plain>[^\s~+*`]+))$")


class Formula(NamedTuple):
    """Response/explanatory pair of a formula."""

    response: Optional[str]
    explanatory: str


def _parse_term(term: str, formula: str, side: str, allow_dot: bool = False):
    term = term.strip()
    if term == "":
        return None
    if term == "." and allow_dot:
        return None
    match = _TERM.match(term)
    if match is None:
        raise FormulaError(
            ERR_MSG_MALFORMED_FORMULA_F.format(
                formula, f"the {side} side must name a single variable, got '{term}'"
            )
        )
    return match.group("quoted") or match.group("plain")


def _split(formula: str) -> tuple[str, str]:
    if not isinstance(formula, str):
        raise FormulaError(
            ERR_MSG_MALFORMED_FORMULA_F.format(formula, "a formula must be a string")
        )
    if formula.count("~") != 1:
        raise FormulaError(
            ERR_MSG_MALFORMED_FORMULA_F.format(formula, "expected exactly one '~'")
        )
    left, right = formula.split("~")
    return left, right


def is_formula(value) -> bool:
    """True if `value` is a string containing a ``~``."""
    return isinstance(value, str) and "~" in value


def parse_formula(formula: str) -> Formula:
    """
    Split ``"response ~ explanatory"`` into its variable names.

    Parameters
    ----------
    formula : str
        Two-sided (``"y ~ x"``) or one-sided (``"~ x"``) formula. Variable
        names containing spaces can be wrapped in backticks.

    Returns
    -------
    Formula
        Named tuple ``(response, explanatory)``; `response` is None for a
        one-sided formula.

    Raises
    ------
    FormulaError
        If the formula does not contain exactly one ``~``, has no
        explanatory variable, or a side holds more than one term.
    """
    left, right = _split(formula)
    response = _parse_term(left, formula, "left")
    explanatory = _parse_term(right, formula, "right")
    if explanatory is None:
        raise FormulaError(
            ERR_MSG_MALFORMED_FORMULA_F.format(
                formula, "the right side must name the explanatory variable"
            )
        )
    return Formula(response=response, explanatory=explanatory)


def parse_facet_formula(formula: str) -> tuple[Optional[str], Optional[str]]:
    """
    Split ``"row ~ col"`` into facet variable names.

    ``.`` or an empty side leaves that axis unfaceted.

    Raises
    ------
    FormulaError
        If the formula is malformed or both sides are empty.
    """
    left, right = _split(formula)
    row = _parse_term(left, formula, "left", allow_dot=True)
    col = _parse_term(right, formula, "right", allow_dot=True)
    if row is None and col is None:
        raise FormulaError(
            ERR_MSG_MALFORMED_FORMULA_F.format(
                formula, "at least one side must name a facet variable"
            )
        )
    return row, col


def as_column_reference(value) -> Optional[str]:
    """
    Return the column name behind the ``"~name"`` shorthand.

    Examples
    --------
    >>> as_column_reference("~Neighborhood")
    'Neighborhood'
    >>> as_column_reference("navy") is None
    True
    """
    if not isinstance(value, str) or not value.lstrip().startswith("~"):
        return None
    formula = parse_formula(value)
    return formula.explanatory
