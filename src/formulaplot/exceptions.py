"""
Exception types raised by formulaplot.

Each error derives from the built-in exception a caller would naturally
catch (``KeyError`` for an unknown column, ``TypeError`` for a column of the
wrong kind, ``ValueError`` for out-of-range parameters), so code written
against plain pandas/matplotlib conventions keeps working.

Classes
-------
FormulaplotError
    Base class for all formulaplot errors.
MissingFieldError
    A plot specification references a column that the dataset does not have.
TypeMismatchError
    A column (or literal) has the wrong kind for the role it is used in.
ParameterOutOfRangeError
    A numeric parameter such as ``alpha`` lies outside its allowed range.
FormulaError
    A formula string could not be parsed.

Notes
-----
Missing input files raise the built-in ``FileNotFoundError``.
"""


class FormulaplotError(Exception):
    """Base class for all formulaplot errors."""


class MissingFieldError(FormulaplotError, KeyError):
    """
    Raised when a column is not present in the dataset.

    Parameters
    ----------
    message : str
        Human-readable description.
    column : str, optional
        The missing column.
    parameter : str, optional
        The parameter that referenced the column (e.g. ``"color"``).
    """

    def __init__(self, message, column=None, parameter=None):
        super().__init__(message)
        self.message = message
        self.column = column
        self.parameter = parameter

    def __str__(self):
        # KeyError would otherwise repr() the message
        return self.message


class TypeMismatchError(FormulaplotError, TypeError):
    """Raised when a column or literal value has the wrong kind for its role."""


class ParameterOutOfRangeError(FormulaplotError, ValueError):
    """Raised when a numeric parameter lies outside its allowed range."""


class FormulaError(FormulaplotError, ValueError):
    """Raised when a formula string is malformed."""
