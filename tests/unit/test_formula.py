import pytest

from formulaplot import FormulaError
from formulaplot.formula import (
    as_column_reference, is_formula, parse_facet_formula, parse_formula)

# tests for formula.parse_formula()

@pytest.mark.parametrize("formula, expected", [
    ("SalePrice ~ GrLivArea", ("SalePrice", "GrLivArea")),
    ("SalePrice~GrLivArea", ("SalePrice", "GrLivArea")),
    ("~ GrLivArea", (None, "GrLivArea")),
    ("~GrLivArea", (None, "GrLivArea")),
    ("`Sale Price` ~ `Living Area`", ("Sale Price", "Living Area")),
])
def test_parse_formula(formula, expected):
    parsed = parse_formula(formula)
    assert tuple(parsed) == expected
    assert parsed.explanatory == expected[1]


@pytest.mark.parametrize("formula", [
    "SalePrice",
    "SalePrice ~ GrLivArea ~ LotArea",
    "SalePrice ~",
    "SalePrice ~ GrLivArea + LotArea",
    "Sale Price ~ GrLivArea",
])
def test_parse_formula_malformed(formula):
    with pytest.raises(FormulaError, match="Malformed formula"):
        parse_formula(formula)


def test_parse_formula_is_value_error():
    with pytest.raises(ValueError):
        parse_formula(42)

# tests for formula.parse_facet_formula()

@pytest.mark.parametrize("formula, expected", [
    ("KitchenQual ~ CentralAir", ("KitchenQual", "CentralAir")),
    (". ~ CentralAir", (None, "CentralAir")),
    ("KitchenQual ~ .", ("KitchenQual", None)),
    ("~ CentralAir", (None, "CentralAir")),
])
def test_parse_facet_formula(formula, expected):
    assert parse_facet_formula(formula) == expected


def test_parse_facet_formula_both_empty():
    with pytest.raises(FormulaError, match="at least one side"):
        parse_facet_formula(". ~ .")

# tests for formula.as_column_reference() and is_formula()

def test_as_column_reference():
    assert as_column_reference("~Neighborhood") == "Neighborhood"
    assert as_column_reference(" ~ Neighborhood") == "Neighborhood"
    assert as_column_reference("navy") is None
    assert as_column_reference(0.2) is None


def test_is_formula():
    assert is_formula("y ~ x")
    assert not is_formula("y")
    assert not is_formula(None)
