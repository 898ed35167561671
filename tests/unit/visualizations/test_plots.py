import logging

import numpy as np
import pandas as pd
import pytest

from formulaplot import (
    MissingFieldError, ParameterOutOfRangeError, TypeMismatchError, col,
    gf_boxplot, gf_density, gf_histogram, gf_jitter, gf_lm, gf_point,
    gf_smooth, render)
from formulaplot.visualizations.plots import resolve_chart_kind

# tests for plots.resolve_chart_kind()

@pytest.mark.parametrize("kind, expected", [
    ("point", "point"), ("scatter", "point"), ("hist", "histogram"),
    ("box", "boxplot"), ("linear", "lm"), ("loess", "smooth"), ("KDE", "density"),
])
def test_resolve_chart_kind(kind, expected):
    assert resolve_chart_kind(kind) == expected


def test_resolve_chart_kind_unsupported():
    with pytest.raises(ValueError, match="Unsupported chart kind 'violin'"):
        resolve_chart_kind("violin")

# tests for plots.render()

def test_render_binds_all_rows(houses):
    plot = render("point", houses, "SalePrice", "GrLivArea")
    assert plot.n_observations == len(houses) == 20
    assert plot.x == "GrLivArea"
    assert plot.y == "SalePrice"
    assert plot.kind == "point"
    pd.testing.assert_frame_equal(plot.data, houses.df)


def test_render_formula_in_response_position(houses):
    plot = render("scatter", houses, "SalePrice ~ GrLivArea")
    assert (plot.y, plot.x) == ("SalePrice", "GrLivArea")
    with pytest.raises(ValueError, match="either a formula"):
        render("point", houses, "SalePrice ~ GrLivArea", "LotArea")


def test_render_accepts_dataframe(houses):
    plot = render("histogram", houses.df, explanatory="SalePrice")
    assert plot.n_observations == 20
    with pytest.raises(TypeError, match="must be a Dataset or a pandas DataFrame"):
        render("histogram", houses.df.to_dict(), explanatory="SalePrice")


def test_render_requires_explanatory(houses):
    with pytest.raises(ValueError, match="explanatory variable is required"):
        render("density", houses)


@pytest.mark.parametrize("kind", ["point", "jitter", "lm", "smooth"])
def test_render_response_required(houses, kind):
    with pytest.raises(ValueError, match=f"Chart kind '{kind}' requires a response"):
        render(kind, houses, explanatory="GrLivArea")


@pytest.mark.parametrize("kind", ["density", "histogram"])
def test_render_univariate_rejects_response(houses, kind):
    with pytest.raises(ValueError, match="univariate"):
        render(kind, houses, "SalePrice ~ GrLivArea")


def test_render_boxplot_response_optional(houses):
    assert render("boxplot", houses, "~ SalePrice").y is None
    assert render("boxplot", houses, "SalePrice ~ KitchenQual").x == "KitchenQual"


@pytest.mark.parametrize("kind, formula, match", [
    ("point", "KitchenQual ~ GrLivArea", "'response' expects a numeric column"),
    ("lm", "SalePrice ~ KitchenQual", "'explanatory' expects a numeric column"),
    ("smooth", "CentralAir ~ GrLivArea", "column 'CentralAir' is boolean"),
    ("density", "~ Neighborhood", "'explanatory' expects a numeric column"),
    ("histogram", "~ KitchenQual", "'explanatory' expects a numeric column"),
    ("boxplot", "KitchenQual ~ SalePrice", "'response' expects a numeric column"),
    ("boxplot", "~ KitchenQual", "'explanatory' expects a numeric column"),
])
def test_render_type_mismatch(houses, kind, formula, match):
    with pytest.raises(TypeMismatchError, match=match):
        render(kind, houses, formula)


def test_render_point_with_categorical_explanatory(houses):
    plot = render("point", houses, "SalePrice ~ KitchenQual")
    assert plot.x == "KitchenQual"


@pytest.mark.parametrize("formula, parameter", [
    ("Price ~ GrLivArea", "response"),
    ("SalePrice ~ Area", "explanatory"),
])
def test_render_missing_variable(houses, formula, parameter):
    with pytest.raises(MissingFieldError, match=f"referenced by '{parameter}'"):
        render("point", houses, formula)


def test_render_aesthetic_validation_is_eager(houses):
    with pytest.raises(ParameterOutOfRangeError):
        render("point", houses, "SalePrice ~ GrLivArea", aesthetics={"alpha": 1.2})
    with pytest.raises(MissingFieldError):
        render("point", houses, "SalePrice ~ GrLivArea", aesthetics={"color": "~Quality"})
    with pytest.raises(ValueError, match="Unsupported aesthetic 'shape'"):
        render("histogram", houses, "~ SalePrice", aesthetics={"shape": "o"})


def test_render_grouped_kinds_need_discrete_color(houses):
    with pytest.raises(TypeMismatchError, match="categorical or boolean"):
        render("lm", houses, "SalePrice ~ GrLivArea", aesthetics={"color": "~LotArea"})
    plot = render("lm", houses, "SalePrice ~ GrLivArea", aesthetics={"color": "~CentralAir"})
    assert plot.scale("color").scale == "discrete"
    # point charts map numeric columns continuously
    plot = render("point", houses, "SalePrice ~ GrLivArea", aesthetics={"color": col("LotArea")})
    assert plot.scale("color").scale == "continuous"


def test_render_nan_policy():
    df = pd.DataFrame({"y": [1.0, 2.0, np.nan, 4.0], "x": [1.0, np.nan, 3.0, 4.0]})
    assert render("point", df, "y ~ x").n_observations == 4
    assert render("point", df, "y ~ x", nan_policy="drop").n_observations == 2
    with pytest.raises(ValueError, match="contains NaN values"):
        render("point", df, "y ~ x", nan_policy="raise")


def test_render_nan_policy_covers_aesthetic_columns():
    df = pd.DataFrame({"y": [1.0, 2.0, 3.0], "x": [1.0, 2.0, 3.0], "g": ["a", None, "b"]})
    plot = render("point", df, "y ~ x", aesthetics={"color": "~g"}, nan_policy="drop")
    assert plot.n_observations == 2


def test_render_invalid_params(houses):
    with pytest.raises(ValueError, match="'bins' must be a positive integer"):
        render("histogram", houses, "~ SalePrice", bins=0)
    with pytest.raises(ValueError, match="figsize"):
        render("histogram", houses, "~ SalePrice", figsize=(1, 2, 3))


def test_render_aesthetic_keywords_are_mapped(houses):
    plot = render("point", houses, "SalePrice ~ GrLivArea", opacity=0.3, color="~CentralAir")
    assert plot.scale("alpha").value == 0.3
    assert plot.scale("color").column == "CentralAir"
    assert "alpha" not in plot.params and "color" not in plot.params
    with pytest.raises(ParameterOutOfRangeError, match=r"'alpha' must lie in \[0, 1\]"):
        render("point", houses, "SalePrice ~ GrLivArea", alpha=1.5, color="red")


def test_render_aesthetic_given_twice(houses):
    with pytest.raises(ValueError, match="'colour' is given both as a keyword"):
        render("point", houses, "SalePrice ~ GrLivArea",
               aesthetics={"color": "navy"}, colour="red")


@pytest.mark.parametrize("build", [
    lambda ds: render("point", ds, "SalePrice ~ GrLivArea", shpae="~KitchenQual"),
    lambda ds: gf_point("SalePrice ~ GrLivArea", ds, colr="navy"),
    lambda ds: gf_histogram("~ SalePrice", ds, bin=10),
])
def test_render_unknown_parameter(houses, build):
    with pytest.raises(ValueError, match="Unknown parameter"):
        build(houses)


@pytest.mark.parametrize("params, match", [
    ({"frac": 5}, "'frac' must lie in"),
    ({"frac": 0}, "'frac' must lie in"),
    ({"jitter_width": -0.1}, "'jitter_width' must be a non-negative number"),
    ({"jitter_height": "wide"}, "'jitter_height' must be a non-negative number"),
    ({"seed": -1}, "'seed' must be None or a non-negative integer"),
    ({"seed": 1.5}, "'seed' must be None or a non-negative integer"),
])
def test_render_invalid_chart_params(houses, params, match):
    with pytest.raises(ValueError, match=match):
        render("smooth", houses, "SalePrice ~ GrLivArea", **params)


def test_render_line_size_must_be_literal(numbers):
    with pytest.raises(TypeMismatchError, match=r"'size \(lm\)' expects a literal value"):
        gf_lm("y ~ x", numbers, size="~group", color="~group")
    with pytest.raises(TypeMismatchError, match=r"'size \(smooth\)'"):
        gf_smooth("y ~ x", numbers, size=col("weight"))
    assert gf_lm("y ~ x", numbers, size=3).scale("size").value == 3.0


def test_render_verbose_logs(houses, caplog):
    with caplog.at_level(logging.DEBUG):
        logging.getLogger("formulaplot").setLevel(logging.WARNING)
        render("point", houses, "SalePrice ~ GrLivArea")
        assert not any("point plot of" in m for m in caplog.messages)
        render("point", houses, "SalePrice ~ GrLivArea", verbose=True)
    assert any("point plot of SalePrice ~ GrLivArea over 20 rows" in m for m in caplog.messages)
    assert logging.getLogger("formulaplot").level == logging.WARNING

# tests for gf_* shortcuts

def test_gf_point_splits_kwargs(houses):
    plot = gf_point("SalePrice ~ GrLivArea", houses, colour="navy", opacity=0.2,
                    title="Sales", figsize=(4, 3))
    assert plot.scale("color").value == pytest.approx((0.0, 0.0, 128 / 255, 1.0))
    assert plot.scale("alpha").value == 0.2
    assert plot.labels.title == "Sales"
    assert plot.params["figsize"] == (4, 3)


@pytest.mark.parametrize("shortcut, formula, kind", [
    (gf_point, "SalePrice ~ GrLivArea", "point"),
    (gf_jitter, "SalePrice ~ KitchenQual", "jitter"),
    (gf_density, "~ SalePrice", "density"),
    (gf_histogram, "~ SalePrice", "histogram"),
    (gf_boxplot, "SalePrice ~ KitchenQual", "boxplot"),
    (gf_lm, "SalePrice ~ GrLivArea", "lm"),
    (gf_smooth, "SalePrice ~ GrLivArea", "smooth"),
])
def test_gf_shortcuts(houses, shortcut, formula, kind):
    plot = shortcut(formula, houses)
    assert plot.kind == kind
    assert plot.n_observations == 20
