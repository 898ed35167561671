import numpy as np
import pandas as pd
import pytest
from matplotlib.colors import to_rgba

from formulaplot import (
    MissingFieldError, ParameterOutOfRangeError, TypeMismatchError, col)
from formulaplot.data import Dataset
from formulaplot.aesthetics import (
    MARKERS, NA_COLOR, SIZE_RANGE, levels_of, normalize_aesthetics,
    resolve_aesthetics)


def resolve(dataset, **aesthetics):
    return resolve_aesthetics(dataset, dataset.df, aesthetics)

# tests for aesthetics.normalize_aesthetics()

def test_normalize_aesthetics_aliases():
    normalized = normalize_aesthetics(
        {"colour": "navy", "opacity": 0.5, "marker": "o", "fill": None})
    assert normalized == {"color": "navy", "alpha": 0.5, "shape": "o"}


def test_normalize_aesthetics_unsupported():
    with pytest.raises(ValueError, match="Unsupported aesthetic 'linetype'"):
        normalize_aesthetics({"linetype": "dashed"})
    with pytest.raises(ValueError, match="Unsupported aesthetic 'shape'"):
        normalize_aesthetics({"shape": "o"}, supported=("color", "alpha"))

# tests for literal aesthetics

def test_literal_color_is_uniform(houses):
    scales = resolve(houses, color="navy")
    assert scales["color"].scale == "identity"
    assert not scales["color"].is_mapped
    assert scales["color"].value == to_rgba("navy")
    assert set(scales["color"].values_for(houses.df.index)) == {to_rgba("navy")}


def test_literal_color_never_a_column():
    # a column named like a colour is still not referenced by a bare string
    ds = Dataset({"navy": ["a", "b"], "y": [1, 2]})
    assert resolve(ds, color="navy")["color"].scale == "identity"
    assert resolve(ds, color="~navy")["color"].scale == "discrete"
    assert resolve(ds, color=col("navy"))["color"].column == "navy"


def test_literal_color_invalid(houses):
    with pytest.raises(TypeMismatchError, match="'color' expects a colour"):
        resolve(houses, color="not-a-colour")


@pytest.mark.parametrize("alpha", [0, 0.2, 1, 1.0])
def test_literal_alpha_in_range(houses, alpha):
    assert resolve(houses, alpha=alpha)["alpha"].value == float(alpha)


@pytest.mark.parametrize("alpha", [-0.1, 1.5, 2])
def test_literal_alpha_out_of_range(houses, alpha):
    with pytest.raises(ParameterOutOfRangeError, match=r"'alpha' must lie in \[0, 1\]"):
        resolve(houses, alpha=alpha)


@pytest.mark.parametrize("alpha", ["0.5", True])
def test_literal_alpha_wrong_type(houses, alpha):
    with pytest.raises(TypeMismatchError):
        resolve(houses, alpha=alpha)


def test_literal_size_and_shape(houses):
    scales = resolve(houses, size=40, shape="^")
    assert scales["size"].value == 40.0
    assert scales["shape"].value == "^"
    with pytest.raises(ParameterOutOfRangeError):
        resolve(houses, size=0)
    with pytest.raises(TypeMismatchError):
        resolve(houses, shape="not-a-marker")

# tests for column aesthetics

def test_discrete_color_distinct_per_level(houses):
    scale = resolve(houses, color="~KitchenQual")["color"]
    assert scale.scale == "discrete"
    assert scale.levels == ["Ex", "Gd", "TA"]
    assert len(set(scale.mapping.values())) == 3
    values = scale.values_for(houses.df.index)
    quality = houses.column("KitchenQual").tolist()
    for level, value in zip(quality, values):
        assert value == scale.mapping[level]


def test_boolean_column_is_discrete(houses):
    scale = resolve(houses, fill=col("CentralAir"))["fill"]
    assert scale.scale == "discrete"
    assert scale.levels == [False, True]


def test_integer_column_is_continuous(houses):
    scale = resolve(houses, color="~OverallQual")["color"]
    assert scale.scale == "continuous"
    assert scale.norm.vmin == 4
    assert scale.norm.vmax == 9
    assert scale.cmap.name == "viridis"


def test_as_categorical_switches_scale(houses):
    scale = resolve(houses.as_categorical("OverallQual"), color="~OverallQual")["color"]
    assert scale.scale == "discrete"
    assert scale.levels == [4, 5, 6, 7, 8, 9]


def test_continuous_color_missing_values_grey():
    ds = Dataset({"v": [1.0, np.nan, 3.5]})
    values = resolve(ds, color="~v")["color"].values_for(ds.df.index)
    assert values[1] == NA_COLOR
    assert values[0] != values[2]


def test_shape_column(houses):
    scale = resolve(houses, shape="~KitchenQual")["shape"]
    assert scale.mapping == {"Ex": MARKERS[0], "Gd": MARKERS[1], "TA": MARKERS[2]}
    with pytest.raises(TypeMismatchError, match="'shape' expects a categorical or boolean column"):
        resolve(houses, shape="~GrLivArea")


def test_shape_column_too_many_levels():
    ds = Dataset({"name": [f"n{i}" for i in range(len(MARKERS) + 1)]})
    with pytest.raises(ValueError, match="marker shapes"):
        resolve(ds, shape="~name")


def test_size_column_scales(houses):
    continuous = resolve(houses, size="~LotArea")["size"]
    sizes = continuous.values_for(houses.df.index)
    assert min(sizes) == pytest.approx(SIZE_RANGE[0])
    assert max(sizes) == pytest.approx(SIZE_RANGE[1])
    discrete = resolve(houses, size="~KitchenQual")["size"]
    assert sorted(discrete.mapping.values()) == list(np.linspace(*SIZE_RANGE, 3))


def test_alpha_column_not_supported(houses):
    with pytest.raises(TypeMismatchError):
        resolve(houses, alpha="~OverallQual")


def test_missing_column(houses):
    with pytest.raises(MissingFieldError, match="'Quality' referenced by 'color'"):
        resolve(houses, color="~Quality")


def test_palette_smaller_than_levels_warns():
    ds = Dataset({"name": [f"n{i}" for i in range(5)]})
    with pytest.warns(UserWarning, match="exceeds the 2 colors"):
        resolve_aesthetics(ds, ds.df, {"color": "~name"}, palette=["red", "blue"])

# tests for aesthetics.levels_of()

def test_levels_of_orders():
    assert levels_of(pd.Series(["b", "a", None, "b"])) == ["a", "b"]
    cat = pd.Series(["lo", "hi"], dtype=pd.CategoricalDtype(["lo", "mid", "hi"]))
    assert levels_of(cat) == ["lo", "hi"]
    assert levels_of(pd.Series([1, "a"], dtype=object)) == [1, "a"]
