import logging

import numpy as np
import pandas as pd
import pytest

from formulaplot import MissingFieldError, TypeMismatchError, render
from formulaplot.data import Dataset, infer_column_kind, read_csv

# tests for dataset.infer_column_kind()

@pytest.mark.parametrize("series, expected", [
    (pd.Series([1, 2, 3]), "integer"),
    (pd.Series([1.5, 2.0]), "real"),
    (pd.Series([1.0, np.nan, 3.0]), "integer"),
    (pd.Series([1.5, np.nan]), "real"),
    (pd.Series([True, False]), "boolean"),
    (pd.Series(["NAmes", "Edwards"]), "categorical"),
    (pd.Series(["a", "b"], dtype="category"), "categorical"),
])
def test_infer_column_kind(series, expected):
    assert infer_column_kind(series) == expected

# tests for Dataset construction and loading

def test_read_csv_kinds(houses_csv):
    ds = read_csv(houses_csv)
    assert len(ds) == 20
    assert ds.n_rows == 20
    assert ds.kinds["SalePrice"] == "integer"
    assert ds.kinds["KitchenQual"] == "categorical"
    assert ds.kinds["CentralAir"] == "boolean"
    assert ds.columns[0] == "SalePrice"


def test_read_csv_logs_load(houses_csv, caplog):
    with caplog.at_level(logging.INFO, logger="formulaplot"):
        Dataset.from_csv(houses_csv)
    assert any("Loaded 20 rows and 8 columns" in m for m in caplog.messages)


def test_read_csv_missing_file(tmp_path, caplog):
    with pytest.raises(FileNotFoundError, match="could not be found"):
        read_csv(tmp_path / "missing.csv")
    assert any("missing.csv" in m for m in caplog.messages)


def test_explicit_kinds_with_aliases(houses_csv):
    ds = read_csv(houses_csv, kinds={"OverallQual": "factor", "LotArea": "float"})
    assert ds.column_kind("OverallQual") == "categorical"
    assert isinstance(ds.column("OverallQual").dtype, pd.CategoricalDtype)
    assert ds.column_kind("LotArea") == "real"
    assert not ds.is_numeric("OverallQual")


def test_explicit_kinds_unknown_column():
    with pytest.raises(MissingFieldError, match="'nope'"):
        Dataset({"a": [1]}, kinds={"nope": "integer"})


def test_explicit_kinds_unsupported():
    with pytest.raises(ValueError, match="Unsupported column kind"):
        Dataset({"a": [1]}, kinds={"a": "date"})


@pytest.mark.parametrize("values, kind", [
    (["x", "y", "z"], "real"),
    (["1", "two", "3"], "integer"),
    ([1.0, 2.5, 3.0], "integer"),
])
def test_explicit_numeric_kinds_are_checked(values, kind):
    with pytest.raises(TypeMismatchError, match=f"Column 'a' cannot be declared {kind}"):
        Dataset({"a": values}, kinds={"a": kind})


def test_explicit_numeric_kinds_convert_text():
    ds = Dataset({"a": ["1.5", "2", None], "b": ["1", "2", "3"]},
                 kinds={"a": "real", "b": "int"})
    assert ds.column("a").tolist()[:2] == [1.5, 2.0]
    assert pd.api.types.is_float_dtype(ds.column("a").dtype)
    assert pd.api.types.is_integer_dtype(ds.column("b").dtype)
    assert render("histogram", ds, "~ a").n_observations == 3


def test_dataset_copies_input():
    df = pd.DataFrame({"a": [1, 2]})
    ds = Dataset(df)
    df.loc[0, "a"] = 100
    assert ds.column("a").tolist() == [1, 2]
    ds.df.loc[0, "a"] = 50
    assert ds.column("a").tolist() == [1, 2]


def test_require_and_contains(houses):
    assert "SalePrice" in houses
    assert "Price" not in houses
    houses.require("SalePrice", "GrLivArea")
    with pytest.raises(MissingFieldError) as exc_info:
        houses.require("SalePrice", "Price", parameter="response")
    assert exc_info.value.column == "Price"
    assert exc_info.value.parameter == "response"
    assert "Available columns" in str(exc_info.value)
    # MissingFieldError is also a KeyError
    with pytest.raises(KeyError):
        houses.column("Price")

# tests for Dataset.filter()

def test_filter_query_leaves_source_unchanged(houses):
    small = houses.filter("BedroomAbvGr < 3")
    assert len(small) == 8
    assert len(houses) == 20
    assert small.kinds == houses.kinds


def test_filter_mask_and_callable(houses):
    by_mask = houses.filter(houses.column("CentralAir") == False)  # noqa: E712
    assert len(by_mask) == 1
    by_callable = houses.filter(lambda df: df["SalePrice"] > 250000)
    assert sorted(by_callable.column("SalePrice")) == [279500, 307000, 345000]


def test_filter_unknown_column(houses):
    with pytest.raises(MissingFieldError):
        houses.filter("Bedrooms < 3")


def test_filter_mask_length_mismatch(houses):
    with pytest.raises(ValueError, match="filter mask"):
        houses.filter([True, False])

# tests for Dataset.mutate()

def test_mutate_callable_and_scalar(houses):
    mutated = houses.mutate(
        PricePerSqFt=lambda df: df["SalePrice"] / df["GrLivArea"],
        Size=lambda df: np.where(df["GrLivArea"] > 1500, "large", "small"),
        Source="ames",
    )
    assert "PricePerSqFt" not in houses
    assert mutated.column_kind("PricePerSqFt") == "real"
    assert mutated.column_kind("Size") == "categorical"
    assert set(mutated.column("Source")) == {"ames"}
    assert mutated.column_kind("SalePrice") == "integer"


def test_mutate_sees_earlier_columns(houses):
    mutated = houses.mutate(
        Area=lambda df: df["GrLivArea"] * 2,
        HalfArea=lambda df: df["Area"] / 2,
    )
    assert mutated.column("HalfArea").tolist() == houses.column("GrLivArea").tolist()


def test_mutate_after_filter_aligns_index(houses):
    small = houses.filter("BedroomAbvGr < 3")
    mutated = small.mutate(Rank=list(range(len(small))))
    assert mutated.column("Rank").tolist() == list(range(8))


def test_mutate_length_mismatch(houses):
    with pytest.raises(ValueError, match="'Rank' has 2 values, but the dataset has 20 rows"):
        houses.mutate(Rank=[1, 2])


def test_filter_then_mutate_leaves_original(houses):
    before = houses.df
    houses.filter("BedroomAbvGr < 3").mutate(SalePrice=0)
    pd.testing.assert_frame_equal(houses.df, before)

# tests for Dataset.as_categorical()

def test_as_categorical(houses):
    ds = houses.as_categorical("OverallQual")
    assert ds.column_kind("OverallQual") == "categorical"
    assert houses.column_kind("OverallQual") == "integer"
    with pytest.raises(MissingFieldError):
        houses.as_categorical("Quality")
