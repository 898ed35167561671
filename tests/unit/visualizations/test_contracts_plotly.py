import plotly.graph_objects as go
import pytest

from formulaplot import (
    gf_boxplot, gf_density, gf_histogram, gf_jitter, gf_lm, gf_point, gf_smooth)
from formulaplot.visualizations._utils import PLOTLY_DPI

SHORTCUTS = [
    (gf_point, "y ~ x", go.Scatter),
    (gf_jitter, "y ~ group", go.Scatter),
    (gf_density, "~ y", go.Scatter),
    (gf_histogram, "~ y", go.Histogram),
    (gf_boxplot, "y ~ group", go.Box),
    (gf_lm, "y ~ x", go.Scatter),
    (gf_smooth, "y ~ x", go.Scatter),
]


@pytest.mark.parametrize("shortcut, formula, trace_type", SHORTCUTS)
def test_plotly_every_kind(numbers, shortcut, formula, trace_type):
    result = shortcut(formula, numbers, title="Interactive").draw(engine="plotly")
    assert isinstance(result.figure, go.Figure)
    assert result.axes is None
    assert result.engine == "plotly"
    assert (result.width, result.height) == (10 * PLOTLY_DPI, 6 * PLOTLY_DPI)
    assert result.figure.layout.title.text == "Interactive"
    assert len(result.figure.data) >= 1
    assert isinstance(result.figure.data[0], trace_type)


@pytest.mark.parametrize("shortcut, formula, trace_type", SHORTCUTS)
def test_plotly_empty_input(numbers, shortcut, formula, trace_type):
    plot = shortcut(formula, numbers.filter("x < 0"))
    with pytest.warns(UserWarning, match="is empty"):
        result = plot.draw(engine="plotly")
    assert len(result.figure.data) == 0
    assert len(result.figure.layout.annotations) == 1


def test_plotly_point_alpha_and_color(houses):
    result = gf_point("SalePrice ~ GrLivArea", houses, alpha=0.2, color="navy").draw(
        engine="plotly")
    trace = result.figure.data[0]
    assert trace.opacity == 0.2
    assert set(trace.marker.color) == {"rgba(0, 0, 128, 1.0)"}
    assert list(trace.x) == houses.column("GrLivArea").tolist()


def test_plotly_point_column_color_and_legend(houses):
    result = gf_point("SalePrice ~ GrLivArea", houses, color="~KitchenQual").draw(
        engine="plotly")
    data_trace, *legend_traces = result.figure.data
    assert len(set(data_trace.marker.color)) == 3
    assert [t.name for t in legend_traces] == ["Ex", "Gd", "TA"]


def test_plotly_continuous_color_has_colorbar(houses):
    result = gf_point("SalePrice ~ GrLivArea", houses, color="~LotArea").draw(
        engine="plotly")
    assert any(t.marker.showscale for t in result.figure.data)


def test_plotly_facets(houses):
    result = (gf_point("SalePrice ~ GrLivArea", houses)
              .facet_grid("KitchenQual ~ CentralAir")
              .draw(engine="plotly"))
    assert result.extra_info["n_panels"] == 6
    titles = [a.text for a in result.figure.layout.annotations]
    assert "KitchenQual: Gd | CentralAir: True" in titles


def test_plotly_facet_wrap_hides_unused_slots(houses):
    result = (gf_histogram("~ SalePrice", houses)
              .facet_wrap("KitchenQual", ncol=2)
              .draw(engine="plotly"))
    layout = result.figure.layout
    # panels Ex, Gd on the first row and TA alone on the second
    assert layout.xaxis4.visible is False
    assert layout.yaxis4.visible is False
    assert layout.xaxis2.title.text == "SalePrice"
    assert layout.xaxis2.showticklabels is True
    assert layout.xaxis3.title.text == "SalePrice"
    assert layout.xaxis.title.text is None


def test_plotly_trend_lines(numbers):
    result = (gf_point("y ~ x", numbers)
              .trend("linear", linestyle="--")
              .draw(engine="plotly"))
    lines = [t for t in result.figure.data if t.mode == "lines"]
    assert len(lines) == 1
    assert lines[0].line.dash == "dash"


def test_plotly_grouped_legend_shown_once(numbers):
    result = (gf_lm("y ~ x", numbers, color="~group")
              .facet_grid(col="flag")
              .draw(engine="plotly"))
    shown = [t.name for t in result.figure.data if t.showlegend]
    assert sorted(shown) == ["a", "b"]


def test_plotly_save_html(numbers, tmp_path):
    gf_histogram("~ y", numbers).save(str(tmp_path), engine="plotly")
    assert (tmp_path / "histogram.html").exists()
