"""
Internal infrastructure for the renderer: defaults, themes, saving.

Functions
---------
save_plot(fig, directory, overwrite, plot_name, engine, verbose)
    Save a Matplotlib or Plotly figure to disk.
resolve_plot_path(directory, plot_name, engine)
    Turn a directory or file path into a file path plus extension.
validate_file_format(ext, engine)
    Check that an extension can be written by the engine.
get_empty_plot(message, figsize, engine)
    Placeholder figure shown when there is nothing to draw.
temp_plot_theme(palette, style)
    Temporarily apply a seaborn style and colour palette.
to_plotly_color(color)
    Convert a Matplotlib colour to a Plotly ``rgba(...)`` string.

Notes
-----
This module is internal to formulaplot.
"""

import contextlib
import logging
from contextlib import ExitStack, contextmanager
from pathlib import Path
from typing import Sequence

import matplotlib.pyplot as plt
import seaborn as sns
from matplotlib.colors import to_rgba
from plotly.graph_objects import Figure as PxFigure

from formulaplot._utils import read_config, temp_log_level

logger = logging.getLogger(__name__)

DEFAULT_MPL_PLOT_PARAMS = {
    "figsize": (10, 6),
    "style": None,
    "palette": None,
    "cmap": None,
    "nan_policy": "include",
    "plot_kws": {},
    "verbose": False,
}

# pixels per inch when a Matplotlib figsize is reused for Plotly
PLOTLY_DPI = 100

WRN_MSG_EMPTY_DATA_F = read_config("messages")["warns"]["Renderer"]["empty_data_f"]

SUPPORTED_FORMATS = {
    "matplotlib": {
        "png",
        "jpg",
        "jpeg",
        "svg",
        "pdf",
        "eps",
        "pgf",
        "ps",
        "raw",
        "rgba",
        "svgz",
        "tif",
        "tiff",
        "webp",
    },
    "plotly": {"html"},
}


def validate_file_format(ext: str, engine: str):
    """
    Validate that a file extension is supported by the engine.

    Raises
    ------
    ValueError
        If the extension is not supported for the given engine.
    """
    if ext not in SUPPORTED_FORMATS[engine]:
        supported = ", ".join(sorted(SUPPORTED_FORMATS[engine]))
        raise ValueError(
            f"Unsupported file format '{ext}' for engine '{engine}'. "
            f"Supported formats are: {supported}."
        )


def resolve_plot_path(directory: str | Path, plot_name: str, engine: str):
    """
    Resolve the absolute file path and extension for a plot.

    A path without extension is treated as a directory and gets
    ``{plot_name}.png`` (Matplotlib) or ``{plot_name}.html`` (Plotly).

    Returns
    -------
    tuple[Path, str]
        Absolute path including filename, and the extension without dot.
    """
    path = Path(directory).absolute()
    if path.suffix == "":
        path = path / (f"{plot_name}.html" if engine == "plotly" else f"{plot_name}.png")
    return path, path.suffix.lower()[1:]


def save_plot(
    fig: plt.Figure | PxFigure,
    directory: str | Path = ".",
    overwrite: bool = True,
    plot_name: str = "plot",
    engine: str = "matplotlib",
    verbose: bool = False,
) -> Path:
    """
    Save a Matplotlib or Plotly figure to disk.

    Parameters
    ----------
    fig : matplotlib.figure.Figure or plotly.graph_objects.Figure
        Figure to save; its type must match `engine`.
    directory : str or pathlib.Path, default="."
        File path (with extension) or directory (without extension).
    overwrite : bool, default=True
        If False, an existing file raises FileExistsError.
    plot_name : str, default="plot"
        File stem used when `directory` has no extension. Cannot be empty.
    engine : {'matplotlib', 'plotly'}, default='matplotlib'
        Matplotlib figures are written with ``savefig`` in any static format
        Matplotlib supports; Plotly figures are written as HTML.
    verbose : bool, default=False
        If True, logs the output path at INFO level.

    Returns
    -------
    pathlib.Path
        The written file.

    Raises
    ------
    TypeError
        If `fig` does not match `engine`.
    ValueError
        If `plot_name` or `directory` is empty, the engine is unknown, or
        the file format is unsupported.
    FileExistsError
        If the file exists and `overwrite` is False.
    PermissionError
        If the file cannot be written.
    """
    log_context = (
        temp_log_level(logging.getLogger("formulaplot"), logging.INFO)
        if verbose
        else contextlib.nullcontext()
    )
    if engine not in SUPPORTED_FORMATS:
        raise ValueError(
            f"Invalid 'engine' parameter: {engine}. "
            f"Supported engines are 'matplotlib' and 'plotly'."
        )
    expected = plt.Figure if engine == "matplotlib" else PxFigure
    if not isinstance(fig, expected):
        logger.error(
            "Failed to save '%s' to %s: expected %s figure, got %s.",
            plot_name,
            directory,
            engine,
            type(fig).__name__,
        )
        raise TypeError(
            f"Expected a {engine} figure object, got {type(fig).__name__}."
        )
    if not isinstance(directory, (str, Path)):
        logger.error("Invalid directory type: %s", type(directory).__name__)
        raise TypeError(
            f"'directory' must be a str or pathlib.Path, got {type(directory).__name__}."
        )
    if str(directory).strip() == "":
        err_msg = "Directory path must not be empty."
        logger.error(err_msg)
        raise ValueError(err_msg)
    if plot_name == "":
        err_msg = "The 'plot_name' cannot be empty."
        logger.error(err_msg)
        raise ValueError(err_msg)

    path, file_format = resolve_plot_path(directory, plot_name, engine)
    validate_file_format(file_format, engine)
    try:
        if not path.parent.exists():
            path.parent.mkdir(parents=True)
            logger.warning("Directory '%s' was created automatically.", path.parent)
        if path.exists() and not overwrite:
            logger.error(
                "Attempted to save plot to existing path without "
                "'overwrite=True'. Path: %s",
                path,
            )
            raise FileExistsError(
                f"Attempted to save plot to existing path "
                f"without 'overwrite=True'. Path: {path}"
            )
        if engine == "matplotlib":
            fig.savefig(path)
        else:
            fig.write_html(path)
    except PermissionError as e:
        logger.error("Permission denied saving '%s' to %s: %s", plot_name, path, e)
        raise
    with log_context:
        logger.info("'%s' saved to %s", plot_name, path)
    return path


def get_empty_plot(
    message: str = "No data available for visualization",
    figsize: Sequence[float] = (10, 6),
    engine: str = "matplotlib",
):
    """
    Generate a placeholder empty plot with a centered message.

    Returns
    -------
    tuple[Figure, Axes] or plotly.graph_objects.Figure
        ``(fig, ax)`` for Matplotlib, a Plotly figure for Plotly. `figsize`
        is in inches for both; Plotly converts it to pixels.
    """
    if engine == "plotly":
        fig = PxFigure()
        fig.add_annotation(
            text=message,
            x=0.5,
            y=0.5,
            xref="paper",
            yref="paper",
            showarrow=False,
            font={"size": 16, "color": "gray"},
        )
        fig.update_layout(
            template="simple_white",
            xaxis={"visible": False},
            yaxis={"visible": False},
            width=figsize[0] * PLOTLY_DPI,
            height=figsize[1] * PLOTLY_DPI,
        )
        return fig
    fig, ax = plt.subplots(figsize=figsize)
    ax.text(
        0.5,
        0.5,
        message,
        ha="center",
        va="center",
        transform=ax.transAxes,
        fontsize=12,
        color="gray",
        style="italic",
    )
    return fig, ax


@contextmanager
def temp_plot_theme(palette=None, style: str = None):
    """
    Temporarily set the seaborn style and colour palette.

    Parameters
    ----------
    palette : str or list of colors, optional
        Seaborn palette name or list of colours; sets the colour cycle.
    style : str, optional
        Seaborn style (e.g. ``"whitegrid"``).

    Examples
    --------
    >>> with temp_plot_theme(style="whitegrid", palette="Set2"):  # doctest: +SKIP
    ...     gf_point("SalePrice ~ GrLivArea", houses).draw()
    """
    contexts = []
    if style is not None:
        contexts.append(sns.axes_style(style))
    if palette is not None:
        contexts.append(sns.color_palette(palette))
    if not contexts:
        contexts.append(contextlib.nullcontext())

    with ExitStack() as stack:
        for ctx in contexts:
            stack.enter_context(ctx)
        yield


def to_plotly_color(color) -> str:
    """
    Convert a Matplotlib colour to a Plotly ``rgba(r, g, b, a)`` string.

    Examples
    --------
    >>> to_plotly_color("navy")
    'rgba(0, 0, 128, 1.0)'
    """
    r, g, b, a = to_rgba(color)
    return f"rgba({round(r * 255)}, {round(g * 255)}, {round(b * 255)}, {a})"
