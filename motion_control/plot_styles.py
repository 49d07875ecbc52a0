"""Shared plotting utilities and styles for motion control visualizations.

This module provides:
- CSV data loading functions
- Common plot styling functions
- Figure creation and saving helpers
"""

import csv
from pathlib import Path
from typing import Dict, List, Tuple

import matplotlib.pyplot as plt
import numpy as np
from matplotlib.axes import Axes

from .config import COLOR_ACCENT, COLOR_ACTUAL, COLOR_PATH, COLOR_RAIL

__all__ = [
    "COLOR_ACCENT",
    "COLOR_ACTUAL",
    "COLOR_PATH",
    "COLOR_RAIL",
    "load_csv_data",
    "load_csv_to_dict",
    "style_axis",
    "add_legend",
    "create_figure",
    "save_figure",
]


# ============================================================================
# CSV Data Loading
# ============================================================================


def load_csv_data(filepath: Path) -> Tuple[List[str], List[List[str]]]:
    """Load CSV file and return headers and data rows.

    Raises:
        FileNotFoundError: If the CSV file does not exist.
    """
    if not filepath.exists():
        raise FileNotFoundError(f"CSV file not found: {filepath}")

    with open(filepath, newline="") as f:
        reader = csv.reader(f)
        headers = next(reader)
        data_rows = list(reader)

    return headers, data_rows


def load_csv_to_dict(csv_path: Path) -> Dict[str, np.ndarray]:
    """Load CSV file into dictionary of numpy arrays.

    Numeric values become floats; non-numeric or empty values become NaN.

    Args:
        csv_path: Path to CSV file.

    Returns:
        Dictionary mapping column names to numpy arrays.

    Raises:
        FileNotFoundError: If the CSV file does not exist.

    Example:
        >>> data = load_csv_to_dict(Path("follower_data.csv"))
        >>> data["left_power"].shape
        (117,)
    """
    if not csv_path.exists():
        raise FileNotFoundError(f"CSV file not found: {csv_path}")

    with open(csv_path, newline="") as f:
        reader = csv.DictReader(f)
        data: Dict[str, List[float]] = {key: [] for key in reader.fieldnames or []}
        for row in reader:
            for key, value in row.items():
                try:
                    data[key].append(float(value))
                except (ValueError, TypeError):
                    data[key].append(np.nan)

    return {key: np.array(values) for key, values in data.items()}


# ============================================================================
# Plot Styling Functions
# ============================================================================


def style_axis(ax: Axes, title: str = "", xlabel: str = "", ylabel: str = "", grid: bool = True) -> None:
    """Apply consistent styling to a matplotlib axis."""
    if title:
        ax.set_title(title, fontweight="bold")
    if xlabel:
        ax.set_xlabel(xlabel)
    if ylabel:
        ax.set_ylabel(ylabel)
    if grid:
        ax.grid(True, alpha=0.3, linestyle="--", linewidth=0.5)


def add_legend(ax: Axes, loc: str = "best", **kwargs) -> None:
    """Add a legend with the package's framing; kwargs override the defaults."""
    legend_kwargs = {
        "loc": loc,
        "framealpha": 0.9,
        "edgecolor": COLOR_RAIL,
    }
    legend_kwargs.update(kwargs)
    ax.legend(**legend_kwargs)


# ============================================================================
# Figure Creation Helpers
# ============================================================================


def create_figure(
    nrows: int = 1, ncols: int = 1, figsize: Tuple[float, float] = (12, 8), title: str = ""
) -> Tuple[plt.Figure, np.ndarray]:
    """Create a figure and a flat array of its axes.

    Example:
        >>> fig, axes = create_figure(1, 2, figsize=(10, 6), title="Results")
    """
    fig, axes = plt.subplots(nrows, ncols, figsize=figsize, squeeze=False)
    if title:
        fig.suptitle(title, fontsize=14, fontweight="bold")
    return fig, axes.ravel()


def save_figure(fig: plt.Figure, filepath: Path, dpi: int = 150, bbox_inches: str = "tight") -> None:
    """Save figure with consistent settings."""
    fig.savefig(filepath, dpi=dpi, bbox_inches=bbox_inches)
    print(f"Saved figure to {filepath}")
