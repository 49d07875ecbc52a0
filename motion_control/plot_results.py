#!/usr/bin/env python3
"""
Plots of paths, velocity profiles and recorded follower runs.

Run as a script to visualize a run directory written by ``DataCollector``:

    python -m motion_control.plot_results --run run_20261019_101500 --save
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

import numpy as np
from matplotlib.axes import Axes

from .config import PLOT_SAMPLES, TERM_BLUE, TERM_RESET
from .plot_styles import (
    COLOR_ACCENT,
    COLOR_ACTUAL,
    COLOR_PATH,
    COLOR_RAIL,
    add_legend,
    create_figure,
    load_csv_to_dict,
    save_figure,
    style_axis,
)
from .spline import ParametricCurve
from .velocity_profile import VelocityProfile


def plot_path(
    ax: Axes,
    path: ParametricCurve,
    rail_a: Optional[ParametricCurve] = None,
    rail_b: Optional[ParametricCurve] = None,
    samples: int = PLOT_SAMPLES,
) -> None:
    """Draw a path and, if given, its wheel rails on equal-aspect axes."""
    _, xs, ys = path.sample(samples)
    ax.plot(xs, ys, color=COLOR_PATH, linewidth=2, label="Path")
    for rail, name in ((rail_a, "Rail a"), (rail_b, "Rail b")):
        if rail is not None:
            _, rail_x, rail_y = rail.sample(samples)
            ax.plot(rail_x, rail_y, color=COLOR_RAIL, linestyle="--", linewidth=1, label=name)
    ax.plot(xs[0], ys[0], "o", color=COLOR_PATH)
    ax.set_aspect("equal", adjustable="datalim")
    style_axis(ax, title="Path", xlabel="x (in)", ylabel="y (in)")


def plot_velocity_profile(ax: Axes, profile: VelocityProfile, samples: int = PLOT_SAMPLES) -> None:
    """Draw speed and acceleration of a profile over its duration."""
    t = np.linspace(0.0, max(profile.total_time, 1e-6), samples)
    acceleration = profile.derivative()
    ax.plot(t, [profile.get(value) for value in t], color=COLOR_PATH, label="Speed (in/s)")
    ax.plot(t, [acceleration.get(value) for value in t], color=COLOR_ACCENT, label="Acceleration (in/s²)")
    style_axis(ax, title="Velocity profile", xlabel="Time (s)")
    add_legend(ax)


def plot_run_summary(run_dir: Path, save_plots: bool = False, show_plots: bool = True) -> None:
    """Four-panel summary of a recorded run.

    Args:
        run_dir: Directory containing follower_data.csv and, optionally,
            path_data.csv.
        save_plots: Save the figure as run_summary.png in ``run_dir``.
        show_plots: Display the figure interactively.

    Raises:
        FileNotFoundError: If follower_data.csv is missing.
    """
    import matplotlib.pyplot as plt

    data = load_csv_to_dict(run_dir / "follower_data.csv")
    path_file = run_dir / "path_data.csv"
    path_data = load_csv_to_dict(path_file) if path_file.exists() else None

    fig, axes = create_figure(2, 2, figsize=(14, 10), title=f"Run {run_dir.name}")
    trajectory, powers, heading, progress = axes

    if path_data is not None:
        trajectory.plot(path_data["x"], path_data["y"], color=COLOR_PATH, linewidth=2, label="Path")
        for side in ("rail_a", "rail_b"):
            if not np.all(np.isnan(path_data[f"{side}_x"])):
                trajectory.plot(
                    path_data[f"{side}_x"],
                    path_data[f"{side}_y"],
                    color=COLOR_RAIL,
                    linestyle="--",
                    linewidth=1,
                )
    trajectory.plot(data["x"], data["y"], color=COLOR_ACTUAL, label="Actual")
    trajectory.set_aspect("equal", adjustable="datalim")
    style_axis(trajectory, title="Trajectory", xlabel="x (in)", ylabel="y (in)")
    add_legend(trajectory)

    powers.plot(data["time"], data["left_power"], color=COLOR_PATH, label="Left")
    powers.plot(data["time"], data["right_power"], color=COLOR_ACTUAL, label="Right")
    style_axis(powers, title="Motor powers", xlabel="Time (s)", ylabel="Power")
    add_legend(powers)

    heading.plot(data["time"], data["heading"], color=COLOR_ACTUAL, label="Measured")
    heading.plot(data["time"], data["heading_target"], color=COLOR_PATH, linestyle="--", label="Target")
    style_axis(heading, title="Heading", xlabel="Time (s)", ylabel="Compass (deg)")
    add_legend(heading)

    progress.plot(data["time"], data["distance"], color=COLOR_PATH, label="Distance (in)")
    gain_axis = progress.twinx()
    gain_axis.plot(data["time"], data["gain"], color=COLOR_ACCENT, label="Gain")
    gain_axis.set_ylabel("Gain")
    style_axis(progress, title="Progress", xlabel="Time (s)", ylabel="Distance (in)")
    add_legend(progress, loc="upper left")

    if save_plots:
        save_figure(fig, run_dir / "run_summary.png")
    if show_plots:
        plt.show()
    else:
        plt.close(fig)


def find_latest_run(results_dir: Path) -> Path:
    """Find the most recent run directory.

    Raises:
        FileNotFoundError: If no run directories are found.
    """
    if not results_dir.exists():
        raise FileNotFoundError(f"Results directory not found: {results_dir}")

    run_dirs = sorted(d for d in results_dir.iterdir() if d.is_dir() and d.name.startswith("run_"))
    if not run_dirs:
        raise FileNotFoundError(f"No run directories found in {results_dir}")
    return run_dirs[-1]


def list_available_runs(results_dir: Path) -> None:
    if not results_dir.exists():
        logging.error(f"Results directory not found: {results_dir}")
        return

    run_dirs = sorted(d for d in results_dir.iterdir() if d.is_dir() and d.name.startswith("run_"))
    if not run_dirs:
        logging.info(f"No runs found in {results_dir}")
        return
    logging.info(f"Available runs in {results_dir}:")
    for run_dir in run_dirs:
        logging.info(f"  {run_dir.name}")


def main() -> None:
    """Main entry point for the plotting script."""
    logging.basicConfig(level=logging.INFO, format="%(message)s")

    parser = argparse.ArgumentParser(
        description="Visualize recorded path-following runs",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Plot the most recent run
  python -m motion_control.plot_results

  # Plot a specific run and save the figure next to its data
  python -m motion_control.plot_results --run run_20261019_101500 --save --no-show

  # List all available runs
  python -m motion_control.plot_results --list
        """,
    )
    parser.add_argument(
        "--run",
        type=str,
        default=None,
        help="Name of the run directory to plot. If not specified, plots the most recent run.",
    )
    parser.add_argument(
        "--results-dir",
        type=str,
        default="results",
        help="Path to the results directory (default: results)",
    )
    parser.add_argument("--save", action="store_true", help="Save the plot as PNG in the run directory")
    parser.add_argument(
        "--no-show",
        action="store_true",
        help="Do not display plots interactively (useful with --save)",
    )
    parser.add_argument("--list", action="store_true", help="List all available runs and exit")
    args = parser.parse_args()

    results_dir = Path(args.results_dir)
    if args.list:
        list_available_runs(results_dir)
        return

    if args.run:
        run_dir = results_dir / args.run
        if not run_dir.exists():
            logging.error(f"Error: Run directory not found: {run_dir}")
            list_available_runs(results_dir)
            sys.exit(1)
    else:
        try:
            run_dir = find_latest_run(results_dir)
            logging.info(f"{TERM_BLUE}Plotting most recent run: {run_dir}{TERM_RESET}")
        except FileNotFoundError as e:
            logging.error(f"Error: {e}")
            sys.exit(1)

    try:
        plot_run_summary(run_dir=run_dir, save_plots=args.save, show_plots=not args.no_show)
    except FileNotFoundError as e:
        logging.error(f"Error: {e}")
        logging.info(f"Make sure {run_dir} contains follower_data.csv")
        sys.exit(1)


if __name__ == "__main__":
    main()
