"""Simulated follower runs from the command line.

Builds a two-waypoint Hermite spline, follows it with ``TrajectoryFollower``
on an ideal simulated tank drive, and logs every tick with ``DataCollector``.
"""

import logging
from pathlib import Path
from typing import Optional

from .config import TERM_BLUE, TERM_RESET
from .data_collector import DataCollector
from .follower import TrajectoryFollower
from .geometry import NORTH, Location
from .odometry import PoseEstimator
from .simulation import (
    SimulatedDeadWheels,
    SimulatedGyro,
    SimulationClock,
    SimulationConfig,
    run_simulation,
)
from .spline import ParametricCurve, make_spline

logger = logging.getLogger(__name__)

HEADING_SOURCES = ("gyro", "odometry", "encoders")


class CustomFormatter(logging.Formatter):
    """Custom logging formatter that removes timestamps from INFO messages.

    INFO messages print bare for clean console output; WARNING, ERROR and
    DEBUG keep their timestamp and level.
    """

    def format(self, record: logging.LogRecord) -> str:
        if record.levelno == logging.INFO:
            return record.getMessage()
        return f"{self.formatTime(record, self.datefmt)} - {record.levelname} - {record.getMessage()}"


def setup_logging(verbose: bool = False) -> None:
    """Configure logging based on verbosity level.

    Args:
        verbose: If True, show all levels with timestamps. If False, show INFO
                 without timestamps and WARNING/ERROR with timestamps.
    """
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    else:
        handler = logging.StreamHandler()
        handler.setFormatter(CustomFormatter(datefmt="%Y-%m-%d %H:%M:%S"))
        root = logging.getLogger()
        root.setLevel(logging.INFO)
        root.addHandler(handler)


def build_path(distance: float, lateral: float, backward: bool = False) -> ParametricCurve:
    """Spline from the origin facing north to a point ``distance`` ahead.

    The end keeps the north heading and sits ``lateral`` inches to the right.
    A backward path ends ``distance`` inches behind the start and is driven
    in reverse.

    Raises:
        ValueError: If ``distance`` is not positive.
    """
    if not distance > 0:
        raise ValueError(f"distance must be positive, got {distance}")
    start = Location(0.0, 0.0, NORTH)
    scale = distance
    if backward:
        return make_spline(start, -scale, Location(lateral, -distance, NORTH), -scale)
    return make_spline(start, scale, Location(lateral, distance, NORTH), scale)


def run(
    distance: float,
    lateral: float = 0.0,
    backward: bool = False,
    heading_source: str = "gyro",
    output_dir: str = ".",
    run_dir: Optional[str] = None,
    plot: bool = False,
    config: Optional[SimulationConfig] = None,
) -> Path:
    """Simulate one path-following run and record it.

    Args:
        distance: Forward (or backward) travel to the end point, inches.
        lateral: Sideways offset of the end point, inches (right positive).
        backward: Drive the path in reverse.
        heading_source: "gyro", "odometry" (dead-wheel pose estimator) or
            "encoders" (drive encoder integration only).
        output_dir: Base directory for results/.
        run_dir: Explicit run directory instead of a timestamped one.
        plot: Save a run summary figure next to the data.
        config: Simulated drive parameters.

    Returns:
        The run directory.
    """
    if heading_source not in HEADING_SOURCES:
        raise ValueError(f"heading_source must be one of {HEADING_SOURCES}, got {heading_source!r}")
    config = config if config is not None else SimulationConfig()
    path = build_path(distance, lateral, backward)

    clock = SimulationClock()
    drive = config.make_drive()
    gyro = SimulatedGyro(drive) if heading_source == "gyro" else None
    estimator = None
    if heading_source == "odometry":
        estimator = PoseEstimator(SimulatedDeadWheels(drive))

    follower = TrajectoryFollower(path, drive, heading_sensor=gyro, pose_estimator=estimator, clock=clock)

    with DataCollector(output_dir, run_dir) as collector:
        collector.log_path(path, follower.rail_a, follower.rail_b)
        ticks = run_simulation(follower, drive, clock, config.dt, config.max_time, collector)

    end = path.position(path.max_input)
    pose = drive.pose()
    logger.info(
        f"{TERM_BLUE}Finished={follower.is_finished()} after {ticks} ticks ({ticks * config.dt:.2f}s); "
        f"end error {pose.distance(end):.3f} in, heading {drive.heading_degrees():.2f}°{TERM_RESET}"
    )

    if plot:
        from .plot_results import plot_run_summary

        plot_run_summary(collector.run_dir, save_plots=True, show_plots=False)
    return collector.run_dir

