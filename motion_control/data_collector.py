"""CSV logging of simulated or recorded follower runs.

Each run gets its own directory holding:
- follower_data.csv: one row per control tick (pose and follower diagnostics)
- path_data.csv: the sampled center path and wheel rails
"""

import csv
import os
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, TextIO

from .config import PLOT_SAMPLES, TERM_BLUE, TERM_RESET
from .geometry import AngleOrientation, AngleUnit, Location
from .spline import ParametricCurve

FOLLOWER_COLUMNS: List[str] = [
    "time",
    "x",
    "y",
    "heading_deg",
    "distance",
    "parameter",
    "gain",
    "prediction_a",
    "prediction_b",
    "encoder_term_a",
    "encoder_term_b",
    "heading",
    "heading_target",
    "heading_term",
    "left_power",
    "right_power",
]
"""Columns of follower_data.csv; the first four come from the pose."""

PATH_COLUMNS: List[str] = ["t", "x", "y", "rail_a_x", "rail_a_y", "rail_b_x", "rail_b_y"]


class DataCollector:
    """Manages the CSV files of one follower run.

    Attributes:
        run_dir: Directory path for this run's output files.
        follower_output_path: Path of the per-tick CSV.
        path_output_path: Path of the sampled path CSV.
    """

    def __init__(self, output_dir: str = ".", run_dir: Optional[str] = None) -> None:
        """Initialize the data collector.

        Args:
            output_dir: Base directory for output files (default: current directory).
            run_dir: Optional specific run directory. If None, creates a
                timestamped directory. Can also be set via the RUN_DIR
                environment variable.

        Raises:
            ValueError: If output_dir is not a valid directory.
        """
        output_path = Path(output_dir)
        if output_path.exists() and not output_path.is_dir():
            raise ValueError(f"Output path exists but is not a directory: {output_dir}")

        self.follower_csv_file: Optional[TextIO] = None
        self.follower_csv_writer: Any = None
        self.rows_written = 0

        if run_dir:
            self.run_dir: Path = Path(run_dir)
        elif env_run_dir := os.environ.get("RUN_DIR"):
            self.run_dir = Path(env_run_dir)
        else:
            # results/run_YYYYMMDD_HHMMSS/
            timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            self.run_dir = output_path / "results" / f"run_{timestamp}"

        self.run_dir.mkdir(parents=True, exist_ok=True)

        self.follower_output_path: Path = self.run_dir / "follower_data.csv"
        self.path_output_path: Path = self.run_dir / "path_data.csv"

    def setup(self) -> None:
        """Open follower_data.csv and write its header. Must be called before logging ticks."""
        self.follower_csv_file = open(self.follower_output_path, "w", newline="")
        self.follower_csv_writer = csv.writer(self.follower_csv_file)
        self.follower_csv_writer.writerow(FOLLOWER_COLUMNS)
        self.follower_csv_file.flush()

        print(f"{TERM_BLUE}✓ Initialized data collection to {self.run_dir}/{TERM_RESET}")

    def log_tick(self, elapsed: float, pose: Location, diagnostics: Dict[str, float]) -> None:
        """Log one control tick.

        Args:
            elapsed: Time since the run started (seconds).
            pose: Robot pose after the tick's command was computed.
            diagnostics: Follower diagnostics; missing keys are left empty.
        """
        if self.follower_csv_writer is None:
            raise RuntimeError("DataCollector.setup() must be called before logging")
        heading = pose.direction.get_value(AngleUnit.DEGREES, AngleOrientation.COMPASS_HEADING)
        row: List[Any] = [elapsed, pose.x, pose.y, heading]
        row.extend(diagnostics.get(column, "") for column in FOLLOWER_COLUMNS[4:])
        self.follower_csv_writer.writerow(row)
        self.rows_written += 1
        if self.follower_csv_file:
            self.follower_csv_file.flush()

    def log_path(
        self,
        path: ParametricCurve,
        rail_a: Optional[ParametricCurve] = None,
        rail_b: Optional[ParametricCurve] = None,
        samples: int = PLOT_SAMPLES,
    ) -> None:
        """Write the sampled path (and rails, if given) to path_data.csv."""
        t, xs, ys = path.sample(samples)
        rails = []
        for rail in (rail_a, rail_b):
            if rail is None:
                rails.append(([""] * samples, [""] * samples))
            else:
                _, rail_x, rail_y = rail.sample(samples)
                rails.append((rail_x, rail_y))

        with open(self.path_output_path, "w", newline="") as f:
            writer = csv.writer(f)
            writer.writerow(PATH_COLUMNS)
            for i in range(samples):
                writer.writerow(
                    [t[i], xs[i], ys[i], rails[0][0][i], rails[0][1][i], rails[1][0][i], rails[1][1][i]]
                )

    def cleanup(self) -> None:
        """Close the CSV file and report the output location."""
        if self.follower_csv_file:
            self.follower_csv_file.close()
            self.follower_csv_file = None
            self.follower_csv_writer = None

        print(f"{TERM_BLUE}✓ Saved {self.rows_written} ticks to {self.run_dir}/{TERM_RESET}")

    def __enter__(self) -> "DataCollector":
        self.setup()
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Context manager exit point - ensures cleanup is called."""
        self.cleanup()
