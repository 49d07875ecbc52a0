"""
Tests for cli.py: path construction, simulated runs and log formatting.

Run with:
    pytest tests/cli_test.py -v
"""

import logging

import pytest

from motion_control.cli import CustomFormatter, build_path, run
from motion_control.plot_styles import load_csv_to_dict
from motion_control.simulation import SimulationConfig


class TestBuildPath:
    def test_forward(self):
        path = build_path(36.0, 6.0)
        end = path.position(path.max_input)
        assert path.goes_forward()
        assert (end.x, end.y) == pytest.approx((6, 36))

    def test_backward(self):
        path = build_path(36.0, 0.0, backward=True)
        end = path.position(path.max_input)
        assert not path.goes_forward()
        assert end.y == pytest.approx(-36)

    @pytest.mark.parametrize("distance", [0.0, -5.0])
    def test_distance_must_be_positive(self, distance):
        with pytest.raises(ValueError):
            build_path(distance, 0.0)


class TestRun:
    @pytest.mark.parametrize("heading_source", ["gyro", "odometry", "encoders"])
    def test_writes_run_files(self, tmp_path, heading_source):
        run_dir = run(18.0, heading_source=heading_source, run_dir=str(tmp_path / "run"))
        follower = load_csv_to_dict(run_dir / "follower_data.csv")
        path = load_csv_to_dict(run_dir / "path_data.csv")
        assert len(follower["time"]) > 10
        assert follower["y"][-1] == pytest.approx(18, abs=1.0)
        assert path["y"][-1] == pytest.approx(18)

    def test_custom_config(self, tmp_path):
        config = SimulationConfig(wheelbase=12.0, dt=0.01)
        run_dir = run(12.0, run_dir=str(tmp_path / "run"), config=config)
        path = load_csv_to_dict(run_dir / "path_data.csv")
        assert path["rail_a_x"][0] == pytest.approx(-6)

    def test_with_plot(self, tmp_path):
        run_dir = run(12.0, run_dir=str(tmp_path / "run"), plot=True)
        assert (run_dir / "run_summary.png").exists()

    def test_unknown_heading_source(self, tmp_path):
        with pytest.raises(ValueError):
            run(12.0, heading_source="compass", run_dir=str(tmp_path / "run"))


class TestCustomFormatter:
    def _record(self, level):
        return logging.LogRecord("motion_control", level, __file__, 1, "hello", None, None)

    def test_info_is_bare(self):
        assert CustomFormatter().format(self._record(logging.INFO)) == "hello"

    def test_warning_has_level(self):
        formatted = CustomFormatter().format(self._record(logging.WARNING))
        assert "WARNING - hello" in formatted
