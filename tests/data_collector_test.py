"""
Tests for data_collector.py: run directories and CSV contents.

Run with:
    pytest tests/data_collector_test.py -v
"""

import csv

import numpy as np
import pytest

from motion_control.data_collector import FOLLOWER_COLUMNS, PATH_COLUMNS, DataCollector
from motion_control.geometry import EAST, Location
from motion_control.plot_styles import load_csv_to_dict


def _read_rows(path):
    with open(path, newline="") as f:
        return list(csv.reader(f))


# ============================================================================
# Test: Run directory selection
# ============================================================================


class TestRunDirectory:
    def test_explicit_run_dir(self, tmp_path):
        collector = DataCollector(run_dir=str(tmp_path / "explicit"))
        assert collector.run_dir == tmp_path / "explicit"
        assert collector.run_dir.is_dir()

    def test_environment_run_dir(self, tmp_path, monkeypatch):
        monkeypatch.setenv("RUN_DIR", str(tmp_path / "from_env"))
        collector = DataCollector(output_dir=str(tmp_path))
        assert collector.run_dir == tmp_path / "from_env"

    def test_timestamped_run_dir(self, tmp_path, monkeypatch):
        monkeypatch.delenv("RUN_DIR", raising=False)
        collector = DataCollector(output_dir=str(tmp_path))
        assert collector.run_dir.parent == tmp_path / "results"
        assert collector.run_dir.name.startswith("run_")

    def test_output_dir_is_file(self, tmp_path):
        target = tmp_path / "file.txt"
        target.write_text("x")
        with pytest.raises(ValueError):
            DataCollector(output_dir=str(target))


# ============================================================================
# Test: Tick logging
# ============================================================================


class TestLogTick:
    @pytest.fixture
    def collector(self, tmp_path):
        return DataCollector(run_dir=str(tmp_path / "run"))

    def test_requires_setup(self, collector):
        with pytest.raises(RuntimeError):
            collector.log_tick(0.0, Location.origin(), {})

    def test_rows(self, collector, capsys):
        with collector:
            collector.log_tick(0.0, Location(1, 2, EAST), {"distance": 0.5, "gain": 0.15})
            collector.log_tick(0.02, Location(1, 3, EAST), {"distance": 1.0})

        rows = _read_rows(collector.follower_output_path)
        assert rows[0] == FOLLOWER_COLUMNS
        assert len(rows) == 3
        first = dict(zip(rows[0], rows[1]))
        assert float(first["x"]) == 1.0
        assert float(first["heading_deg"]) == pytest.approx(90)
        assert float(first["gain"]) == pytest.approx(0.15)
        assert first["left_power"] == ""
        assert collector.rows_written == 2
        assert "Saved 2 ticks" in capsys.readouterr().out

    def test_missing_values_load_as_nan(self, collector):
        with collector:
            collector.log_tick(0.0, Location.origin(), {})
        data = load_csv_to_dict(collector.follower_output_path)
        assert data["x"][0] == 0.0
        assert np.isnan(data["gain"][0])


# ============================================================================
# Test: Path logging
# ============================================================================


class TestLogPath:
    def test_path_and_rails(self, tmp_path, straight_path):
        collector = DataCollector(run_dir=str(tmp_path / "run"))
        collector.log_path(straight_path, straight_path.offset(7), straight_path.offset(-7), samples=11)
        data = load_csv_to_dict(collector.path_output_path)
        assert list(data) == PATH_COLUMNS
        assert len(data["t"]) == 11
        np.testing.assert_allclose(data["rail_a_x"], -7)
        np.testing.assert_allclose(data["y"], 24 * data["t"])

    def test_without_rails(self, tmp_path, straight_path):
        collector = DataCollector(run_dir=str(tmp_path / "run"))
        collector.log_path(straight_path, samples=5)
        data = load_csv_to_dict(collector.path_output_path)
        assert np.isnan(data["rail_b_y"]).all()
