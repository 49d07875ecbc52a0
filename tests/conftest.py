"""Shared fixtures: a manual clock, simulated drives and reference paths."""

import pytest

from motion_control.geometry import NORTH, Location
from motion_control.simulation import (
    SimulatedGyro,
    SimulatedMecanumDrive,
    SimulatedTankDrive,
    SimulationClock,
)
from motion_control.spline import make_spline


@pytest.fixture
def clock():
    """Clock starting at 0 s, advanced by hand or by run_simulation."""
    return SimulationClock()


@pytest.fixture
def tank_drive():
    """Ideal tank drive at the origin facing north (default geometry)."""
    return SimulatedTankDrive()


@pytest.fixture
def mecanum_drive():
    return SimulatedMecanumDrive()


@pytest.fixture
def gyro(tank_drive):
    return SimulatedGyro(tank_drive)


@pytest.fixture
def straight_path():
    """24 inches due north at constant parameter speed: (0, 24t)."""
    return make_spline(Location(0.0, 0.0, NORTH), 24.0, Location(0.0, 24.0, NORTH), 24.0)


@pytest.fixture
def curved_path():
    """48 inches north with a 12 inch shift to the right, same start and end heading."""
    return make_spline(Location(0.0, 0.0, NORTH), 48.0, Location(12.0, 48.0, NORTH), 48.0)


class RecordingTankDrive:
    """DifferentialDrive stub with settable encoders that records every command."""

    def __init__(self, wheelbase=14.0, wheel_diameter=4.0, ticks_per_revolution=1000):
        self.commands = []
        self.left = 0
        self.right = 0
        self._wheelbase = wheelbase
        self._wheel_diameter = wheel_diameter
        self._ticks = ticks_per_revolution

    def set_left_right_power(self, left, right):
        self.commands.append((left, right))

    def left_encoder(self):
        return self.left

    def right_encoder(self):
        return self.right

    def wheelbase_width(self):
        return self._wheelbase

    def wheel_diameter(self):
        return self._wheel_diameter

    def ticks_per_revolution(self):
        return self._ticks


class RecordingHolonomicDrive:
    """HolonomicDrive stub recording the last four wheel powers."""

    def __init__(self, wheelbase=14.0):
        self.powers = None
        self._wheelbase = wheelbase

    def set_wheel_powers(self, front_left, back_left, front_right, back_right):
        self.powers = (front_left, back_left, front_right, back_right)

    def wheelbase_width(self):
        return self._wheelbase


@pytest.fixture
def recording_tank():
    return RecordingTankDrive()


@pytest.fixture
def recording_holonomic():
    return RecordingHolonomicDrive()
