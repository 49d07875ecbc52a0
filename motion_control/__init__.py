"""Motion Control - Path Following for Wheeled Robots

A motion-control core for wheeled robots: symbolic calculus over path
functions, spline paths, jerk-limited velocity profiles, dead-wheel pose
estimation and a closed-loop trajectory follower.

## Architecture Overview

### Layer 1: Function Algebra (functions.py, trig.py, polynomials.py, numeric.py)
An immutable tree of function nodes that can be evaluated, differentiated,
integrated and inverted. Nodes without a closed form fall back to numeric
tables (brute-force integral, secant-search inverse).

### Layer 2: Paths (spline.py)
Parametric curves between oriented waypoints (cubic Hermite blend) or through
many points (C4 quintic interpolation). Each curve converts between its
parameter and arc length with cached numeric tables.

### Layer 3: Velocity Profiles (velocity_profile.py)
Jerk-limited speed as a function of time, covering a distance exactly.

### Layer 4: Localization (odometry.py)
Pose estimation from three non-driven encoder wheels, with a pure-translation
model and a rigid-arc model.

### Layer 5: Following (follower.py, mecanum.py)
A tank-drive follower blending prediction, per-rail encoder correction and
heading correction, scaled by the velocity profile; and a time-based follower
for holonomic bases that steer toward a pose themselves.

## Modules

### Core
- `config.py` - Default parameters with documentation
- `errors.py` - DomainError
- `geometry.py` - Angles, points and poses
- `linalg.py` - Linear system solving
- `interfaces.py` - Hardware protocols (drives, sensors, controllers)
- `controllers.py` - PID controller

### Simulation & Data
- `simulation.py` - Ideal simulated drives, gyro and dead wheels
- `data_collector.py` - CSV logging of follower runs
- `cli.py` - Simulated runs and logging setup

### Visualization
- `plot_styles.py` - Shared plotting utilities and color scheme
- `plot_results.py` - Path, profile and run plots; CLI

## Quick Start

```python
from motion_control import (
    NORTH, Location, SimulatedTankDrive, SimulationClock,
    TrajectoryFollower, make_spline, run_simulation,
)

path = make_spline(Location(0, 0, NORTH), 48, Location(12, 48, NORTH), 48)
clock = SimulationClock()
drive = SimulatedTankDrive()
follower = TrajectoryFollower(path, drive, clock=clock)
run_simulation(follower, drive, clock)
```

Or use the command-line interface:
```bash
python -m motion_control --distance 48 --lateral 12 --plot
```

## Author

Nishalan Govender

## Version

0.1.0 - Initial implementation
"""

__version__ = "0.1.0"
__author__ = "Nishalan Govender"

# Export key classes for convenience
from .controllers import PidController
from .data_collector import DataCollector
from .errors import DomainError
from .follower import FollowerConfig, FollowerState, PoseTargetFollower, TrajectoryFollower
from .geometry import (
    EAST,
    NORTH,
    SOUTH,
    WEST,
    Angle,
    AngleOrientation,
    AngleUnit,
    Location,
    Point,
)
from .mecanum import MecanumController, MecanumPoseDrive, TranslationMethod, TranslTurnMethod
from .odometry import PoseEstimator
from .simulation import (
    SimulatedDeadWheels,
    SimulatedGyro,
    SimulatedMecanumDrive,
    SimulatedTankDrive,
    SimulationClock,
    SimulationConfig,
    run_simulation,
)
from .spline import (
    ParametricCurve,
    generate_quintic_interpolator,
    generate_quintic_spline,
    make_auto_spline,
    make_spline,
)
from .velocity_profile import VelocityLimits, VelocityProfile

__all__ = [
    "Angle",
    "AngleOrientation",
    "AngleUnit",
    "Point",
    "Location",
    "NORTH",
    "EAST",
    "SOUTH",
    "WEST",
    "DomainError",
    "ParametricCurve",
    "make_spline",
    "make_auto_spline",
    "generate_quintic_interpolator",
    "generate_quintic_spline",
    "VelocityLimits",
    "VelocityProfile",
    "PoseEstimator",
    "PidController",
    "FollowerConfig",
    "FollowerState",
    "TrajectoryFollower",
    "PoseTargetFollower",
    "MecanumController",
    "MecanumPoseDrive",
    "TranslationMethod",
    "TranslTurnMethod",
    "SimulatedTankDrive",
    "SimulatedMecanumDrive",
    "SimulatedGyro",
    "SimulatedDeadWheels",
    "SimulationClock",
    "SimulationConfig",
    "run_simulation",
    "DataCollector",
]
