"""Configuration parameters for the motion control stack.

This module centralizes all default parameters including:
- Numeric calculus accuracy (brute-force integration and inversion)
- Trajectory follower portion weights and turn gain
- Closed-loop controller gains
- Dead-wheel odometry geometry
- Simulation and visualization settings

Runtime configuration objects (``FollowerConfig``, ``VelocityLimits``,
``SimulationConfig``) take their defaults from here and validate themselves
at construction.
"""

import math

# ============================================================================
# Numeric Calculus Parameters
# ============================================================================

INTEGRAL_NUMBER_OF_SAMPLES = 10
"""Number of cubic buckets used by brute-force integrals in the follower.

Experimentally chosen: high enough for sub-percent arc-length error on
typical two-waypoint splines, low enough that the lazy table build stays
well under one control tick.
"""

DISTANCE_CALC_ACCURACY = 0.01
"""Accuracy (distance units) of the distance → parameter inversion.

Must be positive. Lower values are more accurate and slower to converge.
"""

VELOCITY_CALC_ACCURACY = 0.001
"""Commanded-power magnitude below which the previous tick's gain is treated
as zero when rescaling the parameter step."""

ZERO_TOLERANCE = 1e-9
"""Absolute tolerance used by ``linalg.is_zero``."""

BRUTE_INVERSE_MAX_ITERATIONS = 200
"""Iteration cap for the secant search in ``BruteInverse``.

The search uses Illinois weighting and converges in well under 50 steps
for monotone inputs; hitting the cap raises ``ArithmeticError``.
"""


# ============================================================================
# Trajectory Follower Parameters
# ============================================================================

PORTION_NEXT_POWER = 0.6
"""Weight of the prediction term (power needed to reach the next position).

The three portions must sum to 1 within ``PORTION_SUM_TOLERANCE``.
"""

PORTION_ENCODER_ADJ = 0.2
"""Weight of the per-side encoder correction term."""

PORTION_GYRO_ADJ = 0.2
"""Weight of the heading correction term."""

PORTION_SUM_TOLERANCE = 1e-4
"""Allowed deviation of the portion sum from 1."""

TURN_GAIN = 1.0
"""Re-bias of the predicted left/right split.

1 leaves the prediction untouched (low turning resistance). Larger values
give drive trains that resist turning an extra kick; 0 disables turning in
the prediction term. Feedback terms are not affected.
"""

MIN_MOVE_POWER = 0.15
"""Smallest power the follower will command while running (range (0, 1)).

Keeps the drive from stalling at the ends of the velocity profile.
"""

MIN_PARAMETER_STEP = 0.01
"""Smallest parameter step used when predicting the next position."""

MAX_WHEEL_VELOCITY = 48.0
"""Wheel surface speed at full power (inches/s). Converts profile speed to power."""

CRUISE_VELOCITY = 24.0
"""Default cruise speed for generated velocity profiles (inches/s)."""

MAX_ACCELERATION = 40.0
"""Default acceleration bound for generated velocity profiles (inches/s²)."""

MAX_JERK = 200.0
"""Default jerk bound for generated velocity profiles (inches/s³)."""


# ============================================================================
# Closed-Loop Controller Gains
# ============================================================================

ENCODER_KP = 0.01
"""Proportional gain of the encoder correction controllers (power per tick)."""

ENCODER_KI = 0.0
"""Integral gain of the encoder correction controllers."""

ENCODER_KD = 0.0
"""Derivative gain of the encoder correction controllers."""

HEADING_KP = 0.02
"""Proportional gain of the heading correction controller (power per degree)."""

HEADING_KI = 0.0
"""Integral gain of the heading correction controller."""

HEADING_KD = 0.001
"""Derivative gain of the heading correction controller."""

PID_INTEGRAL_LIMIT = 0.5
"""Anti-windup clamp for accumulated controller error (±)."""


# ============================================================================
# Dead-Wheel Odometry Parameters
# ============================================================================

ODOMETRY_TICKS_TO_INCHES = 2 * math.pi / 4096
"""Travel per encoder tick of a 1-inch-radius dead wheel with a 4096 CPR encoder."""

ODOMETRY_WHEEL_OFFSETS = (
    (-6.815, 1.645, 180.0),  # left parallel wheel, rolls backward
    (6.815, 1.645, 0.0),  # right parallel wheel, rolls forward
    (7.087, -1.980, -90.0),  # lateral wheel, rolls toward the left
)
"""Default dead-wheel mountings relative to robot center.

Each entry is (x inches, y inches, rolling direction in compass degrees),
with +y forward and +x to the right of the robot.
"""

ODOMETRY_PARALLEL_PAIR = (0, 1)
"""Indices of the two parallel wheels used by the no-rotation discriminant."""

ODOMETRY_NO_ROTATION_TOLERANCE = 1e-9
"""Tolerance on the parallel-wheel delta sum below which a tick is treated
as a pure translation."""


# ============================================================================
# Mecanum Drive Parameters
# ============================================================================

MECANUM_BOTH_SPEED_TOLERANCE = 1e-4
"""Allowed deviation of speed + turn from 1 in the CONSTANT_BOTH_SPEED mode."""

MECANUM_TRANSLATION_KP = 0.05
"""Proportional gain of the pose-target translation controller (power per inch)."""

MECANUM_HEADING_KP = 0.02
"""Proportional gain of the pose-target heading controller (power per degree)."""


# ============================================================================
# Simulation Parameters
# ============================================================================

SIM_WHEELBASE = 14.5
"""Distance between left and right drive wheels (inches)."""

SIM_WHEEL_DIAMETER = 4.0
"""Drive wheel diameter (inches)."""

SIM_TICKS_PER_REVOLUTION = 1120
"""Drive motor encoder ticks per wheel revolution."""

SIM_DT = 0.02
"""Simulation step (seconds), i.e. a 50 Hz control loop."""

SIM_MAX_TIME = 30.0
"""Hard stop for simulated runs (seconds)."""


# ============================================================================
# Visualization Parameters
# ============================================================================

PLOT_SAMPLES = 200
"""Number of parameter samples used when drawing curves."""

COLOR_PATH = "#2374f7"
"""Center path color."""

COLOR_RAIL = "#686a5f"
"""Wheel rail color."""

COLOR_ACTUAL = "#f74823"
"""Measured trajectory color."""

COLOR_ACCENT = "#ffa726"
"""Secondary series color."""

# Terminal color codes
TERM_BLUE = "\033[38;2;35;116;247m"
TERM_RESET = "\033[0m"
