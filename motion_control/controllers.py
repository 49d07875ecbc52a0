"""PID feedback controller used for the follower's correction channels.

The follower only needs something satisfying ``ClosedLoopController``;
``PidController`` is the stock implementation and ``pid_factory`` builds the
zero-argument factories that ``FollowerConfig`` expects.
"""

import time
from typing import Callable, Dict, Optional, Tuple


class PidController:
    """PID controller with feedforward and integral anti-windup.

    Control law:
        out = kp * e + ki * integral(e) + kd * de/dt + kf

    with e = target - current. The derivative term is zero on the first call
    after construction or ``reset()``, and dt comes from the injected clock.

    Attributes:
        kp: Proportional gain.
        ki: Integral gain.
        kd: Derivative gain.
        kf: Constant feedforward added to every output.
    """

    def __init__(
        self,
        kp: float,
        ki: float = 0.0,
        kd: float = 0.0,
        kf: float = 0.0,
        integral_limit: float = 0.5,
        output_limits: Optional[Tuple[float, float]] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize the controller.

        Args:
            kp: Proportional gain.
            ki: Integral gain.
            kd: Derivative gain.
            kf: Feedforward term.
            integral_limit: Clamp on the accumulated error (±). Must be positive.
            output_limits: Optional (min, max) clamp on the output. The follower
                clamps terms itself, so by default the output is unclamped.
            clock: Monotonic time source in seconds.
        """
        if integral_limit <= 0:
            raise ValueError(f"integral_limit must be positive, got {integral_limit}")
        if output_limits is not None and output_limits[0] >= output_limits[1]:
            raise ValueError(f"output_limits must be (min, max) with min < max, got {output_limits}")

        self.kp = kp
        self.ki = ki
        self.kd = kd
        self.kf = kf
        self.integral_limit = integral_limit
        self.output_limits = output_limits
        self._clock = clock

        # Integral state (accumulated error)
        self.integral: float = 0.0

        # Previous error and read time for derivative computation
        self.prev_error: Optional[float] = None
        self._last_time: Optional[float] = None
        self.last_output: float = 0.0

    def output(self, current: float, target: float) -> float:
        """Compute the correction for one tick.

        Args:
            current: Measured position.
            target: Desired position.

        Returns:
            Controller output (clamped only if ``output_limits`` was given).
        """
        error = target - current
        now = self._clock()
        dt = 0.0 if self._last_time is None else now - self._last_time
        self._last_time = now

        if self.prev_error is not None and dt > 0:
            derivative = (error - self.prev_error) / dt
        else:
            derivative = 0.0
        self.prev_error = error

        # Accumulate integral of error with anti-windup
        self.integral += error * dt
        self.integral = max(-self.integral_limit, min(self.integral_limit, self.integral))

        result = self.kp * error + self.ki * self.integral + self.kd * derivative + self.kf
        if self.output_limits is not None:
            result = max(self.output_limits[0], min(self.output_limits[1], result))
        self.last_output = result
        return result

    def reset(self) -> None:
        """Clear integral and derivative state."""
        self.integral = 0.0
        self.prev_error = None
        self._last_time = None
        self.last_output = 0.0

    def get_diagnostics(self) -> Dict[str, float]:
        return {
            "error": self.prev_error if self.prev_error is not None else 0.0,
            "integral": self.integral,
            "output": self.last_output,
        }


def pid_factory(
    kp: float,
    ki: float = 0.0,
    kd: float = 0.0,
    kf: float = 0.0,
    integral_limit: float = 0.5,
    output_limits: Optional[Tuple[float, float]] = None,
    clock: Callable[[], float] = time.monotonic,
) -> Callable[[], PidController]:
    """Return a factory producing fresh, identically tuned PID controllers."""

    def create() -> PidController:
        return PidController(kp, ki, kd, kf, integral_limit, output_limits, clock)

    return create
