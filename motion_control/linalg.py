"""Small linear-algebra helpers shared by the spline and odometry code."""

from typing import Sequence

import numpy as np
import numpy.typing as npt

from .config import ZERO_TOLERANCE


def is_zero(value: float, tolerance: float = ZERO_TOLERANCE) -> bool:
    """Return True if ``value`` is within ``tolerance`` of zero."""
    return abs(value) < tolerance


def solve_augmented_matrix(augmented: Sequence[Sequence[float]]) -> npt.NDArray[np.float64]:
    """Solve the square system given as an augmented matrix ``[A | b]``.

    Uses LU factorization with partial pivoting. A singular system does not
    raise: the solution is returned filled with NaN so that callers can
    route the degenerate case through a finiteness check.

    Args:
        augmented: n rows of n + 1 values.

    Returns:
        Solution vector of length n.

    Raises:
        ValueError: If the matrix is not n × (n + 1).
    """
    matrix = np.asarray(augmented, dtype=float)
    if matrix.ndim != 2 or matrix.shape[1] != matrix.shape[0] + 1:
        raise ValueError(f"Augmented matrix must be n x (n+1), got shape {matrix.shape}")

    a = matrix[:, :-1]
    b = matrix[:, -1]
    try:
        return np.linalg.solve(a, b)
    except np.linalg.LinAlgError:
        return np.full(matrix.shape[0], np.nan)
