"""Central module containing types and shared checks for curve processing."""

from __future__ import annotations

import math
from enum import Enum, auto
from typing import NamedTuple, Sequence, Tuple, Union

import numpy as np
from numpy.typing import NDArray

from diagcurve.errors import CurveSpecError

###############################################################################
# Types
###############################################################################


CurveRange = Tuple[float, float]  # ordered parameter domain (r0, r1)
SigmaRatio = Tuple[float, float]  # bilinear factor, both components > 0
Point2D = Tuple[float, float]

# Parameter input accepted by every evaluation method
TimePoints = Union[float, Sequence[float], NDArray[np.float64]]


###############################################################################
# Enums
###############################################################################


class ConicKind(Enum):
    """Enum to tag the family a rational quadratic was classified into."""

    NONE = auto()
    ELLIPTICAL = auto()
    PARABOLIC = auto()
    HYPERBOLIC = auto()


###############################################################################
# Functions
###############################################################################


def as_time_points(t: TimePoints) -> NDArray[np.float64]:
    """Convert a scalar or sequence of parameters to a 1D float array."""
    return np.atleast_1d(np.asarray(t, dtype=np.float64))


def check_range(r: Sequence[float]) -> CurveRange:
    """Validate a user supplied parameter range.

    Args:
        r: Sequence of two finite floats with r[0] < r[1].

    Returns:
        CurveRange: the range as a tuple of floats.

    Raises:
        CurveSpecError: If the range is malformed, non-finite or not ordered.
    """
    if len(r) != 2:
        raise CurveSpecError(f"Range must have 2 entries, got {len(r)}")
    r0, r1 = float(r[0]), float(r[1])
    if not (math.isfinite(r0) and math.isfinite(r1)):
        raise CurveSpecError(f"Range must be finite, got ({r0}, {r1})")
    if not r0 < r1:
        raise CurveSpecError(f"Range must be ordered, got ({r0}, {r1})")
    return (r0, r1)


def check_sigma(sigma: Sequence[float]) -> SigmaRatio:
    """Validate a bilinear factor.

    Raises:
        CurveSpecError: If sigma does not have two finite, strictly positive entries.
    """
    if len(sigma) != 2:
        raise CurveSpecError(f"Sigma must have 2 entries, got {len(sigma)}")
    s0, s1 = float(sigma[0]), float(sigma[1])
    if not (math.isfinite(s0) and math.isfinite(s1)) or s0 <= 0.0 or s1 <= 0.0:
        raise CurveSpecError(f"Sigma components must be positive, got ({s0}, {s1})")
    return (s0, s1)


def check_points(points: Union[Sequence[Point2D], NDArray[np.float64]], count: int) -> NDArray[np.float64]:
    """Validate control points and return them as a (count, 2) array.

    Raises:
        CurveSpecError: If the shape is wrong or a coordinate is not finite.
    """
    try:
        points_array = np.array(points, dtype=np.float64)
    except (TypeError, ValueError) as exc:
        raise CurveSpecError(f"Control points are not numeric: {points!r}") from exc
    if points_array.shape != (count, 2):
        raise CurveSpecError(f"Expected {count} points of shape (x, y), got shape {points_array.shape}")
    if not np.all(np.isfinite(points_array)):
        raise CurveSpecError("Control points must be finite")
    return points_array


class CurveEndpoints(NamedTuple):
    """Positions and range-scaled derivatives at both ends of a curve.

    Attributes:
        positions: (2, 2) array, row 0 at r0 and row 1 at r1.
        derivatives: (2, 2) array of derivatives scaled by (r1 - r0).
    """

    positions: NDArray[np.float64]
    derivatives: NDArray[np.float64]


def readonly_rows(h: Union[Sequence[Sequence[float]], NDArray[np.float64]], shape: Tuple[int, ...]) -> NDArray[np.float64]:
    """Copy homogeneous coefficient rows into a read-only array of the given shape.

    Raises:
        ValueError: If the coefficients do not have the expected shape.
    """
    rows = np.array(h, dtype=np.float64)
    if rows.shape != shape:
        raise ValueError(f"Homogeneous coefficients must have shape {shape}, got {rows.shape}")
    rows.flags.writeable = False
    return rows
