"""Render-facing path primitives produced by the conic subclassifier.

These are the only values handed to a renderer. Each primitive can also turn
itself into a polyline for renderers without native arc or cubic support.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple, Union

import numpy as np
from numpy.typing import NDArray

from diagcurve.bezier import BezierCurve
from diagcurve.common import CurveRange, Point2D, TimePoints, as_time_points
from diagcurve.consts import DEFAULT_POLYGONIZE_STEPS


def hyperbolic_points(
    # pylint: disable=too-many-arguments,too-many-positional-arguments
    t: TimePoints,
    lambda_: float,
    mu: float,
    offset: Point2D,
    plus_partial: Point2D,
    minus_partial: Point2D,
) -> NDArray[np.float64]:
    """Evaluate offset + minus / (lambda - mu*t) + plus / (lambda + mu*t), shape (n, 2)."""
    t = as_time_points(t)
    minus_weight = 1.0 / (lambda_ - mu * t)
    plus_weight = 1.0 / (lambda_ + mu * t)
    return (
        np.asarray(offset, dtype=np.float64)
        + np.outer(minus_weight, minus_partial)
        + np.outer(plus_weight, plus_partial)
    )


def _check_steps(steps: int) -> None:
    if steps < 1:
        raise ValueError(f"steps must be at least 1, got {steps}")


###############################################################################
# ArcPath
###############################################################################


@dataclass(frozen=True)
class ArcPath:
    """
    Elliptical arc as an affine image of the unit circle.

    point(theta) = center + (cx, cy)*cos(theta) + (sx, sy)*sin(theta)
    for theta in angle_range, with transform = (cx, cy, sx, sy).
    """

    angle_range: Tuple[float, float]
    center: Point2D
    transform: Tuple[float, float, float, float]

    def eval(self, theta: TimePoints) -> NDArray[np.float64]:
        """Points at the given angles, shape (n, 2)."""
        theta = as_time_points(theta)
        cx, cy, sx, sy = self.transform
        cos_t = np.cos(theta)
        sin_t = np.sin(theta)
        return np.stack(
            [self.center[0] + cx * cos_t + sx * sin_t, self.center[1] + cy * cos_t + sy * sin_t], axis=-1
        )

    def polygonize(self, steps: int = DEFAULT_POLYGONIZE_STEPS) -> NDArray[np.float64]:
        """Polyline through steps+1 evenly spaced angles."""
        _check_steps(steps)
        return self.eval(np.linspace(self.angle_range[0], self.angle_range[1], steps + 1))


###############################################################################
# CubicPath
###############################################################################


@dataclass(frozen=True)
class CubicPath:
    """Cubic primitive: rows [P0, 3*P1, 3*P2, P3] for x and y over range r."""

    r: CurveRange
    h: Tuple[Tuple[float, float, float, float], Tuple[float, float, float, float]]

    def control_points(self) -> NDArray[np.float64]:
        """Bezier control points, shape (4, 2)."""
        return (np.array(self.h, dtype=np.float64) / np.array([1.0, 3.0, 3.0, 1.0])).T

    def polygonize(self, steps: int = DEFAULT_POLYGONIZE_STEPS) -> NDArray[np.float64]:
        """Polyline through steps+1 points of the Bezier curve."""
        return BezierCurve.polygonize_cubic_curve(self.control_points(), steps)


###############################################################################
# HyperbolicPath
###############################################################################


@dataclass(frozen=True)
class HyperbolicPath:
    """Hyperbola branch in partial-fraction form over a symmetric range."""

    range: CurveRange
    lambda_: float
    mu: float
    offset: Point2D
    plus_partial: Point2D
    minus_partial: Point2D

    def eval(self, t: TimePoints) -> NDArray[np.float64]:
        """Points at the given parameters, shape (n, 2)."""
        return hyperbolic_points(t, self.lambda_, self.mu, self.offset, self.plus_partial, self.minus_partial)

    def polygonize(self, steps: int = DEFAULT_POLYGONIZE_STEPS) -> NDArray[np.float64]:
        """Polyline through steps+1 evenly spaced parameters."""
        _check_steps(steps)
        return self.eval(np.linspace(self.range[0], self.range[1], steps + 1))


PathPrimitive = Union[ArcPath, CubicPath, HyperbolicPath]
