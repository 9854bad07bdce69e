"""Builders that turn user-facing control-point specifications into curves.

Specifications are validated on construction. Degenerate geometry is reported
with ``CurveSpecError``; nothing here raises ``CurveInvariantError``.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field, replace
from enum import Enum, auto
from typing import Optional, Sequence, Union

import numpy as np
from numpy.typing import NDArray

from diagcurve.common import CurveRange, Point2D, SigmaRatio, check_points, check_range, check_sigma
from diagcurve.consts import DEFAULT_CLASSIFY_TOLERANCE, DEFAULT_RANGE, DEFAULT_SIGMA
from diagcurve.cubic import CubicCurve
from diagcurve.errors import CurveSpecError
from diagcurve.paths import CubicPath, PathPrimitive
from diagcurve.rat_quad import PowerQuadraticCurve, WeightedQuadraticCurve
from diagcurve.subclass import ConicClass, create_from_ordinary

logger = logging.getLogger(__name__)

# Relative size below which cross products count as zero
_DEGENERACY_EPS: float = 1.0e-12


def _reject(message: str) -> CurveSpecError:
    logger.debug("Rejecting curve specification: %s", message)
    return CurveSpecError(message)


def _cross(u: NDArray[np.float64], v: NDArray[np.float64]) -> float:
    return float(u[0] * v[1] - u[1] * v[0])


def _check_selectable(r: CurveRange, sigma: SigmaRatio, new_range: CurveRange) -> None:
    # a + b is linear in t, so positivity at both new ends covers the whole new range
    for t in new_range:
        if not sigma[0] * (t - r[0]) + sigma[1] * (r[1] - t) > 0.0:
            raise _reject(f"Range {new_range} reaches the pole of the bilinear parameter map")


def check_denominator(a: Sequence[float]) -> None:
    """
    Reject a weighted denominator [A0, A1, A2] that vanishes on the closed range.

    On the range both basis factors are non-negative, so with x = a/b > 0 the
    denominator is zero where A0 + A1*x + A2*x^2 has a positive root, or at an
    end where A0 or A2 is zero.

    Raises:
        CurveSpecError: If the denominator has a zero in the range.
    """
    a0, a1, a2 = (float(v) for v in a)
    if a0 == 0.0 or a2 == 0.0:
        raise _reject("Denominator vanishes at an end of the range")
    if a0 * a2 < 0.0:
        raise _reject("Denominator changes sign inside the range")
    if a0 * a1 < 0.0 and a1 * a1 >= 4.0 * a0 * a2:
        raise _reject("Denominator has a root inside the range")


###############################################################################
# Angles
###############################################################################


class AngleUnit(Enum):
    """Enum to define how a SpecAngle value is interpreted."""

    QUADRANT = auto()  # value * pi / 2
    RADIANS = auto()
    TAN_HALF = auto()  # value = tan(angle / 2)


@dataclass(frozen=True)
class SpecAngle:
    """Angle given in quadrants, radians or as the tangent of its half."""

    value: float = 0.5
    unit: AngleUnit = AngleUnit.QUADRANT

    def __post_init__(self) -> None:
        if not isinstance(self.unit, AngleUnit):
            raise CurveSpecError(f"Unknown angle unit {self.unit!r}")
        if not math.isfinite(self.value):
            raise CurveSpecError(f"Angle must be finite, got {self.value}")

    def radians(self) -> float:
        """The angle in radians."""
        if self.unit is AngleUnit.QUADRANT:
            return 0.5 * self.value * math.pi
        if self.unit is AngleUnit.TAN_HALF:
            return 2.0 * math.atan(self.value)
        return self.value

    def cos(self) -> float:
        """Cosine of the angle, computed rationally for TAN_HALF."""
        if self.unit is AngleUnit.TAN_HALF:
            t_sq = self.value * self.value
            return (1.0 - t_sq) / (1.0 + t_sq)
        return math.cos(self.radians())


###############################################################################
# Specifications
###############################################################################


@dataclass(frozen=True, eq=False)
class FourPointSpec:
    """Start point, two tangent control points and end point over a range."""

    points: NDArray[np.float64]
    r: CurveRange = DEFAULT_RANGE
    sigma: SigmaRatio = DEFAULT_SIGMA

    def __post_init__(self) -> None:
        object.__setattr__(self, "points", check_points(self.points, 4))
        object.__setattr__(self, "r", check_range(self.r))
        object.__setattr__(self, "sigma", check_sigma(self.sigma))


@dataclass(frozen=True, eq=False)
class ThreePointAngleSpec:
    """Start point, tangent-intersection point and end point plus the half-opening angle."""

    points: NDArray[np.float64]
    angle: SpecAngle = field(default_factory=SpecAngle)
    r: CurveRange = DEFAULT_RANGE
    sigma: SigmaRatio = DEFAULT_SIGMA

    def __post_init__(self) -> None:
        object.__setattr__(self, "points", check_points(self.points, 3))
        object.__setattr__(self, "r", check_range(self.r))
        object.__setattr__(self, "sigma", check_sigma(self.sigma))


###############################################################################
# ManagedRatQuad
###############################################################################


@dataclass(frozen=True, eq=False)
class ManagedRatQuad:
    """
    A weighted rational quadratic together with how it was specified.

    Transform methods return a new instance. ``specified`` is kept for
    diagnostics only and is dropped once the curve is transformed.
    """

    curve: WeightedQuadraticCurve
    specified: Optional[Union[FourPointSpec, ThreePointAngleSpec]] = None

    @classmethod
    def create_from_four_points(cls, spec: FourPointSpec) -> ManagedRatQuad:
        """
        Conic through the first and last point with tangents 3*(p1 - p0) and 3*(p3 - p2).

        The middle weight and the tangent intersection Q follow from the cross
        products of the chord p3 - p0 with the two tangent directions.

        Raises:
            CurveSpecError: If the tangents are parallel or the resulting
                denominator vanishes in the range.
        """
        points = spec.points
        x, y = points[:, 0], points[:, 1]
        start_dir = points[1] - points[0]
        end_dir = points[2] - points[3]
        scale = float(np.linalg.norm(start_dir) * np.linalg.norm(end_dir))

        delta_x = (x[2] - x[3]) * (y[1] - y[0])
        delta_y = (y[2] - y[3]) * (x[1] - x[0])
        w_b = delta_x - delta_y
        if scale == 0.0 or abs(w_b) <= _DEGENERACY_EPS * scale:
            raise _reject("Tangent directions at the two ends are parallel or zero")

        # w_b times the tangent intersection point
        w_b_x_m = (y[3] - y[0]) * (x[2] - x[3]) * (x[1] - x[0]) - x[3] * delta_y + x[0] * delta_x
        w_b_y_m = -((x[3] - x[0]) * (y[2] - y[3]) * (y[1] - y[0]) - y[3] * delta_x + y[0] * delta_y)
        w_a = 2.0 / 3.0 * (x[0] * (y[2] - y[3]) + x[2] * (y[3] - y[0]) + x[3] * (y[0] - y[2]))
        w_c = -2.0 / 3.0 * (y[0] * (x[2] - x[3]) + y[2] * (x[3] - x[0]) + y[3] * (x[0] - x[2]))

        a = [w_a, 2.0 * w_b, w_c]
        check_denominator(a)
        h = [
            [w_a * x[0], 2.0 * w_b_x_m, w_c * x[3]],
            [w_a * y[0], 2.0 * w_b_y_m, w_c * y[3]],
            a,
        ]
        return cls(WeightedQuadraticCurve(r=spec.r, h=h, sigma=spec.sigma), specified=spec)

    @classmethod
    def from_four_points(
        cls,
        points: Union[Sequence[Point2D], NDArray[np.float64]],
        r: CurveRange = DEFAULT_RANGE,
        sigma: SigmaRatio = DEFAULT_SIGMA,
    ) -> ManagedRatQuad:
        """Build from 4 control points, see ``create_from_four_points``."""
        return cls.create_from_four_points(FourPointSpec(points=points, r=r, sigma=sigma))

    @classmethod
    def create_from_three_points(cls, spec: ThreePointAngleSpec) -> ManagedRatQuad:
        """
        Single-weight conic with middle weight cos(angle).

        Half a quadrant through a right-angled corner gives a
        quarter circle.

        Raises:
            CurveSpecError: If the points are collinear or the weight puts a
                pole inside the range.
        """
        points = spec.points
        span = float(np.linalg.norm(points[1] - points[0]) * np.linalg.norm(points[2] - points[1]))
        if span == 0.0 or abs(_cross(points[1] - points[0], points[2] - points[1])) <= _DEGENERACY_EPS * span:
            raise _reject("Three-point specification is collinear")

        weight = 2.0 * spec.angle.cos()
        a = [1.0, weight, 1.0]
        check_denominator(a)
        h = [
            [points[0, 0], weight * points[1, 0], points[2, 0]],
            [points[0, 1], weight * points[1, 1], points[2, 1]],
            a,
        ]
        return cls(WeightedQuadraticCurve(r=spec.r, h=h, sigma=spec.sigma), specified=spec)

    @classmethod
    def from_three_points_and_angle(
        cls,
        points: Union[Sequence[Point2D], NDArray[np.float64]],
        angle: Optional[SpecAngle] = None,
        r: CurveRange = DEFAULT_RANGE,
        sigma: SigmaRatio = DEFAULT_SIGMA,
    ) -> ManagedRatQuad:
        """Build from 3 points and an angle, see ``create_from_three_points``."""
        if angle is None:
            angle = SpecAngle()
        spec = ThreePointAngleSpec(points=points, angle=angle, r=r, sigma=sigma)
        return cls.create_from_three_points(spec)

    @classmethod
    def create_from_polynomial(cls, power: PowerQuadraticCurve) -> ManagedRatQuad:
        """
        Wrap an existing power-form curve.

        Raises:
            CurveSpecError: If sigma is not positive or the denominator vanishes
                in the range.
        """
        check_sigma(power.sigma)
        weighted = power.to_weighted()
        check_denominator(weighted.h[2])
        return cls(weighted)

    def get_poly(self) -> PowerQuadraticCurve:
        """The curve in power form."""
        return self.curve.to_power()

    def displace(self, d: Point2D) -> ManagedRatQuad:
        """Translate the curve by ``d``."""
        return replace(self, curve=self.curve.displace(d), specified=None)

    def bilinear_transform(self, ratio: SigmaRatio) -> ManagedRatQuad:
        """Reparametrize by multiplying sigma with ``ratio``."""
        return replace(self, curve=self.curve.bilinear_transform(check_sigma(ratio)), specified=None)

    def select_range(self, new_range: CurveRange) -> ManagedRatQuad:
        """
        Restrict or extend to ``new_range``.

        Raises:
            CurveSpecError: If the new range reaches a pole of the curve.
        """
        new_range = check_range(new_range)
        _check_selectable(self.curve.r, self.curve.sigma, new_range)
        selected = self.curve.select_range(new_range)
        check_denominator(selected.h[2])
        return replace(self, curve=selected, specified=None)

    def raw_change_range(self, new_range: CurveRange) -> ManagedRatQuad:
        """Relabel the range without changing coefficients."""
        return replace(self, curve=self.curve.raw_change_range(check_range(new_range)), specified=None)

    def classify(self, tolerance: float = DEFAULT_CLASSIFY_TOLERANCE) -> ConicClass:
        """Classify into elliptical, parabolic or hyperbolic."""
        return create_from_ordinary(self.curve, tolerance)

    def to_path(self, tolerance: float = DEFAULT_CLASSIFY_TOLERANCE) -> PathPrimitive:
        """Classify and return the render-facing primitive."""
        return self.classify(tolerance).to_path()


###############################################################################
# ManagedCubic
###############################################################################


@dataclass(frozen=True, eq=False)
class ManagedCubic:
    """A weighted cubic built from Bezier control points."""

    curve: CubicCurve

    @classmethod
    def create_from_four_points(cls, spec: FourPointSpec) -> ManagedCubic:
        """Lift control points into cubic form with the middle coefficients times 3."""
        h = spec.points.T * np.array([1.0, 3.0, 3.0, 1.0])
        return cls(CubicCurve(r=spec.r, h=h, sigma=spec.sigma))

    @classmethod
    def from_four_points(
        cls,
        points: Union[Sequence[Point2D], NDArray[np.float64]],
        r: CurveRange = DEFAULT_RANGE,
        sigma: SigmaRatio = DEFAULT_SIGMA,
    ) -> ManagedCubic:
        """Build from 4 Bezier control points."""
        return cls.create_from_four_points(FourPointSpec(points=points, r=r, sigma=sigma))

    def displace(self, d: Point2D) -> ManagedCubic:
        """Translate the curve by ``d``."""
        return replace(self, curve=self.curve.displace(d))

    def bilinear_transform(self, ratio: SigmaRatio) -> ManagedCubic:
        """Reparametrize by multiplying sigma with ``ratio``."""
        return replace(self, curve=self.curve.bilinear_transform(check_sigma(ratio)))

    def select_range(self, new_range: CurveRange) -> ManagedCubic:
        """Restrict or extend to ``new_range``, which must not reach the pole of the parameter map."""
        new_range = check_range(new_range)
        _check_selectable(self.curve.r, self.curve.sigma, new_range)
        return replace(self, curve=self.curve.select_range(new_range))

    def raw_change_range(self, new_range: CurveRange) -> ManagedCubic:
        """Relabel the range without changing coefficients."""
        return replace(self, curve=self.curve.raw_change_range(check_range(new_range)))

    def to_path(self) -> CubicPath:
        """Render-facing cubic primitive."""
        return self.curve.to_path()
