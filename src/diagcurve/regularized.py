"""Canonical symmetric-range forms of rational quadratics.

A regularized curve has range [-range_bound, range_bound], sigma (1, 1) and a
denominator a0 + a2*t^2 whose linear term has been removed by a bilinear
reparametrization. From there the elliptical, parabolic and hyperbolic
primitives follow in closed form.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from typing import Tuple

import numpy as np
from numpy.typing import NDArray

from diagcurve.common import CurveEndpoints, CurveRange, Point2D, SigmaRatio, TimePoints, readonly_rows
from diagcurve.consts import DEFAULT_SIGMA, REGULARIZED_LINEAR_TOLERANCE
from diagcurve.cubic import CubicCurve
from diagcurve.errors import CurveInvariantError
from diagcurve.paths import ArcPath, HyperbolicPath, hyperbolic_points
from diagcurve.rat_quad import PowerQuadraticCurve


###############################################################################
# RegularizedQuadraticCurve
###############################################################################


@dataclass(frozen=True, eq=False)
class RegularizedQuadraticCurve:
    """
    Power-form rational quadratic with a symmetric range and no linear denominator term.

    Attributes:
        range_bound (float): R, the range is [-R, R].
        a0 (float): Constant denominator coefficient.
        a2 (float): Quadratic denominator coefficient.
        b (NDArray): x-numerator power coefficients [b0, b1, b2].
        c (NDArray): y-numerator power coefficients [c0, c1, c2].
        sigma (SigmaRatio): Bilinear factor, (1, 1) after regularization.
    """

    range_bound: float
    a0: float
    a2: float
    b: NDArray[np.float64]
    c: NDArray[np.float64]
    sigma: SigmaRatio = DEFAULT_SIGMA

    def __post_init__(self) -> None:
        if not self.range_bound > 0.0:
            raise ValueError(f"range_bound must be positive, got {self.range_bound}")
        object.__setattr__(self, "range_bound", float(self.range_bound))
        object.__setattr__(self, "a0", float(self.a0))
        object.__setattr__(self, "a2", float(self.a2))
        object.__setattr__(self, "b", readonly_rows(self.b, (3,)))
        object.__setattr__(self, "c", readonly_rows(self.c, (3,)))

    @classmethod
    def create_by_raising_to_regularized_symmetric(cls, power: PowerQuadraticCurve) -> RegularizedQuadraticCurve:
        """
        Regularize a power-form curve.

        The range is centred, then sigma is overwritten with
        (sqrt|D(-R)|, sqrt|D(R)|) and collapsed into the coefficients. This
        cancels the linear denominator term.

        Raises:
            CurveInvariantError: If the denominator vanishes at a range end or
                the linear term survives the collapse.
        """
        centred = power.figure_symmetric_range()
        r_half = centred.r[1]
        a0, a1, a2 = centred.h[2]
        a_s = a2 * r_half * r_half + a0
        combo_s = a_s + a1 * r_half
        combo_d = a_s - a1 * r_half
        if combo_s == 0.0 or combo_d == 0.0:
            raise CurveInvariantError("Denominator vanishes at an end of the range")

        sigma_ratio = (math.sqrt(abs(combo_d)), math.sqrt(abs(combo_s)))
        collapsed = replace(centred, sigma=sigma_ratio).collapse_bilinear()

        a0, a1, a2 = collapsed.h[2]
        if not abs(a1) < REGULARIZED_LINEAR_TOLERANCE:
            raise CurveInvariantError(f"Linear denominator term {a1} did not vanish during regularization")
        return cls(
            range_bound=r_half, a0=a0, a2=a2, b=collapsed.h[0], c=collapsed.h[1], sigma=collapsed.sigma
        )

    @property
    def r(self) -> CurveRange:
        """The symmetric range (-R, R)."""
        return (-self.range_bound, self.range_bound)

    def to_power(self) -> PowerQuadraticCurve:
        """Equivalent power-form curve with a zero linear denominator term."""
        h = np.array([self.b, self.c, [self.a0, 0.0, self.a2]], dtype=np.float64)
        return PowerQuadraticCurve(r=self.r, h=h, sigma=self.sigma)

    def eval_with_bilinear(self, t: TimePoints) -> NDArray[np.float64]:
        """Evaluate points at ``t``, returns shape (n, 2)."""
        return self.to_power().eval_with_bilinear(t)

    def eval_derivative_scaled(self, t: TimePoints, scale: float) -> NDArray[np.float64]:
        """Analytic derivative with respect to t, multiplied by ``scale``."""
        return self.to_power().eval_derivative_scaled(t, scale)

    def characterize_endpoints(self) -> CurveEndpoints:
        """Closed-form positions and range-scaled derivatives at -R and R."""
        return self.to_power().characterize_endpoints()

    def normalized_leading(self) -> RegularizedQuadraticCurve:
        """Divide all coefficients by a0 so that a0 becomes 1."""
        s = 1.0 / self.a0
        return replace(self, a0=1.0, a2=self.a2 * s, b=self.b * s, c=self.c * s)

    def convert_to_parabolic(self) -> CubicCurve:
        """
        Hermite cubic matching the endpoint positions and derivatives.

        Sigma-free derivatives are used so that the cubic, which keeps this
        curve's sigma, reports the same compensated tangents.
        """
        positions, derivatives = self.to_power().sigma_free_endpoints()
        e0, e1 = positions
        d0, d1 = derivatives
        h = np.stack([e0, 3.0 * e0 + d0, 3.0 * e1 - d1, e1], axis=-1)
        return CubicCurve(r=self.r, h=h, sigma=self.sigma)

    def ellipse_frame(self) -> Tuple[Point2D, Tuple[float, float, float, float]]:
        """
        Centre and (cx, cy, sx, sy) map of the elliptical reshape.

        With a0 normalized to 1 the numerators split into
        offset = (b0 + b2/a2)/2, odd = b1 and even = (b0 - b2/a2)/2, so that
        substituting t = tan(theta/2)/sqrt(a2) gives
        offset + even*cos(theta) + odd/(2*sqrt(a2))*sin(theta).

        Raises:
            CurveInvariantError: If the denominator has real roots.
        """
        curve = self.normalized_leading()
        if not curve.a2 > 0.0:
            raise CurveInvariantError(f"Elliptical reshape needs a2/a0 > 0, got {curve.a2}")
        f = 1.0 / curve.a2
        sss = 1.0 / math.sqrt(curve.a2)
        b, c = curve.b, curve.c
        center = (float(0.5 * (b[0] + f * b[2])), float(0.5 * (c[0] + f * c[2])))
        transform = (
            float(0.5 * (b[0] - f * b[2])),
            float(0.5 * (c[0] - f * c[2])),
            float(0.5 * sss * b[1]),
            float(0.5 * sss * c[1]),
        )
        return center, transform

    def to_arc_path(self) -> ArcPath:
        """Elliptical arc over angles +/- 2*atan(R*sqrt(a2/a0))."""
        center, transform = self.ellipse_frame()
        half_angle = 2.0 * math.atan(self.range_bound * math.sqrt(self.a2 / self.a0))
        return ArcPath(angle_range=(-half_angle, half_angle), center=center, transform=transform)

    def convert_to_hyperbolic(self) -> HyperbolicCurve:
        """
        Partial-fraction form over the same parameter.

        With s = sign(a0), lambda = sqrt(s*a0) and mu = sqrt(-s*a2) the point is
        offset + minus/(lambda - mu*t) + plus/(lambda + mu*t).

        Raises:
            CurveInvariantError: If a0 is zero or -s*a2 is not positive.
        """
        if self.a0 == 0.0:
            raise CurveInvariantError("Hyperbolic form needs a non-zero constant denominator term")
        s = 1.0 if self.a0 > 0.0 else -1.0
        lambda_ = math.sqrt(s * self.a0)
        if not -s * self.a2 > 0.0:
            raise CurveInvariantError(f"Hyperbolic form needs -sign(a0)*a2 > 0, got a0={self.a0}, a2={self.a2}")
        mu = math.sqrt(-s * self.a2)

        def partials(row: NDArray[np.float64]) -> Tuple[float, float, float]:
            ratio = lambda_ / mu * row[2]
            offset = row[2] / self.a2
            plus = 0.5 * s * (row[0] / lambda_ + (-row[1] + ratio) / mu)
            minus = 0.5 * s * (row[0] / lambda_ + (row[1] + ratio) / mu)
            return offset, plus, minus

        x_offset, x_plus, x_minus = partials(self.b)
        y_offset, y_plus, y_minus = partials(self.c)
        return HyperbolicCurve(
            range=self.r,
            lambda_=lambda_,
            mu=mu,
            offset=(x_offset, y_offset),
            plus_partial=(x_plus, y_plus),
            minus_partial=(x_minus, y_minus),
        )


###############################################################################
# HyperbolicCurve
###############################################################################


@dataclass(frozen=True)
class HyperbolicCurve:
    """Hyperbola branch: point(t) = offset + minus/(lambda - mu*t) + plus/(lambda + mu*t)."""

    range: CurveRange
    lambda_: float
    mu: float
    offset: Point2D
    plus_partial: Point2D
    minus_partial: Point2D

    def eval(self, t: TimePoints) -> NDArray[np.float64]:
        """Points at the given parameters, shape (n, 2)."""
        return hyperbolic_points(t, self.lambda_, self.mu, self.offset, self.plus_partial, self.minus_partial)

    def to_regularized(self) -> RegularizedQuadraticCurve:
        """Recombine the partial fractions over the denominator lambda^2 - mu^2*t^2."""
        lam, mu = self.lambda_, self.mu

        def numerator(axis: int) -> Tuple[float, float, float]:
            off = self.offset[axis]
            plus = self.plus_partial[axis]
            minus = self.minus_partial[axis]
            return (lam * (off * lam + minus + plus), mu * (minus - plus), -off * mu * mu)

        return RegularizedQuadraticCurve(
            range_bound=self.range[1], a0=lam * lam, a2=-mu * mu, b=numerator(0), c=numerator(1)
        )

    def to_path(self) -> HyperbolicPath:
        """Render-facing primitive."""
        return HyperbolicPath(
            range=self.range,
            lambda_=self.lambda_,
            mu=self.mu,
            offset=self.offset,
            plus_partial=self.plus_partial,
            minus_partial=self.minus_partial,
        )
