"""Planar rational quadratic curves in homogeneous weighted and power form."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import TypeVar

import numpy as np
from numpy.typing import NDArray

from diagcurve.common import (
    CurveEndpoints,
    CurveRange,
    Point2D,
    SigmaRatio,
    TimePoints,
    check_range,
    readonly_rows,
)
from diagcurve.consts import DEFAULT_SIGMA
from diagcurve.matrix import BasisMatrix


def cross_rows(h: NDArray[np.float64]) -> NDArray[np.float64]:
    """
    Cross-combinations of numerator and denominator rows.

    For numerator N and denominator D written in either the power basis or the
    weighted basis, N'D - N D' reduces to these rows evaluated in the same
    basis (times the basis speed). Shape (2, 3), one row per axis.
    """
    a = h[2]
    num = h[:2]
    return np.stack(
        [
            a[0] * num[:, 1] - a[1] * num[:, 0],
            2.0 * (a[0] * num[:, 2] - a[2] * num[:, 0]),
            a[1] * num[:, 2] - a[2] * num[:, 1],
        ],
        axis=-1,
    )


###############################################################################
# Shared homogeneous quadratic behaviour
###############################################################################

_Q = TypeVar("_Q", bound="_HomogeneousQuadratic")


@dataclass(frozen=True, eq=False)
class _HomogeneousQuadratic:
    """Rows [x-numerator, y-numerator, denominator] over a range with sigma."""

    r: CurveRange
    h: NDArray[np.float64]
    sigma: SigmaRatio = DEFAULT_SIGMA

    def __post_init__(self) -> None:
        object.__setattr__(self, "r", check_range(self.r))
        object.__setattr__(self, "h", readonly_rows(self.h, (3, 3)))
        object.__setattr__(self, "sigma", (float(self.sigma[0]), float(self.sigma[1])))

    def displace(self: _Q, d: Point2D) -> _Q:
        """Translate every traced point by ``d``."""
        h = self.h.copy()
        h[0] += d[0] * h[2]
        h[1] += d[1] * h[2]
        return replace(self, h=h)

    def bilinear_transform(self: _Q, ratio: SigmaRatio) -> _Q:
        """Multiply sigma componentwise. The traced point set is unchanged."""
        return replace(self, sigma=(self.sigma[0] * ratio[0], self.sigma[1] * ratio[1]))

    def raw_change_range(self: _Q, new_range: CurveRange) -> _Q:
        """Relabel the domain without touching the coefficients."""
        return replace(self, r=new_range)

    def normalized(self: _Q) -> _Q:
        """Remove the projective scale by dividing by the denominator norm."""
        return replace(self, h=BasisMatrix.normalize(self.h))

    def approx_equal(self, other: object, rtol: float = 1e-9, atol: float = 1e-9) -> bool:
        """Compare range, sigma and coefficients within tolerance."""
        if type(other) is not type(self):
            return False
        return (
            np.allclose(self.r, other.r, rtol=rtol, atol=atol)
            and np.allclose(self.sigma, other.sigma, rtol=rtol, atol=atol)
            and np.allclose(self.h, other.h, rtol=rtol, atol=atol)
        )


###############################################################################
# WeightedQuadraticCurve
###############################################################################


@dataclass(frozen=True, eq=False)
class WeightedQuadraticCurve(_HomogeneousQuadratic):
    """
    Rational quadratic in the weighted basis [b^2, b*a, a^2].

    With a = sigma[0]*(t - r0) and b = sigma[1]*(r1 - t), the point at t is
    (x, y) = (h[0] . w(t), h[1] . w(t)) / (h[2] . w(t)). The middle
    coefficient of each row includes the binomial factor 2.
    """

    def eval_with_bilinear(self, t: TimePoints) -> NDArray[np.float64]:
        """Evaluate points at ``t``, returns shape (n, 2)."""
        values = BasisMatrix.expand_weighted(t, self.sigma, self.r) @ self.h.T
        return values[:, :2] / values[:, 2:3]

    def eval_derivative_scaled(self, t: TimePoints, scale: float) -> NDArray[np.float64]:
        """
        Analytic derivative of the point with respect to t, multiplied by ``scale``.

        Uses d(N/D)/dt = E(b, a) * sigma0 * sigma1 * (r1 - r0) / D^2 where E
        is built from ``cross_rows`` in the weighted basis.
        """
        basis = BasisMatrix.expand_weighted(t, self.sigma, self.r)
        denom = basis @ self.h[2]
        cross = basis @ cross_rows(self.h).T
        factor = self.sigma[0] * self.sigma[1] * (self.r[1] - self.r[0]) * scale / (denom * denom)
        return cross * factor[:, np.newaxis]

    def characterize_endpoints(self) -> CurveEndpoints:
        """Closed-form positions and (r1 - r0)-scaled derivatives at r0 and r1."""
        num = self.h[:2]
        den = self.h[2]
        cross = cross_rows(self.h)
        positions = np.array([num[:, 0] / den[0], num[:, 2] / den[2]])
        derivatives = np.array(
            [
                cross[:, 0] / (den[0] * den[0]) * (self.sigma[0] / self.sigma[1]),
                cross[:, 2] / (den[2] * den[2]) * (self.sigma[1] / self.sigma[0]),
            ]
        )
        return CurveEndpoints(positions, derivatives)

    def select_range(self, new_range: CurveRange) -> WeightedQuadraticCurve:
        """
        Restrict the curve to ``new_range`` by rational subdivision.

        The result evaluated over ``new_range`` traces exactly the original
        curve on that interval. No denominator zero may lie in the domain.
        """
        weights, new_sigma = BasisMatrix.selection_weights(self.r, self.sigma, new_range)
        h = BasisMatrix.apply_q_mat(self.h, BasisMatrix.quad_selection(*weights))
        return replace(self, r=new_range, h=h, sigma=new_sigma)

    def to_power(self) -> PowerQuadraticCurve:
        """Convert to the power basis, carrying sigma unchanged."""
        h = BasisMatrix.apply_q_mat(self.h, BasisMatrix.weighted_to_power(self.r))
        return PowerQuadraticCurve(r=self.r, h=h, sigma=self.sigma)


###############################################################################
# PowerQuadraticCurve
###############################################################################


@dataclass(frozen=True, eq=False)
class PowerQuadraticCurve(_HomogeneousQuadratic):
    """
    Rational quadratic in the power basis [1, s, s^2].

    The polynomials are sigma-free. A sigma other than (1, 1) means the curve is
    evaluated at the bilinearly transformed parameter s(t).
    """

    def eval_with_bilinear(self, t: TimePoints) -> NDArray[np.float64]:
        """Evaluate points at ``t``, returns shape (n, 2)."""
        s = BasisMatrix.bilinear_transform_timepoints(t, self.sigma, self.r)
        values = BasisMatrix.expand_power(s) @ self.h.T
        return values[:, :2] / values[:, 2:3]

    def eval_derivative_scaled(self, t: TimePoints, scale: float) -> NDArray[np.float64]:
        """Analytic derivative with respect to t, multiplied by ``scale``."""
        s = BasisMatrix.bilinear_transform_timepoints(t, self.sigma, self.r)
        basis = BasisMatrix.expand_power(s)
        denom = basis @ self.h[2]
        cross = basis @ cross_rows(self.h).T
        factor = BasisMatrix.bilinear_speed(t, self.sigma, self.r) * scale / (denom * denom)
        return cross * factor[:, np.newaxis]

    def sigma_free_endpoints(self) -> CurveEndpoints:
        """Endpoints of the polynomial ratio itself, ignoring sigma."""
        span = self.r[1] - self.r[0]
        basis = BasisMatrix.expand_power(self.r)
        values = basis @ self.h.T
        cross = basis @ cross_rows(self.h).T
        denom = values[:, 2:3]
        return CurveEndpoints(values[:, :2] / denom, cross * span / (denom * denom))

    def characterize_endpoints(self) -> CurveEndpoints:
        """Closed-form positions and (r1 - r0)-scaled derivatives at r0 and r1."""
        positions, derivatives = self.sigma_free_endpoints()
        derivatives[0] *= self.sigma[0] / self.sigma[1]
        derivatives[1] *= self.sigma[1] / self.sigma[0]
        return CurveEndpoints(positions, derivatives)

    def collapse_bilinear(self) -> PowerQuadraticCurve:
        """Fold sigma into the coefficients. The result has sigma (1, 1)."""
        h = BasisMatrix.apply_q_mat(self.h, BasisMatrix.bilinear_collapse(self.r, self.sigma))
        return replace(self, h=BasisMatrix.normalize(h), sigma=DEFAULT_SIGMA)

    def figure_symmetric_range(self) -> PowerQuadraticCurve:
        """Recentre on the range midpoint so the range becomes [-r_half, r_half]."""
        d = 0.5 * (self.r[0] + self.r[1])
        r_half = 0.5 * (self.r[1] - self.r[0])
        c0, c1, c2 = self.h[:, 0], self.h[:, 1], self.h[:, 2]
        h = np.stack([d * (d * c2 + c1) + c0, 2.0 * d * c2 + c1, c2], axis=-1)
        return replace(self, r=(-r_half, r_half), h=h)

    def to_weighted(self) -> WeightedQuadraticCurve:
        """Convert to the weighted basis, carrying sigma unchanged."""
        h = BasisMatrix.apply_q_mat(self.h, BasisMatrix.power_to_weighted(self.r))
        return WeightedQuadraticCurve(r=self.r, h=h, sigma=self.sigma)
