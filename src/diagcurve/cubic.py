"""Planar cubic curves in the weighted cubic Bernstein basis."""

from __future__ import annotations

from dataclasses import dataclass, replace

import numpy as np
from numpy.typing import NDArray

from diagcurve.common import (
    CurveEndpoints,
    CurveRange,
    Point2D,
    SigmaRatio,
    TimePoints,
    as_time_points,
    check_range,
    readonly_rows,
)
from diagcurve.consts import DEFAULT_SIGMA
from diagcurve.matrix import BasisMatrix
from diagcurve.paths import CubicPath

# Basis weights of the implicit denominator (a + b)^3
_CUBIC_BINOMIALS: NDArray[np.float64] = np.array([1.0, 3.0, 3.0, 1.0], dtype=np.float64)


@dataclass(frozen=True, eq=False)
class CubicCurve:
    """
    Cubic with rows h = [X, Y] over a range with bilinear factor sigma.

    Each row is [P0, 3*P1, 3*P2, P3] for Bezier control points P. With
    a = sigma[0]*(t - r0) and b = sigma[1]*(r1 - t) the point at t is

        (h . [b^3, b^2*a, b*a^2, a^3]) / (a + b)^3

    so a sigma other than (1, 1) only changes the speed along the curve.
    """

    r: CurveRange
    h: NDArray[np.float64]
    sigma: SigmaRatio = DEFAULT_SIGMA

    def __post_init__(self) -> None:
        object.__setattr__(self, "r", check_range(self.r))
        object.__setattr__(self, "h", readonly_rows(self.h, (2, 4)))
        object.__setattr__(self, "sigma", (float(self.sigma[0]), float(self.sigma[1])))

    def _basis_sum(self, t: TimePoints) -> NDArray[np.float64]:
        t = as_time_points(t)
        return self.sigma[0] * (t - self.r[0]) + self.sigma[1] * (self.r[1] - t)

    def eval_with_bilinear(self, t: TimePoints) -> NDArray[np.float64]:
        """Evaluate points at ``t``, returns shape (n, 2)."""
        basis = BasisMatrix.expand_cubic_weighted(t, self.sigma, self.r)
        recip = 1.0 / self._basis_sum(t)
        return (basis @ self.h.T) * (recip * recip * recip)[:, np.newaxis]

    def eval_derivative_scaled(self, t: TimePoints, scale: float) -> NDArray[np.float64]:
        """
        Analytic derivative with respect to t, multiplied by ``scale``.

        d/dt = (N_a - N_b) * sigma0 * sigma1 * (r1 - r0) / (a + b)^4, with the
        quadratic N_a - N_b having weighted rows [h1 - 3h0, 2(h2 - h1), 3h3 - h2].
        """
        h = self.h
        rows = np.stack([h[:, 1] - 3.0 * h[:, 0], 2.0 * (h[:, 2] - h[:, 1]), 3.0 * h[:, 3] - h[:, 2]], axis=-1)
        basis = BasisMatrix.expand_weighted(t, self.sigma, self.r)
        recip = 1.0 / self._basis_sum(t)
        factor = scale * self.sigma[0] * self.sigma[1] * (self.r[1] - self.r[0]) * recip**4
        return (basis @ rows.T) * factor[:, np.newaxis]

    def characterize_endpoints(self) -> CurveEndpoints:
        """Closed-form positions and (r1 - r0)-scaled derivatives at r0 and r1."""
        h = self.h
        positions = np.array([h[:, 0], h[:, 3]])
        derivatives = np.array(
            [
                (h[:, 1] - 3.0 * h[:, 0]) * (self.sigma[0] / self.sigma[1]),
                (3.0 * h[:, 3] - h[:, 2]) * (self.sigma[1] / self.sigma[0]),
            ]
        )
        return CurveEndpoints(positions, derivatives)

    def displace(self, d: Point2D) -> CubicCurve:
        """Translate every traced point by ``d``."""
        h = self.h + np.outer(np.asarray(d, dtype=np.float64), _CUBIC_BINOMIALS)
        return replace(self, h=h)

    def bilinear_transform(self, ratio: SigmaRatio) -> CubicCurve:
        """Multiply sigma componentwise. The traced point set is unchanged."""
        return replace(self, sigma=(self.sigma[0] * ratio[0], self.sigma[1] * ratio[1]))

    def raw_change_range(self, new_range: CurveRange) -> CubicCurve:
        """Relabel the domain without touching the coefficients."""
        return replace(self, r=new_range)

    def select_range(self, new_range: CurveRange) -> CubicCurve:
        """Restrict the curve to ``new_range``, reproducing it exactly there."""
        weights, new_sigma = BasisMatrix.selection_weights(self.r, self.sigma, new_range)
        h = BasisMatrix.apply_c_mat(self.h, BasisMatrix.cubic_selection(*weights))
        return replace(self, r=new_range, h=h, sigma=new_sigma)

    def control_points(self) -> NDArray[np.float64]:
        """Bezier control points, shape (4, 2)."""
        return (self.h / _CUBIC_BINOMIALS).T

    def approx_equal(self, other: object, rtol: float = 1e-9, atol: float = 1e-9) -> bool:
        """Compare range, sigma and coefficients within tolerance."""
        if not isinstance(other, CubicCurve):
            return False
        return (
            np.allclose(self.r, other.r, rtol=rtol, atol=atol)
            and np.allclose(self.sigma, other.sigma, rtol=rtol, atol=atol)
            and np.allclose(self.h, other.h, rtol=rtol, atol=atol)
        )

    def to_path(self) -> CubicPath:
        """Render-facing primitive. Sigma is dropped since it does not move points."""
        return CubicPath(r=self.r, h=tuple(tuple(float(v) for v in row) for row in self.h))
