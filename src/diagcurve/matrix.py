"""Fixed-size basis-change matrices and expansions for homogeneous curve rows.

Every homogeneous curve stores one coefficient row per coordinate (numerators
first, then the denominator for rational quadratics). A basis change on the
parameter expansion is a right-multiplication of each row by a 3x3 (quadratic)
or 4x4 (cubic) matrix, so ``apply_q_mat(h, m)[i, j] = sum_k h[i, k] * m[k, j]``.

The weighted basis for a range (r0, r1) and bilinear factor sigma uses

    a = sigma[0] * (t - r0)
    b = sigma[1] * (r1 - t)

with the quadratic expansion [b^2, b*a, a^2] and the cubic expansion
[b^3, b^2*a, b*a^2, a^3]. Binomial factors live in the coefficients.
"""

from __future__ import annotations

from typing import Tuple

import numpy as np
from numpy.typing import NDArray

from diagcurve.common import CurveRange, SigmaRatio, TimePoints, as_time_points
from diagcurve.errors import CurveInvariantError

###############################################################################
# BasisMatrix
###############################################################################


class BasisMatrix:
    """Class to provide static builders and applicators for basis-change matrices."""

    @staticmethod
    def weighted_to_power(r: CurveRange) -> NDArray[np.float64]:
        """
        Matrix converting sigma-free weighted rows into power rows (1, t, t^2).

        Args:
            r (CurveRange): The range (v, w) of the weighted basis.

        Returns:
            NDArray[np.float64]: 3x3 matrix for ``apply_q_mat``.
        """
        v, w = r
        return np.array(
            [
                [w * w, -2.0 * w, 1.0],
                [-v * w, v + w, -1.0],
                [v * v, -2.0 * v, 1.0],
            ],
            dtype=np.float64,
        )

    @staticmethod
    def power_to_weighted(r: CurveRange) -> NDArray[np.float64]:
        """
        Matrix converting power rows into sigma-free weighted rows.

        The result is scaled by (w - v)^2 relative to the exact inverse of
        ``weighted_to_power``, which is irrelevant for projective rows.
        """
        v, w = r
        return np.array(
            [
                [1.0, 2.0, 1.0],
                [v, v + w, w],
                [v * v, 2.0 * v * w, w * w],
            ],
            dtype=np.float64,
        )

    @staticmethod
    def bilinear_collapse(r: CurveRange, sigma: SigmaRatio) -> NDArray[np.float64]:
        """
        Power-basis matrix that folds sigma into the coefficients.

        Substitutes s = (w*t + x) / (y*t + z) and multiplies through by
        (y*t + z)^2, where with p = -r0, q = r1 and (sn, sd) = sigma

            w = sn*q + sd*p,  x = (sn - sd)*p*q,  y = sn - sd,  z = sd*q + sn*p.

        The map fixes both range endpoints.
        """
        p = -r[0]
        q = r[1]
        sigma_n, sigma_d = sigma
        w = sigma_n * q + sigma_d * p
        x = (sigma_n - sigma_d) * p * q
        y = sigma_n - sigma_d
        z = sigma_d * q + sigma_n * p
        return np.array(
            [
                [z * z, 2.0 * y * z, y * y],
                [x * z, x * y + w * z, w * y],
                [x * x, 2.0 * w * x, w * w],
            ],
            dtype=np.float64,
        )

    @staticmethod
    def selection_weights(
        r: CurveRange, sigma: SigmaRatio, new_range: CurveRange
    ) -> Tuple[Tuple[float, float, float, float], SigmaRatio]:
        """
        Blend weights and resulting sigma for selecting ``new_range``.

        Returns:
            Tuple: ((alpha, beta, gamma, delta), new_sigma)
        """
        a_k = sigma[0] * (new_range[0] - r[0])
        b_k = sigma[1] * (r[1] - new_range[0])
        a_l = sigma[0] * (new_range[1] - r[0])
        b_l = sigma[1] * (r[1] - new_range[1])
        alpha = b_k / (a_k + b_k)
        gamma = b_l / (a_l + b_l)
        return (alpha, 1.0 - alpha, gamma, 1.0 - gamma), (a_l + b_l, a_k + b_k)

    @staticmethod
    def quad_selection(alpha: float, beta: float, gamma: float, delta: float) -> NDArray[np.float64]:
        """
        Quadratic selection matrix.

        Old basis factors are rewritten in the new ones as
        b = alpha*b' + gamma*a' and a = beta*b' + delta*a'.
        """
        return np.array(
            [
                [alpha * alpha, 2.0 * alpha * gamma, gamma * gamma],
                [alpha * beta, alpha * delta + beta * gamma, gamma * delta],
                [beta * beta, 2.0 * beta * delta, delta * delta],
            ],
            dtype=np.float64,
        )

    @staticmethod
    def cubic_selection(alpha: float, beta: float, gamma: float, delta: float) -> NDArray[np.float64]:
        """Cubic selection matrix, same substitution as ``quad_selection``."""
        return np.array(
            [
                [alpha**3, 3.0 * alpha * alpha * gamma, 3.0 * alpha * gamma * gamma, gamma**3],
                [
                    alpha * alpha * beta,
                    alpha * alpha * delta + 2.0 * alpha * beta * gamma,
                    gamma * gamma * beta + 2.0 * alpha * gamma * delta,
                    gamma * gamma * delta,
                ],
                [
                    alpha * beta * beta,
                    gamma * beta * beta + 2.0 * alpha * beta * delta,
                    alpha * delta * delta + 2.0 * beta * gamma * delta,
                    gamma * delta * delta,
                ],
                [beta**3, 3.0 * beta * beta * delta, 3.0 * beta * delta * delta, delta**3],
            ],
            dtype=np.float64,
        )

    @staticmethod
    def apply_q_mat(h: NDArray[np.float64], q_mat: NDArray[np.float64]) -> NDArray[np.float64]:
        """Right-multiply each 3-coefficient row of ``h`` by ``q_mat``."""
        return np.asarray(h, dtype=np.float64) @ q_mat

    @staticmethod
    def apply_c_mat(h: NDArray[np.float64], c_mat: NDArray[np.float64]) -> NDArray[np.float64]:
        """Right-multiply each 4-coefficient row of ``h`` by ``c_mat``."""
        return np.asarray(h, dtype=np.float64) @ c_mat

    @staticmethod
    def normalize(h: NDArray[np.float64]) -> NDArray[np.float64]:
        """
        Rescale all rows by 1 / |denominator row| (the last row).

        Raises:
            CurveInvariantError: If the denominator row is zero.
        """
        h = np.asarray(h, dtype=np.float64)
        norm = float(np.linalg.norm(h[-1]))
        if norm == 0.0:
            raise CurveInvariantError("Cannot normalize homogeneous rows with a zero denominator")
        return h / norm

    @staticmethod
    def expand_weighted(t: TimePoints, sigma: SigmaRatio, r: CurveRange) -> NDArray[np.float64]:
        """Quadratic weighted basis [b^2, b*a, a^2], shape (n, 3)."""
        t = as_time_points(t)
        a = sigma[0] * (t - r[0])
        b = sigma[1] * (r[1] - t)
        return np.stack([b * b, b * a, a * a], axis=-1)

    @staticmethod
    def expand_cubic_weighted(t: TimePoints, sigma: SigmaRatio, r: CurveRange) -> NDArray[np.float64]:
        """Cubic weighted basis [b^3, b^2*a, b*a^2, a^3], shape (n, 4)."""
        t = as_time_points(t)
        a = sigma[0] * (t - r[0])
        b = sigma[1] * (r[1] - t)
        return np.stack([b * b * b, b * b * a, b * a * a, a * a * a], axis=-1)

    @staticmethod
    def expand_power(t: TimePoints) -> NDArray[np.float64]:
        """Power basis [1, t, t^2], shape (n, 3)."""
        t = as_time_points(t)
        return np.stack([np.ones_like(t), t, t * t], axis=-1)

    @staticmethod
    def bilinear_transform_timepoints(t: TimePoints, sigma: SigmaRatio, r: CurveRange) -> NDArray[np.float64]:
        """
        Map parameters of a curve with bilinear factor sigma onto the sigma-free curve.

        The weighted expansion is homogeneous in (b, a), so evaluating with sigma
        at t is the same as evaluating without sigma at

            s = (r0*sigma1*(r1 - t) + r1*sigma0*(t - r0)) / (sigma1*(r1 - t) + sigma0*(t - r0))
        """
        t = as_time_points(t)
        a = sigma[0] * (t - r[0])
        b = sigma[1] * (r[1] - t)
        return (r[0] * b + r[1] * a) / (a + b)

    @staticmethod
    def bilinear_speed(t: TimePoints, sigma: SigmaRatio, r: CurveRange) -> NDArray[np.float64]:
        """Derivative ds/dt of ``bilinear_transform_timepoints``."""
        t = as_time_points(t)
        denom = sigma[1] * (r[1] - t) + sigma[0] * (t - r[0])
        span = r[1] - r[0]
        return sigma[0] * sigma[1] * span * span / (denom * denom)
