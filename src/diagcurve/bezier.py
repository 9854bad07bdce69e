"""Bezier control-point helpers used to turn cubic primitives into polylines."""

from __future__ import annotations

from typing import Sequence, Tuple, Union

import numpy as np
from numpy.typing import NDArray


class BezierCurve:
    """Class to handle plain cubic Bezier evaluation and polygonization.

    Sigma only changes the speed of a weighted cubic, so the traced point set
    is always the plain Bezier curve of its control points.
    """

    @classmethod
    def evaluate_cubic_curve(
        cls,
        points: Union[Sequence[Tuple[float, float]], NDArray[np.float64]],
        u: Union[float, Sequence[float], NDArray[np.float64]],
    ) -> NDArray[np.float64]:
        """
        Evaluate a cubic Bezier curve at normalized parameters u in [0, 1].

        Args:
            points: Control points, exactly 4 points: start, control1, control2, end
            u: Parameter value(s)

        Returns:
            NDArray[np.float64] of shape (n, 2)
        """
        points_array = np.array(points, dtype=np.float64)
        if points_array.shape != (4, 2):
            raise ValueError(f"Cubic Bezier needs 4 control points, got shape {points_array.shape}")
        u = np.atleast_1d(np.asarray(u, dtype=np.float64))

        # B(u) = (1-u)^3*P0 + 3*(1-u)^2*u*P1 + 3*(1-u)*u^2*P2 + u^3*P3
        omu = 1.0 - u
        basis = np.stack([omu**3, 3.0 * omu * omu * u, 3.0 * omu * u * u, u**3], axis=-1)
        return basis @ points_array

    @classmethod
    def polygonize_cubic_curve(
        cls, points: Union[Sequence[Tuple[float, float]], NDArray[np.float64]], steps: int
    ) -> NDArray[np.float64]:
        """
        Polygonize a cubic Bezier curve into line segments.

        Args:
            points: Control points, exactly 4 points: start, control1, control2, end
            steps: Number of segments to divide the curve into

        Returns:
            NDArray[np.float64] of shape (steps+1, 2) containing the polyline points
        """
        if steps < 1:
            raise ValueError(f"steps must be at least 1, got {steps}")
        return cls.evaluate_cubic_curve(points, np.linspace(0.0, 1.0, steps + 1, dtype=np.float64))
