"""Classification of rational quadratic arcs into drawable conic families.

``create_from_ordinary`` runs the decision procedure:

1. Discriminant of the power-form denominator: complex roots give the
   elliptical candidate, real roots the hyperbolic candidate.
2. Regularize to a symmetric range with no linear denominator term.
3. If |a2| * R^2 < |a0| * tolerance the quadratic term is negligible and the
   arc is degraded to a parabola (a Hermite cubic).
4. Elliptical candidates whose 2x2 frame is near-singular are degraded to a
   parabola too. Everything else is accepted as elliptical or hyperbolic.

A larger tolerance can only move a classification towards Parabolic.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Union

from diagcurve.common import ConicKind
from diagcurve.consts import DEFAULT_CLASSIFY_TOLERANCE
from diagcurve.cubic import CubicCurve
from diagcurve.errors import CurveSpecError
from diagcurve.paths import ArcPath, CubicPath, HyperbolicPath
from diagcurve.rat_quad import PowerQuadraticCurve, WeightedQuadraticCurve
from diagcurve.regularized import HyperbolicCurve, RegularizedQuadraticCurve

logger = logging.getLogger(__name__)


###############################################################################
# ConicClass
###############################################################################


@dataclass(frozen=True)
class Unclassified:
    """Placeholder before classification. Never produced for well-formed input."""

    kind = ConicKind.NONE

    def to_path(self) -> None:
        """An unclassified conic has no drawable primitive."""
        raise ValueError("Unclassified conic has no path primitive")


@dataclass(frozen=True, eq=False)
class EllipticalConic:
    """Elliptical arc, carrying the regularized curve normalized to a0 = 1."""

    curve: RegularizedQuadraticCurve
    kind = ConicKind.ELLIPTICAL

    def to_path(self) -> ArcPath:
        """Arc primitive with centre, cos/sin frame and angle range."""
        return self.curve.to_arc_path()


@dataclass(frozen=True, eq=False)
class ParabolicConic:
    """Parabola, or a near-degenerate conic, represented as a cubic."""

    curve: CubicCurve
    kind = ConicKind.PARABOLIC

    def to_path(self) -> CubicPath:
        """Cubic primitive."""
        return self.curve.to_path()


@dataclass(frozen=True)
class HyperbolicConic:
    """Hyperbola branch in partial-fraction form."""

    curve: HyperbolicCurve
    kind = ConicKind.HYPERBOLIC

    def to_path(self) -> HyperbolicPath:
        """Hyperbolic primitive."""
        return self.curve.to_path()


ConicClass = Union[Unclassified, EllipticalConic, ParabolicConic, HyperbolicConic]


###############################################################################
# Decision procedure
###############################################################################


def _is_negligible_quadratic(regularized: RegularizedQuadraticCurve, tolerance: float) -> bool:
    r_sq = regularized.range_bound * regularized.range_bound
    return abs(regularized.a2) * r_sq < abs(regularized.a0) * tolerance


def _classify_elliptical(regularized: RegularizedQuadraticCurve, tolerance: float) -> ConicClass:
    normalized = regularized.normalized_leading()
    _, (cx, cy, sx, sy) = normalized.ellipse_frame()
    determinant = sx * cy - sy * cx
    frobenius_sq = sx * sx + sy * sy + cx * cx + cy * cy
    if abs(determinant) < tolerance * frobenius_sq:
        logger.debug("Elliptical frame is near-singular (det=%g), degrading to parabola", determinant)
        return ParabolicConic(regularized.convert_to_parabolic())
    return EllipticalConic(normalized)


def create_from_power(power: PowerQuadraticCurve, tolerance: float = DEFAULT_CLASSIFY_TOLERANCE) -> ConicClass:
    """
    Classify a power-form rational quadratic.

    Args:
        power: Curve to classify. Its denominator must not vanish in the range.
        tolerance: Degeneracy tolerance, strictly positive.

    Returns:
        ConicClass: EllipticalConic, ParabolicConic or HyperbolicConic.

    Raises:
        CurveSpecError: If the tolerance is not positive.
        CurveInvariantError: If an algebra invariant fails while regularizing.
    """
    if not tolerance > 0.0:
        raise CurveSpecError(f"Classification tolerance must be positive, got {tolerance}")

    a0, a1, a2 = power.h[2]
    is_elliptical = a1 * a1 < 4.0 * a0 * a2
    logger.debug(
        "Denominator discriminant %g: %s candidate",
        a1 * a1 - 4.0 * a0 * a2,
        "elliptical" if is_elliptical else "hyperbolic",
    )

    regularized = RegularizedQuadraticCurve.create_by_raising_to_regularized_symmetric(power)

    if _is_negligible_quadratic(regularized, tolerance):
        logger.debug("Quadratic denominator term negligible, degrading to parabola")
        result: ConicClass = ParabolicConic(regularized.convert_to_parabolic())
    elif is_elliptical:
        result = _classify_elliptical(regularized, tolerance)
    else:
        result = HyperbolicConic(regularized.convert_to_hyperbolic())

    logger.debug("Classified conic as %s", result.kind.name)
    return result


def create_from_ordinary(
    curve: WeightedQuadraticCurve, tolerance: float = DEFAULT_CLASSIFY_TOLERANCE
) -> ConicClass:
    """Classify a weighted rational quadratic, see ``create_from_power``."""
    return create_from_power(curve.to_power(), tolerance)
