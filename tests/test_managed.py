"""Test module for diagcurve.managed

The tests are run using pytest.
These tests ensure that control-point specifications are validated, that the
builders produce curves honouring the specified end points and tangents, and
that managed curves are immutable values.
"""

import dataclasses
import logging
import math

import numpy as np
import pytest

from diagcurve.errors import CurveSpecError
from diagcurve.managed import (
    AngleUnit,
    FourPointSpec,
    ManagedCubic,
    ManagedRatQuad,
    SpecAngle,
    ThreePointAngleSpec,
    check_denominator,
)
from diagcurve.paths import ArcPath, CubicPath
from diagcurve.rat_quad import PowerQuadraticCurve, WeightedQuadraticCurve

QUARTER_K = math.sqrt(2.0) / 3.0
QUARTER_POINTS = [(1.0, 0.0), (1.0, QUARTER_K), (QUARTER_K, 1.0), (0.0, 1.0)]
CORNER_POINTS = [(1.0, 0.0), (1.0, 1.0), (0.0, 1.0)]
BEZIER_POINTS = [(0.0, 0.0), (1.0, 2.0), (3.0, 2.0), (4.0, 0.0)]


###############################################################################
# SpecAngle Tests
###############################################################################


class TestSpecAngle:
    """Test angle unit conversions."""

    def test_default_is_half_quadrant(self):
        """The default angle is a half quadrant, pi/4."""
        angle = SpecAngle()
        assert angle.unit is AngleUnit.QUADRANT
        assert angle.radians() == pytest.approx(math.pi / 4.0)

    @pytest.mark.parametrize(
        "angle,expected",
        [
            (SpecAngle(1.0, AngleUnit.QUADRANT), math.pi / 2.0),
            (SpecAngle(0.3, AngleUnit.RADIANS), 0.3),
            (SpecAngle(1.0, AngleUnit.TAN_HALF), math.pi / 2.0),
        ],
    )
    def test_radians(self, angle, expected):
        """Each unit converts to radians."""
        assert angle.radians() == pytest.approx(expected)

    def test_tan_half_cosine_is_rational(self):
        """cos from tan(angle/2) uses (1 - t^2) / (1 + t^2)."""
        assert SpecAngle(1.0, AngleUnit.TAN_HALF).cos() == 0.0
        assert SpecAngle(0.5, AngleUnit.TAN_HALF).cos() == pytest.approx(0.6)

    def test_unknown_unit(self):
        """Only AngleUnit members are accepted."""
        with pytest.raises(CurveSpecError):
            SpecAngle(1.0, "degrees")

    def test_non_finite_value(self):
        """NaN and infinite angles are rejected."""
        with pytest.raises(CurveSpecError):
            SpecAngle(float("nan"))
        with pytest.raises(CurveSpecError):
            SpecAngle(float("inf"), AngleUnit.RADIANS)


###############################################################################
# Four-point Tests
###############################################################################


class TestFourPoint:
    """Test the four-point rational quadratic builder."""

    def test_quarter_circle(self):
        """Handles of length sqrt(2)/3 give the unit quarter circle."""
        managed = ManagedRatQuad.from_four_points(QUARTER_POINTS)
        points = managed.curve.eval_with_bilinear(np.linspace(0.0, 1.0, 21))
        assert np.allclose(np.linalg.norm(points, axis=1), 1.0)

    @pytest.mark.parametrize("r", [(0.0, 1.0), (2.0, 5.0)])
    def test_end_points_and_tangents(self, r):
        """End positions are p0, p3 and scaled tangents are 3*(p1 - p0), 3*(p3 - p2)."""
        managed = ManagedRatQuad.from_four_points(QUARTER_POINTS, r=r)
        positions, derivatives = managed.curve.characterize_endpoints()
        assert np.allclose(positions, [[1.0, 0.0], [0.0, 1.0]])
        assert np.allclose(derivatives, [[0.0, 3.0 * QUARTER_K], [-3.0 * QUARTER_K, 0.0]])

    def test_general_tangents(self):
        """Tangents follow the handles for an asymmetric specification."""
        points = np.array([(0.0, 0.0), (1.0, 1.5), (3.0, 2.0), (4.0, 0.5)])
        positions, derivatives = ManagedRatQuad.from_four_points(points).curve.characterize_endpoints()
        assert np.allclose(positions, points[[0, 3]])
        for derivative, handle in zip(derivatives, [points[1] - points[0], points[3] - points[2]]):
            cross = derivative[0] * handle[1] - derivative[1] * handle[0]
            assert cross == pytest.approx(0.0, abs=1e-9)
            assert np.dot(derivative, handle) > 0.0

    def test_keeps_specification(self):
        """The validated specification is kept alongside the curve."""
        managed = ManagedRatQuad.from_four_points(QUARTER_POINTS, sigma=(2.0, 1.0))
        assert isinstance(managed.specified, FourPointSpec)
        assert managed.curve.sigma == (2.0, 1.0)
        assert np.allclose(managed.specified.points, QUARTER_POINTS)

    def test_parallel_tangents(self):
        """Parallel end tangents have no intersection point."""
        with pytest.raises(CurveSpecError):
            ManagedRatQuad.from_four_points([(0.0, 0.0), (1.0, 0.0), (2.0, 1.0), (3.0, 1.0)])

    def test_zero_tangent(self):
        """A handle coinciding with its end point gives no tangent."""
        with pytest.raises(CurveSpecError):
            ManagedRatQuad.from_four_points([(0.0, 0.0), (0.0, 0.0), (2.0, 1.0), (3.0, 1.0)])

    def test_end_pole(self):
        """A specification putting a denominator zero at an end is rejected."""
        with pytest.raises(CurveSpecError):
            ManagedRatQuad.from_four_points([(0.0, 0.0), (1.0, 1.0), (2.0, 0.0), (1.0, 0.0)])

    def test_rejection_is_logged(self, caplog):
        """Rejected specifications are logged at DEBUG level."""
        with caplog.at_level(logging.DEBUG, logger="diagcurve.managed"):
            with pytest.raises(CurveSpecError):
                ManagedRatQuad.from_four_points([(0.0, 0.0), (1.0, 0.0), (2.0, 1.0), (3.0, 1.0)])
        assert "Rejecting curve specification" in caplog.text


###############################################################################
# Three-point Tests
###############################################################################


class TestThreePoint:
    """Test the three-point-and-angle builder."""

    def test_default_angle_gives_quarter_circle(self):
        """A right-angled corner with the default angle is a unit quarter circle."""
        managed = ManagedRatQuad.from_three_points_and_angle(CORNER_POINTS)
        curve = managed.curve
        points = curve.eval_with_bilinear(np.linspace(0.0, 1.0, 21))
        assert np.allclose(np.linalg.norm(points, axis=1), 1.0)
        assert np.allclose(curve.eval_with_bilinear(0.5), [[math.sqrt(0.5), math.sqrt(0.5)]])
        assert isinstance(managed.specified, ThreePointAngleSpec)

    def test_tan_half_angle_matches_quadrant(self):
        """The same angle in different units builds the same curve."""
        quadrant = ManagedRatQuad.from_three_points_and_angle(CORNER_POINTS, SpecAngle(0.5))
        tan_half = ManagedRatQuad.from_three_points_and_angle(
            CORNER_POINTS, SpecAngle(math.tan(math.pi / 8.0), AngleUnit.TAN_HALF)
        )
        assert quadrant.curve.approx_equal(tan_half.curve)

    def test_spec_object(self):
        """create_from_three_points accepts a prepared specification."""
        spec = ThreePointAngleSpec(points=CORNER_POINTS, r=(-1.0, 1.0))
        managed = ManagedRatQuad.create_from_three_points(spec)
        assert managed.curve.r == (-1.0, 1.0)
        assert managed.specified is spec

    def test_collinear(self):
        """Collinear points do not span a conic."""
        with pytest.raises(CurveSpecError):
            ManagedRatQuad.from_three_points_and_angle([(0.0, 0.0), (1.0, 1.0), (2.0, 2.0)])

    def test_full_turn_pole(self):
        """A weight of -2 puts a pole in the middle of the range."""
        with pytest.raises(CurveSpecError):
            ManagedRatQuad.from_three_points_and_angle(CORNER_POINTS, SpecAngle(2.0))


###############################################################################
# Specification validation Tests
###############################################################################


class TestSpecificationValidation:
    """Test checks applied when specifications are created."""

    def test_wrong_point_count(self):
        """Four-point builders need exactly four points."""
        with pytest.raises(CurveSpecError):
            ManagedRatQuad.from_four_points(CORNER_POINTS)
        with pytest.raises(CurveSpecError):
            ThreePointAngleSpec(points=QUARTER_POINTS)

    def test_reversed_range(self):
        """Ranges must be ordered."""
        with pytest.raises(CurveSpecError):
            ManagedRatQuad.from_four_points(QUARTER_POINTS, r=(1.0, 0.0))

    def test_non_positive_sigma(self):
        """Sigma components must be positive."""
        with pytest.raises(CurveSpecError):
            ManagedRatQuad.from_four_points(QUARTER_POINTS, sigma=(-1.0, 1.0))
        with pytest.raises(CurveSpecError):
            ManagedRatQuad.from_three_points_and_angle(CORNER_POINTS, sigma=(1.0, 0.0))

    def test_non_finite_points(self):
        """Control points must be finite."""
        with pytest.raises(CurveSpecError):
            FourPointSpec(points=[(0.0, 0.0), (1.0, float("nan")), (2.0, 1.0), (3.0, 0.0)])


class TestCheckDenominator:
    """Test the pole check on weighted denominators."""

    @pytest.mark.parametrize("a", [[1.0, 2.0, 1.0], [1.0, -1.0, 1.0], [-1.0, -0.5, -2.0], [2.0, 0.0, 0.5]])
    def test_accepts_pole_free(self, a):
        """Denominators without a zero on the closed range pass."""
        check_denominator(a)

    @pytest.mark.parametrize("a", [[0.0, 1.0, 1.0], [1.0, 1.0, 0.0], [1.0, 0.0, -1.0], [1.0, -2.0, 1.0], [1.0, -3.0, 1.0]])
    def test_rejects_poles(self, a):
        """Zeros at an end or inside the range are rejected."""
        with pytest.raises(CurveSpecError):
            check_denominator(a)


###############################################################################
# Managed transform Tests
###############################################################################


class TestManagedTransforms:
    """Test value semantics of managed rational quadratics."""

    def test_immutable(self):
        """Neither the managed curve nor its coefficients can be changed in place."""
        managed = ManagedRatQuad.from_four_points(QUARTER_POINTS)
        with pytest.raises(dataclasses.FrozenInstanceError):
            managed.curve = None
        with pytest.raises(ValueError):
            managed.curve.h[0, 0] = 5.0

    def test_transform_drops_specification(self):
        """Transformed curves no longer claim to match their specification."""
        managed = ManagedRatQuad.from_four_points(QUARTER_POINTS)
        moved = managed.displace((1.0, 2.0))
        assert moved.specified is None
        assert managed.specified is not None
        t = np.linspace(0.0, 1.0, 5)
        assert np.allclose(moved.curve.eval_with_bilinear(t), managed.curve.eval_with_bilinear(t) + [1.0, 2.0])

    def test_select_range(self):
        """Selecting a sub-range keeps the traced points."""
        managed = ManagedRatQuad.from_four_points(QUARTER_POINTS)
        selected = managed.select_range((0.25, 0.75))
        t = np.linspace(0.25, 0.75, 9)
        assert np.allclose(selected.curve.eval_with_bilinear(t), managed.curve.eval_with_bilinear(t))

    def test_select_range_widened(self):
        """Extending a pole-free arc stays on the circle."""
        managed = ManagedRatQuad.from_four_points(QUARTER_POINTS)
        widened = managed.select_range((-0.5, 1.5))
        assert widened.curve.r == (-0.5, 1.5)
        points = widened.curve.eval_with_bilinear(np.linspace(-0.5, 1.5, 17))
        assert np.allclose(np.linalg.norm(points, axis=1), 1.0)

    def test_select_range_reaching_denominator_root(self):
        """A range containing a zero of the denominator is rejected."""
        managed = ManagedRatQuad(WeightedQuadraticCurve(r=(0.0, 1.0), h=[[0.0, 3.0, 2.0], [0.0, 1.0, 0.0], [1.0, 3.0, 1.0]]))
        with pytest.raises(CurveSpecError):
            managed.select_range((-1.0, 1.0))

    @pytest.mark.parametrize("new_range", [(-0.5, 1.0), (-1.0, 1.0)])
    def test_select_range_reaching_parameter_pole(self, new_range):
        """A range reaching the zero of a + b is rejected."""
        managed = ManagedRatQuad.from_four_points(QUARTER_POINTS, sigma=(3.0, 1.0))
        with pytest.raises(CurveSpecError):
            managed.select_range(new_range)

    def test_bilinear_transform_keeps_ends(self):
        """A sigma change keeps the end points."""
        managed = ManagedRatQuad.from_four_points(QUARTER_POINTS)
        transformed = managed.bilinear_transform((3.0, 1.0))
        assert transformed.curve.sigma == (3.0, 1.0)
        assert np.allclose(transformed.curve.eval_with_bilinear((0.0, 1.0)), [[1.0, 0.0], [0.0, 1.0]])

    def test_bad_transform_arguments(self):
        """Transform arguments are validated like specifications."""
        managed = ManagedRatQuad.from_four_points(QUARTER_POINTS)
        with pytest.raises(CurveSpecError):
            managed.bilinear_transform((0.0, 1.0))
        with pytest.raises(CurveSpecError):
            managed.select_range((0.5, 0.5))
        with pytest.raises(CurveSpecError):
            managed.raw_change_range((2.0, 1.0))

    def test_raw_change_range(self):
        """Relabelling keeps coefficients."""
        managed = ManagedRatQuad.from_four_points(QUARTER_POINTS)
        relabelled = managed.raw_change_range((10.0, 20.0))
        assert relabelled.curve.r == (10.0, 20.0)
        assert np.array_equal(relabelled.curve.h, managed.curve.h)

    def test_polynomial_round_trip(self):
        """A wrapped power-form curve evaluates like the original."""
        power = PowerQuadraticCurve(r=(0.0, 2.0), h=[[1.0, 0.5, 0.2], [0.0, 1.0, -0.3], [1.0, 0.1, 0.4]])
        managed = ManagedRatQuad.create_from_polynomial(power)
        t = np.linspace(0.0, 2.0, 9)
        assert np.allclose(managed.get_poly().eval_with_bilinear(t), power.eval_with_bilinear(t))
        assert managed.specified is None

    def test_polynomial_with_denominator_root(self):
        """A power-form curve whose denominator changes sign in the range is rejected."""
        power = PowerQuadraticCurve(r=(0.0, 2.0), h=[[1.0, 0.0, 0.0], [0.0, 1.0, 0.0], [1.0, -1.0, 0.0]])
        with pytest.raises(CurveSpecError):
            ManagedRatQuad.create_from_polynomial(power)

    def test_to_path(self):
        """The quarter circle is drawn as an arc."""
        managed = ManagedRatQuad.from_four_points(QUARTER_POINTS)
        path = managed.to_path()
        assert isinstance(path, ArcPath)
        assert np.allclose(np.linalg.norm(path.polygonize(8), axis=1), 1.0)


###############################################################################
# ManagedCubic Tests
###############################################################################


class TestManagedCubic:
    """Test cubic construction from Bezier control points."""

    def test_control_points_round_trip(self):
        """Control points survive lifting into cubic form."""
        managed = ManagedCubic.from_four_points(BEZIER_POINTS)
        assert np.allclose(managed.curve.control_points(), BEZIER_POINTS)
        assert np.allclose(managed.curve.h[0], [0.0, 3.0, 9.0, 4.0])

    def test_midpoint(self):
        """The unit-sigma midpoint is (P0 + 3*P1 + 3*P2 + P3) / 8."""
        managed = ManagedCubic.from_four_points(BEZIER_POINTS)
        assert np.allclose(managed.curve.eval_with_bilinear(0.5), [[2.0, 1.5]])

    def test_transforms(self):
        """Managed cubic transforms return new curves."""
        managed = ManagedCubic.from_four_points(BEZIER_POINTS)
        moved = managed.displace((1.0, 1.0))
        assert np.allclose(moved.curve.control_points(), np.array(BEZIER_POINTS) + 1.0)
        selected = managed.select_range((0.0, 0.5))
        t = np.linspace(0.0, 0.5, 5)
        assert np.allclose(selected.curve.eval_with_bilinear(t), managed.curve.eval_with_bilinear(t))
        assert managed.bilinear_transform((2.0, 1.0)).curve.sigma == (2.0, 1.0)
        assert managed.raw_change_range((1.0, 2.0)).curve.r == (1.0, 2.0)

    def test_bad_arguments(self):
        """Specifications and transform arguments are validated."""
        with pytest.raises(CurveSpecError):
            ManagedCubic.from_four_points(BEZIER_POINTS[:3])
        managed = ManagedCubic.from_four_points(BEZIER_POINTS)
        with pytest.raises(CurveSpecError):
            managed.bilinear_transform((1.0, -1.0))

    @pytest.mark.parametrize("new_range", [(-0.5, 1.0), (-1.0, 1.0), (-2.0, 0.5)])
    def test_select_range_reaching_parameter_pole(self, new_range):
        """Selection stops short of the zero of a + b."""
        managed = ManagedCubic.from_four_points(BEZIER_POINTS, sigma=(3.0, 1.0))
        with pytest.raises(CurveSpecError):
            managed.select_range(new_range)

    def test_to_path(self):
        """The cubic path polygonizes from P0 to P3."""
        path = ManagedCubic.from_four_points(BEZIER_POINTS).to_path()
        assert isinstance(path, CubicPath)
        polyline = path.polygonize(4)
        assert np.allclose(polyline[0], [0.0, 0.0])
        assert np.allclose(polyline[-1], [4.0, 0.0])
        assert np.allclose(polyline[2], [2.0, 1.5])
