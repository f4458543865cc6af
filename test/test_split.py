"""
Split Tests - Teilen von Elementen am nächstgelegenen Punkt
"""

import math

import numpy as np
import pytest

from parasketch import (
    ArcOfCircle, ArcOfEllipse, ArcOfParabola, BSplineCurve, Circle, ConstraintType, Ellipse,
    LineSegment, Point, PointPos, make_coincident, make_horizontal, make_point_on_object,
)


def _count(sketch, constraint_type):
    return len(sketch.constraints_of_type(constraint_type))


class TestSplitOpenCurves:

    def test_split_line(self, sketch):
        """Test: Strecke -> zwei Strecken, ein Coincident am Teilungspunkt."""
        geo_id = sketch.add_geometry(LineSegment((0, 0), (10, 0)))
        tag = sketch.get_geometry_id(geo_id)

        assert sketch.split(geo_id, (4, 1)) == 0

        assert sketch.get_highest_curve_index() == 1
        first, second = sketch.geometry
        assert first.end == pytest.approx((4.0, 0.0))
        assert second.start == pytest.approx((4.0, 0.0))
        assert second.end == pytest.approx((10.0, 0.0))
        assert first.tag == tag
        assert _count(sketch, ConstraintType.COINCIDENT) == 1
        c = sketch.constraints[0]
        assert (c.first, c.first_pos, c.second, c.second_pos) == (0, PointPos.END, 1, PointPos.START)

    def test_split_line_moves_end_constraints(self, sketch):
        """Test: Constraints am Endpunkt wandern auf das neue Teilstück."""
        sketch.add_geometry(LineSegment((0, 0), (10, 0)))
        sketch.add_geometry(LineSegment((10, 0), (10, 5)))
        sketch.add_constraint(make_coincident(0, PointPos.END, 1, PointPos.START))

        assert sketch.split(0, (5, 0)) == 0

        moved = sketch.constraints[0]
        assert (moved.first, moved.first_pos, moved.second, moved.second_pos) == \
            (2, PointPos.END, 1, PointPos.START)

    def test_split_line_copies_horizontal(self, sketch):
        sketch.add_geometry(LineSegment((0, 0), (10, 0)))
        sketch.add_constraint(make_horizontal(0))

        assert sketch.split(0, (5, 0)) == 0

        assert sorted(c.first for c in sketch.constraints_of_type(ConstraintType.HORIZONTAL)) == [0, 1]

    def test_split_line_redistributes_point_on_object(self, sketch):
        sketch.add_geometry(LineSegment((0, 0), (10, 0)))
        sketch.add_geometry(Point(8, 0))
        sketch.add_constraint(make_point_on_object(1, PointPos.START, 0))

        assert sketch.split(0, (5, 0)) == 0

        poo = sketch.constraints_of_type(ConstraintType.POINT_ON_OBJECT)
        assert len(poo) == 1
        assert poo[0].second == 2

    def test_split_at_end_fails(self, sketch):
        """Test: Teilung am Kurvenende -> -2, Sketch unverändert."""
        sketch.add_geometry(LineSegment((0, 0), (10, 0)))
        assert sketch.split(0, (0, 0)) == -2
        assert sketch.split(0, (12, 3)) == -2
        assert sketch.get_highest_curve_index() == 0
        assert sketch.constraints == []

    def test_split_arc_of_circle(self, sketch):
        """Test: Kreisbogen -> zwei Bögen, Coincident am Stoß und an den Zentren."""
        sketch.add_geometry(ArcOfCircle((0, 0), 2.0, 0.0, math.pi))

        assert sketch.split(0, (0, 3)) == 0

        assert sketch.get_highest_curve_index() == 1
        first, second = sketch.geometry
        assert first.end_param == pytest.approx(math.pi / 2)
        assert second.start_param == pytest.approx(math.pi / 2)
        assert second.end_param == pytest.approx(math.pi)
        assert _count(sketch, ConstraintType.COINCIDENT) == 2
        assert any(c.first_pos == PointPos.MID and c.second_pos == PointPos.MID for c in sketch.constraints)

    def test_split_arc_of_parabola(self, sketch):
        sketch.add_geometry(ArcOfParabola((0, 0), 1.0, 0.0, -2.0, 2.0))

        assert sketch.split(0, (0.25, 1.0)) == 0

        assert sketch.get_highest_curve_index() == 1
        assert sketch.geometry[0].end_param == pytest.approx(1.0, abs=1e-6)
        assert _count(sketch, ConstraintType.COINCIDENT) == 1

    def test_split_non_periodic_bspline(self, sketch, non_periodic_bspline):
        geo_id = sketch.add_geometry(non_periodic_bspline)
        split_point = non_periodic_bspline.point_at_normalized_parameter(0.5)

        assert sketch.split(geo_id, split_point) == 0

        assert sketch.get_highest_curve_index() == 1
        first, second = sketch.geometry
        assert isinstance(first, BSplineCurve) and isinstance(second, BSplineCurve)
        assert np.allclose(first.end_point(), split_point, atol=1e-6)
        assert np.allclose(second.start_point(), split_point, atol=1e-6)
        assert np.allclose(second.end_point(), (0, 0), atol=1e-9)
        assert _count(sketch, ConstraintType.COINCIDENT) == 1

    def test_split_bspline_keeps_shape(self, sketch, non_periodic_bspline):
        sketch.add_geometry(non_periodic_bspline)
        sketch.split(0, non_periodic_bspline.value(1.0))
        for u in (0.25, 0.75):
            assert np.allclose(sketch.geometry[0].value(u), non_periodic_bspline.value(u), atol=1e-8)


class TestSplitClosedCurves:
    """Geschlossene Kurven werden in place geöffnet."""

    def test_split_circle(self, sketch):
        sketch.add_geometry(Circle((0, 0), 2.0))

        assert sketch.split(0, (0, 5)) == 0

        assert sketch.get_highest_curve_index() == 0
        arc = sketch.geometry[0]
        assert isinstance(arc, ArcOfCircle)
        assert np.allclose(arc.start_point(), (0, 2), atol=1e-12)
        assert np.allclose(arc.end_point(), (0, 2), atol=1e-12)
        assert arc.end_param - arc.start_param == pytest.approx(2 * math.pi)

    def test_split_ellipse(self, sketch):
        sketch.add_geometry(Ellipse((0, 0), 3.0, 2.0))

        assert sketch.split(0, (0, 2)) == 0

        assert sketch.get_highest_curve_index() == 0
        arc = sketch.geometry[0]
        assert isinstance(arc, ArcOfEllipse)
        assert np.allclose(arc.start_point(), (0, 2), atol=1e-6)

    def test_split_ellipse_keeps_helpers(self, sketch):
        sketch.add_geometry(Ellipse((0, 0), 3.0, 2.0))
        sketch.expose_internal_geometry(0)

        assert sketch.split(0, (0, 2)) == 0

        assert sketch.get_highest_curve_index() == 4
        assert len(sketch.get_internal_helpers(0)) == 4

    def test_split_periodic_bspline(self, sketch, periodic_bspline):
        sketch.add_geometry(periodic_bspline)
        split_point = periodic_bspline.value(1.0)

        assert sketch.split(0, split_point) == 0

        assert sketch.get_highest_curve_index() == 0
        opened = sketch.geometry[0]
        assert isinstance(opened, BSplineCurve)
        assert not opened.periodic
        assert np.allclose(opened.start_point(), split_point, atol=1e-6)
        assert np.allclose(opened.end_point(), split_point, atol=1e-6)


class TestSplitInvalid:

    def test_invalid_geo_id(self, sketch):
        assert sketch.split(0, (0, 0)) == -1
        sketch.add_geometry(LineSegment((0, 0), (1, 0)))
        assert sketch.split(-1, (0, 0)) == -1
        assert sketch.split(3, (0, 0)) == -1

    def test_point_is_no_target(self, sketch):
        sketch.add_geometry(Point(1, 1))
        assert sketch.split(0, (1, 1)) == -1
