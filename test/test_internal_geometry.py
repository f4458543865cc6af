"""
Tests für interne Hilfsgeometrie (Achsen, Brennpunkte, Pole, Knoten)
"""

import math

import pytest

from parasketch import (
    ArcOfEllipse, ArcOfHyperbola, ArcOfParabola, ConstraintType, Ellipse,
    InternalAlignmentType, LineSegment, Point, PointPos, make_coincident,
)


def _alignment_types(sketch, geo_id):
    return [sketch.constraints[i].alignment_type for _, i in sketch.get_internal_helpers(geo_id)]


def _helper_of(sketch, geo_id, alignment_type, index=-1):
    for helper_id, i in sketch.get_internal_helpers(geo_id):
        constraint = sketch.constraints[i]
        if constraint.alignment_type == alignment_type and constraint.internal_alignment_index == index:
            return helper_id
    raise LookupError(alignment_type)


class TestExposeConics:

    def test_ellipse(self, sketch):
        """Test: Ellipse -> Haupt-, Nebenachse und zwei Brennpunkte."""
        geo_id = sketch.add_geometry(Ellipse((0, 0), 3.0, 2.0))
        assert sketch.expose_internal_geometry(geo_id) == 4
        assert sketch.get_highest_curve_index() == 4
        assert _alignment_types(sketch, geo_id) == [
            InternalAlignmentType.ELLIPSE_MAJOR_DIAMETER,
            InternalAlignmentType.ELLIPSE_MINOR_DIAMETER,
            InternalAlignmentType.ELLIPSE_FOCUS1,
            InternalAlignmentType.ELLIPSE_FOCUS2,
        ]

    def test_ellipse_helper_positions(self, sketch):
        geo_id = sketch.add_geometry(Ellipse((0, 0), 5.0, 3.0))
        sketch.expose_internal_geometry(geo_id)
        focus = sketch.geometry[_helper_of(sketch, geo_id, InternalAlignmentType.ELLIPSE_FOCUS1)]
        major = sketch.geometry[_helper_of(sketch, geo_id, InternalAlignmentType.ELLIPSE_MAJOR_DIAMETER)]
        assert (focus.x, focus.y) == pytest.approx((4.0, 0.0))
        assert major.length == pytest.approx(10.0)
        assert focus.construction and focus.is_internal

    def test_arc_of_ellipse(self, sketch):
        geo_id = sketch.add_geometry(ArcOfEllipse((0, 0), 3.0, 2.0, 0.0, 0.0, math.pi))
        assert sketch.expose_internal_geometry(geo_id) == 4

    def test_hyperbola(self, sketch):
        geo_id = sketch.add_geometry(ArcOfHyperbola((0, 0), 2.0, 1.0))
        assert sketch.expose_internal_geometry(geo_id) == 3

    def test_parabola(self, sketch):
        geo_id = sketch.add_geometry(ArcOfParabola((0, 0), 1.0))
        assert sketch.expose_internal_geometry(geo_id) == 2
        focus = sketch.geometry[_helper_of(sketch, geo_id, InternalAlignmentType.PARABOLA_FOCUS)]
        assert (focus.x, focus.y) == pytest.approx((1.0, 0.0))

    def test_expose_is_idempotent(self, sketch):
        geo_id = sketch.add_geometry(Ellipse((0, 0), 3.0, 2.0))
        sketch.expose_internal_geometry(geo_id)
        assert sketch.expose_internal_geometry(geo_id) == 0
        assert sketch.get_highest_curve_index() == 4

    def test_expose_recreates_missing_helper(self, sketch):
        geo_id = sketch.add_geometry(Ellipse((0, 0), 3.0, 2.0))
        sketch.expose_internal_geometry(geo_id)
        sketch.del_geometry(_helper_of(sketch, geo_id, InternalAlignmentType.ELLIPSE_FOCUS2))
        assert sketch.expose_internal_geometry(geo_id) == 1

    def test_unsupported_element(self, sketch):
        """Test: Strecke und Punkt haben keine Hilfsgeometrie -> -1."""
        line = sketch.add_geometry(LineSegment((0, 0), (1, 0)))
        point = sketch.add_geometry(Point(1, 1))
        assert sketch.expose_internal_geometry(line) == -1
        assert sketch.expose_internal_geometry(point) == -1
        assert sketch.expose_internal_geometry(7) == -1
        assert sketch.expose_internal_geometry(-1) == -1


class TestExposeBSpline:

    def test_non_periodic(self, sketch, non_periodic_bspline):
        """Test: 5 Pole + 3 Knoten."""
        geo_id = sketch.add_geometry(non_periodic_bspline)
        assert sketch.expose_internal_geometry(geo_id) == 8
        poles = [t for t in _alignment_types(sketch, geo_id)
                 if t == InternalAlignmentType.BSPLINE_CONTROL_POINT]
        assert len(poles) == 5

    def test_periodic(self, sketch, periodic_bspline):
        """Test: Periodisch: letzter Knoten = erster Knoten, 5 Pole + 5 Knoten."""
        geo_id = sketch.add_geometry(periodic_bspline)
        assert sketch.expose_internal_geometry(geo_id) == 10

    def test_pole_helpers_sit_on_poles(self, sketch, non_periodic_bspline):
        geo_id = sketch.add_geometry(non_periodic_bspline)
        sketch.expose_internal_geometry(geo_id)
        helper = sketch.geometry[_helper_of(sketch, geo_id, InternalAlignmentType.BSPLINE_CONTROL_POINT, 2)]
        assert (helper.x, helper.y) == (1.0, 1.0)

    def test_point_helpers_bind_start(self, sketch, non_periodic_bspline):
        geo_id = sketch.add_geometry(non_periodic_bspline)
        sketch.expose_internal_geometry(geo_id)
        for _, i in sketch.get_internal_helpers(geo_id):
            assert sketch.constraints[i].first_pos == PointPos.START


class TestDeleteUnused:

    def test_delete_all_unused(self, sketch):
        geo_id = sketch.add_geometry(Ellipse((0, 0), 3.0, 2.0))
        sketch.expose_internal_geometry(geo_id)
        assert sketch.delete_unused_internal_geometry(geo_id) == 4
        assert sketch.get_highest_curve_index() == 0
        assert sketch.constraints == []

    def test_nothing_to_delete(self, sketch):
        geo_id = sketch.add_geometry(Ellipse((0, 0), 3.0, 2.0))
        assert sketch.delete_unused_internal_geometry(geo_id) == 0

    def test_used_helper_is_kept(self, sketch, non_periodic_bspline):
        """Test: Ein von einem Constraint benutzter Pol überlebt."""
        geo_id = sketch.add_geometry(non_periodic_bspline)
        point = sketch.add_geometry(Point(2, 2))
        sketch.expose_internal_geometry(geo_id)
        pole = _helper_of(sketch, geo_id, InternalAlignmentType.BSPLINE_CONTROL_POINT, 1)
        sketch.add_constraint(make_coincident(pole, PointPos.START, point, PointPos.START))

        assert sketch.delete_unused_internal_geometry(geo_id) == 7
        assert sketch.get_highest_curve_index() == 2
        assert len(sketch.get_internal_helpers(geo_id)) == 1
        assert len(sketch.constraints_of_type(ConstraintType.COINCIDENT)) == 1

    def test_keep_bspline_knots(self, sketch, non_periodic_bspline):
        geo_id = sketch.add_geometry(non_periodic_bspline)
        sketch.expose_internal_geometry(geo_id)
        assert sketch.delete_unused_internal_geometry(geo_id, delete_bspline_knots=False) == 5
        assert sketch.get_highest_curve_index() == 3

    def test_and_update_geo_id(self, sketch):
        geo_id = sketch.add_geometry(Ellipse((0, 0), 3.0, 2.0))
        sketch.expose_internal_geometry(geo_id)
        assert sketch.delete_unused_internal_geometry_and_update_geo_id(geo_id) == geo_id


class TestDeleteParent:

    def test_delete_parent_removes_unused_helpers(self, sketch):
        geo_id = sketch.add_geometry(Ellipse((0, 0), 3.0, 2.0))
        sketch.expose_internal_geometry(geo_id)
        sketch.del_geometry(geo_id)
        assert sketch.geometry == []
        assert sketch.constraints == []

    def test_used_helper_survives_as_normal_geometry(self, sketch):
        """Test: Benutzter Brennpunkt bleibt als gelöste Konstruktionsgeometrie."""
        geo_id = sketch.add_geometry(Ellipse((0, 0), 3.0, 2.0))
        sketch.expose_internal_geometry(geo_id)
        point = sketch.add_geometry(Point(5, 5))
        focus = _helper_of(sketch, geo_id, InternalAlignmentType.ELLIPSE_FOCUS1)
        sketch.add_constraint(make_coincident(focus, PointPos.START, point, PointPos.START))

        sketch.del_geometry(geo_id)

        assert sketch.get_highest_curve_index() == 1
        assert isinstance(sketch.geometry[0], Point)
        assert sketch.geometry[0].internal_type == InternalAlignmentType.NONE
        assert sketch.geometry[0].construction is True
        assert len(sketch.constraints) == 1
        constraint = sketch.constraints[0]
        assert (constraint.first, constraint.second) == (0, 1)

    def test_detach(self, sketch):
        geo_id = sketch.add_geometry(Ellipse((0, 0), 3.0, 2.0))
        sketch.expose_internal_geometry(geo_id)
        assert sketch.detach_internal_geometry(geo_id) == 4
        assert not sketch.has_internal_geometry(geo_id)
        assert sketch.get_highest_curve_index() == 4
