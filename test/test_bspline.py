"""
Tests für die B-Spline-Knotenmathematik und die Kurven-Konvertierung
"""

import math

import numpy as np
import pytest

from parasketch import (ArcOfCircle, BSplineCurve, BSplineValueError, Circle, LineSegment,
                        Point, to_bspline)
from parasketch import bspline


class TestStructure:

    def test_pole_count(self):
        assert bspline.pole_count([4, 1, 4], 3, False) == 5
        assert bspline.pole_count([1, 1, 1, 1, 1, 1], 3, True) == 5

    def test_invalid_pole_count(self):
        with pytest.raises(BSplineValueError):
            BSplineCurve(poles=[(0, 0), (1, 1), (2, 0)], knots=[0, 1], multiplicities=[4, 4], degree=3)

    def test_knots_not_ascending(self):
        with pytest.raises(ValueError):
            bspline.validate_structure([0, 2, 1], [4, 1, 4], 3, False, 5)

    def test_periodic_end_multiplicities_differ(self):
        with pytest.raises(BSplineValueError):
            bspline.validate_structure([0, 1, 2], [2, 1, 1], 3, True, 3)

    def test_weights_length(self):
        with pytest.raises(BSplineValueError):
            BSplineCurve(poles=[(0, 0), (1, 0)], weights=[1.0], knots=[0, 1],
                         multiplicities=[2, 2], degree=1)

    def test_periodic_flat_knots(self):
        flat = bspline.flat_knots([0, 1, 2, 3], [1, 1, 1, 1], 2, True)
        assert list(flat) == [-2, -1, 0, 1, 2, 3, 4, 5]


class TestBasis:

    @pytest.mark.parametrize("periodic", [False, True])
    def test_partition_of_unity(self, periodic):
        mults = [1] * 6 if periodic else [4, 1, 1, 1, 4]
        knots = [0, 0.3, 1.0, 1.5, 1.8, 2.0] if periodic else [0, 0.5, 1.0, 1.5, 2.0]
        us = np.linspace(0, 2, 41)
        B = bspline.basis_matrix(knots, mults, 3, periodic, us)
        assert np.allclose(B.sum(axis=1), 1.0)
        assert np.all(B >= -1e-12)

    def test_clamped_ends(self, non_periodic_bspline):
        assert np.allclose(non_periodic_bspline.start_point(), (1, 0))
        assert np.allclose(non_periodic_bspline.end_point(), (0, 0))

    def test_periodic_is_closed_and_smooth(self, periodic_bspline):
        eps = 1e-6
        before = periodic_bspline.value(2.0 - eps)
        after = periodic_bspline.value(eps)
        seam = periodic_bspline.value(0.0)
        assert np.allclose(periodic_bspline.value(2.0), seam)
        assert np.allclose((seam - before) / eps, (after - seam) / eps, atol=1e-3)

    def test_find_knot(self):
        assert bspline.find_knot([0.0, 1.0, 2.0], 1.0 + 1e-9) == 1
        assert bspline.find_knot([0.0, 1.0, 2.0], 1.5) == -1


class TestRefit:

    def test_with_knots_inserts_exactly(self, non_periodic_bspline):
        refined = non_periodic_bspline.with_knots([0, 0.5, 1, 2], [4, 1, 1, 4])
        us = np.linspace(0, 2, 33)
        assert refined.pole_count == 6
        assert np.allclose(refined.values(us), non_periodic_bspline.values(us), atol=1e-9)

    def test_elevated_keeps_shape(self, non_periodic_bspline):
        elevated = non_periodic_bspline.elevated(5)
        us = np.linspace(0, 2, 33)
        assert elevated.degree == 5
        assert elevated.multiplicities == [6, 3, 6]
        assert np.allclose(elevated.values(us), non_periodic_bspline.values(us), atol=1e-8)

    def test_reversed(self, non_periodic_bspline):
        rev = non_periodic_bspline.reversed()
        assert np.allclose(rev.value(0.5), non_periodic_bspline.value(1.5))
        with pytest.raises(BSplineValueError):
            BSplineCurve(poles=[(0, 0), (1, 0), (1, 1)], knots=[0, 1, 2, 3],
                         multiplicities=[1, 1, 1, 1], degree=2, periodic=True).reversed()

    def test_segment_of_periodic_across_seam(self, periodic_bspline):
        seg = periodic_bspline.segment(1.5, 2.5)
        assert not seg.periodic
        for u in (1.5, 1.9, 2.2, 2.5):
            assert np.allclose(seg.value(u), periodic_bspline.value(u), atol=1e-9)

    def test_rational_refit(self):
        w = math.sqrt(0.5)
        quarter = BSplineCurve(poles=[(1, 0), (1, 1), (0, 1)], weights=[1, w, 1],
                               knots=[0, 1], multiplicities=[3, 3], degree=2)
        refined = quarter.with_knots([0, 0.5, 1], [3, 1, 3])
        assert refined.is_rational
        for u in np.linspace(0, 1, 9):
            assert np.linalg.norm(refined.value(u)) == pytest.approx(1.0, abs=1e-9)


class TestConversion:

    def test_line_is_exact(self):
        curve = to_bspline(LineSegment((0, 0), (2, 2)))
        assert curve.degree == 1
        assert curve.poles == [(0.0, 0.0), (2.0, 2.0)]

    def test_arc_approximation(self):
        arc = ArcOfCircle((0, 0), 1.0, 0.0, math.pi / 2)
        curve = to_bspline(arc)
        assert curve.degree == 3
        assert np.allclose(curve.start_point(), (1, 0), atol=1e-12)
        assert np.allclose(curve.end_point(), (0, 1), atol=1e-12)
        us = np.linspace(0, math.pi / 2, 50)
        assert np.allclose(np.linalg.norm(curve.values(us), axis=1), 1.0, atol=1e-6)

    def test_bspline_copy_resets_tag(self, non_periodic_bspline):
        non_periodic_bspline.tag = 7
        curve = to_bspline(non_periodic_bspline)
        assert curve.tag == 0
        assert curve is not non_periodic_bspline

    def test_point_rejected(self):
        with pytest.raises(BSplineValueError):
            to_bspline(Point(0, 0))

    def test_circle_conversion_is_closed_loop(self):
        curve = to_bspline(Circle((0, 0), 1.0))
        assert np.allclose(curve.start_point(), curve.end_point(), atol=1e-9)
