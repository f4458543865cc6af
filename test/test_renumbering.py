"""
Tests für die Umnummerierung von Constraint-Referenzen nach dem Löschen
"""

from parasketch import (Constraint, ConstraintType, GeoEnum, PointPos,
                        change_constraint_after_deleting_geo, get_constraint_after_deleting_geo)


def _coincident_42_10():
    return Constraint(type=ConstraintType.COINCIDENT,
                      first=42, first_pos=PointPos.START,
                      second=10, second_pos=PointPos.END)


def _symmetric_ext():
    return Constraint(type=ConstraintType.SYMMETRIC,
                      first=-8, first_pos=PointPos.START,
                      second=0, second_pos=PointPos.END,
                      third=42, third_pos=PointPos.MID)


class TestGetConstraintAfterDeletingGeo:
    """Reine Variante: Kopie oder None"""

    def test_none_input(self):
        assert get_constraint_after_deleting_geo(None, 5) is None

    def test_lower_geo_deleted(self):
        """Test: Referenzen > gelöschter GeoId rücken um 1 nach."""
        result = get_constraint_after_deleting_geo(_coincident_42_10(), 5)
        assert (result.first, result.second) == (41, 9)
        assert (result.first_pos, result.second_pos) == (PointPos.START, PointPos.END)
        assert result.third == GeoEnum.GEO_UNDEF

    def test_higher_geo_deleted(self):
        result = get_constraint_after_deleting_geo(_coincident_42_10(), 100)
        assert (result.first, result.second) == (42, 10)

    def test_external_deleted_keeps_normal_refs(self):
        """Test: Löschen externer Geometrie lässt GEO_UNDEF unangetastet."""
        result = get_constraint_after_deleting_geo(_coincident_42_10(), -5)
        assert (result.first, result.second, result.third) == (42, 10, GeoEnum.GEO_UNDEF)

    def test_referenced_geo_deleted(self):
        assert get_constraint_after_deleting_geo(_coincident_42_10(), 10) is None

    def test_returns_copy(self):
        original = _coincident_42_10()
        result = get_constraint_after_deleting_geo(original, 5)
        assert result is not original
        assert original.first == 42

    def test_external_reference_moves_toward_zero(self):
        result = get_constraint_after_deleting_geo(_symmetric_ext(), -3)
        assert (result.first, result.second, result.third) == (-7, 0, 42)


class TestChangeConstraintAfterDeletingGeo:
    """In-place-Variante: hängende Constraints bekommen type NONE"""

    def test_none_input_is_noop(self):
        change_constraint_after_deleting_geo(None, 0)

    def test_external_deleted(self):
        constraint = _symmetric_ext()
        change_constraint_after_deleting_geo(constraint, -3)
        assert (constraint.first, constraint.second, constraint.third) == (-7, 0, 42)
        assert constraint.type == ConstraintType.SYMMETRIC

    def test_referenced_geo_marks_deleted(self):
        constraint = _symmetric_ext()
        change_constraint_after_deleting_geo(constraint, 0)
        assert constraint.type == ConstraintType.NONE
        assert constraint.is_deleted

    def test_axes_are_stable(self):
        constraint = Constraint(type=ConstraintType.POINT_ON_OBJECT, first=3,
                                first_pos=PointPos.START, second=GeoEnum.V_AXIS)
        change_constraint_after_deleting_geo(constraint, 1)
        assert (constraint.first, constraint.second) == (2, GeoEnum.V_AXIS)
        change_constraint_after_deleting_geo(constraint, -3)
        assert constraint.second == GeoEnum.V_AXIS
