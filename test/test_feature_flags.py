"""
Feature Flags Tests - Tests für das Feature Flag System
"""

import pytest

from config.feature_flags import FEATURE_FLAGS, get_all_flags, is_enabled, set_flag
from parasketch import BSplineCurve, LineSegment, PointPos, get_point


class TestFeatureFlagsBasic:
    """Tests für grundlegende Feature Flag Funktionalität."""

    def test_is_enabled_existing_flag_true(self):
        """Test: Existierendes Flag mit Wert True."""
        assert is_enabled("join_tangent_continuity") is True

    def test_is_enabled_existing_flag_false(self):
        """Test: Existierendes Flag mit Wert False."""
        assert is_enabled("sketch_debug") is False

    def test_is_enabled_nonexistent_flag(self):
        """Test: Nicht existierendes Flag gibt False zurück."""
        assert is_enabled("nonexistent_flag_xyz123") is False

    def test_get_all_flags_returns_copy(self):
        """Test: get_all_flags gibt eine Kopie zurück."""
        flags = get_all_flags()
        flags["new_flag"] = True
        assert "new_flag" not in FEATURE_FLAGS

    def test_set_flag_runtime(self):
        """Test: Set Flag zur Laufzeit."""
        set_flag("runtime_test_flag", True)
        assert is_enabled("runtime_test_flag") is True

        set_flag("runtime_test_flag", False)
        assert is_enabled("runtime_test_flag") is False

        del FEATURE_FLAGS["runtime_test_flag"]


class TestSketchFeatureFlags:
    """Tests für die Sketch-Flags und ihre Defaults."""

    @pytest.mark.parametrize("flag", [
        "sketch_debug",
        "strict_point_positions",
        "trim_exclude_construction",
    ])
    def test_behavior_flags_default_off(self, flag):
        assert is_enabled(flag) is False

    def test_strict_point_positions_toggles_policy(self):
        """Test: Undefinierte Position -> Ursprung, mit Flag -> ValueError."""
        line = LineSegment((1, 1), (2, 2))
        assert list(get_point(line, PointPos.MID)) == [0.0, 0.0, 0.0]

        set_flag("strict_point_positions", True)
        with pytest.raises(ValueError):
            get_point(line, PointPos.MID)

    def test_sketch_debug_does_not_change_results(self, sketch, non_periodic_bspline):
        """Test: Debug-Logging ändert keine Ergebnisse."""
        set_flag("sketch_debug", True)
        geo_id = sketch.add_geometry(non_periodic_bspline)
        sketch.insert_bspline_knot(geo_id, 0.5)
        curve = sketch.geometry[geo_id]
        assert isinstance(curve, BSplineCurve)
        assert curve.knots == [0.0, 0.5, 1.0, 2.0]


class TestFlagIsolation:
    """Die autouse-Fixture setzt Flags vor jedem Test zurück."""

    def test_modify_flag(self):
        set_flag("trim_exclude_construction", True)
        assert is_enabled("trim_exclude_construction") is True

    def test_flag_reset_after_previous_test(self):
        assert is_enabled("trim_exclude_construction") is False
