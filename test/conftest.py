import pytest

from config.feature_flags import set_flag
from parasketch import BSplineCurve, Sketch


# Global Feature Flag Defaults - Single Source of Truth for Test Isolation
# ========================================================================
# WICHTIG: Jeder Test muss mit sauberen Feature-Flags starten.
# Diese Defaults müssen mit config/feature_flags.py synchron gehalten werden.
FEATURE_FLAG_DEFAULTS = {
    "sketch_debug": False,
    "strict_point_positions": False,
    "trim_exclude_construction": False,
    "join_tangent_continuity": True,
}


@pytest.fixture(autouse=True)
def _global_feature_flag_isolation():
    """
    Globale Feature-Flag-Isolation.

    Stellt sicher, dass jeder Test mit sauberen, deterministischen
    Feature-Flags startet.
    """
    for key, value in FEATURE_FLAG_DEFAULTS.items():
        set_flag(key, value)

    yield

    for key, value in FEATURE_FLAG_DEFAULTS.items():
        set_flag(key, value)


# Test-Kurven
# ===========

BSPLINE_POLES = [(1.0, 0.0), (1.0, 1.0), (1.0, 0.5), (0.0, 1.0), (0.0, 0.0)]


@pytest.fixture
def sketch():
    return Sketch("test")


@pytest.fixture
def non_periodic_bspline():
    """Kubisch, 5 Pole, Knoten [0, 1, 2] mit Multiplizitäten [4, 1, 4]"""
    return BSplineCurve(
        poles=BSPLINE_POLES,
        knots=[0.0, 1.0, 2.0],
        multiplicities=[4, 1, 4],
        degree=3,
    )


@pytest.fixture
def periodic_bspline():
    """Kubisch, periodisch, 5 Pole, 6 Knoten mit Multiplizität 1"""
    return BSplineCurve(
        poles=BSPLINE_POLES,
        knots=[0.0, 0.3, 1.0, 1.5, 1.8, 2.0],
        multiplicities=[1, 1, 1, 1, 1, 1],
        degree=3,
        periodic=True,
    )
