"""
parasketch - GeoId-Sentinels und Punkt-Positionen

GeoIds >= 0 indizieren die Geometrieliste des Sketches.
Negative Werte sind reservierte Sentinels (Achsen, externe Geometrie).
"""

from enum import Enum, IntEnum, auto


class GeoEnum:
    """Reservierte GeoId-Werte"""
    RT_PNT = -1       # Ursprung (teilt den Wert mit der H-Achse)
    H_AXIS = -1
    V_AXIS = -2
    REF_EXT = -3      # Erste externe Geometrie, weitere: -4, -5, ...
    GEO_UNDEF = -2000  # Unbelegt / ungültig


class PointPos(IntEnum):
    """Position eines Punktes auf einem Element"""
    NONE = 0
    START = 1
    END = 2
    MID = 3


class InternalAlignmentType(Enum):
    """Rolle einer Hilfsgeometrie relativ zu ihrem Eltern-Element"""
    NONE = auto()
    ELLIPSE_MAJOR_DIAMETER = auto()
    ELLIPSE_MINOR_DIAMETER = auto()
    ELLIPSE_FOCUS1 = auto()
    ELLIPSE_FOCUS2 = auto()
    HYPERBOLA_MAJOR = auto()
    HYPERBOLA_MINOR = auto()
    HYPERBOLA_FOCUS = auto()
    PARABOLA_FOCUS = auto()
    PARABOLA_FOCAL_AXIS = auto()
    BSPLINE_CONTROL_POINT = auto()
    BSPLINE_KNOT_POINT = auto()


def is_external(geo_id: int) -> bool:
    """True für externe Geometrie (GeoId <= REF_EXT, ohne GEO_UNDEF)."""
    return GeoEnum.GEO_UNDEF < geo_id <= GeoEnum.REF_EXT


def is_normal(geo_id: int) -> bool:
    return geo_id >= 0


def external_index(geo_id: int) -> int:
    """0-basierter Index in der Liste externer Geometrie."""
    return GeoEnum.REF_EXT - geo_id
