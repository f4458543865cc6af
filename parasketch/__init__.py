"""
parasketch - Parametrischer 2D-Sketch-Kern
"""

from .geo_enum import GeoEnum, PointPos, InternalAlignmentType

from .geometry import (
    Geometry, GeometryType,
    Point, LineSegment, Circle, ArcOfCircle, Ellipse, ArcOfEllipse,
    ArcOfHyperbola, ArcOfParabola, BSplineCurve,
    to_bspline,
)

from .constraints import (
    Constraint, ConstraintType,
    make_coincident, make_point_on_object, make_horizontal, make_vertical,
    make_tangent, make_angle, make_distance, make_radius, make_internal_alignment,
)

from .exceptions import (
    SketchError, GeoIdOutOfRangeError, KnotIndexError, BSplineValueError,
    NotABSplineError, NoIntersectionError,
)

from .renumbering import get_constraint_after_deleting_geo, change_constraint_after_deleting_geo
from .expressions import reverse_angle_constraint_expression
from .naming import ElementName, ElementNameType, MappedElement

from .sketch import Sketch, get_point, undefined_point_policy

__version__ = "0.1.0"
