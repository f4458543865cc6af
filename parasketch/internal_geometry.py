"""
parasketch - Interne Hilfsgeometrie
===================================

Kegelschnitte und B-Splines können Hilfsgeometrie "exponieren":

    Ellipse / Ellipsenbogen: Hauptachse, Nebenachse, Brennpunkt 1, Brennpunkt 2
    Hyperbelbogen:           Hauptachse, Nebenachse, Brennpunkt
    Parabelbogen:            Brennachse, Brennpunkt
    B-Spline:                ein Punkt pro Pol, ein Punkt pro Knoten

Jedes Hilfselement ist Konstruktionsgeometrie mit gesetztem internal_type
und über einen INTERNAL_ALIGNMENT-Constraint (first = Hilfselement,
second = Eltern-Element) gebunden.

Hilfselemente, die von anderen Constraints referenziert werden, gelten als
"benutzt" und überleben delete_unused_internal_geometry.
"""

from typing import TYPE_CHECKING, List, Tuple

from loguru import logger

from config.feature_flags import is_enabled
from .constraints import ConstraintType, make_internal_alignment
from .geo_enum import InternalAlignmentType, PointPos
from .geometry import (ArcOfHyperbola, ArcOfParabola, BSplineCurve, Ellipse, Geometry,
                       GeometryType, LineSegment, Point)

if TYPE_CHECKING:
    from .sketch import Sketch


_CONIC_TYPES = (
    GeometryType.ELLIPSE,
    GeometryType.ARC_OF_ELLIPSE,
    GeometryType.ARC_OF_HYPERBOLA,
    GeometryType.ARC_OF_PARABOLA,
)


def supports_internal_geometry(geometry: Geometry) -> bool:
    return geometry.geometry_type in _CONIC_TYPES or geometry.geometry_type == GeometryType.BSPLINE_CURVE


def helper_layout(geometry: Geometry) -> List[Tuple[InternalAlignmentType, int, Geometry]]:
    """
    Soll-Hilfsgeometrie eines Elements als (Typ, Index, Geometrie).

    Kegelschnitte verwenden Index -1, B-Spline-Pole und -Knoten sind 1-basiert.
    """
    layout = []

    if isinstance(geometry, Ellipse):
        f1, f2 = geometry.foci()
        layout = [
            (InternalAlignmentType.ELLIPSE_MAJOR_DIAMETER, -1, LineSegment(*geometry.major_axis_endpoints())),
            (InternalAlignmentType.ELLIPSE_MINOR_DIAMETER, -1, LineSegment(*geometry.minor_axis_endpoints())),
            (InternalAlignmentType.ELLIPSE_FOCUS1, -1, Point(f1[0], f1[1])),
            (InternalAlignmentType.ELLIPSE_FOCUS2, -1, Point(f2[0], f2[1])),
        ]
    elif isinstance(geometry, ArcOfHyperbola):
        f = geometry.focus()
        layout = [
            (InternalAlignmentType.HYPERBOLA_MAJOR, -1, LineSegment(*geometry.major_axis_endpoints())),
            (InternalAlignmentType.HYPERBOLA_MINOR, -1, LineSegment(*geometry.minor_axis_endpoints())),
            (InternalAlignmentType.HYPERBOLA_FOCUS, -1, Point(f[0], f[1])),
        ]
    elif isinstance(geometry, ArcOfParabola):
        f = geometry.focus()
        layout = [
            (InternalAlignmentType.PARABOLA_FOCAL_AXIS, -1, LineSegment(geometry.center, f)),
            (InternalAlignmentType.PARABOLA_FOCUS, -1, Point(f[0], f[1])),
        ]
    elif isinstance(geometry, BSplineCurve):
        for i, pole in enumerate(geometry.poles):
            layout.append((InternalAlignmentType.BSPLINE_CONTROL_POINT, i + 1, Point(*pole)))
        knots = geometry.knots[:-1] if geometry.periodic else geometry.knots
        for j, knot in enumerate(knots):
            p = geometry.value(knot)
            layout.append((InternalAlignmentType.BSPLINE_KNOT_POINT, j + 1, Point(p[0], p[1])))

    return layout


def get_internal_helpers(sketch: 'Sketch', geo_id: int) -> List[Tuple[int, int]]:
    """Gebundene Hilfselemente als Liste (Helper-GeoId, Constraint-Index)."""
    return [
        (c.first, i) for i, c in enumerate(sketch.constraints)
        if c.is_internal_alignment_of(geo_id)
    ]


def has_internal_geometry(sketch: 'Sketch', geo_id: int) -> bool:
    return any(c.is_internal_alignment_of(geo_id) for c in sketch.constraints)


def expose_internal_geometry(sketch: 'Sketch', geo_id: int) -> int:
    """
    Legt fehlende Hilfsgeometrie an.

    Returns:
        Anzahl neu angelegter Elemente, -1 wenn das Element keine
        Hilfsgeometrie unterstützt
    """
    if geo_id < 0 or geo_id > sketch.get_highest_curve_index():
        return -1
    parent = sketch.geometry[geo_id]
    if not supports_internal_geometry(parent):
        return -1

    bound = {
        (c.alignment_type, c.internal_alignment_index)
        for c in sketch.constraints if c.is_internal_alignment_of(geo_id)
    }

    added = 0
    for alignment_type, index, helper in helper_layout(parent):
        if (alignment_type, index) in bound:
            continue
        helper.construction = True
        helper.internal_type = alignment_type
        helper_id = sketch.add_geometry(helper)
        helper_pos = PointPos.START if isinstance(helper, Point) else PointPos.NONE
        sketch.add_constraint(make_internal_alignment(helper_id, geo_id, alignment_type, index, helper_pos))
        added += 1

    if is_enabled("sketch_debug"):
        logger.debug(f"[INTERNAL] GeoId {geo_id}: {added} Hilfselemente angelegt")
    return added


def _unused_helpers(sketch: 'Sketch', geo_id: int, delete_bspline_knots: bool) -> List[int]:
    bindings = {
        i for i, c in enumerate(sketch.constraints) if c.is_internal_alignment_of(geo_id)
    }
    helpers = sorted({sketch.constraints[i].first for i in bindings})

    unused = []
    for helper_id in helpers:
        helper = sketch.geometry[helper_id]
        if not delete_bspline_knots and helper.internal_type == InternalAlignmentType.BSPLINE_KNOT_POINT:
            continue
        used = any(
            c.involves(helper_id)
            for i, c in enumerate(sketch.constraints)
            if i not in bindings and c.type != ConstraintType.NONE
        )
        if not used:
            unused.append(helper_id)
    return unused


def _delete_unused(sketch: 'Sketch', geo_id: int, delete_bspline_knots: bool = True) -> List[int]:
    unused = _unused_helpers(sketch, geo_id, delete_bspline_knots)

    # Höchste GeoId zuerst, damit die restlichen Ids gültig bleiben
    worklist = sorted(unused, reverse=True)
    while worklist:
        helper_id = worklist.pop(0)
        sketch.del_geometry(helper_id, delete_internal_geometry=False)

    if unused and is_enabled("sketch_debug"):
        logger.debug(f"[INTERNAL] GeoId {geo_id}: {len(unused)} unbenutzte Hilfselemente gelöscht")
    return unused


def delete_unused_internal_geometry(sketch: 'Sketch', geo_id: int, delete_bspline_knots: bool = True) -> int:
    """
    Löscht unbenutzte Hilfsgeometrie eines Elements.

    Returns:
        Anzahl gelöschter Elemente (0 = nichts zu tun)
    """
    if geo_id < 0 or geo_id > sketch.get_highest_curve_index():
        return 0
    return len(_delete_unused(sketch, geo_id, delete_bspline_knots))


def delete_unused_internal_geometry_and_update_geo_id(sketch: 'Sketch', geo_id: int,
                                                      delete_bspline_knots: bool = True) -> int:
    """Wie delete_unused_internal_geometry, gibt die neue GeoId des Eltern-Elements zurück."""
    if geo_id < 0 or geo_id > sketch.get_highest_curve_index():
        return geo_id
    deleted = _delete_unused(sketch, geo_id, delete_bspline_knots)
    return geo_id - sum(1 for helper_id in deleted if helper_id < geo_id)


def detach_internal_geometry(sketch: 'Sketch', geo_id: int) -> int:
    """
    Löst alle Hilfselemente vom Eltern-Element.

    Die Elemente bleiben als normale Konstruktionsgeometrie erhalten.

    Returns:
        Anzahl gelöster Elemente
    """
    detached = 0
    for helper_id, index in get_internal_helpers(sketch, geo_id):
        sketch.constraints[index].type = ConstraintType.NONE
        sketch.geometry[helper_id].internal_type = InternalAlignmentType.NONE
        detached += 1
    if detached:
        sketch.purge_deleted_constraints()
    return detached


def prune_internal_geometry(sketch: 'Sketch', geo_id: int) -> int:
    """
    Vor Strukturänderungen: unbenutzte Hilfselemente löschen, benutzte lösen.

    Returns:
        Neue GeoId des Elements
    """
    if not has_internal_geometry(sketch, geo_id):
        return geo_id
    geo_id = delete_unused_internal_geometry_and_update_geo_id(sketch, geo_id)
    detach_internal_geometry(sketch, geo_id)
    return geo_id
