"""
parasketch - B-Spline Knoten-Editor
===================================

Multiplizität ändern und Knoten einfügen. Validierungsfehler werden vor
jeder Änderung geworfen:

    IndexError  - ungültige GeoId oder Knoten-Index (1-basiert)
    TypeError   - Element ist keine B-Spline
    ValueError  - Multiplizität außerhalb [0, Grad], delta == 0,
                  Endknoten einer offenen Kurve, Parameter außerhalb

Neue Pole entstehen durch Least-Squares-Refit auf die neue Knotenstruktur
(exakt beim Erhöhen, beste Näherung beim Verringern). War Hilfsgeometrie
exponiert, wird sie danach neu exponiert; benutzte Hilfselemente, deren
Index nicht mehr existiert, werden gelöst.
"""

from typing import TYPE_CHECKING, List

from loguru import logger

from config.feature_flags import is_enabled
from config.tolerances import Tolerances
from .. import bspline
from ..constraints import ConstraintType
from ..exceptions import (BSplineValueError, GeoIdOutOfRangeError, KnotIndexError,
                          NotABSplineError)
from ..geo_enum import InternalAlignmentType
from ..geometry import BSplineCurve
from ..internal_geometry import (delete_unused_internal_geometry_and_update_geo_id,
                                 expose_internal_geometry, get_internal_helpers,
                                 has_internal_geometry)
from .base import SketchTransaction

if TYPE_CHECKING:
    from ..sketch import Sketch


def _get_bspline(sketch: 'Sketch', geo_id: int) -> BSplineCurve:
    if not 0 <= geo_id <= sketch.get_highest_curve_index():
        raise GeoIdOutOfRangeError(geo_id, len(sketch.geometry))
    geometry = sketch.geometry[geo_id]
    if not isinstance(geometry, BSplineCurve):
        raise NotABSplineError(geo_id, geometry.geometry_type.name)
    return geometry


def _detach_stale_helpers(sketch: 'Sketch', geo_id: int, curve: BSplineCurve) -> None:
    """Löst Hilfselemente, deren Pol- oder Knoten-Index nicht mehr existiert."""
    limits = {
        InternalAlignmentType.BSPLINE_CONTROL_POINT: curve.pole_count,
        InternalAlignmentType.BSPLINE_KNOT_POINT: curve.knot_count - (1 if curve.periodic else 0),
    }
    stale = False
    for helper_id, index in get_internal_helpers(sketch, geo_id):
        constraint = sketch.constraints[index]
        limit = limits.get(constraint.alignment_type)
        if limit is not None and constraint.internal_alignment_index > limit:
            constraint.type = ConstraintType.NONE
            sketch.geometry[helper_id].internal_type = InternalAlignmentType.NONE
            stale = True
    if stale:
        sketch.purge_deleted_constraints()


def _apply(sketch: 'Sketch', geo_id: int, curve: BSplineCurve, operation: str) -> None:
    """Ersetzt die Kurve transaktional und exponiert Hilfsgeometrie neu."""
    with SketchTransaction(sketch, operation) as txn:
        draft = txn.draft
        reexpose = has_internal_geometry(draft, geo_id)
        if reexpose:
            tag = draft.geometry[geo_id].tag
            delete_unused_internal_geometry_and_update_geo_id(draft, geo_id)
            geo_id = draft.get_geo_id_from_tag(tag)
            _detach_stale_helpers(draft, geo_id, curve)

        draft.replace_geometry(geo_id, curve)
        if reexpose:
            expose_internal_geometry(draft, geo_id)
        txn.commit()


def modify_bspline_knot_multiplicity(sketch: 'Sketch', geo_id: int, knot_index: int, delta: int) -> None:
    """
    Ändert die Multiplizität eines Knotens um delta.

    Ergebnis 0 entfernt den Knoten. Periodizität bleibt erhalten.

    Args:
        knot_index: 1-basierter Knoten-Index
    """
    curve = _get_bspline(sketch, geo_id)
    if not 1 <= knot_index <= curve.knot_count:
        raise KnotIndexError(f"Knoten-Index {knot_index} außerhalb 1..{curve.knot_count}")
    if delta == 0:
        raise BSplineValueError("Multiplizitätsänderung 0 ist keine Änderung")

    i = knot_index - 1
    is_end = i in (0, curve.knot_count - 1)
    if is_end and not curve.periodic:
        raise BSplineValueError("Endknoten einer offenen B-Spline können nicht geändert werden")

    new_mult = curve.multiplicities[i] + delta
    if new_mult > curve.degree:
        raise BSplineValueError(f"Multiplizität {new_mult} > Grad {curve.degree}")
    if new_mult < 0:
        raise BSplineValueError(f"Multiplizität {new_mult} < 0")

    knots: List[float] = list(curve.knots)
    mults: List[int] = list(curve.multiplicities)
    if curve.periodic and is_end:
        # Erster und letzter Knoten sind derselbe Knoten
        if new_mult == 0:
            raise BSplineValueError("Naht-Knoten einer periodischen B-Spline kann nicht entfernt werden")
        mults[0] = mults[-1] = new_mult
    elif new_mult == 0:
        del knots[i]
        del mults[i]
    else:
        mults[i] = new_mult

    if bspline.pole_count(mults, curve.degree, curve.periodic) < (1 if curve.periodic else curve.degree + 1):
        raise BSplineValueError("Zu wenige Pole nach Knotenentfernung")

    new_curve = curve.with_knots(knots, mults)
    if is_enabled("sketch_debug"):
        logger.debug(f"[KNOT] GeoId {geo_id} Knoten {knot_index}: {curve.multiplicities[i]} -> {new_mult}, "
                     f"{curve.pole_count} -> {new_curve.pole_count} Pole")
    _apply(sketch, geo_id, new_curve, "Knot Multiplicity")


def insert_bspline_knot(sketch: 'Sketch', geo_id: int, param: float, multiplicity: int = 1) -> None:
    """
    Fügt einen Knoten ein bzw. erhöht die Multiplizität eines vorhandenen.

    Die Multiplizität eines vorhandenen Knotens wird auf den Grad begrenzt.
    """
    curve = _get_bspline(sketch, geo_id)
    if multiplicity <= 0:
        raise BSplineValueError(f"Multiplizität {multiplicity} muss > 0 sein")
    if multiplicity > curve.degree:
        raise BSplineValueError(f"Multiplizität {multiplicity} > Grad {curve.degree}")

    first, last = curve.first_parameter, curve.last_parameter
    if not first < param < last:
        raise BSplineValueError(f"Parameter {param} außerhalb ({first}, {last})")

    knots: List[float] = list(curve.knots)
    mults: List[int] = list(curve.multiplicities)
    existing = bspline.find_knot(knots, param, Tolerances.SKETCH_KNOT)
    if existing >= 0:
        mults[existing] = min(mults[existing] + multiplicity, curve.degree)
    else:
        index = next(i for i, k in enumerate(knots) if k > param)
        knots.insert(index, float(param))
        mults.insert(index, multiplicity)

    new_curve = curve.with_knots(knots, mults)
    if is_enabled("sketch_debug"):
        logger.debug(f"[KNOT] GeoId {geo_id}: Knoten bei {param} (x{multiplicity}), "
                     f"{new_curve.pole_count} Pole")
    _apply(sketch, geo_id, new_curve, "Insert Knot")
