"""
parasketch - Join Operation
===========================

Verbindet zwei offene Kurven an je einem Endpunkt zu einer B-Spline.

1. Beide Kurven in geklemmte B-Splines konvertieren und auf gemeinsamen Grad
   (mindestens kubisch) anheben
2. Ausrichten: erste Kurve endet, zweite beginnt am Stoß
3. Stoßpunkt = Mittelpunkt der beiden Endpunkte
4. Verketten mit Multiplizität = Grad am Stoß (C0); bei continuity >= 1 und
   vorhandenem Tangent-Constraint zwischen den Enden Multiplizität Grad-1
5. Constraints an den freien Enden auf Start/Ende der neuen B-Spline umhängen,
   beide Quellen löschen
"""

from loguru import logger

from config.feature_flags import is_enabled
from ..constraints import ConstraintType
from ..geo_enum import PointPos
from ..geometry import BSplineCurve, to_bspline
from ..internal_geometry import prune_internal_geometry
from .base import OperationResult, SketchOperation, SketchTransaction, move_point_constraints

_MIN_DEGREE = 3


def _other_end(pos: PointPos) -> PointPos:
    return PointPos.START if pos == PointPos.END else PointPos.END


def has_end_tangency(sketch, geo_id1: int, pos1: PointPos, geo_id2: int, pos2: PointPos) -> bool:
    """Existiert ein Tangent-Constraint zwischen den beiden Enden?"""
    ends = {(geo_id1, pos1), (geo_id2, pos2)}
    for constraint in sketch.constraints:
        if constraint.type != ConstraintType.TANGENT:
            continue
        refs = {(constraint.first, constraint.first_pos), (constraint.second, constraint.second_pos)}
        if refs == ends:
            return True
        # Kante-zu-Kante-Tangente zwischen den beiden Kurven
        if {constraint.first, constraint.second} == {geo_id1, geo_id2} and \
                constraint.first_pos == PointPos.NONE and constraint.second_pos == PointPos.NONE:
            return True
    return False


def concatenate(first: BSplineCurve, second: BSplineCurve) -> BSplineCurve:
    """
    Verkettet zwei geklemmte B-Splines gleichen Grads.

    Der letzte Pol von first und der erste Pol von second werden auf ihren
    Mittelpunkt gesetzt und verschmolzen.
    """
    degree = first.degree
    shift = first.knots[-1] - second.knots[0]
    junction = tuple((a + b) / 2 for a, b in zip(first.poles[-1], second.poles[0]))

    # Gewichte der zweiten Kurve skalieren, damit die Stoß-Gewichte übereinstimmen
    scale = first.weights[-1] / second.weights[0]

    poles = list(first.poles[:-1]) + [junction] + list(second.poles[1:])
    weights = list(first.weights) + [w * scale for w in second.weights[1:]]
    knots = list(first.knots) + [k + shift for k in second.knots[1:]]
    mults = list(first.multiplicities[:-1]) + [degree] + list(second.multiplicities[1:])
    return BSplineCurve(poles=poles, weights=weights, knots=knots, multiplicities=mults, degree=degree)


class JoinOperation(SketchOperation):
    """Join-Operation auf zwei Elementen"""

    log_prefix = "[JOIN]"

    def _execute(self, geo_id1: int, pos1: PointPos, geo_id2: int, pos2: PointPos,
                 continuity: int = 0) -> OperationResult:
        if not (self.is_valid_target(geo_id1) and self.is_valid_target(geo_id2)):
            return OperationResult.no_target(f"Ungültige GeoIds {geo_id1}, {geo_id2}")
        if geo_id1 == geo_id2:
            return OperationResult.no_target("Ein Element kann nicht mit sich selbst verbunden werden")
        if pos1 not in (PointPos.START, PointPos.END) or pos2 not in (PointPos.START, PointPos.END):
            return OperationResult.no_target("Verbinden nur an Start- oder Endpunkten")
        pos1, pos2 = PointPos(pos1), PointPos(pos2)

        for geo_id in (geo_id1, geo_id2):
            geometry = self.sketch.geometry[geo_id]
            if not geometry.is_curve:
                return OperationResult.no_target(f"GeoId {geo_id} ist keine Kurve")
            if geometry.is_periodic:
                return OperationResult.no_target(f"GeoId {geo_id} ist geschlossen")

        tangent = continuity >= 1 and is_enabled("join_tangent_continuity") and \
            has_end_tangency(self.sketch, geo_id1, pos1, geo_id2, pos2)

        with SketchTransaction(self.sketch, "Join") as txn:
            result = self._join(txn.draft, geo_id1, pos1, geo_id2, pos2, tangent)
            if result.success:
                txn.commit()
        return result

    def _join(self, draft, geo_id1, pos1, geo_id2, pos2, tangent: bool) -> OperationResult:
        # Hilfsgeometrie entfernen, GeoIds über Tags nachführen
        tag1, tag2 = draft.geometry[geo_id1].tag, draft.geometry[geo_id2].tag
        prune_internal_geometry(draft, geo_id1)
        prune_internal_geometry(draft, draft.get_geo_id_from_tag(tag2))
        geo_id1 = draft.get_geo_id_from_tag(tag1)
        geo_id2 = draft.get_geo_id_from_tag(tag2)

        source1 = draft.geometry[geo_id1]
        source2 = draft.geometry[geo_id2]

        curve1 = to_bspline(source1)
        if pos1 == PointPos.START:
            curve1 = curve1.reversed()
        curve2 = to_bspline(source2)
        if pos2 == PointPos.END:
            curve2 = curve2.reversed()

        degree = max(_MIN_DEGREE, curve1.degree, curve2.degree)
        curve1 = curve1.elevated(degree)
        curve2 = curve2.elevated(degree)

        joined = concatenate(curve1, curve2)
        junction_index = len(curve1.knots) - 1
        if tangent and degree >= 2:
            mults = list(joined.multiplicities)
            mults[junction_index] = degree - 1
            joined = joined.with_knots(joined.knots, mults)
        joined.construction = source1.construction and source2.construction

        if is_enabled("sketch_debug"):
            logger.debug(f"[JOIN] {geo_id1}/{pos1.name} + {geo_id2}/{pos2.name}: Grad {degree}, "
                         f"Stoß-Multiplizität {joined.multiplicities[junction_index]}")

        new_id = draft.add_geometry(joined)
        move_point_constraints(draft, geo_id1, _other_end(pos1), new_id, PointPos.START)
        move_point_constraints(draft, geo_id2, _other_end(pos2), new_id, PointPos.END)

        for geo_id in sorted((geo_id1, geo_id2), reverse=True):
            draft.del_geometry(geo_id)

        return OperationResult.ok(f"Elemente verbunden zu GeoId {draft.get_highest_curve_index()}")
