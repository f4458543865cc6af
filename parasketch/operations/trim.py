"""
parasketch - Trim Operation
===========================

Entfernt das Teilstück eines Elements zwischen den beiden Schnittpunkten,
die den angeklickten Punkt einschließen.

Offene Kurven:
    keine Schnittpunkte      -> Element löschen
    nur eine Seite           -> kürzen, neuen Endpunkt verankern
    beide Seiten             -> zwei Teilstücke, beide verankert
Geschlossene Kurven:
    weniger als zwei Schnitte -> Element löschen
    sonst                     -> in place zur offenen Kurve vom nächsten
                                 Schnitt nach u bis zum vorherigen vor u

Verankerung: Coincident, wenn der Schnittpunkt ein Endpunkt der schneidenden
Kurve ist, sonst PointOnObject auf der schneidenden Kurve.
"""

from typing import List, Optional

import numpy as np
from loguru import logger

from config.feature_flags import is_enabled
from config.tolerances import Tolerances, parameter_tolerance
from ..constraints import make_coincident
from ..exceptions import NoIntersectionError
from ..geo_enum import PointPos
from ..geometry import BSplineCurve, Geometry, GeometryType
from ..internal_geometry import get_internal_helpers, prune_internal_geometry
from ..intersection import intersect
from .base import (Cut, OperationResult, SketchOperation, SketchTransaction, anchor_constraint,
                   drop_point_constraints, move_point_constraints, redistribute_point_on_object)

_CENTERED_ARCS = (GeometryType.ARC_OF_CIRCLE, GeometryType.ARC_OF_ELLIPSE)

# Zwei Schnittpunkte innerhalb dieses Abstands sind derselbe Schnitt
_MERGE_DISTANCE = Tolerances.SKETCH_COINCIDENT * 10


def _vertex_hit(cutter: Geometry, point: np.ndarray) -> PointPos:
    """Welcher Vertex der schneidenden Kurve liegt im Schnittpunkt?"""
    if cutter.is_periodic:
        return PointPos.NONE
    for pos, vertex in ((PointPos.START, cutter.start_point()), (PointPos.END, cutter.end_point())):
        if np.linalg.norm(vertex - point) <= _MERGE_DISTANCE:
            return pos
    return PointPos.NONE


def collect_cuts(draft, geo_id: int) -> List[Cut]:
    """
    Alle Schnittpunkte des Elements mit den übrigen Kurven, sortiert nach Parameter.

    Hilfsgeometrie des Elements und Punkte schneiden nicht. Bei offenen Kurven
    werden Schnitte an den eigenen Endpunkten ignoriert.
    """
    target = draft.geometry[geo_id]
    helpers = {helper_id for helper_id, _ in get_internal_helpers(draft, geo_id)}
    exclude_construction = is_enabled("trim_exclude_construction")

    cuts: List[Cut] = []
    for other_id, other in enumerate(draft.geometry):
        if other_id == geo_id or other_id in helpers or not other.is_curve:
            continue
        if exclude_construction and other.construction:
            continue
        for ip in intersect(target, other):
            cuts.append(Cut(ip.u1, other_id, ip.u2, ip.point, _vertex_hit(other, ip.point)))

    if not target.is_periodic:
        ends = (target.start_point(), target.end_point())
        cuts = [c for c in cuts if all(np.linalg.norm(c.point - e) > _MERGE_DISTANCE for e in ends)]

    cuts.sort(key=lambda c: c.param)
    merged: List[Cut] = []
    for cut in cuts:
        if merged and np.linalg.norm(cut.point - merged[-1].point) <= _MERGE_DISTANCE:
            # Vertex-Treffer (-> Coincident) haben Vorrang
            if merged[-1].cutter_pos == PointPos.NONE and cut.cutter_pos != PointPos.NONE:
                merged[-1] = cut
            continue
        merged.append(cut)

    if target.is_periodic and len(merged) > 1:
        if np.linalg.norm(merged[0].point - merged[-1].point) <= _MERGE_DISTANCE:
            merged.pop()
    return merged


class TrimOperation(SketchOperation):
    """Trim-Operation auf einem Element"""

    log_prefix = "[TRIM]"

    def _execute(self, geo_id: int, point) -> OperationResult:
        if not self.is_valid_target(geo_id):
            return OperationResult.no_target(f"Ungültige GeoId {geo_id}")

        geometry = self.sketch.geometry[geo_id]
        if not geometry.is_curve:
            return OperationResult.no_target(f"GeoId {geo_id} ist keine Kurve")

        u = geometry.parameter_at_point(point)

        with SketchTransaction(self.sketch, "Trim") as txn:
            draft = txn.draft
            if isinstance(geometry, BSplineCurve):
                geo_id = prune_internal_geometry(draft, geo_id)

            cuts = collect_cuts(draft, geo_id)
            if is_enabled("sketch_debug"):
                logger.debug(f"[TRIM] GeoId {geo_id} u={u:.6f}: {len(cuts)} Schnittpunkte "
                             f"{[round(c.param, 6) for c in cuts]}")

            trim_point = geometry.value(u)
            if any(np.linalg.norm(c.point - trim_point) <= _MERGE_DISTANCE for c in cuts):
                raise NoIntersectionError(f"Trim-Punkt u={u:.6f} liegt auf einem Schnittpunkt")

            if geometry.is_periodic:
                result = self._trim_closed(draft, geo_id, u, cuts)
            else:
                result = self._trim_open(draft, geo_id, u, cuts)
            if result.success:
                txn.commit()
        return result

    def _trim_open(self, draft, geo_id: int, u: float, cuts: List[Cut]) -> OperationResult:
        geometry = draft.geometry[geo_id]
        first, last = geometry.first_parameter, geometry.last_parameter
        tol = parameter_tolerance(first, last)

        lower: Optional[Cut] = None
        upper: Optional[Cut] = None
        for cut in cuts:
            if cut.param < u - tol:
                lower = cut
            elif cut.param > u + tol and upper is None:
                upper = cut

        if lower is None and upper is None:
            draft.del_geometry(geo_id)
            return OperationResult.ok(f"GeoId {geo_id} ohne Schnittpunkte gelöscht")

        if upper is None:
            drop_point_constraints(draft, geo_id, PointPos.END)
            draft.replace_geometry(geo_id, geometry.trimmed(first, lower.param))
            redistribute_point_on_object(draft, geo_id, geometry, [(geo_id, first, lower.param)])
            draft.add_constraint(anchor_constraint(geo_id, PointPos.END, lower))
            return OperationResult.ok(f"GeoId {geo_id} am Ende gekürzt")

        if lower is None:
            drop_point_constraints(draft, geo_id, PointPos.START)
            draft.replace_geometry(geo_id, geometry.trimmed(upper.param, last))
            redistribute_point_on_object(draft, geo_id, geometry, [(geo_id, upper.param, last)])
            draft.add_constraint(anchor_constraint(geo_id, PointPos.START, upper))
            return OperationResult.ok(f"GeoId {geo_id} am Anfang gekürzt")

        draft.replace_geometry(geo_id, geometry.trimmed(first, lower.param))
        new_id = draft.add_geometry(geometry.trimmed(upper.param, last))

        move_point_constraints(draft, geo_id, PointPos.END, new_id, PointPos.END)
        redistribute_point_on_object(
            draft, geo_id, geometry, [(geo_id, first, lower.param), (new_id, upper.param, last)]
        )
        draft.add_constraint(anchor_constraint(geo_id, PointPos.END, lower))
        draft.add_constraint(anchor_constraint(new_id, PointPos.START, upper))
        if geometry.geometry_type in _CENTERED_ARCS:
            draft.add_constraint(make_coincident(geo_id, PointPos.MID, new_id, PointPos.MID))

        return OperationResult.ok(f"GeoId {geo_id} in zwei Teilstücke getrimmt ({new_id})", data=new_id)

    def _trim_closed(self, draft, geo_id: int, u: float, cuts: List[Cut]) -> OperationResult:
        if len(cuts) < 2:
            draft.del_geometry(geo_id)
            return OperationResult.ok(f"Geschlossene Kurve {geo_id} mit {len(cuts)} Schnitten gelöscht")

        geometry = draft.geometry[geo_id]
        period = geometry.last_parameter - geometry.first_parameter

        after = [c for c in cuts if c.param > u]
        before = [c for c in cuts if c.param < u]
        next_cut = after[0] if after else cuts[0]
        prev_cut = before[-1] if before else cuts[-1]

        start = next_cut.param
        end = prev_cut.param
        if end <= start:
            end += period

        draft.replace_geometry(geo_id, geometry.trimmed(start, end))
        redistribute_point_on_object(draft, geo_id, geometry, [(geo_id, start, end)])
        draft.add_constraint(anchor_constraint(geo_id, PointPos.START, next_cut))
        draft.add_constraint(anchor_constraint(geo_id, PointPos.END, prev_cut))

        return OperationResult.ok(
            f"Geschlossene Kurve {geo_id} zu {draft.geometry[geo_id].geometry_type.name} getrimmt"
        )
