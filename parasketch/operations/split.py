"""
parasketch - Split Operation
============================

Teilt ein Element am Parameter, der dem angegebenen Punkt am nächsten liegt.

Offene Kurven: das Element behält GeoId und Tag und wird auf [first, u]
gekürzt, ein neues Element [u, last] wird angehängt und per Coincident
verbunden. Geschlossene Kurven werden in place zu einer offenen Kurve, die
bei u beginnt und endet (Kreis -> Kreisbogen, Ellipse -> Ellipsenbogen,
periodische B-Spline -> offene B-Spline).
"""

import math

from loguru import logger

from config.feature_flags import is_enabled
from config.tolerances import parameter_tolerance
from ..constraints import ConstraintType, make_coincident
from ..geo_enum import PointPos
from ..geometry import BSplineCurve, GeometryType
from ..internal_geometry import prune_internal_geometry
from .base import (OperationResult, SketchOperation, SketchTransaction, copy_constraints,
                   move_point_constraints, redistribute_point_on_object)

# Bögen, deren Teilstücke zusätzlich über das Zentrum verbunden werden
_CENTERED_ARCS = (GeometryType.ARC_OF_CIRCLE, GeometryType.ARC_OF_ELLIPSE)


class SplitOperation(SketchOperation):
    """Split-Operation auf einem Element"""

    log_prefix = "[SPLIT]"

    def _execute(self, geo_id: int, point) -> OperationResult:
        if not self.is_valid_target(geo_id):
            return OperationResult.no_target(f"Ungültige GeoId {geo_id}")

        geometry = self.sketch.geometry[geo_id]
        if not geometry.is_curve:
            return OperationResult.no_target(f"GeoId {geo_id} ist keine Kurve")

        u = geometry.parameter_at_point(point)
        if is_enabled("sketch_debug"):
            logger.debug(f"[SPLIT] GeoId {geo_id} ({geometry.geometry_type.name}) bei u={u:.6f}")

        with SketchTransaction(self.sketch, "Split") as txn:
            if geometry.is_periodic:
                result = self._split_closed(txn.draft, geo_id, u)
            else:
                result = self._split_open(txn.draft, geo_id, u)
            if result.success:
                txn.commit()
        return result

    def _split_closed(self, draft, geo_id: int, u: float) -> OperationResult:
        if isinstance(draft.geometry[geo_id], BSplineCurve):
            geo_id = prune_internal_geometry(draft, geo_id)

        geometry = draft.geometry[geo_id]
        if isinstance(geometry, BSplineCurve):
            opened = geometry.segment(u, u + geometry.period)
        else:
            opened = geometry.trimmed(u, u + 2 * math.pi)

        draft.replace_geometry(geo_id, opened)
        return OperationResult.ok(
            f"{geometry.geometry_type.name} geöffnet als {opened.geometry_type.name}", data=geo_id
        )

    def _split_open(self, draft, geo_id: int, u: float) -> OperationResult:
        geometry = draft.geometry[geo_id]
        first, last = geometry.first_parameter, geometry.last_parameter
        tol = parameter_tolerance(first, last)
        if u <= first + tol or u >= last - tol:
            return OperationResult.failed(f"Split-Parameter {u:.6f} liegt am Kurvenende")

        if isinstance(geometry, BSplineCurve):
            geo_id = prune_internal_geometry(draft, geo_id)
            geometry = draft.geometry[geo_id]

        first_piece = geometry.trimmed(first, u)
        second_piece = geometry.trimmed(u, last)

        draft.replace_geometry(geo_id, first_piece)
        new_id = draft.add_geometry(second_piece)

        move_point_constraints(draft, geo_id, PointPos.END, new_id, PointPos.END)
        redistribute_point_on_object(draft, geo_id, geometry, [(geo_id, first, u), (new_id, u, last)])

        if geometry.geometry_type == GeometryType.LINE_SEGMENT:
            for clone in copy_constraints(draft.constraints, geo_id, new_id,
                                          {ConstraintType.HORIZONTAL, ConstraintType.VERTICAL}):
                draft.add_constraint(clone)

        draft.add_constraint(make_coincident(geo_id, PointPos.END, new_id, PointPos.START))
        if geometry.geometry_type in _CENTERED_ARCS:
            draft.add_constraint(make_coincident(geo_id, PointPos.MID, new_id, PointPos.MID))

        return OperationResult.ok(f"GeoId {geo_id} geteilt, neues Teilstück {new_id}", data=new_id)
