"""
parasketch - Sketch Object
Fasst Geometrie und Constraints zusammen und hält Referenzen konsistent
"""

import copy
import math
import re
import uuid
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

import numpy as np
from loguru import logger

from config.feature_flags import is_enabled
from . import internal_geometry
from .constraints import Constraint, ConstraintType, DIMENSIONAL_TYPES
from .exceptions import GeoIdOutOfRangeError
from .expressions import toggle_supplementary
from .geo_enum import GeoEnum, PointPos, external_index, is_external
from .geometry import Geometry, GeometryType, LineSegment
from .naming import ElementMap, ElementName, ElementNameType, MappedElement
from .renumbering import change_constraint_after_deleting_geo

_H_AXIS = LineSegment((0.0, 0.0), (1.0, 0.0))
_V_AXIS = LineSegment((0.0, 0.0), (0.0, 1.0))

_SHAPE_TYPE_PATTERN = re.compile(r"^(Edge|Vertex|ExternalEdge)(\d+)$")


# =============================================================================
# Punkt-Positionen
# =============================================================================

def undefined_point_policy(geometry: Geometry, pos: PointPos) -> np.ndarray:
    """
    Einzige Stelle für undefinierte (Element, Position)-Kombinationen.

    Standard: Ursprung. Mit Flag 'strict_point_positions': ValueError.
    """
    if is_enabled("strict_point_positions"):
        raise ValueError(
            f"Position {pos.name} ist für {geometry.geometry_type.name} nicht definiert"
        )
    logger.debug(f"[SKETCH] getPoint: {geometry.geometry_type.name}/{pos.name} undefiniert -> Ursprung")
    return np.zeros(3)


def get_point(geometry: Geometry, pos: PointPos) -> np.ndarray:
    """
    Punkt an einer Position eines Elements als (x, y, 0).

    Kreis/Ellipse: start und end liegen bei Parameter 0, mid ist das Zentrum.
    """
    pos = PointPos(pos)
    if not geometry.is_curve:
        p = geometry.mid_point()
    elif pos == PointPos.START:
        p = geometry.start_point()
    elif pos == PointPos.END:
        p = geometry.end_point()
    elif pos == PointPos.MID:
        p = geometry.mid_point()
        if p is None:
            return undefined_point_policy(geometry, pos)
    else:
        return undefined_point_policy(geometry, pos)
    return np.array([p[0], p[1], 0.0])


def vertex_positions(geometry: Geometry) -> List[PointPos]:
    """Reihenfolge der Vertices eines Elements in der Vertex-Index-Liste."""
    gtype = geometry.geometry_type
    if gtype == GeometryType.POINT:
        return [PointPos.START]
    if gtype in (GeometryType.CIRCLE, GeometryType.ELLIPSE):
        return [PointPos.MID]
    if gtype in (GeometryType.ARC_OF_CIRCLE, GeometryType.ARC_OF_ELLIPSE,
                 GeometryType.ARC_OF_HYPERBOLA, GeometryType.ARC_OF_PARABOLA):
        return [PointPos.START, PointPos.END, PointPos.MID]
    if geometry.is_periodic:
        return [PointPos.START]
    return [PointPos.START, PointPos.END]


@dataclass
class Sketch:
    """
    2D-Sketch mit Geometrie und Constraints

    Geometrie wird über die GeoId (Listenindex) referenziert. Jede Löschung
    nummeriert die Constraint-Referenzen um, sodass keine Referenz ins Leere
    zeigt. Split/Trim/Join arbeiten transaktional auf einer Kopie.
    """

    name: str = "Sketch"
    id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])

    geometry: List[Geometry] = field(default_factory=list)
    constraints: List[Constraint] = field(default_factory=list)
    external_geometry: List[Geometry] = field(default_factory=list)

    _next_tag: int = field(default=1, repr=False)
    _element_map: Optional[ElementMap] = field(default=None, repr=False)

    # === Geometrie-Verwaltung ===

    def _new_tag(self) -> int:
        tag = self._next_tag
        self._next_tag += 1
        return tag

    def add_geometry(self, geometry: Geometry, construction: Optional[bool] = None) -> int:
        """Kopiert das Element in den Sketch und gibt seine GeoId zurück."""
        geo = geometry.clone()
        if construction is not None:
            geo.construction = construction
        geo.tag = self._new_tag()
        self.geometry.append(geo)
        self.invalidate_shape()
        return len(self.geometry) - 1

    def get_highest_curve_index(self) -> int:
        return len(self.geometry) - 1

    def _check_geo_id(self, geo_id: int) -> None:
        if 0 <= geo_id < len(self.geometry):
            return
        raise GeoIdOutOfRangeError(geo_id, len(self.geometry))

    def _is_valid_reference(self, geo_id: int) -> bool:
        if geo_id == GeoEnum.GEO_UNDEF:
            return True
        if geo_id >= 0:
            return geo_id < len(self.geometry)
        if geo_id in (GeoEnum.H_AXIS, GeoEnum.V_AXIS):
            return True
        return external_index(geo_id) < len(self.external_geometry)

    def get_geometry(self, geo_id: int) -> Geometry:
        """
        Element zu einer GeoId.

        -1 / -2 liefern die Achsen, <= -3 externe Geometrie.
        """
        if geo_id == GeoEnum.H_AXIS:
            return _H_AXIS
        if geo_id == GeoEnum.V_AXIS:
            return _V_AXIS
        if is_external(geo_id):
            index = external_index(geo_id)
            if index < len(self.external_geometry):
                return self.external_geometry[index]
            raise GeoIdOutOfRangeError(geo_id, len(self.external_geometry))
        self._check_geo_id(geo_id)
        return self.geometry[geo_id]

    def get_geometry_id(self, geo_id: int) -> int:
        """Stabiler Tag eines Elements"""
        return self.get_geometry(geo_id).tag

    def get_geo_id_from_tag(self, tag: int) -> int:
        for geo_id, geo in enumerate(self.geometry):
            if geo.tag == tag:
                return geo_id
        return GeoEnum.GEO_UNDEF

    def replace_geometry(self, geo_id: int, geometry: Geometry) -> None:
        """Ersetzt ein Element in place. GeoId und Tag bleiben erhalten."""
        self._check_geo_id(geo_id)
        old = self.geometry[geo_id]
        geometry.tag = old.tag
        geometry.internal_type = old.internal_type
        self.geometry[geo_id] = geometry
        self.invalidate_shape()

    def del_geometry(self, geo_id: int, delete_internal_geometry: bool = True) -> None:
        """
        Löscht ein Element und nummeriert die Constraints um.

        Unbenutzte Hilfsgeometrie wird vorher mitgelöscht, benutzte gelöst.
        """
        self._check_geo_id(geo_id)

        if delete_internal_geometry and internal_geometry.has_internal_geometry(self, geo_id):
            geo_id = internal_geometry.prune_internal_geometry(self, geo_id)

        del self.geometry[geo_id]
        for constraint in self.constraints:
            change_constraint_after_deleting_geo(constraint, geo_id)
        self.purge_deleted_constraints()
        self.invalidate_shape()

        if is_enabled("sketch_debug"):
            logger.debug(f"[SKETCH] GeoId {geo_id} gelöscht, {len(self.geometry)} Elemente verbleiben")

    def clear(self) -> None:
        self.geometry.clear()
        self.constraints.clear()
        self.external_geometry.clear()
        self.invalidate_shape()

    # === Externe Geometrie ===

    def add_external_geometry(self, geometry: Geometry) -> int:
        """Fügt externe (referenzierte) Geometrie hinzu. GeoId: -3, -4, ..."""
        geo = geometry.clone()
        geo.construction = True
        geo.tag = self._new_tag()
        self.external_geometry.append(geo)
        return GeoEnum.REF_EXT - (len(self.external_geometry) - 1)

    def del_external_geometry(self, ext_geo_id: int) -> None:
        if not is_external(ext_geo_id) or external_index(ext_geo_id) >= len(self.external_geometry):
            raise GeoIdOutOfRangeError(ext_geo_id, len(self.external_geometry))
        del self.external_geometry[external_index(ext_geo_id)]
        for constraint in self.constraints:
            change_constraint_after_deleting_geo(constraint, ext_geo_id)
        self.purge_deleted_constraints()

    # === Constraints ===

    def add_constraint(self, constraint: Constraint) -> int:
        """
        Fügt einen Constraint hinzu (der Sketch übernimmt das Objekt).

        Raises:
            GeoIdOutOfRangeError: wenn eine Referenz auf kein Element zeigt
        """
        for geo_id in constraint.geo_ids():
            if not self._is_valid_reference(geo_id):
                raise GeoIdOutOfRangeError(geo_id, len(self.geometry))
        self.constraints.append(constraint)
        return len(self.constraints) - 1

    def del_constraint(self, index: int) -> None:
        self._check_constraint_index(index)
        del self.constraints[index]

    def purge_deleted_constraints(self) -> int:
        """Entfernt Constraints mit type NONE. Gibt die Anzahl zurück."""
        before = len(self.constraints)
        self.constraints[:] = [c for c in self.constraints if c.type != ConstraintType.NONE]
        return before - len(self.constraints)

    def _check_constraint_index(self, index: int) -> None:
        if not 0 <= index < len(self.constraints):
            raise IndexError(f"Constraint-Index {index} außerhalb 0..{len(self.constraints) - 1}")

    def constraints_of_type(self, constraint_type: ConstraintType) -> List[Constraint]:
        return [c for c in self.constraints if c.type == constraint_type]

    # === Punkte ===

    def get_point(self, geo_id: int, pos: PointPos) -> np.ndarray:
        if geo_id == GeoEnum.RT_PNT and pos == PointPos.START:
            return np.zeros(3)
        return get_point(self.get_geometry(geo_id), pos)

    def get_vertex_index_list(self) -> List[Tuple[int, PointPos]]:
        """Alle Vertices als (GeoId, PointPos) in GeoId-Reihenfolge."""
        vertices = []
        for geo_id, geo in enumerate(self.geometry):
            for pos in vertex_positions(geo):
                vertices.append((geo_id, pos))
        return vertices

    def geo_id_from_shape_type(self, name: str) -> Tuple[int, PointPos]:
        """
        Übersetzt Auswahl-Namen in (GeoId, PointPos).

        "Edge1" -> (0, NONE), "ExternalEdge1" -> (-3, NONE), "RootPoint" -> (-1, START)
        """
        if name == "H_Axis":
            return GeoEnum.H_AXIS, PointPos.NONE
        if name == "V_Axis":
            return GeoEnum.V_AXIS, PointPos.NONE
        if name == "RootPoint":
            return GeoEnum.RT_PNT, PointPos.START

        match = _SHAPE_TYPE_PATTERN.match(name)
        if match is None:
            return GeoEnum.GEO_UNDEF, PointPos.NONE
        kind, number = match.group(1), int(match.group(2))
        if number < 1:
            return GeoEnum.GEO_UNDEF, PointPos.NONE

        if kind == "Edge":
            return number - 1, PointPos.NONE
        if kind == "ExternalEdge":
            return GeoEnum.REF_EXT - (number - 1), PointPos.NONE

        vertices = self.get_vertex_index_list()
        if 1 <= number <= len(vertices):
            return vertices[number - 1]
        return GeoEnum.GEO_UNDEF, PointPos.NONE

    # === Interne Hilfsgeometrie ===

    def expose_internal_geometry(self, geo_id: int) -> int:
        return internal_geometry.expose_internal_geometry(self, geo_id)

    def delete_unused_internal_geometry(self, geo_id: int, delete_bspline_knots: bool = True) -> int:
        return internal_geometry.delete_unused_internal_geometry(self, geo_id, delete_bspline_knots)

    def delete_unused_internal_geometry_and_update_geo_id(self, geo_id: int,
                                                          delete_bspline_knots: bool = True) -> int:
        return internal_geometry.delete_unused_internal_geometry_and_update_geo_id(
            self, geo_id, delete_bspline_knots
        )

    def has_internal_geometry(self, geo_id: int) -> bool:
        return internal_geometry.has_internal_geometry(self, geo_id)

    def get_internal_helpers(self, geo_id: int) -> List[Tuple[int, int]]:
        return internal_geometry.get_internal_helpers(self, geo_id)

    def detach_internal_geometry(self, geo_id: int) -> int:
        return internal_geometry.detach_internal_geometry(self, geo_id)

    # === Kurven-Operationen ===

    def split(self, geo_id: int, point) -> int:
        """Teilt ein Element am nächstgelegenen Punkt. 0 bei Erfolg, sonst negativ."""
        from .operations.split import SplitOperation
        return SplitOperation(self).execute(geo_id, point).code

    def trim(self, geo_id: int, point) -> int:
        """Entfernt das Teilstück zwischen den benachbarten Schnittpunkten."""
        from .operations.trim import TrimOperation
        return TrimOperation(self).execute(geo_id, point).code

    def join(self, geo_id1: int, pos1: PointPos, geo_id2: int, pos2: PointPos,
             continuity: int = 0) -> int:
        """Verbindet zwei Kurven an den angegebenen Enden zu einer B-Spline."""
        from .operations.join import JoinOperation
        return JoinOperation(self).execute(geo_id1, pos1, geo_id2, pos2, continuity).code

    def modify_bspline_knot_multiplicity(self, geo_id: int, knot_index: int, delta: int) -> None:
        from .operations.knots import modify_bspline_knot_multiplicity
        modify_bspline_knot_multiplicity(self, geo_id, knot_index, delta)

    def insert_bspline_knot(self, geo_id: int, param: float, multiplicity: int = 1) -> None:
        from .operations.knots import insert_bspline_knot
        insert_bspline_knot(self, geo_id, param, multiplicity)

    # === Ausdrücke ===

    def set_constraint_expression(self, index: int, expression: Optional[str]) -> None:
        self._check_constraint_index(index)
        constraint = self.constraints[index]
        if expression is not None and constraint.type not in DIMENSIONAL_TYPES:
            raise ValueError(f"{constraint.type.name} hat keinen Wert für einen Ausdruck")
        constraint.expression = expression

    def get_constraint_expression(self, index: int) -> Optional[str]:
        self._check_constraint_index(index)
        return self.constraints[index].expression

    def constraint_has_expression(self, index: int) -> bool:
        return bool(self.get_constraint_expression(index))

    def clear_constraint_expression(self, index: int) -> None:
        self.set_constraint_expression(index, None)

    def reverse_angle_constraint_to_supplementary(self, constraint: Constraint, index: int) -> None:
        """
        Schaltet einen Winkel-Constraint auf den Supplementwinkel um.

        Referenzen werden getauscht, die erste Position wechselt start <-> end.
        Ein gebundener Ausdruck wird umgeschrieben, sonst value = π - value.
        Maßgeblich ist der gespeicherte Constraint am Index; nach einem Commit
        kann das übergebene Objekt eine veraltete Kopie sein.
        """
        self._check_constraint_index(index)
        constraint = self.constraints[index]
        constraint.first, constraint.second = constraint.second, constraint.first
        constraint.first_pos, constraint.second_pos = constraint.second_pos, constraint.first_pos
        if constraint.first_pos == PointPos.START:
            constraint.first_pos = PointPos.END
        elif constraint.first_pos == PointPos.END:
            constraint.first_pos = PointPos.START

        expression = self.get_constraint_expression(index)
        if expression:
            constraint.expression = toggle_supplementary(expression)
        else:
            constraint.value = math.pi - constraint.value

    # === Topologische Namen ===

    def invalidate_shape(self) -> None:
        self._element_map = None

    def recompute(self) -> int:
        """Baut die Element-Map neu auf. Gibt die Anzahl Einträge zurück."""
        self._element_map = ElementMap.build(self.geometry)
        return len(self._element_map)

    def _ensure_element_map(self) -> ElementMap:
        if self._element_map is None:
            self.recompute()
        return self._element_map

    def get_element_map(self) -> List[MappedElement]:
        return self._ensure_element_map().elements()

    def get_element_name(self, name: str, mode: ElementNameType = ElementNameType.NORMAL) -> ElementName:
        return self._ensure_element_map().element_name(name, mode)

    # === Transaktionen ===

    def clone(self) -> 'Sketch':
        """Tiefe Kopie (Draft) für transaktionale Operationen."""
        draft = copy.deepcopy(self)
        draft._element_map = None
        return draft

    def adopt(self, draft: 'Sketch') -> None:
        """Übernimmt den Zustand eines Drafts (Commit)."""
        self.geometry = draft.geometry
        self.constraints = draft.constraints
        self.external_geometry = draft.external_geometry
        self._next_tag = draft._next_tag
        self.invalidate_shape()

    def __repr__(self):
        return f"Sketch('{self.name}': {len(self.geometry)} Elemente, {len(self.constraints)} Constraints)"
