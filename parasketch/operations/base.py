"""
parasketch - Base Classes for Sketch Operations
===============================================

Gemeinsame Bausteine für Split, Trim und Join:

- ResultStatus / OperationResult mit numerischem Result-Code
  (0 Erfolg, -1 kein Ziel, -2 geometrisch nicht möglich, -3 Fehler)
- SketchTransaction: Operationen arbeiten auf einem Draft (tiefe Kopie)
  und übernehmen ihn nur bei commit(). Bei Fehlern bleibt der Sketch
  unverändert.
- Hilfsfunktionen für das Umhängen von Constraints auf Teilstücke
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, List, Optional, Sequence, Tuple

import numpy as np
from loguru import logger

from config.feature_flags import is_enabled
from config.tolerances import Tolerances
from ..constraints import ConstraintType, make_coincident, make_point_on_object
from ..exceptions import NoIntersectionError
from ..geo_enum import PointPos
from ..geometry import Geometry

if TYPE_CHECKING:
    from ..sketch import Sketch


class ResultStatus(Enum):
    """Status einer Operation, Wert = Result-Code"""
    SUCCESS = 0
    NO_TARGET = -1         # Ungültige GeoId / Eingabe
    GEOMETRY_FAILURE = -2  # Geometrische Vorbedingung nicht erfüllt
    ERROR = -3             # Unerwarteter Fehler


@dataclass
class OperationResult:
    """
    Strukturiertes Ergebnis einer Sketch-Operation.

    Ermöglicht klare Unterscheidung zwischen Erfolg und Fehlerarten.
    """
    status: ResultStatus
    message: str = ""
    data: Any = None

    @property
    def success(self) -> bool:
        return self.status == ResultStatus.SUCCESS

    @property
    def code(self) -> int:
        return self.status.value

    @classmethod
    def ok(cls, message: str = "", data: Any = None) -> 'OperationResult':
        return cls(ResultStatus.SUCCESS, message, data)

    @classmethod
    def no_target(cls, message: str = "Kein Ziel gefunden") -> 'OperationResult':
        return cls(ResultStatus.NO_TARGET, message)

    @classmethod
    def failed(cls, message: str) -> 'OperationResult':
        return cls(ResultStatus.GEOMETRY_FAILURE, message)

    @classmethod
    def error(cls, message: str) -> 'OperationResult':
        return cls(ResultStatus.ERROR, message)


class SketchTransaction:
    """
    Context Manager für atomare Sketch-Änderungen.

    Usage:
        with SketchTransaction(sketch, "Trim") as txn:
            draft = txn.draft
            draft.del_geometry(3)
            txn.commit()

    Ohne commit() oder bei einer Exception wird der Draft verworfen,
    die Exception propagiert.
    """

    def __init__(self, sketch: 'Sketch', operation_name: str = "Operation"):
        self._sketch = sketch
        self._operation_name = operation_name
        self._draft: Optional['Sketch'] = None
        self._committed = False

    @property
    def draft(self) -> 'Sketch':
        if self._draft is None:
            raise RuntimeError("Transaction not entered")
        return self._draft

    @property
    def committed(self) -> bool:
        return self._committed

    def __enter__(self) -> 'SketchTransaction':
        if self._draft is not None:
            raise RuntimeError("Transaction already entered")
        self._draft = self._sketch.clone()
        return self

    def commit(self):
        """Markiert die Transaktion als erfolgreich."""
        if self._draft is None:
            raise RuntimeError("Cannot commit - transaction not entered")
        self._committed = True

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is None and self._committed:
            self._sketch.adopt(self._draft)
            if is_enabled("sketch_debug"):
                logger.success(f"[SKETCH] Transaction committed: {self._operation_name}")
            return False

        self._committed = False
        if exc_type is not None:
            logger.debug(f"[SKETCH] Transaction verworfen: {self._operation_name} ({exc_val})")
        return False


class SketchOperation(ABC):
    """
    Abstrakte Basisklasse für Sketch-Operationen.

    Jede Operation hat:
    - Referenz auf den Sketch
    - execute() Methode
    - Strukturiertes Ergebnis
    """

    log_prefix = "[SKETCH]"

    def __init__(self, sketch: 'Sketch'):
        self.sketch = sketch
        self._last_result: Optional[OperationResult] = None

    @property
    def last_result(self) -> Optional[OperationResult]:
        """Letztes Ergebnis der Operation."""
        return self._last_result

    def execute(self, *args, **kwargs) -> OperationResult:
        """
        Führt die Operation aus.

        NoIntersectionError wird zu GEOMETRY_FAILURE, unerwartete Exceptions
        werden geloggt und als ERROR gemeldet. Der Sketch bleibt dabei
        unverändert.
        """
        try:
            result = self._execute(*args, **kwargs)
        except NoIntersectionError as e:
            result = OperationResult.failed(str(e))
        except Exception as e:
            logger.exception(f"{self.log_prefix} Unerwarteter Fehler: {e}")
            result = OperationResult.error(str(e))

        if not result.success:
            logger.debug(f"{self.log_prefix} {result.status.name}: {result.message}")
        elif is_enabled("sketch_debug"):
            logger.debug(f"{self.log_prefix} OK: {result.message}")
        self._last_result = result
        return result

    @abstractmethod
    def _execute(self, *args, **kwargs) -> OperationResult:
        pass

    def is_valid_target(self, geo_id: int) -> bool:
        return 0 <= geo_id <= self.sketch.get_highest_curve_index()


# =============================================================================
# Constraint-Umverteilung
# =============================================================================

def move_point_constraints(draft: 'Sketch', geo_id: int, pos: PointPos,
                           new_geo_id: int, new_pos: PointPos) -> int:
    """Hängt alle Constraints an (geo_id, pos) auf (new_geo_id, new_pos) um."""
    moved = 0
    for constraint in draft.constraints:
        if constraint.type == ConstraintType.INTERNAL_ALIGNMENT:
            continue
        if constraint.replace_point(geo_id, pos, new_geo_id, new_pos):
            moved += 1
    return moved


def drop_point_constraints(draft: 'Sketch', geo_id: int, pos: PointPos) -> int:
    """Verwirft alle Constraints an einem weggeschnittenen Endpunkt."""
    dropped = 0
    for constraint in draft.constraints:
        if constraint.involves_point(geo_id, pos):
            constraint.type = ConstraintType.NONE
            dropped += 1
    draft.purge_deleted_constraints()
    return dropped


def redistribute_point_on_object(draft: 'Sketch', geo_id: int, original: Geometry,
                                 pieces: Sequence[Tuple[int, float, float]]) -> None:
    """
    PointOnObject-Constraints auf dem Element dem passenden Teilstück zuordnen.

    Args:
        original: Geometrie vor der Änderung (für die Projektion)
        pieces: (GeoId, u0, u1) der verbleibenden Teilstücke im Parameter
                von original. Punkte außerhalb aller Teilstücke verlieren ihren Constraint.
    """
    tol = max(original.last_parameter - original.first_parameter, 1.0) * Tolerances.SKETCH_PARAMETER
    changed = False
    for constraint in draft.constraints:
        if constraint.type != ConstraintType.POINT_ON_OBJECT or constraint.second != geo_id:
            continue
        try:
            point = draft.get_point(constraint.first, constraint.first_pos)
        except (IndexError, ValueError):
            continue
        u = original.parameter_at_point(point)
        if original.is_periodic:
            period = original.last_parameter - original.first_parameter
            candidates = (u, u + period)
        else:
            candidates = (u,)

        target = None
        for piece_id, u0, u1 in pieces:
            if any(u0 - tol <= c <= u1 + tol for c in candidates):
                target = piece_id
                break
        if target is None:
            constraint.type = ConstraintType.NONE
            changed = True
        else:
            constraint.second = target
    if changed:
        draft.purge_deleted_constraints()


@dataclass
class Cut:
    """Schnittpunkt auf dem Ziel-Element mit der schneidenden Kurve"""
    param: float
    cutter: int
    cutter_param: float
    point: np.ndarray
    cutter_pos: PointPos = PointPos.NONE   # Vertex der schneidenden Kurve, falls getroffen


def anchor_constraint(geo_id: int, pos: PointPos, cut: Cut):
    """Coincident bei Vertex-Treffer, sonst PointOnObject auf der schneidenden Kurve."""
    if cut.cutter_pos != PointPos.NONE:
        return make_coincident(geo_id, pos, cut.cutter, cut.cutter_pos)
    return make_point_on_object(geo_id, pos, cut.cutter)


def copy_constraints(constraints: List, geo_id: int, new_geo_id: int, types) -> list:
    """Kopien kantenbezogener Constraints (z.B. Horizontal) für ein neues Teilstück."""
    copies = []
    for constraint in constraints:
        if constraint.type in types and constraint.first == geo_id and constraint.second < 0:
            clone = constraint.clone()
            clone.first = new_geo_id
            copies.append(clone)
    return copies
