"""
parasketch - Constraint-Modell
Symbolische Constraints, die Geometrie über GeoId + PointPos referenzieren
"""

from dataclasses import dataclass, replace
from enum import Enum, auto
from typing import Optional, Tuple

from .geo_enum import GeoEnum, InternalAlignmentType, PointPos


class ConstraintType(Enum):
    """Verfügbare Constraint-Typen"""
    NONE = auto()               # Logisch gelöscht

    # Punkt-Constraints
    COINCIDENT = auto()         # Zwei Punkte zusammen
    POINT_ON_OBJECT = auto()    # Punkt auf Kurve

    # Richtungs-Constraints
    HORIZONTAL = auto()
    VERTICAL = auto()
    PARALLEL = auto()
    PERPENDICULAR = auto()
    TANGENT = auto()
    EQUAL = auto()
    SYMMETRIC = auto()

    # Maß-Constraints (Dimensionen)
    DISTANCE = auto()
    DISTANCE_X = auto()
    DISTANCE_Y = auto()
    ANGLE = auto()
    RADIUS = auto()
    DIAMETER = auto()
    WEIGHT = auto()             # Gewicht eines B-Spline-Pols

    # Struktur
    INTERNAL_ALIGNMENT = auto()  # Hilfsgeometrie (first) an Eltern-Element (second)
    BLOCK = auto()


# Constraints mit Zahlenwert (können an einen Ausdruck gebunden werden)
DIMENSIONAL_TYPES = frozenset({
    ConstraintType.DISTANCE,
    ConstraintType.DISTANCE_X,
    ConstraintType.DISTANCE_Y,
    ConstraintType.ANGLE,
    ConstraintType.RADIUS,
    ConstraintType.DIAMETER,
    ConstraintType.WEIGHT,
})


@dataclass
class Constraint:
    """
    Ein Constraint mit bis zu drei Referenzen (GeoId, PointPos).

    Unbelegte Slots haben GEO_UNDEF / PointPos.NONE. Ein Constraint mit
    type == NONE gilt als gelöscht.
    """
    type: ConstraintType = ConstraintType.NONE
    first: int = GeoEnum.GEO_UNDEF
    first_pos: PointPos = PointPos.NONE
    second: int = GeoEnum.GEO_UNDEF
    second_pos: PointPos = PointPos.NONE
    third: int = GeoEnum.GEO_UNDEF
    third_pos: PointPos = PointPos.NONE
    value: float = 0.0
    alignment_type: InternalAlignmentType = InternalAlignmentType.NONE
    internal_alignment_index: int = -1  # 1-basiert, -1 = unbenutzt
    name: str = ""
    driving: bool = True
    expression: Optional[str] = None   # Gebundener Ausdruck (nur Dimensionen)

    def __repr__(self):
        refs = [f"{g}:{p.name.lower()}" for g, p in self.references()]
        val_str = f"={self.value}" if self.type in DIMENSIONAL_TYPES else ""
        if self.expression:
            val_str = f"={self.expression}({self.value})"
        return f"{self.type.name}({', '.join(refs)}){val_str}"

    def clone(self) -> 'Constraint':
        return replace(self)

    @property
    def is_deleted(self) -> bool:
        return self.type == ConstraintType.NONE

    def geo_ids(self) -> Tuple[int, int, int]:
        return self.first, self.second, self.third

    def references(self):
        """Belegte Slots als Liste von (GeoId, PointPos)."""
        slots = [
            (self.first, self.first_pos),
            (self.second, self.second_pos),
            (self.third, self.third_pos),
        ]
        return [(g, p) for g, p in slots if g != GeoEnum.GEO_UNDEF]

    def involves(self, geo_id: int) -> bool:
        return geo_id != GeoEnum.GEO_UNDEF and geo_id in self.geo_ids()

    def involves_point(self, geo_id: int, pos: PointPos) -> bool:
        return (geo_id, pos) in self.references()

    def replace_point(self, geo_id: int, pos: PointPos, new_geo_id: int, new_pos: PointPos) -> bool:
        """Ersetzt jede Referenz (geo_id, pos). Gibt True zurück wenn etwas geändert wurde."""
        changed = False
        if self.first == geo_id and self.first_pos == pos:
            self.first, self.first_pos = new_geo_id, new_pos
            changed = True
        if self.second == geo_id and self.second_pos == pos:
            self.second, self.second_pos = new_geo_id, new_pos
            changed = True
        if self.third == geo_id and self.third_pos == pos:
            self.third, self.third_pos = new_geo_id, new_pos
            changed = True
        return changed

    def is_internal_alignment_of(self, parent: int) -> bool:
        return self.type == ConstraintType.INTERNAL_ALIGNMENT and self.second == parent


# === Constraint-Factories ===

def make_coincident(geo1: int, pos1: PointPos, geo2: int, pos2: PointPos) -> Constraint:
    """Zwei Punkte zusammenfallen lassen"""
    return Constraint(
        type=ConstraintType.COINCIDENT,
        first=geo1, first_pos=pos1,
        second=geo2, second_pos=pos2,
    )


def make_point_on_object(geo: int, pos: PointPos, curve: int) -> Constraint:
    """Punkt (geo, pos) liegt auf Kurve"""
    return Constraint(
        type=ConstraintType.POINT_ON_OBJECT,
        first=geo, first_pos=pos,
        second=curve,
    )


def make_horizontal(geo: int) -> Constraint:
    return Constraint(type=ConstraintType.HORIZONTAL, first=geo)


def make_vertical(geo: int) -> Constraint:
    return Constraint(type=ConstraintType.VERTICAL, first=geo)


def make_tangent(geo1: int, geo2: int,
                 pos1: PointPos = PointPos.NONE, pos2: PointPos = PointPos.NONE) -> Constraint:
    """Tangential, optional Endpunkt-zu-Endpunkt"""
    return Constraint(
        type=ConstraintType.TANGENT,
        first=geo1, first_pos=pos1,
        second=geo2, second_pos=pos2,
    )


def make_angle(geo1: int, geo2: int, value: float,
               pos1: PointPos = PointPos.NONE, pos2: PointPos = PointPos.NONE) -> Constraint:
    """Winkel zwischen zwei Kurven (Radiant)"""
    return Constraint(
        type=ConstraintType.ANGLE,
        first=geo1, first_pos=pos1,
        second=geo2, second_pos=pos2,
        value=value,
    )


def make_distance(geo1: int, pos1: PointPos, geo2: int, pos2: PointPos, value: float) -> Constraint:
    return Constraint(
        type=ConstraintType.DISTANCE,
        first=geo1, first_pos=pos1,
        second=geo2, second_pos=pos2,
        value=value,
    )


def make_radius(geo: int, value: float) -> Constraint:
    return Constraint(type=ConstraintType.RADIUS, first=geo, value=value)


def make_internal_alignment(helper: int, parent: int, alignment_type: InternalAlignmentType,
                            index: int = -1, helper_pos: PointPos = PointPos.NONE) -> Constraint:
    """Bindet Hilfsgeometrie an ihr Eltern-Element"""
    return Constraint(
        type=ConstraintType.INTERNAL_ALIGNMENT,
        first=helper, first_pos=helper_pos,
        second=parent,
        alignment_type=alignment_type,
        internal_alignment_index=index,
    )
