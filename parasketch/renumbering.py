"""
parasketch - Referenz-Umnummerierung nach dem Löschen von Geometrie

Löschen von GeoId k >= 0: alle Referenzen > k rücken um 1 nach unten.
Löschen externer Geometrie k < 0: alle externen Referenzen < k (ohne
GEO_UNDEF) rücken um 1 Richtung Null. Achsen und Ursprung bleiben stabil.

Ein Constraint, der das gelöschte Element selbst referenziert, würde
hängen bleiben und wird verworfen.
"""

from typing import Optional

from .constraints import Constraint, ConstraintType
from .geo_enum import GeoEnum


def _shift(ref: int, deleted: int) -> int:
    if ref == GeoEnum.GEO_UNDEF:
        return ref
    if deleted >= 0:
        return ref - 1 if ref > deleted else ref
    # Externe Geometrie: weiter von Null entfernte Referenzen rücken nach
    return ref + 1 if GeoEnum.GEO_UNDEF < ref < deleted else ref


def get_constraint_after_deleting_geo(constraint: Optional[Constraint],
                                      deleted_geo_id: int) -> Optional[Constraint]:
    """
    Kopie des Constraints mit umnummerierten Referenzen.

    Returns:
        None wenn constraint None ist oder das gelöschte Element referenziert,
        sonst eine (ggf. unveränderte) Kopie.
    """
    if constraint is None:
        return None
    if constraint.involves(deleted_geo_id):
        return None

    updated = constraint.clone()
    updated.first = _shift(updated.first, deleted_geo_id)
    updated.second = _shift(updated.second, deleted_geo_id)
    updated.third = _shift(updated.third, deleted_geo_id)
    return updated


def change_constraint_after_deleting_geo(constraint: Optional[Constraint],
                                         deleted_geo_id: int) -> None:
    """
    In-place-Variante: hängende Constraints bekommen type NONE.

    Das Objekt selbst bleibt erhalten (es gehört der Constraint-Liste).
    """
    if constraint is None:
        return
    if constraint.involves(deleted_geo_id):
        constraint.type = ConstraintType.NONE
        return

    constraint.first = _shift(constraint.first, deleted_geo_id)
    constraint.second = _shift(constraint.second, deleted_geo_id)
    constraint.third = _shift(constraint.third, deleted_geo_id)
