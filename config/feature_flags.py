"""
parasketch - Feature Flags
==========================

Feature Flags für Debug-Ausgaben und Verhaltensvarianten des Sketch-Kerns.
Neue Verhaltensweisen werden mit Flag=False eingeführt und nach Validierung
zum Standard gemacht.
"""

from typing import Dict

# Feature Flag Registry
# =====================
# Die Flags unten sind für aktives Debugging oder noch offene Designfragen.

FEATURE_FLAGS: Dict[str, bool] = {
    # Debug-Modi
    "sketch_debug": False,  # Detailliertes Logging für Split/Trim/Join/Knoten ([SPLIT], [TRIM], ...)

    # getPoint: undefinierte Positionen (z.B. B-Spline 'mid') -> ValueError statt Ursprung
    "strict_point_positions": False,

    # Trim: Konstruktionsgeometrie nicht als Schnittkante verwenden
    "trim_exclude_construction": False,

    # Join: Tangent-Constraint am Stoß -> Knotenmultiplizität degree-1 (C1)
    "join_tangent_continuity": True,
}


def is_enabled(flag: str) -> bool:
    """
    Prüft ob ein Feature-Flag aktiviert ist.

    Args:
        flag: Name des Feature-Flags

    Returns:
        True wenn aktiviert, False wenn nicht aktiviert oder unbekannt
    """
    return FEATURE_FLAGS.get(flag, False)


def set_flag(flag: str, value: bool) -> None:
    """
    Setzt ein Feature-Flag zur Laufzeit.
    Nützlich für Tests und Debugging.

    Args:
        flag: Name des Feature-Flags
        value: Neuer Wert
    """
    FEATURE_FLAGS[flag] = value


def get_all_flags() -> Dict[str, bool]:
    """Gibt alle Feature-Flags zurück."""
    return FEATURE_FLAGS.copy()
