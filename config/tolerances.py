"""
parasketch - Zentralisierte Toleranz-Konfiguration
==================================================

Alle Toleranzen des Sketch-Kerns an einem Ort.

Toleranz-Philosophie:
- Koinzidenz: 1e-7 - zwei Punkte gelten als identisch
- Parameter: 1e-9 (relativ zur Parameterlänge) - Split/Trim an Kurvenenden
- Schnittpunkte: 1e-7 - Residuum der Newton-Verfeinerung
- Knoten: 1e-7 - zwei Knotenwerte gelten als identisch

Verwendung:
    from config.tolerances import Tolerances

    # Direkt als Klassenvariablen
    tol = Tolerances.SKETCH_COINCIDENT

    # Oder via Convenience-Funktionen
    from config.tolerances import sketch_tolerance
    tol = sketch_tolerance()
"""


class Tolerances:
    """
    Zentrale Toleranz-Konstanten für den Sketch-Kern.

    Kategorien:
    - SKETCH_*: 2D-Sketcher Operationen (Split, Trim, Join, Knoten)
    - SAMPLING_*: Abtastdichte der Kurvenbibliothek
    - EPSILON_*: Numerische Stabilität
    """

    # =========================================================================
    # Sketch/2D Operationen
    # =========================================================================

    # Coincident-Toleranz: Schnittpunkt == Endpunkt der schneidenden Kurve
    SKETCH_COINCIDENT = 1e-7

    # Relative Parameter-Toleranz (Anteil der Parameterlänge)
    # Split/Trim am Kurvenende wird damit abgelehnt
    SKETCH_PARAMETER = 1e-9

    # Maximales Residuum |c1(u) - c2(v)| für einen akzeptierten Schnittpunkt
    SKETCH_INTERSECTION = 1e-7

    # Zwei Knotenwerte innerhalb dieser Distanz sind derselbe Knoten
    SKETCH_KNOT = 1e-7

    # Parallel-Test für Linien (Sinus des Zwischenwinkels)
    SKETCH_ANGULAR = 1e-12

    # =========================================================================
    # Abtastung der Kurvenbibliothek
    # =========================================================================

    # Stützstellen pro Knotenspanne beim Least-Squares-Refit
    SAMPLING_FIT_PER_SPAN = 8

    # Stützstellen pro Knotenspanne bei Projektion/Schnittsuche
    SAMPLING_SEARCH_PER_SPAN = 24

    # Stützstellen für analytische Kurven (Kreis, Kegelschnitte)
    SAMPLING_CURVE = 256

    # Spannen bei der Konvertierung analytischer Kurven in B-Splines
    SAMPLING_CONVERSION_SPANS = 16

    # =========================================================================
    # Mathematische Epsilon-Werte (Numerische Stabilität)
    # =========================================================================

    # Vermeidet Division durch Null
    EPSILON_MATH = 1e-12


# =============================================================================
# Convenience-Funktionen
# =============================================================================

def sketch_tolerance() -> float:
    """Gibt die Standard-Koinzidenz-Toleranz zurück."""
    return Tolerances.SKETCH_COINCIDENT


def knot_tolerance() -> float:
    """Gibt die Toleranz für Knotenvergleiche zurück."""
    return Tolerances.SKETCH_KNOT


def parameter_tolerance(first: float, last: float) -> float:
    """Absolute Parameter-Toleranz für einen Parameterbereich."""
    return max(abs(last - first), 1.0) * Tolerances.SKETCH_PARAMETER


# =============================================================================
# Toleranz-Validierung (für Debugging)
# =============================================================================

def validate_tolerances():
    """
    Validiert dass alle Toleranzen sinnvolle Werte haben.
    Nützlich für Tests und Debugging.
    """
    issues = []

    if not (1e-12 <= Tolerances.SKETCH_COINCIDENT <= 1e-3):
        issues.append(f"SKETCH_COINCIDENT außerhalb sinnvoller Grenzen: {Tolerances.SKETCH_COINCIDENT}")

    # Schnittpunkt-Residuum darf nicht gröber als die Koinzidenz sein
    if Tolerances.SKETCH_INTERSECTION > Tolerances.SKETCH_COINCIDENT * 10:
        issues.append(
            f"SKETCH_INTERSECTION ({Tolerances.SKETCH_INTERSECTION}) gröber als "
            f"SKETCH_COINCIDENT ({Tolerances.SKETCH_COINCIDENT})"
        )

    if Tolerances.SAMPLING_FIT_PER_SPAN < 2:
        issues.append(f"SAMPLING_FIT_PER_SPAN zu klein: {Tolerances.SAMPLING_FIT_PER_SPAN}")

    return issues


# Automatische Validierung beim Import (nur Warnung, kein Fehler)
_validation_issues = validate_tolerances()
if _validation_issues:
    from loguru import logger
    for issue in _validation_issues:
        logger.warning(f"Toleranz-Validierung: {issue}")
