"""
parasketch - B-Spline Knotenmathematik
======================================

Reine numpy-Funktionen auf der Darstellung (Knoten, Multiplizitäten, Grad):
- Validierung der Knotenstruktur
- Erweiterter Knotenvektor für periodische Kurven
- Basisfunktionen (De Boor / Cox-de Boor, vektorisiert)
- Least-Squares-Refit von Polen auf eine neue Knotenstruktur

Periodische Kurven werden intern "abgewickelt": Pole P0..Pn-1 werden um die
ersten p Pole verlängert, der Knotenvektor periodisch um p bzw. p+1 Knoten
fortgesetzt. Der Parameterbereich ist [t0, t0 + T] mit T = knots[-1] - knots[0].

Jede Knotenänderung (Einfügen, Multiplizität, Entfernen, Segment, Grad-
erhöhung) ist ein Refit der homogenen Pole auf den neuen Spline-Raum.
Enthält der neue Raum die alte Kurve (Einfügen, Segment, Graderhöhung), ist
das Ergebnis bis auf Rundung exakt; beim Entfernen ist es die beste
Approximation im Sinne kleinster Quadrate.
"""

from typing import List, Optional, Sequence, Tuple

import numpy as np
from loguru import logger

from config.tolerances import Tolerances
from .exceptions import BSplineValueError


def pole_count(multiplicities: Sequence[int], degree: int, periodic: bool) -> int:
    """Anzahl Pole aus der Gültigkeitsgleichung."""
    mults = list(multiplicities)
    if periodic:
        return int(sum(mults[:-1]))
    return int(sum(mults)) - degree - 1


def validate_structure(knots: Sequence[float], multiplicities: Sequence[int],
                       degree: int, periodic: bool, n_poles: int) -> None:
    """
    Prüft Knoten/Multiplizitäten gegen die Polanzahl.

    Raises:
        BSplineValueError: bei verletzter Gültigkeitsgleichung
    """
    if degree < 1:
        raise BSplineValueError(f"Grad muss >= 1 sein, ist {degree}")
    if len(knots) != len(multiplicities):
        raise BSplineValueError(
            f"{len(knots)} Knoten, aber {len(multiplicities)} Multiplizitäten"
        )
    if len(knots) < 2:
        raise BSplineValueError("Mindestens 2 Knoten erforderlich")
    if any(b <= a for a, b in zip(knots, knots[1:])):
        raise BSplineValueError(f"Knoten nicht streng aufsteigend: {list(knots)}")

    mults = list(multiplicities)
    if any(m < 1 for m in mults):
        raise BSplineValueError(f"Multiplizitäten müssen >= 1 sein: {mults}")
    if any(m > degree for m in mults[1:-1]):
        raise BSplineValueError(f"Innere Multiplizität > Grad {degree}: {mults}")

    if periodic:
        if mults[0] != mults[-1]:
            raise BSplineValueError(f"Periodisch: erste/letzte Multiplizität verschieden: {mults}")
    elif mults[0] > degree + 1 or mults[-1] > degree + 1:
        raise BSplineValueError(f"End-Multiplizität > Grad+1: {mults}")

    expected = pole_count(mults, degree, periodic)
    if expected != n_poles:
        raise BSplineValueError(
            f"Gültigkeitsgleichung verletzt: {n_poles} Pole, erwartet {expected}"
        )
    if n_poles < degree + 1 and not periodic:
        raise BSplineValueError(f"Mindestens {degree + 1} Pole für Grad {degree} erforderlich")


def flat_knots(knots: Sequence[float], multiplicities: Sequence[int],
               degree: int, periodic: bool) -> np.ndarray:
    """
    Ausgeschriebener Knotenvektor.

    Nicht-periodisch: Länge n + p + 1.
    Periodisch: abgewickelt auf Länge n + 2p + 1, Bereich [flat[p], flat[n+p]].
    """
    knots = np.asarray(knots, dtype=float)
    mults = np.asarray(multiplicities, dtype=int)
    if not periodic:
        return np.repeat(knots, mults)

    base = np.repeat(knots[:-1], mults[:-1])
    n = len(base)
    period = knots[-1] - knots[0]
    j = np.arange(-degree, n + degree + 1)
    return base[j % n] + np.floor_divide(j, n) * period


def domain(knots: Sequence[float], multiplicities: Sequence[int],
           degree: int, periodic: bool) -> Tuple[float, float]:
    """Parameterbereich (erster, letzter Parameter)."""
    if periodic:
        return float(knots[0]), float(knots[-1])
    flat = flat_knots(knots, multiplicities, degree, periodic)
    n = len(flat) - degree - 1
    return float(flat[degree]), float(flat[n])


def basis_matrix(knots: Sequence[float], multiplicities: Sequence[int], degree: int,
                 periodic: bool, params) -> np.ndarray:
    """
    Basisfunktionen N_i,p(u) für alle Parameter.

    Returns:
        Matrix (len(params), n_poles). Zeile j enthält die Gewichte der Pole
        im Punkt params[j]; jede Zeile summiert zu 1.
    """
    p = degree
    flat = flat_knots(knots, multiplicities, degree, periodic)
    u = np.atleast_1d(np.asarray(params, dtype=float)).copy()

    if periodic:
        n = pole_count(multiplicities, degree, True)
        n_ext = n + p
        t0 = float(knots[0])
        period = float(knots[-1]) - t0
        u = t0 + np.mod(u - t0, period)
    else:
        n = len(flat) - p - 1
        n_ext = n
        u = np.clip(u, flat[p], flat[n])

    span = np.searchsorted(flat, u, side="right") - 1
    span = np.clip(span, p, n_ext - 1)

    m = len(u)
    N = np.zeros((m, p + 1))
    N[:, 0] = 1.0
    left = np.zeros((m, p + 1))
    right = np.zeros((m, p + 1))

    # The NURBS Book, A2.2
    for j in range(1, p + 1):
        left[:, j] = u - flat[span + 1 - j]
        right[:, j] = flat[span + j] - u
        saved = np.zeros(m)
        for r in range(j):
            denom = right[:, r + 1] + left[:, j - r]
            safe = np.where(np.abs(denom) > Tolerances.EPSILON_MATH, denom, 1.0)
            temp = np.where(np.abs(denom) > Tolerances.EPSILON_MATH, N[:, r] / safe, 0.0)
            N[:, r] = saved + right[:, r + 1] * temp
            saved = left[:, j - r] * temp
        N[:, j] = saved

    B = np.zeros((m, n_ext))
    rows = np.arange(m)
    for r in range(p + 1):
        B[rows, span - p + r] += N[:, r]

    if periodic:
        folded = B[:, :n].copy()
        for col in range(n, n_ext):
            folded[:, col % n] += B[:, col]
        return folded
    return B


def evaluate(poles, weights, knots, multiplicities, degree, periodic, params) -> np.ndarray:
    """Punkte (len(params), 2) der rationalen Kurve."""
    poles = np.asarray(poles, dtype=float)
    w = np.asarray(weights, dtype=float)
    B = basis_matrix(knots, multiplicities, degree, periodic, params)
    num = B @ (poles * w[:, None])
    den = B @ w
    return num / den[:, None]


def evaluate_homogeneous(poles, weights, knots, multiplicities, degree, periodic, params) -> np.ndarray:
    """Homogene Punkte (w*x, w*y, w) als Matrix (len(params), 3)."""
    poles = np.asarray(poles, dtype=float)
    w = np.asarray(weights, dtype=float)
    B = basis_matrix(knots, multiplicities, degree, periodic, params)
    hom = np.column_stack([poles * w[:, None], w])
    return B @ hom


def span_samples(knots: Sequence[float], per_span: int) -> np.ndarray:
    """Gleichmäßige Stützstellen in jeder Knotenspanne, inkl. letztem Knoten."""
    samples: List[np.ndarray] = []
    for a, b in zip(knots, knots[1:]):
        if b - a <= 0:
            continue
        samples.append(np.linspace(a, b, per_span, endpoint=False))
    samples.append(np.array([knots[-1]], dtype=float))
    return np.concatenate(samples)


def find_knot(knots: Sequence[float], value: float, tol: Optional[float] = None) -> int:
    """0-basierter Index eines Knotens innerhalb der Toleranz, sonst -1."""
    tol = Tolerances.SKETCH_KNOT if tol is None else tol
    for i, k in enumerate(knots):
        if abs(k - value) <= tol:
            return i
    return -1


def fit_homogeneous(knots: Sequence[float], multiplicities: Sequence[int], degree: int,
                    periodic: bool, params: np.ndarray, targets: np.ndarray,
                    clamp_ends: bool = False) -> np.ndarray:
    """
    Least-Squares-Fit homogener Pole an Zielpunkte.

    Args:
        params: Stützstellen im Parameterbereich der neuen Struktur
        targets: Zielwerte (len(params), d) - homogen (d=3) oder kartesisch (d=2)
        clamp_ends: Ersten/letzten Pol auf den ersten/letzten Zielwert fixieren
                    (nur für geklemmte, nicht-periodische Strukturen)

    Returns:
        Pole (n_poles, d)
    """
    B = basis_matrix(knots, multiplicities, degree, periodic, params)
    targets = np.asarray(targets, dtype=float)
    n = B.shape[1]

    if not clamp_ends or periodic:
        solution, *_ = np.linalg.lstsq(B, targets, rcond=None)
        return solution

    result = np.zeros((n, targets.shape[1]))
    result[0] = targets[0]
    result[-1] = targets[-1]
    if n > 2:
        rhs = targets - np.outer(B[:, 0], result[0]) - np.outer(B[:, -1], result[-1])
        inner, *_ = np.linalg.lstsq(B[:, 1:-1], rhs, rcond=None)
        result[1:-1] = inner
    return result


def refit(source_fn, knots: Sequence[float], multiplicities: Sequence[int], degree: int,
          periodic: bool, rational: bool) -> Tuple[np.ndarray, np.ndarray]:
    """
    Passt Pole und Gewichte einer neuen Knotenstruktur an eine Quellkurve an.

    Args:
        source_fn: Funktion params -> homogene Punkte (m, 3) der Quellkurve,
                   im Parameterbereich der neuen Struktur
        rational: False -> Gewichte bleiben 1, nur kartesische Pole werden gefittet

    Returns:
        (poles (n, 2), weights (n,))
    """
    per_span = max(Tolerances.SAMPLING_FIT_PER_SPAN, 2 * (degree + 1))
    params = span_samples(knots, per_span)
    targets = np.asarray(source_fn(params), dtype=float)
    clamp = not periodic and multiplicities[0] == degree + 1 and multiplicities[-1] == degree + 1

    if rational:
        hom = fit_homogeneous(knots, multiplicities, degree, periodic, params, targets, clamp)
        weights = hom[:, 2]
        if np.any(weights <= Tolerances.EPSILON_MATH):
            logger.warning(f"[BSPLINE] Refit lieferte nicht-positive Gewichte: {weights}")
            weights = np.where(weights <= Tolerances.EPSILON_MATH, 1.0, weights)
        return hom[:, :2] / weights[:, None], weights

    cart = targets[:, :2] / targets[:, 2:3]
    poles = fit_homogeneous(knots, multiplicities, degree, periodic, params, cart, clamp)
    return poles, np.ones(len(poles))


def clamped_uniform(first: float, last: float, spans: int, degree: int) -> Tuple[List[float], List[int]]:
    """Geklemmte, gleichmäßige Knotenstruktur über [first, last]."""
    knots = list(np.linspace(first, last, spans + 1))
    mults = [degree + 1] + [1] * (spans - 1) + [degree + 1]
    return knots, mults
