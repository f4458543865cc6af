"""
parasketch - Kurven-Schnittpunkte
=================================

Strecke/Strecke wird analytisch gelöst (inkl. kollinearer Überlappung:
die Überlappungsenden zählen als Schnittpunkte). Alle anderen Paare:

1. Beide Kurven als Polylinie abtasten
2. Kreuzende Segmentpaare vektorisiert finden
3. Mit scipy.optimize.least_squares auf c1(u) - c2(v) = 0 verfeinern
4. Endpunkt-Kontakte (Endpunkt einer Kurve liegt auf der anderen) explizit prüfen

Tangentiale Berührungen ohne Vorzeichenwechsel werden nur über Endpunkt-
Kontakte erkannt.
"""

from dataclasses import dataclass
from typing import List

import numpy as np
from loguru import logger
from scipy.optimize import least_squares

from config.tolerances import Tolerances, parameter_tolerance
from .geometry import Geometry, LineSegment


@dataclass
class IntersectionPoint:
    """Schnittpunkt mit Parametern auf beiden Kurven"""
    u1: float
    u2: float
    point: np.ndarray


def _cross(a, b):
    return a[..., 0] * b[..., 1] - a[..., 1] * b[..., 0]


def _line_line(l1: LineSegment, l2: LineSegment, tol: float) -> List[IntersectionPoint]:
    a, b = np.asarray(l1.start), np.asarray(l1.end)
    c, d = np.asarray(l2.start), np.asarray(l2.end)
    d1, d2 = b - a, d - c
    len1, len2 = np.linalg.norm(d1), np.linalg.norm(d2)
    if len1 < Tolerances.EPSILON_MATH or len2 < Tolerances.EPSILON_MATH:
        return []

    denom = float(_cross(d1, d2))
    if abs(denom) <= Tolerances.SKETCH_ANGULAR * len1 * len2:
        # Parallel: nur kollineare Überlappung liefert Punkte
        if abs(float(_cross(c - a, d1))) / len1 > tol:
            return []
        results = []
        for q in (c, d):
            t = float((q - a) @ d1) / (len1 ** 2)
            if -tol / len1 <= t <= 1 + tol / len1:
                results.append(IntersectionPoint(min(max(t, 0.0), 1.0), l2.parameter_at_point(q), q.copy()))
        for q in (a, b):
            s = float((q - c) @ d2) / (len2 ** 2)
            if -tol / len2 <= s <= 1 + tol / len2:
                results.append(IntersectionPoint(l1.parameter_at_point(q), min(max(s, 0.0), 1.0), q.copy()))
        return results

    t = float(_cross(c - a, d2)) / denom
    s = float(_cross(c - a, d1)) / denom
    slack1, slack2 = tol / len1, tol / len2
    if -slack1 <= t <= 1 + slack1 and -slack2 <= s <= 1 + slack2:
        t = min(max(t, 0.0), 1.0)
        s = min(max(s, 0.0), 1.0)
        return [IntersectionPoint(t, s, l1.value(t))]
    return []


def _segment_crossings(p1: np.ndarray, p2: np.ndarray):
    """
    Indizes (i, j) und lokale Parameter (t, s) kreuzender Polyliniensegmente.
    """
    a = p1[:-1][:, None, :]
    b = p1[1:][:, None, :]
    c = p2[:-1][None, :, :]
    d = p2[1:][None, :, :]
    d1 = b - a
    d2 = d - c
    denom = _cross(d1, d2)
    valid = np.abs(denom) > Tolerances.EPSILON_MATH
    safe = np.where(valid, denom, 1.0)
    t = _cross(c - a, d2) / safe
    s = _cross(c - a, d1) / safe
    eps = 1e-9
    hit = valid & (t >= -eps) & (t <= 1 + eps) & (s >= -eps) & (s <= 1 + eps)
    ii, jj = np.nonzero(hit)
    return ii, jj, t[ii, jj], s[ii, jj]


def _refine(c1: Geometry, c2: Geometry, u0: float, v0: float):
    lo = [c1.first_parameter, c2.first_parameter]
    hi = [c1.last_parameter, c2.last_parameter]
    x0 = np.clip([u0, v0], lo, hi)

    def residual(x):
        return c1.value(x[0]) - c2.value(x[1])

    if np.linalg.norm(residual(x0)) < Tolerances.EPSILON_MATH:
        return x0
    res = least_squares(residual, x0, bounds=(lo, hi), xtol=1e-15, ftol=1e-15, gtol=1e-15)
    return res.x


def _endpoint_contacts(c1: Geometry, c2: Geometry, tol: float) -> List[IntersectionPoint]:
    """Endpunkte offener Kurven, die auf der jeweils anderen Kurve liegen."""
    results = []
    if not c2.is_periodic:
        for v in (c2.first_parameter, c2.last_parameter):
            q = c2.value(v)
            u = c1.parameter_at_point(q)
            if np.linalg.norm(c1.value(u) - q) <= tol:
                results.append(IntersectionPoint(u, v, q))
    if not c1.is_periodic:
        for u in (c1.first_parameter, c1.last_parameter):
            q = c1.value(u)
            v = c2.parameter_at_point(q)
            if np.linalg.norm(c2.value(v) - q) <= tol:
                results.append(IntersectionPoint(u, v, q))
    return results


def _deduplicate(c1: Geometry, points: List[IntersectionPoint], tol: float) -> List[IntersectionPoint]:
    """Entfernt Duplikate (gleicher Punkt bzw. gleicher Parameter auf c1)."""
    ptol = parameter_tolerance(c1.first_parameter, c1.last_parameter) * 1e3
    period = c1.last_parameter - c1.first_parameter if c1.is_periodic else None
    unique: List[IntersectionPoint] = []
    for ip in points:
        duplicate = False
        for other in unique:
            du = abs(ip.u1 - other.u1)
            if period is not None:
                du = min(du, abs(period - du))
            if du <= ptol or np.linalg.norm(ip.point - other.point) <= tol:
                duplicate = True
                break
        if not duplicate:
            unique.append(ip)
    return sorted(unique, key=lambda ip: ip.u1)


def intersect(c1: Geometry, c2: Geometry, tol: float = None) -> List[IntersectionPoint]:
    """
    Alle Schnittpunkte zweier Kurven, sortiert nach dem Parameter auf c1.

    Args:
        c1: Kurve, auf der die Parameter u1 ausgewertet werden
        c2: schneidende Kurve
        tol: Residuum für akzeptierte Schnittpunkte
    """
    tol = Tolerances.SKETCH_INTERSECTION if tol is None else tol
    if not (c1.is_curve and c2.is_curve):
        return []

    if isinstance(c1, LineSegment) and isinstance(c2, LineSegment):
        return _deduplicate(c1, _line_line(c1, c2, tol), tol)

    us = c1.sample_parameters()
    vs = c2.sample_parameters()
    p1 = c1.values(us)
    p2 = c2.values(vs)

    found: List[IntersectionPoint] = []
    ii, jj, ts, ss = _segment_crossings(p1, p2)
    for i, j, t, s in zip(ii, jj, ts, ss):
        u0 = us[i] + t * (us[i + 1] - us[i])
        v0 = vs[j] + s * (vs[j + 1] - vs[j])
        u, v = _refine(c1, c2, u0, v0)
        q = c1.value(u)
        if np.linalg.norm(q - c2.value(v)) <= tol:
            found.append(IntersectionPoint(c1._wrap_parameter(float(u)), c2._wrap_parameter(float(v)), q))
        else:
            logger.debug(f"[INTERSECT] Verfeinerung verworfen bei u={u0:.6f}, v={v0:.6f}")

    found.extend(_endpoint_contacts(c1, c2, tol))
    return _deduplicate(c1, found, tol)
