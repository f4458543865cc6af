"""
parasketch - Geometrie-Elemente
===============================

Geschlossene Menge von Element-Varianten mit gemeinsamer Fähigkeits-
Schnittstelle:

    value(u), values(us)            Kurvenpunkt(e)
    first_parameter, last_parameter Parameterbereich
    is_periodic                     geschlossene Kurve (Kreis, Ellipse, periodische B-Spline)
    parameter_at_point(p)           nächstgelegener Parameter (Projektion)
    start_point(), end_point()      Kurvenpunkte an den Bereichsgrenzen
    trimmed(u0, u1)                 offenes Teilstück [u0, u1]

Alle Punkte sind numpy-Arrays der Länge 2. Gespeichert werden sie als
Float-Tupel, damit Kopien (Draft) billig und vergleichbar bleiben.
"""

import copy
import math
from dataclasses import dataclass, field, replace
from enum import Enum, auto
from typing import ClassVar, List, Optional, Sequence, Tuple

import numpy as np
from scipy.optimize import minimize_scalar

from config.tolerances import Tolerances
from . import bspline
from .exceptions import BSplineValueError
from .geo_enum import InternalAlignmentType

Vec2 = Tuple[float, float]


class GeometryType(Enum):
    """Geometrie-Typen"""
    POINT = auto()
    LINE_SEGMENT = auto()
    CIRCLE = auto()
    ARC_OF_CIRCLE = auto()
    ELLIPSE = auto()
    ARC_OF_ELLIPSE = auto()
    ARC_OF_HYPERBOLA = auto()
    ARC_OF_PARABOLA = auto()
    BSPLINE_CURVE = auto()


def _vec(p) -> Vec2:
    """Wandelt Tupel/Listen/numpy-Arrays in ein Float-Tupel (x, y)."""
    arr = np.asarray(p, dtype=float).ravel()
    return float(arr[0]), float(arr[1])


def _axes(rotation: float) -> Tuple[np.ndarray, np.ndarray]:
    """Lokale x- und y-Achse für einen Drehwinkel."""
    c, s = math.cos(rotation), math.sin(rotation)
    return np.array([c, s]), np.array([-s, c])


@dataclass(kw_only=True)
class Geometry:
    """
    Basis aller Sketch-Elemente.

    construction: Konstruktionsgeometrie (nicht Teil der Kontur)
    internal_type: Rolle als Hilfsgeometrie, NONE für normale Geometrie
    tag: stabile Identität, 0 bis der Sketch eine vergibt
    """
    construction: bool = False
    internal_type: InternalAlignmentType = InternalAlignmentType.NONE
    tag: int = 0

    geometry_type: ClassVar[GeometryType]
    is_curve: ClassVar[bool] = True

    # === Fähigkeits-Schnittstelle ===

    @property
    def first_parameter(self) -> float:
        raise NotImplementedError

    @property
    def last_parameter(self) -> float:
        raise NotImplementedError

    @property
    def is_periodic(self) -> bool:
        return False

    @property
    def is_internal(self) -> bool:
        return self.internal_type != InternalAlignmentType.NONE

    def value(self, u: float) -> np.ndarray:
        return self.values(np.array([u]))[0]

    def values(self, us) -> np.ndarray:
        raise NotImplementedError

    def start_point(self) -> np.ndarray:
        return self.value(self.first_parameter)

    def end_point(self) -> np.ndarray:
        return self.value(self.last_parameter)

    def mid_point(self) -> Optional[np.ndarray]:
        """Mittelpunkt (Zentrum) wo definiert, sonst None."""
        return None

    def normalized_parameter(self, t: float) -> float:
        """Parameter aus normiertem Wert t in [0, 1]."""
        return self.first_parameter + (self.last_parameter - self.first_parameter) * t

    def point_at_normalized_parameter(self, t: float) -> np.ndarray:
        return self.value(self.normalized_parameter(t))

    def sample_parameters(self) -> np.ndarray:
        """Stützstellen für Projektion und Schnittsuche."""
        return np.linspace(self.first_parameter, self.last_parameter, Tolerances.SAMPLING_CURVE + 1)

    def parameter_at_point(self, point) -> float:
        """
        Nächstgelegener Parameter zu einem Punkt.

        Grobe Suche über die Stützstellen, danach lokale Verfeinerung mit
        scipy.optimize.minimize_scalar im Nachbarintervall.
        """
        target = np.asarray(point, dtype=float)[:2]
        us = self.sample_parameters()
        pts = self.values(us)
        dist2 = np.sum((pts - target) ** 2, axis=1)
        i = int(np.argmin(dist2))

        lo = us[max(i - 1, 0)]
        hi = us[min(i + 1, len(us) - 1)]
        best = float(us[i])
        if hi > lo:
            res = minimize_scalar(
                lambda t: float(np.sum((self.value(t) - target) ** 2)),
                bounds=(lo, hi), method="bounded",
                options={"xatol": 1e-13},
            )
            if res.success and res.fun <= dist2[i]:
                best = float(res.x)
        return self._wrap_parameter(best)

    def _wrap_parameter(self, u: float) -> float:
        """Periodische Kurven: Parameter nach [first, last) abbilden."""
        if not self.is_periodic:
            return u
        first, last = self.first_parameter, self.last_parameter
        period = last - first
        u = first + math.fmod(u - first, period)
        if u < first:
            u += period
        if last - u <= period * Tolerances.SKETCH_PARAMETER:
            u = first
        return u

    def trimmed(self, u0: float, u1: float) -> 'Geometry':
        """Offenes Teilstück [u0, u1] mit denselben Flags (Tag 0)."""
        raise NotImplementedError

    def clone(self) -> 'Geometry':
        return copy.deepcopy(self)

    def _copy_flags(self, other: 'Geometry') -> 'Geometry':
        other.construction = self.construction
        other.internal_type = InternalAlignmentType.NONE
        other.tag = 0
        return other


@dataclass
class Point(Geometry):
    """Einzelpunkt"""
    x: float = 0.0
    y: float = 0.0

    geometry_type: ClassVar[GeometryType] = GeometryType.POINT
    is_curve: ClassVar[bool] = False

    def __post_init__(self):
        self.x, self.y = float(self.x), float(self.y)

    @property
    def first_parameter(self) -> float:
        return 0.0

    @property
    def last_parameter(self) -> float:
        return 0.0

    @property
    def location(self) -> np.ndarray:
        return np.array([self.x, self.y])

    def values(self, us) -> np.ndarray:
        return np.tile(self.location, (len(np.atleast_1d(us)), 1))

    def mid_point(self) -> np.ndarray:
        return self.location

    def parameter_at_point(self, point) -> float:
        return 0.0


@dataclass
class LineSegment(Geometry):
    """Strecke, Parameter u in [0, 1]"""
    start: Vec2 = (0.0, 0.0)
    end: Vec2 = (1.0, 0.0)

    geometry_type: ClassVar[GeometryType] = GeometryType.LINE_SEGMENT

    def __post_init__(self):
        self.start = _vec(self.start)
        self.end = _vec(self.end)

    @property
    def first_parameter(self) -> float:
        return 0.0

    @property
    def last_parameter(self) -> float:
        return 1.0

    @property
    def direction(self) -> np.ndarray:
        return np.asarray(self.end) - np.asarray(self.start)

    @property
    def length(self) -> float:
        return float(np.linalg.norm(self.direction))

    def values(self, us) -> np.ndarray:
        us = np.atleast_1d(np.asarray(us, dtype=float))
        return np.asarray(self.start) + us[:, None] * self.direction

    def sample_parameters(self) -> np.ndarray:
        return np.array([0.0, 1.0])

    def parameter_at_point(self, point) -> float:
        d = self.direction
        denom = float(d @ d)
        if denom < Tolerances.EPSILON_MATH:
            return 0.0
        t = float((np.asarray(point, dtype=float)[:2] - np.asarray(self.start)) @ d) / denom
        return min(max(t, 0.0), 1.0)

    def trimmed(self, u0: float, u1: float) -> 'LineSegment':
        return self._copy_flags(LineSegment(self.value(u0), self.value(u1)))


# =============================================================================
# Kegelschnitte
# =============================================================================

@dataclass
class Circle(Geometry):
    """Vollkreis, Parameter = Winkel in [0, 2π]"""
    center: Vec2 = (0.0, 0.0)
    radius: float = 1.0

    geometry_type: ClassVar[GeometryType] = GeometryType.CIRCLE

    def __post_init__(self):
        self.center = _vec(self.center)
        self.radius = float(self.radius)

    @property
    def first_parameter(self) -> float:
        return 0.0

    @property
    def last_parameter(self) -> float:
        return 2 * math.pi

    @property
    def is_periodic(self) -> bool:
        return True

    def values(self, us) -> np.ndarray:
        us = np.atleast_1d(np.asarray(us, dtype=float))
        return np.asarray(self.center) + self.radius * np.column_stack([np.cos(us), np.sin(us)])

    def mid_point(self) -> np.ndarray:
        return np.asarray(self.center)

    def parameter_at_point(self, point) -> float:
        d = np.asarray(point, dtype=float)[:2] - np.asarray(self.center)
        return self._wrap_parameter(math.atan2(d[1], d[0]))

    def trimmed(self, u0: float, u1: float) -> 'ArcOfCircle':
        return self._copy_flags(ArcOfCircle(self.center, self.radius, u0, u1))


@dataclass
class ArcOfCircle(Geometry):
    """Kreisbogen gegen den Uhrzeigersinn von start_param nach end_param"""
    center: Vec2 = (0.0, 0.0)
    radius: float = 1.0
    start_param: float = 0.0
    end_param: float = math.pi / 2

    geometry_type: ClassVar[GeometryType] = GeometryType.ARC_OF_CIRCLE

    def __post_init__(self):
        self.center = _vec(self.center)
        self.radius = float(self.radius)
        self.start_param = float(self.start_param)
        self.end_param = float(self.end_param)
        while self.end_param <= self.start_param:
            self.end_param += 2 * math.pi

    @property
    def first_parameter(self) -> float:
        return self.start_param

    @property
    def last_parameter(self) -> float:
        return self.end_param

    def values(self, us) -> np.ndarray:
        us = np.atleast_1d(np.asarray(us, dtype=float))
        return np.asarray(self.center) + self.radius * np.column_stack([np.cos(us), np.sin(us)])

    def mid_point(self) -> np.ndarray:
        return np.asarray(self.center)

    def parameter_at_point(self, point) -> float:
        d = np.asarray(point, dtype=float)[:2] - np.asarray(self.center)
        angle = math.atan2(d[1], d[0])
        angle = self.start_param + (angle - self.start_param) % (2 * math.pi)
        if angle <= self.end_param:
            return angle
        # Außerhalb des Bogens: näheres Ende
        target = np.asarray(point, dtype=float)[:2]
        if np.linalg.norm(self.start_point() - target) <= np.linalg.norm(self.end_point() - target):
            return self.start_param
        return self.end_param

    def trimmed(self, u0: float, u1: float) -> 'ArcOfCircle':
        return self._copy_flags(ArcOfCircle(self.center, self.radius, u0, u1))


@dataclass
class Ellipse(Geometry):
    """
    Vollellipse. rotation ist der Winkel der Hauptachse.

    value(u) = center + a·cos(u)·M + b·sin(u)·N
    """
    center: Vec2 = (0.0, 0.0)
    major_radius: float = 2.0
    minor_radius: float = 1.0
    rotation: float = 0.0

    geometry_type: ClassVar[GeometryType] = GeometryType.ELLIPSE

    def __post_init__(self):
        self.center = _vec(self.center)
        self.major_radius = float(self.major_radius)
        self.minor_radius = float(self.minor_radius)
        self.rotation = float(self.rotation)

    @property
    def first_parameter(self) -> float:
        return 0.0

    @property
    def last_parameter(self) -> float:
        return 2 * math.pi

    @property
    def is_periodic(self) -> bool:
        return True

    @property
    def focal_distance(self) -> float:
        return math.sqrt(max(self.major_radius ** 2 - self.minor_radius ** 2, 0.0))

    def foci(self) -> Tuple[np.ndarray, np.ndarray]:
        m, _ = _axes(self.rotation)
        c = np.asarray(self.center)
        f = self.focal_distance
        return c + f * m, c - f * m

    def major_axis_endpoints(self) -> Tuple[np.ndarray, np.ndarray]:
        m, _ = _axes(self.rotation)
        c = np.asarray(self.center)
        return c - self.major_radius * m, c + self.major_radius * m

    def minor_axis_endpoints(self) -> Tuple[np.ndarray, np.ndarray]:
        _, n = _axes(self.rotation)
        c = np.asarray(self.center)
        return c - self.minor_radius * n, c + self.minor_radius * n

    def values(self, us) -> np.ndarray:
        us = np.atleast_1d(np.asarray(us, dtype=float))
        m, n = _axes(self.rotation)
        return (np.asarray(self.center)
                + self.major_radius * np.cos(us)[:, None] * m
                + self.minor_radius * np.sin(us)[:, None] * n)

    def mid_point(self) -> np.ndarray:
        return np.asarray(self.center)

    def trimmed(self, u0: float, u1: float) -> 'ArcOfEllipse':
        return self._copy_flags(ArcOfEllipse(
            self.center, self.major_radius, self.minor_radius, self.rotation, u0, u1,
        ))


@dataclass
class ArcOfEllipse(Ellipse):
    """Ellipsenbogen von start_param nach end_param"""
    start_param: float = 0.0
    end_param: float = math.pi / 2

    geometry_type: ClassVar[GeometryType] = GeometryType.ARC_OF_ELLIPSE

    def __post_init__(self):
        super().__post_init__()
        self.start_param = float(self.start_param)
        self.end_param = float(self.end_param)
        while self.end_param <= self.start_param:
            self.end_param += 2 * math.pi

    @property
    def first_parameter(self) -> float:
        return self.start_param

    @property
    def last_parameter(self) -> float:
        return self.end_param

    @property
    def is_periodic(self) -> bool:
        return False


@dataclass
class ArcOfHyperbola(Geometry):
    """
    Hyperbelast, value(u) = center + a·cosh(u)·M + b·sinh(u)·N
    """
    center: Vec2 = (0.0, 0.0)
    major_radius: float = 2.0
    minor_radius: float = 1.0
    rotation: float = 0.0
    start_param: float = -1.0
    end_param: float = 1.0

    geometry_type: ClassVar[GeometryType] = GeometryType.ARC_OF_HYPERBOLA

    def __post_init__(self):
        self.center = _vec(self.center)
        for name in ("major_radius", "minor_radius", "rotation", "start_param", "end_param"):
            setattr(self, name, float(getattr(self, name)))

    @property
    def first_parameter(self) -> float:
        return self.start_param

    @property
    def last_parameter(self) -> float:
        return self.end_param

    @property
    def focal_distance(self) -> float:
        return math.sqrt(self.major_radius ** 2 + self.minor_radius ** 2)

    def focus(self) -> np.ndarray:
        m, _ = _axes(self.rotation)
        return np.asarray(self.center) + self.focal_distance * m

    def major_axis_endpoints(self) -> Tuple[np.ndarray, np.ndarray]:
        m, _ = _axes(self.rotation)
        c = np.asarray(self.center)
        return c - self.major_radius * m, c + self.major_radius * m

    def minor_axis_endpoints(self) -> Tuple[np.ndarray, np.ndarray]:
        _, n = _axes(self.rotation)
        c = np.asarray(self.center)
        return c - self.minor_radius * n, c + self.minor_radius * n

    def values(self, us) -> np.ndarray:
        us = np.atleast_1d(np.asarray(us, dtype=float))
        m, n = _axes(self.rotation)
        return (np.asarray(self.center)
                + self.major_radius * np.cosh(us)[:, None] * m
                + self.minor_radius * np.sinh(us)[:, None] * n)

    def mid_point(self) -> np.ndarray:
        return np.asarray(self.center)

    def trimmed(self, u0: float, u1: float) -> 'ArcOfHyperbola':
        return self._copy_flags(replace(self, start_param=u0, end_param=u1))


@dataclass
class ArcOfParabola(Geometry):
    """
    Parabelbogen, value(u) = vertex + u²/(4f)·M + u·N

    center ist der Scheitelpunkt, focal die Brennweite.
    """
    center: Vec2 = (0.0, 0.0)
    focal: float = 1.0
    rotation: float = 0.0
    start_param: float = -1.0
    end_param: float = 1.0

    geometry_type: ClassVar[GeometryType] = GeometryType.ARC_OF_PARABOLA

    def __post_init__(self):
        self.center = _vec(self.center)
        for name in ("focal", "rotation", "start_param", "end_param"):
            setattr(self, name, float(getattr(self, name)))

    @property
    def first_parameter(self) -> float:
        return self.start_param

    @property
    def last_parameter(self) -> float:
        return self.end_param

    def focus(self) -> np.ndarray:
        m, _ = _axes(self.rotation)
        return np.asarray(self.center) + self.focal * m

    def values(self, us) -> np.ndarray:
        us = np.atleast_1d(np.asarray(us, dtype=float))
        m, n = _axes(self.rotation)
        return (np.asarray(self.center)
                + (us ** 2 / (4 * self.focal))[:, None] * m
                + us[:, None] * n)

    def mid_point(self) -> np.ndarray:
        return np.asarray(self.center)

    def trimmed(self, u0: float, u1: float) -> 'ArcOfParabola':
        return self._copy_flags(replace(self, start_param=u0, end_param=u1))


# =============================================================================
# B-Spline
# =============================================================================

@dataclass
class BSplineCurve(Geometry):
    """
    (Rationale) B-Spline-Kurve in Knoten/Multiplizitäten-Darstellung.

    Gültigkeit:
        nicht-periodisch: sum(mults) == poles + degree + 1
        periodisch:       sum(mults[:-1]) == poles, mults[0] == mults[-1]
    """
    poles: List[Vec2] = field(default_factory=list)
    weights: List[float] = field(default_factory=list)
    knots: List[float] = field(default_factory=list)
    multiplicities: List[int] = field(default_factory=list)
    degree: int = 3
    periodic: bool = False

    geometry_type: ClassVar[GeometryType] = GeometryType.BSPLINE_CURVE

    def __post_init__(self):
        self.poles = [_vec(p) for p in self.poles]
        if not self.weights:
            self.weights = [1.0] * len(self.poles)
        self.weights = [float(w) for w in self.weights]
        self.knots = [float(k) for k in self.knots]
        self.multiplicities = [int(m) for m in self.multiplicities]
        self.degree = int(self.degree)
        if len(self.weights) != len(self.poles):
            raise BSplineValueError(
                f"Anzahl Gewichte ({len(self.weights)}) != Pole ({len(self.poles)})"
            )
        bspline.validate_structure(
            self.knots, self.multiplicities, self.degree, self.periodic, len(self.poles)
        )

    # --- Struktur ---

    @property
    def pole_count(self) -> int:
        return len(self.poles)

    @property
    def knot_count(self) -> int:
        return len(self.knots)

    @property
    def is_rational(self) -> bool:
        return any(abs(w - 1.0) > Tolerances.EPSILON_MATH for w in self.weights)

    @property
    def first_parameter(self) -> float:
        return bspline.domain(self.knots, self.multiplicities, self.degree, self.periodic)[0]

    @property
    def last_parameter(self) -> float:
        return bspline.domain(self.knots, self.multiplicities, self.degree, self.periodic)[1]

    @property
    def is_periodic(self) -> bool:
        return self.periodic

    @property
    def period(self) -> float:
        return self.knots[-1] - self.knots[0]

    def values(self, us) -> np.ndarray:
        return bspline.evaluate(self.poles, self.weights, self.knots, self.multiplicities,
                                self.degree, self.periodic, us)

    def homogeneous_values(self, us) -> np.ndarray:
        return bspline.evaluate_homogeneous(self.poles, self.weights, self.knots,
                                            self.multiplicities, self.degree, self.periodic, us)

    def sample_parameters(self) -> np.ndarray:
        return bspline.span_samples(self.knots, Tolerances.SAMPLING_SEARCH_PER_SPAN)

    # --- Refit-basierte Strukturänderungen ---

    def with_knots(self, knots: Sequence[float], multiplicities: Sequence[int]) -> 'BSplineCurve':
        """Gleiche Kurve (bzw. beste Näherung) auf neuer Knotenstruktur."""
        poles, weights = bspline.refit(
            self.homogeneous_values, knots, multiplicities, self.degree, self.periodic,
            self.is_rational,
        )
        curve = BSplineCurve(
            poles=list(poles), weights=list(weights), knots=list(knots),
            multiplicities=list(multiplicities), degree=self.degree, periodic=self.periodic,
        )
        curve.construction = self.construction
        return curve

    def segment(self, u0: float, u1: float) -> 'BSplineCurve':
        """
        Offene, geklemmte Teilkurve über [u0, u1].

        Bei periodischen Kurven darf u1 > last_parameter sein (Überlauf über die Naht).
        """
        p = self.degree
        tol = Tolerances.SKETCH_KNOT
        candidates = []
        if self.periodic:
            for shift in range(-1, 3):
                for k, m in zip(self.knots[:-1], self.multiplicities[:-1]):
                    candidates.append((k + shift * self.period, m))
        else:
            candidates = list(zip(self.knots, self.multiplicities))

        inner = sorted((k, min(m, p)) for k, m in candidates if u0 + tol < k < u1 - tol)
        knots = [u0] + [k for k, _ in inner] + [u1]
        mults = [p + 1] + [m for _, m in inner] + [p + 1]

        poles, weights = bspline.refit(
            self.homogeneous_values, knots, mults, p, False, self.is_rational,
        )
        curve = BSplineCurve(poles=list(poles), weights=list(weights), knots=knots,
                             multiplicities=mults, degree=p, periodic=False)
        return self._copy_flags(curve)

    def trimmed(self, u0: float, u1: float) -> 'BSplineCurve':
        return self.segment(u0, u1)

    def elevated(self, degree: int) -> 'BSplineCurve':
        """Graderhöhung (exakt): jede Multiplizität steigt um die Graddifferenz."""
        if degree <= self.degree:
            return self.clone()
        delta = degree - self.degree
        mults = [m + delta for m in self.multiplicities]
        poles, weights = bspline.refit(
            self.homogeneous_values, self.knots, mults, degree, self.periodic, self.is_rational,
        )
        curve = BSplineCurve(poles=list(poles), weights=list(weights), knots=list(self.knots),
                             multiplicities=mults, degree=degree, periodic=self.periodic)
        curve.construction = self.construction
        return curve

    def reversed(self) -> 'BSplineCurve':
        """Umgekehrte Laufrichtung, gleicher Parameterbereich. Nur offene Kurven."""
        if self.periodic:
            raise BSplineValueError("Periodische B-Spline kann nicht umgekehrt werden")
        a, b = self.knots[0], self.knots[-1]
        curve = BSplineCurve(
            poles=list(reversed(self.poles)),
            weights=list(reversed(self.weights)),
            knots=[a + b - k for k in reversed(self.knots)],
            multiplicities=list(reversed(self.multiplicities)),
            degree=self.degree,
        )
        curve.construction = self.construction
        return curve


# =============================================================================
# Konvertierung
# =============================================================================

def to_bspline(geometry: Geometry) -> BSplineCurve:
    """
    Konvertiert eine Kurve in eine offene, geklemmte B-Spline.

    Strecken werden exakt (Grad 1) übernommen, analytische Kurven kubisch
    approximiert mit exakten Endpunkten.
    """
    if isinstance(geometry, BSplineCurve):
        curve = geometry.clone()
        curve.tag = 0
        curve.internal_type = InternalAlignmentType.NONE
        return curve

    if isinstance(geometry, LineSegment):
        curve = BSplineCurve(poles=[geometry.start, geometry.end], knots=[0.0, 1.0],
                             multiplicities=[2, 2], degree=1)
        curve.construction = geometry.construction
        return curve

    if not geometry.is_curve:
        raise BSplineValueError(f"{geometry.geometry_type.name} ist keine Kurve")

    first, last = geometry.first_parameter, geometry.last_parameter
    knots, mults = bspline.clamped_uniform(first, last, Tolerances.SAMPLING_CONVERSION_SPANS, 3)

    def source(params):
        pts = geometry.values(params)
        return np.column_stack([pts, np.ones(len(pts))])

    poles, weights = bspline.refit(source, knots, mults, 3, False, False)
    curve = BSplineCurve(poles=list(poles), weights=list(weights), knots=knots,
                         multiplicities=mults, degree=3)
    curve.construction = geometry.construction
    return curve
