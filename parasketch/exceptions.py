"""
parasketch - Exceptions

Validierungsfehler werden vor jeder Mutation geworfen. Geometrische
Fehlschläge von Split/Trim/Join werden nicht als Exception gemeldet,
sondern als negativer Result-Code (siehe operations.base).
"""


class SketchError(Exception):
    """Basisklasse aller Sketch-Fehler"""


class GeoIdOutOfRangeError(SketchError, IndexError):
    """GeoId verweist auf kein existierendes Element"""

    def __init__(self, geo_id: int, count: int = 0):
        super().__init__(f"GeoId {geo_id} außerhalb des gültigen Bereichs (Elemente: {count})")
        self.geo_id = geo_id


class KnotIndexError(SketchError, IndexError):
    """Knoten-Index außerhalb 1..Anzahl Knoten"""


class BSplineValueError(SketchError, ValueError):
    """Ungültige Multiplizität, Parameter oder Knotenstruktur"""


class NotABSplineError(SketchError, TypeError):
    """Operation erwartet eine B-Spline-Kurve"""

    def __init__(self, geo_id: int, type_name: str):
        super().__init__(f"GeoId {geo_id} ist keine B-Spline ({type_name})")
        self.geo_id = geo_id


class NoIntersectionError(SketchError):
    """
    Keine verwertbaren Schnittpunkte.

    Wird nur innerhalb der Operationen verwendet und dort in
    ResultStatus.GEOMETRY_FAILURE übersetzt.
    """
