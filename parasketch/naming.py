"""
parasketch - Topologische Namen
===============================

Beim Recompute wird für die sichtbare Kontur eine Element-Map erzeugt:

    Kante  "Edge<n>"    <->  "g<tag>;SKT"
    Vertex "Vertex<n>"  <->  "g<tag>v<k>;SKT"   (k = 1 Start, 2 Ende)

Der stabile Name hängt am Tag der Geometrie, nicht an der GeoId, und
überlebt damit Umnummerierungen durch Löschen.
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Dict, List, Optional, Sequence

from .geometry import Geometry

POSTFIX = ";SKT"


class ElementNameType(Enum):
    NORMAL = auto()
    EXPORT = auto()


@dataclass(frozen=True)
class MappedElement:
    """Stabiler Name + Index-Name ("Edge1", "Vertex2")"""
    name: str
    index: str


@dataclass(frozen=True)
class ElementName:
    new_name: str
    old_name: str


def edge_name(tag: int) -> str:
    return f"g{tag}{POSTFIX}"


def vertex_name(tag: int, k: int) -> str:
    return f"g{tag}v{k}{POSTFIX}"


def _in_shape(geometry: Geometry) -> bool:
    return not geometry.construction and not geometry.is_internal


class ElementMap:
    """Bidirektionale Zuordnung stabiler Namen zu Index-Namen"""

    def __init__(self, elements: Sequence[MappedElement] = ()):
        self._elements: List[MappedElement] = list(elements)
        self._by_name: Dict[str, MappedElement] = {e.name: e for e in self._elements}
        self._by_index: Dict[str, MappedElement] = {e.index: e for e in self._elements}

    @classmethod
    def build(cls, geometry: Sequence[Geometry]) -> 'ElementMap':
        """Element-Map für die Kontur (ohne Konstruktions- und Hilfsgeometrie)."""
        elements = []
        edge_count = 0
        vertex_count = 0
        for geo in geometry:
            if not _in_shape(geo):
                continue
            if not geo.is_curve:
                vertex_count += 1
                elements.append(MappedElement(vertex_name(geo.tag, 1), f"Vertex{vertex_count}"))
                continue

            edge_count += 1
            elements.append(MappedElement(edge_name(geo.tag), f"Edge{edge_count}"))
            if not geo.is_periodic:
                for k in (1, 2):
                    vertex_count += 1
                    elements.append(MappedElement(vertex_name(geo.tag, k), f"Vertex{vertex_count}"))
        return cls(elements)

    def __len__(self):
        return len(self._elements)

    def elements(self) -> List[MappedElement]:
        return list(self._elements)

    def lookup(self, name: str) -> Optional[MappedElement]:
        """Sucht nach stabilem Namen (optional mit ';' und '.Index') oder Index-Namen."""
        stripped = name[1:] if name.startswith(";") else name
        if "." in stripped:
            stripped = stripped.rsplit(".", 1)[0]
        if stripped in self._by_name:
            return self._by_name[stripped]
        return self._by_index.get(name)

    def element_name(self, name: str, mode: ElementNameType = ElementNameType.NORMAL) -> ElementName:
        """
        Abbildung auf (neuer Name, alter Name).

        Unbekannte Namen werden unverändert zurückgegeben. EXPORT liefert
        dieselbe zugeordnete Form wie NORMAL.
        """
        element = self.lookup(name)
        if element is None:
            return ElementName(name, name)
        return ElementName(f";{element.name}.{element.index}", element.index)
