"""
parasketch - Sketch Operations Module
=====================================

Kurven-Operationen als eigenständige Klassen mit klarer Schnittstelle.

Verwendung:
    from parasketch.operations import TrimOperation

    op = TrimOperation(sketch)
    result = op.execute(geo_id, click_point)

    if result.success:
        # Operation erfolgreich, Draft übernommen
    else:
        print(result.code, result.message)

Sketch.split/trim/join liefern direkt den Result-Code (0 = Erfolg).
"""

from .base import OperationResult, ResultStatus, SketchOperation, SketchTransaction
from .split import SplitOperation
from .trim import TrimOperation
from .join import JoinOperation
from .knots import insert_bspline_knot, modify_bspline_knot_multiplicity

__all__ = [
    # Core
    'OperationResult',
    'ResultStatus',
    'SketchOperation',
    'SketchTransaction',
    # Kurven
    'SplitOperation',
    'TrimOperation',
    'JoinOperation',
    # Knoten
    'insert_bspline_knot',
    'modify_bspline_knot_multiplicity',
]
