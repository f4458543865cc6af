"""
parasketch - Winkel-Ausdrücke

Umschalten eines Winkel-Ausdrucks auf seinen Supplementwinkel (180° - x).
Es wird kein Ausdruck geparst, nur das Präfix erkannt bzw. ergänzt.
"""

import re

# Einheiten-Tokens, die einen Ausdruck als Winkel mit Einheit kennzeichnen
_UNIT_PATTERN = re.compile(r"°|deg|rad")

_UNIT_PREFIX = "180 ° - "
_PLAIN_PREFIX = "180 - "


def has_angle_unit(expression: str) -> bool:
    return _UNIT_PATTERN.search(expression) is not None


def reverse_angle_constraint_expression(expression: str) -> str:
    """
    Supplement eines Winkel-Ausdrucks.

        "180 - 60"      -> "60"
        "60"            -> "180 - (60)"
        "180 ° - 60 °"  -> "60 °"
        "60 deg"        -> "180 ° - (60 deg)"
    """
    prefix = _UNIT_PREFIX if has_angle_unit(expression) else _PLAIN_PREFIX
    if expression.startswith(prefix):
        return expression[len(prefix):]
    return f"{prefix}({expression})"


def _is_wrapped(expression: str) -> bool:
    """True wenn das äußere Klammerpaar den gesamten Ausdruck umschließt."""
    if not (expression.startswith("(") and expression.endswith(")")):
        return False
    depth = 0
    for i, ch in enumerate(expression):
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
            if depth == 0 and i != len(expression) - 1:
                return False
    return depth == 0


def strip_outer_parentheses(expression: str) -> str:
    """Entfernt genau ein umschließendes Klammerpaar: "(60)" -> "60", "(1) + (2)" bleibt."""
    stripped = expression.strip()
    if _is_wrapped(stripped):
        return stripped[1:-1].strip()
    return expression


def toggle_supplementary(expression: str) -> str:
    """
    Wie reverse_angle_constraint_expression, ohne redundante Klammern.

    Zweimal angewendet ergibt sich wieder der ursprüngliche Ausdruck.
    """
    return strip_outer_parentheses(reverse_angle_constraint_expression(expression))
