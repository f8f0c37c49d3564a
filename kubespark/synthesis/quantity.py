"""Kubernetes resource quantity parsing.

Accepts the serialized quantity forms the API server accepts: plain decimals,
binary suffixes (Ki, Mi, Gi, Ti, Pi, Ei), decimal suffixes (n, u, m, k, M,
G, T, P, E) and decimal exponents (``1e3``).
"""

from __future__ import annotations

import re
from decimal import Decimal, InvalidOperation

_BINARY = {
    "Ki": Decimal(2) ** 10,
    "Mi": Decimal(2) ** 20,
    "Gi": Decimal(2) ** 30,
    "Ti": Decimal(2) ** 40,
    "Pi": Decimal(2) ** 50,
    "Ei": Decimal(2) ** 60,
}

_DECIMAL = {
    "n": Decimal("1e-9"),
    "u": Decimal("1e-6"),
    "m": Decimal("1e-3"),
    "": Decimal(1),
    "k": Decimal("1e3"),
    "M": Decimal("1e6"),
    "G": Decimal("1e9"),
    "T": Decimal("1e12"),
    "P": Decimal("1e15"),
    "E": Decimal("1e18"),
}

_RE_QUANTITY = re.compile(
    r"^(?P<number>[+-]?(?:\d+\.?\d*|\.\d+))"
    r"(?P<suffix>Ki|Mi|Gi|Ti|Pi|Ei|[eE][+-]?\d+|[numkMGTPE])?$"
)


def parse_quantity(value: str | int | float) -> Decimal:
    """Return the numeric value of a quantity.

    Raises:
        ValueError: if *value* is not a valid quantity.
    """
    if isinstance(value, bool):
        raise ValueError(f"invalid quantity: {value!r}")
    if isinstance(value, (int, float)):
        return Decimal(str(value))
    text = str(value).strip()
    match = _RE_QUANTITY.match(text)
    if not match:
        raise ValueError(f"invalid quantity: {value!r}")
    try:
        number = Decimal(match.group("number"))
    except InvalidOperation as exc:
        raise ValueError(f"invalid quantity: {value!r}") from exc
    suffix = match.group("suffix") or ""
    if suffix in _BINARY:
        return number * _BINARY[suffix]
    if suffix[:1] in ("e", "E"):
        return number.scaleb(int(suffix[1:]))
    return number * _DECIMAL[suffix]


def parse_resource_quantity(value: str, default: str) -> str:
    """Return *value*, or *default* when empty, after checking it parses."""
    text = value.strip() if value else ""
    chosen = text or default
    parse_quantity(chosen)
    return chosen
