"""Parsing of Kubernetes resource quantities ("500Mi", "100m", "1.5", "2e3")."""

import re
from decimal import Decimal, InvalidOperation
from typing import Mapping, Optional

_QUANTITY_PATTERN = re.compile(
    r"^([+-]?[0-9]*\.?[0-9]+|[+-]?[0-9]+\.)([eE][+-]?[0-9]+|[a-zA-Z]*)$"
)

_BINARY_SUFFIXES = {
    "Ki": 2 ** 10,
    "Mi": 2 ** 20,
    "Gi": 2 ** 30,
    "Ti": 2 ** 40,
    "Pi": 2 ** 50,
    "Ei": 2 ** 60,
}

_DECIMAL_SUFFIXES = {
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


def parse_quantity(quantity) -> Decimal:
    """Parse a K8s quantity into a Decimal of base units.

    Supports binary (Ki..Ei), decimal SI (n..E) suffixes and exponent
    notation. Numbers are accepted as-is.

    Raises:
        ValueError: If the quantity is empty or malformed
    """
    if isinstance(quantity, bool):
        raise ValueError(f"Invalid quantity: {quantity!r}")
    if isinstance(quantity, (int, float, Decimal)):
        return Decimal(str(quantity))
    if not isinstance(quantity, str) or not quantity.strip():
        raise ValueError(f"Invalid quantity: {quantity!r}")

    match = _QUANTITY_PATTERN.match(quantity.strip())
    if not match:
        raise ValueError(f"Invalid quantity: {quantity!r}")
    number, suffix = match.groups()

    try:
        value = Decimal(number)
        if suffix[:1] in ("e", "E") and suffix[1:].lstrip("+-").isdigit():
            return value * Decimal(10) ** int(suffix[1:])
    except InvalidOperation as ex:
        raise ValueError(f"Invalid quantity: {quantity!r}") from ex

    if suffix in _BINARY_SUFFIXES:
        return value * _BINARY_SUFFIXES[suffix]
    if suffix in _DECIMAL_SUFFIXES:
        return value * _DECIMAL_SUFFIXES[suffix]
    raise ValueError(f"Unknown quantity suffix {suffix!r} in {quantity!r}")


def quantities_equal(left: Optional[Mapping], right: Optional[Mapping]) -> bool:
    """True when both maps name the same resources with equal amounts.

    Lets "1000m" match "1" and "1024Mi" match "1Gi", which the API server
    may hand back in canonical form.
    """
    left, right = left or {}, right or {}
    if set(left) != set(right):
        return False
    try:
        return all(parse_quantity(left[k]) == parse_quantity(right[k]) for k in left)
    except ValueError:
        return False
