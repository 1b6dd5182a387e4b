from __future__ import annotations

from typing import Any


def derive_name(product_type: type[Any] | str) -> str:
    """Derive the canonical component name for a class.

    The simple class name is converted from upper camel case to lower camel
    case by lower-casing its first character only, so ``OrderProcessor`` becomes
    ``orderProcessor`` and ``URLParser`` becomes ``uRLParser``. Only ASCII
    letters are case-converted (``Éclair`` stays ``Éclair``), so the result does
    not depend on locale or Unicode case tables. Collisions are not resolved.

    Args:
        product_type: Class (or simple class name) to derive the name from.

    Raises:
        ValueError: If the simple name is empty.

    """
    simple_name = product_type if isinstance(product_type, str) else product_type.__name__
    if not simple_name:
        msg = "Cannot derive a component name from an empty type name."
        raise ValueError(msg)
    first = simple_name[0]
    if first.isascii():
        first = first.lower()
    return first + simple_name[1:]
