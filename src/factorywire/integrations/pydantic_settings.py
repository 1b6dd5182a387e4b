from __future__ import annotations

import importlib
import types
from typing import Any


def _settings_bases() -> tuple[type[Any], ...]:
    try:
        settings_module = importlib.import_module("pydantic_settings")
    except ImportError:
        return ()
    base_settings = getattr(settings_module, "BaseSettings", None)
    return (base_settings,) if isinstance(base_settings, type) else ()


SETTINGS_BASES: tuple[type[Any], ...] = _settings_bases()


def is_pydantic_settings_subclass(candidate: object) -> bool:
    """Return whether a class is a ``pydantic_settings.BaseSettings`` model.

    Settings models read their values from the environment, so the container
    builds them with no arguments and never autowires or injects into them.
    If ``pydantic-settings`` is not installed, this returns ``False`` for every
    candidate.

    Args:
        candidate: Object to test.

    """
    if not isinstance(candidate, type) or isinstance(candidate, types.GenericAlias):
        return False
    try:
        return any(issubclass(candidate, base) for base in SETTINGS_BASES)
    except TypeError:
        return False


__all__ = [
    "SETTINGS_BASES",
    "is_pydantic_settings_subclass",
]
