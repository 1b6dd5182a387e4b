from __future__ import annotations

import importlib
import threading
from typing import Any

from factorywire.exceptions import ClassResolutionError


class ClassLoader:
    """Resolve dotted class names against the importable modules.

    Both ``package.module.Qualname`` and ``package.module:Qualname`` forms are
    accepted; nested classes are reached through their qualified name. Loaded
    classes are cached per loader.
    """

    def __init__(self) -> None:
        self._cache: dict[str, type[Any]] = {}
        self._lock = threading.Lock()

    def load_type(self, class_name: str) -> type[Any]:
        """Import and return the class named by ``class_name``.

        Args:
            class_name: Dotted import path of the class.

        Raises:
            ClassResolutionError: If no module/attribute pair resolves to a class.

        """
        cached = self._cache.get(class_name)
        if cached is not None:
            return cached

        loaded = self._load(class_name)
        with self._lock:
            self._cache[class_name] = loaded
        return loaded

    def _load(self, class_name: str) -> type[Any]:
        if ":" in class_name:
            module_name, _, qualname = class_name.partition(":")
            candidates = [(module_name, qualname)]
        else:
            parts = class_name.split(".")
            # Try the longest module prefix first: ``a.b.C.D`` may be class ``D``
            # nested in ``C`` of module ``a.b``.
            candidates = [
                (".".join(parts[:index]), ".".join(parts[index:]))
                for index in range(len(parts) - 1, 0, -1)
            ]

        if not candidates or not all(module and qualname for module, qualname in candidates):
            raise ClassResolutionError(class_name, reason="Expected 'module.Qualname'.")

        last_error: Exception | None = None
        for module_name, qualname in candidates:
            try:
                module = importlib.import_module(module_name)
            except ImportError as error:
                last_error = error
                continue

            try:
                loaded = self._resolve_qualname(module, qualname)
            except AttributeError as error:
                last_error = error
                continue

            if not isinstance(loaded, type):
                reason = f"'{qualname}' in module '{module_name}' is not a class."
                raise ClassResolutionError(class_name, reason=reason)
            return loaded

        raise ClassResolutionError(class_name, reason=str(last_error)) from last_error

    @staticmethod
    def _resolve_qualname(module: Any, qualname: str) -> Any:
        target = module
        for attribute in qualname.split("."):
            target = getattr(target, attribute)
        return target
