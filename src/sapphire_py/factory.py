from __future__ import annotations

import dataclasses
import importlib
from collections.abc import Iterator
from dataclasses import MISSING
from typing import Any

from .errors import TypeNotFoundError


def _walk(obj: Any, qualname: list[str]) -> Any:
    for part in qualname:
        obj = getattr(obj, part, None)
        if obj is None:
            return None
    return obj


def resolve_type(identifier: str) -> type:
    """Resolve ``"pkg.mod.Class"`` or ``"pkg.mod:Outer.Inner"`` to a class."""
    if not isinstance(identifier, str) or not identifier.strip():
        raise TypeNotFoundError(f"invalid type identifier: {identifier!r}")

    if ":" in identifier:
        module_name, _, qualname = identifier.partition(":")
        candidates = [(module_name, qualname.split("."))]
    else:
        parts = identifier.split(".")
        candidates = [(".".join(parts[:i]), parts[i:]) for i in range(len(parts) - 1, 0, -1)]

    last_err: Exception | None = None
    for module_name, qualname in candidates:
        if not module_name or not all(qualname):
            continue
        try:
            module = importlib.import_module(module_name)
        except ImportError as err:
            last_err = err
            continue
        found = _walk(module, qualname)
        if isinstance(found, type):
            return found
        break

    raise TypeNotFoundError(f"can't find type {identifier!r}") from last_err


def resolve_target_type(target: Any) -> type:
    if isinstance(target, str):
        return resolve_type(target)
    if isinstance(target, type):
        return target
    return type(target)


def _defaults(cls: type) -> Iterator[tuple[str, dataclasses.Field[Any]]]:
    if dataclasses.is_dataclass(cls):
        for f in dataclasses.fields(cls):
            yield f.name, f
        return

    seen: set[str] = set()
    for klass in cls.__mro__:
        for name, value in vars(klass).items():
            if isinstance(value, dataclasses.Field) and name not in seen:
                seen.add(name)
                yield name, value


def instantiate(target: Any) -> Any:
    """Return an instance of ``target`` without running any user initialisation.

    Instances are returned as-is. Classes (or dotted identifiers) are allocated
    with ``object.__new__`` and only receive declared field defaults.
    """
    if not isinstance(target, (str, type)):
        return target

    cls = resolve_target_type(target)
    try:
        obj = object.__new__(cls)
    except TypeError as err:
        raise TypeNotFoundError(f"{cls.__qualname__} cannot be allocated without its constructor") from err

    for name, f in _defaults(cls):
        if f.default is not MISSING:
            object.__setattr__(obj, name, f.default)
        elif f.default_factory is not MISSING:
            object.__setattr__(obj, name, f.default_factory())
    return obj
