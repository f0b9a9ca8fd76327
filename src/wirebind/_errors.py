from __future__ import annotations

import inspect
from typing import TYPE_CHECKING


if TYPE_CHECKING:
    from collections.abc import Hashable


def display_id(id_: Hashable) -> str:
    """Human readable form of a service or type id for error messages."""
    if inspect.isclass(id_):
        return f"{id_.__module__}.{id_.__qualname__}"
    return str(id_)


class ResolutionError(RuntimeError):
    pass


class NotFoundError(ResolutionError, LookupError):
    def __init__(self, id_: Hashable) -> None:
        self.id = id_
        super().__init__(f'No definition for "{display_id(id_)}" found.')


class CircularReferenceError(ResolutionError):
    def __init__(self, id_: Hashable) -> None:
        self.id = id_
        super().__init__(f'Circular reference to "{display_id(id_)}" detected.')


class InvalidConfigError(ResolutionError, ValueError):
    pass


class NotInstantiableError(ResolutionError, TypeError):
    def __init__(self, type_id: object) -> None:
        self.type_id = type_id
        super().__init__(f'Can not instantiate "{display_id(type_id)}".')


class TypeNotFoundError(ResolutionError, LookupError):
    def __init__(self, type_id: object, reason: str = "") -> None:
        self.type_id = type_id
        msg = f'Type "{display_id(type_id)}" could not be loaded'
        msg = f"{msg}: {reason}" if reason else f"{msg}."
        super().__init__(msg)
