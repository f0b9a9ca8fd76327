"""Definition records and parameter slots.

A definition is the stored recipe for one service. `Container.set()` accepts
either one of the records below or a raw shape that `as_definition()` maps
onto a record when the service is first resolved.
"""

from __future__ import annotations

import functools
import inspect
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from ._errors import InvalidConfigError


if TYPE_CHECKING:
    from collections.abc import Callable, Hashable, Sequence

    from ._container import Container

    TypeId = type | str


CLASS_KEY = "__class"
CONSTRUCT_KEY = "__construct()"


@dataclass(frozen=True)
class Value:
    """Parameter slot holding a literal argument."""

    value: Any


@dataclass(frozen=True)
class Reference:
    """Parameter slot pointing at another service.

    `target=None` marks a parameter whose dependency cannot be inferred; it must
    be supplied as a constructor override or the build fails.
    """

    target: Hashable | None

    @classmethod
    def to(cls, target: Hashable) -> Reference:
        return cls(target)


@dataclass(frozen=True)
class Property:
    name: str
    value: Any


@dataclass(frozen=True)
class MethodCall:
    name: str
    args: Sequence[Any] = ()
    kwargs: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Instance:
    value: Any


@dataclass(frozen=True)
class Factory:
    func: Callable[[Container], Any]


@dataclass(frozen=True)
class StaticCall:
    type_id: TypeId
    method: str


@dataclass(frozen=True)
class ClassBuild:
    type_id: TypeId
    constructor_overrides: Mapping[int | str, Any] = field(default_factory=dict)
    members: Sequence[Property | MethodCall] = ()


Definition = Instance | Factory | StaticCall | ClassBuild

_RECORDS = (Instance, Factory, StaticCall, ClassBuild)


def as_definition(raw: object) -> Definition:
    """Interpret a raw registration as a definition record.

    - records are returned unchanged
    - a class or an import path string builds that class
    - a mapping with a "__class" key is a full build description; "name()" keys
      take a list of positional arguments or a mapping of keyword arguments
    - a ``(type, "method")`` tuple is a static call
    - functions, bound methods and partials are factories
    - anything else is a pre-built instance
    """
    if isinstance(raw, _RECORDS):
        return raw

    if inspect.isclass(raw) or isinstance(raw, str):
        return ClassBuild(raw)

    if isinstance(raw, Mapping):
        return _build_from_mapping(raw)

    if isinstance(raw, tuple) and len(raw) == 2 and isinstance(raw[1], str):  # noqa: PLR2004
        return StaticCall(raw[0], raw[1])

    if inspect.isfunction(raw) or inspect.ismethod(raw) or isinstance(raw, functools.partial):
        return Factory(raw)

    if raw is None:
        msg = f"Unexpected object definition type: {type(raw).__name__}"
        raise InvalidConfigError(msg)

    return Instance(raw)


def _build_from_mapping(raw: Mapping[str, Any]) -> ClassBuild:
    config = dict(raw)
    if CLASS_KEY not in config:
        msg = f'Definition mapping requires a "{CLASS_KEY}" key, got keys: {", ".join(map(str, config)) or "none"}'
        raise InvalidConfigError(msg)

    type_id = config.pop(CLASS_KEY)

    overrides = config.pop(CONSTRUCT_KEY, {})
    if isinstance(overrides, (list, tuple)):
        overrides = dict(enumerate(overrides))
    elif not isinstance(overrides, Mapping):
        msg = f'"{CONSTRUCT_KEY}" must be a list or a mapping, got {type(overrides).__name__}'
        raise InvalidConfigError(msg)

    members: list[Property | MethodCall] = []
    for key, value in config.items():
        if not isinstance(key, str):
            msg = f"Definition mapping keys must be strings, got {key!r}"
            raise InvalidConfigError(msg)

        if key.endswith("()"):
            if isinstance(value, (list, tuple)):
                members.append(MethodCall(key[:-2], tuple(value)))
            elif isinstance(value, Mapping):
                members.append(MethodCall(key[:-2], kwargs=dict(value)))
            else:
                msg = f'Arguments for "{key}" must be a list or a mapping, got {type(value).__name__}'
                raise InvalidConfigError(msg)
        else:
            members.append(Property(key, value))

    return ClassBuild(type_id, dict(overrides), tuple(members))
