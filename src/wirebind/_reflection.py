from __future__ import annotations

import importlib
import inspect
import logging
import types
import typing
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Protocol, get_type_hints

from ._definitions import Reference, Value
from ._errors import TypeNotFoundError, display_id


logger = logging.getLogger(__name__)

_UNION_TYPES = (typing.Union, types.UnionType)

if TYPE_CHECKING:
    from collections.abc import Hashable

    TypeId = type | str


@dataclass(frozen=True)
class ParameterInfo:
    name: str
    kind: inspect._ParameterKind

    @property
    def keyword_only(self) -> bool:
        return self.kind is inspect.Parameter.KEYWORD_ONLY


@dataclass(frozen=True)
class TypeMetadata:
    """Constructor shape of a type, computed once per container."""

    cls: type
    parameters: tuple[ParameterInfo, ...]
    slots: tuple[Value | Reference, ...]
    instantiable: bool
    variadic: bool = False

    @property
    def name(self) -> str:
        return display_id(self.cls)

    def index_of(self, name: str) -> int | None:
        for index, param in enumerate(self.parameters):
            if param.name == name:
                return index
        return None


def load_type(type_id: TypeId) -> type:
    """Return the class behind `type_id`.

    Accepts a class, "package.module.Class" or "package.module:Outer.Inner".
    """
    if inspect.isclass(type_id):
        return type_id

    if not isinstance(type_id, str):
        raise TypeNotFoundError(type_id, f"expected a class or an import path, got {type(type_id).__name__}")

    if ":" in type_id:
        module_name, _, qualname = type_id.partition(":")
    else:
        module_name, _, qualname = type_id.rpartition(".")

    if not module_name or not qualname:
        raise TypeNotFoundError(type_id, "not an import path")

    try:
        target: Any = importlib.import_module(module_name)
    except ImportError as e:
        raise TypeNotFoundError(type_id, str(e)) from e

    try:
        for attr in qualname.split("."):
            target = getattr(target, attr)
    except AttributeError as e:
        raise TypeNotFoundError(type_id, str(e)) from e

    if not inspect.isclass(target):
        raise TypeNotFoundError(type_id, f"{type(target).__name__} is not a class")

    return target


class TypeIntrospector:
    """Describes constructors and caches the result per type id."""

    def __init__(self) -> None:
        self._cache: dict[Hashable, TypeMetadata] = {}

    def describe(self, type_id: TypeId) -> TypeMetadata:
        if not (inspect.isclass(type_id) or isinstance(type_id, str)):
            raise TypeNotFoundError(type_id, f"expected a class or an import path, got {type(type_id).__name__}")

        try:
            return self._cache[type_id]
        except KeyError:
            pass

        cls = load_type(type_id)
        metadata = self._inspect(cls)
        self._cache[type_id] = metadata
        return metadata

    def _inspect(self, cls: type) -> TypeMetadata:
        try:
            sig = inspect.signature(cls)
        except (TypeError, ValueError):
            # builtins without introspectable signatures take no injectable arguments
            logger.debug("No signature available for %s, assuming no parameters", cls.__qualname__)
            params: list[inspect.Parameter] = []
        else:
            params = list(sig.parameters.values())

        hints = _get_init_type_hints(cls)
        infos: list[ParameterInfo] = []
        slots: list[Value | Reference] = []
        variadic = False

        for p in params:
            if p.kind is p.VAR_POSITIONAL:
                variadic = True
                continue
            if p.kind is p.VAR_KEYWORD:
                continue

            infos.append(ParameterInfo(p.name, p.kind))
            if p.default is not p.empty:
                slots.append(Value(p.default))
            else:
                slots.append(Reference(_dependency_type(hints.get(p.name))))

        return TypeMetadata(
            cls=cls,
            parameters=tuple(infos),
            slots=tuple(slots),
            instantiable=not (inspect.isabstract(cls) or is_protocol(cls)),
            variadic=variadic,
        )


def _dependency_type(annotation: object) -> type | None:
    """Only non-builtin classes name a service; `int`, `str`, unions etc. cannot be inferred.

    `Optional[X]` and `X | None` name `X`.
    """
    if typing.get_origin(annotation) in _UNION_TYPES:
        members = [arg for arg in typing.get_args(annotation) if arg is not type(None)]
        if len(members) == 1:
            annotation = members[0]
    if inspect.isclass(annotation) and getattr(annotation, "__module__", "") != "builtins":
        return annotation
    return None


def _get_init_type_hints(cls: type) -> dict[str, Any]:
    try:
        init = inspect.getattr_static(cls, "__init__")
        hints = get_type_hints(init)
    except TypeError:
        hints = {}
    except NameError as exc:
        logger.warning("Could not evaluate %s type hints, treating parameters as untyped: %s", cls.__qualname__, exc)
        hints = {}

    hints.pop("return", None)
    return hints


if hasattr(typing, "is_protocol"):
    # https://docs.python.org/3/library/typing.html#typing.is_protocol
    def is_protocol(tp: type) -> bool:
        return inspect.isclass(tp) and typing.is_protocol(tp)

else:

    def is_protocol(tp: type) -> bool:
        return inspect.isclass(tp) and tp is not Protocol and bool(getattr(tp, "_is_protocol", False))
