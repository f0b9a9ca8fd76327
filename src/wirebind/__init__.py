"""Object-graph construction engine.

This package resolves service ids into fully constructed objects. Services are
described by definitions (pre-built instances, factories, static calls or class
builds with constructor overrides and post-construction members); constructor
dependencies are inferred from type hints and every resolved service is
memoized per container.

Exports:
- `Container`: registry and resolver, optionally chained to a parent container.
- `Instance`, `Factory`, `StaticCall`, `ClassBuild`: definition records.
- `Property`, `MethodCall`: members applied to a freshly built instance.
- `Reference`, `Value`: constructor parameter slots; `Reference` may also be
  used as a constructor override to point at another service.
- `ResolutionError` and its subclasses.
"""

from ._container import Container
from ._definitions import ClassBuild, Factory, Instance, MethodCall, Property, Reference, StaticCall, Value
from ._errors import (
    CircularReferenceError,
    InvalidConfigError,
    NotFoundError,
    NotInstantiableError,
    ResolutionError,
    TypeNotFoundError,
)
from ._reflection import TypeMetadata


__all__ = [
    "CircularReferenceError",
    "ClassBuild",
    "Container",
    "Factory",
    "Instance",
    "InvalidConfigError",
    "MethodCall",
    "NotFoundError",
    "NotInstantiableError",
    "Property",
    "Reference",
    "ResolutionError",
    "StaticCall",
    "TypeMetadata",
    "TypeNotFoundError",
    "Value",
]
