from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING, Any, TypeVar, overload

from ._definitions import (
    ClassBuild,
    Factory,
    Instance,
    MethodCall,
    Property,
    Reference,
    StaticCall,
    Value,
    as_definition,
)
from ._errors import (
    CircularReferenceError,
    InvalidConfigError,
    NotFoundError,
    NotInstantiableError,
    display_id,
)
from ._reflection import TypeIntrospector, TypeMetadata, load_type


logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from collections.abc import Hashable, Mapping, Sequence

    T = TypeVar("T")


class Container:
    """Dependency injection container.

    - definitions are registered per id and resolved lazily
    - every resolved id is memoized until its definition is replaced
    - constructor dependencies are inferred from type hints
    - ids missing locally are delegated to an optional parent container.
    """

    def __init__(
        self,
        definitions: Mapping[Hashable, object] | None = None,
        parent: Container | None = None,
    ) -> None:
        self._parent = parent
        self._definitions: dict[Hashable, object] = {}
        self._aliases: dict[Hashable, Hashable] = {}
        self._instances: dict[Hashable, object] = {}
        self._resolving: set[Hashable] = set()
        self._lock = threading.RLock()
        self._introspector = TypeIntrospector()
        self._builder = Builder(self, self._introspector)

        if definitions:
            self.configure(definitions)

    @property
    def parent(self) -> Container | None:
        return self._parent

    @overload
    def get(self, id_: type[T]) -> T: ...

    @overload
    def get(self, id_: Hashable) -> Any: ...

    def get(self, id_: Hashable) -> Any:
        """Return the instance for `id_`, building it on first request.

        The same object is returned on every call until the definition is replaced
        via `set()`. Ids without a local definition are looked up in the parent.
        """
        with self._lock:
            id_ = self._aliases.get(id_, id_)

            if id_ in self._instances:
                return self._instances[id_]

            if id_ in self._resolving:
                raise CircularReferenceError(id_)

            self._resolving.add(id_)
            try:
                if id_ not in self._definitions:
                    if self._parent is not None:
                        logger.debug("Delegating %s to parent container", display_id(id_))
                        return self._parent.get(id_)
                    raise NotFoundError(id_)

                instance = self._create(self._definitions[id_])
                self._instances[id_] = instance
                return instance
            finally:
                self._resolving.discard(id_)

    def set(self, id_: Hashable, definition: object) -> None:
        """Register a definition for `id_`.

        A definition may be a record (`Instance`, `Factory`, `StaticCall`,
        `ClassBuild`) or a raw shape:

          container.set(EngineInterface, EngineMarkOne)
          container.set("db", lambda c: Database(c.get("config")))
          container.set("static", (Connection, "create"))
          container.set("engine", {
              "__class": EngineMarkOne,
              "__construct()": [42],
              "name": "mark one",
              "start()": [],
          })

        Replaces any previous definition, cached instance and alias for `id_`.
        """
        with self._lock:
            if self._instances.pop(id_, None) is not None:
                logger.debug("Evicted cached instance for %s", display_id(id_))
            self._aliases.pop(id_, None)
            self._definitions[id_] = definition

    def configure(self, definitions: Mapping[Hashable, object]) -> None:
        """Register several definitions at once, in mapping order."""
        with self._lock:
            for id_, definition in definitions.items():
                self.set(id_, definition)

    def set_alias(self, id_: Hashable, target_id: Hashable) -> None:
        """Make `get(id_)` return the same object as `get(target_id)`.

        Only one alias hop is followed; the target is not validated until lookup.
        """
        with self._lock:
            self._aliases[id_] = target_id

    def has(self, id_: Hashable) -> bool:
        """Whether this container itself can provide `id_`. The parent is not consulted."""
        with self._lock:
            id_ = self._aliases.get(id_, id_)
            return id_ in self._instances or id_ in self._definitions

    def create_scope(self, definitions: Mapping[Hashable, object] | None = None) -> Container:
        """Create a child container that resolves locally first, then falls back to this one."""
        return Container(definitions, parent=self)

    def _create(self, raw: object) -> object:
        definition = as_definition(raw)

        if isinstance(definition, Instance):
            return definition.value

        if isinstance(definition, StaticCall):
            cls = load_type(definition.type_id)
            method = getattr(cls, definition.method, None)
            if not callable(method):
                msg = f'"{display_id(cls)}.{definition.method}" is not a callable static method.'
                raise InvalidConfigError(msg)
            return method(self)

        if isinstance(definition, Factory):
            return definition.func(self)

        if isinstance(definition, ClassBuild):
            return self._builder.build(definition)

        msg = f"Unexpected object definition type: {type(definition).__name__}"
        raise InvalidConfigError(msg)


class DependencyResolver:
    """Replaces `Reference` slots with instances from the container."""

    def __init__(self, container: Container) -> None:
        self._container = container

    def resolve(self, slots: Sequence[Value | Reference], metadata: TypeMetadata) -> list[Any]:
        resolved: list[Any] = []
        for index, slot in enumerate(slots):
            if isinstance(slot, Value):
                resolved.append(slot.value)
            elif slot.target is not None:
                resolved.append(self._container.get(slot.target))
            else:
                name = metadata.parameters[index].name if index < len(metadata.parameters) else f"#{index}"
                msg = f'Missing required parameter "{name}" when instantiating "{metadata.name}".'
                raise InvalidConfigError(msg)

        return resolved


class Builder:
    def __init__(self, container: Container, introspector: TypeIntrospector) -> None:
        self._introspector = introspector
        self._resolver = DependencyResolver(container)

    def build(self, definition: ClassBuild) -> object:
        metadata = self._introspector.describe(definition.type_id)
        slots = list(metadata.slots)

        self._apply_overrides(metadata, slots, definition.constructor_overrides)

        arguments = self._resolver.resolve(slots, metadata)
        if not metadata.instantiable:
            raise NotInstantiableError(metadata.cls)

        logger.debug("Building %s", metadata.name)
        instance = self._instantiate(metadata, arguments)

        self._apply_members(instance, definition.members, metadata)
        return instance

    def _apply_overrides(
        self,
        metadata: TypeMetadata,
        slots: list[Value | Reference],
        overrides: Mapping[int | str, Any],
    ) -> None:
        extra: dict[int, Value | Reference] = {}

        for key, value in overrides.items():
            index = self._override_index(metadata, key)
            slot = value if isinstance(value, Reference) else Value(value)
            if index < len(slots):
                slots[index] = slot
            else:
                extra[index] = slot

        if not extra:
            return

        if not metadata.variadic:
            msg = (
                f"Constructor override index {max(extra)} is out of range for "
                f'"{metadata.name}", which takes {len(slots)} parameter(s).'
            )
            raise InvalidConfigError(msg)

        expected = list(range(len(slots), len(slots) + len(extra)))
        if sorted(extra) != expected:
            msg = f'Variadic constructor overrides for "{metadata.name}" must be contiguous from index {len(slots)}.'
            raise InvalidConfigError(msg)

        slots.extend(extra[index] for index in expected)

    def _override_index(self, metadata: TypeMetadata, key: int | str) -> int:
        if isinstance(key, str):
            index = metadata.index_of(key)
            if index is None:
                msg = f'"{metadata.name}" has no constructor parameter named "{key}".'
                raise InvalidConfigError(msg)
            return index

        if isinstance(key, bool) or not isinstance(key, int) or key < 0:
            msg = f'Invalid constructor override key {key!r} for "{metadata.name}".'
            raise InvalidConfigError(msg)

        return key

    def _instantiate(self, metadata: TypeMetadata, arguments: list[Any]) -> object:
        args: list[Any] = []
        kwargs: dict[str, Any] = {}

        for param, value in zip(metadata.parameters, arguments):
            if param.keyword_only:
                kwargs[param.name] = value
            else:
                args.append(value)

        # *args
        args.extend(arguments[len(metadata.parameters) :])

        return metadata.cls(*args, **kwargs)

    def _apply_members(
        self,
        instance: object,
        members: Sequence[Property | MethodCall],
        metadata: TypeMetadata,
    ) -> None:
        for member in members:
            if isinstance(member, MethodCall):
                method = getattr(instance, member.name, None)
                if not callable(method):
                    msg = f'"{metadata.name}" has no method "{member.name}".'
                    raise InvalidConfigError(msg)
                method(*member.args, **member.kwargs)
            elif isinstance(member, Property):
                try:
                    setattr(instance, member.name, member.value)
                except AttributeError as e:
                    msg = f'Can not set "{member.name}" on "{metadata.name}": {e}'
                    raise InvalidConfigError(msg) from e
            else:
                msg = f"Unexpected member definition: {member!r}"
                raise InvalidConfigError(msg)
