import pytest

from wirebind import (
    ClassBuild,
    Container,
    Factory,
    Instance,
    InvalidConfigError,
    NotFoundError,
    ResolutionError,
    StaticCall,
)


class Engine: ...


class Car:
    def __init__(self, engine: Engine):
        self.engine = engine


class Connection:
    def __init__(self, dsn: str):
        self.dsn = dsn

    @staticmethod
    def create(container: Container) -> "Connection":
        return Connection(container.get("dsn"))


def test_get_unregistered_id_raises_not_found():
    c = Container()
    with pytest.raises(NotFoundError) as ctx:
        c.get("unknown-id")
    assert ctx.value.id == "unknown-id"
    assert "unknown-id" in str(ctx.value)


def test_not_found_is_a_lookup_error_and_resolution_error():
    c = Container()
    with pytest.raises(LookupError):
        c.get("unknown-id")
    with pytest.raises(ResolutionError):
        c.get("unknown-id")


def test_get_instance_definition_returns_same_object():
    c = Container()
    obj = object()
    c.set("obj", Instance(obj))
    assert c.get("obj") is obj
    assert c.get("obj") is obj


def test_get_builds_dependencies_by_type_hint():
    c = Container()
    c.set(Engine, ClassBuild(Engine))
    c.set(Car, ClassBuild(Car))

    car = c.get(Car)
    assert isinstance(car, Car)
    assert car.engine is c.get(Engine)


def test_get_class_build_is_memoized():
    c = Container()
    c.set(Engine, Engine)
    assert c.get(Engine) is c.get(Engine)


def test_factory_receives_owning_container():
    c = Container()
    seen = []

    def make_engine(container):
        seen.append(container)
        return Engine()

    c.set("engine", Factory(make_engine))
    engine = c.get("engine")

    assert isinstance(engine, Engine)
    assert seen == [c]


def test_factory_is_called_once():
    c = Container()
    calls = []
    c.set("engine", lambda _: calls.append(1) or Engine())

    c.get("engine")
    c.get("engine")
    assert len(calls) == 1


def test_factory_returning_none_is_memoized():
    c = Container()
    calls = []

    def make_nothing(_):
        calls.append(1)

    c.set("nothing", make_nothing)
    assert c.get("nothing") is None
    assert c.get("nothing") is None
    assert len(calls) == 1


def test_static_call_receives_owning_container():
    c = Container()
    c.set("dsn", Instance("sqlite://"))
    c.set("conn", StaticCall(Connection, "create"))

    conn = c.get("conn")
    assert isinstance(conn, Connection)
    assert conn.dsn == "sqlite://"


def test_static_call_with_missing_method_raises_invalid_config():
    c = Container()
    c.set("conn", StaticCall(Connection, "missing"))
    with pytest.raises(InvalidConfigError):
        c.get("conn")


def test_set_after_get_rebuilds():
    c = Container()
    c.set("engine", Engine)
    first = c.get("engine")

    c.set("engine", Engine)
    second = c.get("engine")

    assert isinstance(second, Engine)
    assert second is not first


def test_set_replaces_definition_kind():
    c = Container()
    c.set("value", Instance(1))
    assert c.get("value") == 1

    c.set("value", Factory(lambda _: 2))
    assert c.get("value") == 2


def test_has_before_and_after_set():
    c = Container()
    assert c.has("x") is False
    c.set("x", Instance(1))
    assert c.has("x") is True


def test_has_does_not_resolve_definition():
    c = Container()
    calls = []
    c.set("x", lambda _: calls.append(1))
    assert c.has("x") is True
    assert calls == []


def test_configure_applies_definitions_in_order():
    c = Container()
    c.configure({"a": Instance(1), "b": Instance(2)})
    assert c.get("a") == 1
    assert c.get("b") == 2


def test_configure_overwrites_existing_definitions():
    c = Container()
    c.set("a", Instance(1))
    c.get("a")
    c.configure({"a": Instance(2)})
    assert c.get("a") == 2


def test_constructor_definitions_are_registered():
    c = Container({Engine: Engine, Car: Car})
    assert c.has(Engine)
    assert c.get(Car).engine is c.get(Engine)


def test_import_path_type_id_is_built():
    c = Container()
    c.set("zero", "fractions.Fraction")
    assert c.get("zero") == 0


def test_errors_from_factories_propagate_unchanged():
    c = Container()

    def broken(_):
        msg = "boom"
        raise ZeroDivisionError(msg)

    c.set("broken", broken)
    with pytest.raises(ZeroDivisionError, match="boom"):
        c.get("broken")


def test_failed_build_is_not_cached():
    c = Container()
    attempts = []

    def flaky(_):
        attempts.append(1)
        if len(attempts) == 1:
            msg = "first attempt fails"
            raise RuntimeError(msg)
        return "ok"

    c.set("flaky", flaky)
    with pytest.raises(RuntimeError):
        c.get("flaky")
    assert c.get("flaky") == "ok"
    assert len(attempts) == 2
