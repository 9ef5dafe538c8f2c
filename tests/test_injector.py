import logging
from typing import Annotated

import pytest

from mindi import (
    ClassProvider,
    ExistingProvider,
    FactoryProvider,
    Inject,
    Injector,
    InvalidRegistrationTypeError,
    MalformedProviderError,
    Token,
    UnresolvedTokenError,
    ValueProvider,
    annotate,
    forward_ref,
)

from tests.fixtures import MESSAGE, Database, MyClass, Repository, Service


@pytest.fixture
def injector() -> Injector:
    return Injector()


class TestRegistration:
    def test_register_bare_class(self, injector: Injector) -> None:
        injector.register_provider(MyClass)

        provider = injector.providers[MyClass]

        assert isinstance(provider, ClassProvider)
        assert provider.use_class is MyClass

    def test_last_registration_wins(self, injector: Injector) -> None:
        injector.register_provider(ValueProvider(provide="test", use_value=1))
        injector.register_provider(ValueProvider(provide="test", use_value=2))

        assert injector.get("test") == 2

    def test_registered_provider_is_copied(self) -> None:
        provider = ClassProvider(provide=MyClass, use_class=MyClass)
        first = Injector([provider])
        second = Injector([provider])

        assert first.get(MyClass) is not second.get(MyClass)
        assert not provider.is_resolved

    def test_injector_registers_itself(self, injector: Injector) -> None:
        assert injector.get(Injector) is injector

    def test_subclass_registers_itself(self) -> None:
        class AppInjector(Injector):
            pass

        injector = AppInjector()

        assert injector.get(AppInjector) is injector
        assert injector.get(Injector) is injector
        assert not Injector().is_registered(AppInjector)

    def test_is_registered(self, injector: Injector) -> None:
        injector.register_provider(MyClass)

        assert injector.is_registered(MyClass)
        assert not injector.is_registered(Database)

    def test_register_log_message(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.DEBUG, logger="mindi"):
            Injector([ValueProvider(provide=MESSAGE, use_value="hello")])

        assert "Registered ValueProvider for `Token(message)`." in caplog.messages

    def test_custom_logger(self) -> None:
        logger = logging.getLogger("custom")
        injector = Injector(logger=logger)

        assert injector.logger is logger
        assert injector.resolve_and_create_child().logger is logger


class TestRegisterDecorator:
    def test_singleton(self, injector: Injector) -> None:
        injector.register("singleton")(Database)

        assert injector.get(Database) is injector.get(Database)

    def test_transient(self, injector: Injector) -> None:
        injector.register("transient", "db")(Database)

        assert isinstance(injector.get("db"), Database)
        assert injector.get("db") is not injector.get("db")

    def test_factory(self, injector: Injector) -> None:
        injector.register_provider(ValueProvider(provide=MESSAGE, use_value="hello"))

        @injector.register("factory", "greeting")
        def greeting(message: Annotated[str, Inject(MESSAGE)]) -> str:
            return f"{message}, world"

        assert injector.get("greeting") == "hello, world"

    def test_value(self, injector: Injector) -> None:
        config = {"debug": True}
        injector.register("value", "config")(config)

        assert injector.get("config") is config

    def test_invalid_kind(self, injector: Injector) -> None:
        with pytest.raises(
            InvalidRegistrationTypeError,
            match="`scoped` is not a valid registration type",
        ):
            injector.register("scoped")


class TestGet:
    def test_class_dependency(self) -> None:
        injector = Injector([MyClass])

        assert isinstance(injector.get(MyClass), MyClass)

    def test_factory_dependency(self) -> None:
        injector = Injector(
            [FactoryProvider(provide=MyClass, use_factory=lambda: MyClass())]
        )

        assert isinstance(injector.get(MyClass), MyClass)

    def test_factory_deps(self) -> None:
        injector = Injector(
            [
                Database,
                ValueProvider(provide="name", use_value="repo"),
                FactoryProvider(
                    provide="pair",
                    use_factory=lambda db, name: (db, name),
                    deps=[Database, "name"],
                ),
            ]
        )

        db, name = injector.get("pair")

        assert db is injector.get(Database)
        assert name == "repo"

    def test_value_dependency(self) -> None:
        value = MyClass()
        injector = Injector([ValueProvider(provide=MyClass, use_value=value)])

        assert injector.get(MyClass) is value

    def test_mapping_provider(self) -> None:
        injector = Injector([{"provide": "test", "use_value": "blorg"}])

        assert injector.get("test") == "blorg"

    def test_existing_dependency(self) -> None:
        token = Token("test")
        injector = Injector([MyClass, ExistingProvider(provide=token, use_existing=MyClass)])
        my_class = injector.get(MyClass)

        assert injector.get(token) is my_class

    def test_existing_is_not_cached(self) -> None:
        injector = Injector(
            [
                ValueProvider(provide="target", use_value=1),
                ExistingProvider(provide="alias", use_existing="target"),
            ]
        )

        assert injector.get("alias") == 1
        assert not injector.providers["alias"].is_resolved

    def test_same_references(self) -> None:
        injector = Injector([MyClass])

        assert injector.get(MyClass) is injector.get(MyClass)

    def test_transient_provider(self) -> None:
        injector = Injector(
            [ClassProvider(provide=MyClass, use_class=MyClass, transient=True)]
        )

        assert injector.get(MyClass) is not injector.get(MyClass)

    def test_redefined_provider(self) -> None:
        injector = Injector([MyClass])
        first = injector.get(MyClass)

        injector.register_provider(MyClass)

        assert injector.get(MyClass) is not first

    def test_none_value(self) -> None:
        calls: list[None] = []

        def factory() -> None:
            calls.append(None)

        injector = Injector(
            [
                ValueProvider(provide="none", use_value=None),
                FactoryProvider(provide="factory", use_factory=factory),
            ]
        )

        assert injector.get("none") is None
        assert injector.get("factory") is None
        assert injector.get("factory") is None
        assert len(calls) == 1

    def test_transitive_dependencies(self) -> None:
        injector = Injector([Database, Repository])

        repository = injector.get(Repository)

        assert repository.db is injector.get(Database)

    def test_default_value(self, injector: Injector) -> None:
        assert injector.get(MyClass, "test") == "test"

    def test_none_default_value(self, injector: Injector) -> None:
        assert injector.get(MyClass, None) is None

    def test_optional(self, injector: Injector) -> None:
        assert injector.get(MyClass, optional=True) is None

    def test_not_found(self, injector: Injector) -> None:
        with pytest.raises(UnresolvedTokenError, match="No provider found for"):
            injector.get(MyClass)

    def test_not_found_is_lookup_error(self, injector: Injector) -> None:
        with pytest.raises(LookupError):
            injector.get(Token("missing"))

    def test_missing_dependency_path(self) -> None:
        injector = Injector([Repository])

        with pytest.raises(UnresolvedTokenError) as exc_info:
            injector.get(Repository)

        assert exc_info.value.token is Database
        assert exc_info.value.path == (Repository,)

    def test_get_spec(self) -> None:
        injector = Injector([MyClass])

        assert injector.get_spec(Inject(MyClass)) is injector.get(MyClass)
        assert injector.get_spec(Inject("missing", optional=True)) is None


class TestLazy:
    def test_lazy_get(self) -> None:
        injector = Injector([MyClass])

        get_my_class = injector.get(MyClass, lazy=True)

        assert callable(get_my_class)
        assert get_my_class() is injector.get(MyClass)

    def test_lazy_defers_resolution(self) -> None:
        created: list[str] = []

        def factory() -> str:
            created.append("value")
            return "value"

        injector = Injector([FactoryProvider(provide="value", use_factory=factory)])
        getter = injector.get("value", lazy=True)

        assert created == []
        assert getter() == "value"
        assert created == ["value"]

    def test_lazy_defers_failure(self, injector: Injector) -> None:
        getter = injector.get(MyClass, lazy=True)

        with pytest.raises(UnresolvedTokenError):
            getter()

    def test_lazy_constructor_param(self) -> None:
        class Component:
            def __init__(self, db: Annotated[Database, Inject(lazy=True)]) -> None:
                self.get_db = db

        injector = Injector([Database, Component])
        component = injector.get(Component)

        assert component.get_db() is injector.get(Database)


class TestForwardRef:
    def test_value(self) -> None:
        token = Token("test")
        injector = Injector(
            [MyClass, ValueProvider(provide=token, use_value=forward_ref(lambda: my_class))]
        )
        my_class = injector.get(MyClass)

        assert injector.get(token) is my_class

    def test_token(self) -> None:
        injector = Injector([MyClass])

        assert injector.get(forward_ref(lambda: MyClass)) is injector.get(MyClass)

    def test_use_class(self) -> None:
        injector = Injector(
            [Database, ClassProvider(provide="repo", use_class=forward_ref(lambda: Later))]
        )

        class Later:
            def __init__(self, db: Database) -> None:
                self.db = db

        assert isinstance(injector.get("repo").db, Database)

    def test_use_factory(self) -> None:
        injector = Injector(
            [FactoryProvider(provide="test", use_factory=forward_ref(lambda: lambda: 1))]
        )

        assert injector.get("test") == 1

    def test_use_existing(self) -> None:
        injector = Injector(
            [MyClass, ExistingProvider(provide="alias", use_existing=forward_ref(lambda: MyClass))]
        )

        assert injector.get("alias") is injector.get(MyClass)


def test_malformed_provider_fails_on_resolution() -> None:
    injector = Injector([{"provide": "test", "use_value": 1, "use_factory": list}])

    assert injector.is_registered("test")
    with pytest.raises(
        MalformedProviderError, match="The provider for `'test'` could not be resolved"
    ):
        injector.get("test")


class TestInstantiate:
    def test_resolve_and_instantiate(self) -> None:
        injector = Injector([MyClass])

        class Component:
            def __init__(self, my_class: MyClass) -> None:
                self.my_class = my_class

        component = injector.resolve_and_instantiate(Component)

        assert isinstance(component, Component)
        assert component.my_class is injector.get(MyClass)
        assert injector.resolve_and_instantiate(Component) is not component
        assert not injector.is_registered(Component)

    def test_many_constructor_args(self) -> None:
        tokens = [Token(f"arg{index}") for index in range(20)]

        class Component:
            def __init__(self, *args: int) -> None:
                self.args = args

        annotate(Component, *tokens)
        injector = Injector(
            [ValueProvider(provide=token, use_value=index) for index, token in enumerate(tokens)]
        )

        assert injector.resolve_and_instantiate(Component).args == tuple(range(20))


class TestInvoke:
    def test_invoke_with_deps(self) -> None:
        injector = Injector([MyClass, ValueProvider(provide="name", use_value="test")])

        result = injector.invoke(lambda my_class, name: (my_class, name), [MyClass, "name"])

        assert result == (injector.get(MyClass), "test")

    def test_invoke_with_annotations(self) -> None:
        injector = Injector([Database])

        def handler(db: Database, missing: Annotated[str, Inject(optional=True)]) -> tuple[Database, str]:
            return db, missing

        assert injector.invoke(handler) == (injector.get(Database), None)


class TestOverride:
    def test_override(self) -> None:
        injector = Injector([Database])
        original = injector.get(Database)
        mock = object()

        with injector.override(Database, mock):
            assert injector.get(Database) is mock

        assert injector.get(Database) is original

    def test_override_inherited(self) -> None:
        parent = Injector([Database])
        child = parent.resolve_and_create_child()

        with child.override(Database, "mock"):
            assert child.get(Database) == "mock"
            assert isinstance(parent.get(Database), Database)

        assert not child.is_registered(Database)

    def test_override_not_registered(self, injector: Injector) -> None:
        with pytest.raises(UnresolvedTokenError):
            with injector.override(Service, object()):
                pass
