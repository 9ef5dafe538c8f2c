"""mindi core implementation module."""

from __future__ import annotations

import contextlib
import functools
import logging
from collections.abc import Callable, Iterable, Iterator, Mapping, Sequence
from contextvars import ContextVar
from typing import Any, TypeVar, overload

from typing_extensions import Self

from ._decorators import is_injectable
from ._exceptions import (
    CyclicDependencyError,
    InvalidRegistrationTypeError,
    MalformedProviderError,
    UnresolvedTokenError,
)
from ._forward_ref import resolve_forward_ref
from ._marker import InjectionSpec, to_spec
from ._metadata import MetadataRegistry, get_callable_specs, registry
from ._provider import (
    ClassProvider,
    ExistingProvider,
    FactoryProvider,
    Provider,
    ProviderArg,
    ValueProvider,
    is_multi_entry,
    multi_entry,
    normalize_provider,
)
from ._token import Token
from ._types import NOT_SET
from ._utils import get_token_name

T = TypeVar("T")
TargetT = TypeVar("TargetT")

REGISTRATION_KINDS = ("singleton", "transient", "factory", "value")


class Injector:
    """A hierarchical dependency injector.

    Example:
        >>> injector = Injector([
        ...     ValueProvider(provide="test", use_value="blorg"),
        ...     FactoryProvider(provide="factory", use_factory=lambda: "BOOM"),
        ...     ClassProvider(provide="my_class", use_class=MyClass),
        ...     MyClass,
        ... ])
        >>> injector.get("test")
        'blorg'
        >>> injector.get("factory")
        'BOOM'
        >>> isinstance(injector.get(MyClass), MyClass)
        True
    """

    def __init__(
        self,
        providers: Iterable[ProviderArg] = (),
        parent: Injector | None = None,
        *,
        logger: logging.Logger | None = None,
        metadata: MetadataRegistry | None = None,
    ) -> None:
        self._providers: dict[Any, Provider] = {}
        self._parent = parent
        self._logger = logger or logging.getLogger(__name__)
        self._metadata = metadata or registry
        # Tokens being resolved by the current call tree, local to the context
        self._resolving: ContextVar[tuple[Any, ...]] = ContextVar(
            f"mindi_resolving_{id(self):x}", default=()
        )

        # Register self as provider
        self.register_provider(ValueProvider(provide=Injector, use_value=self))
        if type(self) is not Injector:
            self.register_provider(ValueProvider(provide=type(self), use_value=self))

        for provider in providers:
            self.register_provider(provider)

    # == Injector Properties ==

    @property
    def providers(self) -> dict[Any, Provider]:
        """Get the registered providers."""
        return self._providers

    @property
    def parent(self) -> Injector | None:
        """Get the parent injector, if any."""
        return self._parent

    @property
    def logger(self) -> logging.Logger:
        """Get the logger instance."""
        return self._logger

    @property
    def metadata(self) -> MetadataRegistry:
        """Get the injection metadata registry."""
        return self._metadata

    # == Hierarchy ==

    def set_parent(self, parent: Injector | None) -> None:
        """Set the parent injector."""
        self._parent = parent

    def resolve_and_create_child(self, providers: Iterable[ProviderArg] = ()) -> Self:
        """Create a child injector with the given providers."""
        providers = list(providers)
        child = type(self)(
            providers, self, logger=self._logger, metadata=self._metadata
        )
        self._logger.debug(
            "Created child injector with %d provider(s).", len(providers)
        )
        return child

    @classmethod
    def from_injectable(
        cls,
        injectable: type[Any],
        providers: Iterable[ProviderArg] = (),
        parent: Injector | None = None,
        **kwargs: Any,
    ) -> Self:
        """Create an injector from the providers declared with `injectable`."""
        return cls(
            [*cls.resolve_injectables(injectable), *providers], parent, **kwargs
        )

    @staticmethod
    def resolve_injectables(injectable: type[Any]) -> list[ProviderArg]:
        """Get the providers declared on a class with `injectable`."""
        if is_injectable(injectable):
            return list(injectable.__injectable__["providers"])
        return []

    # == Provider Registry ==

    def register_provider(self, provider: ProviderArg) -> None:
        """Register a provider, a provider mapping or a class."""
        normalized = normalize_provider(provider)
        provide = normalized.provide

        if normalized.multi:
            entry = self._providers.get(provide)
            if entry is None or not is_multi_entry(entry):
                entry = multi_entry(provide)
                self._providers[provide] = entry
            entry.use_value.append(normalized)  # type: ignore[union-attr]
        else:
            self._providers[provide] = normalized

        self._logger.debug(
            "Registered %s for `%s`.",
            type(normalized).__name__,
            get_token_name(provide),
        )

    def register(
        self, kind: str, token: Any = NOT_SET
    ) -> Callable[[TargetT], TargetT]:
        """Decorator to register a class, a factory or a value.

        The decorated object is its own token unless one is given.
        """
        if kind not in REGISTRATION_KINDS:
            raise InvalidRegistrationTypeError(kind, REGISTRATION_KINDS)

        def decorator(target: TargetT) -> TargetT:
            provide = target if token is NOT_SET else token
            provider: Provider
            if kind == "singleton":
                provider = ClassProvider(provide=provide, use_class=target)
            elif kind == "transient":
                provider = ClassProvider(
                    provide=provide, use_class=target, transient=True
                )
            elif kind == "factory":
                provider = FactoryProvider(
                    provide=provide,
                    use_factory=target,
                    deps=get_callable_specs(target),  # type: ignore[arg-type]
                )
            else:
                provider = ValueProvider(provide=provide, use_value=target)
            self.register_provider(provider)
            return target

        return decorator

    def is_registered(self, token: Any) -> bool:
        """Check if this injector has its own provider for the token."""
        return resolve_forward_ref(token) in self._providers

    def has(self, token: Any) -> bool:
        """Check if the token is provided by this injector or an ancestor."""
        if self.is_registered(token):
            return True
        return self._parent is not None and self._parent.has(token)

    # == Resolution ==

    @overload
    def get(
        self,
        token: type[T] | Token[T],
        default: Any = NOT_SET,
        *,
        optional: bool = False,
        lazy: bool = False,
        self_only: bool = False,
        skip_self: bool = False,
    ) -> T: ...

    @overload
    def get(
        self,
        token: Any,
        default: Any = NOT_SET,
        *,
        optional: bool = False,
        lazy: bool = False,
        self_only: bool = False,
        skip_self: bool = False,
    ) -> Any: ...

    def get(
        self,
        token: Any,
        default: Any = NOT_SET,
        *,
        optional: bool = False,
        lazy: bool = False,
        self_only: bool = False,
        skip_self: bool = False,
    ) -> Any:
        """Get the dependency provided for a token.

        Args:
            token: The injection token.
            default: Returned when no injector in the hierarchy provides the token.
            optional: Return `None` instead of raising when nothing is found.
            lazy: Return a function that resolves the dependency when called.
            self_only: Do not look the token up in parent injectors.
            skip_self: Start the lookup at the parent injector.

        Raises:
            UnresolvedTokenError: Nothing provides the token.
            CyclicDependencyError: The token depends on itself.
        """
        spec = InjectionSpec(
            token=token,
            optional=optional,
            lazy=lazy,
            self_only=self_only,
            skip_self=skip_self,
        )
        return self._get(token, default, spec)

    def get_spec(self, spec: InjectionSpec, default: Any = NOT_SET) -> Any:
        """Get the dependency described by an injection spec."""
        return self._get(spec.token, default, spec)

    def _get(self, token: Any, default: Any, spec: InjectionSpec) -> Any:
        if spec.lazy:
            return functools.partial(self._get, token, default, spec.replace(lazy=False))

        token = resolve_forward_ref(token)

        if not spec.skip_self and token in self._providers:
            provider = self._providers[token]
            if is_multi_entry(provider):
                return self._get_multi(token, provider, spec)  # type: ignore[arg-type]
            if provider.is_resolved:
                return provider.resolved
            return self._resolve(provider)

        if not spec.self_only and self._parent is not None:
            try:
                return self._parent._get(
                    token, default, spec.replace(self_only=False, skip_self=False)
                )
            except UnresolvedTokenError as exc:
                # Each injector tracks its own part of the resolution path
                path = self._resolving.get()
                if not path:
                    raise
                raise UnresolvedTokenError(exc.token, (*path, *exc.path)) from None

        if default is not NOT_SET:
            return default
        if spec.optional:
            return None
        raise UnresolvedTokenError(token, self._resolving.get())

    def _get_multi(
        self, token: Any, entry: ValueProvider, spec: InjectionSpec
    ) -> list[Any]:
        values = [self._resolve(provider) for provider in entry.use_value]

        if self._parent is not None and not spec.self_only:
            inherited = self._parent._get(
                token, [], spec.replace(self_only=False, skip_self=False)
            )
            if not isinstance(inherited, list):
                inherited = [inherited]
            values.extend(inherited)

        return values

    def resolve_and_instantiate(
        self, target: ProviderArg, *, skip_init: bool = False
    ) -> Any:
        """Resolve a class or a provider that is not registered.

        Post-construct hooks are not called when `skip_init` is set.
        """
        # Unregistered targets cannot take part in cyclic dependency checks.
        return self._resolve(
            normalize_provider(target), skip_cyclic_check=True, skip_init=skip_init
        )

    def invoke(self, fn: Callable[..., T], deps: Sequence[Any] | None = None) -> T:
        """Call a function with its resolved dependencies.

        Dependencies are tokens or injection specs. When they are omitted they
        are read from the function's `__inject__` list or its annotations.
        """
        if deps is None:
            specs = get_callable_specs(fn)
        else:
            specs = [to_spec(dep) for dep in deps]
        return fn(*self._get_dependencies(specs))

    def autowire(
        self, instance: Any, properties: Mapping[str, Any] | None = None
    ) -> None:
        """Inject the declared properties of an instance.

        This is part of class instantiation, so injected properties are not
        available in `__init__`, only in post-construct hooks.
        """
        if properties is None:
            specs = self._metadata.get_properties(type(instance))
        else:
            specs = {name: to_spec(spec) for name, spec in properties.items()}

        names = list(specs)
        dependencies = self._get_dependencies([specs[name] for name in names])
        for name, dependency in zip(names, dependencies):
            setattr(instance, name, dependency)

    def _resolve(
        self,
        provider: Provider,
        *,
        skip_cyclic_check: bool = False,
        skip_init: bool = False,
    ) -> Any:
        if provider.is_resolved:
            return provider.resolved

        reset_token = None
        if not skip_cyclic_check:
            path = self._resolving.get()
            if provider.provide in path:
                raise CyclicDependencyError((*path, provider.provide))
            reset_token = self._resolving.set((*path, provider.provide))

        try:
            return self._create(provider, skip_init=skip_init)
        finally:
            if reset_token is not None:
                self._resolving.reset(reset_token)

    def _create(self, provider: Provider, *, skip_init: bool) -> Any:
        if isinstance(provider, ClassProvider):
            cls = resolve_forward_ref(provider.use_class)
            args = self._get_dependencies(self._metadata.get_params(cls))
            self._logger.debug("Instantiating `%s`.", get_token_name(cls))
            result = self._instantiate_with_hooks(cls, args, skip_init=skip_init)
            if not provider.transient:
                provider.resolved = result
        elif isinstance(provider, FactoryProvider):
            args = self._get_dependencies([to_spec(dep) for dep in provider.deps or ()])
            factory = resolve_forward_ref(provider.use_factory)
            self._logger.debug("Calling factory `%s`.", get_token_name(factory))
            result = factory(*args)
            if not provider.transient:
                provider.resolved = result
        elif isinstance(provider, ValueProvider):
            result = resolve_forward_ref(provider.use_value)
            provider.resolved = result
        elif isinstance(provider, ExistingProvider):
            # Aliases are not cached, the target provider owns the instance.
            target = resolve_forward_ref(provider.use_existing)
            result = self._get(target, NOT_SET, InjectionSpec(token=target))
        else:
            raise MalformedProviderError(provider.provide)
        return result

    def _get_dependencies(self, specs: Iterable[InjectionSpec]) -> list[Any]:
        return [self._get(spec.token, NOT_SET, spec) for spec in specs]

    def _instantiate_with_hooks(
        self, cls: type[T], args: Sequence[Any], *, skip_init: bool = False
    ) -> T:
        instance = cls(*args)
        self.autowire(instance)

        if not skip_init:
            for name in self._metadata.get_post_construct(cls):
                getattr(instance, name)()

        return instance

    # == Testing / Override Support ==

    @contextlib.contextmanager
    def override(self, token: Any, value: Any) -> Iterator[None]:
        """Provide a value for a token in this injector for testing."""
        if not self.has(token):
            raise UnresolvedTokenError(token)

        token = resolve_forward_ref(token)
        previous = self._providers.get(token)
        self._providers[token] = ValueProvider(provide=token, use_value=value)
        try:
            yield
        finally:
            if previous is None:
                del self._providers[token]
            else:
                self._providers[token] = previous
