import inspect
from typing import Any, TypeVar, get_type_hints

T = TypeVar("T")

_SKIPPED_KINDS = (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD)


class Container:
    """Type-keyed registry that builds objects by constructor injection.

    ``resolve(cls)`` looks up each ``__init__`` parameter by its type hint.
    A parameter with a default keeps that default when nothing is registered
    for its type; any other unresolvable parameter is a TypeError.
    """

    def __init__(self) -> None:
        self._registry: dict[type, Any] = {}

    def register_instance(self, type_key: type, instance: Any) -> None:
        self._registry[type_key] = instance

    # factories are plain instances handed to modules (e.g. LoggerFactory)
    register_factory = register_instance

    def has(self, type_key: type) -> bool:
        return type_key in self._registry

    def get(self, type_key: type[T]) -> T:
        try:
            return self._registry[type_key]
        except KeyError:
            raise KeyError(f"No registration found for type {type_key.__name__!r}") from None

    def resolve(self, cls: type[T]) -> T:
        try:
            hints = get_type_hints(cls.__init__)
        except (NameError, TypeError) as exc:
            raise TypeError(f"Cannot read type hints for {cls.__name__}.__init__: {exc}") from exc

        kwargs: dict[str, Any] = {}
        for name, param in inspect.signature(cls.__init__).parameters.items():
            if name == "self" or param.kind in _SKIPPED_KINDS:
                continue
            if name not in hints:
                raise TypeError(f"Parameter '{name}' of {cls.__name__}.__init__ has no type hint")
            hint = hints[name]
            if hint in self._registry:
                kwargs[name] = self._registry[hint]
            elif param.default is param.empty:
                type_name = getattr(hint, "__name__", hint)
                raise TypeError(
                    f"No registration found for type {type_name!r} "
                    f"(parameter '{name}' of {cls.__name__}.__init__)"
                )
        return cls(**kwargs)
