import os
from typing import Any

_TRUE_VALUES = frozenset({"true", "1", "yes", "on"})


class ModuleConfig:
    """Validated module arguments (see ``module.json``) with typed getters.

    Values arrive already cast by the CLI, but tests and env-derived values
    may pass strings, so the getters accept both.
    """

    def __init__(self, args: dict[str, Any]) -> None:
        self._args = dict(args)

    def get(self, key: str, default: Any = None) -> Any:
        return self._args.get(key, default)

    def get_int(self, key: str, default: int = 0) -> int:
        value = self._args.get(key)
        return default if value in (None, "") else int(value)

    def get_bool(self, key: str, default: bool = False) -> bool:
        value = self._args.get(key)
        if value is None or isinstance(value, bool):
            return default if value is None else value
        return str(value).strip().lower() in _TRUE_VALUES

    def __contains__(self, key: str) -> bool:
        return key in self._args

    def __repr__(self) -> str:
        return f"ModuleConfig({self._args!r})"


class PlatformConfig:
    """Process-wide settings: the environment with ``--env`` overrides on top."""

    def __init__(self, overrides: dict[str, str] | None = None) -> None:
        self._values = {**os.environ, **(overrides or {})}

    def get(self, key: str, default: str = "") -> str:
        return self._values.get(key, default)
