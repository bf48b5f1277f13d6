from abc import ABC, abstractmethod


class SecretsInterface(ABC):
    """Credentials and environment-provided settings such as ``INFLUXDB_TOKEN``.

    Backends implement ``get``; the other accessors are derived from it.
    """

    @abstractmethod
    def get(self, key: str) -> str | None:
        """Return the value for *key*, or None when it is unset or empty."""

    def get_or_default(self, key: str, default: str) -> str:
        value = self.get(key)
        return default if value is None else value

    def require(self, key: str) -> str:
        value = self.get(key)
        if value is None:
            raise KeyError(f"Required secret '{key}' is not set")
        return value
