from __future__ import annotations

import os

from tsdb_poller.services.secrets.interface import SecretsInterface


class EnvSecrets(SecretsInterface):
    """Process environment layered under ``--env`` / ``--env-file`` overrides.

    Empty values count as unset, so an exported ``INFLUXDB_TOKEN=`` falls back
    to the default instead of sending an empty bearer token.
    """

    def __init__(self, overrides: dict[str, str] | None = None) -> None:
        self._values = {**os.environ, **(overrides or {})}

    def get(self, key: str) -> str | None:
        return self._values.get(key) or None
