"""``--env-file`` support.

``--env-file local`` reads ``<project root>/.env/local.env``; anything that
looks like a path (contains ``/`` or ends in ``.env``) is read as given.

The format is shell-like ``KEY=VALUE`` lines. Blank lines and ``#`` comment
lines are skipped, a leading ``export`` is ignored and one pair of matching
quotes around the value is removed. A ``#`` after the value is kept, since
SQL in ``INFLUXDB_QUERY`` may contain one.
"""

from pathlib import Path

_PROJECT_ROOT = Path(__file__).resolve().parents[2]
_QUOTES = ('"', "'")


def resolve_env_path(env_name: str, project_root: Path | None = None) -> Path:
    if "/" in env_name or env_name.endswith(".env"):
        return Path(env_name)
    return (project_root or _PROJECT_ROOT) / ".env" / f"{env_name}.env"


def load_env_file(env_name: str = "local", project_root: Path | None = None) -> dict[str, str]:
    """Read the env file for *env_name*; a missing file yields ``{}``."""
    path = resolve_env_path(env_name, project_root)
    if not path.is_file():
        return {}
    pairs = (_parse_line(line) for line in path.read_text().splitlines())
    return dict(pair for pair in pairs if pair is not None)


def _parse_line(line: str) -> tuple[str, str] | None:
    text = line.strip()
    if text.startswith("export "):
        text = text[len("export "):].lstrip()
    if not text or text.startswith("#") or "=" not in text:
        return None
    key, _, value = text.partition("=")
    value = value.strip()
    if len(value) >= 2 and value[0] in _QUOTES and value[-1] == value[0]:
        value = value[1:-1]
    return key.strip(), value
