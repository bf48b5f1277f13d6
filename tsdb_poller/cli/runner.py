"""``python -m tsdb_poller run <module> [global flags] [module args]``.

Global flags pick service implementations (``--metrics``, ``--acc``,
``--log``) and the environment (``--env``, ``--env-file``,
``--health-port``). Everything else is validated against the module's
``module.json`` and handed to the module as ``ModuleConfig``.
"""

from __future__ import annotations

import asyncio
import importlib
import json
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, get_type_hints

from tsdb_poller.config.container import Container
from tsdb_poller.config.context import ModuleConfig, PlatformConfig
from tsdb_poller.config.env_loader import load_env_file
from tsdb_poller.modules.base import AsyncModule
from tsdb_poller.services.health.health_server import HealthCheckServer
from tsdb_poller.services.lifecycle.lifecycle_manager import LifecycleManager
from tsdb_poller.services.logger.factory import LoggerFactory
from tsdb_poller.services.registry import resolve_implementation, resolve_interface_type
from tsdb_poller.services.secrets.env_secrets import EnvSecrets
from tsdb_poller.services.secrets.interface import SecretsInterface

MODULES_DIR = Path(__file__).resolve().parent.parent / "modules"

DEFAULT_HEALTH_PORT = 8080

# flag -> implementation used when the flag is absent
_IMPL_DEFAULTS: dict[str, str] = {
    "metrics": "noop",
    "acc": "stdout",
}
_LOG_DEFAULT = "pretty"

_ENV_FLAGS = ("env", "env-file", "health-port")
_WORKER_TYPES = frozenset({"service", "worker"})

_GLOBAL_FLAG_HELP: list[tuple[str, str]] = [
    ("metrics", "Metrics: noop, memory, prometheus [default: noop]"),
    ("acc", "Output sink: stdout, memory [default: stdout]"),
    ("log", "Logging format: pretty, memory [default: pretty]"),
    ("health-port", f"Health check HTTP port (service/worker only) [default: {DEFAULT_HEALTH_PORT}]"),
    ("env", "JSON object of env var overrides"),
    ("env-file", "Env file name (.env/<name>.env) or path"),
]

_USAGE = "Usage: python -m tsdb_poller run <module_name> [flags] [module args]"


@dataclass
class GlobalOptions:
    impl_flags: dict[str, str] = field(default_factory=dict)
    env_overrides: dict[str, str] = field(default_factory=dict)
    module_argv: list[str] = field(default_factory=list)
    health_port: int = DEFAULT_HEALTH_PORT


# ── Descriptors and module args ───────────────────────────────────────────────

def load_module_descriptor(module_name: str) -> dict[str, Any]:
    path = MODULES_DIR / module_name / "module.json"
    if not path.is_file():
        raise FileNotFoundError(f"module '{module_name}' not found at {path}")
    return json.loads(path.read_text())


def _split_flags(argv: list[str]) -> dict[str, str]:
    """``--key value`` pairs; a flag followed by another flag is ``"true"``."""
    flags: dict[str, str] = {}
    pending: str | None = None
    for token in argv:
        if token.startswith("--"):
            if pending is not None:
                flags[pending] = "true"
            pending = token[2:]
        elif pending is not None:
            flags[pending] = token
            pending = None
    if pending is not None:
        flags[pending] = "true"
    return flags


def _coerce(raw: str, type_name: str) -> Any:
    if type_name == "integer":
        return int(raw)
    if type_name == "float":
        return float(raw)
    if type_name == "boolean":
        return raw.lower() in ("true", "1", "yes")
    return raw


def parse_module_args(descriptor: dict[str, Any], argv: list[str]) -> dict[str, Any]:
    """Validate *argv* against the descriptor's args and apply defaults.

    All problems are collected and raised together as one ValueError.
    """
    arg_defs = {arg_def["name"]: arg_def for arg_def in descriptor.get("args", [])}
    given = _split_flags(argv)
    problems = [f"Unknown argument: --{name}" for name in given if name not in arg_defs]
    values: dict[str, Any] = {}

    for name, arg_def in arg_defs.items():
        type_name = arg_def.get("type", "string")
        if name not in given:
            if "default" in arg_def:
                values[name] = arg_def["default"]
            elif arg_def.get("required"):
                problems.append(f"Missing required argument: --{name}")
            continue
        try:
            value = _coerce(given[name], type_name)
        except ValueError:
            problems.append(f"Invalid value for --{name}: '{given[name]}' (expected {type_name})")
            continue
        choices = arg_def.get("choices")
        if choices and value not in choices:
            problems.append(
                f"Invalid value for --{name}: '{value}' "
                f"(choices: {', '.join(map(str, choices))})"
            )
            continue
        values[name] = value

    if problems:
        raise ValueError("; ".join(problems))
    return values


# ── Global flags ──────────────────────────────────────────────────────────────

def _parse_env_json(raw: str) -> dict[str, str]:
    data = json.loads(raw)
    if not isinstance(data, dict):
        raise ValueError("--env value must be a JSON object")
    if not all(isinstance(k, str) and isinstance(v, str) for k, v in data.items()):
        raise ValueError("--env JSON must have string keys and string values")
    return data


def extract_global_options(argv: list[str]) -> GlobalOptions:
    """Pull global flags out of *argv*; the rest is left for the module."""
    known = {*_IMPL_DEFAULTS, "log", *_ENV_FLAGS}
    opts = GlobalOptions()
    env_file: str | None = None

    tokens = iter(argv)
    for token in tokens:
        name = token[2:] if token.startswith("--") else None
        if name not in known:
            opts.module_argv.append(token)
            continue
        value = next(tokens, None)
        if value is None:
            opts.module_argv.append(token)
            break
        if name == "env":
            opts.env_overrides.update(_parse_env_json(value))
        elif name == "env-file":
            env_file = value
        elif name == "health-port":
            opts.health_port = int(value)
        else:
            opts.impl_flags[name] = value

    if env_file:
        # --env wins over the file
        opts.env_overrides = {**load_env_file(env_file), **opts.env_overrides}
    if "log" in opts.impl_flags:
        opts.env_overrides.setdefault("LOG_IMPL", opts.impl_flags["log"])
    return opts


def print_module_help(descriptor: dict[str, Any]) -> None:
    version = descriptor.get("version")
    title = f"{descriptor['display_name']} v{version}" if version else descriptor["display_name"]
    lines = [f"\n  {title}", f"  {descriptor['description']}\n"]
    if descriptor.get("type"):
        lines.append(f"  Type: {descriptor['type']}\n")

    if descriptor.get("args"):
        lines.append("  Module arguments:")
        for arg_def in descriptor["args"]:
            notes = ""
            if arg_def.get("required"):
                notes += " (required)"
            if "default" in arg_def:
                notes += f" [default: {arg_def['default']}]"
            if arg_def.get("choices"):
                notes += f" (choices: {', '.join(map(str, arg_def['choices']))})"
            lines.append(f"    --{arg_def['name']:24s} {arg_def['description']}{notes}")
        lines.append("")

    lines.append("  Global flags:")
    lines.extend(f"    --{name:24s} {text}" for name, text in _GLOBAL_FLAG_HELP)
    print("\n".join(lines) + "\n")


# ── Container ─────────────────────────────────────────────────────────────────

def _instantiate(container: Container, cls: type) -> Any:
    try:
        hints = get_type_hints(cls.__init__)
    except (NameError, TypeError):
        hints = {}
    hints.pop("return", None)
    return container.resolve(cls) if hints else cls()


def _build_container(
    impl_flags: dict[str, str],
    env_overrides: dict[str, str],
    module_args: dict[str, Any],
    health_port: int = DEFAULT_HEALTH_PORT,
    module_type: str = "job",
) -> Container:
    container = Container()
    container.register_instance(Container, container)
    container.register_instance(SecretsInterface, EnvSecrets(overrides=env_overrides))
    container.register_instance(PlatformConfig, PlatformConfig(overrides=env_overrides))
    container.register_instance(ModuleConfig, ModuleConfig(module_args))

    log_impl = impl_flags.get("log") or env_overrides.get("LOG_IMPL", _LOG_DEFAULT)
    container.register_factory(LoggerFactory, LoggerFactory(default_impl=log_impl))

    lifecycle = LifecycleManager()
    container.register_instance(LifecycleManager, lifecycle)

    health: HealthCheckServer | None = None
    if module_type in _WORKER_TYPES:
        health = HealthCheckServer(port=health_port)
        lifecycle.set_health_server(health)
        container.register_instance(HealthCheckServer, health)

    selected = {**_IMPL_DEFAULTS, **{k: v for k, v in impl_flags.items() if k != "log"}}
    for flag, impl_name in selected.items():
        instance = _instantiate(container, resolve_implementation(flag, impl_name))
        container.register_instance(resolve_interface_type(flag), instance)
        check = getattr(instance, "health_check", None)
        if health is not None and callable(check):
            health.register_check(flag, check)

    return container


# ── Running ───────────────────────────────────────────────────────────────────

async def _run(module: AsyncModule, container: Container) -> int:
    lifecycle = container.get(LifecycleManager)
    health = lifecycle.health_server
    if health is not None:
        await health.start()
        lifecycle.install_signal_handlers(loop=asyncio.get_running_loop())
        health.mark_started()
    try:
        return await module.run()
    finally:
        await lifecycle.shutdown()


def run_module(argv: list[str]) -> tuple[int, AsyncModule | None]:
    """Run ``run <module> ...``; returns (exit_code, module instance)."""
    if len(argv) < 2 or argv[0] != "run":
        raise ValueError(_USAGE)

    module_name, rest = argv[1], argv[2:]
    descriptor = load_module_descriptor(module_name)
    if "--help" in rest or "-h" in rest:
        print_module_help(descriptor)
        return 0, None

    opts = extract_global_options(rest)
    container = _build_container(
        opts.impl_flags,
        opts.env_overrides,
        parse_module_args(descriptor, opts.module_argv),
        health_port=opts.health_port,
        module_type=descriptor.get("type", "job"),
    )

    import_path = f"tsdb_poller.modules.{module_name}.main"
    module_class = getattr(importlib.import_module(import_path), "module_class", None)
    if module_class is None:
        raise AttributeError(f"Module '{import_path}' must define a 'module_class' attribute")

    module = container.resolve(module_class)
    return asyncio.run(_run(module, container)), module


def run_cli(argv: list[str] | None = None) -> None:
    try:
        exit_code, _ = run_module(sys.argv[1:] if argv is None else argv)
    except (ValueError, FileNotFoundError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)
    sys.exit(exit_code)
