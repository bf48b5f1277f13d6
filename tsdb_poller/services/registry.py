"""Implementations selectable through global CLI flags.

Each flag (``--metrics``, ``--acc``, ``--secrets``) names an interface and a
set of implementations. Classes are referenced by dotted path and imported
only when chosen, so ``prometheus_client`` is loaded only for
``--metrics prometheus``.
"""

import importlib
from typing import Any

_PKG = "tsdb_poller.services"

# flag -> (interface path, {impl name: class path})
_FLAGS: dict[str, tuple[str, dict[str, str]]] = {
    "metrics": (
        f"{_PKG}.metrics.interface.MetricsInterface",
        {
            "noop": f"{_PKG}.metrics.noop_metrics.NoopMetrics",
            "memory": f"{_PKG}.metrics.memory_metrics.MemoryMetrics",
            "prometheus": f"{_PKG}.metrics.prometheus_metrics.PrometheusMetrics",
        },
    ),
    "acc": (
        f"{_PKG}.accumulator.interface.AccumulatorInterface",
        {
            "stdout": f"{_PKG}.accumulator.line_protocol_accumulator.LineProtocolAccumulator",
            "memory": f"{_PKG}.accumulator.memory_accumulator.MemoryAccumulator",
        },
    ),
    "secrets": (
        f"{_PKG}.secrets.interface.SecretsInterface",
        {"env": f"{_PKG}.secrets.env_secrets.EnvSecrets"},
    ),
}

REGISTRY: dict[str, dict[str, str]] = {flag: impls for flag, (_, impls) in _FLAGS.items()}


def resolve_class(dotted_path: str) -> type[Any]:
    module_path, _, class_name = dotted_path.rpartition(".")
    return getattr(importlib.import_module(module_path), class_name)


def _flag(flag_name: str) -> tuple[str, dict[str, str]]:
    try:
        return _FLAGS[flag_name]
    except KeyError:
        raise ValueError(f"Unknown interface flag: --{flag_name}") from None


def resolve_implementation(flag_name: str, impl_name: str) -> type[Any]:
    _, impls = _flag(flag_name)
    if impl_name not in impls:
        raise ValueError(
            f"Unknown implementation '{impl_name}' for --{flag_name} "
            f"(available: {', '.join(impls)})"
        )
    return resolve_class(impls[impl_name])


def resolve_interface_type(flag_name: str) -> type[Any]:
    """The interface an implementation of *flag_name* is registered under."""
    return resolve_class(_flag(flag_name)[0])
