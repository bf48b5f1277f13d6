import pytest

from tsdb_poller.services.accumulator.interface import AccumulatorInterface
from tsdb_poller.services.accumulator.memory_accumulator import MemoryAccumulator
from tsdb_poller.services.metrics.interface import MetricsInterface
from tsdb_poller.services.registry import (
    REGISTRY,
    resolve_implementation,
    resolve_interface_type,
)


def test_every_registered_class_implements_its_interface():
    for flag, impls in REGISTRY.items():
        interface = resolve_interface_type(flag)
        for name in impls:
            assert issubclass(resolve_implementation(flag, name), interface), (flag, name)


def test_resolve_known_implementation():
    assert resolve_implementation("acc", "memory") is MemoryAccumulator
    assert resolve_interface_type("acc") is AccumulatorInterface
    assert resolve_interface_type("metrics") is MetricsInterface


def test_unknown_flag():
    with pytest.raises(ValueError, match="Unknown interface flag: --cache"):
        resolve_implementation("cache", "memory")


def test_unknown_implementation_lists_available():
    with pytest.raises(ValueError, match="available: noop, memory, prometheus"):
        resolve_implementation("metrics", "statsd")
