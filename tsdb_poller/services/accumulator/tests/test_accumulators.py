import io

from tsdb_poller.pipeline.metric import FieldKind, MetricRecord
from tsdb_poller.services.accumulator.line_protocol_accumulator import LineProtocolAccumulator
from tsdb_poller.services.accumulator.memory_accumulator import MemoryAccumulator


def test_memory_accumulator_keeps_records():
    acc = MemoryAccumulator()
    acc.add_record(MetricRecord.create("cpu", {"v": 1}, 5))
    acc.add_fields("mem", {"used": 2.5}, {"host": "a"}, timestamp_ns=7)
    acc.flush()
    assert acc.names == ["cpu", "mem"]
    assert acc.records[1].tags["host"] == "a"
    assert acc.records[1].fields["used"].kind == FieldKind.FLOAT
    assert acc.records[1].timestamp_ns == 7
    assert acc.flushes == 1
    acc.clear()
    assert acc.records == []


def test_add_fields_defaults_timestamp_to_now():
    acc = MemoryAccumulator()
    acc.add_fields("cpu", {"v": 1})
    assert acc.records[0].timestamp_ns > 0


def test_line_protocol_accumulator_writes_lines():
    stream = io.StringIO()
    acc = LineProtocolAccumulator(stream)
    acc.add_record(MetricRecord.create("cpu", {"v": 1}, 5, {"host": "a"}))
    acc.add_record(MetricRecord.create("cpu", {"v": 2}, 6, {"host": "a"}))
    acc.flush()
    assert stream.getvalue() == "cpu,host=a v=1i 5\ncpu,host=a v=2i 6\n"


def test_line_protocol_accumulator_defaults_to_stdout(capsys):
    acc = LineProtocolAccumulator()
    acc.add_fields("cpu", {"v": True}, timestamp_ns=1)
    acc.flush()
    assert capsys.readouterr().out == "cpu v=true 1\n"
