from __future__ import annotations

import sys
from typing import TextIO

from tsdb_poller.pipeline.line_protocol import format_line_protocol
from tsdb_poller.pipeline.metric import MetricRecord
from tsdb_poller.services.accumulator.interface import AccumulatorInterface


class LineProtocolAccumulator(AccumulatorInterface):
    """Writes each forwarded record as one line of InfluxDB line protocol.

    Defaults to stdout, which makes the poller usable as a Telegraf
    ``execd`` input.
    """

    def __init__(self, stream: TextIO | None = None) -> None:
        self._stream = stream

    @property
    def stream(self) -> TextIO:
        # resolved lazily so pytest's capsys sees writes to the current stdout
        return self._stream if self._stream is not None else sys.stdout

    def add_record(self, record: MetricRecord) -> None:
        self.stream.write(format_line_protocol(record))

    def flush(self) -> None:
        self.stream.flush()
