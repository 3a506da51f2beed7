from __future__ import annotations

import logging
import os
import sys
import threading
from typing import TYPE_CHECKING

import pytest

from stdcapture import Dispatcher
from stdcapture.io import AutoFlushStream, RedirectionSink, open_redirected_stream
from stdcapture.levels import StdStreamLevel

if TYPE_CHECKING:
    from tests.conftest import RecordCollector


@pytest.fixture
def sink(dispatcher: Dispatcher, collector: RecordCollector) -> RedirectionSink:
    dispatcher.initialize(logging.DEBUG)
    return RedirectionSink(dispatcher.get_logger("stdout"), StdStreamLevel.STDOUT)


class TestSinkBuffering:
    """Writes accumulate, flushes emit"""

    def test_write_does_not_emit(self, sink: RedirectionSink, collector: RecordCollector) -> None:
        assert sink.write(b"hello") == 5
        assert collector.records == []
        assert sink.pending() == 5

    def test_flush_emits_one_record(self, sink: RedirectionSink, collector: RecordCollector) -> None:
        sink.write(b"hello ")
        sink.write(b"world")
        sink.flush()

        assert len(collector.records) == 1
        record = collector.records[0]
        assert record.getMessage() == "hello world"
        assert record.levelno == StdStreamLevel.STDOUT
        assert record.levelname == "STDOUT"
        assert record.name == "stdout"

    def test_record_has_no_caller_location(self, sink: RedirectionSink, collector: RecordCollector) -> None:
        sink.write(b"where am I")
        sink.flush()

        record = collector.records[0]
        assert record.pathname == ""
        assert record.lineno == 0
        assert record.funcName == ""

    def test_flush_clears_buffer(self, sink: RedirectionSink, collector: RecordCollector) -> None:
        sink.write(b"once")
        sink.flush()
        sink.flush()

        assert collector.messages() == ["once"]
        assert sink.pending() == 0

    def test_multi_line_buffer_is_one_record(self, sink: RedirectionSink, collector: RecordCollector) -> None:
        text = f"first{os.linesep}second{os.linesep}"
        sink.write(text.encode())
        sink.flush()

        assert collector.messages() == [text]

    def test_percent_signs_are_not_interpolated(self, sink: RedirectionSink, collector: RecordCollector) -> None:
        sink.write(b"100% done %s %(name)s")
        sink.flush()

        assert collector.messages() == ["100% done %s %(name)s"]

    def test_split_utf8_sequence_decodes_once_flushed(self, sink: RedirectionSink, collector: RecordCollector) -> None:
        data = "café ☃".encode("utf-8")
        sink.write(data[:4])
        sink.write(data[4:])
        sink.flush()

        assert collector.messages() == ["café ☃"]


class TestSinkSuppression:
    """Trivial flushes produce no record"""

    def test_empty_flush(self, sink: RedirectionSink, collector: RecordCollector) -> None:
        sink.flush()
        assert collector.records == []

    def test_line_terminator_only_flush(self, sink: RedirectionSink, collector: RecordCollector) -> None:
        sink.write(os.linesep.encode())
        sink.flush()
        assert collector.records == []
        assert sink.pending() == 0

    def test_level_below_threshold_is_dropped(self, dispatcher: Dispatcher, collector: RecordCollector) -> None:
        dispatcher.initialize(logging.WARNING)
        sink = RedirectionSink(dispatcher.get_logger("stdout"), StdStreamLevel.STDOUT)
        sink.write(b"quiet")
        sink.flush()

        assert collector.records == []
        assert sink.pending() == 0


class TestSinkFailures:
    """Emission errors leave the sink usable"""

    def test_failed_emit_does_not_keep_stale_bytes(
        self, dispatcher: Dispatcher, sink: RedirectionSink, collector: RecordCollector
    ) -> None:
        def explode(record: logging.LogRecord) -> bool:
            raise RuntimeError("filter failed")

        sink.logger.addFilter(explode)
        sink.write(b"lost")
        with pytest.raises(RuntimeError):
            sink.flush()
        sink.logger.removeFilter(explode)

        sink.write(b"next")
        sink.flush()
        assert collector.messages() == ["next"]

    def test_closed_sink_rejects_writes(self, sink: RedirectionSink) -> None:
        sink.close()
        with pytest.raises(ValueError):
            sink.write(b"late")

    def test_close_flushes_pending_text(self, sink: RedirectionSink, collector: RecordCollector) -> None:
        sink.write(b"tail")
        sink.close()
        assert collector.messages() == ["tail"]


class TestAutoFlushStream:
    """Text wrapper flushing the sink on every newline"""

    @pytest.fixture
    def stream(self, sink: RedirectionSink) -> AutoFlushStream:
        return AutoFlushStream(sink)

    def test_print_emits_line(self, stream: AutoFlushStream, collector: RecordCollector) -> None:
        print("hello", file=stream)
        assert collector.messages() == [f"hello{os.linesep}"]

    def test_empty_print_emits_nothing(self, stream: AutoFlushStream, collector: RecordCollector) -> None:
        print(file=stream)
        assert collector.records == []

    def test_partial_line_waits_for_flush(self, stream: AutoFlushStream, collector: RecordCollector) -> None:
        stream.write("progress: 50%")
        assert collector.records == []

        stream.flush()
        assert collector.messages() == ["progress: 50%"]

    def test_each_line_is_a_record(self, stream: AutoFlushStream, collector: RecordCollector) -> None:
        print("one", file=stream)
        print("two", file=stream)
        assert collector.messages() == [f"one{os.linesep}", f"two{os.linesep}"]

    def test_print_with_several_arguments_is_one_record(
        self, stream: AutoFlushStream, collector: RecordCollector
    ) -> None:
        print("a", "b", "c", sep="-", file=stream)
        assert collector.messages() == [f"a-b-c{os.linesep}"]

    def test_text_after_last_newline_is_held(self, stream: AutoFlushStream, collector: RecordCollector) -> None:
        assert stream.write("done\nhalf") == 9
        assert collector.messages() == [f"done{os.linesep}"]

        stream.write(" way\n")
        assert collector.messages() == [f"done{os.linesep}", f"half way{os.linesep}"]

    def test_flush_emits_text_held_by_other_threads(
        self, stream: AutoFlushStream, collector: RecordCollector
    ) -> None:
        worker = threading.Thread(target=stream.write, args=("from worker",))
        worker.start()
        worker.join()
        stream.write("from main")
        assert collector.records == []

        stream.flush()
        assert sorted(collector.messages()) == ["from main", "from worker"]

    def test_closed_stream_rejects_writes(self, stream: AutoFlushStream, collector: RecordCollector) -> None:
        stream.write("tail")
        stream.close()

        assert collector.messages() == ["tail"]
        with pytest.raises(ValueError):
            stream.write("late")

    def test_not_a_tty(self, stream: AutoFlushStream) -> None:
        assert stream.isatty() is False
        assert stream.sink.writable()

    def test_open_redirected_stream(self, dispatcher: Dispatcher, collector: RecordCollector) -> None:
        dispatcher.initialize(logging.DEBUG)
        stream = open_redirected_stream(dispatcher.get_logger("stderr"), StdStreamLevel.STDERR)
        print("boom", file=stream)

        assert len(collector.records) == 1
        assert collector.records[0].levelno == StdStreamLevel.STDERR
        assert collector.records[0].name == "stderr"


class TestConcurrentWriters:
    """Lines from concurrent writers never merge or vanish"""

    def test_fifty_writers(self, sink: RedirectionSink, collector: RecordCollector) -> None:
        stream = AutoFlushStream(sink)
        writers, lines = 50, 100
        start = threading.Barrier(writers)

        def write_lines(writer: int) -> None:
            start.wait()
            for line in range(lines):
                stream.write(f"writer-{writer}-line-{line}\n")

        threads = [threading.Thread(target=write_lines, args=(w,)) for w in range(writers)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
        stream.flush()

        expected = {f"writer-{w}-line-{n}{os.linesep}" for w in range(writers) for n in range(lines)}
        messages = collector.messages()
        assert len(messages) == writers * lines
        assert set(messages) == expected

    def test_fifty_printing_threads(self, sink: RedirectionSink, collector: RecordCollector) -> None:
        stream = AutoFlushStream(sink)
        writers, lines = 50, 100
        start = threading.Barrier(writers)

        def print_lines(writer: int) -> None:
            start.wait()
            for line in range(lines):
                print(f"writer-{writer}", f"line-{line}", sep="-", file=stream)

        interval = sys.getswitchinterval()
        sys.setswitchinterval(1e-6)
        try:
            threads = [threading.Thread(target=print_lines, args=(w,)) for w in range(writers)]
            for thread in threads:
                thread.start()
            for thread in threads:
                thread.join()
        finally:
            sys.setswitchinterval(interval)
        stream.flush()

        expected = {f"writer-{w}-line-{n}{os.linesep}" for w in range(writers) for n in range(lines)}
        messages = collector.messages()
        assert len(messages) == writers * lines
        assert set(messages) == expected

    def test_flusher_thread_never_loses_bytes(self, sink: RedirectionSink, collector: RecordCollector) -> None:
        writers, lines = 10, 200
        done = threading.Event()

        def write_lines(writer: int) -> None:
            for line in range(lines):
                sink.write(f"<{writer}:{line}>".encode())

        def flush_loop() -> None:
            while not done.is_set():
                sink.flush()

        flusher = threading.Thread(target=flush_loop)
        flusher.start()
        threads = [threading.Thread(target=write_lines, args=(w,)) for w in range(writers)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
        done.set()
        flusher.join()
        sink.flush()

        joined = "".join(collector.messages())
        for writer in range(writers):
            for line in range(lines):
                assert joined.count(f"<{writer}:{line}>") == 1
