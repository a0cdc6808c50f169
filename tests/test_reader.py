"""Test LogStream, the FMT sniff heuristic and LogReader file handling.

Run from the repo root:
    python3 tests/test_reader.py
"""

import sys
import os
import tempfile
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "python"))

from dflog.errors import FormatError, UnknownFormatError
from dflog.faults import CollectingFaultSink
from dflog.reader import SNIFF_LINE_LIMIT, LogReader, LogStream, read_messages

LOG_TEXT = """\
FMT, 128, 89, FMT, BBnNZ, Type,Length,Name,Format,Columns
FMT, 129, 23, PARM, Nf, Name,Value
FMT, 130, 45, GPS, BIHBcLLeeEefI, Status,TimeMS,Week,NSats,HDop,Lat,Lng,RelAlt,Alt,Spd,GCrs,VZ,T
PARM, RATE_RLL_P, 0.15
PARM, RATE_RLL_I, 0.1

GPS, 3, 120400, 1720, 10, 1.21, -35.3632621, 149.1652374, 0.03, 584.03, 0.0, 87.5, -0.1, 120400
BOGUS, 1, 2
GPS, 3, 120600, 1720, 10, 1.21, -35.3632622, 149.1652375, 0.05, 584.05, 0.1, 87.5, 0.0
PARM, BATT_CAPACITY, 3300
"""


def write_log(text):
    with tempfile.NamedTemporaryFile("w", suffix=".log", delete=False) as f:
        f.write(text)
        return f.name


def test_stream_in_order():
    print("test_stream_in_order...", end="")

    faults = CollectingFaultSink()
    stream = LogStream(LOG_TEXT.splitlines(), fault_sink=faults)
    msgs = list(stream)

    assert [m.name for m in msgs] == ["FMT", "FMT", "FMT", "PARM", "PARM", "GPS", "GPS", "PARM"]
    assert msgs[3].get_text("Name") == "RATE_RLL_P"
    assert msgs[3].get_float("Value") == 0.15
    assert msgs[5].get_float("Lat") == -35.3632621
    assert msgs[5].get_int("TimeMS") == 120400
    assert stream.lines_read == 10
    assert stream.seen_control

    # the short GPS line decodes; its missing column is an explicit error
    assert len(msgs[6].elements) == 12
    try:
        msgs[6].get("T")
        assert False, "Should have raised IndexError"
    except IndexError:
        pass

    assert len(faults) == 1
    assert faults.faults[0][0] == "BOGUS, 1, 2"
    assert isinstance(faults.faults[0][1], UnknownFormatError)

    print(" OK")


def test_stream_is_one_pass():
    print("test_stream_is_one_pass...", end="")

    stream = LogStream(LOG_TEXT.splitlines(), fault_sink=CollectingFaultSink())
    first = next(stream)
    assert first.name == "FMT"
    rest = list(stream)
    assert len(rest) == 7
    assert list(stream) == []

    print(" OK")


def test_stream_is_lazy():
    """Lines are pulled only as messages are requested."""
    print("test_stream_is_lazy...", end="")

    pulled = []

    def lines():
        for line in LOG_TEXT.splitlines():
            pulled.append(line)
            yield line

    stream = LogStream(lines(), fault_sink=CollectingFaultSink())
    assert pulled == []
    next(stream)
    assert len(pulled) == 1
    next(stream)
    next(stream)
    next(stream)
    assert len(pulled) == 4

    print(" OK")


def test_sniff_rejects_log_without_fmt():
    """No FMT record in the first 100 lines fails on the 101st."""
    print("test_sniff_rejects_log_without_fmt...", end="")

    lines = ["NOPE, 1, 2"] * SNIFF_LINE_LIMIT + [
        "FMT, 129, 23, PARM, Nf, Name,Value",
        "PARM, RATE_RLL_P, 0.15",
    ]
    stream = LogStream(lines, fault_sink=CollectingFaultSink())
    try:
        list(stream)
        assert False, "Should have raised FormatError"
    except FormatError:
        pass
    assert stream.lines_read == SNIFF_LINE_LIMIT + 1
    assert not stream.seen_control

    # raised exactly once; the stream is finished afterwards
    assert list(stream) == []

    print(" OK")


def test_sniff_accepts_fmt_on_line_100():
    print("test_sniff_accepts_fmt_on_line_100...", end="")

    lines = ["NOPE, 1, 2"] * (SNIFF_LINE_LIMIT - 1) + [
        "FMT, 129, 23, PARM, Nf, Name,Value",
    ] + ["PARM, RATE_RLL_P, 0.15"] * 50
    stream = LogStream(lines, fault_sink=CollectingFaultSink())
    msgs = list(stream)
    assert len(msgs) == 51
    assert stream.lines_read == SNIFF_LINE_LIMIT + 50

    print(" OK")


def test_sniff_short_input_without_fmt():
    """Input that ends within the limit finishes normally without FMT."""
    print("test_sniff_short_input_without_fmt...", end="")

    faults = CollectingFaultSink()
    stream = LogStream(["hello"] * SNIFF_LINE_LIMIT + ["x, y"], fault_sink=faults,
                       sniff_limit=SNIFF_LINE_LIMIT + 1)
    assert list(stream) == []
    assert len(faults) == 1

    print(" OK")


def test_sniff_limit_option():
    print("test_sniff_limit_option...", end="")

    stream = LogStream(["", "", "", "FMT, 129, 23, PARM, Nf, Name,Value"],
                       fault_sink=CollectingFaultSink(), sniff_limit=3)
    try:
        list(stream)
        assert False, "Should have raised FormatError"
    except FormatError:
        pass

    print(" OK")


def test_stream_name_filter():
    """Filtered-out FMT records still declare formats and satisfy the sniff."""
    print("test_stream_name_filter...", end="")

    lines = LOG_TEXT.splitlines() + ["PARM, X, 1"] * 200
    stream = LogStream(lines, fault_sink=CollectingFaultSink(), names={"GPS"})
    msgs = list(stream)
    assert [m.name for m in msgs] == ["GPS", "GPS"]
    assert "PARM" in stream.registry

    print(" OK")


def test_streams_have_private_registries():
    print("test_streams_have_private_registries...", end="")

    a = LogStream(LOG_TEXT.splitlines(), fault_sink=CollectingFaultSink())
    b = LogStream(["PARM, RATE_RLL_P, 0.15"], fault_sink=CollectingFaultSink())
    list(a)
    assert "PARM" in a.registry
    assert list(b) == []
    assert "PARM" not in b.registry

    print(" OK")


def test_log_reader():
    print("test_log_reader...", end="")

    path = write_log(LOG_TEXT)
    try:
        with LogReader(path, fault_sink=CollectingFaultSink()) as reader:
            msgs = list(reader.messages())
            assert len(msgs) == 8
            assert reader.registry.lookup("GPS").format == "BIHBcLLeeEefI"

            # each pass starts over with a fresh registry
            again = list(reader.messages())
            assert len(again) == 8
            assert str(again[3]) == "PARM: Name=RATE_RLL_P, Value=0.15"
    finally:
        os.unlink(path)

    print(" OK")


def test_log_reader_without_context_manager():
    """messages() opens the file on demand; close() releases it."""
    print("test_log_reader_without_context_manager...", end="")

    path = write_log(LOG_TEXT)
    try:
        reader = LogReader(path, fault_sink=CollectingFaultSink())
        msgs = list(reader.messages())
        assert len(msgs) == 8
        assert reader.open() is reader.open()
        reader.close()
        assert reader._source is None
    finally:
        os.unlink(path)

    print(" OK")


def test_log_reader_closes_on_format_error():
    print("test_log_reader_closes_on_format_error...", end="")

    path = write_log("junk line\n" * 150)
    try:
        reader = LogReader(path, fault_sink=CollectingFaultSink())
        try:
            with reader:
                for _ in reader.messages():
                    pass
            assert False, "Should have raised FormatError"
        except FormatError:
            pass
        assert reader._source is None
    finally:
        os.unlink(path)

    print(" OK")


def test_read_messages_early_exit():
    """Abandoning the generator releases the file."""
    print("test_read_messages_early_exit...", end="")

    path = write_log(LOG_TEXT)
    try:
        gen = read_messages(path, fault_sink=CollectingFaultSink(), names={"PARM"})
        first = next(gen)
        assert first.get_text("Name") == "RATE_RLL_P"
        gen.close()

        all_parms = list(read_messages(path, fault_sink=CollectingFaultSink(),
                                       names={"PARM"}))
        assert [m.get_text("Name") for m in all_parms] == [
            "RATE_RLL_P", "RATE_RLL_I", "BATT_CAPACITY"]
    finally:
        os.unlink(path)

    print(" OK")


if __name__ == "__main__":
    print("dflog reader tests")
    print("==================\n")

    test_stream_in_order()
    test_stream_is_one_pass()
    test_stream_is_lazy()
    test_sniff_rejects_log_without_fmt()
    test_sniff_accepts_fmt_on_line_100()
    test_sniff_short_input_without_fmt()
    test_sniff_limit_option()
    test_stream_name_filter()
    test_streams_have_private_registries()
    test_log_reader()
    test_log_reader_without_context_manager()
    test_log_reader_closes_on_format_error()
    test_read_messages_early_exit()

    print("\nAll tests passed.")
