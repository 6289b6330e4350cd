"""Read -> write -> read keeps the graph; the second write is stable."""

from typing import List, Tuple

import pytest

from taskweave.foundation.pipeline import Pipeline
from taskweave.foundation.registry import FunctionRegistry
from taskweave.parser.commandline import (
    BashParser,
    CmdParser,
    CommandlineParser,
    get_parser,
    list_dialects,
)

EXAMPLES = [
    "--rx a.osm --wx b.osm",
    "--rx a.osm --tee 3 --wx b.osm --bb left=1 right=2 --wx c.osm --s --wb d.pbf",
    "--rx new.osm --rx old.osm --dc --tee-change --wxc d.osc --simc --wnc",
    "--rx a.osm --rxc c.osc --ac --tf accept-ways highway=* --wx 'out file.osm'",
    "--rp password=secret --dd --rb outPipe.0=x b.pbf --m inPipe.1=x --wx",
]


def signature(p: Pipeline) -> Tuple[List[tuple], List[tuple]]:
    """Functions and links with ids replaced by list positions."""
    order = p.function_ids
    functions = [(f.task_name, tuple(sorted(f.parameter_values().items()))) for f in p]
    connections = sorted(
        (order.index(c.source_function), c.source_slot, order.index(c.target_function), c.target_slot)
        for c in p.get_connections()
    )
    return functions, connections


@pytest.mark.parametrize("text", EXAMPLES)
def test_roundtrip_keeps_graph(parser: CommandlineParser, text: str) -> None:
    first = parser.parse_string(text)
    second = parser.parse_string(parser.parse_pipeline(first))
    assert signature(second) == signature(first)


@pytest.mark.parametrize("text", EXAMPLES)
def test_second_write_is_stable(parser: CommandlineParser, text: str) -> None:
    once = parser.parse_pipeline(parser.parse_string(text))
    twice = parser.parse_pipeline(parser.parse_string(once))
    assert twice == once


def test_explicit_and_implicit_inputs_mix(parser: CommandlineParser) -> None:
    p = parser.parse_string(EXAMPLES[4])
    inputs = sorted((c.target_slot, c.source_function) for c in p.get_connections_in("merge_3"))
    assert inputs == [(0, "dataset-dump_1"), (1, "read-pbf_2")]


@pytest.mark.parametrize("dialect", ["bash", "cmd", "commandline"])
def test_dialect_roundtrip(registry: FunctionRegistry, dialect: str) -> None:
    p = get_parser(dialect, registry=registry)
    first = p.parse_string(EXAMPLES[1])
    text = p.parse_pipeline(first)
    assert p.linebreak_symbol in text
    assert signature(p.parse_string(text)) == signature(first)


def test_dialects() -> None:
    assert list_dialects() == ["bash", "cmd", "commandline"]
    assert isinstance(get_parser("BASH"), BashParser)
    assert CmdParser.linebreak_command == "\r\n"
    with pytest.raises(KeyError, match="Unknown dialect"):
        get_parser("powershell")


def test_parse_functions(parser: CommandlineParser) -> None:
    assert [f.task_name for f in parser.parse_functions(EXAMPLES[0])] == ["read-xml", "write-xml"]


def test_built_pipeline_writes_stably(parser: CommandlineParser, registry: FunctionRegistry) -> None:
    p = Pipeline()
    p.add_function("read-xml", "src", registry=registry)
    p.add_function("write-xml", "w1", registry=registry)
    p.add_function("write-xml", "w2", registry=registry)
    p.get_function("w1").set_parameter("file", "one.osm")
    p.connect("src", "w2")
    p.connect("src", "w1")
    once = parser.parse_pipeline(p)
    assert "--write-xml file=one.osm inPipe.0=3" in once
    assert parser.parse_pipeline(parser.parse_string(once)) == once


def test_empty_value_survives_roundtrip(parser: CommandlineParser) -> None:
    first = parser.parse_string('--rx file="" --wx b.osm')
    assert first.get_function("read-xml_0").get_parameter("file").value == ""
    second = parser.parse_string(parser.parse_pipeline(first))
    assert second.get_function("read-xml_0").get_parameter("file").value == ""
    assert signature(second) == signature(first)


def test_bash_keeps_backslashes_in_values(registry: FunctionRegistry) -> None:
    bash = get_parser("bash", registry=registry)
    p = bash.parse_string("osmosis \\\n--rx file=C:\\data\\a.osm \\\n--wx b.osm")
    assert p.get_function("read-xml_0").get_parameter("file").value == "C:\\data\\a.osm"
    again = bash.parse_string(bash.parse_pipeline(p))
    assert signature(again) == signature(p)
