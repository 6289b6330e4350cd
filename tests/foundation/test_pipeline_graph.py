"""Tests for foundation.Pipeline: membership, connections, arrangement, validation."""

import pytest

from taskweave.foundation.connector import ConnectionRejection, ConnectorError
from taskweave.foundation.pipeline import (
    Connection,
    Pipeline,
    PipelineConsistencyError,
    PipelineLoopError,
)
from taskweave.foundation.registry import FunctionRegistry


def test_connection_validation() -> None:
    c = Connection("a", 0, "b", 1)
    assert c.source_function == "a" and c.target_slot == 1
    with pytest.raises(ValueError):
        Connection("", 0, "b", 0)
    with pytest.raises(ValueError):
        Connection("a", -1, "b", 0)


def test_add_function_ids(registry: FunctionRegistry) -> None:
    p = Pipeline()
    rx = p.add_function("read-xml", registry=registry)
    wx = p.add_function("wx", registry=registry)
    assert (rx, wx) == ("read-xml_0", "write-xml_1")
    assert p.function_ids == [rx, wx]
    assert len(p) == 2
    assert p.get_function(rx).task_name == "read-xml"
    assert p.get_function(rx) in p
    assert registry.build("read-xml") not in p


def test_add_duplicate_id_leaves_function_untouched(registry: FunctionRegistry) -> None:
    p = Pipeline()
    p.add_function("read-xml", "a", registry=registry)
    f = registry.build("sort")
    with pytest.raises(ValueError, match="already exists"):
        p.add_function(f, "a")
    assert f.function_id is None
    assert len(p) == 1


def test_connect_picks_first_free_matching_slots(registry: FunctionRegistry) -> None:
    p = Pipeline()
    p.add_function("read-xml", "rx", registry=registry)
    p.add_function("read-xml-change", "rxc", registry=registry)
    p.add_function("apply-change", "ac", registry=registry)
    c1 = p.connect("rxc", "ac")
    c2 = p.connect("rx", "ac")
    assert (c1.source_slot, c1.target_slot) == (0, 1)
    assert (c2.source_slot, c2.target_slot) == (0, 0)
    assert p.get_dependencies("ac") == ["rxc", "rx"]


@pytest.mark.parametrize(
    "source, target, slots, reason",
    [
        ("ghost", "wx", (0, 0), ConnectionRejection.NOT_IN_PIPELINE),
        ("s", "s", (0, 0), ConnectionRejection.SAME_FUNCTION),
        ("rx", "wx", (3, 0), ConnectionRejection.NO_SUCH_CONNECTOR),
        ("rxc", "wx", (0, 0), ConnectionRejection.TYPE_MISMATCH),
        ("rx", "s", (0, 0), ConnectionRejection.ALREADY_CONNECTED),
        ("rx2", "s", (0, 0), ConnectionRejection.FULL),
    ],
)
def test_connect_rejections_leave_pipeline_unchanged(
    registry: FunctionRegistry, source, target, slots, reason
) -> None:
    p = Pipeline()
    for fid, task in (("rx", "read-xml"), ("rx2", "read-xml"), ("rxc", "read-xml-change"),
                      ("s", "sort"), ("wx", "write-xml")):
        p.add_function(task, fid, registry=registry)
    p.connect("rx", "s")
    before = p.get_connections()
    assert not p.can_connect(source, target, *slots)
    with pytest.raises(ConnectorError) as exc:
        p.connect(source, target, *slots)
    assert exc.value.reason is reason
    assert p.get_connections() == before


def test_dataset_output_takes_one_reader(registry: FunctionRegistry) -> None:
    p = Pipeline()
    p.add_function("read-pgsql", "db", registry=registry)
    p.add_function("dataset-dump", "dd", registry=registry)
    p.add_function("dataset-bounding-box", "dbb", registry=registry)
    p.connect("db", "dd")
    with pytest.raises(ConnectorError) as exc:
        p.connect("db", "dbb", 0, 0)
    assert exc.value.reason is ConnectionRejection.FULL
    assert p.is_full(p.get_function("db").get_output(0))


def test_peers_in_link_order(fan_out: Pipeline) -> None:
    out = fan_out.get_function("src").get_output(0)
    assert [c.function_id for c in fan_out.get_peers(out)] == ["w1", "w2", "w3"]
    assert [c.function_id for c in fan_out.get_peers(out, among={"w3", "w1"})] == ["w1", "w3"]
    w3_in = fan_out.get_function("w3").get_input(0)
    assert fan_out.get_peers(w3_in) == [out]
    assert fan_out.connection_offset(w3_in, out) == 2
    assert fan_out.connection_offset(w3_in, out, among={"src", "w3"}) == 0


def test_connection_offset_one_sided_raises(fan_out: Pipeline, registry: FunctionRegistry) -> None:
    fan_out.add_function("write-xml", "w4", registry=registry)
    out = fan_out.get_function("src").get_output(0)
    with pytest.raises(PipelineConsistencyError):
        fan_out.connection_offset(fan_out.get_function("w4").get_input(0), out)


def test_disconnect_unlink_remove(fan_out: Pipeline) -> None:
    first = fan_out.get_connections_in("w1")[0]
    fan_out.disconnect(first)
    assert len(fan_out.get_connections()) == 2
    with pytest.raises(ValueError):
        fan_out.disconnect(first)
    assert fan_out.unlink(fan_out.get_function("w2").get_input(0)) == 1
    removed = fan_out.remove_function("src")
    assert removed.task_name == "read-xml"
    assert fan_out.get_connections() == []
    assert fan_out.function_ids == ["w1", "w2", "w3"]


def test_move_function_and_clear(fan_out: Pipeline) -> None:
    fan_out.move_function("src", 10)
    assert fan_out.function_ids == ["w1", "w2", "w3", "src"]
    assert fan_out.index_of("src") == 3
    fan_out.move_function("src", 0)
    assert fan_out.index_of("src") == 0
    fan_out.clear()
    assert len(fan_out) == 0 and fan_out.get_connections() == []


def test_arrange_dependency_order(registry: FunctionRegistry) -> None:
    p = Pipeline()
    p.add_function("write-xml", "wx", registry=registry)
    p.add_function("sort", "s", registry=registry)
    p.add_function("read-xml", "rx", registry=registry)
    p.connect("rx", "s")
    p.connect("s", "wx")
    assert p.arrange() == ["rx", "s", "wx"]
    assert p.function_ids == ["wx", "s", "rx"]


def test_arrange_cycle_raises(registry: FunctionRegistry) -> None:
    p = Pipeline()
    p.add_function("sort", "a", registry=registry)
    p.add_function("sort", "b", registry=registry)
    p.connect("a", "b")
    p.connect("b", "a")
    with pytest.raises(PipelineLoopError) as exc:
        p.arrange()
    assert exc.value.function_ids == ["a", "b"]
    assert not p.validate().is_valid


def test_validate_required_inputs_and_open_outputs(registry: FunctionRegistry) -> None:
    p = Pipeline()
    p.add_function("read-xml", "rx", registry=registry)
    p.add_function("write-xml", "wx", registry=registry)
    result = p.validate()
    assert len(result.errors) == 1 and "wx.in[0]" in result.errors[0]
    assert len(result.warnings) == 1 and "rx.out[0]" in result.warnings[0]
    with pytest.raises(ValueError, match="not connected"):
        p.validate(strict=True)
    p.connect("rx", "wx")
    assert p.validate().is_valid


def test_reorder_connections_sets_peer_order(fan_out: Pipeline) -> None:
    out = fan_out.get_function("src").get_output(0)
    by_target = {c.target_function: c for c in fan_out.get_connections_out("src")}
    fan_out.reorder_connections(out, [by_target["w3"], by_target["w1"]])
    assert [c.function_id for c in fan_out.get_peers(out)] == ["w3", "w2", "w1"]
    with pytest.raises(ValueError, match="Connection not found"):
        fan_out.reorder_connections(out, [Connection("src", 0, "w9", 0)])
