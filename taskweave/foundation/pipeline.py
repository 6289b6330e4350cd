"""
Pipeline: ordered functions + connection table.

- Functions (function_id -> Function), kept in insertion order (reorderable).
- Connections stored once as (source_function, source_slot) -> (target_function, target_slot).
- Peer lists, capacity and type checks are answered from the table.
- arrange(): cycle check + dependency order; validate(): required inputs and warnings.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Set, Tuple, Union

from taskweave.foundation.connector import (
    ConnectionRejection,
    Connector,
    ConnectorError,
)
from taskweave.foundation.function import Function
from taskweave.foundation.registry import FunctionRegistry

logger = logging.getLogger(__name__)


class PipelineLoopError(ValueError):
    """The connection graph contains a cycle."""

    def __init__(self, function_ids: List[str]) -> None:
        super().__init__(f"Pipeline contains a cycle involving functions: {function_ids}")
        self.function_ids = function_ids


class PipelineConsistencyError(RuntimeError):
    """A connection is visible from one side only. Never caused by user input."""


@dataclass
class ValidationResult:
    """Result of pipeline validation: errors (blocking) and warnings (informational)."""

    errors: List[str]
    warnings: List[str]

    @property
    def is_valid(self) -> bool:
        return len(self.errors) == 0


@dataclass(frozen=True)
class Connection:
    """Single link: (source_function, source_slot) -> (target_function, target_slot)."""

    source_function: str
    source_slot: int
    target_function: str
    target_slot: int

    def __post_init__(self) -> None:
        for name in ("source_function", "target_function"):
            v = getattr(self, name)
            if not v or not v.strip():
                raise ValueError(f"{name} must be non-empty")
        if self.source_slot < 0 or self.target_slot < 0:
            raise ValueError("Connector slots must be non-negative")


def _default_function_id(function: Function, functions: Dict[str, Function]) -> str:
    """Unique id from the task name and the number of functions."""
    base = function.task_name.replace("/", "_").replace(" ", "_")
    n = len(functions)
    candidate = f"{base}_{n}"
    while candidate in functions:
        n += 1
        candidate = f"{base}_{n}"
    return candidate


FunctionRef = Union[str, Function]


class Pipeline:
    """
    Ordered collection of functions joined by typed connections.

    Not thread-safe: callers serialize structural edits.
    """

    def __init__(self, pipeline_id: Optional[str] = None) -> None:
        self._pipeline_id = pipeline_id or "pipeline"
        self._functions: Dict[str, Function] = {}
        self._order: List[str] = []
        self._connections: List[Connection] = []
        self._in_by_function: Dict[str, List[Connection]] = {}
        self._out_by_function: Dict[str, List[Connection]] = {}

    @property
    def pipeline_id(self) -> str:
        return self._pipeline_id

    # --- Membership / ordering ---

    @property
    def function_ids(self) -> List[str]:
        return list(self._order)

    @property
    def functions(self) -> List[Function]:
        return [self._functions[fid] for fid in self._order]

    def get_function(self, function_id: str) -> Optional[Function]:
        return self._functions.get(function_id)

    def index_of(self, function: FunctionRef) -> int:
        fid = self._resolve_id(function)
        if fid not in self._functions:
            raise ValueError(f"Function not found: {fid}")
        return self._order.index(fid)

    def __contains__(self, function: object) -> bool:
        if isinstance(function, Function):
            return function.function_id in self._functions and self._functions[function.function_id] is function
        return function in self._functions

    def __len__(self) -> int:
        return len(self._order)

    def __iter__(self) -> Iterator[Function]:
        return iter(self.functions)

    def add_function(
        self,
        function_or_task: Union[Function, str],
        function_id: Optional[str] = None,
        *,
        registry: Optional[FunctionRegistry] = None,
    ) -> str:
        """
        Add a function and return its id.

        A task name is built through the registry (global one by default).
        A Function without an id gets one derived from its task name.
        """
        if isinstance(function_or_task, str):
            reg = registry or FunctionRegistry.global_registry()
            function = reg.build(function_or_task)
        else:
            function = function_or_task
        if function_id is not None:
            fid = function_id.strip()
        elif function.function_id is None:
            fid = _default_function_id(function, self._functions)
        else:
            fid = function.function_id
        if fid in self._functions:
            raise ValueError(f"Function already exists: {fid}")
        function.function_id = fid
        self._functions[fid] = function
        self._order.append(fid)
        self._in_by_function[fid] = []
        self._out_by_function[fid] = []
        return fid

    def remove_function(self, function: FunctionRef) -> Function:
        """Remove a function together with every connection touching it."""
        fid = self._resolve_id(function)
        if fid not in self._functions:
            raise ValueError(f"Function not found: {fid}")
        for conn in self._in_by_function[fid] + self._out_by_function[fid]:
            self._drop(conn)
        del self._in_by_function[fid]
        del self._out_by_function[fid]
        self._order.remove(fid)
        return self._functions.pop(fid)

    def move_function(self, function: FunctionRef, position: int) -> None:
        fid = self._resolve_id(function)
        if fid not in self._functions:
            raise ValueError(f"Function not found: {fid}")
        self._order.remove(fid)
        self._order.insert(max(0, min(position, len(self._order))), fid)

    def clear(self) -> None:
        self._functions.clear()
        self._order.clear()
        self._connections.clear()
        self._in_by_function.clear()
        self._out_by_function.clear()

    # --- Connections ---

    def get_connections(self) -> List[Connection]:
        return list(self._connections)

    def get_connections_in(self, function: FunctionRef) -> List[Connection]:
        return list(self._in_by_function.get(self._resolve_id(function), []))

    def get_connections_out(self, function: FunctionRef) -> List[Connection]:
        return list(self._out_by_function.get(self._resolve_id(function), []))

    def get_peers(self, connector: Connector, among: Optional[Set[str]] = None) -> List[Connector]:
        """
        Connectors linked to connector, in the order the links were made.
        among restricts the result to connectors of those function ids.
        """
        fid = connector.function_id
        if fid not in self._functions:
            return []
        peers: List[Connector] = []
        if connector.is_input:
            for conn in self._in_by_function[fid]:
                if conn.target_slot == connector.index:
                    peers.append(self._output_of(conn.source_function, conn.source_slot))
        else:
            for conn in self._out_by_function[fid]:
                if conn.source_slot == connector.index:
                    peers.append(self._input_of(conn.target_function, conn.target_slot))
        if among is not None:
            peers = [p for p in peers if p.function_id in among]
        return peers

    def is_full(self, connector: Connector) -> bool:
        return len(self.get_peers(connector)) >= connector.max_connections

    def connection_offset(
        self,
        connector: Connector,
        peer: Connector,
        among: Optional[Set[str]] = None,
    ) -> int:
        """
        Position of connector inside peer's own peer list (restricted to among if given).

        Raises PipelineConsistencyError if peer does not list connector back.
        """
        for position, other in enumerate(self.get_peers(peer, among)):
            if other == connector:
                return position
        raise PipelineConsistencyError(
            f"Connection {peer!r} -> {connector!r} is only visible from one side"
        )

    def can_connect(
        self,
        source: FunctionRef,
        target: FunctionRef,
        source_slot: Optional[int] = None,
        target_slot: Optional[int] = None,
    ) -> bool:
        try:
            self._check_connection(source, target, source_slot, target_slot)
        except ConnectorError:
            return False
        return True

    def connect(
        self,
        source: FunctionRef,
        target: FunctionRef,
        source_slot: Optional[int] = None,
        target_slot: Optional[int] = None,
    ) -> Connection:
        """
        Link an output of source to an input of target.

        Without explicit slots the first free pair of the same type is used.
        Raises ConnectorError (reason set) and leaves the pipeline unchanged on rejection.
        """
        conn = self._check_connection(source, target, source_slot, target_slot)
        self._connections.append(conn)
        self._out_by_function[conn.source_function].append(conn)
        self._in_by_function[conn.target_function].append(conn)
        logger.debug(
            f"Connected {conn.source_function}.out[{conn.source_slot}] -> "
            f"{conn.target_function}.in[{conn.target_slot}]"
        )
        return conn

    def disconnect(self, connection: Connection) -> None:
        if connection not in self._connections:
            raise ValueError(f"Connection not found: {connection}")
        self._drop(connection)

    def unlink(self, connector: Connector) -> int:
        """Remove every connection touching connector. Returns the number removed."""
        fid = connector.function_id
        if fid not in self._functions:
            return 0
        if connector.is_input:
            doomed = [c for c in self._in_by_function[fid] if c.target_slot == connector.index]
        else:
            doomed = [c for c in self._out_by_function[fid] if c.source_slot == connector.index]
        for conn in doomed:
            self._drop(conn)
        return len(doomed)

    def reorder_connections(self, connector: Connector, connections: List[Connection]) -> None:
        """
        Put connections of connector into the given order. They keep the
        positions they occupy among the owner's links, so get_peers follows the new order.
        """
        fid = connector.function_id
        if fid not in self._functions:
            raise ValueError(f"Function not found: {fid}")
        links = self._in_by_function[fid] if connector.is_input else self._out_by_function[fid]
        positions = []
        for conn in connections:
            if conn not in links:
                raise ValueError(f"Connection not found: {conn}")
            slot = conn.target_slot if connector.is_input else conn.source_slot
            if slot != connector.index:
                raise ValueError(f"{conn} does not belong to {connector!r}")
            positions.append(links.index(conn))
        for position, conn in zip(sorted(positions), connections):
            links[position] = conn

    def _drop(self, conn: Connection) -> None:
        self._connections.remove(conn)
        self._out_by_function[conn.source_function].remove(conn)
        self._in_by_function[conn.target_function].remove(conn)

    def _check_connection(
        self,
        source: FunctionRef,
        target: FunctionRef,
        source_slot: Optional[int],
        target_slot: Optional[int],
    ) -> Connection:
        sid = self._resolve_id(source)
        tid = self._resolve_id(target)
        for fid in (sid, tid):
            if fid not in self._functions:
                raise ConnectorError(
                    ConnectionRejection.NOT_IN_PIPELINE, f"Function not found in pipeline: {fid}"
                )
        if sid == tid:
            raise ConnectorError(
                ConnectionRejection.SAME_FUNCTION, f"Cannot connect function {sid} to itself"
            )
        if source_slot is None or target_slot is None:
            source_slot, target_slot = self._find_free_slots(sid, tid, source_slot, target_slot)
        out_conn = self._functions[sid].get_output(source_slot)
        in_conn = self._functions[tid].get_input(target_slot)
        if out_conn is None:
            raise ConnectorError(
                ConnectionRejection.NO_SUCH_CONNECTOR, f"Function {sid} has no output {source_slot}"
            )
        if in_conn is None:
            raise ConnectorError(
                ConnectionRejection.NO_SUCH_CONNECTOR, f"Function {tid} has no input {target_slot}"
            )
        if not out_conn.compatible_with(in_conn):
            raise ConnectorError(
                ConnectionRejection.TYPE_MISMATCH,
                f"Connector types differ: {sid}.out[{source_slot}] ({out_conn.type.type_name}) -> "
                f"{tid}.in[{target_slot}] ({in_conn.type.type_name})",
            )
        conn = Connection(sid, source_slot, tid, target_slot)
        if conn in self._connections:
            raise ConnectorError(ConnectionRejection.ALREADY_CONNECTED, f"Already connected: {conn}")
        for c in (out_conn, in_conn):
            if self.is_full(c):
                raise ConnectorError(
                    ConnectionRejection.FULL,
                    f"Connector {c!r} already has {c.max_connections} connection(s)",
                )
        return conn

    def _find_free_slots(
        self,
        sid: str,
        tid: str,
        source_slot: Optional[int],
        target_slot: Optional[int],
    ) -> Tuple[int, int]:
        """First (output, input) pair of the same type with room on both sides."""
        outputs = self._functions[sid].outputs
        inputs = self._functions[tid].inputs
        if source_slot is not None:
            outputs = [c for c in outputs if c.index == source_slot]
        if target_slot is not None:
            inputs = [c for c in inputs if c.index == target_slot]
        for out_conn in outputs:
            if self.is_full(out_conn):
                continue
            for in_conn in inputs:
                if out_conn.compatible_with(in_conn) and not self.is_full(in_conn):
                    return out_conn.index, in_conn.index
        raise ConnectorError(
            ConnectionRejection.NO_SUCH_CONNECTOR,
            f"No free connector pair of matching type between {sid} and {tid}",
        )

    def _output_of(self, fid: str, slot: int) -> Connector:
        conn = self._functions[fid].get_output(slot)
        if conn is None:
            raise PipelineConsistencyError(f"Connection refers to missing output {fid}.out[{slot}]")
        return conn

    def _input_of(self, fid: str, slot: int) -> Connector:
        conn = self._functions[fid].get_input(slot)
        if conn is None:
            raise PipelineConsistencyError(f"Connection refers to missing input {fid}.in[{slot}]")
        return conn

    @staticmethod
    def _resolve_id(function: FunctionRef) -> str:
        if isinstance(function, Function):
            if function.function_id is None:
                raise ValueError(f"{function!r} has no function_id")
            return function.function_id
        return function

    # --- Arrangement / validation ---

    def get_dependencies(self, function: FunctionRef) -> List[str]:
        """Ids of the functions feeding function directly, without duplicates."""
        seen: List[str] = []
        for conn in self._in_by_function.get(self._resolve_id(function), []):
            if conn.source_function not in seen:
                seen.append(conn.source_function)
        return seen

    def arrange(self) -> List[str]:
        """
        Dependency order of the function ids (Kahn, ties broken by pipeline order).

        Does not change topology or the stored order. Raises PipelineLoopError on a cycle.
        """
        in_degree: Dict[str, int] = {fid: 0 for fid in self._order}
        for conn in self._connections:
            in_degree[conn.target_function] += 1
        queue = deque(fid for fid in self._order if in_degree[fid] == 0)
        result: List[str] = []
        while queue:
            fid = queue.popleft()
            result.append(fid)
            for conn in self._out_by_function[fid]:
                in_degree[conn.target_function] -= 1
                if in_degree[conn.target_function] == 0:
                    queue.append(conn.target_function)
        if len(result) != len(self._order):
            remaining = [fid for fid in self._order if fid not in result]
            raise PipelineLoopError(remaining)
        return result

    def validate(self, strict: bool = False) -> ValidationResult:
        """
        Check acyclicity and that every required input is connected.
        Unconnected outputs are reported as warnings.
        If strict=True and there are errors, raise ValueError.
        """
        errors: List[str] = []
        warnings: List[str] = []
        try:
            self.arrange()
        except PipelineLoopError as e:
            errors.append(str(e))
        for function in self.functions:
            for connector in function.inputs:
                if connector.required and not self.get_peers(connector):
                    errors.append(
                        f"Required input {function.function_id}.in[{connector.index}] "
                        f"({connector.type.type_name}) is not connected"
                    )
            for connector in function.outputs:
                if not self.get_peers(connector):
                    warnings.append(
                        f"Output {function.function_id}.out[{connector.index}] "
                        f"({connector.type.type_name}) is not connected"
                    )
        result = ValidationResult(errors=errors, warnings=warnings)
        if strict and result.errors:
            raise ValueError("; ".join(result.errors))
        return result

    def __repr__(self) -> str:
        return (
            f"Pipeline(pipeline_id={self._pipeline_id!r}, functions={len(self._order)}, "
            f"connections={len(self._connections)})"
        )
