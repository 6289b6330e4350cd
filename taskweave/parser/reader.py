"""Command line -> Pipeline.

Tasks are read left to right. Outputs are found for inputs in two ways:

- explicit labels: ``outPipe.0=x`` on the producer, ``inPipe.0=x`` on the consumer;
- implicit: an input without a label takes the oldest still-open output of
  the same connector type (FIFO per type).

``--tee`` / ``--tee-change`` never become functions: they bind their output
labels to the producer they read from, or put that producer back on the
open-output queue once per unlabeled branch. Readers of labeled branches
are kept in branch order on the producer.
"""
from __future__ import annotations

import logging
from collections import deque
from typing import Deque, Dict, List, Optional, Tuple

from taskweave.foundation.connector import ConnectorError, ConnectorType
from taskweave.foundation.function import Function
from taskweave.foundation.pipeline import Connection, Pipeline, PipelineLoopError
from taskweave.foundation.registry import FunctionRegistry
from taskweave.i18n import translate
from taskweave.parser.errors import ErrorType, ParseError
from taskweave.parser.tokenizer import TaskToken, split_spaces_text, tokenize

logger = logging.getLogger(__name__)

# (function_id, output slot)
Endpoint = Tuple[str, int]

DEFAULT_TEE_OUTPUTS = 2


class _ReadState:
    """Per-call resolution state: label -> producer, open outputs per type."""

    def __init__(self) -> None:
        self.labels: Dict[str, Endpoint] = {}
        # tee output label -> branch number
        self.branches: Dict[str, int] = {}
        self.branched: Dict[Endpoint, List[Tuple[int, Connection]]] = {}
        self.pending: Dict[ConnectorType, Deque[Endpoint]] = {t: deque() for t in ConnectorType}

    def take_pending(self, connector_type: ConnectorType) -> Optional[Endpoint]:
        queue = self.pending[connector_type]
        return queue.popleft() if queue else None


class CommandlineReader:
    """
    Builds a Pipeline from command line text.

    Args:
        registry: task templates; the global registry by default.
        linebreak_symbol: dialect marker replaced by a space before scanning.
        strict_inputs: raise UNCONNECTED_INPUT when a required input finds
            neither a label nor an open output (default: leave it unconnected).
    """

    def __init__(
        self,
        registry: Optional[FunctionRegistry] = None,
        *,
        linebreak_symbol: str = "<linebreak>",
        strict_inputs: bool = False,
    ) -> None:
        self.registry = registry or FunctionRegistry.global_registry()
        self.linebreak_symbol = linebreak_symbol
        self.strict_inputs = strict_inputs

    def read(self, text: str, pipeline_id: Optional[str] = None) -> Pipeline:
        """
        Parse text into a new Pipeline whose function order is instantiation order.
        Raises ParseError; nothing is returned on failure.
        """
        pipeline = Pipeline(pipeline_id)
        state = _ReadState()
        for task in tokenize(text, self.linebreak_symbol):
            tee_type = ConnectorType.for_tee_task(task.name)
            if tee_type is not None:
                self._read_tee(task, tee_type, pipeline, state)
            else:
                self._read_task(task, pipeline, state)
        for source, branches in state.branched.items():
            ordered = [conn for _, conn in sorted(branches, key=lambda item: item[0])]
            pipeline.reorder_connections(pipeline.get_function(source[0]).get_output(source[1]), ordered)
        try:
            pipeline.arrange()
        except PipelineLoopError as e:
            names = [pipeline.get_function(fid).task_name for fid in e.function_ids]
            raise ParseError(ErrorType.LOOP_DETECTED, ", ".join(names)) from e
        logger.debug(f"Read {len(pipeline)} function(s), {len(pipeline.get_connections())} connection(s)")
        return pipeline

    def read_functions(self, text: str) -> List[Function]:
        return self.read(text).functions

    # --- tee / tee-change ---

    def _read_tee(
        self,
        task: TaskToken,
        tee_type: ConnectorType,
        pipeline: Pipeline,
        state: _ReadState,
    ) -> None:
        count = self._tee_output_count(task)
        source = state.labels.get(task.in_pipes[-1].label) if task.in_pipes else None
        if source is None:
            source = state.take_pending(tee_type)
        if source is None:
            raise ParseError(ErrorType.UNKNOWN_PIPE_STREAM, task.name)
        source_function = pipeline.get_function(source[0])
        if source_function.get_output(source[1]).type != tee_type:
            raise ParseError(
                ErrorType.CONNECTION_NOT_PERMITTED,
                source_function.task_name,
                task.name,
                translate("Pipeline.Connect.type_mismatch"),
            )
        for ref in task.out_pipes:
            state.labels[ref.label] = source
            state.branches[ref.label] = ref.slot
        remaining = count - len(task.out_pipes)
        for _ in range(remaining):
            state.pending[tee_type].append(source)
        logger.debug(
            f"--{task.name} on {source[0]}.out[{source[1]}]: "
            f"{len(task.out_pipes)} labeled, {max(remaining, 0)} open branch(es)"
        )

    @staticmethod
    def _tee_output_count(task: TaskToken) -> int:
        raw = task.parameter(None)
        key = "outputCount"
        if raw is None:
            raw = task.parameter(key)
        if raw is None:
            return DEFAULT_TEE_OUTPUTS
        try:
            count = int(raw)
        except ValueError:
            raise ParseError(ErrorType.INVALID_VALUE, task.name, key, raw) from None
        if count < 1:
            raise ParseError(ErrorType.INVALID_VALUE, task.name, key, raw)
        return count

    # --- ordinary tasks ---

    def _read_task(self, task: TaskToken, pipeline: Pipeline, state: _ReadState) -> None:
        template = self.registry.lookup(task.name)
        if template is None:
            raise ParseError(ErrorType.UNKNOWN_TASK, task.name)
        function = Function(template)
        fid = pipeline.add_function(function)
        self._assign_parameters(function, task)

        for ref in task.in_pipes:
            source = state.labels.get(ref.label)
            if source is None:
                raise ParseError(ErrorType.MISSING_COUNTERPART_PIPE, task.name, ref.label)
            conn = self._connect(pipeline, source, fid, ref.slot)
            if ref.label in state.branches:
                state.branched.setdefault(source, []).append((state.branches[ref.label], conn))

        for connector in function.inputs:
            if task.in_pipe_at(connector.index) is not None:
                continue
            source = state.take_pending(connector.type)
            if source is not None:
                logger.debug(f"Implicit {connector.type.type_name} pipe {source[0]} -> {fid}")
                self._connect(pipeline, source, fid, connector.index)
            elif connector.required and self.strict_inputs:
                raise ParseError(ErrorType.UNCONNECTED_INPUT, task.name, connector.index)
            else:
                logger.debug(f"No open {connector.type.type_name} output for {fid}.in[{connector.index}]")

        for ref in task.out_pipes:
            if function.get_output(ref.slot) is None:
                raise ParseError(
                    ErrorType.CONNECTION_NOT_PERMITTED,
                    function.task_name,
                    ref.label,
                    translate("Pipeline.Connect.no_such_connector"),
                )
            state.labels[ref.label] = (fid, ref.slot)
            state.branches.pop(ref.label, None)

        for connector in function.outputs:
            if task.out_pipe_at(connector.index) is None:
                state.pending[connector.type].append((fid, connector.index))

    @staticmethod
    def _assign_parameters(function: Function, task: TaskToken) -> None:
        spaces = [p for p in function.parameters if p.allows_spaces]
        if len(spaces) == 1:
            spaces[0].value = split_spaces_text(task.text) or None
            return
        for token in task.parameters:
            if token.key is None:
                param = function.positional_parameter
                if param is None:
                    raise ParseError(ErrorType.NO_DEFAULT_PARAMETER, task.name, token.value)
            else:
                param = function.get_parameter(token.key)
                if param is None:
                    raise ParseError(ErrorType.UNKNOWN_PARAMETER, task.name, token.key)
            param.value = token.value

    @staticmethod
    def _connect(
        pipeline: Pipeline,
        source: Endpoint,
        target_id: str,
        target_slot: int,
    ) -> Connection:
        try:
            return pipeline.connect(source[0], target_id, source[1], target_slot)
        except ConnectorError as e:
            raise ParseError(
                ErrorType.CONNECTION_NOT_PERMITTED,
                pipeline.get_function(source[0]).task_name,
                pipeline.get_function(target_id).task_name,
                translate(f"Pipeline.Connect.{e.reason.value}"),
            ) from e
