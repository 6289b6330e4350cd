"""Pipeline -> command line.

Functions are emitted once everything they read from has been emitted;
a function that is not ready yet goes to the back of the queue. Every
output gets the next pipe number. An output read by several functions is
followed by a ``--tee`` (entity) or ``--tee-change`` (change) line with one
numbered branch per reader; reader ``i`` refers to branch ``first + i``.
"""
from __future__ import annotations

import logging
from collections import deque
from typing import Dict, Iterable, List, Optional, Set

from taskweave.foundation.connector import Connector
from taskweave.foundation.function import Function
from taskweave.foundation.pipeline import Pipeline, PipelineConsistencyError, PipelineLoopError
from taskweave.settings import Settings, SettingType

logger = logging.getLogger(__name__)


class CommandlineWriter:
    """
    Serializes a pipeline into command line text.

    Args:
        settings: consulted for short names, default-value export and the tool path.
        linebreak_symbol / linebreak_command: written between tasks.
        quotation_symbol: wraps values containing whitespace.
        add_tool_path: start with the quoted DEFAULT_TOOL_PATH setting when non-empty.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        *,
        linebreak_symbol: str = "<linebreak>",
        linebreak_command: str = "\n",
        quotation_symbol: str = '"',
        add_tool_path: bool = True,
    ) -> None:
        self.settings = settings or Settings()
        self.linebreak_symbol = linebreak_symbol
        self.linebreak_command = linebreak_command
        self.quotation_symbol = quotation_symbol
        self.add_tool_path = add_tool_path

    @property
    def separator(self) -> str:
        return " " + self.linebreak_symbol + self.linebreak_command

    def write(self, pipeline: Pipeline, functions: Optional[Iterable[Function]] = None) -> str:
        """
        Text for functions (all of pipeline, in pipeline order, by default).
        Only connections between the given functions are written.
        """
        members: List[Function] = list(functions) if functions is not None else pipeline.functions
        for function in members:
            if function not in pipeline:
                raise ValueError(f"{function!r} is not part of the pipeline")
        among: Set[str] = {f.function_id for f in members}

        queue = deque(members)
        emitted: Set[str] = set()
        pipe_ids: Dict[Connector, int] = {}
        blocks: List[str] = []
        counter = 0
        waiting = 0

        tool_path = self.settings.get(SettingType.DEFAULT_TOOL_PATH)
        if self.add_tool_path and tool_path:
            blocks.append(self._quote(tool_path))

        while queue:
            function = queue.popleft()
            if not self._is_ready(pipeline, function, among, emitted):
                queue.append(function)
                waiting += 1
                if waiting > len(queue):
                    raise PipelineLoopError([f.function_id for f in queue])
                continue
            waiting = 0

            parts = ["--" + self._task_name(function)]
            parts.extend(self._parameter_parts(function))
            for connector in function.inputs:
                for peer in pipeline.get_peers(connector, among):
                    offset = pipeline.connection_offset(connector, peer, among)
                    if peer not in pipe_ids:
                        raise PipelineConsistencyError(f"{peer!r} feeds {connector!r} but was never written")
                    parts.append(f"inPipe.{connector.index}={pipe_ids[peer] + offset}")

            tees: List[str] = []
            for connector in function.outputs:
                counter += 1
                parts.append(f"outPipe.{connector.index}={counter}")
                readers = pipeline.get_peers(connector, among)
                if len(readers) <= 1:
                    pipe_ids[connector] = counter
                    continue
                tee_task = connector.type.tee_task
                if tee_task is None:
                    raise PipelineConsistencyError(
                        f"{connector!r} has {len(readers)} readers but its type cannot fan out"
                    )
                pipe_ids[connector] = counter + 1
                tee = [f"--{tee_task}", str(len(readers)), f"inPipe.0={counter}"]
                for branch in range(len(readers)):
                    counter += 1
                    tee.append(f"outPipe.{branch}={counter}")
                tees.append(" ".join(tee))
                logger.debug(f"--{tee_task} for {connector!r} with {len(readers)} branches")

            emitted.add(function.function_id)
            blocks.append(" ".join(parts))
            blocks.extend(tees)

        return self.separator.join(blocks)

    @staticmethod
    def _is_ready(pipeline: Pipeline, function: Function, among: Set[str], emitted: Set[str]) -> bool:
        for connector in function.inputs:
            for peer in pipeline.get_peers(connector, among):
                if peer.function_id not in emitted:
                    return False
        return True

    def _task_name(self, function: Function) -> str:
        if self.settings.get(SettingType.USE_SHORT_TASK_NAMES) and function.short_name:
            return function.short_name
        return function.task_name

    def _parameter_parts(self, function: Function) -> List[str]:
        export_defaults = self.settings.get(SettingType.EXPORT_PARAMETERS_WITH_DEFAULT_VALUES)
        parts: List[str] = []
        for param in function.parameters:
            if param.is_default and not export_defaults:
                continue
            value = param.value
            if value == "":
                if not param.is_default and not param.allows_spaces:
                    parts.append(f"{param.name}={self.quotation_symbol * 2}")
                continue
            if param.allows_spaces and param.is_positional:
                parts.append(value)
            else:
                parts.append(f"{param.name}={self._quote(value)}")
        return parts

    def _quote(self, value: str) -> str:
        if any(ch.isspace() for ch in value):
            return self.quotation_symbol + value + self.quotation_symbol
        return value
