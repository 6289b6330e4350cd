"""Tokenizer for osmosis-style command lines.

A command line is a sequence of tasks::

    osmosis --read-xml file=a.osm outPipe.0=x <linebreak>
    --write-xml inPipe.0=x b.osm

Each task is ``--<name>`` followed by its parameter text up to the next
``--`` that starts a word. Parameter tokens are, first match wins:
``key='value'``, ``key="value"``, ``key=value``, ``'value'``, ``"value"``,
``value``. Keys of the form ``inPipe.<n>`` / ``outPipe.<n>`` are pipe
references rather than parameters.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Iterator, List, Optional

from taskweave.foundation.connector import ConnectorDirection

logger = logging.getLogger(__name__)

_TASK = re.compile(r"(?:^|(?<=\s))--(\S+)(.*?)(?=\s--|\Z)", re.DOTALL)

_PARAMETER = re.compile(
    r"""
      (?P<sq_key>[^=\s]+)='(?P<sq_value>[^']*)'
    | (?P<dq_key>[^=\s]+)="(?P<dq_value>[^"]*)"
    | (?P<bare_key>[^=\s]+)=(?P<bare_value>\S+)
    | '(?P<sq>[^']*)'
    | "(?P<dq>[^"]*)"
    | (?P<bare>\S+)
    """,
    re.VERBOSE,
)

_PIPE_KEY = re.compile(r"^(in|out)pipe\.(\d+)$", re.IGNORECASE)

_PIPE_KEYWORD = re.compile(r"(?:in|out)pipe", re.IGNORECASE)


@dataclass(frozen=True)
class Token:
    """One parameter token; key None marks the positional value."""

    key: Optional[str]
    value: str


@dataclass(frozen=True)
class PipeReference:
    direction: ConnectorDirection
    slot: int
    label: str


@dataclass
class TaskToken:
    """A task with its raw parameter text, split into parameters and pipes."""

    name: str
    text: str
    parameters: List[Token] = field(default_factory=list)
    in_pipes: List[PipeReference] = field(default_factory=list)
    out_pipes: List[PipeReference] = field(default_factory=list)

    def in_pipe_at(self, slot: int) -> Optional[PipeReference]:
        for ref in self.in_pipes:
            if ref.slot == slot:
                return ref
        return None

    def out_pipe_at(self, slot: int) -> Optional[PipeReference]:
        for ref in self.out_pipes:
            if ref.slot == slot:
                return ref
        return None

    def parameter(self, key: Optional[str]) -> Optional[str]:
        """Value of the last token with this key (case-insensitive); None key -> positional."""
        found = None
        for token in self.parameters:
            if token.key is None and key is None:
                found = token.value
            elif token.key is not None and key is not None and token.key.lower() == key.lower():
                found = token.value
        return found


def normalize(text: str, linebreak_symbol: str) -> str:
    """
    Replace the dialect's line-break marker with a space where it ends a line
    or stands alone as a word. Inside a value (C:\\data\\a.osm) it is kept.
    """
    if linebreak_symbol:
        marker = re.escape(linebreak_symbol)
        text = re.sub(rf"{marker}[ \t]*\r?\n|(?:^|(?<=\s)){marker}(?=\s|\Z)", " ", text)
    return text


def iter_parameters(text: str) -> Iterator[Token]:
    for match in _PARAMETER.finditer(text):
        groups = match.groupdict()
        for key_group, value_group in (
            ("sq_key", "sq_value"),
            ("dq_key", "dq_value"),
            ("bare_key", "bare_value"),
        ):
            if groups[key_group] is not None:
                yield Token(groups[key_group].strip(), groups[value_group].strip())
                break
        else:
            for value_group in ("sq", "dq", "bare"):
                if groups[value_group] is not None:
                    yield Token(None, groups[value_group].strip())
                    break


def parse_pipe_key(key: Optional[str]) -> Optional[tuple]:
    """(direction, slot) when key is an inPipe/outPipe reference, else None."""
    if key is None:
        return None
    match = _PIPE_KEY.match(key)
    if match is None:
        return None
    direction = ConnectorDirection.IN if match.group(1).lower() == "in" else ConnectorDirection.OUT
    return direction, int(match.group(2))


def split_spaces_text(text: str) -> str:
    """Task text before the first inPipe/outPipe keyword, trimmed."""
    return _PIPE_KEYWORD.split(text, maxsplit=1)[0].strip()


def tokenize(text: str, linebreak_symbol: str = "<linebreak>") -> List[TaskToken]:
    """Split a command line into tasks; text before the first task is ignored."""
    tasks: List[TaskToken] = []
    for match in _TASK.finditer(normalize(text, linebreak_symbol)):
        task = TaskToken(name=match.group(1).lower(), text=match.group(2).strip())
        for token in iter_parameters(task.text):
            pipe = parse_pipe_key(token.key)
            if pipe is None:
                task.parameters.append(token)
                continue
            direction, slot = pipe
            ref = PipeReference(direction, slot, token.value)
            if direction == ConnectorDirection.IN:
                task.in_pipes.append(ref)
            else:
                task.out_pipes.append(ref)
        logger.debug(
            f"Task --{task.name}: {len(task.parameters)} parameter(s), "
            f"in={[r.label for r in task.in_pipes]}, out={[r.label for r in task.out_pipes]}"
        )
        tasks.append(task)
    return tasks
