"""Command line dialects: reader + writer sharing one set of format symbols.

- ``commandline``: ``<linebreak>`` marker between tasks (the plain form).
- ``bash``: shell line continuation ``\\``.
- ``cmd``: Windows batch line continuation ``^``.
"""
from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Type

from taskweave.foundation.function import Function
from taskweave.foundation.pipeline import Pipeline
from taskweave.foundation.registry import FunctionRegistry
from taskweave.parser.reader import CommandlineReader
from taskweave.parser.writer import CommandlineWriter
from taskweave.settings import Settings


class CommandlineParser:
    """
    Converts between command line text and pipelines.

    Example::

        parser = CommandlineParser()
        pipeline = parser.parse_string("--rx a.osm --wx b.osm")
        text = parser.parse_pipeline(pipeline)
    """

    name = "commandline"
    linebreak_symbol = "<linebreak>"
    linebreak_command = "\n"
    quotation_symbol = '"'

    def __init__(
        self,
        registry: Optional[FunctionRegistry] = None,
        settings: Optional[Settings] = None,
        *,
        add_tool_path: bool = True,
        strict_inputs: bool = False,
    ) -> None:
        self.registry = registry or FunctionRegistry.global_registry()
        self.settings = settings or Settings()
        self.add_tool_path = add_tool_path
        self.strict_inputs = strict_inputs

    def reader(self) -> CommandlineReader:
        return CommandlineReader(
            self.registry,
            linebreak_symbol=self.linebreak_symbol,
            strict_inputs=self.strict_inputs,
        )

    def writer(self) -> CommandlineWriter:
        return CommandlineWriter(
            self.settings,
            linebreak_symbol=self.linebreak_symbol,
            linebreak_command=self.linebreak_command,
            quotation_symbol=self.quotation_symbol,
            add_tool_path=self.add_tool_path,
        )

    def parse_string(self, text: str) -> Pipeline:
        """Text -> new Pipeline (functions in the order they appear). Raises ParseError."""
        return self.reader().read(text)

    def parse_functions(self, text: str) -> List[Function]:
        return self.parse_string(text).functions

    def parse_pipeline(self, pipeline: Pipeline, functions: Optional[Iterable[Function]] = None) -> str:
        """Pipeline (or an ordered subset of its functions) -> text."""
        return self.writer().write(pipeline, functions)


class BashParser(CommandlineParser):
    name = "bash"
    linebreak_symbol = "\\"


class CmdParser(CommandlineParser):
    name = "cmd"
    linebreak_symbol = "^"
    linebreak_command = "\r\n"


_DIALECTS: Dict[str, Type[CommandlineParser]] = {
    cls.name: cls for cls in (CommandlineParser, BashParser, CmdParser)
}


def list_dialects() -> List[str]:
    return sorted(_DIALECTS)


def get_parser(dialect: str = "commandline", **kwargs) -> CommandlineParser:
    """Parser for a dialect name; kwargs go to the constructor."""
    cls = _DIALECTS.get(dialect.lower())
    if cls is None:
        raise KeyError(f"Unknown dialect: {dialect!r}. Known: {list_dialects()}")
    return cls(**kwargs)
