"""
Command line <-> pipeline conversion.

tokenizer (tasks, parameters, pipe references) -> reader (graph construction)
and writer (dependency-ordered text with tee synthesis); commandline wraps both
per dialect.
"""

from taskweave.parser.errors import ErrorType, ParseError
from taskweave.parser.tokenizer import PipeReference, TaskToken, Token, tokenize
from taskweave.parser.reader import CommandlineReader
from taskweave.parser.writer import CommandlineWriter
from taskweave.parser.commandline import (
    BashParser,
    CmdParser,
    CommandlineParser,
    get_parser,
    list_dialects,
)

__all__ = [
    "ErrorType",
    "ParseError",
    "PipeReference",
    "TaskToken",
    "Token",
    "tokenize",
    "CommandlineReader",
    "CommandlineWriter",
    "BashParser",
    "CmdParser",
    "CommandlineParser",
    "get_parser",
    "list_dialects",
]
