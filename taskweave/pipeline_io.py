"""Read and write command line files.

The dialect follows the file suffix unless given explicitly:
``.sh`` -> bash, ``.bat`` / ``.cmd`` -> cmd, anything else -> commandline.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Union

from taskweave.foundation.pipeline import Pipeline
from taskweave.foundation.registry import FunctionRegistry
from taskweave.parser.commandline import get_parser
from taskweave.settings import Settings

logger = logging.getLogger(__name__)

_SUFFIX_DIALECTS = {
    ".sh": "bash",
    ".bash": "bash",
    ".bat": "cmd",
    ".cmd": "cmd",
}


def dialect_for_path(path: Union[str, Path]) -> str:
    return _SUFFIX_DIALECTS.get(Path(path).suffix.lower(), "commandline")


def import_pipeline(
    path: Union[str, Path],
    *,
    registry: Optional[FunctionRegistry] = None,
    settings: Optional[Settings] = None,
    dialect: Optional[str] = None,
    strict_inputs: bool = False,
) -> Pipeline:
    """Parse a command line file into a new Pipeline. Raises ParseError on bad content."""
    path = Path(path)
    dialect = dialect or dialect_for_path(path)
    text = path.read_text(encoding="utf-8")
    parser = get_parser(dialect, registry=registry, settings=settings, strict_inputs=strict_inputs)
    pipeline = parser.parse_string(text)
    logger.info(f"Imported {len(pipeline)} function(s) from {path} ({dialect})")
    return pipeline


def export_pipeline(
    pipeline: Pipeline,
    path: Union[str, Path],
    *,
    settings: Optional[Settings] = None,
    dialect: Optional[str] = None,
    add_tool_path: bool = True,
) -> str:
    """Write pipeline to path; returns the text written."""
    path = Path(path)
    dialect = dialect or dialect_for_path(path)
    parser = get_parser(dialect, settings=settings, add_tool_path=add_tool_path)
    text = parser.parse_pipeline(pipeline)
    path.write_text(text + parser.linebreak_command, encoding="utf-8")
    logger.info(f"Exported {len(pipeline)} function(s) to {path} ({dialect})")
    return text
