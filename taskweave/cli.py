"""Command line entry point.

Usage::

    taskweave convert pipeline.txt --to bash -o pipeline.sh
    taskweave check pipeline.sh
    taskweave tasks
"""
from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional

from taskweave import __version__
from taskweave.foundation.registry import FunctionRegistry
from taskweave.parser.commandline import get_parser, list_dialects
from taskweave.parser.errors import ParseError
from taskweave.pipeline_io import dialect_for_path, import_pipeline
from taskweave.settings import Settings, SettingType

logger = logging.getLogger(__name__)


def _build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="taskweave",
        description="Convert and check osmosis-style pipeline command lines",
    )
    parser.add_argument("--version", action="version", version=f"taskweave {__version__}")
    parser.add_argument("--templates", help="YAML task catalogue (default: bundled osmosis tasks)")
    parser.add_argument("--settings", help="YAML settings file")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    convert = sub.add_parser("convert", help="Re-emit a command line, optionally in another dialect")
    convert.add_argument("input", help="Command line file")
    convert.add_argument("-o", "--output", help="Output file (default: stdout)")
    convert.add_argument("--from", dest="source_dialect", choices=list_dialects(), help="Input dialect")
    convert.add_argument("--to", dest="target_dialect", choices=list_dialects(), help="Output dialect")
    convert.add_argument("--short-names", action="store_true", help="Prefer short task names")
    convert.add_argument("--export-defaults", action="store_true", help="Write parameters at default values")
    convert.add_argument("--no-tool-path", action="store_true", help="Do not prepend the tool path")

    check = sub.add_parser("check", help="Parse and validate a command line file")
    check.add_argument("input", help="Command line file")
    check.add_argument("--from", dest="source_dialect", choices=list_dialects(), help="Input dialect")
    check.add_argument("--strict-inputs", action="store_true", help="Fail on unconnected required inputs")

    sub.add_parser("tasks", help="List known tasks")
    return parser


def _convert(args: argparse.Namespace, registry: FunctionRegistry, settings: Settings) -> int:
    if args.short_names:
        settings.set(SettingType.USE_SHORT_TASK_NAMES, True)
    if args.export_defaults:
        settings.set(SettingType.EXPORT_PARAMETERS_WITH_DEFAULT_VALUES, True)
    pipeline = import_pipeline(args.input, registry=registry, dialect=args.source_dialect)
    target = args.target_dialect or (dialect_for_path(args.output) if args.output else "commandline")
    writer = get_parser(target, registry=registry, settings=settings, add_tool_path=not args.no_tool_path)
    text = writer.parse_pipeline(pipeline)
    if args.output:
        with open(args.output, "w", encoding="utf-8") as f:
            f.write(text + writer.linebreak_command)
        logger.info(f"Wrote {args.output}")
    else:
        print(text)
    return 0


def _check(args: argparse.Namespace, registry: FunctionRegistry) -> int:
    pipeline = import_pipeline(
        args.input,
        registry=registry,
        dialect=args.source_dialect,
        strict_inputs=args.strict_inputs,
    )
    result = pipeline.validate()
    for warning in result.warnings:
        print(f"warning: {warning}")
    for error in result.errors:
        print(f"error: {error}")
    print(f"{len(pipeline)} function(s), {len(pipeline.get_connections())} connection(s)")
    return 0 if result.is_valid else 1


def _tasks(registry: FunctionRegistry) -> int:
    for template in registry.templates:
        short = f" ({template.short_name})" if template.short_name else ""
        print(f"--{template.name}{short}  {template.description}")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = _build_arg_parser().parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)

    registry = FunctionRegistry.from_yaml(args.templates) if args.templates else FunctionRegistry.global_registry()
    settings = Settings.load(args.settings) if args.settings else Settings()

    try:
        if args.command == "convert":
            return _convert(args, registry, settings)
        if args.command == "check":
            return _check(args, registry)
        return _tasks(registry)
    except ParseError as e:
        print(f"error: {e}", file=sys.stderr)
        return 2
    except OSError as e:
        print(f"error: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
