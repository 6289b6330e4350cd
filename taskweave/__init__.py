"""
taskweave: osmosis-style pipeline command lines <-> typed function graphs.

Levels: foundation (connectors, functions, pipeline, registry) -> parser
(tokenizer, reader, writer, dialects) -> pipeline_io / cli.
"""

__version__ = "0.1.0"

from taskweave.foundation import (
    Connection,
    ConnectionRejection,
    Connector,
    ConnectorDirection,
    ConnectorError,
    ConnectorType,
    Function,
    FunctionRegistry,
    FunctionTemplate,
    Parameter,
    ParameterSpec,
    Pipeline,
    PipelineConsistencyError,
    PipelineLoopError,
    ValidationResult,
)
from taskweave.parser import CommandlineParser, ErrorType, ParseError, get_parser
from taskweave.settings import Settings, SettingType, UnparsableFormatError

__all__ = [
    "__version__",
    "Connection",
    "ConnectionRejection",
    "Connector",
    "ConnectorDirection",
    "ConnectorError",
    "ConnectorType",
    "Function",
    "FunctionRegistry",
    "FunctionTemplate",
    "Parameter",
    "ParameterSpec",
    "Pipeline",
    "PipelineConsistencyError",
    "PipelineLoopError",
    "ValidationResult",
    "CommandlineParser",
    "ErrorType",
    "ParseError",
    "get_parser",
    "Settings",
    "SettingType",
    "UnparsableFormatError",
]
