"""
Foundation level: ConnectorType, Connector, Function, Pipeline, Registry.
"""

from taskweave.foundation.connector import (
    ConnectionRejection,
    Connector,
    ConnectorDirection,
    ConnectorError,
    ConnectorSpec,
    ConnectorType,
)
from taskweave.foundation.function import (
    Function,
    FunctionTemplate,
    Parameter,
    ParameterSpec,
)
from taskweave.foundation.registry import FunctionRegistry
from taskweave.foundation.pipeline import (
    Connection,
    Pipeline,
    PipelineConsistencyError,
    PipelineLoopError,
    ValidationResult,
)

__all__ = [
    "ConnectionRejection",
    "Connector",
    "ConnectorDirection",
    "ConnectorError",
    "ConnectorSpec",
    "ConnectorType",
    "Function",
    "FunctionTemplate",
    "Parameter",
    "ParameterSpec",
    "FunctionRegistry",
    "Connection",
    "Pipeline",
    "PipelineConsistencyError",
    "PipelineLoopError",
    "ValidationResult",
]
