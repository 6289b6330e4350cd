"""Parse errors: one exception type, distinguished by ErrorType."""
from __future__ import annotations

from enum import Enum
from typing import Any

from taskweave.i18n import translate


class ErrorType(str, Enum):
    UNKNOWN_TASK = "UNKNOWN_TASK"
    UNKNOWN_PIPE_STREAM = "UNKNOWN_PIPE_STREAM"
    NO_DEFAULT_PARAMETER = "NO_DEFAULT_PARAMETER"
    UNKNOWN_PARAMETER = "UNKNOWN_PARAMETER"
    MISSING_COUNTERPART_PIPE = "MISSING_COUNTERPART_PIPE"
    CONNECTION_NOT_PERMITTED = "CONNECTION_NOT_PERMITTED"
    LOOP_DETECTED = "LOOP_DETECTED"
    INVALID_VALUE = "INVALID_VALUE"
    UNCONNECTED_INPUT = "UNCONNECTED_INPUT"


class ParseError(ValueError):
    """
    Reading a command line failed. The whole parse is aborted.

    Attributes:
        error_type: kind of failure.
        context: task name first, then kind-specific details.
    """

    def __init__(self, error_type: ErrorType, *context: Any) -> None:
        self.error_type = error_type
        self.context = context
        super().__init__(translate(f"Parser.Error.{error_type.value}", *context))

    @property
    def task_name(self) -> Any:
        return self.context[0] if self.context else None
