"""
Connectors: typed endpoints of a function.

- ConnectorType carries the per-type capacity bounds (max_in / max_out).
- Connector is one endpoint (direction, type, slot index) owned by a function id.
- Links live in the pipeline's connection table; a connector never stores peers itself.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class ConnectorDirection(str, Enum):
    IN = "in"
    OUT = "out"


class ConnectorType(Enum):
    """Pipe category with its capacity bounds: (name, max_in, max_out)."""

    ENTITY = ("entity", 1, 1024)
    CHANGE = ("change", 1, 1024)
    DATASET = ("dataset", 1, 1)

    def __init__(self, type_name: str, max_in: int, max_out: int) -> None:
        self.type_name = type_name
        self.max_in = max_in
        self.max_out = max_out

    @property
    def tee_task(self) -> Optional[str]:
        """Task name of the fan-out adapter for this type, None if it cannot fan out."""
        return _TEE_TASKS.get(self)

    @classmethod
    def parse(cls, value: str) -> ConnectorType:
        key = (value or "").strip().lower()
        for member in cls:
            if member.type_name == key:
                return member
        known = ", ".join(m.type_name for m in cls)
        raise ValueError(f"Unknown connector type: {value!r}. Known: {known}")

    @classmethod
    def for_tee_task(cls, task_name: str) -> Optional[ConnectorType]:
        for member, tee in _TEE_TASKS.items():
            if tee == task_name:
                return member
        return None

    def __repr__(self) -> str:
        return f"ConnectorType.{self.name}"


_TEE_TASKS = {
    ConnectorType.ENTITY: "tee",
    ConnectorType.CHANGE: "tee-change",
}


class ConnectionRejection(str, Enum):
    """Why Pipeline.connect refused a link."""

    NOT_IN_PIPELINE = "not_in_pipeline"
    SAME_FUNCTION = "same_function"
    NO_SUCH_CONNECTOR = "no_such_connector"
    TYPE_MISMATCH = "type_mismatch"
    FULL = "full"
    ALREADY_CONNECTED = "already_connected"


class ConnectorError(ValueError):
    """Connection refused. The pipeline is left unchanged."""

    def __init__(self, reason: ConnectionRejection, message: str) -> None:
        super().__init__(message)
        self.reason = reason


@dataclass(frozen=True)
class ConnectorSpec:
    """Template-side declaration of a connector."""

    type: ConnectorType
    required: bool = True
    description: str = ""


@dataclass(frozen=True, eq=False)
class Connector:
    """
    One endpoint of a function: owner id, direction, type, dense slot index.

    Equality is by (function_id, direction, index), so a connector can be
    looked up again from the pipeline's connection table.
    """

    function_id: str
    direction: ConnectorDirection
    type: ConnectorType
    index: int
    required: bool = True
    description: str = ""

    def __post_init__(self) -> None:
        if self.index < 0:
            raise ValueError("Connector index must be non-negative")

    @property
    def is_input(self) -> bool:
        return self.direction == ConnectorDirection.IN

    @property
    def is_output(self) -> bool:
        return self.direction == ConnectorDirection.OUT

    @property
    def key(self) -> tuple:
        return (self.function_id, self.direction, self.index)

    @property
    def max_connections(self) -> int:
        return self.type.max_in if self.is_input else self.type.max_out

    def compatible_with(self, other: Connector) -> bool:
        """True if self (source, OUT) can link to other (target, IN) of the same type."""
        if not self.is_output or not other.is_input:
            return False
        return self.type == other.type

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Connector):
            return NotImplemented
        return self.key == other.key

    def __hash__(self) -> int:
        return hash(self.key)

    def __repr__(self) -> str:
        return f"Connector({self.function_id}.{self.direction.value}[{self.index}], {self.type.type_name})"
