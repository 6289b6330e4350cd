"""
Function: one task instance in a pipeline.

- FunctionTemplate describes a task (names, parameter specs, connector specs).
- Function holds the parameter values set by the user or the reader.
- Connectors are derived from the template and the function id; links are kept by Pipeline.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from taskweave.foundation.connector import (
    Connector,
    ConnectorDirection,
    ConnectorSpec,
    ConnectorType,
)


@dataclass(frozen=True)
class ParameterSpec:
    """
    Template-side parameter declaration.

    is_positional marks the slot that takes a value written without a key.
    allows_spaces marks a parameter that swallows the task text verbatim.
    """

    name: str
    default: Optional[str] = None
    is_positional: bool = False
    allows_spaces: bool = False
    description: str = ""

    def __post_init__(self) -> None:
        if not self.name or not self.name.strip():
            raise ValueError("Parameter name must be non-empty")


@dataclass(frozen=True)
class FunctionTemplate:
    """Task descriptor looked up by the registry."""

    name: str
    short_name: Optional[str] = None
    description: str = ""
    parameters: tuple = ()
    inputs: tuple = ()
    outputs: tuple = ()

    def __post_init__(self) -> None:
        if not self.name or not self.name.strip():
            raise ValueError("Task name must be non-empty")
        positional = [p.name for p in self.parameters if p.is_positional]
        if len(positional) > 1:
            raise ValueError(f"Task {self.name!r} declares more than one positional parameter: {positional}")
        names = [p.name.lower() for p in self.parameters]
        if len(set(names)) != len(names):
            raise ValueError(f"Task {self.name!r} declares duplicate parameter names")

    def matches(self, task_name: str) -> bool:
        key = task_name.strip().lower()
        if self.name.lower() == key:
            return True
        return self.short_name is not None and self.short_name.lower() == key

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> FunctionTemplate:
        """
        Build a template from a plain dict (YAML entry):
        name, short_name?, description?, parameters: [{name, default?, positional?, spaces?}],
        inputs / outputs: [type | {type, required?, description?}].
        """
        if "name" not in config:
            raise KeyError("Template config must contain 'name'")
        params = tuple(
            ParameterSpec(
                name=str(p["name"]),
                default=None if p.get("default") is None else str(p["default"]),
                is_positional=bool(p.get("positional", False)),
                allows_spaces=bool(p.get("spaces", False)),
                description=str(p.get("description", "")),
            )
            for p in config.get("parameters") or []
        )
        return cls(
            name=str(config["name"]),
            short_name=config.get("short_name"),
            description=str(config.get("description", "")),
            parameters=params,
            inputs=tuple(_connector_spec(c) for c in config.get("inputs") or []),
            outputs=tuple(_connector_spec(c) for c in config.get("outputs") or []),
        )


def _connector_spec(entry: Any) -> ConnectorSpec:
    if isinstance(entry, str):
        return ConnectorSpec(ConnectorType.parse(entry))
    return ConnectorSpec(
        type=ConnectorType.parse(entry["type"]),
        required=bool(entry.get("required", True)),
        description=str(entry.get("description", "")),
    )


@dataclass
class Parameter:
    """Parameter value on a function; None means unset (template default applies)."""

    spec: ParameterSpec
    explicit_value: Optional[str] = field(default=None)

    @property
    def name(self) -> str:
        return self.spec.name

    @property
    def value(self) -> str:
        if self.explicit_value is not None:
            return self.explicit_value
        return self.spec.default or ""

    @value.setter
    def value(self, value: Optional[str]) -> None:
        self.explicit_value = None if value is None else str(value)

    @property
    def is_default(self) -> bool:
        return self.explicit_value is None or self.explicit_value == (self.spec.default or "")

    @property
    def is_positional(self) -> bool:
        return self.spec.is_positional

    @property
    def allows_spaces(self) -> bool:
        return self.spec.allows_spaces

    def reset(self) -> None:
        self.explicit_value = None


class Function:
    """
    Task instance: template + parameter values + identity in a pipeline.

    function_id is assigned by Pipeline.add_function when not given.
    """

    def __init__(self, template: FunctionTemplate, function_id: Optional[str] = None) -> None:
        self._template = template
        self._function_id = function_id.strip() if function_id else None
        self._parameters = [Parameter(spec) for spec in template.parameters]

    @property
    def function_id(self) -> Optional[str]:
        return self._function_id

    @function_id.setter
    def function_id(self, value: str) -> None:
        if not value or not value.strip():
            raise ValueError("function_id must be non-empty")
        self._function_id = value.strip()

    @property
    def template(self) -> FunctionTemplate:
        return self._template

    @property
    def task_name(self) -> str:
        return self._template.name

    @property
    def short_name(self) -> Optional[str]:
        return self._template.short_name

    @property
    def parameters(self) -> List[Parameter]:
        return list(self._parameters)

    def get_parameter(self, name: str) -> Optional[Parameter]:
        key = name.lower()
        for p in self._parameters:
            if p.name.lower() == key:
                return p
        return None

    @property
    def positional_parameter(self) -> Optional[Parameter]:
        for p in self._parameters:
            if p.is_positional:
                return p
        return None

    def set_parameter(self, name: str, value: Optional[str]) -> None:
        param = self.get_parameter(name)
        if param is None:
            raise KeyError(f"Task {self.task_name!r} has no parameter {name!r}")
        param.value = value

    def parameter_values(self) -> Dict[str, str]:
        return {p.name: p.value for p in self._parameters}

    # --- Connectors ---

    def _connectors(self, direction: ConnectorDirection, specs: tuple) -> List[Connector]:
        if self._function_id is None:
            raise ValueError(f"Function for task {self.task_name!r} has no function_id yet")
        return [
            Connector(
                self._function_id,
                direction,
                spec.type,
                index,
                required=spec.required,
                description=spec.description,
            )
            for index, spec in enumerate(specs)
        ]

    @property
    def inputs(self) -> List[Connector]:
        return self._connectors(ConnectorDirection.IN, self._template.inputs)

    @property
    def outputs(self) -> List[Connector]:
        return self._connectors(ConnectorDirection.OUT, self._template.outputs)

    def get_input(self, index: int) -> Optional[Connector]:
        inputs = self.inputs
        return inputs[index] if 0 <= index < len(inputs) else None

    def get_output(self, index: int) -> Optional[Connector]:
        outputs = self.outputs
        return outputs[index] if 0 <= index < len(outputs) else None

    def __repr__(self) -> str:
        return f"Function(function_id={self.function_id!r}, task={self.task_name!r})"
