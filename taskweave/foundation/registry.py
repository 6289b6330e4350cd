"""
Function Registry: task name -> FunctionTemplate; build Function instances.

- register(template), lookup(task_name) by name or short name (case-insensitive).
- from_yaml(path) / load_yaml(path): template catalogues through OmegaConf.
- default(): the bundled osmosis catalogue.
"""

from __future__ import annotations

import logging
from difflib import get_close_matches
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from omegaconf import OmegaConf

from taskweave.foundation.function import Function, FunctionTemplate

logger = logging.getLogger(__name__)

DEFAULT_CATALOGUE = Path(__file__).resolve().parent.parent / "templates" / "osmosis.yaml"


class FunctionRegistry:
    """
    Maps task names (and short names) to templates.
    build(task_name) creates a fresh Function with unset parameters.
    """

    _global: Optional["FunctionRegistry"] = None

    def __init__(self) -> None:
        self._templates: Dict[str, FunctionTemplate] = {}
        self._short_names: Dict[str, str] = {}

    @classmethod
    def global_registry(cls) -> FunctionRegistry:
        """Process-wide registry, seeded with the bundled catalogue on first use."""
        if cls._global is None:
            cls._global = cls.default()
        return cls._global

    @classmethod
    def default(cls) -> FunctionRegistry:
        return cls.from_yaml(DEFAULT_CATALOGUE)

    @classmethod
    def from_yaml(cls, path: Union[str, Path]) -> FunctionRegistry:
        reg = cls()
        reg.load_yaml(path)
        return reg

    def load_yaml(self, path: Union[str, Path]) -> int:
        """
        Register every template of a YAML catalogue (top-level key "tasks").
        Returns the number of templates loaded.
        """
        config = OmegaConf.to_container(OmegaConf.load(path), resolve=True)
        if not isinstance(config, dict):
            raise ValueError(f"Template catalogue {path} must be a mapping with a 'tasks' list")
        entries: List[Dict[str, Any]] = config.get("tasks") or []
        for entry in entries:
            self.register(FunctionTemplate.from_config(entry))
        logger.debug(f"Loaded {len(entries)} task templates from {path}")
        return len(entries)

    def register(self, template: FunctionTemplate) -> None:
        key = template.name.strip().lower()
        if key in ("tee", "tee-change"):
            raise ValueError(f"{template.name!r} is reserved for fan-out adapters")
        self._templates[key] = template
        if template.short_name:
            self._short_names[template.short_name.strip().lower()] = key

    def lookup(self, task_name: str) -> Optional[FunctionTemplate]:
        """Template for a task name or short name, None if unknown."""
        key = task_name.strip().lower()
        if key in self._templates:
            return self._templates[key]
        full = self._short_names.get(key)
        return self._templates.get(full) if full else None

    def build(self, task_name: str) -> Function:
        template = self.lookup(task_name)
        if template is None:
            similar = get_close_matches(task_name.lower(), list(self._templates), n=3, cutoff=0.6)
            msg = f"Unknown task: {task_name!r}."
            if similar:
                msg += f" Did you mean: {', '.join(similar)}?"
            raise KeyError(msg)
        return Function(template)

    @property
    def templates(self) -> List[FunctionTemplate]:
        return [self._templates[k] for k in sorted(self._templates)]

    def __contains__(self, task_name: str) -> bool:
        return self.lookup(task_name) is not None

    def __len__(self) -> int:
        return len(self._templates)
