"""Message lookup for user-facing texts.

Errors carry a kind and arguments; the wording comes from the active
catalogue. Replace it with :func:`set_catalog` to localize.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

ENGLISH: Dict[str, str] = {
    "Parser.Error.UNKNOWN_TASK": "Unknown task '--{0}'.",
    "Parser.Error.UNKNOWN_PIPE_STREAM": "Task '--{0}' has no stream to read from.",
    "Parser.Error.NO_DEFAULT_PARAMETER": "Task '--{0}' does not take a value without a key.",
    "Parser.Error.UNKNOWN_PARAMETER": "Task '--{0}' has no parameter '{1}'.",
    "Parser.Error.MISSING_COUNTERPART_PIPE": "Task '--{0}' reads pipe '{1}' which is never written.",
    "Parser.Error.CONNECTION_NOT_PERMITTED": "Cannot connect '--{0}' to '--{1}': {2}",
    "Parser.Error.LOOP_DETECTED": "The pipeline contains a loop: {0}",
    "Parser.Error.INVALID_VALUE": "Task '--{0}' has an invalid value for '{1}': {2}",
    "Parser.Error.UNCONNECTED_INPUT": "Input {1} of task '--{0}' is not connected.",
    "Pipeline.Connect.not_in_pipeline": "the function is not part of the pipeline",
    "Pipeline.Connect.same_function": "a function cannot be connected to itself",
    "Pipeline.Connect.no_such_connector": "there is no matching connector",
    "Pipeline.Connect.type_mismatch": "the connector types differ",
    "Pipeline.Connect.full": "the connector has no free connection left",
    "Pipeline.Connect.already_connected": "the connectors are already connected",
}


class MessageCatalog:
    """Key -> format string; positional arguments fill {0}, {1}, ..."""

    def __init__(self, messages: Optional[Dict[str, str]] = None) -> None:
        self._messages: Dict[str, str] = dict(ENGLISH if messages is None else messages)

    def update(self, messages: Dict[str, str]) -> None:
        self._messages.update(messages)

    def get(self, key: str, *args: Any) -> str:
        template = self._messages.get(key)
        if template is None:
            logger.debug(f"No message for key {key!r}")
            return " ".join([key, *(str(a) for a in args)])
        try:
            return template.format(*args)
        except IndexError:
            logger.debug(f"Message {key!r} expects more arguments than {args!r}")
            return template

    def __contains__(self, key: str) -> bool:
        return key in self._messages


_active = MessageCatalog()


def set_catalog(catalog: MessageCatalog) -> None:
    global _active
    _active = catalog


def get_catalog() -> MessageCatalog:
    return _active


def translate(key: str, *args: Any) -> str:
    return _active.get(key, *args)
