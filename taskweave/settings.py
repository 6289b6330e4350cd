"""Settings store for the command line reader/writer.

Values live in an OmegaConf structure: built-in defaults merged with user YAML.
Boolean settings accept strings (``"yes"``, ``"false"``, ``"1"`` ...) and
raise :class:`UnparsableFormatError` when a value cannot be interpreted.

Example settings.yaml::

    default_tool_path: /opt/osmosis/bin/osmosis
    use_short_task_names: true
    export_parameters_with_default_values: false
"""
from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional, Union

from omegaconf import DictConfig, OmegaConf

logger = logging.getLogger(__name__)


class SettingType(str, Enum):
    """Known setting keys and their value kinds."""

    DEFAULT_TOOL_PATH = "default_tool_path"
    USE_SHORT_TASK_NAMES = "use_short_task_names"
    EXPORT_PARAMETERS_WITH_DEFAULT_VALUES = "export_parameters_with_default_values"

    @property
    def is_boolean(self) -> bool:
        return self is not SettingType.DEFAULT_TOOL_PATH


_DEFAULTS: Dict[str, Any] = {
    SettingType.DEFAULT_TOOL_PATH.value: "osmosis",
    SettingType.USE_SHORT_TASK_NAMES.value: False,
    SettingType.EXPORT_PARAMETERS_WITH_DEFAULT_VALUES.value: False,
}

_TRUE = {"true", "yes", "on", "1"}
_FALSE = {"false", "no", "off", "0"}


class UnparsableFormatError(ValueError):
    """A settings value could not be parsed into its setting's kind."""

    def __init__(self, setting: SettingType, value: Any) -> None:
        super().__init__(f"Cannot parse {value!r} for setting '{setting.value}'")
        self.setting = setting
        self.value = value


def _parse(setting: SettingType, value: Any) -> Any:
    if not setting.is_boolean:
        return "" if value is None else str(value)
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE:
        return True
    if text in _FALSE:
        return False
    raise UnparsableFormatError(setting, value)


class Settings:
    """Typed access to the settings consulted by the writer."""

    def __init__(self, config: Optional[Union[Dict[str, Any], DictConfig]] = None) -> None:
        self._config: DictConfig = OmegaConf.create(dict(_DEFAULTS))
        if isinstance(config, DictConfig):
            config = OmegaConf.to_container(config, resolve=True)
        for key, value in (config or {}).items():
            self.set(key, value)

    @classmethod
    def load(cls, path: Union[str, Path]) -> Settings:
        """Defaults merged with a YAML file; unknown keys are ignored with a warning."""
        loaded = OmegaConf.to_container(OmegaConf.load(path), resolve=True)
        if not isinstance(loaded, dict):
            raise ValueError(f"Settings file {path} must contain a mapping")
        settings = cls()
        for key, value in loaded.items():
            try:
                settings.set(key, value)
            except KeyError:
                logger.warning(f"Ignoring unknown setting '{key}' in {path}")
        return settings

    def save(self, path: Union[str, Path]) -> None:
        OmegaConf.save(self._config, path)

    def get(self, setting: Union[SettingType, str]) -> Any:
        setting = self._key(setting)
        return self._config[setting.value]

    def set(self, setting: Union[SettingType, str], value: Any) -> None:
        setting = self._key(setting)
        self._config[setting.value] = _parse(setting, value)

    def as_dict(self) -> Dict[str, Any]:
        return OmegaConf.to_container(self._config, resolve=True)

    @staticmethod
    def _key(setting: Union[SettingType, str]) -> SettingType:
        if isinstance(setting, SettingType):
            return setting
        try:
            return SettingType(setting)
        except ValueError:
            raise KeyError(f"Unknown setting: {setting!r}") from None

    def __repr__(self) -> str:
        return f"Settings({self.as_dict()})"
