"""Configuration for lazy holder defaults and logging."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator

from lazyholder.holder import BaseLazy, hidden, lazy, synchronized
from lazyholder.provider import ProviderLike

DEFAULT_LOG_FILE = Path.home() / ".lazyholder" / "lazyholder.log"

_TRUTHY = {"1", "true", "yes", "on"}


class LoggingConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    log_level: str = "INFO"
    log_file: Path = DEFAULT_LOG_FILE

    @field_validator("log_level")
    @classmethod
    def _normalize_level(cls, value: str) -> str:
        return str(value).strip().upper() or "INFO"


class DeveloperConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    debug_mode: bool = False


class HolderConfig(BaseModel):
    """Defaults applied by ``LazyFactory``."""

    model_config = ConfigDict(extra="forbid")

    synchronized: bool = False
    allow_none: bool = False


_SECTIONS: Dict[str, type[BaseModel]] = {
    "logging": LoggingConfig,
    "developer": DeveloperConfig,
    "holders": HolderConfig,
}


class Config(BaseModel):
    """Sectioned configuration, loadable from a YAML file."""

    model_config = ConfigDict(extra="forbid")

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    developer: DeveloperConfig = Field(default_factory=DeveloperConfig)
    holders: HolderConfig = Field(default_factory=HolderConfig)

    @classmethod
    def from_mapping(cls, data: Dict[str, Any]) -> "Config":
        """Build a config from nested sections or flat keys.

        Flat keys such as ``log_level: DEBUG`` are routed to the section that
        declares them; unknown keys are rejected by validation.
        """
        nested: Dict[str, Dict[str, Any]] = {name: {} for name in _SECTIONS}
        extra: Dict[str, Any] = {}
        for key, value in data.items():
            if key in _SECTIONS and isinstance(value, dict):
                nested[key].update(value)
                continue
            section = next(
                (name for name, model in _SECTIONS.items() if key in model.model_fields),
                None,
            )
            if section is None:
                extra[key] = value
            else:
                nested[section][key] = value
        return cls.model_validate({**nested, **extra})

    @classmethod
    def load(
        cls,
        config_path: Optional[Union[str, Path]] = None,
        *,
        environ: Optional[Dict[str, str]] = None,
    ) -> "Config":
        """Load YAML config, then apply ``LAZYHOLDER_*`` environment overrides."""
        data: Dict[str, Any] = {}
        if config_path is not None:
            path = Path(config_path).expanduser()
            if path.exists():
                with open(path, "r", encoding="utf-8") as handle:
                    loaded = yaml.safe_load(handle) or {}
                if not isinstance(loaded, dict):
                    raise ValueError(f"Config file {path} must contain a mapping")
                data = loaded

        config = cls.from_mapping(data)

        env = os.environ if environ is None else environ
        level = env.get("LAZYHOLDER_LOG_LEVEL")
        if level:
            config.logging = config.logging.model_copy(update={"log_level": level.strip().upper()})
        debug = env.get("LAZYHOLDER_DEBUG")
        if debug is not None:
            config.developer = DeveloperConfig(debug_mode=debug.strip().lower() in _TRUTHY)
        return config


class LazyFactory:
    """Builds holders using the ``holders`` section of a config."""

    def __init__(self, config: Optional[Config] = None) -> None:
        self.config = config or Config()

    def create(self, provider: ProviderLike[Any]) -> BaseLazy[Any]:
        defaults = self.config.holders
        if defaults.synchronized:
            return synchronized(provider, allow_none=defaults.allow_none)
        return lazy(provider, allow_none=defaults.allow_none)

    def hidden(self, capability: Any, provider: ProviderLike[Any]) -> Any:
        defaults = self.config.holders
        if defaults.synchronized:
            return self.create(provider).hide(capability)
        return hidden(capability, provider, allow_none=defaults.allow_none)
