"""
Config Loader - Layer YAML, dotenv/environment and explicit overrides.

Layers, lowest first:
    1. Field defaults
    2. The first config file found (explicit path, then the default paths)
    3. BUG_REPLAY__ environment variables, including those from a .env file
    4. Overrides passed to load(), usually from the CLI
"""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml
from dotenv import load_dotenv

from bug_replay.config.settings import Settings, deep_merge
from bug_replay.exceptions.base import ConfigurationError

logger = logging.getLogger(__name__)

ENV_FILES = (Path(".env"), Path(".env.local"))


class ConfigLoader:
    """
    Build a Settings instance from every configuration layer.
    
    An explicit config path must exist; the default paths are optional and
    the first one present wins.
    """
    
    DEFAULT_CONFIG_PATHS = [
        Path("config.yaml"),
        Path("config.yml"),
        Path("config/default.yaml"),
        Path.home() / ".config" / "bug-replay" / "config.yaml",
    ]
    
    def __init__(self, config_path: Optional[Union[str, Path]] = None):
        self.config_path = Path(config_path) if config_path else None
        self.sources: List[str] = []
    
    def find_config_file(self) -> Optional[Path]:
        """
        Locate the config file for this loader.
        
        Raises:
            ConfigurationError: If an explicit path was given but is missing
        """
        if self.config_path is not None:
            if not self.config_path.is_file():
                raise ConfigurationError(
                    f"Config file {self.config_path} does not exist",
                    {"path": str(self.config_path)},
                )
            return self.config_path
        
        return next((path for path in self.DEFAULT_CONFIG_PATHS if path.is_file()), None)
    
    def load_yaml_config(self, path: Path) -> Dict[str, Any]:
        """
        Read one YAML config file. An empty file is an empty mapping.
        
        Raises:
            ConfigurationError: If the file is not valid YAML or not a mapping
        """
        try:
            config = yaml.safe_load(path.read_text(encoding="utf-8"))
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {path}: {e}", {"path": str(path)})
        
        if config is None:
            return {}
        if not isinstance(config, dict):
            raise ConfigurationError(f"Config file {path} must contain a mapping", {"path": str(path)})
        return config
    
    def _load_env_file(self, env_file: Optional[Union[str, Path]]) -> None:
        candidates = [Path(env_file)] if env_file else [p for p in ENV_FILES if p.is_file()][:1]
        for path in candidates:
            load_dotenv(path)
            self.sources.append(str(path))
    
    def load(
        self,
        env_file: Optional[Union[str, Path]] = None,
        overrides: Optional[Dict[str, Any]] = None,
    ) -> Settings:
        """
        Merge every layer into a validated Settings instance.
        
        Args:
            env_file: .env file to read instead of the default ones
            overrides: Nested values that win over every other layer
        """
        self.sources = []
        merged: Dict[str, Any] = {}
        
        config_file = self.find_config_file()
        if config_file is not None:
            merged = self.load_yaml_config(config_file)
            self.sources.append(str(config_file))
        
        self._load_env_file(env_file)
        # Only values that differ from the defaults came from the environment
        from_env = Settings().model_dump(exclude_defaults=True)
        deep_merge(merged, from_env)
        
        if overrides:
            deep_merge(merged, overrides)
        
        logger.debug(f"Configuration loaded from {self.sources or ['defaults']}")
        return Settings(**merged)


def load_config(
    config_path: Optional[Union[str, Path]] = None,
    env_file: Optional[Union[str, Path]] = None,
    **overrides: Any,
) -> Settings:
    """
    Load settings from every layer.
    
    Example:
        >>> settings = load_config(config_path="replay.yaml")
        >>> settings = load_config(replay={"pacing": "relative"})
    """
    return ConfigLoader(config_path).load(env_file=env_file, overrides=overrides or None)
