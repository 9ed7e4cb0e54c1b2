"""
Config system - Layered resolver configuration with validation.

Merge precedence (later overrides earlier):
config files (YAML/JSON) < .env file < environment variables < overrides
"""

from typing import Any, Dict, List, Optional, Type, get_origin, get_args
from dataclasses import dataclass, field, fields, MISSING
from pathlib import Path
from glob import glob
import logging
import json
import os
import types

import yaml
from dotenv import dotenv_values

from .faults import ConfigInvalidFault


logger = logging.getLogger("waymark.config")

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class ResolverConfig:
    """
    Resolver settings.

    Attributes:
        strict: Make duplicate plugin names and repeated Controller
                annotations fatal instead of last-wins
        template_dirs: Directories searched by the template check
        log_level: Level applied by the CLI to the "waymark" logger
    """
    strict: bool = False
    template_dirs: List[str] = field(default_factory=list)
    log_level: str = "WARNING"

    def __post_init__(self):
        level = str(self.log_level).upper()
        if level not in LOG_LEVELS:
            raise ConfigInvalidFault("log_level", f"expected one of {', '.join(LOG_LEVELS)}")
        self.log_level = level


class ConfigLoader:
    """
    Loads and merges configuration from multiple sources.

    Environment keys use the prefix and a double underscore for nesting:
    ``WAYMARK_STRICT=true``, ``WAYMARK_RESOLVER__LOG_LEVEL=debug``.
    Resolver settings may live at the root or under a ``resolver`` key.
    """

    def __init__(self, env_prefix: str = "WAYMARK_"):
        self.env_prefix = env_prefix
        self.config_data: Dict[str, Any] = {}

    @classmethod
    def load(
        cls,
        paths: Optional[List[str]] = None,
        env_prefix: str = "WAYMARK_",
        env_file: Optional[str] = None,
        overrides: Optional[Dict[str, Any]] = None,
    ) -> "ConfigLoader":
        """
        Load configuration from every source.

        Args:
            paths: Config file paths (glob patterns supported)
            env_prefix: Prefix for environment variables
            env_file: Path to .env file
            overrides: Manual overrides (highest precedence)

        Returns:
            Configured ConfigLoader instance
        """
        loader = cls(env_prefix=env_prefix)

        if not paths:
            for candidate in ("waymark.yaml", "waymark.yml", "waymark.json"):
                if Path(candidate).exists():
                    paths = [candidate]
                    break

        for pattern in paths or []:
            loader._load_from_files(pattern)

        if env_file:
            loader._load_env_file(env_file)

        loader._load_from_env()

        if overrides:
            loader._merge_dict(loader.config_data, overrides)

        return loader

    def _load_from_files(self, pattern: str):
        """Load config from JSON or YAML files."""
        for path_str in sorted(glob(pattern)):
            path = Path(path_str)

            if path.suffix == ".json":
                self._load_json_file(path)
            elif path.suffix in (".yaml", ".yml"):
                self._load_yaml_file(path)
            else:
                logger.warning("Ignoring config file with unknown suffix: %s", path)

    def _load_json_file(self, path: Path):
        with open(path) as f:
            data = json.load(f)
        self._merge_dict(self.config_data, data)
        logger.debug("Loaded config file %s", path)

    def _load_yaml_file(self, path: Path):
        with open(path) as f:
            data = yaml.safe_load(f)
        if data:
            self._merge_dict(self.config_data, data)
        logger.debug("Loaded config file %s", path)

    def _load_env_file(self, path: str):
        """Load prefixed keys from a .env file."""
        env_path = Path(path)
        if not env_path.exists():
            return

        for key, value in dotenv_values(env_path).items():
            if value is not None and key.startswith(self.env_prefix):
                self._set_nested(key, value)

    def _load_from_env(self):
        for key, value in os.environ.items():
            if key.startswith(self.env_prefix):
                self._set_nested(key, value)

    def _set_nested(self, key: str, value: str):
        """Convert WAYMARK_RESOLVER__STRICT to nested dict."""
        key = key[len(self.env_prefix):]
        parts = key.lower().split("__")

        current = self.config_data
        for part in parts[:-1]:
            if not isinstance(current.get(part), dict):
                current[part] = {}
            current = current[part]

        current[parts[-1]] = self._parse_value(value)

    def _parse_value(self, value: str) -> Any:
        """Parse string value to appropriate type."""
        if value.lower() in ("true", "yes", "on"):
            return True
        if value.lower() in ("false", "no", "off"):
            return False

        try:
            if "." in value:
                return float(value)
            return int(value)
        except ValueError:
            pass

        if value.startswith(("{", "[")):
            try:
                return json.loads(value)
            except json.JSONDecodeError:
                pass

        return value

    def _merge_dict(self, target: dict, source: dict):
        """Deep merge source into target."""
        for key, value in source.items():
            if key in target and isinstance(target[key], dict) and isinstance(value, dict):
                self._merge_dict(target[key], value)
            else:
                target[key] = value

    def get(self, path: str, default: Any = None) -> Any:
        """Get config value by dot-separated path."""
        current = self.config_data

        for part in path.split("."):
            if isinstance(current, dict) and part in current:
                current = current[part]
            else:
                return default

        return current

    def get_resolver_config(self) -> ResolverConfig:
        """
        Build a validated ResolverConfig.

        Keys under ``resolver`` override root-level keys.

        Raises:
            ConfigInvalidFault: If a value has the wrong type
        """
        root = {k: v for k, v in self.config_data.items() if k != "resolver"}
        section = self.get("resolver", {}) or {}
        merged = {**root, **section}

        if isinstance(merged.get("template_dirs"), str):
            merged["template_dirs"] = [
                p for p in merged["template_dirs"].split(os.pathsep) if p
            ]

        return self._instantiate_dataclass(ResolverConfig, merged)

    def _instantiate_dataclass(self, config_class: Type, data: dict):
        """Instantiate dataclass config with validation."""
        kwargs = {}

        for field_info in fields(config_class):
            name = field_info.name

            if name in data:
                value = data[name]
                if not self._check_type(value, field_info.type):
                    raise ConfigInvalidFault(
                        name,
                        f"expected {getattr(field_info.type, '__name__', field_info.type)}, "
                        f"got {type(value).__name__}",
                    )
                kwargs[name] = value
            elif field_info.default is not MISSING:
                kwargs[name] = field_info.default
            elif field_info.default_factory is not MISSING:
                kwargs[name] = field_info.default_factory()

        return config_class(**kwargs)

    def _check_type(self, value: Any, expected_type: Any) -> bool:
        """Basic type checking."""
        origin = get_origin(expected_type)
        if origin is types.UnionType or str(origin) == "typing.Union":
            if value is None:
                return True
            args = get_args(expected_type)
            return self._check_type(value, args[0]) if args else True

        if origin:
            return isinstance(value, origin)

        if expected_type is bool:
            return isinstance(value, bool)

        try:
            return isinstance(value, expected_type)
        except TypeError:
            return True

    def to_dict(self) -> dict:
        """Export all config as dictionary."""
        return self.config_data.copy()
