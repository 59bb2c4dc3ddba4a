"""
Configuration Manager

Builds an AppConfig from layered sources. Later layers win:
defaults < config file < WALLCACHE_* environment < CLI options.
"""

import json
import os
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

import yaml
from pydantic import ValidationError

from wallcache.core.config.models import AppConfig
from wallcache.core.exceptions import ConfigurationError, ErrorCode


ENV_PREFIX = "WALLCACHE_"

# (section, field) in AppConfig; section None means a top-level field
FieldPath = Tuple[Optional[str], str]


def _parse_bool(value: Union[str, bool]) -> bool:
    if isinstance(value, bool):
        return value
    return value.strip().lower() in {'1', 'true', 'yes', 'on'}


# Environment variable suffix -> (target field, parser)
ENV_FIELDS: Dict[str, Tuple[FieldPath, Callable[[str], Any]]] = {
    'CACHE_DIR': (('cache', 'cache_dir'), str),
    'TTL_DAYS': (('cache', 'ttl_days'), float),
    'TIMEOUT': (('download', 'timeout'), float),
    'USER_AGENT': (('download', 'user_agent'), str),
    'CHUNK_SIZE': (('download', 'chunk_size'), int),
    'SLEEP_INTERVAL': (('batch', 'sleep_interval'), float),
    'LIMIT': (('batch', 'limit'), int),
    'CATALOG_URL': (('catalog', 'url'), str),
    'CATALOG_TIMEOUT': (('catalog', 'timeout'), float),
    'CATALOG_RETRIES': (('catalog', 'max_retries'), int),
    'CATALOG_ON_FAILURE': (('catalog', 'on_failure'), str),
    'VERBOSE': ((None, 'verbose'), _parse_bool),
    'DEBUG': ((None, 'debug'), _parse_bool),
    'LOG_FILE': ((None, 'log_file'), str),
}

# CLI option name -> target field
CLI_FIELDS: Dict[str, FieldPath] = {
    'cache_dir': ('cache', 'cache_dir'),
    'ttl_days': ('cache', 'ttl_days'),
    'timeout': ('download', 'timeout'),
    'user_agent': ('download', 'user_agent'),
    'sleep': ('batch', 'sleep_interval'),
    'limit': ('batch', 'limit'),
    'catalog_url': ('catalog', 'url'),
    'on_failure': ('catalog', 'on_failure'),
    'verbose': (None, 'verbose'),
    'debug': (None, 'debug'),
    'log_file': (None, 'log_file'),
}


def _assign(target: Dict[str, Any], path: FieldPath, value: Any) -> None:
    section, name = path
    if section is None:
        target[name] = value
    else:
        target.setdefault(section, {})[name] = value


def deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Merge ``override`` into a copy of ``base``, recursing into nested dicts."""
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = deep_merge(current, value)
        else:
            merged[key] = value
    return merged


class ConfigManager:
    """
    Loads and validates the wallcache configuration.

    Without an explicit ``config_file`` the first existing file from the
    search list is used; with one, that file must exist.
    """

    def __init__(self, config_file: Optional[Union[str, Path]] = None):
        self.config_file = Path(config_file) if config_file else None
        self._config: Optional[AppConfig] = None
        self._config_paths = self._search_paths()

    @staticmethod
    def _search_paths() -> List[Path]:
        cwd = Path.cwd()
        paths = [
            cwd / "wallcache.yaml",
            cwd / "wallcache.yml",
            cwd / ".wallcache.yaml",
            Path.home() / ".wallcache" / "config.yaml",
            Path.home() / ".config" / "wallcache" / "config.yaml",
        ]
        xdg_config = os.environ.get('XDG_CONFIG_HOME')
        if xdg_config:
            paths.append(Path(xdg_config) / "wallcache" / "config.yaml")
        return paths

    def load_config(
        self,
        cli_args: Optional[Dict[str, Any]] = None,
        env_prefix: str = ENV_PREFIX
    ) -> AppConfig:
        """
        Merge every configuration layer and validate the result.

        Args:
            cli_args: CLI options keyed by option name; ``None`` values are
                treated as not given
            env_prefix: Prefix of the environment variables to read

        Returns:
            Validated AppConfig instance

        Raises:
            ConfigurationError: If a source cannot be read or the merged
                data does not validate
        """
        data = self._read_file() or {}
        data = deep_merge(data, self._read_env(env_prefix))
        data = deep_merge(data, self._from_cli(cli_args or {}))

        try:
            self._config = AppConfig(**data)
        except ValidationError as e:
            raise ConfigurationError(
                f"Configuration validation failed: {e}",
                error_code=ErrorCode.CONFIG_INVALID_FORMAT,
                cause=e
            )
        return self._config

    def _locate_file(self) -> Optional[Path]:
        if self.config_file is not None:
            if not self.config_file.exists():
                raise ConfigurationError(
                    f"Configuration file not found: {self.config_file}",
                    error_code=ErrorCode.CONFIG_FILE_NOT_FOUND,
                    config_key="config_file",
                    config_value=str(self.config_file)
                )
            return self.config_file
        return next((p for p in self._config_paths if p.is_file()), None)

    def _read_file(self) -> Optional[Dict[str, Any]]:
        """Parse the config file as JSON (``.json``) or YAML (anything else)."""
        path = self._locate_file()
        if path is None:
            return None

        try:
            text = path.read_text(encoding='utf-8')
            data = json.loads(text) if path.suffix.lower() == '.json' else yaml.safe_load(text)
        except (OSError, ValueError, yaml.YAMLError) as e:
            raise ConfigurationError(
                f"Failed to load config file {path}: {e}",
                error_code=ErrorCode.CONFIG_INVALID_FORMAT,
                cause=e
            )

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigurationError(
                f"Config file {path} must contain a mapping",
                error_code=ErrorCode.CONFIG_INVALID_FORMAT
            )
        return data

    @staticmethod
    def _read_env(prefix: str) -> Dict[str, Any]:
        data: Dict[str, Any] = {}
        for suffix, (path, parser) in ENV_FIELDS.items():
            name = prefix + suffix
            raw = os.environ.get(name)
            if raw is None:
                continue
            try:
                value = parser(raw)
            except (TypeError, ValueError) as e:
                raise ConfigurationError(
                    f"Invalid value for {name}: {raw} ({e})",
                    config_key=name,
                    config_value=raw
                )
            _assign(data, path, value)
        return data

    @staticmethod
    def _from_cli(cli_args: Dict[str, Any]) -> Dict[str, Any]:
        data: Dict[str, Any] = {}
        for option, value in cli_args.items():
            path = CLI_FIELDS.get(option)
            if path is not None and value is not None:
                _assign(data, path, value)
        return data

    def create_example_config(self, output_file: Path) -> None:
        """Write the default configuration to ``output_file`` as YAML."""
        output_file = Path(output_file)
        output_file.parent.mkdir(parents=True, exist_ok=True)
        with open(output_file, 'w', encoding='utf-8') as f:
            yaml.safe_dump(AppConfig().model_dump(mode='json'), f, default_flow_style=False, indent=2, sort_keys=False)

    @property
    def config(self) -> Optional[AppConfig]:
        """The configuration produced by the last successful ``load_config``."""
        return self._config
