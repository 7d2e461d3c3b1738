"""
Configuration management and loading.

Handles playground settings read from a YAML file.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

DEFAULT_BASE_URL = "http://localhost:3000/api"
DEFAULT_TIMEOUT = 30.0
DEFAULT_MODEL = "gpt-4o"
DEFAULT_TEMPERATURE = 0.7
DEFAULT_DB_PATH = "prompt_playground.db"


@dataclass(frozen=True)
class EndpointConfig:
    """Location of the generation endpoint."""
    base_url: str = DEFAULT_BASE_URL
    timeout: float = DEFAULT_TIMEOUT

    def __post_init__(self):
        """Validate endpoint values."""
        if not self.base_url.startswith(("http://", "https://")):
            raise ValueError("base_url must start with http:// or https://")
        if self.timeout <= 0:
            raise ValueError("timeout must be > 0")


@dataclass(frozen=True)
class GenerationDefaults:
    """Defaults applied to new prompt submissions."""
    model: str = DEFAULT_MODEL
    temperature: float = DEFAULT_TEMPERATURE
    streaming: bool = True

    def __post_init__(self):
        """Validate generation defaults."""
        if not self.model.strip():
            raise ValueError("model cannot be empty")
        if not 0.0 <= self.temperature <= 1.0:
            raise ValueError("temperature must be between 0 and 1")


@dataclass(frozen=True)
class StorageConfig:
    """Location of the durable history and usage stores."""
    db_path: str = DEFAULT_DB_PATH


@dataclass(frozen=True)
class PlaygroundConfig:
    """Complete playground configuration."""
    endpoint: EndpointConfig = field(default_factory=EndpointConfig)
    defaults: GenerationDefaults = field(default_factory=GenerationDefaults)
    storage: StorageConfig = field(default_factory=StorageConfig)
    api_key: Optional[str] = None


def load_playground_config(path: str) -> PlaygroundConfig:
    """Load and validate playground configuration from YAML file.

    Every section is optional; unknown keys are rejected so typos do not
    silently fall back to defaults.

    Args:
        path: Path to YAML configuration file

    Returns:
        Validated PlaygroundConfig object

    Raises:
        FileNotFoundError: If config file doesn't exist
        yaml.YAMLError: If YAML is invalid
        ValueError: If configuration is invalid
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Playground config file not found: {path}")

    with open(config_path, 'r', encoding='utf-8') as f:
        try:
            raw_config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise yaml.YAMLError(f"Invalid YAML in config file {path}: {e}")

    if raw_config is None:
        return PlaygroundConfig()
    if not isinstance(raw_config, dict):
        raise ValueError("Configuration must be a dictionary")

    _check_keys(raw_config, {'endpoint', 'defaults', 'storage', 'api_key'}, "configuration")

    endpoint_data = _section(raw_config, 'endpoint', {'base_url', 'timeout'})
    endpoint = EndpointConfig(
        base_url=_typed(endpoint_data, 'base_url', str, DEFAULT_BASE_URL, "endpoint"),
        timeout=float(_typed(endpoint_data, 'timeout', (int, float), DEFAULT_TIMEOUT, "endpoint"))
    )

    defaults_data = _section(raw_config, 'defaults', {'model', 'temperature', 'streaming'})
    defaults = GenerationDefaults(
        model=_typed(defaults_data, 'model', str, DEFAULT_MODEL, "defaults"),
        temperature=float(_typed(defaults_data, 'temperature', (int, float), DEFAULT_TEMPERATURE, "defaults")),
        streaming=_typed(defaults_data, 'streaming', bool, True, "defaults")
    )

    storage_data = _section(raw_config, 'storage', {'db_path'})
    storage = StorageConfig(
        db_path=_typed(storage_data, 'db_path', str, DEFAULT_DB_PATH, "storage")
    )

    api_key = raw_config.get('api_key')
    if api_key is not None and not isinstance(api_key, str):
        raise ValueError("'api_key' must be a string")

    return PlaygroundConfig(
        endpoint=endpoint,
        defaults=defaults,
        storage=storage,
        api_key=api_key or None
    )


def _section(raw_config: Dict, name: str, allowed_keys: set) -> Dict:
    """Return a validated optional section, or an empty dict if absent."""
    data = raw_config.get(name) or {}
    if not isinstance(data, dict):
        raise ValueError(f"'{name}' must be a dictionary")
    _check_keys(data, allowed_keys, name)
    return data


def _check_keys(data: Dict, allowed_keys: set, path: str) -> None:
    unknown_keys = set(data.keys()) - allowed_keys
    if unknown_keys:
        raise ValueError(f"Unknown keys in {path}: {unknown_keys}")


def _typed(data: Dict, key: str, expected: Any, default: Any, path: str) -> Any:
    """Fetch an optional value and check its type.

    bool is rejected where a number is expected, since YAML 'yes' would
    otherwise pass as 1.
    """
    if key not in data:
        return default
    value = data[key]
    if isinstance(value, bool) and expected is not bool:
        raise ValueError(f"'{key}' in {path} has the wrong type")
    if not isinstance(value, expected):
        raise ValueError(f"'{key}' in {path} has the wrong type")
    return value
