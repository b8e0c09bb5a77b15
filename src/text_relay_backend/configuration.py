"""
Layered service configuration.

Settings are an OmegaConf structured config built from, in increasing
precedence: the dataclass defaults below, an optional YAML file, environment
variables (a local .env file is loaded first) and explicit overrides.
"""

import os
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from dotenv import load_dotenv
from omegaconf import DictConfig, OmegaConf

# Load environment variables from .env file
load_dotenv()

CONFIG_PATH_ENV = "RELAY_CONFIG_PATH"
DEFAULT_CONFIG_PATH = Path("config/config.yaml")

# Environment variable -> dotted config key
ENV_OVERRIDES: Dict[str, str] = {
    "HOST": "server.host",
    "PORT": "server.port",
    "N8N_WEBHOOK_URL": "processor.webhook_url",
    "DISPATCH_TIMEOUT_S": "processor.request_timeout_s",
    "REQUEST_TIMEOUT_MS": "correlation.timeout_ms",
    "CORS_ALLOW_ORIGINS": "cors.allow_origins",
    "LOG_LEVEL": "logging.level",
}


@dataclass
class ServerConfig:
    host: str = "0.0.0.0"
    port: int = 3000


@dataclass
class ProcessorConfig:
    webhook_url: str = "YOUR_N8N_WEBHOOK_URL"
    request_timeout_s: float = 30.0


@dataclass
class CorrelationConfig:
    timeout_ms: int = 300_000


@dataclass
class CorsConfig:
    allow_origins: List[str] = field(default_factory=lambda: ["*"])


@dataclass
class LoggingConfig:
    level: str = "INFO"


@dataclass
class RelayConfig:
    server: ServerConfig = field(default_factory=ServerConfig)
    processor: ProcessorConfig = field(default_factory=ProcessorConfig)
    correlation: CorrelationConfig = field(default_factory=CorrelationConfig)
    cors: CorsConfig = field(default_factory=CorsConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


@lru_cache(maxsize=8)
def _load_yaml(path: str) -> DictConfig:
    return OmegaConf.load(path)  # type: ignore[return-value]


def _resolve_config_path(environ: Mapping[str, str]) -> Optional[Path]:
    explicit = environ.get(CONFIG_PATH_ENV)
    if explicit:
        path = Path(explicit)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found at {path}")
        return path
    return DEFAULT_CONFIG_PATH if DEFAULT_CONFIG_PATH.exists() else None


def _env_value(key: str, raw: str) -> Any:
    if key == "cors.allow_origins":
        return [origin.strip() for origin in raw.split(",") if origin.strip()]
    return raw


def load_settings(
    overrides: Optional[Dict[str, Any]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> DictConfig:
    """
    Build the effective configuration.

    Args:
        overrides: Nested mapping merged last, e.g. ``{"correlation": {"timeout_ms": 50}}``
        environ: Environment to read from (default: ``os.environ``)

    Returns:
        A struct-mode DictConfig matching RelayConfig

    Raises:
        FileNotFoundError: If RELAY_CONFIG_PATH points to a missing file
        omegaconf.errors.ValidationError: If a value cannot be converted to its field type
        ValueError: If correlation.timeout_ms is not positive
    """
    environ = os.environ if environ is None else environ
    config: DictConfig = OmegaConf.structured(RelayConfig)

    config_path = _resolve_config_path(environ)
    if config_path is not None:
        config = OmegaConf.merge(config, _load_yaml(str(config_path.resolve())))  # type: ignore[assignment]

    for env_name, key in ENV_OVERRIDES.items():
        raw = environ.get(env_name)
        if raw:
            OmegaConf.update(config, key, _env_value(key, raw), merge=False)

    if overrides:
        config = OmegaConf.merge(config, OmegaConf.create(overrides))  # type: ignore[assignment]

    if config.correlation.timeout_ms <= 0:
        raise ValueError("correlation.timeout_ms must be positive")
    return config


def settings_summary(config: DictConfig) -> Dict[str, Any]:
    """Plain-dict view of the configuration for logging at startup."""
    return OmegaConf.to_container(config, resolve=True)  # type: ignore[return-value]
