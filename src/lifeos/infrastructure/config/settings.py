"""
Configuration management for LifeOS.

Handles loading and validation of configuration from multiple sources:
- YAML configuration files
- Environment variables
- Explicit overrides passed by the command line
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from lifeos.utils.exceptions import ConfigurationError

# Ordered (prefix, backend) pairs; first match wins.
DEFAULT_ROUTES: List[List[str]] = [
    ["/health", "health"],
    ["/finance", "finance"],
    ["/learning", "learning"],
    ["/notifications", "notification"],
]

DEFAULT_SERVICE_URLS: Dict[str, str] = {
    "auth": "http://localhost:3001",
    "health": "http://localhost:3002",
    "finance": "http://localhost:3003",
    "learning": "http://localhost:3004",
    "notification": "http://localhost:3005",
    "task": "http://localhost:3006",
    "user": "http://localhost:3007",
    "ai": "http://localhost:3008",
}


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = "INFO"
    format: str = "detailed"
    file: Optional[str] = None


@dataclass
class AuthConfig:
    """Bearer token verification."""

    jwt_secret: str = "dev_secret_change_in_production"
    jwt_algorithm: str = "HS256"
    token_query_param: str = "token"
    token_expire_minutes: int = 60


@dataclass
class GatewayConfig:
    """Reverse proxy configuration."""

    host: str = "0.0.0.0"
    port: int = 3000
    default_backend: str = "auth"
    routes: List[List[str]] = field(default_factory=lambda: [list(r) for r in DEFAULT_ROUTES])
    services: Dict[str, str] = field(default_factory=dict)
    # None keeps the HTTP client's own default
    timeout: Optional[float] = None

    def __post_init__(self):
        self.services = {**DEFAULT_SERVICE_URLS, **(self.services or {})}

        for rule in self.routes:
            if len(rule) != 2 or not str(rule[0]).startswith("/"):
                raise ConfigurationError(
                    f"Invalid routing rule {rule!r}: expected [\"/prefix\", \"backend\"]",
                    details={"rule": rule},
                )

        missing = sorted(b for b in self.backend_names() if b not in self.services)
        if missing:
            raise ConfigurationError(
                f"No service URL configured for backend(s): {', '.join(missing)}",
                details={"missing": missing},
            )

    def backend_names(self) -> List[str]:
        """Every backend name the routing table can produce."""
        names = [backend for _, backend in self.routes]
        names.append(self.default_backend)
        return list(dict.fromkeys(names))


@dataclass
class NotificationConfig:
    """Notification fan-out service configuration."""

    host: str = "0.0.0.0"
    port: int = 3005
    websocket_path: str = "/ws"
    cors_origins: list = field(default_factory=lambda: ["*"])
    default_page_size: int = 50
    max_page_size: int = 200


@dataclass
class MonitoringConfig:
    """Monitoring configuration."""

    metrics_enabled: bool = True
    metrics_port: int = 9090


@dataclass
class AppConfig:
    """Main application configuration."""

    environment: str = "development"
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    auth: AuthConfig = field(default_factory=AuthConfig)
    gateway: GatewayConfig = field(default_factory=GatewayConfig)
    notifications: NotificationConfig = field(default_factory=NotificationConfig)
    monitoring: MonitoringConfig = field(default_factory=MonitoringConfig)


def load_config_from_yaml(config_path: Union[str, Path]) -> Dict[str, Any]:
    """Load configuration from YAML file."""
    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_path, "r") as f:
        return yaml.safe_load(f) or {}


def _env_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


def load_config_from_env() -> Dict[str, Any]:
    """Load configuration from environment variables."""
    config = {}

    if env_val := os.getenv("LIFEOS_ENV"):
        config["environment"] = env_val

    logging_config = {}
    if level := os.getenv("LIFEOS_LOG_LEVEL"):
        logging_config["level"] = level
    if fmt := os.getenv("LIFEOS_LOG_FORMAT"):
        logging_config["format"] = fmt
    if log_file := os.getenv("LIFEOS_LOG_FILE"):
        logging_config["file"] = log_file
    if logging_config:
        config["logging"] = logging_config

    auth_config = {}
    if secret := os.getenv("LIFEOS_JWT_SECRET") or os.getenv("JWT_SECRET"):
        auth_config["jwt_secret"] = secret
    if algorithm := os.getenv("LIFEOS_JWT_ALGORITHM"):
        auth_config["jwt_algorithm"] = algorithm
    if auth_config:
        config["auth"] = auth_config

    gateway_config: Dict[str, Any] = {}
    if host := os.getenv("LIFEOS_GATEWAY_HOST"):
        gateway_config["host"] = host
    if port := os.getenv("LIFEOS_GATEWAY_PORT"):
        gateway_config["port"] = int(port)
    if timeout := os.getenv("LIFEOS_GATEWAY_TIMEOUT"):
        gateway_config["timeout"] = float(timeout)
    services = {}
    for name in DEFAULT_SERVICE_URLS:
        if url := os.getenv(f"{name.upper()}_SERVICE_URL"):
            services[name] = url
    if services:
        gateway_config["services"] = services
    if gateway_config:
        config["gateway"] = gateway_config

    notification_config: Dict[str, Any] = {}
    if host := os.getenv("LIFEOS_NOTIFICATIONS_HOST"):
        notification_config["host"] = host
    if port := os.getenv("LIFEOS_NOTIFICATIONS_PORT"):
        notification_config["port"] = int(port)
    if notification_config:
        config["notifications"] = notification_config

    monitoring_config: Dict[str, Any] = {}
    if enabled := os.getenv("LIFEOS_METRICS_ENABLED"):
        monitoring_config["metrics_enabled"] = _env_bool(enabled)
    if port := os.getenv("LIFEOS_METRICS_PORT"):
        monitoring_config["metrics_port"] = int(port)
    if monitoring_config:
        config["monitoring"] = monitoring_config

    return config


def merge_configs(*configs: Dict[str, Any]) -> Dict[str, Any]:
    """Merge multiple configuration dictionaries."""
    merged = {}
    for config in configs:
        for key, value in config.items():
            if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
                merged[key] = merge_configs(merged[key], value)
            else:
                merged[key] = value
    return merged


def dict_to_dataclass(data: Dict[str, Any], cls) -> Any:
    """Convert dictionary to dataclass instance."""
    if not hasattr(cls, "__dataclass_fields__"):
        return data

    kwargs = {}
    for field_name, field_def in cls.__dataclass_fields__.items():
        if field_name in data:
            field_type = field_def.type
            field_value = data[field_name]

            # Handle nested dataclasses
            if hasattr(field_type, "__dataclass_fields__"):
                kwargs[field_name] = dict_to_dataclass(field_value or {}, field_type)
            else:
                kwargs[field_name] = field_value

    return cls(**kwargs)


def load_config(
    config_file: Optional[Union[str, Path]] = None, environment: Optional[str] = None
) -> AppConfig:
    """
    Load application configuration from multiple sources.

    Environment variables take precedence over the YAML file.

    Args:
        config_file: Path to YAML configuration file
        environment: Environment name (development, production, testing)

    Returns:
        AppConfig instance
    """
    configs = []

    env_config = load_config_from_env()

    if not environment:
        environment = env_config.get("environment", "development")

    if config_file:
        configs.append(load_config_from_yaml(config_file))
    else:
        # Try to auto-detect config file
        project_root = Path(__file__).resolve().parents[4]
        config_path = project_root / "configs" / f"{environment}.yaml"
        if config_path.exists():
            configs.append(load_config_from_yaml(config_path))

    if env_config:
        configs.append(env_config)

    merged_config = merge_configs({"environment": environment}, *configs)

    return dict_to_dataclass(merged_config, AppConfig)


# Global configuration instance
_config: Optional[AppConfig] = None


def get_config() -> AppConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def set_config(config: Optional[AppConfig]) -> None:
    """Set (or with None, reset) the global configuration instance."""
    global _config
    _config = config
