"""
Tests for configuration loading.
"""

import pytest
import yaml

from lifeos.infrastructure.config.settings import (
    DEFAULT_SERVICE_URLS,
    AppConfig,
    GatewayConfig,
    get_config,
    load_config,
    load_config_from_env,
    merge_configs,
    set_config,
)
from lifeos.utils.exceptions import ConfigurationError

ENV_VARS = [
    "LIFEOS_ENV",
    "LIFEOS_LOG_LEVEL",
    "LIFEOS_LOG_FORMAT",
    "LIFEOS_LOG_FILE",
    "LIFEOS_JWT_SECRET",
    "JWT_SECRET",
    "LIFEOS_JWT_ALGORITHM",
    "LIFEOS_GATEWAY_HOST",
    "LIFEOS_GATEWAY_PORT",
    "LIFEOS_GATEWAY_TIMEOUT",
    "LIFEOS_NOTIFICATIONS_HOST",
    "LIFEOS_NOTIFICATIONS_PORT",
    "LIFEOS_METRICS_ENABLED",
    "LIFEOS_METRICS_PORT",
] + [f"{name.upper()}_SERVICE_URL" for name in DEFAULT_SERVICE_URLS]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    yield
    set_config(None)


@pytest.fixture
def config_file(tmp_path):
    def _write(data) -> str:
        path = tmp_path / "lifeos.yaml"
        path.write_text(yaml.safe_dump(data))
        return str(path)

    return _write


class TestDefaults:
    """Test cases for default values."""

    def test_default_app_config(self):
        config = AppConfig()

        assert config.gateway.port == 3000
        assert config.gateway.default_backend == "auth"
        assert config.gateway.timeout is None
        assert config.notifications.port == 3005
        assert config.notifications.websocket_path == "/ws"
        assert config.auth.jwt_algorithm == "HS256"
        assert config.auth.token_query_param == "token"

    def test_default_service_map(self):
        services = GatewayConfig().services

        assert services["auth"] == "http://localhost:3001"
        assert services["health"] == "http://localhost:3002"
        assert services["finance"] == "http://localhost:3003"
        assert services["learning"] == "http://localhost:3004"
        assert services["notification"] == "http://localhost:3005"
        assert services["ai"] == "http://localhost:3008"

    def test_default_routes(self):
        assert GatewayConfig().routes == [
            ["/health", "health"],
            ["/finance", "finance"],
            ["/learning", "learning"],
            ["/notifications", "notification"],
        ]


class TestGatewayValidation:
    """Test cases for GatewayConfig validation."""

    def test_partial_services_are_merged_with_defaults(self):
        config = GatewayConfig(services={"finance": "http://finance:8000"})

        assert config.services["finance"] == "http://finance:8000"
        assert config.services["auth"] == "http://localhost:3001"

    def test_backend_without_url_is_rejected(self):
        """Every backend the table can produce must have a URL."""
        with pytest.raises(ConfigurationError) as exc_info:
            GatewayConfig(routes=[["/budget", "budget"]])
        assert exc_info.value.details == {"missing": ["budget"]}

    def test_unknown_default_backend_is_rejected(self):
        with pytest.raises(ConfigurationError):
            GatewayConfig(default_backend="nowhere")

    @pytest.mark.parametrize("rule", [["/only-prefix"], ["no-slash", "auth"], ["/a", "auth", "extra"]])
    def test_malformed_rule_is_rejected(self, rule):
        with pytest.raises(ConfigurationError, match="Invalid routing rule"):
            GatewayConfig(routes=[rule])

    def test_backend_names(self):
        config = GatewayConfig(routes=[["/a", "health"], ["/b", "health"]])
        assert config.backend_names() == ["health", "auth"]


class TestLoading:
    """Test cases for YAML and environment sources."""

    def test_yaml_file(self, config_file):
        path = config_file(
            {
                "environment": "staging",
                "gateway": {"port": 8080, "services": {"auth": "http://auth:3001"}},
                "notifications": {"websocket_path": "/socket"},
            }
        )
        config = load_config(path)

        assert config.environment == "staging"
        assert config.gateway.port == 8080
        assert config.gateway.services["auth"] == "http://auth:3001"
        assert config.notifications.websocket_path == "/socket"

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "absent.yaml")

    def test_env_overrides_yaml(self, config_file, monkeypatch):
        path = config_file({"gateway": {"port": 8080}, "auth": {"jwt_secret": "from-file"}})
        monkeypatch.setenv("LIFEOS_GATEWAY_PORT", "9000")
        monkeypatch.setenv("JWT_SECRET", "from-env")

        config = load_config(path)

        assert config.gateway.port == 9000
        assert config.auth.jwt_secret == "from-env"

    def test_prefixed_secret_wins(self, monkeypatch):
        monkeypatch.setenv("JWT_SECRET", "plain")
        monkeypatch.setenv("LIFEOS_JWT_SECRET", "prefixed")

        assert load_config_from_env()["auth"]["jwt_secret"] == "prefixed"

    def test_service_url_env(self, monkeypatch):
        monkeypatch.setenv("FINANCE_SERVICE_URL", "http://finance.internal:80")

        config = load_config(environment="testing")

        assert config.gateway.services["finance"] == "http://finance.internal:80"
        assert config.gateway.services["health"] == "http://localhost:3002"

    def test_typed_env_values(self, monkeypatch):
        monkeypatch.setenv("LIFEOS_GATEWAY_TIMEOUT", "2.5")
        monkeypatch.setenv("LIFEOS_METRICS_ENABLED", "false")
        monkeypatch.setenv("LIFEOS_METRICS_PORT", "9100")

        config = load_config(environment="testing")

        assert config.gateway.timeout == 2.5
        assert config.monitoring.metrics_enabled is False
        assert config.monitoring.metrics_port == 9100

    def test_empty_env(self):
        assert load_config_from_env() == {}

    def test_merge_configs_is_deep(self):
        merged = merge_configs({"gateway": {"port": 1, "host": "a"}}, {"gateway": {"port": 2}})
        assert merged == {"gateway": {"port": 2, "host": "a"}}


class TestGlobalConfig:
    """Test cases for the process-wide config."""

    def test_set_and_reset(self):
        custom = AppConfig(environment="custom")
        set_config(custom)
        assert get_config() is custom

        set_config(None)
        assert get_config() is not custom
