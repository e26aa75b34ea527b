"""Tests for provider settings."""

import pytest
from pydantic import ValidationError

from ceph_provider.ceph.errors import CephConfigurationError
from ceph_provider.core.config import LoggingConfig, ProviderSettings


class TestValidateProvider:
    """Tests for endpoint and credential rules."""

    def test_single_endpoint_with_token(self) -> None:
        """Test the simplest valid configuration."""
        settings = ProviderSettings(endpoint="https://mgr:8443", token="tok")

        assert settings.validate_provider() == ["https://mgr:8443"]

    def test_endpoint_list_with_password(self) -> None:
        """Test that an endpoint list keeps its order."""
        settings = ProviderSettings(endpoints=["https://b:8443", "https://a:8443"], username="admin", password="pw")

        assert settings.validate_provider() == ["https://b:8443", "https://a:8443"]

    def test_endpoint_and_endpoints(self) -> None:
        """Test that endpoint and endpoints are mutually exclusive."""
        settings = ProviderSettings(endpoint="https://a:8443", endpoints=["https://b:8443"], token="tok")

        with pytest.raises(CephConfigurationError) as exc_info:
            settings.validate_provider()

        assert exc_info.value.attribute == "endpoints"

    def test_no_endpoint(self) -> None:
        """Test that an endpoint is required."""
        with pytest.raises(CephConfigurationError):
            ProviderSettings(token="tok").validate_provider()

    @pytest.mark.parametrize("endpoint", ["https://mgr:8443/api", "https://mgr:8443/api/"])
    def test_endpoint_ending_in_api(self, endpoint: str) -> None:
        """Test that the API prefix is not part of the endpoint."""
        with pytest.raises(CephConfigurationError) as exc_info:
            ProviderSettings(endpoint=endpoint, token="tok").validate_provider()

        assert "SHOULD NOT end with '/api'" in exc_info.value.message

    def test_empty_endpoint(self) -> None:
        """Test that a blank endpoint is rejected."""
        with pytest.raises(CephConfigurationError) as exc_info:
            ProviderSettings(endpoints=["https://a:8443", " "], token="tok").validate_provider()

        assert exc_info.value.message == "Endpoint cannot be empty"

    def test_no_credentials(self) -> None:
        """Test that credentials are required."""
        with pytest.raises(CephConfigurationError):
            ProviderSettings(endpoint="https://mgr:8443", username="admin").validate_provider()

    def test_token_and_password(self) -> None:
        """Test that a token excludes username and password."""
        settings = ProviderSettings(endpoint="https://mgr:8443", token="tok", username="admin", password="pw")

        with pytest.raises(CephConfigurationError) as exc_info:
            settings.validate_provider()

        assert exc_info.value.message == "Only one of token or username/password may be configured"


class TestSettingsSources:
    """Tests for loading settings."""

    def test_environment(self, monkeypatch) -> None:
        """Test that settings come from prefixed environment variables."""
        monkeypatch.setenv("CEPH_PROVIDER_ENDPOINT", "https://env:8443")
        monkeypatch.setenv("CEPH_PROVIDER_TOKEN", "env-token")
        monkeypatch.setenv("CEPH_PROVIDER_LOGGING__LEVEL", "DEBUG")

        settings = ProviderSettings()

        assert settings.endpoint == "https://env:8443"
        assert settings.token.get_secret_value() == "env-token"
        assert settings.logging.level == "debug"

    def test_load_from_yaml(self, tmp_path) -> None:
        """Test loading settings from a YAML file."""
        config_file = tmp_path / "ceph-provider.yaml"
        config_file.write_text("endpoint: https://yaml:8443\nusername: admin\npassword: pw\ntimeout: 30\n")

        settings = ProviderSettings.load_from_yaml(config_file)

        assert settings.endpoint == "https://yaml:8443"
        assert settings.timeout == 30
        assert settings.validate_provider() == ["https://yaml:8443"]

    def test_load_missing_yaml_uses_defaults(self, tmp_path) -> None:
        """Test that a missing file falls back to defaults."""
        settings = ProviderSettings.load_from_yaml(tmp_path / "missing.yaml")

        assert settings.endpoint is None
        assert settings.timeout == 10

    def test_to_dict_masks_secrets(self) -> None:
        """Test that secrets never appear in the dumped settings."""
        data = ProviderSettings(endpoint="https://mgr:8443", password="pw", username="admin").to_dict()

        assert data["password"] != "pw"
        assert "pw" not in str(data)

    def test_invalid_log_level(self) -> None:
        """Test that unknown log levels are rejected."""
        with pytest.raises(ValidationError):
            LoggingConfig(level="verbose")
