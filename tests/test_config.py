"""Tests for the config module."""

import importlib
from unittest.mock import patch

from airguard import config


class TestConfigDefaults:
    """Verify default values when no environment variables are set."""

    def test_air_quality_api_url_default(self):
        assert config.AIR_QUALITY_API_URL == "https://air-quality-api.open-meteo.com/v1/air-quality"

    def test_geocoding_api_url_default(self):
        assert config.GEOCODING_API_URL == "https://geocoding-api.open-meteo.com/v1/search"

    def test_http_timeout_default(self):
        assert config.HTTP_TIMEOUT == 15

    def test_http_max_retries_default(self):
        assert config.HTTP_MAX_RETRIES == 1

    def test_nominatim_user_agent_default(self):
        assert config.NOMINATIM_USER_AGENT == "airguard-dashboard"

    def test_anthropic_model_default(self):
        assert config.ANTHROPIC_MODEL == "claude-sonnet-4-20250514"

    def test_chat_limits_default(self):
        assert config.CHAT_MAX_TOKENS == 1024
        assert config.CHAT_MAX_TOOL_ROUNDS == 5

    def test_alert_threshold_default(self):
        assert config.AQI_ALERT_THRESHOLD == 100

    def test_clock_refresh_default(self):
        assert config.CLOCK_REFRESH_SECONDS == 60

    def test_default_location_is_london(self):
        assert config.DEFAULT_LATITUDE == 51.5074
        assert config.DEFAULT_LONGITUDE == -0.1278
        assert config.DEFAULT_LOCATION_NAME == "London, UK"


class TestConfigEnvOverrides:
    """Verify environment variables override defaults."""

    @patch.dict("os.environ", {"HTTP_TIMEOUT": "30"})
    def test_http_timeout_override(self):
        importlib.reload(config)
        assert config.HTTP_TIMEOUT == 30
        importlib.reload(config)

    @patch.dict("os.environ", {"AQI_ALERT_THRESHOLD": "150"})
    def test_alert_threshold_override(self):
        importlib.reload(config)
        assert config.AQI_ALERT_THRESHOLD == 150
        importlib.reload(config)

    @patch.dict("os.environ", {"HTTP_RETRY_DELAY": "0.5"})
    def test_retry_delay_override(self):
        importlib.reload(config)
        assert config.HTTP_RETRY_DELAY == 0.5
        importlib.reload(config)

    @patch.dict("os.environ", {"ANTHROPIC_MODEL": "claude-haiku-4-5-20251001"})
    def test_anthropic_model_override(self):
        importlib.reload(config)
        assert config.ANTHROPIC_MODEL == "claude-haiku-4-5-20251001"
        importlib.reload(config)

    @patch.dict("os.environ", {"ANTHROPIC_API_KEY": "sk-test-key-123"})
    def test_anthropic_api_key_from_env(self):
        assert config.get_anthropic_api_key() == "sk-test-key-123"


class TestConfigTypeConversion:
    """Verify numeric environment variables are properly converted."""

    def test_http_timeout_is_int(self):
        assert isinstance(config.HTTP_TIMEOUT, int)

    def test_retry_delay_is_float(self):
        assert isinstance(config.HTTP_RETRY_DELAY, float)

    def test_default_latitude_is_float(self):
        assert isinstance(config.DEFAULT_LATITUDE, float)


class TestSetupLogging:
    """Verify the loguru sink is configured once."""

    def test_configures_single_sink(self):
        from airguard import logger as logger_module

        with patch.object(logger_module, "_configured", False), \
                patch.object(logger_module, "logger") as mock_logger:
            logger_module.setup_logging("debug")
            logger_module.setup_logging("debug")

        mock_logger.remove.assert_called_once()
        mock_logger.add.assert_called_once()
        assert mock_logger.add.call_args.kwargs["level"] == "DEBUG"
