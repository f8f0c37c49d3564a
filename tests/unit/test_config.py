"""Tests for environment-driven configuration loading."""

from __future__ import annotations

import pytest

from kubespark.config import load_config


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in (
        "SPARK_IMAGE",
        "KUBESPARK_SPARK_IMAGE",
        "KUBESPARK_IMAGE_PULL_POLICY",
        "KUBESPARK_LOG_LEVEL",
        "KUBESPARK_EVENTS_LOG_ENABLED",
        "KUBESPARK_EVENTS_WEBHOOK_SECRET_REF",
        "KUBESPARK_EVENTS_WEBHOOK_TIMEOUT",
        "KUBESPARK_EVENTS_MAX_VALUE_LENGTH",
    ):
        monkeypatch.delenv(key, raising=False)


class TestDefaults:
    def test_defaults(self) -> None:
        config = load_config()
        assert config.spark.image == "splunk/spark"
        assert config.spark.image_pull_policy == "IfNotPresent"
        assert config.events.log_enabled is True
        assert config.events.webhook_secret_ref == ""
        assert config.events.webhook_timeout == 10.0
        assert config.events.max_value_length == 256
        assert config.log.level == "info"


class TestSparkImage:
    def test_prefixed_variable_wins(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SPARK_IMAGE", "legacy/spark:1")
        monkeypatch.setenv("KUBESPARK_SPARK_IMAGE", "registry.local/spark:2")
        assert load_config().spark.image == "registry.local/spark:2"

    def test_unprefixed_fallback(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SPARK_IMAGE", "legacy/spark:1")
        assert load_config().spark.image == "legacy/spark:1"


class TestValidation:
    def test_log_level_normalized(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("KUBESPARK_LOG_LEVEL", "DEBUG")
        assert load_config().log.level == "debug"

    def test_invalid_log_level(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("KUBESPARK_LOG_LEVEL", "verbose")
        with pytest.raises(ValueError, match="Invalid log level"):
            load_config()

    def test_invalid_pull_policy(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("KUBESPARK_IMAGE_PULL_POLICY", "Sometimes")
        with pytest.raises(ValueError, match="Invalid image pull policy"):
            load_config()

    def test_webhook_timeout_clamped(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("KUBESPARK_EVENTS_WEBHOOK_TIMEOUT", "600")
        assert load_config().events.webhook_timeout == 60.0

    def test_max_value_length_clamped(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("KUBESPARK_EVENTS_MAX_VALUE_LENGTH", "4")
        assert load_config().events.max_value_length == 32

    def test_non_numeric_value_raises(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("KUBESPARK_EVENTS_MAX_VALUE_LENGTH", "lots")
        with pytest.raises(ValueError):
            load_config()

    @pytest.mark.parametrize(("raw", "expected"), [("false", False), ("0", False), ("yes", True), ("TRUE", True)])
    def test_bool_parsing(self, monkeypatch: pytest.MonkeyPatch, raw: str, expected: bool) -> None:
        monkeypatch.setenv("KUBESPARK_EVENTS_LOG_ENABLED", raw)
        assert load_config().events.log_enabled is expected

    def test_webhook_secret_ref(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("KUBESPARK_EVENTS_WEBHOOK_SECRET_REF", "SPARK_EVENTS_HOOK")
        assert load_config().events.webhook_secret_ref == "SPARK_EVENTS_HOOK"
