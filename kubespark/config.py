"""Configuration loading from environment variables."""

from __future__ import annotations

import os

from kubespark.models.config import EventsConfig, KubeSparkConfig, LogConfig, SparkConfig

_DEFAULT_SPARK_IMAGE = "splunk/spark"


def _env(key: str, default: str = "") -> str:
    return os.environ.get(f"KUBESPARK_{key}", default)


def _env_bool(key: str, default: bool = False) -> bool:
    val = _env(key, str(default).lower())
    return val.lower() in ("true", "1", "yes")


def _env_int(key: str, default: int, min_val: int | None = None, max_val: int | None = None) -> int:
    val = int(_env(key, str(default)))
    if min_val is not None:
        val = max(val, min_val)
    if max_val is not None:
        val = min(val, max_val)
    return val


def _env_float(key: str, default: float, min_val: float | None = None, max_val: float | None = None) -> float:
    val = float(_env(key, str(default)))
    if min_val is not None:
        val = max(val, min_val)
    if max_val is not None:
        val = min(val, max_val)
    return val


def _validate_log_level(value: str) -> str:
    valid = {"debug", "info", "warning", "error"}
    if value.lower() not in valid:
        raise ValueError(f"Invalid log level: {value}. Must be one of {valid}")
    return value.lower()


def _validate_pull_policy(value: str) -> str:
    valid = {"Always", "IfNotPresent", "Never"}
    if value not in valid:
        raise ValueError(f"Invalid image pull policy: {value}. Must be one of {valid}")
    return value


def _spark_image() -> str:
    # the operator deployment historically exported SPARK_IMAGE unprefixed
    return _env("SPARK_IMAGE") or os.environ.get("SPARK_IMAGE", "") or _DEFAULT_SPARK_IMAGE


def load_config() -> KubeSparkConfig:
    """Load configuration from KUBESPARK_* environment variables."""
    return KubeSparkConfig(
        spark=SparkConfig(
            image=_spark_image(),
            image_pull_policy=_validate_pull_policy(_env("IMAGE_PULL_POLICY", "IfNotPresent")),
        ),
        events=EventsConfig(
            log_enabled=_env_bool("EVENTS_LOG_ENABLED", True),
            webhook_secret_ref=_env("EVENTS_WEBHOOK_SECRET_REF", ""),
            webhook_timeout=_env_float("EVENTS_WEBHOOK_TIMEOUT", 10.0, min_val=1.0, max_val=60.0),
            max_value_length=_env_int("EVENTS_MAX_VALUE_LENGTH", 256, min_val=32, max_val=4096),
        ),
        log=LogConfig(
            level=_validate_log_level(_env("LOG_LEVEL", "info")),
        ),
    )
