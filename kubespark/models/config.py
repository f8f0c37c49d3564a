"""Configuration data structures."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class SparkConfig:
    """Defaults used when a SparkCluster leaves a field empty."""

    image: str = "splunk/spark"
    image_pull_policy: str = "IfNotPresent"


@dataclass
class EventsConfig:
    """Reconcile event sink configuration."""

    log_enabled: bool = True
    webhook_secret_ref: str = ""
    webhook_timeout: float = 10.0
    max_value_length: int = 256


@dataclass
class LogConfig:
    """Logging configuration."""

    level: str = "info"


@dataclass
class KubeSparkConfig:
    """Top-level KubeSpark configuration."""

    spark: SparkConfig = field(default_factory=SparkConfig)
    events: EventsConfig = field(default_factory=EventsConfig)
    log: LogConfig = field(default_factory=LogConfig)
