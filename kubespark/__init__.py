"""KubeSpark: reconciliation engine for Spark master/worker clusters on Kubernetes."""

__version__ = "0.1.0"
