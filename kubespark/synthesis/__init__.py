"""Desired-record synthesis from a top-level SparkCluster spec.

Submodules:
    quantity -- Kubernetes resource quantity parsing.
    spark    -- SparkSynthesizer: Services and Deployments per Spark role.
"""

from kubespark.synthesis.quantity import parse_quantity, parse_resource_quantity
from kubespark.synthesis.spark import ManagedComponent, SparkSynthesizer

__all__ = [
    "ManagedComponent",
    "SparkSynthesizer",
    "parse_quantity",
    "parse_resource_quantity",
]
