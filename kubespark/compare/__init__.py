"""State comparator: material-field lists, compare and merge."""

from kubespark.compare.comparator import compare, merge
from kubespark.compare.fields import (
    MaterialField,
    RecordSchema,
    SequenceField,
    schema_for,
    supported_kinds,
)

__all__ = [
    "MaterialField",
    "RecordSchema",
    "SequenceField",
    "compare",
    "merge",
    "schema_for",
    "supported_kinds",
]
