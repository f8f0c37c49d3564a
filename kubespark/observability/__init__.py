"""Logging, metrics and redaction helpers."""
