"""Tests for Kubernetes resource quantity parsing."""

from __future__ import annotations

from decimal import Decimal

import pytest

from kubespark.synthesis.quantity import parse_quantity, parse_resource_quantity


class TestParseQuantity:
    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("1", Decimal(1)),
            ("0.1", Decimal("0.1")),
            ("100m", Decimal("0.1")),
            ("512Mi", Decimal(512 * 2**20)),
            ("8Gi", Decimal(8 * 2**30)),
            ("1k", Decimal(1000)),
            ("2M", Decimal(2_000_000)),
            ("1e3", Decimal(1000)),
            ("250u", Decimal("0.00025")),
            (".5", Decimal("0.5")),
        ],
    )
    def test_valid_quantities(self, text: str, expected: Decimal) -> None:
        assert parse_quantity(text) == expected

    def test_equivalent_forms_compare_equal(self) -> None:
        assert parse_quantity("4") == parse_quantity("4000m")
        assert parse_quantity("1Gi") == parse_quantity("1024Mi")

    def test_numbers_accepted(self) -> None:
        assert parse_quantity(2) == Decimal(2)
        assert parse_quantity(0.5) == Decimal("0.5")

    @pytest.mark.parametrize("text", ["", "abc", "1.2.3", "10 Mi", "5Q", "Mi"])
    def test_invalid_quantities(self, text: str) -> None:
        with pytest.raises(ValueError):
            parse_quantity(text)

    def test_bool_rejected(self) -> None:
        with pytest.raises(ValueError):
            parse_quantity(True)


class TestParseResourceQuantity:
    def test_empty_uses_default(self) -> None:
        assert parse_resource_quantity("", "512Mi") == "512Mi"

    def test_value_kept_as_written(self) -> None:
        assert parse_resource_quantity(" 2Gi ", "512Mi") == "2Gi"

    def test_invalid_value_raises(self) -> None:
        with pytest.raises(ValueError):
            parse_resource_quantity("lots", "512Mi")
