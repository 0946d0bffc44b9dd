"""Unit tests for Kubernetes quantity parsing."""

from decimal import Decimal

import pytest
from rabbitop.utils.quantity import parse_quantity, quantities_equal


@pytest.mark.parametrize(
    "quantity,expected",
    [
        ("1", Decimal(1)),
        ("100m", Decimal("0.1")),
        ("2Gi", Decimal(2 * 1024 ** 3)),
        ("500Mi", Decimal(500 * 1024 ** 2)),
        ("1k", Decimal(1000)),
        ("1.5", Decimal("1.5")),
        ("2e3", Decimal(2000)),
        (4, Decimal(4)),
    ],
)
def test_parse_quantity(quantity, expected):
    assert parse_quantity(quantity) == expected


@pytest.mark.parametrize("quantity", ["", "  ", "abc", "10Qi", "1..2", None, True])
def test_parse_quantity_rejects_malformed(quantity):
    with pytest.raises(ValueError):
        parse_quantity(quantity)


def test_quantities_equal_across_formats():
    assert quantities_equal({"cpu": "1000m", "memory": "1Gi"}, {"cpu": "1", "memory": "1024Mi"})


def test_quantities_differ():
    assert not quantities_equal({"memory": "1Gi"}, {"memory": "2Gi"})
    assert not quantities_equal({"memory": "1Gi"}, {"memory": "1Gi", "cpu": "1"})
    assert not quantities_equal({"memory": "bogus"}, {"memory": "bogus"})


def test_quantities_equal_empty():
    assert quantities_equal(None, {})
