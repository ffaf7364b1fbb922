from datetime import datetime

import pytest

from app.formatting import format_clp, format_long_date_es, format_order_number


@pytest.mark.parametrize(
    "dt,expected",
    [
        (datetime(2025, 7, 13, 23, 57), "13 de julio de 2025, 11:57 p. m."),
        (datetime(2025, 1, 2, 0, 5), "2 de enero de 2025, 12:05 a. m."),
        (datetime(2024, 12, 31, 12, 0), "31 de diciembre de 2024, 12:00 p. m."),
    ],
)
def test_long_date_es(dt, expected):
    assert format_long_date_es(dt) == expected


@pytest.mark.parametrize(
    "amount,expected",
    [(0, "$0"), (990, "$990"), (5500, "$5.500"), (1234567, "$1.234.567")],
)
def test_clp(amount, expected):
    assert format_clp(amount) == expected


def test_order_number_padding():
    assert format_order_number(1) == "ORD-001"
    assert format_order_number(1234) == "ORD-1234"
