from datetime import date, timedelta

import pytest

from inventory.services import status as st

TODAY = date(2024, 6, 1)


@pytest.mark.parametrize('stock,minimum,expiry,expected', [
    (0, 10, None, st.OUT_OF_STOCK),
    (-3, 10, None, st.OUT_OF_STOCK),
    # empty beats expired
    (0, 10, TODAY - timedelta(days=1), st.OUT_OF_STOCK),
    (50, 10, TODAY - timedelta(days=1), st.EXPIRED),
    (5, 10, None, st.CRITICAL),
    (6, 10, None, st.LOW_STOCK),
    (10, 10, None, st.LOW_STOCK),
    (11, 10, None, st.IN_STOCK),
    (1, 0, None, st.IN_STOCK),
    (50, 10, TODAY, st.IN_STOCK),
])
def test_derive_status(stock, minimum, expiry, expected):
    assert st.derive_status(stock, minimum, expiry, TODAY) == expected


@pytest.mark.parametrize('days,bucket', [
    (-1, st.EXPIRY_EXPIRED),
    (0, st.EXPIRY_CRITICAL),
    (7, st.EXPIRY_CRITICAL),
    (8, st.EXPIRY_SOON),
    (30, st.EXPIRY_SOON),
    (31, st.EXPIRY_MONITOR),
    (90, st.EXPIRY_MONITOR),
    (91, st.EXPIRY_GOOD),
])
def test_expiry_bucket_boundaries(days, bucket):
    assert st.expiry_bucket(days) == bucket


def test_days_until():
    assert st.days_until(TODAY + timedelta(days=12), TODAY) == 12
    assert st.days_until(TODAY - timedelta(days=2), TODAY) == -2


def test_suggested_order_quantity():
    # shortfall smaller than minimum -> order one minimum
    assert st.suggested_order_quantity(40, 50) == 50
    assert st.suggested_order_quantity(0, 50) == 50
    assert st.suggested_order_quantity(100, 50) == 50
    assert st.suggested_order_quantity(5, 0) == 0
