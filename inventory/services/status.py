"""
Stock level and expiry arithmetic shared by models, views and reports.

Nothing here touches the database so the rules can be exercised
directly in tests and reused from management commands.
"""
from __future__ import annotations

from datetime import date
from typing import Optional

IN_STOCK = 'In Stock'
LOW_STOCK = 'Low Stock'
CRITICAL = 'Critical'
EXPIRED = 'Expired'
OUT_OF_STOCK = 'Out of Stock'

# Buckets used by the expiry tracking screen
EXPIRY_EXPIRED = 'expired'
EXPIRY_CRITICAL = 'critical'
EXPIRY_SOON = 'expiring_soon'
EXPIRY_MONITOR = 'monitor'
EXPIRY_GOOD = 'good'
EXPIRY_BUCKETS = (EXPIRY_EXPIRED, EXPIRY_CRITICAL, EXPIRY_SOON, EXPIRY_MONITOR, EXPIRY_GOOD)


def derive_status(current_stock: int, minimum_stock: int, expiry_date: Optional[date], today: date) -> str:
    """Return the display status for an item.

    Empty stock wins over expiry; an expired batch wins over the
    threshold checks.  Critical is at or below half the minimum.
    """
    if current_stock <= 0:
        return OUT_OF_STOCK
    if expiry_date is not None and expiry_date < today:
        return EXPIRED
    if current_stock <= minimum_stock * 0.5:
        return CRITICAL
    if current_stock <= minimum_stock:
        return LOW_STOCK
    return IN_STOCK


def days_until(expiry_date: date, today: date) -> int:
    return (expiry_date - today).days


def expiry_bucket(days_until_expiry: int) -> str:
    if days_until_expiry < 0:
        return EXPIRY_EXPIRED
    if days_until_expiry <= 7:
        return EXPIRY_CRITICAL
    if days_until_expiry <= 30:
        return EXPIRY_SOON
    if days_until_expiry <= 90:
        return EXPIRY_MONITOR
    return EXPIRY_GOOD


def suggested_order_quantity(current_stock: int, minimum_stock: int) -> int:
    """Quantity to reorder: the shortfall, but never less than one minimum's worth."""
    deficit = max(0, minimum_stock - current_stock)
    return max(deficit, minimum_stock)
