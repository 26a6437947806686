"""
Dashboard summary, period reports and CSV exports.

Figures come from live rows and from the stock movement ledger; the
dashboard payload is cached under ``DASHBOARD_CACHE_KEY`` and dropped by
:func:`inventory.services.realtime.notify_change` after any mutation.
"""
from __future__ import annotations

import csv
import io
from datetime import date, timedelta
from decimal import Decimal
from typing import Optional

from django.conf import settings
from django.core.cache import cache
from django.db.models import Count, F, Q, Sum
from django.db.models.functions import TruncMonth, TruncWeek
from django.utils import timezone

from inventory.models import InventoryItem, PurchaseOrder, StockMovement, SupplyRequest, User
from inventory.services.realtime import DASHBOARD_CACHE_KEY
from inventory.services.requests import format_request
from inventory.services.stock import format_item

PERIODS = {
    'last-7-days': 7,
    'last-30-days': 30,
    'last-90-days': 90,
    'last-year': 365,
}
DEFAULT_PERIOD = 'last-30-days'


def period_start(period: str, today: Optional[date] = None) -> date:
    today = today or timezone.localdate()
    return today - timedelta(days=PERIODS.get(period, PERIODS[DEFAULT_PERIOD]))


def _percent(part: int, whole: int) -> int:
    return round(part * 100 / whole) if whole else 0


def build_dashboard(today: Optional[date] = None) -> dict:
    today = today or timezone.localdate()
    attention = [InventoryItem.STATUS_LOW, InventoryItem.STATUS_CRITICAL]
    pending = SupplyRequest.objects.filter(status=SupplyRequest.STATUS_PENDING)
    recent = (
        SupplyRequest.objects.select_related('department', 'requested_by')
        .prefetch_related('items__item')
        .order_by('-created_at', '-id')[:5]
    )
    critical = InventoryItem.objects.filter(
        status__in=[InventoryItem.STATUS_CRITICAL, InventoryItem.STATUS_OUT]
    ).order_by('current_stock', 'name')[:5]
    warn_until = today + timedelta(days=settings.EXPIRY_WARNING_DAYS)
    return {
        'totalItems': InventoryItem.objects.count(),
        'lowStockItems': InventoryItem.objects.filter(status__in=attention).count(),
        'activeUsers': User.objects.filter(status=User.STATUS_ACTIVE).count(),
        'pendingRequests': pending.count(),
        'urgentRequests': pending.filter(priority='urgent').count(),
        'expiringSoon': InventoryItem.objects.filter(
            expiry_date__gte=today, expiry_date__lte=warn_until, current_stock__gt=0
        ).count(),
        'recentRequests': [format_request(r) for r in recent],
        'criticalItems': [format_item(i) for i in critical],
        'generatedAt': timezone.now().isoformat(),
    }


def dashboard_summary() -> dict:
    """Cached :func:`build_dashboard`."""
    payload = cache.get(DASHBOARD_CACHE_KEY)
    if payload is None:
        payload = build_dashboard()
        cache.set(DASHBOARD_CACHE_KEY, payload, settings.DASHBOARD_CACHE_SECONDS)
    return payload


def inventory_value() -> Decimal:
    total = InventoryItem.objects.aggregate(v=Sum(F('current_stock') * F('unit_cost')))['v']
    return total or Decimal('0')


def category_distribution() -> list[dict]:
    rows = list(InventoryItem.objects.values('category').annotate(count=Count('id')).order_by('-count', 'category'))
    total = sum(r['count'] for r in rows)
    return [
        {'category': r['category'], 'count': r['count'], 'percentage': _percent(r['count'], total)}
        for r in rows
    ]


def monthly_orders(start: date) -> list[dict]:
    rows = (
        PurchaseOrder.objects.filter(order_date__gte=start)
        .exclude(status=PurchaseOrder.STATUS_CANCELLED)
        .annotate(month=TruncMonth('order_date'))
        .values('month')
        .annotate(orders=Count('id'), value=Sum('total_amount'))
        .order_by('month')
    )
    return [
        {'month': r['month'].strftime('%Y-%m'), 'orders': r['orders'], 'value': float(r['value'] or 0)}
        for r in rows
    ]


def weekly_movements(start: date) -> list[dict]:
    rows = (
        StockMovement.objects.filter(created_at__date__gte=start)
        .annotate(week=TruncWeek('created_at'))
        .values('week')
        .annotate(
            inbound=Sum('change', filter=Q(change__gt=0)),
            outbound=Sum('change', filter=Q(change__lt=0)),
        )
        .order_by('week')
    )
    return [
        {
            'week': r['week'].date().isoformat() if hasattr(r['week'], 'date') else str(r['week']),
            'inbound': r['inbound'] or 0,
            'outbound': abs(r['outbound'] or 0),
        }
        for r in rows
    ]


def top_departments(start: date, limit: int = 5) -> list[dict]:
    qs = SupplyRequest.objects.filter(created_at__date__gte=start)
    total = qs.count()
    rows = (
        qs.values('department_id', 'department__name')
        .annotate(requests=Count('id'))
        .order_by('-requests', 'department__name')[:limit]
    )
    return [
        {
            'departmentId': r['department_id'],
            'department': r['department__name'],
            'requests': r['requests'],
            'percentage': _percent(r['requests'], total),
        }
        for r in rows
    ]


def build_report(period: str = DEFAULT_PERIOD, today: Optional[date] = None) -> dict:
    if period not in PERIODS:
        period = DEFAULT_PERIOD
    start = period_start(period, today)
    orders = PurchaseOrder.objects.filter(order_date__gte=start).exclude(status=PurchaseOrder.STATUS_CANCELLED)
    totals = orders.aggregate(count=Count('id'), value=Sum('total_amount'))
    return {
        'period': period,
        'from': start.isoformat(),
        'totalInventoryValue': float(inventory_value()),
        'ordersCount': totals['count'] or 0,
        'ordersValue': float(totals['value'] or 0),
        'lowStockCount': InventoryItem.objects.filter(
            status__in=[InventoryItem.STATUS_LOW, InventoryItem.STATUS_CRITICAL, InventoryItem.STATUS_OUT]
        ).count(),
        'monthlyOrders': monthly_orders(start),
        'categoryDistribution': category_distribution(),
        'stockMovement': weekly_movements(start),
        'topDepartments': top_departments(start),
    }


EXPORTS = ('inventory', 'requests', 'orders')


def _inventory_rows():
    yield ['ID', 'Name', 'Category', 'Current Stock', 'Minimum Stock', 'Unit', 'Unit Cost',
           'Location', 'Expiry Date', 'Batch Number', 'Status']
    for i in InventoryItem.objects.order_by('name'):
        yield [i.id, i.name, i.category, i.current_stock, i.minimum_stock, i.unit_of_measure, i.unit_cost,
               i.location, i.expiry_date or '', i.batch_number, i.status]


def _request_rows():
    yield ['ID', 'Department', 'Requested By', 'Request Date', 'Required Date', 'Priority', 'Status', 'Lines']
    qs = SupplyRequest.objects.select_related('department', 'requested_by').annotate(lines=Count('items'))
    for r in qs.order_by('-created_at'):
        yield [r.id, r.department.name, r.requested_by.email if r.requested_by else '',
               r.created_at.date(), r.required_date or '', r.priority, r.status, r.lines]


def _order_rows():
    yield ['ID', 'Supplier', 'Order Date', 'Expected Delivery', 'Status', 'Total Amount', 'Lines']
    for o in PurchaseOrder.objects.annotate(lines=Count('items')).order_by('-order_date', '-id'):
        yield [o.id, o.supplier, o.order_date, o.expected_delivery, o.status, o.total_amount, o.lines]


def export_csv(kind: str) -> str:
    rows = {'inventory': _inventory_rows, 'requests': _request_rows, 'orders': _order_rows}[kind]()
    buf = io.StringIO()
    writer = csv.writer(buf)
    for row in rows:
        writer.writerow(row)
    return buf.getvalue()
