"""
Stock level changes and item queries.

All writes to ``InventoryItem.current_stock`` go through
:func:`apply_stock_change`, which locks the row, refuses to go below
zero, recomputes the derived status and appends a ledger row.
"""
from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from typing import Iterable, Optional

from django.db import transaction
from django.db.models import Q, QuerySet
from django.utils import timezone
from rest_framework.exceptions import NotFound

from inventory.exceptions import InsufficientStock, InvalidTransition
from inventory.models import InventoryItem, StockMovement, User
from inventory.services.audit import log_action
from inventory.services.realtime import notify_change
from inventory.services.status import days_until, expiry_bucket, EXPIRY_BUCKETS, suggested_order_quantity

logger = logging.getLogger(__name__)


def format_item(item: InventoryItem) -> dict:
    return {
        'id': item.id,
        'name': item.name,
        'description': item.description,
        'category': item.category,
        'unitOfMeasure': item.unit_of_measure,
        'currentStock': item.current_stock,
        'minimumStock': item.minimum_stock,
        'maximumStock': item.maximum_stock,
        'unitCost': float(item.unit_cost),
        'supplier': item.supplier,
        'location': item.location,
        'expiryDate': item.expiry_date.isoformat() if item.expiry_date else None,
        'batchNumber': item.batch_number,
        'status': item.status,
        'lastUpdated': item.updated_at.isoformat() if item.updated_at else None,
    }


def format_movement(m: StockMovement) -> dict:
    return {
        'id': m.id,
        'itemId': m.item_id,
        'itemName': m.item.name,
        'change': m.change,
        'balanceAfter': m.balance_after,
        'kind': m.kind,
        'reason': m.reason,
        'sourceType': m.source_type,
        'sourceId': m.source_id,
        'batchNumber': m.batch_number,
        'expiryDate': m.expiry_date.isoformat() if m.expiry_date else None,
        'createdBy': m.created_by_id,
        'createdAt': m.created_at.isoformat(),
    }


def filter_items(qs: QuerySet, *, q: str = '', category: str = '', status: str = '', location: str = '') -> QuerySet:
    if q:
        qs = qs.filter(
            Q(name__icontains=q) | Q(description__icontains=q)
            | Q(category__icontains=q) | Q(batch_number__icontains=q)
        )
    if category:
        qs = qs.filter(category=category)
    if status:
        qs = qs.filter(status=status)
    if location:
        qs = qs.filter(location__icontains=location)
    return qs


def apply_stock_change(
    *,
    item_id: int,
    delta: int,
    kind: str,
    user: Optional[User],
    reason: str = '',
    source_type: str = '',
    source_id: Optional[int] = None,
    batch_number: str = '',
    expiry_date: Optional[date] = None,
) -> InventoryItem:
    """Lock the item, apply ``delta`` and write the movement row.

    Must run inside ``transaction.atomic``.  A positive delta may carry
    a batch number and expiry date which then replace the item's own.
    """
    item = InventoryItem.objects.select_for_update().filter(pk=item_id).first()
    if item is None:
        raise NotFound(f'Item {item_id} not found')
    new_stock = item.current_stock + delta
    if new_stock < 0:
        raise InsufficientStock(
            f'{item.name}: requested {abs(delta)} {item.unit_of_measure}, '
            f'only {item.current_stock} available'
        )
    item.current_stock = new_stock
    if delta > 0:
        if batch_number:
            item.batch_number = batch_number
        if expiry_date:
            item.expiry_date = expiry_date
    item.save()
    StockMovement.objects.create(
        item=item,
        change=delta,
        balance_after=new_stock,
        kind=kind,
        reason=reason,
        source_type=source_type,
        source_id=source_id,
        batch_number=batch_number or item.batch_number,
        expiry_date=expiry_date or item.expiry_date,
        created_by=user if getattr(user, 'pk', None) else None,
    )
    return item


@transaction.atomic
def create_item(user: User, fields: dict) -> InventoryItem:
    item = InventoryItem.objects.create(**fields)
    if item.current_stock:
        StockMovement.objects.create(
            item=item,
            change=item.current_stock,
            balance_after=item.current_stock,
            kind=StockMovement.KIND_RECEIPT,
            reason='Opening stock',
            batch_number=item.batch_number,
            expiry_date=item.expiry_date,
            created_by=user,
        )
    log_action(user=user, action='item_create', object_type='inventory_item', object_id=item.id,
               detail={'name': item.name, 'stock': item.current_stock})
    notify_change('inventory', [item.id])
    return item


@transaction.atomic
def update_item(user: User, item: InventoryItem, fields: dict) -> InventoryItem:
    fields.pop('current_stock', None)
    for name, value in fields.items():
        setattr(item, name, value)
    item.save()
    log_action(user=user, action='item_update', object_type='inventory_item', object_id=item.id,
               detail={'fields': sorted(fields)})
    notify_change('inventory', [item.id])
    return item


@transaction.atomic
def delete_item(user: User, item: InventoryItem) -> None:
    """Delete an item with no workflow history."""
    item_id = item.id
    if item.request_lines.exists() or item.order_lines.exists() or item.release_lines.exists():
        raise InvalidTransition('Item is referenced by requests, orders or releases and cannot be deleted.')
    item.delete()
    log_action(user=user, action='item_delete', object_type='inventory_item', object_id=item_id)
    notify_change('inventory', [item_id])


def add_stock(user: User, entries: Iterable[dict]) -> list[InventoryItem]:
    """Receive a batch of stock entries; all or nothing.

    Entries are applied in item id order, the same order releases lock rows in.
    """
    entries = sorted(entries, key=lambda e: e['itemId'])
    updated: list[InventoryItem] = []
    with transaction.atomic():
        for entry in entries:
            item = apply_stock_change(
                item_id=entry['itemId'],
                delta=entry['quantity'],
                kind=StockMovement.KIND_RECEIPT,
                user=user,
                reason=entry.get('notes') or 'Stock received',
                batch_number=entry.get('batchNumber') or '',
                expiry_date=entry.get('expiryDate'),
            )
            updated.append(item)
        log_action(user=user, action='stock_add', object_type='inventory_item', object_id=None,
                   detail={'entries': [{'itemId': i.id, 'quantity': e['quantity']} for i, e in zip(updated, entries)]})
        notify_change('inventory', [i.id for i in updated])
    logger.info("Stock received", extra={'items': [i.id for i in updated], 'user': user.pk})
    return updated


def adjust_stock(user: User, item_id: int, delta: int, reason: str) -> InventoryItem:
    with transaction.atomic():
        item = apply_stock_change(
            item_id=item_id, delta=delta, kind=StockMovement.KIND_ADJUSTMENT, user=user, reason=reason,
        )
        log_action(user=user, action='stock_adjust', object_type='inventory_item', object_id=item.id,
                   detail={'delta': delta, 'reason': reason})
        notify_change('inventory', [item.id])
    logger.info("Stock adjusted", extra={'item': item.id, 'delta': delta})
    return item


def low_stock_items() -> QuerySet:
    return InventoryItem.objects.filter(
        status__in=[InventoryItem.STATUS_LOW, InventoryItem.STATUS_CRITICAL, InventoryItem.STATUS_OUT]
    )


def reorder_suggestions() -> list[dict]:
    """Items at or below their minimum with a suggested order quantity."""
    out = []
    for item in InventoryItem.objects.order_by('current_stock', 'name'):
        if item.current_stock > item.minimum_stock:
            continue
        qty = suggested_order_quantity(item.current_stock, item.minimum_stock)
        if qty <= 0:
            continue
        out.append({
            **format_item(item),
            'suggestedQuantity': qty,
            'estimatedCost': float(item.unit_cost * qty),
        })
    return out


def expiry_report(*, q: str = '', category: str = '', bucket: str = '', sort: str = 'expiry_date',
                  today: Optional[date] = None) -> dict:
    """Expiry tracking rows plus per-bucket summary.

    The summary covers every tracked item; ``q``/``category``/``bucket``
    only narrow the returned rows.
    """
    today = today or timezone.localdate()
    qs = InventoryItem.objects.filter(expiry_date__isnull=False, current_stock__gt=0)
    rows = []
    summary = {b: 0 for b in EXPIRY_BUCKETS}
    value_at_risk_total = Decimal('0')
    for item in qs:
        days = days_until(item.expiry_date, today)
        b = expiry_bucket(days)
        value = item.stock_value
        summary[b] += 1
        if b in ('expired', 'critical', 'expiring_soon'):
            value_at_risk_total += value
        rows.append((item, days, b, value))

    needle = q.lower()
    filtered = [
        r for r in rows
        if (not needle or needle in r[0].name.lower() or needle in r[0].batch_number.lower()
            or needle in r[0].category.lower())
        and (not category or r[0].category == category)
        and (not bucket or r[2] == bucket)
    ]
    sorters = {
        'expiry_date': (lambda r: r[0].expiry_date, False),
        'days_until_expiry': (lambda r: r[1], False),
        'value_at_risk': (lambda r: r[3], True),
        'name': (lambda r: r[0].name.lower(), False),
        'category': (lambda r: r[0].category.lower(), False),
    }
    key, reverse = sorters.get(sort, sorters['expiry_date'])
    filtered.sort(key=key, reverse=reverse)

    return {
        'items': [
            {
                'id': item.id,
                'name': item.name,
                'category': item.category,
                'batchNumber': item.batch_number,
                'expiryDate': item.expiry_date.isoformat(),
                'currentStock': item.current_stock,
                'unitOfMeasure': item.unit_of_measure,
                'unitCost': float(item.unit_cost),
                'location': item.location,
                'supplier': item.supplier,
                'daysUntilExpiry': days,
                'status': b,
                'valueAtRisk': float(value),
            }
            for item, days, b, value in filtered
        ],
        'summary': {**summary, 'valueAtRisk': float(value_at_risk_total), 'total': len(rows)},
    }


def refresh_all_statuses(today: Optional[date] = None) -> int:
    """Recompute every item's status; returns how many changed."""
    changed = []
    for item in InventoryItem.objects.all():
        before = item.status
        if item.refresh_status(today) != before:
            InventoryItem.objects.filter(pk=item.pk).update(status=item.status)
            changed.append(item.id)
    if changed:
        notify_change('inventory', changed)
    return len(changed)
