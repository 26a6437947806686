"""
Purchase orders.

An order moves pending -> approved -> shipped -> delivered, and can be
cancelled at any point before delivery.  Delivery receives every line
into stock in the same transaction that flips the status.
"""
from __future__ import annotations

import logging
from decimal import Decimal
from typing import Optional

import bleach
from django.db import transaction
from django.db.models import Q, QuerySet
from django.utils import timezone
from rest_framework.exceptions import NotFound, ValidationError

from inventory.exceptions import InvalidTransition
from inventory.models import InventoryItem, OrderItem, PurchaseOrder, StockMovement, User
from inventory.services.audit import log_action
from inventory.services.realtime import notify_change
from inventory.services.stock import apply_stock_change

logger = logging.getLogger(__name__)

TRANSITIONS = {
    PurchaseOrder.STATUS_PENDING: {PurchaseOrder.STATUS_APPROVED, PurchaseOrder.STATUS_CANCELLED},
    PurchaseOrder.STATUS_APPROVED: {
        PurchaseOrder.STATUS_SHIPPED, PurchaseOrder.STATUS_DELIVERED, PurchaseOrder.STATUS_CANCELLED,
    },
    PurchaseOrder.STATUS_SHIPPED: {PurchaseOrder.STATUS_DELIVERED, PurchaseOrder.STATUS_CANCELLED},
    PurchaseOrder.STATUS_DELIVERED: set(),
    PurchaseOrder.STATUS_CANCELLED: set(),
}


def format_order(order: PurchaseOrder) -> dict:
    return {
        'id': order.id,
        'supplier': order.supplier,
        'orderDate': order.order_date.isoformat(),
        'expectedDelivery': order.expected_delivery.isoformat(),
        'status': order.status,
        'totalAmount': float(order.total_amount),
        'notes': order.notes,
        'orderedBy': order.ordered_by_id,
        'receivedAt': order.received_at.isoformat() if order.received_at else None,
        'items': [
            {
                'id': line.id,
                'itemId': line.item_id,
                'itemName': line.item.name,
                'quantity': line.quantity,
                'unitPrice': float(line.unit_price),
                'totalPrice': float(line.total_price),
            }
            for line in order.items.all()
        ],
    }


def orders_queryset() -> QuerySet:
    return PurchaseOrder.objects.prefetch_related('items__item')


def get_order(order_id: int) -> PurchaseOrder:
    order = orders_queryset().filter(pk=order_id).first()
    if order is None:
        raise NotFound('Order not found')
    return order


def list_orders(*, status: Optional[str] = None, supplier: Optional[str] = None, q: Optional[str] = None) -> QuerySet:
    qs = orders_queryset()
    if status:
        qs = qs.filter(status=status)
    if supplier:
        qs = qs.filter(supplier__icontains=supplier)
    if q:
        qs = qs.filter(Q(supplier__icontains=q) | Q(notes__icontains=q) | Q(items__item__name__icontains=q)).distinct()
    return qs


@transaction.atomic
def create_order(user: User, data: dict) -> PurchaseOrder:
    lines = data.get('items') or []
    if not lines:
        raise ValidationError({'items': 'At least one item is required.'})
    items = InventoryItem.objects.in_bulk({line['itemId'] for line in lines})
    missing = sorted({line['itemId'] for line in lines} - set(items))
    if missing:
        raise ValidationError({'items': f'Unknown items: {missing}'})

    order = PurchaseOrder.objects.create(
        supplier=bleach.clean(data['supplier'].strip(), strip=True),
        order_date=data.get('orderDate') or timezone.localdate(),
        expected_delivery=data['expectedDelivery'],
        notes=bleach.clean(data.get('notes') or '', strip=True),
        ordered_by=user,
    )
    total = Decimal('0')
    rows = []
    for line in lines:
        item = items[line['itemId']]
        price = line.get('unitPrice')
        price = item.unit_cost if price is None else Decimal(str(price))
        line_total = price * line['quantity']
        total += line_total
        rows.append(OrderItem(order=order, item=item, quantity=line['quantity'],
                              unit_price=price, total_price=line_total))
    OrderItem.objects.bulk_create(rows)
    order.total_amount = total
    order.save(update_fields=['total_amount'])
    log_action(user=user, action='order_create', object_type='order', object_id=order.id,
               detail={'supplier': order.supplier, 'total': str(total)})
    notify_change('orders', [order.id])
    logger.info("Purchase order created", extra={'order': order.id, 'total': str(total)})
    return order


def _receive(user: User, order: PurchaseOrder) -> None:
    # lock in id order
    for line in order.items.order_by('item_id', 'id'):
        apply_stock_change(
            item_id=line.item_id,
            delta=line.quantity,
            kind=StockMovement.KIND_ORDER_RECEIPT,
            user=user,
            reason=f'Purchase order #{order.id} delivered',
            source_type='order',
            source_id=order.id,
        )
    order.received_at = timezone.now()


@transaction.atomic
def set_order_status(user: User, order_id: int, target: str) -> PurchaseOrder:
    order = PurchaseOrder.objects.select_for_update().filter(pk=order_id).first()
    if order is None:
        raise NotFound('Order not found')
    if target not in TRANSITIONS.get(order.status, set()):
        raise InvalidTransition(f'Cannot change order from {order.status} to {target}.')
    before = order.status
    order.status = target
    fields = ['status', 'updated_at']
    if target == PurchaseOrder.STATUS_DELIVERED:
        _receive(user, order)
        fields.append('received_at')
        notify_change('inventory', [line.item_id for line in order.items.all()])
    order.save(update_fields=fields)
    log_action(user=user, action='order_status', object_type='order', object_id=order.id,
               detail={'from': before, 'to': target})
    notify_change('orders', [order.id])
    logger.info("Order status changed", extra={'order': order.id, 'from': before, 'to': target})
    return order
