from __future__ import annotations

import logging
from datetime import date
from typing import Optional

import bleach
from django.db import transaction
from django.db.models import QuerySet
from rest_framework.exceptions import NotFound, ValidationError

from inventory.exceptions import InvalidTransition
from inventory.models import Department, InventoryItem, Release, ReleaseItem, StockMovement, SupplyRequest, User
from inventory.services.audit import log_action
from inventory.services.realtime import notify_change
from inventory.services.requests import mark_fulfilled
from inventory.services.stock import apply_stock_change

logger = logging.getLogger(__name__)

RELEASABLE_REQUEST_STATUSES = (SupplyRequest.STATUS_APPROVED, SupplyRequest.STATUS_IN_PROGRESS)


def format_release(rel: Release) -> dict:
    return {
        'id': rel.id,
        'departmentId': rel.department_id,
        'department': rel.department.name,
        'releasedBy': rel.released_by_id,
        'requestId': rel.request_id,
        'releaseType': rel.release_type,
        'recipientName': rel.recipient_name,
        'recipientId': rel.recipient_id,
        'purpose': rel.purpose,
        'notes': rel.notes,
        'releasedAt': rel.released_at.isoformat(),
        'items': [
            {
                'id': line.id,
                'itemId': line.item_id,
                'itemName': line.item.name,
                'quantity': line.quantity,
                'batchNumber': line.batch_number,
                'expiryDate': line.expiry_date.isoformat() if line.expiry_date else None,
            }
            for line in rel.items.all()
        ],
    }


def releases_queryset() -> QuerySet:
    return Release.objects.select_related('department').prefetch_related('items__item')


def get_release(release_id: int) -> Release:
    rel = releases_queryset().filter(pk=release_id).first()
    if rel is None:
        raise NotFound('Release not found')
    return rel


def list_releases(*, department_id: Optional[int] = None, release_type: str = '',
                  date_from: Optional[date] = None, date_to: Optional[date] = None) -> QuerySet:
    qs = releases_queryset()
    if department_id:
        qs = qs.filter(department_id=department_id)
    if release_type:
        qs = qs.filter(release_type=release_type)
    if date_from:
        qs = qs.filter(released_at__date__gte=date_from)
    if date_to:
        qs = qs.filter(released_at__date__lte=date_to)
    return qs


@transaction.atomic
def create_release(user: User, data: dict) -> Release:
    """Issue stock to a department.

    Every item row is locked before any quantity is checked, so either
    all lines fit the current stock and are applied or none are.
    """
    department = Department.objects.filter(pk=data['departmentId']).first()
    if department is None:
        raise ValidationError({'departmentId': 'Unknown department'})
    lines = data.get('items') or []
    if not lines:
        raise ValidationError({'items': 'At least one item is required.'})

    req = None
    if data.get('requestId'):
        req = SupplyRequest.objects.select_for_update().filter(pk=data['requestId']).first()
        if req is None:
            raise ValidationError({'requestId': 'Unknown request'})
        if req.status not in RELEASABLE_REQUEST_STATUSES:
            raise InvalidTransition(f'Request #{req.id} is {req.status} and cannot be released.')
        if req.department_id != department.id:
            raise ValidationError({'requestId': f'Request #{req.id} belongs to another department.'})

    # lock in id order
    item_ids = sorted({line['itemId'] for line in lines})
    locked = {i.id: i for i in InventoryItem.objects.select_for_update().filter(pk__in=item_ids).order_by('id')}
    missing = [i for i in item_ids if i not in locked]
    if missing:
        raise ValidationError({'items': f'Unknown items: {missing}'})

    rel = Release.objects.create(
        department=department,
        released_by=user,
        request=req,
        release_type=data['releaseType'],
        recipient_name=bleach.clean(data['recipientName'], strip=True),
        recipient_id=data.get('recipientId') or '',
        purpose=bleach.clean(data['purpose'], strip=True),
        notes=bleach.clean(data.get('notes') or '', strip=True),
    )
    rows = []
    for line in lines:
        item = locked[line['itemId']]
        batch = line.get('batchNumber') or item.batch_number
        expiry = line.get('expiryDate') or item.expiry_date
        apply_stock_change(
            item_id=item.id,
            delta=-line['quantity'],
            kind=StockMovement.KIND_RELEASE,
            user=user,
            reason=f'Released to {department.name}',
            source_type='release',
            source_id=rel.id,
            batch_number=batch,
            expiry_date=expiry,
        )
        rows.append(ReleaseItem(release=rel, item=item, quantity=line['quantity'],
                                batch_number=batch, expiry_date=expiry))
    ReleaseItem.objects.bulk_create(rows)

    if req is not None:
        mark_fulfilled(req)
        notify_change('requests', [req.id])
    log_action(user=user, action='release_create', object_type='release', object_id=rel.id,
               detail={'department': department.id, 'request': req.id if req else None, 'type': rel.release_type,
                       'lines': [{'itemId': r.item_id, 'quantity': r.quantity} for r in rows]})
    notify_change('releases', [rel.id])
    notify_change('inventory', item_ids)
    logger.info("Items released", extra={'release': rel.id, 'department': department.id})
    return rel
