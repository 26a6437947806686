from __future__ import annotations

import logging
from typing import Optional

import bleach
from django.db import transaction
from django.db.models import QuerySet
from django.utils import timezone
from rest_framework.exceptions import NotFound, PermissionDenied, ValidationError

from inventory.exceptions import InvalidTransition
from inventory.models import Department, InventoryItem, RequestItem, SupplyRequest, User
from inventory.permissions import (
    APPROVE_REQUESTS,
    CROSS_DEPARTMENT_REQUEST_PERMISSIONS,
    DEPARTMENT_APPROVAL_PERMISSIONS,
    FULL_ACCESS,
)
from inventory.services.audit import log_action
from inventory.services.realtime import notify_change

logger = logging.getLogger(__name__)

TRANSITIONS = {
    SupplyRequest.STATUS_PENDING: {SupplyRequest.STATUS_APPROVED, SupplyRequest.STATUS_REJECTED},
    SupplyRequest.STATUS_APPROVED: {SupplyRequest.STATUS_IN_PROGRESS, SupplyRequest.STATUS_FULFILLED},
    SupplyRequest.STATUS_IN_PROGRESS: {SupplyRequest.STATUS_FULFILLED},
    SupplyRequest.STATUS_REJECTED: set(),
    SupplyRequest.STATUS_FULFILLED: set(),
}


def can_transition(current: str, target: str) -> bool:
    return target in TRANSITIONS.get(current, set())


def check_transition(req: SupplyRequest, target: str) -> None:
    if not can_transition(req.status, target):
        raise InvalidTransition(f'Cannot change request from {req.status} to {target}.')


def sees_all_departments(user: User) -> bool:
    return user.has_any_app_permission(*CROSS_DEPARTMENT_REQUEST_PERMISSIONS)


def scoped_requests(user: User) -> QuerySet:
    qs = SupplyRequest.objects.select_related('department', 'requested_by', 'approved_by')
    if sees_all_departments(user):
        return qs
    if not user.department_id:
        return qs.none()
    return qs.filter(department_id=user.department_id)


def get_request_for(user: User, request_id: int) -> SupplyRequest:
    req = scoped_requests(user).prefetch_related('items__item').filter(pk=request_id).first()
    if req is None:
        raise NotFound('Request not found')
    return req


def format_request(req: SupplyRequest, *, with_stock: bool = False) -> dict:
    lines = []
    for line in req.items.all():
        row = {
            'id': line.id,
            'itemId': line.item_id,
            'itemName': line.item.name,
            'unitOfMeasure': line.item.unit_of_measure,
            'requestedQuantity': line.requested_quantity,
            'approvedQuantity': line.approved_quantity,
            'urgency': line.urgency,
            'justification': line.justification,
        }
        if with_stock:
            needed = line.approved_quantity if line.approved_quantity is not None else line.requested_quantity
            row['currentStock'] = line.item.current_stock
            row['stockSufficient'] = line.item.current_stock >= needed
        lines.append(row)
    return {
        'id': req.id,
        'departmentId': req.department_id,
        'department': req.department.name,
        'requestedBy': req.requested_by_id,
        'requestedByName': (req.requested_by.get_full_name() or req.requested_by.email) if req.requested_by else None,
        'requestDate': req.created_at.isoformat(),
        'requiredDate': req.required_date.isoformat() if req.required_date else None,
        'status': req.status,
        'priority': req.priority,
        'notes': req.notes,
        'approvedBy': req.approved_by_id,
        'approvedAt': req.approved_at.isoformat() if req.approved_at else None,
        'approvalNotes': req.approval_notes,
        'rejectionReason': req.rejection_reason,
        'items': lines,
        'totalItems': sum(line['requestedQuantity'] for line in lines),
    }


def list_requests(user: User, *, status: Optional[str] = None, priority: Optional[str] = None,
                  department_id: Optional[int] = None, page: int = 1, page_size: int = 50):
    qs = scoped_requests(user).prefetch_related('items__item')
    if status:
        qs = qs.filter(status=status)
    if priority:
        qs = qs.filter(priority=priority)
    if department_id:
        qs = qs.filter(department_id=department_id)
    total = qs.count()
    page = max(1, int(page or 1))
    page_size = min(200, max(1, int(page_size or 50)))
    start = (page - 1) * page_size
    items = qs.order_by('-created_at', '-id')[start:start + page_size]
    return [format_request(r) for r in items], total


@transaction.atomic
def create_request(user: User, data: dict) -> SupplyRequest:
    department_id = data.get('departmentId') or user.department_id
    if not department_id:
        raise ValidationError({'departmentId': 'A department is required.'})
    department = Department.objects.filter(pk=department_id).first()
    if department is None:
        raise ValidationError({'departmentId': 'Unknown department'})
    if department.id != user.department_id and not sees_all_departments(user):
        raise PermissionDenied('You can only request items for your own department.')

    lines = data.get('items') or []
    if not lines:
        raise ValidationError({'items': 'At least one item is required.'})
    item_ids = {line['itemId'] for line in lines}
    known = set(InventoryItem.objects.filter(pk__in=item_ids).values_list('id', flat=True))
    missing = item_ids - known
    if missing:
        raise ValidationError({'items': f'Unknown items: {sorted(missing)}'})

    req = SupplyRequest.objects.create(
        department=department,
        requested_by=user,
        required_date=data.get('requiredDate'),
        priority=data.get('priority') or 'medium',
        notes=bleach.clean(data.get('notes') or '', strip=True),
    )
    RequestItem.objects.bulk_create([
        RequestItem(
            request=req,
            item_id=line['itemId'],
            requested_quantity=line['quantity'],
            urgency=line.get('urgency') or 'medium',
            justification=bleach.clean(line.get('justification') or '', strip=True),
        )
        for line in lines
    ])
    log_action(user=user, action='request_create', object_type='request', object_id=req.id,
               detail={'department': department.id, 'lines': len(lines)})
    notify_change('requests', [req.id])
    logger.info("Request created", extra={'request': req.id, 'department': department.id})
    return req


def can_approve(user: User, req: SupplyRequest) -> bool:
    if user.has_any_app_permission(APPROVE_REQUESTS, FULL_ACCESS):
        return True
    if user.has_any_app_permission(*DEPARTMENT_APPROVAL_PERMISSIONS):
        return bool(user.department_id) and user.department_id == req.department_id
    return False


def _lock(request_id: int) -> SupplyRequest:
    req = SupplyRequest.objects.select_for_update().filter(pk=request_id).first()
    if req is None:
        raise NotFound('Request not found')
    return req


@transaction.atomic
def approve_request(user: User, request_id: int, approved_quantities: Optional[dict] = None,
                    notes: str = '') -> SupplyRequest:
    """Approve a pending request.

    ``approved_quantities`` maps request line id to the approved amount;
    lines not mentioned are approved in full.
    """
    req = _lock(request_id)
    if not can_approve(user, req):
        raise PermissionDenied('You cannot approve requests for this department.')
    check_transition(req, SupplyRequest.STATUS_APPROVED)

    try:
        approved_quantities = {int(k): v for k, v in (approved_quantities or {}).items()}
    except (TypeError, ValueError):
        raise ValidationError({'approvedQuantities': 'Keys must be request line ids.'})
    lines = list(req.items.all())
    unknown = set(approved_quantities) - {line.id for line in lines}
    if unknown:
        raise ValidationError({'approvedQuantities': f'Unknown request lines: {sorted(unknown)}'})
    for line in lines:
        qty = approved_quantities.get(line.id, line.requested_quantity)
        if qty is None or qty < 0 or qty > line.requested_quantity:
            raise ValidationError({
                'approvedQuantities': f'Line {line.id}: approved quantity must be between 0 and {line.requested_quantity}.'
            })
        line.approved_quantity = qty
    RequestItem.objects.bulk_update(lines, ['approved_quantity'])

    req.status = SupplyRequest.STATUS_APPROVED
    req.approved_by = user
    req.approved_at = timezone.now()
    req.approval_notes = bleach.clean(notes or '', strip=True)
    req.save(update_fields=['status', 'approved_by', 'approved_at', 'approval_notes', 'updated_at'])
    log_action(user=user, action='request_approve', object_type='request', object_id=req.id,
               detail={'lines': {line.id: line.approved_quantity for line in lines}})
    notify_change('requests', [req.id])
    return req


@transaction.atomic
def reject_request(user: User, request_id: int, reason: str) -> SupplyRequest:
    reason = bleach.clean((reason or '').strip(), strip=True)
    if not reason:
        raise ValidationError({'reason': 'A rejection reason is required.'})
    req = _lock(request_id)
    if not can_approve(user, req):
        raise PermissionDenied('You cannot reject requests for this department.')
    check_transition(req, SupplyRequest.STATUS_REJECTED)
    req.status = SupplyRequest.STATUS_REJECTED
    req.rejection_reason = reason
    req.approved_by = user
    req.approved_at = timezone.now()
    req.save(update_fields=['status', 'rejection_reason', 'approved_by', 'approved_at', 'updated_at'])
    log_action(user=user, action='request_reject', object_type='request', object_id=req.id,
               detail={'reason': reason})
    notify_change('requests', [req.id])
    return req


@transaction.atomic
def set_request_status(user: User, request_id: int, target: str) -> SupplyRequest:
    """Move an approved request along (in progress / fulfilled)."""
    if target in (SupplyRequest.STATUS_APPROVED, SupplyRequest.STATUS_REJECTED):
        raise ValidationError({'status': 'Use the approve or reject endpoints.'})
    req = _lock(request_id)
    if not sees_all_departments(user):
        raise PermissionDenied('You cannot process requests.')
    check_transition(req, target)
    req.status = target
    req.save(update_fields=['status', 'updated_at'])
    log_action(user=user, action='request_status', object_type='request', object_id=req.id,
               detail={'status': target})
    notify_change('requests', [req.id])
    return req


def mark_fulfilled(req: SupplyRequest) -> None:
    """Called from a release already holding the request lock."""
    check_transition(req, SupplyRequest.STATUS_FULFILLED)
    req.status = SupplyRequest.STATUS_FULFILLED
    req.save(update_fields=['status', 'updated_at'])
