"""
Audit trail.

Service functions call :func:`log_action` inside their own transaction
so an audit row exists exactly when the change it describes does.
"""
from datetime import date
from typing import Any, Dict, Optional

from django.db.models import QuerySet

from inventory.models import AuditEvent, User


def log_action(*, user: Optional[User], action: str, object_type: Optional[str] = None,
               object_id: Optional[int] = None, detail: Optional[Dict[str, Any]] = None) -> AuditEvent:
    # anonymous callers (failed logins, password resets) are stored without a user
    actor = user if getattr(user, 'pk', None) else None
    return AuditEvent.objects.create(
        user=actor,
        action=action,
        object_type=object_type,
        object_id=object_id,
        detail=detail or {},
    )


def search_events(*, action: str = '', object_type: str = '', object_id: Optional[int] = None,
                  user_id: Optional[int] = None, date_from: Optional[date] = None,
                  date_to: Optional[date] = None) -> QuerySet:
    qs = AuditEvent.objects.select_related('user').order_by('-created_at', '-id')
    if action:
        qs = qs.filter(action=action)
    if object_type:
        qs = qs.filter(object_type=object_type)
    if object_id is not None:
        qs = qs.filter(object_id=object_id)
    if user_id is not None:
        qs = qs.filter(user_id=user_id)
    if date_from:
        qs = qs.filter(created_at__date__gte=date_from)
    if date_to:
        qs = qs.filter(created_at__date__lte=date_to)
    return qs


def format_event(ev: AuditEvent) -> dict:
    return {
        'id': ev.id,
        'action': ev.action,
        'objectType': ev.object_type,
        'objectId': ev.object_id,
        'detail': ev.detail,
        'userId': ev.user_id,
        'userEmail': ev.user.email if ev.user_id else None,
        'createdAt': ev.created_at.isoformat(),
    }
