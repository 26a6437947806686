"""
Account lifecycle: login with lockout, registration, administration
and password changes/resets.

Views stay thin and call into these functions; every function either
returns the affected user or raises an API exception that the project
exception handler turns into a JSON error.
"""
from __future__ import annotations

import logging
import secrets
from datetime import timedelta
from typing import Optional

from django.conf import settings
from django.contrib.auth.password_validation import validate_password
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import transaction
from django.db.models import Q
from django.utils import timezone
from rest_framework.authtoken.models import Token
from rest_framework.exceptions import ValidationError, NotFound

from inventory.exceptions import (
    AccountLocked,
    AccountUnavailable,
    InvalidCredentials,
    InvalidTransition,
)
from inventory.models import Department, PasswordResetToken, User
from inventory.permissions import role_permissions
from inventory.services.audit import log_action
from inventory.services.notifications import send_password_change_confirmation, send_password_reset_email
from inventory.services.realtime import notify_change

logger = logging.getLogger(__name__)

STATUS_MESSAGES = {
    User.STATUS_SUSPENDED: 'Account has been suspended. Please contact administrator.',
    User.STATUS_PENDING: 'Account is pending approval. Please wait for administrator approval.',
    User.STATUS_INACTIVE: 'Account is inactive. Please contact administrator.',
}

GENERIC_RESET_MESSAGE = (
    'If an account with that email exists, you will receive a password reset link shortly.'
)


def format_user(user: User) -> dict:
    return {
        'id': user.id,
        'email': user.email,
        'firstName': user.first_name,
        'lastName': user.last_name,
        'name': user.get_full_name() or user.email,
        'employeeId': user.employee_id,
        'role': user.role,
        'departmentId': user.department_id,
        'department': user.department.name if user.department else None,
        'status': user.status,
        'phone': user.phone,
        'permissions': list(user.permissions or []),
        'isFirstLogin': user.is_first_login,
        'createdAt': user.date_joined.isoformat() if user.date_joined else None,
        'lastLogin': user.last_login.isoformat() if user.last_login else None,
        'passwordLastChanged': user.password_changed_at.isoformat() if user.password_changed_at else None,
        'loginAttempts': user.login_attempts,
        'lockedUntil': user.locked_until.isoformat() if user.locked_until else None,
        'approvedBy': user.approved_by_id,
        'approvedAt': user.approved_at.isoformat() if user.approved_at else None,
        'notes': user.notes,
    }


def find_user(identifier: str) -> Optional[User]:
    """Look a user up by email, employee id or username."""
    ident = (identifier or '').strip()
    if not ident:
        return None
    return (
        User.objects.select_related('department')
        .filter(Q(email__iexact=ident) | Q(employee_id=ident) | Q(username=ident))
        .first()
    )


def _check_password_policy(password: str, user: Optional[User] = None, field: str = 'password') -> None:
    try:
        validate_password(password, user)
    except DjangoValidationError as e:
        raise ValidationError({field: e.messages})


def login(identifier: str, password: str, *, ip: Optional[str] = None) -> User:
    """Verify credentials and apply the lockout policy.

    A failed password increments ``login_attempts``; reaching
    ``MAX_LOGIN_ATTEMPTS`` locks the account for ``LOCKOUT_MINUTES``.
    """
    user = find_user(identifier)
    if user is None:
        log_action(user=None, action='login', object_type='user',
                   detail={'result': 'fail', 'identifier': identifier, 'ip': ip})
        raise InvalidCredentials('Invalid credentials or user not found.')

    now = timezone.now()
    if user.locked_until and user.locked_until > now:
        log_action(user=user, action='login', object_type='user', object_id=user.id,
                   detail={'result': 'locked', 'ip': ip})
        raise AccountLocked()
    if user.locked_until:
        # lock has lapsed
        user.locked_until = None
        user.login_attempts = 0

    if user.status in STATUS_MESSAGES:
        raise AccountUnavailable(STATUS_MESSAGES[user.status])

    if not user.check_password(password):
        max_attempts = settings.MAX_LOGIN_ATTEMPTS
        user.login_attempts += 1
        if user.login_attempts >= max_attempts:
            user.locked_until = now + timedelta(minutes=settings.LOCKOUT_MINUTES)
        user.save(update_fields=['login_attempts', 'locked_until'])
        log_action(user=user, action='login', object_type='user', object_id=user.id,
                   detail={'result': 'fail', 'attempts': user.login_attempts, 'ip': ip})
        logger.warning("Failed login", extra={'user': user.id, 'attempts': user.login_attempts})
        # the locking attempt still answers as a bad password; later tries see the lock
        remaining = max(0, max_attempts - user.login_attempts)
        raise InvalidCredentials(f'Invalid password. {remaining} attempts remaining.')

    user.login_attempts = 0
    user.locked_until = None
    user.last_login = now
    user.save(update_fields=['login_attempts', 'locked_until', 'last_login'])
    log_action(user=user, action='login', object_type='user', object_id=user.id,
               detail={'result': 'ok', 'ip': ip})
    return user


def _ensure_unique(email: str, employee_id: Optional[str], exclude_id: Optional[int] = None) -> None:
    qs = User.objects.all()
    if exclude_id:
        qs = qs.exclude(pk=exclude_id)
    if qs.filter(email__iexact=email).exists():
        raise ValidationError({'email': 'User with this email already exists'})
    if employee_id and qs.filter(employee_id=employee_id).exists():
        raise ValidationError({'employeeId': 'Employee ID already exists'})


def _department(department_id: Optional[int]) -> Optional[Department]:
    if not department_id:
        return None
    dept = Department.objects.filter(pk=department_id).first()
    if dept is None:
        raise ValidationError({'departmentId': 'Unknown department'})
    return dept


def _new_user(data: dict, *, status: str, permissions: list[str]) -> User:
    email = data['email'].strip().lower()
    employee_id = (data.get('employeeId') or '').strip() or None
    _ensure_unique(email, employee_id)
    user = User(
        username=email,
        email=email,
        first_name=data.get('firstName', ''),
        last_name=data.get('lastName', ''),
        employee_id=employee_id,
        role=data['role'],
        department=_department(data.get('departmentId')),
        phone=data.get('phone') or '',
        status=status,
        permissions=permissions,
        is_first_login=True,
        notes=data.get('notes') or '',
    )
    _check_password_policy(data['password'], user)
    user.set_password(data['password'])
    user.password_changed_at = timezone.now()
    user.save()
    return user


def register(data: dict) -> User:
    """Self-service registration; the account waits for approval."""
    with transaction.atomic():
        user = _new_user(data, status=User.STATUS_PENDING, permissions=role_permissions(data['role']))
        log_action(user=user, action='register', object_type='user', object_id=user.id)
    logger.info("User registered", extra={'user': user.id, 'role': user.role})
    return user


def create_user(actor: User, data: dict) -> User:
    """Administrator-created account, approved by its creator."""
    permissions = data.get('permissions')
    if not permissions:
        permissions = role_permissions(data['role'])
    with transaction.atomic():
        user = _new_user(data, status=data.get('status') or User.STATUS_ACTIVE, permissions=list(permissions))
        user.approved_by = actor
        user.approved_at = timezone.now()
        user.save(update_fields=['approved_by', 'approved_at'])
        log_action(user=actor, action='user_create', object_type='user', object_id=user.id,
                   detail={'role': user.role, 'status': user.status})
        notify_change('dashboard', [user.id])
    return user


UPDATABLE_FIELDS = {
    'firstName': 'first_name',
    'lastName': 'last_name',
    'phone': 'phone',
    'status': 'status',
    'notes': 'notes',
}


def update_user(actor: User, user: User, data: dict) -> User:
    changed: list[str] = []
    for key, field in UPDATABLE_FIELDS.items():
        if key in data and data[key] is not None:
            setattr(user, field, data[key])
            changed.append(key)
    if 'email' in data and data['email']:
        email = data['email'].strip().lower()
        _ensure_unique(email, None, exclude_id=user.id)
        user.email = email
        user.username = email
        changed.append('email')
    if 'employeeId' in data:
        employee_id = (data['employeeId'] or '').strip() or None
        if employee_id and User.objects.exclude(pk=user.pk).filter(employee_id=employee_id).exists():
            raise ValidationError({'employeeId': 'Employee ID already exists'})
        user.employee_id = employee_id
        changed.append('employeeId')
    if 'departmentId' in data:
        user.department = _department(data['departmentId'])
        changed.append('departmentId')
    if data.get('role') and data['role'] != user.role:
        user.role = data['role']
        changed.append('role')
        if 'permissions' not in data:
            user.permissions = role_permissions(user.role)
    if data.get('permissions') is not None:
        user.permissions = list(data['permissions'])
        changed.append('permissions')
    user.save()
    log_action(user=actor, action='user_update', object_type='user', object_id=user.id,
               detail={'fields': changed})
    notify_change('dashboard', [user.id])
    return user


def delete_user(actor: User, user: User) -> None:
    if actor.pk == user.pk:
        raise ValidationError({'detail': 'You cannot delete your own account.'})
    user_id = user.id
    user.delete()
    log_action(user=actor, action='user_delete', object_type='user', object_id=user_id)
    notify_change('dashboard', [user_id])


def approve_user(actor: User, user: User) -> User:
    if user.status == User.STATUS_ACTIVE:
        raise InvalidTransition('User is already active.')
    user.status = User.STATUS_ACTIVE
    user.approved_by = actor
    user.approved_at = timezone.now()
    user.save(update_fields=['status', 'approved_by', 'approved_at'])
    log_action(user=actor, action='user_approve', object_type='user', object_id=user.id)
    notify_change('dashboard', [user.id])
    return user


def suspend_user(actor: User, user: User, reason: str) -> User:
    if actor.pk == user.pk:
        raise ValidationError({'detail': 'You cannot suspend your own account.'})
    user.status = User.STATUS_SUSPENDED
    user.notes = reason
    user.save(update_fields=['status', 'notes'])
    Token.objects.filter(user=user).delete()
    log_action(user=actor, action='user_suspend', object_type='user', object_id=user.id,
               detail={'reason': reason})
    notify_change('dashboard', [user.id])
    return user


def admin_reset_password(actor: User, user: User, new_password: str) -> User:
    """Set a temporary password; the user must change it at next login."""
    _check_password_policy(new_password, user, field='newPassword')
    user.set_password(new_password)
    user.is_first_login = True
    user.password_changed_at = timezone.now()
    user.login_attempts = 0
    user.locked_until = None
    user.save(update_fields=['password', 'is_first_login', 'password_changed_at', 'login_attempts', 'locked_until'])
    Token.objects.filter(user=user).delete()
    log_action(user=actor, action='user_reset_password', object_type='user', object_id=user.id)
    return user


def unlock_user(actor: User, user: User) -> User:
    user.login_attempts = 0
    user.locked_until = None
    user.save(update_fields=['login_attempts', 'locked_until'])
    log_action(user=actor, action='user_unlock', object_type='user', object_id=user.id)
    return user


def change_password(user: User, current_password: str, new_password: str) -> User:
    if not user.check_password(current_password):
        raise ValidationError({'currentPassword': 'Invalid current password.'})
    if current_password == new_password:
        raise ValidationError({'newPassword': 'New password must differ from the current password.'})
    _check_password_policy(new_password, user, field='newPassword')
    user.set_password(new_password)
    user.is_first_login = False
    user.password_changed_at = timezone.now()
    user.save(update_fields=['password', 'is_first_login', 'password_changed_at'])
    log_action(user=user, action='password_change', object_type='user', object_id=user.id)
    return user


def request_password_reset(email: str) -> Optional[PasswordResetToken]:
    """Issue and mail a reset token when ``email`` belongs to a user.

    Returns ``None`` for unknown addresses; callers answer with the same
    message either way.
    """
    user = User.objects.filter(email__iexact=(email or '').strip()).first()
    if user is None:
        return None
    reset = PasswordResetToken.objects.create(
        user=user,
        token=secrets.token_urlsafe(32),
        expires_at=timezone.now() + timedelta(minutes=settings.PASSWORD_RESET_TTL_MINUTES),
    )
    sent = send_password_reset_email(user.email, reset.token, user.get_full_name() or user.email)
    log_action(user=user, action='password_reset_request', object_type='user', object_id=user.id,
               detail={'sent': sent})
    if not sent:
        # the response stays generic; only the log and audit row know
        logger.warning("Password reset email not delivered", extra={'user': user.id})
    return reset


def validate_reset_token(token: str) -> dict:
    reset = PasswordResetToken.objects.select_related('user').filter(token=token or '').first()
    if reset is None:
        return {'valid': False}
    if reset.used:
        return {'valid': False, 'used': True}
    if reset.is_expired:
        return {'valid': False, 'expired': True}
    return {'valid': True, 'email': reset.user.email}


def reset_password_with_token(token: str, new_password: str) -> User:
    validation = validate_reset_token(token)
    if not validation['valid']:
        message = 'Invalid or expired reset token.'
        if validation.get('used'):
            message = 'This reset link has already been used.'
        if validation.get('expired'):
            message = 'This reset link has expired. Please request a new one.'
        raise ValidationError({'token': message})
    with transaction.atomic():
        reset = PasswordResetToken.objects.select_for_update().select_related('user').get(token=token)
        if reset.used:
            raise ValidationError({'token': 'This reset link has already been used.'})
        user = reset.user
        _check_password_policy(new_password, user, field='newPassword')
        user.set_password(new_password)
        user.is_first_login = False
        user.password_changed_at = timezone.now()
        user.login_attempts = 0
        user.locked_until = None
        user.save(update_fields=['password', 'is_first_login', 'password_changed_at', 'login_attempts', 'locked_until'])
        reset.used = True
        reset.save(update_fields=['used'])
        Token.objects.filter(user=user).delete()
        log_action(user=user, action='password_reset', object_type='user', object_id=user.id)
    send_password_change_confirmation(user.email, user.get_full_name() or user.email)
    return user


def get_user_or_404(user_id: int) -> User:
    user = User.objects.select_related('department').filter(pk=user_id).first()
    if user is None:
        raise NotFound('User not found')
    return user
