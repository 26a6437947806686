"""
Outgoing email for password resets.

Delivery goes through Django's configured ``EMAIL_BACKEND`` (console by
default).  Send failures are logged and reported back as ``False`` so
the caller can decide how loud to be.
"""
from __future__ import annotations

import logging
from urllib.parse import urlencode

from django.conf import settings
from django.core.mail import send_mail

logger = logging.getLogger(__name__)


def reset_link(token: str) -> str:
    return f"{settings.FRONTEND_URL}/reset-password?{urlencode({'token': token})}"


def send_password_reset_email(email: str, token: str, user_name: str) -> bool:
    hospital = settings.HOSPITAL_NAME
    minutes = settings.PASSWORD_RESET_TTL_MINUTES
    body = (
        f"Hello {user_name},\n\n"
        f"We received a request to reset your password for your {hospital} Inventory System account.\n\n"
        f"To reset your password, open the link below:\n{reset_link(token)}\n\n"
        f"This link expires in {minutes} minutes and can be used only once.\n\n"
        "If you didn't request this password reset, please ignore this email and contact "
        "your system administrator immediately.\n"
    )
    try:
        send_mail(
            subject=f"Password Reset - {hospital} Inventory System",
            message=body,
            from_email=settings.DEFAULT_FROM_EMAIL,
            recipient_list=[email],
        )
    except Exception:
        logger.error("Password reset email failed", exc_info=True, extra={'email': email})
        return False
    return True


def send_password_change_confirmation(email: str, user_name: str) -> bool:
    hospital = settings.HOSPITAL_NAME
    body = (
        f"Hello {user_name},\n\n"
        f"Your {hospital} Inventory System password was changed successfully.\n\n"
        "If you did not make this change, contact your system administrator immediately.\n"
    )
    try:
        send_mail(
            subject=f"Password Changed - {hospital} Inventory System",
            message=body,
            from_email=settings.DEFAULT_FROM_EMAIL,
            recipient_list=[email],
        )
    except Exception:
        logger.error("Password change confirmation failed", exc_info=True, extra={'email': email})
        return False
    return True
