"""
API error handling.

Every error leaves the API as ``{"ok": false, "error": {"code", "message"}}``.
Domain failures raised by the service layer carry their own stable
``default_code`` so clients can branch on it.
"""
from rest_framework import status
from rest_framework.exceptions import APIException
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler
import logging

logger = logging.getLogger(__name__)


class InsufficientStock(APIException):
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'Insufficient stock.'
    default_code = 'insufficient_stock'


class InvalidTransition(APIException):
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'Status change not allowed.'
    default_code = 'invalid_transition'


class AccountLocked(APIException):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = 'Account is temporarily locked. Please try again later.'
    default_code = 'account_locked'


class AccountUnavailable(APIException):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = 'Account is not active. Please contact administrator.'
    default_code = 'account_unavailable'


class InvalidCredentials(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Invalid credentials.'
    default_code = 'invalid_credentials'


def api_exception_handler(exc, context):
    resp = drf_exception_handler(exc, context)
    if resp is None:
        logger.error("Unhandled API error", exc_info=exc)
        return Response({'ok': False, 'error': {'code': 'server_error', 'message': str(exc)}}, status=500)
    # normalize response
    code = getattr(exc, 'default_code', None) or 'api_error'
    if isinstance(resp.data, dict):
        detail = resp.data.get('detail') or resp.data
    else:
        detail = resp.data
    return Response({'ok': False, 'error': {'code': code, 'message': detail}}, status=resp.status_code)
