"""
Custom authentication backend for token-based auth.

This subclass of Django REST framework's ``TokenAuthentication`` keeps
a stable import path for the project's configuration and refuses
tokens of accounts that are locked after too many failed logins.
"""
from __future__ import annotations

from rest_framework import authentication, exceptions


class TokenAuthentication(authentication.TokenAuthentication):
    """Token authentication using the ``Token`` keyword."""

    keyword = 'Token'

    def authenticate_credentials(self, key):
        user, token = super().authenticate_credentials(key)
        if getattr(user, 'is_locked', False):
            raise exceptions.AuthenticationFailed('Account is temporarily locked.')
        return user, token
