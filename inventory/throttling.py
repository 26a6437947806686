from rest_framework.throttling import AnonRateThrottle


class LoginRateThrottle(AnonRateThrottle):
    """Per-IP limit on credential checks (``DEFAULT_THROTTLE_RATES['login']``)."""
    scope = 'login'


class PasswordResetRateThrottle(AnonRateThrottle):
    scope = 'password_reset'

    def get_cache_key(self, request, view):
        # applies to signed-in callers too
        return self.cache_format % {'scope': self.scope, 'ident': self.get_ident(request)}
