"""
URL mappings for the inventory API.

Trailing slashes are omitted throughout (``APPEND_SLASH = False``).
"""
from django.urls import include, path

from .auth_views import (
    change_password_view,
    forgot_password_view,
    jwt_refresh_view,
    login_view,
    logout_view,
    me_view,
    register_view,
    reset_password_view,
    validate_reset_token_view,
)
from .views import audit, dashboard, departments, health, items, orders, releases, requests, users

urlpatterns = [
    path('metrics', include('django_prometheus.urls')),
    path('healthz', health.healthz),
    # Authentication
    path('api/auth/login', login_view, name='login_view'),
    path('api/auth/register', register_view),
    path('api/auth/refresh', jwt_refresh_view),
    path('api/auth/logout', logout_view),
    path('api/auth/me', me_view),
    path('api/auth/change-password', change_password_view),
    path('api/auth/forgot-password', forgot_password_view),
    path('api/auth/reset-password', reset_password_view),
    path('api/auth/validate-reset-token', validate_reset_token_view),
    # Users & departments
    path('api/users', users.users),
    path('api/users/roles', users.role_permissions),
    path('api/users/<int:user_id>', users.user_detail),
    path('api/users/<int:user_id>/approve', users.approve_user),
    path('api/users/<int:user_id>/suspend', users.suspend_user),
    path('api/users/<int:user_id>/reset-password', users.reset_user_password),
    path('api/users/<int:user_id>/unlock', users.unlock_user),
    path('api/departments', departments.departments),
    # Inventory
    path('api/items', items.items),
    path('api/items/categories', items.categories),
    path('api/items/low-stock', items.low_stock),
    path('api/items/expiry', items.expiry),
    path('api/items/add-stock', items.add_stock),
    path('api/items/movements', items.movements),
    path('api/items/<int:item_id>', items.item_detail),
    path('api/items/<int:item_id>/adjust', items.adjust_stock),
    # Requests
    path('api/requests', requests.requests_view),
    path('api/requests/<int:request_id>', requests.request_detail),
    path('api/requests/<int:request_id>/approve', requests.approve_request),
    path('api/requests/<int:request_id>/reject', requests.reject_request),
    path('api/requests/<int:request_id>/status', requests.request_status),
    # Orders
    path('api/orders', orders.orders),
    path('api/orders/reorder-suggestions', orders.reorder),
    path('api/orders/<int:order_id>', orders.order_detail),
    path('api/orders/<int:order_id>/status', orders.order_status),
    # Releases
    path('api/releases', releases.releases),
    path('api/releases/<int:release_id>', releases.release_detail),
    # Dashboard & reports
    path('api/dashboard', dashboard.dashboard),
    path('api/reports', dashboard.report),
    path('api/reports/export', dashboard.export),
    # Audit
    path('api/audit', audit.audit_events),
]
