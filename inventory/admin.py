"""
Django admin registrations for the inventory models.

Only light configuration; the API is the primary interface.
"""
from django.contrib import admin

from .models import (
    AuditEvent,
    Department,
    InventoryItem,
    OrderItem,
    PurchaseOrder,
    Release,
    ReleaseItem,
    RequestItem,
    StockMovement,
    SupplyRequest,
    User,
)


@admin.register(Department)
class DepartmentAdmin(admin.ModelAdmin):
    list_display = ('id', 'name', 'code', 'created_at')
    search_fields = ('name', 'code')


@admin.register(User)
class UserAdmin(admin.ModelAdmin):
    list_display = ('email', 'employee_id', 'role', 'department', 'status', 'login_attempts', 'locked_until')
    list_filter = ('role', 'status', 'department')
    search_fields = ('email', 'employee_id', 'first_name', 'last_name')
    exclude = ('password',)


@admin.register(InventoryItem)
class InventoryItemAdmin(admin.ModelAdmin):
    list_display = ('name', 'category', 'current_stock', 'minimum_stock', 'status', 'expiry_date', 'location')
    list_filter = ('status', 'category')
    search_fields = ('name', 'batch_number', 'supplier')
    readonly_fields = ('status', 'created_at', 'updated_at')


@admin.register(StockMovement)
class StockMovementAdmin(admin.ModelAdmin):
    list_display = ('item', 'kind', 'change', 'balance_after', 'source_type', 'source_id', 'created_at')
    list_filter = ('kind',)
    search_fields = ('item__name', 'reason')


class RequestItemInline(admin.TabularInline):
    model = RequestItem
    extra = 0


@admin.register(SupplyRequest)
class SupplyRequestAdmin(admin.ModelAdmin):
    list_display = ('id', 'department', 'requested_by', 'status', 'priority', 'created_at')
    list_filter = ('status', 'priority', 'department')
    inlines = [RequestItemInline]


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0


@admin.register(PurchaseOrder)
class PurchaseOrderAdmin(admin.ModelAdmin):
    list_display = ('id', 'supplier', 'order_date', 'expected_delivery', 'status', 'total_amount')
    list_filter = ('status',)
    search_fields = ('supplier',)
    inlines = [OrderItemInline]


class ReleaseItemInline(admin.TabularInline):
    model = ReleaseItem
    extra = 0


@admin.register(Release)
class ReleaseAdmin(admin.ModelAdmin):
    list_display = ('id', 'department', 'release_type', 'recipient_name', 'released_by', 'request', 'released_at')
    list_filter = ('release_type', 'department')
    search_fields = ('recipient_name', 'recipient_id', 'purpose')
    inlines = [ReleaseItemInline]


@admin.register(AuditEvent)
class AuditEventAdmin(admin.ModelAdmin):
    list_display = ('action', 'user', 'object_type', 'object_id', 'created_at')
    list_filter = ('action', 'object_type')
