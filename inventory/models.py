"""
Database models for the hospital inventory system.

These models capture departments, staff accounts, stocked items and
the three workflows that move stock: purchase orders bring it in,
department requests ask for it and releases issue it.  Every change
to an item's stock count is also written to :class:`StockMovement` so
reports can be built from the ledger rather than from snapshots.
"""
from __future__ import annotations

from datetime import date
from decimal import Decimal

from django.contrib.auth.models import AbstractUser
from django.db import models
from django.utils import timezone

from inventory.services.status import derive_status


class Department(models.Model):
    """A hospital department that requests and receives stock."""
    name = models.CharField(max_length=120, unique=True)
    code = models.CharField(max_length=20, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['name']

    def __str__(self) -> str:
        return self.name


class User(AbstractUser):
    """Staff account with a hospital role and explicit permission list.

    ``permissions`` holds permission names such as ``"View Inventory"``;
    it is seeded from the role's defaults but may be edited per user.
    ``is_active`` is kept in step with ``status`` so that suspended or
    pending accounts cannot authenticate with an old token.
    """
    ROLE_SYSTEM_ADMIN = 'System Administrator'
    ROLE_INVENTORY_MANAGER = 'Inventory Manager'
    ROLE_DEPARTMENT_HEAD = 'Department Head'
    ROLE_DOCTOR = 'Doctor'
    ROLE_NURSE_MANAGER = 'Nurse Manager'
    ROLE_PHARMACIST = 'Pharmacist'
    ROLE_INVENTORY_STAFF = 'Inventory Staff'
    ROLE_DEPARTMENT_STAFF = 'Department Staff'
    ROLE_CHOICES = [
        (ROLE_SYSTEM_ADMIN, 'System Administrator'),
        (ROLE_INVENTORY_MANAGER, 'Inventory Manager'),
        (ROLE_DEPARTMENT_HEAD, 'Department Head'),
        (ROLE_DOCTOR, 'Doctor'),
        (ROLE_NURSE_MANAGER, 'Nurse Manager'),
        (ROLE_PHARMACIST, 'Pharmacist'),
        (ROLE_INVENTORY_STAFF, 'Inventory Staff'),
        (ROLE_DEPARTMENT_STAFF, 'Department Staff'),
    ]

    STATUS_ACTIVE = 'active'
    STATUS_INACTIVE = 'inactive'
    STATUS_PENDING = 'pending'
    STATUS_SUSPENDED = 'suspended'
    STATUS_CHOICES = [
        (STATUS_ACTIVE, 'Active'),
        (STATUS_INACTIVE, 'Inactive'),
        (STATUS_PENDING, 'Pending Approval'),
        (STATUS_SUSPENDED, 'Suspended'),
    ]

    email = models.EmailField(unique=True)
    employee_id = models.CharField(max_length=32, unique=True, null=True, blank=True)
    role = models.CharField(max_length=32, choices=ROLE_CHOICES, default=ROLE_DEPARTMENT_STAFF)
    department = models.ForeignKey(
        Department, null=True, blank=True, on_delete=models.SET_NULL, related_name='users'
    )
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=STATUS_ACTIVE, db_index=True)
    phone = models.CharField(max_length=32, blank=True)
    permissions = models.JSONField(default=list, blank=True)
    is_first_login = models.BooleanField(default=True)
    password_changed_at = models.DateTimeField(null=True, blank=True)
    login_attempts = models.PositiveIntegerField(default=0)
    locked_until = models.DateTimeField(null=True, blank=True)
    approved_by = models.ForeignKey(
        'self', null=True, blank=True, on_delete=models.SET_NULL, related_name='approved_users'
    )
    approved_at = models.DateTimeField(null=True, blank=True)
    notes = models.TextField(blank=True)

    def save(self, *args, **kwargs):
        self.is_active = self.status == self.STATUS_ACTIVE
        update_fields = kwargs.get('update_fields')
        if update_fields is not None and 'status' in update_fields:
            kwargs['update_fields'] = set(update_fields) | {'is_active'}
        super().save(*args, **kwargs)

    @property
    def is_locked(self) -> bool:
        return bool(self.locked_until and self.locked_until > timezone.now())

    def has_app_permission(self, name: str) -> bool:
        from inventory.permissions import FULL_ACCESS
        perms = self.permissions or []
        return FULL_ACCESS in perms or name in perms

    def has_any_app_permission(self, *names: str) -> bool:
        return any(self.has_app_permission(n) for n in names)

    def __str__(self) -> str:
        return f"{self.get_full_name() or self.email} ({self.role})"


class InventoryItem(models.Model):
    """A stocked item.  ``status`` is derived and recomputed on save."""
    STATUS_IN_STOCK = 'In Stock'
    STATUS_LOW = 'Low Stock'
    STATUS_CRITICAL = 'Critical'
    STATUS_EXPIRED = 'Expired'
    STATUS_OUT = 'Out of Stock'
    STATUS_CHOICES = [
        (STATUS_IN_STOCK, 'In Stock'),
        (STATUS_LOW, 'Low Stock'),
        (STATUS_CRITICAL, 'Critical'),
        (STATUS_EXPIRED, 'Expired'),
        (STATUS_OUT, 'Out of Stock'),
    ]

    name = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    category = models.CharField(max_length=120, db_index=True)
    unit_of_measure = models.CharField(max_length=50)
    current_stock = models.IntegerField(default=0)
    minimum_stock = models.PositiveIntegerField(default=0)
    maximum_stock = models.PositiveIntegerField(default=0)
    unit_cost = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0'))
    supplier = models.CharField(max_length=255, blank=True)
    location = models.CharField(max_length=255, blank=True)
    expiry_date = models.DateField(null=True, blank=True)
    batch_number = models.CharField(max_length=64, blank=True)
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=STATUS_IN_STOCK, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['name']

    def refresh_status(self, today: date | None = None) -> str:
        self.status = derive_status(
            self.current_stock, self.minimum_stock, self.expiry_date, today or timezone.localdate()
        )
        return self.status

    def save(self, *args, **kwargs):
        self.refresh_status()
        update_fields = kwargs.get('update_fields')
        if update_fields is not None:
            kwargs['update_fields'] = set(update_fields) | {'status', 'updated_at'}
        super().save(*args, **kwargs)

    @property
    def stock_value(self) -> Decimal:
        return Decimal(max(self.current_stock, 0)) * self.unit_cost

    def __str__(self) -> str:
        return f"{self.name} ({self.current_stock} {self.unit_of_measure})"


class StockMovement(models.Model):
    """Ledger row for one signed change to an item's stock count."""
    KIND_RECEIPT = 'receipt'
    KIND_RELEASE = 'release'
    KIND_ORDER_RECEIPT = 'order_receipt'
    KIND_ADJUSTMENT = 'adjustment'
    KIND_CHOICES = [
        (KIND_RECEIPT, 'Stock receipt'),
        (KIND_RELEASE, 'Release'),
        (KIND_ORDER_RECEIPT, 'Purchase order receipt'),
        (KIND_ADJUSTMENT, 'Adjustment'),
    ]

    item = models.ForeignKey(InventoryItem, on_delete=models.CASCADE, related_name='movements')
    change = models.IntegerField()
    balance_after = models.IntegerField()
    kind = models.CharField(max_length=16, choices=KIND_CHOICES)
    reason = models.CharField(max_length=255, blank=True)
    source_type = models.CharField(max_length=32, blank=True)
    source_id = models.PositiveIntegerField(null=True, blank=True)
    batch_number = models.CharField(max_length=64, blank=True)
    expiry_date = models.DateField(null=True, blank=True)
    created_by = models.ForeignKey(
        User, null=True, blank=True, on_delete=models.SET_NULL, related_name='stock_movements'
    )
    created_at = models.DateTimeField(default=timezone.now, db_index=True)

    class Meta:
        ordering = ['-created_at', '-id']
        indexes = [
            models.Index(fields=['item', 'created_at'], name='inventory_s_item_id_0c3f57_idx'),
            models.Index(fields=['kind', 'created_at'], name='inventory_s_kind_5d2a8e_idx'),
        ]

    def __str__(self) -> str:
        return f"{self.kind} {self.change:+d} -> {self.item_id}"


class SupplyRequest(models.Model):
    """A department's request for stock, subject to approval."""
    STATUS_PENDING = 'pending'
    STATUS_APPROVED = 'approved'
    STATUS_REJECTED = 'rejected'
    STATUS_IN_PROGRESS = 'in_progress'
    STATUS_FULFILLED = 'fulfilled'
    STATUS_CHOICES = [
        (STATUS_PENDING, 'Pending'),
        (STATUS_APPROVED, 'Approved'),
        (STATUS_REJECTED, 'Rejected'),
        (STATUS_IN_PROGRESS, 'In Progress'),
        (STATUS_FULFILLED, 'Fulfilled'),
    ]
    PRIORITY_CHOICES = [
        ('low', 'Low'),
        ('medium', 'Medium'),
        ('high', 'High'),
        ('urgent', 'Urgent'),
    ]

    department = models.ForeignKey(Department, on_delete=models.PROTECT, related_name='requests')
    requested_by = models.ForeignKey(
        User, null=True, on_delete=models.SET_NULL, related_name='supply_requests'
    )
    required_date = models.DateField(null=True, blank=True)
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=STATUS_PENDING, db_index=True)
    priority = models.CharField(max_length=10, choices=PRIORITY_CHOICES, default='medium', db_index=True)
    notes = models.TextField(blank=True)
    approved_by = models.ForeignKey(
        User, null=True, blank=True, on_delete=models.SET_NULL, related_name='decided_requests'
    )
    approved_at = models.DateTimeField(null=True, blank=True)
    approval_notes = models.TextField(blank=True)
    rejection_reason = models.TextField(blank=True)
    created_at = models.DateTimeField(default=timezone.now, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at', '-id']

    def __str__(self) -> str:
        return f"Request #{self.pk} ({self.department}, {self.status})"


class RequestItem(models.Model):
    URGENCY_CHOICES = [
        ('low', 'Low'),
        ('medium', 'Medium'),
        ('high', 'High'),
        ('critical', 'Critical'),
    ]
    request = models.ForeignKey(SupplyRequest, on_delete=models.CASCADE, related_name='items')
    item = models.ForeignKey(InventoryItem, on_delete=models.PROTECT, related_name='request_lines')
    requested_quantity = models.PositiveIntegerField()
    approved_quantity = models.PositiveIntegerField(null=True, blank=True)
    urgency = models.CharField(max_length=10, choices=URGENCY_CHOICES, default='medium')
    justification = models.TextField(blank=True)

    def __str__(self) -> str:
        return f"{self.item_id} x{self.requested_quantity}"


class PurchaseOrder(models.Model):
    """An order placed with a supplier.  Delivery receives stock."""
    STATUS_PENDING = 'pending'
    STATUS_APPROVED = 'approved'
    STATUS_SHIPPED = 'shipped'
    STATUS_DELIVERED = 'delivered'
    STATUS_CANCELLED = 'cancelled'
    STATUS_CHOICES = [
        (STATUS_PENDING, 'Pending'),
        (STATUS_APPROVED, 'Approved'),
        (STATUS_SHIPPED, 'Shipped'),
        (STATUS_DELIVERED, 'Delivered'),
        (STATUS_CANCELLED, 'Cancelled'),
    ]

    supplier = models.CharField(max_length=255, db_index=True)
    order_date = models.DateField(default=timezone.localdate, db_index=True)
    expected_delivery = models.DateField()
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=STATUS_PENDING, db_index=True)
    total_amount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0'))
    notes = models.TextField(blank=True)
    ordered_by = models.ForeignKey(User, null=True, on_delete=models.SET_NULL, related_name='purchase_orders')
    received_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-order_date', '-id']

    def __str__(self) -> str:
        return f"PO #{self.pk} {self.supplier} ({self.status})"


class OrderItem(models.Model):
    order = models.ForeignKey(PurchaseOrder, on_delete=models.CASCADE, related_name='items')
    item = models.ForeignKey(InventoryItem, on_delete=models.PROTECT, related_name='order_lines')
    quantity = models.PositiveIntegerField()
    unit_price = models.DecimalField(max_digits=12, decimal_places=2)
    total_price = models.DecimalField(max_digits=14, decimal_places=2)

    def __str__(self) -> str:
        return f"{self.item_id} x{self.quantity} @ {self.unit_price}"


class Release(models.Model):
    """Stock issued from the store to a department."""
    TYPE_DEPARTMENT_REQUEST = 'department_request'
    TYPE_EMERGENCY = 'emergency'
    TYPE_TRANSFER = 'transfer'
    TYPE_MAINTENANCE = 'maintenance'
    TYPE_DISPOSAL = 'disposal'
    TYPE_RETURN = 'return'
    TYPE_CHOICES = [
        (TYPE_DEPARTMENT_REQUEST, 'Department Request'),
        (TYPE_EMERGENCY, 'Emergency Release'),
        (TYPE_TRANSFER, 'Inter-department Transfer'),
        (TYPE_MAINTENANCE, 'Equipment Maintenance'),
        (TYPE_DISPOSAL, 'Disposal/Waste'),
        (TYPE_RETURN, 'Return to Supplier'),
    ]

    department = models.ForeignKey(Department, on_delete=models.PROTECT, related_name='releases')
    released_by = models.ForeignKey(User, null=True, on_delete=models.SET_NULL, related_name='releases')
    request = models.ForeignKey(
        SupplyRequest, null=True, blank=True, on_delete=models.SET_NULL, related_name='releases'
    )
    release_type = models.CharField(
        max_length=24, choices=TYPE_CHOICES, default=TYPE_DEPARTMENT_REQUEST, db_index=True
    )
    recipient_name = models.CharField(max_length=255)
    recipient_id = models.CharField(max_length=64, blank=True)
    purpose = models.TextField()
    notes = models.TextField(blank=True)
    released_at = models.DateTimeField(default=timezone.now, db_index=True)

    class Meta:
        ordering = ['-released_at', '-id']

    def __str__(self) -> str:
        return f"Release #{self.pk} to {self.department}"


class ReleaseItem(models.Model):
    release = models.ForeignKey(Release, on_delete=models.CASCADE, related_name='items')
    item = models.ForeignKey(InventoryItem, on_delete=models.PROTECT, related_name='release_lines')
    quantity = models.PositiveIntegerField()
    batch_number = models.CharField(max_length=64, blank=True)
    expiry_date = models.DateField(null=True, blank=True)

    def __str__(self) -> str:
        return f"{self.item_id} x{self.quantity}"


class PasswordResetToken(models.Model):
    """Single-use token mailed to a user who forgot their password."""
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='reset_tokens')
    token = models.CharField(max_length=64, unique=True)
    expires_at = models.DateTimeField()
    used = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    @property
    def is_expired(self) -> bool:
        return timezone.now() > self.expires_at

    def __str__(self) -> str:
        return f"reset u={self.user_id} used={self.used}"


class AuditEvent(models.Model):
    user = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True)
    action = models.CharField(max_length=64)
    object_type = models.CharField(max_length=64, blank=True, null=True)
    object_id = models.IntegerField(blank=True, null=True)
    detail = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [
            models.Index(fields=['action', 'created_at'], name='inventory_a_action_3b9e21_idx'),
            models.Index(fields=['object_type', 'object_id', 'created_at'], name='inventory_a_object__7f4c02_idx'),
        ]

    def __str__(self):
        return f"{self.action}:{self.user_id}@{self.created_at:%F %T}"
