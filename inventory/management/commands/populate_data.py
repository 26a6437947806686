"""
Management command to populate the database with sample data.
"""
import random
from datetime import timedelta
from decimal import Decimal

from django.core.management import call_command
from django.core.management.base import BaseCommand
from django.db import transaction
from django.utils import timezone

from inventory.models import (
    Department,
    InventoryItem,
    OrderItem,
    PurchaseOrder,
    RequestItem,
    StockMovement,
    SupplyRequest,
    User,
)
from inventory.services.status import suggested_order_quantity

DEPARTMENTS = [
    ("IT", "IT"), ("Inventory", "INV"), ("Emergency", "ER"), ("Surgery", "SUR"),
    ("ICU", "ICU"), ("Pediatrics", "PED"), ("Pharmacy", "PHA"),
]

# name, category, description, stock, min, max, unit, cost, supplier, location, expiry (days), batch
ITEMS = [
    ("Paracetamol 500mg", "Medications", "Pain relief and fever reducer", 150, 50, 500, "tablets",
     "0.25", "PharmaCorp Ltd", "Pharmacy - Shelf A1", 240, "PC2024001"),
    ("Surgical Gloves (Medium)", "Medical Supplies", "Latex-free surgical gloves", 25, 100, 1000, "boxes",
     "12.50", "MedSupply Inc", "Storage Room B - Shelf 3", None, ""),
    ("Insulin Syringes", "Medical Equipment", "1ml insulin syringes with fine needle", 5, 50, 200, "boxes",
     "8.75", "DiabetesCare Co", "Pharmacy - Refrigerated Section", 400, "DC2024007"),
    ("Amoxicillin 250mg", "Medications", "Broad spectrum antibiotic", 80, 60, 400, "capsules",
     "0.40", "PharmaCorp Ltd", "Pharmacy - Shelf A2", 20, "PC2024019"),
    ("Saline 0.9% 500ml", "IV Fluids", "Sodium chloride infusion", 300, 100, 800, "bags",
     "1.80", "FluidTech", "Storage Room A - Rack 1", 5, "FT2024112"),
    ("Face Masks (N95)", "PPE", "Respirator masks", 0, 200, 2000, "pieces",
     "1.10", "MedSupply Inc", "Storage Room B - Shelf 1", None, ""),
    ("Gauze Pads 4x4", "Medical Supplies", "Sterile gauze pads", 900, 200, 1500, "packs",
     "0.60", "MedSupply Inc", "Storage Room B - Shelf 5", 700, "MS2024044"),
]


class Command(BaseCommand):
    help = 'Populate database with sample departments, users, items, requests and orders'

    @transaction.atomic
    def handle(self, *args, **options):
        self.stdout.write('Creating sample data...')
        self.create_departments()
        call_command('ensure_test_users', stdout=self.stdout)
        items = self.create_items()
        self.create_requests(items)
        self.create_orders(items)
        self.stdout.write(self.style.SUCCESS('Sample data created.'))

    def create_departments(self):
        for name, code in DEPARTMENTS:
            Department.objects.update_or_create(name=name, defaults={'code': code})

    def create_items(self):
        today = timezone.localdate()
        admin = User.objects.filter(role=User.ROLE_SYSTEM_ADMIN).first()
        items = []
        for (name, category, desc, stock, minimum, maximum, unit, cost, supplier,
             location, expiry_days, batch) in ITEMS:
            item, created = InventoryItem.objects.get_or_create(
                name=name,
                defaults={
                    'category': category, 'description': desc, 'current_stock': stock,
                    'minimum_stock': minimum, 'maximum_stock': maximum, 'unit_of_measure': unit,
                    'unit_cost': Decimal(cost), 'supplier': supplier, 'location': location,
                    'expiry_date': today + timedelta(days=expiry_days) if expiry_days is not None else None,
                    'batch_number': batch,
                },
            )
            if created and stock:
                StockMovement.objects.create(
                    item=item, change=stock, balance_after=stock, kind=StockMovement.KIND_RECEIPT,
                    reason='Opening stock', batch_number=batch, expiry_date=item.expiry_date, created_by=admin,
                )
            items.append(item)
        return items

    def create_requests(self, items):
        if SupplyRequest.objects.exists():
            return
        requester = User.objects.filter(email='sarah.johnson@villimale-hospital.mv').first()
        for dept_name, priority in [('Emergency', 'urgent'), ('Surgery', 'high'), ('ICU', 'medium')]:
            dept = Department.objects.get(name=dept_name)
            req = SupplyRequest.objects.create(
                department=dept, requested_by=requester, priority=priority,
                required_date=timezone.localdate() + timedelta(days=3),
                notes=f'Weekly top-up for {dept_name}',
            )
            for item in random.sample(items, 2):
                RequestItem.objects.create(
                    request=req, item=item, requested_quantity=random.randint(5, 30),
                    urgency='high' if priority == 'urgent' else 'medium',
                )

    def create_orders(self, items):
        if PurchaseOrder.objects.exists():
            return
        buyer = User.objects.filter(role=User.ROLE_INVENTORY_MANAGER).first()
        low = [i for i in items if i.current_stock <= i.minimum_stock]
        order = PurchaseOrder.objects.create(
            supplier='MedSupply Inc', ordered_by=buyer,
            expected_delivery=timezone.localdate() + timedelta(days=7),
        )
        total = Decimal('0')
        for item in low:
            qty = suggested_order_quantity(item.current_stock, item.minimum_stock)
            line_total = item.unit_cost * qty
            OrderItem.objects.create(order=order, item=item, quantity=qty,
                                     unit_price=item.unit_cost, total_price=line_total)
            total += line_total
        order.total_amount = total
        order.save(update_fields=['total_amount'])
