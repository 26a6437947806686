from django.core.management.base import BaseCommand
from django.utils import timezone

from inventory.models import Department, User
from inventory.permissions import role_permissions

# (email, employee id, first, last, role, department)
TEST_SET = [
    ("admin@villimale-hospital.mv", "EMP001", "System", "Administrator", User.ROLE_SYSTEM_ADMIN, "IT"),
    ("john.smith@villimale-hospital.mv", "EMP002", "John", "Smith", User.ROLE_INVENTORY_MANAGER, "Inventory"),
    ("sarah.johnson@villimale-hospital.mv", "DOC001", "Sarah", "Johnson", User.ROLE_DEPARTMENT_HEAD, "Emergency"),
    ("store.staff@villimale-hospital.mv", "EMP010", "Aminath", "Rasheed", User.ROLE_INVENTORY_STAFF, "Inventory"),
    ("nurse.ward@villimale-hospital.mv", "NUR001", "Mariyam", "Ali", User.ROLE_DEPARTMENT_STAFF, "Emergency"),
]


class Command(BaseCommand):
    help = "Ensure demo accounts exist, active, unlocked and with a known password (idempotent)."

    def add_arguments(self, parser):
        parser.add_argument("--password", default="Hospital@2024")

    def handle(self, *args, **opts):
        password = opts["password"]
        for email, employee_id, first, last, role, dept_name in TEST_SET:
            dept, _ = Department.objects.get_or_create(name=dept_name)
            u, created = User.objects.get_or_create(
                email=email,
                defaults={"username": email, "employee_id": employee_id, "first_name": first, "last_name": last},
            )
            u.role = role
            u.department = dept
            u.status = User.STATUS_ACTIVE
            u.permissions = role_permissions(role)
            u.login_attempts = 0
            u.locked_until = None
            u.is_first_login = False
            u.set_password(password)
            u.password_changed_at = timezone.now()
            u.save()
            self.stdout.write(self.style.SUCCESS(f"{'created' if created else 'ok'}: {email} ({role})"))
        self.stdout.write(self.style.SUCCESS("All test users ensured."))
