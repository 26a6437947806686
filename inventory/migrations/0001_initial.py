import decimal

import django.contrib.auth.models
import django.contrib.auth.validators
import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("auth", "0012_alter_user_first_name_max_length"),
    ]

    operations = [
        migrations.CreateModel(
            name="Department",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=120, unique=True)),
                ("code", models.CharField(blank=True, max_length=20)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
            ],
            options={"ordering": ["name"]},
        ),
        migrations.CreateModel(
            name="User",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("password", models.CharField(max_length=128, verbose_name="password")),
                ("last_login", models.DateTimeField(blank=True, null=True, verbose_name="last login")),
                ("is_superuser", models.BooleanField(
                    default=False,
                    help_text="Designates that this user has all permissions without explicitly assigning them.",
                    verbose_name="superuser status",
                )),
                ("username", models.CharField(
                    error_messages={"unique": "A user with that username already exists."},
                    help_text="Required. 150 characters or fewer. Letters, digits and @/./+/-/_ only.",
                    max_length=150,
                    unique=True,
                    validators=[django.contrib.auth.validators.UnicodeUsernameValidator()],
                    verbose_name="username",
                )),
                ("first_name", models.CharField(blank=True, max_length=150, verbose_name="first name")),
                ("last_name", models.CharField(blank=True, max_length=150, verbose_name="last name")),
                ("is_staff", models.BooleanField(
                    default=False,
                    help_text="Designates whether the user can log into this admin site.",
                    verbose_name="staff status",
                )),
                ("is_active", models.BooleanField(
                    default=True,
                    help_text="Designates whether this user should be treated as active. "
                              "Unselect this instead of deleting accounts.",
                    verbose_name="active",
                )),
                ("date_joined", models.DateTimeField(default=django.utils.timezone.now, verbose_name="date joined")),
                ("email", models.EmailField(max_length=254, unique=True)),
                ("employee_id", models.CharField(blank=True, max_length=32, null=True, unique=True)),
                ("role", models.CharField(
                    choices=[
                        ("System Administrator", "System Administrator"),
                        ("Inventory Manager", "Inventory Manager"),
                        ("Department Head", "Department Head"),
                        ("Doctor", "Doctor"),
                        ("Nurse Manager", "Nurse Manager"),
                        ("Pharmacist", "Pharmacist"),
                        ("Inventory Staff", "Inventory Staff"),
                        ("Department Staff", "Department Staff"),
                    ],
                    default="Department Staff",
                    max_length=32,
                )),
                ("status", models.CharField(
                    choices=[
                        ("active", "Active"),
                        ("inactive", "Inactive"),
                        ("pending", "Pending Approval"),
                        ("suspended", "Suspended"),
                    ],
                    db_index=True,
                    default="active",
                    max_length=16,
                )),
                ("phone", models.CharField(blank=True, max_length=32)),
                ("permissions", models.JSONField(blank=True, default=list)),
                ("is_first_login", models.BooleanField(default=True)),
                ("password_changed_at", models.DateTimeField(blank=True, null=True)),
                ("login_attempts", models.PositiveIntegerField(default=0)),
                ("locked_until", models.DateTimeField(blank=True, null=True)),
                ("approved_at", models.DateTimeField(blank=True, null=True)),
                ("notes", models.TextField(blank=True)),
                ("approved_by", models.ForeignKey(
                    blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL,
                    related_name="approved_users", to=settings.AUTH_USER_MODEL,
                )),
                ("department", models.ForeignKey(
                    blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL,
                    related_name="users", to="inventory.department",
                )),
                ("groups", models.ManyToManyField(
                    blank=True,
                    help_text="The groups this user belongs to. A user will get all permissions granted to each of their groups.",
                    related_name="user_set",
                    related_query_name="user",
                    to="auth.group",
                    verbose_name="groups",
                )),
                ("user_permissions", models.ManyToManyField(
                    blank=True,
                    help_text="Specific permissions for this user.",
                    related_name="user_set",
                    related_query_name="user",
                    to="auth.permission",
                    verbose_name="user permissions",
                )),
            ],
            options={
                "verbose_name": "user",
                "verbose_name_plural": "users",
                "abstract": False,
            },
            managers=[
                ("objects", django.contrib.auth.models.UserManager()),
            ],
        ),
        migrations.CreateModel(
            name="InventoryItem",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=255)),
                ("description", models.TextField(blank=True)),
                ("category", models.CharField(db_index=True, max_length=120)),
                ("unit_of_measure", models.CharField(max_length=50)),
                ("current_stock", models.IntegerField(default=0)),
                ("minimum_stock", models.PositiveIntegerField(default=0)),
                ("maximum_stock", models.PositiveIntegerField(default=0)),
                ("unit_cost", models.DecimalField(decimal_places=2, default=decimal.Decimal("0"), max_digits=12)),
                ("supplier", models.CharField(blank=True, max_length=255)),
                ("location", models.CharField(blank=True, max_length=255)),
                ("expiry_date", models.DateField(blank=True, null=True)),
                ("batch_number", models.CharField(blank=True, max_length=64)),
                ("status", models.CharField(
                    choices=[
                        ("In Stock", "In Stock"),
                        ("Low Stock", "Low Stock"),
                        ("Critical", "Critical"),
                        ("Expired", "Expired"),
                        ("Out of Stock", "Out of Stock"),
                    ],
                    db_index=True,
                    default="In Stock",
                    max_length=16,
                )),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={"ordering": ["name"]},
        ),
        migrations.CreateModel(
            name="StockMovement",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("change", models.IntegerField()),
                ("balance_after", models.IntegerField()),
                ("kind", models.CharField(
                    choices=[
                        ("receipt", "Stock receipt"),
                        ("release", "Release"),
                        ("order_receipt", "Purchase order receipt"),
                        ("adjustment", "Adjustment"),
                    ],
                    max_length=16,
                )),
                ("reason", models.CharField(blank=True, max_length=255)),
                ("source_type", models.CharField(blank=True, max_length=32)),
                ("source_id", models.PositiveIntegerField(blank=True, null=True)),
                ("batch_number", models.CharField(blank=True, max_length=64)),
                ("expiry_date", models.DateField(blank=True, null=True)),
                ("created_at", models.DateTimeField(db_index=True, default=django.utils.timezone.now)),
                ("created_by", models.ForeignKey(
                    blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL,
                    related_name="stock_movements", to=settings.AUTH_USER_MODEL,
                )),
                ("item", models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE, related_name="movements",
                    to="inventory.inventoryitem",
                )),
            ],
            options={
                "ordering": ["-created_at", "-id"],
                "indexes": [
                    models.Index(fields=["item", "created_at"], name="inventory_s_item_id_0c3f57_idx"),
                    models.Index(fields=["kind", "created_at"], name="inventory_s_kind_5d2a8e_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="SupplyRequest",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("required_date", models.DateField(blank=True, null=True)),
                ("status", models.CharField(
                    choices=[
                        ("pending", "Pending"),
                        ("approved", "Approved"),
                        ("rejected", "Rejected"),
                        ("in_progress", "In Progress"),
                        ("fulfilled", "Fulfilled"),
                    ],
                    db_index=True,
                    default="pending",
                    max_length=16,
                )),
                ("priority", models.CharField(
                    choices=[("low", "Low"), ("medium", "Medium"), ("high", "High"), ("urgent", "Urgent")],
                    db_index=True,
                    default="medium",
                    max_length=10,
                )),
                ("notes", models.TextField(blank=True)),
                ("approved_at", models.DateTimeField(blank=True, null=True)),
                ("rejection_reason", models.TextField(blank=True)),
                ("created_at", models.DateTimeField(db_index=True, default=django.utils.timezone.now)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("approved_by", models.ForeignKey(
                    blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL,
                    related_name="decided_requests", to=settings.AUTH_USER_MODEL,
                )),
                ("department", models.ForeignKey(
                    on_delete=django.db.models.deletion.PROTECT, related_name="requests",
                    to="inventory.department",
                )),
                ("requested_by", models.ForeignKey(
                    null=True, on_delete=django.db.models.deletion.SET_NULL,
                    related_name="supply_requests", to=settings.AUTH_USER_MODEL,
                )),
            ],
            options={"ordering": ["-created_at", "-id"]},
        ),
        migrations.CreateModel(
            name="RequestItem",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("requested_quantity", models.PositiveIntegerField()),
                ("approved_quantity", models.PositiveIntegerField(blank=True, null=True)),
                ("urgency", models.CharField(
                    choices=[("low", "Low"), ("medium", "Medium"), ("high", "High"), ("critical", "Critical")],
                    default="medium",
                    max_length=10,
                )),
                ("justification", models.TextField(blank=True)),
                ("item", models.ForeignKey(
                    on_delete=django.db.models.deletion.PROTECT, related_name="request_lines",
                    to="inventory.inventoryitem",
                )),
                ("request", models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE, related_name="items",
                    to="inventory.supplyrequest",
                )),
            ],
        ),
        migrations.CreateModel(
            name="PurchaseOrder",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("supplier", models.CharField(db_index=True, max_length=255)),
                ("order_date", models.DateField(db_index=True, default=django.utils.timezone.localdate)),
                ("expected_delivery", models.DateField()),
                ("status", models.CharField(
                    choices=[
                        ("pending", "Pending"),
                        ("approved", "Approved"),
                        ("shipped", "Shipped"),
                        ("delivered", "Delivered"),
                        ("cancelled", "Cancelled"),
                    ],
                    db_index=True,
                    default="pending",
                    max_length=16,
                )),
                ("total_amount", models.DecimalField(decimal_places=2, default=decimal.Decimal("0"), max_digits=14)),
                ("notes", models.TextField(blank=True)),
                ("received_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("ordered_by", models.ForeignKey(
                    null=True, on_delete=django.db.models.deletion.SET_NULL,
                    related_name="purchase_orders", to=settings.AUTH_USER_MODEL,
                )),
            ],
            options={"ordering": ["-order_date", "-id"]},
        ),
        migrations.CreateModel(
            name="OrderItem",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("quantity", models.PositiveIntegerField()),
                ("unit_price", models.DecimalField(decimal_places=2, max_digits=12)),
                ("total_price", models.DecimalField(decimal_places=2, max_digits=14)),
                ("item", models.ForeignKey(
                    on_delete=django.db.models.deletion.PROTECT, related_name="order_lines",
                    to="inventory.inventoryitem",
                )),
                ("order", models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE, related_name="items",
                    to="inventory.purchaseorder",
                )),
            ],
        ),
        migrations.CreateModel(
            name="Release",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("notes", models.TextField(blank=True)),
                ("released_at", models.DateTimeField(db_index=True, default=django.utils.timezone.now)),
                ("department", models.ForeignKey(
                    on_delete=django.db.models.deletion.PROTECT, related_name="releases",
                    to="inventory.department",
                )),
                ("released_by", models.ForeignKey(
                    null=True, on_delete=django.db.models.deletion.SET_NULL,
                    related_name="releases", to=settings.AUTH_USER_MODEL,
                )),
                ("request", models.ForeignKey(
                    blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL,
                    related_name="releases", to="inventory.supplyrequest",
                )),
            ],
            options={"ordering": ["-released_at", "-id"]},
        ),
        migrations.CreateModel(
            name="ReleaseItem",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("quantity", models.PositiveIntegerField()),
                ("batch_number", models.CharField(blank=True, max_length=64)),
                ("expiry_date", models.DateField(blank=True, null=True)),
                ("item", models.ForeignKey(
                    on_delete=django.db.models.deletion.PROTECT, related_name="release_lines",
                    to="inventory.inventoryitem",
                )),
                ("release", models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE, related_name="items",
                    to="inventory.release",
                )),
            ],
        ),
        migrations.CreateModel(
            name="PasswordResetToken",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("token", models.CharField(max_length=64, unique=True)),
                ("expires_at", models.DateTimeField()),
                ("used", models.BooleanField(default=False)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("user", models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE, related_name="reset_tokens",
                    to=settings.AUTH_USER_MODEL,
                )),
            ],
        ),
        migrations.CreateModel(
            name="AuditEvent",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("action", models.CharField(max_length=64)),
                ("object_type", models.CharField(blank=True, max_length=64, null=True)),
                ("object_id", models.IntegerField(blank=True, null=True)),
                ("detail", models.JSONField(blank=True, default=dict)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("user", models.ForeignKey(
                    blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL,
                    to=settings.AUTH_USER_MODEL,
                )),
            ],
            options={
                "indexes": [
                    models.Index(fields=["action", "created_at"], name="inventory_a_action_3b9e21_idx"),
                    models.Index(fields=["object_type", "object_id", "created_at"], name="inventory_a_object__7f4c02_idx"),
                ],
            },
        ),
    ]
