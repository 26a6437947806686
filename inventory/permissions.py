"""
Permission names, role defaults and DRF permission classes.

Access is granted by named permissions stored on each user rather than
by role checks, so an administrator can widen or narrow one account
without changing its role.  ``Full Access`` satisfies every check.
"""
from rest_framework.permissions import BasePermission, SAFE_METHODS

FULL_ACCESS = "Full Access"
USER_MANAGEMENT = "User Management"
SYSTEM_SETTINGS = "System Settings"
VIEW_REPORTS = "View Reports"
GENERATE_REPORTS = "Generate Reports"
MANAGE_ORDERS = "Manage Orders"
RELEASE_ITEMS = "Release Items"
APPROVE_REQUESTS = "Approve Requests"
VIEW_INVENTORY = "View Inventory"
EDIT_ITEMS = "Add/Edit Items"
MANAGE_SUPPLIERS = "Manage Suppliers"
REQUEST_ITEMS = "Request Items"
APPROVE_DEPARTMENT_REQUESTS = "Approve Department Requests"
VIEW_DEPARTMENT_REPORTS = "View Department Reports"
MANAGE_DEPARTMENT_USERS = "Manage Department Users"
VIEW_REQUEST_STATUS = "View Request Status"
APPROVE_NURSING_REQUESTS = "Approve Nursing Requests"
MANAGE_MEDICATIONS = "Manage Medications"
VIEW_PHARMACY_REPORTS = "View Pharmacy Reports"
TRACK_CONTROLLED_SUBSTANCES = "Track Controlled Substances"
UPDATE_STOCK = "Update Stock"
PROCESS_REQUESTS = "Process Requests"

ROLE_PERMISSIONS: dict[str, list[str]] = {
    "System Administrator": [
        FULL_ACCESS, USER_MANAGEMENT, SYSTEM_SETTINGS, VIEW_REPORTS, MANAGE_ORDERS,
        RELEASE_ITEMS, APPROVE_REQUESTS, VIEW_INVENTORY, GENERATE_REPORTS,
    ],
    "Inventory Manager": [
        VIEW_INVENTORY, EDIT_ITEMS, MANAGE_ORDERS, RELEASE_ITEMS, APPROVE_REQUESTS,
        VIEW_REPORTS, GENERATE_REPORTS, MANAGE_SUPPLIERS,
    ],
    "Department Head": [
        VIEW_INVENTORY, REQUEST_ITEMS, APPROVE_DEPARTMENT_REQUESTS,
        VIEW_DEPARTMENT_REPORTS, MANAGE_DEPARTMENT_USERS,
    ],
    "Doctor": [VIEW_INVENTORY, REQUEST_ITEMS, VIEW_REQUEST_STATUS],
    "Nurse Manager": [VIEW_INVENTORY, REQUEST_ITEMS, APPROVE_NURSING_REQUESTS, VIEW_DEPARTMENT_REPORTS],
    "Pharmacist": [
        VIEW_INVENTORY, REQUEST_ITEMS, MANAGE_MEDICATIONS, VIEW_PHARMACY_REPORTS,
        TRACK_CONTROLLED_SUBSTANCES,
    ],
    "Inventory Staff": [VIEW_INVENTORY, RELEASE_ITEMS, UPDATE_STOCK, PROCESS_REQUESTS],
    "Department Staff": [VIEW_INVENTORY, REQUEST_ITEMS],
}
DEFAULT_PERMISSIONS = [VIEW_INVENTORY, REQUEST_ITEMS]

ALL_PERMISSIONS = sorted({p for perms in ROLE_PERMISSIONS.values() for p in perms})

# Any of these lets a user see and act on requests from every department
CROSS_DEPARTMENT_REQUEST_PERMISSIONS = (APPROVE_REQUESTS, PROCESS_REQUESTS)
DEPARTMENT_APPROVAL_PERMISSIONS = (APPROVE_DEPARTMENT_REQUESTS, APPROVE_NURSING_REQUESTS)
REPORT_PERMISSIONS = (VIEW_REPORTS, GENERATE_REPORTS, VIEW_DEPARTMENT_REPORTS, VIEW_PHARMACY_REPORTS)


def role_permissions(role: str) -> list[str]:
    """Default permission list for ``role``."""
    return list(ROLE_PERMISSIONS.get(role, DEFAULT_PERMISSIONS))


def user_has(user, *names: str) -> bool:
    """True when the authenticated ``user`` holds any of ``names``."""
    if not (user and getattr(user, "is_authenticated", False)):
        return False
    return user.has_any_app_permission(*names)


class PermissionRequired(BasePermission):
    """Grant access when the user holds any permission in ``required``."""
    required: tuple[str, ...] = ()

    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        return user_has(getattr(request, "user", None), *self.required)


def requires(*names: str) -> type[PermissionRequired]:
    """Build a permission class for ``@permission_classes``."""
    return type(
        "Requires" + "".join(n.title().replace(" ", "").replace("/", "") for n in names[:2]),
        (PermissionRequired,),
        {"required": tuple(names)},
    )


class CanViewInventory(PermissionRequired):
    required = (VIEW_INVENTORY,)


class CanEditItems(PermissionRequired):
    """Writes need Add/Edit Items; reads fall back to View Inventory."""
    required = (EDIT_ITEMS,)

    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        if request.method in SAFE_METHODS:
            return user_has(request.user, VIEW_INVENTORY, EDIT_ITEMS)
        return super().has_permission(request, view)


class CanManageUsers(PermissionRequired):
    required = (USER_MANAGEMENT,)


class CanManageOrders(PermissionRequired):
    required = (MANAGE_ORDERS,)


class CanReleaseItems(PermissionRequired):
    required = (RELEASE_ITEMS,)


class CanViewReports(PermissionRequired):
    required = REPORT_PERMISSIONS


class HasFullAccess(PermissionRequired):
    required = (FULL_ACCESS,)
