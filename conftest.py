import pytest

PASSWORD = 'Qx7!harbour-lamp'


@pytest.fixture(autouse=True)
def _clear_cache():
    from django.core.cache import cache
    # throttles and the dashboard share the cache
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def emergency(db):
    from inventory.models import Department
    return Department.objects.create(name='Emergency', code='ER')


@pytest.fixture
def surgery(db):
    from inventory.models import Department
    return Department.objects.create(name='Surgery', code='SUR')


@pytest.fixture
def make_user(db):
    from inventory.models import User
    from inventory.permissions import role_permissions

    def _make(email, role=User.ROLE_DEPARTMENT_STAFF, department=None, password=PASSWORD, **extra):
        extra.setdefault('permissions', role_permissions(role))
        return User.objects.create_user(
            username=email, email=email, password=password, role=role, department=department, **extra
        )
    return _make


@pytest.fixture
def make_item(db):
    from inventory.models import InventoryItem

    def _make(name='Paracetamol 500mg', **fields):
        defaults = {
            'category': 'Medications',
            'unit_of_measure': 'tablets',
            'current_stock': 100,
            'minimum_stock': 20,
            'unit_cost': '0.25',
        }
        defaults.update(fields)
        return InventoryItem.objects.create(name=name, **defaults)
    return _make
