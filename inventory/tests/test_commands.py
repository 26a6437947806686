from datetime import timedelta
from io import StringIO

import pytest
from django.core.cache import cache
from django.core.management import call_command
from django.utils import timezone

from inventory.models import InventoryItem, PurchaseOrder, SupplyRequest, User
from inventory.services.realtime import DASHBOARD_CACHE_KEY

pytestmark = pytest.mark.django_db


def test_ensure_test_users_is_idempotent():
    call_command('ensure_test_users', stdout=StringIO())
    admin = User.objects.get(email='admin@villimale-hospital.mv')
    admin.locked_until = timezone.now() + timedelta(hours=1)
    admin.status = User.STATUS_SUSPENDED
    admin.save()

    out = StringIO()
    call_command('ensure_test_users', '--password', 'Atoll#Breeze2024', stdout=out)
    assert 'ok: admin@villimale-hospital.mv' in out.getvalue()
    assert User.objects.filter(email__endswith='@villimale-hospital.mv').count() == 5
    admin.refresh_from_db()
    assert admin.status == User.STATUS_ACTIVE and admin.is_active
    assert admin.locked_until is None
    assert admin.check_password('Atoll#Breeze2024')


def test_populate_data_twice_does_not_duplicate():
    call_command('populate_data', stdout=StringIO())
    items = InventoryItem.objects.count()
    requests = SupplyRequest.objects.count()
    assert items > 0 and requests == 3
    assert PurchaseOrder.objects.count() == 1

    call_command('populate_data', stdout=StringIO())
    assert InventoryItem.objects.count() == items
    assert SupplyRequest.objects.count() == requests
    assert PurchaseOrder.objects.count() == 1


def test_refresh_stock_status_marks_overnight_expiry(make_item):
    item = make_item(expiry_date=timezone.localdate() + timedelta(days=1))
    assert item.status == InventoryItem.STATUS_IN_STOCK
    InventoryItem.objects.filter(pk=item.pk).update(expiry_date=timezone.localdate() - timedelta(days=1))

    out = StringIO()
    call_command('refresh_stock_status', stdout=out)
    assert '1 item statuses updated' in out.getvalue()
    item.refresh_from_db()
    assert item.status == InventoryItem.STATUS_EXPIRED


def test_refresh_caches_warms_dashboard(make_item):
    make_item()
    call_command('refresh_caches', stdout=StringIO())
    assert cache.get(DASHBOARD_CACHE_KEY)['totalItems'] == 1
