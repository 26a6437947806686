"""
Integration tests for the inventory API.

These tests exercise stock keeping, the request/order/release workflows,
department scoping and user administration through DRF's APIClient
within the APITestCase base class.

To run the tests:

```
pytest -q inventory/tests
```
"""
from datetime import timedelta
from decimal import Decimal

from django.utils import timezone
from rest_framework.test import APITestCase

from ..models import (
    AuditEvent,
    Department,
    InventoryItem,
    PurchaseOrder,
    Release,
    StockMovement,
    SupplyRequest,
    User,
)
from ..permissions import role_permissions

PASSWORD = 'Qx7!harbour-lamp'


def make_user(email, role, department=None, **extra):
    return User.objects.create_user(
        username=email, email=email, password=PASSWORD, role=role, department=department,
        permissions=role_permissions(role), **extra
    )


class InventoryAPITests(APITestCase):
    def setUp(self) -> None:
        self.er = Department.objects.create(name='Emergency', code='ER')
        self.icu = Department.objects.create(name='ICU', code='ICU')
        self.store = Department.objects.create(name='Inventory', code='INV')

        self.admin = make_user('admin@villimale-hospital.mv', User.ROLE_SYSTEM_ADMIN, self.store)
        self.manager = make_user('manager@villimale-hospital.mv', User.ROLE_INVENTORY_MANAGER, self.store)
        self.staff = make_user('store@villimale-hospital.mv', User.ROLE_INVENTORY_STAFF, self.store)
        self.er_head = make_user('head.er@villimale-hospital.mv', User.ROLE_DEPARTMENT_HEAD, self.er)
        self.er_nurse = make_user('nurse.er@villimale-hospital.mv', User.ROLE_DEPARTMENT_STAFF, self.er)
        self.icu_doctor = make_user('doc.icu@villimale-hospital.mv', User.ROLE_DOCTOR, self.icu)

        self.gloves = InventoryItem.objects.create(
            name='Surgical Gloves (Medium)', category='Medical Supplies', unit_of_measure='boxes',
            current_stock=100, minimum_stock=40, unit_cost=Decimal('12.50'),
        )
        self.syringes = InventoryItem.objects.create(
            name='Insulin Syringes', category='Medical Equipment', unit_of_measure='boxes',
            current_stock=5, minimum_stock=50, unit_cost=Decimal('8.75'),
        )

    def as_user(self, user):
        self.client.force_authenticate(user=user)

    # -----------------------------------------------------------------
    # Items & stock
    # -----------------------------------------------------------------
    def test_status_is_derived_on_save(self):
        self.assertEqual(self.gloves.status, InventoryItem.STATUS_IN_STOCK)
        self.assertEqual(self.syringes.status, InventoryItem.STATUS_CRITICAL)

    def test_create_item_ignores_status_and_records_opening_stock(self):
        self.as_user(self.manager)
        resp = self.client.post('/api/items', {
            'name': 'Paracetamol 500mg', 'category': 'Medications', 'unitOfMeasure': 'tablets',
            'currentStock': 30, 'minimumStock': 50, 'maximumStock': 500, 'unitCost': '0.25',
            'status': 'In Stock',
        }, format='json')
        self.assertEqual(resp.status_code, 201)
        self.assertEqual(resp.data['data']['status'], 'Low Stock')
        item = InventoryItem.objects.get(name='Paracetamol 500mg')
        self.assertEqual(item.movements.get().change, 30)

    def test_item_validation(self):
        self.as_user(self.manager)
        resp = self.client.post('/api/items', {
            'name': 'Bad', 'category': 'X', 'unitOfMeasure': 'box', 'minimumStock': 10, 'maximumStock': 5,
        }, format='json')
        self.assertEqual(resp.status_code, 400)
        resp = self.client.post('/api/items', {
            'name': 'Bad', 'category': 'X', 'unitOfMeasure': 'box', 'unitCost': '-1',
        }, format='json')
        self.assertEqual(resp.status_code, 400)

    def test_item_update_cannot_change_stock(self):
        self.as_user(self.manager)
        resp = self.client.patch(f'/api/items/{self.gloves.id}', {'currentStock': 1}, format='json')
        self.assertEqual(resp.status_code, 400)
        resp = self.client.patch(f'/api/items/{self.gloves.id}', {'minimumStock': 100}, format='json')
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.data['data']['status'], 'Low Stock')

    def test_department_staff_can_view_but_not_edit_items(self):
        self.as_user(self.er_nurse)
        self.assertEqual(self.client.get('/api/items').status_code, 200)
        resp = self.client.post('/api/items', {'name': 'X', 'category': 'Y', 'unitOfMeasure': 'z'}, format='json')
        self.assertEqual(resp.status_code, 403)

    def test_delete_item_refused_while_referenced(self):
        self._create_request(item=self.syringes)
        self._create_order()
        self.as_user(self.manager)
        resp = self.client.delete(f'/api/items/{self.syringes.id}')
        self.assertEqual(resp.status_code, 409)
        self.assertEqual(resp.data['error']['code'], 'invalid_transition')
        self.assertTrue(InventoryItem.objects.filter(pk=self.syringes.id).exists())

        spare = InventoryItem.objects.create(name='Tongue Depressors', category='Medical Supplies',
                                             unit_of_measure='boxes')
        resp = self.client.delete(f'/api/items/{spare.id}')
        self.assertEqual(resp.status_code, 200)
        self.assertFalse(InventoryItem.objects.filter(pk=spare.id).exists())
        self.assertTrue(AuditEvent.objects.filter(action='item_delete', object_id=spare.id).exists())

    def test_delete_item_refused_after_release(self):
        self.as_user(self.staff)
        self._release(self.er, [{'itemId': self.gloves.id, 'quantity': 1}])
        self.as_user(self.manager)
        self.assertEqual(self.client.delete(f'/api/items/{self.gloves.id}').status_code, 409)

    def test_list_filters(self):
        self.as_user(self.er_nurse)
        resp = self.client.get('/api/items', {'q': 'insulin'})
        self.assertEqual([i['id'] for i in resp.data['data']], [self.syringes.id])
        resp = self.client.get('/api/items', {'status': 'Critical'})
        self.assertEqual(resp.data['pagination']['total'], 1)
        resp = self.client.get('/api/items/categories')
        self.assertEqual(resp.data['data'], ['Medical Equipment', 'Medical Supplies'])
        resp = self.client.get('/api/items/low-stock')
        self.assertEqual([i['id'] for i in resp.data['data']], [self.syringes.id])

    def test_add_stock_batch_overwrites_batch_and_expiry(self):
        self.as_user(self.staff)
        expiry = (timezone.localdate() + timedelta(days=200)).isoformat()
        resp = self.client.post('/api/items/add-stock', {'entries': [
            {'itemId': self.syringes.id, 'quantity': 100, 'batchNumber': 'DC-77', 'expiryDate': expiry},
            {'itemId': self.gloves.id, 'quantity': 10},
        ]}, format='json')
        self.assertEqual(resp.status_code, 200)
        self.syringes.refresh_from_db()
        self.assertEqual(self.syringes.current_stock, 105)
        self.assertEqual(self.syringes.batch_number, 'DC-77')
        self.assertEqual(self.syringes.expiry_date.isoformat(), expiry)
        self.assertEqual(self.syringes.status, InventoryItem.STATUS_IN_STOCK)
        applied = StockMovement.objects.filter(kind=StockMovement.KIND_RECEIPT).order_by('id')
        self.assertEqual(list(applied.values_list('item_id', flat=True)), [self.gloves.id, self.syringes.id])

    def test_add_stock_is_all_or_nothing(self):
        self.as_user(self.staff)
        resp = self.client.post('/api/items/add-stock', {'entries': [
            {'itemId': self.gloves.id, 'quantity': 10},
            {'itemId': 99999, 'quantity': 10},
        ]}, format='json')
        self.assertEqual(resp.status_code, 404)
        self.gloves.refresh_from_db()
        self.assertEqual(self.gloves.current_stock, 100)
        resp = self.client.post('/api/items/add-stock', {'entries': [{'itemId': self.gloves.id, 'quantity': 0}]},
                                format='json')
        self.assertEqual(resp.status_code, 400)

    def test_adjust_cannot_go_negative(self):
        self.as_user(self.staff)
        resp = self.client.post(f'/api/items/{self.syringes.id}/adjust', {'delta': -6, 'reason': 'Damaged'},
                                format='json')
        self.assertEqual(resp.status_code, 409)
        self.assertEqual(resp.data['error']['code'], 'insufficient_stock')
        resp = self.client.post(f'/api/items/{self.syringes.id}/adjust', {'delta': -5, 'reason': 'Damaged'},
                                format='json')
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.data['data']['status'], 'Out of Stock')

    def test_expiry_tracking(self):
        today = timezone.localdate()
        InventoryItem.objects.create(name='Old Saline', category='IV Fluids', unit_of_measure='bags',
                                     current_stock=10, minimum_stock=1, unit_cost=Decimal('2.00'),
                                     expiry_date=today - timedelta(days=1))
        InventoryItem.objects.create(name='Amoxicillin', category='Medications', unit_of_measure='caps',
                                     current_stock=4, minimum_stock=1, unit_cost=Decimal('1.00'),
                                     expiry_date=today + timedelta(days=20))
        InventoryItem.objects.create(name='Empty Vials', category='Medications', unit_of_measure='vials',
                                     current_stock=0, minimum_stock=1, expiry_date=today + timedelta(days=3))
        self.as_user(self.er_nurse)
        resp = self.client.get('/api/items/expiry', {'sort': 'value_at_risk'})
        self.assertEqual(resp.status_code, 200)
        rows = resp.data['data']
        self.assertEqual([r['name'] for r in rows], ['Old Saline', 'Amoxicillin'])
        self.assertEqual(rows[0]['status'], 'expired')
        self.assertEqual(rows[0]['valueAtRisk'], 20.0)
        self.assertEqual(rows[1]['daysUntilExpiry'], 20)
        summary = resp.data['summary']
        self.assertEqual(summary['expired'], 1)
        self.assertEqual(summary['expiring_soon'], 1)
        self.assertEqual(summary['total'], 2)
        resp = self.client.get('/api/items/expiry', {'status': 'expiring_soon'})
        self.assertEqual([r['name'] for r in resp.data['data']], ['Amoxicillin'])

    # -----------------------------------------------------------------
    # Requests
    # -----------------------------------------------------------------
    def _create_request(self, user=None, qty=10, item=None):
        self.as_user(user or self.er_nurse)
        resp = self.client.post('/api/requests', {
            'priority': 'urgent',
            'items': [{'itemId': (item or self.gloves).id, 'quantity': qty, 'justification': 'Trauma bay'}],
        }, format='json')
        self.assertEqual(resp.status_code, 201, resp.data)
        return resp.data['data']

    def test_request_defaults_to_requester_department(self):
        data = self._create_request()
        self.assertEqual(data['departmentId'], self.er.id)
        self.assertEqual(data['status'], 'pending')

    def test_request_requires_items(self):
        self.as_user(self.er_nurse)
        resp = self.client.post('/api/requests', {'items': []}, format='json')
        self.assertEqual(resp.status_code, 400)

    def test_request_listing_is_department_scoped(self):
        self._create_request()
        self._create_request(user=self.icu_doctor)
        self.as_user(self.er_nurse)
        resp = self.client.get('/api/requests')
        self.assertEqual({r['departmentId'] for r in resp.data['data']}, {self.er.id})
        self.as_user(self.staff)
        resp = self.client.get('/api/requests')
        self.assertEqual(resp.data['pagination']['total'], 2)

    def test_request_detail_shows_stock_sufficiency(self):
        data = self._create_request(item=self.syringes, qty=10)
        self.as_user(self.er_nurse)
        resp = self.client.get(f"/api/requests/{data['id']}")
        line = resp.data['data']['items'][0]
        self.assertEqual(line['currentStock'], 5)
        self.assertFalse(line['stockSufficient'])
        self.as_user(self.icu_doctor)
        self.assertEqual(self.client.get(f"/api/requests/{data['id']}").status_code, 404)

    def test_department_head_approves_own_department_only(self):
        er_req = self._create_request()
        icu_req = self._create_request(user=self.icu_doctor)
        self.as_user(self.er_head)
        resp = self.client.post(f"/api/requests/{icu_req['id']}/approve", {}, format='json')
        self.assertIn(resp.status_code, (403, 404))
        line_id = er_req['items'][0]['id']
        resp = self.client.post(f"/api/requests/{er_req['id']}/approve",
                                {'approvedQuantities': {str(line_id): 6}}, format='json')
        self.assertEqual(resp.status_code, 200, resp.data)
        self.assertEqual(resp.data['data']['status'], 'approved')
        self.assertEqual(resp.data['data']['items'][0]['approvedQuantity'], 6)
        self.assertEqual(resp.data['data']['approvedBy'], self.er_head.id)

    def test_approval_notes_keep_requester_notes(self):
        self.as_user(self.er_nurse)
        resp = self.client.post('/api/requests', {
            'notes': 'For trauma bay 3',
            'items': [{'itemId': self.gloves.id, 'quantity': 4}],
        }, format='json')
        req_id = resp.data['data']['id']
        self.as_user(self.manager)
        resp = self.client.post(f'/api/requests/{req_id}/approve', {'notes': 'ok'}, format='json')
        self.assertEqual(resp.status_code, 200, resp.data)
        self.assertEqual(resp.data['data']['notes'], 'For trauma bay 3')
        self.assertEqual(resp.data['data']['approvalNotes'], 'ok')
        req = SupplyRequest.objects.get(pk=req_id)
        self.assertEqual((req.notes, req.approval_notes), ('For trauma bay 3', 'ok'))

    def test_approved_quantity_bounds(self):
        req = self._create_request(qty=10)
        self.as_user(self.manager)
        line_id = req['items'][0]['id']
        resp = self.client.post(f"/api/requests/{req['id']}/approve",
                                {'approvedQuantities': {str(line_id): 11}}, format='json')
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(SupplyRequest.objects.get(pk=req['id']).status, 'pending')

    def test_plain_staff_cannot_approve(self):
        req = self._create_request()
        self.as_user(self.er_nurse)
        resp = self.client.post(f"/api/requests/{req['id']}/approve", {}, format='json')
        self.assertEqual(resp.status_code, 403)

    def test_reject_requires_reason_and_is_terminal(self):
        req = self._create_request()
        self.as_user(self.manager)
        resp = self.client.post(f"/api/requests/{req['id']}/reject", {'reason': '  '}, format='json')
        self.assertEqual(resp.status_code, 400)
        resp = self.client.post(f"/api/requests/{req['id']}/reject", {'reason': 'Duplicate'}, format='json')
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.data['data']['rejectionReason'], 'Duplicate')
        resp = self.client.post(f"/api/requests/{req['id']}/approve", {}, format='json')
        self.assertEqual(resp.status_code, 409)
        self.assertEqual(resp.data['error']['code'], 'invalid_transition')

    def test_request_status_transitions(self):
        req = self._create_request()
        self.as_user(self.staff)
        resp = self.client.post(f"/api/requests/{req['id']}/status", {'status': 'fulfilled'}, format='json')
        self.assertEqual(resp.status_code, 409)
        self.as_user(self.manager)
        self.client.post(f"/api/requests/{req['id']}/approve", {}, format='json')
        self.as_user(self.staff)
        resp = self.client.post(f"/api/requests/{req['id']}/status", {'status': 'in_progress'}, format='json')
        self.assertEqual(resp.data['data']['status'], 'in_progress')
        resp = self.client.post(f"/api/requests/{req['id']}/status", {'status': 'fulfilled'}, format='json')
        self.assertEqual(resp.data['data']['status'], 'fulfilled')
        resp = self.client.post(f"/api/requests/{req['id']}/status", {'status': 'in_progress'}, format='json')
        self.assertEqual(resp.status_code, 409)

    # -----------------------------------------------------------------
    # Orders
    # -----------------------------------------------------------------
    def _create_order(self):
        self.as_user(self.manager)
        resp = self.client.post('/api/orders', {
            'supplier': 'MedSupply Inc',
            'expectedDelivery': (timezone.localdate() + timedelta(days=5)).isoformat(),
            'items': [
                {'itemId': self.syringes.id, 'quantity': 50},
                {'itemId': self.gloves.id, 'quantity': 10, 'unitPrice': '11.00'},
            ],
        }, format='json')
        self.assertEqual(resp.status_code, 201, resp.data)
        return resp.data['data']

    def test_order_totals_default_to_unit_cost(self):
        order = self._create_order()
        self.assertEqual(order['status'], 'pending')
        prices = {line['itemId']: line['unitPrice'] for line in order['items']}
        self.assertEqual(prices[self.syringes.id], 8.75)
        self.assertEqual(prices[self.gloves.id], 11.0)
        self.assertEqual(order['totalAmount'], 50 * 8.75 + 10 * 11.0)

    def test_order_requires_lines_and_manage_orders(self):
        self.as_user(self.manager)
        resp = self.client.post('/api/orders', {'supplier': 'X', 'expectedDelivery': '2030-01-01', 'items': []},
                                format='json')
        self.assertEqual(resp.status_code, 400)
        self.as_user(self.er_head)
        self.assertEqual(self.client.get('/api/orders').status_code, 403)

    def test_delivered_order_receives_stock_once(self):
        order = self._create_order()
        self.as_user(self.manager)
        for target in ('approved', 'shipped', 'delivered'):
            resp = self.client.post(f"/api/orders/{order['id']}/status", {'status': target}, format='json')
            self.assertEqual(resp.status_code, 200, resp.data)
        self.assertIsNotNone(resp.data['data']['receivedAt'])
        self.syringes.refresh_from_db()
        self.assertEqual(self.syringes.current_stock, 55)
        self.assertEqual(self.syringes.status, InventoryItem.STATUS_IN_STOCK)
        received = StockMovement.objects.filter(kind='order_receipt', source_id=order['id']).order_by('id')
        self.assertEqual(list(received.values_list('item_id', flat=True)), [self.gloves.id, self.syringes.id])
        resp = self.client.post(f"/api/orders/{order['id']}/status", {'status': 'cancelled'}, format='json')
        self.assertEqual(resp.status_code, 409)

    def test_pending_order_cannot_ship(self):
        order = self._create_order()
        resp = self.client.post(f"/api/orders/{order['id']}/status", {'status': 'shipped'}, format='json')
        self.assertEqual(resp.status_code, 409)
        resp = self.client.post(f"/api/orders/{order['id']}/status", {'status': 'cancelled'}, format='json')
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(PurchaseOrder.objects.get(pk=order['id']).status, 'cancelled')

    def test_reorder_suggestions(self):
        self.as_user(self.manager)
        resp = self.client.get('/api/orders/reorder-suggestions')
        rows = {r['id']: r for r in resp.data['data']}
        self.assertEqual(list(rows), [self.syringes.id])
        self.assertEqual(rows[self.syringes.id]['suggestedQuantity'], 50)
        self.assertEqual(rows[self.syringes.id]['estimatedCost'], 437.5)

    # -----------------------------------------------------------------
    # Releases
    # -----------------------------------------------------------------
    def _release(self, department, items, **extra):
        payload = {
            'departmentId': department.id,
            'releaseType': 'department_request',
            'recipientName': 'Aminath Shifa',
            'purpose': 'Ward top-up',
            'items': items,
        }
        payload.update(extra)
        return self.client.post('/api/releases', payload, format='json')

    def test_release_decrements_and_fulfils_request(self):
        req = self._create_request(qty=10)
        self.as_user(self.manager)
        self.client.post(f"/api/requests/{req['id']}/approve", {}, format='json')
        self.as_user(self.staff)
        resp = self._release(self.er, [{'itemId': self.gloves.id, 'quantity': 10}], requestId=req['id'])
        self.assertEqual(resp.status_code, 201, resp.data)
        self.gloves.refresh_from_db()
        self.assertEqual(self.gloves.current_stock, 90)
        self.assertEqual(SupplyRequest.objects.get(pk=req['id']).status, 'fulfilled')
        mv = StockMovement.objects.get(kind='release')
        self.assertEqual((mv.change, mv.balance_after), (-10, 90))

    def test_release_to_other_department_cannot_fulfil_request(self):
        req = self._create_request(qty=10)
        self.as_user(self.manager)
        self.client.post(f"/api/requests/{req['id']}/approve", {}, format='json')
        self.as_user(self.staff)
        resp = self._release(self.icu, [{'itemId': self.gloves.id, 'quantity': 10}], requestId=req['id'])
        self.assertEqual(resp.status_code, 400)
        self.assertIn('requestId', resp.data['error']['message'])
        self.gloves.refresh_from_db()
        self.assertEqual(self.gloves.current_stock, 100)
        self.assertEqual(SupplyRequest.objects.get(pk=req['id']).status, 'approved')
        self.assertFalse(Release.objects.exists())

    def test_release_insufficient_stock_applies_nothing(self):
        self.as_user(self.staff)
        resp = self._release(self.er, [
            {'itemId': self.gloves.id, 'quantity': 10},
            {'itemId': self.syringes.id, 'quantity': 6},
        ])
        self.assertEqual(resp.status_code, 409)
        self.assertEqual(resp.data['error']['code'], 'insufficient_stock')
        self.gloves.refresh_from_db()
        self.assertEqual(self.gloves.current_stock, 100)
        self.assertFalse(Release.objects.exists())

    def test_release_for_pending_request_refused(self):
        req = self._create_request()
        self.as_user(self.staff)
        resp = self._release(self.er, [{'itemId': self.gloves.id, 'quantity': 1}], requestId=req['id'])
        self.assertEqual(resp.status_code, 409)

    def test_release_line_defaults_batch_from_item(self):
        self.gloves.batch_number = 'MS-1'
        self.gloves.save()
        self.as_user(self.staff)
        resp = self._release(self.icu, [{'itemId': self.gloves.id, 'quantity': 2}])
        self.assertEqual(resp.data['data']['items'][0]['batchNumber'], 'MS-1')
        resp = self.client.get('/api/releases', {'departmentId': self.icu.id})
        self.assertEqual(len(resp.data['data']), 1)

    def test_release_requires_type_recipient_and_purpose(self):
        self.as_user(self.staff)
        line = [{'itemId': self.gloves.id, 'quantity': 1}]
        self.assertEqual(self._release(self.er, line, releaseType='gift').status_code, 400)
        self.assertEqual(self._release(self.er, line, recipientName='  ').status_code, 400)
        self.assertEqual(self._release(self.er, line, purpose='').status_code, 400)
        self.assertFalse(Release.objects.exists())

        resp = self._release(self.er, line, releaseType='emergency', recipientName='Dr. <b>Naseer</b>',
                             recipientId='EMP-204', purpose='Cardiac arrest cart')
        self.assertEqual(resp.status_code, 201, resp.data)
        data = resp.data['data']
        self.assertEqual(data['releaseType'], 'emergency')
        self.assertEqual(data['recipientName'], 'Dr. Naseer')
        self.assertEqual(data['recipientId'], 'EMP-204')
        self.assertEqual(data['purpose'], 'Cardiac arrest cart')

    def test_release_list_filters_by_type(self):
        self.as_user(self.staff)
        self._release(self.er, [{'itemId': self.gloves.id, 'quantity': 1}], releaseType='disposal')
        self._release(self.er, [{'itemId': self.gloves.id, 'quantity': 1}])
        resp = self.client.get('/api/releases', {'releaseType': 'disposal'})
        self.assertEqual([r['releaseType'] for r in resp.data['data']], ['disposal'])
        self.assertEqual(self.client.get('/api/releases', {'releaseType': 'bogus'}).status_code, 400)

    # -----------------------------------------------------------------
    # Dashboard, reports, audit
    # -----------------------------------------------------------------
    def test_dashboard_is_cached_and_invalidated_on_change(self):
        self.as_user(self.er_nurse)
        resp = self.client.get('/api/dashboard')
        self.assertEqual(resp.data['data']['totalItems'], 2)
        self.assertEqual(resp.data['data']['lowStockItems'], 1)
        InventoryItem.objects.create(name='Gauze', category='Medical Supplies', unit_of_measure='packs')
        self.assertEqual(self.client.get('/api/dashboard').data['data']['totalItems'], 2)

        with self.captureOnCommitCallbacks(execute=True):
            self._create_request()
        data = self.client.get('/api/dashboard').data['data']
        self.assertEqual(data['totalItems'], 3)
        self.assertEqual(data['pendingRequests'], 1)
        self.assertEqual(data['urgentRequests'], 1)

    def test_reports_need_report_permission(self):
        self.as_user(self.er_nurse)
        self.assertEqual(self.client.get('/api/reports').status_code, 403)
        self._create_order()
        self._create_request()
        self.as_user(self.manager)
        resp = self.client.get('/api/reports', {'period': 'last-7-days'})
        self.assertEqual(resp.status_code, 200)
        data = resp.data['data']
        self.assertEqual(data['ordersCount'], 1)
        self.assertEqual(data['totalInventoryValue'], 100 * 12.5 + 5 * 8.75)
        self.assertEqual(sum(c['count'] for c in data['categoryDistribution']), 2)
        self.assertEqual(data['topDepartments'][0]['department'], 'Emergency')
        self.assertEqual(data['topDepartments'][0]['percentage'], 100)

    def test_report_series(self):
        today = timezone.localdate()
        earlier = today - timedelta(days=45)
        PurchaseOrder.objects.create(supplier='Island Medical', order_date=earlier,
                                     expected_delivery=earlier + timedelta(days=7), total_amount=Decimal('200.00'))
        PurchaseOrder.objects.create(supplier='Cancelled Co', order_date=today, expected_delivery=today,
                                     status=PurchaseOrder.STATUS_CANCELLED, total_amount=Decimal('999.00'))
        self._create_order()
        self.as_user(self.staff)
        self.client.post(f'/api/items/{self.gloves.id}/adjust', {'delta': 20, 'reason': 'Found stock'}, format='json')
        self.client.post(f'/api/items/{self.gloves.id}/adjust', {'delta': -3, 'reason': 'Damaged'}, format='json')

        self.as_user(self.manager)
        data = self.client.get('/api/reports', {'period': 'last-90-days'}).data['data']
        self.assertEqual(data['monthlyOrders'], [
            {'month': earlier.strftime('%Y-%m'), 'orders': 1, 'value': 200.0},
            {'month': today.strftime('%Y-%m'), 'orders': 1, 'value': 50 * 8.75 + 10 * 11.0},
        ])
        self.assertEqual(data['ordersCount'], 2)
        weeks = data['stockMovement']
        self.assertEqual(sum(w['inbound'] for w in weeks), 20)
        self.assertEqual(sum(w['outbound'] for w in weeks), 3)

        data = self.client.get('/api/reports', {'period': 'last-7-days'}).data['data']
        self.assertEqual([m['month'] for m in data['monthlyOrders']], [today.strftime('%Y-%m')])

    def test_csv_export(self):
        self.as_user(self.manager)
        resp = self.client.get('/api/reports/export', {'kind': 'inventory'})
        self.assertEqual(resp.status_code, 200)
        self.assertTrue(resp['Content-Type'].startswith('text/csv'))
        lines = resp.content.decode().strip().splitlines()
        self.assertEqual(len(lines), 3)
        self.assertTrue(lines[0].startswith('ID,Name,Category'))

    def test_audit_requires_full_access(self):
        self._create_request()
        self.as_user(self.manager)
        self.assertEqual(self.client.get('/api/audit').status_code, 403)
        self.as_user(self.admin)
        resp = self.client.get('/api/audit', {'action': 'request_create'})
        self.assertEqual(resp.data['pagination']['total'], 1)

    # -----------------------------------------------------------------
    # Users & departments
    # -----------------------------------------------------------------
    def test_admin_creates_user_with_role_defaults(self):
        self.as_user(self.admin)
        resp = self.client.post('/api/users', {
            'email': 'pharmacist@villimale-hospital.mv', 'password': PASSWORD,
            'firstName': 'Aisha', 'lastName': 'Waheed', 'role': 'Pharmacist', 'departmentId': self.er.id,
        }, format='json')
        self.assertEqual(resp.status_code, 201, resp.data)
        self.assertEqual(resp.data['data']['status'], 'active')
        self.assertIn('Manage Medications', resp.data['data']['permissions'])
        self.assertTrue(resp.data['data']['isFirstLogin'])
        self.assertEqual(resp.data['data']['approvedBy'], self.admin.id)

    def test_pending_user_approval_and_suspension(self):
        pending = make_user('wait@villimale-hospital.mv', User.ROLE_DOCTOR, self.er, status=User.STATUS_PENDING)
        self.as_user(self.admin)
        resp = self.client.post(f'/api/users/{pending.id}/approve')
        self.assertEqual(resp.data['data']['status'], 'active')
        pending.refresh_from_db()
        self.assertTrue(pending.is_active)

        resp = self.client.post(f'/api/users/{pending.id}/suspend', {'reason': 'Left the hospital'}, format='json')
        self.assertEqual(resp.data['data']['status'], 'suspended')
        self.assertEqual(resp.data['data']['notes'], 'Left the hospital')
        resp = self.client.post(f'/api/users/{pending.id}/suspend', {}, format='json')
        self.assertEqual(resp.status_code, 400)

    def test_user_changes_refresh_cached_dashboard(self):
        pending = make_user('new.hire@villimale-hospital.mv', User.ROLE_DOCTOR, self.er, status=User.STATUS_PENDING)
        self.as_user(self.admin)
        self.assertEqual(self.client.get('/api/dashboard').data['data']['activeUsers'], 6)
        with self.captureOnCommitCallbacks(execute=True):
            self.client.post(f'/api/users/{pending.id}/approve')
        self.assertEqual(self.client.get('/api/dashboard').data['data']['activeUsers'], 7)
        with self.captureOnCommitCallbacks(execute=True):
            self.client.post(f'/api/users/{pending.id}/suspend', {'reason': 'Contract ended'}, format='json')
        self.assertEqual(self.client.get('/api/dashboard').data['data']['activeUsers'], 6)
        with self.captureOnCommitCallbacks(execute=True):
            self.client.delete(f'/api/users/{self.icu_doctor.id}')
        self.assertEqual(self.client.get('/api/dashboard').data['data']['activeUsers'], 5)

    def test_admin_reset_and_unlock(self):
        locked = make_user('locked@villimale-hospital.mv', User.ROLE_DOCTOR, self.er, login_attempts=5,
                           locked_until=timezone.now() + timedelta(minutes=30), is_first_login=False)
        self.as_user(self.admin)
        resp = self.client.post(f'/api/users/{locked.id}/unlock')
        self.assertIsNone(resp.data['data']['lockedUntil'])
        resp = self.client.post(f'/api/users/{locked.id}/reset-password', {'newPassword': 'Tmp#Harbour55'},
                                format='json')
        self.assertEqual(resp.status_code, 200)
        locked.refresh_from_db()
        self.assertTrue(locked.is_first_login)
        self.assertTrue(locked.check_password('Tmp#Harbour55'))

    def test_admin_cannot_delete_self(self):
        self.as_user(self.admin)
        self.assertEqual(self.client.delete(f'/api/users/{self.admin.id}').status_code, 400)
        self.assertEqual(self.client.delete(f'/api/users/{self.icu_doctor.id}').status_code, 200)
        self.assertFalse(User.objects.filter(pk=self.icu_doctor.id).exists())
        self.assertTrue(AuditEvent.objects.filter(action='user_delete').exists())

    def test_role_change_resets_permissions(self):
        self.as_user(self.admin)
        resp = self.client.patch(f'/api/users/{self.er_nurse.id}', {'role': 'Inventory Staff'}, format='json')
        self.assertEqual(resp.status_code, 200)
        self.assertIn('Release Items', resp.data['data']['permissions'])

    def test_department_head_lists_own_department_users(self):
        self.as_user(self.er_head)
        resp = self.client.get('/api/users')
        self.assertEqual(resp.status_code, 200)
        self.assertEqual({u['departmentId'] for u in resp.data['data']}, {self.er.id})
        resp = self.client.post('/api/users', {}, format='json')
        self.assertEqual(resp.status_code, 403)
        self.as_user(self.er_nurse)
        self.assertEqual(self.client.get('/api/users').status_code, 403)

    def test_departments(self):
        self.as_user(self.er_nurse)
        self.assertEqual(len(self.client.get('/api/departments').data['data']), 3)
        self.assertEqual(self.client.post('/api/departments', {'name': 'Radiology'}, format='json').status_code, 403)
        self.as_user(self.admin)
        resp = self.client.post('/api/departments', {'name': 'Radiology', 'code': 'RAD'}, format='json')
        self.assertEqual(resp.status_code, 201)
        resp = self.client.post('/api/departments', {'name': 'radiology'}, format='json')
        self.assertEqual(resp.status_code, 400)

    def test_audit_filters_by_object(self):
        req = self._create_request()
        self.as_user(self.manager)
        self.client.post(f"/api/requests/{req['id']}/reject", {'reason': 'Duplicate'}, format='json')
        self.as_user(self.admin)
        resp = self.client.get('/api/audit', {'objectType': 'request', 'objectId': req['id']})
        self.assertEqual([e['action'] for e in resp.data['data']], ['request_reject', 'request_create'])
        self.assertEqual(resp.data['data'][0]['userEmail'], self.manager.email)
        resp = self.client.get('/api/audit', {'userId': 'abc'})
        self.assertEqual(resp.status_code, 400)

    def test_healthz(self):
        resp = self.client.get('/healthz')
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json(), {'ok': True, 'checks': {'db': True, 'cache': True}})
