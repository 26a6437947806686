from decimal import Decimal

import bleach
from rest_framework import serializers

from inventory.models import PurchaseOrder, Release, RequestItem, SupplyRequest
from inventory.services.reports import EXPORTS, PERIODS


def _clean(v):
    return bleach.clean((v or '').strip(), strip=True)


class RequestLineSerializer(serializers.Serializer):
    itemId = serializers.IntegerField(min_value=1)
    quantity = serializers.IntegerField(min_value=1)
    urgency = serializers.ChoiceField(choices=[u for u, _ in RequestItem.URGENCY_CHOICES], required=False)
    justification = serializers.CharField(max_length=1000, required=False, allow_blank=True)


class RequestCreateSerializer(serializers.Serializer):
    departmentId = serializers.IntegerField(min_value=1, required=False, allow_null=True)
    requiredDate = serializers.DateField(required=False, allow_null=True)
    priority = serializers.ChoiceField(choices=[p for p, _ in SupplyRequest.PRIORITY_CHOICES], required=False)
    notes = serializers.CharField(max_length=2000, required=False, allow_blank=True)
    items = RequestLineSerializer(many=True, allow_empty=False)


class RequestListQuerySerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=[s for s, _ in SupplyRequest.STATUS_CHOICES], required=False)
    priority = serializers.ChoiceField(choices=[p for p, _ in SupplyRequest.PRIORITY_CHOICES], required=False)
    departmentId = serializers.IntegerField(min_value=1, required=False)
    page = serializers.IntegerField(min_value=1, required=False)
    pageSize = serializers.IntegerField(min_value=1, max_value=200, required=False)


class RequestApproveSerializer(serializers.Serializer):
    # request line id -> approved quantity
    approvedQuantities = serializers.DictField(child=serializers.IntegerField(min_value=0), required=False)
    notes = serializers.CharField(max_length=2000, required=False, allow_blank=True)


class RequestRejectSerializer(serializers.Serializer):
    reason = serializers.CharField(max_length=1000)

    def validate_reason(self, v):
        v = _clean(v)
        if not v:
            raise serializers.ValidationError('A rejection reason is required')
        return v


class RequestStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=[SupplyRequest.STATUS_IN_PROGRESS, SupplyRequest.STATUS_FULFILLED])


class OrderLineSerializer(serializers.Serializer):
    itemId = serializers.IntegerField(min_value=1)
    quantity = serializers.IntegerField(min_value=1)
    unitPrice = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal('0'), required=False, allow_null=True)


class OrderCreateSerializer(serializers.Serializer):
    supplier = serializers.CharField(max_length=255)
    orderDate = serializers.DateField(required=False, allow_null=True)
    expectedDelivery = serializers.DateField()
    notes = serializers.CharField(max_length=2000, required=False, allow_blank=True)
    items = OrderLineSerializer(many=True, allow_empty=False)

    def validate_supplier(self, v):
        v = _clean(v)
        if not v:
            raise serializers.ValidationError('Supplier is required')
        return v

    def validate(self, attrs):
        order_date = attrs.get('orderDate')
        if order_date and attrs['expectedDelivery'] < order_date:
            raise serializers.ValidationError({'expectedDelivery': 'Expected delivery precedes the order date'})
        return attrs


class OrderListQuerySerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=[s for s, _ in PurchaseOrder.STATUS_CHOICES], required=False)
    supplier = serializers.CharField(max_length=255, required=False, allow_blank=True)
    q = serializers.CharField(max_length=64, required=False, allow_blank=True)


class OrderStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=[s for s, _ in PurchaseOrder.STATUS_CHOICES])


class ReleaseLineSerializer(serializers.Serializer):
    itemId = serializers.IntegerField(min_value=1)
    quantity = serializers.IntegerField(min_value=1)
    batchNumber = serializers.CharField(max_length=64, required=False, allow_blank=True)
    expiryDate = serializers.DateField(required=False, allow_null=True)


class ReleaseCreateSerializer(serializers.Serializer):
    departmentId = serializers.IntegerField(min_value=1)
    requestId = serializers.IntegerField(min_value=1, required=False, allow_null=True)
    releaseType = serializers.ChoiceField(choices=[t for t, _ in Release.TYPE_CHOICES])
    recipientName = serializers.CharField(max_length=255)
    recipientId = serializers.CharField(max_length=64, required=False, allow_blank=True)
    purpose = serializers.CharField(max_length=2000)
    notes = serializers.CharField(max_length=2000, required=False, allow_blank=True)
    items = ReleaseLineSerializer(many=True, allow_empty=False)

    def validate_recipientName(self, v):
        v = _clean(v)
        if not v:
            raise serializers.ValidationError('Recipient name is required')
        return v

    def validate_purpose(self, v):
        v = _clean(v)
        if not v:
            raise serializers.ValidationError('Purpose is required')
        return v


class ReleaseListQuerySerializer(serializers.Serializer):
    departmentId = serializers.IntegerField(min_value=1, required=False)
    releaseType = serializers.ChoiceField(choices=[t for t, _ in Release.TYPE_CHOICES], required=False)
    dateFrom = serializers.DateField(required=False)
    dateTo = serializers.DateField(required=False)


class ReportQuerySerializer(serializers.Serializer):
    period = serializers.ChoiceField(choices=list(PERIODS), required=False)


class ExportQuerySerializer(serializers.Serializer):
    kind = serializers.ChoiceField(choices=EXPORTS)


class AuditQuerySerializer(serializers.Serializer):
    action = serializers.CharField(max_length=64, required=False, allow_blank=True)
    objectType = serializers.CharField(max_length=64, required=False, allow_blank=True)
    objectId = serializers.IntegerField(required=False)
    userId = serializers.IntegerField(min_value=1, required=False)
    dateFrom = serializers.DateField(required=False)
    dateTo = serializers.DateField(required=False)
    page = serializers.IntegerField(min_value=1, required=False)
    pageSize = serializers.IntegerField(min_value=1, max_value=500, required=False)
