from decimal import Decimal

import bleach
from rest_framework import serializers

from inventory.models import InventoryItem, StockMovement
from inventory.services.status import EXPIRY_BUCKETS


def _clean(v):
    return bleach.clean((v or '').strip(), strip=True)


class ItemSerializer(serializers.ModelSerializer):
    """Create/update payload.  ``status`` and ``currentStock`` changes on
    update are refused; stock moves only through stock endpoints."""
    unitOfMeasure = serializers.CharField(source='unit_of_measure', max_length=50)
    currentStock = serializers.IntegerField(source='current_stock', min_value=0, required=False)
    minimumStock = serializers.IntegerField(source='minimum_stock', min_value=0, required=False)
    maximumStock = serializers.IntegerField(source='maximum_stock', min_value=0, required=False)
    unitCost = serializers.DecimalField(source='unit_cost', max_digits=12, decimal_places=2,
                                        min_value=Decimal('0'), required=False)
    expiryDate = serializers.DateField(source='expiry_date', required=False, allow_null=True)
    batchNumber = serializers.CharField(source='batch_number', max_length=64, required=False, allow_blank=True)

    class Meta:
        model = InventoryItem
        fields = [
            'name', 'description', 'category', 'unitOfMeasure', 'currentStock', 'minimumStock',
            'maximumStock', 'unitCost', 'supplier', 'location', 'expiryDate', 'batchNumber',
        ]
        extra_kwargs = {
            'description': {'required': False},
            'supplier': {'required': False},
            'location': {'required': False},
        }

    def validate_name(self, v):
        v = _clean(v)
        if not v:
            raise serializers.ValidationError('Item name is required')
        return v

    def validate_description(self, v):
        return _clean(v)

    def validate_category(self, v):
        v = _clean(v)
        if not v:
            raise serializers.ValidationError('Category is required')
        return v

    def validate_supplier(self, v):
        return _clean(v)

    def validate_location(self, v):
        return _clean(v)

    def validate(self, attrs):
        if self.instance is not None and 'current_stock' in attrs \
                and attrs['current_stock'] != self.instance.current_stock:
            raise serializers.ValidationError(
                {'currentStock': 'Use the stock endpoints to change stock levels'}
            )
        minimum = attrs.get('minimum_stock', getattr(self.instance, 'minimum_stock', 0))
        maximum = attrs.get('maximum_stock', getattr(self.instance, 'maximum_stock', 0))
        if maximum and maximum < minimum:
            raise serializers.ValidationError({'maximumStock': 'Maximum stock must not be below minimum stock'})
        return attrs


class ItemListQuerySerializer(serializers.Serializer):
    q = serializers.CharField(max_length=64, required=False, allow_blank=True)
    category = serializers.CharField(max_length=120, required=False, allow_blank=True)
    status = serializers.ChoiceField(choices=[s for s, _ in InventoryItem.STATUS_CHOICES], required=False)
    location = serializers.CharField(max_length=255, required=False, allow_blank=True)
    page = serializers.IntegerField(min_value=1, required=False)
    pageSize = serializers.IntegerField(min_value=1, max_value=500, required=False)


class StockEntrySerializer(serializers.Serializer):
    itemId = serializers.IntegerField(min_value=1)
    quantity = serializers.IntegerField(min_value=1)
    batchNumber = serializers.CharField(max_length=64, required=False, allow_blank=True)
    expiryDate = serializers.DateField(required=False, allow_null=True)
    notes = serializers.CharField(max_length=255, required=False, allow_blank=True)

    def validate_notes(self, v):
        return _clean(v)


class AddStockSerializer(serializers.Serializer):
    entries = StockEntrySerializer(many=True, allow_empty=False)


class AdjustStockSerializer(serializers.Serializer):
    delta = serializers.IntegerField()
    reason = serializers.CharField(max_length=255)

    def validate_delta(self, v):
        if v == 0:
            raise serializers.ValidationError('Adjustment must not be zero')
        return v

    def validate_reason(self, v):
        v = _clean(v)
        if not v:
            raise serializers.ValidationError('A reason is required')
        return v


class ExpiryQuerySerializer(serializers.Serializer):
    q = serializers.CharField(max_length=64, required=False, allow_blank=True)
    category = serializers.CharField(max_length=120, required=False, allow_blank=True)
    status = serializers.ChoiceField(choices=EXPIRY_BUCKETS, required=False)
    sort = serializers.ChoiceField(
        choices=['expiry_date', 'days_until_expiry', 'value_at_risk', 'name', 'category'],
        required=False,
    )


class MovementQuerySerializer(serializers.Serializer):
    itemId = serializers.IntegerField(min_value=1, required=False)
    kind = serializers.ChoiceField(choices=[k for k, _ in StockMovement.KIND_CHOICES], required=False)
    page = serializers.IntegerField(min_value=1, required=False)
    pageSize = serializers.IntegerField(min_value=1, max_value=500, required=False)
