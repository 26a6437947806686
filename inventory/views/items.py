"""
Inventory item endpoints: catalogue CRUD, stock receipts and
adjustments, low-stock and expiry listings and the movement ledger.
"""
from __future__ import annotations

from rest_framework.decorators import api_view, permission_classes
from rest_framework.exceptions import NotFound
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from inventory.models import InventoryItem, StockMovement
from inventory.pagination import paginate
from inventory.permissions import EDIT_ITEMS, UPDATE_STOCK, CanEditItems, CanViewInventory, requires
from inventory.serializers.items import (
    AddStockSerializer,
    AdjustStockSerializer,
    ExpiryQuerySerializer,
    ItemListQuerySerializer,
    ItemSerializer,
    MovementQuerySerializer,
)
from inventory.services import stock


def _get_item(item_id: int) -> InventoryItem:
    item = InventoryItem.objects.filter(pk=item_id).first()
    if item is None:
        raise NotFound('Item not found')
    return item


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, CanEditItems])
def items(request):
    if request.method == 'POST':
        s = ItemSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        item = stock.create_item(request.user, dict(s.validated_data))
        return Response({'ok': True, 'data': stock.format_item(item)}, status=201)

    q = ItemListQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    vd = q.validated_data
    qs = stock.filter_items(
        InventoryItem.objects.all(),
        q=vd.get('q', ''), category=vd.get('category', ''),
        status=vd.get('status', ''), location=vd.get('location', ''),
    )
    rows, meta = paginate(qs, vd.get('page'), vd.get('pageSize'), default_size=100)
    return Response({'ok': True, 'data': [stock.format_item(i) for i in rows], 'pagination': meta})


@api_view(['GET', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, CanEditItems])
def item_detail(request, item_id: int):
    item = _get_item(item_id)
    if request.method == 'GET':
        return Response({'ok': True, 'data': stock.format_item(item)})
    if request.method == 'DELETE':
        stock.delete_item(request.user, item)
        return Response({'ok': True})
    s = ItemSerializer(item, data=request.data, partial=True)
    s.is_valid(raise_exception=True)
    item = stock.update_item(request.user, item, dict(s.validated_data))
    return Response({'ok': True, 'data': stock.format_item(item)})


@api_view(['GET'])
@permission_classes([IsAuthenticated, CanViewInventory])
def categories(request):
    names = (
        InventoryItem.objects.order_by('category').values_list('category', flat=True).distinct()
    )
    return Response({'ok': True, 'data': list(names)})


@api_view(['GET'])
@permission_classes([IsAuthenticated, CanViewInventory])
def low_stock(request):
    rows = stock.low_stock_items().order_by('current_stock', 'name')
    return Response({'ok': True, 'data': [stock.format_item(i) for i in rows]})


@api_view(['POST'])
@permission_classes([IsAuthenticated, requires(EDIT_ITEMS, UPDATE_STOCK)])
def add_stock(request):
    s = AddStockSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    updated = stock.add_stock(request.user, s.validated_data['entries'])
    return Response({'ok': True, 'data': [stock.format_item(i) for i in updated]})


@api_view(['POST'])
@permission_classes([IsAuthenticated, requires(EDIT_ITEMS, UPDATE_STOCK)])
def adjust_stock(request, item_id: int):
    s = AdjustStockSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    item = stock.adjust_stock(request.user, item_id, s.validated_data['delta'], s.validated_data['reason'])
    return Response({'ok': True, 'data': stock.format_item(item)})


@api_view(['GET'])
@permission_classes([IsAuthenticated, CanViewInventory])
def expiry(request):
    q = ExpiryQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    vd = q.validated_data
    report = stock.expiry_report(
        q=vd.get('q', ''), category=vd.get('category', ''),
        bucket=vd.get('status', ''), sort=vd.get('sort', 'expiry_date'),
    )
    return Response({'ok': True, 'data': report['items'], 'summary': report['summary']})


@api_view(['GET'])
@permission_classes([IsAuthenticated, CanViewInventory])
def movements(request):
    q = MovementQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    vd = q.validated_data
    qs = StockMovement.objects.select_related('item')
    if vd.get('itemId'):
        qs = qs.filter(item_id=vd['itemId'])
    if vd.get('kind'):
        qs = qs.filter(kind=vd['kind'])
    rows, meta = paginate(qs, vd.get('page'), vd.get('pageSize'), default_size=100)
    return Response({'ok': True, 'data': [stock.format_movement(m) for m in rows], 'pagination': meta})
