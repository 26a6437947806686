from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from inventory.permissions import CanManageOrders
from inventory.serializers.workflow import OrderCreateSerializer, OrderListQuerySerializer, OrderStatusSerializer
from inventory.services import orders as svc
from inventory.services.stock import reorder_suggestions


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, CanManageOrders])
def orders(request):
    if request.method == 'POST':
        s = OrderCreateSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        order = svc.create_order(request.user, s.validated_data)
        return Response({'ok': True, 'data': svc.format_order(svc.get_order(order.id))}, status=201)

    q = OrderListQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    vd = q.validated_data
    qs = svc.list_orders(status=vd.get('status'), supplier=vd.get('supplier'), q=vd.get('q'))
    return Response({'ok': True, 'data': [svc.format_order(o) for o in qs]})


@api_view(['GET'])
@permission_classes([IsAuthenticated, CanManageOrders])
def order_detail(request, order_id: int):
    return Response({'ok': True, 'data': svc.format_order(svc.get_order(order_id))})


@api_view(['POST'])
@permission_classes([IsAuthenticated, CanManageOrders])
def order_status(request, order_id: int):
    s = OrderStatusSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    svc.set_order_status(request.user, order_id, s.validated_data['status'])
    return Response({'ok': True, 'data': svc.format_order(svc.get_order(order_id))})


@api_view(['GET'])
@permission_classes([IsAuthenticated, CanManageOrders])
def reorder(request):
    """Items at or below minimum with a suggested order quantity."""
    return Response({'ok': True, 'data': reorder_suggestions()})
