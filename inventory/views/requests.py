from rest_framework.decorators import api_view, permission_classes
from rest_framework.exceptions import PermissionDenied
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from inventory.permissions import REQUEST_ITEMS, user_has
from inventory.serializers.workflow import (
    RequestApproveSerializer,
    RequestCreateSerializer,
    RequestListQuerySerializer,
    RequestRejectSerializer,
    RequestStatusSerializer,
)
from inventory.services import requests as svc


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def requests_view(request):
    if request.method == 'POST':
        if not user_has(request.user, REQUEST_ITEMS):
            raise PermissionDenied('Request Items permission required')
        s = RequestCreateSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        req = svc.create_request(request.user, s.validated_data)
        req = svc.get_request_for(request.user, req.id)
        return Response({'ok': True, 'data': svc.format_request(req)}, status=201)

    q = RequestListQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    vd = q.validated_data
    data, total = svc.list_requests(
        request.user, status=vd.get('status'), priority=vd.get('priority'),
        department_id=vd.get('departmentId'), page=vd.get('page') or 1, page_size=vd.get('pageSize') or 50,
    )
    return Response({
        'ok': True,
        'data': data,
        'pagination': {'total': total, 'page': vd.get('page') or 1, 'pageSize': vd.get('pageSize') or 50},
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def request_detail(request, request_id: int):
    req = svc.get_request_for(request.user, request_id)
    return Response({'ok': True, 'data': svc.format_request(req, with_stock=True)})


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def approve_request(request, request_id: int):
    s = RequestApproveSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    svc.approve_request(request.user, request_id, s.validated_data.get('approvedQuantities'),
                        s.validated_data.get('notes', ''))
    req = svc.get_request_for(request.user, request_id)
    return Response({'ok': True, 'data': svc.format_request(req, with_stock=True)})


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def reject_request(request, request_id: int):
    s = RequestRejectSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    svc.reject_request(request.user, request_id, s.validated_data['reason'])
    req = svc.get_request_for(request.user, request_id)
    return Response({'ok': True, 'data': svc.format_request(req)})


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def request_status(request, request_id: int):
    s = RequestStatusSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    svc.set_request_status(request.user, request_id, s.validated_data['status'])
    req = svc.get_request_for(request.user, request_id)
    return Response({'ok': True, 'data': svc.format_request(req)})
