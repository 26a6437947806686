"""
User administration.

Holders of ``User Management`` may manage every account.  Holders of
``Manage Department Users`` may only list accounts in their own
department.
"""
from __future__ import annotations

from django.db.models import Q
from rest_framework.decorators import api_view, permission_classes
from rest_framework.exceptions import PermissionDenied
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from inventory.models import User
from inventory.pagination import paginate
from inventory.permissions import (
    ALL_PERMISSIONS,
    MANAGE_DEPARTMENT_USERS,
    ROLE_PERMISSIONS,
    USER_MANAGEMENT,
    CanManageUsers,
    requires,
    user_has,
)
from inventory.serializers.users import (
    AdminResetPasswordSerializer,
    SuspendSerializer,
    UserCreateSerializer,
    UserListQuerySerializer,
    UserUpdateSerializer,
)
from inventory.services import accounts


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, requires(USER_MANAGEMENT, MANAGE_DEPARTMENT_USERS)])
def users(request):
    if request.method == 'POST':
        if not user_has(request.user, USER_MANAGEMENT):
            raise PermissionDenied('User Management permission required')
        s = UserCreateSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        user = accounts.create_user(request.user, s.validated_data)
        return Response({'ok': True, 'data': accounts.format_user(user)}, status=201)

    q = UserListQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    vd = q.validated_data
    qs = User.objects.select_related('department').order_by('-date_joined', '-id')
    if not user_has(request.user, USER_MANAGEMENT):
        # department heads see their own people only
        qs = qs.filter(department_id=request.user.department_id) if request.user.department_id else qs.none()
    elif vd.get('departmentId'):
        qs = qs.filter(department_id=vd['departmentId'])
    if vd.get('q'):
        s = vd['q']
        qs = qs.filter(Q(email__icontains=s) | Q(first_name__icontains=s) | Q(last_name__icontains=s)
                       | Q(employee_id__icontains=s))
    if vd.get('role'):
        qs = qs.filter(role=vd['role'])
    if vd.get('status'):
        qs = qs.filter(status=vd['status'])
    rows, meta = paginate(qs, vd.get('page'), vd.get('pageSize'))
    return Response({'ok': True, 'data': [accounts.format_user(u) for u in rows], 'pagination': meta})


@api_view(['GET', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, CanManageUsers])
def user_detail(request, user_id: int):
    user = accounts.get_user_or_404(user_id)
    if request.method == 'GET':
        return Response({'ok': True, 'data': accounts.format_user(user)})
    if request.method == 'DELETE':
        accounts.delete_user(request.user, user)
        return Response({'ok': True})
    s = UserUpdateSerializer(data=request.data, partial=True)
    s.is_valid(raise_exception=True)
    user = accounts.update_user(request.user, user, s.validated_data)
    return Response({'ok': True, 'data': accounts.format_user(user)})


@api_view(['POST'])
@permission_classes([IsAuthenticated, CanManageUsers])
def approve_user(request, user_id: int):
    user = accounts.approve_user(request.user, accounts.get_user_or_404(user_id))
    return Response({'ok': True, 'data': accounts.format_user(user)})


@api_view(['POST'])
@permission_classes([IsAuthenticated, CanManageUsers])
def suspend_user(request, user_id: int):
    s = SuspendSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    user = accounts.suspend_user(request.user, accounts.get_user_or_404(user_id), s.validated_data['reason'])
    return Response({'ok': True, 'data': accounts.format_user(user)})


@api_view(['POST'])
@permission_classes([IsAuthenticated, CanManageUsers])
def reset_user_password(request, user_id: int):
    s = AdminResetPasswordSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    accounts.admin_reset_password(request.user, accounts.get_user_or_404(user_id), s.validated_data['newPassword'])
    return Response({'ok': True, 'message': 'Password reset. The user must change it at next login.'})


@api_view(['POST'])
@permission_classes([IsAuthenticated, CanManageUsers])
def unlock_user(request, user_id: int):
    user = accounts.unlock_user(request.user, accounts.get_user_or_404(user_id))
    return Response({'ok': True, 'data': accounts.format_user(user)})


@api_view(['GET'])
@permission_classes([IsAuthenticated, CanManageUsers])
def role_permissions(request):
    """Role default permissions, for the user form."""
    return Response({'ok': True, 'data': {'roles': ROLE_PERMISSIONS, 'permissions': ALL_PERMISSIONS}})
