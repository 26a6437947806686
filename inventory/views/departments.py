from rest_framework.decorators import api_view, permission_classes
from rest_framework.exceptions import PermissionDenied, ValidationError
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from inventory.models import Department
from inventory.permissions import USER_MANAGEMENT, user_has
from inventory.serializers.users import DepartmentSerializer
from inventory.services.audit import log_action


def format_department(d: Department) -> dict:
    return {'id': d.id, 'name': d.name, 'code': d.code}


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def departments(request):
    if request.method == 'GET':
        return Response({'ok': True, 'data': [format_department(d) for d in Department.objects.all()]})

    if not user_has(request.user, USER_MANAGEMENT):
        raise PermissionDenied('User Management permission required')
    s = DepartmentSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    name = s.validated_data['name']
    if Department.objects.filter(name__iexact=name).exists():
        raise ValidationError({'name': 'Department already exists'})
    dept = Department.objects.create(name=name, code=s.validated_data.get('code', ''))
    log_action(user=request.user, action='department_create', object_type='department', object_id=dept.id,
               detail={'name': dept.name})
    return Response({'ok': True, 'data': format_department(dept)}, status=201)
