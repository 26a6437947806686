from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from inventory.permissions import CanReleaseItems
from inventory.serializers.workflow import ReleaseCreateSerializer, ReleaseListQuerySerializer
from inventory.services import releases as svc


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, CanReleaseItems])
def releases(request):
    if request.method == 'POST':
        s = ReleaseCreateSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        rel = svc.create_release(request.user, s.validated_data)
        return Response({'ok': True, 'data': svc.format_release(svc.get_release(rel.id))}, status=201)

    q = ReleaseListQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    vd = q.validated_data
    qs = svc.list_releases(department_id=vd.get('departmentId'), release_type=vd.get('releaseType', ''),
                           date_from=vd.get('dateFrom'), date_to=vd.get('dateTo'))
    return Response({'ok': True, 'data': [svc.format_release(r) for r in qs]})


@api_view(['GET'])
@permission_classes([IsAuthenticated, CanReleaseItems])
def release_detail(request, release_id: int):
    return Response({'ok': True, 'data': svc.format_release(svc.get_release(release_id))})
