from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from inventory.pagination import paginate
from inventory.permissions import HasFullAccess
from inventory.serializers.workflow import AuditQuerySerializer
from inventory.services.audit import format_event, search_events


@api_view(['GET'])
@permission_classes([IsAuthenticated, HasFullAccess])
def audit_events(request):
    q = AuditQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    vd = q.validated_data
    qs = search_events(
        action=vd.get('action', ''), object_type=vd.get('objectType', ''), object_id=vd.get('objectId'),
        user_id=vd.get('userId'), date_from=vd.get('dateFrom'), date_to=vd.get('dateTo'),
    )
    rows, meta = paginate(qs, vd.get('page'), vd.get('pageSize'), default_size=100)
    return Response({'ok': True, 'data': [format_event(e) for e in rows], 'pagination': meta})
