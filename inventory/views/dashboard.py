"""
Dashboard, reports and CSV export.

The dashboard is open to any signed-in user; reports and exports need
one of the report permissions.
"""
from __future__ import annotations

from django.http import HttpResponse
from django.utils import timezone
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from inventory.permissions import CanViewReports
from inventory.serializers.workflow import ExportQuerySerializer, ReportQuerySerializer
from inventory.services import reports


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def dashboard(request):
    return Response({'ok': True, 'data': reports.dashboard_summary()})


@api_view(['GET'])
@permission_classes([IsAuthenticated, CanViewReports])
def report(request):
    q = ReportQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    period = q.validated_data.get('period') or reports.DEFAULT_PERIOD
    return Response({'ok': True, 'data': reports.build_report(period)})


@api_view(['GET'])
@permission_classes([IsAuthenticated, CanViewReports])
def export(request):
    q = ExportQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    kind = q.validated_data['kind']
    body = reports.export_csv(kind)
    resp = HttpResponse(body, content_type='text/csv; charset=utf-8')
    resp['Content-Disposition'] = f'attachment; filename="{kind}-{timezone.localdate():%Y-%m-%d}.csv"'
    return resp
