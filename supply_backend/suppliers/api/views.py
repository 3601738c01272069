# suppliers/api/views.py

"""
SUPPLIER / LOGISTICS REGISTRY ENDPOINTS

- Plain CRUD; deleting archives (is_active=False) because ledger entries,
  batches and orders keep referencing the row.
- ?include_inactive=true lists archived rows too.
"""

from drf_spectacular.utils import extend_schema
from rest_framework import filters, status, viewsets
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from suppliers.api.serializers import LogisticsCompanySerializer, SupplierSerializer
from suppliers.models import LogisticsCompany, Supplier


def _include_inactive(request) -> bool:
    raw = (request.query_params.get("include_inactive") or "").strip().lower()
    return raw in ("1", "true", "yes")


class _ArchiveOnDeleteMixin:
    def destroy(self, request, *args, **kwargs):
        instance = self.get_object()
        instance.is_active = False
        instance.save(update_fields=["is_active"])
        return Response(status=status.HTTP_204_NO_CONTENT)


@extend_schema(tags=["suppliers"])
class SupplierViewSet(_ArchiveOnDeleteMixin, viewsets.ModelViewSet):
    permission_classes = [IsAuthenticated]
    serializer_class = SupplierSerializer
    filter_backends = [filters.SearchFilter, filters.OrderingFilter]
    search_fields = ["name", "company", "phone", "email"]
    ordering_fields = ["name", "created_at"]

    def get_queryset(self):
        qs = Supplier.objects.all().order_by("name")
        if not _include_inactive(self.request):
            qs = qs.filter(is_active=True)
        return qs


@extend_schema(tags=["suppliers"])
class LogisticsCompanyViewSet(_ArchiveOnDeleteMixin, viewsets.ModelViewSet):
    permission_classes = [IsAuthenticated]
    serializer_class = LogisticsCompanySerializer
    filter_backends = [filters.SearchFilter, filters.OrderingFilter]
    search_fields = ["name", "code"]
    ordering_fields = ["name", "code", "created_at"]

    def get_queryset(self):
        qs = LogisticsCompany.objects.all().order_by("name")
        if not _include_inactive(self.request):
            qs = qs.filter(is_active=True)
        return qs
