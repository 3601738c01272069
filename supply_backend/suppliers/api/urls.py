# suppliers/api/urls.py

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from suppliers.api.views import LogisticsCompanyViewSet, SupplierViewSet

router = DefaultRouter()
router.register(r"suppliers", SupplierViewSet, basename="suppliers")
router.register(r"logistics-companies", LogisticsCompanyViewSet, basename="logistics-companies")

urlpatterns = [
    path("", include(router.urls)),
]
