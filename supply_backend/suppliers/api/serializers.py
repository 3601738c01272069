# suppliers/api/serializers.py

from rest_framework import serializers

from suppliers.models import LogisticsCompany, Supplier


class SupplierSerializer(serializers.ModelSerializer):
    class Meta:
        model = Supplier
        fields = "__all__"
        read_only_fields = ("id", "created_at")


class LogisticsCompanySerializer(serializers.ModelSerializer):
    class Meta:
        model = LogisticsCompany
        fields = "__all__"
        read_only_fields = ("id", "created_at")

    def validate_code(self, value):
        return (value or "").strip().upper()
