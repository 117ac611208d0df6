# backend/lab_core/audit/api/serializers.py
from rest_framework import serializers

from lab_core.audit.models import MasterDataAuditLog


class MasterDataAuditLogSerializer(serializers.ModelSerializer):
    dataType = serializers.CharField(source="data_type", read_only=True)
    userId = serializers.CharField(source="user_id", read_only=True)
    username = serializers.CharField(read_only=True, default=None)
    previousData = serializers.JSONField(source="previous_data", read_only=True)
    companyId = serializers.CharField(source="company_id", read_only=True)
    locationId = serializers.CharField(source="location_id", read_only=True)

    class Meta:
        model = MasterDataAuditLog
        fields = [
            "id",
            "dataType",
            "userId",
            "username",
            "action",
            "data",
            "previousData",
            "companyId",
            "locationId",
            "timestamp",
        ]
        read_only_fields = fields
