# backend/lab_core/audit/admin.py
from django.contrib import admin

from lab_core.audit.models import EmployeeAuditLog, MasterDataAuditLog


@admin.register(MasterDataAuditLog)
class MasterDataAuditLogAdmin(admin.ModelAdmin):
    list_display = ("data_type", "action", "user_id", "company_id", "location_id", "timestamp")
    list_filter = ("data_type", "action", "company_id", "location_id")
    search_fields = ("user_id", "data_type")
    readonly_fields = [f.name for f in MasterDataAuditLog._meta.fields]
    ordering = ("-timestamp",)

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(EmployeeAuditLog)
class EmployeeAuditLogAdmin(admin.ModelAdmin):
    list_display = ("employee_id", "user_id", "action", "performed_by", "timestamp")
    list_filter = ("action",)
    search_fields = ("employee_id", "user_id", "performed_by")
    readonly_fields = ("timestamp",)
    ordering = ("-timestamp",)
