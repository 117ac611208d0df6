# backend/lab_core/iam/admin.py
from __future__ import annotations

from django.contrib import admin

from lab_core.iam.models import Employee, LocationGrant


class LocationGrantInline(admin.TabularInline):
    model = LocationGrant
    extra = 0
    autocomplete_fields = ("company", "location")


@admin.register(Employee)
class EmployeeAdmin(admin.ModelAdmin):
    list_display = ("employee_id", "name", "user", "role", "email", "created_at")
    list_filter = ("role",)
    search_fields = ("employee_id", "name", "user__username", "email")
    autocomplete_fields = ("user",)
    inlines = [LocationGrantInline]
    ordering = ("name",)


@admin.register(LocationGrant)
class LocationGrantAdmin(admin.ModelAdmin):
    list_display = ("employee", "company", "location", "created_at")
    list_filter = ("company",)
    search_fields = ("employee__employee_id", "employee__user__username", "location__name")
    autocomplete_fields = ("employee", "company", "location")
