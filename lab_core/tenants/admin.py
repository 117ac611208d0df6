# backend/lab_core/tenants/admin.py
from django.contrib import admin

from lab_core.tenants.models import Company, Location


class LocationInline(admin.TabularInline):
    model = Location
    extra = 0
    readonly_fields = ("id", "created_at")


@admin.register(Company)
class CompanyAdmin(admin.ModelAdmin):
    list_display = ("company_id", "name", "created_by", "created_at", "updated_at")
    search_fields = ("company_id", "name")
    ordering = ("company_id",)
    readonly_fields = ("id", "created_at", "updated_at")
    filter_horizontal = ("members",)
    inlines = [LocationInline]

    fieldsets = (
        (None, {"fields": ("id", "company_id", "name", "created_by")}),
        ("Membership", {"fields": ("members",)}),
        ("Timestamps", {"fields": ("created_at", "updated_at")}),
    )


@admin.register(Location)
class LocationAdmin(admin.ModelAdmin):
    list_display = ("name", "location_id", "company", "created_at")
    list_filter = ("company",)
    search_fields = ("name", "location_id", "company__company_id")
    autocomplete_fields = ("company",)
