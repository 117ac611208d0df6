# backend/lab_core/masterdata/admin.py
from django.contrib import admin

from lab_core.masterdata.entities import ENTITIES


class MasterRecordAdmin(admin.ModelAdmin):
    list_filter = ("company_id", "location_id")
    readonly_fields = ("id", "created_by", "updated_by", "created_at", "updated_at")


for _entity in ENTITIES.values():
    admin.site.register(
        _entity.model,
        type(
            f"{_entity.model.__name__}Admin",
            (MasterRecordAdmin,),
            {
                "list_display": (_entity.key_field, "company_id", "location_id", "updated_at"),
                "search_fields": (_entity.key_field, "description"),
                "ordering": (_entity.key_field,),
            },
        ),
    )
