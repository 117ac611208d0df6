# backend/lab_core/audit/filters.py
from __future__ import annotations

import django_filters as df
from django.db.models import Q

from lab_core.audit.models import AuditAction, MasterDataAuditLog


class MasterDataAuditFilter(df.FilterSet):
    """
    Query filters for a master entity's audit trail.

    The natural-key filter (e.g. ?api= or ?chemicalName=) is added per entity,
    and matches the key in either the current or the previous snapshot.
    """
    action = df.ChoiceFilter(choices=AuditAction.choices)
    startDate = df.DateTimeFilter(field_name="timestamp", lookup_expr="gte")
    endDate = df.DateTimeFilter(field_name="timestamp", lookup_expr="lte")
    searchTerm = df.CharFilter(method="filter_search")

    class Meta:
        model = MasterDataAuditLog
        fields = ["action"]

    def __init__(self, *args, entity=None, **kwargs):
        super().__init__(*args, **kwargs)
        self.entity = entity
        if entity is not None:
            self.filters[entity.key_param] = df.CharFilter(field_name=entity.key_param, method="filter_key")
            # CharFilter binds to the owning FilterSet on access
            self.filters[entity.key_param].parent = self
            self.filters[entity.key_param].model = MasterDataAuditLog

    def filter_key(self, queryset, name, value):
        value = (value or "").strip()
        if not value:
            return queryset
        return queryset.filter(Q(**{f"data__{name}": value}) | Q(**{f"previous_data__{name}": value}))

    def filter_search(self, queryset, name, value):
        value = (value or "").strip()
        if not value or self.entity is None:
            return queryset
        q = Q()
        for field in self.entity.search_fields:
            q |= Q(**{f"data__{field}__icontains": value})
            q |= Q(**{f"previous_data__{field}__icontains": value})
        return queryset.filter(q)
