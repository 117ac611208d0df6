# backend/lab_core/api/urls.py
from __future__ import annotations

from django.urls import path

from lab_core.audit.api.views import MasterDataAuditView
from lab_core.iam.api.auth import ChangePasswordView, LoginView, LogoutView, RefreshView
from lab_core.iam.api.employees import EmployeeDetailView, EmployeeListCreateView
from lab_core.iam.api.me import MeView
from lab_core.masterdata.api.views import (
    BulkMasterDataView,
    ColumnDetailView,
    MasterDataView,
    ObsoleteColumnDetailView,
    ObsoleteColumnView,
)
from lab_core.masterdata.entities import ENTITIES
from lab_core.realtime.api.views import MasterDataStreamView

# One CRUD route and one audit route per master-data registry
master_data_patterns = []
for slug in ENTITIES:
    master_data_patterns += [
        path(f"admin/{slug}", MasterDataView.as_view(entity_slug=slug), name=f"{slug}"),
        path(f"admin/{slug}/audit", MasterDataAuditView.as_view(entity_slug=slug), name=f"{slug}-audit"),
    ]

urlpatterns = [
    # 🔐 Auth + /me
    path("auth/login", LoginView.as_view(), name="login"),
    path("auth/refresh", RefreshView.as_view(), name="refresh"),
    path("auth/logout", LogoutView.as_view(), name="logout"),
    path("auth/change-password", ChangePasswordView.as_view(), name="change-password"),
    path("auth/me", MeView.as_view(), name="me"),

    # Employee administration
    path("admin/employees", EmployeeListCreateView.as_view(), name="employees"),
    path("admin/employees/<str:user_id>", EmployeeDetailView.as_view(), name="employee-detail"),

    # Master data
    *master_data_patterns,
    path("admin/column/<uuid:column_id>", ColumnDetailView.as_view(), name="column-detail"),
    path("admin/obsolete-column", ObsoleteColumnView.as_view(), name="obsolete-column"),
    path("admin/obsolete-column/<uuid:column_id>", ObsoleteColumnDetailView.as_view(), name="obsolete-column-detail"),
    path("master-data/bulk", BulkMasterDataView.as_view(), name="master-data-bulk"),

    # Realtime
    path("sse/master-data", MasterDataStreamView.as_view(), name="master-data-stream"),
]
