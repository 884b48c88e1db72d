from django.contrib import admin
from django.urls import include, path

urlpatterns = [
    path("admin/", admin.site.urls),  # job dashboard
    path("api/", include("publisher.urls")),
]
