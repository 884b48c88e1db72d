from django.contrib import admin

from .models import Job


@admin.register(Job)
class JobAdmin(admin.ModelAdmin):
    list_display = ("id", "stage", "state", "progress", "attempt", "visible_at", "updated_at")
    list_filter = ("stage", "state")
    readonly_fields = [f.name for f in Job._meta.fields]
    ordering = ("-created_at",)
