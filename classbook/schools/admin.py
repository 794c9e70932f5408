from django.contrib import admin

from classbook.schools.models import School
from classbook.schools.models import Student


@admin.register(School)
class SchoolAdmin(admin.ModelAdmin):
    list_display = ["name", "email", "principal", "subscription", "is_active"]
    list_filter = ["is_active"]
    search_fields = ["name", "email"]
    raw_id_fields = ["principal", "subscription"]
    readonly_fields = ["subscription", "created", "modified"]


@admin.register(Student)
class StudentAdmin(admin.ModelAdmin):
    list_display = ["name", "school", "status", "created"]
    list_filter = ["status"]
    search_fields = ["name", "school__name"]
    raw_id_fields = ["school"]
