from django.contrib import admin
from .models import SchoolClass, Student

@admin.register(SchoolClass)
class SchoolClassAdmin(admin.ModelAdmin):
    list_display = ("id", "name", "grade", "section")
    list_filter = ("grade",)

@admin.register(Student)
class StudentAdmin(admin.ModelAdmin):
    list_display = ("id", "index_no", "first_name", "last_name", "grade", "parent", "is_approved")
    list_filter = ("is_approved", "grade")
    search_fields = ("index_no", "first_name", "last_name", "parent__email")
