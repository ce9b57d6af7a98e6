from django.contrib import admin
from .models import User

@admin.register(User)
class UserAdmin(admin.ModelAdmin):
    list_display = ("id", "email", "name", "role", "is_approved", "is_active", "created_at")
    list_filter = ("role", "is_approved", "is_active")
    search_fields = ("email", "name")
    ordering = ("-created_at",)
