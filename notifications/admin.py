from django.contrib import admin
from .models import AdminNotification

@admin.register(AdminNotification)
class AdminNotificationAdmin(admin.ModelAdmin):
    list_display = ("id", "type", "title", "related_user", "is_read", "created_at")
    list_filter = ("type", "is_read")
