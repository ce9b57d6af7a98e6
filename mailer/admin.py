from django.contrib import admin
from .models import EmailLog

@admin.register(EmailLog)
class EmailLogAdmin(admin.ModelAdmin):
    list_display = ("id", "user", "subject", "is_sent", "sent_at", "provider_id")
    list_filter = ("is_sent",)
    search_fields = ("user__email", "subject", "provider_id")
