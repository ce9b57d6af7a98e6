from django.contrib import admin
from .models import Conversation, DirectMessage

@admin.register(Conversation)
class ConversationAdmin(admin.ModelAdmin):
    list_display = ("id", "user1", "user2", "last_message_at")

@admin.register(DirectMessage)
class DirectMessageAdmin(admin.ModelAdmin):
    list_display = ("id", "sender", "receiver", "subject", "is_read", "created_at")
    list_filter = ("is_read",)
    search_fields = ("subject", "sender__email", "receiver__email")
