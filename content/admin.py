from django.contrib import admin
from .models import Announcement, Comment, Reaction

@admin.register(Announcement)
class AnnouncementAdmin(admin.ModelAdmin):
    list_display = ("title", "category", "visibility", "target", "is_pinned", "created_at")
    list_filter = ("visibility", "target", "category", "is_pinned")
    search_fields = ("title", "content")
    autocomplete_fields = ("author",)

@admin.register(Comment)
class CommentAdmin(admin.ModelAdmin):
    list_display = ("id", "announcement", "author", "parent", "created_at")
    search_fields = ("content", "author__email")

@admin.register(Reaction)
class ReactionAdmin(admin.ModelAdmin):
    list_display = ("announcement", "user", "kind", "created_at")
    list_filter = ("kind",)
