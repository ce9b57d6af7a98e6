from django.shortcuts import get_object_or_404, redirect, render
from django.views.decorators.http import require_POST

from accounts.authorization import Action, authorize
from .models import AdminNotification


@authorize(Action.VIEW_NOTIFICATIONS)
def index(request):
    notes = AdminNotification.objects.select_related("related_user", "related_student")
    ctx = {
        "notifications": notes.order_by("is_read", "-created_at", "-id"),
        "unread_count": notes.filter(is_read=False).count(),
        "active_nav": "notifications",
    }
    return render(request, "notifications/index.html", ctx)


@require_POST
@authorize(Action.VIEW_NOTIFICATIONS)
def mark_read(request, pk: int):
    note = get_object_or_404(AdminNotification, pk=pk)
    if not note.is_read:
        note.is_read = True
        note.save(update_fields=["is_read"])
    return redirect("notifications:index")


@require_POST
@authorize(Action.VIEW_NOTIFICATIONS)
def mark_all_read(request):
    AdminNotification.objects.filter(is_read=False).update(is_read=True)
    return redirect("notifications:index")
