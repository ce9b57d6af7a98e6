import logging

from django.contrib import messages
from django.db import DatabaseError
from django.http import HttpResponseBadRequest
from django.shortcuts import get_object_or_404, redirect, render
from django.views.decorators.http import require_POST

from accounts.authorization import Action, authorize
from .forms import ContactForm, StatusForm
from .models import ContactMessage

logger = logging.getLogger(__name__)

STATUSES = {s for s, _ in ContactMessage.STATUS_CHOICES}


def index(request):
    form = ContactForm(request.POST or None)
    if request.method == "POST":
        if form.is_valid():
            try:
                form.save()
            except DatabaseError:
                logger.exception("Saving contact message failed")
                messages.error(request, "Error sending message. Please try again.")
            else:
                messages.success(
                    request, "Message sent successfully! We will get back to you soon."
                )
                return redirect("contact:index")
        else:
            messages.error(request, "All fields are required")
    return render(request, "contact/index.html", {"form": form, "active_nav": "contact"})


@authorize(Action.VIEW_CONTACT_INBOX)
def inbox(request):
    status = request.GET.get("status") or "all"
    qs = ContactMessage.objects.all()
    if status in STATUSES:
        qs = qs.filter(status=status)
    return render(
        request,
        "contact/messages.html",
        {"contact_messages": qs, "current_status": status, "active_nav": "contact"},
    )


@authorize(Action.VIEW_CONTACT_INBOX)
def detail(request, pk: int):
    msg = get_object_or_404(ContactMessage, pk=pk)
    if msg.status == "unread":
        msg.status = "read"
        msg.save(update_fields=["status"])
    return render(
        request,
        "contact/detail.html",
        {"contact_message": msg, "status_form": StatusForm(initial={"status": msg.status})},
    )


@require_POST
@authorize(Action.VIEW_CONTACT_INBOX)
def update_status(request, pk: int):
    form = StatusForm(request.POST)
    if not form.is_valid():
        return HttpResponseBadRequest("Invalid status")
    msg = get_object_or_404(ContactMessage, pk=pk)
    msg.status = form.cleaned_data["status"]
    msg.save(update_fields=["status"])
    return redirect("contact:detail", pk=pk)


@require_POST
@authorize(Action.VIEW_CONTACT_INBOX)
def delete(request, pk: int):
    get_object_or_404(ContactMessage, pk=pk).delete()
    messages.success(request, "Message deleted.")
    return redirect("contact:inbox")
