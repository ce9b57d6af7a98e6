from django.contrib import messages
from django.core.exceptions import ValidationError
from django.shortcuts import redirect, render
from django.views.decorators.http import require_POST

from accounts.authorization import Action, Decision, authorize, check_authorization, deny
from accounts.errors import DependencyFailure
from .forms import MessageForm
from .models import DirectMessage
from . import services


@authorize(Action.MESSAGE)
def inbox(request):
    return render(
        request,
        "messaging/index.html",
        {"conversations": services.inbox(request.user), "active_nav": "messages"},
    )


@authorize(Action.MESSAGE)
def conversation(request, user_id: int):
    try:
        other, thread = services.open_conversation(request.user, user_id)
    except ValidationError as e:
        messages.error(request, e.messages[0])
        return redirect("messaging:inbox")
    form = MessageForm(initial={"receiver": other.pk}, sender=request.user)
    ctx = {
        "other_user": other,
        "thread": thread,
        "form": form,
        "active_nav": "messages",
    }
    return render(request, "messaging/conversation.html", ctx)


def _send(request, form):
    try:
        return services.send_message(
            request.user,
            form.cleaned_data["receiver"].pk,
            form.cleaned_data["subject"],
            form.cleaned_data["message"],
        )
    except ValidationError as e:
        form.add_error(None, e)
    except DependencyFailure as e:
        form.add_error(None, e.message)
    return None


@require_POST
@authorize(Action.MESSAGE)
def send(request):
    form = MessageForm(request.POST, sender=request.user)
    if form.is_valid():
        dm = _send(request, form)
        if dm:
            return redirect("messaging:conversation", user_id=dm.receiver_id)
    for error in form.non_field_errors() or ["All fields are required"]:
        messages.error(request, error)
    receiver_id = request.POST.get("receiver")
    if receiver_id and receiver_id.isdigit():
        return redirect("messaging:conversation", user_id=int(receiver_id))
    return redirect("messaging:inbox")


@authorize(Action.MESSAGE)
def new(request):
    form = MessageForm(request.POST or None, sender=request.user)
    if request.method == "POST" and form.is_valid():
        dm = _send(request, form)
        if dm:
            return redirect("messaging:conversation", user_id=dm.receiver_id)
    return render(request, "messaging/new.html", {"form": form, "active_nav": "messages"})


@require_POST
@authorize(Action.MESSAGE)
def delete(request, pk: int):
    dm = DirectMessage.objects.filter(pk=pk).first()
    decision = check_authorization(request.actor, Action.DELETE_MESSAGE, dm)
    if decision is not Decision.ALLOW:
        return deny(request, decision)
    other_id = dm.sender_id if dm.receiver_id == request.user.pk else dm.receiver_id
    services.delete_message(dm)
    return redirect("messaging:conversation", user_id=other_id)
