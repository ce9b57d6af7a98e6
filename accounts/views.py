from django.contrib import messages
from django.shortcuts import redirect, render
from django.views.decorators.http import require_POST

from content.models import Comment
from messaging.models import DirectMessage
from .authorization import Action, authorize
from .errors import ConflictError, DependencyFailure, NotFound
from .forms import BroadcastForm, UserCreateForm, UserEditForm
from .identity import actor_for
from .models import Role, User
from . import services


def pending_approval(request):
    actor = actor_for(request)
    if not actor.is_parent or actor.approved:
        return redirect("content:home")
    return render(request, "accounts/pending_approval.html")


# -- user administration ---------------------------------------------------

@authorize(Action.MANAGE_USERS)
def user_list(request):
    role = request.GET.get("role") or "all"
    search = (request.GET.get("search") or "").strip()
    counts = services.role_counts()
    ctx = {
        "users": services.list_users(role, search or None),
        "role": role,
        "search": search,
        "roles": Role.choices,
        "counts": counts,
        "total": sum(counts.values()),
        "active_nav": "users",
    }
    return render(request, "accounts/users/index.html", ctx)


@authorize(Action.MANAGE_USERS)
def user_create(request):
    form = UserCreateForm(request.POST or None)
    if request.method == "POST" and form.is_valid():
        try:
            services.create_user(**form.cleaned_data)
        except ConflictError as e:
            form.add_error("email", e.message)
        except DependencyFailure as e:
            form.add_error(None, e.message)
        else:
            messages.success(request, "User created successfully.")
            return redirect("accounts:users")
    return render(request, "accounts/users/form.html", {"form": form, "active_nav": "users"})


def _get_user(pk):
    user = User.objects.filter(pk=pk).first()
    if user is None:
        raise NotFound("User not found")
    return user


@authorize(Action.MANAGE_USERS)
def user_edit(request, pk: int):
    target = _get_user(pk)
    initial = {"name": target.name, "email": target.email, "role": target.role}
    form = UserEditForm(request.POST or None, initial=initial)
    if request.method == "POST" and form.is_valid():
        try:
            services.update_user(pk, **form.cleaned_data)
        except ConflictError as e:
            form.add_error("email", e.message)
        except DependencyFailure as e:
            form.add_error(None, e.message)
        else:
            messages.success(request, "User updated successfully.")
            return redirect("accounts:users")
    return render(
        request,
        "accounts/users/form.html",
        {"form": form, "target": target, "active_nav": "users"},
    )


@require_POST
@authorize(Action.MANAGE_USERS)
def user_delete(request, pk: int):
    services.delete_user(request.user.pk, pk)
    messages.success(request, "User deleted successfully.")
    return redirect("accounts:users")


@require_POST
@authorize(Action.MANAGE_USERS)
def user_approve(request, pk: int):
    try:
        user = services.approve_parent(pk)
    except ConflictError as e:
        messages.error(request, e.message)
    else:
        messages.success(request, f"{user.display_name} can now use the portal.")
    return redirect("accounts:users")


@authorize(Action.MANAGE_USERS)
def user_detail(request, pk: int):
    target = _get_user(pk)
    ctx = {
        "target": target,
        "posts": target.announcements.order_by("-created_at"),
        "comments": Comment.objects.filter(author=target)
        .select_related("announcement")
        .order_by("-created_at"),
        "recent_messages": DirectMessage.objects.filter(sender=target)
        .select_related("receiver")
        .order_by("-created_at")[:10],
        "children": target.children.select_related("school_class"),
        "active_nav": "users",
    }
    return render(request, "accounts/users/detail.html", ctx)


@authorize(Action.MANAGE_USERS)
def broadcast(request):
    role = request.GET.get("role") or "all"
    form = BroadcastForm(request.POST or None)
    if role in Role.values:
        form.fields["recipients"].queryset = User.objects.filter(role=role).order_by(
            "name", "email"
        )
    if request.method == "POST":
        if form.is_valid():
            queued, failed = services.broadcast(
                form.cleaned_data["recipients"],
                form.cleaned_data["subject"],
                form.cleaned_data["message"],
            )
            summary = f"{queued} emails queued"
            if failed:
                summary += f", {failed} failed"
            messages.success(request, summary)
            return redirect("accounts:broadcast")
        messages.error(request, "All fields are required")
    return render(
        request,
        "accounts/users/email.html",
        {"form": form, "role": role, "roles": Role.choices, "active_nav": "users"},
    )
