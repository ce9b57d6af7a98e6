import logging

from django.conf import settings
from django.contrib import messages
from django.core.exceptions import ValidationError
from django.shortcuts import redirect, render
from django.views.decorators.http import require_POST
from rest_framework import status
from rest_framework.decorators import api_view
from rest_framework.response import Response

from accounts.authorization import (
    Action,
    Decision,
    authorize,
    check_authorization,
    deny,
)
from accounts.errors import DependencyFailure, NotFound
from accounts.identity import actor_for
from .forms import AnnouncementForm, CommentForm
from .models import Announcement, Comment
from .serializers import ReactionUserSerializer, ReactSerializer
from .visibility import viewer_for
from . import services

logger = logging.getLogger(__name__)

_API_DENIED = {
    Decision.REDIRECT_LOGIN: ("Authentication required", status.HTTP_401_UNAUTHORIZED),
    Decision.REDIRECT_PENDING_APPROVAL: (
        "Your account is pending admin approval",
        status.HTTP_403_FORBIDDEN,
    ),
    Decision.DENY_NOT_FOUND: ("Post not found", status.HTTP_404_NOT_FOUND),
    Decision.DENY_AUTH: ("Access denied", status.HTTP_403_FORBIDDEN),
}


def _api_deny(decision):
    message, code = _API_DENIED[decision]
    return Response({"error": message}, status=code)


@authorize(Action.BROWSE)
def home(request):
    feed = services.list_visible_announcements(
        viewer_for(request.actor), limit=settings.HOME_FEED_LIMIT
    )
    return render(request, "content/home.html", {"posts": feed, "active_nav": "home"})


@authorize(Action.BROWSE)
def post_list(request):
    category = request.GET.get("category") or "all"
    search = (request.GET.get("search") or "").strip()
    posts = services.list_visible_announcements(
        viewer_for(request.actor), category=category, search=search or None
    )
    ctx = {
        "posts": posts,
        "categories": services.categories(),
        "selected_category": category,
        "search": search,
        "active_nav": "posts",
    }
    return render(request, "content/index.html", ctx)


def post_detail(request, pk: int):
    actor = actor_for(request)
    announcement = (
        Announcement.objects.select_related("author", "target_class")
        .filter(pk=pk)
        .first()
    )
    decision = check_authorization(actor, Action.VIEW_ANNOUNCEMENT, announcement)
    if decision is not Decision.ALLOW:
        return deny(request, decision)
    ctx = {
        "post": announcement,
        "comments": services.thread(announcement),
        "reactions": services.reaction_counts(announcement.pk),
        "self_reaction": services.own_reaction(actor, announcement.pk),
        "comment_form": CommentForm(),
        "active_nav": "posts",
    }
    return render(request, "content/detail.html", ctx)


# -- admin authoring ------------------------------------------------------

@authorize(Action.MANAGE_ANNOUNCEMENTS)
def post_create(request):
    form = AnnouncementForm(request.POST or None)
    if request.method == "POST" and form.is_valid():
        try:
            post = services.save_announcement(request.user, form.cleaned_data)
        except DependencyFailure as e:
            form.add_error(None, e.message)
        else:
            return redirect("content:detail", pk=post.pk)
    return render(request, "content/form.html", {"form": form, "active_nav": "posts"})


@authorize(Action.MANAGE_ANNOUNCEMENTS)
def post_edit(request, pk: int):
    post = services.get_announcement(pk)
    form = AnnouncementForm(request.POST or None, instance=post)
    if request.method == "POST" and form.is_valid():
        try:
            services.save_announcement(request.user, form.cleaned_data, instance=post)
        except DependencyFailure as e:
            form.add_error(None, e.message)
        else:
            messages.success(request, "Post updated.")
            return redirect("content:detail", pk=post.pk)
    return render(
        request, "content/form.html", {"form": form, "post": post, "active_nav": "posts"}
    )


@require_POST
@authorize(Action.MANAGE_ANNOUNCEMENTS)
def post_delete(request, pk: int):
    post = services.get_announcement(pk)
    post.delete()
    logger.info("Announcement deleted: id=%s by=%s", pk, request.user.pk)
    messages.success(request, "Post deleted.")
    return redirect("content:list")


# -- reactions ------------------------------------------------------------

@api_view(["POST"])
def react(request, pk: int):
    actor = actor_for(request)
    announcement = Announcement.objects.filter(pk=pk).first()
    decision = check_authorization(actor, Action.REACT, announcement)
    if decision is not Decision.ALLOW:
        return _api_deny(decision)
    serializer = ReactSerializer(data=request.data)
    if not serializer.is_valid():
        return Response({"error": "Invalid reaction type"}, status=status.HTTP_400_BAD_REQUEST)
    try:
        result = services.react(actor, pk, serializer.validated_data["reaction_type"])
    except DependencyFailure:
        return Response(
            {"error": "Error processing reaction"},
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )
    return Response({"success": True, **result})


@api_view(["GET"])
def reaction_details(request, pk: int):
    decision = check_authorization(actor_for(request), Action.MANAGE_ANNOUNCEMENTS)
    if decision is not Decision.ALLOW:
        return _api_deny(decision)
    try:
        details = services.reaction_details(pk)
    except NotFound as e:
        return Response({"error": e.message}, status=status.HTTP_404_NOT_FOUND)
    return Response(
        {
            "success": True,
            "likes": ReactionUserSerializer(details["likes"], many=True).data,
            "dislikes": ReactionUserSerializer(details["dislikes"], many=True).data,
            "total_likes": details["total_likes"],
            "total_dislikes": details["total_dislikes"],
        }
    )


# -- comments -------------------------------------------------------------

@require_POST
def comment_add(request, pk: int):
    actor = actor_for(request)
    announcement = Announcement.objects.filter(pk=pk).first()
    decision = check_authorization(actor, Action.COMMENT, announcement)
    if decision is not Decision.ALLOW:
        return deny(request, decision)
    form = CommentForm(request.POST)
    if not form.is_valid():
        messages.error(request, "Comment content is required")
        return redirect("content:detail", pk=pk)
    try:
        comment = services.add_comment(
            request.user,
            announcement,
            form.cleaned_data["content"],
            form.cleaned_data.get("parent_id"),
        )
    except ValidationError as e:
        messages.error(request, e.messages[0])
        return redirect("content:detail", pk=pk)
    except DependencyFailure as e:
        messages.error(request, e.message)
        return redirect("content:detail", pk=pk)
    return redirect(f"{announcement.get_absolute_url()}#comment-{comment.pk}")


def _owned_comment(request, pk):
    request.actor = actor_for(request)
    comment = Comment.objects.select_related("announcement").filter(pk=pk).first()
    decision = check_authorization(request.actor, Action.EDIT_COMMENT, comment)
    return comment, decision


def comment_edit(request, pk: int):
    comment, decision = _owned_comment(request, pk)
    if decision is not Decision.ALLOW:
        return deny(request, decision)
    form = CommentForm(request.POST or None, initial={"content": comment.content})
    if request.method == "POST" and form.is_valid():
        services.edit_comment(comment, form.cleaned_data["content"])
        return redirect(f"{comment.announcement.get_absolute_url()}#comment-{comment.pk}")
    return render(request, "content/comment_form.html", {"form": form, "comment": comment})


@require_POST
def comment_delete(request, pk: int):
    comment, decision = _owned_comment(request, pk)
    if decision is not Decision.ALLOW:
        return deny(request, decision)
    announcement = comment.announcement
    services.delete_comment(comment)
    return redirect(announcement.get_absolute_url())
