import logging

from django.core.exceptions import ValidationError
from django.db import DatabaseError, IntegrityError, transaction
from django.db.models import Count, Q

from accounts.errors import DependencyFailure, NotFound
from accounts.identity import Actor
from .models import Announcement, Comment, Reaction, ReactionKind
from .visibility import Viewer, visibility_q

logger = logging.getLogger(__name__)

DEFAULT_CATEGORY = "general"


def with_counts(qs):
    return qs.annotate(
        comment_count=Count("comments", distinct=True),
        like_count=Count(
            "reactions", filter=Q(reactions__kind=ReactionKind.LIKE), distinct=True
        ),
        dislike_count=Count(
            "reactions", filter=Q(reactions__kind=ReactionKind.DISLIKE), distinct=True
        ),
    )


def list_visible_announcements(viewer: Viewer, category=None, search=None, limit=None):
    """
    Announcements ``viewer`` may see, pinned first and newest first.

    ``category`` and ``search`` narrow the visible set further; they never
    widen it.
    """
    qs = Announcement.objects.filter(visibility_q(viewer))
    if category and category != "all":
        qs = qs.filter(category=category)
    if search:
        qs = qs.filter(Q(title__icontains=search) | Q(content__icontains=search))
    qs = with_counts(qs.select_related("author", "target_class")).order_by(
        "-is_pinned", "-created_at", "-id"
    )
    if limit is not None:
        qs = qs[:limit]
    return qs


def categories():
    return list(
        Announcement.objects.order_by("category")
        .values_list("category", flat=True)
        .distinct()
    )


def reaction_counts(announcement_id) -> dict:
    rows = (
        Reaction.objects.filter(announcement_id=announcement_id)
        .values("kind")
        .annotate(n=Count("id"))
    )
    counts = {r["kind"]: r["n"] for r in rows}
    return {
        "likes": counts.get(ReactionKind.LIKE.value, 0),
        "dislikes": counts.get(ReactionKind.DISLIKE.value, 0),
    }


def own_reaction(actor: Actor, announcement_id):
    if not actor.is_authenticated:
        return None
    return (
        Reaction.objects.filter(announcement_id=announcement_id, user_id=actor.user_id)
        .values_list("kind", flat=True)
        .first()
    )


def react(actor: Actor, announcement_id, kind: str) -> dict:
    """
    Toggle ``actor``'s reaction on an announcement.

    No reaction yet inserts one; the same kind again removes it; the other
    kind switches it. Counts are recomputed from the stored rows after the
    write.
    """
    if kind not in ReactionKind.values:
        raise ValidationError("Invalid reaction type", code="invalid")
    try:
        with transaction.atomic():
            if not Announcement.objects.filter(pk=announcement_id).exists():
                raise NotFound("Post not found")
            existing = (
                Reaction.objects.select_for_update()
                .filter(announcement_id=announcement_id, user_id=actor.user_id)
                .first()
            )
            if existing is None:
                try:
                    with transaction.atomic():
                        Reaction.objects.create(
                            announcement_id=announcement_id,
                            user_id=actor.user_id,
                            kind=kind,
                        )
                except IntegrityError:
                    # lost an insert race for the same pair; toggle against the winner
                    existing = Reaction.objects.select_for_update().get(
                        announcement_id=announcement_id, user_id=actor.user_id
                    )
            if existing is not None:
                if existing.kind == kind:
                    existing.delete()
                else:
                    existing.kind = kind
                    existing.save(update_fields=["kind"])
            result = reaction_counts(announcement_id)
            result["self_reaction"] = own_reaction(actor, announcement_id)
    except DatabaseError:
        logger.exception(
            "Reaction failed: announcement=%s user=%s", announcement_id, actor.user_id
        )
        raise DependencyFailure()
    return result


def reaction_details(announcement_id) -> dict:
    if not Announcement.objects.filter(pk=announcement_id).exists():
        raise NotFound("Post not found")
    reactions = (
        Reaction.objects.filter(announcement_id=announcement_id)
        .select_related("user")
        .order_by("-created_at", "-id")
    )
    likes = [r for r in reactions if r.kind == ReactionKind.LIKE]
    dislikes = [r for r in reactions if r.kind == ReactionKind.DISLIKE]
    return {
        "likes": likes,
        "dislikes": dislikes,
        "total_likes": len(likes),
        "total_dislikes": len(dislikes),
    }


# -- announcements (admin) ------------------------------------------------

def save_announcement(author, data, instance=None) -> Announcement:
    announcement = instance or Announcement(author=author)
    for key, value in data.items():
        setattr(announcement, key, value)
    if not announcement.category:
        announcement.category = DEFAULT_CATEGORY
    try:
        announcement.save()
    except DatabaseError:
        logger.exception("Saving announcement failed: id=%s", announcement.pk)
        raise DependencyFailure()
    logger.info("Announcement saved: id=%s by=%s", announcement.pk, author.pk)
    return announcement


def get_announcement(announcement_id) -> Announcement:
    announcement = (
        Announcement.objects.select_related("author", "target_class")
        .filter(pk=announcement_id)
        .first()
    )
    if announcement is None:
        raise NotFound("Post not found")
    return announcement


# -- comments -------------------------------------------------------------

def thread(announcement):
    """Top-level comments with their replies prefetched, oldest first."""
    return (
        announcement.comments.filter(parent__isnull=True)
        .select_related("author")
        .prefetch_related("replies__author")
    )


def add_comment(author, announcement, content: str, parent_id=None) -> Comment:
    content = (content or "").strip()
    if not content:
        raise ValidationError("Comment content is required", code="required")
    parent = None
    if parent_id:
        parent = Comment.objects.filter(pk=parent_id, announcement=announcement).first()
        if parent is None:
            raise NotFound("Parent comment not found")
        # one level of nesting
        if parent.parent_id is not None:
            parent = parent.parent
    try:
        comment = Comment.objects.create(
            announcement=announcement, author=author, parent=parent, content=content
        )
    except DatabaseError:
        logger.exception("Adding comment failed: announcement=%s", announcement.pk)
        raise DependencyFailure()
    return comment


def edit_comment(comment: Comment, content: str) -> Comment:
    content = (content or "").strip()
    if not content:
        raise ValidationError("Comment content is required", code="required")
    comment.content = content
    comment.save(update_fields=["content", "updated_at"])
    return comment


def delete_comment(comment: Comment) -> None:
    try:
        comment.delete()
    except DatabaseError:
        logger.exception("Deleting comment failed: id=%s", comment.pk)
        raise DependencyFailure()
