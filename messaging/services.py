import logging

from django.core.exceptions import ValidationError
from django.db import DatabaseError, IntegrityError, transaction
from django.db.models import Count, Q
from django.utils import timezone

from accounts.errors import DependencyFailure, NotFound
from accounts.models import User
from .models import Conversation, DirectMessage

logger = logging.getLogger(__name__)


def normalize_pair(a_id: int, b_id: int):
    return (a_id, b_id) if a_id < b_id else (b_id, a_id)


def get_or_create_conversation(a_id: int, b_id: int) -> Conversation:
    user1_id, user2_id = normalize_pair(a_id, b_id)
    try:
        with transaction.atomic():
            conv, _ = Conversation.objects.get_or_create(
                user1_id=user1_id, user2_id=user2_id
            )
    except IntegrityError:
        conv = Conversation.objects.get(user1_id=user1_id, user2_id=user2_id)
    return conv


def between(a_id: int, b_id: int):
    return DirectMessage.objects.filter(
        Q(sender_id=a_id, receiver_id=b_id) | Q(sender_id=b_id, receiver_id=a_id)
    ).select_related("sender")


def inbox(user):
    """Conversations of ``user``, most recent first, each with ``other`` and ``unread_count``."""
    unread = dict(
        DirectMessage.objects.filter(receiver=user, is_read=False)
        .values("sender_id")
        .annotate(n=Count("id"))
        .values_list("sender_id", "n")
    )
    conversations = list(
        Conversation.objects.filter(Q(user1=user) | Q(user2=user))
        .select_related("user1", "user2")
        .order_by("-last_message_at", "-id")
    )
    for conv in conversations:
        conv.other_user = conv.other(user.pk)
        conv.unread_count = unread.get(conv.other_user.pk, 0)
    return conversations


def _counterpart(user, other_id) -> User:
    other = User.objects.filter(pk=other_id).first()
    if other is None:
        raise NotFound("User not found")
    if other.pk == user.pk:
        raise ValidationError("You cannot message yourself", code="invalid")
    return other


def open_conversation(user, other_id):
    """
    Load (creating if needed) the conversation between ``user`` and
    ``other_id``. Incoming unread messages are marked read.
    """
    other = _counterpart(user, other_id)
    get_or_create_conversation(user.pk, other.pk)
    thread = list(between(user.pk, other.pk))
    DirectMessage.objects.filter(
        sender=other, receiver=user, is_read=False
    ).update(is_read=True)
    return other, thread


def send_message(sender, receiver_id, subject: str, message: str) -> DirectMessage:
    subject = (subject or "").strip()
    message = (message or "").strip()
    if not receiver_id or not subject or not message:
        raise ValidationError("All fields are required", code="required")
    receiver = _counterpart(sender, receiver_id)
    try:
        with transaction.atomic():
            dm = DirectMessage.objects.create(
                sender=sender, receiver=receiver, subject=subject, message=message
            )
            conv = get_or_create_conversation(sender.pk, receiver.pk)
            conv.last_message_at = timezone.now()
            conv.save(update_fields=["last_message_at"])
    except DatabaseError:
        logger.exception("Sending message failed: sender=%s receiver=%s", sender.pk, receiver.pk)
        raise DependencyFailure()
    logger.info("Message sent: id=%s sender=%s receiver=%s", dm.pk, sender.pk, receiver.pk)
    return dm


def delete_message(dm: DirectMessage) -> None:
    try:
        dm.delete()
    except DatabaseError:
        logger.exception("Deleting message failed: id=%s", dm.pk)
        raise DependencyFailure()
