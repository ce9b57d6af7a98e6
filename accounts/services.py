import logging

from django.db import DatabaseError, IntegrityError, transaction
from django.db.models import Count, Q

from jobs.dispatch import enqueue_best_effort

from .errors import AuthorizationDenied, ConflictError, DependencyFailure, NotFound
from .models import Role, User

logger = logging.getLogger(__name__)


def _email_taken(email: str, exclude_id=None) -> bool:
    qs = User.objects.filter(email__iexact=email)
    if exclude_id is not None:
        qs = qs.exclude(pk=exclude_id)
    return qs.exists()


def list_users(role=None, search=None):
    qs = User.objects.all()
    if role and role != "all":
        qs = qs.filter(role=role)
    if search:
        qs = qs.filter(Q(name__icontains=search) | Q(email__icontains=search))
    return qs.order_by("-created_at", "-id")


def role_counts() -> dict:
    rows = User.objects.values("role").annotate(count=Count("id"))
    return {r["role"]: r["count"] for r in rows}


def create_user(name: str, email: str, password: str, role: str) -> User:
    """
    Admin-side account creation. Every role created here starts approved.
    A welcome email is queued; failure to queue it never fails the creation.
    """
    email = User.objects.normalize_email(email)
    try:
        with transaction.atomic():
            if _email_taken(email):
                raise ConflictError("Email already registered")
            user = User.objects.create_user(
                email=email,
                password=password,
                name=name,
                role=role,
                is_approved=True,
            )
    except IntegrityError:
        raise ConflictError("Email already registered")
    except DatabaseError:
        logger.exception("Creating user failed: email=%s", email)
        raise DependencyFailure()
    logger.info("User created: id=%s role=%s", user.pk, user.role)
    from jobs.tasks import send_welcome_email

    enqueue_best_effort(send_welcome_email, user.pk)
    return user


def update_user(user_id: int, name: str, email: str, role: str, password: str = "") -> User:
    email = User.objects.normalize_email(email)
    try:
        with transaction.atomic():
            user = User.objects.select_for_update().filter(pk=user_id).first()
            if user is None:
                raise NotFound("User not found")
            if _email_taken(email, exclude_id=user.pk):
                raise ConflictError("Email already taken by another user")
            user.name = name
            user.email = email
            user.role = role
            if role != Role.PARENT:
                user.is_approved = True
            if password:
                user.set_password(password)
            user.save()
    except IntegrityError:
        raise ConflictError("Email already taken by another user")
    except DatabaseError:
        logger.exception("Updating user failed: id=%s", user_id)
        raise DependencyFailure()
    return user


def delete_user(actor_id: int, user_id: int) -> None:
    if actor_id == user_id:
        raise AuthorizationDenied("Cannot delete your own account")
    user = User.objects.filter(pk=user_id).first()
    if user is None:
        raise NotFound("User not found")
    try:
        with transaction.atomic():
            user.delete()
    except DatabaseError:
        logger.exception("Deleting user failed: id=%s", user_id)
        raise DependencyFailure()
    logger.info("User deleted: id=%s by=%s", user_id, actor_id)


def approve_parent(user_id: int) -> User:
    """One-way transition parent:unapproved -> parent:approved."""
    with transaction.atomic():
        user = User.objects.select_for_update().filter(pk=user_id).first()
        if user is None:
            raise NotFound("User not found")
        if user.role != Role.PARENT:
            raise ConflictError("Only parent accounts require approval")
        if not user.is_approved:
            user.is_approved = True
            user.save(update_fields=["is_approved", "updated_at"])
            logger.info("Parent approved: id=%s", user.pk)
    return user


def broadcast(recipients, subject: str, message: str):
    """
    Queue one email per recipient on the ``mail`` queue. Returns
    ``(queued, failed)``; delivery outcomes land in ``mailer.EmailLog``.
    """
    from jobs.tasks import send_broadcast_email

    queued = failed = 0
    for user in recipients:
        if enqueue_best_effort(send_broadcast_email, user.pk, subject, message):
            queued += 1
        else:
            failed += 1
    logger.info("Broadcast queued: subject=%r queued=%s failed=%s", subject, queued, failed)
    return queued, failed
